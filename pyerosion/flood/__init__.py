"""
Final water levelling for pyerosion.

After the erosion loop, the still water left in depressions is levelled by a
mass-conserving Margolus solver: 2x2 blocks cycled over four checkerboard
offsets, each block brought to one flat water level by bisection.

Available Functions:
- solve_level: flat level of one block (ti.func)
- margolus_step: one checkerboard sub-pass (kernel)
- equilibrate: every pass and sub-pass, with the pre-pass copies and parity flips

Author: B.G.
"""

from .margolus import solve_level, margolus_step, equilibrate

__all__ = [
	"solve_level",
	"margolus_step",
	"equilibrate",
]
