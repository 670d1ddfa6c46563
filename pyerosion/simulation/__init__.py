"""
Erosion run orchestration for pyerosion.

Core Classes:
- Eroder: owns the grids of a run and sequences every stage
- ErosionResult: mapping of the five flat output arrays

Core Functions:
- run: configuration in, ErosionResult out

Usage:
    import pyerosion as pe

    pe.environment.initialise("gpu")
    result = pe.simulation.run(pe.ErosionConfig(size_x=256, size_y=256, iterations=200))
    height = result.reshaped("height")

Author: B.G.
"""

from .eroder import Eroder, run
from .result import ErosionResult, RESULT_KEYS

__all__ = [
	"Eroder",
	"run",
	"ErosionResult",
	"RESULT_KEYS",
]
