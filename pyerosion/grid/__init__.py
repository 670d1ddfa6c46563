"""
Grid storage and spatial helpers for pyerosion.

This submodule owns the device-side memory of an erosion run: every 2D grid
is a 4-channel float field, double-buffered so that passes never read what
they are writing, and every stage reads its tunables from a small parameter
block.

Core Classes:
- DoubleBuffer: two instances of a grid with an index flip for parity
- GridStore: all grids and parameter blocks of a run, acquired from the pool
- ParamBlock: a 0-D struct field read by kernels as `params[None]`

Grid layout (channels):
- terrain: height, reserved, reserved, reserved
- water: flowing water, flowing sediment, still water, still sediment
- seeds: nearest seed x (col), nearest seed y (row), seed height, distance

Usage:
    import pyerosion as pe

    cfg = pe.ErosionConfig(size_x=128, size_y=128)
    store = pe.grid.GridStore(cfg)
    some_pass(store.terrain.current, store.terrain.alternate, store.erosion_params.field)
    store.terrain.swap()
    store.release()

Author: B.G.
"""

from .gridfields import DoubleBuffer, GridStore
from .params import (
	ParamBlock,
	acquire_block,
	forget_blocks,
	NoiseParams,
	JumpFloodParams,
	BlendParams,
	ErosionParams,
	StillWaterParams,
	ThermalParams,
	MargolusParams,
)
from . import neighbourer

# Export main classes
__all__ = [
	"DoubleBuffer",
	"GridStore",
	"ParamBlock",
	"acquire_block",
	"forget_blocks",
	"NoiseParams",
	"JumpFloodParams",
	"BlendParams",
	"ErosionParams",
	"StillWaterParams",
	"ThermalParams",
	"MargolusParams",
	"neighbourer",
]
