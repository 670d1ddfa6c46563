"""
Erosion-deposition kernels of the erosion loop.

One iteration of the loop runs three passes, each reading the current
instances of the terrain/water grids and writing the alternate ones:

- hydraulic: adaptive FD8 routing of flowing water, capacity-driven
  erosion/deposition, droplet injection, evaporation, pits and overflow
- still_water: slope-weighted settling of the still-water pool
- thermal: moisture-dependent talus relaxation of the terrain

Available Functions:
- hydraulic_step, effective_height, flow_exponent, fd8_weights, hash01
- still_water_step
- thermal_step, allowed_talus

Usage:
    import pyerosion as pe

    pe.erodep.hydraulic_step(store.terrain.current, store.water.current,
        store.terrain.alternate, store.water.alternate, store.erosion_params.field)
    store.terrain.swap()
    store.water.swap()

Author: B.G.
"""

from .hydraulic import hydraulic_step, effective_height, flow_exponent, fd8_weights, hash01
from .still_water import still_water_step
from .thermal import thermal_step, allowed_talus

__all__ = [
	"hydraulic_step",
	"effective_height",
	"flow_exponent",
	"fd8_weights",
	"hash01",
	"still_water_step",
	"thermal_step",
	"allowed_talus",
]
