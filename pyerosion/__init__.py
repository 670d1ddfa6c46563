"""
pyerosion - GPU-accelerated procedural terrain erosion.

Generates an eroded terrain surface from procedural noise by running a
sequence of parallel grid kernels with Taichi (GPU when available, CPU
otherwise). Built for interactive-size grids (a few hundred cells a side)
and repeated runs, with pool-based reuse of device memory between runs of
the same resolution.

Pipeline:
1. fractal simplex noise with optional domain warp
2. ridge mode: seed thresholding, jump-flood nearest-seed distance field with
   a global max reduction, blend with the inverted noise
3. erosion loop, repeated `iterations` times:
   hydraulic erosion -> still-water settling -> thermal erosion
4. mass-conserving still-water levelling (Margolus 2x2 bisection solver)
5. readback into flat row-major arrays

Core Components:
- config: ErosionConfig, the single validated run configuration
- environment: Taichi backend initialisation
- grid: double-buffered 4-channel grids and kernel parameter blocks
- noise: height generation
- ridges: jump flood and blend
- erodep: hydraulic, still-water and thermal kernels
- flood: Margolus still-water levelling
- simulation: Eroder orchestrator, run() and ErosionResult
- visu: hillshading and matplotlib quick-look
- pool: device memory pooling
- general_algorithms: hash, smoothstep, reductions, copies
- errors: ConfigurationError, DeviceError, ReadbackError

Basic Usage:
    import pyerosion as pe

    pe.environment.initialise("gpu")

    cfg = pe.ErosionConfig(size_x=256, size_y=256, iterations=300)
    result = pe.run(cfg)

    height = result.reshaped("height")
    still = result.reshaped("still_water")
    pe.visu.show_result(result)

    # Stage by stage
    with pe.simulation.Eroder(cfg) as eroder:
        eroder.generate_terrain()
        eroder.build_distance_field()
        eroder.blend()
        eroder.erode(100)
        eroder.equilibrate()
        result = eroder.readback()

Author: B.G.
"""

__version__ = "0.1.0"
__author__ = "B.G."

# Import submodules, leaves first
from . import constants
from . import errors
from . import pool
from . import general_algorithms
from . import grid
from . import config
from . import environment
from . import erodep
from . import flood
from . import noise
from . import ridges
from . import simulation
from . import visu

from .config import ErosionConfig
from .errors import ErosionError, ConfigurationError, DeviceError, ReadbackError
from .simulation import Eroder, ErosionResult, run

# Export all submodules
__all__ = [
    "config",
    "constants",
    "environment",
    "erodep",
    "errors",
    "flood",
    "general_algorithms",
    "grid",
    "noise",
    "pool",
    "ridges",
    "simulation",
    "visu",
    "ErosionConfig",
    "ErosionError",
    "ConfigurationError",
    "DeviceError",
    "ReadbackError",
    "Eroder",
    "ErosionResult",
    "run",
]
