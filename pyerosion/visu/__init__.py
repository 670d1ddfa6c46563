"""
Visualisation boundary of pyerosion.

Everything here works on the flat host arrays returned by a run, never on the
device grids.

Available Functions:
- hillshade_numpy: shaded relief of a 2D numpy height array
- hillshade_2d: the underlying Taichi kernel (advanced use)
- sun_vector: light direction from altitude and azimuth
- show_result: matplotlib four-panel view of an ErosionResult

Usage:
    import pyerosion as pe

    result = pe.run(pe.ErosionConfig(size_x=256, size_y=256))
    hs = pe.visu.hillshade_numpy(result.reshaped("height"), z_factor=200.0)
    pe.visu.show_result(result)

Author: B.G.
"""

from .hillshading import hillshade_2d, hillshade_numpy, sun_vector
from .display import show_result

__all__ = [
    "hillshade_2d",
    "hillshade_numpy",
    "sun_vector",
    "show_result",
]
