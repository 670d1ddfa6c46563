"""
Hillshading of eroded height fields.

Shaded relief from the surface normal of the height field and a directional
light:

	hillshade = max(0, n . l)

with n the unit normal built from edge-clamped central differences (scaled by
z_factor) and l the unit vector toward a sun at the given altitude and
azimuth (0 = North, clockwise; rows grow southward).

Author: B. Gailleton
"""

import math

import numpy as np
import taichi as ti

from ..grid.neighbourer import clamp_rc


@ti.kernel
def hillshade_2d(z: ti.types.ndarray(dtype=ti.f32, ndim=2),
                 hillshade: ti.types.ndarray(dtype=ti.f32, ndim=2),
                 lx: ti.f32, ly: ti.f32, lz: ti.f32, z_factor: ti.f32, dx: ti.f32):
    """
    Hillshade of a 2D elevation array into a second array of the same shape.

    Args:
        z: elevation (ny, nx)
        hillshade: output in [0, 1]
        lx, ly, lz: unit vector toward the sun (east, south, up)
        z_factor: vertical exaggeration
        dx: cell size

    Author: B. Gailleton
    """
    ny, nx = z.shape
    for i, j in ti.ndrange(ny, nx):
        # Central differences, one-sided at the edges
        rw, cw = clamp_rc(i, j - 1, ny, nx)
        re, ce = clamp_rc(i, j + 1, ny, nx)
        rn, cn = clamp_rc(i - 1, j, ny, nx)
        rs, cs = clamp_rc(i + 1, j, ny, nx)
        dz_dx = (z[re, ce] - z[rw, cw]) / (ti.max(ce - cw, 1) * dx)
        dz_dy = (z[rs, cs] - z[rn, cn]) / (ti.max(rs - rn, 1) * dx)

        normal = ti.math.normalize(ti.math.vec3(-dz_dx * z_factor, -dz_dy * z_factor, 1.0))
        hillshade[i, j] = ti.math.clamp(normal.dot(ti.math.vec3(lx, ly, lz)), 0.0, 1.0)


def sun_vector(altitude_deg=45.0, azimuth_deg=315.0):
    """Unit vector (east, south, up) pointing toward the sun."""
    alt = math.radians(altitude_deg)
    az = math.radians(azimuth_deg)
    return (math.cos(alt) * math.sin(az), -math.cos(alt) * math.cos(az), math.sin(alt))


def hillshade_numpy(elevation_array, altitude_deg=45.0, azimuth_deg=315.0,
                    z_factor=1.0, dx=1.0, mask=None):
    """
    Compute hillshading for a 2D numpy elevation array.

    Args:
        elevation_array: 2D elevation data
        altitude_deg: sun altitude (0-90, default 45)
        azimuth_deg: sun azimuth (0 = North, clockwise, default 315)
        z_factor: vertical exaggeration (default 1)
        dx: cell size (default 1)
        mask: optional boolean array, True cells become NaN

    Returns:
        numpy.ndarray: float32 hillshade in [0, 1] (or NaN under the mask)

    Example Usage:
        ```python
        hs = hillshade_numpy(result.reshaped("height"), z_factor=200.0)
        hs = hillshade_numpy(height, mask=result.reshaped("still_water") > 0)
        ```

    Author: B. Gailleton
    """
    elevation_array = np.asarray(elevation_array)
    if elevation_array.ndim != 2:
        raise ValueError("elevation_array must be 2D")

    hillshade_array = np.zeros(elevation_array.shape, dtype=np.float32)
    hillshade_2d(np.ascontiguousarray(elevation_array, dtype=np.float32), hillshade_array,
                 *sun_vector(altitude_deg, azimuth_deg), z_factor, dx)

    if mask is not None:
        if mask.shape != elevation_array.shape:
            raise ValueError("mask shape must match elevation_array shape")
        hillshade_array[mask] = np.nan

    return hillshade_array
