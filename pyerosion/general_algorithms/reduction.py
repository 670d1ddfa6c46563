"""
Two-level parallel max reduction.

The grid is tiled into GROUP_SIZE x GROUP_SIZE execution groups. One thread
per group folds its tile into a local accumulator (serial inner loop), then
issues exactly one atomic max into a global 0-D integer field. Values are
quantised to fixed point so that the global fold is an integer atomic,
available on every backend.

The global accumulator is NOT reset here: callers zero it before the first
contribution.

Author: B. Gailleton
"""

import taichi as ti
from .. import constants as cte


@ti.func
def n_groups(n: ti.i32) -> ti.i32:
    return (n + cte.GROUP_SIZE - 1) // cte.GROUP_SIZE


@ti.kernel
def group_max_atomic(grid: ti.template(), acc: ti.template(), value_channel: ti.template(),
                     valid_channel: ti.template(), scale: ti.f32):
    """
    Fold the max of grid[..][value_channel] over valid cells into acc[None].

    A cell is valid when grid[..][valid_channel] >= 0. Tiles with no valid
    cell contribute 0.

    Args:
        grid: 2D vector field (ny, nx)
        acc: 0-D ti.i32 field receiving int(max * scale)
        value_channel: channel holding the value to reduce
        valid_channel: channel whose sign flags validity
        scale: fixed-point scale factor

    Author: B. Gailleton
    """
    ny, nx = grid.shape
    gx = n_groups(nx)
    gy = n_groups(ny)

    for g in range(gx * gy):
        r0 = (g // gx) * cte.GROUP_SIZE
        c0 = (g % gx) * cte.GROUP_SIZE

        # Local (per group) reduction, serial inside one thread
        local = 0.0
        for t in range(cte.GROUP_SIZE * cte.GROUP_SIZE):
            r = r0 + t // cte.GROUP_SIZE
            c = c0 + t % cte.GROUP_SIZE
            if r < ny and c < nx:
                v = grid[r, c]
                if v[valid_channel] >= 0.0:
                    local = ti.max(local, v[value_channel])

        # Single global contribution per group
        ti.atomic_max(acc[None], ti.cast(local * scale, ti.i32))
