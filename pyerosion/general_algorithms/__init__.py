"""
General Algorithms Module

Reusable building blocks shared by the pipeline stages, written as Taichi
funcs and kernels.

Available Algorithms:
    - math_utils: smoothstep, lerp and the stateless PCG hash used for droplets
    - reduction: two-level (group-local then atomic) max reduction
    - util_taichi: whole-grid copy

Example Usage:
    ```python
    from pyerosion.general_algorithms import group_max_atomic, hash01
    import taichi as ti

    acc = ti.field(ti.i32, shape=())
    acc[None] = 0
    group_max_atomic(seed_grid, acc, 3, 0, 1000.0)
    max_distance = acc[None] / 1000.0

    @ti.kernel
    def spawn(water: ti.template(), iteration: ti.i32):
        for r, c in water:
            if hash01(c, r, ti.u32(42), iteration) < 0.05:
                water[r, c][0] += 1.0
    ```

Author: B. Gailleton
"""

from .math_utils import smoothstep, lerp, pcg_hash, hash01
from .reduction import group_max_atomic
from .util_taichi import copy_grid

__all__ = [
    'smoothstep',
    'lerp',
    'pcg_hash',
    'hash01',
    'group_max_atomic',
    'copy_grid'
]
