"""
Device grid pooling for pyerosion.

Every run acquires the same family of grids (terrain, water, noise, seeds,
most of them double-buffered) at the configured resolution. Released grids
are kept and handed to the next run of the same resolution, so repeated runs
neither allocate device memory again nor recompile kernels.

Classes:
- GridField: one pooled field (scalar or vector valued) in its own snode tree
- FieldPool: grids indexed by (dtype, channels, shape)

Functions on the process-wide pool:
- acquire_field / release_field
- temp_field: acquire for a with block
- pool_stats: total / in use / available counts
- purge_pool: free the unused grids

Usage:
    import pyerosion as pe
    import taichi as ti

    with pe.pool.temp_field(ti.i32, ()) as acc:
        acc.field[None] = 0

Author: B. Gailleton
"""

from .pool import (
    GridField,
    FieldPool,
    field_pool,
    acquire_field,
    release_field,
    pool_stats,
    purge_pool,
    temp_field,
)

__all__ = [
    "GridField",
    "FieldPool",
    "field_pool",
    "acquire_field",
    "release_field",
    "pool_stats",
    "purge_pool",
    "temp_field",
]
