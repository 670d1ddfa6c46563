"""
Pooled device grids.

An erosion run needs the same handful of grids at every call of the same
resolution. Allocating them is slow on the device and a kernel compiled
against one field cannot be reused for another one, so grids handed back
after a run are kept here and given to the next request with the same
(dtype, channels, shape).

Each grid lives in its own snode tree, built through a FieldsBuilder, which
lets the pool free one grid without touching any other.

Author: B. Gailleton
"""

import taichi as ti
from typing import Tuple, Any


def _as_shape(shape) -> Tuple[int, ...]:
    """Normalise int / iterable / () shapes. A size of 0 means a 0-D field."""
    if isinstance(shape, int):
        return (shape,) if shape else ()
    shape = tuple(shape)
    return () if shape in ((), (0,)) else shape


class GridField:
    """
    One pooled Taichi field and its private snode tree.

    Attributes:
        field: the Taichi field (ti.field, or ti.Vector.field when channels > 1)
        dtype: component type
        channels: components per cell
        shape: () for a 0-D value, (n,) or (rows, cols)
        in_use: True while a caller holds it
        snodetree: the finalized tree, None once freed

    Author: B. Gailleton
    """

    def __init__(self, dtype: Any, shape, channels: int = 1):
        shape = _as_shape(shape)
        if channels < 1:
            raise ValueError(f"channels must be >= 1, got {channels}")
        if len(shape) > 2:
            raise ValueError(f"Only 0D, 1D and 2D grids are pooled, got a {len(shape)}D shape")

        self.dtype = dtype
        self.channels = channels
        self.shape = shape
        self.in_use = False

        self.field = ti.field(dtype) if channels == 1 else ti.Vector.field(channels, dtype)
        builder = ti.FieldsBuilder()
        if shape:
            builder.dense(ti.ij if len(shape) == 2 else ti.i, shape).place(self.field)
        else:
            builder.place(self.field)
        self.snodetree = builder.finalize()
        # Materialise the tree now, destroying a never-touched tree fails
        self.field.fill(0)

    @property
    def key(self):
        return (self.dtype, self.channels, self.shape)

    def release(self):
        """Hand the grid back. Its memory and content stay as they are."""
        self.in_use = False

    def free(self):
        if self.snodetree is not None:
            self.snodetree.destroy()
            self.snodetree = None

    def to_numpy(self):
        return self.field.to_numpy()

    def from_numpy(self, arr):
        self.field.from_numpy(arr)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False

    def __repr__(self):
        return f"GridField(dtype={self.dtype}, channels={self.channels}, shape={self.shape}, in_use={self.in_use})"


class FieldPool:
    """
    Grids indexed by (dtype, channels, shape).

    Usage:
        pool = FieldPool()
        terrain = pool.acquire(ti.f32, (ny, nx), channels=4)
        acc = pool.acquire(ti.i32, ())
        ...
        pool.release(terrain)

    Author: B. Gailleton
    """

    def __init__(self):
        self._grids = {}

    def _all(self):
        return [g for grids in self._grids.values() for g in grids]

    def acquire(self, dtype: Any, shape, channels: int = 1) -> GridField:
        """
        A free grid with the requested key, allocated if none is free.

        The content is whatever its previous holder left in it.
        """
        key = (dtype, channels, _as_shape(shape))
        grids = self._grids.setdefault(key, [])
        grid = next((g for g in grids if not g.in_use), None)
        if grid is None:
            grid = GridField(dtype, key[2], channels)
            grids.append(grid)
        grid.in_use = True
        return grid

    def release(self, grid: GridField):
        grid.release()

    def purge(self):
        """Free the device memory of every grid nobody holds."""
        for key, grids in self._grids.items():
            for g in grids:
                if not g.in_use:
                    g.free()
            self._grids[key] = [g for g in grids if g.in_use]

    def forget(self):
        """Drop every grid without freeing anything, for use after ti.reset()."""
        self._grids = {}

    def stats(self) -> dict:
        grids = self._all()
        in_use = sum(g.in_use for g in grids)
        return {"total": len(grids), "in_use": in_use, "available": len(grids) - in_use}


# Process-wide pool used by the pipeline
field_pool = FieldPool()


def acquire_field(dtype: Any, shape, channels: int = 1) -> GridField:
    return field_pool.acquire(dtype, shape, channels)


def release_field(grid: GridField):
    field_pool.release(grid)


def pool_stats() -> dict:
    return field_pool.stats()


def purge_pool():
    """Free every unused grid of the process-wide pool."""
    field_pool.purge()


def temp_field(dtype: Any, shape, channels: int = 1) -> GridField:
    """
    Same as acquire_field, meant for a with block that releases the grid on exit:

    with temp_field(ti.i32, ()) as acc:
        acc.field[None] = 0
        group_max_atomic(grid, acc.field, 3, 0, 1000.0)
    """
    return field_pool.acquire(dtype, shape, channels)
