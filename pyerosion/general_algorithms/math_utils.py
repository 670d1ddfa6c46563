"""
Mathematical Utility Functions for Taichi

Small scalar helpers shared by the erosion kernels: smooth thresholds, linear
interpolation and a stateless integer hash for per-cell pseudo-randomness.

Available Functions:
    - smoothstep: cubic Hermite ramp between two edges
    - lerp: linear interpolation
    - pcg_hash: 32-bit PCG output permutation
    - hash01: hash of (col, row, seed, iteration) mapped to [0, 1)

Author: B. Gailleton
"""

import taichi as ti


@ti.func
def smoothstep(edge0: ti.f32, edge1: ti.f32, x: ti.f32) -> ti.f32:
    """
    Cubic Hermite ramp: 0 below edge0, 1 above edge1, smooth in between.

    Args:
        edge0 (ti.f32): lower edge
        edge1 (ti.f32): upper edge, must be strictly larger than edge0
        x (ti.f32): input value

    Returns:
        ti.f32: value in [0, 1]

    Author: B. Gailleton
    """
    t = ti.math.clamp((x - edge0) / (edge1 - edge0), 0.0, 1.0)
    return t * t * (3.0 - 2.0 * t)


@ti.func
def lerp(a: ti.f32, b: ti.f32, t: ti.f32) -> ti.f32:
    return a + (b - a) * t


@ti.func
def pcg_hash(v: ti.u32) -> ti.u32:
    """
    PCG-style integer permutation (one LCG step followed by the RXS-M-XS output function).

    Pure function of its input: the same value always hashes to the same result
    on every backend, which keeps runs reproducible without any random state.

    Author: B. Gailleton
    """
    state = v * ti.u32(747796405) + ti.u32(2891336453)
    word = ((state >> ((state >> ti.u32(28)) + ti.u32(4))) ^ state) * ti.u32(277803737)
    return (word >> ti.u32(22)) ^ word


@ti.func
def hash01(col: ti.i32, row: ti.i32, seed: ti.u32, iteration: ti.i32) -> ti.f32:
    """
    Deterministic pseudo-random value in [0, 1) for a cell at a given iteration.

    The 4 inputs are chained through pcg_hash and the top 24 bits of the
    result are scaled to [0, 1), so the value is exactly representable in f32
    and never reaches 1.

    Args:
        col, row: cell coordinates
        seed: configured random seed
        iteration: erosion loop iteration index

    Author: B. Gailleton
    """
    h = pcg_hash(ti.cast(iteration, ti.u32))
    h = pcg_hash(seed ^ h)
    h = pcg_hash(ti.cast(row, ti.u32) ^ h)
    h = pcg_hash(ti.cast(col, ti.u32) ^ h)
    return ti.cast(h >> ti.u32(8), ti.f32) / 16777216.0
