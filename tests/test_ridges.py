import math

import numpy as np
import pytest
import taichi as ti

from pyerosion.grid import params as prm
from pyerosion.ridges import (
    pass_count, step_size, build_distance_field, blend_terrain, noise_to_terrain, blend_factor,
    jump_flood_pass, jump_flood_final_pass, reduce_max_distance,
)


def _seed_grid(nx, ny, points):
    values = np.zeros((ny, nx, 4), dtype=np.float32)
    values[:, :, 0:2] = -1.0
    values[:, :, 3] = 1e9
    for r, c in points:
        values[r, c] = (c, r, 0.9, 0.0)
    return values


def test_pass_count_and_steps():
    assert pass_count(8, 8) == 4
    assert pass_count(512, 300) == 10
    assert pass_count(1, 1) == 1
    assert [step_size(i, 8, 8) for i in range(pass_count(8, 8))] == [1, 4, 2, 1]
    assert [step_size(i, 5, 3) for i in range(pass_count(5, 3))] == [1, 2, 1]


def test_single_seed_gives_exact_distances(buffers, blocks):
    seeds = buffers(8, 8, _seed_grid(8, 8, [(0, 0)]))
    block = blocks(prm.acquire_block(prm.JumpFloodParams, step=1))
    acc = ti.field(ti.i32, shape=())

    dmax = build_distance_field(seeds, block, acc)

    s = seeds.to_numpy()
    rows, cols = np.mgrid[0:8, 0:8]
    assert np.all(s[:, :, 0] == 0.0) and np.all(s[:, :, 1] == 0.0)
    np.testing.assert_allclose(s[:, :, 3], np.hypot(rows, cols), rtol=1e-6)
    assert dmax == pytest.approx(math.sqrt(98.0), abs=1e-3)
    assert seeds.n_swaps == 4


def test_distance_field_on_several_seeds(buffers, blocks):
    points = [(2, 3), (10, 17), (15, 1)]
    seeds = buffers(20, 16, _seed_grid(20, 16, points))
    block = blocks(prm.acquire_block(prm.JumpFloodParams, step=1))
    acc = ti.field(ti.i32, shape=())

    dmax = build_distance_field(seeds, block, acc)

    s = seeds.to_numpy()
    rows, cols = np.mgrid[0:16, 0:20]
    exact = np.min([np.hypot(rows - r, cols - c) for r, c in points], axis=0)
    assert np.all(s[:, :, 0] >= 0.0)
    # Jump flooding is approximate with several seeds, never closer than the true nearest
    assert np.all(s[:, :, 3] >= exact - 1e-4)
    assert np.mean(np.isclose(s[:, :, 3], exact, atol=1e-4)) > 0.95
    assert dmax == pytest.approx(s[:, :, 3].max(), abs=1.5e-3)


@pytest.mark.parametrize("step", [1, 4])
def test_final_pass_reduces_while_propagating(buffers, blocks, rng, step):
    # Several tiles, the last row and column of tiles partially outside the grid
    nx, ny = 37, 21
    points = [(int(r), int(c)) for r, c in zip(rng.integers(0, ny, 6), rng.integers(0, nx, 6))]
    seeds = buffers(nx, ny, _seed_grid(nx, ny, points))
    reference = buffers(nx, ny)
    block = blocks(prm.acquire_block(prm.JumpFloodParams, step=step))
    fused = ti.field(ti.i32, shape=())
    separate = ti.field(ti.i32, shape=())

    jump_flood_final_pass(seeds.current, seeds.alternate, block.field, fused)
    jump_flood_pass(seeds.current, reference.current, block.field)
    reduce_max_distance(reference.current, separate)

    seeds.swap()
    np.testing.assert_array_equal(seeds.to_numpy(), reference.to_numpy())
    assert fused[None] == separate[None]
    assert fused[None] > 0


def test_no_seed_leaves_the_sentinel(buffers, blocks):
    seeds = buffers(6, 6, _seed_grid(6, 6, []))
    block = blocks(prm.acquire_block(prm.JumpFloodParams, step=1))
    acc = ti.field(ti.i32, shape=())
    assert build_distance_field(seeds, block, acc) == 0.0
    assert np.all(seeds.to_numpy()[:, :, 0] == -1.0)


def test_blend_terrain(buffers, blocks, rng):
    ny, nx = 6, 9
    noise_values = rng.random((ny, nx)).astype(np.float32)
    seed_values = _seed_grid(nx, ny, [])
    seed_values[:, :, 0] = 1.0
    seed_values[:, :, 3] = rng.random((ny, nx)) * 8.0
    seed_values[0, 0, 0] = -1.0

    noise = ti.field(ti.f32, shape=(ny, nx))
    noise.from_numpy(noise_values)
    seeds = buffers(nx, ny, seed_values)
    terrain_values = np.zeros((ny, nx, 4), dtype=np.float32)
    terrain_values[:, :, 1] = 7.0
    terrain = buffers(nx, ny, terrain_values)
    acc = ti.field(ti.i32, shape=())
    acc[None] = 5000
    block = blocks(prm.acquire_block(prm.BlendParams, blend=0.3))

    blend_terrain(noise, seeds.current, terrain.current, acc, block.field)

    dnorm = np.clip(seed_values[:, :, 3] / 5.0, 0.0, 1.0)
    dnorm[0, 0] = 0.0
    expected = (1.0 - noise_values) * 0.7 + dnorm * 0.3
    out = terrain.to_numpy()
    np.testing.assert_allclose(out[:, :, 0], expected, atol=1e-5)
    assert np.all(out[:, :, 1] == 7.0)


def test_blend_with_empty_distance_field(buffers, blocks, rng):
    noise_values = rng.random((4, 4)).astype(np.float32)
    noise = ti.field(ti.f32, shape=(4, 4))
    noise.from_numpy(noise_values)
    seeds = buffers(4, 4, _seed_grid(4, 4, []))
    terrain = buffers(4, 4)
    acc = ti.field(ti.i32, shape=())
    acc[None] = 0
    block = blocks(prm.acquire_block(prm.BlendParams, blend=0.5))

    blend_terrain(noise, seeds.current, terrain.current, acc, block.field)
    np.testing.assert_allclose(terrain.get_channel(0), 0.5 * (1.0 - noise_values), atol=1e-6)

    noise_to_terrain(noise, terrain.current)
    np.testing.assert_array_equal(terrain.get_channel(0), noise_values)


def test_blend_factor():
    assert blend_factor(1.0, 1.0) == 0.5
    assert blend_factor(0.0, 2.0) == 1.0
    assert blend_factor(0.0, 0.0) == 0.5
    assert blend_factor(3.0, 1.0) == 0.25
