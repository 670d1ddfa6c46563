import numpy as np
import taichi as ti

import pyerosion as pe
from pyerosion.grid import params as prm
from pyerosion.noise import generate_noise


def _noise(blocks, ny=24, nx=32, seeds=None, **cfg):
    config = pe.ErosionConfig(**cfg)
    block = blocks(prm.noise_params(config))
    noise = ti.field(ti.f32, shape=(ny, nx))
    generate_noise(noise, seeds, block.field)
    return noise.to_numpy()


def test_noise_range_and_determinism(blocks):
    a = _noise(blocks)
    assert np.all(np.isfinite(a))
    assert a.min() >= 0.0 and a.max() <= 1.0
    assert a.std() > 0.01
    np.testing.assert_array_equal(a, _noise(blocks))


def test_seed_and_warp_change_the_field(blocks):
    a = _noise(blocks, seed=1)
    assert not np.array_equal(a, _noise(blocks, seed=2))
    assert not np.array_equal(_noise(blocks, warp_factor=0.0), _noise(blocks, warp_factor=0.2))


def _fine_scale_share(field):
    """Energy of the one-cell differences relative to the field variance."""
    gx = np.diff(field, axis=1)
    gy = np.diff(field, axis=0)
    return (np.mean(gx * gx) + np.mean(gy * gy)) / field.var()


def test_octaves_add_detail(blocks):
    # fbm is normalised by the total amplitude, compare shares, not raw differences
    smooth = _noise(blocks, ny=64, nx=64, octaves=1, warp_factor=0.0)
    rough = _noise(blocks, ny=64, nx=64, octaves=6, warp_factor=0.0)
    assert not np.array_equal(smooth, rough)
    assert smooth.var() > 0.0 and rough.var() > 0.0
    assert _fine_scale_share(rough) > 1.5 * _fine_scale_share(smooth)


def test_seed_classification(blocks, buffers):
    seeds = buffers(32, 24)
    heights = _noise(blocks, seeds=seeds.current, seed_threshold=0.55)
    s = seeds.to_numpy()

    above = heights > np.float32(0.55)
    assert above.any() and (~above).any()

    rows, cols = np.nonzero(above)
    np.testing.assert_array_equal(s[rows, cols, 0], cols)
    np.testing.assert_array_equal(s[rows, cols, 1], rows)
    np.testing.assert_allclose(s[rows, cols, 2], heights[rows, cols])
    assert np.all(s[rows, cols, 3] == 0.0)

    assert np.all(s[~above][:, :2] == -1.0)
    assert np.allclose(s[~above][:, 3], 1e9)
