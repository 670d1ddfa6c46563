import numpy as np
import pytest
import taichi as ti

import pyerosion as pe
from pyerosion.general_algorithms import hash01
from pyerosion.grid import params as prm
from pyerosion.simulation import Eroder, ErosionResult, RESULT_KEYS


@pytest.fixture
def config():
    return pe.ErosionConfig(
        size_x=64,
        size_y=64,
        octaves=4,
        warp_factor=0.0,
        iterations=50,
        spawn_cycles=10,
    )


@ti.kernel
def _droplets(out: ti.types.ndarray(dtype=ti.i32, ndim=3), seed: ti.u32, density: ti.f32):
    for it, r, c in ti.ndrange(out.shape[0], out.shape[1], out.shape[2]):
        out[it, r, c] = ti.select(hash01(c, r, seed, it) < density, 1, 0)


def _injected(cfg):
    out = np.zeros((cfg.spawn_cycles, cfg.size_y, cfg.size_x), dtype=np.int32)
    _droplets(out, cfg.random_seed, cfg.spawn_density)
    return int(out.sum()) * pe.constants.DROPLET_VOLUME


def _wet_regions(wet):
    """Labels of the 8-connected regions of a boolean grid (0 = dry)."""
    ny, nx = wet.shape
    labels = np.zeros(wet.shape, dtype=np.int32)
    n = 0
    for r0, c0 in zip(*np.nonzero(wet)):
        if labels[r0, c0]:
            continue
        n += 1
        labels[r0, c0] = n
        stack = [(r0, c0)]
        while stack:
            r, c = stack.pop()
            for dr in (-1, 0, 1):
                for dc in (-1, 0, 1):
                    rr, cc = r + dr, c + dc
                    if 0 <= rr < ny and 0 <= cc < nx and wet[rr, cc] and not labels[rr, cc]:
                        labels[rr, cc] = n
                        stack.append((rr, cc))
    return labels, n


def test_full_run(config):
    result = pe.run(config, arch="cpu")

    assert set(result) == set(RESULT_KEYS)
    for key in RESULT_KEYS:
        assert result[key].shape == (64 * 64,)
        assert result[key].dtype == np.float32
        assert np.all(np.isfinite(result[key]))
    for key in RESULT_KEYS[1:]:
        assert np.all(result[key] >= 0.0)

    # Flowing water loses evap_rate once per iteration at most, still water never
    injected = _injected(config)
    assert injected > 0
    lowest = injected * (1.0 - config.evap_rate) ** config.iterations
    assert lowest * (1.0 - 1e-4) <= result.total_water() <= injected * (1.0 + 1e-4)


def test_without_evaporation_every_droplet_is_kept(config):
    cfg = pe.ErosionConfig.from_mapping({**config.to_dict(), "evap_rate": 0.0})
    result = pe.run(cfg, arch="cpu")
    assert result.total_water() == pytest.approx(_injected(cfg), rel=1e-3)


def test_each_basin_settles_to_one_level():
    cfg = pe.ErosionConfig(size_x=32, size_y=32, octaves=4, warp_factor=0.0, iterations=40,
        spawn_cycles=10, margolus_passes=2048)
    result = pe.run(cfg, arch="cpu")

    still = result.reshaped("still_water")
    level = result.reshaped("height") + still * cfg.water_height_factor
    labels, n = _wet_regions(still > 0.0)
    assert n > 0
    for i in range(1, n + 1):
        assert np.ptp(level[labels == i]) < 1e-3


def test_runs_are_deterministic(config):
    a = pe.run(config, arch="cpu")
    b = pe.run(config, arch="cpu")
    for key in RESULT_KEYS:
        np.testing.assert_array_equal(a[key], b[key])

    c = pe.run(config, arch="cpu", random_seed=7)
    assert not np.array_equal(a["flowing_water"], c["flowing_water"])


def test_repeated_runs_reuse_the_pool(config):
    pe.run(config, arch="cpu")
    stats = pe.pool.pool_stats()
    pe.run(config, arch="cpu")
    assert pe.pool.pool_stats() == stats


def test_an_eroder_can_run_twice(config):
    with Eroder(config) as eroder:
        first = eroder.run()
        second = eroder.run()
        assert eroder.iteration == config.iterations
    fresh = pe.run(config, arch="cpu")
    for key in RESULT_KEYS:
        np.testing.assert_array_equal(first[key], second[key])
        np.testing.assert_array_equal(first[key], fresh[key])


def _blocks_in_use():
    return sum(b.in_use for pool in prm._blocks.values() for b in pool)


def test_failed_allocation_releases_what_it_acquired(monkeypatch):
    def broken(cfg):
        raise RuntimeError("out of device memory")

    grids = pe.pool.pool_stats()["in_use"]
    blocks = _blocks_in_use()
    monkeypatch.setattr(prm, "thermal_params", broken)
    with pytest.raises(pe.DeviceError, match="allocation"):
        Eroder(pe.ErosionConfig(size_x=16, size_y=16))
    assert pe.pool.pool_stats()["in_use"] == grids
    assert _blocks_in_use() == blocks


def test_invalid_configuration_dispatches_nothing(config):
    stats = pe.pool.pool_stats()
    with pytest.raises(pe.ConfigurationError):
        pe.run(config, arch="cpu", size_x=0)
    with pytest.raises(pe.ConfigurationError):
        pe.run({"size_x": 64, "not_a_field": 1}, arch="cpu")
    with pytest.raises(pe.ConfigurationError):
        Eroder(pe.ErosionConfig(evap_rate=2.0))
    assert pe.pool.pool_stats() == stats


def test_stage_by_stage_parity():
    cfg = pe.ErosionConfig(size_x=20, size_y=16, octaves=3, iterations=3, margolus_passes=2)
    with Eroder(cfg) as eroder:
        eroder.generate_terrain()
        dmax = eroder.build_distance_field()
        assert dmax >= 0.0 and eroder.max_distance == dmax
        assert eroder.store.seeds.n_swaps == pe.ridges.pass_count(20, 16)

        eroder.blend()
        height = eroder.readback().reshaped("height")
        assert height.shape == (16, 20)
        assert height.min() >= 0.0 and height.max() <= 1.0

        eroder.erode(2)
        assert eroder.iteration == 2
        assert eroder.store.terrain.n_swaps == 4
        assert eroder.store.water.n_swaps == 4
        eroder.erode()
        assert eroder.iteration == 5

        eroder.equilibrate()
        assert eroder.store.water.n_swaps == 10 + 4 * 2
    assert eroder.store is None


def test_without_ridge_mode_the_noise_is_the_terrain():
    cfg = pe.ErosionConfig(size_x=24, size_y=24, octaves=3, iterations=2, ridge_mode=False)
    with Eroder(cfg) as eroder:
        assert eroder.store.seeds is None
        eroder.generate_terrain()
        np.testing.assert_array_equal(eroder.readback().reshaped("height"), eroder.store.noise.to_numpy())
        with pytest.raises(pe.ConfigurationError):
            eroder.build_distance_field()
        with pytest.raises(pe.ConfigurationError):
            eroder.blend()

    result = pe.run(cfg, arch="cpu")
    assert np.all(np.isfinite(result["height"]))


def test_device_failures_are_wrapped(monkeypatch):
    def broken(*args):
        raise RuntimeError("device lost")

    monkeypatch.setattr(pe.simulation.eroder, "hydraulic_step", broken)
    with Eroder(pe.ErosionConfig(size_x=8, size_y=8, ridge_mode=False)) as eroder:
        with pytest.raises(pe.DeviceError, match="erosion loop"):
            eroder.erode(1)


def test_readback_failures_are_wrapped(monkeypatch):
    with Eroder(pe.ErosionConfig(size_x=8, size_y=8, ridge_mode=False)) as eroder:
        def broken():
            raise RuntimeError("cannot map")

        monkeypatch.setattr(eroder.store.water, "to_numpy", broken)
        with pytest.raises(pe.ReadbackError):
            eroder.readback()


#########################################
###### RESULT ###########################
#########################################

def _arrays(n, **replace):
    arrays = {k: np.full(n, i, dtype=np.float32) for i, k in enumerate(RESULT_KEYS)}
    arrays.update(replace)
    return arrays


def test_result_mapping():
    result = ErosionResult(3, 2, _arrays(6))
    assert len(result) == 5 and list(result) == list(RESULT_KEYS)
    assert result.reshaped("still_water").shape == (2, 3)
    assert result.total_water() == pytest.approx(6 * 1.0 + 6 * 3.0)
    assert "nx=3" in repr(result)


def test_result_rejects_bad_arrays():
    arrays = _arrays(6)
    del arrays["still_sediment"]
    with pytest.raises(ValueError, match="still_sediment"):
        ErosionResult(3, 2, arrays)
    with pytest.raises(ValueError, match="height"):
        ErosionResult(3, 2, _arrays(6, height=np.zeros(5)))
