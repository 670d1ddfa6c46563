import math

import pytest

import pyerosion as pe
from pyerosion.config import ErosionConfig


def test_defaults():
    cfg = ErosionConfig()
    assert (cfg.size_x, cfg.size_y) == (512, 512)
    assert cfg.octaves == 8
    assert cfg.iterations == 1024
    assert cfg.margolus_passes == 64
    assert cfg.margolus_iterations == 8
    assert cfg.talus_wet == pytest.approx(0.013245)
    assert cfg.validate() is cfg


def test_blend_factor():
    assert ErosionConfig(heightmap_weight=1.0, distance_weight=3.0).blend_factor == pytest.approx(0.75)
    assert ErosionConfig(heightmap_weight=0.0, distance_weight=0.0).blend_factor == 0.5

    cfg = ErosionConfig().with_blend_factor(0.3)
    assert cfg.distance_weight == pytest.approx(0.3)
    assert cfg.heightmap_weight == pytest.approx(0.7)
    assert cfg.blend_factor == pytest.approx(0.3)


@pytest.mark.parametrize("field,value", [
    ("size_x", 0),
    ("size_y", -4),
    ("octaves", 0),
    ("zoom", 0.0),
    ("water_height_factor", 0.0),
    ("iterations", -1),
    ("spawn_density", 1.5),
    ("evap_rate", -0.1),
    ("thermal_strength", -1.0),
    ("random_seed", 2**32),
])
def test_out_of_range_values_are_rejected(field, value):
    cfg = ErosionConfig(**{field: value})
    with pytest.raises(pe.ConfigurationError, match=field):
        cfg.validate()


@pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
def test_non_finite_values_are_rejected(value):
    with pytest.raises(pe.ConfigurationError, match="persistence"):
        ErosionConfig(persistence=value).validate()


def test_type_checks():
    with pytest.raises(pe.ConfigurationError, match="size_x"):
        ErosionConfig(size_x=12.5).validate()
    with pytest.raises(pe.ConfigurationError, match="ridge_mode"):
        ErosionConfig(ridge_mode=1).validate()
    with pytest.raises(pe.ConfigurationError, match="zoom"):
        ErosionConfig(zoom="3").validate()


def test_ordered_brackets():
    with pytest.raises(pe.ConfigurationError, match="shear_shallow"):
        ErosionConfig(shear_shallow=1e-5, shear_deep=1e-6).validate()
    with pytest.raises(pe.ConfigurationError, match="talus_low_height"):
        ErosionConfig(talus_low_height=0.8, talus_high_height=0.8).validate()


def test_blend_weights_in_ridge_mode():
    with pytest.raises(pe.ConfigurationError):
        ErosionConfig(heightmap_weight=0.0, distance_weight=0.0).validate()
    ErosionConfig(ridge_mode=False, heightmap_weight=0.0, distance_weight=0.0).validate()


def test_from_mapping():
    cfg = ErosionConfig.from_mapping({"size_x": 64, "iterations": 3})
    assert cfg.size_x == 64 and cfg.iterations == 3 and cfg.size_y == 512

    with pytest.raises(pe.ConfigurationError, match="sizeX"):
        ErosionConfig.from_mapping({"sizeX": 64})


def test_configuration_error_is_a_value_error():
    assert issubclass(pe.ConfigurationError, ValueError)
    assert issubclass(pe.DeviceError, pe.ErosionError)
    assert issubclass(pe.ReadbackError, RuntimeError)
