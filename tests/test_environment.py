import pytest

import pyerosion as pe


def test_initialise_only_once():
    assert pe.environment.INITIALISED
    with pytest.raises(RuntimeError):
        pe.environment.initialise("cpu")
    pe.environment.ensure_initialised("gpu")


def test_package_surface():
    assert pe.__version__ == "0.1.0"
    for name in pe.__all__:
        assert hasattr(pe, name)
