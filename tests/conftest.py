import os

os.environ.setdefault("MPLBACKEND", "Agg")

import numpy as np
import pytest

import pyerosion as pe


@pytest.fixture(scope="session", autouse=True)
def taichi_cpu():
    """Every test runs on the Taichi CPU backend, initialised once."""
    pe.environment.ensure_initialised("cpu")
    yield


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def buffers():
    """Factory of zero-filled DoubleBuffers, released after the test."""
    made = []

    def make(nx, ny, values=None):
        buf = pe.grid.DoubleBuffer(nx, ny)
        buf.fill(0.0)
        if values is not None:
            buf.from_numpy(values)
        made.append(buf)
        return buf

    yield make
    for buf in made:
        buf.release()


@pytest.fixture
def blocks():
    """Collects ParamBlocks acquired by a test and releases them afterwards."""
    held = []

    def keep(block):
        held.append(block)
        return block

    yield keep
    for block in held:
        block.release()
