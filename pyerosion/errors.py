"""
Exception hierarchy for pyerosion.

Three failure families can end a run:
- ConfigurationError: the configuration record is rejected before anything is
  allocated or dispatched.
- DeviceError: the compute backend cannot be initialised or fails while a
  kernel is running. Fatal for the run, never retried.
- ReadbackError: the final grids cannot be copied back to host memory. The
  partially completed run is discarded.

Author: B.G.
"""


class ErosionError(Exception):
	"""Base class of every error raised by pyerosion."""


class ConfigurationError(ErosionError, ValueError):
	"""Invalid configuration value (non-positive size, non-finite parameter, unknown key, ...)."""


class DeviceError(ErosionError, RuntimeError):
	"""Compute backend unavailable or lost during a dispatch."""


class ReadbackError(ErosionError, RuntimeError):
	"""Mapping the final grids into host memory failed."""
