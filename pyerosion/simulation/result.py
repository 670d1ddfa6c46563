"""
Host-side result of an erosion run.

Author: B.G.
"""

from collections.abc import Mapping

import numpy as np


RESULT_KEYS = ("height", "flowing_water", "flowing_sediment", "still_water", "still_sediment")


class ErosionResult(Mapping):
	"""
	Read-only mapping of the five flat output arrays of a run.

	Every array is float32, row-major, of length nx * ny. Consumers get
	exactly these arrays and never the device layout.

	Attributes:
		nx (int): number of columns (width)
		ny (int): number of rows (height)
		rshp (tuple): (rows, cols) reshape tuple

	Author: B.G.
	"""

	def __init__(self, nx: int, ny: int, arrays: dict):
		missing = [k for k in RESULT_KEYS if k not in arrays]
		if missing:
			raise ValueError(f"Missing result arrays: {', '.join(missing)}")
		self.nx = nx
		self.ny = ny
		self.rshp = (ny, nx)
		self._arrays = {k: np.ascontiguousarray(arrays[k], dtype=np.float32).ravel() for k in RESULT_KEYS}
		for k, arr in self._arrays.items():
			if arr.size != nx * ny:
				raise ValueError(f"{k} holds {arr.size} values, expected {nx * ny}")

	def __getitem__(self, key):
		return self._arrays[key]

	def __iter__(self):
		return iter(RESULT_KEYS)

	def __len__(self):
		return len(RESULT_KEYS)

	def reshaped(self, key) -> np.ndarray:
		"""2D (rows, cols) view of one output array."""
		return self._arrays[key].reshape(self.rshp)

	def total_water(self) -> float:
		"""Flowing + still water volume over the whole grid."""
		return float(self._arrays["flowing_water"].sum(dtype=np.float64) + self._arrays["still_water"].sum(dtype=np.float64))

	def __repr__(self):
		return f"ErosionResult(nx={self.nx}, ny={self.ny})"
