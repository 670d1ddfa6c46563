import taichi as ti
import numpy as np
import structlog
from .. import constants as cte
from . import params as prm
from ..general_algorithms.util_taichi import copy_grid
import pyerosion as pe

logger = structlog.get_logger()


class DoubleBuffer:
	"""
	Two physical instances of a 4-channel grid with one of them current.

	Passes read `current` and write `alternate`, then call `swap()`: parity is a
	pure index flip, no data moves. The only explicit copy (`sync_alternate`)
	is for passes that rewrite a strict subset of the cells.

	Attributes:
		nx (int): Number of columns
		ny (int): Number of rows
		channels (int): Float channels per cell
		index (int): Index (0 or 1) of the current instance
		n_swaps (int): Number of swaps since acquisition

	Author: B.G.
	"""

	def __init__(self, nx: int, ny: int, channels: int = cte.CHANNELS, name: str = "grid"):
		self.nx = nx
		self.ny = ny
		self.channels = channels
		self.name = name
		self.index = 0
		self.n_swaps = 0
		self._instances = []
		try:
			for _ in range(2):
				self._instances.append(pe.pool.acquire_field(dtype=ti.f32, shape=(ny, nx), channels=channels))
		except Exception:
			self.release()
			raise

	@property
	def current(self):
		"""Taichi field holding the up-to-date grid."""
		return self._instances[self.index].field

	@property
	def alternate(self):
		"""Taichi field the next pass writes into."""
		return self._instances[1 - self.index].field

	@property
	def shape(self):
		return (self.ny, self.nx)

	def swap(self):
		self.index = 1 - self.index
		self.n_swaps += 1

	def sync_alternate(self):
		"""Copy the whole current instance into the alternate one."""
		copy_grid(self.alternate, self.current)

	def fill(self, value):
		self.current.fill(value)
		self.alternate.fill(value)

	def from_numpy(self, arr: np.ndarray):
		"""
		Upload a (ny, nx, channels) array (or (ny, nx) for channel 0 only) into the current instance.
		"""
		arr = np.asarray(arr, dtype=np.float32)
		if arr.ndim == 2:
			full = np.zeros((self.ny, self.nx, self.channels), dtype=np.float32)
			full[:, :, 0] = arr
			arr = full
		if arr.shape != (self.ny, self.nx, self.channels):
			raise ValueError(f"Expected shape {(self.ny, self.nx, self.channels)}, got {arr.shape}")
		self.current.from_numpy(arr)

	def to_numpy(self) -> np.ndarray:
		"""Current instance as a (ny, nx, channels) float32 array."""
		return self.current.to_numpy()

	def get_channel(self, channel: int) -> np.ndarray:
		return self.to_numpy()[:, :, channel]

	def release(self):
		"""Give both instances back to the pool."""
		for tpf in self._instances:
			tpf.release()
		self._instances = []


class GridStore:
	"""
	Every grid and parameter block used by one erosion run.

	Grids are acquired from the field pool at the configured resolution, so a
	second run of the same size reuses the device memory (and the compiled
	kernels) of the first. Parameter blocks are filled from the configuration
	once and then only patched by the orchestrator between launches.

	Attributes:
		nx (int): Number of columns (size_x)
		ny (int): Number of rows (size_y)
		terrain (DoubleBuffer): ch0 height, ch1-3 reserved
		water (DoubleBuffer): flowing water, flowing sediment, still water, still sediment
		noise (GridField): ch0 normalised noise height
		seeds (DoubleBuffer or None): nearest seed (x, y), seed height, distance (ridge mode)
		max_distance (GridField): 0-D i32 fixed-point max distance accumulator
		noise_params, jump_flood_params, blend_params, erosion_params,
		still_water_params, thermal_params, margolus_params (ParamBlock)

	Author: B.G.
	"""

	_grids = ("terrain", "water", "noise", "seeds", "max_distance")
	_blocks = ("noise_params", "jump_flood_params", "blend_params", "erosion_params",
		"still_water_params", "thermal_params", "margolus_params")

	def __init__(self, cfg):
		self.nx = cfg.size_x
		self.ny = cfg.size_y
		self.rshp = (self.ny, self.nx)
		for name in self._grids + self._blocks:
			setattr(self, name, None)

		try:
			self._acquire(cfg)
		except Exception:
			# Hand back whatever was acquired before the failure
			self.release()
			raise

		logger.debug("Grid store acquired", nx=self.nx, ny=self.ny, ridge_mode=cfg.ridge_mode,
			pool=pe.pool.pool_stats())

	def _acquire(self, cfg):
		self.terrain = DoubleBuffer(self.nx, self.ny, name="terrain")
		self.water = DoubleBuffer(self.nx, self.ny, name="water")
		self.noise = pe.pool.acquire_field(dtype=ti.f32, shape=(self.ny, self.nx))
		if cfg.ridge_mode:
			self.seeds = DoubleBuffer(self.nx, self.ny, name="seeds")
		self.max_distance = pe.pool.acquire_field(dtype=ti.i32, shape=())

		# Pooled fields keep whatever the previous run left in them
		self.terrain.fill(0.0)
		self.water.fill(0.0)
		self.noise.field.fill(0.0)
		self.max_distance.field[None] = 0

		self.noise_params = prm.noise_params(cfg)
		self.jump_flood_params = prm.jump_flood_params(cfg)
		self.blend_params = prm.blend_params(cfg)
		self.erosion_params = prm.erosion_params(cfg)
		self.still_water_params = prm.still_water_params(cfg)
		self.thermal_params = prm.thermal_params(cfg)
		self.margolus_params = prm.margolus_params(cfg)

	@property
	def param_blocks(self):
		return tuple(getattr(self, name) for name in self._blocks)

	def release(self):
		"""Release grids and parameter blocks for the next run."""
		for name in self._grids + self._blocks:
			held = getattr(self, name)
			if held is not None:
				held.release()
				setattr(self, name, None)
		logger.debug("Grid store released", pool=pe.pool.pool_stats())
