"""
Erosion pipeline orchestration.

This module provides the Eroder class, which owns every grid and parameter
block of a run and sequences the kernel launches:

	noise -> (ridge mode: jump flood -> blend) -> erosion loop -> Margolus -> readback

with one erosion loop iteration being hydraulic -> still water -> thermal.

Every pass reads the current instance of its grids and writes the alternate
one, and the Eroder flips the parity right after the launch. The only data
copies are the ones the Margolus solver needs before each sub-pass. The
Eroder is also the only writer of the parameter blocks, and only between
launches (iteration counter, jump-flood step, checkerboard offset).

Failures are reported through pyerosion.errors: ConfigurationError before
anything is allocated, DeviceError when a launch fails, ReadbackError when the
final grids cannot be copied to host memory.

Author: B.G.
"""

import time
from collections.abc import Mapping
from contextlib import contextmanager

import structlog

from .. import environment
from ..config import ErosionConfig
from ..errors import ErosionError, ConfigurationError, DeviceError, ReadbackError
from ..grid import GridStore
from ..noise import generate_noise
from ..ridges import build_distance_field, blend_terrain, noise_to_terrain
from ..erodep import hydraulic_step, still_water_step, thermal_step
from ..flood import equilibrate
from .result import ErosionResult

logger = structlog.get_logger()


@contextmanager
def _on_device(stage):
	"""Turn backend failures raised by a launch into DeviceError."""
	try:
		yield
	except ErosionError:
		raise
	except RuntimeError as e:
		logger.error("Device failure", stage=stage, error=str(e))
		raise DeviceError(f"{stage} failed on the compute device: {e}") from e


class Eroder:
	"""
	High-level interface for one erosion run.

	Args:
		config (ErosionConfig): run configuration, validated on construction

	Attributes:
		config (ErosionConfig): the validated configuration
		store (GridStore): grids and parameter blocks of the run
		iteration (int): erosion loop iterations done so far
		max_distance (float or None): max jump-flood distance, once built

	Usage:
		with Eroder(ErosionConfig(size_x=256, size_y=256)) as eroder:
			result = eroder.run()

	Author: B.G.
	"""

	def __init__(self, config: ErosionConfig = None):
		self.config = (config if config is not None else ErosionConfig()).validate()
		self.store = None
		with _on_device("allocation"):
			self.store = GridStore(self.config)
		self.iteration = 0
		self.max_distance = None

	@property
	def nx(self):
		return self.store.nx

	@property
	def ny(self):
		return self.store.ny

	@property
	def rshp(self):
		return self.store.rshp

	def reset(self):
		"""
		Clear terrain and water and restart the iteration counter.

		Noise and seeds are fully rewritten by the noise pass, so after a reset
		the next run starts from the same state as a fresh Eroder.
		"""
		self.store.terrain.fill(0.0)
		self.store.water.fill(0.0)
		self.store.max_distance.field[None] = 0
		self.iteration = 0
		self.max_distance = None

	def generate_terrain(self):
		"""
		Noise pass. In ridge mode also classifies the seeds, otherwise the noise
		becomes the initial terrain directly.

		Author: B.G.
		"""
		seeds = self.store.seeds.current if self.store.seeds is not None else None
		with _on_device("noise"):
			generate_noise(self.store.noise.field, seeds, self.store.noise_params.field)
			if seeds is None:
				noise_to_terrain(self.store.noise.field, self.store.terrain.current)

	def build_distance_field(self) -> float:
		"""
		Jump-flood passes and max reduction (ridge mode only).

		Returns:
			float: the global max distance

		Author: B.G.
		"""
		if self.store.seeds is None:
			raise ConfigurationError("The distance field is only built in ridge mode")
		with _on_device("jump flood"):
			self.max_distance = build_distance_field(self.store.seeds, self.store.jump_flood_params,
				self.store.max_distance.field)
		return self.max_distance

	def blend(self):
		"""Blend the distance field with the inverted noise into the terrain (ridge mode only)."""
		if self.store.seeds is None:
			raise ConfigurationError("Blending is only available in ridge mode")
		with _on_device("blend"):
			blend_terrain(self.store.noise.field, self.store.seeds.current, self.store.terrain.current,
				self.store.max_distance.field, self.store.blend_params.field)

	def erode(self, iterations: int = None):
		"""
		Run the erosion loop: hydraulic -> still water -> thermal, `iterations` times.

		Args:
			iterations (int, optional): defaults to config.iterations. Successive
				calls continue the iteration counter (droplet spawning window).

		Author: B.G.
		"""
		n = self.config.iterations if iterations is None else iterations
		terrain = self.store.terrain
		water = self.store.water

		with _on_device("erosion loop"):
			for _ in range(n):
				self.store.erosion_params.set("iteration", self.iteration)

				hydraulic_step(terrain.current, water.current, terrain.alternate, water.alternate,
					self.store.erosion_params.field)
				terrain.swap()
				water.swap()

				still_water_step(terrain.current, water.current, water.alternate, self.store.still_water_params.field)
				water.swap()

				thermal_step(terrain.current, terrain.alternate, water.current, self.store.thermal_params.field)
				terrain.swap()

				self.iteration += 1

		logger.debug("Erosion loop done", iterations=n, total_iterations=self.iteration)

	def equilibrate(self, passes: int = None):
		"""Level the still water with the Margolus solver (config.margolus_passes by default)."""
		n = self.config.margolus_passes if passes is None else passes
		with _on_device("equilibration"):
			equilibrate(self.store.terrain, self.store.water, self.store.margolus_params, n)

	def readback(self) -> ErosionResult:
		"""
		Copy the current terrain and water grids into host memory.

		Returns:
			ErosionResult: flat float32 arrays (row-major)

		Raises:
			ReadbackError: if the device grids cannot be mapped

		Author: B.G.
		"""
		try:
			terrain = self.store.terrain.to_numpy()
			water = self.store.water.to_numpy()
		except (RuntimeError, ValueError) as e:
			logger.error("Readback failure", error=str(e))
			raise ReadbackError(f"Could not read the final grids back: {e}") from e

		return ErosionResult(self.nx, self.ny, {
			"height": terrain[:, :, 0],
			"flowing_water": water[:, :, 0],
			"flowing_sediment": water[:, :, 1],
			"still_water": water[:, :, 2],
			"still_sediment": water[:, :, 3],
		})

	def run(self) -> ErosionResult:
		"""
		Full pipeline from noise to readback.

		Author: B.G.
		"""
		cfg = self.config
		t0 = time.perf_counter()
		logger.info("Erosion run started", nx=self.nx, ny=self.ny, ridge_mode=cfg.ridge_mode,
			iterations=cfg.iterations, margolus_passes=cfg.margolus_passes)

		with _on_device("reset"):
			self.reset()
		self.generate_terrain()
		if cfg.ridge_mode:
			dmax = self.build_distance_field()
			self.blend()
			logger.info("Ridge structuring done", max_distance=dmax, blend=cfg.blend_factor)

		self.erode()
		self.equilibrate()
		result = self.readback()

		logger.info("Erosion run finished", seconds=round(time.perf_counter() - t0, 3),
			total_water=result.total_water())
		return result

	def destroy(self):
		"""
		Release every grid and parameter block for the next run.

		The Eroder should not be used afterwards.

		Author: B.G.
		"""
		if self.store is not None:
			self.store.release()
			self.store = None

	def __enter__(self):
		return self

	def __exit__(self, exc_type, exc_val, exc_tb):
		self.destroy()
		return False


def run(config=None, arch="gpu", **overrides) -> ErosionResult:
	"""
	Run the whole pipeline once.

	Args:
		config: ErosionConfig, a plain mapping of configuration values, or None for the defaults
		arch: compute backend, used if the runtime is not initialised yet
		**overrides: configuration values replacing the ones of config

	Returns:
		ErosionResult: mapping with keys height, flowing_water, flowing_sediment,
		still_water, still_sediment

	Raises:
		ConfigurationError: invalid configuration (nothing is dispatched)
		DeviceError: backend initialisation or launch failure
		ReadbackError: final grids could not be read back

	Author: B.G.
	"""
	if config is None:
		config = ErosionConfig()
	elif isinstance(config, Mapping):
		config = ErosionConfig.from_mapping(config)
	if overrides:
		config = ErosionConfig.from_mapping({**config.to_dict(), **overrides})
	config.validate()

	environment.ensure_initialised(arch)
	with Eroder(config) as eroder:
		return eroder.run()
