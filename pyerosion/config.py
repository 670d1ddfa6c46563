"""
Run configuration for the erosion pipeline.

A single `ErosionConfig` record carries every tunable value of a run. It is
produced by whatever control surface drives the simulation, validated once by
the orchestrator and then split into the small parameter blocks read by the
kernels (see `pyerosion.grid.params`).

Usage:
    from pyerosion.config import ErosionConfig

    cfg = ErosionConfig(size_x=256, size_y=256, iterations=200)
    cfg = cfg.with_blend_factor(0.3)   # 30% distance field, 70% noise
    cfg.validate()

Author: B.G.
"""

import math
from dataclasses import dataclass, fields, replace, asdict

from .errors import ConfigurationError
from .ridges.blend import blend_factor as _blend_factor


@dataclass
class ErosionConfig:
	"""Configuration of one erosion run. All fields have defaults."""

	# Map size
	size_x: int = 512
	size_y: int = 512

	# Noise (fBm + domain warp)
	octaves: int = 8
	zoom: float = 3.0
	persistence: float = 0.6
	warp_factor: float = 0.03
	seed: int = 42

	# Ridge structuring (seed threshold + jump flood + blend)
	ridge_mode: bool = True
	seed_threshold: float = 0.65
	heightmap_weight: float = 0.5
	distance_weight: float = 0.5

	# Erosion loop, one iteration = hydraulic -> still water -> thermal
	iterations: int = 1024

	# Hydraulic erosion
	spawn_cycles: int = 64
	spawn_density: float = 0.05
	deposition_rate: float = 0.1
	evap_rate: float = 0.001
	water_height_factor: float = 0.001
	flow_depth_weight: float = 0.25
	shear_shallow: float = 5e-7
	shear_deep: float = 5e-6
	random_seed: int = 42
	max_flowing_water: float = 64.0

	# Still water redistribution
	still_water_relaxation: float = 0.3

	# Thermal erosion
	talus_wet: float = 0.013245
	talus_immersed: float = 0.0074092
	talus_low_height: float = 0.40
	talus_high_height: float = 0.80
	talus_dry_low: float = 0.01
	talus_dry_high: float = 0.005
	flow_wet_min: float = 0.002
	flow_wet_max: float = 0.02
	immerse_min: float = 1.5
	immerse_max: float = 12.0
	thermal_strength: float = 0.15
	thermal_max_delta_per_pass: float = 0.0025

	# Final water levelling (Margolus)
	margolus_passes: int = 64
	margolus_iterations: int = 8

	@classmethod
	def from_mapping(cls, mapping):
		"""
		Build a configuration from a plain mapping, rejecting unknown keys.

		Missing keys keep their defaults.

		Raises:
			ConfigurationError: if a key is not a configuration field
		"""
		known = {f.name for f in fields(cls)}
		unknown = sorted(set(mapping) - known)
		if unknown:
			raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")
		return cls(**dict(mapping))

	def to_dict(self):
		return asdict(self)

	@property
	def blend_factor(self):
		"""Share of the distance field in the blended terrain, in [0, 1]."""
		return _blend_factor(self.heightmap_weight, self.distance_weight)

	def with_blend_factor(self, blend_factor):
		"""Return a copy whose blend weights sum to one (0 = all noise, 1 = all distance)."""
		return replace(self, distance_weight=float(blend_factor), heightmap_weight=1.0 - float(blend_factor))

	def validate(self):
		"""
		Check every field before anything is dispatched.

		Raises:
			ConfigurationError: with a message naming the offending field
		"""
		for f in fields(self):
			value = getattr(self, f.name)
			if f.type is bool:
				if not isinstance(value, bool):
					raise ConfigurationError(f"{f.name} must be a boolean, got {value!r}")
			elif f.type is int:
				if isinstance(value, bool) or not isinstance(value, int):
					raise ConfigurationError(f"{f.name} must be an integer, got {value!r}")
			else:
				if isinstance(value, bool) or not isinstance(value, (int, float)):
					raise ConfigurationError(f"{f.name} must be a number, got {value!r}")
				if not math.isfinite(value):
					raise ConfigurationError(f"{f.name} must be finite, got {value!r}")

		_positive(self, "size_x", "size_y", "octaves", "margolus_iterations",
			"zoom", "persistence", "water_height_factor", "max_flowing_water")
		_non_negative(self, "iterations", "spawn_cycles", "margolus_passes",
			"warp_factor", "flow_depth_weight", "shear_shallow", "still_water_relaxation",
			"talus_wet", "talus_immersed", "talus_dry_low", "talus_dry_high",
			"flow_wet_min", "immerse_min", "thermal_strength", "thermal_max_delta_per_pass",
			"heightmap_weight", "distance_weight")
		_unit_interval(self, "spawn_density", "deposition_rate", "evap_rate")
		_ordered(self, "shear_shallow", "shear_deep")
		_ordered(self, "talus_low_height", "talus_high_height")
		_ordered(self, "flow_wet_min", "flow_wet_max")
		_ordered(self, "immerse_min", "immerse_max")

		if not 0 <= self.random_seed < 2**32:
			raise ConfigurationError(f"random_seed must fit in 32 unsigned bits, got {self.random_seed}")

		if self.ridge_mode and self.heightmap_weight + self.distance_weight <= 0:
			raise ConfigurationError("heightmap_weight + distance_weight must be positive in ridge mode")

		return self


def _positive(cfg, *names):
	for name in names:
		if getattr(cfg, name) <= 0:
			raise ConfigurationError(f"{name} must be positive, got {getattr(cfg, name)!r}")


def _non_negative(cfg, *names):
	for name in names:
		if getattr(cfg, name) < 0:
			raise ConfigurationError(f"{name} must be non-negative, got {getattr(cfg, name)!r}")


def _unit_interval(cfg, *names):
	for name in names:
		value = getattr(cfg, name)
		if not 0.0 <= value <= 1.0:
			raise ConfigurationError(f"{name} must lie in [0, 1], got {value!r}")


def _ordered(cfg, low, high):
	if not getattr(cfg, low) < getattr(cfg, high):
		raise ConfigurationError(f"{low} must be strictly smaller than {high}")
