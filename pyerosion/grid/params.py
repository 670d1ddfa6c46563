"""
Parameter blocks read by the erosion kernels.

Each stage of the pipeline reads its tunables from a small 0-D struct field
instead of module globals: the orchestrator writes the block between launches
(iteration counter, jump-flood step, checkerboard offset, ...) and the kernels
only read it, so a single compiled kernel serves every configuration of the
same grid resolution.

Blocks are allocated through their own FieldsBuilder and recycled between
runs, the same way the field pool recycles grids.

Author: B.G.
"""

import taichi as ti


NoiseParams = ti.types.struct(
	octaves=ti.i32,
	zoom=ti.f32,
	persistence=ti.f32,
	warp_factor=ti.f32,
	seed=ti.f32,
	seed_threshold=ti.f32,
)

JumpFloodParams = ti.types.struct(
	step=ti.i32,
)

BlendParams = ti.types.struct(
	blend=ti.f32,
)

ErosionParams = ti.types.struct(
	iteration=ti.i32,
	spawn_cycles=ti.i32,
	spawn_density=ti.f32,
	deposition_rate=ti.f32,
	evap_rate=ti.f32,
	water_height_factor=ti.f32,
	flow_depth_weight=ti.f32,
	shear_shallow=ti.f32,
	shear_deep=ti.f32,
	random_seed=ti.u32,
	max_flowing_water=ti.f32,
)

StillWaterParams = ti.types.struct(
	water_height_factor=ti.f32,
	relaxation=ti.f32,
)

ThermalParams = ti.types.struct(
	water_height_factor=ti.f32,
	talus_wet=ti.f32,
	talus_immersed=ti.f32,
	talus_low_height=ti.f32,
	talus_high_height=ti.f32,
	talus_dry_low=ti.f32,
	talus_dry_high=ti.f32,
	flow_wet_min=ti.f32,
	flow_wet_max=ti.f32,
	immerse_min=ti.f32,
	immerse_max=ti.f32,
	strength=ti.f32,
	max_delta=ti.f32,
)

MargolusParams = ti.types.struct(
	offset_x=ti.i32,
	offset_y=ti.i32,
	iterations=ti.i32,
	water_height_factor=ti.f32,
)


class ParamBlock:
	"""
	A single struct value living on the device.

	Kernels take `block.field` as a `ti.template()` argument and read it with
	`p = block.field[None]`. Host side, members are written one by one with
	`set` / `update` and read back with `get`.

	Blocks are recycled through `acquire_block` / `release` like pooled grids:
	a kernel compiled against a block field is reused by the next run instead
	of being compiled again for a fresh field.

	Author: B.G.
	"""

	def __init__(self, struct_type):
		self.struct_type = struct_type
		self.in_use = False
		self.fb = ti.FieldsBuilder()
		self.field = struct_type.field()
		self.fb.place(self.field)
		self.snodetree = self.fb.finalize()

	@property
	def members(self):
		return tuple(self.struct_type.members.keys())

	def set(self, name, value):
		if name not in self.struct_type.members:
			raise KeyError(f"{name} is not a member of this parameter block")
		getattr(self.field, name)[None] = value

	def get(self, name):
		if name not in self.struct_type.members:
			raise KeyError(f"{name} is not a member of this parameter block")
		return getattr(self.field, name)[None]

	def update(self, **values):
		for name, value in values.items():
			self.set(name, value)

	def release(self):
		self.in_use = False


_blocks = {}  # id(struct type) -> [ParamBlock]


def acquire_block(struct_type, **values):
	"""Get an unused block of the given struct type (allocated on demand) and write values into it."""
	pool = _blocks.setdefault(id(struct_type), [])
	block = next((b for b in pool if not b.in_use), None)
	if block is None:
		block = ParamBlock(struct_type)
		pool.append(block)
	block.in_use = True
	block.update(**values)
	return block


def forget_blocks():
	"""Drop every cached block without touching device memory (after ti.reset)."""
	_blocks.clear()


def noise_params(cfg):
	return acquire_block(NoiseParams,
		octaves=cfg.octaves,
		zoom=cfg.zoom,
		persistence=cfg.persistence,
		warp_factor=cfg.warp_factor,
		seed=float(cfg.seed),
		seed_threshold=cfg.seed_threshold,
	)


def jump_flood_params(cfg):
	return acquire_block(JumpFloodParams, step=1)


def blend_params(cfg):
	return acquire_block(BlendParams, blend=cfg.blend_factor)


def erosion_params(cfg):
	return acquire_block(ErosionParams,
		iteration=0,
		spawn_cycles=cfg.spawn_cycles,
		spawn_density=cfg.spawn_density,
		deposition_rate=cfg.deposition_rate,
		evap_rate=cfg.evap_rate,
		water_height_factor=cfg.water_height_factor,
		flow_depth_weight=cfg.flow_depth_weight,
		shear_shallow=cfg.shear_shallow,
		shear_deep=cfg.shear_deep,
		random_seed=cfg.random_seed,
		max_flowing_water=cfg.max_flowing_water,
	)


def still_water_params(cfg):
	return acquire_block(StillWaterParams,
		water_height_factor=cfg.water_height_factor,
		relaxation=cfg.still_water_relaxation,
	)


def thermal_params(cfg):
	return acquire_block(ThermalParams,
		water_height_factor=cfg.water_height_factor,
		talus_wet=cfg.talus_wet,
		talus_immersed=cfg.talus_immersed,
		talus_low_height=cfg.talus_low_height,
		talus_high_height=cfg.talus_high_height,
		talus_dry_low=cfg.talus_dry_low,
		talus_dry_high=cfg.talus_dry_high,
		flow_wet_min=cfg.flow_wet_min,
		flow_wet_max=cfg.flow_wet_max,
		immerse_min=cfg.immerse_min,
		immerse_max=cfg.immerse_max,
		strength=cfg.thermal_strength,
		max_delta=cfg.thermal_max_delta_per_pass,
	)


def margolus_params(cfg):
	return acquire_block(MargolusParams,
		offset_x=0,
		offset_y=0,
		iterations=cfg.margolus_iterations,
		water_height_factor=cfg.water_height_factor,
	)
