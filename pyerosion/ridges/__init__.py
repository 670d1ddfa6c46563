"""
Ridge structuring of the initial terrain.

In ridge mode the noise pass marks every cell above a height threshold as a
seed. The jump-flood builder then propagates the nearest seed to every cell in
O(log(max(W, H))) passes and reduces the global max distance, and the blend
stage mixes the normalised distance with the inverted noise to produce the
terrain fed to the erosion loop.

Core Functions:
- jump_flood: pass_count, step_size, jump_flood_pass, jump_flood_final_pass,
  reduce_max_distance, build_distance_field, max_distance
- blend: blend_factor, blend_terrain, noise_to_terrain

Author: B.G.
"""

from .jump_flood import (
	pass_count,
	step_size,
	jump_flood_pass,
	jump_flood_final_pass,
	reduce_max_distance,
	build_distance_field,
	max_distance,
)
from .blend import blend_factor, blend_terrain, noise_to_terrain

__all__ = [
	"pass_count",
	"step_size",
	"jump_flood_pass",
	"jump_flood_final_pass",
	"reduce_max_distance",
	"build_distance_field",
	"max_distance",
	"blend_factor",
	"blend_terrain",
	"noise_to_terrain",
]
