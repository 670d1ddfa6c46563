"""
Blend of the normalised distance field with the inverted noise height.

height = mix(1 - noise, clamp(distance / max_distance, 0, 1), blend)

Cells without a seed, or a field whose max distance is not positive, use a
normalised distance of 0. Only channel 0 of the terrain is written.

Author: B.G.
"""

import taichi as ti
from .. import constants as cte
from ..general_algorithms.math_utils import lerp


def blend_factor(heightmap_weight: float, distance_weight: float) -> float:
	"""
	Share of the distance field in the blended terrain, clamped to [0, 1].

	Falls back to an even blend when both weights are zero.
	"""
	total = heightmap_weight + distance_weight
	if total <= 0:
		return 0.5
	return min(1.0, max(0.0, distance_weight / total))


@ti.kernel
def blend_terrain(noise: ti.template(), seeds: ti.template(), terrain: ti.template(),
		acc: ti.template(), params: ti.template()):
	"""
	Write the blended initial height into channel 0 of terrain.

	Args:
		noise: 2D scalar noise heights in [0, 1]
		seeds: final seed/distance grid
		terrain: current terrain instance
		acc: 0-D fixed-point max distance
		params: 0-D BlendParams

	Author: B.G.
	"""
	dmax = ti.cast(acc[None], ti.f32) / cte.DISTANCE_QUANTISATION
	blend = params[None].blend
	for r, c in terrain:
		s = seeds[r, c]
		dnorm = 0.0
		if dmax > 0.0 and s[0] >= 0.0:
			dnorm = ti.math.clamp(s[3] / dmax, 0.0, 1.0)
		terrain[r, c][0] = lerp(1.0 - noise[r, c], dnorm, blend)


@ti.kernel
def noise_to_terrain(noise: ti.template(), terrain: ti.template()):
	"""Use the noise height directly as the initial terrain (no ridge mode)."""
	for r, c in terrain:
		terrain[r, c][0] = noise[r, c]
