"""
Fractal simplex noise with domain warp, and the initial height field.

2D simplex gradient noise follows the classic permutation-polynomial
formulation (no lookup tables, so it runs identically on every backend).
Octaves are stacked by fBm: each layer is rotated by a fixed matrix, doubled
in frequency and weighted by persistence^octave, and the sum is normalised by
the total amplitude.

The generation pass maps every cell (col, row) to the [-1, 1]^2 plane,
scales it by zoom, shifts it by a seed-derived offset and, when warp_factor
is non-zero, perturbs the sample position by two further independent fBm
evaluations. The resulting height is remapped to [0, 1].

In ridge mode the same pass classifies cells into jump-flood seeds:
- height > seed_threshold: (col, row, height, 0)
- otherwise: (-1, -1, 0, FAR_DISTANCE)

Author: B.G.
"""

import taichi as ti
import structlog
from .. import constants as cte

logger = structlog.get_logger()


#########################################
###### SIMPLEX NOISE ####################
#########################################

@ti.func
def _mod289(x):
	return x - ti.floor(x / 289.0) * 289.0


@ti.func
def _permute(x):
	return _mod289(((x * 34.0) + 1.0) * x)


@ti.func
def simplex2d(v: ti.math.vec2) -> ti.f32:
	"""
	2D simplex gradient noise.

	Args:
		v: sample position

	Returns:
		ti.f32: noise value, roughly in [-1, 1]

	Author: B.G.
	"""
	C = ti.math.vec4(0.211324865405187, 0.366025403784439, -0.577350269189626, 0.024390243902439)

	# Skewed cell and first corner
	i = ti.floor(v + (v.x + v.y) * C.y)
	x0 = v - i + (i.x + i.y) * C.x

	# Middle corner depends on the simplex (upper or lower triangle)
	i1 = ti.math.vec2(0.0, 1.0)
	if x0.x > x0.y:
		i1 = ti.math.vec2(1.0, 0.0)

	x1 = x0 + C.x - i1
	x2 = x0 + C.z

	i = _mod289(i)
	p = _permute(_permute(i.y + ti.math.vec3(0.0, i1.y, 1.0)) + i.x + ti.math.vec3(0.0, i1.x, 1.0))

	m = ti.max(0.5 - ti.math.vec3(x0.dot(x0), x1.dot(x1), x2.dot(x2)), 0.0)
	m = m * m
	m = m * m

	# Gradients from 41 points on a line, mapped onto a diamond
	x = 2.0 * ti.math.fract(p * C.w) - 1.0
	h = ti.abs(x) - 0.5
	ox = ti.floor(x + 0.5)
	a0 = x - ox

	# Normalise gradients implicitly by scaling m
	m *= 1.79284291400159 - 0.85373472095314 * (a0 * a0 + h * h)

	g = ti.math.vec3(
		a0.x * x0.x + h.x * x0.y,
		a0.y * x1.x + h.y * x1.y,
		a0.z * x2.x + h.z * x2.y,
	)
	return 130.0 * m.dot(g)


@ti.func
def fbm(v: ti.math.vec2, octaves: ti.i32, persistence: ti.f32) -> ti.f32:
	"""
	Fractal Brownian motion of simplex noise, normalised by the total amplitude.

	Args:
		v: sample position
		octaves: number of layers (>= 1)
		persistence: amplitude ratio between two successive layers

	Returns:
		ti.f32: value roughly in [-1, 1]

	Author: B.G.
	"""
	value = 0.0
	amplitude = 1.0
	total = 0.0
	p = v
	for o in range(octaves):
		value += amplitude * simplex2d(p)
		total += amplitude
		p = 2.0 * ti.math.vec2(
			ti.static(cte.OCTAVE_ROTATION[0][0]) * p.x + ti.static(cte.OCTAVE_ROTATION[0][1]) * p.y,
			ti.static(cte.OCTAVE_ROTATION[1][0]) * p.x + ti.static(cte.OCTAVE_ROTATION[1][1]) * p.y,
		)
		amplitude *= persistence
	return value / total


#########################################
###### HEIGHT GENERATION ################
#########################################

@ti.func
def noise_height(row: ti.i32, col: ti.i32, ny: ti.i32, nx: ti.i32, params: ti.template()) -> ti.f32:
	"""
	Normalised [0, 1] noise height of cell (row, col).

	Author: B.G.
	"""
	p = params[None]
	uv = ti.math.vec2(ti.cast(col, ti.f32) / nx * 2.0 - 1.0, ti.cast(row, ti.f32) / ny * 2.0 - 1.0)
	uv = uv * p.zoom + p.seed * ti.math.vec2(cte.SEED_OFFSET[0], cte.SEED_OFFSET[1])

	if p.warp_factor != 0.0:
		wx = fbm(uv + ti.math.vec2(cte.WARP_OFFSET_X[0], cte.WARP_OFFSET_X[1]), p.octaves, p.persistence)
		wy = fbm(uv + ti.math.vec2(cte.WARP_OFFSET_Y[0], cte.WARP_OFFSET_Y[1]), p.octaves, p.persistence)
		uv += p.warp_factor * ti.math.vec2(wx, wy)

	return ti.math.clamp(0.5 * fbm(uv, p.octaves, p.persistence) + 0.5, 0.0, 1.0)


@ti.kernel
def _generate(noise: ti.template(), params: ti.template()):
	ny, nx = noise.shape
	for r, c in noise:
		noise[r, c] = noise_height(r, c, ny, nx, params)


@ti.kernel
def _generate_with_seeds(noise: ti.template(), seeds: ti.template(), params: ti.template()):
	ny, nx = noise.shape
	for r, c in noise:
		h = noise_height(r, c, ny, nx, params)
		noise[r, c] = h
		if h > params[None].seed_threshold:
			seeds[r, c] = ti.math.vec4(ti.cast(c, ti.f32), ti.cast(r, ti.f32), h, 0.0)
		else:
			seeds[r, c] = ti.math.vec4(cte.INVALID_SEED, cte.INVALID_SEED, 0.0, cte.FAR_DISTANCE)


def generate_noise(noise, seeds, params):
	"""
	Fill the noise grid and, when a seed grid is given, classify jump-flood seeds.

	Args:
		noise: 2D scalar f32 field (ny, nx), receives heights in [0, 1]
		seeds: 2D vec4 field (ny, nx) or None outside ridge mode
		params: 0-D NoiseParams struct field

	Author: B.G.
	"""
	if seeds is None:
		_generate(noise, params)
	else:
		_generate_with_seeds(noise, seeds, params)
	logger.debug("Noise generated", shape=tuple(noise.shape), seeds=seeds is not None)
