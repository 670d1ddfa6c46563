"""
Jump-flood nearest-seed distance field.

Every cell of the seed grid stores the nearest seed it knows about as
(x = col, y = row, seed height, distance), or the sentinel
(-1, -1, 0, FAR_DISTANCE). Each pass looks at the 8 neighbours at a given
step and adopts any valid neighbour seed closer than its current best, so
that after pass_count passes every cell knows (approximately, exactly for a
single seed) its nearest seed.

Step sequence: 1 on the first pass, then max(W, H) >> i (at least 1) for
pass i. This differs from the textbook sequence (largest step first) by an
extra fine pass up front, and is kept as is.

The final pass also folds the maximum distance over all valid cells into a
0-D fixed-point accumulator, with the two-level (group then atomic) max
reduction of pyerosion.general_algorithms.reduction. reduce_max_distance runs
the same reduction on its own over any seed grid.

Author: B.G.
"""

import taichi as ti
import structlog
from .. import constants as cte
from ..grid.neighbourer import in_bounds
from ..general_algorithms.reduction import group_max_atomic, n_groups

logger = structlog.get_logger()


def pass_count(nx: int, ny: int) -> int:
	"""floor(log2(max(nx, ny))) + 1"""
	return max(nx, ny).bit_length()


def step_size(i: int, nx: int, ny: int) -> int:
	"""Neighbour offset of pass i."""
	if i == 0:
		return 1
	return max(1, max(nx, ny) >> i)


@ti.func
def _propagate(src: ti.template(), r, c, step, ny, nx):
	"""Best seed of cell (r, c) among itself and its 8 neighbours at `step`."""
	best = src[r, c]
	for k in ti.static(range(cte.N_NEIGHBOURS)):
		rr = r + ti.static(cte.D_ROW[k]) * step
		cc = c + ti.static(cte.D_COL[k]) * step
		if in_bounds(rr, cc, ny, nx):
			cand = src[rr, cc]
			if cand[0] >= 0.0:
				dx = cand[0] - ti.cast(c, ti.f32)
				dy = cand[1] - ti.cast(r, ti.f32)
				d = ti.sqrt(dx * dx + dy * dy)
				if d < best[3]:
					best = ti.math.vec4(cand[0], cand[1], cand[2], d)
	return best


@ti.kernel
def jump_flood_pass(src: ti.template(), dst: ti.template(), params: ti.template()):
	"""
	One propagation pass from src into dst.

	Args:
		src: current seed grid (vec4, (ny, nx))
		dst: alternate seed grid, fully overwritten
		params: 0-D JumpFloodParams (step)

	Author: B.G.
	"""
	ny, nx = src.shape
	step = params[None].step
	for r, c in src:
		dst[r, c] = _propagate(src, r, c, step, ny, nx)


@ti.kernel
def jump_flood_final_pass(src: ti.template(), dst: ti.template(), params: ti.template(), acc: ti.template()):
	"""
	Last propagation pass, fused with the max distance reduction.

	One thread per GROUP_SIZE x GROUP_SIZE tile propagates its cells, keeps the
	max distance of the valid ones it wrote and folds it into acc with a single
	atomic max (fixed point, DISTANCE_QUANTISATION). acc is not zeroed here.

	Author: B.G.
	"""
	ny, nx = src.shape
	step = params[None].step
	gx = n_groups(nx)
	gy = n_groups(ny)
	for g in range(gx * gy):
		r0 = (g // gx) * cte.GROUP_SIZE
		c0 = (g % gx) * cte.GROUP_SIZE
		local = 0.0
		for t in range(cte.GROUP_SIZE * cte.GROUP_SIZE):
			r = r0 + t // cte.GROUP_SIZE
			c = c0 + t % cte.GROUP_SIZE
			if r < ny and c < nx:
				best = _propagate(src, r, c, step, ny, nx)
				dst[r, c] = best
				if best[0] >= 0.0:
					local = ti.max(local, best[3])
		ti.atomic_max(acc[None], ti.cast(local * cte.DISTANCE_QUANTISATION, ti.i32))


def reduce_max_distance(seeds, acc):
	"""Fold the max distance of every valid cell of seeds into acc (fixed point)."""
	group_max_atomic(seeds, acc, 3, 0, cte.DISTANCE_QUANTISATION)


def max_distance(acc) -> float:
	"""Decode the fixed-point accumulator."""
	return acc[None] / cte.DISTANCE_QUANTISATION


def build_distance_field(seeds, params, acc) -> float:
	"""
	Run every jump-flood pass on a seed DoubleBuffer, the last one also
	reducing the max distance.

	The accumulator is zeroed first. On return seeds.current holds the final
	distance field.

	Args:
		seeds (DoubleBuffer): seed grid, classified by the noise pass
		params (ParamBlock): JumpFloodParams block, its step is rewritten per pass
		acc: 0-D ti.i32 field

	Returns:
		float: maximum distance from any cell to its nearest seed

	Author: B.G.
	"""
	acc[None] = 0
	n = pass_count(seeds.nx, seeds.ny)
	for i in range(n):
		step = step_size(i, seeds.nx, seeds.ny)
		params.set("step", step)
		if i == n - 1:
			jump_flood_final_pass(seeds.current, seeds.alternate, params.field, acc)
		else:
			jump_flood_pass(seeds.current, seeds.alternate, params.field)
		seeds.swap()
		logger.debug("Jump flood pass", index=i, step=step)

	dmax = max_distance(acc)
	logger.debug("Distance field built", passes=n, max_distance=dmax)
	return dmax
