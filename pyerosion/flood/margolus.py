"""
Final still-water levelling with a Margolus (2x2 block) solver.

Every sub-pass partitions the grid into 2x2 blocks whose origin is shifted by
one of the checkerboard offsets (0,0), (1,0), (0,1), (1,1); cycling the four
offsets pairs every cell with each of its neighbours over one pass. Inside a
block (in-grid cells only) the still water, converted to height units, is
redistributed to a single flat level L solving

	sum_i max(0, L - h_i) = total

The left-hand side is monotonic in L, so L is bracketed in
[min h, max h + total / n] and bisected a fixed number of times. The cells
under the bisected level then give the closed form L = (total + sum h) / n;
cells misclassified by the coarse bracket are moved in or out of that set
until every submerged cell lies below L and every dry one above it, so the
block holds exactly its water. New still water is
max(0, L - h_i) / water_height_factor; every other channel is untouched.

Each sub-pass only writes the cells of non-empty blocks, so the whole water
grid is copied into the alternate instance before the kernel runs.

Author: B.G.
"""

import taichi as ti
import structlog
from .. import constants as cte

logger = structlog.get_logger()


@ti.func
def solve_level(heights: ti.math.vec4, valid: ti.math.vec4, total: ti.f32, iterations: ti.i32) -> ti.f32:
	"""
	Flat water level of a block holding `total` height units of water.

	Args:
		heights: terrain heights of the 4 cells
		valid: 1 for cells inside the grid, 0 otherwise
		total: water to distribute, in height units (> 0)
		iterations: bisection steps

	Returns:
		ti.f32: the level L

	Author: B.G.
	"""
	lo = 1e30
	hi = -1e30
	count = 0.0
	for i in ti.static(range(4)):
		if valid[i] > 0.0:
			lo = ti.min(lo, heights[i])
			hi = ti.max(hi, heights[i])
			count += 1.0
	hi += total / count

	for it in range(iterations):
		mid = 0.5 * (lo + hi)
		vol = 0.0
		for i in ti.static(range(4)):
			if valid[i] > 0.0:
				vol += ti.max(0.0, mid - heights[i])
		if vol > total:
			hi = mid
		else:
			lo = mid
	level = 0.5 * (lo + hi)

	# Closed form on the submerged set. Cells near the bisected level may be
	# misclassified, move them in or out until the set matches its own level.
	wet = ti.math.vec4(0.0)
	for i in ti.static(range(4)):
		if valid[i] > 0.0 and heights[i] < level:
			wet[i] = 1.0

	# The level only drops while the set changes, each cell moves at most twice
	for _ in range(9):
		n_wet = 0.0
		sum_wet = 0.0
		for i in ti.static(range(4)):
			n_wet += wet[i]
			sum_wet += wet[i] * heights[i]
		exact = 1e30
		if n_wet > 0.0:
			exact = (total + sum_wet) / n_wet

		drop_k = -1
		drop_h = -1e30
		add_k = -1
		add_h = 1e30
		for i in ti.static(range(4)):
			if valid[i] > 0.0:
				if wet[i] > 0.0 and heights[i] > exact and heights[i] > drop_h:
					drop_k = i
					drop_h = heights[i]
				if wet[i] == 0.0 and heights[i] < exact and heights[i] < add_h:
					add_k = i
					add_h = heights[i]

		if drop_k >= 0:
			for i in ti.static(range(4)):
				if i == drop_k:
					wet[i] = 0.0
		elif add_k >= 0:
			for i in ti.static(range(4)):
				if i == add_k:
					wet[i] = 1.0
		else:
			level = exact
			break

	return level


@ti.kernel
def margolus_step(terrain: ti.template(), water_src: ti.template(), water_dst: ti.template(),
		params: ti.template()):
	"""
	One checkerboard sub-pass at the offset stored in params.

	water_dst must already hold a copy of water_src.

	Args:
		terrain: current terrain (read only)
		water_src: current water
		water_dst: alternate water, rewritten on non-empty blocks only
		params: 0-D MargolusParams (offset_x, offset_y, iterations, water_height_factor)

	Author: B.G.
	"""
	ny, nx = terrain.shape
	bx = nx // 2 + 1
	by = ny // 2 + 1
	for b in range(bx * by):
		p = params[None]
		r0 = 2 * (b // bx) + p.offset_y
		c0 = 2 * (b % bx) + p.offset_x

		heights = ti.math.vec4(0.0)
		valid = ti.math.vec4(0.0)
		total = 0.0
		for i in ti.static(range(4)):
			r = r0 + ti.static(i // 2)
			c = c0 + ti.static(i % 2)
			if r < ny and c < nx:
				valid[i] = 1.0
				heights[i] = terrain[r, c][0]
				total += water_src[r, c][2] * p.water_height_factor

		if total > 0.0:
			level = solve_level(heights, valid, total, p.iterations)
			for i in ti.static(range(4)):
				if valid[i] > 0.0:
					r = r0 + ti.static(i // 2)
					c = c0 + ti.static(i % 2)
					water_dst[r, c][2] = ti.max(0.0, level - heights[i]) / p.water_height_factor


def equilibrate(terrain, water, params, passes: int):
	"""
	Run `passes` Margolus passes (4 sub-passes each) on the still water.

	Args:
		terrain (DoubleBuffer): terrain, read from its current instance
		water (DoubleBuffer): water, parity flips after every sub-pass
		params (ParamBlock): MargolusParams block, offsets rewritten per sub-pass
		passes: number of passes

	Author: B.G.
	"""
	for _ in range(passes):
		for ox, oy in cte.MARGOLUS_OFFSETS:
			params.update(offset_x=ox, offset_y=oy)
			water.sync_alternate()
			margolus_step(terrain.current, water.current, water.alternate, params.field)
			water.swap()
	logger.debug("Still water equilibrated", passes=passes)
