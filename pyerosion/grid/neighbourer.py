"""
8-neighbourhood navigation on row-major 2D grids.

Grids are indexed [row, col]. Neighbour k sits at
(row + cte.D_ROW[k], col + cte.D_COL[k]) and neighbour 7 - k is the opposite
direction, which is what gather-style kernels use to find out how much of a
neighbour's outflow is routed back toward the current cell.

Edges are closed: out-of-grid neighbours are simply skipped (or clamped to
the edge for finite differences).

Author: B.G.
"""

import taichi as ti
from .. import constants as cte


#########################################
###### GENERAL UTILITIES ################
#########################################

@ti.func
def in_bounds(row: ti.i32, col: ti.i32, ny: ti.i32, nx: ti.i32) -> bool:
	"""
	Check whether (row, col) lies inside a ny x nx grid.

	Author: B.G.
	"""
	return row >= 0 and row < ny and col >= 0 and col < nx


@ti.func
def clamp_rc(row: ti.i32, col: ti.i32, ny: ti.i32, nx: ti.i32):
	"""
	Clamp (row, col) to the grid, returning the nearest edge cell.

	Author: B.G.
	"""
	return ti.math.clamp(row, 0, ny - 1), ti.math.clamp(col, 0, nx - 1)


@ti.func
def neighbour(row: ti.i32, col: ti.i32, k: ti.template()):
	"""
	Coordinates of neighbour k (0..7) of (row, col), possibly out of the grid.

	Args:
		k: static direction index

	Author: B.G.
	"""
	return row + ti.static(cte.D_ROW[k]), col + ti.static(cte.D_COL[k])
