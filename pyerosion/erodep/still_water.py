"""
Local settling of the still-water pool.

Runs between the hydraulic and thermal passes. Uses the same FD8 weighting as
the hydraulic pass but driven by terrain + still water only (flowing water is
ignored). Each cell releases

	outflow = min(still, relaxation * still * total_raw_weight)

split among its downhill neighbours by the normalised weights, and gathers the
matching share of its neighbours' outflow. Still sediment travels at the
concentration of the source cell. Flowing channels are copied through.

Author: B.G.
"""

import taichi as ti
from .. import constants as cte
from ..grid.neighbourer import in_bounds, neighbour
from .hydraulic import fd8_weights


@ti.func
def _outflow(w: ti.math.vec4, raw_total: ti.f32, relaxation: ti.f32):
	"""Still water and still sediment released by a cell."""
	out = ti.min(w[2], relaxation * w[2] * raw_total)
	out_sed = 0.0
	if w[2] > 0.0:
		out_sed = out * w[3] / w[2]
	return out, out_sed


@ti.kernel
def still_water_step(terrain: ti.template(), water_src: ti.template(), water_dst: ti.template(),
		params: ti.template()):
	"""
	One still-water redistribution pass.

	Args:
		terrain: current terrain instance (read only)
		water_src: current water instance
		water_dst: alternate water instance, fully overwritten
		params: 0-D StillWaterParams

	Author: B.G.
	"""
	ny, nx = terrain.shape
	for r, c in terrain:
		p = params[None]
		w = water_src[r, c]

		_w, _s, raw_total = fd8_weights(terrain, water_src, r, c, p.water_height_factor, 0.0)
		out, out_sed = _outflow(w, raw_total, p.relaxation)
		still = w[2] - out
		still_sed = w[3] - out_sed

		for k in ti.static(range(cte.N_NEIGHBOURS)):
			rr, cc = neighbour(r, c, k)
			if in_bounds(rr, cc, ny, nx):
				nw, _ns, n_total = fd8_weights(terrain, water_src, rr, cc, p.water_height_factor, 0.0)
				frac = nw[ti.static(cte.N_NEIGHBOURS - 1 - k)]
				if frac > 0.0:
					n_out, n_out_sed = _outflow(water_src[rr, cc], n_total, p.relaxation)
					still += frac * n_out
					still_sed += frac * n_out_sed

		water_dst[r, c] = ti.math.vec4(w[0], w[1], ti.max(still, 0.0), ti.max(still_sed, 0.0))
