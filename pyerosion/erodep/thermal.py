"""
Thermal erosion (talus relaxation) with moisture-dependent talus slopes.

The allowed slope of a cell starts from a dry value bracketed by elevation
(talus_dry_low below talus_low_height, talus_dry_high above
talus_high_height, linear in between), is relaxed toward talus_wet as the
flowing-water depth rises from flow_wet_min to flow_wet_max, and then toward
talus_immersed as the still-water depth rises from immerse_min to
immerse_max (depths = volume * water_height_factor, smoothstep ramps).

For every neighbour, slope = (h - h_n) / dist. Material leaves the cell where
the outward slope exceeds the talus, and arrives where the inward slope
does, by thermal_strength * (|slope| - talus) * dist. The net change is
clamped to +- thermal_max_delta_per_pass.

Author: B.G.
"""

import taichi as ti
from .. import constants as cte
from ..grid.neighbourer import in_bounds, neighbour
from ..general_algorithms.math_utils import smoothstep, lerp


@ti.func
def allowed_talus(height: ti.f32, flow_depth: ti.f32, still_depth: ti.f32, p: ti.template()) -> ti.f32:
	"""
	Talus slope of a cell.

	Args:
		height: terrain height
		flow_depth: flowing water in height units
		still_depth: still water in height units
		p: ThermalParams value

	Author: B.G.
	"""
	t = ti.math.clamp((height - p.talus_low_height) / (p.talus_high_height - p.talus_low_height), 0.0, 1.0)
	talus = lerp(p.talus_dry_low, p.talus_dry_high, t)
	talus = lerp(talus, p.talus_wet, smoothstep(p.flow_wet_min, p.flow_wet_max, flow_depth))
	talus = lerp(talus, p.talus_immersed, smoothstep(p.immerse_min, p.immerse_max, still_depth))
	return talus


@ti.kernel
def thermal_step(terrain_src: ti.template(), terrain_dst: ti.template(), water: ti.template(),
		params: ti.template()):
	"""
	One thermal pass from the current into the alternate terrain instance.

	Args:
		terrain_src: current terrain
		terrain_dst: alternate terrain, fully overwritten (ch1-3 copied)
		water: current water instance (read only)
		params: 0-D ThermalParams

	Author: B.G.
	"""
	ny, nx = terrain_src.shape
	for r, c in terrain_src:
		p = params[None]
		t = terrain_src[r, c]
		w = water[r, c]
		talus = allowed_talus(t[0], w[0] * p.water_height_factor, w[2] * p.water_height_factor, p)

		delta = 0.0
		for k in ti.static(range(cte.N_NEIGHBOURS)):
			rr, cc = neighbour(r, c, k)
			if in_bounds(rr, cc, ny, nx):
				slope = (t[0] - terrain_src[rr, cc][0]) * ti.static(cte.INV_DIST[k])
				if slope > talus:
					delta -= p.strength * (slope - talus) * ti.static(cte.DIST[k])
				elif -slope > talus:
					delta += p.strength * (-slope - talus) * ti.static(cte.DIST[k])

		delta = ti.math.clamp(delta, -p.max_delta, p.max_delta)
		terrain_dst[r, c] = ti.math.vec4(t[0] + delta, t[1], t[2], t[3])
