"""
Hydraulic erosion with adaptive multiple flow direction routing.

One call to `hydraulic_step` advances flowing water, flowing sediment and
terrain height by one iteration, reading the current terrain/water instances
and writing the alternate ones. The pass is gather-only: every cell rebuilds
its own state from a complete snapshot of its neighbourhood, so cells never
write to each other.

Flow routing (FD8 with an adaptive exponent):
- effective height: h + (still + flowing * flow_depth_weight) * water_height_factor
- the 4-neighbour Laplacian of the effective height measures how much the cell
  sits in a valley; it is mapped to valleyness in [0, 1] and the flow exponent
  p = mix(0.8, 2.5, valleyness) (spreads flow on open slopes, concentrates it
  in valleys)
- every lower neighbour k gets a weight (slope_k / dist_k)^p with
  slope_k = drop_k / dist_k, weights are normalised to sum to 1
- a cell with no lower neighbour is a pit

Transport per cell:
- inflow = sum over neighbours of (their weight toward this cell) * (their
  flowing water / sediment); the cell's own flowing water has left
- evaporation is applied once, to the gathered inflow water
- capacity = inflow * avg_slope * smoothstep(shear_shallow, shear_deep, shear)
  with avg_slope the weighted mean downhill slope and shear the flowing depth
  times avg_slope; (capacity - sediment) * deposition_rate moves between
  terrain height and flowing sediment (positive erodes, negative deposits)
- pits turn their own flowing water (minus evaporation) into still water and
  split their own flowing sediment between the flowing and still sediment
  pools in proportion to their water volumes
- droplets: during the first spawn_cycles iterations, hash01(col, row,
  random_seed, iteration) < spawn_density injects DROPLET_VOLUME
- flowing water is capped at max_flowing_water, the excess (with its share of
  sediment) spills into the still pool

Author: B.G.
"""

import taichi as ti
from .. import constants as cte
from ..grid.neighbourer import in_bounds, clamp_rc, neighbour
from ..general_algorithms.math_utils import smoothstep, lerp, hash01

vec8 = ti.types.vector(cte.N_NEIGHBOURS, ti.f32)


#########################################
###### FLOW ROUTING #####################
#########################################

@ti.func
def effective_height(t: ti.math.vec4, w: ti.math.vec4, water_height_factor: ti.f32, flow_depth_weight: ti.f32) -> ti.f32:
	"""
	Terrain height raised by the local water column.

	Args:
		t: terrain cell (ch0 height)
		w: water cell (ch0 flowing, ch2 still)
		water_height_factor: volume to height conversion
		flow_depth_weight: share of the flowing water counted in the column

	Author: B.G.
	"""
	return t[0] + (w[2] + w[0] * flow_depth_weight) * water_height_factor


@ti.func
def flow_exponent(laplacian: ti.f32) -> ti.f32:
	"""
	FD8 exponent from the curvature of the effective surface.

	Always within [FLOW_EXPONENT_MIN, FLOW_EXPONENT_MAX], whatever the input.

	Author: B.G.
	"""
	valleyness = ti.math.clamp(laplacian * cte.CURVATURE_GAIN, 0.0, 1.0)
	return lerp(cte.FLOW_EXPONENT_MIN, cte.FLOW_EXPONENT_MAX, valleyness)


@ti.func
def fd8_weights(terrain: ti.template(), water: ti.template(), row: ti.i32, col: ti.i32,
		water_height_factor: ti.f32, flow_depth_weight: ti.f32):
	"""
	Normalised downhill weights of cell (row, col).

	Raw weights are evaluated relative to the largest (slope / dist) of the
	cell, which leaves the normalised weights unchanged but keeps very gentle
	slopes from underflowing to zero once raised to the power p.

	Args:
		terrain, water: current instances
		row, col: cell
		water_height_factor, flow_depth_weight: effective height settings

	Returns:
		(vec8, vec8, ti.f32): normalised weights (all 0 in a pit), downhill
		slopes (drop / dist, 0 where not downhill) and the sum of the raw
		weights (slope_k / dist_k)^p

	Author: B.G.
	"""
	ny, nx = terrain.shape
	h0 = effective_height(terrain[row, col], water[row, col], water_height_factor, flow_depth_weight)

	# Edge-clamped 4-neighbour Laplacian
	lap = -4.0 * h0
	for k in ti.static(range(4)):
		rr, cc = clamp_rc(row + ti.static((-1, 1, 0, 0)[k]), col + ti.static((0, 0, -1, 1)[k]), ny, nx)
		lap += effective_height(terrain[rr, cc], water[rr, cc], water_height_factor, flow_depth_weight)
	p = flow_exponent(lap)

	slope = vec8(0.0)
	steepest = 0.0
	for k in ti.static(range(cte.N_NEIGHBOURS)):
		rr, cc = neighbour(row, col, k)
		if in_bounds(rr, cc, ny, nx):
			drop = h0 - effective_height(terrain[rr, cc], water[rr, cc], water_height_factor, flow_depth_weight)
			if drop > 0.0:
				slope[k] = drop * ti.static(cte.INV_DIST[k])
				steepest = ti.max(steepest, slope[k] * ti.static(cte.INV_DIST[k]))

	weights = vec8(0.0)
	raw_total = 0.0
	if steepest > 0.0:
		rel_total = 0.0
		for k in ti.static(range(cte.N_NEIGHBOURS)):
			if slope[k] > 0.0:
				weights[k] = ti.pow(slope[k] * ti.static(cte.INV_DIST[k]) / steepest, p)
				rel_total += weights[k]
		weights /= rel_total
		raw_total = ti.pow(steepest, p) * rel_total

	return weights, slope, raw_total


#########################################
###### EROSION PASS #####################
#########################################

@ti.kernel
def hydraulic_step(terrain_src: ti.template(), water_src: ti.template(),
		terrain_dst: ti.template(), water_dst: ti.template(), params: ti.template()):
	"""
	One hydraulic erosion iteration from the current into the alternate instances.

	Args:
		terrain_src, water_src: current terrain and water grids (read only)
		terrain_dst, water_dst: alternate grids, fully overwritten
		params: 0-D ErosionParams block (iteration counter included)

	Author: B.G.
	"""
	ny, nx = terrain_src.shape
	for r, c in terrain_src:
		p = params[None]
		t = terrain_src[r, c]
		w = water_src[r, c]

		weights, slope, _raw = fd8_weights(terrain_src, water_src, r, c, p.water_height_factor, p.flow_depth_weight)
		is_pit = weights.sum() <= 0.0

		# Gather what higher neighbours route toward this cell
		in_water = 0.0
		in_sed = 0.0
		for k in ti.static(range(cte.N_NEIGHBOURS)):
			rr, cc = neighbour(r, c, k)
			if in_bounds(rr, cc, ny, nx):
				nw, _ns, _nt = fd8_weights(terrain_src, water_src, rr, cc, p.water_height_factor, p.flow_depth_weight)
				frac = nw[ti.static(cte.N_NEIGHBOURS - 1 - k)]
				if frac > 0.0:
					src = water_src[rr, cc]
					in_water += frac * src[0]
					in_sed += frac * src[1]

		flow = in_water * (1.0 - p.evap_rate)
		flow_sed = in_sed
		still = w[2]
		still_sed = w[3]

		# Pit: the local stock cannot leave
		if is_pit:
			still += w[0] * (1.0 - p.evap_rate)
			share = 0.0
			if still + flow > 0.0:
				share = still / (still + flow)
			still_sed += w[1] * share
			flow_sed += w[1] * (1.0 - share)

		# Erosion / deposition against the transport capacity
		avg_slope = weights.dot(slope)
		shear = in_water * p.water_height_factor * avg_slope
		capacity = in_water * avg_slope * smoothstep(p.shear_shallow, p.shear_deep, shear)
		exchange = (capacity - flow_sed) * p.deposition_rate
		height = t[0] - exchange
		flow_sed += exchange

		# Droplets
		if p.iteration < p.spawn_cycles:
			if hash01(c, r, p.random_seed, p.iteration) < p.spawn_density:
				flow += cte.DROPLET_VOLUME

		# Cap, the excess spills into the still pool
		if flow > p.max_flowing_water:
			share = (flow - p.max_flowing_water) / flow
			still += flow - p.max_flowing_water
			still_sed += flow_sed * share
			flow_sed -= flow_sed * share
			flow = p.max_flowing_water

		terrain_dst[r, c] = ti.math.vec4(height, t[1], t[2], t[3])
		water_dst[r, c] = ti.math.vec4(flow, ti.max(flow_sed, 0.0), still, ti.max(still_sed, 0.0))
