"""
Global constants for pyerosion.

This module gathers the numerical constants baked into the Taichi kernels at
compile time. Anything that varies from one run to another (grid size, noise
settings, erosion rates, ...) lives in the per-run parameter blocks built from
`pyerosion.config.ErosionConfig` instead: a module global read inside a kernel
is frozen the first time that kernel compiles.

Constant Categories:
- Execution Constants: execution group tiling used by reductions
- Neighbourhood Constants: 8-direction offsets and their inverse distances
- Ridge Constants: jump-flood sentinels and fixed-point quantisation
- Hydraulic Constants: flow exponent bounds, curvature gain, droplet volume
- Margolus Constants: checkerboard offsets

Usage:
    import pyerosion.constants as cte

    @ti.kernel
    def my_kernel(seeds: ti.template()):
        for r, c in seeds:
            if seeds[r, c][0] < 0:
                seeds[r, c][3] = cte.FAR_DISTANCE

Author: B.G.
"""

import math

#########################################
###### EXECUTION CONSTANTS ##############
#########################################

# Side length of an execution group (tile of GROUP_SIZE x GROUP_SIZE cells).
# Reductions fold one local accumulator per group into global memory.
GROUP_SIZE = 16

# Number of float channels stored per grid cell
CHANNELS = 4

#########################################
###### NEIGHBOURHOOD CONSTANTS ##########
#########################################

# 8-neighbourhood offsets as (drow, dcol), ordered so that direction k and
# direction 7 - k are opposite each other:
#   0 1 2
#   3 . 4
#   5 6 7
D_ROW = (-1, -1, -1, 0, 0, 1, 1, 1)
D_COL = (-1, 0, 1, -1, 1, -1, 0, 1)

# Euclidean length of each offset and its inverse
DIST = tuple(math.sqrt(dr * dr + dc * dc) for dr, dc in zip(D_ROW, D_COL))
INV_DIST = tuple(1.0 / d for d in DIST)

N_NEIGHBOURS = 8

#########################################
###### RIDGE CONSTANTS ##################
#########################################

# Seed coordinate written for cells that do not know any seed yet
INVALID_SEED = -1.0

# Distance stored alongside an invalid seed
FAR_DISTANCE = 1e9

# Fixed-point scale of the global max-distance accumulator (i32)
DISTANCE_QUANTISATION = 1000.0

#########################################
###### NOISE CONSTANTS ##################
#########################################

# Per-octave rotation (rows of a 2x2 matrix), applied before doubling the frequency
OCTAVE_ROTATION = ((0.8, -0.6), (0.6, 0.8))

# Seed offset direction in the noise plane
SEED_OFFSET = (0.7548776662, 0.5698402910)

# Offsets decorrelating the two domain-warp samples from the height sample
WARP_OFFSET_X = (5.2, 1.3)
WARP_OFFSET_Y = (1.7, 9.2)

#########################################
###### HYDRAULIC CONSTANTS ##############
#########################################

# Bounds of the adaptive flow-distribution exponent
# low -> flow spreads on open slopes, high -> flow concentrates in valleys
FLOW_EXPONENT_MIN = 0.8
FLOW_EXPONENT_MAX = 2.5

# Laplacian (curvature) to valleyness gain
CURVATURE_GAIN = 200.0

# Water volume injected by a droplet
DROPLET_VOLUME = 1.0

#########################################
###### MARGOLUS CONSTANTS ###############
#########################################

# Checkerboard offsets (ox, oy) cycled through every equilibration pass
MARGOLUS_OFFSETS = ((0, 0), (1, 0), (0, 1), (1, 1))
