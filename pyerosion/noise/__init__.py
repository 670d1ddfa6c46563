"""
Procedural height generation for pyerosion.

Produces the initial height field of a run from domain-warped fractal
simplex noise, and in ridge mode the seed grid consumed by the jump-flood
distance field builder.

Core Functions:
- generate_noise: fill the noise grid (and optional seed grid) in one pass
- simplex2d: 2D simplex gradient noise (ti.func)
- fbm: rotated, normalised fractal sum of simplex octaves (ti.func)

Usage:
    import pyerosion as pe

    store = pe.grid.GridStore(cfg)
    pe.noise.generate_noise(store.noise.field, store.seeds.current, store.noise_params.field)

Author: B.G.
"""

from .simplex import generate_noise, simplex2d, fbm, noise_height

__all__ = [
	"generate_noise",
	"simplex2d",
	"fbm",
	"noise_height",
]
