"""
Matplotlib quick-look of an erosion result.

Consumes only the flat output arrays (plus width/height), never device grids.

Author: B.G.
"""

import numpy as np
import matplotlib.pyplot as plt

from .hillshading import hillshade_numpy


def _as_2d(result, key, width, height):
	return np.asarray(result[key], dtype=np.float32).reshape(height, width)


def show_result(result, width=None, height=None, z_factor=200.0, show=True, cmap="terrain"):
	"""
	Four-panel view: shaded height, flowing water, still water, total sediment.

	Args:
		result: ErosionResult, or any mapping with the five flat output arrays
		width, height: grid size, taken from the result when it carries it
		z_factor: vertical exaggeration of the hillshade
		show: call plt.show() before returning
		cmap: colormap of the height panel

	Returns:
		matplotlib.figure.Figure

	Author: B.G.
	"""
	width = width if width is not None else result.nx
	height = height if height is not None else result.ny

	z = _as_2d(result, "height", width, height)
	hs = hillshade_numpy(z, z_factor=z_factor)
	flowing = _as_2d(result, "flowing_water", width, height)
	still = _as_2d(result, "still_water", width, height)
	sediment = _as_2d(result, "flowing_sediment", width, height) + _as_2d(result, "still_sediment", width, height)

	fig, axes = plt.subplots(2, 2, figsize=(10, 10))

	ax = axes[0, 0]
	im = ax.imshow(z, cmap=cmap)
	ax.imshow(hs, cmap="gray", alpha=0.45)
	ax.set_title("Height")
	fig.colorbar(im, ax=ax, shrink=0.8)

	ax = axes[0, 1]
	im = ax.imshow(np.log10(flowing + 1e-6), cmap="Blues")
	ax.set_title("Flowing water (log10)")
	fig.colorbar(im, ax=ax, shrink=0.8)

	ax = axes[1, 0]
	im = ax.imshow(np.where(still > 0, still, np.nan), cmap="Blues")
	ax.imshow(hs, cmap="gray", alpha=0.3)
	ax.set_title("Still water")
	fig.colorbar(im, ax=ax, shrink=0.8)

	ax = axes[1, 1]
	im = ax.imshow(sediment, cmap="copper")
	ax.set_title("Sediment")
	fig.colorbar(im, ax=ax, shrink=0.8)

	for ax in axes.ravel():
		ax.set_xticks([])
		ax.set_yticks([])
	fig.tight_layout()

	if show:
		plt.show()
	return fig
