#!/usr/bin/env python3
"""
Erode a 512x512 ridged terrain and compare it with the raw blended terrain.
"""
import time
import numpy as np
import matplotlib.pyplot as plt
import pyerosion as pe

pe.environment.initialise("gpu")

cfg = pe.ErosionConfig(size_x=512, size_y=512, iterations=1024, seed=7, random_seed=7)
cfg = cfg.with_blend_factor(0.35)

with pe.Eroder(cfg) as eroder:
	eroder.generate_terrain()
	print(f"max distance to a ridge seed: {eroder.build_distance_field():.1f} cells")
	eroder.blend()
	initial = eroder.readback().reshaped("height").copy()

	st = time.time()
	eroder.erode()
	eroder.equilibrate()
	result = eroder.readback()
	print(f"erosion took {time.time() - st:.2f} s")

eroded = result.reshaped("height")
print(f"total water left: {result.total_water():.1f}")
print(f"mean |dz|: {np.abs(eroded - initial).mean():.5f}")

fig, axes = plt.subplots(1, 2, figsize=(12, 6))
axes[0].imshow(pe.visu.hillshade_numpy(initial, z_factor=200.0), cmap="gray")
axes[0].set_title("Blended terrain")
axes[1].imshow(pe.visu.hillshade_numpy(eroded, z_factor=200.0), cmap="gray")
still = result.reshaped("still_water")
axes[1].imshow(np.where(still > 0, still, np.nan), cmap="Blues", alpha=0.7)
axes[1].set_title("Eroded terrain and still water")
plt.show()

pe.visu.show_result(result)
