"""
Utility kernels for Taichi grid operations.

Whole-grid copy used by the double-buffered pipeline stages.

Author: B.G.
"""

import taichi as ti


#########################################
###### SWAP, COPY AND STUFF #############
#########################################


@ti.kernel
def copy_grid(dst: ti.template(), src: ti.template()):
    """
    Copy every cell (all channels) of src into dst.

    Args:
        dst: destination field (same shape and channel count as src)
        src: source field

    Author: B.G.
    """
    for I in ti.grouped(src):
        dst[I] = src[I]




