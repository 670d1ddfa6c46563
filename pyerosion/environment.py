"""
Compute backend initialisation and management for pyerosion.

Wraps Taichi initialisation so that backend failures surface as
`DeviceError` instead of leaking backend-specific exceptions, and keeps track
of whether the runtime has been brought up already.

Author: B.G.
"""

import taichi as ti
import structlog

from .errors import DeviceError

logger = structlog.get_logger()

INITIALISED = False

_ARCHS = {
	"gpu": ti.gpu,
	"cpu": ti.cpu,
	"cuda": ti.cuda,
	"vulkan": ti.vulkan,
	"metal": ti.metal,
}


def initialise(arch="gpu", debug=False, **kwargs):
	"""
	Initialise the Taichi runtime used by every pyerosion kernel.

	Args:
		arch: backend name ('gpu', 'cpu', 'cuda', 'vulkan', 'metal') or a Taichi arch
		debug: enable Taichi debug mode (bound checks)
		**kwargs: forwarded to ti.init

	Raises:
		RuntimeError: If already initialised
		DeviceError: If the backend cannot be brought up

	Author: B.G.
	"""
	global INITIALISED
	if INITIALISED:
		raise RuntimeError("pyerosion already initialised, call reboot() first")

	tarch = _ARCHS.get(arch, arch) if isinstance(arch, str) else arch
	if isinstance(tarch, str):
		raise DeviceError(f"Unknown compute backend '{arch}'")

	try:
		ti.init(arch=tarch, debug=debug, default_fp=ti.f32, **kwargs)
	except Exception as e:
		raise DeviceError(f"Could not initialise compute backend '{arch}': {e}") from e

	INITIALISED = True
	logger.info("Compute backend initialised", arch=str(arch))


def ensure_initialised(arch="gpu"):
	"""Initialise the runtime unless it already is."""
	if not INITIALISED:
		initialise(arch)


def reboot():
	"""
	Reset the Taichi runtime.

	Clears all device memory. Every field handed out by the pool becomes invalid,
	so the pool is emptied as well.

	Author: B.G.
	"""
	global INITIALISED
	from .pool import field_pool
	from .grid import forget_blocks
	field_pool.forget()
	forget_blocks()
	ti.reset()
	INITIALISED = False
