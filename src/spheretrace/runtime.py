"""Taichi runtime initialization.

Modules that declare Taichi fields (materials, scene, camera, integrator)
must be imported after ``init_taichi`` has run.

Example:
    >>> from spheretrace.runtime import init_taichi
    >>> init_taichi("gpu")
    'gpu'
"""

import logging

import taichi as ti

logger = logging.getLogger(__name__)

_ARCHS = {
    "cpu": ti.cpu,
    "gpu": ti.gpu,
    "cuda": ti.cuda,
    "vulkan": ti.vulkan,
    "metal": ti.metal,
}


def init_taichi(arch: str = "cpu", debug: bool = False, seed: int = 0) -> str:
    """Initialize Taichi on the requested backend.

    GPU backends that fail to initialize fall back to the CPU.

    Args:
        arch: One of "cpu", "gpu", "cuda", "vulkan" or "metal".
        debug: Enable Taichi debug mode (bounds checks and kernel asserts).
        seed: Seed for Taichi's built-in generator.

    Returns:
        The name of the backend actually used.

    Raises:
        ValueError: If the architecture name is unknown.
    """
    name = arch.lower()
    if name not in _ARCHS:
        raise ValueError(f"Unknown arch {arch!r}; expected one of {sorted(_ARCHS)}")

    if name == "cpu":
        ti.init(arch=ti.cpu, debug=debug, random_seed=seed)
        logger.info("Using CPU backend")
        return "cpu"

    try:
        ti.init(arch=_ARCHS[name], debug=debug, random_seed=seed)
    except Exception as e:
        logger.warning(f"Could not initialize {name} backend ({e}); falling back to CPU")
        ti.init(arch=ti.cpu, debug=debug, random_seed=seed)
        return "cpu"

    logger.info(f"Using {name} backend")
    return name
