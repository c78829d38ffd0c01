"""JAX configuration for assocquery.

The regression engine evaluates Student-t tail probabilities with JAX's
regularized incomplete beta function. JAX defaults to 32-bit floats, which
flushes small p-values to zero, so configure_jax() enables x64 mode before
any p-value is computed.
"""

from __future__ import annotations

import os
from typing import Any

import jax
from loguru import logger

_configured = False


def configure_jax(
    enable_x64: bool = True,
    platform: str | None = None,
    persistent_cache: bool = False,
) -> None:
    """Configure JAX for p-value computation.

    Safe to call repeatedly; only the first call logs at INFO.

    Args:
        enable_x64: Enable 64-bit floating point precision. Defaults to True.
        platform: Optional platform name ("cpu", "gpu", "tpu"). If None,
            JAX auto-selects the best available platform.
        persistent_cache: Enable XLA compilation cache persistence across
            service restarts.
    """
    global _configured

    if enable_x64:
        jax.config.update("jax_enable_x64", True)
        logger.debug("JAX 64-bit precision enabled")

    if platform is not None:
        jax.config.update("jax_platform_name", platform)
        logger.debug(f"JAX platform set to: {platform}")

    if persistent_cache:
        cache_dir = os.path.expanduser("~/.cache/jax")
        os.makedirs(cache_dir, exist_ok=True)
        jax.config.update("jax_compilation_cache_dir", cache_dir)
        jax.config.update("jax_persistent_cache_min_compile_time_secs", 1.0)
        logger.debug(f"JAX compilation cache enabled: {cache_dir}")

    if not _configured:
        info = get_jax_info()
        logger.info(
            f"JAX configured: version={info['version']}, "
            f"backend={info['backend']}, x64={info['x64_enabled']}"
        )
    _configured = True


def get_jax_info() -> dict[str, Any]:
    """Get information about the current JAX configuration.

    Returns:
        Dictionary with keys:
            - version: JAX version string
            - backend: Current default backend name (cpu/gpu/tpu)
            - devices: List of available device descriptions
            - x64_enabled: Whether 64-bit precision is enabled
    """
    return {
        "version": jax.__version__,
        "backend": jax.default_backend(),
        "devices": [str(d) for d in jax.devices()],
        "x64_enabled": jax.config.jax_enable_x64,
    }
