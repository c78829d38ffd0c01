"""Process-wide BLAS thread limit for the regression engine.

threadpoolctl limits are global to the process: they bound every thread
calling into the BLAS library, not only the caller. The service answers
requests concurrently from a threadpool, so the limit is applied once when
the engine is built and never toggled per request or per chunk, where
overlapping requests would reset each other's limit.
"""

from __future__ import annotations

import os
import threading

import psutil
from loguru import logger
from threadpoolctl import threadpool_limits

ENV_VAR = "ASSOCQUERY_BLAS_THREADS"

_lock = threading.Lock()
_applied: int | None = None


def resolve_blas_threads(requested: int | None = None) -> int:
    """Pick the BLAS thread count.

    An explicit ``requested`` count wins, then ASSOCQUERY_BLAS_THREADS, then
    the physical core count. The result is clipped to [1, os.cpu_count()].
    """
    max_threads = os.cpu_count() or 64
    n = requested

    if n is None:
        raw = os.environ.get(ENV_VAR)
        if raw is not None:
            try:
                n = int(raw)
            except ValueError:
                logger.warning(f"{ENV_VAR}={raw!r} is not an integer, ignoring")

    if n is None:
        n = psutil.cpu_count(logical=False) or max_threads
    return max(1, min(n, max_threads))


def apply_blas_limit(n_threads: int) -> int:
    """Limit the BLAS pool of the whole process to ``n_threads``.

    Repeating the current limit is a no-op. A different count replaces the
    previous limit for every thread in the process.

    Returns:
        The applied thread count.
    """
    global _applied

    with _lock:
        if _applied == n_threads:
            return n_threads
        if _applied is not None:
            logger.warning(
                f"BLAS thread limit changed from {_applied} to {n_threads} "
                "for the whole process"
            )
        threadpool_limits(limits=n_threads, user_api="blas")
        _applied = n_threads
    logger.info(f"BLAS threads limited to {n_threads} (process-wide)")
    return n_threads


def current_blas_limit() -> int | None:
    """The limit set by apply_blas_limit, or None if never applied."""
    return _applied
