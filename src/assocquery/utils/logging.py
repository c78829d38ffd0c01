"""Logging utilities for assocquery.

loguru-based console/file logging configuration. Request handlers bind a
``request_id`` to every record; the JSON file sink keeps it as a field.
"""

import sys
from pathlib import Path

from loguru import logger


def setup_logging(
    verbose: bool = False,
    log_file: Path | None = None,
) -> None:
    """Configure loguru for assocquery.

    Sets up console logging on stderr with INFO level (or DEBUG if
    verbose), and optional file logging with JSON serialization. stdout is
    left to command output such as the JSON printed by ``assocquery query``.

    Args:
        verbose: If True, set console logging to DEBUG level.
        log_file: Optional path to log file. If provided, DEBUG-level
            logs are written with JSON serialization.
    """
    logger.remove()
    logger.configure(extra={"request_id": "-"})

    level = "DEBUG" if verbose else "INFO"
    logger.add(
        sys.stderr,
        level=level,
        format="{time:HH:mm:ss} | <level>{level: <8}</level> | "
        "{extra[request_id]} | {message}",
        colorize=True,
    )

    if log_file:
        logger.add(
            log_file,
            serialize=True,
            level="DEBUG",
        )


def log_rss_memory(phase: str) -> float:
    """Log current RSS memory usage.

    Args:
        phase: What just happened (e.g., "stores_loaded").

    Returns:
        Current RSS in GB (for chaining/testing).
    """
    import psutil

    rss_gb = psutil.Process().memory_info().rss / 1e9
    logger.bind(phase=phase).info(f"RSS memory: {rss_gb:.2f}GB (phase={phase})")
    return rss_gb
