"""Core configuration and runtime support for assocquery.

This package contains:
- config: Service configuration dataclass
- errors: Request error taxonomy
- jax_config: JAX configuration for the regression p-value path
- threading: process-wide BLAS thread limit for numpy operations
"""

from assocquery.core.config import ServiceConfig
from assocquery.core.errors import (
    AssocQueryError,
    ProtocolError,
    RequestShapeError,
    SemanticError,
)
from assocquery.core.jax_config import configure_jax, get_jax_info
from assocquery.core.threading import (
    apply_blas_limit,
    current_blas_limit,
    resolve_blas_threads,
)

__all__ = [
    "ServiceConfig",
    "AssocQueryError",
    "ProtocolError",
    "RequestShapeError",
    "SemanticError",
    "configure_jax",
    "get_jax_info",
    "apply_blas_limit",
    "current_blas_limit",
    "resolve_blas_threads",
]
