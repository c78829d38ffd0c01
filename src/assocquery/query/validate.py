"""Request-level protocol and limit checks."""

from assocquery.core.config import MAX_LIMIT, ServiceConfig
from assocquery.core.errors import ProtocolError, RequestShapeError
from assocquery.models import AssociationRequest


def validate_request(req: AssociationRequest, config: ServiceConfig) -> int:
    """Check versions and the limit before any data is touched.

    Args:
        req: Parsed request.
        config: Service configuration (supported versions, hard limit).

    Returns:
        The effective result limit (``config.hard_limit`` when omitted).

    Raises:
        ProtocolError: Unsupported ``md_version`` or ``api_version``.
        RequestShapeError: Negative ``limit``, or one above MAX_LIMIT.
    """
    if req.md_version is not None and req.md_version != config.md_version:
        raise ProtocolError(
            f"Unknown md_version `{req.md_version}'. "
            f"Available md_versions: {config.md_version}"
        )

    if req.api_version != config.api_version:
        raise ProtocolError(
            f"Unsupported API version `{req.api_version}'. "
            f"Supported API versions: {config.api_version}"
        )

    limit = config.hard_limit if req.limit is None else req.limit
    if limit < 0:
        raise RequestShapeError(f"limit must be non-negative: got {limit}")
    if limit > MAX_LIMIT:
        raise RequestShapeError(f"limit must be at most {MAX_LIMIT}: got {limit}")
    return limit
