"""Error taxonomy for association requests.

Every error is user-facing and carries a human-readable message. The
``kind`` attribute names the category reported in logs:

- ProtocolError: unsupported dataset version or API version
- RequestShapeError: malformed request fields (limits, covariate fields,
  filter operand/operator combinations, sort keys)
- SemanticError: names that do not exist in the loaded data
"""


class AssocQueryError(ValueError):
    """Base class for errors that reject a request."""

    kind = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ProtocolError(AssocQueryError):
    kind = "protocol"


class RequestShapeError(AssocQueryError):
    kind = "request_shape"


class SemanticError(AssocQueryError):
    kind = "semantic"
