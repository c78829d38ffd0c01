"""Wire models for the association query protocol.

Field names match the JSON protocol exactly (``api_version``,
``variant_filters``, ``p-value`` ...). These models only check JSON shape;
the semantic checks live in ``assocquery.query``.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from assocquery.core.errors import RequestShapeError


class CovariateSpec(BaseModel):
    """One requested covariate, tagged by ``type`` ("phenotype" or "variant")."""

    model_config = ConfigDict(extra="ignore")

    type: str
    name: str | None = None
    chrom: str | None = None
    pos: int | None = None
    ref: str | None = None
    alt: str | None = None


class VariantFilterSpec(BaseModel):
    model_config = ConfigDict(extra="ignore")

    operand: str
    operator: str
    value: str
    operand_type: str


class AssociationRequest(BaseModel):
    """A getStats request body."""

    model_config = ConfigDict(extra="ignore")

    passback: str | None = None
    md_version: str | None = None
    api_version: int
    phenotype: str | None = None
    covariates: list[CovariateSpec] | None = None
    variant_filters: list[VariantFilterSpec] | None = None
    limit: int | None = None
    count: bool | None = None
    sort_by: list[str] | None = None


class Stat(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    chrom: str
    pos: int
    ref: str
    alt: str
    p_value: float | None = Field(default=None, alias="p-value")


class AssociationResult(BaseModel):
    """A getStats response body, for both the success and the error branch."""

    is_error: bool
    error_message: str | None = None
    passback: str | None = None
    stats: list[Stat] | None = None
    count: int | None = None

    @classmethod
    def error(cls, message: str, passback: str | None = None) -> AssociationResult:
        return cls(is_error=True, error_message=message, passback=passback)

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON-ready dict with protocol field names."""
        return self.model_dump(by_alias=True, mode="json")


def _summarize_validation_error(err: ValidationError) -> str:
    first = err.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "request"
    return f"Invalid request field `{location}': {first['msg']}"


def parse_request(body: str | bytes | dict[str, Any]) -> AssociationRequest:
    """Parse a request body into an AssociationRequest.

    Args:
        body: Raw JSON text/bytes, or an already-decoded JSON object.

    Returns:
        The parsed request.

    Raises:
        RequestShapeError: If the body is not JSON, not an object, or does
            not match the request schema.
    """
    if isinstance(body, (str, bytes)):
        try:
            body = json.loads(body)
        except json.JSONDecodeError as e:
            raise RequestShapeError(f"Request body is not valid JSON: {e.msg}") from e
    if not isinstance(body, dict):
        raise RequestShapeError("Request body must be a JSON object")
    try:
        return AssociationRequest.model_validate(body)
    except ValidationError as e:
        raise RequestShapeError(_summarize_validation_error(e)) from e


def extract_passback(body: str | bytes | dict[str, Any]) -> str | None:
    """Best-effort passback lookup for requests that failed to parse."""
    if isinstance(body, (str, bytes)):
        try:
            body = json.loads(body)
        except json.JSONDecodeError:
            return None
    if isinstance(body, dict) and isinstance(body.get("passback"), str):
        return body["passback"]
    return None
