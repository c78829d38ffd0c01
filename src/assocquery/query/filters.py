"""Variant filter compilation and genotype store resolution selection.

Wire filters are parsed into ChromFilter, PosFilter or MacFilter, then
folded into an immutable FilterBounds. The bounds give the query width,
which picks the store resolution; chrom and pos filters are then applied
to that store as successive narrowing predicates.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from functools import reduce

import numpy as np

from assocquery.core.config import MAX_POSITION, ServiceConfig
from assocquery.core.errors import RequestShapeError
from assocquery.models import VariantFilterSpec
from assocquery.store.genotype import GenotypeStore, Resolution, normalize_contig

POS_OPERATORS = ("gte", "gt", "lte", "lt", "eq")
MAC_OPERATORS = ("gte", "gt", "lte", "lt")
MAX_MAC = 2**31 - 1


@dataclass(frozen=True)
class ChromFilter:
    chrom: str


@dataclass(frozen=True)
class PosFilter:
    operator: str
    value: int


@dataclass(frozen=True)
class MacFilter:
    operator: str
    value: int


VariantFilter = ChromFilter | PosFilter | MacFilter


@dataclass(frozen=True)
class FilterBounds:
    """Position and MAC bounds implied by a filter list.

    Exclusive bounds are stored inclusively: ``gt v`` becomes ``min_pos = v+1``
    and ``lt v`` becomes ``max_pos = v-1``.
    """

    min_pos: int = 0
    max_pos: int = MAX_POSITION
    is_single_variant: bool = False
    min_mac: int = 0
    max_mac: int = MAX_MAC
    use_default_min_mac: bool = True

    @property
    def width(self) -> int:
        if self.is_single_variant:
            return 1
        return self.max_pos - self.min_pos

    def mac_range(self, default_min_mac: int) -> tuple[int, int]:
        """(min_mac, max_mac) to hand to the regression engine."""
        if self.use_default_min_mac:
            return default_min_mac, self.max_mac
        return self.min_mac, self.max_mac


@dataclass(frozen=True)
class CompiledFilters:
    """Filters ready to run against a store.

    Attributes:
        chrom_filters: Distinct chrom filters in declaration order; holds the
            default chromosome when the request named none.
        pos_filters: Distinct pos filters in declaration order.
        bounds: Folded position and MAC bounds.
    """

    chrom_filters: tuple[ChromFilter, ...]
    pos_filters: tuple[PosFilter, ...]
    bounds: FilterBounds


def _parse_int(operand: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise RequestShapeError(
            f"{operand} filter value must be an integer: got '{value}'"
        ) from None


def parse_filter(spec: VariantFilterSpec) -> VariantFilter:
    """Convert a wire filter into its typed form.

    Raises:
        RequestShapeError: Unknown operand, or an operator/operand_type
            combination the operand does not allow, or a non-integer value
            for pos/mac.
    """
    if spec.operand == "chrom":
        if not (spec.operator == "eq" and spec.operand_type == "string"):
            raise RequestShapeError(
                "chrom filter operator must be 'eq' and operand_type must be "
                f"'string': got '{spec.operator}' and '{spec.operand_type}'"
            )
        return ChromFilter(normalize_contig(spec.value))

    if spec.operand == "pos":
        if spec.operand_type != "integer":
            raise RequestShapeError(
                f"pos filter operand_type must be 'integer': got '{spec.operand_type}'"
            )
        if spec.operator not in POS_OPERATORS:
            raise RequestShapeError(
                "pos filter operator must be 'gte', 'gt', 'lte', 'lt', or 'eq': "
                f"got '{spec.operator}'"
            )
        return PosFilter(spec.operator, _parse_int("pos", spec.value))

    if spec.operand == "mac":
        if spec.operand_type != "integer":
            raise RequestShapeError(
                f"mac filter operand_type must be 'integer': got '{spec.operand_type}'"
            )
        if spec.operator not in MAC_OPERATORS:
            raise RequestShapeError(
                "mac filter operator must be 'gte', 'gt', 'lte', 'lt': "
                f"got '{spec.operator}'"
            )
        return MacFilter(spec.operator, _parse_int("mac", spec.value))

    raise RequestShapeError(
        f"Filter operand must be 'chrom', 'pos', or 'mac': got '{spec.operand}'"
    )


def _tighten(lo: int, hi: int, operator: str, value: int) -> tuple[int, int]:
    if operator == "gte":
        return max(lo, value), hi
    if operator == "gt":
        return max(lo, value + 1), hi
    if operator == "lte":
        return lo, min(hi, value)
    if operator == "lt":
        return lo, min(hi, value - 1)
    return lo, hi


def fold_bounds(bounds: FilterBounds, f: VariantFilter) -> FilterBounds:
    """Fold one filter into ``bounds``, returning new bounds."""
    if isinstance(f, PosFilter):
        if f.operator == "eq":
            return replace(bounds, is_single_variant=True)
        lo, hi = _tighten(bounds.min_pos, bounds.max_pos, f.operator, f.value)
        return replace(bounds, min_pos=lo, max_pos=hi)
    if isinstance(f, MacFilter):
        lo, hi = _tighten(bounds.min_mac, bounds.max_mac, f.operator, f.value)
        return replace(bounds, min_mac=lo, max_mac=hi, use_default_min_mac=False)
    return bounds


def _distinct(items):
    return tuple(dict.fromkeys(items))


def compile_filters(
    specs: Sequence[VariantFilterSpec] | None, default_chrom: str = "1"
) -> CompiledFilters:
    """Parse, validate and fold the request's variant filters.

    Args:
        specs: Wire filters, or None.
        default_chrom: Chromosome used when no chrom filter is given.

    Returns:
        CompiledFilters.

    Raises:
        RequestShapeError: On the first malformed filter.
    """
    parsed = [parse_filter(spec) for spec in specs or ()]
    bounds = reduce(fold_bounds, parsed, FilterBounds())

    chrom_filters = _distinct(f for f in parsed if isinstance(f, ChromFilter))
    if not chrom_filters:
        chrom_filters = (ChromFilter(normalize_contig(default_chrom)),)
    pos_filters = _distinct(f for f in parsed if isinstance(f, PosFilter))

    return CompiledFilters(chrom_filters, pos_filters, bounds)


def select_resolution(width: int, config: ServiceConfig) -> Resolution:
    """Pick the store resolution for a query of the given width.

    Narrow queries use the finest store; the coarse store serves anything
    wider than ``config.max_width_medium``.
    """
    if width <= config.max_width_fine:
        return Resolution.FINE
    if width <= config.max_width_medium:
        return Resolution.MEDIUM
    return Resolution.COARSE


def _pos_predicate(store: GenotypeStore, f: PosFilter) -> np.ndarray:
    vblock = f.value // store.block_width
    if f.operator == "eq":
        return (store.block == vblock) & (store.start == f.value)
    if f.operator == "gte":
        return (store.block >= vblock) & (store.start >= f.value)
    if f.operator == "gt":
        return (store.block >= vblock) & (store.start > f.value)
    if f.operator == "lte":
        return (store.block <= vblock) & (store.start <= f.value)
    return (store.block <= vblock) & (store.start < f.value)


def apply_filters(store: GenotypeStore, compiled: CompiledFilters) -> GenotypeStore:
    """Narrow ``store`` by the chrom filters, then the pos filters."""
    for f in compiled.chrom_filters:
        store = store.where(store.contig == f.chrom)
    for f in compiled.pos_filters:
        store = store.where(_pos_predicate(store, f))
    return store
