"""Regression engine interface."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Protocol

import numpy as np

from assocquery.store.genotype import GenotypeStore, Variant


@dataclass(frozen=True)
class VariantStat:
    """Association statistic for one variant.

    ``p_value`` is None when the variant could not be tested (constant
    genotype after imputation, MAC outside bounds, singular fit).
    """

    chrom: str
    pos: int
    ref: str
    alt: str
    p_value: float | None = None

    @classmethod
    def from_variant(cls, v: Variant, p_value: float | None) -> VariantStat:
        return cls(v.chrom, v.pos, v.ref, v.alt, p_value)


class RegressionEngine(Protocol):
    """Produces one optional p-value per variant of a store.

    Output order follows the store's row order, but callers must not rely
    on it; results are ordered explicitly afterwards.
    """

    def fit(
        self,
        store: GenotypeStore,
        y: np.ndarray,
        covariates: np.ndarray | None,
        sample_mask: np.ndarray,
        index_remap: np.ndarray,
        min_mac: int,
        max_mac: int,
    ) -> Iterator[tuple[Variant, float | None]]: ...
