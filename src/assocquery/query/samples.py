"""Sample inclusion from covariate completeness.

A sample is analysed only when the response phenotype and every phenotype
covariate are present for it. The subset keeps the original sample order:
``index_remap[i]`` is the position of included sample ``i`` within the
subset, and -1 for excluded samples (never read).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from assocquery.store.covariate_table import CovariateTable

EXCLUDED = -1


@dataclass(frozen=True)
class SampleSubset:
    """Boolean inclusion mask plus dense index remap, both length n."""

    mask: np.ndarray
    index_remap: np.ndarray

    @property
    def n(self) -> int:
        return len(self.mask)

    @property
    def n_included(self) -> int:
        return int(self.mask.sum())

    @property
    def included_indices(self) -> np.ndarray:
        """Original indices of included samples, ascending."""
        return np.flatnonzero(self.mask)


def build_sample_subset(table: CovariateTable, columns: Sequence[str]) -> SampleSubset:
    """Build the subset of samples with every column in ``columns`` present.

    Args:
        table: Covariate table aligned to the genotype sample order.
        columns: Required columns (response phenotype + phenotype covariates).

    Returns:
        Immutable SampleSubset.
    """
    mask = np.ones(table.n_samples, dtype=bool)
    for name in columns:
        mask &= ~np.isnan(table.column(name))

    index_remap = np.full(table.n_samples, EXCLUDED, dtype=np.int64)
    index_remap[mask] = np.arange(int(mask.sum()), dtype=np.int64)

    mask.setflags(write=False)
    index_remap.setflags(write=False)
    return SampleSubset(mask=mask, index_remap=index_remap)
