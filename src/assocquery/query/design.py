"""Response vector and covariate design matrix for the included samples."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from loguru import logger

from assocquery.query.covariates import ResolvedCovariates
from assocquery.query.samples import SampleSubset
from assocquery.store.covariate_table import CovariateTable
from assocquery.store.genotype import GenotypeStore


@dataclass(frozen=True)
class DesignMatrix:
    """Regression inputs for one request.

    Attributes:
        y: Response values, shape (n0,), in subset order.
        covariates: Covariate matrix (n0, k), or None when no covariates were
            requested. A (0, k) matrix (no included samples) is distinct from
            None.
        column_names: One label per covariate column: phenotype covariates
            first, then variant covariates, each in request order.
    """

    y: np.ndarray
    covariates: np.ndarray | None
    column_names: tuple[str, ...] = ()

    @property
    def n_covariates(self) -> int:
        return 0 if self.covariates is None else self.covariates.shape[1]


def build_design_matrix(
    phenotype: str,
    resolved: ResolvedCovariates,
    table: CovariateTable,
    subset: SampleSubset,
    store: GenotypeStore,
) -> DesignMatrix:
    """Assemble y and the covariate matrix for the samples in ``subset``.

    Phenotype columns need no imputation because the subset only holds
    samples where they are present. Variant covariate columns come from the
    genotype store, mean-imputed over the subset.

    Raises:
        SemanticError: A variant covariate is not in the genotype store.
    """
    rows = subset.included_indices
    y = np.asarray(table.column(phenotype)[rows], dtype=np.float64)

    columns = [table.column(name)[rows] for name in resolved.phenotype_names]
    columns += [
        store.variant_genotypes(locus, subset.mask, subset.index_remap)
        for locus in resolved.variant_loci
    ]
    names = resolved.phenotype_names + tuple(str(v) for v in resolved.variant_loci)

    if not columns:
        covariates = None
    else:
        covariates = np.column_stack(columns).astype(np.float64).reshape(
            len(rows), len(columns)
        )
        covariates.setflags(write=False)
    y.setflags(write=False)

    logger.debug(
        f"Design matrix: n0={len(rows)}, k={len(columns)}, columns={list(names)}"
    )
    return DesignMatrix(y=y, covariates=covariates, column_names=names)
