"""In-memory data stores consumed by the query pipeline.

- genotype: GenotypeStore (one resolution) and GenotypeStoreSet (all three)
- covariate_table: CovariateTable (per-sample phenotype/covariate values)
"""

from assocquery.store.covariate_table import CovariateTable
from assocquery.store.genotype import (
    GenotypeStore,
    GenotypeStoreSet,
    Resolution,
    Variant,
    normalize_contig,
)

__all__ = [
    "CovariateTable",
    "GenotypeStore",
    "GenotypeStoreSet",
    "Resolution",
    "Variant",
    "normalize_contig",
]
