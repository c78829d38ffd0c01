"""I/O modules for assocquery.

- plink: PLINK binary format (.bed/.bim/.fam) -> GenotypeStore
- covariate: delimited phenotype/covariate table -> CovariateTable
"""

from assocquery.io.covariate import read_covariate_table
from assocquery.io.plink import PlinkData, load_genotype_store, load_plink_binary

__all__ = [
    "PlinkData",
    "load_genotype_store",
    "load_plink_binary",
    "read_covariate_table",
]
