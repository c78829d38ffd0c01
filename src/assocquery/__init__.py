"""assocquery: association statistics over pre-aggregated genotype stores.

Turns a declarative association request (phenotype, covariates, variant
filters, sort order) into a sample subset, a covariate design matrix and a
filtered slice of one of several genotype store resolutions, then runs a
per-variant regression and returns sorted statistics.

Example:
    >>> from assocquery import AssociationService, GenotypeStoreSet
    >>> from assocquery.io import read_covariate_table
    >>> stores = GenotypeStoreSet.from_plink("data/t2d")
    >>> table = read_covariate_table("data/covariates.tsv", stores.sample_ids)
    >>> service = AssociationService(stores, table)
    >>> result = service.get_stats({"api_version": 1, "limit": 10})
"""

import sys
from importlib.metadata import version

from loguru import logger

__version__ = version("assocquery")

# Configure loguru with sensible defaults on import
# Users can override by calling logger.remove()/add()
logger.remove()  # Remove default handler
logger.add(
    sys.stdout,
    level="INFO",
    format="{time:HH:mm:ss} | <level>{level: <8}</level> | {message}",
    colorize=True,
)

from assocquery.service import AssociationService  # noqa: E402
from assocquery.store import CovariateTable, GenotypeStore, GenotypeStoreSet  # noqa: E402

__all__ = [
    "AssociationService",
    "CovariateTable",
    "GenotypeStore",
    "GenotypeStoreSet",
    "__version__",
]
