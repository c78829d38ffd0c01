"""Request-to-computation compiler.

Stages, in pipeline order:
- validate: protocol/version/limit checks
- covariates: covariate sum types and CovariateResolver
- filters: filter sum types, bounds fold, resolution selection, store narrowing
- sorting: sort-key validation and stable multi-key sort
- samples: sample inclusion mask and index remap
- design: response vector and covariate design matrix
"""

from assocquery.query.covariates import (
    PhenotypeCovariate,
    ResolvedCovariates,
    VariantCovariate,
    parse_covariate,
    resolve_covariates,
)
from assocquery.query.design import DesignMatrix, build_design_matrix
from assocquery.query.filters import (
    ChromFilter,
    CompiledFilters,
    FilterBounds,
    MacFilter,
    PosFilter,
    apply_filters,
    compile_filters,
    fold_bounds,
    parse_filter,
    select_resolution,
)
from assocquery.query.samples import SampleSubset, build_sample_subset
from assocquery.query.sorting import sort_stats, validate_sort_keys
from assocquery.query.validate import validate_request

__all__ = [
    "ChromFilter",
    "CompiledFilters",
    "DesignMatrix",
    "FilterBounds",
    "MacFilter",
    "PhenotypeCovariate",
    "PosFilter",
    "ResolvedCovariates",
    "SampleSubset",
    "VariantCovariate",
    "apply_filters",
    "build_design_matrix",
    "build_sample_subset",
    "compile_filters",
    "fold_bounds",
    "parse_covariate",
    "parse_filter",
    "resolve_covariates",
    "select_resolution",
    "sort_stats",
    "validate_request",
    "validate_sort_keys",
]
