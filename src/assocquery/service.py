"""Association query service.

Runs one getStats request end to end: validate, resolve covariates,
compile filters, build the sample subset and design matrix, pick the store
resolution, run the regression, sort, and assemble the response.

Example:
    >>> service = AssociationService(stores, covariate_table)
    >>> result = service.get_stats('{"api_version": 1, "limit": 5}')
    >>> result.count
    5
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from assocquery.core.config import ServiceConfig
from assocquery.core.errors import AssocQueryError
from assocquery.models import (
    AssociationRequest,
    AssociationResult,
    Stat,
    extract_passback,
    parse_request,
)
from assocquery.query.covariates import resolve_covariates
from assocquery.query.design import build_design_matrix
from assocquery.query.filters import apply_filters, compile_filters, select_resolution
from assocquery.query.samples import build_sample_subset
from assocquery.query.sorting import sort_stats, validate_sort_keys
from assocquery.query.validate import validate_request
from assocquery.regression.base import RegressionEngine, VariantStat
from assocquery.regression.dispatch import dispatch_regression
from assocquery.regression.linear import LinearRegressionEngine
from assocquery.store.covariate_table import CovariateTable
from assocquery.store.genotype import GenotypeStoreSet, Resolution


@dataclass
class QueryPlan:
    """What a request compiled to, recorded for logging and tests.

    Attributes:
        resolution: Store resolution chosen for the query.
        width: Query span used to choose it.
        is_single_variant: Whether a ``pos eq`` filter was given.
        n_samples: Samples in the store.
        n_included: Samples with complete phenotype/covariate values.
        n_covariates: Design matrix column count.
        n_candidates: Variants left after chrom/pos filtering.
        timing: Seconds spent in 'compile_s', 'regression_s', 'total_s'.
    """

    resolution: Resolution
    width: int
    is_single_variant: bool
    n_samples: int
    n_included: int
    n_covariates: int
    n_candidates: int
    timing: dict[str, float] = field(default_factory=dict)


class AssociationService:
    """Stateless request handler over shared, read-only stores.

    Args:
        stores: The three genotype store resolutions.
        covariates: Phenotype/covariate table aligned to the store samples.
        engine: Regression engine (defaults to LinearRegressionEngine).
        config: Service configuration (defaults to ServiceConfig.from_env()).

    Raises:
        ValueError: If the covariate table rows do not match the store samples.
    """

    def __init__(
        self,
        stores: GenotypeStoreSet,
        covariates: CovariateTable,
        engine: RegressionEngine | None = None,
        config: ServiceConfig | None = None,
    ) -> None:
        if list(covariates.sample_ids) != list(stores.sample_ids):
            raise ValueError(
                "Covariate table samples must match the genotype store samples "
                "(use CovariateTable.aligned_to)"
            )
        self.stores = stores
        self.covariates = covariates
        self.engine = engine if engine is not None else LinearRegressionEngine()
        self.config = config if config is not None else ServiceConfig.from_env()

    def get_stats(
        self, request: AssociationRequest | str | bytes | dict[str, Any]
    ) -> AssociationResult:
        """Answer one request; never raises for request errors.

        See get_stats_with_plan for arguments.
        """
        result, _ = self.get_stats_with_plan(request)
        return result

    def get_stats_with_plan(
        self, request: AssociationRequest | str | bytes | dict[str, Any]
    ) -> tuple[AssociationResult, QueryPlan | None]:
        """Answer one request and report the plan it compiled to.

        Args:
            request: Parsed request, raw JSON text/bytes, or a decoded JSON object.

        Returns:
            (result, plan). ``result.is_error`` is True when the request was
            rejected, with ``error_message`` naming the problem; plan is then
            None.
        """
        log = logger.bind(request_id=uuid.uuid4().hex[:8])
        passback = None
        try:
            if isinstance(request, AssociationRequest):
                req = request
            else:
                log.debug(f"request: {request!r}")
                passback = extract_passback(request)
                req = parse_request(request)
            passback = req.passback
            return self._run(req, log)
        except AssocQueryError as e:
            log.warning(f"Request rejected ({e.kind}): {e.message}")
            return AssociationResult.error(e.message, passback), None

    def _run(
        self, req: AssociationRequest, log
    ) -> tuple[AssociationResult, QueryPlan]:
        t_start = time.perf_counter()
        config = self.config

        limit = validate_request(req, config)
        phenotype = req.phenotype if req.phenotype is not None else config.default_phenotype
        resolved = resolve_covariates(req.covariates, phenotype, self.covariates.names)
        compiled = compile_filters(req.variant_filters, config.default_chrom)
        sort_keys = validate_sort_keys(req.sort_by)

        subset = build_sample_subset(
            self.covariates, (phenotype,) + resolved.phenotype_names
        )
        design = build_design_matrix(
            phenotype, resolved, self.covariates, subset, self.stores.fine
        )

        bounds = compiled.bounds
        resolution = select_resolution(bounds.width, config)
        store = apply_filters(self.stores.get(resolution), compiled)
        t_compiled = time.perf_counter()

        plan = QueryPlan(
            resolution=resolution,
            width=bounds.width,
            is_single_variant=bounds.is_single_variant,
            n_samples=subset.n,
            n_included=subset.n_included,
            n_covariates=design.n_covariates,
            n_candidates=store.n_variants,
        )
        log.info(
            f"{phenotype}: {plan.n_included}/{plan.n_samples} samples, "
            f"{plan.n_covariates} covariates, width={plan.width} -> "
            f"{resolution.value} store, {plan.n_candidates} candidate variants"
        )

        stats = dispatch_regression(
            self.engine, store, design, subset, bounds, config.default_min_mac, limit
        )
        t_regression = time.perf_counter()

        stats = sort_stats(stats, sort_keys)
        plan.timing = {
            "compile_s": t_compiled - t_start,
            "regression_s": t_regression - t_compiled,
            "total_s": time.perf_counter() - t_start,
        }
        log.info(f"Returning {len(stats)} stats in {plan.timing['total_s']:.3f}s")

        return assemble_result(req, stats), plan


def assemble_result(req: AssociationRequest, stats: list[VariantStat]) -> AssociationResult:
    """Build the success response; count-only requests omit the stat list."""
    if req.count:
        return AssociationResult(
            is_error=False, passback=req.passback, stats=None, count=len(stats)
        )
    wire_stats = [
        Stat(chrom=s.chrom, pos=s.pos, ref=s.ref, alt=s.alt, p_value=s.p_value)
        for s in stats
    ]
    return AssociationResult(
        is_error=False, passback=req.passback, stats=wire_stats, count=len(stats)
    )
