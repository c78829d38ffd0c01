"""Run the regression engine over a filtered store, bounded by the limit."""

from __future__ import annotations

from itertools import islice

from loguru import logger

from assocquery.query.design import DesignMatrix
from assocquery.query.filters import FilterBounds
from assocquery.query.samples import SampleSubset
from assocquery.regression.base import RegressionEngine, VariantStat
from assocquery.store.genotype import GenotypeStore


def dispatch_regression(
    engine: RegressionEngine,
    store: GenotypeStore,
    design: DesignMatrix,
    subset: SampleSubset,
    bounds: FilterBounds,
    default_min_mac: int,
    limit: int,
) -> list[VariantStat]:
    """Collect at most ``limit`` statistics from ``engine``.

    The first ``limit`` variants the engine produces are taken, before any
    sorting; evaluation stops once the limit is reached.

    Args:
        engine: Regression engine.
        store: Store narrowed by the compiled filters.
        design: Response vector and covariates.
        subset: Sample inclusion mask and index remap.
        bounds: Compiled bounds (for the MAC range).
        default_min_mac: Minimum MAC when no mac filter was given.
        limit: Maximum number of statistics to collect.

    Returns:
        Statistics in engine output order.
    """
    min_mac, max_mac = bounds.mac_range(default_min_mac)
    results = engine.fit(
        store,
        design.y,
        design.covariates,
        subset.mask,
        subset.index_remap,
        min_mac,
        max_mac,
    )
    stats = [VariantStat.from_variant(v, p) for v, p in islice(results, limit)]
    n_tested = sum(s.p_value is not None for s in stats)
    logger.debug(
        f"Regression: {len(stats)} variants collected (limit {limit}), "
        f"{n_tested} with p-values, MAC range [{min_mac}, {max_mac}]"
    )
    return stats
