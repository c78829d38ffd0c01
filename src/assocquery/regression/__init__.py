"""Per-variant regression.

- base: VariantStat and the RegressionEngine protocol
- stats: Student-t p-values
- linear: LinearRegressionEngine (least squares with mean imputation)
- dispatch: limit-bounded collection of engine output
"""

from assocquery.regression.base import RegressionEngine, VariantStat
from assocquery.regression.dispatch import dispatch_regression
from assocquery.regression.linear import LinearRegressionEngine

__all__ = [
    "LinearRegressionEngine",
    "RegressionEngine",
    "VariantStat",
    "dispatch_regression",
]
