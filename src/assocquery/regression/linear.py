"""Linear regression association test.

For each variant, fits ``y ~ 1 + covariates + x`` over the included samples
and reports the two-sided t-test p-value of the genotype coefficient, with
``n0 - rank(1, covariates) - 1`` degrees of freedom.

Covariates are projected out once per request (orthonormal basis of the
intercept + covariate columns); each chunk of variants is then residualised
against that basis with a couple of matrix products, so the per-variant work
is vectorised over the whole chunk.
"""

from __future__ import annotations

from collections.abc import Iterator

import numpy as np
from loguru import logger

from assocquery.core.jax_config import configure_jax
from assocquery.core.threading import apply_blas_limit, resolve_blas_threads
from assocquery.regression.stats import minor_allele_counts, t_two_sided_pvalues
from assocquery.store.genotype import GenotypeStore, Variant

DEFAULT_CHUNK_SIZE = 4096

# Residual genotype variance below this fraction of the raw variance means
# the genotype is collinear with the covariates
_COLLINEAR_TOL = 1e-10


def _column_space_basis(C: np.ndarray) -> np.ndarray:
    """Orthonormal basis of the column space of C (handles rank deficiency)."""
    U, s, _ = np.linalg.svd(C, full_matrices=False)
    tol = s.max(initial=0.0) * max(C.shape) * np.finfo(np.float64).eps
    return U[:, s > tol]


class LinearRegressionEngine:
    """Least-squares association test with mean imputation.

    Args:
        chunk_size: Variants evaluated per vectorised batch.
        n_threads: Process-wide BLAS thread limit, applied once here (None:
            ASSOCQUERY_BLAS_THREADS, else the physical core count).
    """

    def __init__(
        self, chunk_size: int = DEFAULT_CHUNK_SIZE, n_threads: int | None = None
    ) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.chunk_size = chunk_size
        self.n_threads = apply_blas_limit(resolve_blas_threads(n_threads))
        configure_jax(enable_x64=True)

    def fit(
        self,
        store: GenotypeStore,
        y: np.ndarray,
        covariates: np.ndarray | None,
        sample_mask: np.ndarray,
        index_remap: np.ndarray,
        min_mac: int,
        max_mac: int,
    ) -> Iterator[tuple[Variant, float | None]]:
        """Yield (variant, p-value or None) for every row of ``store``.

        Args:
            store: Filtered genotype store.
            y: Response values for the included samples, shape (n0,).
            covariates: Covariate matrix (n0, k) or None.
            sample_mask: Boolean inclusion mask over all store samples.
            index_remap: Original sample index -> subset position.
            min_mac: Smallest minor allele count tested (inclusive).
            max_mac: Largest minor allele count tested (inclusive).
        """
        rows = np.flatnonzero(sample_mask)
        n0 = len(rows)

        if n0 > 0:
            if covariates is None:
                C = np.ones((n0, 1))
            else:
                C = np.column_stack([np.ones(n0), covariates])
            Q = _column_space_basis(C)
            df = n0 - Q.shape[1] - 1
        else:
            df = 0

        if df < 1:
            logger.debug(f"No residual degrees of freedom (n0={n0}); nothing is fit")
            for v in store.variants():
                yield v, None
            return

        y = np.asarray(y, dtype=np.float64)
        y_res = y - Q @ (Q.T @ y)
        yy = float(y_res @ y_res)
        positions = index_remap[rows]

        for variants, G in store.iter_chunks(self.chunk_size):
            X = np.empty((n0, G.shape[1]), dtype=np.float64)
            X[positions] = G[rows]
            p_values = self._chunk_pvalues(X, Q, y_res, yy, df, min_mac, max_mac)
            yield from zip(variants, p_values)

    @staticmethod
    def _chunk_pvalues(
        X: np.ndarray,
        Q: np.ndarray,
        y_res: np.ndarray,
        yy: float,
        df: int,
        min_mac: int,
        max_mac: int,
    ) -> list[float | None]:
        called = ~np.isnan(X)
        n_called = called.sum(axis=0)
        mac = minor_allele_counts(X)

        means = np.where(called, X, 0.0).sum(axis=0) / np.maximum(n_called, 1)
        X = np.where(called, X, means)

        centered_ss = ((X - X.mean(axis=0)) ** 2).sum(axis=0)
        X_res = X - Q @ (Q.T @ X)
        xx = (X_res**2).sum(axis=0)
        xy = X_res.T @ y_res

        with np.errstate(divide="ignore", invalid="ignore"):
            beta = xy / xx
            rss = yy - beta * xy
            se = np.sqrt(rss / df / xx)
            t_stats = beta / se
        p_values = t_two_sided_pvalues(t_stats, float(df))

        untestable = (
            (centered_ss == 0.0)
            | (xx <= _COLLINEAR_TOL * centered_ss)
            | (mac < min_mac)
            | (mac > max_mac)
            | ~np.isfinite(p_values)
        )
        return [
            None if bad else float(p) for bad, p in zip(untestable, p_values)
        ]
