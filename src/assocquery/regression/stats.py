"""Test statistics for the linear regression engine.

Uses JAX's betainc for the Student-t survival function, the same way
F-test p-values are computed from the regularized incomplete beta function.
"""

import jax.numpy as jnp
import numpy as np
from jax.scipy.special import betainc


def t_two_sided_pvalues(t_stats: np.ndarray, df: float) -> np.ndarray:
    """Two-sided p-values for Student-t statistics.

    P(|T| > t) = I_{df/(df + t^2)}(df/2, 1/2)

    where I_x(a, b) is the regularized incomplete beta function.

    Args:
        t_stats: t statistics (any shape). Non-finite entries give NaN.
        df: Degrees of freedom (> 0).

    Returns:
        Array of p-values with the shape of ``t_stats``.
    """
    t_stats = np.asarray(t_stats, dtype=np.float64)
    finite = np.isfinite(t_stats)
    t_sq = np.where(finite, t_stats**2, 0.0)
    z = df / (df + t_sq)
    p = np.asarray(betainc(jnp.asarray(df / 2.0), 0.5, jnp.asarray(z)), dtype=np.float64)
    p = np.clip(p, 0.0, 1.0)
    return np.where(finite, p, np.nan)


def minor_allele_counts(genotypes: np.ndarray) -> np.ndarray:
    """Minor allele count per column over called (non-NaN) genotypes.

    Args:
        genotypes: Dosage matrix (n_samples, n_variants) with NaN for missing.

    Returns:
        int64 array of length n_variants.
    """
    called = ~np.isnan(genotypes)
    alt_count = np.where(called, genotypes, 0.0).sum(axis=0)
    total = 2.0 * called.sum(axis=0)
    return np.rint(np.minimum(alt_count, total - alt_count)).astype(np.int64)
