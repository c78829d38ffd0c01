"""Pytest fixtures for the assocquery test suite."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import numpy as np
import pytest

from assocquery.core.config import ServiceConfig
from assocquery.service import AssociationService
from assocquery.store import CovariateTable, GenotypeStore, GenotypeStoreSet

# =============================================================================
# Test Tier System
# =============================================================================
#
# tier0 - Fast Unit Tests
#   - Pure computation on small in-memory stores
#   - Run: pytest -m tier0
#
# tier1 - End-to-end Tests
#   - Full service pipeline, HTTP app, CLI, PLINK files written to tmp_path
#   - Run: pytest -m tier1
# =============================================================================

N_SAMPLES = 40

# (contig, start, ref, alt); "constant" row is monomorphic on purpose
VARIANTS = [
    ("1", 5, "A", "T"),
    ("1", 5, "A", "C"),
    ("1", 100, "G", "A"),
    ("1", 250_000, "C", "T"),
    ("1", 700_000, "T", "G"),
    ("1", 2_000_000, "A", "G"),
    ("1", 50_000_000, "G", "C"),
    ("chr2", 5, "C", "A"),
]
CONSTANT_VARIANT = ("1", 100, "G", "A")


def make_genotypes(n_samples: int = N_SAMPLES, seed: int = 7) -> np.ndarray:
    rng = np.random.default_rng(seed)
    G = rng.choice([0.0, 1.0, 2.0], size=(n_samples, len(VARIANTS)), p=[0.4, 0.4, 0.2])
    G[:, VARIANTS.index(CONSTANT_VARIANT)] = 1.0
    # a few missing calls in the first variant
    G[[3, 17], 0] = np.nan
    return G.astype(np.float32)


def make_covariates(sample_ids, seed: int = 11) -> CovariateTable:
    rng = np.random.default_rng(seed)
    n = len(sample_ids)
    t2d = rng.integers(0, 2, size=n).astype(float)
    cov1 = rng.normal(size=n)
    cov2 = rng.normal(size=n)
    sex = rng.integers(0, 2, size=n).astype(float)
    t2d[[0, 9]] = np.nan
    cov1[[1, 9, 20]] = np.nan
    return CovariateTable(
        sample_ids, {"T2D": t2d, "Cov1": cov1, "Cov2": cov2, "SEX": sex}
    )


class RecordingEngine:
    """Regression engine double: records calls, yields a fixed p-value."""

    def __init__(self, p_value: float | None = 0.5) -> None:
        self.p_value = p_value
        self.calls: list[dict] = []

    def fit(self, store, y, covariates, sample_mask, index_remap, min_mac, max_mac):
        self.calls.append(
            {
                "store": store,
                "y": y,
                "covariates": covariates,
                "sample_mask": sample_mask,
                "index_remap": index_remap,
                "min_mac": min_mac,
                "max_mac": max_mac,
            }
        )
        return self._results(store)

    def _results(self, store) -> Iterator:
        for v in store.variants():
            yield v, self.p_value


@pytest.fixture
def sample_ids() -> list[str]:
    return [f"s{i}" for i in range(N_SAMPLES)]


@pytest.fixture
def genotype_store(sample_ids) -> GenotypeStore:
    contig, start, ref, alt = zip(*VARIANTS)
    return GenotypeStore.from_arrays(
        contig, start, ref, alt, make_genotypes(), sample_ids, block_width=100_000
    )


@pytest.fixture
def store_set(genotype_store) -> GenotypeStoreSet:
    return GenotypeStoreSet.from_store(genotype_store)


@pytest.fixture
def covariate_table(sample_ids) -> CovariateTable:
    return make_covariates(sample_ids)


@pytest.fixture
def config() -> ServiceConfig:
    return ServiceConfig()


@pytest.fixture
def service(store_set, covariate_table, config) -> AssociationService:
    return AssociationService(store_set, covariate_table, config=config)


@pytest.fixture
def recording_engine() -> RecordingEngine:
    return RecordingEngine()


@pytest.fixture
def recording_service(
    store_set, covariate_table, config, recording_engine
) -> AssociationService:
    return AssociationService(
        store_set, covariate_table, engine=recording_engine, config=config
    )


@pytest.fixture
def plink_files(tmp_path: Path, sample_ids) -> tuple[Path, Path]:
    """Write the fixture dataset as PLINK files plus a covariate table.

    Returns:
        (bfile prefix, covariate table path)
    """
    from bed_reader import to_bed

    contig, start, ref, alt = zip(*VARIANTS)
    bfile = tmp_path / "fixture"
    to_bed(
        f"{bfile}.bed",
        make_genotypes(),
        properties={
            "iid": sample_ids,
            "chromosome": [c.removeprefix("chr") for c in contig],
            "bp_position": list(start),
            "allele_1": list(alt),
            "allele_2": list(ref),
        },
    )

    table = make_covariates(sample_ids)
    cov_path = tmp_path / "covariates.tsv"
    names = sorted(table.names)
    lines = ["sample\t" + "\t".join(names)]
    for i, sid in enumerate(sample_ids):
        fields = []
        for name in names:
            v = table.column(name)[i]
            fields.append("NA" if np.isnan(v) else repr(float(v)))
        lines.append(sid + "\t" + "\t".join(fields))
    cov_path.write_text("\n".join(lines) + "\n")
    return bfile, cov_path
