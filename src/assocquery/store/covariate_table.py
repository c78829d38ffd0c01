"""Per-sample phenotype and covariate values.

The table is keyed by sample (in genotype-store order) and column name.
Values are float64 with NaN marking a missing value.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

import numpy as np
from loguru import logger


class CovariateTable:
    """Read-only phenotype/covariate table.

    Args:
        sample_ids: Sample identifiers, one per row.
        columns: Column name -> per-sample values (None/NaN for missing).

    Raises:
        ValueError: If a column length differs from the sample count.
    """

    def __init__(
        self,
        sample_ids: Sequence[str],
        columns: Mapping[str, Iterable[float | None]],
    ) -> None:
        self.sample_ids = np.asarray(sample_ids, dtype=object)
        self.sample_ids.setflags(write=False)
        self._columns: dict[str, np.ndarray] = {}
        for name, values in columns.items():
            arr = np.array(
                [np.nan if v is None else v for v in values], dtype=np.float64
            )
            if arr.shape != (len(self.sample_ids),):
                raise ValueError(
                    f"Covariate column '{name}' has {arr.size} values "
                    f"but the table has {len(self.sample_ids)} samples"
                )
            arr.setflags(write=False)
            self._columns[name] = arr

    @property
    def n_samples(self) -> int:
        return len(self.sample_ids)

    @property
    def names(self) -> frozenset[str]:
        return frozenset(self._columns)

    def __contains__(self, name: object) -> bool:
        return name in self._columns

    def column(self, name: str) -> np.ndarray:
        return self._columns[name]

    def aligned_to(self, sample_ids: Sequence[str]) -> CovariateTable:
        """Reorder rows to ``sample_ids``; unknown samples get all-missing rows."""
        position = {sid: i for i, sid in enumerate(self.sample_ids)}
        rows = np.array([position.get(sid, -1) for sid in sample_ids], dtype=np.int64)
        n_unmatched = int((rows < 0).sum())
        if n_unmatched:
            logger.warning(
                f"{n_unmatched} of {len(rows)} genotyped samples have no "
                "covariate row; they are treated as missing for every column"
            )
        columns = {}
        for name, values in self._columns.items():
            aligned = np.full(len(rows), np.nan)
            found = rows >= 0
            aligned[found] = values[rows[found]]
            columns[name] = aligned
        return CovariateTable(sample_ids, columns)

    def __repr__(self) -> str:
        return (
            f"CovariateTable(n_samples={self.n_samples}, "
            f"columns={sorted(self._columns)})"
        )
