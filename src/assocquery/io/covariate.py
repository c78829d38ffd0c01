"""Phenotype/covariate table I/O.

File format:
- Tab or whitespace delimited, first row is a header
- First column holds the sample ID (its header name is ignored)
- Every other column is one numeric phenotype or covariate
- Missing values are "NA" (case-sensitive) or an empty field
"""

from collections.abc import Sequence
from pathlib import Path

import numpy as np
from loguru import logger

from assocquery.store.covariate_table import CovariateTable

MISSING_TOKENS = frozenset({"NA", ""})


def _split(line: str) -> list[str]:
    line = line.rstrip("\r\n")
    return line.split("\t") if "\t" in line else line.split()


def read_covariate_table(
    path: Path, sample_ids: Sequence[str] | None = None
) -> CovariateTable:
    """Read a phenotype/covariate table.

    Args:
        path: Path to the table file.
        sample_ids: Optional sample order to align the table to (normally the
            genotype store's sample IDs). Samples missing from the file become
            all-missing rows.

    Returns:
        CovariateTable with one column per header field after the first.

    Raises:
        ValueError: If the file is empty, has no value columns, repeats a
            column name or sample ID, has a ragged row, or holds a value that
            cannot be parsed as numeric.

    Example:
        Table contents:
        ```
        sample  T2D  SEX  AGE
        s1      1    0    35.0
        s2      0    1    NA
        ```

        >>> table = read_covariate_table(Path("covariates.tsv"))
        >>> sorted(table.names)
        ['AGE', 'SEX', 'T2D']
    """
    path = Path(path)
    with open(path) as f:
        lines = [line for line in f if line.strip()]

    if not lines:
        raise ValueError(f"Covariate file is empty: {path}")

    header = _split(lines[0])
    names = header[1:]
    if not names:
        raise ValueError(f"Covariate file has no value columns: {path}")
    if len(set(names)) != len(names):
        raise ValueError(f"Covariate file repeats a column name: {path}")

    ids: list[str] = []
    values = np.full((len(lines) - 1, len(names)), np.nan)
    for i, line in enumerate(lines[1:]):
        parts = _split(line)
        if len(parts) != len(header):
            raise ValueError(
                f"Covariate file row {i + 2} has {len(parts)} columns "
                f"but expected {len(header)} (based on header)"
            )
        ids.append(parts[0])
        for j, val in enumerate(parts[1:]):
            if val.strip() in MISSING_TOKENS:
                continue
            try:
                values[i, j] = float(val)
            except ValueError as e:
                raise ValueError(
                    f"Covariate file row {i + 2}, column '{names[j]}': "
                    f"cannot parse '{val}' as numeric (use 'NA' for missing)"
                ) from e

    if len(set(ids)) != len(ids):
        raise ValueError(f"Covariate file repeats a sample ID: {path}")

    table = CovariateTable(ids, {name: values[:, j] for j, name in enumerate(names)})
    logger.info(f"Loaded covariate table {path}: {len(ids)} samples, {len(names)} columns")
    if sample_ids is not None:
        table = table.aligned_to(sample_ids)
    return table
