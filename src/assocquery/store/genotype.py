"""Genotype stores at several block-width resolutions.

A GenotypeStore is a tabular view over variants: one row per variant with
``contig``, ``block``, ``start``, ``ref``, ``alt`` plus a genotype matrix of
shape (n_samples, n_variants) holding allele dosages 0.0/1.0/2.0 or NaN for
missing calls. ``block = start // block_width`` partitions each contig so
position filters can first narrow by block index.

Stores are immutable: arrays are marked read-only and narrowing returns a
new view. The three resolutions of a GenotypeStoreSet share the same
variant and genotype arrays and differ only in block width.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import numpy as np
from loguru import logger

from assocquery.core.errors import SemanticError

DEFAULT_BLOCK_WIDTHS = (100_000, 1_000_000, 10_000_000)


class Resolution(str, Enum):
    """Pre-aggregation granularity of a genotype store."""

    FINE = "fine"
    MEDIUM = "medium"
    COARSE = "coarse"


@dataclass(frozen=True)
class Variant:
    """A biallelic variant locus."""

    chrom: str
    pos: int
    ref: str
    alt: str

    def __str__(self) -> str:
        return f"{self.chrom}:{self.pos}:{self.ref}:{self.alt}"


def normalize_contig(label: str) -> str:
    """Strip a leading ``chr`` so "chr1" and "1" name the same contig."""
    label = str(label).strip()
    if label[:3].lower() == "chr":
        return label[3:]
    return label


def _readonly(a: np.ndarray) -> np.ndarray:
    a = np.asarray(a)
    a.setflags(write=False)
    return a


class GenotypeStore:
    """One resolution of the genotype dataset.

    Build with ``from_arrays``; the constructor trusts its inputs (sorted,
    normalized, read-only) and is used for cheap views.

    ``genotypes`` is the full shared dosage matrix and is never copied by
    narrowing: ``columns[i]`` is the genotype column of row ``i``. Genotype
    values are sliced out per chunk by ``iter_chunks`` and per variant by
    ``variant_genotypes``.
    """

    def __init__(
        self,
        contig: np.ndarray,
        start: np.ndarray,
        ref: np.ndarray,
        alt: np.ndarray,
        genotypes: np.ndarray,
        sample_ids: np.ndarray,
        block_width: int,
        resolution: Resolution | None = None,
        columns: np.ndarray | None = None,
    ) -> None:
        if columns is None:
            columns = _readonly(np.arange(len(start), dtype=np.int64))
        self.columns = columns
        self.contig = contig
        self.start = start
        self.ref = ref
        self.alt = alt
        self.genotypes = genotypes
        self.sample_ids = sample_ids
        self.block_width = block_width
        self.resolution = resolution
        self.block = _readonly(start // block_width)

    @classmethod
    def from_arrays(
        cls,
        contig: Sequence[str],
        start: Sequence[int],
        ref: Sequence[str],
        alt: Sequence[str],
        genotypes: np.ndarray,
        sample_ids: Sequence[str],
        block_width: int,
        resolution: Resolution | None = None,
    ) -> GenotypeStore:
        """Build a store from per-variant columns and a genotype matrix.

        Args:
            contig: Contig label per variant ("1" or "chr1").
            start: 1-based position per variant.
            ref: Reference allele per variant.
            alt: Alternate allele per variant.
            genotypes: Dosage matrix (n_samples, n_variants), NaN for missing.
            sample_ids: Sample identifiers in genotype row order.
            block_width: Genomic span of one block, in base pairs.
            resolution: Optional resolution tag.

        Returns:
            A read-only store with variants sorted by (contig, start, ref, alt).

        Raises:
            ValueError: If column lengths disagree or block_width is not positive.
        """
        if block_width <= 0:
            raise ValueError(f"block_width must be positive, got {block_width}")

        contig_arr = np.array([normalize_contig(c) for c in contig], dtype=object)
        start_arr = np.asarray(start, dtype=np.int64)
        ref_arr = np.asarray(ref, dtype=object)
        alt_arr = np.asarray(alt, dtype=object)
        genotypes = np.asarray(genotypes, dtype=np.float32)
        sample_arr = np.asarray(sample_ids, dtype=object)

        n_variants = len(start_arr)
        for label, arr in (("contig", contig_arr), ("ref", ref_arr), ("alt", alt_arr)):
            if len(arr) != n_variants:
                raise ValueError(
                    f"{label} has {len(arr)} entries but start has {n_variants}"
                )
        if genotypes.ndim != 2 or genotypes.shape != (len(sample_arr), n_variants):
            raise ValueError(
                f"genotypes shape {genotypes.shape} does not match "
                f"({len(sample_arr)} samples, {n_variants} variants)"
            )

        order = sorted(
            range(n_variants),
            key=lambda i: (contig_arr[i], start_arr[i], ref_arr[i], alt_arr[i]),
        )
        order = np.asarray(order, dtype=np.int64)

        return cls(
            contig=_readonly(contig_arr[order]),
            start=_readonly(start_arr[order]),
            ref=_readonly(ref_arr[order]),
            alt=_readonly(alt_arr[order]),
            genotypes=_readonly(np.ascontiguousarray(genotypes[:, order])),
            sample_ids=_readonly(sample_arr),
            block_width=block_width,
            resolution=resolution,
        )

    @property
    def n_samples(self) -> int:
        return self.genotypes.shape[0]

    @property
    def n_variants(self) -> int:
        return len(self.start)

    def with_block_width(
        self, block_width: int, resolution: Resolution | None = None
    ) -> GenotypeStore:
        """Re-block the same variants at another width (arrays are shared)."""
        if block_width <= 0:
            raise ValueError(f"block_width must be positive, got {block_width}")
        return GenotypeStore(
            self.contig,
            self.start,
            self.ref,
            self.alt,
            self.genotypes,
            self.sample_ids,
            block_width,
            resolution,
            self.columns,
        )

    def where(self, mask: np.ndarray) -> GenotypeStore:
        """Return the view of rows where ``mask`` is True."""
        mask = np.asarray(mask, dtype=bool)
        if mask.shape != (self.n_variants,):
            raise ValueError(
                f"mask has shape {mask.shape}, expected ({self.n_variants},)"
            )
        idx = np.flatnonzero(mask)
        return GenotypeStore(
            _readonly(self.contig[idx]),
            _readonly(self.start[idx]),
            _readonly(self.ref[idx]),
            _readonly(self.alt[idx]),
            self.genotypes,
            self.sample_ids,
            self.block_width,
            self.resolution,
            _readonly(self.columns[idx]),
        )

    def variant(self, i: int) -> Variant:
        return Variant(
            str(self.contig[i]), int(self.start[i]), str(self.ref[i]), str(self.alt[i])
        )

    def variants(self) -> Iterator[Variant]:
        for i in range(self.n_variants):
            yield self.variant(i)

    def find(self, locus: Variant) -> int | None:
        """Row index of ``locus``, or None if the store does not hold it."""
        chrom = normalize_contig(locus.chrom)
        hits = np.flatnonzero((self.start == locus.pos) & (self.contig == chrom))
        for i in hits:
            if self.ref[i] == locus.ref and self.alt[i] == locus.alt:
                return int(i)
        return None

    def variant_genotypes(
        self, locus: Variant, sample_mask: np.ndarray, index_remap: np.ndarray
    ) -> np.ndarray:
        """Genotype column of one variant for the included samples.

        Missing calls are replaced by the mean of the observed calls among
        included samples (0.0 when none are observed).

        Args:
            locus: Variant to look up.
            sample_mask: Boolean inclusion mask over all samples.
            index_remap: Original sample index -> position within the subset.

        Returns:
            float64 array of length ``sample_mask.sum()`` in subset order.

        Raises:
            SemanticError: If the store does not contain ``locus``.
        """
        i = self.find(locus)
        if i is None:
            raise SemanticError(f"Covariate variant {locus} not found in genotype data")
        rows = np.flatnonzero(sample_mask)
        x = np.empty(len(rows), dtype=np.float64)
        x[index_remap[rows]] = self.genotypes[rows, self.columns[i]]
        missing = np.isnan(x)
        if missing.any():
            fill = x[~missing].mean() if (~missing).any() else 0.0
            x[missing] = fill
        return x

    def iter_chunks(
        self, chunk_size: int
    ) -> Iterator[tuple[list[Variant], np.ndarray]]:
        """Yield (variants, genotype block (n_samples, m)) in row order.

        Only one chunk of genotype values is materialized at a time; a chunk
        whose rows map to consecutive columns is a view, not a copy.
        """
        for lo in range(0, self.n_variants, chunk_size):
            hi = min(lo + chunk_size, self.n_variants)
            variants = [self.variant(i) for i in range(lo, hi)]
            yield variants, self._genotype_block(self.columns[lo:hi])

    def _genotype_block(self, cols: np.ndarray) -> np.ndarray:
        if len(cols) and cols[-1] - cols[0] == len(cols) - 1:
            return self.genotypes[:, cols[0] : cols[-1] + 1]
        return self.genotypes[:, cols]

    def __repr__(self) -> str:
        return (
            f"GenotypeStore(resolution={self.resolution}, "
            f"block_width={self.block_width}, n_samples={self.n_samples}, "
            f"n_variants={self.n_variants})"
        )


class GenotypeStoreSet:
    """The fine, medium and coarse resolutions of one dataset.

    Attributes:
        fine: Finest-grained store (narrow queries).
        medium: Intermediate store.
        coarse: Coarsest store (chromosome-scale queries).
    """

    def __init__(
        self, fine: GenotypeStore, medium: GenotypeStore, coarse: GenotypeStore
    ) -> None:
        for label, store in (("medium", medium), ("coarse", coarse)):
            if not np.array_equal(store.sample_ids, fine.sample_ids):
                raise ValueError(
                    f"{label} store sample list differs from the fine store"
                )
        self.fine = fine
        self.medium = medium
        self.coarse = coarse

    @property
    def sample_ids(self) -> np.ndarray:
        return self.fine.sample_ids

    @property
    def n_samples(self) -> int:
        return self.fine.n_samples

    def get(self, resolution: Resolution) -> GenotypeStore:
        return {
            Resolution.FINE: self.fine,
            Resolution.MEDIUM: self.medium,
            Resolution.COARSE: self.coarse,
        }[resolution]

    @classmethod
    def from_store(
        cls,
        store: GenotypeStore,
        block_widths: tuple[int, int, int] = DEFAULT_BLOCK_WIDTHS,
    ) -> GenotypeStoreSet:
        """Build all three resolutions from one store's variants."""
        fine_w, medium_w, coarse_w = block_widths
        return cls(
            fine=store.with_block_width(fine_w, Resolution.FINE),
            medium=store.with_block_width(medium_w, Resolution.MEDIUM),
            coarse=store.with_block_width(coarse_w, Resolution.COARSE),
        )

    @classmethod
    def from_plink(
        cls,
        bfile: str | Path,
        block_widths: tuple[int, int, int] = DEFAULT_BLOCK_WIDTHS,
        show_progress: bool = False,
    ) -> GenotypeStoreSet:
        """Load a PLINK fileset once and build the three resolutions."""
        from assocquery.io.plink import load_genotype_store

        store = load_genotype_store(
            Path(bfile), block_width=block_widths[0], show_progress=show_progress
        )
        stores = cls.from_store(store, block_widths)
        logger.info(
            f"Genotype stores ready: {stores.n_samples} samples, "
            f"{store.n_variants} variants, block widths {block_widths}"
        )
        return stores
