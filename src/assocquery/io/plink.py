"""PLINK binary format I/O using bed-reader.

Loads a PLINK fileset (.bed/.bim/.fam) into the arrays a GenotypeStore is
built from. Dosages count allele_1 (the .bim A1 allele), so allele_1 is the
alternate allele and allele_2 the reference allele.
"""

from dataclasses import dataclass
from pathlib import Path

import numpy as np
from bed_reader import open_bed
from loguru import logger

from assocquery.core.progress import progress_iterator
from assocquery.store.genotype import GenotypeStore, Resolution


@dataclass
class PlinkData:
    """Container for PLINK binary data.

    Attributes:
        genotypes: Genotype matrix with shape (n_samples, n_snps).
            Values are 0.0, 1.0, 2.0 copies of allele_1, or NaN (missing).
        iid: Individual IDs, one per sample.
        chromosome: Chromosome for each SNP.
        bp_position: Base pair position for each SNP.
        allele_1: Counted (alternate) allele for each SNP.
        allele_2: Reference allele for each SNP.
    """

    genotypes: np.ndarray
    iid: np.ndarray
    chromosome: np.ndarray
    bp_position: np.ndarray
    allele_1: np.ndarray
    allele_2: np.ndarray

    @property
    def n_samples(self) -> int:
        """Number of samples in the dataset."""
        return self.genotypes.shape[0]

    @property
    def n_snps(self) -> int:
        """Number of SNPs in the dataset."""
        return self.genotypes.shape[1]


def load_plink_binary(
    bfile: Path, chunk_size: int = 10_000, show_progress: bool = False
) -> PlinkData:
    """Load PLINK binary files (.bed/.bim/.fam).

    Genotypes are read in windows of ``chunk_size`` SNPs so a progress bar
    can report on large filesets.

    Args:
        bfile: Path prefix for PLINK files (without .bed/.bim/.fam extension).
        chunk_size: Number of SNPs per windowed read.
        show_progress: Whether to show a progress bar.

    Returns:
        PlinkData container with genotypes and metadata.

    Raises:
        FileNotFoundError: If the .bed file does not exist.
    """
    bed_path = Path(f"{bfile}.bed")

    if not bed_path.exists():
        raise FileNotFoundError(f"PLINK .bed file not found: {bed_path}")

    with open_bed(bed_path) as bed:
        n_samples = bed.iid_count
        n_snps = bed.sid_count
        genotypes = np.empty((n_samples, n_snps), dtype=np.float32)

        starts = range(0, n_snps, chunk_size)
        if show_progress:
            n_chunks = (n_snps + chunk_size - 1) // chunk_size
            starts = progress_iterator(starts, total=n_chunks, desc="Reading genotypes")
        for start in starts:
            end = min(start + chunk_size, n_snps)
            genotypes[:, start:end] = bed.read(
                index=np.s_[:, start:end], dtype=np.float32
            )

        logger.info(f"Loaded {n_samples} samples, {n_snps} SNPs from {bed_path}")
        return PlinkData(
            genotypes=genotypes,
            iid=bed.iid,
            chromosome=bed.chromosome,
            bp_position=bed.bp_position,
            allele_1=bed.allele_1,
            allele_2=bed.allele_2,
        )


def load_genotype_store(
    bfile: Path, block_width: int, show_progress: bool = False
) -> GenotypeStore:
    """Load a PLINK fileset as a fine-resolution GenotypeStore.

    Args:
        bfile: Path prefix for PLINK files.
        block_width: Block width of the returned store.
        show_progress: Whether to show a progress bar while reading.

    Returns:
        GenotypeStore keyed by IID.
    """
    data = load_plink_binary(bfile, show_progress=show_progress)
    return GenotypeStore.from_arrays(
        contig=data.chromosome,
        start=data.bp_position,
        ref=data.allele_2,
        alt=data.allele_1,
        genotypes=data.genotypes,
        sample_ids=data.iid,
        block_width=block_width,
        resolution=Resolution.FINE,
    )
