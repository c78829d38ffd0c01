"""Covariate classification.

Wire covariates are tagged by a ``type`` string with type-dependent
fields. They are parsed into PhenotypeCovariate or VariantCovariate and
then partitioned into the phenotype columns and variant loci that make up
the design matrix.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from assocquery.core.errors import RequestShapeError, SemanticError
from assocquery.models import CovariateSpec
from assocquery.store.genotype import Variant, normalize_contig


@dataclass(frozen=True)
class PhenotypeCovariate:
    name: str


@dataclass(frozen=True)
class VariantCovariate:
    locus: Variant


Covariate = PhenotypeCovariate | VariantCovariate


@dataclass(frozen=True)
class ResolvedCovariates:
    """Covariates partitioned by kind.

    Attributes:
        phenotype_names: Distinct phenotype covariate names, first-seen order.
        variant_loci: Variant covariate loci in request order.
    """

    phenotype_names: tuple[str, ...] = ()
    variant_loci: tuple[Variant, ...] = ()

    @property
    def n_covariates(self) -> int:
        return len(self.phenotype_names) + len(self.variant_loci)


def parse_covariate(spec: CovariateSpec) -> Covariate:
    """Convert a wire covariate into its typed form.

    Raises:
        RequestShapeError: Unknown ``type`` or missing required fields.
    """
    if spec.type == "phenotype":
        if spec.name is None:
            raise RequestShapeError(
                "Covariate of type 'phenotype' must include 'name' field in request"
            )
        return PhenotypeCovariate(spec.name)

    if spec.type == "variant":
        if None in (spec.chrom, spec.pos, spec.ref, spec.alt):
            raise RequestShapeError(
                "Covariate of type 'variant' must include 'chrom', 'pos', 'ref', "
                "and 'alt' fields in request"
            )
        return VariantCovariate(
            Variant(normalize_contig(spec.chrom), spec.pos, spec.ref, spec.alt)
        )

    raise RequestShapeError(
        f"Supported covariate types are phenotype and variant: got {spec.type}"
    )


def resolve_covariates(
    specs: Sequence[CovariateSpec] | None,
    phenotype: str,
    known_names: Iterable[str],
) -> ResolvedCovariates:
    """Partition and validate the requested covariates.

    Args:
        specs: Wire covariates, or None.
        phenotype: Response phenotype name.
        known_names: Column names present in the covariate table.

    Returns:
        ResolvedCovariates with phenotype names and variant loci.

    Raises:
        RequestShapeError: A covariate is malformed.
        SemanticError: A phenotype covariate or the response phenotype is
            not in the table, or the response phenotype is also a covariate.
    """
    known = frozenset(known_names)
    names: list[str] = []
    loci: list[Variant] = []

    for spec in specs or ():
        cov = parse_covariate(spec)
        if isinstance(cov, PhenotypeCovariate):
            if cov.name not in known:
                raise SemanticError(f"{cov.name} is not a valid covariate name")
            if cov.name not in names:
                names.append(cov.name)
        else:
            loci.append(cov.locus)

    if phenotype in names:
        raise SemanticError(
            f"{phenotype} appears as both the response phenotype "
            "and a covariate phenotype"
        )

    if phenotype not in known:
        raise SemanticError(f"{phenotype} is not a valid phenotype name")

    return ResolvedCovariates(tuple(names), tuple(loci))
