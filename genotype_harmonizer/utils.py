"""Utility functions for the genotype harmonizer.

Chromosome normalization and ordering, build/assembly validation, genotype
zygosity helpers and strand complement used across the pipeline stages.
"""

from genotype_harmonizer.exceptions import ValidationError

# Complement lookup table for DNA bases
COMPLEMENT: dict[str, str] = {
    "A": "T",
    "T": "A",
    "C": "G",
    "G": "C",
    "N": "N",  # Unknown base stays as N
}

VALID_BUILDS: tuple[int, int, int] = (36, 37, 38)

# Positions are unsigned 32-bit, 1-based
MAX_POSITION = 2**32 - 1

BUILD_ASSEMBLY_MAP: dict[int, str] = {
    36: "NCBI36",
    37: "GRCh37",
    38: "GRCh38",
}

ASSEMBLY_BUILD_MAP: dict[str, int] = {v: k for k, v in BUILD_ASSEMBLY_MAP.items()}

# Canonical chromosome order: autosomes, sex chromosomes, mitochondria
CANONICAL_CHROMOSOMES: list[str] = [str(i) for i in range(1, 23)] + ["X", "Y", "MT"]
_CHROM_RANK: dict[str, int] = {c: i for i, c in enumerate(CANONICAL_CHROMOSOMES)}

# PLINK numeric codes and vendor aliases
_CHROM_ALIASES: dict[str, str] = {
    "23": "X",
    "24": "Y",
    "25": "XY",
    "26": "MT",
    "M": "MT",
}

# Pseudoautosomal contig labels used by some vendors
PAR_CONTIGS: frozenset[str] = frozenset({"XY", "PAR"})


def complement(allele: str) -> str:
    """Get the complement of a single DNA base.

    Args:
        allele: Single DNA base (A, T, C, G, or N)

    Returns:
        Complementary base (A<->T, C<->G, N->N); other characters unchanged

    Example:
        >>> complement("A")
        "T"
    """
    return COMPLEMENT.get(allele, allele)


def complement_genotype(genotype: str | None) -> str | None:
    """Complement every allele of a genotype.

    Example:
        >>> complement_genotype("AG")
        "TC"
    """
    if not genotype:
        return genotype
    return "".join(complement(a) for a in genotype)


def normalize_chromosome(chr_val: str) -> str:
    """Normalize chromosome value to consistent format.

    Handles "chr" prefixes, leading zeros, PLINK numeric codes for the sex
    chromosomes and mitochondria, and lower-case names.

    Example:
        >>> normalize_chromosome("chr01")
        "1"
        >>> normalize_chromosome("23")
        "X"
        >>> normalize_chromosome("chrM")
        "MT"
    """
    chr_val = str(chr_val).strip()

    # Remove 'chr' prefix if present
    if chr_val.lower().startswith("chr"):
        chr_val = chr_val[3:]

    # Remove leading zeros for numeric chromosomes
    if chr_val.isdigit():
        chr_val = str(int(chr_val))
    else:
        chr_val = chr_val.upper()

    return _CHROM_ALIASES.get(chr_val, chr_val)


def chrom_sort_key(chrom: str) -> tuple[int, str]:
    """Sort key ordering 1..22, X, Y, MT, then other contigs lexically."""
    rank = _CHROM_RANK.get(chrom)
    if rank is None:
        return len(_CHROM_RANK), chrom
    return rank, ""


def validate_build(build: int | str) -> int:
    """Validate a build given as a number or assembly name.

    Args:
        build: 36, 37, 38 or "NCBI36", "GRCh37", "GRCh38"

    Returns:
        Build number

    Raises:
        ValidationError: If the build is not recognized
    """
    if isinstance(build, str):
        if build in ASSEMBLY_BUILD_MAP:
            return ASSEMBLY_BUILD_MAP[build]
        if build.isdigit():
            build = int(build)
    if isinstance(build, int) and not isinstance(build, bool) and build in VALID_BUILDS:
        return build
    raise ValidationError(
        f"Invalid build {build!r}. Valid options: {list(VALID_BUILDS)} "
        f"or {list(ASSEMBLY_BUILD_MAP)}"
    )


def assembly_name(build: int) -> str:
    """Assembly name for a build, or "" if unknown."""
    return BUILD_ASSEMBLY_MAP.get(build, "")


def canonical_rsid(rsid: str) -> str:
    """Reduce a comma-joined multi-rsid key to its first rsid.

    Example:
        >>> canonical_rsid("rs1,rs2")
        "rs1"
    """
    return rsid.split(",", 1)[0].strip()


def is_called(genotype: str | None) -> bool:
    return bool(genotype)


def is_heterozygous(genotype: str | None) -> bool:
    """Two present, differing alleles."""
    return genotype is not None and len(genotype) == 2 and genotype[0] != genotype[1]


def is_homozygous(genotype: str | None) -> bool:
    """Two present, identical alleles."""
    return genotype is not None and len(genotype) == 2 and genotype[0] == genotype[1]


def same_genotype(a: str | None, b: str | None) -> bool:
    """Compare genotypes ignoring allele order ("AG" == "GA")."""
    if not a or not b:
        return not a and not b
    return sorted(a) == sorted(b)


def parse_locus(locus: str) -> tuple[str, int]:
    """Parse a "chrom:pos" locus string.

    Example:
        >>> parse_locus("1:752566")
        ("1", 752566)
    """
    chrom, _, pos = locus.strip().partition(":")
    if not pos:
        raise ValueError(f"Invalid locus: {locus!r}")
    return normalize_chromosome(chrom), int(pos)


def summarize_chromosomes(chroms: list[str]) -> str:
    """Summarize chromosomes as ranges, e.g. "1-22, X, Y, MT".

    Numeric chromosomes are collapsed into consecutive ranges; the rest are
    listed in canonical order.
    """
    int_chroms = sorted({int(c) for c in chroms if c.isdigit()})
    str_chroms = sorted({c for c in chroms if not c.isdigit()}, key=chrom_sort_key)

    ranges: list[str] = []
    start = prev = None
    for current in int_chroms:
        if start is None:
            start = current
        elif current != prev + 1:
            ranges.append(str(start) if start == prev else f"{start}-{prev}")
            start = current
        prev = current
    if start is not None:
        ranges.append(str(start) if start == prev else f"{start}-{prev}")

    return ", ".join(ranges + str_chroms)
