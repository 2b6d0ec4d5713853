"""Parsing of raw genotype records into SNP calls.

A raw record is either a mapping with ``rsid``, ``chrom`` (or
``chromosome``), ``pos`` (or ``position``) and ``genotype`` keys, or a
4-item sequence in that order. Vendor-specific file layouts are converted to
one of these shapes by the caller.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from genotype_harmonizer.exceptions import MalformedRecord
from genotype_harmonizer.models import SNP
from genotype_harmonizer.utils import MAX_POSITION, canonical_rsid, normalize_chromosome

# Tokens meaning "no call"
NULL_GENOTYPES: frozenset[str] = frozenset({"", "--", "00", ".", "NA", "N/A"})

# A = adenine, C = cytosine, G = guanine, T = thymine, D = deletion, I = insertion
VALID_ALLELES: frozenset[str] = frozenset("ACGTDI")


def parse_genotype(value: Any) -> str | None:
    """Normalize a genotype token.

    Args:
        value: Raw genotype ("AG", "ag", "--", None, ...)

    Returns:
        Uppercase genotype of 1 or 2 alleles, or None for no call

    Raises:
        MalformedRecord: If the token contains anything but A/C/G/T/D/I or
            has more than two alleles

    Example:
        >>> parse_genotype("ag")
        "AG"
        >>> parse_genotype("--") is None
        True
    """
    if value is None:
        return None

    genotype = str(value).strip().upper()
    if genotype in NULL_GENOTYPES:
        return None

    if len(genotype) > 2 or not set(genotype) <= VALID_ALLELES:
        raise MalformedRecord(f"Invalid genotype: {value!r}", value)

    return genotype


def parse_record(record: Mapping[str, Any] | Sequence[Any]) -> SNP:
    """Parse one raw record into an SNP.

    Raises:
        MalformedRecord: If any field is missing or invalid
    """
    if isinstance(record, Mapping):
        rsid = record.get("rsid")
        chrom = record.get("chrom", record.get("chromosome"))
        pos = record.get("pos", record.get("position"))
        genotype = record.get("genotype")
    elif isinstance(record, Sequence) and not isinstance(record, str) and len(record) == 4:
        rsid, chrom, pos, genotype = record
    else:
        raise MalformedRecord(f"Expected a mapping or 4 fields, got {record!r}", record)

    rsid = canonical_rsid(str(rsid)) if rsid is not None else ""
    if not rsid:
        raise MalformedRecord(f"Missing rsid: {record!r}", record)

    chrom = normalize_chromosome(chrom) if chrom is not None else ""
    if not chrom:
        raise MalformedRecord(f"Missing chromosome: {record!r}", record)

    try:
        pos = int(str(pos).strip())
    except (TypeError, ValueError) as e:
        raise MalformedRecord(f"Invalid position {pos!r} for {rsid}", record) from e
    if not 1 <= pos <= MAX_POSITION:
        raise MalformedRecord(f"Position out of range for {rsid}: {pos}", record)

    return SNP(rsid=rsid, chrom=chrom, pos=pos, genotype=parse_genotype(genotype))
