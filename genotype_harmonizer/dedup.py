"""Deduplication engine: PAR assignment, rsid, XY and MT deduplication.

Stages run in a fixed order: PAR assignment, rsid deduplication, then the
optional XY and MT stages. Rows removed from the live table are returned to
the caller for discrepancy bookkeeping; nothing is silently dropped.

Heterozygous calls on haploid sequence (non-PAR X/Y in a male sample, MT in
any sample) are not deleted. The row stays in the live table with its call
cleared and a copy of the original goes to the discrepancy set.
"""

import logging
import warnings
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from genotype_harmonizer.exceptions import DataIntegrityWarning
from genotype_harmonizer.models import SNP, ParRegion
from genotype_harmonizer.table import GenotypeTable, snp_sort_key
from genotype_harmonizer.utils import (
    MAX_POSITION,
    PAR_CONTIGS,
    canonical_rsid,
    is_called,
    is_heterozygous,
    is_homozygous,
    same_genotype,
)

logger = logging.getLogger(__name__)

SEX_CHROMOSOMES: tuple[str, str] = ("X", "Y")


@dataclass
class DedupResult:
    """Live table after a deduplication stage and the rows it set aside.

    Attributes:
        table: Live table
        duplicate: Rows removed from the live table
        discrepant: Heterozygous calls cleared in place (XY or MT stage)
        discrepant_positions: rsid duplicates at a different position
        discrepant_genotypes: rsid duplicates with a conflicting call
    """

    table: GenotypeTable
    duplicate: list[SNP] = field(default_factory=list)
    discrepant: list[SNP] = field(default_factory=list)
    discrepant_positions: list[SNP] = field(default_factory=list)
    discrepant_genotypes: list[SNP] = field(default_factory=list)


def non_par_bounds(par_regions: Iterable[ParRegion], chrom: str) -> tuple[int, int]:
    """Exclusive (start, stop) bounds of the non-PAR region of X or Y.

    The non-PAR region lies strictly between the end of PAR1 and the start
    of PAR2. A chromosome without PAR boundaries is entirely non-PAR.
    """
    regions = {r.region: r for r in par_regions if r.chrom == chrom}
    par1 = regions.get("PAR1")
    par2 = regions.get("PAR2")
    np_start = par1.stop if par1 is not None else 0
    np_stop = par2.start if par2 is not None else MAX_POSITION + 1
    return np_start, np_stop


def non_par_predicate(par_regions: Iterable[ParRegion]) -> Callable[[SNP], bool]:
    """Build a predicate that is true for rows in non-PAR X or Y."""
    par_regions = list(par_regions)
    bounds = {chrom: non_par_bounds(par_regions, chrom) for chrom in SEX_CHROMOSOMES}

    def is_non_par(snp: SNP) -> bool:
        if snp.chrom not in bounds:
            return False
        np_start, np_stop = bounds[snp.chrom]
        return np_start < snp.pos < np_stop

    return is_non_par


def assign_par_snps(table: GenotypeTable, par_regions: Iterable[ParRegion]) -> int:
    """Mirror pseudoautosomal calls between X and Y.

    Rows on a pseudoautosomal contig ("XY", "PAR") are relabelled to X first.
    Each X row inside a PAR gets a copy at the equivalent Y coordinate of the
    same PAR (and vice versa), with rsid ``"{rsid}_{chrom}"``. No copy is
    made where the other chromosome already has a row. The table is
    modified and re-sorted in place.

    Args:
        table: Live genotype table
        par_regions: PAR1/PAR2 regions on X and Y for the table's build

    Returns:
        Number of mirrored rows added
    """
    for snp in table:
        if snp.chrom in PAR_CONTIGS:
            snp.chrom = "X"

    regions: dict[str, dict[str, ParRegion]] = {chrom: {} for chrom in SEX_CHROMOSOMES}
    for region in par_regions:
        if region.chrom in regions:
            regions[region.chrom][region.region] = region

    occupied = table.positions()
    mirrors: list[SNP] = []
    for snp in table:
        if snp.chrom not in regions:
            continue
        other = "Y" if snp.chrom == "X" else "X"

        for name, region in regions[snp.chrom].items():
            if not region.contains(snp.pos):
                continue
            target = regions[other].get(name)
            if target is None:
                break
            pos = target.start + (snp.pos - region.start)
            if target.contains(pos) and (other, pos) not in occupied:
                mirrors.append(SNP(f"{snp.rsid}_{other}", other, pos, snp.genotype))
                occupied.add((other, pos))
            break

    if mirrors:
        table.extend(mirrors)
        table.sort()
        logger.debug("Assigned %d PAR SNPs", len(mirrors))

    return len(mirrors)


def _call_rank(genotype: str | None) -> int:
    """Collapse preference: homozygous, then any other call, then null."""
    if is_homozygous(genotype):
        return 0
    if is_called(genotype):
        return 1
    return 2


def _rsid_keep_key(snp: SNP) -> tuple:
    """Total order over the rows of one rsid; the smallest is kept."""
    genotype = snp.genotype or ""
    return snp_sort_key(snp), _call_rank(snp.genotype), "".join(sorted(genotype)), genotype


def deduplicate_rsids(table: GenotypeTable) -> DedupResult:
    """Remove repeated rsids, keeping one row per rsid.

    Multi-rsid keys ("rs1,rs2") are reduced to their first rsid before
    grouping. The kept row is the one with the lowest (chromosome, position),
    then the preferred call (homozygous, any call, null), then the genotype
    text; row order never changes the choice. Every other row goes to
    ``duplicate``. An extra at a different position than the kept row is also
    recorded in ``discrepant_positions``; an extra at the same position whose
    call conflicts with the kept row (ignoring allele order) is also recorded
    in ``discrepant_genotypes``. Kept rows stay in table order.

    Example:
        >>> result = deduplicate_rsids(GenotypeTable([
        ...     SNP("rs1,rs2", "1", 100, "AA"),
        ...     SNP("rs1", "1", 200, "AT"),
        ... ]))
        >>> [snp.pos for snp in result.table]
        [100]
        >>> [snp.pos for snp in result.discrepant_positions]
        [200]
    """
    rows = []
    for snp in table:
        rsid = canonical_rsid(snp.rsid)
        if rsid != snp.rsid:
            snp = SNP(rsid, snp.chrom, snp.pos, snp.genotype)
        rows.append(snp)

    best: dict[str, int] = {}
    for i, snp in enumerate(rows):
        current = best.get(snp.rsid)
        if current is None or _rsid_keep_key(snp) < _rsid_keep_key(rows[current]):
            best[snp.rsid] = i

    result = DedupResult(GenotypeTable())
    for i, snp in enumerate(rows):
        kept = rows[best[snp.rsid]]
        if i == best[snp.rsid]:
            result.table.append(snp)
            continue

        result.duplicate.append(snp)
        if kept.locus != snp.locus:
            result.discrepant_positions.append(snp)
        elif (
            is_called(kept.genotype)
            and is_called(snp.genotype)
            and not same_genotype(kept.genotype, snp.genotype)
        ):
            result.discrepant_genotypes.append(snp)

    if result.discrepant_positions or result.discrepant_genotypes:
        warnings.warn(
            f"Duplicate rsids with conflicting data: "
            f"{len(result.discrepant_positions)} position, "
            f"{len(result.discrepant_genotypes)} genotype",
            DataIntegrityWarning,
            stacklevel=2,
        )

    if result.duplicate:
        logger.info("Removed %d duplicate rsids", len(result.duplicate))

    return result


def _collapse_positions(table: GenotypeTable, chroms: Iterable[str]) -> tuple[GenotypeTable, list[SNP]]:
    """Collapse rows sharing a (chrom, pos) on the given chromosomes.

    Returns:
        (table keeping one row per locus, removed rows)
    """
    chroms = set(chroms)
    rows = table.rows()

    best: dict[tuple[str, int], int] = {}
    for i, snp in enumerate(rows):
        if snp.chrom not in chroms:
            continue
        current = best.get(snp.locus)
        if current is None or _call_rank(snp.genotype) < _call_rank(rows[current].genotype):
            best[snp.locus] = i

    kept: list[SNP] = []
    removed: list[SNP] = []
    for i, snp in enumerate(rows):
        if snp.chrom in chroms and best[snp.locus] != i:
            removed.append(snp)
        else:
            kept.append(snp)

    return GenotypeTable(kept), removed


def _make_haploid(snps: Iterable[SNP]) -> None:
    for snp in snps:
        if is_homozygous(snp.genotype):
            snp.genotype = snp.genotype[0]


def deduplicate_xy(
    table: GenotypeTable,
    par_regions: Iterable[ParRegion],
    haploid: bool = False,
) -> DedupResult:
    """Deduplicate non-PAR X and Y calls of a male sample.

    Heterozygous non-PAR X/Y calls are copied to ``discrepant`` and cleared
    in place. Rows sharing a locus on X or Y are then collapsed, preferring
    a homozygous call, then any call, then a null call; the first row wins
    ties.

    Args:
        table: Live genotype table; cleared calls are modified in place
        par_regions: PAR1/PAR2 regions on X and Y for the table's build
        haploid: Reduce homozygous non-PAR calls to a single allele

    Returns:
        DedupResult with the collapsed table, cleared calls and removed rows
    """
    is_non_par = non_par_predicate(par_regions)

    discrepant: list[SNP] = []
    for snp in table:
        if is_non_par(snp) and is_heterozygous(snp.genotype):
            discrepant.append(snp.copy())
            snp.genotype = None

    collapsed, removed = _collapse_positions(table, SEX_CHROMOSOMES)

    if haploid:
        _make_haploid(snp for snp in collapsed if is_non_par(snp))

    if discrepant or removed:
        logger.info(
            "XY deduplication: %d heterozygous calls cleared, %d duplicate positions removed",
            len(discrepant),
            len(removed),
        )

    return DedupResult(collapsed, duplicate=removed, discrepant=discrepant)


def deduplicate_mt(table: GenotypeTable, haploid: bool = False) -> DedupResult:
    """Deduplicate MT calls.

    Heterozygous MT calls are copied to ``discrepant`` and cleared in place,
    regardless of sex. Duplicate MT loci are then collapsed as in
    ``deduplicate_xy``.
    """
    discrepant: list[SNP] = []
    for snp in table:
        if snp.chrom == "MT" and is_heterozygous(snp.genotype):
            discrepant.append(snp.copy())
            snp.genotype = None

    collapsed, removed = _collapse_positions(table, ("MT",))

    if haploid:
        _make_haploid(snp for snp in collapsed if snp.chrom == "MT")

    if discrepant or removed:
        logger.info(
            "MT deduplication: %d heterozygous calls cleared, %d duplicate positions removed",
            len(discrepant),
            len(removed),
        )

    return DedupResult(collapsed, duplicate=removed, discrepant=discrepant)
