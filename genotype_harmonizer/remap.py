"""Assembly remapping of SNP coordinates between genome builds.

Mapping regions come from an AssemblyMappingProvider (Ensembl's ``/map``
endpoint data). All regions are fetched before any record is touched, so a
ResourceUnavailable leaves the caller's table as it was.
"""

import logging
from bisect import bisect_right
from collections.abc import Sequence

from genotype_harmonizer.exceptions import ResourceUnavailable
from genotype_harmonizer.models import SNP, MappingRegion, Orientation, RemapStats
from genotype_harmonizer.parallel import run_tasks
from genotype_harmonizer.resources.base import AssemblyMappingProvider
from genotype_harmonizer.table import GenotypeTable
from genotype_harmonizer.utils import complement_genotype, validate_build

logger = logging.getLogger(__name__)


def find_region(
    regions: Sequence[MappingRegion],
    starts: Sequence[int],
    pos: int,
) -> MappingRegion | None:
    """Binary search for the region containing ``pos``.

    Args:
        regions: Regions sorted by source_start with disjoint source ranges
        starts: source_start of each region (same order)
        pos: Source position

    Returns:
        The containing region, or None
    """
    i = bisect_right(starts, pos) - 1
    if i >= 0 and regions[i].contains(pos):
        return regions[i]
    return None


def _remap_chromosome(
    task: tuple[str, list[SNP], list[MappingRegion], bool],
) -> tuple[list[SNP], list[str]]:
    """Remap one chromosome's records.

    Returns:
        (remapped records, rsids that could not be remapped)
    """
    chrom, snps, regions, complement_bases = task
    starts = [r.source_start for r in regions]

    remapped: list[SNP] = []
    unmapped: list[str] = []
    for snp in snps:
        region = find_region(regions, starts, snp.pos)
        if (
            region is None
            or not region.is_linear
            or (region.target_chrom is not None and region.target_chrom != chrom)
        ):
            unmapped.append(snp.rsid)
            continue

        genotype = snp.genotype
        if region.orientation == Orientation.REVERSE and complement_bases:
            genotype = complement_genotype(genotype)

        remapped.append(SNP(snp.rsid, snp.chrom, region.map_position(snp.pos), genotype))

    return remapped, unmapped


def remap(
    table: GenotypeTable,
    source_build: int | str,
    target_build: int | str,
    provider: AssemblyMappingProvider | None,
    complement_bases: bool = True,
    parallelize: bool = False,
    max_workers: int | None = None,
) -> tuple[GenotypeTable, RemapStats]:
    """Remap a genotype table from one build to another.

    Records outside every usable region are dropped and counted in
    ``stats.unmapped``. A region is unusable when its source and target
    lengths differ or when it maps onto another chromosome.

    Args:
        table: Genotype table (not modified)
        source_build: Build of ``table`` (36/37/38 or assembly name)
        target_build: Build to remap to (36/37/38 or assembly name)
        provider: Mapping provider; unused when the builds are equal
        complement_bases: Complement genotypes in reverse-oriented regions
        parallelize: Remap chromosomes in a process pool
        max_workers: Maximum number of worker processes

    Returns:
        (remapped table sorted by chromosome and position, RemapStats)

    Raises:
        ValidationError: If a build is invalid
        ResourceUnavailable: If mapping data cannot be obtained
    """
    source = validate_build(source_build)
    target = validate_build(target_build)

    if source == target:
        return table, RemapStats()

    if provider is None:
        raise ResourceUnavailable("No assembly mapping provider configured")

    by_chrom: dict[str, list[SNP]] = {}
    for snp in table:
        by_chrom.setdefault(snp.chrom, []).append(snp)

    # Resolve every chromosome's regions before doing any work
    regions = {chrom: provider.get_regions(chrom, source, target) for chrom in by_chrom}

    tasks = {
        chrom: (chrom, snps, regions[chrom], complement_bases)
        for chrom, snps in by_chrom.items()
        if regions[chrom]
    }
    results = run_tasks(_remap_chromosome, tasks, parallelize, max_workers)

    stats = RemapStats()
    rows: list[SNP] = []
    for chrom in table.chromosomes():
        if chrom not in results:
            stats.chromosomes_not_remapped.append(chrom)
            stats.unmapped += len(by_chrom[chrom])
            stats.unmapped_rsids.extend(snp.rsid for snp in by_chrom[chrom])
            logger.warning("Chromosome %s not remapped; no mapping data", chrom)
            continue

        remapped, unmapped = results[chrom]
        rows.extend(remapped)
        stats.chromosomes_remapped.append(chrom)
        stats.remapped += len(remapped)
        stats.unmapped += len(unmapped)
        stats.unmapped_rsids.extend(unmapped)

    if stats.unmapped:
        logger.warning(
            "%d SNPs could not be remapped from build %d to build %d",
            stats.unmapped,
            source,
            target,
        )
        logger.debug("Unmapped rsids: %s", stats.unmapped_rsids)

    logger.info(
        "Remapped %d SNPs from %d to %d (%d unmapped)",
        stats.remapped,
        source,
        target,
        stats.unmapped,
    )

    result = GenotypeTable(rows)
    result.sort()
    return result, stats
