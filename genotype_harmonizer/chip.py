"""Chip cluster classification and low-quality SNP views.

Cluster and low-quality loci are defined on GRCh37. Samples on another build
are compared through a remapped copy; the sample's own table is never
modified.

References
----------
1. Chang Lu, Bastian Greshake Tzovaras, Julian Gough, A survey of
   direct-to-consumer genotype data, and quality control tool (GenomePrep)
   for research, Computational and Structural Biotechnology Journal,
   Volume 19, 2021, Pages 3747-3754, https://doi.org/10.1016/j.csbj.2021.06.040.
"""

import logging
import re
from collections.abc import Collection, Iterable

from genotype_harmonizer.exceptions import ResourceUnavailable
from genotype_harmonizer.models import ChipCluster, ChipMatch
from genotype_harmonizer.remap import remap
from genotype_harmonizer.resources.base import AssemblyMappingProvider
from genotype_harmonizer.table import GenotypeTable
from genotype_harmonizer.utils import validate_build

logger = logging.getLogger(__name__)

CLUSTER_BUILD = 37


def chip_version_for(sources: Iterable[str], composition: str) -> str:
    """Extract the chip version for the first source found in a composition.

    Example:
        >>> chip_version_for(["23andMe"], "23andMe-v5, LivingDNA")
        "v5"
    """
    sources = [s for s in sources if s]
    for source in sources:
        match = re.search(re.escape(source) + r"-(v\d+)", composition)
        if match:
            return match.group(1)

    if sources and not any(source in composition for source in sources):
        logger.warning(
            "Sample source %s not found in chip cluster composition %r",
            ", ".join(sources),
            composition,
        )
    return ""


def build37_table(
    table: GenotypeTable,
    build: int,
    mapping_provider: AssemblyMappingProvider | None,
    **remap_options,
) -> GenotypeTable:
    """Return ``table`` in GRCh37 coordinates.

    Raises:
        ResourceUnavailable: If the table is not on build 37 and no mapping
            provider is available
    """
    build = validate_build(build)
    if build == CLUSTER_BUILD:
        return table
    if mapping_provider is None:
        raise ResourceUnavailable(
            f"Sample is on build {build}; an assembly mapping provider is needed "
            f"to compare against build {CLUSTER_BUILD} reference loci"
        )
    remapped, _ = remap(table, build, CLUSTER_BUILD, mapping_provider, **remap_options)
    return remapped


def identify_low_quality(
    table: GenotypeTable,
    loci: Collection[tuple[str, int]],
    build: int = CLUSTER_BUILD,
    mapping_provider: AssemblyMappingProvider | None = None,
    **remap_options,
) -> GenotypeTable:
    """Rows of ``table`` at low-quality loci, in the table's own coordinates.

    Args:
        table: Genotype table (not modified)
        loci: GRCh37 (chrom, pos) loci
        build: Build of ``table``
        mapping_provider: Needed when ``build`` is not 37

    Returns:
        New table sharing rows with ``table``
    """
    loci = set(loci)
    if validate_build(build) == CLUSTER_BUILD:
        return table.where(lambda snp: snp.locus in loci)

    reference = build37_table(table, build, mapping_provider, **remap_options)
    rsids = {snp.rsid for snp in reference if snp.locus in loci}
    return table.subset(rsids)


def filter_low_quality(
    table: GenotypeTable,
    loci: Collection[tuple[str, int]],
    build: int = CLUSTER_BUILD,
    mapping_provider: AssemblyMappingProvider | None = None,
    **remap_options,
) -> GenotypeTable:
    """Rows of ``table`` not at low-quality loci."""
    low_quality = identify_low_quality(table, loci, build, mapping_provider, **remap_options)
    return table.without(low_quality.rsids())


def classify_chip(
    table: GenotypeTable,
    clusters: Iterable[ChipCluster],
    threshold: float = 0.95,
    build: int = CLUSTER_BUILD,
    sources: Iterable[str] = (),
    mapping_provider: AssemblyMappingProvider | None = None,
    **remap_options,
) -> ChipMatch | None:
    """Classify the genotyping chip by overlap with chip clusters.

    For each cluster, ``overlap_with_cluster`` is the share of the cluster's
    loci present in the sample and ``overlap_with_self`` the share of the
    sample's loci present in the cluster. The cluster with the highest
    ``overlap_with_cluster`` (lowest cluster_id on ties) is accepted only if
    both ratios are strictly above ``threshold``.

    Args:
        table: Genotype table (not modified)
        clusters: Chip clusters (GRCh37 loci)
        threshold: Minimum overlap ratio
        build: Build of ``table``
        sources: Declared source labels, used to extract the chip version
        mapping_provider: Needed when ``build`` is not 37

    Returns:
        ChipMatch, or None if no cluster passes the threshold

    Raises:
        ValidationError: If the build is invalid
        ResourceUnavailable: If the build is not 37 and no provider is given,
            or mapping data cannot be obtained
    """
    reference = build37_table(table, build, mapping_provider, **remap_options)
    positions = reference.positions()
    if not positions:
        return None

    best: tuple[ChipCluster, float, float] | None = None
    for cluster in sorted(clusters, key=lambda c: c.cluster_id):
        if not cluster.positions:
            continue
        common = len(positions & cluster.positions)
        overlap_with_cluster = common / len(cluster.positions)
        overlap_with_self = common / len(positions)
        logger.debug(
            "Cluster %s: overlap_with_cluster=%.4f overlap_with_self=%.4f",
            cluster.cluster_id,
            overlap_with_cluster,
            overlap_with_self,
        )
        if best is None or overlap_with_cluster > best[1]:
            best = (cluster, overlap_with_cluster, overlap_with_self)

    if best is None:
        return None

    cluster, overlap_with_cluster, overlap_with_self = best
    if overlap_with_cluster <= threshold or overlap_with_self <= threshold:
        logger.info(
            "No chip cluster above threshold %.2f (best %s: %.4f / %.4f)",
            threshold,
            cluster.cluster_id,
            overlap_with_cluster,
            overlap_with_self,
        )
        return None

    return ChipMatch(
        cluster_id=cluster.cluster_id,
        chip=cluster.chip_base_deduced,
        chip_version=chip_version_for(sources, cluster.company_composition),
        overlap_with_cluster=overlap_with_cluster,
        overlap_with_self=overlap_with_self,
    )
