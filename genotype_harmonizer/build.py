"""Genome build detection from build-specific anchor positions.

Anchors are (chrom, pos) loci whose coordinates differ between NCBI36,
GRCh37 and GRCh38, such as the marker SNPs rs3094315 and rs11928389. The
build whose anchor set shares the most loci with the sample wins.
"""

import logging

from genotype_harmonizer.models import BuildDetection
from genotype_harmonizer.parallel import run_tasks
from genotype_harmonizer.resources.base import AnchorPositionProvider
from genotype_harmonizer.table import GenotypeTable

logger = logging.getLogger(__name__)

# Candidate builds in tie-break priority order (37 is the de-facto default)
BUILD_PRIORITY: tuple[int, int, int] = (37, 38, 36)


def _count_anchor_matches(task: tuple[frozenset, frozenset]) -> int:
    """Count sample loci present in one build's anchor set."""
    positions, anchors = task
    return len(positions & anchors)


def detect_build(
    table: GenotypeTable,
    anchors: AnchorPositionProvider,
    parallelize: bool = False,
    max_workers: int | None = None,
) -> BuildDetection:
    """Detect the genome build of a genotype table.

    Args:
        table: Genotype table (not modified)
        anchors: Provider of per-build anchor loci
        parallelize: Compare builds in a process pool
        max_workers: Maximum number of worker processes

    Returns:
        BuildDetection(build, confidence); build is 0 and confidence None
        when no anchor matches

    Example:
        >>> build, confidence = detect_build(table, MarkerAnchorPositions())
        >>> build
        37
    """
    positions = frozenset(table.positions())
    tasks = {build: (positions, frozenset(anchors.get_anchors(build))) for build in BUILD_PRIORITY}

    matches = run_tasks(_count_anchor_matches, tasks, parallelize, max_workers)
    total = sum(matches.values())
    logger.debug("Anchor matches per build: %s", matches)

    if total == 0:
        return BuildDetection(0, None)

    # max() keeps the first maximum, so BUILD_PRIORITY order breaks ties
    build = max(BUILD_PRIORITY, key=lambda b: matches[b])
    return BuildDetection(build, matches[build] / total)
