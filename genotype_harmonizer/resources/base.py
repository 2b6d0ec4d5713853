"""Abstract base classes for reference resource providers.

Providers are passed explicitly to the pipeline (no process-wide resource
manager), so tests and callers can substitute in-memory implementations.
Every provider is read-only; data is resolved before a pipeline stage runs.
"""

from abc import ABC, abstractmethod
from collections.abc import Collection
from dataclasses import dataclass

from genotype_harmonizer.exceptions import ResourceUnavailable
from genotype_harmonizer.models import ChipCluster, MappingRegion, ParRegion


class AssemblyMappingProvider(ABC):
    """Source of assembly-to-assembly region mappings per chromosome."""

    @abstractmethod
    def get_regions(
        self,
        chrom: str,
        source_build: int,
        target_build: int,
    ) -> list[MappingRegion] | None:
        """Get mapping regions for one chromosome.

        Args:
            chrom: Chromosome (normalized, e.g. "1", "X", "MT")
            source_build: Build to remap from (36, 37 or 38)
            target_build: Build to remap to (36, 37 or 38)

        Returns:
            Regions sorted by source_start with disjoint source ranges, or
            None if the mapping has no data for this chromosome

        Raises:
            ResourceUnavailable: If the mapping data cannot be obtained
        """
        pass


class ChipClusterProvider(ABC):
    """Source of chip clusters (GRCh37 loci)."""

    @abstractmethod
    def get_clusters(self) -> Collection[ChipCluster]:
        """Get all chip clusters.

        Raises:
            ResourceUnavailable: If the cluster data cannot be obtained
        """
        pass


class LowQualityProvider(ABC):
    """Source of low-quality loci (GRCh37)."""

    @abstractmethod
    def get_loci(self) -> set[tuple[str, int]]:
        """Get low-quality (chrom, pos) loci.

        Raises:
            ResourceUnavailable: If the low-quality data cannot be obtained
        """
        pass


class AnchorPositionProvider(ABC):
    """Source of build-specific anchor positions for build detection."""

    @abstractmethod
    def get_anchors(self, build: int) -> set[tuple[str, int]]:
        """Get (chrom, pos) anchors whose coordinates are specific to ``build``."""
        pass


class ParBoundaryProvider(ABC):
    """Source of pseudoautosomal region boundaries."""

    @abstractmethod
    def get_boundaries(self, build: int) -> list[ParRegion]:
        """Get PAR1/PAR2 regions on X and Y for ``build``."""
        pass


@dataclass
class Resources:
    """Bundle of resource providers used by a sample.

    Anchor and PAR providers default to the built-in tables; mapping,
    cluster and low-quality providers are optional and must be supplied for
    the operations that need them.
    """

    anchors: AnchorPositionProvider | None = None
    par: ParBoundaryProvider | None = None
    mapping: AssemblyMappingProvider | None = None
    clusters: ChipClusterProvider | None = None
    low_quality: LowQualityProvider | None = None

    def __post_init__(self) -> None:
        """Fill in the built-in anchor and PAR tables."""
        from genotype_harmonizer.resources.static import (
            MarkerAnchorPositions,
            StaticParBoundaries,
        )

        if self.anchors is None:
            self.anchors = MarkerAnchorPositions()
        if self.par is None:
            self.par = StaticParBoundaries()

    def require_mapping(self) -> AssemblyMappingProvider:
        if self.mapping is None:
            raise ResourceUnavailable("No assembly mapping provider configured")
        return self.mapping

    def require_clusters(self) -> ChipClusterProvider:
        if self.clusters is None:
            raise ResourceUnavailable("No chip cluster provider configured")
        return self.clusters

    def require_low_quality(self) -> LowQualityProvider:
        if self.low_quality is None:
            raise ResourceUnavailable("No low-quality SNP provider configured")
        return self.low_quality
