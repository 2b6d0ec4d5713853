"""Reference resource providers: assembly mappings, chip clusters, low-quality loci, anchors and PAR boundaries."""

from genotype_harmonizer.resources.base import (
    AnchorPositionProvider,
    AssemblyMappingProvider,
    ChipClusterProvider,
    LowQualityProvider,
    ParBoundaryProvider,
    Resources,
)
from genotype_harmonizer.resources.files import (
    ChipClustersFile,
    EnsemblMappingFiles,
    LowQualityFile,
)
from genotype_harmonizer.resources.static import (
    InMemoryAssemblyMapping,
    MarkerAnchorPositions,
    StaticAnchorPositions,
    StaticChipClusters,
    StaticLowQuality,
    StaticParBoundaries,
)

__all__ = [
    "AnchorPositionProvider",
    "AssemblyMappingProvider",
    "ChipClusterProvider",
    "LowQualityProvider",
    "ParBoundaryProvider",
    "Resources",
    "ChipClustersFile",
    "EnsemblMappingFiles",
    "LowQualityFile",
    "InMemoryAssemblyMapping",
    "MarkerAnchorPositions",
    "StaticAnchorPositions",
    "StaticChipClusters",
    "StaticLowQuality",
    "StaticParBoundaries",
]
