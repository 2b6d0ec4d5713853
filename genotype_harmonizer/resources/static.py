"""Built-in and in-memory resource providers.

Marker SNP anchors and PAR boundaries are small, fixed reference tables and
ship with the package. The dict-backed mapping, cluster and low-quality
providers wrap data the caller already has in memory.

References
----------
1. Genome Reference Consortium, https://www.ncbi.nlm.nih.gov/grc
2. dbSNP build 151 positions for rs3094315, rs11928389, rs2500347,
   rs964481, rs2341354, rs3850290 and rs1329546.
3. Chip clusters: Chang et al., GenomePrep, https://supfam.mrc-lmb.cam.ac.uk/GenomePrep/
"""

from collections.abc import Iterable, Mapping

from genotype_harmonizer.exceptions import ResourceUnavailable
from genotype_harmonizer.models import ChipCluster, MappingRegion, ParRegion
from genotype_harmonizer.resources.base import (
    AnchorPositionProvider,
    AssemblyMappingProvider,
    ChipClusterProvider,
    LowQualityProvider,
    ParBoundaryProvider,
)
from genotype_harmonizer.utils import validate_build

# Marker SNPs with known, build-specific positions
# Format: {rsid: {"chrom": str, 36: pos, 37: pos, 38: pos}}
BUILD_MARKER_SNPS: dict[str, dict[str | int, str | int]] = {
    "rs3094315": {"chrom": "1", 36: 742429, 37: 752566, 38: 817186},
    "rs11928389": {"chrom": "1", 36: 50908372, 37: 50927009, 38: 50889578},
    "rs2500347": {"chrom": "1", 36: 143649677, 37: 144938320, 38: 148946169},
    "rs964481": {"chrom": "20", 36: 27566744, 37: 27656823, 38: 27638706},
    "rs2341354": {"chrom": "1", 36: 908436, 37: 918573, 38: 983193},
    "rs3850290": {"chrom": "2", 36: 22315141, 37: 23245301, 38: 22776092},
    "rs1329546": {"chrom": "1", 36: 135302086, 37: 135474420, 38: 136392261},
}

# Pseudoautosomal regions (inclusive) per build
PAR_REGIONS: dict[int, list[ParRegion]] = {
    36: [
        ParRegion("PAR1", "X", 1, 2709520),
        ParRegion("PAR2", "X", 154584238, 154913754),
        ParRegion("PAR1", "Y", 1, 2709520),
        ParRegion("PAR2", "Y", 57443438, 57772954),
    ],
    37: [
        ParRegion("PAR1", "X", 60001, 2699520),
        ParRegion("PAR2", "X", 154931044, 155260560),
        ParRegion("PAR1", "Y", 10001, 2649520),
        ParRegion("PAR2", "Y", 59034050, 59363566),
    ],
    38: [
        ParRegion("PAR1", "X", 10001, 2781479),
        ParRegion("PAR2", "X", 155701383, 156030895),
        ParRegion("PAR1", "Y", 10001, 2781479),
        ParRegion("PAR2", "Y", 56887903, 57217415),
    ],
}

# Cluster id -> (company_composition, chip_base_deduced)
CHIP_CLUSTER_METADATA: dict[str, tuple[str, str]] = {
    "c1": ("23andMe-v4", "HTS iSelect HD"),
    "c3": ("AncestryDNA-v1, FTDNA, MyHeritage", "OmniExpress"),
    "c4": ("23andMe-v3", "OmniExpress plus"),
    "c5": ("AncestryDNA-v2", "OmniExpress plus"),
    "v5": ("23andMe-v5, LivingDNA", "Illumina GSAs"),
}


class MarkerAnchorPositions(AnchorPositionProvider):
    """Anchors built from marker SNP positions in each build."""

    def __init__(
        self,
        markers: Mapping[str, Mapping[str | int, str | int]] | None = None,
    ) -> None:
        self._markers = markers if markers is not None else BUILD_MARKER_SNPS

    def get_anchors(self, build: int) -> set[tuple[str, int]]:
        build = validate_build(build)
        return {
            (str(marker["chrom"]), int(marker[build]))
            for marker in self._markers.values()
            if build in marker
        }


class StaticParBoundaries(ParBoundaryProvider):
    """PAR boundaries from the built-in table."""

    def get_boundaries(self, build: int) -> list[ParRegion]:
        return list(PAR_REGIONS[validate_build(build)])


class StaticAnchorPositions(AnchorPositionProvider):
    """Anchors given directly as a build -> loci mapping."""

    def __init__(self, anchors: Mapping[int, Iterable[tuple[str, int]]]) -> None:
        self._anchors = {build: set(loci) for build, loci in anchors.items()}

    def get_anchors(self, build: int) -> set[tuple[str, int]]:
        return set(self._anchors.get(validate_build(build), set()))


class InMemoryAssemblyMapping(AssemblyMappingProvider):
    """Mapping regions held in memory.

    Args:
        mappings: (source_build, target_build) -> chrom -> regions
    """

    def __init__(
        self,
        mappings: Mapping[tuple[int, int], Mapping[str, list[MappingRegion]]],
    ) -> None:
        self._mappings = {
            pair: {chrom: sorted(regions, key=lambda r: r.source_start) for chrom, regions in chroms.items()}
            for pair, chroms in mappings.items()
        }

    def get_regions(
        self,
        chrom: str,
        source_build: int,
        target_build: int,
    ) -> list[MappingRegion] | None:
        pair = (validate_build(source_build), validate_build(target_build))
        if pair not in self._mappings:
            raise ResourceUnavailable(
                f"No assembly mapping data for build {pair[0]} -> {pair[1]}"
            )
        return self._mappings[pair].get(chrom)


class StaticChipClusters(ChipClusterProvider):
    """Chip clusters held in memory."""

    def __init__(self, clusters: Iterable[ChipCluster]) -> None:
        self._clusters = list(clusters)

    def get_clusters(self) -> list[ChipCluster]:
        return list(self._clusters)


class StaticLowQuality(LowQualityProvider):
    """Low-quality loci held in memory."""

    def __init__(self, loci: Iterable[tuple[str, int]]) -> None:
        self._loci = set(loci)

    def get_loci(self) -> set[tuple[str, int]]:
        return set(self._loci)
