"""Data models for the genotype harmonizer.

Plain dataclasses for SNP calls, reference resources (assembly mapping
regions, chip clusters, PAR regions) and the statistics returned by each
pipeline stage.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple


class Sex(str, Enum):
    """Sex inferred from X/Y genotypes (heuristic only)."""

    MALE = "Male"
    FEMALE = "Female"
    UNKNOWN = ""


class Orientation(int, Enum):
    """Strand orientation of a mapped region relative to its source."""

    FORWARD = 1
    REVERSE = -1


@dataclass(slots=True)
class SNP:
    """A single SNP call.

    Attributes:
        rsid: Variant identifier (rsID or vendor-specific ID)
        chrom: Chromosome ("1".."22", "X", "Y", "MT" or another contig)
        pos: 1-based position
        genotype: 0, 1 or 2 allele characters; None when not called
    """

    rsid: str
    chrom: str
    pos: int
    genotype: str | None = None

    @property
    def locus(self) -> tuple[str, int]:
        """(chrom, pos) pair for set lookups."""
        return self.chrom, self.pos

    def copy(self) -> "SNP":
        return SNP(self.rsid, self.chrom, self.pos, self.genotype)


@dataclass(frozen=True)
class MappingRegion:
    """A region of an assembly-to-assembly mapping on one chromosome.

    Source coordinates are inclusive on both ends, matching Ensembl's
    ``/map`` endpoint.

    Attributes:
        source_start: First source position covered
        source_end: Last source position covered
        target_start: First target position
        target_end: Last target position
        orientation: FORWARD or REVERSE strand relative to the source
        target_chrom: Target chromosome if known; regions that change
            chromosome are not used for remapping
    """

    source_start: int
    source_end: int
    target_start: int
    target_end: int
    orientation: Orientation = Orientation.FORWARD
    target_chrom: str | None = None

    def contains(self, pos: int) -> bool:
        return self.source_start <= pos <= self.source_end

    @property
    def is_linear(self) -> bool:
        """True if the region is neither stretched nor squashed."""
        return (self.source_end - self.source_start) == (self.target_end - self.target_start)

    def map_position(self, pos: int) -> int:
        """Map a source position into target coordinates."""
        offset = pos - self.source_start
        if self.orientation == Orientation.REVERSE:
            return self.target_end - offset
        return self.target_start + offset


@dataclass(frozen=True)
class ChipCluster:
    """A cluster of genotyping chips sharing a common set of loci (GRCh37).

    Attributes:
        cluster_id: Cluster identifier (e.g. "c1")
        positions: Set of (chrom, pos) loci assayed by the cluster
        company_composition: Vendors and versions in the cluster,
            e.g. "23andMe-v5, LivingDNA"
        chip_base_deduced: Deduced base chip, e.g. "Illumina GSAs"
    """

    cluster_id: str
    positions: frozenset[tuple[str, int]]
    company_composition: str = ""
    chip_base_deduced: str = ""


@dataclass(frozen=True)
class ParRegion:
    """Pseudoautosomal region boundary on X or Y (inclusive)."""

    region: str
    chrom: str
    start: int
    stop: int

    def contains(self, pos: int) -> bool:
        return self.start <= pos <= self.stop


class BuildDetection(NamedTuple):
    """Result of build detection: the winning build (0 if none) and its share of anchor hits."""

    build: int
    confidence: float | None


@dataclass
class RemapStats:
    """Statistics from an assembly remap."""

    remapped: int = 0
    unmapped: int = 0
    unmapped_rsids: list[str] = field(default_factory=list)
    chromosomes_remapped: list[str] = field(default_factory=list)
    chromosomes_not_remapped: list[str] = field(default_factory=list)


@dataclass
class DedupStats:
    """Counts from each deduplication stage."""

    par_assigned: int = 0
    rsid_duplicates: int = 0
    merge_position_conflicts: int = 0
    merge_genotype_conflicts: int = 0
    discrepant_xy: int = 0
    xy_collapsed: int = 0
    heterozygous_mt: int = 0
    mt_collapsed: int = 0
    xy_skipped: bool = False


@dataclass
class MergeStats:
    """Counts from merging one sample into another."""

    added: int = 0
    filled: int = 0
    discrepant_positions: int = 0
    discrepant_genotypes: int = 0
    remap: RemapStats | None = None


@dataclass
class ChipMatch:
    """Accepted chip cluster classification."""

    cluster_id: str
    chip: str
    chip_version: str
    overlap_with_cluster: float
    overlap_with_self: float
