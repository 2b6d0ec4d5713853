"""Sample aggregate: a genotype table with its build, sources and discrepancy tables.

``build_sample`` runs the construction pipeline:

    parse records -> sort -> detect build (if unknown) -> assign PAR SNPs
    -> deduplicate rsids -> deduplicate XY (male only) -> deduplicate MT

After construction the live table changes only through ``remap``,
``deduplicate`` and ``merge``. Rows removed or cleared by any stage are kept
in the discrepancy tables for inspection.

Example:
    >>> sample = build_sample(read_genotypes(Path("genome.tsv")), source="23andMe")
    >>> sample.summary["assembly"]
    'GRCh37'
"""

import logging
import warnings
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from genotype_harmonizer.build import detect_build
from genotype_harmonizer.chip import classify_chip, filter_low_quality, identify_low_quality
from genotype_harmonizer.config import Config, DedupOptions
from genotype_harmonizer.dedup import (
    assign_par_snps,
    deduplicate_mt,
    deduplicate_rsids,
    deduplicate_xy,
)
from genotype_harmonizer.exceptions import (
    DataIntegrityWarning,
    MalformedRecord,
    ResourceUnavailable,
    ValidationError,
)
from genotype_harmonizer.models import (
    SNP,
    BuildDetection,
    ChipMatch,
    DedupStats,
    MergeStats,
    ParRegion,
    RemapStats,
    Sex,
)
from genotype_harmonizer.parsers.records import parse_record
from genotype_harmonizer.remap import remap
from genotype_harmonizer.resources.base import AssemblyMappingProvider, Resources
from genotype_harmonizer.sex import determine_sex
from genotype_harmonizer.table import GenotypeTable
from genotype_harmonizer.utils import (
    assembly_name,
    is_called,
    same_genotype,
    summarize_chromosomes,
    validate_build,
)

logger = logging.getLogger(__name__)


class Sample:
    """Genotype data for one individual.

    Args:
        table: Live genotype table
        source: Source label(s), e.g. "23andMe"
        build: Genome build (0 if unknown, else 36, 37 or 38)
        phased: Whether genotypes are phased
        config: Processing configuration
        resources: Reference resource providers
    """

    def __init__(
        self,
        table: GenotypeTable | None = None,
        source: str | Iterable[str] = (),
        build: int = 0,
        phased: bool = False,
        config: Config | None = None,
        resources: Resources | None = None,
    ) -> None:
        self._table = table if table is not None else GenotypeTable()
        if isinstance(source, str):
            self._source = [source] if source else []
        else:
            self._source = [s for s in source if s]
        self._build = validate_build(build) if build else 0
        self._build_detected = False
        self._phased = phased
        self.config = config or Config()
        self.resources = resources or Resources()

        self._duplicate = GenotypeTable()
        self._discrepant_xy = GenotypeTable()
        self._heterozygous_mt = GenotypeTable()
        self._discrepant_vcf_position = GenotypeTable()
        self._discrepant_merge_positions = GenotypeTable()
        self._discrepant_merge_genotypes = GenotypeTable()

        self.cluster_id = ""
        self.chip = ""
        self.chip_version = ""
        self.malformed_count = 0
        self.dedup_stats = DedupStats()
        self._sex: str | None = None

    def __len__(self) -> int:
        return len(self._table)

    def __repr__(self) -> str:
        return f"Sample(source={self.source!r}, build={self._build}, count={self.count})"

    # ------------------------------------------------------------------
    # Summary accessors
    # ------------------------------------------------------------------

    @property
    def source(self) -> str:
        """Source label(s), comma-joined."""
        return ", ".join(self._source)

    @property
    def sources(self) -> list[str]:
        return list(self._source)

    @property
    def phased(self) -> bool:
        return self._phased

    @property
    def build(self) -> int:
        return self._build

    @property
    def build_detected(self) -> bool:
        return self._build_detected

    @property
    def assembly(self) -> str:
        """Assembly name of the build ("NCBI36", "GRCh37", "GRCh38" or "")."""
        return assembly_name(self._build)

    @property
    def count(self) -> int:
        return len(self._table)

    @property
    def is_valid(self) -> bool:
        """True if the sample holds at least one SNP."""
        return not self._table.empty

    @property
    def chromosomes(self) -> list[str]:
        return self._table.chromosomes()

    @property
    def chromosomes_summary(self) -> str:
        """Chromosome ranges, e.g. "1-22, X, Y, MT"."""
        return summarize_chromosomes(self.chromosomes)

    @property
    def sex(self) -> str:
        """Sex determined from X, falling back to Y ("" if undetermined)."""
        if self._sex is None:
            sex = self.determine_sex("X")
            if sex == Sex.UNKNOWN.value:
                sex = self.determine_sex("Y")
            self._sex = sex
        return self._sex

    @property
    def summary(self) -> dict[str, Any]:
        """Summary of the sample, or an empty dict if it holds no SNPs."""
        if not self.is_valid:
            return {}
        return {
            "source": self.source,
            "assembly": self.assembly,
            "build": self._build,
            "build_detected": self._build_detected,
            "count": self.count,
            "chromosomes": self.chromosomes_summary,
            "sex": self.sex,
        }

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    @property
    def snps(self) -> GenotypeTable:
        """Live genotype table."""
        return self._table

    @property
    def snps_qc(self) -> GenotypeTable:
        """Live SNPs excluding low-quality loci."""
        return self.filter_low_quality()

    @property
    def low_quality(self) -> GenotypeTable:
        """Live SNPs at low-quality loci."""
        return self.identify_low_quality()

    @property
    def duplicate(self) -> GenotypeTable:
        return self._duplicate

    @property
    def discrepant_xy(self) -> GenotypeTable:
        return self._discrepant_xy

    @property
    def heterozygous_mt(self) -> GenotypeTable:
        return self._heterozygous_mt

    @property
    def discrepant_vcf_position(self) -> GenotypeTable:
        return self._discrepant_vcf_position

    @property
    def discrepant_merge_positions(self) -> GenotypeTable:
        return self._discrepant_merge_positions

    @property
    def discrepant_merge_genotypes(self) -> GenotypeTable:
        return self._discrepant_merge_genotypes

    @property
    def discrepant_merge_positions_genotypes(self) -> GenotypeTable:
        """Rows in either merge discrepancy table, without repeats."""
        combined = GenotypeTable(self._discrepant_merge_positions)
        combined.extend(self._discrepant_merge_genotypes)
        return combined.drop_duplicates()

    def add_discrepant_vcf_position(self, rows: Iterable[SNP]) -> None:
        """Record rows whose VCF position disagreed with the sample's."""
        self._discrepant_vcf_position.extend(snp.copy() for snp in rows)

    def filter(self, chrom: str = "") -> GenotypeTable:
        return self._table.filter(chrom)

    def heterozygous(self, chrom: str = "") -> GenotypeTable:
        return self._table.heterozygous(chrom)

    def homozygous(self, chrom: str = "") -> GenotypeTable:
        return self._table.homozygous(chrom)

    def notnull(self, chrom: str = "") -> GenotypeTable:
        return self._table.notnull(chrom)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def _remap_options(self) -> dict[str, Any]:
        return {
            "complement_bases": self.config.complement_bases,
            "parallelize": self.config.parallelize,
            "max_workers": self.config.max_workers,
        }

    def _par_regions(self) -> list[ParRegion]:
        return self.resources.par.get_boundaries(self._build or self.config.default_build)

    def _table_changed(self) -> None:
        self._sex = None

    def detect_build(self) -> BuildDetection:
        """Detect the build from anchor positions (the sample is not modified)."""
        return detect_build(
            self._table,
            self.resources.anchors,
            parallelize=self.config.parallelize,
            max_workers=self.config.max_workers,
        )

    def remap(self, target_build: int | str) -> RemapStats:
        """Remap the sample to another build.

        The table and build are replaced only after the remap succeeds.

        Raises:
            ValidationError: If the target build is invalid or the sample's
                build is unknown
            ResourceUnavailable: If mapping data cannot be obtained
        """
        target = validate_build(target_build)
        if not self._build:
            raise ValidationError("Cannot remap a sample whose build is unknown")

        table, stats = remap(
            self._table,
            self._build,
            target,
            self.resources.mapping,
            **self._remap_options(),
        )
        if table is not self._table:
            self._table = table
            self._build = target
            self._table_changed()
        return stats

    def assign_par_snps(self) -> int:
        """Mirror pseudoautosomal calls between X and Y; returns rows added."""
        added = assign_par_snps(self._table, self._par_regions())
        if added:
            self._table_changed()
        self.dedup_stats.par_assigned += added
        return added

    def determine_sex(self, chrom: str = "X") -> str:
        """Determine sex from one sex chromosome ("Male", "Female" or "")."""
        return determine_sex(self._table, self._par_regions(), chrom, self.config.sex)

    def deduplicate(self, options: DedupOptions | None = None) -> DedupStats:
        """Run the deduplication stages selected by ``options``.

        Args:
            options: Stages to run (defaults from the sample's config)

        Returns:
            Counts for this run
        """
        options = options or self.config.dedup_options()
        stats = DedupStats()

        if options.rsids:
            result = deduplicate_rsids(self._table)
            self._table = result.table
            self._duplicate.extend(result.duplicate)
            self._discrepant_merge_positions.extend(result.discrepant_positions)
            self._discrepant_merge_genotypes.extend(result.discrepant_genotypes)
            stats.rsid_duplicates = len(result.duplicate)
            stats.merge_position_conflicts = len(result.discrepant_positions)
            stats.merge_genotype_conflicts = len(result.discrepant_genotypes)

        if options.xy:
            if options.force_male or self.determine_sex(options.sex_chrom) == Sex.MALE.value:
                result = deduplicate_xy(self._table, self._par_regions(), haploid=options.haploid)
                self._table = result.table
                self._discrepant_xy.extend(result.discrepant)
                self._duplicate.extend(result.duplicate)
                stats.discrepant_xy = len(result.discrepant)
                stats.xy_collapsed = len(result.duplicate)
            else:
                stats.xy_skipped = True
                logger.debug("Skipping XY deduplication; sample not determined male")

        if options.mt:
            result = deduplicate_mt(self._table, haploid=options.haploid)
            self._table = result.table
            self._heterozygous_mt.extend(result.discrepant)
            self._duplicate.extend(result.duplicate)
            stats.heterozygous_mt = len(result.discrepant)
            stats.mt_collapsed = len(result.duplicate)

        self._table_changed()
        stats.par_assigned = self.dedup_stats.par_assigned
        self.dedup_stats = stats
        return stats

    def classify_chip(self) -> ChipMatch | None:
        """Classify the genotyping chip and record cluster_id, chip and chip_version.

        Raises:
            ResourceUnavailable: If no cluster provider is configured, the
                sample is not on build 37 and no mapping provider is
                configured, or cluster/mapping data cannot be obtained
        """
        clusters = self.resources.require_clusters().get_clusters()
        match = classify_chip(
            self._table,
            clusters,
            threshold=self.config.chip_overlap_threshold,
            build=self._build or self.config.default_build,
            sources=self._source,
            mapping_provider=self.resources.mapping,
            **self._remap_options(),
        )
        if match is not None:
            self.cluster_id = match.cluster_id
            self.chip = match.chip
            self.chip_version = match.chip_version
            logger.info(
                "Chip classified as cluster %s (%s %s)",
                match.cluster_id,
                match.chip,
                match.chip_version,
            )
        return match

    def identify_low_quality(self) -> GenotypeTable:
        """Live SNPs at low-quality loci (the sample is not modified)."""
        loci = self.resources.require_low_quality().get_loci()
        return identify_low_quality(
            self._table,
            loci,
            build=self._build or self.config.default_build,
            mapping_provider=self.resources.mapping,
            **self._remap_options(),
        )

    def filter_low_quality(self) -> GenotypeTable:
        """Live SNPs excluding low-quality loci (the sample is not modified)."""
        loci = self.resources.require_low_quality().get_loci()
        return filter_low_quality(
            self._table,
            loci,
            build=self._build or self.config.default_build,
            mapping_provider=self.resources.mapping,
            **self._remap_options(),
        )

    def merge(
        self,
        other: "Sample",
        mapping_provider: AssemblyMappingProvider | None = None,
    ) -> MergeStats:
        """Merge another sample into this one.

        ``other`` is remapped to this sample's build first if needed. New
        rsids are added. For shared rsids, a differing position is recorded
        in ``discrepant_merge_positions`` and this sample's row is kept; a
        conflicting call is recorded in ``discrepant_merge_genotypes`` and
        cleared; a missing call is filled from ``other``.

        Args:
            other: Sample to merge in (not modified)
            mapping_provider: Overrides the configured mapping provider

        Returns:
            MergeStats

        Raises:
            ResourceUnavailable: If the builds differ and no mapping provider
                is available, or mapping data cannot be obtained
        """
        stats = MergeStats()
        provider = mapping_provider or self.resources.mapping
        incoming = other.snps

        if not self.is_valid:
            if other.build:
                self._build = other.build
                self._build_detected = other.build_detected
            self._phased = other.phased
        elif other.build and self._build and other.build != self._build:
            if provider is None:
                raise ResourceUnavailable(
                    f"Cannot merge build {other.build} into build {self._build} "
                    f"without an assembly mapping provider"
                )
            incoming, stats.remap = remap(
                incoming,
                other.build,
                self._build,
                provider,
                **self._remap_options(),
            )
        else:
            self._phased = self._phased and other.phased

        index = self._table.index()
        for snp in incoming:
            mine = index.get(snp.rsid)
            if mine is None:
                added = snp.copy()
                self._table.append(added)
                index[added.rsid] = added
                stats.added += 1
            elif mine.locus != snp.locus:
                self._discrepant_merge_positions.append(snp.copy())
                stats.discrepant_positions += 1
            elif not is_called(mine.genotype):
                if is_called(snp.genotype):
                    mine.genotype = snp.genotype
                    stats.filled += 1
            elif is_called(snp.genotype) and not same_genotype(mine.genotype, snp.genotype):
                self._discrepant_merge_genotypes.append(snp.copy())
                mine.genotype = None
                stats.discrepant_genotypes += 1

        self._duplicate.extend(snp.copy() for snp in other.duplicate)
        self._discrepant_xy.extend(snp.copy() for snp in other.discrepant_xy)
        self._heterozygous_mt.extend(snp.copy() for snp in other.heterozygous_mt)
        self._discrepant_vcf_position.extend(snp.copy() for snp in other.discrepant_vcf_position)

        self._source.extend(s for s in other.sources if s)
        self._table.sort()
        self._table_changed()

        if stats.discrepant_positions or stats.discrepant_genotypes:
            warnings.warn(
                f"Merge conflicts with {other.source or 'sample'}: "
                f"{stats.discrepant_positions} position, {stats.discrepant_genotypes} genotype",
                DataIntegrityWarning,
                stacklevel=2,
            )

        logger.info(
            "Merged %s: %d added, %d filled, %d position conflicts, %d genotype conflicts",
            other.source or "sample",
            stats.added,
            stats.filled,
            stats.discrepant_positions,
            stats.discrepant_genotypes,
        )
        return stats


def build_sample(
    records: Iterable[Mapping[str, Any] | Sequence[Any]],
    source: str | Iterable[str] = "",
    build: int | str = 0,
    phased: bool = False,
    config: Config | None = None,
    resources: Resources | None = None,
) -> Sample:
    """Build a sample from raw records.

    Malformed records are skipped and counted in ``malformed_count``. When
    ``build`` is 0 it is detected from anchor positions; if no anchor
    matches, ``config.default_build`` is used and ``build_detected`` stays
    False.

    Args:
        records: Mappings or (rsid, chrom, pos, genotype) tuples
        source: Source label(s), e.g. "23andMe"
        build: Known build (36/37/38 or assembly name), or 0 if unknown
        phased: Whether genotypes are phased
        config: Processing configuration
        resources: Reference resource providers

    Returns:
        Sample with PAR assignment and deduplication applied per ``config``

    Raises:
        ValidationError: If the configuration or build is invalid
    """
    config = config or Config()
    errors = config.validate()
    if errors:
        raise ValidationError("Invalid configuration: " + "; ".join(errors))

    build = validate_build(build) if build else 0

    rows: list[SNP] = []
    malformed = 0
    for record in records:
        try:
            rows.append(parse_record(record))
        except MalformedRecord as e:
            malformed += 1
            logger.debug("Skipping malformed record: %s", e)

    if malformed:
        logger.warning("Skipped %d malformed records", malformed)

    table = GenotypeTable(rows)
    table.sort()

    sample = Sample(table, source, build, phased, config, resources)
    sample.malformed_count = malformed

    if not build and sample.is_valid:
        detection = sample.detect_build()
        if detection.build:
            sample._build = detection.build
            sample._build_detected = True
            logger.info("Detected build %d (confidence %.2f)", detection.build, detection.confidence)
        else:
            sample._build = config.default_build
            logger.info("Build not detected; assuming build %d", config.default_build)

    if not sample.is_valid:
        logger.warning("No valid SNPs in %s", sample.source or "input")
        return sample

    if config.assign_par_snps:
        sample.assign_par_snps()

    sample.deduplicate(config.dedup_options())
    return sample
