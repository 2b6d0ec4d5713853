"""Configuration dataclasses for the genotype harmonizer.

Pipeline flags, classification thresholds and the sex-determination
heuristic thresholds. Thresholds are configuration, not diagnostics: the sex
call in particular is a heuristic over heterozygosity and Y call rate.
"""

from dataclasses import dataclass, field

from genotype_harmonizer.utils import VALID_BUILDS


@dataclass
class SexThresholds:
    """Thresholds for the X-heterozygosity / Y-call-rate sex heuristic.

    Attributes:
        heterozygous_x_threshold: Non-PAR X heterozygous/called ratio above
            which the sample looks female
        y_called_threshold: Non-PAR Y called/total ratio above which the
            sample looks male
        min_called_positions: Minimum number of positions needed on a
            chromosome before it is used as evidence
    """

    heterozygous_x_threshold: float = 0.03
    y_called_threshold: float = 0.3
    min_called_positions: int = 10


@dataclass
class DedupOptions:
    """Which deduplication stages to run and how.

    Attributes:
        rsids: Deduplicate repeated rsids
        xy: Deduplicate non-PAR X/Y calls (only for male samples)
        mt: Deduplicate MT calls
        sex_chrom: Chromosome used to determine sex before XY deduplication
        force_male: Skip sex determination and treat the sample as male
        haploid: Reduce homozygous non-PAR X/Y and MT calls to one allele
    """

    rsids: bool = True
    xy: bool = True
    mt: bool = True
    sex_chrom: str = "X"
    force_male: bool = False
    haploid: bool = False


@dataclass
class Config:
    """Configuration for building and processing a sample.

    Attributes:
        assign_par_snps: Mirror pseudoautosomal calls between X and Y
        deduplicate: Run rsid deduplication at construction
        deduplicate_xy_chrom: Run XY deduplication for male samples; True
            uses X for sex determination, "X" or "Y" selects the chromosome
        deduplicate_mt_chrom: Run MT deduplication
        force_male: Treat the sample as male for XY deduplication
        haploid_calls: Reduce homozygous haploid calls to one allele
        default_build: Build assumed when detection finds no anchors
        chip_overlap_threshold: Minimum overlap ratios for chip classification
        complement_bases: Complement genotypes remapped onto the reverse strand
        parallelize: Run per-chromosome / per-build work in a process pool
        max_workers: Maximum parallel workers (default: CPU count)
        sex: Sex-determination thresholds
    """

    # Pipeline flags
    assign_par_snps: bool = True
    deduplicate: bool = True
    deduplicate_xy_chrom: bool | str = True
    deduplicate_mt_chrom: bool = True
    force_male: bool = False
    haploid_calls: bool = False

    # Defaults and thresholds
    default_build: int = 37
    chip_overlap_threshold: float = 0.95
    complement_bases: bool = True

    # Parallel options
    parallelize: bool = False
    max_workers: int | None = None

    sex: SexThresholds = field(default_factory=SexThresholds)

    def __post_init__(self) -> None:
        """Normalize the XY deduplication chromosome."""
        if isinstance(self.deduplicate_xy_chrom, str):
            self.deduplicate_xy_chrom = self.deduplicate_xy_chrom.upper()

    @property
    def sex_chrom(self) -> str:
        """Chromosome used to determine sex before XY deduplication."""
        if isinstance(self.deduplicate_xy_chrom, str):
            return self.deduplicate_xy_chrom
        return "X"

    def dedup_options(self) -> DedupOptions:
        """Deduplication options implied by this configuration."""
        return DedupOptions(
            rsids=self.deduplicate,
            xy=bool(self.deduplicate_xy_chrom),
            mt=self.deduplicate_mt_chrom,
            sex_chrom=self.sex_chrom,
            force_male=self.force_male,
            haploid=self.haploid_calls,
        )

    def validate(self) -> list[str]:
        """Validate configuration and return list of errors.

        Returns:
            List of error messages (empty if valid)
        """
        errors: list[str] = []

        if self.default_build not in VALID_BUILDS:
            errors.append(
                f"default_build must be one of {list(VALID_BUILDS)}: {self.default_build}"
            )

        if not 0 <= self.chip_overlap_threshold <= 1:
            errors.append(
                f"chip_overlap_threshold must be between 0 and 1: {self.chip_overlap_threshold}"
            )

        if isinstance(self.deduplicate_xy_chrom, str) and self.deduplicate_xy_chrom not in {"X", "Y"}:
            errors.append(
                f"deduplicate_xy_chrom must be True, False, 'X' or 'Y': {self.deduplicate_xy_chrom}"
            )

        if not 0 <= self.sex.heterozygous_x_threshold <= 1:
            errors.append(
                f"heterozygous_x_threshold must be between 0 and 1: "
                f"{self.sex.heterozygous_x_threshold}"
            )

        if not 0 <= self.sex.y_called_threshold <= 1:
            errors.append(
                f"y_called_threshold must be between 0 and 1: {self.sex.y_called_threshold}"
            )

        if self.sex.min_called_positions < 1:
            errors.append(
                f"min_called_positions must be at least 1: {self.sex.min_called_positions}"
            )

        if self.max_workers is not None and self.max_workers < 1:
            errors.append(f"max_workers must be at least 1: {self.max_workers}")

        return errors
