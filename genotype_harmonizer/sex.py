"""Sex determination from X heterozygosity and Y call rate.

This is a heuristic over consumer array data, not a diagnostic. Only the
non-PAR parts of X and Y are used, since PAR sequence is diploid in both
sexes. Thresholds come from SexThresholds.
"""

import logging
from collections.abc import Iterable

from genotype_harmonizer.config import SexThresholds
from genotype_harmonizer.dedup import non_par_predicate
from genotype_harmonizer.exceptions import ValidationError
from genotype_harmonizer.models import ParRegion, Sex
from genotype_harmonizer.table import GenotypeTable
from genotype_harmonizer.utils import is_called, is_heterozygous

logger = logging.getLogger(__name__)


def _y_call_rate(y_rows: GenotypeTable) -> float:
    return sum(1 for snp in y_rows if is_called(snp.genotype)) / len(y_rows)


def determine_sex(
    table: GenotypeTable,
    par_regions: Iterable[ParRegion],
    chrom: str = "X",
    thresholds: SexThresholds | None = None,
) -> str:
    """Determine sex from one sex chromosome.

    With ``chrom="X"``, the heterozygous/called ratio on non-PAR X decides:
    above ``heterozygous_x_threshold`` suggests Female, otherwise Male. The
    sample must also have at least ``min_called_positions`` non-PAR Y rows
    whose call rate agrees (above ``y_called_threshold`` for Male, at or
    below it for Female); too few Y rows or disagreement yields unknown.

    With ``chrom="Y"``, a non-PAR Y call rate above ``y_called_threshold``
    suggests Male, otherwise Female.

    Args:
        table: Genotype table (not modified)
        par_regions: PAR1/PAR2 regions on X and Y for the table's build
        chrom: "X" or "Y"
        thresholds: Heuristic thresholds (defaults if None)

    Returns:
        "Male", "Female", or "" when there are too few positions or the
        evidence conflicts

    Raises:
        ValidationError: If ``chrom`` is not X or Y
    """
    chrom = str(chrom).upper()
    if chrom not in ("X", "Y"):
        raise ValidationError(f"Sex can only be determined from X or Y, not {chrom!r}")

    thresholds = thresholds or SexThresholds()
    is_non_par = non_par_predicate(par_regions)
    y_rows = table.filter("Y").where(is_non_par)

    if chrom == "Y":
        if len(y_rows) < thresholds.min_called_positions:
            return Sex.UNKNOWN.value
        if _y_call_rate(y_rows) > thresholds.y_called_threshold:
            return Sex.MALE.value
        return Sex.FEMALE.value

    x_called = table.notnull("X").where(is_non_par)
    if len(x_called) < thresholds.min_called_positions:
        return Sex.UNKNOWN.value
    if len(y_rows) < thresholds.min_called_positions:
        logger.debug("Too few non-PAR Y rows (%d) to confirm sex", len(y_rows))
        return Sex.UNKNOWN.value

    het_ratio = sum(1 for snp in x_called if is_heterozygous(snp.genotype)) / len(x_called)
    sex = Sex.FEMALE if het_ratio > thresholds.heterozygous_x_threshold else Sex.MALE

    y_male = _y_call_rate(y_rows) > thresholds.y_called_threshold
    if y_male != (sex == Sex.MALE):
        logger.info(
            "X heterozygosity (%.3f) and Y call rate disagree; sex unknown",
            het_ratio,
        )
        return Sex.UNKNOWN.value

    return sex.value
