"""Tests for sex determination."""

import pytest

from genotype_harmonizer.config import Config, SexThresholds
from genotype_harmonizer.exceptions import ValidationError
from genotype_harmonizer.models import SNP
from genotype_harmonizer.sample import Sample, build_sample
from genotype_harmonizer.sex import determine_sex
from genotype_harmonizer.table import GenotypeTable


def table_from(records: list[tuple]) -> GenotypeTable:
    table = GenotypeTable(SNP(rsid, chrom, pos, genotype) for rsid, chrom, pos, genotype in records)
    table.sort()
    return table


def x_calls(homozygous: int, heterozygous: int = 0, start: int = 10_000_000) -> list[tuple]:
    records = [(f"x{i}", "X", start + i * 10, "AA") for i in range(homozygous)]
    records += [(f"xh{i}", "X", start + 5 + i * 10, "AG") for i in range(heterozygous)]
    return records


def y_calls(called: int, uncalled: int = 0, start: int = 10_000_000) -> list[tuple]:
    records = [(f"y{i}", "Y", start + i * 10, "T") for i in range(called)]
    records += [(f"yn{i}", "Y", start + 5 + i * 10, None) for i in range(uncalled)]
    return records


class TestDetermineSexFromX:
    """Sex determination from non-PAR X heterozygosity."""

    def test_male(self, par37) -> None:
        table = table_from(x_calls(40) + y_calls(20))

        assert determine_sex(table, par37) == "Male"

    def test_female(self, par37) -> None:
        table = table_from(x_calls(20, heterozygous=20) + y_calls(0, uncalled=20))

        assert determine_sex(table, par37) == "Female"

    def test_ratio_at_threshold_is_male(self, par37) -> None:
        # 3 / 100 is not above 0.03
        table = table_from(x_calls(97, heterozygous=3) + y_calls(20))

        assert determine_sex(table, par37) == "Male"

    def test_too_few_called_positions(self, par37) -> None:
        table = table_from(x_calls(9))

        assert determine_sex(table, par37) == ""

    def test_uncalled_rows_not_counted(self, par37) -> None:
        records = x_calls(9) + [(f"xn{i}", "X", 20_000_000 + i, None) for i in range(20)]

        assert determine_sex(table_from(records), par37) == ""

    def test_par_rows_ignored(self, par37) -> None:
        # Heterozygous PAR1 calls would otherwise look female
        par_rows = [(f"p{i}", "X", 100_000 + i, "AG") for i in range(30)]
        table = table_from(x_calls(40) + y_calls(20) + par_rows)

        assert determine_sex(table, par37) == "Male"

    def test_y_agrees_with_x(self, par37) -> None:
        male = table_from(x_calls(40) + y_calls(20))
        female = table_from(x_calls(20, heterozygous=20) + y_calls(0, uncalled=20))

        assert determine_sex(male, par37) == "Male"
        assert determine_sex(female, par37) == "Female"

    def test_y_disagrees_with_x(self, par37) -> None:
        # Homozygous X but no Y calls
        table = table_from(x_calls(40) + y_calls(0, uncalled=20))

        assert determine_sex(table, par37) == ""

    def test_too_few_y_rows_unknown(self, par37) -> None:
        few_y = table_from(x_calls(40) + y_calls(0, uncalled=5))
        no_y = table_from(x_calls(40))

        assert determine_sex(few_y, par37) == ""
        assert determine_sex(no_y, par37) == ""
        assert determine_sex(table_from(x_calls(20, heterozygous=20)), par37) == ""

    def test_custom_thresholds(self, par37) -> None:
        table = table_from(x_calls(5, heterozygous=1) + y_calls(5))
        thresholds = SexThresholds(heterozygous_x_threshold=0.5, min_called_positions=5)

        assert determine_sex(table, par37, thresholds=thresholds) == "Male"

    def test_empty_table(self, par37) -> None:
        assert determine_sex(GenotypeTable(), par37) == ""


class TestDetermineSexFromY:
    """Sex determination from non-PAR Y call rate."""

    def test_male(self, par37) -> None:
        table = table_from(y_calls(15, uncalled=5))

        assert determine_sex(table, par37, "Y") == "Male"

    def test_female(self, par37) -> None:
        table = table_from(y_calls(2, uncalled=18))

        assert determine_sex(table, par37, "Y") == "Female"

    def test_rate_at_threshold_is_female(self, par37) -> None:
        table = table_from(y_calls(3, uncalled=7))

        assert determine_sex(table, par37, "Y") == "Female"

    def test_too_few_rows(self, par37) -> None:
        table = table_from(y_calls(9))

        assert determine_sex(table, par37, "Y") == ""

    def test_par_rows_ignored(self, par37) -> None:
        par_rows = [(f"p{i}", "Y", 20_000 + i, "A") for i in range(30)]
        table = table_from(y_calls(0, uncalled=5) + par_rows)

        assert determine_sex(table, par37, "Y") == ""

    def test_lowercase_chrom(self, par37) -> None:
        table = table_from(y_calls(20))

        assert determine_sex(table, par37, "y") == "Male"


class TestDetermineSexInvalid:
    """Invalid chromosome argument."""

    @pytest.mark.parametrize("chrom", ["1", "MT", ""])
    def test_invalid_chrom(self, chrom: str, par37) -> None:
        with pytest.raises(ValidationError):
            determine_sex(GenotypeTable(), par37, chrom)

    def test_sample_invalid_chrom(self) -> None:
        with pytest.raises(ValidationError):
            Sample(build=37).determine_sex("1")


class TestSampleSex:
    """Tests for the Sample.sex property."""

    def test_male_sample(self, male_records) -> None:
        sample = build_sample(male_records, build=37)

        assert sample.sex == "Male"
        assert sample.summary["sex"] == "Male"

    def test_female_sample(self, female_records) -> None:
        sample = build_sample(female_records, build=37)

        assert sample.sex == "Female"

    def test_falls_back_to_y(self) -> None:
        records = [(rsid, chrom, pos, gt) for rsid, chrom, pos, gt in y_calls(20)]

        sample = build_sample(records, build=37)

        assert sample.determine_sex("X") == ""
        assert sample.sex == "Male"

    def test_unknown_without_sex_chromosomes(self) -> None:
        sample = build_sample([("rs1", "1", 100, "AA")], build=37)

        assert sample.sex == ""

    def test_no_y_rows_skips_xy_dedup(self) -> None:
        records = x_calls(40) + [("rshet", "X", 20_000_500, "AG")]

        sample = build_sample(records, build=37)

        assert sample.sex == ""
        assert sample.dedup_stats.xy_skipped is True
        assert sample.snps.get("rshet").genotype == "AG"

    def test_thresholds_from_config(self) -> None:
        config = Config(sex=SexThresholds(min_called_positions=50))

        sample = build_sample(x_calls(40), build=37, config=config)

        assert sample.sex == ""

    def test_recomputed_after_merge(self, female_records) -> None:
        sample = build_sample([("rs1", "1", 100, "AA")], build=37)
        assert sample.sex == ""

        sample.merge(build_sample(female_records, build=37))

        assert sample.sex == "Female"

    def test_build_36_boundaries(self) -> None:
        # Outside build 37 PAR1 on X but inside build 36 PAR1
        records = x_calls(20, heterozygous=20, start=2_705_000) + y_calls(0, uncalled=20)

        assert build_sample(records, build=36).determine_sex("X") == ""
        assert build_sample(records, build=37).sex == "Female"
