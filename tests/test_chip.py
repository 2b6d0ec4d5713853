"""Tests for chip classification and low-quality SNP views."""

import logging

import pytest

from genotype_harmonizer.chip import (
    chip_version_for,
    classify_chip,
    filter_low_quality,
    identify_low_quality,
)
from genotype_harmonizer.exceptions import ResourceUnavailable, ValidationError
from genotype_harmonizer.models import SNP, ChipCluster
from genotype_harmonizer.resources import Resources, StaticChipClusters, StaticLowQuality
from genotype_harmonizer.sample import build_sample
from genotype_harmonizer.table import GenotypeTable

CLUSTER_LOCI = [("1", 10_000 + i * 100) for i in range(100)]


def cluster(cluster_id: str, loci=CLUSTER_LOCI, composition: str = "", chip: str = "") -> ChipCluster:
    return ChipCluster(cluster_id, frozenset(loci), composition, chip)


def table_with(loci: list[tuple[str, int]], extras: int = 0, shift: int = 0) -> GenotypeTable:
    """Table with a row per locus plus ``extras`` rows off the cluster, positions shifted by ``shift``."""
    snps = [SNP(f"rs{i}", chrom, pos + shift, "AA") for i, (chrom, pos) in enumerate(loci)]
    snps += [SNP(f"rsextra{i}", "1", 500_000 + i + shift, "CC") for i in range(extras)]
    return GenotypeTable(snps)


class TestChipVersion:
    """Tests for chip_version_for."""

    def test_version_for_source(self) -> None:
        assert chip_version_for(["23andMe"], "23andMe-v4") == "v4"

    def test_first_matching_source(self) -> None:
        assert chip_version_for(["LivingDNA", "23andMe"], "23andMe-v5, LivingDNA") == "v5"

    def test_no_version(self) -> None:
        assert chip_version_for(["FTDNA"], "AncestryDNA-v1, FTDNA, MyHeritage") == ""

    def test_source_not_in_composition_warns(self, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="genotype_harmonizer"):
            assert chip_version_for(["Nebula"], "23andMe-v4") == ""

        assert "not found in chip cluster composition" in caplog.text

    def test_no_sources(self, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="genotype_harmonizer"):
            assert chip_version_for([], "23andMe-v4") == ""

        assert caplog.text == ""


class TestClassifyChip:
    """Tests for classify_chip."""

    def test_accepted_above_threshold(self) -> None:
        table = table_with(CLUSTER_LOCI[:97], extras=4)
        clusters = [cluster("c1", composition="23andMe-v4", chip="HTS iSelect HD")]

        match = classify_chip(table, clusters, sources=["23andMe"])

        assert match is not None
        assert match.cluster_id == "c1"
        assert match.chip == "HTS iSelect HD"
        assert match.chip_version == "v4"
        assert match.overlap_with_cluster == pytest.approx(0.97)
        assert match.overlap_with_self == pytest.approx(97 / 101)

    def test_rejected_below_threshold(self) -> None:
        table = table_with(CLUSTER_LOCI[:80], extras=20)

        assert classify_chip(table, [cluster("c1")]) is None

    def test_low_overlap_with_self_rejected(self) -> None:
        table = table_with(CLUSTER_LOCI, extras=10)

        assert classify_chip(table, [cluster("c1")]) is None

    def test_exact_threshold_rejected(self) -> None:
        table = table_with(CLUSTER_LOCI[:95])

        assert classify_chip(table, [cluster("c1")]) is None

    def test_custom_threshold(self) -> None:
        table = table_with(CLUSTER_LOCI[:80], extras=20)

        match = classify_chip(table, [cluster("c1")], threshold=0.75)

        assert match.cluster_id == "c1"

    def test_highest_overlap_wins(self) -> None:
        table = table_with(CLUSTER_LOCI)
        partial = cluster("c0", CLUSTER_LOCI[:50] + [("2", i) for i in range(50)])

        match = classify_chip(table, [partial, cluster("c5")])

        assert match.cluster_id == "c5"

    def test_tie_lowest_cluster_id(self) -> None:
        table = table_with(CLUSTER_LOCI)

        match = classify_chip(table, [cluster("c2"), cluster("c1")])

        assert match.cluster_id == "c1"

    def test_empty_table(self) -> None:
        assert classify_chip(GenotypeTable(), [cluster("c1")]) is None

    def test_no_clusters(self) -> None:
        assert classify_chip(table_with(CLUSTER_LOCI), []) is None

    def test_non_37_without_provider(self) -> None:
        table = table_with(CLUSTER_LOCI, shift=100)

        with pytest.raises(ResourceUnavailable, match="mapping provider"):
            classify_chip(table, [cluster("c1")], build=38)

    def test_invalid_build(self) -> None:
        with pytest.raises(ValidationError):
            classify_chip(table_with(CLUSTER_LOCI), [cluster("c1")], build=19)

    def test_non_37_remapped(self, mapping_provider) -> None:
        # 38 -> 37 on chromosome 1 subtracts 100
        table = table_with(CLUSTER_LOCI, shift=100)
        before = table.copy()

        match = classify_chip(table, [cluster("c1")], build=38, mapping_provider=mapping_provider)

        assert match.cluster_id == "c1"
        assert table == before


class TestLowQuality:
    """Tests for identify_low_quality and filter_low_quality."""

    def test_identify_and_filter_partition(self) -> None:
        table = table_with(CLUSTER_LOCI[:10])
        loci = set(CLUSTER_LOCI[:3])

        low = identify_low_quality(table, loci)
        good = filter_low_quality(table, loci)

        assert low.rsids() == ["rs0", "rs1", "rs2"]
        assert len(good) == 7
        assert set(low.rsids()).isdisjoint(good.rsids())

    def test_non_37_returned_in_own_coordinates(self, mapping_provider) -> None:
        table = table_with(CLUSTER_LOCI[:10], shift=100)

        low = identify_low_quality(table, CLUSTER_LOCI[:3], build=38, mapping_provider=mapping_provider)

        assert low.rsids() == ["rs0", "rs1", "rs2"]
        assert low.get("rs0").pos == CLUSTER_LOCI[0][1] + 100

    def test_non_37_without_provider(self) -> None:
        with pytest.raises(ResourceUnavailable):
            filter_low_quality(table_with(CLUSTER_LOCI[:3]), CLUSTER_LOCI[:1], build=38)


class TestSampleChip:
    """Chip classification and low-quality views through Sample."""

    def test_classify_sets_chip_fields(self) -> None:
        clusters = StaticChipClusters([cluster("c1", composition="23andMe-v4", chip="HTS iSelect HD")])
        records = [(snp.rsid, snp.chrom, snp.pos, snp.genotype) for snp in table_with(CLUSTER_LOCI[:97], extras=4)]

        sample = build_sample(records, source="23andMe", build=37, resources=Resources(clusters=clusters))
        match = sample.classify_chip()

        assert match is not None
        assert (sample.cluster_id, sample.chip, sample.chip_version) == ("c1", "HTS iSelect HD", "v4")

    def test_no_match_leaves_fields_empty(self) -> None:
        clusters = StaticChipClusters([cluster("c1")])

        sample = build_sample([("rs1", "1", 1, "AA")], build=37, resources=Resources(clusters=clusters))

        assert sample.classify_chip() is None
        assert sample.cluster_id == ""

    def test_missing_cluster_provider(self) -> None:
        sample = build_sample([("rs1", "1", 1, "AA")], build=37)

        with pytest.raises(ResourceUnavailable):
            sample.classify_chip()

    def test_non_37_sample_uses_mapping(self, mapping_provider) -> None:
        records = [(snp.rsid, snp.chrom, snp.pos, snp.genotype) for snp in table_with(CLUSTER_LOCI, shift=100)]
        resources = Resources(mapping=mapping_provider, clusters=StaticChipClusters([cluster("c1")]))

        sample = build_sample(records, build=38, resources=resources)

        assert sample.classify_chip().cluster_id == "c1"
        assert sample.build == 38

    def test_non_37_sample_without_mapping(self) -> None:
        records = [(snp.rsid, snp.chrom, snp.pos, snp.genotype) for snp in table_with(CLUSTER_LOCI, shift=100)]
        resources = Resources(clusters=StaticChipClusters([cluster("c1")]))
        sample = build_sample(records, build=38, resources=resources)

        with pytest.raises(ResourceUnavailable):
            sample.classify_chip()

        with pytest.raises(ResourceUnavailable):
            sample.remap(37)

        assert sample.cluster_id == ""
        assert sample.build == 38

    def test_low_quality_views(self) -> None:
        records = [(snp.rsid, snp.chrom, snp.pos, snp.genotype) for snp in table_with(CLUSTER_LOCI[:10])]
        resources = Resources(low_quality=StaticLowQuality(CLUSTER_LOCI[:4]))

        sample = build_sample(records, build=37, resources=resources)

        assert len(sample.low_quality) == 4
        assert len(sample.snps_qc) == 6
        assert len(sample.snps) == 10

    def test_missing_low_quality_provider(self) -> None:
        sample = build_sample([("rs1", "1", 1, "AA")], build=37)

        with pytest.raises(ResourceUnavailable):
            sample.snps_qc
