"""Pytest fixtures for genotype_harmonizer tests."""

from pathlib import Path

import pytest

from genotype_harmonizer.exceptions import ResourceUnavailable
from genotype_harmonizer.logging_config import reset_logging
from genotype_harmonizer.models import MappingRegion, Orientation, ParRegion
from genotype_harmonizer.resources import (
    AssemblyMappingProvider,
    InMemoryAssemblyMapping,
    Resources,
)
from genotype_harmonizer.resources.static import PAR_REGIONS

# Non-PAR X and Y positions on GRCh37
NON_PAR_X_START = 10_000_000
NON_PAR_Y_START = 10_000_000


class FailingMapping(AssemblyMappingProvider):
    """Mapping provider that fails for one chromosome and records every call."""

    def __init__(self, failing_chrom: str = "2") -> None:
        self.failing_chrom = failing_chrom
        self.calls: list[tuple[str, int, int]] = []

    def get_regions(self, chrom, source_build, target_build):
        self.calls.append((chrom, source_build, target_build))
        if chrom == self.failing_chrom:
            raise ResourceUnavailable(f"Mapping for chromosome {chrom} unavailable")
        return [MappingRegion(1, 10_000_000, 1, 10_000_000)]


def autosomal_records(count: int = 5, chrom: str = "1", start: int = 1_000) -> list[tuple]:
    """Homozygous autosomal calls rs<chrom>_<i> at start, start + 1000, ..."""
    return [(f"rs{chrom}_{i}", chrom, start + i * 1_000, "AA") for i in range(count)]


def x_records(homozygous: int, heterozygous: int = 0, start: int = NON_PAR_X_START) -> list[tuple]:
    """Non-PAR X calls on GRCh37."""
    records = [(f"rsx{i}", "X", start + i * 1_000, "AA") for i in range(homozygous)]
    records += [
        (f"rsxh{i}", "X", start + 500 + i * 1_000, "AG") for i in range(heterozygous)
    ]
    return records


def y_records(called: int, uncalled: int = 0, start: int = NON_PAR_Y_START) -> list[tuple]:
    """Non-PAR Y calls on GRCh37."""
    records = [(f"rsy{i}", "Y", start + i * 1_000, "C") for i in range(called)]
    records += [
        (f"rsyn{i}", "Y", start + 500 + i * 1_000, "--") for i in range(uncalled)
    ]
    return records


@pytest.fixture(autouse=True)
def clean_logging():
    """Undo CLI logging setup so caplog sees records in every test."""
    yield
    reset_logging()


@pytest.fixture
def failing_mapping() -> FailingMapping:
    """Mapping provider that raises ResourceUnavailable for chromosome 2."""
    return FailingMapping(failing_chrom="2")


@pytest.fixture
def par37() -> list[ParRegion]:
    """GRCh37 PAR regions."""
    return list(PAR_REGIONS[37])


@pytest.fixture
def male_records() -> list[tuple]:
    """Records for a male sample: homozygous non-PAR X, called non-PAR Y."""
    return autosomal_records() + x_records(40) + y_records(20)


@pytest.fixture
def female_records() -> list[tuple]:
    """Records for a female sample: heterozygous non-PAR X, uncalled non-PAR Y."""
    return autosomal_records() + x_records(20, heterozygous=20) + y_records(0, uncalled=20)


@pytest.fixture
def mapping_37_38() -> dict[str, list[MappingRegion]]:
    """GRCh37 -> GRCh38 regions.

    Chromosome 1: +100 shift up to 1,000,000, then +1,000,000 from 2,000,000
    to 3,000,000 (positions in between are unmapped).
    Chromosome 2: reverse-oriented region.
    """
    return {
        "1": [
            MappingRegion(1, 1_000_000, 101, 1_000_100),
            MappingRegion(2_000_000, 3_000_000, 3_000_000, 4_000_000),
        ],
        "2": [
            MappingRegion(1, 1_000, 5_001, 6_000, Orientation.REVERSE),
        ],
    }


@pytest.fixture
def mapping_38_37() -> dict[str, list[MappingRegion]]:
    """GRCh38 -> GRCh37 regions (inverse of mapping_37_38)."""
    return {
        "1": [
            MappingRegion(101, 1_000_100, 1, 1_000_000),
            MappingRegion(3_000_000, 4_000_000, 2_000_000, 3_000_000),
        ],
        "2": [
            MappingRegion(5_001, 6_000, 1, 1_000, Orientation.REVERSE),
        ],
    }


@pytest.fixture
def mapping_provider(mapping_37_38, mapping_38_37) -> InMemoryAssemblyMapping:
    """In-memory GRCh37 <-> GRCh38 mapping."""
    return InMemoryAssemblyMapping({(37, 38): mapping_37_38, (38, 37): mapping_38_37})


@pytest.fixture
def resources(mapping_provider) -> Resources:
    """Resources with the in-memory mapping and built-in anchors/PAR tables."""
    return Resources(mapping=mapping_provider)


@pytest.fixture
def genotype_file(tmp_path: Path) -> Path:
    """Normalized genotype TSV on GRCh37 (marker SNPs rs3094315, rs11928389)."""
    path = tmp_path / "genome.tsv"
    path.write_text(
        "# normalized genotype file\n"
        "rsid\tchromosome\tposition\tgenotype\n"
        "rs3094315\t1\t752566\tAG\n"
        "rs11928389\t1\t50927009\tAA\n"
        "rs1000\t2\t500\tCT\n"
        "rs2000\tX\t10000000\tGG\n"
        "rs3000\tMT\t200\tA\n"
        "rs4000\t1\tnot_a_position\tAA\n"
    )
    return path
