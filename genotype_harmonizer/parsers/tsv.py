"""Normalized genotype TSV reader.

Format (tab-separated, optional header, '#' comments, may be gzipped):
rsid        chromosome  position  genotype
rs3094315   1           752566    AG
"""

from collections.abc import Iterator
from pathlib import Path

from genotype_harmonizer.io_utils import iter_lines

HEADER_NAMES: frozenset[str] = frozenset({"rsid", "snp", "name"})


def read_genotypes(filepath: Path) -> Iterator[tuple[str, ...]]:
    """Stream raw records from a genotype TSV.

    Records are yielded unparsed so that a bad line is counted and skipped
    by ``build_sample`` rather than aborting the read.

    Args:
        filepath: Path to the genotype file

    Yields:
        Tuple of column values for each data line

    Raises:
        FileNotFoundError: If file doesn't exist

    Example:
        >>> sample = build_sample(read_genotypes(Path("genome.tsv")), source="23andMe")
    """
    if not filepath.exists():
        raise FileNotFoundError(f"Genotype file not found: {filepath}")

    for line in iter_lines(filepath, comment="#"):
        parts = line.split("\t") if "\t" in line else line.split()
        if parts[0].strip().lower() in HEADER_NAMES:
            continue

        yield tuple(part.strip() for part in parts)
