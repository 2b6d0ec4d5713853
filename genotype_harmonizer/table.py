"""Genotype table: an ordered collection of SNP calls keyed by rsid.

Rows are kept in a list so that repeated rsids and repeated (chrom, pos)
pairs can exist transiently between construction and deduplication. Once
rsid deduplication has run, ``has_unique_rsids()`` holds for the live table.
"""

from collections.abc import Callable, Collection, Iterable, Iterator

from genotype_harmonizer.models import SNP
from genotype_harmonizer.utils import (
    chrom_sort_key,
    is_called,
    is_heterozygous,
    is_homozygous,
)


def snp_sort_key(snp: SNP) -> tuple[tuple[int, str], int]:
    """Sort key by (chrom-rank, pos)."""
    return chrom_sort_key(snp.chrom), snp.pos


class GenotypeTable:
    """Ordered table of SNP calls.

    Lookups by rsid return the first row carrying that rsid. Filtering
    methods return new tables sharing the same SNP objects; use ``copy()``
    for an independent table.
    """

    def __init__(self, snps: Iterable[SNP] = ()) -> None:
        self._rows: list[SNP] = list(snps)

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[SNP]:
        return iter(self._rows)

    def __contains__(self, rsid: object) -> bool:
        return any(snp.rsid == rsid for snp in self._rows)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GenotypeTable):
            return NotImplemented
        return self._rows == other._rows

    def __repr__(self) -> str:
        return f"GenotypeTable({len(self._rows)} SNPs)"

    @property
    def empty(self) -> bool:
        return not self._rows

    def rows(self) -> list[SNP]:
        """Return a shallow copy of the row list."""
        return list(self._rows)

    def get(self, rsid: str) -> SNP | None:
        for snp in self._rows:
            if snp.rsid == rsid:
                return snp
        return None

    def index(self) -> dict[str, SNP]:
        """Map rsid to its first row."""
        index: dict[str, SNP] = {}
        for snp in self._rows:
            index.setdefault(snp.rsid, snp)
        return index

    def rsids(self) -> list[str]:
        return [snp.rsid for snp in self._rows]

    def has_unique_rsids(self) -> bool:
        return len({snp.rsid for snp in self._rows}) == len(self._rows)

    def append(self, snp: SNP) -> None:
        self._rows.append(snp)

    def extend(self, snps: Iterable[SNP]) -> None:
        self._rows.extend(snps)

    def sort(self) -> None:
        """Sort in place by (chrom-rank, pos); stable for ties."""
        self._rows.sort(key=snp_sort_key)

    def sorted(self) -> "GenotypeTable":
        return GenotypeTable(sorted(self._rows, key=snp_sort_key))

    def copy(self) -> "GenotypeTable":
        """Deep copy: rows can be mutated without affecting this table."""
        return GenotypeTable(snp.copy() for snp in self._rows)

    def where(self, predicate: Callable[[SNP], bool]) -> "GenotypeTable":
        return GenotypeTable(snp for snp in self._rows if predicate(snp))

    def filter(self, chrom: str = "") -> "GenotypeTable":
        """Rows on ``chrom``, or all rows when ``chrom`` is empty."""
        if not chrom:
            return GenotypeTable(self._rows)
        return self.where(lambda snp: snp.chrom == chrom)

    def heterozygous(self, chrom: str = "") -> "GenotypeTable":
        return self.filter(chrom).where(lambda snp: is_heterozygous(snp.genotype))

    def homozygous(self, chrom: str = "") -> "GenotypeTable":
        return self.filter(chrom).where(lambda snp: is_homozygous(snp.genotype))

    def notnull(self, chrom: str = "") -> "GenotypeTable":
        return self.filter(chrom).where(lambda snp: is_called(snp.genotype))

    def count(self, chrom: str = "") -> int:
        return len(self.filter(chrom))

    def positions(self) -> set[tuple[str, int]]:
        return {snp.locus for snp in self._rows}

    def chromosomes(self) -> list[str]:
        """Unique chromosomes in canonical order."""
        return sorted({snp.chrom for snp in self._rows}, key=chrom_sort_key)

    def subset(self, rsids: Collection[str]) -> "GenotypeTable":
        wanted = set(rsids)
        return self.where(lambda snp: snp.rsid in wanted)

    def without(self, rsids: Collection[str]) -> "GenotypeTable":
        unwanted = set(rsids)
        return self.where(lambda snp: snp.rsid not in unwanted)

    def drop_duplicates(self) -> "GenotypeTable":
        """Drop rows identical in every field, keeping the first."""
        seen: set[tuple[str, str, int, str | None]] = set()
        kept = []
        for snp in self._rows:
            key = (snp.rsid, snp.chrom, snp.pos, snp.genotype)
            if key not in seen:
                seen.add(key)
                kept.append(snp)
        return GenotypeTable(kept)
