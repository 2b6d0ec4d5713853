"""Parsers for raw genotype records and normalized genotype files."""

from genotype_harmonizer.parsers.records import (
    NULL_GENOTYPES,
    VALID_ALLELES,
    parse_genotype,
    parse_record,
)
from genotype_harmonizer.parsers.tsv import read_genotypes

__all__ = [
    "NULL_GENOTYPES",
    "VALID_ALLELES",
    "parse_genotype",
    "parse_record",
    "read_genotypes",
]
