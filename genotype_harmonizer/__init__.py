"""
Genotype harmonizer for consumer SNP array data.

Detects the genome build of consumer genotype files, remaps coordinates
between NCBI36, GRCh37 and GRCh38, deduplicates rsid, X/Y and MT calls with
discrepancy bookkeeping, and classifies the genotyping chip by overlap with
known chip clusters.
"""

__version__ = "1.0.0"
__author__ = "Data Tecnica International"

from genotype_harmonizer.config import Config, DedupOptions, SexThresholds
from genotype_harmonizer.exceptions import (
    DataIntegrityWarning,
    GenotypeHarmonizerError,
    MalformedRecord,
    ResourceUnavailable,
    ValidationError,
)
from genotype_harmonizer.models import SNP, Sex
from genotype_harmonizer.resources import Resources
from genotype_harmonizer.sample import Sample, build_sample
from genotype_harmonizer.table import GenotypeTable

__all__ = [
    "Config",
    "DedupOptions",
    "SexThresholds",
    "DataIntegrityWarning",
    "GenotypeHarmonizerError",
    "MalformedRecord",
    "ResourceUnavailable",
    "ValidationError",
    "SNP",
    "Sex",
    "Resources",
    "Sample",
    "build_sample",
    "GenotypeTable",
]
