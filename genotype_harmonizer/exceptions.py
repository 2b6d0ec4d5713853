"""Exceptions for the genotype harmonizer.

Only ValidationError and ResourceUnavailable propagate out of pipeline
operations. MalformedRecord is absorbed per record during sample
construction, and DataIntegrityWarning is issued through ``warnings`` while
the offending rows are recorded in the sample's discrepancy tables.
"""


class GenotypeHarmonizerError(Exception):
    """Base exception for genotype harmonizer errors."""
    pass


class ValidationError(GenotypeHarmonizerError, ValueError):
    """Raised for an invalid build, chromosome or argument, before any mutation."""
    pass


class ResourceUnavailable(GenotypeHarmonizerError):
    """Raised when a required reference resource cannot be obtained."""
    pass


class MalformedRecord(GenotypeHarmonizerError, ValueError):
    """Raised when a single input record cannot be parsed."""

    def __init__(self, message: str, record: object = None) -> None:
        super().__init__(message)
        self.record = record


class DataIntegrityWarning(UserWarning):
    """Issued for rsid, position or genotype conflicts found during deduplication or merge."""
    pass
