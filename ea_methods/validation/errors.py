"""Validation error definitions."""

from dataclasses import dataclass


@dataclass
class ValidationError:
    """Represents a validation error with descriptive message."""

    message: str
    field: str | None = None


class EaMethodsError(Exception):
    """Base class for errors raised by the assessment routines."""


class InvalidInputError(EaMethodsError):
    """Caller-supplied data violates a precondition.

    Carries the individual validation errors that were collected before
    the operation gave up.
    """

    def __init__(self, message: str, errors: list[ValidationError] | None = None):
        super().__init__(message)
        self.errors = errors or []

    @classmethod
    def from_errors(cls, errors: list[ValidationError]) -> "InvalidInputError":
        return cls("; ".join(e.message for e in errors), errors)


class GeometryError(EaMethodsError):
    """The geometry engine cannot process the supplied geometries."""

    def __init__(self, message: str, errors: list[ValidationError] | None = None):
        super().__init__(message)
        self.errors = errors or []


class TaxonLookupError(EaMethodsError):
    """A remote taxonomic lookup failed."""
