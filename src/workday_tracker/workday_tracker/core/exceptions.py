from __future__ import annotations

from typing import Iterable, Optional


class DomainError(Exception):
    """Base exception for business rule violations."""


class NotFoundError(DomainError):
    """Raised when an operation references an unknown record or break."""


class InvalidStateError(DomainError):
    """Raised when the record's lifecycle state forbids the operation."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules.

    Always carries the full list of hard errors, plus any warnings gathered
    while validating (warnings alone never raise).
    """

    def __init__(self, errors: Iterable[str] | str, warnings: Optional[Iterable[str]] = None):
        if isinstance(errors, str):
            errors = [errors]
        self.errors: list[str] = list(errors)
        self.warnings: list[str] = list(warnings or [])
        super().__init__("; ".join(self.errors))


class ConflictError(DomainError):
    """Raised when a precondition no longer holds at write time (e.g. double clock-in)."""
