"""Typed failures raised by the grading engine."""

from __future__ import annotations

from typing import Any


class GradingError(Exception):
    """Base class for failures with a human-readable message."""

    kind = "error"


class InputError(GradingError, ValueError):
    """Required data is missing or invalid; nothing was written."""

    kind = "input"


class ConflictError(GradingError):
    """The request clashes with existing assignments or selections."""

    kind = "conflict"


class NotFoundError(GradingError, LookupError):
    """An applicant, grade or assignment looked up by id does not exist."""

    kind = "not_found"


class PartialWriteError(GradingError):
    """Raised when some writes of a batch failed after writing began."""

    kind = "partial_write"

    def __init__(self, message: str, failures: dict[str, str], partial: Any = None):
        super().__init__(message)
        self.failures = failures
        self.partial = partial


__all__ = [
    "ConflictError",
    "GradingError",
    "InputError",
    "NotFoundError",
    "PartialWriteError",
]
