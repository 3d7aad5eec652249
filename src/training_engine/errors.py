"""Custom exception hierarchy for the training engine."""

from __future__ import annotations


class EngineError(Exception):
    """Base exception for all training_engine errors."""


class ValidationError(EngineError, ValueError):
    """Caller input rejected before any simulation runs (bad dates, durations, TSS)."""


class InsufficientDataError(EngineError):
    """Not enough history to derive a trustworthy value.

    Never fatal at the service boundary: callers fall back to a documented
    default and surface the substitution as a warning.
    """

    def __init__(self, message: str, data_points: int = 0, required: int = 0) -> None:
        super().__init__(message)
        self.data_points = data_points
        self.required = required


class PersistenceError(EngineError):
    """A storage read or write failed."""

    def __init__(self, message: str, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation


class PlanStateError(EngineError):
    """Illegal plan lifecycle transition (e.g. modifying an active plan)."""


class PlanNotFoundError(PlanStateError):
    """No plan exists with the requested id for this athlete."""
