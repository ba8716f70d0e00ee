"""Error taxonomy for the interview orchestration engine."""
from __future__ import annotations


class OrchestratorError(RuntimeError):
    """Base class for engine errors."""


class NotFound(OrchestratorError):
    """Session or turn is missing. Non-retryable."""


class InvalidState(OrchestratorError):
    """Operation attempted outside its legal lifecycle state. Non-retryable."""


class GenerationFailure(OrchestratorError):
    """A required artifact (question or feedback report) could not be generated or failed validation."""


class GenerationDegraded(OrchestratorError):
    """A best-effort artifact failed; callers substitute a default and never surface it."""


class DuplicateSubmission(OrchestratorError):
    """Another submission for the session is in flight, or the turn is already answered."""


class EntitlementConsumptionFailure(OrchestratorError):
    """Credit consumption failed when a paid session moved to feedback."""


class RecordShapeError(OrchestratorError):
    """A persisted JSON column did not match its schema."""


__all__ = [
    "DuplicateSubmission",
    "EntitlementConsumptionFailure",
    "GenerationDegraded",
    "GenerationFailure",
    "InvalidState",
    "NotFound",
    "OrchestratorError",
    "RecordShapeError",
]
