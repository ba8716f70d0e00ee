"""Interview orchestration engine: session state machine, adaptation and resume."""
from .errors import (
    DuplicateSubmission,
    EntitlementConsumptionFailure,
    GenerationDegraded,
    GenerationFailure,
    InvalidState,
    NotFound,
    OrchestratorError,
    RecordShapeError,
)
from .models import Question, ResearchSnapshot, Session, Turn, TurnType

__all__ = [
    "DuplicateSubmission",
    "EntitlementConsumptionFailure",
    "GenerationDegraded",
    "GenerationFailure",
    "InvalidState",
    "NotFound",
    "OrchestratorError",
    "Question",
    "RecordShapeError",
    "ResearchSnapshot",
    "Session",
    "Turn",
    "TurnType",
]
