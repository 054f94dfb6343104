"""Models package."""
from .state import (
    DegradedReason,
    EvaluationState,
    MessageRole,
    OutcomeStatus,
    SessionStatus,
    TurnPhase,
    create_initial_evaluation_state,
    strip_system_messages,
    utc_now,
)
from .scenario import (
    DIFFICULTY_LEVELS,
    Character,
    RubricItem,
    Scenario,
    ScenarioGenerateRequest,
)
from .session import (
    ChatTurnRequest,
    ChatTurnResponse,
    EvaluateRequest,
    PracticeSession,
    SessionListResponse,
    SessionView,
)
from .evaluation import EvaluateResponse, EvaluationOutcome, EvaluationResult

__all__ = [
    "DIFFICULTY_LEVELS",
    "Character",
    "ChatTurnRequest",
    "ChatTurnResponse",
    "DegradedReason",
    "EvaluateRequest",
    "EvaluateResponse",
    "EvaluationOutcome",
    "EvaluationResult",
    "EvaluationState",
    "MessageRole",
    "OutcomeStatus",
    "PracticeSession",
    "RubricItem",
    "Scenario",
    "ScenarioGenerateRequest",
    "SessionListResponse",
    "SessionStatus",
    "SessionView",
    "TurnPhase",
    "create_initial_evaluation_state",
    "strip_system_messages",
    "utc_now",
]
