"""Lifecycle enums and the evaluation workflow state."""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, TypedDict


def utc_now() -> datetime:
    """Timezone-aware current UTC time for stored timestamps."""
    return datetime.now(timezone.utc)


class SessionStatus(str, Enum):
    """Status of a practice session."""
    ACTIVE = "active"
    COMPLETED = "completed"


class MessageRole(str, Enum):
    """Role of a transcript entry."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class TurnPhase(str, Enum):
    """Where in the conversation the next character reply sits."""
    OPENING = "opening"
    ONGOING = "ongoing"
    FINAL = "final"


class OutcomeStatus(str, Enum):
    """Whether an evaluation came from the model or from a fallback."""
    OK = "ok"
    DEGRADED = "degraded"


class DegradedReason(str, Enum):
    """Why an evaluation fell back to the default result."""
    SESSION_NOT_FOUND = "session_not_found"
    BACKEND_ERROR = "backend_error"
    TIMEOUT = "timeout"
    PARSE_ERROR = "parse_error"
    INTERNAL_ERROR = "internal_error"


class EvaluationState(TypedDict):
    """
    State passed between the evaluation workflow nodes.
    Any node may set `reason`, which routes the graph to the fallback node.
    """
    session_id: str

    # Loaded context
    session: dict | None
    objective: str
    character: dict
    rubric: list[dict]
    transcript: list[dict]

    # Judge exchange
    prompt: str
    raw_response: str
    parsed: dict | None

    # Outcome
    evaluation: dict | None
    reason: str | None
    persisted: bool
    started_at: str


def create_initial_evaluation_state(session_id: str) -> EvaluationState:
    """Create a fresh state for one evaluation run."""
    return EvaluationState(
        session_id=session_id,
        session=None,
        objective="",
        character={},
        rubric=[],
        transcript=[],
        prompt="",
        raw_response="",
        parsed=None,
        evaluation=None,
        reason=None,
        persisted=False,
        started_at=utc_now().isoformat(),
    )


def strip_system_messages(messages: list[dict[str, Any]] | None) -> list[dict[str, Any]]:
    """Client-visible view of a transcript: user and assistant entries only."""
    if not messages:
        return []
    return [
        m for m in messages
        if m.get("role") in (MessageRole.USER.value, MessageRole.ASSISTANT.value)
    ]
