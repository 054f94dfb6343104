"""Session model for database persistence."""
from datetime import datetime
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict
from pydantic import Field as PydanticField
from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel

from .state import SessionStatus, strip_system_messages, utc_now


class PracticeSession(SQLModel, table=True):
    """Database model for one bounded practice conversation."""

    __tablename__ = "practice_sessions"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    scenario_id: str = Field(foreign_key="scenarios.id", index=True)
    user_id: Optional[str] = Field(default=None, index=True)
    messages: list[dict] = Field(default_factory=list, sa_column=Column(JSON))
    turn_count: int = 0
    status: str = Field(default=SessionStatus.ACTIVE.value)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))

    # Written by the evaluator
    overall_score: Optional[int] = None
    objective_achievement_rate: Optional[int] = None
    detailed_scores: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    feedback: Optional[str] = None
    improvement_suggestions: Optional[list] = Field(default=None, sa_column=Column(JSON))
    strengths: Optional[list] = Field(default=None, sa_column=Column(JSON))
    areas_for_improvement: Optional[list] = Field(default=None, sa_column=Column(JSON))
    evaluated_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))


class SessionView(SQLModel):
    """Client-facing session with system messages filtered out."""
    id: str
    scenario_id: str
    user_id: Optional[str]
    messages: list[dict]
    turn_count: int
    status: str
    created_at: datetime
    updated_at: datetime
    overall_score: Optional[int] = None
    objective_achievement_rate: Optional[int] = None
    detailed_scores: Optional[dict] = None
    feedback: Optional[str] = None
    improvement_suggestions: Optional[list] = None
    strengths: Optional[list] = None
    areas_for_improvement: Optional[list] = None
    evaluated_at: Optional[datetime] = None
    scenario: Optional[dict] = None

    @classmethod
    def from_session(cls, session: PracticeSession, scenario: Any = None) -> "SessionView":
        data = session.model_dump()
        data["messages"] = strip_system_messages(session.messages)
        if scenario is not None:
            data["scenario"] = {
                "title": scenario.title,
                "domain": scenario.domain,
                "character": scenario.character,
            }
        return cls.model_validate(data)


class SessionListResponse(BaseModel):
    """Paginated, owner-scoped list of sessions."""
    sessions: list[SessionView]
    total: int
    page: int
    limit: int
    has_more: bool
    loaded: int


class ChatTurnRequest(BaseModel):
    """Create a session or continue an existing one."""
    model_config = ConfigDict(populate_by_name=True)

    session_id: Optional[str] = PydanticField(default=None, alias="sessionId")
    scenario_id: Optional[str] = PydanticField(default=None, alias="scenarioId")
    message: Optional[str] = None
    is_initializing: bool = PydanticField(default=False, alias="isInitializing")
    initial_message: Optional[str] = PydanticField(default=None, alias="initialMessage")


class ChatTurnResponse(BaseModel):
    """Reply surfaced to the client after a create or continue."""
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = PydanticField(alias="sessionId")
    reply: str
    turn: int
    status: str


class EvaluateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: Optional[str] = PydanticField(default=None, alias="sessionId")
