"""Scenario model: the reusable template a practice session is played against."""
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, model_validator
from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel

from .state import utc_now


# Fallback persona per domain when a scenario carries no character
DEFAULT_CHARACTERS: dict[str, tuple[str, str]] = {
    "workplace": ("Colleague", "Coworker"),
    "social": ("New friend", "Social acquaintance"),
    "dating": ("Date", "Dating partner"),
    "family": ("Mom", "Family member"),
    "friendship": ("Friend", "Close friend"),
    "romantic": ("Partner", "Romantic partner"),
    "travel": ("Service agent", "Travel service staff"),
    "networking": ("Business contact", "Business partner"),
}
DEFAULT_PERSONALITY = "friendly"

DIFFICULTY_LEVELS = {
    "beginner": 1,
    "intermediate": 2,
    "advanced": 3,
}


class Character(BaseModel):
    """The persona the backend plays during a session."""
    name: str
    role: str
    personality: str = DEFAULT_PERSONALITY
    background: str = ""
    challenge: str = ""
    avatar: str | None = None

    @classmethod
    def for_domain(cls, domain: str | None) -> "Character":
        name, role = DEFAULT_CHARACTERS.get(
            domain or "", ("Conversation partner", "Conversation partner")
        )
        return cls(name=name, role=role)

    @classmethod
    def from_raw(cls, raw: Any, domain: str | None = None) -> "Character":
        """
        Character from stored or generated data.

        Null and blank fields fall back to the domain default; scalars are
        coerced to text. Data without a name yields the domain default.
        """
        default = cls.for_domain(domain)
        if not isinstance(raw, dict):
            return default

        data = {}
        for field in ("name", "role", "personality", "background", "challenge", "avatar"):
            value = raw.get(field)
            if isinstance(value, (str, int, float)) and not isinstance(value, bool):
                value = str(value).strip()
                if value:
                    data[field] = value

        if "name" not in data:
            return default
        data.setdefault("role", default.role)
        return cls.model_validate(data)


class RubricItem(BaseModel):
    """One weighted evaluation criterion."""
    criterion: str
    weight: float = 0.0

    @model_validator(mode="before")
    @classmethod
    def _accept_criteria_key(cls, data: Any) -> Any:
        # Generated scenarios use either "criterion" or "criteria"
        if isinstance(data, dict) and "criterion" not in data and "criteria" in data:
            data = {**data, "criterion": data["criteria"]}
        return data


class Scenario(SQLModel, table=True):
    """Database model for a practice scenario."""

    __tablename__ = "scenarios"

    id: str = Field(primary_key=True)
    title: str
    domain: str = Field(default="general", index=True)
    difficulty: int = 1
    language: str = "zh"
    objective: str = ""
    character: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    scenario_context: str = ""
    system_prompt: str = ""
    rubric: list[dict] = Field(default_factory=list, sa_column=Column(JSON))
    play_count: int = 0
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))

    def get_character(self) -> Character:
        """Stored character, or the domain default when none is set."""
        return Character.from_raw(self.character, self.domain)

    def get_rubric(self) -> list[RubricItem]:
        items = []
        for raw in self.rubric or []:
            try:
                items.append(RubricItem.model_validate(raw))
            except ValueError:
                continue
        return items

    @property
    def context(self) -> str:
        return self.scenario_context or self.title


class ScenarioGenerateRequest(BaseModel):
    """Request to generate a new scenario with the backend."""
    skill: str | None = None
    difficulty: str = "beginner"
    domain: str = "workplace"
