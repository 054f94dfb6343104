"""Evaluation result shape and the tagged outcome returned by the evaluator."""
from typing import Optional

from pydantic import BaseModel, Field

from .state import OutcomeStatus


class EvaluationResult(BaseModel):
    """Scored feedback for one completed transcript."""
    overall_score: int = Field(ge=0, le=100)
    objective_achievement_rate: int = Field(ge=0, le=100)
    detailed_scores: dict[str, int]
    feedback: str = Field(min_length=1)
    improvement_suggestions: list[str] = Field(min_length=1)
    strengths: list[str] = Field(min_length=1)
    areas_for_improvement: list[str] = Field(min_length=1)


class EvaluationOutcome(BaseModel):
    """
    Ok(result) or Degraded(result, reason).

    Callers at the HTTP boundary always get an evaluation to show;
    `reason` says why a degraded one was substituted.
    """
    status: OutcomeStatus
    evaluation: EvaluationResult
    reason: Optional[str] = None
    persisted: bool = False

    @classmethod
    def ok(cls, evaluation: EvaluationResult, persisted: bool = False) -> "EvaluationOutcome":
        return cls(status=OutcomeStatus.OK, evaluation=evaluation, persisted=persisted)

    @classmethod
    def degraded(cls, evaluation: EvaluationResult, reason: str) -> "EvaluationOutcome":
        return cls(status=OutcomeStatus.DEGRADED, evaluation=evaluation, reason=reason)

    @property
    def is_degraded(self) -> bool:
        return self.status == OutcomeStatus.DEGRADED


class EvaluateResponse(BaseModel):
    """HTTP payload of the evaluate endpoint (always 200)."""
    success: bool = True
    evaluation: EvaluationResult
    degraded: bool = False
    reason: Optional[str] = None
