"""Deterministic default evaluations and normalization of model-produced scores."""
import math
from typing import Any, Iterable

from rehearsal.errors import ParseError
from rehearsal.models import EvaluationResult, RubricItem


GENERIC_RUBRIC = [
    RubricItem(criterion="Empathy", weight=0.25),
    RubricItem(criterion="Active listening", weight=0.25),
    RubricItem(criterion="Clear expression", weight=0.25),
    RubricItem(criterion="Conflict resolution", weight=0.25),
]
GENERIC_OBJECTIVE = "Communicate effectively and reach a mutual understanding with the other person."

DEFAULT_OVERALL_SCORE = 65
DEFAULT_OBJECTIVE_RATE = 60

DEFAULT_FEEDBACK = (
    "You completed the practice conversation! You showed basic communication skills in this "
    "exchange. Keep practicing to further improve your emotional intelligence."
)
NOT_FOUND_FEEDBACK = (
    "The record of this conversation could not be found, so a detailed evaluation is not "
    "available. You still completed the practice!"
)
DEFAULT_SUGGESTIONS = [
    "Try harder to see the problem from the other person's point of view",
    "Use open questions to encourage the other person to share their thoughts",
    "Listen closely and show that you understand their emotional needs",
]
DEFAULT_STRENGTHS = [
    "You stayed engaged through the whole conversation",
    "You kept a constructive tone",
]
DEFAULT_AREAS = [
    "Acknowledge the other person's feelings more explicitly",
    "Check your understanding before proposing solutions",
]


def default_evaluation(criteria: Iterable[str] | None = None) -> EvaluationResult:
    """Fixed fallback used when the model call or its parsing fails."""
    labels = list(criteria or []) or [item.criterion for item in GENERIC_RUBRIC]
    return EvaluationResult(
        overall_score=DEFAULT_OVERALL_SCORE,
        objective_achievement_rate=DEFAULT_OBJECTIVE_RATE,
        detailed_scores={label: DEFAULT_OVERALL_SCORE for label in labels},
        feedback=DEFAULT_FEEDBACK,
        improvement_suggestions=list(DEFAULT_SUGGESTIONS),
        strengths=list(DEFAULT_STRENGTHS),
        areas_for_improvement=list(DEFAULT_AREAS),
    )


def not_found_evaluation() -> EvaluationResult:
    """Canned result for a session id that does not exist."""
    result = default_evaluation()
    return result.model_copy(update={"feedback": NOT_FOUND_FEEDBACK})


def coerce_score(value: Any) -> int | None:
    """Integer 0-100 from a number or numeric string; None if not numeric."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().rstrip("%").strip()
        try:
            value = float(value)
        except ValueError:
            return None
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return None
    return max(0, min(100, int(round(value))))


def _string_list(value: Any) -> list[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if str(item).strip()]


def normalize_evaluation(payload: dict[str, Any], criteria: list[str]) -> EvaluationResult:
    """
    Turn a parsed model payload into an EvaluationResult.

    overall_score and feedback are mandatory; everything else is
    coerced or filled from the defaults. A missing objective rate gets
    its own default, independent of overall_score.
    """
    overall = coerce_score(payload.get("overall_score"))
    if overall is None:
        raise ParseError("overall_score missing or not numeric")

    feedback = payload.get("feedback")
    if not isinstance(feedback, str) or not feedback.strip():
        raise ParseError("feedback missing or empty")

    objective = coerce_score(payload.get("objective_achievement_rate"))

    detailed: dict[str, int] = {}
    raw_detailed = payload.get("detailed_scores")
    if isinstance(raw_detailed, dict):
        for label, value in raw_detailed.items():
            score = coerce_score(value)
            if score is not None and str(label).strip():
                detailed[str(label).strip()] = score
    if not detailed:
        detailed = {label: overall for label in criteria}

    return EvaluationResult(
        overall_score=overall,
        objective_achievement_rate=DEFAULT_OBJECTIVE_RATE if objective is None else objective,
        detailed_scores=detailed,
        feedback=feedback.strip(),
        improvement_suggestions=_string_list(payload.get("improvement_suggestions")) or list(DEFAULT_SUGGESTIONS),
        strengths=_string_list(payload.get("strengths")) or list(DEFAULT_STRENGTHS),
        areas_for_improvement=_string_list(payload.get("areas_for_improvement")) or list(DEFAULT_AREAS),
    )
