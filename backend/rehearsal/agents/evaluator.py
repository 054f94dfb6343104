"""Evaluation engine: scores a finished transcript against the scenario rubric."""
import asyncio
import logging

from rehearsal.config import Settings
from rehearsal.errors import BackendError, ParseError
from rehearsal.graph import create_evaluation_workflow
from rehearsal.models import (
    Character,
    DegradedReason,
    EvaluationOutcome,
    EvaluationResult,
    EvaluationState,
    MessageRole,
    SessionStatus,
    create_initial_evaluation_state,
    strip_system_messages,
    utc_now,
)
from rehearsal.services import ScenarioService, SessionService

from .json_repair import extract_json_object
from .prompt_builder import language_name
from .prompts import EVALUATION_SYSTEM_PROMPT, EVALUATION_TASK_PROMPT
from .scoring import (
    GENERIC_OBJECTIVE,
    GENERIC_RUBRIC,
    default_evaluation,
    normalize_evaluation,
    not_found_evaluation,
)


logger = logging.getLogger(__name__)

RESULT_FIELDS = (
    "overall_score",
    "objective_achievement_rate",
    "detailed_scores",
    "feedback",
    "improvement_suggestions",
    "strengths",
    "areas_for_improvement",
)


def render_transcript(transcript: list[dict], character_name: str) -> str:
    lines = []
    for message in transcript:
        speaker = "user" if message.get("role") == MessageRole.USER.value else character_name
        lines.append(f"{speaker}: {message.get('content', '')}")
    return "\n".join(lines) or "(no messages)"


def render_rubric(rubric: list[dict]) -> str:
    return "\n".join(
        f"{index}. {item['criterion']} (weight: {item['weight']})"
        for index, item in enumerate(rubric, start=1)
    )


class EvaluationNodes:
    """Workflow stages; each returns a partial state update."""

    def __init__(
        self,
        backend,
        sessions: SessionService,
        scenarios: ScenarioService,
        settings: Settings,
    ):
        self.backend = backend
        self.sessions = sessions
        self.scenarios = scenarios
        self.settings = settings

    async def load_session(self, state: EvaluationState) -> dict:
        session = self.sessions.get_by_id(state["session_id"])
        if not session:
            logger.warning("Evaluation requested for unknown session %s", state["session_id"])
            return {"reason": DegradedReason.SESSION_NOT_FOUND.value}

        if session.turn_count < self.settings.max_turns:
            logger.info(
                "Evaluating session %s before the turn limit (%s/%s)",
                session.id, session.turn_count, self.settings.max_turns,
            )

        try:
            scenario = self.scenarios.get_by_id(session.scenario_id)
        except Exception as exc:
            logger.warning("Scenario lookup failed for session %s: %s", session.id, exc)
            scenario = None

        if scenario:
            objective = scenario.objective or GENERIC_OBJECTIVE
            character = scenario.get_character()
            rubric = scenario.get_rubric() or GENERIC_RUBRIC
            language = scenario.language
        else:
            objective = GENERIC_OBJECTIVE
            character = Character.for_domain(None)
            rubric = GENERIC_RUBRIC
            language = self.settings.default_language

        return {
            "session": {
                "id": session.id,
                "scenario_id": session.scenario_id,
                "turn_count": session.turn_count,
                "language": language,
            },
            "objective": objective,
            "character": character.model_dump(),
            "rubric": [item.model_dump() for item in rubric],
            "transcript": strip_system_messages(session.messages),
        }

    async def build_prompt(self, state: EvaluationState) -> dict:
        character = state["character"]
        prompt = EVALUATION_TASK_PROMPT.format(
            objective=state["objective"],
            character_name=character.get("name", ""),
            character_role=character.get("role", ""),
            character_challenge=character.get("challenge") or "none",
            transcript=render_transcript(state["transcript"], character.get("name", "assistant")),
            rubric=render_rubric(state["rubric"]),
            language=language_name((state.get("session") or {}).get("language")),
        )
        return {"prompt": prompt}

    async def judge(self, state: EvaluationState) -> dict:
        messages = [
            {"role": MessageRole.SYSTEM.value, "content": EVALUATION_SYSTEM_PROMPT},
            {"role": MessageRole.USER.value, "content": state["prompt"]},
        ]
        try:
            raw = await asyncio.wait_for(
                self._complete_with_retry(messages),
                timeout=self.settings.evaluation_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Evaluation of session %s timed out after %ss",
                state["session_id"], self.settings.evaluation_timeout,
            )
            return {"reason": DegradedReason.TIMEOUT.value}
        except BackendError as exc:
            logger.warning("Evaluation backend failed for session %s: %s", state["session_id"], exc)
            return {"reason": DegradedReason.BACKEND_ERROR.value}

        return {"raw_response": raw}

    async def _complete_with_retry(self, messages: list[dict]) -> str:
        delay = self.settings.evaluation_retry_delay
        attempts = max(1, self.settings.evaluation_attempts)
        last_error: BackendError | None = None

        for attempt in range(attempts):
            try:
                return await self.backend.complete(
                    messages,
                    model=self.settings.evaluation_model,
                    temperature=0.3,
                    max_tokens=self.settings.evaluation_max_tokens,
                    json_mode=True,
                    timeout=self.settings.evaluation_timeout,
                )
            except BackendError as exc:
                last_error = exc
                if attempt == attempts - 1:
                    break
                logger.warning("Evaluation call failed, retry %s/%s: %s", attempt + 1, attempts - 1, exc)
                await asyncio.sleep(delay)
                delay *= 2

        raise BackendError(f"Evaluation request failed after retries: {last_error}")

    async def parse(self, state: EvaluationState) -> dict:
        payload = extract_json_object(state["raw_response"])
        if payload is None:
            logger.warning(
                "Unparseable evaluation for session %s: %.200s",
                state["session_id"], state["raw_response"],
            )
            return {"reason": DegradedReason.PARSE_ERROR.value}

        criteria = [item["criterion"] for item in state["rubric"]]
        try:
            evaluation = normalize_evaluation(payload, criteria)
        except ParseError as exc:
            logger.warning("Incomplete evaluation for session %s: %s", state["session_id"], exc)
            return {"reason": DegradedReason.PARSE_ERROR.value}

        return {"parsed": payload, "evaluation": evaluation.model_dump()}

    async def persist(self, state: EvaluationState) -> dict:
        evaluation = state["evaluation"]
        parsed = state.get("parsed") or {}
        update = {
            "status": SessionStatus.COMPLETED.value,
            "evaluated_at": utc_now(),
        }
        # Only fields the model actually returned
        update.update({key: evaluation[key] for key in RESULT_FIELDS if key in parsed})

        try:
            saved = self.sessions.update(state["session_id"], update)
        except Exception as exc:
            logger.error("Could not save evaluation for session %s: %s", state["session_id"], exc)
            return {"persisted": False}

        if saved is None:
            logger.warning("Session %s disappeared before its evaluation was saved", state["session_id"])
            return {"persisted": False}

        logger.info("Evaluation saved for session %s", state["session_id"])
        return {"persisted": True}

    async def fallback(self, state: EvaluationState) -> dict:
        reason = state.get("reason") or DegradedReason.INTERNAL_ERROR.value
        if reason == DegradedReason.SESSION_NOT_FOUND.value:
            evaluation = not_found_evaluation()
        else:
            evaluation = default_evaluation(item["criterion"] for item in state.get("rubric") or [])
        logger.warning("Returning default evaluation for session %s (%s)", state["session_id"], reason)
        return {"reason": reason, "evaluation": evaluation.model_dump()}


class EvaluationEngine:
    """
    evaluate(session_id) -> EvaluationOutcome, never raising.

    Failures at any stage yield a deterministic default evaluation tagged
    with the reason, so the caller always has something to show.
    """

    def __init__(
        self,
        backend,
        sessions: SessionService,
        scenarios: ScenarioService,
        settings: Settings,
    ):
        self.nodes = EvaluationNodes(backend, sessions, scenarios, settings)
        self.workflow = create_evaluation_workflow(self.nodes)

    async def evaluate(self, session_id: str) -> EvaluationOutcome:
        try:
            final_state = await self.workflow.ainvoke(create_initial_evaluation_state(session_id))
            evaluation = EvaluationResult.model_validate(final_state["evaluation"])
        except Exception:
            logger.exception("Evaluation workflow crashed for session %s", session_id)
            return EvaluationOutcome.degraded(default_evaluation(), DegradedReason.INTERNAL_ERROR.value)

        if final_state.get("reason"):
            return EvaluationOutcome.degraded(evaluation, final_state["reason"])
        return EvaluationOutcome.ok(evaluation, persisted=final_state.get("persisted", False))
