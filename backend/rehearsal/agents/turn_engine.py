"""Turn engine: session creation, turn accounting and completion signalling.

States run NonExistent -> active -> completed with no way back. A turn is
persisted only together with its reply, so every stored user message has
an assistant answer.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional

from rehearsal.config import Settings
from rehearsal.errors import (
    BackendError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from rehearsal.models import (
    ChatTurnRequest,
    MessageRole,
    PracticeSession,
    Scenario,
    SessionStatus,
    TurnPhase,
)
from rehearsal.services import ScenarioService, SessionService

from .opening import OpeningLineGenerator
from .prompt_builder import build_roleplay_prompt, phase_for_turn


logger = logging.getLogger(__name__)

# Flags older clients attached to bookkeeping messages that the model must not see
META_FLAGS = ("is_initializing", "is_evaluation", "isInitializing", "isEvaluation")


@dataclass
class TurnResult:
    """What the client sees after a create or continue."""
    session_id: str
    reply: str
    turn: int
    status: str


def is_meta(message: dict[str, Any]) -> bool:
    return any(message.get(flag) for flag in META_FLAGS)


def context_window(messages: list[dict[str, Any]], size: int) -> list[dict[str, Any]]:
    """Last `size` conversational messages, without system or meta entries."""
    conversational = [
        {"role": m["role"], "content": m["content"]}
        for m in messages
        if m.get("role") != MessageRole.SYSTEM.value and not is_meta(m)
    ]
    return conversational[-size:] if size > 0 else []


class TurnEngine:
    """Drives one practice session through its fixed number of turns."""

    def __init__(
        self,
        backend,
        sessions: SessionService,
        scenarios: ScenarioService,
        opening: OpeningLineGenerator,
        settings: Settings,
    ):
        self.backend = backend
        self.sessions = sessions
        self.scenarios = scenarios
        self.opening = opening
        self.settings = settings

    @property
    def max_turns(self) -> int:
        return self.settings.max_turns

    async def handle(self, request: ChatTurnRequest, user_id: Optional[str]) -> TurnResult:
        """Route a chat request to create or continue."""
        priming = request.is_initializing and not request.session_id
        if not priming and (not isinstance(request.message, str) or not request.message.strip()):
            raise ValidationError("Message is required and cannot be empty")

        if request.session_id:
            return await self.continue_session(request.session_id, request.message, user_id)
        if request.scenario_id:
            return await self.create_session(
                request.scenario_id,
                request.message,
                user_id,
                is_initializing=request.is_initializing,
                initial_message=request.initial_message,
            )
        raise ValidationError("Either sessionId or scenarioId is required")

    async def create_session(
        self,
        scenario_id: str,
        message: Optional[str],
        user_id: Optional[str],
        is_initializing: bool = False,
        initial_message: Optional[str] = None,
    ) -> TurnResult:
        """
        Create a session from its first message.

        Priming mode stores only the character's opening line (turn 0);
        otherwise the first user message is answered and stored as turn 1.
        Callers must serialize creation per scenario and user.
        """
        scenario = self.scenarios.get_by_id(scenario_id)
        if not scenario:
            raise NotFoundError("Scenario not found")
        character = scenario.get_character()

        if is_initializing:
            opening_line = initial_message.strip() if isinstance(initial_message, str) else ""
            if not opening_line:
                opening_line = await self.opening.generate(scenario)

            system_prompt = build_roleplay_prompt(
                scenario, character, TurnPhase.OPENING, self.settings.reply_char_limit
            )
            session = self.sessions.create(PracticeSession(
                scenario_id=scenario_id,
                user_id=user_id,
                messages=[
                    {"role": MessageRole.SYSTEM.value, "content": system_prompt},
                    {"role": MessageRole.ASSISTANT.value, "content": opening_line},
                ],
                turn_count=0,
                status=SessionStatus.ACTIVE.value,
            ))
            logger.info("Created primed session %s for scenario %s", session.id, scenario_id)
            return TurnResult(session.id, opening_line, 0, SessionStatus.ACTIVE.value)

        phase = phase_for_turn(1, self.max_turns)
        system_prompt = build_roleplay_prompt(scenario, character, phase, self.settings.reply_char_limit)
        system_message = {"role": MessageRole.SYSTEM.value, "content": system_prompt}
        user_message = {"role": MessageRole.USER.value, "content": message}

        reply = await self._generate_reply([system_message, user_message])

        session = self.sessions.create(PracticeSession(
            scenario_id=scenario_id,
            user_id=user_id,
            messages=[
                system_message,
                user_message,
                {"role": MessageRole.ASSISTANT.value, "content": reply},
            ],
            turn_count=1,
            status=SessionStatus.ACTIVE.value,
        ))
        logger.info("Created session %s for scenario %s", session.id, scenario_id)
        return TurnResult(session.id, reply, 1, self._reported_status(1))

    async def continue_session(
        self,
        session_id: str,
        message: str,
        user_id: Optional[str],
    ) -> TurnResult:
        """Append one user message and its reply to an active session."""
        session = self.sessions.get_by_id(session_id)
        if not session:
            raise NotFoundError("Session not found")
        if session.user_id and session.user_id != user_id:
            raise ForbiddenError("You do not have access to this session")
        if session.status == SessionStatus.COMPLETED.value:
            raise ConflictError("Session already completed")
        if session.turn_count >= self.max_turns:
            raise ConflictError("Maximum turns reached")

        scenario = self._scenario_for(session)
        turn_number = session.turn_count + 1
        system_prompt = build_roleplay_prompt(
            scenario,
            scenario.get_character(),
            phase_for_turn(turn_number, self.max_turns),
            self.settings.reply_char_limit,
        )
        system_message = {"role": MessageRole.SYSTEM.value, "content": system_prompt}

        # The stored system message is replaced, never accumulated
        updated = [
            system_message,
            *[m for m in (session.messages or []) if m.get("role") != MessageRole.SYSTEM.value],
            {"role": MessageRole.USER.value, "content": message},
        ]
        outgoing = [system_message, *context_window(updated, self.settings.context_window)]

        reply = await self._generate_reply(outgoing)
        updated.append({"role": MessageRole.ASSISTANT.value, "content": reply})

        saved = self.sessions.update(session.id, {"messages": updated, "turn_count": turn_number})
        if saved is None:
            raise NotFoundError("Session not found")

        logger.info("Session %s advanced to turn %s/%s", session.id, turn_number, self.max_turns)
        return TurnResult(session.id, reply, turn_number, self._reported_status(turn_number))

    def _scenario_for(self, session: PracticeSession) -> Scenario:
        scenario = self.scenarios.get_by_id(session.scenario_id)
        if scenario:
            return scenario
        logger.warning("Scenario %s missing for session %s; using a generic persona", session.scenario_id, session.id)
        return Scenario(
            id=session.scenario_id,
            title="Conversation practice",
            language=self.settings.default_language,
        )

    def _reported_status(self, turn_count: int) -> str:
        # Readiness only; the stored status flips when evaluation persists
        if turn_count >= self.max_turns:
            return SessionStatus.COMPLETED.value
        return SessionStatus.ACTIVE.value

    async def _generate_reply(self, messages: list[dict[str, Any]]) -> str:
        try:
            return await self.backend.complete(
                messages,
                model=self.settings.chat_model,
                temperature=0.7,
                max_tokens=self.settings.reply_max_tokens,
                timeout=self.settings.generation_timeout,
            )
        except BackendError as exc:
            logger.error("Turn generation failed: %s", exc)
            raise BackendError("Failed to process turn") from exc
