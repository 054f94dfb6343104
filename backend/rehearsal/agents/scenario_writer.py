"""Scenario generator - asks the backend for a fresh practice scenario."""
import logging
from uuid import uuid4

from rehearsal.config import Settings
from rehearsal.errors import ParseError
from rehearsal.models import (
    DIFFICULTY_LEVELS,
    Character,
    RubricItem,
    Scenario,
    ScenarioGenerateRequest,
)
from rehearsal.services import ScenarioService

from .json_repair import parse_json_object
from .prompt_builder import language_name
from .prompts import SCENARIO_GENERATION_PROMPT


logger = logging.getLogger(__name__)


def normalize_rubric(raw_rubric) -> list[dict]:
    """Accept rubric items keyed by "criterion" or "criteria"; skip the rest."""
    items = []
    for raw in raw_rubric if isinstance(raw_rubric, list) else []:
        try:
            items.append(RubricItem.model_validate(raw).model_dump())
        except ValueError:
            logger.debug("Skipping malformed rubric item: %r", raw)
    return items


class ScenarioGenerator:
    """Generates and stores a scenario; backend and parse errors propagate."""

    def __init__(self, backend, scenarios: ScenarioService, settings: Settings):
        self.backend = backend
        self.scenarios = scenarios
        self.settings = settings

    async def generate(self, request: ScenarioGenerateRequest) -> Scenario:
        difficulty = DIFFICULTY_LEVELS.get(request.difficulty, 1)
        prompt = SCENARIO_GENERATION_PROMPT.format(
            domain=request.domain,
            difficulty=difficulty,
            skill=request.skill or "overall communication",
            language=language_name(self.settings.default_language),
        )

        raw = await self.backend.complete(
            [{"role": "user", "content": prompt}],
            model=self.settings.scenario_model,
            temperature=0.5,
            max_tokens=1000,
            json_mode=True,
        )
        content = parse_json_object(raw)

        title = content.get("title")
        if not isinstance(title, str) or not title.strip():
            raise ParseError("Generated scenario has no title")

        character = content.get("character")
        if isinstance(character, dict):
            character = Character.from_raw(character, request.domain).model_dump()
        else:
            character = None

        scenario = Scenario(
            id=f"dyn_{uuid4().hex[:16]}",
            title=title.strip(),
            domain=request.domain,
            difficulty=difficulty,
            language=self.settings.default_language,
            objective=str(content.get("objective") or ""),
            character=character,
            scenario_context=str(content.get("scenario_context") or ""),
            system_prompt=str(content.get("system_prompt") or ""),
            rubric=normalize_rubric(content.get("rubric")),
            play_count=0,
        )

        saved = self.scenarios.create(scenario)
        logger.info("Generated scenario %s (%s, difficulty %s)", saved.id, saved.domain, difficulty)
        return saved
