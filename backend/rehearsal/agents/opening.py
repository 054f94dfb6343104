"""Opening line for sessions created in priming mode."""
import logging
import re

from rehearsal.config import Settings
from rehearsal.errors import BackendError
from rehearsal.models import Scenario

from .prompt_builder import language_name
from .prompts import (
    DEFAULT_OPENING_LINE,
    DEFAULT_OPENING_LINES,
    OPENING_SYSTEM_PROMPT,
    OPENING_USER_PROMPT,
)


logger = logging.getLogger(__name__)

_GENERIC_NAME_PREFIX = re.compile(r"^[^\s:：\"“”]{1,20}[:：]\s*")
_WRAPPING_QUOTES = "\"“”'「」"


def default_opening_line(domain: str | None) -> str:
    return DEFAULT_OPENING_LINES.get(domain or "", DEFAULT_OPENING_LINE)


def strip_name_prefix(message: str, character_name: str | None = None) -> str:
    """Remove a leading "Name:" the model sometimes adds, plus wrapping quotes."""
    text = message.strip().strip(_WRAPPING_QUOTES).strip()
    if character_name:
        text = re.sub(rf"^{re.escape(character_name)}\s*[:：]\s*", "", text)
    else:
        text = _GENERIC_NAME_PREFIX.sub("", text)
    return text.strip(_WRAPPING_QUOTES).strip()


class OpeningLineGenerator:
    """Asks the backend for an in-character opening; never fails."""

    def __init__(self, backend, settings: Settings):
        self.backend = backend
        self.settings = settings

    async def generate(self, scenario: Scenario) -> str:
        character = scenario.get_character()
        system_prompt = OPENING_SYSTEM_PROMPT.format(
            title=scenario.title,
            context=scenario.context,
            name=character.name,
            role=character.role,
            personality=character.personality,
            background=character.background or "none",
            challenge=character.challenge or "none",
            language=language_name(scenario.language),
        )

        try:
            text = await self.backend.complete(
                [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": OPENING_USER_PROMPT},
                ],
                model=self.settings.opening_model,
                temperature=0.7,
                max_tokens=200,
            )
        except BackendError as exc:
            logger.warning("Opening line generation failed for scenario %s: %s", scenario.id, exc)
            return default_opening_line(scenario.domain)

        cleaned = strip_name_prefix(text, character.name)
        return cleaned or default_opening_line(scenario.domain)
