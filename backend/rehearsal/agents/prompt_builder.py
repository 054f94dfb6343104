"""Builds the hidden system instruction that keeps the backend in character."""
from rehearsal.models import Character, Scenario, TurnPhase

from .prompts import (
    CORE_RULES,
    LANGUAGE_NAMES,
    LANGUAGE_RULE,
    LENGTH_RULE,
    PERSONALITY_RULES,
    PHASE_CUES,
    ROLEPLAY_SYSTEM_PROMPT,
)


def language_name(code: str | None) -> str:
    """Human-readable language name for a scenario language code."""
    if not code:
        return LANGUAGE_NAMES["zh"]
    return LANGUAGE_NAMES.get(code.split("-")[0].lower(), code)


def personality_rules(personality: str) -> list[str]:
    """Behavioral rules triggered by keywords in the personality text."""
    text = (personality or "").lower()
    return [
        rule
        for keywords, rule in PERSONALITY_RULES
        if any(keyword in text for keyword in keywords)
    ]


def phase_for_turn(turn_number: int, max_turns: int) -> TurnPhase:
    """Phase of the reply that answers user turn `turn_number` (1-based)."""
    if turn_number >= max_turns:
        return TurnPhase.FINAL
    if turn_number <= 1:
        return TurnPhase.OPENING
    return TurnPhase.ONGOING


def build_roleplay_prompt(
    scenario: Scenario,
    character: Character,
    phase: TurnPhase,
    char_limit: int = 100,
) -> str:
    """
    Pure function of (scenario, character, phase) -> system instruction.

    Called before every backend request; the result replaces messages[0]
    instead of being cached on the session.
    """
    rules = [rule.format(name=character.name, personality=character.personality) for rule in CORE_RULES]
    rules.extend(personality_rules(character.personality))
    rules.append(LENGTH_RULE.format(char_limit=char_limit))
    rules.append(LANGUAGE_RULE.format(language=language_name(scenario.language)))

    direction = ""
    if scenario.system_prompt and scenario.system_prompt.strip():
        direction = f"\n=== Scenario direction ===\n{scenario.system_prompt.strip()}\n"

    return ROLEPLAY_SYSTEM_PROMPT.format(
        name=character.name,
        role=character.role,
        personality=character.personality,
        background=character.background or "none",
        context=scenario.context,
        direction=direction,
        rules="\n".join(f"{i}. {rule}" for i, rule in enumerate(rules, start=1)),
        phase_cue=PHASE_CUES[phase.value].format(name=character.name),
    )
