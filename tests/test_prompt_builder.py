import pytest

from rehearsal.agents import build_roleplay_prompt, phase_for_turn, strip_name_prefix
from rehearsal.agents.opening import default_opening_line
from rehearsal.agents.prompt_builder import language_name, personality_rules
from rehearsal.models import Character, Scenario, TurnPhase


@pytest.mark.parametrize(
    "turn, expected",
    [
        (1, TurnPhase.OPENING),
        (2, TurnPhase.ONGOING),
        (3, TurnPhase.FINAL),
        (4, TurnPhase.FINAL),
    ],
)
def test_phase_for_turn(turn, expected):
    assert phase_for_turn(turn, 3) == expected


def test_prompt_includes_persona_and_rules():
    scenario = Scenario(
        id="s1",
        title="Returning a broken kettle",
        domain="travel",
        language="en",
        scenario_context="The shop assistant refuses a refund.",
    )
    character = Character(name="Mr. Tan", role="Shop assistant", personality="Stubborn and a bit angry")

    prompt = build_roleplay_prompt(scenario, character, TurnPhase.ONGOING, char_limit=80)

    assert "Name: Mr. Tan" in prompt
    assert "Identity: Shop assistant" in prompt
    assert "Current situation: The shop assistant refuses a refund." in prompt
    assert "You are stubborn" in prompt
    assert "You are angry" in prompt
    assert "You are sensitive" not in prompt
    assert "under 80 characters" in prompt
    assert "conversational English" in prompt
    assert prompt.rstrip().endswith("Now, as Mr. Tan, continue the conversation:")
    assert "Scenario direction" not in prompt


def test_prompt_appends_scenario_direction():
    scenario = Scenario(id="s1", title="Dinner", system_prompt="Bring up the holiday plans.")
    prompt = build_roleplay_prompt(scenario, scenario.get_character(), TurnPhase.OPENING)

    assert "=== Scenario direction ===\nBring up the holiday plans." in prompt


def test_rules_are_numbered_consecutively():
    scenario = Scenario(id="s1", title="t", language="zh")
    character = Character(name="妈妈", role="Family member", personality="敏感")

    prompt = build_roleplay_prompt(scenario, character, TurnPhase.FINAL)

    numbers = [line.split(".")[0] for line in prompt.splitlines() if line[:1].isdigit()]
    assert numbers == [str(i) for i in range(1, len(numbers) + 1)]
    assert "You are sensitive" in prompt
    assert "conversational Chinese" in prompt
    assert "last exchange" in prompt


def test_personality_rules_match_chinese_keywords():
    assert len(personality_rules("固执又暴躁")) == 2
    assert personality_rules("cheerful") == []


def test_language_name():
    assert language_name("en-US") == "English"
    assert language_name(None) == "Chinese"
    assert language_name("pt") == "pt"


def test_character_defaults_by_domain():
    scenario = Scenario(id="s1", title="t", domain="family")
    character = scenario.get_character()

    assert (character.name, character.role, character.personality) == ("Mom", "Family member", "friendly")
    assert Character.for_domain("unknown").name == "Conversation partner"


def test_stored_character_without_role_keeps_domain_role():
    scenario = Scenario(id="s1", title="t", domain="workplace", character={"name": "Ana"})

    assert scenario.get_character().role == "Coworker"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Li Wei: Hello.", "Hello."),
        ("Li Wei：你好", "你好"),
        ("“Hello there”", "Hello there"),
        ("Hello: there", "Hello: there"),
    ],
)
def test_strip_name_prefix(raw, expected):
    assert strip_name_prefix(raw, "Li Wei") == expected


def test_default_opening_line_by_domain():
    assert default_opening_line("friendship").startswith("Hey! Long time no see!")
    assert default_opening_line("networking") == "Hi! Nice to meet you. Let's get started!"


def test_stored_character_with_null_fields_falls_back():
    scenario = Scenario(
        id="s1",
        title="t",
        domain="family",
        character={"name": "Grandpa", "role": None, "background": None, "personality": 7},
    )
    character = scenario.get_character()

    assert character.role == "Family member"
    assert character.background == ""
    assert character.personality == "7"
    assert "Grandpa" in build_roleplay_prompt(scenario, character, TurnPhase.OPENING)


@pytest.mark.parametrize("raw", [None, "Grandpa", {}, {"name": None}, {"name": "   "}])
def test_character_without_usable_name_uses_domain_default(raw):
    assert Character.from_raw(raw, "friendship") == Character.for_domain("friendship")
