import pytest

from rehearsal.agents import extract_json_object, parse_json_object, repair_json
from rehearsal.agents.scoring import coerce_score, default_evaluation, normalize_evaluation
from rehearsal.errors import ParseError


def test_plain_object():
    assert extract_json_object('{"overall_score": 70}') == {"overall_score": 70}


def test_object_wrapped_in_prose():
    text = 'Sure! Here is the result: {"overall_score": 70, "feedback": "ok"} Hope it helps.'
    assert extract_json_object(text) == {"overall_score": 70, "feedback": "ok"}


def test_fenced_block_with_nested_object():
    text = 'Result:\n```json\n{"detailed_scores": {"Empathy": 60}, "overall_score": 61}\n```'
    assert extract_json_object(text) == {"detailed_scores": {"Empathy": 60}, "overall_score": 61}


def test_missing_commas_between_lines():
    text = '{\n  "overall_score": 70\n  "strengths": ["a", "b"]\n  "feedback": "fine"\n}'
    assert extract_json_object(text) == {
        "overall_score": 70,
        "strengths": ["a", "b"],
        "feedback": "fine",
    }


def test_missing_comma_inline_and_trailing_comma():
    assert repair_json('["a" "b",]') == '["a", "b"]'


@pytest.mark.parametrize("text", [None, "", "no braces at all", "[1, 2, 3]", "{not: json}"])
def test_unrecoverable_text(text):
    assert extract_json_object(text) is None


def test_parse_json_object_raises():
    with pytest.raises(ParseError):
        parse_json_object("nothing to see")


@pytest.mark.parametrize(
    "value, expected",
    [
        (88, 88),
        (88.6, 89),
        ("75", 75),
        ("75%", 75),
        (140, 100),
        (-3, 0),
        (True, None),
        ("high", None),
        (float("nan"), None),
        (None, None),
    ],
)
def test_coerce_score(value, expected):
    assert coerce_score(value) == expected


def test_normalize_fills_defaults_from_rubric():
    result = normalize_evaluation(
        {"overall_score": "82", "feedback": "Nice", "strengths": "Patient"},
        ["Empathy", "Clarity"],
    )

    assert result.objective_achievement_rate == 60
    assert result.detailed_scores == {"Empathy": 82, "Clarity": 82}
    assert result.strengths == ["Patient"]
    assert len(result.improvement_suggestions) == 3


@pytest.mark.parametrize(
    "payload",
    [
        {"feedback": "no score"},
        {"overall_score": 50},
        {"overall_score": 50, "feedback": "   "},
    ],
)
def test_normalize_requires_score_and_feedback(payload):
    with pytest.raises(ParseError):
        normalize_evaluation(payload, ["Empathy"])


def test_default_evaluation_is_stable():
    first = default_evaluation(["Empathy"])
    second = default_evaluation(["Empathy"])

    assert first == second
    assert first.overall_score == 65
    assert first.objective_achievement_rate == 60
    assert first.detailed_scores == {"Empathy": 65}
    assert default_evaluation().detailed_scores.keys() == {
        "Empathy", "Active listening", "Clear expression", "Conflict resolution",
    }
