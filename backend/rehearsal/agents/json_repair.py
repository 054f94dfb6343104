"""Recover a JSON object from free-form model output.

Strategies run in order and each returns the parsed object or None;
the first success wins.
"""
import json
import re
from typing import Any, Callable, Optional

from rehearsal.errors import ParseError


FENCED_BLOCK = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)

# A value terminator, a line break, then the opening quote of the next key/item
_MISSING_COMMA_NEWLINE = re.compile(r'((?<!\\)"|[}\]\d]|\btrue|\bfalse|\bnull)(\s*\n\s*)(")')
# Two quoted tokens on one line separated only by spaces
_MISSING_COMMA_INLINE = re.compile(r'((?<!\\)")([ \t]+)(")')
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")


def _loads_object(text: str) -> Optional[dict[str, Any]]:
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None
    return value if isinstance(value, dict) else None


def repair_json(text: str) -> str:
    """Insert missing commas between adjacent fields and drop trailing commas."""
    repaired = _MISSING_COMMA_NEWLINE.sub(r"\1,\2\3", text)
    repaired = _MISSING_COMMA_INLINE.sub(r"\1,\2\3", repaired)
    return _TRAILING_COMMA.sub(r"\1", repaired)


def _loads_with_repair(candidate: str) -> Optional[dict[str, Any]]:
    return _loads_object(candidate) or _loads_object(repair_json(candidate))


def parse_direct(text: str) -> Optional[dict[str, Any]]:
    return _loads_object(text.strip())


def parse_fenced_block(text: str) -> Optional[dict[str, Any]]:
    match = FENCED_BLOCK.search(text)
    if not match:
        return None
    return _loads_with_repair(match.group(1))


def parse_brace_span(text: str) -> Optional[dict[str, Any]]:
    first = text.find("{")
    last = text.rfind("}")
    if first == -1 or last <= first:
        return None
    return _loads_with_repair(text[first:last + 1])


STRATEGIES: list[Callable[[str], Optional[dict[str, Any]]]] = [
    parse_direct,
    parse_fenced_block,
    parse_brace_span,
]


def extract_json_object(text: str | None) -> Optional[dict[str, Any]]:
    """Run the strategy chain; None when nothing parses."""
    if not text:
        return None
    for strategy in STRATEGIES:
        result = strategy(text)
        if result is not None:
            return result
    return None


def parse_json_object(text: str | None) -> dict[str, Any]:
    """Like extract_json_object but raises ParseError on failure."""
    result = extract_json_object(text)
    if result is None:
        raise ParseError("Unable to extract valid JSON from model response")
    return result
