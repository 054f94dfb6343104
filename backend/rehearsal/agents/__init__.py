"""Agents package: prompt building, turn engine, evaluator and generators."""
from .evaluator import EvaluationEngine, EvaluationNodes
from .json_repair import extract_json_object, parse_json_object, repair_json
from .opening import OpeningLineGenerator, default_opening_line, strip_name_prefix
from .prompt_builder import build_roleplay_prompt, phase_for_turn
from .scenario_writer import ScenarioGenerator
from .turn_engine import TurnEngine, TurnResult

__all__ = [
    "EvaluationEngine",
    "EvaluationNodes",
    "OpeningLineGenerator",
    "ScenarioGenerator",
    "TurnEngine",
    "TurnResult",
    "build_roleplay_prompt",
    "default_opening_line",
    "extract_json_object",
    "parse_json_object",
    "phase_for_turn",
    "repair_json",
    "strip_name_prefix",
]
