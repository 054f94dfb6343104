"""Process-wide collaborators, built once at startup and passed by reference."""
from dataclasses import dataclass

from sqlalchemy.engine import Engine

from rehearsal.agents import (
    EvaluationEngine,
    OpeningLineGenerator,
    ScenarioGenerator,
    TurnEngine,
)
from rehearsal.config import Settings
from rehearsal.services import ChatBackend, ScenarioService, SessionService


@dataclass
class Services:
    backend: object
    sessions: SessionService
    scenarios: ScenarioService
    opening: OpeningLineGenerator
    turn_engine: TurnEngine
    evaluator: EvaluationEngine
    scenario_generator: ScenarioGenerator


def build_services(engine: Engine, settings: Settings, backend=None) -> Services:
    """Wire stores, backend and engines together."""
    backend = backend or ChatBackend(settings)
    sessions = SessionService(engine)
    scenarios = ScenarioService(engine)
    opening = OpeningLineGenerator(backend, settings)

    return Services(
        backend=backend,
        sessions=sessions,
        scenarios=scenarios,
        opening=opening,
        turn_engine=TurnEngine(backend, sessions, scenarios, opening, settings),
        evaluator=EvaluationEngine(backend, sessions, scenarios, settings),
        scenario_generator=ScenarioGenerator(backend, scenarios, settings),
    )
