"""Scenario service: lookup by ID and insertion of generated scenarios."""
from typing import Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session

from rehearsal.models import Scenario


class ScenarioService:
    """Read access to scenarios plus insertion for generated ones."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def get_by_id(self, scenario_id: str) -> Optional[Scenario]:
        """Get a scenario by ID."""
        with Session(self.engine) as db:
            return db.get(Scenario, scenario_id)

    def get_many(self, scenario_ids: set[str]) -> dict[str, Scenario]:
        """Fetch several scenarios at once, keyed by ID."""
        found = {}
        with Session(self.engine) as db:
            for scenario_id in scenario_ids:
                scenario = db.get(Scenario, scenario_id)
                if scenario:
                    found[scenario_id] = scenario
        return found

    def create(self, scenario: Scenario) -> Scenario:
        """Insert a scenario."""
        with Session(self.engine) as db:
            db.add(scenario)
            db.commit()
            db.refresh(scenario)
            return scenario
