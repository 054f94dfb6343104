import sys
import asyncio
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

# Ensure backend/ is on sys.path for `import rehearsal.*`
BACKEND = Path(__file__).resolve().parents[1] / "backend"
if str(BACKEND) not in sys.path:
    sys.path.insert(0, str(BACKEND))

from rehearsal.config import Settings  # noqa: E402
from rehearsal.container import build_services  # noqa: E402
from rehearsal.main import create_app  # noqa: E402
from rehearsal.models import Scenario  # noqa: E402
from rehearsal.services import ScenarioService  # noqa: E402


class FakeBackend:
    """Scripted stand-in for ChatBackend.

    Replies are consumed in order; an Exception instance is raised instead
    of returned. Every call is recorded with its keyword arguments.
    """

    def __init__(self, replies=None, delay=0.0, default="Fine, go on."):
        self.replies = list(replies or [])
        self.delay = delay
        self.default = default
        self.calls = []

    def queue(self, *replies):
        self.replies.extend(replies)

    async def complete(self, messages, **kwargs):
        self.calls.append({"messages": [dict(m) for m in messages], **kwargs})
        if self.delay:
            await asyncio.sleep(self.delay)
        reply = self.replies.pop(0) if self.replies else self.default
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def test_settings():
    return Settings(
        openai_api_key="test-key",
        max_turns=3,
        evaluation_timeout=2.0,
        evaluation_attempts=2,
        evaluation_retry_delay=0.0,
        default_language="en",
    )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def scenario(engine):
    return ScenarioService(engine).create(Scenario(
        id="workplace_feedback",
        title="Pushing back on a deadline",
        domain="workplace",
        difficulty=2,
        language="en",
        objective="Agree on a realistic deadline without damaging the relationship.",
        character={
            "name": "Li Wei",
            "role": "Team lead",
            "personality": "stubborn and impatient",
            "background": "Promised the client a Friday delivery.",
            "challenge": "Does not like being told no.",
        },
        scenario_context="The team lead wants the feature shipped by Friday.",
        rubric=[
            {"criterion": "Empathy", "weight": 0.5},
            {"criterion": "Clarity", "weight": 0.5},
        ],
    ))


@pytest.fixture
def services(engine, fake_backend, test_settings):
    return build_services(engine, test_settings, backend=fake_backend)


@pytest.fixture
def client(engine, fake_backend, test_settings, scenario):
    app = create_app(chat_backend=fake_backend, db_engine=engine, app_settings=test_settings)
    with TestClient(app) as c:
        yield c
