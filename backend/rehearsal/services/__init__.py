"""Service package: persistence stores and the chat backend."""
from .llm import ChatBackend, to_langchain_messages
from .scenario_service import ScenarioService
from .session_service import SessionService

__all__ = [
    "ChatBackend",
    "ScenarioService",
    "SessionService",
    "to_langchain_messages",
]
