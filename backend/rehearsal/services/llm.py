"""Chat-completion backend over an OpenAI-compatible endpoint."""
import logging
from typing import Any

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from rehearsal.config import Settings
from rehearsal.errors import BackendError


logger = logging.getLogger(__name__)

_MESSAGE_TYPES = {
    "system": SystemMessage,
    "user": HumanMessage,
    "assistant": AIMessage,
}


def to_langchain_messages(messages: list[dict[str, Any]]) -> list[BaseMessage]:
    """Convert {role, content} dicts into LangChain message objects."""
    converted = []
    for message in messages:
        message_type = _MESSAGE_TYPES.get(message.get("role", ""))
        if message_type is None:
            raise BackendError(f"Unsupported message role: {message.get('role')!r}")
        converted.append(message_type(content=message.get("content", "")))
    return converted


class ChatBackend:
    """
    Thin wrapper around ChatOpenAI.

    Constructed once per process and handed to the engines; every call
    returns the reply text or raises BackendError.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def _llm(
        self,
        model: str,
        temperature: float,
        max_tokens: int,
        timeout: float | None,
    ) -> ChatOpenAI:
        return ChatOpenAI(
            model=model,
            api_key=self.settings.openai_api_key,
            base_url=self.settings.openai_base_url,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout or self.settings.generation_timeout,
            max_retries=1,
            default_headers=self.settings.backend_headers,
        )

    async def complete(
        self,
        messages: list[dict[str, Any]],
        *,
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 300,
        json_mode: bool = False,
        timeout: float | None = None,
    ) -> str:
        """Send a message list and return the assistant text."""
        llm = self._llm(model or self.settings.chat_model, temperature, max_tokens, timeout)
        runnable = llm.bind(response_format={"type": "json_object"}) if json_mode else llm

        try:
            response = await runnable.ainvoke(to_langchain_messages(messages))
        except BackendError:
            raise
        except Exception as exc:
            logger.warning("Chat backend call failed (%s): %s", exc.__class__.__name__, exc)
            raise BackendError(f"Chat backend call failed: {exc}") from exc

        content = response.content
        if isinstance(content, list):
            content = "".join(
                part.get("text", "") if isinstance(part, dict) else str(part)
                for part in content
            )
        if not isinstance(content, str) or not content.strip():
            raise BackendError("Chat backend returned an empty reply")
        return content.strip()
