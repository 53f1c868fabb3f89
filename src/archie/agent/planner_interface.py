"""
Planner interface for Archie.

This module is the only place that *directly* calls an LLM.  Everything else (agent loop, tools,
conversation) stays model-agnostic: a planner takes the full list of role-tagged messages and
returns the model's reply text.  No structured function-calling feature of the back-ends is used;
tool calls travel inside the text.

We support three back-ends out of the box:

1. **Ollama** over its HTTP chat endpoint (default, local models).
2. **OpenAI** via the official async SDK.
3. **Anthropic** via the official async SDK.

Additional providers can be added by subclassing :class:`BasePlanner` and registering via
:func:`register_planner`.
"""

import logging
from abc import (
    ABC,
    abstractmethod,
)
from typing import (
    Callable,
    Dict,
    List,
    Sequence,
    Type,
)

import httpx

from archie.agent.cancellation import CancellationToken
from archie.agent.conversation import ChatMessage
from archie.config import settings

logger = logging.getLogger(__name__)


class PlannerError(RuntimeError):
    """Raised when the model back-end cannot produce a reply."""


# ---------------------------------------------------------------------------
# Registry helpers
# ---------------------------------------------------------------------------
_PLANNER_REGISTRY: Dict[str, Type["BasePlanner"]] = {}


def register_planner(name: str) -> Callable:
    """Decorator to register a planner class under *name*."""

    def wrapper(cls: Type["BasePlanner"]) -> Type["BasePlanner"]:
        _PLANNER_REGISTRY[name] = cls
        return cls

    return wrapper


def load_planner(name: str | None = None, model: str | None = None) -> "BasePlanner":
    """
    Factory that returns an instantiated planner.

    Fallback order:
    1. *name* arg
    2. ``settings.PLANNER`` env/.env option
    3. default: ``"ollama"``
    """

    target = name or getattr(settings, "PLANNER", "ollama")
    cls = _PLANNER_REGISTRY.get(target.lower())
    if cls is None:
        raise ValueError(f"Planner '{target}' is not registered.")
    return cls(model=model)


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------
class BasePlanner(ABC):
    """Abstract chat-completion back-end."""

    name: str = "base"

    def __init__(self, model: str | None = None):
        self.model = model or self.default_model()

    @classmethod
    def default_model(cls) -> str:
        """Model used when none is given explicitly."""
        return ""

    async def complete(
        self, messages: Sequence[ChatMessage], cancel_token: CancellationToken | None = None
    ) -> str:
        """
        Return the model's reply to *messages*.

        Raises
        ------
        OperationCancelled
            If *cancel_token* fires before the reply arrives.
        PlannerError
            On any transport or API failure.
        """
        logger.debug(
            "Calling %s planner (%s) with %d messages", self.name, self.model, len(messages)
        )
        if cancel_token is None:
            reply = await self._chat(list(messages))
        else:
            reply = await cancel_token.run(self._chat(list(messages)))
        logger.debug("%s planner response: %s", self.name, reply)
        return reply

    @abstractmethod
    async def _chat(self, messages: List[ChatMessage]) -> str:
        """Back-end specific call."""


# ---------------------------------------------------------------------------
# Concrete planners
# ---------------------------------------------------------------------------
@register_planner("ollama")
class OllamaPlanner(BasePlanner):
    """Ollama planner with httpx client."""

    name = "ollama"

    def __init__(
        self,
        model: str | None = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(model)
        self.base_url = (base_url or settings.OLLAMA_BASE_URL).rstrip("/")
        self._transport = transport

    @classmethod
    def default_model(cls) -> str:
        return settings.OLLAMA_MODEL

    async def _chat(self, messages: List[ChatMessage]) -> str:
        payload = {
            "model": self.model,
            "messages": messages,
            "stream": False,
            "options": {"temperature": settings.LLM_TEMPERATURE},
        }
        try:
            async with httpx.AsyncClient(
                timeout=settings.LLM_TIMEOUT, transport=self._transport
            ) as client:
                resp = await client.post(f"{self.base_url}/api/chat", json=payload)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as e:
            logger.error("Ollama request error: %s", str(e))
            raise PlannerError(f"Error calling Ollama: {e}") from e
        except ValueError as e:
            raise PlannerError(f"Invalid response from Ollama: {e}") from e

        content = (data.get("message") or {}).get("content")
        if content is None:
            raise PlannerError("Ollama returned no message content")
        return str(content)


@register_planner("openai")
class OpenAIPlanner(BasePlanner):
    """OpenAI chat-completions planner."""

    name = "openai"

    @classmethod
    def default_model(cls) -> str:
        return settings.OPENAI_MODEL

    async def _chat(self, messages: List[ChatMessage]) -> str:
        import openai  # pylint: disable=import-outside-toplevel

        client = openai.AsyncOpenAI(api_key=settings.OPENAI_API_KEY, timeout=settings.LLM_TIMEOUT)
        try:
            resp = await client.chat.completions.create(
                model=self.model,
                messages=messages,  # type: ignore[arg-type]
                temperature=settings.LLM_TEMPERATURE,
            )
        except openai.OpenAIError as e:
            logger.error("OpenAI planner error: %s", str(e))
            raise PlannerError(f"Error calling OpenAI: {e}") from e
        finally:
            await client.close()

        content = resp.choices[0].message.content
        if not content:
            raise PlannerError("Empty response from OpenAI")
        return content


def _merge_consecutive(messages: List[ChatMessage]) -> List[ChatMessage]:
    """Anthropic requires alternating roles; join runs of the same role."""
    merged: List[ChatMessage] = []
    for msg in messages:
        if merged and merged[-1]["role"] == msg["role"]:
            content = f"{merged[-1]['content']}\n\n{msg['content']}"
            merged[-1] = {"role": msg["role"], "content": content}
        else:
            merged.append(dict(msg))
    return merged


@register_planner("anthropic")
class AnthropicPlanner(BasePlanner):
    """Anthropic Claude planner."""

    name = "anthropic"

    @classmethod
    def default_model(cls) -> str:
        return settings.ANTHROPIC_MODEL

    async def _chat(self, messages: List[ChatMessage]) -> str:
        import anthropic  # pylint: disable=import-outside-toplevel

        system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
        chat = _merge_consecutive([m for m in messages if m["role"] != "system"])

        client = anthropic.AsyncAnthropic(
            api_key=settings.ANTHROPIC_API_KEY, timeout=settings.LLM_TIMEOUT
        )
        try:
            response = await client.messages.create(
                model=self.model,
                max_tokens=8192,
                system=system,
                messages=chat,  # type: ignore[arg-type]
                temperature=settings.LLM_TEMPERATURE,
            )
        except anthropic.AnthropicError as e:
            logger.error("Anthropic planner error: %s", str(e))
            raise PlannerError(f"Error calling Anthropic: {e}") from e
        finally:
            await client.close()

        # Handle different content block types from Anthropic API
        texts = [block.text for block in response.content if block.type == "text"]
        if not texts:
            raise PlannerError("Anthropic returned no text content")
        return "".join(texts)
