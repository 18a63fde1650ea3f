# taskpilot_agent/agent/model.py
"""
Model invocation interface and an OpenAI-compatible implementation.

The loop only depends on ModelClient: ``invoke(messages, tools) -> Message``.
A returned message with no tool calls is a final answer.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol, runtime_checkable

import httpx

from taskpilot_agent.config import (
    DEFAULT_MODEL,
    DEFAULT_MODEL_API_KEY,
    DEFAULT_MODEL_BASE_URL,
    DEFAULT_MODEL_TIMEOUT,
)
from taskpilot_agent.exceptions import ModelInvocationError
from taskpilot_agent.models.enums import MessageRole
from taskpilot_agent.models.messages import Message, ToolCallRequest
from taskpilot_agent.models.tools import ToolDefinition

logger = logging.getLogger(__name__)


@runtime_checkable
class ModelClient(Protocol):
    """Anything that can turn a conversation into the next assistant message."""

    async def invoke(self, messages: list[Message], tools: list[ToolDefinition]) -> Message: ...


def to_wire_message(message: Message) -> dict[str, Any]:
    """Convert a Message to the chat-completions wire format."""
    wire: dict[str, Any] = {"role": message.role.value, "content": message.content}

    if message.role == MessageRole.TOOL:
        wire["tool_call_id"] = message.tool_call_id
        if message.name:
            wire["name"] = message.name
    elif message.tool_calls:
        wire["content"] = message.content or None
        wire["tool_calls"] = [
            {
                "id": call.id,
                "type": "function",
                "function": {"name": call.name, "arguments": json.dumps(call.args)},
            }
            for call in message.tool_calls
        ]
    return wire


def parse_tool_call(raw: dict[str, Any]) -> ToolCallRequest:
    """Parse one wire tool call; arguments arrive as a JSON string."""
    function = raw.get("function") or {}
    name = function.get("name")
    if not name:
        raise ModelInvocationError("tool call without a function name")

    arguments = function.get("arguments") or "{}"
    if isinstance(arguments, str):
        try:
            arguments = json.loads(arguments)
        except json.JSONDecodeError as e:
            raise ModelInvocationError(f"unparseable arguments for {name}", cause=e) from e
    if not isinstance(arguments, dict):
        raise ModelInvocationError(f"arguments for {name} must be an object")

    if raw.get("id"):
        return ToolCallRequest(id=raw["id"], name=name, args=arguments)
    return ToolCallRequest(name=name, args=arguments)


def parse_completion(payload: dict[str, Any]) -> Message:
    """Extract the assistant message from a chat-completions response body."""
    try:
        choice = payload["choices"][0]
        raw = choice["message"]
    except (KeyError, IndexError, TypeError) as e:
        raise ModelInvocationError("response has no choices", cause=e) from e

    tool_calls = [parse_tool_call(c) for c in raw.get("tool_calls") or []]
    return Message.assistant(content=raw.get("content") or "", tool_calls=tool_calls)


class OpenAIChatModel:
    """
    ModelClient backed by any OpenAI-compatible ``/chat/completions`` endpoint.

    Usage::

        model = OpenAIChatModel()  # TASKPILOT_MODEL_* env vars
        reply = await model.invoke([Message.user("Hello")], registry.list())

    Pass ``client`` to reuse a configured ``httpx.AsyncClient`` (tests use a
    MockTransport); otherwise one is created lazily.
    """

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        *,
        base_url: str = DEFAULT_MODEL_BASE_URL,
        api_key: str | None = DEFAULT_MODEL_API_KEY,
        timeout: float = DEFAULT_MODEL_TIMEOUT,
        temperature: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.temperature = temperature
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy initialization of HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    def build_payload(self, messages: list[Message], tools: list[ToolDefinition]) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [to_wire_message(m) for m in messages],
        }
        if tools:
            payload["tools"] = [t.to_function_schema() for t in tools]
            payload["tool_choice"] = "auto"
        if self.temperature is not None:
            payload["temperature"] = self.temperature
        return payload

    async def invoke(self, messages: list[Message], tools: list[ToolDefinition]) -> Message:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            response = await self.client.post(
                f"{self.base_url}/chat/completions",
                json=self.build_payload(messages, tools),
                headers=headers,
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise ModelInvocationError(f"model endpoint returned {e.response.status_code}", cause=e) from e
        except httpx.HTTPError as e:
            raise ModelInvocationError(f"model request failed: {type(e).__name__}", cause=e) from e
        except ValueError as e:
            raise ModelInvocationError("model response is not JSON", cause=e) from e

        message = parse_completion(payload)
        logger.debug(f"Model {self.model} returned {len(message.tool_calls)} tool call(s)")
        return message

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> OpenAIChatModel:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
