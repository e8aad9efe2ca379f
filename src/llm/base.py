"""Chat model wrapper -- OpenAI chat completions with function calling.

Converts between the agent's ``Message`` objects and the API's wire format.
Provider errors are not retried; they surface as ``UpstreamServiceError``.
"""

import json
from typing import Any, Dict, List, Optional, Sequence

from openai import AsyncOpenAI, OpenAIError

from src.agent.state import AI, HUMAN, SYSTEM, TOOL, Message, ToolCall
from src.errors import UpstreamServiceError
from src.tools.base import Tool
from src.utils.config import settings
from src.utils.logger import get_logger

log = get_logger(__name__)

_ROLE_TO_API = {SYSTEM: "system", HUMAN: "user", AI: "assistant", TOOL: "tool"}


class ChatModel:
    """Thin async wrapper around the OpenAI chat completions API."""

    def __init__(
        self,
        model: str | None = None,
        api_key: str | None = None,
        project: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ):
        self.model = model or settings.chat_model
        self.temperature = settings.temperature if temperature is None else temperature
        self.max_tokens = max_tokens or settings.max_tokens
        self._api_key = api_key or settings.openai_api_key
        self._project = project or settings.openai_project_id or None
        self._client: Optional[AsyncOpenAI] = None

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key, project=self._project)
        return self._client

    async def complete(self, messages: Sequence[Message], tools: Sequence[Tool] = ()) -> Message:
        """Send *messages* with *tools* bound and return the assistant message."""
        kwargs: Dict[str, Any] = {}
        if tools:
            kwargs["tools"] = [t.to_openai() for t in tools]
        try:
            resp = await self.client.chat.completions.create(
                model=self.model,
                messages=[to_api_message(m) for m in messages],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                **kwargs,
            )
        except OpenAIError as exc:
            log.error("Chat completion failed: %s", exc)
            raise UpstreamServiceError(f"Language model request failed: {exc}") from exc

        return from_api_message(resp.choices[0].message)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()


# ---------------------------------------------------------------------------
# Wire conversion
# ---------------------------------------------------------------------------

def to_api_message(message: Message) -> Dict[str, Any]:
    out: Dict[str, Any] = {"role": _ROLE_TO_API[message.role], "content": message.content}
    if message.role == AI and message.tool_calls:
        out["content"] = message.content or None
        out["tool_calls"] = [
            {
                "id": call.id,
                "type": "function",
                "function": {"name": call.name, "arguments": json.dumps(call.arguments)},
            }
            for call in message.tool_calls
        ]
    if message.role == TOOL:
        out["tool_call_id"] = message.tool_call_id
    return out


def from_api_message(raw: Any) -> Message:
    calls: List[ToolCall] = []
    for call in getattr(raw, "tool_calls", None) or []:
        arguments, error = _parse_arguments(call.function.arguments)
        calls.append(
            ToolCall(id=call.id, name=call.function.name, arguments=arguments, parse_error=error)
        )
    return Message(role=AI, content=raw.content or "", tool_calls=tuple(calls))


def _parse_arguments(raw: Optional[str]) -> tuple[Dict[str, Any], Optional[str]]:
    if not raw:
        return {}, None
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        return {}, f"Arguments are not valid JSON: {exc}"
    if not isinstance(parsed, dict):
        return {}, "Arguments must be a JSON object"
    return parsed, None
