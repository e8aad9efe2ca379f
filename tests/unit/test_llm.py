"""Unit tests for the chat model wire conversion."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from openai import APIConnectionError

from src.agent.state import AI, HUMAN, TOOL, Message, ToolCall
from src.errors import UpstreamServiceError
from src.llm.base import ChatModel, from_api_message, to_api_message


def _raw_call(call_id, name, arguments):
    return SimpleNamespace(id=call_id, function=SimpleNamespace(name=name, arguments=arguments))


def test_to_api_message_roles():
    assert to_api_message(Message(role=HUMAN, content="hi")) == {"role": "user", "content": "hi"}
    tool_msg = to_api_message(Message(role=TOOL, content="{}", tool_call_id="c1", name="webSearch"))
    assert tool_msg == {"role": "tool", "content": "{}", "tool_call_id": "c1"}


def test_to_api_message_with_tool_calls():
    msg = Message(role=AI, tool_calls=(ToolCall("c1", "weatherLookup", {"city": "Oslo"}),))
    out = to_api_message(msg)
    assert out["role"] == "assistant"
    assert out["content"] is None
    assert json.loads(out["tool_calls"][0]["function"]["arguments"]) == {"city": "Oslo"}


def test_from_api_message_parses_arguments():
    raw = SimpleNamespace(
        content=None,
        tool_calls=[
            _raw_call("c1", "weatherLookup", '{"city": "Oslo"}'),
            _raw_call("c2", "webSearch", "{not json"),
            _raw_call("c3", "webSearch", "[1, 2]"),
        ],
    )
    msg = from_api_message(raw)
    assert msg.role == AI
    assert msg.content == ""
    assert msg.tool_calls[0].arguments == {"city": "Oslo"}
    assert msg.tool_calls[0].parse_error is None
    assert msg.tool_calls[1].parse_error.startswith("Arguments are not valid JSON")
    assert msg.tool_calls[2].parse_error == "Arguments must be a JSON object"


def test_from_api_message_plain_answer():
    msg = from_api_message(SimpleNamespace(content="Hello", tool_calls=None))
    assert msg.content == "Hello"
    assert msg.tool_calls == ()


@pytest.mark.asyncio
async def test_complete_wraps_provider_errors():
    with patch("src.llm.base.AsyncOpenAI") as mock_cls:
        client = MagicMock()
        client.chat.completions.create = AsyncMock(
            side_effect=APIConnectionError(request=MagicMock())
        )
        mock_cls.return_value = client
        model = ChatModel(api_key="sk-test")
        with pytest.raises(UpstreamServiceError):
            await model.complete([Message(role=HUMAN, content="hi")])
