"""Tool-augmented model loop.

    AWAITING_MODEL --(no tool calls)--> DONE
    AWAITING_MODEL --(tool calls)-----> EXECUTING_TOOL
    EXECUTING_TOOL --(all results)----> AWAITING_MODEL

Every completed EXECUTING_TOOL phase counts as one round trip.  When the
model asks for tools again after ``recursion_limit`` round trips the loop
raises ``RecursionLimitExceeded`` instead of running them.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Protocol, Sequence, Union

from src.agent.state import TOOL, Message, ToolCall
from src.errors import RecursionLimitExceeded
from src.tools.base import Tool, ToolContext, ToolName, ToolResult
from src.tools.registry import ToolRegistry
from src.utils.config import settings
from src.utils.logger import get_logger

log = get_logger(__name__)


class LoopState(str, Enum):
    AWAITING_MODEL = "AWAITING_MODEL"
    EXECUTING_TOOL = "EXECUTING_TOOL"
    DONE = "DONE"


class ChatCompleter(Protocol):
    async def complete(self, messages: Sequence[Message], tools: Sequence[Tool] = ()) -> Message:
        ...


@dataclass(frozen=True)
class AgentResult:
    messages: List[Message]
    final_response: str
    tools_used: List[str]
    round_trips: int


class AgentLoop:
    def __init__(
        self,
        model: ChatCompleter,
        registry: ToolRegistry,
        recursion_limit: Optional[int] = None,
    ):
        self.model = model
        self.registry = registry
        self.recursion_limit = (
            settings.recursion_limit if recursion_limit is None else recursion_limit
        )

    async def run(
        self,
        messages: Sequence[Message],
        tool_names: Optional[Iterable[Union[str, ToolName]]] = None,
        context: Optional[ToolContext] = None,
    ) -> AgentResult:
        """Drive the model until it answers without tool calls.

        *messages* is the initial history (system prompt, prior turns, new
        human message).  *tool_names* restricts the bound tools; None binds
        the whole registry.  *context* is handed to every tool call.
        """
        tools = self.registry.select(tool_names)
        history: List[Message] = list(messages)
        tools_used: List[str] = []
        round_trips = 0
        state = LoopState.AWAITING_MODEL

        while state is not LoopState.DONE:
            response = await self.model.complete(history, tools)
            history = [*history, response]

            if not response.tool_calls:
                state = LoopState.DONE
                continue

            if round_trips >= self.recursion_limit:
                log.error("Recursion limit of %d round trips reached", self.recursion_limit)
                raise RecursionLimitExceeded(self.recursion_limit)

            state = LoopState.EXECUTING_TOOL
            log.info(
                "Model requested %d tool call(s): %s",
                len(response.tool_calls),
                ", ".join(c.name for c in response.tool_calls),
            )
            results = await self._execute(response.tool_calls, tools, context)
            history = [*history, *results]
            for call in response.tool_calls:
                if call.name not in tools_used:
                    tools_used.append(call.name)
            round_trips += 1
            state = LoopState.AWAITING_MODEL

        final = history[-1].content
        log.info("Agent finished after %d round trip(s)", round_trips)
        return AgentResult(
            messages=history,
            final_response=final,
            tools_used=tools_used,
            round_trips=round_trips,
        )

    async def _execute(
        self,
        calls: Sequence[ToolCall],
        tools: Sequence[Tool],
        context: Optional[ToolContext] = None,
    ) -> List[Message]:
        """Run all calls of one turn concurrently; results keep the request order."""
        bound = {t.name.value: t for t in tools}
        results = await asyncio.gather(*(self._run_call(call, bound, context) for call in calls))
        return [
            Message(role=TOOL, content=result.to_content(), tool_call_id=call.id, name=call.name)
            for call, result in zip(calls, results)
        ]

    async def _run_call(
        self, call: ToolCall, bound: dict, context: Optional[ToolContext]
    ) -> ToolResult:
        if call.parse_error:
            return ToolResult.failure(call.parse_error)
        tool = bound.get(call.name)
        if tool is None:
            log.warning("Model requested unavailable tool %s", call.name)
            return ToolResult.failure(f"Unknown tool: {call.name}")
        return await tool.invoke(call.arguments, context)
