"""Node implementations for the workflow graph.

Each node receives the full ``ConversationState`` and returns a *partial*
dict with only the keys it sets.  Agent nodes are built by
:func:`make_agent_node` around an injected ``AgentLoop``.
"""

from typing import Any, Dict, Optional, Sequence

from src.agent.loop import AgentLoop
from src.agent.router import UNSUPPORTED_MESSAGE
from src.agent.state import (
    AI,
    DOCUMENT_NODE,
    HUMAN,
    NO_NODE,
    SYSTEM,
    UNIVERSAL_NODE,
    WEATHER_NODE,
    ConversationState,
    Message,
)
from src.llm.prompts import DOCUMENT_PROMPT, UNIVERSAL_PROMPT, WEATHER_PROMPT
from src.tools.base import ANONYMOUS_USER, ToolContext, ToolName
from src.utils.logger import get_logger

log = get_logger(__name__)

# Tools bound on each path; None binds the whole registry.
NODE_TOOLSETS: Dict[str, Optional[Sequence[ToolName]]] = {
    DOCUMENT_NODE: (ToolName.DOCUMENT_QA,),
    WEATHER_NODE: (ToolName.WEATHER,),
    UNIVERSAL_NODE: None,
}

NODE_PROMPTS = {
    DOCUMENT_NODE: DOCUMENT_PROMPT,
    WEATHER_NODE: WEATHER_PROMPT,
    UNIVERSAL_NODE: UNIVERSAL_PROMPT,
}


def human_message(state: ConversationState) -> Message:
    """The new human turn; document queries carry the file id as a prefix."""
    query = state.get("user_query") or ""
    file_id = state.get("file_id")
    text = f"[Using document: {file_id}] {query}" if file_id else query
    return Message(role=HUMAN, content=text)


def make_agent_node(agent: AgentLoop, node: str):
    """Build the graph node that runs *agent* with the toolset of *node*."""
    prompt = NODE_PROMPTS[node]
    tool_names = NODE_TOOLSETS[node]

    async def agent_node(state: ConversationState) -> Dict[str, Any]:
        log.info("Executing %s for conversation %s", node, state.get("conversation_id"))
        initial = [
            Message(role=SYSTEM, content=prompt),
            *state.get("history", []),
            human_message(state),
        ]
        context = ToolContext(user_id=state.get("user_id") or ANONYMOUS_USER)
        result = await agent.run(initial, tool_names, context)
        return {
            "messages": result.messages,
            "final_response": result.final_response,
            "tools_used": result.tools_used,
        }

    agent_node.__name__ = f"{node}_agent"
    return agent_node


def unsupported_node(state: ConversationState) -> Dict[str, Any]:
    """Answer with the router's fixed message without calling the model."""
    text = state.get("routing_metadata", {}).get("message", UNSUPPORTED_MESSAGE)
    return {
        "messages": [human_message(state), Message(role=AI, content=text)],
        "final_response": text,
        "tools_used": [],
    }


def make_route_decision(universal_fallback: bool = False):
    """Conditional edge: map the router's choice to the next node name."""

    def route_decision(state: ConversationState) -> str:
        selected = state.get("selected_node") or NO_NODE
        if selected == NO_NODE and universal_fallback:
            return UNIVERSAL_NODE
        return selected

    return route_decision
