"""Conversation state -- the TypedDict that flows through the workflow graph,
plus the immutable message types the agent loop appends to it."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, TypedDict

# Roles
HUMAN = "human"
AI = "ai"
SYSTEM = "system"
TOOL = "tool"

# Router outcomes
DOCUMENT_NODE = "documentNode"
WEATHER_NODE = "weatherNode"
UNIVERSAL_NODE = "universalNode"
NO_NODE = "none"


@dataclass(frozen=True)
class ToolCall:
    """A single tool invocation requested by the model."""

    id: str
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)
    # Set when the model sent arguments that were not valid JSON.
    parse_error: Optional[str] = None


@dataclass(frozen=True)
class Message:
    role: str
    content: str = ""
    tool_calls: Tuple[ToolCall, ...] = ()
    tool_call_id: Optional[str] = None
    name: Optional[str] = None


class RoutingMetadata(TypedDict, total=False):
    timestamp: str
    reason: str
    message: str


class ConversationState(TypedDict, total=False):
    """State carried across the workflow graph.

    Nodes return a *partial* dict with fresh values for the keys they set;
    no key uses a reducer, so ``messages`` is always replaced wholesale.
    """

    # Input
    conversation_id: str
    user_query: str
    file_id: Optional[str]
    user_id: str
    history: List[Message]

    # Routing
    selected_node: str          # "documentNode" | "weatherNode" | "none" | ""
    routing_metadata: RoutingMetadata

    # Agent output
    messages: List[Message]
    final_response: str
    tools_used: List[str]
