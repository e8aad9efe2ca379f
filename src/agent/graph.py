"""LangGraph state machine wiring.

State flows:

                         router
                           |
        +------------------+-----------------+-------------------+
        |                  |                 |                   |
   (documentNode)    (weatherNode)        (none)       (none + universal fallback)
        |                  |                 |                   |
  document agent     weather agent     unsupported        universal agent
        |                  |                 |                   |
        +------------------+--------+--------+-------------------+
                                    |
                                   END
"""

from typing import Any, Dict, List, Optional

from langgraph.graph import END, StateGraph

from src.agent.loop import AgentLoop
from src.agent.nodes import make_agent_node, make_route_decision, unsupported_node
from src.agent.router import router_node
from src.agent.state import (
    DOCUMENT_NODE,
    NO_NODE,
    UNIVERSAL_NODE,
    WEATHER_NODE,
    ConversationState,
    Message,
)


def build_graph(agent: AgentLoop, universal_fallback: bool = False):
    """Construct and compile the workflow graph.  Returns a runnable."""
    g = StateGraph(ConversationState)

    # -- add nodes ----------------------------------------------------------
    g.add_node("router", router_node)
    g.add_node(DOCUMENT_NODE, make_agent_node(agent, DOCUMENT_NODE))
    g.add_node(WEATHER_NODE, make_agent_node(agent, WEATHER_NODE))
    g.add_node(NO_NODE, unsupported_node)
    paths = {
        DOCUMENT_NODE: DOCUMENT_NODE,
        WEATHER_NODE: WEATHER_NODE,
        NO_NODE: NO_NODE,
    }
    if universal_fallback:
        g.add_node(UNIVERSAL_NODE, make_agent_node(agent, UNIVERSAL_NODE))
        paths[UNIVERSAL_NODE] = UNIVERSAL_NODE

    # -- edges --------------------------------------------------------------
    g.set_entry_point("router")
    g.add_conditional_edges("router", make_route_decision(universal_fallback), paths)
    for node in paths.values():
        g.add_edge(node, END)

    return g.compile()


async def run_workflow(
    graph,
    conversation_id: str,
    user_query: str,
    file_id: Optional[str] = None,
    user_id: str = "anonymous",
    history: Optional[List[Message]] = None,
) -> Dict[str, Any]:
    """Invoke the compiled graph for a single user turn and return the final state."""
    initial: ConversationState = {
        "conversation_id": conversation_id,
        "user_query": user_query,
        "file_id": file_id,
        "user_id": user_id,
        "history": list(history or []),
        "selected_node": "",
        "routing_metadata": {},
        "messages": [],
        "final_response": "",
        "tools_used": [],
    }
    return await graph.ainvoke(initial)
