"""Keyword/file based routing that runs before any model call."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from src.agent.state import DOCUMENT_NODE, NO_NODE, WEATHER_NODE, ConversationState
from src.utils.logger import get_logger

log = get_logger(__name__)

WEATHER_KEYWORDS = (
    "weather",
    "temperature",
    "forecast",
    "rain",
    "sunny",
    "cloudy",
    "humidity",
    "wind",
    "hot",
    "cold",
)

UNSUPPORTED_MESSAGE = (
    "I can only help with weather queries or questions about uploaded documents."
)


def is_weather_query(query: Optional[str]) -> bool:
    """True when the lower-cased query contains any weather keyword."""
    if not query:
        return False
    lower = query.lower()
    return any(keyword in lower for keyword in WEATHER_KEYWORDS)


def route_query(user_query: Optional[str], file_id: Optional[str]) -> Dict[str, Any]:
    """Pick exactly one handling path.  First match wins:

    1. a non-empty ``file_id`` -> document node
    2. a weather keyword in the query -> weather node
    3. anything else -> ``none`` with a fixed user-facing message
    """
    log.info("Router analysing query=%r file_id=%s", user_query, file_id or "none")
    timestamp = datetime.now(timezone.utc).isoformat()

    if isinstance(file_id, str) and file_id:
        log.info("Routing to %s for file_id=%s", DOCUMENT_NODE, file_id)
        return {
            "selected_node": DOCUMENT_NODE,
            "routing_metadata": {
                "timestamp": timestamp,
                "reason": "Document query with fileId",
            },
        }

    if is_weather_query(user_query):
        log.info("Routing to %s", WEATHER_NODE)
        return {
            "selected_node": WEATHER_NODE,
            "routing_metadata": {
                "timestamp": timestamp,
                "reason": "Weather-related query detected",
            },
        }

    log.info("Query not supported by available nodes")
    return {
        "selected_node": NO_NODE,
        "routing_metadata": {
            "timestamp": timestamp,
            "reason": "Query not supported",
            "message": UNSUPPORTED_MESSAGE,
        },
    }


def router_node(state: ConversationState) -> Dict[str, Any]:
    """Graph node wrapper around :func:`route_query`."""
    return route_query(state.get("user_query"), state.get("file_id"))
