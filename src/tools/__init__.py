"""Tools module -- the fixed set of capabilities the agent may call."""

from src.memory.vector_search import VectorSearch
from src.tools.base import Tool, ToolContext, ToolName, ToolResult
from src.tools.document_qa import make_document_qa_tool
from src.tools.knowledge_search import (
    make_github_search_tool,
    make_jira_search_tool,
    make_slack_search_tool,
)
from src.tools.registry import ToolRegistry
from src.tools.weather import make_weather_tool
from src.tools.web_search import make_web_search_tool
from src.web.search_provider import SearchProvider
from src.web.weather_api import WeatherClient


def build_registry(
    vector_search: VectorSearch,
    weather_client: WeatherClient,
    search_provider: SearchProvider,
) -> ToolRegistry:
    """Register every tool once and freeze the registry.

    Raises ``ValueError`` if two tools share a name.
    """
    registry = ToolRegistry(
        [
            make_document_qa_tool(vector_search),
            make_weather_tool(weather_client),
            make_web_search_tool(search_provider),
            make_slack_search_tool(vector_search),
            make_jira_search_tool(vector_search),
            make_github_search_tool(vector_search),
        ]
    )
    return registry.freeze()


__all__ = ["Tool", "ToolContext", "ToolName", "ToolResult", "ToolRegistry", "build_registry"]
