"""webSearch -- current information from the web via the search provider."""

from typing import Literal

from pydantic import Field

from src.tools.base import Tool, ToolContext, ToolInput, ToolName, ToolResult
from src.utils.logger import get_logger
from src.web.search_provider import SearchProvider

log = get_logger(__name__)

DESCRIPTION = (
    "Search the web for current information, news, facts, and answers to questions. "
    "Use this tool when you need up-to-date information that might not be in your training data. "
    "Returns relevant snippets from web pages that you can use to provide accurate, current answers."
)


class WebSearchInput(ToolInput):
    query: str = Field(..., min_length=1, description="The search query to look up on the web.")
    max_results: int = Field(
        5, alias="maxResults", ge=1, le=10, description="Maximum number of search results to return (1-10)."
    )
    search_depth: Literal["basic", "advanced"] = Field(
        "advanced",
        alias="searchDepth",
        description='"basic" for quick results or "advanced" for more comprehensive results.',
    )


def make_web_search_tool(provider: SearchProvider) -> Tool:
    async def web_search(params: WebSearchInput, context: ToolContext) -> ToolResult:
        log.info("Executing web search for query: %s", params.query)
        meta = {"maxResults": params.max_results, "searchDepth": params.search_depth}
        results = await provider.search(
            params.query,
            num_results=params.max_results,
            search_depth=params.search_depth,
        )
        log.info("Web search returned %d results", len(results))
        return ToolResult.ok(
            {"query": params.query, "results": [r.to_dict() for r in results]},
            **meta,
        )

    return Tool(
        name=ToolName.WEB_SEARCH,
        description=DESCRIPTION,
        input_model=WebSearchInput,
        handler=web_search,
    )
