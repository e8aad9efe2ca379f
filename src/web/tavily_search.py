"""Tavily Search implementation (our sole web search provider)."""

from typing import List

from tavily import AsyncTavilyClient

from src.errors import UpstreamServiceError
from src.utils.config import settings
from src.utils.logger import get_logger
from src.web.search_provider import SearchProvider, SearchResult

log = get_logger(__name__)


class TavilySearch(SearchProvider):
    """Web search via the Tavily API.

    Tavily returns pre-extracted, LLM-ready content alongside each result,
    so results can go straight back to the model.
    """

    def __init__(self, api_key: str | None = None):
        self.api_key = api_key or settings.tavily_api_key
        self._client = AsyncTavilyClient(api_key=self.api_key) if self.api_key else None

    async def search(
        self,
        query: str,
        num_results: int = 5,
        search_depth: str = "advanced",
    ) -> List[SearchResult]:
        """Execute a Tavily search and normalise results."""
        if self._client is None:
            raise UpstreamServiceError(
                "Tavily API key is not configured. Please set TAVILY_API_KEY environment variable."
            )
        try:
            raw = await self._client.search(
                query=query,
                max_results=num_results,
                search_depth=search_depth,
                include_raw_content=False,
            )
        except Exception as exc:
            log.exception("Tavily search failed for query: %s", query)
            raise UpstreamServiceError(f"Web search failed: {exc}") from exc

        results: List[SearchResult] = []
        for item in raw.get("results", []):
            results.append(
                SearchResult(
                    url=item.get("url", ""),
                    title=item.get("title", ""),
                    snippet=item.get("content", ""),
                    content=item.get("content", ""),
                    relevance_score=item.get("score"),
                )
            )
        return results
