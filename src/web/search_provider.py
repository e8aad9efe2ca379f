"""Abstract search interface and shared SearchResult dataclass."""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional


@dataclass
class SearchResult:
    """A single web search result."""

    url: str
    title: str
    snippet: str
    content: str  # full extracted text (Tavily provides this)
    relevance_score: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SearchProvider(ABC):
    """Abstract interface -- swap implementations without touching callers."""

    @abstractmethod
    async def search(
        self,
        query: str,
        num_results: int = 5,
        search_depth: str = "advanced",
    ) -> List[SearchResult]:
        """Return a list of search results for *query*."""
        ...
