"""Web module -- Tavily search and the weather API client."""

from src.web.search_provider import SearchProvider, SearchResult
from src.web.tavily_search import TavilySearch
from src.web.weather_api import WeatherClient

__all__ = ["SearchProvider", "SearchResult", "TavilySearch", "WeatherClient"]
