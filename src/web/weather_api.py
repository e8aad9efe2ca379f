"""OpenWeatherMap current-weather client."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from src.errors import NotFoundError, UpstreamServiceError
from src.utils.config import settings
from src.utils.logger import get_logger

log = get_logger(__name__)


def format_weather(data: Dict[str, Any]) -> Dict[str, Any]:
    """Reduce an OpenWeatherMap payload to the fields the agent needs."""
    main = data["main"]
    condition = (data.get("weather") or [{}])[0]
    return {
        "temperature": {
            "current": round(main["temp"]),
            "feelsLike": round(main["feels_like"]),
            "min": round(main["temp_min"]),
            "max": round(main["temp_max"]),
        },
        "condition": condition.get("main", ""),
        "description": condition.get("description", ""),
        "humidity": main.get("humidity"),
        "windSpeed": round(data.get("wind", {}).get("speed", 0)),
        "location": {
            "name": data.get("name", ""),
            "country": data.get("sys", {}).get("country", ""),
        },
        "timestamp": datetime.fromtimestamp(data.get("dt", 0), tz=timezone.utc).isoformat(),
    }


class WeatherClient:
    """Async wrapper around the ``/weather`` endpoint."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        units: str | None = None,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key or settings.weather_api_key
        self.units = units or settings.weather_units
        self._client = client or httpx.AsyncClient(
            base_url=base_url or settings.weather_base_url, timeout=timeout
        )

    async def get_current_weather(self, city: str) -> Dict[str, Any]:
        """Fetch and format current conditions for *city*.

        Raises ``NotFoundError`` for an unknown city and
        ``UpstreamServiceError`` for any other API failure.
        """
        log.info("Fetching weather for city: %s", city)
        try:
            resp = await self._client.get(
                "/weather",
                params={"q": city, "appid": self.api_key, "units": self.units},
            )
        except httpx.HTTPError as exc:
            raise UpstreamServiceError(f"Failed to fetch weather data: {exc}") from exc

        if resp.status_code == 404:
            raise NotFoundError(
                f'Could not find weather data for "{city}". Please check the city name.'
            )
        if resp.is_error:
            detail = _error_message(resp)
            raise UpstreamServiceError(f"Weather API Error: {detail}")

        return format_weather(resp.json())

    async def close(self) -> None:
        await self._client.aclose()


def _error_message(resp: httpx.Response) -> str:
    try:
        return resp.json().get("message") or resp.reason_phrase
    except ValueError:
        return resp.reason_phrase
