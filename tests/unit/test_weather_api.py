"""Unit tests for the weather client, using httpx's mock transport."""

import httpx
import pytest

from src.errors import NotFoundError, UpstreamServiceError
from src.web.weather_api import WeatherClient, format_weather

OWM_PAYLOAD = {
    "name": "Paris",
    "dt": 1700000000,
    "sys": {"country": "FR"},
    "main": {"temp": 18.6, "feels_like": 17.2, "temp_min": 16.1, "temp_max": 20.4, "humidity": 60},
    "weather": [{"main": "Clouds", "description": "broken clouds"}],
    "wind": {"speed": 4.6},
}


def _client(handler) -> WeatherClient:
    transport = httpx.MockTransport(handler)
    http = httpx.AsyncClient(transport=transport, base_url="https://weather.test/data/2.5")
    return WeatherClient(api_key="owm-key", units="metric", client=http)


def test_format_weather():
    out = format_weather(OWM_PAYLOAD)
    assert out["temperature"] == {"current": 19, "feelsLike": 17, "min": 16, "max": 20}
    assert out["condition"] == "Clouds"
    assert out["humidity"] == 60
    assert out["windSpeed"] == 5
    assert out["location"] == {"name": "Paris", "country": "FR"}


@pytest.mark.asyncio
async def test_get_current_weather_sends_query():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        seen["path"] = request.url.path
        return httpx.Response(200, json=OWM_PAYLOAD)

    weather = await _client(handler).get_current_weather("Paris")
    assert weather["location"]["name"] == "Paris"
    assert seen["path"].endswith("/weather")
    assert seen["q"] == "Paris"
    assert seen["appid"] == "owm-key"
    assert seen["units"] == "metric"


@pytest.mark.asyncio
async def test_unknown_city_raises_not_found():
    client = _client(lambda request: httpx.Response(404, json={"message": "city not found"}))
    with pytest.raises(NotFoundError, match="Could not find weather data for \"Atlantis\""):
        await client.get_current_weather("Atlantis")


@pytest.mark.asyncio
async def test_other_errors_raise_upstream_error():
    client = _client(lambda request: httpx.Response(401, json={"message": "Invalid API key"}))
    with pytest.raises(UpstreamServiceError, match="Weather API Error: Invalid API key"):
        await client.get_current_weather("Paris")
