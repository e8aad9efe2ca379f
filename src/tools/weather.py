"""weatherLookup -- current conditions for a city."""

from pydantic import Field

from src.errors import NotFoundError
from src.tools.base import Tool, ToolContext, ToolInput, ToolName, ToolResult
from src.utils.logger import get_logger
from src.web.weather_api import WeatherClient

log = get_logger(__name__)

DESCRIPTION = (
    "Get current weather information for any city in the world. "
    "Use this tool when users ask about current weather conditions, temperature, humidity, or wind speed. "
    "Returns temperature, conditions and other meteorological information."
)


class WeatherInput(ToolInput):
    city: str = Field(
        ...,
        min_length=1,
        description='The name of the city to get weather for (e.g., "London", "New York", "Tokyo")',
    )


def make_weather_tool(client: WeatherClient) -> Tool:
    async def weather_lookup(params: WeatherInput, context: ToolContext) -> ToolResult:
        log.info("Getting weather for city: %s", params.city)
        try:
            weather = await client.get_current_weather(params.city)
        except NotFoundError as exc:
            return ToolResult.failure(exc.message, {"city": params.city})
        log.info("Weather data retrieved for city: %s", params.city)
        return ToolResult.ok({"city": params.city, "weather": weather})

    return Tool(
        name=ToolName.WEATHER,
        description=DESCRIPTION,
        input_model=WeatherInput,
        handler=weather_lookup,
    )
