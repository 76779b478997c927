"""Weather tool — current weather and 5-day forecast via OpenWeatherMap."""
import logging
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

import httpx

from ...errors import ToolValidationError
from ..executor import with_execution_logging
from ..registry import Tool, ToolInput, ToolOutput, ToolParam
from .upstream import DEFAULT_TIMEOUT_S, describe_upstream_error, make_client

logger = logging.getLogger(__name__)

CURRENT_URL = "https://api.openweathermap.org/data/2.5/weather"
FORECAST_URL = "https://api.openweathermap.org/data/2.5/forecast"

FORECAST_HORIZON_DAYS = 5

_WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class DateOutOfRange(Exception):
    pass


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


def resolve_date(expr: str, today: date) -> date:
    """Turn 'today', 'tomorrow', a weekday name or YYYY-MM-DD into a date.

    Weekday names mean the next occurrence strictly after today. Anything
    else falls back to today.
    """
    text = expr.strip().lower()
    if text == "today":
        return today
    if text == "tomorrow":
        return today + timedelta(days=1)
    if text in _WEEKDAYS:
        days_ahead = (_WEEKDAYS.index(text) - today.weekday()) % 7 or 7
        return today + timedelta(days=days_ahead)
    if _ISO_DATE.match(text):
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
    logger.warning(f"Unrecognised date {expr!r}, using today")
    return today


def check_forecast_range(target: date, today: date) -> None:
    if not today <= target <= today + timedelta(days=FORECAST_HORIZON_DAYS):
        raise DateOutOfRange(
            f"Date out of range for forecast (max {FORECAST_HORIZON_DAYS} days ahead). "
            f"Requested: {target.isoformat()}, Current: {today.isoformat()}"
        )


class WeatherTool(Tool):
    name = "weather"
    description = "Get current weather or a forecast (up to 5 days ahead) for a location"
    params = (
        ToolParam("location", description="City name or location"),
        ToolParam("units", description="Unit system", required=False, default="metric",
                  enum=("metric", "imperial")),
        ToolParam("date", description="Forecast date (YYYY-MM-DD, today, tomorrow, weekday name)",
                  required=False),
    )

    def __init__(
        self,
        api_key: str = "",
        timeout: float = DEFAULT_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        today: Callable[[], date] = _utc_today,
    ):
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport
        self._today = today

    @with_execution_logging
    async def execute(self, tool_input: ToolInput) -> ToolOutput:
        try:
            params = self.validate_parameters(tool_input.parameters)
        except ToolValidationError as e:
            return ToolOutput.fail(str(e))

        if not self._api_key:
            logger.error("Weather API key not configured")
            return ToolOutput.fail("Weather API key not configured")

        location = params["location"]
        try:
            date_expr = (params["date"] or "").strip()
            if not date_expr:
                data = await self._current(location, params["units"])
            else:
                today = self._today()
                target = resolve_date(date_expr, today)
                check_forecast_range(target, today)
                data = await self._forecast(location, params["units"], target)
        except DateOutOfRange as e:
            return ToolOutput.fail(str(e))
        except httpx.HTTPStatusError as e:
            logger.error(f"Weather API error {e.response.status_code} for {location!r}: {e.response.text[:200]}")
            return ToolOutput.fail(describe_upstream_error(
                e, "Weather", self.name,
                not_found=f'Location "{location}" not found. Please try a different city name.',
            ))
        except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as e:
            logger.error(f"Weather request failed for {location!r}: {type(e).__name__}: {e}")
            return ToolOutput.fail(describe_upstream_error(
                e, "Weather", self.name, not_found=f'Location "{location}" not found.',
            ))

        logger.info(f"Weather for {data['location']}: {data['temperature']}° {data['description']}")
        return ToolOutput.ok(data)

    async def _get(self, url: str, query: Dict[str, Any]) -> Dict[str, Any]:
        async with make_client(self._timeout, self._transport) as client:
            resp = await client.get(url, params={**query, "appid": self._api_key})
            resp.raise_for_status()
            return resp.json()

    async def _current(self, location: str, units: str) -> Dict[str, Any]:
        data = await self._get(CURRENT_URL, {"q": location, "units": units})
        return {
            "temperature": round(data["main"]["temp"]),
            "description": data["weather"][0]["description"],
            "humidity": data["main"]["humidity"],
            "wind_speed": data["wind"]["speed"],
            "location": data.get("name", location),
        }

    async def _forecast(self, location: str, units: str, target: date) -> Dict[str, Any]:
        data = await self._get(FORECAST_URL, {"q": location, "units": units})
        slots = data["list"]
        # First 3-hour slot on the target UTC date; fall back to the earliest slot.
        item = next(
            (s for s in slots if datetime.fromtimestamp(s["dt"], tz=timezone.utc).date() == target),
            slots[0],
        )
        return {
            "temperature": round(item["main"]["temp"]),
            "description": item["weather"][0]["description"],
            "humidity": item["main"]["humidity"],
            "wind_speed": item["wind"]["speed"],
            "location": data.get("city", {}).get("name", location),
            "date": target.isoformat(),
        }
