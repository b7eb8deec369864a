# ABOUTME: Merges an Open-Meteo forecast payload and a place name into a WeatherResponse.
# ABOUTME: Applies the daily truncation window and the coordinate fallback parsing.

import math

from weatherapp.models import DailyForecast, LocationInfo, ResolvedCoordinate, WeatherResponse

DAILY_FIELDS = ("time", "weather_code", "temperature_2m_max", "temperature_2m_min", "sunrise", "sunset")


def parse_coordinate(value) -> float | None:
    """Parse a coordinate as a float, returning None when absent, non-numeric or NaN."""
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(parsed) else parsed


def _coordinate(echoed, requested) -> float:
    parsed = parse_coordinate(echoed)
    if parsed is None:
        parsed = parse_coordinate(requested)
    return math.nan if parsed is None else parsed


def _daily_column(daily: dict, key: str, window: int | None) -> list:
    col = daily.get(key)
    if not isinstance(col, list):
        return []
    return col if window is None else col[:window]


def assemble_response(
    forecast: dict,
    place_name: str,
    coordinate: ResolvedCoordinate,
    daily_window: int | None = None,
) -> WeatherResponse:
    """Build the normalized response.

    Coordinates come from the forecast provider's echoed values, falling back to the
    requested coordinate; if neither parses the value is NaN. Missing daily arrays
    become empty lists. ``current`` and ``current_units`` pass through untouched.
    """
    daily = forecast.get("daily")
    if not isinstance(daily, dict):
        daily = {}

    return WeatherResponse(
        location=LocationInfo(
            name=place_name,
            latitude=_coordinate(forecast.get("latitude"), coordinate.latitude),
            longitude=_coordinate(forecast.get("longitude"), coordinate.longitude),
        ),
        current_weather=forecast.get("current"),
        current_weather_units=forecast.get("current_units"),
        daily_forecast=DailyForecast(**{key: _daily_column(daily, key, daily_window) for key in DAILY_FIELDS}),
        daily_forecast_units=forecast.get("daily_units") or {},
    )
