# ABOUTME: Service layer for the upstream forecast and geocoding API calls.
# ABOUTME: Resolves a location, fetches forecast + reverse geocode concurrently, and builds the response.

import asyncio
from collections.abc import Awaitable

import httpx

from weatherapp.assembler import assemble_response
from weatherapp.deps import WeatherDeps
from weatherapp.errors import LocationNotFound, UpstreamFailure
from weatherapp.models import LocationQuery, ResolvedCoordinate, WeatherResponse
from weatherapp.place_name import derive_place_name

FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
GEOCODE_SEARCH_URL = "https://geocode.maps.co/search"
REVERSE_GEOCODE_URL = "https://geocode.maps.co/reverse"

CURRENT_PARAMS = "temperature_2m,relative_humidity_2m,apparent_temperature,weather_code,wind_speed_10m"
DAILY_PARAMS = "weather_code,temperature_2m_max,temperature_2m_min,sunrise,sunset"

FORECAST = "forecast"
REVERSE_GEOCODE = "reverse geocode"
GEOCODE_SEARCH = "geocode search"


def _describe(exc: Exception) -> str:
    # Never include the request URL: it carries the geocoding API key.
    if isinstance(exc, httpx.HTTPStatusError):
        return f"HTTP {exc.response.status_code}"
    if isinstance(exc, httpx.TimeoutException):
        return "timed out"
    if isinstance(exc, httpx.HTTPError):
        return type(exc).__name__
    return "invalid JSON"


async def _get_json(client: httpx.AsyncClient, url: str, params: dict, source: str):
    """GET a JSON document, turning transport, status and decoding errors into UpstreamFailure."""
    try:
        resp = await client.get(url, params=params)
        resp.raise_for_status()
        return resp.json()
    except (httpx.HTTPError, ValueError) as e:
        raise UpstreamFailure(source, _describe(e)) from e


async def search_city(client: httpx.AsyncClient, city: str, api_key: str) -> list:
    """Forward-geocode a free-text city name into a list of candidate matches."""
    data = await _get_json(client, GEOCODE_SEARCH_URL, {"q": city, "api_key": api_key}, GEOCODE_SEARCH)
    return data if isinstance(data, list) else []


async def get_forecast(client: httpx.AsyncClient, coordinate: ResolvedCoordinate, forecast_days: int) -> dict:
    """Fetch current conditions and the daily forecast from Open-Meteo."""
    return await _get_json(
        client,
        FORECAST_URL,
        {
            "latitude": coordinate.latitude,
            "longitude": coordinate.longitude,
            "current": CURRENT_PARAMS,
            "daily": DAILY_PARAMS,
            "forecast_days": forecast_days,
            "timezone": "GMT",
        },
        FORECAST,
    )


async def reverse_geocode(client: httpx.AsyncClient, coordinate: ResolvedCoordinate, api_key: str) -> dict:
    """Look up the address for a coordinate pair."""
    return await _get_json(
        client,
        REVERSE_GEOCODE_URL,
        {"lat": coordinate.latitude, "lon": coordinate.longitude, "api_key": api_key},
        REVERSE_GEOCODE,
    )


async def resolve_location(deps: WeatherDeps, query: LocationQuery) -> ResolvedCoordinate:
    """Turn a city name or a raw lat/lon pair into the coordinate used upstream."""
    if query.city is None:
        return ResolvedCoordinate(latitude=query.latitude, longitude=query.longitude)

    results = await search_city(deps.http_client, query.city, deps.geocode_api_key)
    if not results:
        raise LocationNotFound(f"Could not find location: {query.city}")

    first = results[0]
    if not isinstance(first, dict) or first.get("lat") is None or first.get("lon") is None:
        raise UpstreamFailure(GEOCODE_SEARCH, "malformed result")
    return ResolvedCoordinate(latitude=first["lat"], longitude=first["lon"])


async def _join_both(first: Awaitable, second: Awaitable) -> tuple:
    """Run two awaitables concurrently; if either fails, cancel the other and re-raise.

    The failure raised is the one that happened first, even when both have
    failed by the time the wait returns.
    """
    tasks = [asyncio.ensure_future(first), asyncio.ensure_future(second)]
    failures: list[BaseException] = []

    def capture(task: asyncio.Future) -> None:
        if not task.cancelled() and task.exception() is not None:
            failures.append(task.exception())

    for task in tasks:
        task.add_done_callback(capture)

    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except asyncio.CancelledError:
        for task in tasks:
            task.cancel()
        raise

    if failures:
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.wait(pending)
        raise failures[0]
    return tasks[0].result(), tasks[1].result()


async def fetch_upstream(deps: WeatherDeps, coordinate: ResolvedCoordinate) -> tuple[dict, dict]:
    """Fetch the forecast and reverse-geocode payloads concurrently; both must succeed."""
    return await _join_both(
        get_forecast(deps.http_client, coordinate, deps.forecast_days),
        reverse_geocode(deps.http_client, coordinate, deps.geocode_api_key),
    )


async def lookup_weather(deps: WeatherDeps, query: LocationQuery) -> tuple[ResolvedCoordinate, WeatherResponse]:
    """Resolve, fetch, name and assemble the weather for one location query.

    Returns the resolved coordinate alongside the response so callers can record
    what was actually looked up rather than the provider's grid point.
    """
    coordinate = await resolve_location(deps, query)
    forecast, geocode = await fetch_upstream(deps, coordinate)
    place_name = derive_place_name(geocode)
    if not isinstance(forecast, dict):
        forecast = {}
    return coordinate, assemble_response(forecast, place_name, coordinate, deps.daily_window)
