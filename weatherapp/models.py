# ABOUTME: Pydantic BaseModels for the weather lookup request and response contract.
# ABOUTME: Defines the location query, resolved coordinates and the normalized weather response.

import math
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from weatherapp.errors import InvalidQuery

MISSING_LOCATION_MESSAGE = "Please provide either a city or latitude and longitude as query parameters."
AMBIGUOUS_LOCATION_MESSAGE = "Please provide either a city or latitude and longitude, not both."


class LocationQuery(BaseModel):
    """Client location input: a city name or a raw latitude/longitude pair."""

    city: str | None = None
    latitude: str | None = None
    longitude: str | None = None

    @classmethod
    def from_params(cls, params: Mapping[str, str]) -> "LocationQuery":
        """Build a query from request parameters, rejecting missing or ambiguous input."""
        city = (params.get("city") or "").strip() or None
        lat = params.get("lat") or None
        lon = params.get("lon") or None
        has_pair = lat is not None and lon is not None

        if city and has_pair:
            raise InvalidQuery(AMBIGUOUS_LOCATION_MESSAGE)
        if city:
            return cls(city=city)
        if has_pair:
            return cls(latitude=lat, longitude=lon)
        raise InvalidQuery(MISSING_LOCATION_MESSAGE)


class ResolvedCoordinate(BaseModel):
    """Coordinates handed to the upstream providers, kept exactly as received."""

    latitude: float | str
    longitude: float | str


class LocationInfo(BaseModel):
    name: str
    latitude: float
    longitude: float

    @field_serializer("latitude", "longitude")
    def _nan_to_null(self, value: float) -> float | None:
        # JSON has no NaN
        return None if math.isnan(value) else value


class DailyForecast(BaseModel):
    """Parallel daily arrays, indexed by day offset."""

    time: list = []
    weather_code: list = []
    temperature_2m_max: list = []
    temperature_2m_min: list = []
    sunrise: list = []
    sunset: list = []


class WeatherResponse(BaseModel):
    """Combined forecast and place name returned by GET /weather."""

    model_config = ConfigDict(populate_by_name=True)

    location: LocationInfo
    current_weather: Any = Field(default=None, serialization_alias="currentWeather")
    current_weather_units: Any = Field(default=None, serialization_alias="currentWeatherUnits")
    daily_forecast: DailyForecast = Field(default_factory=DailyForecast, serialization_alias="dailyForecast")
    daily_forecast_units: Any = Field(default_factory=dict, serialization_alias="dailyForecastUnits")

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
