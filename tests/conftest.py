# ABOUTME: Shared test fixtures for the weather lookup test suite.
# ABOUTME: Sets a test environment and provides WeatherDeps backed by a mock HTTP client.

import os

import pytest

# Keep the module-level app in weatherapp.web off the filesystem
os.environ.setdefault("DATABASE_URL", "")
os.environ.setdefault("GEOCODE_MAPS_CO_API_KEY", "test-key")

from upstream_fakes import default_routes, routing_client  # noqa: E402

from weatherapp.deps import WeatherDeps  # noqa: E402


@pytest.fixture
def deps() -> WeatherDeps:
    return WeatherDeps(http_client=routing_client(default_routes()), geocode_api_key="test-key")
