# ABOUTME: Dependency container and environment configuration for the weather lookup.
# ABOUTME: Holds the shared httpx.AsyncClient plus provider keys, forecast length and timeouts.

import logging
import os

import httpx
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field
from pydantic_ai.retries import AsyncTenacityTransport, RetryConfig, wait_retry_after
from tenacity import retry_if_exception, stop_after_attempt

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 10.0
DEFAULT_RETRY_ATTEMPTS = 2


class WeatherDeps(BaseModel):
    """Everything a weather lookup needs besides the request itself."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    http_client: httpx.AsyncClient
    geocode_api_key: str = ""
    forecast_days: int = Field(default=3, ge=3, le=7)
    # None keeps every day the forecast returns
    daily_window: int | None = Field(default=2, ge=0)


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return isinstance(exc, (httpx.ConnectError, httpx.TimeoutException))


def create_http_client(
    timeout_s: float = DEFAULT_TIMEOUT_S,
    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS,
) -> httpx.AsyncClient:
    """Create an httpx client with a bounded timeout and tenacity retry on transient errors.

    Retries connection errors, timeouts, and 429/5xx responses with exponential backoff
    (honouring Retry-After). Other 4xx responses fail on the first attempt.
    """
    transport = AsyncTenacityTransport(
        RetryConfig(
            retry=retry_if_exception(_is_transient),
            wait=wait_retry_after(max_wait=timeout_s),
            stop=stop_after_attempt(retry_attempts),
            reraise=True,
        ),
        validate_response=lambda r: r.raise_for_status(),
    )
    return httpx.AsyncClient(transport=transport, timeout=timeout_s)


def _optional_int(raw: str | None, default: int | None) -> int | None:
    if raw is None:
        return default
    raw = raw.strip()
    if raw == "" or raw.lower() == "none":
        return None
    return int(raw)


def load_deps() -> WeatherDeps:
    """Build WeatherDeps from the environment (and a .env file, if present)."""
    load_dotenv()

    api_key = os.environ.get("GEOCODE_MAPS_CO_API_KEY", "")
    if not api_key:
        logger.warning("GEOCODE_MAPS_CO_API_KEY is not set. Geocoding will likely fail.")

    http_client = create_http_client(
        timeout_s=float(os.environ.get("UPSTREAM_TIMEOUT_S", DEFAULT_TIMEOUT_S)),
        retry_attempts=int(os.environ.get("UPSTREAM_RETRY_ATTEMPTS", DEFAULT_RETRY_ATTEMPTS)),
    )
    return WeatherDeps(
        http_client=http_client,
        geocode_api_key=api_key,
        forecast_days=int(os.environ.get("FORECAST_DAYS", 3)),
        daily_window=_optional_int(os.environ.get("FORECAST_DAILY_WINDOW"), 2),
    )
