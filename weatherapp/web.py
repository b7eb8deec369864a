# ABOUTME: ASGI web entry point serving GET /weather plus the static frontend.
# ABOUTME: Builds a Starlette app with CORS, JSON error mapping and background search logging.

import contextlib
import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from starlette.applications import Starlette
from starlette.background import BackgroundTask
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.routing import Mount, Route
from starlette.staticfiles import StaticFiles

from weatherapp.assembler import parse_coordinate
from weatherapp.deps import WeatherDeps, load_deps
from weatherapp.errors import InternalError, UpstreamFailure, WeatherLookupError
from weatherapp.models import LocationQuery
from weatherapp.search_log import SearchLogEntry, SearchLogStore, log_search
from weatherapp.weather_service import lookup_weather

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./weather_searches.db"


def _error_response(error: WeatherLookupError) -> JSONResponse:
    return JSONResponse(error.to_body(), status_code=error.status_code)


async def weather(request: Request) -> JSONResponse:
    """GET /weather?lat=&lon= or GET /weather?city= -> combined weather response."""
    deps: WeatherDeps = request.app.state.deps
    search_log: SearchLogStore | None = request.app.state.search_log

    try:
        query = LocationQuery.from_params(request.query_params)
        coordinate, result = await lookup_weather(deps, query)
    except UpstreamFailure as e:
        logger.exception("Upstream call failed (%s)", e.source)
        return _error_response(e)
    except WeatherLookupError as e:
        return _error_response(e)
    except Exception as e:
        logger.exception("Error in /weather route")
        return _error_response(InternalError(str(e)))

    background = None
    if search_log is not None:
        entry = SearchLogEntry(
            latitude=parse_coordinate(coordinate.latitude),
            longitude=parse_coordinate(coordinate.longitude),
            place_name=result.location.name,
        )
        background = BackgroundTask(log_search, search_log, entry)
    return JSONResponse(result.to_json_dict(), background=background)


async def root(request: Request) -> PlainTextResponse:
    return PlainTextResponse("WeatherApp server running. Access the frontend at /index.html if it is deployed.")


def create_app(
    deps: WeatherDeps,
    search_log: SearchLogStore | None = None,
    static_dir: str | None = None,
    cors_origins: list[str] | None = None,
) -> Starlette:
    """Build the ASGI app around an already-configured dependency container."""

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette):
        if search_log is not None:
            search_log.init_db()
        try:
            yield
        finally:
            await deps.http_client.aclose()
            if search_log is not None:
                search_log.dispose()

    routes = [Route("/weather", weather, methods=["GET"])]
    if static_dir and Path(static_dir).is_dir():
        routes.append(Mount("/", app=StaticFiles(directory=static_dir, html=True), name="static"))
    else:
        routes.append(Route("/", root, methods=["GET"]))

    app = Starlette(
        routes=routes,
        middleware=[Middleware(CORSMiddleware, allow_origins=cors_origins or ["*"], allow_methods=["GET"])],
        lifespan=lifespan,
    )
    app.state.deps = deps
    app.state.search_log = search_log
    return app


def create_app_from_env() -> Starlette:
    """Build the app from environment variables (and a .env file, if present)."""
    load_dotenv()
    database_url = os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)
    origins = [o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()]
    return create_app(
        deps=load_deps(),
        search_log=SearchLogStore(database_url) if database_url else None,
        static_dir=os.environ.get("STATIC_DIR", "public"),
        cors_origins=origins,
    )


app = create_app_from_env()
