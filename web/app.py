from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from functools import partial
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import BaseModel

from gale_weather.cache import SolCache
from gale_weather.config import Settings
from gale_weather.data.fetch import fetch_weather_data
from gale_weather.data.models import format_iso8601_utc
from gale_weather.logging_config import setup_logging
from gale_weather.query import FOUND, INVALID_DATE, NO_DATA, QueryService
from gale_weather.refresher import FetchFn, Refresher

logger = logging.getLogger(__name__)

ROOT_TEXT = (
    "Gale Crater weather by Martian sol.\n"
    "\n"
    "GET /weather?date=YYYY-MM-DD\n"
    "GET /weather?date=2026-02-15T21:42:00+01:00\n"
    "\n"
    "The date is converted to the Curiosity mission sol and answered from the\n"
    "latest REMS readings, refreshed hourly.\n"
)

MESSAGE_HEADER = "X-Gale-Weather-Message"
SOL_HEADER = "X-Martian-Sol-Day"

_STATUS_CODES = {
    FOUND: 200,
    NO_DATA: 204,
    INVALID_DATE: 400,
}


class HealthOut(BaseModel):
    ok: bool
    sols_cached: int
    updated_at: Optional[str] = None


def _default_fetch(settings: Settings) -> FetchFn:
    return partial(
        fetch_weather_data,
        settings.feed_url,
        timeout_s=settings.http_timeout_s,
        user_agent=settings.user_agent,
    )


def create_app(settings: Optional[Settings] = None, fetch: Optional[FetchFn] = None) -> FastAPI:
    """
    Build the web app.

    The sol table is loaded once during startup; if that fetch fails the app
    never starts serving. The refresher thread runs for the app's lifetime.
    """
    settings = settings or Settings.from_env()
    setup_logging(level=settings.log_level)
    fetch = fetch or _default_fetch(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        cache = SolCache()
        refresher = Refresher(cache, fetch, interval_s=settings.refresh_interval_s)
        refresher.bootstrap()
        refresher.start()

        app.state.cache = cache
        app.state.query = QueryService(cache)
        app.state.refresher = refresher
        try:
            yield
        finally:
            logger.info("Shutting down, stopping refresher")
            refresher.stop(timeout=5.0)

    app = FastAPI(title='gale-weather', lifespan=lifespan)

    @app.get('/', response_class=PlainTextResponse)
    def index() -> str:
        return ROOT_TEXT

    @app.get('/weather')
    def weather(request: Request, date: Optional[str] = Query(None)) -> Response:
        result = request.app.state.query.answer(date)
        status_code = _STATUS_CODES.get(result.status, 200)
        if result.status == INVALID_DATE:
            logger.info("Rejected date %r: %s", date, result.message)
        if result.status == NO_DATA:
            # 204 carries no body on the wire; the note travels in headers
            return Response(
                status_code=status_code,
                headers={
                    MESSAGE_HEADER: result.message or "",
                    SOL_HEADER: str(result.sol),
                },
            )
        return JSONResponse(content=result.to_body(), status_code=status_code)

    @app.get('/healthz', response_model=HealthOut)
    def healthz(request: Request) -> HealthOut:
        snapshot = request.app.state.cache.snapshot()
        return HealthOut(
            ok=True,
            sols_cached=len(snapshot),
            updated_at=format_iso8601_utc(snapshot.updated_at) if snapshot.updated_at else None,
        )

    return app


app = create_app()
