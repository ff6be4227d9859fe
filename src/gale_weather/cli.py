from __future__ import annotations

import json as _json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import typer

from gale_weather.cache import SolCache
from gale_weather.config import ConfigError, Settings
from gale_weather.data.fetch import FetchError, fetch_weather_data
from gale_weather.data.models import WeatherReading
from gale_weather.dates import InvalidDateFormat, parse_earth_date
from gale_weather.logging_config import setup_logging
from gale_weather.query import FOUND, INVALID_DATE, NOT_AVAILABLE, QueryService
from gale_weather.sol import seconds_since_landing, sol_for

app = typer.Typer(add_completion=False)


def _repo_root() -> Path:
    # web/app.py lives at the repo root, next to src/
    return Path(__file__).resolve().parents[2]


def _load_settings() -> Settings:
    try:
        return Settings.from_env()
    except ConfigError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(code=2)


def _fetch_or_exit(settings: Settings) -> Dict[int, WeatherReading]:
    try:
        return fetch_weather_data(
            settings.feed_url,
            timeout_s=settings.http_timeout_s,
            user_agent=settings.user_agent,
        )
    except FetchError as exc:
        typer.echo(f"Fetch failed: {exc}", err=True)
        raise typer.Exit(code=2)


def _render_reading(reading: WeatherReading) -> str:
    def temp(value: Optional[int]) -> str:
        return NOT_AVAILABLE if value is None else f"{value} C"

    lines = [
        f"Sol {reading.sol}",
        f"  earth date: {reading.terrestrial_date.isoformat() if reading.terrestrial_date else ''}",
        f"  min temp:   {temp(reading.min_temp)}",
        f"  max temp:   {temp(reading.max_temp)}",
        f"  sunrise:    {reading.sunrise or ''}",
        f"  sunset:     {reading.sunset or ''}",
    ]
    return "\n".join(lines)


def _fetch_summary(readings: Mapping[int, WeatherReading]) -> Dict[str, Any]:
    sols = sorted(readings)
    latest = readings[sols[-1]] if sols else None
    return {
        "sols": len(sols),
        "first_sol": sols[0] if sols else None,
        "last_sol": sols[-1] if sols else None,
        "latest": latest.to_dict() if latest else None,
    }


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address (default: GALE_WEATHER_HOST or 0.0.0.0)"),
    port: Optional[int] = typer.Option(None, help="Port (default: GALE_WEATHER_PORT or 3000)"),
    app_dir: Path = typer.Option(
        _repo_root(),
        help="Directory containing web/app.py (a source checkout; wheels do not ship web/)",
    ),
) -> None:
    """
    Run the HTTP service (loads the sol table first, then refreshes hourly).
    """
    import uvicorn

    settings = _load_settings()
    setup_logging(level=settings.log_level)
    uvicorn.run(
        "web.app:app",
        host=host or settings.host,
        port=port or settings.port,
        app_dir=str(app_dir),
        log_config=None,
    )


@app.command()
def sol(
    date: str = typer.Option(..., help="YYYY-MM-DD or RFC 3339 timestamp with offset"),
    json: bool = typer.Option(False, help="Emit JSON output"),
) -> None:
    """
    Print the Curiosity mission sol for an Earth date.
    """
    try:
        instant = parse_earth_date(date)
    except InvalidDateFormat as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2)

    sol_index = sol_for(instant)
    if json:
        payload = {
            "date": date,
            "utc": instant.isoformat(),
            "seconds_since_landing": seconds_since_landing(instant),
            "martian_sol_day": sol_index,
        }
        typer.echo(_json.dumps(payload, indent=2, sort_keys=True))
        return

    typer.echo(str(sol_index))


@app.command()
def fetch(
    json: bool = typer.Option(False, help="Emit JSON output"),
) -> None:
    """
    Download the REMS feed once and summarise what it holds.
    """
    settings = _load_settings()
    readings = _fetch_or_exit(settings)
    summary = _fetch_summary(readings)

    if json:
        typer.echo(_json.dumps(summary, indent=2, sort_keys=True))
        return

    typer.echo(f"{summary['sols']} sols ({summary['first_sol']}..{summary['last_sol']}) from {settings.feed_url}")
    if summary["last_sol"] is not None:
        typer.echo(_render_reading(readings[summary["last_sol"]]))


@app.command()
def query(
    date: str = typer.Option(..., help="YYYY-MM-DD or RFC 3339 timestamp with offset"),
    json: bool = typer.Option(False, help="Emit JSON output"),
) -> None:
    """
    Fetch the feed once and answer a weather query for one Earth date.
    """
    settings = _load_settings()
    cache = SolCache()
    service = QueryService(cache)

    # Reject a bad date before going to the network
    result = service.answer(date)
    if result.status == INVALID_DATE:
        typer.echo(result.message, err=True)
        raise typer.Exit(code=2)

    cache.replace(_fetch_or_exit(settings))
    result = service.answer(date)

    if json:
        typer.echo(_json.dumps(result.to_body(), indent=2, sort_keys=True))
        return

    if result.status == FOUND and result.reading is not None:
        typer.echo(_render_reading(result.reading))
    else:
        typer.echo(result.message)

