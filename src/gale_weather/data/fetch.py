from __future__ import annotations

import logging
from typing import Any, Dict, List

import requests

from gale_weather.data.models import RawSoleRecord, SoleValidationError, WeatherReading

logger = logging.getLogger(__name__)

REMS_FEED_URL = "https://mars.nasa.gov/rss/api/?feed=weather&category=msl&feedtype=json"
DEFAULT_USER_AGENT = "gale-weather/0.1"


class FetchError(RuntimeError):
    pass


def _get_json(url: str, *, timeout_s: float, user_agent: str) -> Dict[str, Any]:
    try:
        resp = requests.get(url, timeout=timeout_s, headers={"User-Agent": user_agent})
        resp.raise_for_status()
        return resp.json()
    except requests.RequestException as exc:
        raise FetchError(f"HTTP error fetching {url}: {exc}") from exc
    except ValueError as exc:
        raise FetchError(f"Invalid JSON from {url}: {exc}") from exc


def parse_soles(payload: Dict[str, Any]) -> List[RawSoleRecord]:
    """
    Pull the raw per-sol records out of a REMS feed payload.

    Expected shape: {"soles": [{"id": "...", "sol": "4804", ...}, ...], ...}
    """
    if not isinstance(payload, dict):
        raise FetchError("Unexpected REMS payload shape: top level is not an object")

    soles = payload.get("soles")
    if not isinstance(soles, list):
        raise FetchError(f"Unexpected REMS payload shape: no 'soles' list, keys={sorted(payload.keys())}")

    try:
        return [RawSoleRecord.from_dict(item) for item in soles]
    except SoleValidationError as exc:
        raise FetchError(f"Invalid sole record in REMS payload: {exc}") from exc


def readings_by_sol(records: List[RawSoleRecord]) -> Dict[int, WeatherReading]:
    """
    Coerce raw records and key them by sol. A sol listed twice keeps the later record.
    """
    out: Dict[int, WeatherReading] = {}
    for raw in records:
        try:
            reading = raw.to_reading()
        except SoleValidationError as exc:
            raise FetchError(f"Invalid sole record in REMS payload: {exc}") from exc
        if reading.sol in out:
            logger.debug("Duplicate sol %s in REMS payload; keeping the later record", reading.sol)
        out[reading.sol] = reading
    return out


def fetch_weather_data(
    url: str = REMS_FEED_URL,
    *,
    timeout_s: float = 20.0,
    user_agent: str = DEFAULT_USER_AGENT,
) -> Dict[int, WeatherReading]:
    """
    Download the REMS feed and return its readings keyed by sol.

    Raises FetchError for transport failures, HTTP error statuses, invalid JSON
    and records without a usable sol.
    """
    payload = _get_json(url, timeout_s=timeout_s, user_agent=user_agent)
    readings = readings_by_sol(parse_soles(payload))
    logger.debug("Fetched %d sols from %s", len(readings), url)
    return readings
