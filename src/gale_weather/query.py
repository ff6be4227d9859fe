from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from gale_weather.cache import SolCache
from gale_weather.data.models import WeatherReading
from gale_weather.dates import ACCEPTED_FORMATS, InvalidDateFormat, maybe_parse_earth_date
from gale_weather.sol import sol_for

NOT_AVAILABLE = "N/A"

USAGE_MESSAGE = (
    "Pass an Earth date as ?date=... to get Gale Crater weather for the matching Martian sol. "
    "Accepted formats: " + "; ".join(ACCEPTED_FORMATS) + "."
)

USAGE, FOUND, NO_DATA, INVALID_DATE = "usage", "found", "no_data", "invalid_date"


def _temp_or_marker(value: Optional[int]) -> Union[int, str]:
    return NOT_AVAILABLE if value is None else value


@dataclass(frozen=True)
class QueryResult:
    """
    Outcome of one weather query.

    status:
      - 'usage': no date given; message explains the accepted formats
      - 'found': reading for `sol`
      - 'no_data': `sol` is valid but not in the current table (not an error)
      - 'invalid_date': the date did not parse; message says why
    """
    status: str
    sol: Optional[int] = None
    reading: Optional[WeatherReading] = None
    message: Optional[str] = None

    def to_body(self) -> Dict[str, Any]:
        if self.status == FOUND and self.reading is not None:
            return {
                "martian_sol_day": self.sol,
                "min_temp": _temp_or_marker(self.reading.min_temp),
                "max_temp": _temp_or_marker(self.reading.max_temp),
                "sunrise": self.reading.sunrise,
                "sunset": self.reading.sunset,
            }
        if self.status == NO_DATA:
            return {"martian_sol_day": self.sol, "message": self.message}
        if self.status == INVALID_DATE:
            return {"error": "INVALID_DATE_FORMAT", "message": self.message}
        return {"message": self.message}


class QueryService:
    """Answer "what was the weather on the sol for this Earth date" from a SolCache."""

    def __init__(self, cache: SolCache) -> None:
        self.cache = cache

    def answer(self, raw_date: Optional[str]) -> QueryResult:
        try:
            instant = maybe_parse_earth_date(raw_date)
        except InvalidDateFormat as exc:
            return QueryResult(status=INVALID_DATE, message=str(exc))

        if instant is None:
            return QueryResult(status=USAGE, message=USAGE_MESSAGE)

        sol = sol_for(instant)
        reading = self.cache.get(sol)
        if reading is None:
            return QueryResult(
                status=NO_DATA,
                sol=sol,
                message=f"No weather data cached for sol {sol}.",
            )
        return QueryResult(status=FOUND, sol=sol, reading=reading)
