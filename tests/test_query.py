from datetime import datetime, timezone

from gale_weather.cache import SolCache
from gale_weather.data.models import RawSoleRecord
from gale_weather.query import FOUND, INVALID_DATE, NO_DATA, NOT_AVAILABLE, USAGE, QueryService
from gale_weather.sol import LANDING_UNIX_TS, SOL_SECONDS


def _date_in_sol(sol: int) -> str:
    # halfway through the sol, so ceil() lands on `sol`
    ts = LANDING_UNIX_TS + int((sol - 0.5) * SOL_SECONDS)
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


def _service() -> QueryService:
    cache = SolCache()
    cache.replace(
        {
            100: RawSoleRecord(id="a", sol="100", min_temp="-71", max_temp="-4", sunrise="05:40", sunset="17:41").to_reading(),
            101: RawSoleRecord(id="b", sol="101", min_temp="--", max_temp="-2", sunrise="05:41", sunset="17:40").to_reading(),
        }
    )
    return QueryService(cache)


def test_missing_date_returns_usage() -> None:
    result = _service().answer(None)
    assert result.status == USAGE
    assert "YYYY-MM-DD" in result.message
    assert _service().answer("").status == USAGE


def test_malformed_date_is_invalid_not_empty() -> None:
    result = _service().answer("15/02/2026")
    assert result.status == INVALID_DATE
    assert result.sol is None
    body = result.to_body()
    assert body["error"] == "INVALID_DATE_FORMAT"
    assert "15/02/2026" in body["message"]


def test_end_to_end_hit() -> None:
    result = _service().answer(_date_in_sol(101))
    assert result.status == FOUND
    assert result.sol == 101
    assert result.to_body() == {
        "martian_sol_day": 101,
        "min_temp": NOT_AVAILABLE,
        "max_temp": -2,
        "sunrise": "05:41",
        "sunset": "17:40",
    }


def test_end_to_end_miss_is_no_data_not_error() -> None:
    result = _service().answer(_date_in_sol(999))
    assert result.status == NO_DATA
    assert result.sol == 999
    assert result.reading is None
    body = result.to_body()
    assert body["martian_sol_day"] == 999
    assert "error" not in body


def test_calendar_date_before_landing_is_a_miss() -> None:
    result = _service().answer("2000-01-01")
    assert result.status == NO_DATA
    assert result.sol < 0
