from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Optional


class InvalidDateFormat(ValueError):
    """
    Raised when a caller-supplied date matches neither accepted format.

    Both underlying parse errors are kept for diagnostics.
    """

    def __init__(self, raw: str, date_error: str, timestamp_error: str) -> None:
        self.raw = raw
        self.date_error = date_error
        self.timestamp_error = timestamp_error
        super().__init__(
            f"Could not parse date {raw!r}. "
            f"As YYYY-MM-DD: {date_error}. "
            f"As RFC 3339 timestamp: {timestamp_error}."
        )


ACCEPTED_FORMATS = (
    "YYYY-MM-DD (e.g. 2026-02-15, read as midnight UTC)",
    "RFC 3339 timestamp with offset (e.g. 2026-02-15T21:42:00+01:00 or 2026-02-15T20:42:00Z)",
)

_CALENDAR_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Examples matched:
#   2026-02-15T21:42:00+01:00
#   2026-02-15T20:42:00Z
#   2026-02-15 20:42:00.250-03:30
_RFC3339_RE = re.compile(
    r"""
    ^
    \d{4}-\d{2}-\d{2}             # full-date
    [Tt ]
    \d{2}:\d{2}:\d{2}             # partial-time
    (?:\.\d+)?                    # optional fraction
    (?P<offset>[Zz]|[+-]\d{2}:\d{2})
    $
    """,
    re.VERBOSE,
)


def _parse_calendar_date(text: str) -> datetime:
    if not _CALENDAR_DATE_RE.match(text):
        raise ValueError("expected exactly YYYY-MM-DD")
    d = date.fromisoformat(text)
    return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)


def _parse_rfc3339(text: str) -> datetime:
    match = _RFC3339_RE.match(text)
    if not match:
        raise ValueError("expected YYYY-MM-DDTHH:MM:SS with a 'Z' or '+HH:MM' offset")
    if match.group("offset") in ("Z", "z"):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text[:10] + "T" + text[11:])
        return dt.astimezone(timezone.utc)
    except (ValueError, OverflowError) as exc:
        raise ValueError(f"not a representable UTC instant: {exc}") from exc


def parse_earth_date(raw: str) -> datetime:
    """
    Parse a caller date into an aware UTC datetime.

    Tried in order:
      1) YYYY-MM-DD, as midnight UTC (wins whenever it parses)
      2) RFC 3339 timestamp with offset, converted to UTC
    """
    if raw is None:
        raise InvalidDateFormat("", "date is missing", "date is missing")

    text = raw.strip()
    try:
        return _parse_calendar_date(text)
    except ValueError as exc:
        date_error = str(exc)

    try:
        return _parse_rfc3339(text)
    except ValueError as exc:
        timestamp_error = str(exc)

    raise InvalidDateFormat(raw, date_error, timestamp_error)


def maybe_parse_earth_date(raw: Optional[str]) -> Optional[datetime]:
    if raw is None:
        return None
    if not raw.strip():
        return None
    return parse_earth_date(raw)
