from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional


class SoleValidationError(ValueError):
    pass


def _optional_str(name: str, value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise SoleValidationError(f'{name} must be a string or null, got {type(value).__name__}')
    return value


def _lenient_int(value: Optional[str]) -> Optional[int]:
    # Upstream uses "--" and friends for missing numbers
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _lenient_date(value: Optional[str]) -> Optional[date]:
    if value is None:
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return None


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def format_iso8601_utc(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    # Use Z suffix
    return dt.replace(microsecond=0).isoformat().replace('+00:00', 'Z')


@dataclass(frozen=True)
class RawSoleRecord:
    """
    One entry of the REMS feed's `soles` list, exactly as it arrives on the wire.

    Every field is a string (or absent). Nothing here is interpreted yet.
    """
    id: Optional[str] = None
    terrestrial_date: Optional[str] = None
    sol: Optional[str] = None
    min_temp: Optional[str] = None
    max_temp: Optional[str] = None
    sunrise: Optional[str] = None
    sunset: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RawSoleRecord':
        if not isinstance(data, dict):
            raise SoleValidationError('sole record JSON must be an object')
        return cls(
            id=_optional_str('id', data.get('id')),
            terrestrial_date=_optional_str('terrestrial_date', data.get('terrestrial_date')),
            sol=_optional_str('sol', data.get('sol')),
            min_temp=_optional_str('min_temp', data.get('min_temp')),
            max_temp=_optional_str('max_temp', data.get('max_temp')),
            sunrise=_optional_str('sunrise', data.get('sunrise')),
            sunset=_optional_str('sunset', data.get('sunset')),
        )

    def to_reading(self) -> 'WeatherReading':
        """
        Coerce into a typed reading.

        Temperatures and terrestrial_date that do not parse become None. The sol
        is the cache key, so an unparseable sol rejects the record.
        """
        if self.sol is None:
            raise SoleValidationError(f'sole record {self.id!r} has no sol')
        try:
            sol = int(self.sol.strip())
        except ValueError as exc:
            raise SoleValidationError(f'sole record {self.id!r} has a non-integer sol: {self.sol!r}') from exc

        return WeatherReading(
            sol=sol,
            min_temp=_lenient_int(self.min_temp),
            max_temp=_lenient_int(self.max_temp),
            sunrise=_blank_to_none(self.sunrise),
            sunset=_blank_to_none(self.sunset),
            record_id=self.id,
            terrestrial_date=_lenient_date(self.terrestrial_date),
        )


@dataclass(frozen=True)
class WeatherReading:
    """
    Weather at Gale Crater for one sol.

    Temperatures are degrees Celsius. None means upstream did not report the
    value; it is never replaced by a numeric placeholder.
    sunrise/sunset are local mean solar time strings (HH:MM), kept verbatim.
    """
    sol: int
    min_temp: Optional[int] = None
    max_temp: Optional[int] = None
    sunrise: Optional[str] = None
    sunset: Optional[str] = None
    record_id: Optional[str] = None
    terrestrial_date: Optional[date] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sol': self.sol,
            'min_temp': self.min_temp,
            'max_temp': self.max_temp,
            'sunrise': self.sunrise,
            'sunset': self.sunset,
            'record_id': self.record_id,
            'terrestrial_date': self.terrestrial_date.isoformat() if self.terrestrial_date else None,
        }


@dataclass(frozen=True)
class CacheSnapshot:
    """
    One generation of the sol table together with the moment it was installed.

    readings is a read-only view; the dict behind it is private to the snapshot.
    updated_at is None only for the empty table a cache starts with.
    """
    readings: Mapping[int, WeatherReading]
    updated_at: Optional[datetime] = None

    @classmethod
    def empty(cls) -> 'CacheSnapshot':
        return cls(readings=MappingProxyType({}), updated_at=None)

    def __len__(self) -> int:
        return len(self.readings)

    def sol_range(self) -> Optional[tuple[int, int]]:
        if not self.readings:
            return None
        return min(self.readings), max(self.readings)
