from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Mapping, Optional

from gale_weather.data.models import CacheSnapshot, WeatherReading

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(tz=timezone.utc)


class SolCache:
    """
    Holds the current sol -> reading table.

    The table and its timestamp travel together in one immutable CacheSnapshot,
    and the cache only ever swaps which snapshot is current. Readers grab the
    current reference once and work on that generation, so they never block
    each other and never see a half-installed table. The write lock is held
    only for the swap itself; copying the new table happens before it.
    """

    def __init__(self, initial: Optional[CacheSnapshot] = None) -> None:
        self._snapshot = initial if initial is not None else CacheSnapshot.empty()
        self._write_lock = threading.Lock()

    def snapshot(self) -> CacheSnapshot:
        return self._snapshot

    def get(self, sol: int) -> Optional[WeatherReading]:
        return self._snapshot.readings.get(sol)

    def replace(self, readings: Mapping[int, WeatherReading]) -> CacheSnapshot:
        """
        Install `readings` as the whole table, stamped with the current time.

        Never merges with the previous table.
        """
        table = MappingProxyType(dict(readings))
        with self._write_lock:
            new_snapshot = CacheSnapshot(readings=table, updated_at=_now_utc())
            self._snapshot = new_snapshot
        logger.debug("Installed sol table with %d entries", len(new_snapshot))
        return new_snapshot

    @property
    def updated_at(self) -> Optional[datetime]:
        return self._snapshot.updated_at

    def __len__(self) -> int:
        return len(self._snapshot)
