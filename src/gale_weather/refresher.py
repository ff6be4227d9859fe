"""Background refresh of the sol table."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Mapping, Optional

from gale_weather.cache import SolCache
from gale_weather.data.fetch import FetchError
from gale_weather.data.models import WeatherReading

logger = logging.getLogger(__name__)

FetchFn = Callable[[], Mapping[int, WeatherReading]]

DEFAULT_INTERVAL_S = 3600.0


class Refresher:
    """Keep a SolCache populated from `fetch`, replacing the whole table every `interval_s`."""

    def __init__(self, cache: SolCache, fetch: FetchFn, interval_s: float = DEFAULT_INTERVAL_S) -> None:
        if interval_s <= 0:
            raise ValueError(f"interval_s must be > 0, got {interval_s!r}")
        self.cache = cache
        self.fetch = fetch
        self.interval_s = float(interval_s)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def bootstrap(self) -> None:
        """First, synchronous load. FetchError propagates: without data there is nothing to serve."""

        started = time.perf_counter()
        readings = self.fetch()
        snapshot = self.cache.replace(readings)
        logger.info(
            "Initial sol table loaded (%d sols, range=%s) in %.2fs",
            len(snapshot),
            snapshot.sol_range(),
            time.perf_counter() - started,
        )

    def refresh_once(self) -> bool:
        """Fetch and install a new table. Failures keep the current table and return False."""

        try:
            readings = self.fetch()
        except FetchError as exc:
            logger.warning("Sol table refresh failed, keeping previous data: %s", exc)
            return False
        except Exception:  # pragma: no cover - runtime safety
            logger.exception("Unexpected error during sol table refresh, keeping previous data")
            return False

        snapshot = self.cache.replace(readings)
        logger.info("Sol table refreshed (%d sols, range=%s)", len(snapshot), snapshot.sol_range())
        return True

    def _run(self) -> None:
        logger.info("Starting sol table refresher (interval=%.0fs)", self.interval_s)
        while not self._stop.wait(self.interval_s):
            self.refresh_once()
        logger.info("Sol table refresher stopped")

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="sol-refresher", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Ask the loop to exit and wait for it. A fetch already in flight is not interrupted."""

        self._stop.set()
        thread, self._thread = self._thread, None
        if thread is not None:
            thread.join(timeout)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()


__all__ = ["Refresher", "FetchFn", "DEFAULT_INTERVAL_S"]
