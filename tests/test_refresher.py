import threading
import time

import pytest

from gale_weather.cache import SolCache
from gale_weather.data.fetch import FetchError
from gale_weather.data.models import WeatherReading
from gale_weather.refresher import Refresher


class _ScriptedFetch:
    """Returns/raises the queued outcomes in order, repeating the last one."""

    def __init__(self, *outcomes) -> None:
        self.outcomes = list(outcomes)
        self.calls = 0
        self.called = threading.Event()

    def __call__(self):
        self.calls += 1
        outcome = self.outcomes[0] if len(self.outcomes) == 1 else self.outcomes.pop(0)
        self.called.set()
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _table(**temps):
    return {int(k[1:]): WeatherReading(sol=int(k[1:]), max_temp=v) for k, v in temps.items()}


def test_bootstrap_populates_cache() -> None:
    cache = SolCache()
    Refresher(cache, _ScriptedFetch(_table(s100=-5))).bootstrap()
    assert cache.get(100).max_temp == -5


def test_bootstrap_failure_propagates() -> None:
    cache = SolCache()
    with pytest.raises(FetchError):
        Refresher(cache, _ScriptedFetch(FetchError("down"))).bootstrap()
    assert len(cache) == 0


def test_failed_refresh_keeps_previous_table() -> None:
    cache = SolCache()
    fetch = _ScriptedFetch(_table(s100=-5, s101=-3), FetchError("timeout"))
    refresher = Refresher(cache, fetch)
    refresher.bootstrap()
    before = cache.snapshot()

    assert refresher.refresh_once() is False
    assert cache.snapshot() is before
    assert cache.get(100).max_temp == -5
    assert cache.get(101).max_temp == -3


def test_unexpected_error_is_absorbed() -> None:
    cache = SolCache()
    refresher = Refresher(cache, _ScriptedFetch(_table(s1=1), KeyError("boom")))
    refresher.bootstrap()
    assert refresher.refresh_once() is False
    assert cache.get(1).max_temp == 1


def test_successful_refresh_replaces_table() -> None:
    cache = SolCache()
    refresher = Refresher(cache, _ScriptedFetch(_table(s1=1), _table(s2=2)))
    refresher.bootstrap()
    assert refresher.refresh_once() is True
    assert cache.get(1) is None
    assert cache.get(2).max_temp == 2


def test_background_loop_refreshes_and_stops_promptly() -> None:
    cache = SolCache()
    fetch = _ScriptedFetch(_table(s1=1), _table(s2=2))
    refresher = Refresher(cache, fetch, interval_s=0.01)
    refresher.bootstrap()
    fetch.called.clear()

    refresher.start()
    assert fetch.called.wait(2.0)
    refresher.stop(timeout=2.0)

    assert not refresher.running
    assert cache.get(2).max_temp == 2


def test_stop_interrupts_long_sleep() -> None:
    refresher = Refresher(SolCache(), _ScriptedFetch({}), interval_s=3600)
    refresher.start()
    assert refresher.running

    started = time.perf_counter()
    refresher.stop(timeout=5.0)
    assert time.perf_counter() - started < 2.0
    assert not refresher.running


def test_loop_survives_failures() -> None:
    cache = SolCache()
    fetch = _ScriptedFetch(FetchError("a"), FetchError("b"), _table(s9=9))
    refresher = Refresher(cache, fetch, interval_s=0.01)
    refresher.start()
    deadline = time.monotonic() + 2.0
    while cache.get(9) is None and time.monotonic() < deadline:
        time.sleep(0.01)
    refresher.stop(timeout=2.0)
    assert cache.get(9).max_temp == 9


def test_interval_must_be_positive() -> None:
    with pytest.raises(ValueError):
        Refresher(SolCache(), _ScriptedFetch({}), interval_s=0)
