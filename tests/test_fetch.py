import pytest
import requests

from gale_weather.data import fetch as fetch_mod
from gale_weather.data.fetch import FetchError, fetch_weather_data


class _FakeResponse:
    def __init__(self, payload=None, status_code: int = 200, json_error: bool = False) -> None:
        self._payload = payload
        self.status_code = status_code
        self._json_error = json_error

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        if self._json_error:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


def _patch_get(monkeypatch, response=None, exc=None):
    calls = []

    def fake_get(url, timeout=None, headers=None):
        calls.append({"url": url, "timeout": timeout, "headers": headers})
        if exc is not None:
            raise exc
        return response

    monkeypatch.setattr(fetch_mod.requests, "get", fake_get)
    return calls


SAMPLE = {
    "descriptions": {"disclaimer_en": "..."},
    "soles": [
        {"id": "2", "terrestrial_date": "2026-02-11", "sol": "101", "min_temp": "-70", "max_temp": "-3",
         "sunrise": "05:39", "sunset": "17:43"},
        {"id": "1", "terrestrial_date": "2026-02-10", "sol": "100", "min_temp": "--", "max_temp": "-5",
         "sunrise": "05:38", "sunset": "17:43"},
    ],
}


def test_fetch_keys_readings_by_sol(monkeypatch) -> None:
    calls = _patch_get(monkeypatch, _FakeResponse(SAMPLE))
    readings = fetch_weather_data("https://example.test/feed", timeout_s=3.0, user_agent="ua-test")

    assert sorted(readings) == [100, 101]
    assert readings[100].min_temp is None
    assert readings[101].max_temp == -3
    assert calls == [{"url": "https://example.test/feed", "timeout": 3.0, "headers": {"User-Agent": "ua-test"}}]


def test_duplicate_sol_keeps_later_record(monkeypatch) -> None:
    payload = {"soles": [{"id": "a", "sol": "5", "max_temp": "-1"}, {"id": "b", "sol": "5", "max_temp": "-9"}]}
    _patch_get(monkeypatch, _FakeResponse(payload))
    readings = fetch_weather_data()
    assert len(readings) == 1
    assert readings[5].record_id == "b"
    assert readings[5].max_temp == -9


def test_transport_error_is_fetch_error(monkeypatch) -> None:
    _patch_get(monkeypatch, exc=requests.ConnectionError("connection refused"))
    with pytest.raises(FetchError):
        fetch_weather_data()


def test_http_error_status_is_fetch_error(monkeypatch) -> None:
    _patch_get(monkeypatch, _FakeResponse(status_code=503))
    with pytest.raises(FetchError):
        fetch_weather_data()


def test_invalid_json_is_fetch_error(monkeypatch) -> None:
    _patch_get(monkeypatch, _FakeResponse(json_error=True))
    with pytest.raises(FetchError):
        fetch_weather_data()


@pytest.mark.parametrize("payload", [[], {"sols": []}, {"soles": "nope"}])
def test_unexpected_payload_shape_is_fetch_error(monkeypatch, payload) -> None:
    _patch_get(monkeypatch, _FakeResponse(payload))
    with pytest.raises(FetchError):
        fetch_weather_data()


def test_record_without_usable_sol_is_fetch_error(monkeypatch) -> None:
    _patch_get(monkeypatch, _FakeResponse({"soles": [{"id": "x", "sol": "--"}]}))
    with pytest.raises(FetchError):
        fetch_weather_data()
