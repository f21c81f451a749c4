"""Unit tests for the documentation HTTP client."""

from __future__ import annotations

import typing as typ

import pytest
import requests

from stepdoc.config import HttpSettings
from stepdoc.http_client import BROWSER_HEADERS, Deadline, HttpClient, NetworkError

URL = "http://docs.example/ifc/toc.htm"


class _Response:
    def __init__(self, status_code: int, text: str, url: str) -> None:
        self.status_code = status_code
        self.text = text
        self.url = url


class _Session:
    def __init__(self, response: _Response | Exception) -> None:
        self.response = response
        self.calls: list[dict[str, typ.Any]] = []

    def get(self, url: str, **kwargs: typ.Any) -> _Response:
        self.calls.append({"url": url, **kwargs})
        if isinstance(self.response, Exception):
            raise self.response
        return self.response

    def close(self) -> None:  # pragma: no cover - stub
        return None


def test_requests_carry_browser_headers_and_timeout() -> None:
    session = _Session(_Response(200, "<html></html>", URL))
    client = HttpClient(timeout=3.5, user_agent="Mozilla/5.0 test", session=session)

    page = client.fetch_text(URL)

    assert page.status == 200
    assert page.body == "<html></html>"
    call = session.calls[0]
    assert call["timeout"] == 3.5
    assert call["headers"]["User-Agent"] == "Mozilla/5.0 test"
    assert call["headers"]["Accept"] == BROWSER_HEADERS["Accept"]
    assert call["headers"]["Cache-Control"] == "no-cache"


def test_final_url_follows_redirects() -> None:
    redirected = "https://docs.example/ifc/html/toc.htm"
    client = HttpClient(session=_Session(_Response(200, "", redirected)))
    assert client.get(URL).url == redirected


def test_transport_errors_become_network_errors() -> None:
    client = HttpClient(session=_Session(requests.ConnectTimeout("too slow")))
    with pytest.raises(NetworkError) as excinfo:
        client.get(URL)
    assert excinfo.value.url == URL
    assert isinstance(excinfo.value.__cause__, requests.ConnectTimeout)


def test_get_returns_error_statuses_but_fetch_text_raises() -> None:
    client = HttpClient(session=_Session(_Response(403, "Forbidden", URL)))
    assert client.get(URL).status == 403
    with pytest.raises(NetworkError) as excinfo:
        client.fetch_text(URL)
    assert excinfo.value.status == 403


def test_default_session_mounts_retry_adapter() -> None:
    client = HttpClient.from_settings(HttpSettings(timeout=2, retries=4))
    adapter = client._session.get_adapter("https://docs.example/")
    assert adapter.max_retries.total == 4
    assert 503 in adapter.max_retries.status_forcelist
    assert client.timeout == 2
    client.close()


class _Clock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_retried_attempts_fit_inside_the_query_budget() -> None:
    settings = HttpSettings()
    clock = _Clock()
    deadline = Deadline(settings.query_budget, clock=clock)
    client = HttpClient.from_settings(settings)

    assert client.attempts == settings.retries + 1
    assert client.attempts * client.timeout_for(deadline) <= settings.query_budget + 1e-9

    clock.now += 7.0
    assert client.timeout_for(deadline) == pytest.approx(3.0 / client.attempts)
    assert client.timeout_for(None) == settings.timeout
    client.close()


def test_expired_deadline_skips_the_request() -> None:
    clock = _Clock()
    deadline = Deadline(2.0, clock=clock)
    session = _Session(_Response(200, "<html></html>", URL))
    client = HttpClient(timeout=8.0, session=session)

    client.fetch_text(URL, deadline=deadline)
    assert session.calls[0]["timeout"] == 2.0

    clock.now += 2.5
    with pytest.raises(NetworkError, match="deadline"):
        client.fetch_text(URL, deadline=deadline)
    assert len(session.calls) == 1
