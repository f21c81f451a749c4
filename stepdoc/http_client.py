r"""HTTP transport for documentation fetches.

The buildingSMART documentation hosts reject clients that do not look like a
browser, so every request carries :data:`BROWSER_HEADERS`. Requests go through
a ``requests.Session`` with a bounded timeout and a small ``urllib3`` retry
policy; transport failures surface as :class:`NetworkError` so callers deal
with a single exception type.

Example
-------
>>> from stepdoc.http_client import HttpClient
>>> client = HttpClient(timeout=5)  # doctest: +SKIP
>>> page = client.fetch_text("https://example.org/toc.htm")  # doctest: +SKIP
>>> page.status
200
"""

from __future__ import annotations

import dataclasses as dc
import logging
import time
import typing as typ
from http import HTTPStatus

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import DEFAULT_RETRIES, DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, HttpSettings

logger = logging.getLogger(__name__)

BROWSER_HEADERS: dict[str, str] = {
    "User-Agent": DEFAULT_USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


class NetworkError(RuntimeError):
    """Raised when a documentation page cannot be fetched."""

    def __init__(self, message: str, *, url: str, status: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


@dc.dataclass(frozen=True, slots=True)
class HttpResponse:
    """Body and status of a fetched page.

    Attributes
    ----------
    status : int
        HTTP status code.
    body : str
        Decoded response text.
    url : str
        Final URL after redirects; relative links resolve against it.
    """

    status: int
    body: str
    url: str


class Deadline:
    """Time budget shared by every fetch of one query.

    Each fetch is given at most the remaining budget, split across its retry
    attempts, so a query ends within about ``seconds`` plus retry backoff.
    """

    def __init__(
        self, seconds: float, *, clock: typ.Callable[[], float] = time.monotonic
    ) -> None:
        self.seconds = seconds
        self._clock = clock
        self._expires_at = clock() + seconds

    def remaining(self) -> float:
        return max(0.0, self._expires_at - self._clock())


class HttpClient:
    """Fetch pages with browser-like headers, a timeout and retries."""

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        retries: int = DEFAULT_RETRIES,
        user_agent: str = DEFAULT_USER_AGENT,
        session: requests.Session | None = None,
    ) -> None:
        """Initialise the client.

        Parameters
        ----------
        timeout : float, optional
            Per-request timeout in seconds.
        retries : int, optional
            Retries for connection errors and 5xx responses; only applied to
            sessions created by the client.
        user_agent : str, optional
            Browser User-Agent announced to the documentation host.
        session : requests.Session, optional
            Preconfigured session (for example one recorded by betamax).
            A new session with a retry adapter is created when omitted.
        """
        self.timeout = timeout
        self._headers = {**BROWSER_HEADERS, "User-Agent": user_agent}
        self.attempts = 1
        if session is None:
            session = requests.Session()
            retry = Retry(
                total=retries,
                connect=retries,
                read=retries,
                backoff_factor=0.3,
                status_forcelist=(500, 502, 503, 504),
                allowed_methods=("GET", "HEAD"),
                raise_on_status=False,
                respect_retry_after_header=False,
            )
            adapter = HTTPAdapter(max_retries=retry)
            session.mount("https://", adapter)
            session.mount("http://", adapter)
            self.attempts = retries + 1
        self._session = session

    @classmethod
    def from_settings(
        cls, settings: HttpSettings, *, session: requests.Session | None = None
    ) -> HttpClient:
        return cls(
            timeout=settings.timeout,
            retries=settings.retries,
            user_agent=settings.user_agent,
            session=session,
        )

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._headers)

    def timeout_for(self, deadline: Deadline | None) -> float:
        """Return the per-attempt timeout that keeps retries within ``deadline``."""
        if deadline is None:
            return self.timeout
        return min(self.timeout, deadline.remaining() / self.attempts)

    def get(self, url: str, *, deadline: Deadline | None = None) -> HttpResponse:
        """GET ``url`` and return the response whatever its status.

        Parameters
        ----------
        url : str
            Page to fetch.
        deadline : Deadline, optional
            Query budget; no request is sent once it has run out.

        Raises
        ------
        NetworkError
            On connection failures, timeouts, exhausted retries and expired
            deadlines.
        """
        timeout = self.timeout_for(deadline)
        if timeout <= 0:
            msg = f"Skipped '{url}': lookup deadline of {deadline.seconds:g}s exceeded"
            raise NetworkError(msg, url=url)
        try:
            response = self._session.get(url, headers=self._headers, timeout=timeout)
        except requests.RequestException as exc:
            msg = f"Failed to fetch '{url}': {exc}"
            raise NetworkError(msg, url=url) from exc
        return HttpResponse(
            status=response.status_code, body=response.text, url=response.url or url
        )

    def fetch_text(self, url: str, *, deadline: Deadline | None = None) -> HttpResponse:
        """GET ``url``, treating error statuses as :class:`NetworkError`."""
        response = self.get(url, deadline=deadline)
        if response.status >= HTTPStatus.BAD_REQUEST:
            msg = f"Fetching '{url}' failed with status {response.status}"
            raise NetworkError(msg, url=url, status=response.status)
        logger.debug("Fetched %s (%d bytes)", response.url, len(response.body))
        return response

    def close(self) -> None:
        self._session.close()


__all__ = ["BROWSER_HEADERS", "Deadline", "HttpClient", "HttpResponse", "NetworkError"]
