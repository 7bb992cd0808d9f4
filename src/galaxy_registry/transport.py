"""
HTTP transport for upstream Galaxy servers.

Defines the narrow transport interface the upstream client depends on and its
httpx-backed implementation. Only GET is needed.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Protocol, runtime_checkable

import httpx
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from .errors import UpstreamError
from .settings import Settings

__all__ = ["TransportResponse", "HttpTransport", "HttpxTransport", "USER_AGENT"]

logger = logging.getLogger(__name__)

USER_AGENT = "galaxy-registry/0.1.0"


@dataclass(frozen=True)
class TransportResponse:
    """
    Raw upstream response.

    content is None when the response carried no body; content_length is
    None when the upstream did not announce a length.
    """
    status_code: int
    content: Optional[bytes]
    content_type: Optional[str] = None
    content_length: Optional[int] = None

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace") if self.content else ""


@runtime_checkable
class HttpTransport(Protocol):
    """Protocol for issuing outbound GET requests."""

    def get(self, url: str, headers: Optional[Mapping[str, str]] = None) -> TransportResponse:
        """
        Issue GET and return the response whatever its status.

        Raises:
            UpstreamError: If no response could be obtained (DNS, connect,
                timeout)
        """
        ...


class HttpxTransport:
    """
    httpx-based transport with per-request timeouts.

    Timed-out requests are retried ``retries`` times with exponential backoff;
    the default of 0 means a single attempt.
    """

    def __init__(self, *, timeout_s: float = 30.0, retries: int = 0, insecure: bool = False,
                 client: Optional[httpx.Client] = None):
        self.retries = retries
        self.client = client or httpx.Client(
            timeout=httpx.Timeout(timeout_s, connect=min(timeout_s, 5.0)),
            follow_redirects=True,
            verify=not insecure,
            headers={"User-Agent": USER_AGENT},
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> HttpxTransport:
        return cls(
            timeout_s=settings.http_timeout_s,
            retries=settings.http_retry,
            insecure=settings.http_insecure,
        )

    def get(self, url: str, headers: Optional[Mapping[str, str]] = None) -> TransportResponse:
        logger.debug(f"GET {url}")
        try:
            response = self._request(url, dict(headers or {}))
        except httpx.RequestError as e:
            raise UpstreamError(f"Network error fetching {url}: {e}") from e

        length_header = response.headers.get("Content-Length")
        try:
            content_length = int(length_header) if length_header is not None else None
        except ValueError:
            content_length = None

        return TransportResponse(
            status_code=response.status_code,
            content=response.content or None,
            content_type=response.headers.get("Content-Type"),
            content_length=content_length,
        )

    def _request(self, url: str, headers: dict) -> httpx.Response:
        retrying = Retrying(
            stop=stop_after_attempt(self.retries + 1),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(httpx.TimeoutException),
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                return self.client.get(url, headers=headers)
        raise AssertionError("unreachable")  # pragma: no cover

    def close(self):
        """Close HTTP client."""
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
