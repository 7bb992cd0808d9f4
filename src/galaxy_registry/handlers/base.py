"""
Request/response types shared by the repository handlers.

Handlers are plain synchronous objects that take a ``HandlerRequest`` and
return a ``HandlerResponse``; the ASGI glue translates to and from the web
framework. Errors raised by a handler are turned into Galaxy v3 error
documents by ``dispatch``.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Protocol, Sequence, runtime_checkable

from ..errors import GalaxyError, UpstreamError
from ..mappers import error_code_for, status_code_for
from ..response_builder import to_json
from ..storage.base import Content

__all__ = [
    "HandlerRequest",
    "HandlerResponse",
    "RequestHandler",
    "JSON_CONTENT_TYPE",
    "dispatch",
    "ok_json",
    "ok_content",
    "created",
    "no_content",
    "not_found",
    "method_not_allowed",
    "error_response",
]

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"

_TITLES = {
    400: "Bad Request",
    404: "Not Found",
    405: "Method Not Allowed",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
}


@dataclass(frozen=True)
class HandlerRequest:
    """
    One inbound request, already matched to a route.

    ``path`` is relative to the repository mount and ``base_url`` is the
    repository URL (no trailing slash) used to build absolute hrefs.
    """
    method: str
    path: str
    tokens: Mapping[str, str] = field(default_factory=dict)
    query: Mapping[str, str] = field(default_factory=dict)
    query_string: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""
    base_url: str = ""

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    def int_param(self, name: str, default: int) -> int:
        """Integer query parameter, default when absent or non-numeric."""
        value = self.query.get(name)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            return default


@dataclass
class HandlerResponse:
    status: int
    body: bytes = b""
    content_type: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")

    def json(self):
        return json.loads(self.body)


@runtime_checkable
class RequestHandler(Protocol):
    """Protocol implemented by the hosted and proxy handlers."""

    def handle(self, request: HandlerRequest) -> HandlerResponse:
        ...


def ok_json(text: str, status: int = 200) -> HandlerResponse:
    return HandlerResponse(status=status, body=text.encode("utf-8"), content_type=JSON_CONTENT_TYPE)


def ok_content(content: Content) -> HandlerResponse:
    return HandlerResponse(
        status=200,
        body=content.data,
        content_type=content.content_type,
        headers={"Content-Length": str(len(content.data))},
    )


def created(document) -> HandlerResponse:
    return ok_json(to_json(document), status=201)


def no_content() -> HandlerResponse:
    return HandlerResponse(status=204)


def error_response(status: int, detail: str) -> HandlerResponse:
    """Galaxy v3 error document for status."""
    document = {
        "errors": [
            {
                "status": str(status),
                "code": error_code_for(status),
                "title": _TITLES.get(status, "Error"),
                "detail": detail,
            }
        ]
    }
    return ok_json(to_json(document), status=status)


def not_found(detail: str = "Not found") -> HandlerResponse:
    return error_response(404, detail)


def method_not_allowed(method: str, allowed: Sequence[str]) -> HandlerResponse:
    response = error_response(405, f"Method {method} not allowed")
    response.headers["Allow"] = ", ".join(allowed)
    return response


def dispatch(handler: RequestHandler, request: HandlerRequest) -> HandlerResponse:
    """
    Run handler and convert registry errors into Galaxy v3 error responses.

    Unexpected exceptions propagate to the host, which answers 500.
    """
    try:
        return handler.handle(request)
    except (GalaxyError, ValueError) as e:
        status = status_code_for(e)
        if isinstance(e, UpstreamError) and e.status_code is not None:
            logger.warning(f"{request.method} {request.path}: upstream HTTP {e.status_code}")
        elif status >= 500:
            logger.error(f"{request.method} {request.path} failed: {e}")
        else:
            logger.debug(f"{request.method} {request.path} -> {status}: {e}")
        return error_response(status, str(e))
