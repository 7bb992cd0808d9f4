"""
Route tables for hosted and proxy repositories.

Paths are relative to the repository mount (``/repository/{name}``). A route
matches a path shape and yields named tokens (``namespace``, ``name``,
``version``, ``version_marker``, ``filename``, ``api_root``) which the
handlers dispatch on.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional, Sequence

from .response_builder import API_PREFIX

__all__ = ["Route", "RouteMatch", "HOSTED_ROUTES", "PROXY_ROUTES", "match_route"]

_SEGMENT = r"[^/]+"

_READ = frozenset({"GET", "HEAD"})


@dataclass(frozen=True)
class Route:
    """A path shape and the methods it accepts."""
    name: str
    methods: FrozenSet[str]
    pattern: re.Pattern

    def match(self, path: str) -> Optional[Dict[str, str]]:
        m = self.pattern.fullmatch(path)
        return m.groupdict() if m else None


@dataclass(frozen=True)
class RouteMatch:
    route: Route
    tokens: Dict[str, str] = field(default_factory=dict)

    def allows(self, method: str) -> bool:
        return method.upper() in self.route.methods


def _route(name: str, methods, template: str) -> Route:
    """
    Compile a route template.

    ``{token}`` matches one path segment; ``{token:literal}`` matches only
    ``literal`` and still records it as a token. A trailing slash is optional.
    """
    regex = ""
    pos = 0
    for m in re.finditer(r"\{(\w+)(?::([^}]+))?\}", template):
        regex += re.escape(template[pos:m.start()])
        token, literal = m.group(1), m.group(2)
        regex += f"(?P<{token}>{re.escape(literal) if literal else _SEGMENT})"
        pos = m.end()
    tail = template[pos:]
    if tail.endswith("/"):
        regex += re.escape(tail[:-1]) + "/?"
    else:
        regex += re.escape(tail)
    return Route(name=name, methods=frozenset(methods), pattern=re.compile(regex))


_INDEX = f"{API_PREFIX}/collections/index"

# Long-form Galaxy v3 read routes shared by both repository types
_READ_ROUTES = (
    _route("collection-list", _READ, f"{_INDEX}/"),
    _route("collection-detail", _READ, _INDEX + "/{namespace}/{name}/"),
    _route("version-list", _READ, _INDEX + "/{namespace}/{name}/{version_marker:versions}/"),
    _route("version-detail", _READ, _INDEX + "/{namespace}/{name}/versions/{version}/"),
    _route("artifact", _READ, API_PREFIX + "/collections/artifacts/{filename}"),
)

HOSTED_ROUTES: Sequence[Route] = (
    _route("upload", {"POST"}, "/api/v3/artifacts/collections/"),
    *_READ_ROUTES[:3],
    _route("version-detail", _READ | {"DELETE"}, _INDEX + "/{namespace}/{name}/versions/{version}/"),
    _READ_ROUTES[4],
)

PROXY_ROUTES: Sequence[Route] = (
    _route("api-root", _READ, "/{api_root:api}/"),
    _route("short-version-list", _READ, "/api/v3/collections/{namespace}/{name}/{version_marker:versions}/"),
    _route("short-version-detail", _READ, "/api/v3/collections/{namespace}/{name}/versions/{version}/"),
    *_READ_ROUTES,
)


def match_route(routes: Sequence[Route], method: str, path: str) -> Optional[RouteMatch]:
    """
    Find the route for a request.

    Routes accepting method are preferred; failing that, the first route whose
    shape matches is returned so the caller can answer 405. None means no
    route has this path shape.
    """
    fallback: Optional[RouteMatch] = None
    method = method.upper()
    for route in routes:
        tokens = route.match(path)
        if tokens is None:
            continue
        found = RouteMatch(route=route, tokens=tokens)
        if method in route.methods:
            return found
        if fallback is None:
            fallback = found
    return fallback
