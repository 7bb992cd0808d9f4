"""
Proxy repository handler.

Artifacts are cached permanently in the repository's content store on first
download. Metadata documents are fetched from upstream on every request and
rewritten to point at this repository.
"""
from __future__ import annotations

import logging

from ..response_builder import to_json
from ..storage.adapter import ContentStoreAdapter
from ..storage.artifact_path import parse_filename, path_for_filename
from ..upstream import UpstreamClient, UpstreamContent
from .base import (
    HandlerRequest,
    HandlerResponse,
    method_not_allowed,
    not_found,
    ok_content,
    ok_json,
)

__all__ = ["ProxyHandler", "PROXY_METHODS", "API_ROOT_DOCUMENT"]

logger = logging.getLogger(__name__)

PROXY_METHODS = ("GET", "HEAD")

API_ROOT_DOCUMENT = {"available_versions": {"v3": "v3/"}, "current_version": "v3"}


class ProxyHandler:
    """Request handler for a proxy repository in front of one upstream Galaxy."""

    def __init__(self, adapter: ContentStoreAdapter, upstream: UpstreamClient):
        self.adapter = adapter
        self.upstream = upstream

    def handle(self, request: HandlerRequest) -> HandlerResponse:
        method = request.method.upper()
        if method not in PROXY_METHODS:
            return method_not_allowed(method, PROXY_METHODS)

        tokens = request.tokens
        if "api_root" in tokens:
            return ok_json(to_json(API_ROOT_DOCUMENT))
        if "filename" in tokens:
            return self.download(tokens["filename"])

        repo_url = request.base_url
        query = request.query_string or None
        namespace = tokens.get("namespace")
        name = tokens.get("name")
        version = tokens.get("version")

        if namespace and name and version:
            return ok_json(self.upstream.fetch_version_detail(repo_url, namespace, name, version))
        if namespace and name and "version_marker" in tokens:
            return ok_json(self.upstream.fetch_version_list(repo_url, namespace, name, query))
        if namespace and name:
            return ok_json(self.upstream.fetch_collection_detail(repo_url, namespace, name))
        return ok_json(self.upstream.fetch_collection_list(repo_url, query))

    def download(self, filename: str) -> HandlerResponse:
        """
        Serve an artifact from cache, fetching and caching it on a miss.

        Filenames that do not parse as ``{ns}-{name}-{version}.tar.gz`` are
        served straight from upstream without being cached. Names the store
        cannot hold as keys are answered with 404.
        """
        path = path_for_filename(filename)
        try:
            cached = self.adapter.find(path)
        except ValueError:
            return not_found(f"No artifact named {filename}")
        if cached is not None:
            logger.debug(f"Serving cached artifact: {filename}")
            return ok_content(self.adapter.get(path))

        logger.debug(f"Cache miss for artifact: {filename}, fetching from upstream")
        fetched = self.upstream.fetch_artifact(filename)
        if fetched is None:
            return not_found(f"Artifact {filename} not found upstream")

        identity = parse_filename(filename)
        if identity is not None:
            self.adapter.put(identity, path, fetched.data, content_type=fetched.content_type)
            if self.adapter.find(path) is not None:
                return ok_content(self.adapter.get(path))
            logger.debug(f"Artifact {filename} not readable after caching, serving upstream bytes")

        return _upstream_response(fetched)


def _upstream_response(fetched: UpstreamContent) -> HandlerResponse:
    """
    Response carrying upstream bytes as received.

    Content-Length is set only when upstream declared one that matches the
    body; an unknown length is left for the server to derive from the body.
    """
    headers = {}
    if fetched.content_length is not None:
        if fetched.content_length == len(fetched.data):
            headers["Content-Length"] = str(fetched.content_length)
        else:
            logger.debug(f"Upstream declared {fetched.content_length} bytes, received {len(fetched.data)}")
    return HandlerResponse(
        status=200,
        body=fetched.data,
        content_type=fetched.content_type,
        headers=headers,
    )
