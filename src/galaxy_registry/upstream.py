"""
Upstream Galaxy client for proxy repositories.

Fetches metadata JSON and artifact bytes from a remote Galaxy v3 server and
rewrites absolute upstream URLs so clients keep talking to the proxy.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

from .errors import UpstreamEmpty, UpstreamError
from .response_builder import API_PREFIX
from .storage.artifact_path import ARTIFACTS_DIR
from .storage.base import DEFAULT_CONTENT_TYPE
from .transport import HttpTransport

__all__ = ["UpstreamClient", "UpstreamContent", "extract_base_url", "rewrite_urls"]

logger = logging.getLogger(__name__)

_JSON_HEADERS = {"Accept": "application/json"}


@dataclass(frozen=True)
class UpstreamContent:
    """Artifact bytes fetched from upstream; content_length None when unknown."""
    data: bytes
    content_type: str = DEFAULT_CONTENT_TYPE
    content_length: Optional[int] = None


def extract_base_url(url: str) -> str:
    """
    Scheme, host and port of url; default ports 80 and 443 are dropped.

    Examples:
        >>> extract_base_url("https://galaxy.ansible.com/api/")
        'https://galaxy.ansible.com'
        >>> extract_base_url("https://mirror.example.com:8443")
        'https://mirror.example.com:8443'
    """
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        parts = None
    if parts is None or not parts.scheme or not parts.hostname:
        # Not a parseable absolute URL: strip anything after the authority
        scheme_end = url.find("://")
        if scheme_end >= 0:
            path_start = url.find("/", scheme_end + 3)
            if path_start >= 0:
                return url[:path_start]
        return url

    base = f"{parts.scheme}://{parts.hostname}"
    if port is not None and port not in (80, 443):
        base += f":{port}"
    return base


def rewrite_urls(text: str, upstream_base: str, repo_url: str) -> str:
    """
    Point every absolute upstream API URL in text at the local repository.

    A plain textual replacement of ``{upstream_base}{API_PREFIX}`` by
    ``{repo_url}{API_PREFIX}``; hrefs, download_url and pagination links all
    share that prefix.
    """
    return text.replace(upstream_base + API_PREFIX, repo_url + API_PREFIX)


class UpstreamClient:
    """
    Client for one upstream Galaxy server.

    ``remote_url`` is the upstream base URL (e.g. https://galaxy.ansible.com).
    Metadata methods take the local repository URL so responses can be
    rewritten for the caller.
    """

    def __init__(self, transport: HttpTransport, remote_url: str):
        self.transport = transport
        self.remote_url = remote_url
        self.upstream_base = extract_base_url(remote_url)

    def build_upstream_url(self, path: str) -> str:
        return self.remote_url.rstrip("/") + path

    def fetch_collection_list(self, repo_url: str, query: Optional[str] = None) -> str:
        path = f"{API_PREFIX}/collections/index/"
        return self._fetch_json(repo_url, path, query)

    def fetch_collection_detail(self, repo_url: str, namespace: str, name: str) -> str:
        path = f"{API_PREFIX}/collections/index/{namespace}/{name}/"
        return self._fetch_json(repo_url, path)

    def fetch_version_list(self, repo_url: str, namespace: str, name: str,
                           query: Optional[str] = None) -> str:
        path = f"{API_PREFIX}/collections/index/{namespace}/{name}/versions/"
        return self._fetch_json(repo_url, path, query)

    def fetch_version_detail(self, repo_url: str, namespace: str, name: str, version: str) -> str:
        path = f"{API_PREFIX}/collections/index/{namespace}/{name}/versions/{version}/"
        return self._fetch_json(repo_url, path)

    def fetch_artifact(self, filename: str) -> Optional[UpstreamContent]:
        """
        Raw artifact bytes from upstream.

        Returns:
            UpstreamContent, or None if upstream answered non-200 or sent no body

        Raises:
            UpstreamError: If upstream could not be reached
        """
        url = self.build_upstream_url(f"{API_PREFIX}{ARTIFACTS_DIR}{filename}")
        response = self.transport.get(url)
        if response.status_code != 200:
            logger.debug(f"Upstream returned HTTP {response.status_code} for {url}")
            return None
        if not response.content:
            return None
        return UpstreamContent(
            data=response.content,
            content_type=response.content_type or DEFAULT_CONTENT_TYPE,
            content_length=response.content_length,
        )

    def _fetch_json(self, repo_url: str, path: str, query: Optional[str] = None) -> str:
        url = self.build_upstream_url(path)
        if query:
            url = f"{url}?{query}"

        response = self.transport.get(url, headers=_JSON_HEADERS)
        if response.status_code != 200:
            body = response.text
            raise UpstreamError(
                f"Upstream returned HTTP {response.status_code} for {url}: {body}",
                status_code=response.status_code,
                body=body,
            )
        if not response.content:
            raise UpstreamEmpty(f"Upstream returned empty response for {url}")

        return rewrite_urls(response.text, self.upstream_base, repo_url)
