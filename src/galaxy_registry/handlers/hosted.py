"""
Hosted repository handler.

Serves uploads, downloads, deletes and the Galaxy v3 listing/detail documents
for a repository whose content store is authoritative. Every response is
computed from the store on the request path; nothing is cached in the handler.
"""
from __future__ import annotations

import logging
from typing import Optional

from ..errors import BadRequest
from ..manifest import extract_identity
from ..registry_types import CollectionIdentity
from ..response_builder import API_PREFIX, GalaxyResponseBuilder, group_collections
from ..storage.adapter import ContentStoreAdapter
from ..storage.artifact_path import ARTIFACTS_DIR, build_filename, build_path, path_for_filename
from .base import (
    HandlerRequest,
    HandlerResponse,
    created,
    method_not_allowed,
    no_content,
    not_found,
    ok_content,
    ok_json,
)
from .multipart import extract_file_part, is_multipart

__all__ = ["HostedHandler", "HOSTED_METHODS"]

logger = logging.getLogger(__name__)

HOSTED_METHODS = ("GET", "HEAD", "POST", "DELETE")


class HostedHandler:
    """
    Request handler for a hosted repository.

    GET/HEAD requests dispatch on route tokens, first match wins:
    ``filename`` (download), ``namespace+name+version`` (version detail),
    ``namespace+name+version_marker`` (version list), ``namespace+name``
    (collection detail), otherwise the collection list.
    """

    def __init__(self, adapter: ContentStoreAdapter, builder: Optional[GalaxyResponseBuilder] = None):
        self.adapter = adapter
        self.builder = builder or GalaxyResponseBuilder()

    def handle(self, request: HandlerRequest) -> HandlerResponse:
        method = request.method.upper()
        if method in ("GET", "HEAD"):
            return self._handle_get(request)
        if method == "POST":
            return self.upload(request)
        if method == "DELETE":
            return self.delete(request)
        return method_not_allowed(method, HOSTED_METHODS)

    def _handle_get(self, request: HandlerRequest) -> HandlerResponse:
        tokens = request.tokens
        if "filename" in tokens:
            return self.download(tokens["filename"])

        namespace = tokens.get("namespace")
        name = tokens.get("name")
        version = tokens.get("version")
        offset = request.int_param("offset", 0)
        limit = request.int_param("limit", 0)

        if namespace and name and version:
            return self.version_detail(request.base_url, namespace, name, version)
        if namespace and name and "version_marker" in tokens:
            return self.version_list(request.base_url, namespace, name, offset, limit)
        if namespace and name:
            return self.collection_detail(request.base_url, namespace, name)
        return self.collection_list(request.base_url, offset, limit)

    def upload(self, request: HandlerRequest) -> HandlerResponse:
        """
        Ingest a collection tarball, raw or wrapped in multipart/form-data.

        The identity comes from the archive's MANIFEST.json; nothing is
        stored unless extraction succeeds.
        """
        body = request.body
        if not body:
            raise BadRequest("Request body is required")

        content_type = request.header("Content-Type")
        if is_multipart(content_type):
            body = extract_file_part(body, content_type)
            if not body:
                raise BadRequest("Uploaded file part is empty")

        identity = extract_identity(body)
        path = build_path(identity)
        stored = self.adapter.put(identity, path, body)
        logger.info(f"Uploaded {identity} to {path}")

        filename = build_filename(identity)
        return created({
            "namespace": identity.namespace,
            "name": identity.name,
            "version": identity.version,
            "href": request.base_url + self.builder.version_path(
                identity.namespace, identity.name, identity.version),
            "download_url": f"{request.base_url}{API_PREFIX}{ARTIFACTS_DIR}{filename}",
            "artifact": {
                "filename": filename,
                "sha256": stored.blob.sha256 if stored.blob else None,
                "size": stored.blob.size if stored.blob else len(body),
            },
        })

    def download(self, filename: str) -> HandlerResponse:
        path = path_for_filename(filename)
        try:
            artifact = self.adapter.find(path)
        except ValueError:
            # Not a storable key, so nothing can be stored under it
            artifact = None
        if artifact is None:
            return not_found(f"No artifact named {filename}")
        return ok_content(self.adapter.get(path))

    def delete(self, request: HandlerRequest) -> HandlerResponse:
        tokens = request.tokens
        namespace, name, version = tokens.get("namespace"), tokens.get("name"), tokens.get("version")
        if not (namespace and name and version):
            return not_found()

        identity = CollectionIdentity(namespace, name, version)
        if not self.adapter.delete(build_path(identity)):
            return not_found(f"Collection version {identity} not found")
        logger.info(f"Deleted {identity}")
        return no_content()

    def collection_list(self, base_url: str, offset: int, limit: int) -> HandlerResponse:
        artifacts = self.adapter.list_all()
        return ok_json(self.builder.build_collection_list(base_url, artifacts, offset, limit))

    def collection_detail(self, base_url: str, namespace: str, name: str) -> HandlerResponse:
        artifacts = self.adapter.list_all()
        exists = any(
            entry.namespace == namespace and entry.name == name
            for entry in group_collections(artifacts)
        )
        if not exists:
            return not_found(f"Collection {namespace}.{name} not found")
        return ok_json(self.builder.build_collection_detail(base_url, namespace, name, artifacts))

    def version_list(self, base_url: str, namespace: str, name: str,
                     offset: int, limit: int) -> HandlerResponse:
        artifacts = self.adapter.list_all()
        return ok_json(self.builder.build_version_list(base_url, namespace, name, artifacts, offset, limit))

    def version_detail(self, base_url: str, namespace: str, name: str, version: str) -> HandlerResponse:
        identity = CollectionIdentity(namespace, name, version)
        artifact = self.adapter.find(build_path(identity))
        if artifact is None:
            return not_found(f"Collection version {identity} not found")
        return ok_json(self.builder.build_version_detail(base_url, identity, artifact))
