"""
Galaxy v3 response synthesis.

Builds the Galaxy v3 JSON documents (collection list/detail, version
list/detail) purely from a snapshot of stored artifacts. Nothing here touches
the store; callers pass in what ``ContentStoreAdapter.list_all()`` returned for
the current request.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel

from .models import (
    GalaxyArtifact,
    GalaxyCollection,
    GalaxyCollectionRef,
    GalaxyCollectionVersion,
    GalaxyCollectionVersionDetail,
    GalaxyPaginatedResponse,
    GalaxyPaginationLinks,
    GalaxyPaginationMeta,
)
from .registry_types import CollectionIdentity, PaginationWindow
from .storage.artifact_path import ARTIFACTS_DIR, build_filename
from .storage.base import StoredArtifact

__all__ = [
    "API_PREFIX",
    "GalaxyResponseBuilder",
    "CollectionEntry",
    "build_links",
    "highest_semver",
    "to_json",
]

API_PREFIX = "/api/v3/plugin/ansible/content/published"

_LEADING_DIGITS = re.compile(r"^[0-9]+")
_DIGITS = re.compile(r"[0-9]+")


def to_json(document: Any) -> str:
    """Pretty-print a document; pydantic models drop keys whose value is None."""
    if isinstance(document, BaseModel):
        document = document.model_dump(mode="json", exclude_none=True)
    return json.dumps(document, indent=2)


def _parse_semver(version: str) -> Optional[Tuple[int, int, int]]:
    parts = version.split(".")
    if len(parts) != 3:
        return None
    patch = _LEADING_DIGITS.match(parts[2])
    if not patch or not _DIGITS.fullmatch(parts[0]) or not _DIGITS.fullmatch(parts[1]):
        return None
    return int(parts[0]), int(parts[1]), int(patch.group(0))


def highest_semver(versions: Iterable[str]) -> Optional[str]:
    """
    Highest semantic version among versions.

    A version qualifies only if it has exactly three dot-separated segments;
    the third segment's leading digits are compared and any suffix
    ("1.0.0-beta1") is ignored. Non-conforming versions are skipped. On a tie
    the first-seen version wins.

    Examples:
        >>> highest_semver(["1.0.0", "2.1.0", "1.5.3", "2.0.9"])
        '2.1.0'
        >>> highest_semver(["abc"]) is None
        True
    """
    highest: Optional[str] = None
    highest_parts: Optional[Tuple[int, int, int]] = None
    for version in versions:
        parts = _parse_semver(version)
        if parts is None:
            continue
        if highest_parts is None or parts > highest_parts:
            highest = version
            highest_parts = parts
    return highest


def build_links(base_url: str, request_path: str, window: PaginationWindow) -> GalaxyPaginationLinks:
    """
    Pagination links for a window over a listing at request_path.

    ``previous`` is present only when offset > 0 and ``next`` only when
    another page follows.
    """
    base = base_url + request_path
    limit = window.limit

    def link(offset: int) -> str:
        return f"{base}?offset={offset}&limit={limit}"

    last_offset = max(0, ((window.total - 1) // limit) * limit) if window.total > 0 else 0

    return GalaxyPaginationLinks(
        first=link(0),
        previous=link(max(0, window.offset - limit)) if window.offset > 0 else None,
        next=link(window.offset + limit) if window.offset + limit < window.total else None,
        last=link(last_offset),
    )


@dataclass
class CollectionEntry:
    """All stored versions of one (namespace, name), in first-seen order."""
    namespace: str
    name: str
    versions: List[str] = field(default_factory=list)

    def add_version(self, version: str) -> None:
        if version not in self.versions:
            self.versions.append(version)

    @property
    def highest_version(self) -> Optional[str]:
        return highest_semver(self.versions)


def group_collections(artifacts: Iterable[StoredArtifact]) -> List[CollectionEntry]:
    """Group artifacts by (namespace, name), preserving first-seen order."""
    entries: Dict[Tuple[str, str], CollectionEntry] = {}
    for artifact in artifacts:
        ident = artifact.identity
        key = (ident.namespace, ident.name)
        entry = entries.get(key)
        if entry is None:
            entry = entries[key] = CollectionEntry(ident.namespace, ident.name)
        entry.add_version(ident.version)
    return list(entries.values())


class GalaxyResponseBuilder:
    """
    Builds Galaxy v3 API JSON responses from stored artifacts.

    Stateless; every method is a pure function of its arguments.
    ``base_url`` is the repository URL (e.g. http://host/repository/galaxy)
    without a trailing slash.
    """

    @staticmethod
    def collection_path(namespace: str, name: str) -> str:
        return f"{API_PREFIX}/collections/index/{namespace}/{name}/"

    @staticmethod
    def version_path(namespace: str, name: str, version: str) -> str:
        return f"{API_PREFIX}/collections/index/{namespace}/{name}/versions/{version}/"

    def _collection(self, base_url: str, namespace: str, name: str,
                    highest: Optional[str]) -> GalaxyCollection:
        collection_url = base_url + self.collection_path(namespace, name)
        highest_version = None
        if highest is not None:
            highest_version = GalaxyCollectionVersion(
                version=highest,
                href=base_url + self.version_path(namespace, name, highest),
            )
        return GalaxyCollection(
            href=collection_url,
            namespace=namespace,
            name=name,
            deprecated=False,
            versions_url=collection_url + "versions/",
            highest_version=highest_version,
        )

    def build_collection_list(self, base_url: str, artifacts: Iterable[StoredArtifact],
                              offset: int = 0, limit: int = 0) -> str:
        """Paginated list of collections with their highest versions."""
        entries = group_collections(artifacts)
        window = PaginationWindow.clamp(offset, limit, len(entries))

        data = [
            self._collection(base_url, entry.namespace, entry.name, entry.highest_version)
            for entry in entries[window.offset:window.end]
        ]
        response = GalaxyPaginatedResponse[GalaxyCollection](
            meta=GalaxyPaginationMeta(count=window.total),
            links=build_links(base_url, f"{API_PREFIX}/collections/index/", window),
            data=data,
        )
        return to_json(response)

    def build_collection_detail(self, base_url: str, namespace: str, name: str,
                                artifacts: Iterable[StoredArtifact]) -> str:
        """
        Single collection document.

        Does not signal absence; callers check that the collection exists.
        """
        entry = CollectionEntry(namespace, name)
        for artifact in artifacts:
            if artifact.identity.namespace == namespace and artifact.identity.name == name:
                entry.add_version(artifact.identity.version)
        return to_json(self._collection(base_url, namespace, name, entry.highest_version))

    def build_version_list(self, base_url: str, namespace: str, name: str,
                           artifacts: Iterable[StoredArtifact],
                           offset: int = 0, limit: int = 0) -> str:
        """Paginated versions of one collection, in store enumeration order."""
        versions = [
            a.identity.version for a in artifacts
            if a.identity.namespace == namespace and a.identity.name == name
        ]
        window = PaginationWindow.clamp(offset, limit, len(versions))

        data = [
            GalaxyCollectionVersion(
                version=version,
                href=base_url + self.version_path(namespace, name, version),
            )
            for version in versions[window.offset:window.end]
        ]
        response = GalaxyPaginatedResponse[GalaxyCollectionVersion](
            meta=GalaxyPaginationMeta(count=window.total),
            links=build_links(base_url, self.collection_path(namespace, name) + "versions/", window),
            data=data,
        )
        return to_json(response)

    def build_version_detail(self, base_url: str, identity: CollectionIdentity,
                             artifact: Optional[StoredArtifact] = None) -> str:
        """
        Version detail with download_url and artifact checksum/size.

        Missing blob metadata yields sha256 null and size 0.
        """
        ns, name, version = identity.namespace, identity.name, identity.version
        filename = build_filename(identity)
        blob = artifact.blob if artifact is not None else None

        detail = GalaxyCollectionVersionDetail(
            href=base_url + self.version_path(ns, name, version),
            namespace=ns,
            name=name,
            version=version,
            download_url=f"{base_url}{API_PREFIX}{ARTIFACTS_DIR}{filename}",
            artifact=GalaxyArtifact(
                filename=filename,
                sha256=blob.sha256 if blob else None,
                size=blob.size if blob else 0,
            ),
            collection=GalaxyCollectionRef(
                href=base_url + self.collection_path(ns, name),
                namespace=ns,
                name=name,
            ),
        )
        document = detail.model_dump(mode="json", exclude_none=True)
        # sha256 stays in the artifact block even when unknown
        document["artifact"] = detail.artifact.model_dump(mode="json")
        return to_json(document)
