"""
Storage interfaces for the Galaxy registry.

These protocols define the boundary between request handling and the content
store that persists artifact bytes and metadata, enabling clean dependency
injection and testing with fakes.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Protocol, Tuple, runtime_checkable

from ..registry_types import CollectionIdentity

DEFAULT_CONTENT_TYPE = "application/gzip"


@dataclass(frozen=True)
class BlobInfo:
    """
    Metadata for the bytes behind a stored artifact.

    Invariants:
    - size: exact byte length (>= 0)
    - checksums: algorithm name -> lowercase hex digest; key case is not
      normalized, lookups are case-insensitive
    """
    size: int
    checksums: Mapping[str, str] = field(default_factory=dict)
    content_type: str = DEFAULT_CONTENT_TYPE

    @property
    def sha256(self) -> Optional[str]:
        """SHA-256 checksum, looked up case-insensitively."""
        for key, value in self.checksums.items():
            if key.lower() == "sha256":
                return value
        return None


@dataclass(frozen=True)
class StoredArtifact:
    """
    A persisted collection artifact.

    ``path`` is the canonical storage key,
    ``/collections/artifacts/{namespace}-{name}-{version}.tar.gz``.
    """
    identity: CollectionIdentity
    path: str
    blob: Optional[BlobInfo] = None


@dataclass(frozen=True)
class Content:
    """Artifact metadata together with its bytes."""
    artifact: StoredArtifact
    data: bytes

    @property
    def content_type(self) -> str:
        return self.artifact.blob.content_type if self.artifact.blob else DEFAULT_CONTENT_TYPE


__all__ = ["BlobInfo", "StoredArtifact", "Content", "ContentStore", "DEFAULT_CONTENT_TYPE"]


@runtime_checkable
class ContentStore(Protocol):
    """Protocol for the content store collaborator."""

    def find(self, path: str) -> Optional[StoredArtifact]:
        """
        Get artifact metadata without fetching content.

        Args:
            path: Canonical storage path

        Returns:
            Stored artifact, or None if nothing is stored at path

        Raises:
            OSError: For I/O errors
        """
        ...

    def fetch(self, path: str) -> Optional[Tuple[StoredArtifact, bytes]]:
        """
        Retrieve artifact metadata and content as one consistent pair.

        The returned metadata always describes the returned bytes, even when
        a save to the same path runs concurrently.

        Returns:
            (artifact, data), or None if nothing is stored at path

        Raises:
            OSError: For I/O errors
        """
        ...

    def save(self, artifact: StoredArtifact, data: bytes) -> StoredArtifact:
        """
        Store artifact content and metadata, replacing anything at the same path.

        Readers observe either the previous or the new state, never a torn
        write.

        Raises:
            OSError: For I/O errors
        """
        ...

    def remove(self, path: str) -> bool:
        """
        Delete the artifact at path.

        Returns:
            True if something was removed
        """
        ...

    def browse(self) -> Iterable[StoredArtifact]:
        """
        Enumerate all stored artifacts in insertion order.
        """
        ...
