"""
Content store adapter.

Thin contract over a ContentStore collaborator: get/put/delete/list keyed by
canonical path and collection identity. Translates collaborator I/O failures
into StoreUnavailable and computes checksums while ingesting bytes.
"""
from __future__ import annotations

import functools
import hashlib
import logging
from typing import IO, Callable, Iterable, List, Optional, TypeVar, Union

from ..errors import NotFound, StoreUnavailable
from ..registry_types import CollectionIdentity
from .base import DEFAULT_CONTENT_TYPE, BlobInfo, Content, ContentStore, StoredArtifact

__all__ = ["ContentStoreAdapter", "ByteSource"]

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1 MiB

# Bytes, a binary file-like object, or an iterable of byte chunks
ByteSource = Union[bytes, bytearray, IO[bytes], Iterable[bytes]]

F = TypeVar("F", bound=Callable)


def _store_call(func: F) -> F:
    """Map collaborator transport/I-O failures to StoreUnavailable."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (NotFound, StoreUnavailable):
            raise
        except FileNotFoundError as e:
            raise NotFound(f"Not found: {e}") from e
        except (OSError, ConnectionError) as e:
            raise StoreUnavailable(f"Content store unavailable during {func.__name__}: {e}") from e
    return wrapper  # type: ignore[return-value]


def _read_source(source: ByteSource) -> tuple[bytes, str]:
    """Drain a byte source in chunks, returning (data, sha256 hex)."""
    hash_obj = hashlib.sha256()
    if isinstance(source, (bytes, bytearray)):
        data = bytes(source)
        hash_obj.update(data)
        return data, hash_obj.hexdigest()

    chunks: List[bytes] = []
    if hasattr(source, "read"):
        while True:
            chunk = source.read(CHUNK_SIZE)
            if not chunk:
                break
            hash_obj.update(chunk)
            chunks.append(chunk)
    else:
        for chunk in source:
            hash_obj.update(chunk)
            chunks.append(chunk)
    return b"".join(chunks), hash_obj.hexdigest()


class ContentStoreAdapter:
    """
    Registry-facing view of a content store.

    Stateless apart from the wrapped collaborator; every call goes straight
    to the store so its contents are always the source of truth.
    """

    def __init__(self, store: ContentStore) -> None:
        self.store = store

    @_store_call
    def find(self, path: str) -> Optional[StoredArtifact]:
        """Artifact metadata at path, or None."""
        return self.store.find(path)

    @_store_call
    def get(self, path: str) -> Content:
        """
        Artifact metadata and bytes at path.

        Raises:
            NotFound: If nothing is stored at path
            StoreUnavailable: If the store fails
        """
        fetched = self.store.fetch(path)
        if fetched is None:
            raise NotFound(f"No artifact stored at {path}")
        artifact, data = fetched
        return Content(artifact=artifact, data=data)

    @_store_call
    def put(
        self,
        identity: CollectionIdentity,
        path: str,
        data: ByteSource,
        *,
        content_type: Optional[str] = None,
    ) -> StoredArtifact:
        """
        Store artifact bytes under path for identity.

        A second put on the same path replaces the previous content
        (last write wins); putting identical bytes again is a no-op in effect.

        Args:
            identity: Collection identity the artifact belongs to
            path: Canonical storage path
            data: Bytes, binary file object, or iterable of byte chunks
            content_type: Content type to record (default application/gzip)

        Returns:
            The stored artifact with computed sha256 and size
        """
        payload, sha256 = _read_source(data)
        blob = BlobInfo(
            size=len(payload),
            checksums={"sha256": sha256},
            content_type=content_type or DEFAULT_CONTENT_TYPE,
        )
        stored = self.store.save(StoredArtifact(identity=identity, path=path, blob=blob), payload)
        logger.debug(f"Stored {identity} at {path} sha256={sha256} size={len(payload)}")
        return stored

    @_store_call
    def delete(self, path: str) -> bool:
        """Delete artifact at path; True if something was removed."""
        return self.store.remove(path)

    @_store_call
    def list_all(self) -> List[StoredArtifact]:
        """All stored artifacts in store enumeration order, fully materialized."""
        return list(self.store.browse())
