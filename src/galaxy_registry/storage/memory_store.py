"""
In-memory content store.

Keeps artifact bytes and metadata in process memory. Used when no storage root
is configured, and as the standard store in tests.
"""
from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Optional, Tuple

from .base import ContentStore, StoredArtifact

__all__ = ["InMemoryContentStore"]


class InMemoryContentStore(ContentStore):
    """
    In-memory store keyed by canonical path.

    Enumeration follows insertion order; overwriting a path keeps its original
    position. A lock makes every operation atomic at path level.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, Tuple[StoredArtifact, bytes]] = {}
        self._lock = threading.Lock()

    def find(self, path: str) -> Optional[StoredArtifact]:
        with self._lock:
            entry = self._entries.get(path)
        return entry[0] if entry else None

    def fetch(self, path: str) -> Optional[Tuple[StoredArtifact, bytes]]:
        with self._lock:
            return self._entries.get(path)

    def save(self, artifact: StoredArtifact, data: bytes) -> StoredArtifact:
        with self._lock:
            self._entries[artifact.path] = (artifact, data)
        return artifact

    def remove(self, path: str) -> bool:
        with self._lock:
            return self._entries.pop(path, None) is not None

    def browse(self) -> Iterable[StoredArtifact]:
        with self._lock:
            snapshot: List[StoredArtifact] = [artifact for artifact, _ in self._entries.values()]
        return snapshot

    def clear(self) -> None:
        """Remove everything (test utility)."""
        with self._lock:
            self._entries.clear()
