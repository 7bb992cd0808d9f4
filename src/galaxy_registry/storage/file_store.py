"""
Filesystem content store.

Stores each artifact's bytes at ``<root>/<canonical path>`` with a JSON sidecar
(``<file>.meta.json``) holding identity, checksums and an insertion sequence.
Writes go through a temp file and ``os.replace`` so readers never observe a
partially written blob or sidecar.
"""
from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
import threading
import time
from dataclasses import replace
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from ..path_safety import META_SUFFIX, store_relpath
from ..registry_types import CollectionIdentity
from .base import DEFAULT_CONTENT_TYPE, BlobInfo, ContentStore, StoredArtifact

__all__ = ["FileContentStore"]

logger = logging.getLogger(__name__)

FETCH_ATTEMPTS = 3
FETCH_RETRY_DELAY_S = 0.01


def _describes(blob: Optional[BlobInfo], data: bytes) -> bool:
    """True if blob metadata matches data in size and (when recorded) sha256."""
    if blob is None:
        return True
    if blob.size != len(data):
        return False
    return blob.sha256 is None or blob.sha256 == hashlib.sha256(data).hexdigest()


def _write_atomically(target: Path, data: bytes) -> None:
    """Write bytes to target via temp file + rename in the same directory."""
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(prefix=".galaxy.tmp.", dir=target.parent)
    try:
        with os.fdopen(fd, "wb") as out:
            out.write(data)
            out.flush()
            os.fsync(out.fileno())
        os.replace(temp_path, target)
    except Exception:
        try:
            os.unlink(temp_path)
        except FileNotFoundError:
            pass
        raise


class FileContentStore(ContentStore):
    """
    ContentStore backed by a directory tree.

    Enumeration order is the order in which paths were first saved; a
    re-publish of the same path keeps its original sequence number.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self._last_ns = 0
        self._lock = threading.Lock()
        logger.debug(f"File content store at {self.root}")

    def _next_sequence(self) -> int:
        """Wall-clock nanoseconds, strictly increasing within this instance."""
        with self._lock:
            self._last_ns = max(time.time_ns(), self._last_ns + 1)
            return self._last_ns

    def _blob_path(self, path: str) -> Path:
        return self.root / store_relpath(path)

    def _meta_path(self, path: str) -> Path:
        blob_path = self._blob_path(path)
        return blob_path.with_name(blob_path.name + META_SUFFIX)

    def _load_meta(self, meta_path: Path) -> Optional[Tuple[int, StoredArtifact]]:
        try:
            raw = meta_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            meta = json.loads(raw)
            identity = CollectionIdentity(
                namespace=meta["namespace"],
                name=meta["name"],
                version=meta["version"],
            )
            blob = BlobInfo(
                size=int(meta["size"]),
                checksums=dict(meta.get("checksums", {})),
                content_type=meta.get("content_type", DEFAULT_CONTENT_TYPE),
            )
            artifact = StoredArtifact(identity=identity, path=meta["path"], blob=blob)
            return int(meta.get("created_ns", 0)), artifact
        except (KeyError, TypeError, ValueError) as e:
            raise OSError(f"Corrupt metadata file {meta_path}: {e}") from e

    def find(self, path: str) -> Optional[StoredArtifact]:
        loaded = self._load_meta(self._meta_path(path))
        if loaded is None:
            return None
        if not self._blob_path(path).is_file():
            return None
        return loaded[1]

    def fetch(self, path: str) -> Optional[Tuple[StoredArtifact, bytes]]:
        """
        Read sidecar then blob, re-reading while they disagree.

        save() replaces the blob before the sidecar, so a concurrent
        re-publish can briefly pair new bytes with old metadata. If the pair
        still disagrees after FETCH_ATTEMPTS reads, the metadata is rebuilt
        from the bytes actually read.
        """
        meta_path = self._meta_path(path)
        blob_path = self._blob_path(path)
        for attempt in range(FETCH_ATTEMPTS):
            loaded = self._load_meta(meta_path)
            if loaded is None:
                return None
            artifact = loaded[1]
            try:
                data = blob_path.read_bytes()
            except FileNotFoundError:
                return None
            if _describes(artifact.blob, data):
                return artifact, data
            logger.debug(f"Blob and sidecar disagree for {path} (attempt {attempt + 1}), re-reading")
            time.sleep(FETCH_RETRY_DELAY_S)

        logger.warning(f"Sidecar for {path} does not match its blob; describing the bytes read")
        blob = BlobInfo(
            size=len(data),
            checksums={"sha256": hashlib.sha256(data).hexdigest()},
            content_type=artifact.blob.content_type if artifact.blob else DEFAULT_CONTENT_TYPE,
        )
        return replace(artifact, blob=blob), data

    def save(self, artifact: StoredArtifact, data: bytes) -> StoredArtifact:
        blob_path = self._blob_path(artifact.path)
        meta_path = self._meta_path(artifact.path)

        previous = self._load_meta(meta_path)
        created_ns = previous[0] if previous else self._next_sequence()

        blob = artifact.blob or BlobInfo(size=len(data))
        meta = {
            "namespace": artifact.identity.namespace,
            "name": artifact.identity.name,
            "version": artifact.identity.version,
            "path": artifact.path,
            "size": blob.size,
            "checksums": dict(blob.checksums),
            "content_type": blob.content_type,
            "created_ns": created_ns,
        }

        _write_atomically(blob_path, data)
        _write_atomically(meta_path, json.dumps(meta, sort_keys=True, indent=2).encode("utf-8"))
        logger.debug(f"Stored {artifact.path} ({blob.size} bytes) under {self.root}")
        return StoredArtifact(identity=artifact.identity, path=artifact.path, blob=blob)

    def remove(self, path: str) -> bool:
        meta_path = self._meta_path(path)
        blob_path = self._blob_path(path)
        removed = False
        # Sidecar first so the artifact disappears from listings before its bytes do
        for target in (meta_path, blob_path):
            try:
                target.unlink()
                removed = True
            except FileNotFoundError:
                pass
        return removed

    def browse(self) -> Iterable[StoredArtifact]:
        entries: List[Tuple[int, str, StoredArtifact]] = []
        for meta_path in self.root.rglob(f"*{META_SUFFIX}"):
            loaded = self._load_meta(meta_path)
            if loaded is None:
                continue
            created_ns, artifact = loaded
            entries.append((created_ns, artifact.path, artifact))
        entries.sort(key=lambda e: (e[0], e[1]))
        return [artifact for _, _, artifact in entries]
