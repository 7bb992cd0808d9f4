"""
Collection manifest extraction.

Streams a gzip-compressed tar archive once, front to back, locates the
collection's MANIFEST.json and derives the collection identity from its
``collection_info`` block.
"""
from __future__ import annotations

import io
import json
import logging
import tarfile
import zlib
from typing import IO, Union

from pydantic import ValidationError

from .errors import ArchiveCorrupt, ManifestInvalid, ManifestNotFound
from .models import CollectionInfo
from .registry_types import CollectionIdentity

__all__ = ["MANIFEST_NAME", "extract_collection_info", "extract_identity", "is_manifest_entry"]

logger = logging.getLogger(__name__)

MANIFEST_NAME = "MANIFEST.json"

_UNSAFE_CHARS = frozenset("/\\\x00")


def is_manifest_entry(entry_name: str) -> bool:
    """
    Whether a tar entry name designates the collection manifest.

    Collections package their manifest one level down, in a directory named
    after the collection, but only the suffix is trusted.
    """
    return entry_name == MANIFEST_NAME or entry_name.endswith("/" + MANIFEST_NAME)


def extract_collection_info(archive: Union[bytes, IO[bytes]]) -> CollectionInfo:
    """
    Extract ``collection_info`` from a collection tarball.

    Only the first matching manifest entry is considered. Entries are read in
    stream order; nothing but the manifest's own content is buffered.

    Args:
        archive: tar.gz bytes or a binary file object positioned at its start

    Returns:
        CollectionInfo with namespace, name and version all present

    Raises:
        ArchiveCorrupt: If gzip/tar decoding fails
        ManifestNotFound: If no MANIFEST.json entry exists
        ManifestInvalid: If the manifest isn't JSON, lacks collection_info,
            or is missing namespace/name/version
    """
    fileobj = io.BytesIO(archive) if isinstance(archive, (bytes, bytearray)) else archive

    try:
        with tarfile.open(fileobj=fileobj, mode="r|gz") as tar:
            for entry in tar:
                if not entry.isfile() or not is_manifest_entry(entry.name):
                    continue
                logger.debug(f"Found collection manifest at {entry.name}")
                extracted = tar.extractfile(entry)
                if extracted is None:
                    raise ManifestInvalid(f"Cannot read manifest entry {entry.name}")
                return _parse_manifest(extracted.read())
    except (tarfile.TarError, OSError, EOFError, zlib.error) as e:
        raise ArchiveCorrupt(f"Cannot decode collection archive: {e}") from e

    raise ManifestNotFound(f"No {MANIFEST_NAME} found in collection archive")


def extract_identity(archive: Union[bytes, IO[bytes]]) -> CollectionIdentity:
    """Collection identity declared by a tarball's MANIFEST.json."""
    info = extract_collection_info(archive)
    return CollectionIdentity(namespace=info.namespace, name=info.name, version=info.version)


def _parse_manifest(raw: bytes) -> CollectionInfo:
    try:
        root = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ManifestInvalid(f"{MANIFEST_NAME} is not valid JSON: {e}") from e

    if not isinstance(root, dict) or not isinstance(root.get("collection_info"), dict):
        raise ManifestInvalid(f"{MANIFEST_NAME} has no collection_info object")

    try:
        info = CollectionInfo.model_validate(root["collection_info"])
    except ValidationError as e:
        raise ManifestInvalid(f"Invalid collection_info in {MANIFEST_NAME}: {e}") from e

    missing = [f for f in ("namespace", "name", "version") if not getattr(info, f)]
    if missing:
        raise ManifestInvalid(
            f"collection_info in {MANIFEST_NAME} is missing {', '.join(missing)}"
        )

    # Identity fields become a single path segment of the artifact filename
    unsafe = [f for f in ("namespace", "name", "version") if _UNSAFE_CHARS & set(getattr(info, f))]
    if unsafe:
        raise ManifestInvalid(
            f"collection_info in {MANIFEST_NAME} has unsafe characters in {', '.join(unsafe)}"
        )
    return info
