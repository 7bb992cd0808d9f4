"""
Path safety utilities for the Galaxy registry.

Storage keys are built from URL segments (artifact filenames) and end up as
filesystem paths in the file-backed content store. This module validates them
to prevent directory traversal and collisions with store metadata files.
"""
from __future__ import annotations

from pathlib import PurePosixPath

META_SUFFIX = ".meta.json"


def safe_relpath(path: str) -> str:
    """
    Validate and normalize a relative store path.

    This function enforces the following safety rules:
    - No empty strings or "." (prevents root directory access)
    - No absolute paths (starting with '/')
    - No parent directory references ('..' components)
    - No backslashes or NUL bytes
    - No names ending in '.meta.json' (reserved for sidecar metadata)

    Args:
        path: Relative path string

    Returns:
        Normalized relative path safe for use

    Raises:
        ValueError: If path violates safety rules

    Examples:
        >>> safe_relpath("collections/artifacts/ns-name-1.0.0.tar.gz")
        'collections/artifacts/ns-name-1.0.0.tar.gz'

        >>> safe_relpath("collections/artifacts/../../etc/passwd")
        ValueError: unsafe path: collections/artifacts/../../etc/passwd
    """
    rel = PurePosixPath(path)
    s = str(rel)
    if not s or s == ".":
        raise ValueError(f"unsafe path: {path}")
    if "\\" in s or "\x00" in s:
        raise ValueError(f"unsafe path: {path}")
    if rel.is_absolute() or ".." in rel.parts or s.endswith(META_SUFFIX):
        raise ValueError(f"unsafe path: {path}")
    return s


def store_relpath(store_path: str) -> str:
    """
    Convert a canonical store path ("/collections/artifacts/x.tar.gz") into
    a validated relative path.
    """
    raw = store_path.lstrip("/")
    rel = safe_relpath(raw)
    # Normalization must be a no-op, otherwise "x/." would alias "x"
    if rel != raw:
        raise ValueError(f"unsafe path: {store_path}")
    return rel
