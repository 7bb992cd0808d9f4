"""
Artifact path construction helpers.

Centralizes the mapping between a collection identity and its canonical
storage path / artifact filename.
"""
from __future__ import annotations

from typing import Optional

from ..registry_types import CollectionIdentity

ARTIFACTS_DIR = "/collections/artifacts/"
ARCHIVE_SUFFIX = ".tar.gz"


def build_filename(identity: CollectionIdentity) -> str:
    """
    Build the artifact filename for a collection identity.

    Examples:
        >>> build_filename(CollectionIdentity("community", "general", "5.0.0"))
        'community-general-5.0.0.tar.gz'
    """
    return f"{identity.namespace}-{identity.name}-{identity.version}{ARCHIVE_SUFFIX}"


def build_path(identity: CollectionIdentity) -> str:
    """
    Build the canonical storage path for a collection identity.

    Examples:
        >>> build_path(CollectionIdentity("community", "general", "5.0.0"))
        '/collections/artifacts/community-general-5.0.0.tar.gz'
    """
    return ARTIFACTS_DIR + build_filename(identity)


def path_for_filename(filename: str) -> str:
    """Canonical storage path for an artifact filename taken from a URL."""
    if not filename:
        raise ValueError("filename cannot be empty")
    return ARTIFACTS_DIR + filename


def parse_filename(filename: str) -> Optional[CollectionIdentity]:
    """
    Parse an artifact filename back into a collection identity.

    The namespace runs up to the first '-', the version starts after the
    last '-', and the name is everything in between. Only use this when the
    identity was not captured at ingestion time; names containing '-' make
    the split ambiguous.

    Args:
        filename: Artifact filename, e.g. "community-general-5.0.0.tar.gz"

    Returns:
        CollectionIdentity, or None if the filename doesn't match
        {namespace}-{name}-{version}.tar.gz

    Examples:
        >>> parse_filename("community-general-5.0.0.tar.gz")
        CollectionIdentity(namespace='community', name='general', version='5.0.0')

        >>> parse_filename("general.tar.gz") is None
        True
    """
    if not filename or not filename.endswith(ARCHIVE_SUFFIX):
        return None

    base = filename[:-len(ARCHIVE_SUFFIX)]
    first_dash = base.find("-")
    if first_dash < 0:
        return None
    last_dash = base.rfind("-")
    if last_dash <= first_dash:
        return None

    namespace = base[:first_dash]
    name = base[first_dash + 1:last_dash]
    version = base[last_dash + 1:]
    if not namespace or not name or not version:
        return None

    return CollectionIdentity(namespace=namespace, name=name, version=version)


__all__ = ["build_filename", "build_path", "path_for_filename", "parse_filename", "ARTIFACTS_DIR"]
