"""
Galaxy registry error classes.

Provides a clear taxonomy of errors that can occur while ingesting collections,
talking to the content store, or fetching from an upstream Galaxy server.
Handlers raise these and the HTTP layer maps them to status codes through
``mappers.status_code_for``.
"""
from __future__ import annotations

from typing import Optional


class GalaxyError(Exception):
    """
    Base class for all registry errors.
    """
    pass


class BadRequest(GalaxyError):
    """
    Request cannot be processed as sent.

    Raised when:
    - Upload has no body
    - multipart/form-data envelope is malformed (no boundary, no part headers,
      no closing boundary)
    """
    pass


class NotFound(GalaxyError):
    """
    Unknown path or collection identity.
    """
    pass


class IngestError(GalaxyError):
    """
    Base class for failures while deriving a collection identity from an archive.
    """
    pass


class ManifestNotFound(IngestError):
    """
    No MANIFEST.json entry was found before the end of the tar stream.
    """
    pass


class ManifestInvalid(IngestError):
    """
    MANIFEST.json was found but is unusable.

    Raised when:
    - Content is not valid JSON
    - ``collection_info`` is absent or not an object
    - namespace, name or version is null or empty
    """
    pass


class ArchiveCorrupt(IngestError):
    """
    gzip or tar decoding failed.
    """
    pass


class UpstreamError(GalaxyError):
    """
    Upstream Galaxy server returned a non-200 status or could not be reached.

    ``status_code`` is None for transport-level failures (DNS, connect,
    timeouts).
    """

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class UpstreamEmpty(GalaxyError):
    """
    Upstream answered 200 without a response body.
    """
    pass


class StoreUnavailable(GalaxyError):
    """
    The content store could not be reached or failed an I/O operation.
    """
    pass


__all__ = [
    "GalaxyError",
    "BadRequest",
    "NotFound",
    "IngestError",
    "ManifestNotFound",
    "ManifestInvalid",
    "ArchiveCorrupt",
    "UpstreamError",
    "UpstreamEmpty",
    "StoreUnavailable",
]
