"""
Minimal multipart/form-data extraction for collection uploads.

``ansible-galaxy collection publish`` sends a single ``file`` part; only that
shape is supported.
"""
from __future__ import annotations

from typing import Optional

from ..errors import BadRequest

__all__ = ["extract_file_part", "is_multipart", "boundary_from_content_type"]

_HEADER_END = b"\r\n\r\n"


def is_multipart(content_type: Optional[str]) -> bool:
    return bool(content_type) and content_type.lower().startswith("multipart/form-data")


def boundary_from_content_type(content_type: str) -> Optional[str]:
    """The ``boundary=`` parameter of a Content-Type header, quotes stripped."""
    for param in content_type.split(";")[1:]:
        key, _, value = param.strip().partition("=")
        if key.strip().lower() == "boundary":
            value = value.strip().strip('"')
            return value or None
    return None


def extract_file_part(body: bytes, content_type: str) -> bytes:
    """
    Content of the first part of a multipart body.

    Content starts after the part's first blank line and ends at the next
    ``\\r\\n--{boundary}``.

    Raises:
        BadRequest: If the boundary parameter, the part header terminator or
            the closing boundary is missing
    """
    boundary = boundary_from_content_type(content_type)
    if boundary is None:
        raise BadRequest("multipart/form-data request has no boundary")

    header_end = body.find(_HEADER_END)
    if header_end < 0:
        raise BadRequest("multipart/form-data part has no header terminator")
    start = header_end + len(_HEADER_END)

    delimiter = b"\r\n--" + boundary.encode("iso-8859-1")
    end = body.find(delimiter, start)
    if end < 0:
        raise BadRequest("multipart/form-data part has no closing boundary")

    return body[start:end]
