"""
Core value types for the Galaxy registry.

These types are shared by ingestion, storage and response synthesis. They are
immutable and validated on construction.
"""
from __future__ import annotations

from dataclasses import dataclass

__all__ = ["CollectionIdentity", "PaginationWindow", "DEFAULT_PAGE_SIZE"]

DEFAULT_PAGE_SIZE = 100


@dataclass(frozen=True, slots=True)
class CollectionIdentity:
    """
    Identity of one published collection artifact.

    Together namespace, name and version uniquely identify an artifact.
    Created by the manifest extractor (hosted upload) or by filename
    parsing (proxy cache-fill).
    """
    namespace: str
    name: str
    version: str

    def __post_init__(self) -> None:
        for field_name in ("namespace", "name", "version"):
            value = getattr(self, field_name)
            if not isinstance(value, str) or not value:
                raise ValueError(f"{field_name} must be a non-empty string, got {value!r}")

    def __str__(self) -> str:
        return f"{self.namespace}.{self.name}:{self.version}"


@dataclass(frozen=True, slots=True)
class PaginationWindow:
    """
    A page of a listing.

    Invariants:
    - 0 <= offset <= total
    - limit > 0
    """
    offset: int
    limit: int
    total: int

    @classmethod
    def clamp(cls, offset: int, limit: int, total: int) -> PaginationWindow:
        """
        Build a window from raw request values.

        A non-positive limit becomes DEFAULT_PAGE_SIZE; the offset is clamped
        into [0, total].
        """
        effective_limit = limit if limit > 0 else DEFAULT_PAGE_SIZE
        effective_offset = max(0, min(offset, total))
        return cls(offset=effective_offset, limit=effective_limit, total=total)

    @property
    def end(self) -> int:
        """Exclusive end index of the page."""
        return min(self.offset + self.limit, self.total)
