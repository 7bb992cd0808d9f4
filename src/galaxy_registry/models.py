"""
Data models for Galaxy v3 documents and repository configuration.

These Pydantic models provide validation for MANIFEST.json collection info,
the JSON shapes the registry emits, and the repositories YAML file.
"""
from __future__ import annotations

from pathlib import Path
from typing import Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

T = TypeVar("T")


class CollectionInfo(BaseModel):
    """
    The ``collection_info`` section of a collection's MANIFEST.json.

    Unknown fields (authors, dependencies, license, ...) are ignored.
    """
    model_config = ConfigDict(extra="ignore")

    namespace: Optional[str] = None
    name: Optional[str] = None
    version: Optional[str] = None
    description: Optional[str] = None


class GalaxyCollectionVersion(BaseModel):
    """Version reference: list entry and ``highest_version`` value."""
    version: str
    href: str


class GalaxyCollection(BaseModel):
    """Collection list entry and collection detail document."""
    href: str
    namespace: str
    name: str
    deprecated: bool = False
    versions_url: str
    highest_version: Optional[GalaxyCollectionVersion] = None


class GalaxyArtifact(BaseModel):
    """Artifact block of a version detail; sha256 is null when unknown."""
    filename: str
    sha256: Optional[str] = None
    size: int = 0


class GalaxyCollectionRef(BaseModel):
    """Back-reference from a version detail to its collection."""
    href: str
    namespace: str
    name: str


class GalaxyCollectionVersionDetail(BaseModel):
    """Version detail document with download_url."""
    href: str
    namespace: str
    name: str
    version: str
    download_url: str
    artifact: GalaxyArtifact
    collection: GalaxyCollectionRef


class GalaxyPaginationMeta(BaseModel):
    count: int


class GalaxyPaginationLinks(BaseModel):
    first: str
    previous: Optional[str] = None
    next: Optional[str] = None
    last: str


class GalaxyPaginatedResponse(BaseModel, Generic[T]):
    """Paginated listing envelope: ``{meta, links, data}``."""
    meta: GalaxyPaginationMeta
    links: GalaxyPaginationLinks
    data: List[T]


class RepositoryConfig(BaseModel):
    """One repository served by the registry."""
    name: str = Field(..., pattern=r"^[a-zA-Z0-9][a-zA-Z0-9._-]*$", description="Mount name")
    recipe: Literal["hosted", "proxy"] = Field(..., description="Operating mode")
    remote_url: Optional[str] = Field(default=None, description="Upstream Galaxy base URL (proxy only)")

    @field_validator("remote_url")
    @classmethod
    def validate_remote_url(cls, v):
        if v is not None and not v.startswith(("http://", "https://")):
            raise ValueError(f"remote_url must be an http(s) URL, got {v!r}")
        return v

    @model_validator(mode="after")
    def validate_proxy_remote(self):
        if self.recipe == "proxy" and not self.remote_url:
            raise ValueError(f"Proxy repository '{self.name}' requires remote_url")
        return self


class RepositoriesConfig(BaseModel):
    """Contents of the repositories YAML file."""
    repositories: List[RepositoryConfig] = Field(..., min_length=1)

    @field_validator("repositories")
    @classmethod
    def validate_unique_names(cls, v):
        names = [repo.name for repo in v]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate repository names: {', '.join(duplicates)}")
        return v

    @classmethod
    def from_yaml_file(cls, path: Path) -> RepositoriesConfig:
        """Load repository definitions from a YAML file."""
        import yaml

        if not path.exists():
            raise FileNotFoundError(f"Repositories file not found: {path}")

        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}

        return cls.model_validate(data)


__all__ = [
    "CollectionInfo",
    "GalaxyCollectionVersion",
    "GalaxyCollection",
    "GalaxyArtifact",
    "GalaxyCollectionRef",
    "GalaxyCollectionVersionDetail",
    "GalaxyPaginationMeta",
    "GalaxyPaginationLinks",
    "GalaxyPaginatedResponse",
    "RepositoryConfig",
    "RepositoriesConfig",
]
