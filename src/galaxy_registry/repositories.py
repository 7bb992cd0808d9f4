"""
Repository composition.

Turns repository definitions into ready-to-serve repositories: a content
store, the hosted or proxy handler on top of it, and the matching route table.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .handlers.base import RequestHandler
from .handlers.hosted import HOSTED_METHODS, HostedHandler
from .handlers.proxy import PROXY_METHODS, ProxyHandler
from .models import RepositoriesConfig, RepositoryConfig
from .response_builder import GalaxyResponseBuilder
from .routes import HOSTED_ROUTES, PROXY_ROUTES, Route
from .settings import Settings
from .storage.adapter import ContentStoreAdapter
from .storage.base import ContentStore
from .storage.file_store import FileContentStore
from .storage.memory_store import InMemoryContentStore
from .transport import HttpTransport, HttpxTransport
from .upstream import UpstreamClient

__all__ = [
    "Repository",
    "build_repository",
    "build_repositories",
    "create_store",
    "load_repository_configs",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Repository:
    """A mounted repository: its definition, handler and route table."""
    config: RepositoryConfig
    handler: RequestHandler
    routes: Sequence[Route]
    allowed_methods: Sequence[str]

    @property
    def name(self) -> str:
        return self.config.name


def create_store(settings: Settings, name: str) -> ContentStore:
    """Filesystem store under storage_root/name, or in-memory when no root is set."""
    if settings.storage_root:
        return FileContentStore(Path(settings.storage_root) / name)
    return InMemoryContentStore()


def build_repository(
    config: RepositoryConfig,
    settings: Settings,
    transport: Optional[HttpTransport] = None,
    store: Optional[ContentStore] = None,
) -> Repository:
    """
    Build a repository from its definition.

    Args:
        config: Repository definition
        settings: Registry settings (storage root, upstream HTTP options)
        transport: Upstream transport for proxies (default: httpx from settings)
        store: Content store override (default: from settings)
    """
    adapter = ContentStoreAdapter(store if store is not None else create_store(settings, config.name))

    if config.recipe == "proxy":
        upstream = UpstreamClient(transport or HttpxTransport.from_settings(settings), config.remote_url)
        logger.info(f"Repository {config.name}: proxy of {config.remote_url}")
        return Repository(config, ProxyHandler(adapter, upstream), PROXY_ROUTES, PROXY_METHODS)

    logger.info(f"Repository {config.name}: hosted")
    return Repository(config, HostedHandler(adapter, GalaxyResponseBuilder()), HOSTED_ROUTES, HOSTED_METHODS)


def load_repository_configs(settings: Settings) -> List[RepositoryConfig]:
    """
    Repository definitions from the repositories file, or a single repository
    described by the GALAXY_REPOSITORY_* settings.
    """
    if settings.repositories_file:
        return RepositoriesConfig.from_yaml_file(Path(settings.repositories_file)).repositories
    return [
        RepositoryConfig(
            name=settings.repository_name,
            recipe=settings.repository_recipe,
            remote_url=settings.remote_url,
        )
    ]


def build_repositories(settings: Settings,
                       transport: Optional[HttpTransport] = None) -> Dict[str, Repository]:
    """All configured repositories keyed by mount name."""
    repositories = {}
    for config in load_repository_configs(settings):
        repositories[config.name] = build_repository(config, settings, transport)
    return repositories
