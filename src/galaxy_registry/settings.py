"""
Settings and configuration for the Galaxy registry.

Centralizes configuration values and provides validation with fail-fast behavior.
Loads settings from environment variables at application construction time.
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Optional

__all__ = ["Settings", "create_settings_from_env", "RECIPES"]

RECIPES = ("hosted", "proxy")

_URL_PATTERN = r"^https?://[a-zA-Z0-9.-]+(?::[0-9]+)?(?:/.*)?$"
_REPO_NAME_PATTERN = r"^[a-zA-Z0-9][a-zA-Z0-9._-]*$"


@dataclass(frozen=True)
class Settings:
    """
    Configuration settings for the registry server.

    Server Settings:
        base_url: Public URL of the server, used to build hrefs. When unset,
            the URL of the incoming request is used.
        storage_root: Directory for the filesystem content store. When unset,
            every repository keeps its artifacts in memory.
        repositories_file: YAML file declaring repositories. When unset, a
            single repository is built from the repository_* fields.

    Single-repository Settings:
        repository_name: Mount name under /repository/{name}
        repository_recipe: "hosted" or "proxy"
        remote_url: Upstream Galaxy base URL (required for proxy)

    Upstream HTTP Settings:
        http_timeout_s: HTTP request timeout in seconds
        http_retry: Number of retries for timed-out requests (0=no retry)
        http_insecure: Skip TLS verification for upstream calls
    """
    base_url: Optional[str] = None
    storage_root: Optional[str] = None
    repositories_file: Optional[str] = None

    repository_name: str = "galaxy-hosted"
    repository_recipe: str = "hosted"
    remote_url: Optional[str] = None

    http_timeout_s: float = 30.0
    http_retry: int = 0
    http_insecure: bool = False

    def __post_init__(self):
        """Validate settings on construction."""
        if self.base_url is not None and not re.match(_URL_PATTERN, self.base_url):
            raise ValueError(f"Invalid base_url format: {self.base_url}")

        if not self.repository_name or not re.match(_REPO_NAME_PATTERN, self.repository_name):
            raise ValueError(f"Invalid repository_name: {self.repository_name!r}")

        if self.repository_recipe not in RECIPES:
            raise ValueError(
                f"repository_recipe must be one of {', '.join(RECIPES)}, got {self.repository_recipe!r}"
            )

        # Only enforced for the env-defined repository; YAML repositories validate themselves
        if self.repository_recipe == "proxy" and not self.repositories_file and not self.remote_url:
            raise ValueError("remote_url is required for a proxy repository")

        if self.remote_url is not None and not re.match(_URL_PATTERN, self.remote_url):
            raise ValueError(f"Invalid remote_url format: {self.remote_url}")

        if self.http_timeout_s <= 0:
            raise ValueError(f"http_timeout_s must be positive, got {self.http_timeout_s}")

        if self.http_retry < 0:
            raise ValueError(f"http_retry must be non-negative, got {self.http_retry}")

    @property
    def public_url(self) -> Optional[str]:
        """base_url without a trailing slash."""
        return self.base_url.rstrip("/") if self.base_url else None


def create_settings_from_env() -> Settings:
    """
    Load settings from environment variables.

    Environment Variables:
        - GALAXY_BASE_URL (optional)
        - GALAXY_STORAGE_ROOT (optional, default: in-memory)
        - GALAXY_REPOSITORIES_FILE (optional)
        - GALAXY_REPOSITORY_NAME (default: galaxy-hosted)
        - GALAXY_REPOSITORY_RECIPE (default: hosted)
        - GALAXY_REMOTE_URL (required when recipe is proxy)
        - GALAXY_HTTP_TIMEOUT (default: 30.0)
        - GALAXY_HTTP_RETRY (default: 0)
        - GALAXY_HTTP_INSECURE (default: false)

    Returns:
        Settings object with validated configuration

    Raises:
        ValueError: If configuration is invalid

    Note:
        Creates a fresh Settings instance every time (no caching).
    """
    def str_to_bool(value: str) -> bool:
        return value.lower() in ('true', '1', 'yes', 'on')

    def get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        return float(value) if value else default

    def get_int(key: str, default: int) -> int:
        value = os.getenv(key)
        return int(value) if value else default

    return Settings(
        base_url=os.getenv("GALAXY_BASE_URL") or None,
        storage_root=os.getenv("GALAXY_STORAGE_ROOT") or None,
        repositories_file=os.getenv("GALAXY_REPOSITORIES_FILE") or None,
        repository_name=os.getenv("GALAXY_REPOSITORY_NAME", "galaxy-hosted"),
        repository_recipe=os.getenv("GALAXY_REPOSITORY_RECIPE", "hosted").lower(),
        remote_url=os.getenv("GALAXY_REMOTE_URL") or None,
        http_timeout_s=get_float("GALAXY_HTTP_TIMEOUT", 30.0),
        http_retry=get_int("GALAXY_HTTP_RETRY", 0),
        http_insecure=str_to_bool(os.getenv("GALAXY_HTTP_INSECURE", "false")),
    )
