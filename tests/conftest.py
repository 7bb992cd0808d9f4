"""Root pytest configuration for galaxy-registry tests."""
import pytest

from galaxy_registry.handlers.hosted import HostedHandler
from galaxy_registry.handlers.proxy import ProxyHandler
from galaxy_registry.response_builder import GalaxyResponseBuilder
from galaxy_registry.settings import Settings
from galaxy_registry.storage.adapter import ContentStoreAdapter
from galaxy_registry.storage.memory_store import InMemoryContentStore
from galaxy_registry.upstream import UpstreamClient

from .fakes.fake_transport import FakeTransport
from .helpers.archives import build_collection_tarball

UPSTREAM_URL = "https://galaxy.example.com"
REPO_URL = "http://localhost:8080/repository/galaxy-proxy"
HOSTED_URL = "http://localhost:8080/repository/galaxy-hosted"


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "slow: mark test as slow (may take significant time)"
    )


@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    """Keep host environment from leaking into settings."""
    for key in (
        "GALAXY_BASE_URL",
        "GALAXY_STORAGE_ROOT",
        "GALAXY_REPOSITORIES_FILE",
        "GALAXY_REPOSITORY_NAME",
        "GALAXY_REPOSITORY_RECIPE",
        "GALAXY_REMOTE_URL",
        "GALAXY_HTTP_TIMEOUT",
        "GALAXY_HTTP_RETRY",
        "GALAXY_HTTP_INSECURE",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def settings():
    """Standard test settings: single in-memory hosted repository."""
    return Settings()


@pytest.fixture
def store():
    """Standard in-memory content store."""
    return InMemoryContentStore()


@pytest.fixture
def adapter(store):
    return ContentStoreAdapter(store)


@pytest.fixture
def builder():
    return GalaxyResponseBuilder()


@pytest.fixture
def transport():
    """Fake upstream transport recording every call."""
    return FakeTransport()


@pytest.fixture
def upstream(transport):
    return UpstreamClient(transport, UPSTREAM_URL)


@pytest.fixture
def hosted_handler(adapter, builder):
    return HostedHandler(adapter, builder)


@pytest.fixture
def proxy_handler(adapter, upstream):
    return ProxyHandler(adapter, upstream)


@pytest.fixture
def collection_tarball():
    """community.general 5.0.0 collection archive."""
    return build_collection_tarball("community", "general", "5.0.0")
