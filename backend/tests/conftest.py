"""
Pytest fixtures for The Blacklist tests.
"""

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from cache import CacheStore
from config import DEFAULT_FALLBACK_DATA_PATH, Settings
from records.fallback import FallbackDataset
from store.memory_store import InMemoryRecordStore


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sample_records():
    """Small snapshot covering every status, a redacted record and an out-of-range v2."""
    return [
        {"id": "r1", "name": "Raymond Reddington", "v1": 1, "v2": 150, "status": "active", "category": "Male"},
        {"id": "r2", "name": "Elizabeth Keen", "v1": 20, "v2": 120, "status": "active", "category": "Female"},
        {"id": "r3", "name": "Berlin", "v1": 55, "v2": 250, "status": "deceased", "category": "Male"},
        {"id": "r4", "name": "The Cabal", "v1": 99, "v2": 10, "status": "redacted", "category": "Group"},
        {"id": "r5", "name": "Tom Keen", "v1": 120, "v2": 5, "status": "captured", "category": "Male"},
        {"id": "r6", "name": "Zamani", "v1": 180, "v2": 199, "status": "incarcerated", "category": "Company"},
    ]


@pytest.fixture
def memory_store(sample_records):
    return InMemoryRecordStore(sample_records)


@pytest.fixture
def fallback():
    """The bundled fallback dataset."""
    return FallbackDataset.load(DEFAULT_FALLBACK_DATA_PATH)


@pytest.fixture
def cache_store(clock):
    return CacheStore(default_ttl=1800, max_size=100, clock=clock)


@pytest.fixture
def admin_cache_store(clock):
    return CacheStore(default_ttl=900, max_size=100, clock=clock)


@pytest.fixture
def test_settings():
    return Settings(
        environment="development",
        admin_api_token="",
        firebase_project_id="",
        firebase_client_email="",
        firebase_private_key="",
    )


@pytest.fixture
def services(test_settings, memory_store, fallback, cache_store, admin_cache_store):
    """Service container wired to the in-memory store and a fake clock."""
    from dependencies import build_services
    return build_services(
        test_settings,
        store=memory_store,
        fallback=fallback,
        cache=cache_store,
        admin_cache=admin_cache_store,
    )


@pytest.fixture
def data_service(services):
    return services.data_service


@pytest.fixture
def admin_service(services):
    return services.admin_service


# Import app lazily to avoid circular imports
@pytest.fixture
def app(services, test_settings):
    """FastAPI app with the test service container injected."""
    from config import get_settings
    from dependencies import get_services
    from main import app

    app.dependency_overrides[get_services] = lambda: services
    app.dependency_overrides[get_settings] = lambda: test_settings
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def async_client(app):
    """Create async HTTP client for testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
