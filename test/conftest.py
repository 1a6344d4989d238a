"""
Pytest configuration and fixtures for scheduler tests
"""

import os
import sys
from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))  # noqa: PTH100, PTH118, PTH119, PTH120

# Settings are read on import, so the environment is prepared first.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ADMIN_TOKEN"] = "test-admin-token"
os.environ["SCHEDULER_CRON_INTERVAL_MINUTES"] = "0"
# Wide terminal so rich tables in CLI output are not truncated.
os.environ["COLUMNS"] = "200"

from cms_scheduler.database import Base, get_db  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# One shared in-memory connection so every session sees the same tables.
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

import cms_scheduler.database as database_module  # noqa: E402

database_module.engine = test_engine
database_module.AsyncSessionLocal = TestSessionLocal

from cms_scheduler.plugins import PluginRegistry, plugin_registry  # noqa: E402
from cms_scheduler.plugins import loader as plugin_loader  # noqa: E402
from cms_scheduler.scheduler import settings as scheduler_settings  # noqa: E402
from cms_scheduler.scheduler.actions import create_default_actions  # noqa: E402
from cms_scheduler.scheduler.capabilities import capability_registry, create_default_registry  # noqa: E402
from cms_scheduler.scheduler.cron import event_dispatcher  # noqa: E402
from cms_scheduler.scheduler.events import EventDispatcher  # noqa: E402
from cms_scheduler.scheduler.manager import SchedulerManager  # noqa: E402
from cms_scheduler.scheduler.settings import SchedulerConfig, save_scheduler_config  # noqa: E402
from main import app  # noqa: E402
from utils.mock_utils import NOW  # noqa: E402

ADMIN_TOKEN = "test-admin-token"
ACCESS_KEY = "test-access-key"


@pytest.fixture(autouse=True)
def settings_files(tmp_path, monkeypatch):
    """Point the scheduler and plugin config files at a per-test directory."""
    settings_file = tmp_path / "scheduler_settings.json"
    monkeypatch.setattr(scheduler_settings, "_SETTINGS_FILE", settings_file)
    monkeypatch.setattr(plugin_loader, "_PLUGINS_CONFIG_FILE", tmp_path / "plugins_config.json")
    return settings_file


@pytest.fixture(autouse=True)
def reset_global_registries():
    """Leave the process-wide registries as a fresh process would have them."""
    yield
    plugin_registry.clear()
    event_dispatcher.clear()
    capability_registry.set_enabled_modules(["content", "media"])
    capability_registry.invalidate()


@pytest.fixture(scope="function")
async def setup_test_database():
    """Create all tables before the test and drop them afterwards."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(scope="function")
async def test_db(setup_test_database) -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionLocal() as session:
        yield session


@pytest.fixture
def config() -> SchedulerConfig:
    return SchedulerConfig(lightweight_cron_access_key=ACCESS_KEY)


@pytest.fixture
def stored_config(config: SchedulerConfig) -> SchedulerConfig:
    """The engine settings, written to the settings file the routes read."""
    save_scheduler_config(config)
    return config


@pytest.fixture
def plugins() -> PluginRegistry:
    return PluginRegistry()


@pytest.fixture
def events(plugins: PluginRegistry) -> EventDispatcher:
    return EventDispatcher(plugins)


@pytest.fixture
def actions():
    return create_default_actions()


@pytest.fixture
def capabilities():
    return create_default_registry()


@pytest.fixture
def make_manager(test_db, config, capabilities, plugins, events, actions):
    """Build a SchedulerManager on the test session with a fixed clock."""

    def _make(**overrides) -> SchedulerManager:
        kwargs = {
            "config": config,
            "capabilities": capabilities,
            "plugins": plugins,
            "events": events,
            "actions": actions,
            "clock": lambda: NOW,
            "timezone": "UTC",
        }
        kwargs.update(overrides)
        return SchedulerManager(test_db, **kwargs)

    return _make


@pytest.fixture
def manager(make_manager) -> SchedulerManager:
    return make_manager()


def override_get_db():
    """Override database dependency for testing"""

    async def _override():
        async with TestSessionLocal() as session:
            yield session

    return _override


@pytest.fixture
async def client(setup_test_database) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app, without running its lifespan."""
    app.dependency_overrides[get_db] = override_get_db()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> dict:
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}
