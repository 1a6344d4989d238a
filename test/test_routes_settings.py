"""
Tests for the scheduler settings admin routes.
"""

from httpx import AsyncClient
from utils.mock_utils import create_test_bundle
from utils.mocks import MockHookPlugin

from cms_scheduler.plugins import plugin_registry
from cms_scheduler.scheduler.capabilities import capability_registry
from cms_scheduler.scheduler.settings import load_scheduler_config

BASE = "/admin/config/content/scheduler"


class TestGlobalSettings:
    async def test_requires_admin(self, client: AsyncClient):
        assert (await client.get(BASE)).status_code == 401

    async def test_access_key_not_exposed(self, client: AsyncClient, stored_config, admin_headers):
        response = await client.get(BASE, headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert "lightweight_cron_access_key" not in data
        assert data["default_publish_enable"] is True
        assert data["default_publish_past_date"] == "error"

    async def test_update(self, client: AsyncClient, stored_config, admin_headers):
        response = await client.put(
            BASE, json={"log": False, "default_publish_past_date": "schedule"}, headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["log"] is False
        config = load_scheduler_config()
        assert config.log is False
        assert config.default_publish_past_date.value == "schedule"
        assert config.lightweight_cron_access_key == stored_config.lightweight_cron_access_key

    async def test_unknown_setting_rejected(self, client: AsyncClient, admin_headers):
        response = await client.put(BASE, json={"lightweight_cron_access_key": "x"}, headers=admin_headers)

        assert response.status_code == 422


class TestBundleSettings:
    async def test_get_effective_settings(self, client: AsyncClient, test_db, admin_headers):
        await create_test_bundle(test_db, "article", publish_touch=True)

        response = await client.get(f"{BASE}/bundles/content/article", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["overrides"] == {"publish_touch": True}
        assert data["effective"]["publish_touch"] is True
        assert data["effective"]["publish_enable"] is True
        assert data["effective"]["publish_past_date"] == "error"

    async def test_create_bundle_with_label(self, client: AsyncClient, admin_headers):
        response = await client.put(
            f"{BASE}/bundles/media/video",
            json={"label": "Video", "unpublish_enable": False},
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["label"] == "Video"
        assert data["overrides"] == {"unpublish_enable": False}

    async def test_null_removes_override(self, client: AsyncClient, test_db, admin_headers):
        await create_test_bundle(test_db, "article", publish_touch=True, publish_revision=True)

        response = await client.put(
            f"{BASE}/bundles/content/article", json={"publish_touch": None}, headers=admin_headers
        )

        assert response.json()["overrides"] == {"publish_revision": True}

    async def test_missing_bundle_without_label(self, client: AsyncClient, admin_headers):
        response = await client.put(f"{BASE}/bundles/content/page", json={"publish_touch": True}, headers=admin_headers)

        assert response.status_code == 404

    async def test_unknown_entity_type(self, client: AsyncClient, admin_headers):
        response = await client.get(f"{BASE}/bundles/comment/page", headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["error"]["error_code"] == "RESOURCE_ENTITY_TYPE_NOT_FOUND"


class TestPluginsAndModules:
    async def test_list_plugins(self, client: AsyncClient, admin_headers):
        plugin_registry.register(MockHookPlugin("embargo", {"list": []}))

        response = await client.get(f"{BASE}/plugins", headers=admin_headers)

        data = response.json()
        assert [p["entity_type"] for p in data["scheduler_plugins"]] == ["content", "media"]
        assert data["extensions"] == [
            {"name": "embargo", "version": "1.0.0", "description": "Mock plugin", "hooks": ["list"]}
        ]

    async def test_disable_and_enable_module(self, client: AsyncClient, stored_config, admin_headers):
        response = await client.put(f"{BASE}/modules/media", json={"enabled": False}, headers=admin_headers)

        assert response.json()["entity_types"] == ["content"]
        assert load_scheduler_config().enabled_modules == ["content"]
        assert capability_registry.get_plugin("media") is None

        response = await client.put(f"{BASE}/modules/media", json={"enabled": True}, headers=admin_headers)

        assert response.json()["entity_types"] == ["content", "media"]

    async def test_unknown_module(self, client: AsyncClient, admin_headers):
        response = await client.put(f"{BASE}/modules/forum", json={"enabled": True}, headers=admin_headers)

        assert response.status_code == 404
