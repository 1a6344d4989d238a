"""
Capability registry

Each content kind the scheduler can work on is described by a SchedulerPlugin:
where its items are stored, how its bundles are found, which actions publish
and unpublish it and which event topic it uses. The registry collects them
from their providers, filters out those whose module is disabled and caches
the result until the configuration changes.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from cms_scheduler.models.bundle import EntityBundle
from cms_scheduler.scheduler.process import Process
from cms_scheduler.storage import ContentStorage, EntityStorage, MediaStorage
from cms_scheduler.utils.cache import MemoryCache

logger = logging.getLogger(__name__)

CACHE_KEY = "scheduler.plugins"


class SchedulerPlugin:
    """Describes one schedulable content kind."""

    plugin_id: str
    entity_type: str
    label: str
    type_field_name: str = "bundle"
    publish_action: str
    unpublish_action: str
    event_topic: str
    storage_class: type[EntityStorage]
    weight: int = 0
    provider: str = "cms_scheduler"
    # Module that must be enabled for the plugin to be used; None means always.
    dependency: str | None = None

    @property
    def revisionable(self) -> bool:
        return self.storage_class.revisionable

    def storage(self, db: AsyncSession) -> EntityStorage:
        return self.storage_class(db)

    def action_id(self, process: Process) -> str:
        return self.publish_action if process is Process.PUBLISH else self.unpublish_action

    async def get_types(self, db: AsyncSession) -> list[EntityBundle]:
        """Return every bundle of this kind, ordered by machine name."""
        result = await db.execute(
            select(EntityBundle).where(EntityBundle.entity_type == self.entity_type).order_by(EntityBundle.bundle)
        )
        return list(result.scalars().all())

    async def get_bundle(self, db: AsyncSession, bundle: str) -> EntityBundle | None:
        result = await db.execute(
            select(EntityBundle).where(
                EntityBundle.entity_type == self.entity_type,
                EntityBundle.bundle == bundle,
            )
        )
        return result.scalars().first()

    def due_query(self, field_name: str, as_of: int | None, bundles: list[str] | None) -> Select:
        return self.storage_class.due_query(field_name, as_of, bundles)

    def describe(self) -> dict[str, Any]:
        return {
            "id": self.plugin_id,
            "entity_type": self.entity_type,
            "label": self.label,
            "type_field_name": self.type_field_name,
            "publish_action": self.publish_action,
            "unpublish_action": self.unpublish_action,
            "event_topic": self.event_topic,
            "revisionable": self.revisionable,
            "weight": self.weight,
            "provider": self.provider,
            "dependency": self.dependency,
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__}({self.entity_type})>"


class ContentScheduler(SchedulerPlugin):
    plugin_id = "content_scheduler"
    entity_type = "content"
    label = "Content"
    publish_action = "content_publish_action"
    unpublish_action = "content_unpublish_action"
    event_topic = "content"
    storage_class = ContentStorage
    weight = 0
    dependency = "content"


class MediaScheduler(SchedulerPlugin):
    plugin_id = "media_scheduler"
    entity_type = "media"
    label = "Media"
    publish_action = "media_publish_action"
    unpublish_action = "media_unpublish_action"
    event_topic = "media"
    storage_class = MediaStorage
    weight = 10
    dependency = "media"


class CapabilityRegistry:
    """Registered SchedulerPlugins, filtered by enabled module and cached."""

    def __init__(self, enabled_modules: Iterable[str] | None = None, cache: MemoryCache | None = None) -> None:
        self._definitions: dict[str, SchedulerPlugin] = {}
        self._enabled_modules: set[str] | None = set(enabled_modules) if enabled_modules is not None else None
        self._cache = cache or MemoryCache(cache_type="scheduler_plugins")

    # ── Definitions ───────────────────────────────────────────────────────────

    def register(self, plugin: SchedulerPlugin, provider: str | None = None) -> None:
        if provider is not None:
            plugin.provider = provider
        self._definitions[plugin.plugin_id] = plugin
        logger.debug("Scheduler plugin registered: %s (%s)", plugin.plugin_id, plugin.provider)
        self.invalidate()

    def unregister(self, plugin_id: str) -> None:
        if self._definitions.pop(plugin_id, None) is not None:
            self.invalidate()

    def get_definitions(self) -> list[SchedulerPlugin]:
        """All registered plugins regardless of module state, sorted by weight."""
        return sorted(self._definitions.values(), key=lambda p: (p.weight, p.plugin_id))

    # ── Module state ──────────────────────────────────────────────────────────

    def is_module_enabled(self, module: str | None) -> bool:
        if module is None or self._enabled_modules is None:
            return True
        return module in self._enabled_modules

    def set_enabled_modules(self, modules: Iterable[str]) -> None:
        modules = set(modules)
        if modules != self._enabled_modules:
            self._enabled_modules = modules
            self.invalidate()

    def set_module_enabled(self, module: str, enabled: bool) -> None:
        if self._enabled_modules is None:
            modules = {p.dependency for p in self._definitions.values() if p.dependency}
        else:
            modules = set(self._enabled_modules)
        if enabled:
            modules.add(module)
        else:
            modules.discard(module)
        self.set_enabled_modules(modules)

    # ── Lookup ────────────────────────────────────────────────────────────────

    def get_plugins(self, provider: str | None = None) -> list[SchedulerPlugin]:
        """
        Return the usable plugins, sorted by weight.

        The unfiltered list is cached; a `provider` filter always rebuilds
        and its result is never cached.
        """
        if provider is None:
            cached = self._cache.get(CACHE_KEY)
            if cached:
                return list(cached)

        plugins = [
            plugin
            for plugin in self.get_definitions()
            if self.is_module_enabled(plugin.dependency) and (provider is None or plugin.provider == provider)
        ]

        if provider is None:
            self._cache.set(CACHE_KEY, plugins)
        return list(plugins)

    def get_plugin(self, entity_type: str) -> SchedulerPlugin | None:
        for plugin in self.get_plugins():
            if plugin.entity_type == entity_type:
                return plugin
        return None

    def get_plugin_entity_types(self, provider: str | None = None) -> list[str]:
        return [plugin.entity_type for plugin in self.get_plugins(provider)]

    def invalidate(self) -> None:
        self._cache.delete(CACHE_KEY)

    def cache_stats(self) -> dict:
        return self._cache.get_stats()


def create_default_registry(enabled_modules: Iterable[str] | None = None) -> CapabilityRegistry:
    registry = CapabilityRegistry(enabled_modules)
    registry.register(ContentScheduler())
    registry.register(MediaScheduler())
    return registry


capability_registry = create_default_registry()
