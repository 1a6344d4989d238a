"""
Plugin Registry

PluginRegistry: in-process registry that stores registered plugins, resolves
scheduler hook types to the implementations that answer them, and dispatches
event notifications to subscribers.

Event notifications (fire_hook) are fire-and-forget: exceptions are caught,
logged, and execution continues. Scheduler hooks (invoke) are also isolated
per implementation, but the caller decides which value stands in for a
failed implementation.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from cms_scheduler.plugins.hooks import hook_names

if TYPE_CHECKING:
    from cms_scheduler.plugins.base import PluginBase

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HookImplementation:
    """One plugin's implementation of one hook name."""

    plugin: PluginBase
    hook_name: str

    @property
    def name(self) -> str:
        return f"{self.plugin.meta.name}_scheduler_{self.hook_name}"

    async def __call__(self, payload: dict[str, Any]) -> Any:
        return await self.plugin.handle_hook(self.hook_name, payload)

    def __str__(self) -> str:
        return self.name


class PluginRegistry:
    """
    In-process registry for scheduler plugins.

    Stores registered plugins by name and maintains an index of hook
    subscriptions in registration order.
    """

    def __init__(self) -> None:
        self._plugins: dict[str, PluginBase] = {}
        self._hook_subscriptions: dict[str, list[PluginBase]] = defaultdict(list)

    # ── Registration ──────────────────────────────────────────────────────────

    def register(self, plugin: PluginBase) -> None:
        """Register a plugin and index its hook subscriptions.

        Registering a second plugin under an existing name replaces the first.
        """
        if plugin.meta.name in self._plugins:
            self.unregister(plugin.meta.name)
        self._plugins[plugin.meta.name] = plugin
        for hook in plugin.meta.hooks:
            self._hook_subscriptions[hook].append(plugin)
        logger.info("Plugin registered: %s v%s", plugin.meta.name, plugin.meta.version)

    def unregister(self, name: str) -> PluginBase | None:
        """Remove a plugin and its hook subscriptions. Returns the removed plugin."""
        plugin = self._plugins.pop(name, None)
        if plugin is None:
            return None
        for hook, subscribers in list(self._hook_subscriptions.items()):
            remaining = [p for p in subscribers if p is not plugin]
            if remaining:
                self._hook_subscriptions[hook] = remaining
            else:
                del self._hook_subscriptions[hook]
        logger.info("Plugin unregistered: %s", name)
        return plugin

    def clear(self) -> None:
        self._plugins.clear()
        self._hook_subscriptions.clear()

    # ── Lookup ────────────────────────────────────────────────────────────────

    def get(self, name: str) -> PluginBase | None:
        """Return the plugin with the given name, or None if not registered."""
        return self._plugins.get(name)

    def all_plugins(self) -> list[PluginBase]:
        """Return all registered plugins in registration order."""
        return list(self._plugins.values())

    def is_registered(self, name: str) -> bool:
        """Return True if a plugin with the given name has been registered."""
        return name in self._plugins

    def get_hook_implementations(self, hook_type: str, entity_type: str) -> list[HookImplementation]:
        """
        Return the implementations of a scheduler hook type for an entity type.

        Implementations are ordered by hook name (generic, entity-type-specific,
        legacy) and then by plugin registration order.
        """
        implementations: list[HookImplementation] = []
        for hook_name in hook_names(hook_type, entity_type):
            for plugin in self._hook_subscriptions.get(hook_name, []):
                implementations.append(HookImplementation(plugin, hook_name))
        return implementations

    # ── Hook dispatch ─────────────────────────────────────────────────────────

    async def invoke(
        self,
        hook_type: str,
        entity_type: str,
        payload: dict[str, Any],
        on_error: Any = None,
    ) -> list[tuple[HookImplementation, Any]]:
        """
        Call every implementation of a scheduler hook type.

        An implementation that raises is logged and contributes `on_error`
        instead of a return value, so one broken plugin cannot stop a pass.

        Returns:
            (implementation, result) pairs in call order.
        """
        results: list[tuple[HookImplementation, Any]] = []
        for implementation in self.get_hook_implementations(hook_type, entity_type):
            try:
                result = await implementation(payload)
            except Exception:
                logger.exception("Hook implementation %s raised", implementation.name)
                result = on_error
            results.append((implementation, result))
        return results

    async def fire_hook(self, hook_name: str, payload: dict[str, Any]) -> list[Any]:
        """
        Fire a hook to all subscribing plugins.

        Each plugin's handle_hook() is called in turn. Exceptions are caught
        and logged so a misbehaving plugin never prevents others from running.

        Returns:
            List of return values from each subscriber (None for no-ops).
        """
        results: list[Any] = []
        for plugin in self._hook_subscriptions.get(hook_name, []):
            try:
                result = await plugin.handle_hook(hook_name, payload)
                results.append(result)
            except Exception as exc:
                logger.warning(
                    "Plugin %s hook %s raised: %s",
                    plugin.meta.name,
                    hook_name,
                    exc,
                )
        return results


# ── Global singleton ──────────────────────────────────────────────────────────
# The wiring layer (cron triggers, routes) passes this to SchedulerManager.
plugin_registry = PluginRegistry()
