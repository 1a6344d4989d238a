"""
Plugin Loader

Handles reading/writing plugin configuration from the JSON file named by
`settings.plugins_config_file` and initialising the configured plugins at
application startup.

Each entry maps a plugin name to its config. Third-party plugins are located
by a dotted "class" path ("package.module:ClassName" or "package.module.ClassName"):

    {
        "embargo": {"enabled": true, "class": "acme.scheduler:EmbargoPlugin", "days": 3}
    }
"""

from __future__ import annotations

import copy
import importlib
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from cms_scheduler.config import settings

if TYPE_CHECKING:
    from cms_scheduler.plugins.base import PluginBase
    from cms_scheduler.plugins.registry import PluginRegistry

logger = logging.getLogger(__name__)

# ── Config file location ──────────────────────────────────────────────────────
_PLUGINS_CONFIG_FILE = Path(settings.plugins_config_file)

_DEFAULT_CONFIG: dict[str, dict[str, Any]] = {}


# ── Config I/O ────────────────────────────────────────────────────────────────


def load_plugins_config() -> dict[str, dict[str, Any]]:
    """
    Load plugin configuration from disk.

    Returns defaults if the file does not exist or cannot be parsed.
    """
    if _PLUGINS_CONFIG_FILE.exists():
        try:
            return json.loads(_PLUGINS_CONFIG_FILE.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Failed to read plugins config: %s", exc)
    return copy.deepcopy(_DEFAULT_CONFIG)


def save_plugins_config(config: dict[str, dict[str, Any]]) -> None:
    """Persist plugin configuration to disk."""
    _PLUGINS_CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    _PLUGINS_CONFIG_FILE.write_text(
        json.dumps(config, indent=2, ensure_ascii=False),
        encoding="utf-8",
    )


def import_plugin_class(path: str) -> type[PluginBase]:
    """Import a plugin class from "module:Class" or "module.Class"."""
    if ":" in path:
        module_name, _, class_name = path.partition(":")
    else:
        module_name, _, class_name = path.rpartition(".")
    if not module_name or not class_name:
        raise ImportError(f"Invalid plugin class path '{path}'")
    module = importlib.import_module(module_name)
    try:
        return getattr(module, class_name)
    except AttributeError as exc:
        raise ImportError(f"Module '{module_name}' has no attribute '{class_name}'") from exc


# ── Startup / shutdown ────────────────────────────────────────────────────────


async def initialize_plugins(
    registry: PluginRegistry,
    config: dict[str, dict[str, Any]] | None = None,
) -> list[str]:
    """
    Load and register every enabled plugin in the config.

    A plugin that cannot be imported or fails in on_load() is logged and
    skipped; the others are still registered.

    Returns:
        Names of the plugins that were registered.
    """
    if config is None:
        config = load_plugins_config()

    loaded: list[str] = []
    for name, plugin_config in config.items():
        if not plugin_config.get("enabled", True):
            logger.info("Plugin %s is disabled, skipping", name)
            continue
        class_path = plugin_config.get("class")
        if not class_path:
            logger.warning("Plugin %s has no 'class' entry, skipping", name)
            continue
        try:
            plugin = import_plugin_class(class_path)()
            await plugin.on_load(plugin_config)
        except Exception as exc:
            logger.warning("Failed to load plugin %s (%s): %s", name, class_path, exc)
            continue
        registry.register(plugin)
        loaded.append(plugin.meta.name)

    logger.info("Plugin initialisation complete, %d plugins loaded", len(loaded))
    return loaded


async def shutdown_plugins(registry: PluginRegistry) -> None:
    """Call on_unload() on every registered plugin and empty the registry."""
    for plugin in registry.all_plugins():
        try:
            await plugin.on_unload()
        except Exception as exc:
            logger.warning("Plugin %s on_unload raised: %s", plugin.meta.name, exc)
    registry.clear()
