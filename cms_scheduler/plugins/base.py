"""
Plugin Base Classes

PluginMeta: declarative metadata for a plugin (name, version, hooks, config schema).
PluginBase: abstract base class all plugins must subclass.
ProcessResult: what a publish_process / unpublish_process implementation returns.
"""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


class ProcessResult(enum.IntEnum):
    """Outcome reported by a *_process hook implementation."""

    FAILED = -1
    NOT_HANDLED = 0
    HANDLED = 1


@dataclass
class PluginMeta:
    """
    Declarative metadata describing a plugin.

    Attributes:
        name:          Machine-readable slug, e.g. "embargo". Hook implementations
                       are reported as "<name>_scheduler_<hook>".
        version:       Semver string, e.g. "1.0.0".
        description:   Human-readable description shown in the admin API.
        author:        Plugin author (defaults to "CMS Core Team").
        hooks:         Hook names this plugin implements. Either scheduler hook
                       names ("list", "content_list", "id_list", ...) or event
                       names ("scheduler.content.publish", ...).
        config_schema: JSON Schema fragments describing configurable options.
    """

    name: str
    version: str
    description: str
    author: str = "CMS Core Team"
    hooks: list[str] = field(default_factory=list)
    config_schema: dict[str, Any] = field(default_factory=dict)


class PluginBase(ABC):
    """
    Abstract base class for all scheduler plugins.

    Subclasses must implement the `meta` property and usually `handle_hook`.
    Lifecycle methods have default no-op implementations.
    """

    @property
    @abstractmethod
    def meta(self) -> PluginMeta:
        """Return the plugin's metadata."""
        ...

    async def on_load(self, config: dict[str, Any]) -> None:  # noqa: B027
        """Called once at startup with the plugin's persisted config dict."""

    async def on_unload(self) -> None:  # noqa: B027
        """Called when the plugin is removed or the app shuts down."""

    async def handle_hook(self, hook_name: str, payload: dict[str, Any]) -> Any:
        """
        Receive and process a hook invocation.

        The payload and the meaning of the return value depend on the hook type:

            list                   {"entity_type", "process"} -> list of ids
            list_alter             {"entity_type", "process", "ids"} -> None,
                                   edit payload["ids"] in place
            publishing_allowed     {"entity"} -> False to deny, None to abstain
            unpublishing_allowed   {"entity"} -> False to deny, None to abstain
            publish_process        {"entity"} -> ProcessResult or None
            unpublish_process      {"entity"} -> ProcessResult or None
            hide_publish_date      {"entity", "bundle"} -> True to hide
            hide_unpublish_date    {"entity", "bundle"} -> True to hide
            scheduler.<topic>.<k>  {"event"} -> ignored

        `entity` is the EntityTranslation being processed.
        """
        return None
