"""
Scheduler events

Four notifications surround every transition: PRE_PUBLISH / PUBLISH and
PRE_UNPUBLISH / UNPUBLISH. Listeners receive a SchedulerEvent and may change
the item in place or replace it with event.set_entity(); the dispatcher
returns whatever item the event holds once every listener has run.

After the direct listeners, plugins subscribed to the event name
("scheduler.<topic>.<kind>") are notified through the plugin registry.
"""

from __future__ import annotations

import enum
import inspect
import logging
from collections import defaultdict
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cms_scheduler.entity import EntityTranslation
    from cms_scheduler.plugins.registry import PluginRegistry

logger = logging.getLogger(__name__)


class SchedulerEventKind(str, enum.Enum):
    PRE_PUBLISH = "pre_publish"
    PUBLISH = "publish"
    PRE_UNPUBLISH = "pre_unpublish"
    UNPUBLISH = "unpublish"


class SchedulerEvent:
    """Wraps the item being transitioned."""

    def __init__(self, kind: SchedulerEventKind, entity: EntityTranslation, topic: str) -> None:
        self.kind = kind
        self.topic = topic
        self._entity = entity

    @property
    def name(self) -> str:
        return event_name(self.topic, self.kind)

    def get_entity(self) -> EntityTranslation:
        return self._entity

    def set_entity(self, entity: EntityTranslation) -> None:
        self._entity = entity


def event_name(topic: str, kind: SchedulerEventKind) -> str:
    return f"scheduler.{topic}.{kind.value}"


Listener = Callable[[SchedulerEvent], Any]


class EventDispatcher:
    """Ordered listeners per event kind, optionally limited to one entity type."""

    def __init__(self, plugins: PluginRegistry | None = None) -> None:
        self._listeners: dict[SchedulerEventKind, list[tuple[Listener, str | None]]] = defaultdict(list)
        self._plugins = plugins

    def subscribe(self, kind: SchedulerEventKind, listener: Listener, entity_type: str | None = None) -> None:
        self._listeners[kind].append((listener, entity_type))

    def unsubscribe(self, kind: SchedulerEventKind, listener: Listener) -> None:
        self._listeners[kind] = [item for item in self._listeners[kind] if item[0] is not listener]

    def clear(self) -> None:
        self._listeners.clear()

    def listeners(self, kind: SchedulerEventKind) -> list[Listener]:
        return [listener for listener, _ in self._listeners.get(kind, [])]

    async def dispatch(self, kind: SchedulerEventKind, entity: EntityTranslation, topic: str) -> EntityTranslation:
        """
        Notify every listener of `kind` in subscription order.

        Listeners may be plain or async callables. Exceptions raised by
        direct listeners propagate to the caller.
        """
        event = SchedulerEvent(kind, entity, topic)
        for listener, entity_type in list(self._listeners.get(kind, [])):
            if entity_type is not None and entity_type != event.get_entity().entity_type:
                continue
            result = listener(event)
            if inspect.isawaitable(result):
                await result
        if self._plugins is not None:
            await self._plugins.fire_hook(event.name, {"event": event})
        return event.get_entity()
