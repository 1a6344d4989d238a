"""
Actions

The visible state change of a transition is performed by an action looked up
by id from the capability descriptor. Actions set the status on the
translation, make the revision being saved the default one and save the item.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from cms_scheduler.entity import EntityTranslation
from cms_scheduler.storage import EntityStorage

logger = logging.getLogger(__name__)


class Action(ABC):
    def __init__(self, action_id: str, label: str) -> None:
        self.id = action_id
        self.label = label

    @abstractmethod
    async def execute(self, entity: EntityTranslation, storage: EntityStorage) -> None: ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__}({self.id})>"


class PublishAction(Action):
    async def execute(self, entity: EntityTranslation, storage: EntityStorage) -> None:
        entity.set_published()
        entity.entity.is_default_revision = True
        await storage.save(entity.entity)


class UnpublishAction(Action):
    async def execute(self, entity: EntityTranslation, storage: EntityStorage) -> None:
        entity.set_unpublished()
        entity.entity.is_default_revision = True
        await storage.save(entity.entity)


class ActionRegistry:
    def __init__(self) -> None:
        self._actions: dict[str, Action] = {}

    def register(self, action: Action) -> None:
        self._actions[action.id] = action

    def remove(self, action_id: str) -> Action | None:
        return self._actions.pop(action_id, None)

    def load(self, action_id: str) -> Action | None:
        return self._actions.get(action_id)

    def all(self) -> list[Action]:
        return list(self._actions.values())


def create_default_actions() -> ActionRegistry:
    registry = ActionRegistry()
    registry.register(PublishAction("content_publish_action", "Publish content"))
    registry.register(UnpublishAction("content_unpublish_action", "Unpublish content"))
    registry.register(PublishAction("media_publish_action", "Publish media"))
    registry.register(UnpublishAction("media_unpublish_action", "Unpublish media"))
    return registry


action_registry = create_default_actions()
