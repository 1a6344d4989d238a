"""
Entity storage base class

Each content kind persists its items differently. EntityStorage is the seam
the engine talks to: load an item (latest revision where the kind keeps
revisions), save it back, and build the due-item query for a scheduling field.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from sqlalchemy import Select
from sqlalchemy.ext.asyncio import AsyncSession

from cms_scheduler.entity import ScheduledEntity

logger = logging.getLogger(__name__)


def coerce_entity_id(entity_id: Any) -> int | None:
    """Return `entity_id` as an int, or None if it cannot be one.

    Ids added by list hooks are not trusted to be integers.
    """
    if isinstance(entity_id, bool):
        return None
    try:
        return int(entity_id)
    except (TypeError, ValueError):
        return None


class EntityStorage(ABC):
    """Storage handler for one content kind."""

    entity_type: str
    revisionable: bool = False

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @abstractmethod
    async def load(self, entity_id: Any) -> ScheduledEntity | None:
        """Load the default revision of an item, or None if it does not exist."""

    @abstractmethod
    async def save(self, entity: ScheduledEntity) -> ScheduledEntity:
        """Persist the entity and all of its translations, then commit."""

    @classmethod
    @abstractmethod
    def due_query(cls, field_name: str, as_of: int | None, bundles: list[str] | None) -> Select:
        """
        Build the query selecting item ids with a pending `field_name`.

        Rows are `(id, due)` where `due` is the earliest value of the field
        over the item's translations, ordered earliest first. `as_of` bounds
        the field from above and `bundles` restricts the bundles; None means
        no restriction.
        """

    async def get_latest_revision_id(self, entity_id: Any) -> int | None:
        return None

    async def load_revision(self, revision_id: int) -> ScheduledEntity | None:
        return None

    async def load_latest(self, entity_id: Any) -> ScheduledEntity | None:
        """Load the latest revision of a revisionable item, else the item itself."""
        entity = await self.load(entity_id)
        if entity is None or not self.revisionable:
            return entity
        revision_id = await self.get_latest_revision_id(entity.id)
        if revision_id is None or revision_id == entity.revision_id:
            return entity
        return await self.load_revision(revision_id)
