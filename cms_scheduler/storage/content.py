"""
Storage for the revisionable, translatable "content" kind.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any

from sqlalchemy import Select, and_, func, select

from cms_scheduler.entity import ScheduledEntity, TranslationValues
from cms_scheduler.exceptions import EntityNotFoundError
from cms_scheduler.models.content import Content, ContentFieldRevision, ContentRevision
from cms_scheduler.storage.base import EntityStorage, coerce_entity_id

logger = logging.getLogger(__name__)


class ContentStorage(EntityStorage):
    entity_type = "content"
    revisionable = True

    async def load(self, entity_id: Any) -> ScheduledEntity | None:
        content_id = coerce_entity_id(entity_id)
        if content_id is None:
            return None
        content = await self.db.get(Content, content_id)
        if content is None or content.revision_id is None:
            return None
        return await self._build(content, content.revision_id)

    async def get_latest_revision_id(self, entity_id: Any) -> int | None:
        content_id = coerce_entity_id(entity_id)
        if content_id is None:
            return None
        result = await self.db.execute(
            select(func.max(ContentRevision.revision_id)).where(ContentRevision.content_id == content_id)
        )
        return result.scalar_one_or_none()

    async def load_revision(self, revision_id: int) -> ScheduledEntity | None:
        revision = await self.db.get(ContentRevision, revision_id)
        if revision is None:
            return None
        content = await self.db.get(Content, revision.content_id)
        if content is None:
            return None
        entity = await self._build(content, revision_id)
        entity.revision_log_message = revision.revision_log
        return entity

    async def _build(self, content: Content, revision_id: int) -> ScheduledEntity:
        result = await self.db.execute(
            select(ContentFieldRevision).where(ContentFieldRevision.revision_id == revision_id)
        )
        translations = {
            row.langcode: TranslationValues(
                title=row.title,
                status=row.status,
                publish_on=row.publish_on,
                unpublish_on=row.unpublish_on,
                created=row.created,
                changed=row.changed,
            )
            for row in result.scalars().all()
        }
        return ScheduledEntity(
            entity_type=self.entity_type,
            entity_id=content.id,
            bundle=content.bundle,
            default_langcode=content.default_langcode,
            translations=translations,
            revision_id=revision_id,
            revisionable=True,
            is_default_revision=content.revision_id == revision_id,
        )

    async def save(self, entity: ScheduledEntity) -> ScheduledEntity:
        if entity.id is None:
            content = Content(bundle=entity.bundle, default_langcode=entity.default_langcode)
            self.db.add(content)
            await self.db.flush()
            entity.id = content.id
        else:
            content = await self.db.get(Content, entity.id)
            if content is None:
                raise EntityNotFoundError(self.entity_type, entity.id)

        if entity.new_revision or entity.revision_id is None:
            revision = ContentRevision(
                content_id=entity.id,
                revision_log=entity.revision_log_message,
                revision_created=entity.revision_created,
            )
            self.db.add(revision)
            await self.db.flush()
            entity.revision_id = revision.revision_id
            for langcode, values in entity.translations.items():
                self.db.add(
                    ContentFieldRevision(
                        revision_id=revision.revision_id,
                        langcode=langcode,
                        content_id=entity.id,
                        default_langcode=langcode == entity.default_langcode,
                        **asdict(values),
                    )
                )
        else:
            result = await self.db.execute(
                select(ContentFieldRevision).where(ContentFieldRevision.revision_id == entity.revision_id)
            )
            rows = {row.langcode: row for row in result.scalars().all()}
            for langcode, values in entity.translations.items():
                row = rows.pop(langcode, None)
                if row is None:
                    row = ContentFieldRevision(
                        revision_id=entity.revision_id,
                        langcode=langcode,
                        content_id=entity.id,
                    )
                    self.db.add(row)
                row.default_langcode = langcode == entity.default_langcode
                for key, value in asdict(values).items():
                    setattr(row, key, value)
            for stale in rows.values():
                await self.db.delete(stale)

        if entity.is_default_revision:
            content.revision_id = entity.revision_id
        content.default_langcode = entity.default_langcode

        await self.db.commit()
        entity.new_revision = False
        logger.debug("Saved content %s at revision %s", entity.id, entity.revision_id)
        return entity

    @classmethod
    def due_query(cls, field_name: str, as_of: int | None, bundles: list[str] | None) -> Select:
        column = getattr(ContentFieldRevision, field_name)
        latest = (
            select(
                ContentRevision.content_id.label("content_id"),
                func.max(ContentRevision.revision_id).label("revision_id"),
            )
            .group_by(ContentRevision.content_id)
            .subquery()
        )
        due = func.min(column).label("due")
        query = (
            select(ContentFieldRevision.content_id, due)
            .join(
                latest,
                and_(
                    latest.c.content_id == ContentFieldRevision.content_id,
                    latest.c.revision_id == ContentFieldRevision.revision_id,
                ),
            )
            .join(Content, Content.id == ContentFieldRevision.content_id)
            .where(column.is_not(None))
            .group_by(ContentFieldRevision.content_id)
            .order_by(due, ContentFieldRevision.content_id)
        )
        if as_of is not None:
            query = query.where(column <= as_of)
        if bundles is not None:
            query = query.where(Content.bundle.in_(bundles))
        return query
