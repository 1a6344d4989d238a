"""
Storage for the translatable, non-revisionable "media" kind.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from sqlalchemy import Select, func, select

from cms_scheduler.entity import ScheduledEntity, TranslationValues
from cms_scheduler.exceptions import EntityNotFoundError
from cms_scheduler.models.media import Media, MediaFieldData
from cms_scheduler.storage.base import EntityStorage, coerce_entity_id


class MediaStorage(EntityStorage):
    entity_type = "media"
    revisionable = False

    async def load(self, entity_id: Any) -> ScheduledEntity | None:
        media_id = coerce_entity_id(entity_id)
        if media_id is None:
            return None
        media = await self.db.get(Media, media_id)
        if media is None:
            return None
        result = await self.db.execute(select(MediaFieldData).where(MediaFieldData.media_id == media_id))
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
        if media.default_langcode not in translations:
            return None
        return ScheduledEntity(
            entity_type=self.entity_type,
            entity_id=media.id,
            bundle=media.bundle,
            default_langcode=media.default_langcode,
            translations=translations,
        )

    async def save(self, entity: ScheduledEntity) -> ScheduledEntity:
        if entity.id is None:
            media = Media(bundle=entity.bundle, default_langcode=entity.default_langcode)
            self.db.add(media)
            await self.db.flush()
            entity.id = media.id
            rows: dict[str, MediaFieldData] = {}
        else:
            media = await self.db.get(Media, entity.id)
            if media is None:
                raise EntityNotFoundError(self.entity_type, entity.id)
            media.default_langcode = entity.default_langcode
            result = await self.db.execute(select(MediaFieldData).where(MediaFieldData.media_id == entity.id))
            rows = {row.langcode: row for row in result.scalars().all()}

        for langcode, values in entity.translations.items():
            row = rows.pop(langcode, None)
            if row is None:
                row = MediaFieldData(media_id=entity.id, langcode=langcode)
                self.db.add(row)
            row.default_langcode = langcode == entity.default_langcode
            for key, value in asdict(values).items():
                setattr(row, key, value)
        for stale in rows.values():
            await self.db.delete(stale)

        await self.db.commit()
        entity.new_revision = False
        return entity

    @classmethod
    def due_query(cls, field_name: str, as_of: int | None, bundles: list[str] | None) -> Select:
        column = getattr(MediaFieldData, field_name)
        due = func.min(column).label("due")
        query = (
            select(MediaFieldData.media_id, due)
            .join(Media, Media.id == MediaFieldData.media_id)
            .where(column.is_not(None))
            .group_by(MediaFieldData.media_id)
            .order_by(due, MediaFieldData.media_id)
        )
        if as_of is not None:
            query = query.where(column <= as_of)
        if bundles is not None:
            query = query.where(Media.bundle.in_(bundles))
        return query
