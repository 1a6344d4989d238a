"""
Schedulable item view

ScheduledEntity is the transient, mutable representation of one stored item
that the engine works on during a transition. Field values live per language
in `translations`; revision bookkeeping is shared by all translations.

EntityTranslation is a handle on one language of an entity. Mutating it
mutates the parent entity, and saving it saves the whole entity, so several
translations of one item can be processed in turn within a single pass.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class TranslationValues:
    """Field values of one language of an item."""

    title: str
    status: bool = False
    publish_on: int | None = None
    unpublish_on: int | None = None
    created: int = 0
    changed: int = 0


class ScheduledEntity:
    """A loaded item with all of its translations."""

    def __init__(
        self,
        entity_type: str,
        entity_id: int | None,
        bundle: str,
        default_langcode: str,
        translations: dict[str, TranslationValues],
        revision_id: int | None = None,
        revisionable: bool = False,
        is_default_revision: bool = True,
    ) -> None:
        if default_langcode not in translations:
            raise ValueError(f"Default language '{default_langcode}' has no translation values")
        self.entity_type = entity_type
        self.id = entity_id
        self.bundle = bundle
        self.default_langcode = default_langcode
        self.translations = translations
        self.revision_id = revision_id
        self.revisionable = revisionable
        self.is_default_revision = is_default_revision

        self.new_revision = False
        self.revision_log_message: str | None = None
        self.revision_created: int | None = None

    def get_translation_languages(self) -> list[str]:
        """Langcodes of all translations, default language first."""
        others = sorted(code for code in self.translations if code != self.default_langcode)
        return [self.default_langcode, *others]

    def has_translation(self, langcode: str) -> bool:
        return langcode in self.translations

    def get_translation(self, langcode: str) -> EntityTranslation:
        if langcode not in self.translations:
            raise KeyError(f"{self.entity_type} {self.id} has no '{langcode}' translation")
        return EntityTranslation(self, langcode)

    def add_translation(self, langcode: str, values: TranslationValues) -> EntityTranslation:
        self.translations[langcode] = values
        return EntityTranslation(self, langcode)

    def default_translation(self) -> EntityTranslation:
        return EntityTranslation(self, self.default_langcode)

    def label(self) -> str:
        return self.translations[self.default_langcode].title

    def set_new_revision(self, value: bool = True) -> None:
        self.new_revision = value

    def __repr__(self) -> str:
        return f"<ScheduledEntity({self.entity_type} {self.id}, bundle={self.bundle}, rev={self.revision_id})>"


class EntityTranslation:
    """One language of a ScheduledEntity."""

    def __init__(self, entity: ScheduledEntity, langcode: str) -> None:
        self.entity = entity
        self.langcode = langcode

    @property
    def _values(self) -> TranslationValues:
        return self.entity.translations[self.langcode]

    # ── Identity ─────────────────────────────────────────────────────────────

    @property
    def id(self) -> int | None:
        return self.entity.id

    @property
    def entity_type(self) -> str:
        return self.entity.entity_type

    @property
    def bundle(self) -> str:
        return self.entity.bundle

    @property
    def is_default_translation(self) -> bool:
        return self.langcode == self.entity.default_langcode

    def label(self) -> str:
        return self._values.title

    # ── Scheduling fields ────────────────────────────────────────────────────

    @property
    def publish_on(self) -> int | None:
        return self._values.publish_on

    @publish_on.setter
    def publish_on(self, value: int | None) -> None:
        self._values.publish_on = value

    @property
    def unpublish_on(self) -> int | None:
        return self._values.unpublish_on

    @unpublish_on.setter
    def unpublish_on(self, value: int | None) -> None:
        self._values.unpublish_on = value

    def get_date(self, field_name: str) -> int | None:
        if field_name not in ("publish_on", "unpublish_on"):
            raise AttributeError(field_name)
        return getattr(self._values, field_name)

    def set_date(self, field_name: str, value: int | None) -> None:
        if field_name not in ("publish_on", "unpublish_on"):
            raise AttributeError(field_name)
        setattr(self._values, field_name, value)

    # ── Status and timestamps ────────────────────────────────────────────────

    def is_published(self) -> bool:
        return self._values.status

    def set_published(self) -> EntityTranslation:
        self._values.status = True
        return self

    def set_unpublished(self) -> EntityTranslation:
        self._values.status = False
        return self

    @property
    def created(self) -> int:
        return self._values.created

    def set_created_time(self, timestamp: int) -> EntityTranslation:
        self._values.created = timestamp
        return self

    @property
    def changed(self) -> int:
        return self._values.changed

    def set_changed_time(self, timestamp: int) -> EntityTranslation:
        self._values.changed = timestamp
        return self

    # ── Revisions (shared by all translations) ───────────────────────────────

    @property
    def revisionable(self) -> bool:
        return self.entity.revisionable

    def set_new_revision(self, value: bool = True) -> EntityTranslation:
        self.entity.set_new_revision(value)
        return self

    def set_revision_log_message(self, message: str) -> EntityTranslation:
        self.entity.revision_log_message = message
        return self

    def set_revision_creation_time(self, timestamp: int) -> EntityTranslation:
        self.entity.revision_created = timestamp
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "entity_type": self.entity_type,
            "id": self.id,
            "bundle": self.bundle,
            "langcode": self.langcode,
            "title": self._values.title,
            "status": self._values.status,
            "publish_on": self._values.publish_on,
            "unpublish_on": self._values.unpublish_on,
            "created": self._values.created,
            "changed": self._values.changed,
            "revision_id": self.entity.revision_id,
        }

    def __repr__(self) -> str:
        return f"<EntityTranslation({self.entity_type} {self.id}, {self.langcode})>"
