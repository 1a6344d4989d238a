"""
Scheduling service

Sets and removes the scheduling dates of stored items outside a cron run.
Used by the scheduling API; every change is validated and goes through the
past-date policy before it is saved.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from cms_scheduler.entity import EntityTranslation
from cms_scheduler.exceptions import (
    BundleNotFoundError,
    EntityNotFoundError,
    SchedulingValidationError,
    UnknownEntityTypeError,
)
from cms_scheduler.models.bundle import EntityBundle
from cms_scheduler.plugins.registry import PluginRegistry
from cms_scheduler.scheduler.capabilities import CapabilityRegistry, SchedulerPlugin
from cms_scheduler.scheduler.process import Process
from cms_scheduler.scheduler.selector import select_scheduled
from cms_scheduler.scheduler.settings import SchedulerConfig, bundle_setting
from cms_scheduler.scheduler.validation import apply_scheduling_presave, validate_schedule

logger = logging.getLogger(__name__)


def get_scheduler_plugin(capabilities: CapabilityRegistry, entity_type: str) -> SchedulerPlugin:
    plugin = capabilities.get_plugin(entity_type)
    if plugin is None:
        raise UnknownEntityTypeError(entity_type)
    return plugin


async def load_translation(
    db: AsyncSession, plugin: SchedulerPlugin, entity_id: int, langcode: str | None = None
) -> EntityTranslation:
    """Load the latest revision of an item and return one of its translations."""
    entity = await plugin.storage(db).load_latest(entity_id)
    if entity is None:
        raise EntityNotFoundError(plugin.entity_type, entity_id)
    langcode = langcode or entity.default_langcode
    if not entity.has_translation(langcode):
        raise SchedulingValidationError({"langcode": f"The item has no '{langcode}' translation."})
    return entity.get_translation(langcode)


async def require_bundle(db: AsyncSession, plugin: SchedulerPlugin, bundle: str) -> EntityBundle:
    """The bundle record; items of a bundle without one are never selected by a cron pass."""
    record = await plugin.get_bundle(db, bundle)
    if record is None:
        raise BundleNotFoundError(plugin.entity_type, bundle)
    return record


async def schedule_entity(
    db: AsyncSession,
    plugin: SchedulerPlugin,
    entity_id: int,
    changes: dict[str, Any],
    config: SchedulerConfig,
    now: int | None = None,
) -> tuple[EntityTranslation, bool]:
    """
    Apply new scheduling dates (and optionally a status) to one translation.

    `changes` holds only the fields the caller sent; a None value clears a date.

    Returns:
        The saved translation and whether it was published immediately.

    Raises:
        SchedulingValidationError: the dates break a bundle rule.
        BundleNotFoundError: the item's bundle has no scheduler record.
    """
    now = now if now is not None else int(time.time())
    translation = await load_translation(db, plugin, entity_id, changes.get("langcode"))
    bundle = await require_bundle(db, plugin, translation.bundle)

    was_published = translation.is_published()
    publish_on = changes["publish_on"] if "publish_on" in changes else translation.publish_on
    unpublish_on = changes["unpublish_on"] if "unpublish_on" in changes else translation.unpublish_on
    status = changes["status"] if changes.get("status") is not None else was_published

    errors = validate_schedule(
        publish_on=publish_on,
        unpublish_on=unpublish_on,
        status=status,
        was_published=was_published,
        is_new=False,
        bundle=bundle,
        config=config,
        now=now,
    )
    if errors:
        raise SchedulingValidationError(errors)

    translation.publish_on = publish_on
    translation.unpublish_on = unpublish_on
    if status:
        translation.set_published()
    else:
        translation.set_unpublished()
    translation.set_changed_time(now)

    published_now = apply_scheduling_presave(translation, bundle=bundle, config=config, now=now)
    await plugin.storage(db).save(translation.entity)
    logger.info(
        "Schedule updated for %s %s (%s): publish_on=%s unpublish_on=%s",
        plugin.entity_type,
        translation.id,
        translation.langcode,
        translation.publish_on,
        translation.unpublish_on,
    )
    return translation, published_now


def set_unpublishing_date(
    translation: EntityTranslation, timestamp: int, bundle: EntityBundle | None, config: SchedulerConfig
) -> bool:
    """
    Set the unpublishing date of a translation without saving it.

    Returns False, and leaves the translation alone, when the bundle is not
    enabled for scheduled unpublishing.
    """
    if not bundle_setting(bundle, "unpublish_enable", config):
        logger.warning(
            "Scheduled unpublishing is not enabled for %s bundle %s. The unpublishing date was not set for %s.",
            translation.entity_type,
            translation.bundle,
            translation.label(),
        )
        return False
    translation.unpublish_on = timestamp
    return True


def remove_unpublishing_date(
    translation: EntityTranslation, bundle: EntityBundle | None, config: SchedulerConfig
) -> bool:
    """Clear the unpublishing date of a translation without saving it."""
    if not bundle_setting(bundle, "unpublish_enable", config):
        logger.warning(
            "Scheduled unpublishing is not enabled for %s bundle %s. The unpublishing date was not removed from %s.",
            translation.entity_type,
            translation.bundle,
            translation.label(),
        )
        return False
    translation.unpublish_on = None
    return True


async def unschedule_unpublishing(
    db: AsyncSession,
    plugin: SchedulerPlugin,
    entity_id: int,
    config: SchedulerConfig,
    langcode: str | None = None,
    now: int | None = None,
) -> EntityTranslation:
    """Remove the unpublishing date of one translation and save the item."""
    translation = await load_translation(db, plugin, entity_id, langcode)
    bundle = await require_bundle(db, plugin, translation.bundle)
    if not remove_unpublishing_date(translation, bundle, config):
        raise SchedulingValidationError(
            {"unpublish_on": "Scheduled unpublishing is not enabled for this bundle."}
        )
    translation.set_changed_time(now if now is not None else int(time.time()))
    await plugin.storage(db).save(translation.entity)
    return translation


async def list_scheduled(db: AsyncSession, plugin: SchedulerPlugin, process: Process) -> list[tuple[int, int]]:
    """(id, due) pairs of items with a pending date for `process`, earliest first."""
    return await select_scheduled(db, plugin, process)


async def hidden_fields(plugins: PluginRegistry, translation: EntityTranslation) -> dict[str, bool]:
    """Ask the hide_*_date hooks whether each date field should be hidden."""
    result: dict[str, bool] = {}
    for process in Process:
        outcomes = await plugins.invoke(
            process.hide_hook,
            translation.entity_type,
            {"entity": translation, "bundle": translation.bundle},
            on_error=False,
        )
        result[f"hide_{process.date_field}"] = any(value is True for _, value in outcomes)
    return result
