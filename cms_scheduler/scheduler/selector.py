"""
Due-item selection

Finds the ids of items whose scheduling date for a process has been reached,
restricted to the bundles enabled for that process.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from cms_scheduler.scheduler.capabilities import SchedulerPlugin
from cms_scheduler.scheduler.process import Process
from cms_scheduler.scheduler.settings import SchedulerConfig, bundle_setting


async def get_enabled_types(
    db: AsyncSession, plugin: SchedulerPlugin, process: Process, config: SchedulerConfig
) -> list[str]:
    """Bundles of the plugin's kind enabled for scheduled `process`."""
    bundles = await plugin.get_types(db)
    return [bundle.bundle for bundle in bundles if bundle_setting(bundle, f"{process.value}_enable", config)]


async def select_due_ids(
    db: AsyncSession,
    plugin: SchedulerPlugin,
    process: Process,
    as_of: int,
    config: SchedulerConfig,
) -> list[int]:
    """
    Ids with a `<process>_on` value at or before `as_of`, earliest first.

    Revisionable kinds are matched on their latest revision. Nothing is
    queried when no bundle is enabled for the process.
    """
    bundles = await get_enabled_types(db, plugin, process, config)
    if not bundles:
        return []
    result = await db.execute(plugin.due_query(process.date_field, as_of, bundles))
    return [row[0] for row in result.all()]


async def select_scheduled(
    db: AsyncSession,
    plugin: SchedulerPlugin,
    process: Process,
    bundles: list[str] | None = None,
) -> list[tuple[int, int]]:
    """(id, earliest date) for every item with a pending `<process>_on`, earliest first."""
    result = await db.execute(plugin.due_query(process.date_field, None, bundles))
    return [(row[0], row[1]) for row in result.all()]
