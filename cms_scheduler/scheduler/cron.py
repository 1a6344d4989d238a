"""
Lightweight cron

Every trigger (the access-key URL, the admin endpoint, the command line and
the in-process interval job) runs the scheduler through
run_lightweight_cron(). Runs in one process are serialised by a module lock;
a trigger that finds a run in progress is skipped. Serialising runs across
processes is left to the deployment (one cron host).
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from cms_scheduler.exceptions import SchedulerException
from cms_scheduler.plugins.registry import PluginRegistry, plugin_registry
from cms_scheduler.scheduler.actions import ActionRegistry, action_registry
from cms_scheduler.scheduler.capabilities import CapabilityRegistry, capability_registry
from cms_scheduler.scheduler.events import EventDispatcher
from cms_scheduler.scheduler.manager import SchedulerManager
from cms_scheduler.scheduler.reporter import CronResult
from cms_scheduler.scheduler.settings import SchedulerConfig, load_scheduler_config
from cms_scheduler.utils.metrics import record_cron_run

logger = logging.getLogger(__name__)

TRIGGER_URL = "url"
TRIGGER_ADMIN = "admin user form"
TRIGGER_COMMAND = "command line"
TRIGGER_INTERVAL = "interval job"

event_dispatcher = EventDispatcher(plugin_registry)

_run_lock = asyncio.Lock()


def build_manager(
    db: AsyncSession,
    config: SchedulerConfig | None = None,
    *,
    capabilities: CapabilityRegistry | None = None,
    plugins: PluginRegistry | None = None,
    events: EventDispatcher | None = None,
    actions: ActionRegistry | None = None,
    clock: Callable[[], int] | None = None,
) -> SchedulerManager:
    """Wire a SchedulerManager to the process-wide registries."""
    config = config or load_scheduler_config()
    capabilities = capabilities or capability_registry
    capabilities.set_enabled_modules(config.enabled_modules)
    return SchedulerManager(
        db,
        config=config,
        capabilities=capabilities,
        plugins=plugins or plugin_registry,
        events=events or event_dispatcher,
        actions=actions or action_registry,
        clock=clock,
    )


def is_running() -> bool:
    return _run_lock.locked()


async def run_lightweight_cron(
    db: AsyncSession,
    *,
    trigger: str = TRIGGER_URL,
    nolog: bool = False,
    manager: SchedulerManager | None = None,
) -> CronResult:
    """
    Run the publish pass and then the unpublish pass.

    A fatal error in one pass is recorded in its report and logged; the other
    pass still runs. The start and finish messages are written only when the
    `log` setting is on and `nolog` is not requested.
    """
    result = CronResult(trigger=trigger)
    if _run_lock.locked():
        logger.warning("Lightweight cron run requested by %s skipped, a run is already in progress.", trigger)
        result.skipped = True
        record_cron_run(trigger, "skipped")
        return result

    async with _run_lock:
        manager = manager or build_manager(db)
        log = manager.config.log and not nolog
        if log:
            logger.info("Lightweight cron run activated by %s.", trigger)

        start = time.perf_counter()
        for name, run in (("publish", manager.publish), ("unpublish", manager.unpublish)):
            try:
                await run()
            except SchedulerException as exc:
                logger.error("Scheduled %s halted: %s", name, exc.message)
            setattr(result, name, manager.last_report)

        duration = time.perf_counter() - start
        record_cron_run(trigger, "error" if result.errors else "completed", duration)

        if log:
            logger.info("Lightweight cron run completed.")
    return result
