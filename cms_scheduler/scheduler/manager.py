"""
Scheduled transition engine

SchedulerManager runs the publish and unpublish passes. For every usable
content kind it selects the due ids, lets plugins add to and alter the list,
loads the items (latest revision for revisionable kinds) and processes each
translation in turn:

    due? -> allowed? -> pre-event -> mutate -> process hooks -> post-event -> action

A translation whose process hooks report a failure gets its date restored and
is saved for another attempt; the pass carries on. A bundle that is not
enabled for the process, or an action that cannot be found, halts the pass.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime
from typing import Any, NoReturn
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from cms_scheduler.config import settings
from cms_scheduler.entity import EntityTranslation, ScheduledEntity
from cms_scheduler.exceptions import EntityTypeNotEnabledError, MissingActionError, SchedulerException
from cms_scheduler.models.bundle import EntityBundle
from cms_scheduler.plugins.base import ProcessResult
from cms_scheduler.plugins.hooks import HOOK_LIST, HOOK_LIST_ALTER
from cms_scheduler.plugins.registry import HookImplementation, PluginRegistry
from cms_scheduler.scheduler.actions import ActionRegistry
from cms_scheduler.scheduler.capabilities import CapabilityRegistry, SchedulerPlugin
from cms_scheduler.scheduler.events import EventDispatcher, SchedulerEventKind
from cms_scheduler.scheduler.process import Process
from cms_scheduler.scheduler.reporter import PassReport
from cms_scheduler.scheduler.selector import select_due_ids
from cms_scheduler.scheduler.settings import SchedulerConfig, bundle_setting
from cms_scheduler.storage import EntityStorage, coerce_entity_id

logger = logging.getLogger(__name__)

# Same layout as the CMS "short" date format.
SHORT_DATE_FORMAT = "%m/%d/%Y - %H:%M"

_EVENT_KINDS = {
    Process.PUBLISH: (SchedulerEventKind.PRE_PUBLISH, SchedulerEventKind.PUBLISH),
    Process.UNPUBLISH: (SchedulerEventKind.PRE_UNPUBLISH, SchedulerEventKind.UNPUBLISH),
}


class SchedulerManager:
    """Runs scheduled publishing and unpublishing against one database session."""

    def __init__(
        self,
        db: AsyncSession,
        *,
        config: SchedulerConfig,
        capabilities: CapabilityRegistry,
        plugins: PluginRegistry,
        events: EventDispatcher,
        actions: ActionRegistry,
        clock: Callable[[], int] | None = None,
        timezone: str | None = None,
    ) -> None:
        self.db = db
        self.config = config
        self.capabilities = capabilities
        self.plugins = plugins
        self.events = events
        self.actions = actions
        self.clock = clock or (lambda: int(time.time()))
        self.tz = ZoneInfo(timezone or settings.timezone)
        self.last_report: PassReport | None = None

    # ── Entry points ──────────────────────────────────────────────────────────

    async def publish(self) -> bool:
        """Publish every due item. Returns True if any item was published."""
        return await self._run(Process.PUBLISH)

    async def unpublish(self) -> bool:
        """Unpublish every due item. Returns True if any item was unpublished."""
        return await self._run(Process.UNPUBLISH)

    async def _run(self, process: Process) -> bool:
        report = PassReport(process.value)
        self.last_report = report
        now = self.clock()

        try:
            for plugin in self.capabilities.get_plugins():
                ids = await self.collect_ids(plugin, process, now)
                storage = plugin.storage(self.db)
                for entity in await self.load_entities(storage, ids):
                    bundle = await plugin.get_bundle(self.db, entity.bundle)
                    # Same for every translation, so checked once per item.
                    if not bundle_setting(bundle, f"{process.value}_enable", self.config):
                        raise self._not_enabled_error(plugin, entity, bundle, process)

                    for langcode in entity.get_translation_languages():
                        translation = entity.get_translation(langcode)
                        await self._process_translation(plugin, storage, bundle, translation, process, now, report)
        except SchedulerException as exc:
            report.record_error(exc.message)
            raise

        logger.debug(
            "Scheduled %s pass finished: %s transitioned, %s failed",
            process.value,
            dict(report.transitioned),
            report.failed,
        )
        return report.changed

    # ── Candidate ids ─────────────────────────────────────────────────────────

    async def collect_ids(self, plugin: SchedulerPlugin, process: Process, now: int) -> list[Any]:
        """
        Due ids from the selector, plus ids added by `list` implementations,
        after every `list_alter` implementation has edited them, deduplicated
        keeping the first occurrence.
        """
        ids: list[Any] = await select_due_ids(self.db, plugin, process, now, self.config)

        payload = {"process": process.value, "entity_type": plugin.entity_type}
        for _, result in await self.plugins.invoke(HOOK_LIST, plugin.entity_type, payload):
            if result is None:
                continue
            if isinstance(result, (list, tuple, set)):
                ids.extend(result)
            else:
                ids.append(result)

        for implementation in self.plugins.get_hook_implementations(HOOK_LIST_ALTER, plugin.entity_type):
            working = list(ids)
            try:
                await implementation({**payload, "ids": working})
            except Exception:
                logger.exception("Hook implementation %s raised, id list left unchanged", implementation.name)
                continue
            ids = working

        unique: dict[Any, None] = {}
        for entity_id in ids:
            normalized = coerce_entity_id(entity_id)
            unique.setdefault(entity_id if normalized is None else normalized, None)
        return list(unique)

    async def load_entities(self, storage: EntityStorage, ids: list[Any]) -> list[ScheduledEntity]:
        """Load each id, skipping ids that are not items of this kind."""
        entities: list[ScheduledEntity] = []
        for entity_id in ids:
            entity = await storage.load_latest(entity_id)
            if entity is None:
                logger.info(
                    "Entity id %s is not a %s entity. Processing skipped.",
                    entity_id,
                    storage.entity_type,
                )
                continue
            entities.append(entity)
        return entities

    # ── Per-translation transition ────────────────────────────────────────────

    async def _process_translation(
        self,
        plugin: SchedulerPlugin,
        storage: EntityStorage,
        bundle: EntityBundle | None,
        translation: EntityTranslation,
        process: Process,
        now: int,
        report: PassReport,
    ) -> None:
        scheduled = translation.get_date(process.date_field)
        if not scheduled or scheduled > now:
            return

        # A due publish date means publishing was blocked; unpublishing waits.
        if process is Process.UNPUBLISH:
            publish_on = translation.publish_on
            if publish_on and publish_on <= now:
                return

        if not await self.is_allowed(translation, process):
            return

        pre_event, post_event = _EVENT_KINDS[process]
        translation = await self.events.dispatch(pre_event, translation, plugin.event_topic)

        translation.set_changed_time(scheduled)
        msg_extra = ""
        if process is Process.PUBLISH:
            old_created = translation.created
            if bundle_setting(bundle, "publish_touch", self.config) or (
                old_created > scheduled and bundle_setting(bundle, "publish_past_date_created", self.config)
            ):
                translation.set_created_time(scheduled)
                msg_extra = (
                    f"The previous creation date was {self.format_date(old_created)}, "
                    "now updated to match the publishing date."
                )

        if bundle_setting(bundle, f"{process.value}_revision", self.config) and translation.revisionable:
            translation.set_new_revision()
            if process is Process.PUBLISH:
                message = f"Published by Scheduler. The scheduled publishing date was {self.format_date(scheduled)}."
            else:
                message = (
                    f"Unpublished by Scheduler. The scheduled unpublishing date was {self.format_date(scheduled)}."
                )
            translation.set_revision_log_message(f"{message} {msg_extra}".rstrip())
            translation.set_revision_creation_time(now)

        # Cleared before anything saves the item, so it cannot be rescheduled.
        translation.set_date(process.date_field, None)

        implementations, outcome = await self.run_process_hooks(translation, process)
        hook_list = ", ".join(impl.name for impl in implementations)
        type_label = bundle.label if bundle is not None else translation.bundle
        title = translation.label()

        if outcome is ProcessResult.FAILED:
            message = f"{process.label} failed for {title}. Calls to {hook_list} returned a failure code."
            logger.warning(message)
            translation.set_date(process.date_field, scheduled)
            # Nothing changed state, so the retry is saved onto the current revision.
            translation.set_new_revision(False)
            await storage.save(translation.entity)
            report.record_failure(plugin.entity_type, message)
            return

        if outcome is ProcessResult.HANDLED:
            logger.info("%s: scheduled processing of %s completed by calls to %s.", type_label, title, hook_list)
        else:
            logger.info("%s: scheduled %s of %s.", type_label, process.label.lower(), title)
            if process is Process.PUBLISH:
                translation.set_published()
            else:
                translation.set_unpublished()

        translation = await self.events.dispatch(post_event, translation, plugin.event_topic)

        action_id = plugin.action_id(process)
        action = self.actions.load(action_id)
        if action is None:
            self.missing_action(action_id, process)
        await action.execute(translation, storage)

        report.record_committed(plugin.entity_type, handled=outcome is ProcessResult.HANDLED)

    # ── Hook aggregation ──────────────────────────────────────────────────────

    async def is_allowed(self, translation: EntityTranslation, process: Process) -> bool:
        """Allowed unless an implementation returns a false value; None abstains."""
        results = await self.plugins.invoke(
            process.allowed_hook,
            translation.entity_type,
            {"entity": translation},
            on_error=False,
        )
        return not any(result is not None and not result for _, result in results)

    async def run_process_hooks(
        self, translation: EntityTranslation, process: Process
    ) -> tuple[list[HookImplementation], ProcessResult]:
        """Call the *_process implementations. A failure outranks a success."""
        results = await self.plugins.invoke(
            process.process_hook,
            translation.entity_type,
            {"entity": translation},
            on_error=ProcessResult.FAILED,
        )
        handled = any(result == ProcessResult.HANDLED for _, result in results)
        failed = any(result == ProcessResult.FAILED for _, result in results)
        implementations = [implementation for implementation, _ in results]
        if failed:
            return implementations, ProcessResult.FAILED
        if handled:
            return implementations, ProcessResult.HANDLED
        return implementations, ProcessResult.NOT_HANDLED

    # ── Errors ────────────────────────────────────────────────────────────────

    def _not_enabled_error(
        self,
        plugin: SchedulerPlugin,
        entity: ScheduledEntity,
        bundle: EntityBundle | None,
        process: Process,
    ) -> EntityTypeNotEnabledError:
        hooks = sorted(
            impl.name
            for hook_type in (HOOK_LIST, HOOK_LIST_ALTER)
            for impl in self.plugins.get_hook_implementations(hook_type, plugin.entity_type)
        )
        return EntityTypeNotEnabledError(
            label=entity.label(),
            entity_id=entity.id,
            entity_type=plugin.entity_type,
            type_field_name=plugin.type_field_name,
            bundle_label=bundle.label if bundle is not None else entity.bundle,
            process=process.value,
            hooks=hooks,
        )

    def missing_action(self, action_id: str, process: Process) -> NoReturn:
        logger.warning(
            "Action '%s' is missing. Re-register the action with the action registry to resume scheduled %sing.",
            action_id,
            process.value,
        )
        raise MissingActionError(action_id, process.value)

    # ── Helpers ───────────────────────────────────────────────────────────────

    def format_date(self, timestamp: int) -> str:
        return datetime.fromtimestamp(timestamp, self.tz).strftime(SHORT_DATE_FORMAT)
