"""
Tests for the scheduled transition engine (SchedulerManager).
"""

import logging

import pytest
from sqlalchemy import select
from utils.mock_utils import DAY, HOUR, NOW, add_draft_revision, create_test_bundle, create_test_content, create_test_media
from utils.mocks import MockHookPlugin

from cms_scheduler.exceptions import EntityTypeNotEnabledError, MissingActionError
from cms_scheduler.models.content import Content, ContentRevision
from cms_scheduler.plugins import ProcessResult
from cms_scheduler.scheduler.events import SchedulerEventKind
from cms_scheduler.scheduler.process import Process
from cms_scheduler.storage import ContentStorage, MediaStorage


async def load(db, entity_id):
    return (await ContentStorage(db).load_latest(entity_id)).default_translation()


# ══════════════════════════════════════════════════════════════════════════════
# Publishing
# ══════════════════════════════════════════════════════════════════════════════


class TestPublish:
    async def test_due_item_is_published(self, test_db, manager):
        await create_test_bundle(test_db)
        item = await create_test_content(test_db, publish_on=NOW - HOUR)

        assert await manager.publish() is True

        translation = await load(test_db, item.id)
        assert translation.is_published()
        assert translation.publish_on is None
        assert translation.changed == NOW - HOUR

    async def test_item_due_exactly_now_is_published(self, test_db, manager):
        await create_test_bundle(test_db)
        item = await create_test_content(test_db, publish_on=NOW)

        await manager.publish()

        assert (await load(test_db, item.id)).is_published()

    async def test_future_item_is_left_alone(self, test_db, manager):
        await create_test_bundle(test_db)
        item = await create_test_content(test_db, publish_on=NOW + HOUR, changed=NOW - DAY)

        assert await manager.publish() is False

        translation = await load(test_db, item.id)
        assert not translation.is_published()
        assert translation.publish_on == NOW + HOUR
        assert translation.changed == NOW - DAY

    async def test_second_run_reports_no_change(self, test_db, manager):
        await create_test_bundle(test_db)
        await create_test_content(test_db, publish_on=NOW - HOUR)

        assert await manager.publish() is True
        assert await manager.publish() is False

    async def test_items_processed_in_due_order(self, test_db, manager, events):
        await create_test_bundle(test_db)
        later = await create_test_content(test_db, title="Later", publish_on=NOW - HOUR)
        earlier = await create_test_content(test_db, title="Earlier", publish_on=NOW - 2 * HOUR)
        seen = []
        events.subscribe(SchedulerEventKind.PRE_PUBLISH, lambda event: seen.append(event.get_entity().id))

        await manager.publish()

        assert seen == [earlier.id, later.id]

    async def test_past_date_created_resets_created(self, test_db, manager):
        await create_test_bundle(test_db, publish_past_date_created=True)
        item = await create_test_content(test_db, publish_on=NOW - DAY, created=NOW - HOUR)

        await manager.publish()

        assert (await load(test_db, item.id)).created == NOW - DAY

    async def test_created_kept_without_past_date_created(self, test_db, manager):
        await create_test_bundle(test_db)
        item = await create_test_content(test_db, publish_on=NOW - DAY, created=NOW - HOUR)

        await manager.publish()

        assert (await load(test_db, item.id)).created == NOW - HOUR

    async def test_touch_always_resets_created(self, test_db, manager):
        await create_test_bundle(test_db, publish_touch=True)
        item = await create_test_content(test_db, publish_on=NOW - HOUR, created=NOW - 3 * DAY)

        await manager.publish()

        assert (await load(test_db, item.id)).created == NOW - HOUR

    async def test_latest_revision_is_published(self, test_db, manager):
        await create_test_bundle(test_db)
        item = await create_test_content(test_db, title="Live", status=False)
        draft = await add_draft_revision(test_db, item.id, title="Draft", publish_on=NOW - HOUR)

        await manager.publish()

        content = await test_db.get(Content, item.id)
        assert content.revision_id == draft.revision_id
        published = (await ContentStorage(test_db).load(item.id)).default_translation()
        assert published.label() == "Draft"
        assert published.is_published()

    async def test_every_due_translation_is_published(self, test_db, manager):
        await create_test_bundle(test_db)
        item = await create_test_content(
            test_db,
            publish_on=NOW - HOUR,
            translations={
                "fr": {"title": "Contenu", "publish_on": NOW - HOUR},
                "de": {"title": "Inhalt", "publish_on": NOW + DAY},
            },
        )

        await manager.publish()

        entity = await ContentStorage(test_db).load_latest(item.id)
        assert entity.translations["en"].status is True
        assert entity.translations["fr"].status is True
        assert entity.translations["de"].status is False
        assert entity.translations["de"].publish_on == NOW + DAY

    async def test_media_items_are_published(self, test_db, manager):
        await create_test_bundle(test_db, bundle="image", entity_type="media")
        item = await create_test_media(test_db, publish_on=NOW - HOUR)

        assert await manager.publish() is True

        translation = (await MediaStorage(test_db).load(item.id)).default_translation()
        assert translation.is_published()
        assert manager.last_report.transitioned["media"] == 1

    async def test_disabled_module_is_not_processed(self, test_db, make_manager, capabilities):
        await create_test_bundle(test_db, bundle="image", entity_type="media")
        item = await create_test_media(test_db, publish_on=NOW - HOUR)
        capabilities.set_module_enabled("media", False)

        assert await make_manager().publish() is False
        assert not (await MediaStorage(test_db).load(item.id)).default_translation().is_published()

    async def test_bundle_not_enabled_is_not_selected(self, test_db, manager):
        await create_test_bundle(test_db, bundle="page", publish_enable=False)
        item = await create_test_content(test_db, bundle="page", publish_on=NOW - HOUR)

        assert await manager.publish() is False
        assert not (await load(test_db, item.id)).is_published()


# ══════════════════════════════════════════════════════════════════════════════
# Revisions
# ══════════════════════════════════════════════════════════════════════════════


class TestRevisions:
    async def test_publish_revision_created_with_log_message(self, test_db, manager):
        await create_test_bundle(test_db, publish_revision=True)
        item = await create_test_content(test_db, publish_on=NOW - HOUR)
        first_revision = item.revision_id

        await manager.publish()

        entity = await ContentStorage(test_db).load_latest(item.id)
        assert entity.revision_id != first_revision
        revision = await test_db.get(ContentRevision, entity.revision_id)
        assert revision.revision_log == "Published by Scheduler. The scheduled publishing date was 10/09/2025 - 07:53."
        assert revision.revision_created == NOW

    async def test_revision_message_mentions_created_change(self, test_db, manager):
        await create_test_bundle(test_db, publish_revision=True, publish_touch=True)
        item = await create_test_content(test_db, publish_on=NOW - HOUR, created=NOW - DAY)

        await manager.publish()

        entity = await ContentStorage(test_db).load_latest(item.id)
        revision = await test_db.get(ContentRevision, entity.revision_id)
        assert revision.revision_log.endswith(
            "The previous creation date was 10/08/2025 - 08:53, now updated to match the publishing date."
        )

    async def test_unpublish_revision_log_message(self, test_db, manager):
        await create_test_bundle(test_db, unpublish_revision=True)
        item = await create_test_content(test_db, status=True, unpublish_on=NOW - HOUR)

        await manager.unpublish()

        entity = await ContentStorage(test_db).load_latest(item.id)
        revision = await test_db.get(ContentRevision, entity.revision_id)
        assert revision.revision_log == (
            "Unpublished by Scheduler. The scheduled unpublishing date was 10/09/2025 - 07:53."
        )

    async def test_failed_process_adds_no_revision(self, test_db, manager, plugins):
        await create_test_bundle(test_db, publish_revision=True)
        item = await create_test_content(test_db, publish_on=NOW - HOUR)
        plugins.register(MockHookPlugin("check", {"publish_process": ProcessResult.FAILED}))

        await manager.publish()
        await manager.publish()

        result = await test_db.execute(select(ContentRevision).where(ContentRevision.content_id == item.id))
        revisions = result.scalars().all()
        assert [revision.revision_id for revision in revisions] == [item.revision_id]
        assert revisions[0].revision_log is None
        assert (await load(test_db, item.id)).publish_on == NOW - HOUR

    async def test_no_revision_by_default(self, test_db, manager):
        await create_test_bundle(test_db)
        item = await create_test_content(test_db, publish_on=NOW - HOUR)

        await manager.publish()

        result = await test_db.execute(select(ContentRevision).where(ContentRevision.content_id == item.id))
        assert len(result.scalars().all()) == 1


# ══════════════════════════════════════════════════════════════════════════════
# Unpublishing
# ══════════════════════════════════════════════════════════════════════════════


class TestUnpublish:
    async def test_due_item_is_unpublished(self, test_db, manager):
        await create_test_bundle(test_db)
        item = await create_test_content(test_db, status=True, unpublish_on=NOW - HOUR)

        assert await manager.unpublish() is True

        translation = await load(test_db, item.id)
        assert not translation.is_published()
        assert translation.unpublish_on is None

    async def test_pending_publish_blocks_unpublish(self, test_db, manager):
        await create_test_bundle(test_db)
        item = await create_test_content(test_db, publish_on=NOW - 2 * HOUR, unpublish_on=NOW - HOUR)

        assert await manager.unpublish() is False
        assert (await load(test_db, item.id)).unpublish_on == NOW - HOUR

    async def test_publish_wins_then_unpublish_on_next_pass(self, test_db, manager):
        await create_test_bundle(test_db)
        item = await create_test_content(test_db, publish_on=NOW - 2 * HOUR, unpublish_on=NOW - HOUR)

        await manager.publish()
        translation = await load(test_db, item.id)
        assert translation.is_published()
        assert translation.unpublish_on == NOW - HOUR

        await manager.unpublish()
        assert not (await load(test_db, item.id)).is_published()

    async def test_blocked_publish_also_blocks_unpublish(self, test_db, manager, plugins):
        await create_test_bundle(test_db)
        item = await create_test_content(test_db, publish_on=NOW - 2 * HOUR, unpublish_on=NOW - HOUR)
        plugins.register(MockHookPlugin("gate", {"publishing_allowed": False}))

        assert await manager.publish() is False
        assert await manager.unpublish() is False

        translation = await load(test_db, item.id)
        assert translation.publish_on == NOW - 2 * HOUR
        assert translation.unpublish_on == NOW - HOUR


# ══════════════════════════════════════════════════════════════════════════════
# Hooks
# ══════════════════════════════════════════════════════════════════════════════


class TestHooks:
    async def test_list_hook_adds_ids(self, test_db, manager, plugins):
        await create_test_bundle(test_db)
        item = await create_test_content(test_db, publish_on=NOW - HOUR)
        plugin = MockHookPlugin("extra", {"list": [item.id, 9999, "not-an-id"]})
        plugins.register(plugin)

        assert await manager.publish() is True
        assert manager.last_report.transitioned["content"] == 1
        assert plugin.calls_for("list") == [{"process": "publish", "entity_type": "content"}]

    async def test_list_hook_scalar_result(self, test_db, manager, plugins):
        await create_test_bundle(test_db)
        item = await create_test_content(test_db, publish_on=NOW - HOUR)

        ids = await manager.collect_ids(manager.capabilities.get_plugin("content"), Process.PUBLISH, NOW)
        assert ids == [item.id]

        plugins.register(MockHookPlugin("scalar", {"content_list": str(item.id)}))
        ids = await manager.collect_ids(manager.capabilities.get_plugin("content"), Process.PUBLISH, NOW)
        assert ids == [item.id]

    async def test_list_alter_removes_ids(self, test_db, manager, plugins):
        await create_test_bundle(test_db)
        item = await create_test_content(test_db, publish_on=NOW - HOUR)

        def drop_all(payload):
            payload["ids"].clear()

        plugins.register(MockHookPlugin("veto", {"list_alter": drop_all}))

        assert await manager.publish() is False
        assert not (await load(test_db, item.id)).is_published()

    async def test_failing_list_alter_leaves_ids(self, test_db, manager, plugins):
        await create_test_bundle(test_db)
        await create_test_content(test_db, publish_on=NOW - HOUR)

        def clear_then_fail(payload):
            payload["ids"].clear()
            raise RuntimeError("boom")

        plugins.register(MockHookPlugin("broken", {"list_alter": clear_then_fail}))

        assert await manager.publish() is True

    async def test_unknown_id_is_skipped(self, test_db, manager, plugins, caplog):
        await create_test_bundle(test_db)
        plugins.register(MockHookPlugin("extra", {"list": [4242]}))

        with caplog.at_level(logging.INFO):
            assert await manager.publish() is False

        assert "Entity id 4242 is not a content entity. Processing skipped." in caplog.text

    @pytest.mark.parametrize(
        ("answers", "expected"),
        [
            ([None], True),
            ([True, None], True),
            ([True, False], False),
            ([0], False),
            ([RuntimeError("boom")], False),
        ],
    )
    async def test_publishing_allowed_aggregation(self, test_db, manager, plugins, answers, expected):
        await create_test_bundle(test_db)
        item = await create_test_content(test_db, publish_on=NOW - HOUR)
        for index, answer in enumerate(answers):
            plugins.register(MockHookPlugin(f"gate{index}", {"publishing_allowed": answer}))

        await manager.publish()

        assert (await load(test_db, item.id)).is_published() is expected

    async def test_legacy_hook_name_is_honoured(self, test_db, manager, plugins):
        await create_test_bundle(test_db)
        item = await create_test_content(test_db, publish_on=NOW - HOUR)
        plugins.register(MockHookPlugin("old", {"allow_publishing": False}))

        await manager.publish()

        assert not (await load(test_db, item.id)).is_published()

    async def test_process_failure_restores_date_and_continues(self, test_db, manager, plugins, caplog):
        await create_test_bundle(test_db)
        first = await create_test_content(test_db, title="First", publish_on=NOW - 2 * HOUR)
        second = await create_test_content(test_db, title="Second", publish_on=NOW - HOUR)

        def fail_first(payload):
            return ProcessResult.FAILED if payload["entity"].label() == "First" else None

        plugins.register(MockHookPlugin("check", {"publish_process": fail_first}))

        with caplog.at_level(logging.WARNING):
            assert await manager.publish() is True

        failed = await load(test_db, first.id)
        assert not failed.is_published()
        assert failed.publish_on == NOW - 2 * HOUR
        assert (await load(test_db, second.id)).is_published()
        assert manager.last_report.failed == 1
        assert (
            "Publishing failed for First. Calls to check_scheduler_publish_process returned a failure code."
            in caplog.text
        )

    async def test_failure_outranks_handled(self, test_db, manager, plugins):
        await create_test_bundle(test_db)
        item = await create_test_content(test_db, publish_on=NOW - HOUR)
        plugins.register(MockHookPlugin("a", {"publish_process": ProcessResult.HANDLED}))
        plugins.register(MockHookPlugin("b", {"publish_process": ProcessResult.FAILED}))

        assert await manager.publish() is False
        assert (await load(test_db, item.id)).publish_on == NOW - HOUR

    async def test_raising_process_hook_counts_as_failure(self, test_db, manager, plugins):
        await create_test_bundle(test_db)
        item = await create_test_content(test_db, publish_on=NOW - HOUR)
        plugins.register(MockHookPlugin("broken", {"publish_process": RuntimeError("boom")}))

        assert await manager.publish() is False
        assert (await load(test_db, item.id)).publish_on == NOW - HOUR

    async def test_handled_process_is_reported(self, test_db, manager, plugins, caplog):
        await create_test_bundle(test_db)
        await create_test_content(test_db, title="Handled", publish_on=NOW - HOUR)
        plugins.register(MockHookPlugin("workflow", {"publish_process": ProcessResult.HANDLED}))

        with caplog.at_level(logging.INFO):
            assert await manager.publish() is True

        assert manager.last_report.handled == 1
        assert "scheduled processing of Handled completed by calls to workflow_scheduler_publish_process" in caplog.text


# ══════════════════════════════════════════════════════════════════════════════
# Events
# ══════════════════════════════════════════════════════════════════════════════


class TestEvents:
    async def test_pre_and_post_events_fire_in_order(self, test_db, manager, events):
        await create_test_bundle(test_db)
        await create_test_content(test_db, publish_on=NOW - HOUR)
        seen = []
        events.subscribe(SchedulerEventKind.PRE_PUBLISH, lambda event: seen.append(("pre", event.get_entity().is_published())))
        events.subscribe(SchedulerEventKind.PUBLISH, lambda event: seen.append(("post", event.get_entity().is_published())))

        await manager.publish()

        assert seen == [("pre", False), ("post", True)]

    async def test_listener_changes_are_saved(self, test_db, manager, events):
        await create_test_bundle(test_db)
        item = await create_test_content(test_db, title="Original", publish_on=NOW - HOUR)

        def retitle(event):
            event.get_entity().entity.translations["en"].title = "Retitled"

        events.subscribe(SchedulerEventKind.PRE_PUBLISH, retitle)

        await manager.publish()

        assert (await load(test_db, item.id)).label() == "Retitled"

    async def test_event_plugins_are_notified(self, test_db, manager, plugins):
        await create_test_bundle(test_db, bundle="image", entity_type="media")
        await create_test_media(test_db, publish_on=NOW - HOUR)
        listener = MockHookPlugin("audit", extra_hooks=["scheduler.media.pre_publish", "scheduler.media.publish"])
        plugins.register(listener)

        await manager.publish()

        assert [name for name, _ in listener.calls] == ["scheduler.media.pre_publish", "scheduler.media.publish"]


# ══════════════════════════════════════════════════════════════════════════════
# Fatal errors
# ══════════════════════════════════════════════════════════════════════════════


class TestFatalErrors:
    async def test_disabled_bundle_halts_the_pass(self, test_db, manager, plugins):
        await create_test_bundle(test_db)
        await create_test_bundle(test_db, bundle="page", label="Basic page", publish_enable=False)
        bad = await create_test_content(test_db, title="Stray", bundle="page", publish_on=NOW - 2 * HOUR)
        good = await create_test_content(test_db, publish_on=NOW - HOUR)

        def put_first(payload):
            payload["ids"][:] = [bad.id, *payload["ids"]]

        plugins.register(MockHookPlugin("stray", {"list_alter": put_first}))

        with pytest.raises(EntityTypeNotEnabledError) as exc_info:
            await manager.publish()

        message = exc_info.value.message
        assert f"'Stray' (id {bad.id}) was not published" in message
        assert "content bundle 'Basic page' is not enabled for scheduled publishing" in message
        assert "stray_scheduler_list_alter" in message
        assert not (await load(test_db, good.id)).is_published()
        assert manager.last_report.error == message

    async def test_missing_action_halts_the_pass(self, test_db, manager, actions, caplog):
        await create_test_bundle(test_db)
        item = await create_test_content(test_db, publish_on=NOW - HOUR)
        actions.remove("content_publish_action")

        with caplog.at_level(logging.WARNING), pytest.raises(MissingActionError):
            await manager.publish()

        assert "content_publish_action" in caplog.text
        assert not (await load(test_db, item.id)).is_published()
