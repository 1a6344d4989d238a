"""
Tests for scheduling date validation and presave handling.
"""

import pytest

from cms_scheduler.entity import ScheduledEntity, TranslationValues
from cms_scheduler.models.bundle import EntityBundle
from cms_scheduler.scheduler import validation
from cms_scheduler.scheduler.settings import SchedulerConfig
from cms_scheduler.scheduler.validation import apply_scheduling_presave, validate_schedule

NOW = 1_760_000_000
HOUR = 3600


def bundle(**overrides) -> EntityBundle:
    return EntityBundle(entity_type="content", bundle="article", label="Article", scheduler_settings=overrides)


def check(config=None, record=None, **kwargs):
    values = {
        "publish_on": None,
        "unpublish_on": None,
        "status": False,
        "was_published": False,
        "is_new": False,
    }
    values.update(kwargs)
    return validate_schedule(bundle=record or bundle(), config=config or SchedulerConfig(), now=NOW, **values)


class TestValidateSchedule:
    def test_valid_dates(self):
        assert check(publish_on=NOW + HOUR, unpublish_on=NOW + 2 * HOUR) == {}

    def test_past_publish_date_rejected_by_default(self):
        assert check(publish_on=NOW - HOUR) == {"publish_on": validation.PUBLISH_ON_IN_PAST}

    @pytest.mark.parametrize("policy", ["publish", "schedule"])
    def test_past_publish_date_allowed_by_policy(self, policy):
        assert check(record=bundle(publish_past_date=policy), publish_on=NOW - HOUR) == {}

    def test_past_unpublish_date_rejected(self):
        assert check(unpublish_on=NOW - HOUR) == {"unpublish_on": validation.UNPUBLISH_ON_IN_PAST}

    def test_unpublish_must_follow_publish(self):
        errors = check(publish_on=NOW + 2 * HOUR, unpublish_on=NOW + HOUR)
        assert errors == {"unpublish_on": validation.UNPUBLISH_BEFORE_PUBLISH}

    def test_publish_required_for_unpublished_items(self):
        record = bundle(publish_required=True)

        assert check(record=record) == {"publish_on": validation.PUBLISH_ON_REQUIRED}
        assert check(record=record, is_new=True, was_published=True) == {"publish_on": validation.PUBLISH_ON_REQUIRED}
        assert check(record=record, was_published=True) == {}

    def test_unpublish_required(self):
        record = bundle(unpublish_required=True)

        assert check(record=record, publish_on=NOW + HOUR) == {
            "unpublish_on": validation.UNPUBLISH_ON_REQUIRED_WITH_PUBLISH
        }
        assert check(record=record, status=True) == {"unpublish_on": validation.UNPUBLISH_ON_REQUIRED_WHEN_PUBLISHED}
        assert check(record=record, status=False) == {}

    def test_dates_on_disabled_bundle(self):
        record = bundle(publish_enable=False, unpublish_enable=False)

        errors = check(record=record, publish_on=NOW + HOUR, unpublish_on=NOW + 2 * HOUR)

        assert errors == {
            "publish_on": validation.PUBLISHING_NOT_ENABLED,
            "unpublish_on": validation.UNPUBLISHING_NOT_ENABLED,
        }

    def test_global_default_used_without_bundle_override(self):
        config = SchedulerConfig(default_publish_past_date="publish")

        assert check(config=config, publish_on=NOW - HOUR) == {}


class TestPresave:
    def make(self, publish_on, created=NOW - 2 * HOUR):
        values = TranslationValues(title="Item", publish_on=publish_on, created=created, changed=created)
        return ScheduledEntity("content", 1, "article", "en", {"en": values}).default_translation()

    def test_publish_policy_publishes_past_date_now(self):
        translation = self.make(NOW - HOUR)

        published = apply_scheduling_presave(
            translation, bundle=bundle(publish_past_date="publish"), config=SchedulerConfig(), now=NOW
        )

        assert published is True
        assert translation.is_published()
        assert translation.publish_on is None
        assert translation.changed == NOW - HOUR

    def test_publish_policy_aligns_created(self):
        translation = self.make(NOW - HOUR, created=NOW)

        apply_scheduling_presave(
            translation,
            bundle=bundle(publish_past_date="publish", publish_past_date_created=True),
            config=SchedulerConfig(),
            now=NOW,
        )

        assert translation.created == NOW - HOUR

    def test_schedule_policy_waits_for_cron(self):
        translation = self.make(NOW - HOUR)
        translation.set_published()

        published = apply_scheduling_presave(
            translation, bundle=bundle(publish_past_date="schedule"), config=SchedulerConfig(), now=NOW
        )

        assert published is False
        assert not translation.is_published()
        assert translation.publish_on == NOW - HOUR

    def test_future_date_unpublishes(self):
        translation = self.make(NOW + HOUR)
        translation.set_published()

        assert apply_scheduling_presave(translation, bundle=bundle(), config=SchedulerConfig(), now=NOW) is False
        assert not translation.is_published()

    def test_no_publish_date_is_left_alone(self):
        translation = self.make(None)
        translation.set_published()

        assert apply_scheduling_presave(translation, bundle=bundle(), config=SchedulerConfig(), now=NOW) is False
        assert translation.is_published()
