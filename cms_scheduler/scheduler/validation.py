"""
Scheduling date validation and presave handling

validate_schedule() returns the error messages for a proposed pair of dates,
keyed by field. apply_scheduling_presave() applies the past-date policy to a
translation that passed validation, right before it is saved.
"""

from __future__ import annotations

import logging

from cms_scheduler.entity import EntityTranslation
from cms_scheduler.models.bundle import EntityBundle
from cms_scheduler.scheduler.settings import PastDatePolicy, SchedulerConfig, bundle_setting

logger = logging.getLogger(__name__)

PUBLISH_ON_IN_PAST = "The 'publish on' date must be in the future"
UNPUBLISH_ON_IN_PAST = "The 'unpublish on' date must be in the future"
UNPUBLISH_BEFORE_PUBLISH = "The 'unpublish on' date must be later than the 'publish on' date."
PUBLISH_ON_REQUIRED = "The 'publish on' date is required."
UNPUBLISH_ON_REQUIRED_WITH_PUBLISH = "If you set a 'publish on' date then you must also set an 'unpublish on' date."
UNPUBLISH_ON_REQUIRED_WHEN_PUBLISHED = (
    "Either you must set an 'unpublish on' date or save this node as unpublished."
)
PUBLISHING_NOT_ENABLED = "Scheduled publishing is not enabled for this bundle."
UNPUBLISHING_NOT_ENABLED = "Scheduled unpublishing is not enabled for this bundle."


def validate_schedule(
    *,
    publish_on: int | None,
    unpublish_on: int | None,
    status: bool,
    was_published: bool,
    is_new: bool,
    bundle: EntityBundle | None,
    config: SchedulerConfig,
    now: int,
) -> dict[str, str]:
    """
    Check proposed scheduling dates for one translation.

    Args:
        publish_on / unpublish_on: The dates that would be saved.
        status: Whether the item would be saved as published.
        was_published: Whether the item is published before the change.
        is_new: Whether the item has never been saved.

    Returns:
        Field name to error message; empty when the dates are acceptable.
    """
    errors: dict[str, str] = {}

    publish_enabled = bundle_setting(bundle, "publish_enable", config)
    unpublish_enabled = bundle_setting(bundle, "unpublish_enable", config)

    if publish_on is not None and not publish_enabled:
        errors["publish_on"] = PUBLISHING_NOT_ENABLED
    elif publish_on is not None:
        policy = bundle_setting(bundle, "publish_past_date", config)
        if publish_on < now and policy is PastDatePolicy.ERROR:
            errors["publish_on"] = PUBLISH_ON_IN_PAST
    elif publish_enabled and bundle_setting(bundle, "publish_required", config) and (is_new or not was_published):
        errors["publish_on"] = PUBLISH_ON_REQUIRED

    if unpublish_on is not None and not unpublish_enabled:
        errors["unpublish_on"] = UNPUBLISHING_NOT_ENABLED
        return errors

    if unpublish_enabled and bundle_setting(bundle, "unpublish_required", config) and unpublish_on is None:
        if publish_on is not None:
            errors["unpublish_on"] = UNPUBLISH_ON_REQUIRED_WITH_PUBLISH
        elif status:
            errors["unpublish_on"] = UNPUBLISH_ON_REQUIRED_WHEN_PUBLISHED
    elif unpublish_on is not None and unpublish_on < now:
        errors["unpublish_on"] = UNPUBLISH_ON_IN_PAST
    elif unpublish_on is not None and publish_on is not None and unpublish_on < publish_on:
        errors["unpublish_on"] = UNPUBLISH_BEFORE_PUBLISH

    return errors


def apply_scheduling_presave(
    translation: EntityTranslation,
    *,
    bundle: EntityBundle | None,
    config: SchedulerConfig,
    now: int,
) -> bool:
    """
    Apply the past-date policy before a translation with a publish date is saved.

    With the "publish" policy a date at or before `now` publishes the
    translation straight away: changed takes the publish date, created is
    aligned when configured, and the date is cleared. Any other date leaves
    the translation unpublished until the cron pass reaches it.

    Returns:
        True if the translation was published immediately.
    """
    publish_on = translation.publish_on
    if publish_on is None:
        return False

    policy = bundle_setting(bundle, "publish_past_date", config)
    if publish_on <= now and policy is PastDatePolicy.PUBLISH:
        translation.set_changed_time(publish_on)
        if bundle_setting(bundle, "publish_touch", config) or (
            translation.created > publish_on and bundle_setting(bundle, "publish_past_date_created", config)
        ):
            translation.set_created_time(publish_on)
        translation.publish_on = None
        translation.set_published()
        logger.info("%s was published immediately, its 'publish on' date has passed.", translation.label())
        return True

    translation.set_unpublished()
    return False
