from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from cms_scheduler.scheduler.settings import PastDatePolicy


class SchedulerSettingsUpdate(BaseModel):
    """Partial update of the global scheduler settings."""

    model_config = ConfigDict(extra="forbid")

    default_publish_enable: bool | None = None
    default_unpublish_enable: bool | None = None
    default_publish_required: bool | None = None
    default_unpublish_required: bool | None = None
    default_publish_past_date: PastDatePolicy | None = None
    default_publish_past_date_created: bool | None = None
    default_publish_touch: bool | None = None
    default_publish_revision: bool | None = None
    default_unpublish_revision: bool | None = None
    log: bool | None = Field(None, description="Log the start and end of lightweight cron runs.")


class BundleSettingsUpdate(BaseModel):
    """Per-bundle overrides. A null value removes the override."""

    model_config = ConfigDict(extra="forbid")

    publish_enable: bool | None = None
    unpublish_enable: bool | None = None
    publish_required: bool | None = None
    unpublish_required: bool | None = None
    publish_past_date: PastDatePolicy | None = None
    publish_past_date_created: bool | None = None
    publish_touch: bool | None = None
    publish_revision: bool | None = None
    unpublish_revision: bool | None = None
    label: str | None = Field(None, description="Human-readable bundle name; required when creating a bundle.")


class BundleSettingsResponse(BaseModel):
    entity_type: str
    bundle: str
    label: str
    overrides: dict[str, Any] = Field(..., description="Values stored on the bundle.")
    effective: dict[str, Any] = Field(..., description="Values in force, with global defaults filled in.")


class ModuleToggle(BaseModel):
    enabled: bool


class ScheduleUpdate(BaseModel):
    """
    New scheduling dates for one translation, as epoch seconds.

    Omitted fields keep their current value; null clears a date.
    """

    langcode: str | None = Field(None, description="Translation to change; the default language when omitted.")
    publish_on: int | None = Field(None, ge=0)
    unpublish_on: int | None = Field(None, ge=0)
    status: bool | None = Field(None, description="Published flag to save together with the dates.")

    model_config = ConfigDict(
        json_schema_extra={"example": {"langcode": "en", "publish_on": 1767225600, "unpublish_on": 1769904000}}
    )


class ScheduleResponse(BaseModel):
    entity_type: str
    id: int
    bundle: str
    langcode: str
    title: str
    status: bool
    publish_on: int | None
    unpublish_on: int | None
    created: int
    changed: int
    revision_id: int | None
    published_immediately: bool = False
    hide_publish_on: bool = False
    hide_unpublish_on: bool = False


class ScheduledItem(BaseModel):
    id: int
    due: int


class ScheduledListResponse(BaseModel):
    entity_type: str
    process: str
    items: list[ScheduledItem]


class PluginInfo(BaseModel):
    id: str
    entity_type: str
    label: str
    type_field_name: str
    publish_action: str
    unpublish_action: str
    event_topic: str
    revisionable: bool
    weight: int
    provider: str
    dependency: str | None


class ExtensionInfo(BaseModel):
    name: str
    version: str
    description: str
    hooks: list[str]


class PluginsResponse(BaseModel):
    scheduler_plugins: list[PluginInfo]
    extensions: list[ExtensionInfo]


class AccessKeyResponse(BaseModel):
    lightweight_cron_access_key: str
    cron_url: str
