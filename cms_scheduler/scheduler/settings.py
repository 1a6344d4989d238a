"""
Scheduler engine settings

Global settings are stored in a JSON file (settings.scheduler_settings_file)
and validated by SchedulerConfig. Every per-bundle capability flag has a
`default_<flag>` counterpart here; a bundle without an override uses it.

The engine reads a fresh SchedulerConfig at the start of every cron run and
never writes to it.
"""

import enum
import json
import logging
import secrets
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from cms_scheduler.config import settings
from cms_scheduler.models.bundle import EntityBundle

logger = logging.getLogger(__name__)

_SETTINGS_FILE = Path(settings.scheduler_settings_file)


class PastDatePolicy(str, enum.Enum):
    """What to do when a 'publish on' date in the past is submitted."""

    ERROR = "error"
    PUBLISH = "publish"
    SCHEDULE = "schedule"


BUNDLE_SETTING_KEYS: list[str] = [
    "publish_enable",
    "unpublish_enable",
    "publish_required",
    "unpublish_required",
    "publish_past_date",
    "publish_past_date_created",
    "publish_touch",
    "publish_revision",
    "unpublish_revision",
]


class SchedulerConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    default_publish_enable: bool = True
    default_unpublish_enable: bool = True
    default_publish_required: bool = False
    default_unpublish_required: bool = False
    default_publish_past_date: PastDatePolicy = PastDatePolicy.ERROR
    default_publish_past_date_created: bool = False
    default_publish_touch: bool = False
    default_publish_revision: bool = False
    default_unpublish_revision: bool = False
    log: bool = True
    lightweight_cron_access_key: str = ""
    enabled_modules: list[str] = Field(default_factory=lambda: ["content", "media"])

    def setting(self, key: str) -> Any:
        return getattr(self, key)


def generate_access_key() -> str:
    return secrets.token_hex(10)


def load_scheduler_config() -> SchedulerConfig:
    """
    Load the engine settings from disk.

    Missing keys take their defaults. An access key is generated and saved
    the first time the settings are loaded without one.
    """
    data: dict[str, Any] = {}
    if _SETTINGS_FILE.exists():
        try:
            data = json.loads(_SETTINGS_FILE.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Failed to read scheduler settings file: %s", e)

    config = SchedulerConfig(**data)
    if not config.lightweight_cron_access_key:
        config.lightweight_cron_access_key = generate_access_key()
        save_scheduler_config(config)
        logger.info("Generated a new lightweight cron access key")
    return config


def save_scheduler_config(config: SchedulerConfig) -> None:
    _SETTINGS_FILE.parent.mkdir(parents=True, exist_ok=True)
    _SETTINGS_FILE.write_text(
        json.dumps(config.model_dump(mode="json"), indent=2, ensure_ascii=False),
        encoding="utf-8",
    )


def update_scheduler_config(changes: dict[str, Any]) -> SchedulerConfig:
    """Apply `changes` to the stored settings, validate, save and return them."""
    current = load_scheduler_config()
    config = SchedulerConfig(**{**current.model_dump(), **changes})
    save_scheduler_config(config)
    return config


def rotate_access_key() -> str:
    """Replace the lightweight cron access key and return the new one."""
    config = load_scheduler_config()
    config.lightweight_cron_access_key = generate_access_key()
    save_scheduler_config(config)
    logger.info("Lightweight cron access key rotated")
    return config.lightweight_cron_access_key


def bundle_setting(bundle: EntityBundle | None, key: str, config: SchedulerConfig) -> Any:
    """Return a bundle's capability flag, falling back to the global default."""
    default = config.setting(f"default_{key}")
    if bundle is None:
        return default
    value = bundle.get_third_party_setting(key, default)
    if key == "publish_past_date":
        return PastDatePolicy(value)
    return value
