"""
Scheduler Settings Routes

Admin API for the global engine settings, per-bundle overrides and the
content kind modules. Global settings are stored in the JSON settings file;
bundle overrides live on the scheduler_bundles table.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cms_scheduler.auth import require_admin
from cms_scheduler.database import get_db
from cms_scheduler.exceptions import BundleNotFoundError, UnknownEntityTypeError
from cms_scheduler.models.bundle import EntityBundle
from cms_scheduler.plugins import plugin_registry
from cms_scheduler.scheduler.capabilities import capability_registry
from cms_scheduler.scheduler.settings import (
    BUNDLE_SETTING_KEYS,
    bundle_setting,
    load_scheduler_config,
    update_scheduler_config,
)
from cms_scheduler.schemas.scheduler import (
    BundleSettingsResponse,
    BundleSettingsUpdate,
    ExtensionInfo,
    ModuleToggle,
    PluginInfo,
    PluginsResponse,
    SchedulerSettingsUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin/config/content/scheduler",
    tags=["Scheduler Settings"],
    dependencies=[Depends(require_admin)],
)


def _public_settings() -> dict[str, Any]:
    data = load_scheduler_config().model_dump(mode="json")
    data.pop("lightweight_cron_access_key", None)
    return data


def _bundle_response(bundle: EntityBundle) -> BundleSettingsResponse:
    config = load_scheduler_config()
    return BundleSettingsResponse(
        entity_type=bundle.entity_type,
        bundle=bundle.bundle,
        label=bundle.label,
        overrides=dict(bundle.scheduler_settings or {}),
        effective={key: bundle_setting(bundle, key, config) for key in BUNDLE_SETTING_KEYS},
    )


@router.get("")
async def get_scheduler_settings() -> dict[str, Any]:
    return _public_settings()


@router.put("")
async def update_scheduler_settings(payload: SchedulerSettingsUpdate) -> dict[str, Any]:
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    update_scheduler_config(changes)
    capability_registry.invalidate()
    logger.info("Scheduler settings updated: %s", sorted(changes))
    return _public_settings()


@router.get("/bundles/{entity_type}/{bundle}", response_model=BundleSettingsResponse)
async def get_bundle_settings(entity_type: str, bundle: str, db: AsyncSession = Depends(get_db)):
    plugin = capability_registry.get_plugin(entity_type)
    if plugin is None:
        raise UnknownEntityTypeError(entity_type)
    record = await plugin.get_bundle(db, bundle)
    if record is None:
        raise BundleNotFoundError(entity_type, bundle)
    return _bundle_response(record)


@router.put("/bundles/{entity_type}/{bundle}", response_model=BundleSettingsResponse)
async def update_bundle_settings(
    entity_type: str,
    bundle: str,
    payload: BundleSettingsUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Create or update a bundle's scheduler overrides."""
    plugin = capability_registry.get_plugin(entity_type)
    if plugin is None:
        raise UnknownEntityTypeError(entity_type)

    record = await plugin.get_bundle(db, bundle)
    if record is None:
        if not payload.label:
            raise BundleNotFoundError(entity_type, bundle)
        record = EntityBundle(entity_type=entity_type, bundle=bundle, label=payload.label, scheduler_settings={})
        db.add(record)
    elif payload.label:
        record.label = payload.label

    overrides = dict(record.scheduler_settings or {})
    for key, value in payload.model_dump(exclude_unset=True, mode="json").items():
        if key == "label":
            continue
        if value is None:
            overrides.pop(key, None)
        else:
            overrides[key] = value
    # Reassign so the JSON column is flagged as changed.
    record.scheduler_settings = overrides

    await db.commit()
    await db.refresh(record)
    capability_registry.invalidate()
    logger.info("Scheduler settings updated for %s bundle %s", entity_type, bundle)
    return _bundle_response(record)


@router.get("/plugins", response_model=PluginsResponse)
async def list_plugins() -> PluginsResponse:
    return PluginsResponse(
        scheduler_plugins=[PluginInfo(**plugin.describe()) for plugin in capability_registry.get_plugins()],
        extensions=[
            ExtensionInfo(
                name=plugin.meta.name,
                version=plugin.meta.version,
                description=plugin.meta.description,
                hooks=list(plugin.meta.hooks),
            )
            for plugin in plugin_registry.all_plugins()
        ],
    )


@router.put("/modules/{module}")
async def toggle_module(module: str, payload: ModuleToggle) -> dict[str, Any]:
    """Enable or disable the module a content kind depends on."""
    known = {plugin.dependency for plugin in capability_registry.get_definitions() if plugin.dependency}
    if module not in known:
        raise UnknownEntityTypeError(module)

    config = load_scheduler_config()
    modules = [m for m in config.enabled_modules if m != module]
    if payload.enabled:
        modules.append(module)
    config = update_scheduler_config({"enabled_modules": modules})
    capability_registry.set_enabled_modules(config.enabled_modules)
    logger.info("Module %s %s", module, "enabled" if payload.enabled else "disabled")
    return {"module": module, "enabled": payload.enabled, "entity_types": capability_registry.get_plugin_entity_types()}
