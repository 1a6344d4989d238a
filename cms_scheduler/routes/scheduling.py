"""
Scheduling Routes

Set, inspect and remove the scheduling dates of individual items, and list
the items waiting for a scheduled transition.
"""

import logging
import time

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from cms_scheduler.auth import require_admin
from cms_scheduler.database import get_db
from cms_scheduler.entity import EntityTranslation
from cms_scheduler.plugins import plugin_registry
from cms_scheduler.scheduler.capabilities import capability_registry
from cms_scheduler.scheduler.process import Process
from cms_scheduler.scheduler.settings import load_scheduler_config
from cms_scheduler.schemas.scheduler import (
    ScheduledItem,
    ScheduledListResponse,
    ScheduleResponse,
    ScheduleUpdate,
)
from cms_scheduler.services import scheduling_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/scheduler", tags=["Scheduling"], dependencies=[Depends(require_admin)])


async def _schedule_response(translation: EntityTranslation, published_immediately: bool = False) -> ScheduleResponse:
    hidden = await scheduling_service.hidden_fields(plugin_registry, translation)
    return ScheduleResponse(**translation.to_dict(), published_immediately=published_immediately, **hidden)


@router.get("/{entity_type}/scheduled", response_model=ScheduledListResponse)
async def list_scheduled(
    entity_type: str,
    process: Process = Query(Process.PUBLISH),
    db: AsyncSession = Depends(get_db),
):
    plugin = scheduling_service.get_scheduler_plugin(capability_registry, entity_type)
    rows = await scheduling_service.list_scheduled(db, plugin, process)
    return ScheduledListResponse(
        entity_type=entity_type,
        process=process.value,
        items=[ScheduledItem(id=entity_id, due=due) for entity_id, due in rows],
    )


@router.get("/{entity_type}/{entity_id}/schedule", response_model=ScheduleResponse)
async def get_schedule(
    entity_type: str,
    entity_id: int,
    langcode: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    plugin = scheduling_service.get_scheduler_plugin(capability_registry, entity_type)
    translation = await scheduling_service.load_translation(db, plugin, entity_id, langcode)
    return await _schedule_response(translation)


@router.put("/{entity_type}/{entity_id}/schedule", response_model=ScheduleResponse)
async def update_schedule(
    entity_type: str,
    entity_id: int,
    payload: ScheduleUpdate,
    db: AsyncSession = Depends(get_db),
):
    plugin = scheduling_service.get_scheduler_plugin(capability_registry, entity_type)
    translation, published_now = await scheduling_service.schedule_entity(
        db,
        plugin,
        entity_id,
        payload.model_dump(exclude_unset=True),
        load_scheduler_config(),
        now=int(time.time()),
    )
    return await _schedule_response(translation, published_now)


@router.delete("/{entity_type}/{entity_id}/schedule/unpublish", response_model=ScheduleResponse)
async def remove_unpublish_date(
    entity_type: str,
    entity_id: int,
    langcode: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    plugin = scheduling_service.get_scheduler_plugin(capability_registry, entity_type)
    translation = await scheduling_service.unschedule_unpublishing(
        db, plugin, entity_id, load_scheduler_config(), langcode=langcode
    )
    return await _schedule_response(translation)
