"""
Lightweight Cron Routes

    GET  /scheduler/cron/{access_key}              external crontab trigger
    POST /admin/config/content/scheduler/cron      run now from the admin API
    GET  /admin/config/content/scheduler/cron/key  show the access key and URL
    POST /admin/config/content/scheduler/cron/key  generate a new access key
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from cms_scheduler.auth import check_access_key, require_admin
from cms_scheduler.database import get_db
from cms_scheduler.exceptions import CronBusyError
from cms_scheduler.scheduler.cron import TRIGGER_ADMIN, TRIGGER_URL, run_lightweight_cron
from cms_scheduler.scheduler.settings import load_scheduler_config, rotate_access_key
from cms_scheduler.schemas.scheduler import AccessKeyResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Scheduler Cron"])


def _cron_url(request: Request, access_key: str) -> str:
    return str(request.url_for("lightweight_cron", access_key=access_key))


@router.get("/scheduler/cron/{access_key}", status_code=status.HTTP_204_NO_CONTENT, name="lightweight_cron")
async def lightweight_cron(access_key: str, db: AsyncSession = Depends(get_db)) -> Response:
    check_access_key(access_key, load_scheduler_config())
    await run_lightweight_cron(db, trigger=TRIGGER_URL)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/admin/config/content/scheduler/cron", dependencies=[Depends(require_admin)])
async def run_cron_now(db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    result = await run_lightweight_cron(db, trigger=TRIGGER_ADMIN)
    if result.skipped:
        raise CronBusyError(TRIGGER_ADMIN)
    return result.to_dict()


@router.get(
    "/admin/config/content/scheduler/cron/key",
    response_model=AccessKeyResponse,
    dependencies=[Depends(require_admin)],
)
async def get_access_key(request: Request) -> AccessKeyResponse:
    key = load_scheduler_config().lightweight_cron_access_key
    return AccessKeyResponse(lightweight_cron_access_key=key, cron_url=_cron_url(request, key))


@router.post(
    "/admin/config/content/scheduler/cron/key",
    response_model=AccessKeyResponse,
    dependencies=[Depends(require_admin)],
)
async def create_access_key(request: Request) -> AccessKeyResponse:
    key = rotate_access_key()
    return AccessKeyResponse(lightweight_cron_access_key=key, cron_url=_cron_url(request, key))
