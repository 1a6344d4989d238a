"""
Admin authentication

The admin and scheduling APIs are guarded by a static bearer token
(settings.admin_token). The lightweight cron URL is guarded by its own access
key instead, so that a plain crontab entry can call it.
"""

import logging
import secrets

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from cms_scheduler.config import settings
from cms_scheduler.exceptions import AdminAuthError, InvalidAccessKeyError
from cms_scheduler.scheduler.settings import SchedulerConfig

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> None:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AdminAuthError("Missing admin bearer token")
    if not secrets.compare_digest(credentials.credentials, settings.admin_token):
        logger.warning("Rejected admin request with an invalid token")
        raise AdminAuthError("Invalid admin token")


def check_access_key(access_key: str, config: SchedulerConfig) -> None:
    expected = config.lightweight_cron_access_key
    if not expected or not secrets.compare_digest(access_key, expected):
        logger.warning("Lightweight cron called with an invalid access key")
        raise InvalidAccessKeyError()
