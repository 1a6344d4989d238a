import logging
from contextlib import asynccontextmanager

import uvicorn
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from fastapi import FastAPI
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from cms_scheduler.config import settings
from cms_scheduler.database import AsyncSessionLocal, Base, engine
from cms_scheduler.exception_handlers import register_exception_handlers
from cms_scheduler.plugins import plugin_registry
from cms_scheduler.plugins.loader import initialize_plugins, shutdown_plugins
from cms_scheduler.routes import cron, scheduling
from cms_scheduler.routes import settings as settings_routes
from cms_scheduler.scheduler.capabilities import capability_registry
from cms_scheduler.scheduler.cron import TRIGGER_INTERVAL, run_lightweight_cron
from cms_scheduler.scheduler.settings import load_scheduler_config
from cms_scheduler.utils.metrics import PrometheusMiddleware, set_app_info

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler(timezone=settings.timezone)


async def run_interval_cron() -> None:
    async with AsyncSessionLocal() as db:
        await run_lightweight_cron(db, trigger=TRIGGER_INTERVAL)


def schedule_interval_cron(minutes: int) -> None:
    scheduler.add_job(
        run_interval_cron,
        trigger=IntervalTrigger(minutes=minutes),
        id="scheduler_lightweight_cron",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    logger.info("[Scheduler] Lightweight cron job scheduled every %s minutes", minutes)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.debug:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    config = load_scheduler_config()
    capability_registry.set_enabled_modules(config.enabled_modules)
    await initialize_plugins(plugin_registry)

    if settings.scheduler_cron_interval_minutes > 0:
        schedule_interval_cron(settings.scheduler_cron_interval_minutes)
        scheduler.start()

    yield

    if scheduler.running:
        scheduler.shutdown(wait=False)
    await shutdown_plugins(plugin_registry)


def create_app() -> FastAPI:
    """Create the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Scheduled publishing and unpublishing for CMS content",
        debug=settings.debug,
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.add_middleware(PrometheusMiddleware)
    register_exception_handlers(app)

    app.include_router(cron.router)
    app.include_router(settings_routes.router)
    app.include_router(scheduling.router)

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/health", tags=["Health"])
    async def health() -> dict:
        return {"status": "ok", "version": settings.app_version}

    set_app_info(settings.app_version, settings.environment)

    if settings.debug:
        logger.info("Running in %s mode", settings.environment)
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.debug)
