from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agency_desk.api.routes import (
    admin_users,
    ai,
    auth,
    carriers,
    clients,
    dashboard,
    documents,
    health,
    integrations,
    policies,
    reports,
    settings as settings_routes,
)
from agency_desk.core.config import get_settings
from agency_desk.core.logging import configure_logging, get_logger
from agency_desk.db.session import async_session_factory, init_models
from agency_desk.integrations.connector import SimulatedConnector
from agency_desk.services.integration_service import IntegrationLifecycleManager
from agency_desk.services.llm_client import build_assistant_client
from agency_desk.services.settings_store import SqlSettingsStore
from agency_desk.services.sync_scheduler import AsyncioSyncScheduler


_settings = get_settings()
configure_logging(_settings.log_level, json_logs=_settings.environment != "development")
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    await init_models()
    settings.upload_dir.mkdir(parents=True, exist_ok=True)

    scheduler = AsyncioSyncScheduler()
    app.state.integration_manager = IntegrationLifecycleManager(
        SqlSettingsStore(async_session_factory),
        scheduler,
        SimulatedConnector(),
        sync_delay_seconds=settings.integration_sync_delay_seconds,
        sync_timeout_seconds=settings.integration_sync_timeout_seconds,
    )
    app.state.assistant = build_assistant_client(settings)
    logger.info("application.startup", environment=settings.environment)
    try:
        yield
    finally:
        await scheduler.drain(timeout=settings.integration_sync_timeout_seconds)
        logger.info("application.shutdown")


def create_application() -> FastAPI:
    settings = get_settings()
    application = FastAPI(title=settings.app_name, lifespan=lifespan)
    application.include_router(health.router)
    application.include_router(auth.router)
    application.include_router(settings_routes.router)
    application.include_router(admin_users.router)
    application.include_router(clients.router)
    application.include_router(carriers.router)
    application.include_router(policies.router)
    application.include_router(documents.router)
    application.include_router(dashboard.router)
    application.include_router(reports.router)
    application.include_router(integrations.router)
    application.include_router(ai.router)

    if settings.allowed_origins:
        application.add_middleware(
            CORSMiddleware,
            allow_origins=[str(origin) for origin in settings.allowed_origins],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    return application


app = create_application()
