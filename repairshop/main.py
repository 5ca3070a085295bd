import logging
import os
from concurrent.futures import Executor, ThreadPoolExecutor
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from repairshop.core.config import Settings, load_settings
from repairshop.core.database import Base, build_engine, build_session_factory
from repairshop.core.errors import register_exception_handlers
from repairshop.core.logging_setup import configure_logging
from repairshop.core.startup_checks import (
    ensure_migrations_applied,
    validate_auth_configuration,
    validate_database_environment,
)
from repairshop.middleware.observability import ObservabilityMiddleware
import repairshop.models  # registers every table on Base.metadata before create_all

from repairshop.routers.admin_superadmin import router as admin_superadmin_router
from repairshop.routers.admin_workspaces import router as admin_workspaces_router
from repairshop.routers.auth import router as auth_router
from repairshop.routers.health import router as health_router
from repairshop.routers.members import router as members_router
from repairshop.routers.repairs import router as repairs_router
from repairshop.routers.workspaces import router as workspaces_router
from repairshop.services.notifications import NotificationDispatcher
from repairshop.sms.base import SmsSender
from repairshop.sms.service import build_sms_sender

logger = logging.getLogger(__name__)
STARTUP_PREFIX = "[STARTUP]"
REPO_ROOT = Path(__file__).resolve().parents[1]
ALEMBIC_CONFIG_PATH = Path(os.getenv("ALEMBIC_CONFIG", str(REPO_ROOT / "alembic.ini")))


def _startup_tasks(app: FastAPI) -> None:
    settings: Settings = app.state.settings
    try:
        validate_database_environment(settings)
        validate_auth_configuration(settings)
        if settings.database_url.startswith("sqlite"):
            Base.metadata.create_all(bind=app.state.engine)
        else:
            ensure_migrations_applied(
                settings=settings,
                engine=app.state.engine,
                alembic_config_path=ALEMBIC_CONFIG_PATH,
            )
    except Exception:
        logger.exception("%s ERROR startup failed", STARTUP_PREFIX)
        raise
    logger.info("%s ready env=%s sms_enabled=%s", STARTUP_PREFIX, settings.env_normalized, settings.sms_enabled)


@asynccontextmanager
async def lifespan(app: FastAPI):
    _startup_tasks(app)
    try:
        yield
    finally:
        app.state.executor.shutdown(wait=False)
        app.state.engine.dispose()


def create_app(
    settings: Optional[Settings] = None,
    *,
    sms_sender: Optional[SmsSender] = None,
    executor: Optional[Executor] = None,
) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Repair Shop API",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    engine = build_engine(settings.database_url)
    executor = executor or ThreadPoolExecutor(
        max_workers=max(1, settings.notification_workers),
        thread_name_prefix="notifications",
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.executor = executor
    app.state.notifications = NotificationDispatcher(
        sms_sender or build_sms_sender(settings),
        executor,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(ObservabilityMiddleware)
    register_exception_handlers(app)

    # Routers
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(workspaces_router)
    app.include_router(members_router)
    app.include_router(repairs_router)
    app.include_router(admin_superadmin_router)
    app.include_router(admin_workspaces_router)

    @app.get("/")
    def root():
        return {"status": "ok"}

    return app


app = create_app()
