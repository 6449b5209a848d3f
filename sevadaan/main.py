# sevadaan/main.py

import time
from pathlib import Path
from typing import Optional

import psutil
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from loguru import logger

from sevadaan.core.config import Settings, get_settings
from sevadaan.core.database import AsyncSessionLocal, init_db, test_connection
from sevadaan.core.errors import register_exception_handlers
from sevadaan.core.logging import configure_logging
from sevadaan.core.permissions import Role
from sevadaan.core.rate_limiter import limiter
from sevadaan.core.realtime import connection_manager
from sevadaan.services.auth_service import create_user, get_user_by_email

# Routers
from sevadaan.api.endpoints import (
    admin as admin_router,
    announcements as announcements_router,
    auth as auth_router,
    certificates as certificates_router,
    dashboard as dashboard_router,
    donations as donations_router,
    emergency as emergency_router,
    grants as grants_router,
    kyc as kyc_router,
    managers as managers_router,
    ngos as ngos_router,
    notifications as notifications_router,
    programs as programs_router,
    realtime as realtime_router,
    registrations as registrations_router,
    volunteers as volunteers_router,
    webhooks as webhooks_router,
)

VERSION = "1.0.0"
START_TIME = time.time()

ROUTERS = (
    auth_router,
    admin_router,
    ngos_router,
    kyc_router,
    programs_router,
    registrations_router,
    donations_router,
    volunteers_router,
    grants_router,
    certificates_router,
    emergency_router,
    announcements_router,
    notifications_router,
    managers_router,
    webhooks_router,
    dashboard_router,
    realtime_router,
)


# ------------------------------------------------------------
# STARTUP: DB check, tables, super admin seed
# ------------------------------------------------------------
async def seed_super_admin(settings: Settings) -> None:
    if not settings.SUPER_ADMIN_EMAIL or not settings.SUPER_ADMIN_PASSWORD:
        logger.warning("Missing Super Admin credentials in settings.")
        return

    async with AsyncSessionLocal() as session:
        existing = await get_user_by_email(session, settings.SUPER_ADMIN_EMAIL)
        if existing:
            logger.info("Super Admin already exists. Skipping.")
            return

        logger.info(f"Seeding Super Admin: {settings.SUPER_ADMIN_EMAIL}")
        await create_user(
            session=session,
            name=settings.SUPER_ADMIN_NAME or "Super Admin",
            email=settings.SUPER_ADMIN_EMAIL,
            password=settings.SUPER_ADMIN_PASSWORD,
            role=Role.SUPER_ADMIN,
        )
        logger.success("Super Admin created successfully.")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)
    settings.validate_for_production()

    app = FastAPI(
        title="Sevadaan Backend",
        version=VERSION,
        description="Multi-tenant platform connecting NGOs, volunteers, donors and citizens.",
    )
    app.state.settings = settings
    app.state.limiter = limiter

    register_exception_handlers(app)

    # ------------------------------------------------------------
    # CORS
    # ------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "*"],
    )

    for module in ROUTERS:
        app.include_router(module.router)

    # Local storage links resolve to /uploads/<path>
    if settings.STORAGE_PROVIDER == "local":
        Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
        app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

    # ------------------------------------------------------------
    # METRICS
    # ------------------------------------------------------------
    @app.get("/api/metrics", tags=["System"])
    async def metrics():
        uptime_seconds = int(time.time() - START_TIME)
        cpu_usage = psutil.cpu_percent(interval=None)
        ram_usage = psutil.virtual_memory().percent
        try:
            disk_usage = psutil.disk_usage("/").percent
        except OSError:
            disk_usage = 0

        db_start = time.time()
        db_latency = 0
        try:
            await test_connection()
            db_status = "Connected"
            db_latency = round((time.time() - db_start) * 1000, 2)
        except Exception:
            logger.exception("Metrics: database ping failed")
            db_status = "Error"

        return {
            "status": "Online",
            "version": app.version,
            "environment": settings.ENV,
            "cpu": cpu_usage,
            "ram": ram_usage,
            "disk": disk_usage,
            "uptime": uptime_seconds,
            "database": db_status,
            "db_latency": db_latency,
            "websocket_connections": connection_manager.connection_count(),
        }

    # ------------------------------------------------------------
    # STARTUP
    # ------------------------------------------------------------
    @app.on_event("startup")
    async def on_startup():
        logger.info("Starting Sevadaan Backend...")

        try:
            await test_connection()
            logger.success("Database connection established.")
        except Exception:
            logger.exception("Startup aborted: Database connection failed.")
            return

        try:
            await init_db()
            logger.success("Database tables ready.")
        except Exception as e:
            logger.warning(f"Table initialization encountered an issue: {e}")

        try:
            await seed_super_admin(settings)
        except Exception:
            logger.exception("Super Admin seeding failed.")

        logger.success("Backend startup completed successfully.")

    # ------------------------------------------------------------
    # ROOT HEALTH CHECK
    # ------------------------------------------------------------
    @app.get("/", tags=["System"])
    async def root():
        return {
            "status": "ok",
            "service": "Sevadaan Backend",
            "version": app.version,
            "message": "Backend running successfully",
        }

    return app


app = create_app()
