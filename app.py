"""
app.py: FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires all services, registers routers, and runs startup initialization.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from hotelops.controllers.analytics_controller import router as analytics_router
from hotelops.controllers.billing_controller import router as billing_router
from hotelops.controllers.rooms_controller import router as rooms_router
from hotelops.controllers.session_controller import router as session_router
from hotelops.controllers.team_controller import router as team_router
from hotelops.repository.hotel_repository import HotelRepository
from hotelops.services.access_service import AccessService
from hotelops.services.analytics_service import AnalyticsService
from hotelops.services.auth_service import AuthService
from hotelops.services.billing_service import BillingService
from hotelops.services.email_service import InvoiceEmailService
from hotelops.services.notification_service import NotificationService, SlaMonitor
from hotelops.services.room_service import RoomOperationsService
from hotelops.services.team_service import TeamService
from hotelops.utils.config import Settings, get_settings
from hotelops.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None, start_monitor: bool = True) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Instantiates all services with explicit dependency injection via app.state.
    Every dependency is traceable from this function.
    """
    settings = settings or get_settings()

    # --- Repository (SQLite document store) ---
    repository = HotelRepository(settings)

    # --- Services ---
    room_service = RoomOperationsService(repository=repository, settings=settings)
    billing_service = BillingService(
        repository=repository,
        settings=settings,
        room_service=room_service,
    )
    notification_service = NotificationService(repository=repository, settings=settings)
    sla_monitor = SlaMonitor(
        notification_service,
        hotel_ids=[settings.demo_hotel_id],
        settings=settings,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run startup initialization before accepting requests."""
        _startup(app)
        if start_monitor:
            sla_monitor.start()
        try:
            yield
        finally:
            sla_monitor.stop()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # --- Routers ---
    app.include_router(session_router)
    app.include_router(rooms_router)
    app.include_router(billing_router)
    app.include_router(analytics_router)
    app.include_router(team_router)

    # --- Inject services into app.state for dependency resolution ---
    app.state.settings = settings
    app.state.repository = repository
    app.state.room_service = room_service
    app.state.billing_service = billing_service
    app.state.analytics_service = AnalyticsService(repository=repository, settings=settings)
    app.state.notification_service = notification_service
    app.state.sla_monitor = sla_monitor
    app.state.team_service = TeamService(repository=repository, settings=settings)
    app.state.access_service = AccessService(repository=repository, settings=settings)
    app.state.auth_service = AuthService(settings=settings, repository=repository)
    app.state.email_service = InvoiceEmailService(repository=repository, settings=settings)

    return app


def _startup(app: FastAPI) -> None:
    """
    Idempotent startup sequence. Safe to re-run on server restarts.

    The document table must exist before the demo hotel is seeded.
    """
    repository: HotelRepository = app.state.repository

    logger.info("Startup: initializing document store")
    repository.initialize_database()

    logger.info("Startup: seeding demo hotel (skipped if it already has rooms)")
    repository.seed_demo_hotel()

    logger.info("Startup complete, system ready")


# Module-level app object for uvicorn
app = create_app()
