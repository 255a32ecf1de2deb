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

from backend.controllers.auth_controller import router as auth_router
from backend.controllers.error_handlers import install_error_handlers
from backend.controllers.reservation_controller import router as reservation_router
from backend.repository.data_repository import DataRepository
from backend.services.auth_service import AuthService
from backend.services.availability_service import AvailabilityService
from backend.services.catalog_service import CatalogService
from backend.services.reservation_service import ReservationService
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Services receive the repository explicitly and are exposed through
    app.state; there is no module-level store client.
    """
    settings = settings or get_settings()

    # --- Repository (one SQLite connection per operation) ---
    repository = DataRepository(settings)

    # --- Services ---
    availability_service = AvailabilityService(repository=repository, settings=settings)
    reservation_service = ReservationService(
        repository=repository,
        settings=settings,
        availability_service=availability_service,
    )
    auth_service = AuthService(repository=repository, settings=settings)
    catalog_service = CatalogService(repository=repository, settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run startup initialization before accepting requests."""
        _startup(app)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # --- Routers ---
    app.include_router(auth_router)
    app.include_router(reservation_router)
    install_error_handlers(app)

    # --- Inject services into app.state for dependency resolution ---
    app.state.settings = settings
    app.state.repository = repository
    app.state.availability_service = availability_service
    app.state.reservation_service = reservation_service
    app.state.auth_service = auth_service
    app.state.catalog_service = catalog_service

    return app


def _startup(app: FastAPI) -> None:
    """
    Idempotent startup sequence. Safe to re-run on server restarts.

    Schema must exist before the demo catalog is seeded; seeding is skipped
    when hotels already exist or when disabled in settings.
    """
    repository: DataRepository = app.state.repository
    settings: Settings = app.state.settings

    logger.info("Startup: initializing database schema")
    repository.initialize_database()

    if settings.seed_demo_catalog:
        logger.info("Startup: seeding demo catalog (skipped if hotels exist)")
        repository.seed_demo_catalog()

    logger.info("Startup complete, system ready")


# Module-level app object for uvicorn
app = create_app()
