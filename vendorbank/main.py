"""Vendor Evaluation Data Bank — FastAPI application factory."""


import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vendorbank.core.config import Settings, settings
from vendorbank.core.exceptions import AppException, register_exception_handlers
from vendorbank.middleware.audit import AuditMiddleware
from vendorbank.repositories import VendorRecordRepository, build_repository
from vendorbank.schemas.common import HealthResponse

from vendorbank.routers.snapshot import build_snapshot_router

# v1 routers
from vendorbank.routers.v1.storage import router as storage_v1_router
from vendorbank.routers.v1.vendors import router as vendors_v1_router

logger = logging.getLogger(__name__)


def _configure_logging(config: Settings) -> None:
    """Set up structured logging for the application."""
    level = logging.DEBUG if config.app_env == "development" else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,
    )
    # Quiet noisy libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("python_multipart").setLevel(logging.WARNING)


def create_app(
    config: Settings = settings,
    repository: VendorRecordRepository | None = None,
) -> FastAPI:
    _configure_logging(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # One repository per process; it initializes lazily on first use.
        app.state.repository = repository or build_repository(config)
        yield
        repo: VendorRecordRepository = app.state.repository
        if repo.is_dirty:
            try:
                await repo.flush()
            except AppException as exc:
                logger.error("Unsaved vendor data could not be persisted at shutdown: %s", exc.message)
        await repo.close()

    app = FastAPI(
        title=config.app_name,
        version="1.0.0",
        docs_url="/docs" if config.app_env == "development" else None,
        redoc_url="/redoc" if config.app_env == "development" else None,
        lifespan=lifespan,
    )

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.frontend_url],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # --- Audit middleware ---
    app.add_middleware(AuditMiddleware)

    # --- Global exception handlers ---
    register_exception_handlers(app)

    # --- Snapshot file endpoints (remote-file storage, server side) ---
    app.include_router(build_snapshot_router(config))

    # --- v1 API routes (/api/v1/*) ---
    app.include_router(vendors_v1_router, prefix="/api/v1")
    app.include_router(storage_v1_router, prefix="/api/v1")

    # --- Health check ---
    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health():
        return HealthResponse(app=config.app_name, env=config.app_env, storage=config.storage_backend)

    return app


app = create_app()
