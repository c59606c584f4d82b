"""FastAPI application setup and configuration."""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from yunshui import __version__
from yunshui.config.settings import Settings, settings as default_settings
from yunshui.core.exceptions import NotFoundError, StorageError, ValidationError, YunshuiError
from yunshui.core.logger import setup_logger
from yunshui.core.monitoring import capture_exception, init_monitoring
from yunshui.repositories.base import MaterialsRepository
from yunshui.services import build_services

logger = setup_logger(__name__)


def _error_response(status_code: int, error: YunshuiError) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error.kind, "message": error.message},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain errors to HTTP responses."""

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _error_response(404, exc)

    @app.exception_handler(ValidationError)
    async def validation_handler(request: Request, exc: ValidationError):
        return _error_response(400, exc)

    @app.exception_handler(StorageError)
    async def storage_handler(request: Request, exc: StorageError):
        logger.error(f"Storage failure on {request.method} {request.url.path}: {exc.message}")
        capture_exception(exc, {"path": request.url.path, "method": request.method})
        return _error_response(500, exc)

    @app.exception_handler(YunshuiError)
    async def domain_error_handler(request: Request, exc: YunshuiError):
        logger.error(f"Unhandled domain error on {request.url.path}: {exc.message}")
        return _error_response(500, exc)


async def build_repository(config: Settings) -> MaterialsRepository:
    """Create the storage backend selected by STORAGE_BACKEND."""
    if config.storage_backend == "postgres":
        from yunshui.db import get_engine, get_session_factory, init_db
        from yunshui.repositories.postgres_repository import PostgresRepository

        engine = get_engine(config.database_url)
        await init_db(engine)
        repository = PostgresRepository(get_session_factory(engine), engine=engine)
        logger.info("Using PostgreSQL storage")
        return repository

    from yunshui.repositories.memory_repository import MemoryRepository

    logger.info(
        "Using in-memory storage"
        + (f" with snapshot {config.memory_snapshot_path}" if config.memory_snapshot_path else "")
    )
    return MemoryRepository(snapshot_path=config.memory_snapshot_path)


def create_app(
    config: Optional[Settings] = None,
    repository: Optional[MaterialsRepository] = None,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        config: Settings to use instead of the environment-loaded ones
        repository: Prebuilt storage backend; built from settings at startup if None
    """
    config = config or default_settings

    app = FastAPI(
        title="Yunshui Materials",
        version=__version__,
        description="Material catalog, orders, projects and four-track status pipeline",
    )

    # Initialize GlitchTip error monitoring (Sentry-compatible)
    if config.glitchtip_dsn:
        init_monitoring(config.glitchtip_dsn, config.environment)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    from yunshui.server import order_routes, routes

    app.include_router(routes.router)
    app.include_router(order_routes.router)

    if repository is not None:
        app.state.services = build_services(repository)

    @app.on_event("startup")
    async def startup_handler():
        """Build the storage backend and services."""
        logger.info("Starting application resources...")
        if repository is None:
            app.state.services = build_services(await build_repository(config))
        logger.info("Application startup completed")

    @app.on_event("shutdown")
    async def shutdown_handler():
        """Release storage resources."""
        logger.info("Starting graceful shutdown...")
        await app.state.services.repository.close()
        logger.info("Graceful shutdown completed successfully")

    return app
