"""
Catdex — FastAPI Application Factory
======================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes dependency construction, middleware, routes, static mounts
       and error mapping in one place.
How:   create_app(settings, ...) builds the connection pool, the blocking
       worker pool, the upload ingestor and the CatService, and stores them
       on app.state. Tests pass their own settings or pre-built dependencies.
Who:   `python -m catdex` (see __main__.py) or
       `uvicorn --factory catdex.main:create_app`.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware:   Request ID → Access log                   │
    │                                                          │
    │  Routes:       GET /api/cats   GET /api/cat/{id}         │
    │                POST /api/add_cat   GET /health   GET /   │
    │  Mounts:       /static   /image   (with listing)         │
    │                                                          │
    │  app.state:    pool ─┐                                   │
    │                executor ─┼─▶ cat_service                 │
    │                ingestor ─┘                               │
    │                                                          │
    │  Errors:       CatdexError → http_status_for(kind)       │
    └──────────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse

from catdex import __version__
from catdex.config import Settings, get_settings
from catdex.database import ConnectionPool
from catdex.exceptions import (
    CatdexError,
    ErrorKind,
    NotFoundError,
    ValidationError,
    log_level_for,
)
from catdex.middleware.logging import RequestLoggingMiddleware
from catdex.middleware.request_id import RequestIDMiddleware, request_id_var
from catdex.routes import cats, health
from catdex.services.cat_repository import CatRepository
from catdex.services.cat_service import CatService
from catdex.services.upload_service import UploadIngestor
from catdex.static_files import ListingStaticFiles
from catdex.workers import BlockingExecutor

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure process-wide logging once, before the server starts.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    # Our own access log replaces uvicorn's
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:  verify the pool can reach the database. A failure here aborts
              startup, so the server exits instead of serving 500s.
    Shutdown: stop the worker pool and close pooled connections.
    """
    state = app.state
    logger.info("Catdex %s starting up...", __version__)
    await state.executor.run(state.pool.ping)
    logger.info("Database reachable; image directory: %s", state.ingestor.image_dir)

    yield

    logger.info("Catdex shutting down...")
    state.executor.shutdown()
    state.pool.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(kind: str, message: str, details: Optional[dict] = None) -> dict:
    body = {"error": kind, "message": message, "request_id": request_id_var.get("")}
    if details:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Convert every failure into a JSON response at the handler boundary.

    CatdexError             → http_status_for(exc.kind)
    RequestValidationError  → 400 (FastAPI's own parameter checks)
    Exception (fallback)    → 500, stack trace logged server-side only

    Internal details (SQL, file paths) stay in the log context; the response
    carries only the client-safe message.
    """

    @app.exception_handler(CatdexError)
    async def handle_catdex_error(request: Request, exc: CatdexError):
        rid = request_id_var.get("")
        logger.log(
            log_level_for(exc.kind),
            "[%s] %s %s: %s | Context: %s",
            rid,
            request.method,
            request.url.path,
            exc.message,
            exc.context,
        )
        request.state.error_kind = exc.kind.value
        details = None
        if isinstance(exc, ValidationError) and exc.field:
            details = {"field": exc.field}
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.kind.value, exc.message, details),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Request validation failed: %s", rid, exc.errors())
        return JSONResponse(
            status_code=400,
            content=_error_body(ErrorKind.VALIDATION.value, "Invalid request parameters"),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, exc, exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body(
                ErrorKind.UNEXPECTED.value,
                "An unexpected error occurred. Please try again later.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    *,
    pool: Optional[ConnectionPool] = None,
    executor: Optional[BlockingExecutor] = None,
    repository: Optional[CatRepository] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings:   Defaults to get_settings() (environment / .env).
        pool:       Pre-built connection pool; built from settings if omitted.
        executor:   Pre-built blocking worker pool.
        repository: Replacement repository (tests use stubs here).

    Raises:
        ConfigurationError: DATABASE_URL is missing or unusable.
    """
    settings = settings or get_settings()

    pool = pool or ConnectionPool.from_settings(settings)
    executor = executor or BlockingExecutor(settings.blocking_workers)
    repository = repository or CatRepository(pool)
    ingestor = UploadIngestor(
        image_dir=settings.image_dir,
        url_prefix=settings.image_url_prefix,
        max_bytes=settings.max_upload_bytes,
        executor=executor,
    )

    app = FastAPI(
        title="Catdex API",
        description="A small catalog of cats with uploaded images.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.pool = pool
    app.state.executor = executor
    app.state.ingestor = ingestor
    app.state.cat_service = CatService(
        repository=repository,
        ingestor=ingestor,
        executor=executor,
        list_limit=settings.list_limit,
        db_timeout=settings.db_pool_timeout,
    )

    # Last added = first to execute: RequestID wraps the access log
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(cats.router)
    app.include_router(health.router)

    index_file = Path(settings.static_dir) / "index.html"

    @app.get("/", include_in_schema=False)
    async def index() -> FileResponse:
        if not index_file.is_file():
            raise NotFoundError(resource="page", resource_id="index.html")
        return FileResponse(index_file)

    app.mount(
        "/static",
        ListingStaticFiles(directory=settings.static_dir, check_dir=False),
        name="static",
    )
    app.mount(
        settings.image_url_prefix,
        ListingStaticFiles(directory=str(ingestor.image_dir), check_dir=False),
        name="image",
    )

    return app
