"""
CodeSnippet Manager Backend: FastAPI Application Factory
=========================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers and routers;
       the lifespan handler configures logging, creates missing tables and
       disposes the engine on shutdown.
Who:   uvicorn (`uvicorn snippet_manager.main:app`) and the test suite.

Application Layout:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware:  Request ID → Logging → GZip → CORS    │
    │                                                     │
    │  Routes:                                            │
    │  ┌────────────────┐ ┌──────────────┐ ┌───────────┐  │
    │  │ /api/snippets  │ │/api/languages│ │ /health   │  │
    │  └────────────────┘ └──────────────┘ └───────────┘  │
    │                                                     │
    │  Exception Handlers:                                │
    │  Validation→400 │ NotFound→404 │ Constraint→409     │
    │  Persistence→500 │ anything else→500                │
    └─────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from snippet_manager import __version__
from snippet_manager.config import settings
from snippet_manager.database import create_tables, dispose_engine
from snippet_manager.exceptions import (
    ConstraintViolation,
    DanglingReferenceError,
    NotFoundError,
    PersistenceError,
    SnippetManagerError,
    ValidationError,
)
from snippet_manager.middleware.logging import RequestLoggingMiddleware
from snippet_manager.middleware.request_id import RequestIDMiddleware, request_id_var
from snippet_manager.routes import health, snippets

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger for the whole process.

    Format: 2024-01-15T12:00:00 [INFO] snippet_manager.services.snippet_repository: ...
    Output: stdout (collected by the container runtime)
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries that log every operation
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
        1. Setup logging
        2. Create missing tables (when enabled)
    Shutdown:
        1. Dispose database engine (close all pooled connections)
    """
    setup_logging()
    logger.info("CodeSnippet Manager backend %s starting up", __version__)

    if settings.create_tables_on_startup:
        await create_tables()
        logger.info("Database schema ready")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("CodeSnippet Manager backend shutting down")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[dict] = None,
) -> JSONResponse:
    content = {
        "success": False,
        "error": error,
        "message": message,
        "request_id": request_id_var.get(""),
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the exception hierarchy onto HTTP responses.

    Handler table:
        ValidationError         → 400 validation_error
        NotFoundError           → 404 not_found
        ConstraintViolation     → 409 constraint_violation
        DanglingReferenceError  → 409 reference_error
        PersistenceError        → 500 server_error (details logged only)
        SnippetManagerError     → 500 server_error
        Exception (fallback)    → 500 internal_server_error

    Starlette resolves handlers by walking the exception's MRO, so the
    most specific registered class wins.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, "not_found", exc.message)

    @app.exception_handler(ConstraintViolation)
    async def handle_constraint_violation(request: Request, exc: ConstraintViolation):
        logger.warning("[%s] Constraint violation: %s", request_id_var.get(""), exc.message)
        return _error_response(409, "constraint_violation", exc.message)

    @app.exception_handler(DanglingReferenceError)
    async def handle_dangling_reference(request: Request, exc: DanglingReferenceError):
        logger.warning("[%s] Dangling reference: %s", request_id_var.get(""), exc.context)
        return _error_response(409, "reference_error", exc.message)

    @app.exception_handler(PersistenceError)
    async def handle_persistence_error(request: Request, exc: PersistenceError):
        logger.error(
            "[%s] Persistence error: %s | Context: %s | Cause: %r",
            request_id_var.get(""),
            exc.message,
            exc.context,
            exc.__cause__,
        )
        return _error_response(500, "server_error", exc.message)

    @app.exception_handler(SnippetManagerError)
    async def handle_app_error(request: Request, exc: SnippetManagerError):
        logger.error("[%s] Application error: %s", request_id_var.get(""), exc.message)
        return _error_response(500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return _error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="CodeSnippet Manager API",
        description=(
            "Store, tag, search and delete code snippets. Tags are shared between "
            "snippets and created on first use."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → GZip → CORS → route
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(snippets.router)
    app.include_router(health.router)

    return app


app = create_app()
