"""
Notekeeper Backend: FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   uvicorn (`uvicorn notekeeper.main:app`), the `notekeeper` console
       script, and the test suite (which injects its own store).

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌─────────────┐ ┌──────┐ ┌──────┐     │
    │  │ Req ID   │→│  Logging    │→│ GZip │→│ CORS │     │
    │  └──────────┘ └─────────────┘ └──────┘ └──────┘     │
    │                                                     │
    │  Routes:                                            │
    │  ┌─────────────────────────┐ ┌─────────────────┐    │
    │  │ /api/v1/notes (CRUD)    │ │ GET /health     │    │
    │  └─────────────────────────┘ └─────────────────┘    │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ Validation→400 │ NotFound→404 │ Timeout→504  │   │
    │  │ Backend→500    │ anything else→500           │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Build the configured note store (unless one was injected)
    3. Create the notes table if configured to
    Shutdown:
    1. Shut the note store down (disposes the SQL connection pool)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from notekeeper import __version__
from notekeeper.config import settings
from notekeeper.database import create_schema
from notekeeper.exceptions import (
    BackendError,
    ErrorKind,
    NotekeeperError,
    NotFoundError,
    StoreTimeoutError,
    ValidationError,
)
from notekeeper.middleware.logging import RequestLoggingMiddleware
from notekeeper.middleware.request_id import RequestIDMiddleware, request_id_var
from notekeeper.routes import health, notes
from notekeeper.services.factory import build_note_store
from notekeeper.services.sql_store import SQLNoteStore
from notekeeper.services.store_base import NoteStore

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Output: stdout (collected by the container runtime)
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries log every operation at DEBUG/INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Manage application lifecycle: build the store on startup, release it on shutdown.

    A store injected through create_app(note_store=...) is used as-is and
    its schema is left alone.
    """
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Notekeeper Backend %s starting up...", __version__)

    store: Optional[NoteStore] = getattr(app.state, "note_store", None)
    if store is None:
        store = build_note_store()
        app.state.note_store = store
        if isinstance(store, SQLNoteStore) and settings.create_schema_on_startup:
            await create_schema(store.engine)

    logger.info("Note store: %s", store.name)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield  # Application runs here

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Notekeeper Backend shutting down...")
    await store.shutdown()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "") or request_id_var.get("")


def _error_body(
    request: Request,
    status_code: int,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    """
    Build the ErrorResponse JSON shared by every handler.

    The catch-all handler runs outside RequestIDMiddleware, after the
    context variable has been reset, so the id is read from request.state.
    """
    content: Dict[str, Any] = {
        "error": error,
        "message": message,
        "request_id": _request_id(request),
    }
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map note store failures to HTTP responses.

        ValidationError / RequestValidationError → 400
        NotFoundError                            → 404
        StoreTimeoutError                        → 504
        BackendError, other NotekeeperError      → 500
        anything else                            → 500

    Driver messages and SQL stay in the server log under the request id;
    clients only ever see the generic text.
    """

    @app.exception_handler(ValidationError)
    async def on_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Rejected input: %s", _request_id(request), exc.message)
        return _error_body(request, 400, exc.kind.value, exc.message, exc.context)

    @app.exception_handler(RequestValidationError)
    async def on_request_validation_error(request: Request, exc: RequestValidationError):
        """Undecodable JSON, wrong field types, or a non-integer note id."""
        problems = [
            {
                "loc": [str(part) for part in err.get("loc", ())],
                "msg": err.get("msg", ""),
                "type": err.get("type", ""),
            }
            for err in exc.errors()
        ]
        logger.warning("[%s] Invalid input: %s", _request_id(request), problems)
        return _error_body(
            request, 400, ErrorKind.VALIDATION.value, "Invalid input", {"errors": problems}
        )

    @app.exception_handler(NotFoundError)
    async def on_not_found(request: Request, exc: NotFoundError):
        return _error_body(request, 404, exc.kind.value, exc.message)

    @app.exception_handler(StoreTimeoutError)
    async def on_store_timeout(request: Request, exc: StoreTimeoutError):
        logger.error("[%s] %s | %s", _request_id(request), exc.message, exc.context)
        return _error_body(
            request, 504, exc.kind.value, "The request took too long to complete. Please try again."
        )

    @app.exception_handler(BackendError)
    async def on_backend_error(request: Request, exc: BackendError):
        logger.error("[%s] Store failure: %s | %s", _request_id(request), exc.message, exc.context)
        return _error_body(
            request, 500, "server_error", "An internal error occurred. Please try again later."
        )

    @app.exception_handler(NotekeeperError)
    async def on_notekeeper_error(request: Request, exc: NotekeeperError):
        logger.error("[%s] %s | %s", _request_id(request), exc.message, exc.context)
        return _error_body(request, 500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def on_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unhandled %s", _request_id(request), type(exc).__name__, exc_info=True)
        return _error_body(
            request,
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(note_store: Optional[NoteStore] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        note_store: Store to serve requests with. When omitted, the lifespan
            builds the backend named by NOTE_STORE at startup.

    Returns:
        Fully configured FastAPI instance ready to receive requests.
    """
    app = FastAPI(
        title="Notekeeper API",
        description="CRUD service for notes backed by a SQL or in-memory store.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    if note_store is not None:
        app.state.note_store = note_store

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added executes first: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(notes.router)
    app.include_router(health.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `notekeeper.main:app` to be importable
app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn on the configured address."""
    import uvicorn

    uvicorn.run(
        "notekeeper.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )
