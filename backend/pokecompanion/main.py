"""
PokéCompanion Backend: FastAPI Application Factory
===================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() builds the service handles, registers middleware,
       exception handlers and routers, and returns the app.
Who:   uvicorn (uvicorn pokecompanion.main:app) and the test suite, which
       passes its own session factory.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────┐ ┌──────────┐ ┌──────────┐ ┌────────────┐  │
    │  │ CORS │→│ Req ID   │→│ Logging  │→│ Auth Limit │  │
    │  └──────┘ └──────────┘ └──────────┘ └────────────┘  │
    │                                                     │
    │  Routes:                                            │
    │  /api/auth  /api/favorites  /api/search-history     │
    │  /api/lists  /health                                │
    │                                                     │
    │  app.state:                                         │
    │  session_factory, history_store, auth_service,      │
    │  favorites_service, lists_service                   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, validate settings (fails startup when the
              JWT secret is missing), create tables
    Shutdown: wait for pending history trims, dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pokecompanion import __version__
from pokecompanion.config import settings
from pokecompanion.database import async_session_factory, create_tables, dispose_engine
from pokecompanion.exceptions import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    ForbiddenError,
    NotFoundError,
    PokeCompanionError,
    ValidationError,
)
from pokecompanion.middleware.logging import RequestLoggingMiddleware
from pokecompanion.middleware.rate_limit import RateLimitMiddleware
from pokecompanion.middleware.request_id import RequestIDMiddleware
from pokecompanion.responses import error_response, request_id_for
from pokecompanion.routes import auth, favorites, health, history, lists
from pokecompanion.services.auth_service import AuthService
from pokecompanion.services.favorites_service import FavoritesService
from pokecompanion.services.history_store import HistoryStore
from pokecompanion.services.lists_service import CustomListsService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once at startup.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("PokéCompanion backend starting up (%s)...", settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Without a signing secret no token can be issued or verified
        logger.critical("Configuration error, refusing to start: %s", str(e))
        raise

    if settings.db_create_tables:
        await create_tables()
        logger.info("Database tables verified")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("PokéCompanion backend shutting down...")
    await app.state.history_store.wait_for_pending_trims()
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map application exceptions to HTTP responses.

        ValidationError        → 400
        AuthenticationError    → 401
        ForbiddenError         → 403
        NotFoundError          → 404
        ConflictError          → 409
        DatabaseError          → 500 (generic message, details logged)
        PokeCompanionError     → 500
        Exception              → 500 (stack trace logged, never returned)

    RateLimitExceededError (429) is answered by RateLimitMiddleware itself,
    with the same body shape.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_for(request), exc.message)
        return error_response(request, 400, "validation_error", exc, include_details=True)

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return error_response(
            request, 401, "unauthorized", exc, headers={"WWW-Authenticate": "Bearer"}
        )

    @app.exception_handler(ForbiddenError)
    async def handle_forbidden(request: Request, exc: ForbiddenError):
        return error_response(request, 403, "forbidden", exc)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(request, 404, "not_found", exc)

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        return error_response(request, 409, "conflict", exc, include_details=True)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s | Cause: %r",
            request_id_for(request),
            exc.message,
            exc.context,
            exc.__cause__,
        )
        generic = DatabaseError(message="An internal error occurred. Please try again later.")
        return error_response(request, 500, "server_error", generic)

    @app.exception_handler(PokeCompanionError)
    async def handle_app_error(request: Request, exc: PokeCompanionError):
        logger.error("[%s] Unhandled application error: %s", request_id_for(request), exc.message)
        return error_response(request, 500, "server_error", exc)

    # Runs in ServerErrorMiddleware, outside RequestIDMiddleware
    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_for(request)
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again or contact support.",
                "request_id": rid,
            },
            headers={"X-Request-ID": rid} if rid else None,
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    history_store: Optional[HistoryStore] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        session_factory: sessions for request handlers and the history store
                         (default: the engine configured from settings)
        history_store:   prebuilt store, e.g. with a fixed clock in tests

    Returns:
        Configured FastAPI instance. Service handles are on app.state.
    """
    app = FastAPI(
        title="PokéCompanion API",
        description=(
            "Accounts, favorite Pokémon, bounded search history and custom "
            "Pokémon lists for the PokéCompanion app."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Service Handles ───────────────────────────────────────────────────
    factory = session_factory or async_session_factory
    app.state.session_factory = factory
    app.state.history_store = history_store or HistoryStore(factory, limit=settings.history_limit)
    app.state.auth_service = AuthService()
    app.state.favorites_service = FavoritesService()
    app.state.lists_service = CustomListsService()

    # ── Middleware (last added runs first) ────────────────────────────────
    # Innermost: a 429 from the auth limiter still carries a request id
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )

    register_exception_handlers(app)

    # ── Routes ────────────────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(favorites.router)
    app.include_router(history.router)
    app.include_router(lists.router)
    app.include_router(health.router)

    return app


app = create_app()
