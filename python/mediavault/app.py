"""FastAPI application creation and configuration.

This module creates and configures the FastAPI application instance.
It registers exception handlers, auth middleware, request-id middleware, and routes.

Shared resources:
- One SQLAlchemy engine + session factory and one media provider client are
  built in create_app (or injected by tests) and stored on app.state
- Route dependencies read them from app.state
- The lifespan shutdown closes the provider client and disposes the engine

Middleware Ordering (Critical):
- Middleware runs in reverse order of registration
- RequestIDMiddleware is added LAST so it runs FIRST (outermost)
- This ensures all requests (including auth failures) get X-Request-ID

Actual execution order per request:
1. RequestIDMiddleware (sets request_id, starts timer)
2. AuthMiddleware (verifies session token, resolves user, sets viewer)
3. Route handler
4. AuthMiddleware (returns response)
5. RequestIDMiddleware (logs, sets response header)
"""

import json
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session, sessionmaker
from starlette.exceptions import HTTPException as StarletteHTTPException

from mediavault.api.routes import create_api_router
from mediavault.auth.middleware import AuthMiddleware
from mediavault.auth.verifier import ClerkJwksVerifier, Principal, TokenVerifier
from mediavault.config import Settings, get_settings
from mediavault.db.engine import create_db_engine
from mediavault.db.session import create_session_factory
from mediavault.errors import ApiError, ApiErrorCode
from mediavault.logging import configure_logging, get_logger
from mediavault.media.client import CloudinaryClient, MediaClientBase
from mediavault.middleware.request_id import RequestIDMiddleware
from mediavault.responses import (
    api_error_handler,
    error_response,
    http_exception_handler,
    unhandled_exception_handler,
)
from mediavault.services.identity import resolve_user

# Configure structured logging at import time
configure_logging()

logger = get_logger(__name__)


def create_bootstrap_callback(session_factory: sessionmaker[Session]):
    """Create a callback that resolves a principal to a local user id.

    The callback is called by the auth middleware for each authenticated request.
    It creates a fresh database session, resolves the user, and closes it.
    """

    def bootstrap(principal: Principal) -> UUID:
        db = session_factory()
        try:
            user = resolve_user(db, principal.external_id, principal.email, principal.name)
            return user.id
        finally:
            db.close()

    return bootstrap


def create_token_verifier(settings: Settings) -> ClerkJwksVerifier:
    """Create the Clerk JWKS verifier from settings."""
    return ClerkJwksVerifier(
        jwks_url=settings.effective_clerk_jwks_url,
        issuer=settings.effective_clerk_issuer,
        authorized_parties=settings.authorized_party_list,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Close shared resources on shutdown."""
    yield

    app.state.media_client.close()
    logger.info("media_client_closed")

    engine = getattr(app.state, "engine", None)
    if engine is not None:
        engine.dispose()
        logger.info("db_engine_disposed")


def create_app(
    skip_auth_middleware: bool = False,
    token_verifier: TokenVerifier | None = None,
    settings: Settings | None = None,
    session_factory: sessionmaker[Session] | None = None,
    media_client: MediaClientBase | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        skip_auth_middleware: If True, skip adding auth middleware (for testing).
        token_verifier: Optional custom token verifier (for testing).
        settings: Settings to use instead of the environment.
        session_factory: Optional session factory; an engine is built from
            DATABASE_URL when omitted.
        media_client: Optional media client; a CloudinaryClient is built when omitted.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="MediaVault API",
        description="Backend API for MediaVault - video and image uploads with compression",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    engine = None
    if session_factory is None:
        engine = create_db_engine(settings.database_url)
        session_factory = create_session_factory(engine)

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.media_client = media_client or CloudinaryClient.from_settings(settings)

    # Register exception handlers
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle request validation errors (bad path params, malformed JSON)."""
        return JSONResponse(
            status_code=400,
            content=error_response(ApiErrorCode.E_INVALID_REQUEST, "Invalid request"),
        )

    @app.middleware("http")
    async def catch_json_decode_errors(request: Request, call_next):
        """Reject malformed JSON bodies before they reach route handlers."""
        if request.method in ("POST", "PUT", "PATCH"):
            content_type = request.headers.get("content-type", "")
            if "application/json" in content_type:
                body = await request.body()
                if body:
                    try:
                        json.loads(body)
                    except json.JSONDecodeError:
                        return JSONResponse(
                            status_code=400,
                            content=error_response(
                                ApiErrorCode.E_INVALID_REQUEST, "Malformed JSON body"
                            ),
                        )
        return await call_next(request)

    app.include_router(create_api_router())

    if not skip_auth_middleware:
        verifier = token_verifier or create_token_verifier(settings)
        app.add_middleware(
            AuthMiddleware,
            verifier=verifier,
            bootstrap_callback=create_bootstrap_callback(session_factory),
        )
        logger.info("auth_middleware_enabled", env=settings.mediavault_env.value)

    return app


def add_request_id_middleware(app: FastAPI, log_requests: bool = True) -> None:
    """Add request-id middleware to the app.

    This should be called AFTER all other middleware is added, so it runs FIRST.
    This ensures every response includes X-Request-ID, including auth failures.
    """
    app.add_middleware(RequestIDMiddleware, log_requests=log_requests)
    logger.info("request_id_middleware_enabled")
