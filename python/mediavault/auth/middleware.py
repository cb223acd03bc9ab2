"""Authentication middleware for FastAPI.

Provides:
- AuthMiddleware: Global middleware for session token verification
- get_viewer: Dependency for accessing authenticated viewer identity
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from mediavault.auth.verifier import Principal, TokenVerifier, principal_from_claims
from mediavault.errors import ApiError, ApiErrorCode
from mediavault.responses import error_response

logger = logging.getLogger(__name__)

AUTHORIZATION_HEADER = "authorization"
SESSION_COOKIE = "__session"

# Paths that don't require authentication
PUBLIC_PATHS = {
    "/health",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/api/webhook",
}


@dataclass
class Viewer:
    """Authenticated viewer identity.

    Attributes:
        user_id: Local users.id.
        external_id: Clerk user id (JWT sub claim).
    """

    user_id: UUID
    external_id: str


class AuthMiddleware(BaseHTTPMiddleware):
    """Authentication middleware for FastAPI.

    Order of checks:
    1. Skip if public path
    2. Extract the session token (Authorization: Bearer, else __session cookie)
    3. Verify token via TokenVerifier
    4. Resolve the local user via the bootstrap callback
    5. Attach Viewer to request state
    """

    def __init__(
        self,
        app: ASGIApp,
        verifier: TokenVerifier,
        bootstrap_callback: Callable[[Principal], UUID],
    ):
        """Initialize the auth middleware.

        Args:
            app: The ASGI application.
            verifier: TokenVerifier implementation for JWT verification.
            bootstrap_callback: Function(principal) -> local user id.
                Called after successful auth to ensure the user row exists.
        """
        super().__init__(app)
        self.verifier = verifier
        self.bootstrap_callback = bootstrap_callback

    async def dispatch(self, request: Request, call_next) -> JSONResponse:
        if request.url.path in PUBLIC_PATHS:
            return await call_next(request)

        token, error_response_obj = self._extract_token(request)
        if error_response_obj:
            return error_response_obj

        try:
            claims = self.verifier.verify(token)
        except ApiError as e:
            return self._error_json_response(e.code, e.message, e.status_code)

        principal = principal_from_claims(claims)

        try:
            user_id = self.bootstrap_callback(principal)
        except ApiError as e:
            logger.warning(
                "auth_failure",
                extra={"reason": "bootstrap_rejected", "code": e.code.value},
            )
            return self._error_json_response(e.code, e.message, e.status_code)
        except Exception as e:
            logger.exception("Bootstrap failed for principal %s: %s", principal.external_id, e)
            return self._error_json_response(
                ApiErrorCode.E_INTERNAL,
                "Internal server error",
                500,
            )

        request.state.viewer = Viewer(user_id=user_id, external_id=principal.external_id)

        return await call_next(request)

    def _extract_token(self, request: Request) -> tuple[str, JSONResponse | None]:
        """Extract the session token from the Authorization header or session cookie.

        Returns:
            Tuple of (token, error_response). Token is empty string if error.
        """
        auth_header = request.headers.get(AUTHORIZATION_HEADER)

        if not auth_header:
            cookie_token = request.cookies.get(SESSION_COOKIE)
            if cookie_token:
                return cookie_token, None

            logger.warning(
                "auth_failure",
                extra={"reason": "missing_token", "request_path": request.url.path},
            )
            return "", self._error_json_response(
                ApiErrorCode.E_UNAUTHENTICATED,
                "Authentication required",
                401,
            )

        token = ""
        if auth_header.lower().startswith("bearer "):
            token = auth_header[7:].strip()

        if not token:
            logger.warning(
                "auth_failure",
                extra={"reason": "invalid_header_format", "request_path": request.url.path},
            )
            return "", self._error_json_response(
                ApiErrorCode.E_UNAUTHENTICATED,
                "Invalid authorization header format",
                401,
            )

        return token, None

    def _error_json_response(
        self, code: ApiErrorCode, message: str, status_code: int
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status_code,
            content=error_response(code, message),
        )


def get_viewer(request: Request) -> Viewer:
    """FastAPI dependency to get the authenticated viewer.

    Raises:
        ApiError: If viewer is not set (middleware didn't run or path is public).
    """
    viewer = getattr(request.state, "viewer", None)
    if viewer is None:
        raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Authentication required")
    return viewer


# Type alias for dependency injection
ViewerDep = Depends(get_viewer)
