"""Authentication middleware.

The server does not validate credentials itself: the cluster does, when
they are forwarded with each call. The middleware only insists that API
requests carry some, and exposes them to the handlers.
"""

from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)

SUPPORTED_SCHEMES = {"basic", "bearer", "apikey"}


@dataclass
class Credentials:
    """Credentials presented by the caller."""

    scheme: str
    value: str

    @property
    def header(self) -> str:
        return f"{self.scheme} {self.value}"


class AuthMiddleware(BaseHTTPMiddleware):
    """
    Authentication middleware.

    Rejects requests without a usable ``Authorization`` header.
    """

    # Paths that don't require authentication
    PUBLIC_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    async def dispatch(self, request: Request, call_next):
        """Process the request through authentication."""
        path = request.url.path
        if path in self.PUBLIC_PATHS:
            return await call_next(request)

        credentials = _parse_authorization(request.headers.get("Authorization"))
        if credentials is None:
            logger.debug("Rejected unauthenticated request", path=path)
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={
                    "statusCode": 401,
                    "error": "Unauthorized",
                    "message": "Missing or invalid authorization header",
                },
            )

        request.state.credentials = credentials
        return await call_next(request)


def _parse_authorization(header: Optional[str]) -> Optional[Credentials]:
    if not header:
        return None

    scheme, _, value = header.partition(" ")
    value = value.strip()
    if scheme.lower() not in SUPPORTED_SCHEMES or not value:
        return None
    return Credentials(scheme=scheme, value=value)

