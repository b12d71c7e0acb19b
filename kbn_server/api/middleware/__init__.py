"""API middleware components."""

from kbn_server.api.middleware.auth import AuthMiddleware, Credentials

__all__ = ["AuthMiddleware", "Credentials"]
