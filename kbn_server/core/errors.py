"""Error envelope shared by every route.

All errors leave the server in the hapi/Boom shape::

    {"statusCode": 404, "error": "Not Found", "message": "Saved object [...] not found"}

``wrap_error`` is the single conversion point from arbitrary exceptions
(cluster failures, storage errors) to that envelope.
"""

from http import HTTPStatus
from typing import Any, Optional


class KbnError(Exception):
    """Base error carrying an HTTP status and a user-facing message."""

    status_code: int = 500

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        data: Optional[dict[str, Any]] = None,
    ):
        if status_code is not None:
            self.status_code = status_code
        self.message = message or _reason(self.status_code)
        self.data = data
        super().__init__(self.message)

    @property
    def error(self) -> str:
        return _reason(self.status_code)

    def to_response(self) -> dict[str, Any]:
        """Build the response body."""
        body: dict[str, Any] = {
            "statusCode": self.status_code,
            "error": self.error,
            "message": self.message,
        }
        if self.data:
            body.update(self.data)
        return body


class BadRequestError(KbnError):
    status_code = 400


class UnauthorizedError(KbnError):
    status_code = 401


class ForbiddenError(KbnError):
    status_code = 403


class NotFoundError(KbnError):
    status_code = 404


class ConflictError(KbnError):
    status_code = 409


def _reason(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Unknown"


def wrap_error(error: Exception) -> KbnError:
    """
    Convert any exception into a ``KbnError``.

    Errors that already carry an HTTP status (``KbnError`` or anything with a
    ``status_code`` attribute, such as cluster errors) keep it; 5xx statuses
    keep the message too, since remote failures are surfaced as-is.
    Everything else becomes a 500.
    """
    if isinstance(error, KbnError):
        return error

    status_code = getattr(error, "status_code", None)
    if isinstance(status_code, int) and 400 <= status_code < 600:
        return KbnError(str(error) or None, status_code=status_code)

    return KbnError("An internal server error occurred", status_code=500)
