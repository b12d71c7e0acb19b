"""API route modules."""

from kbn_server.api.routes.saved_objects import router as saved_objects_router
from kbn_server.api.routes.status import router as status_router

__all__ = ["saved_objects_router", "status_router"]
