"""Saved objects store for kbn-server."""

from kbn_server.saved_objects.models import SavedObject
from kbn_server.saved_objects.store import SavedObjectsStore
from kbn_server.saved_objects.client import SavedObjectsClient

__all__ = [
    "SavedObject",
    "SavedObjectsStore",
    "SavedObjectsClient",
]
