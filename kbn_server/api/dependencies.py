"""Request-scoped dependencies resolved from application state."""

from fastapi import Request

from kbn_server.elasticsearch.cluster import ClusterClient
from kbn_server.plugins.server import PluginServer
from kbn_server.saved_objects.client import SavedObjectsClient


def get_cluster(request: Request) -> ClusterClient:
    return request.app.state.cluster


def get_plugin_server(request: Request) -> PluginServer:
    return request.app.state.plugin_server


def get_saved_objects_client(request: Request) -> SavedObjectsClient:
    """Saved objects client over the application's store."""
    return SavedObjectsClient(request.app.state.saved_objects_store)
