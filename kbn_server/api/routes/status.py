"""Server status endpoints: usage stats and injected UI variables."""

from typing import Any

from fastapi import APIRouter, Depends, Query

from kbn_server.api.dependencies import get_plugin_server, get_saved_objects_client
from kbn_server.api.schemas import ErrorResponse
from kbn_server.plugins.server import PluginServer
from kbn_server.saved_objects.client import SavedObjectsClient


router = APIRouter(prefix="/api", tags=["Status"])


@router.get(
    "/stats",
    summary="Server statistics",
    description="Basic server information; with `extended=true` also the output of every usage collector.",
)
async def get_stats(
    extended: bool = Query(default=False),
    server: PluginServer = Depends(get_plugin_server),
    client: SavedObjectsClient = Depends(get_saved_objects_client),
) -> dict[str, Any]:
    config = server.config()
    stats: dict[str, Any] = {
        "kibana": {
            "index": config.kibana_index,
            "version": config.server_version,
            "plugins": server.initialized_plugins,
        },
    }
    if extended:
        stats["usage"] = await server.usage.bulk_fetch(client)
    return stats


@router.get(
    "/ui/{app_id}/injected_vars",
    responses={404: {"model": ErrorResponse, "description": "Unknown app"}},
    summary="Injected UI variables",
)
async def get_injected_vars(
    app_id: str,
    server: PluginServer = Depends(get_plugin_server),
) -> dict[str, Any]:
    return await server.get_injected_ui_app_vars(app_id)
