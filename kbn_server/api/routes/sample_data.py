"""Sample data endpoints."""

from fastapi import APIRouter, Depends, Response, status

from kbn_server.api.dependencies import get_plugin_server, get_saved_objects_client
from kbn_server.api.schemas import ErrorResponse
from kbn_server.plugins.server import PluginServer
from kbn_server.saved_objects.client import SavedObjectsClient


router = APIRouter(prefix="/api/sample_data", tags=["Sample Data"])


@router.get(
    "",
    summary="List sample datasets",
)
async def list_sample_datasets(
    server: PluginServer = Depends(get_plugin_server),
    client: SavedObjectsClient = Depends(get_saved_objects_client),
) -> list[dict]:
    return [
        {
            "id": dataset.id,
            "name": dataset.name,
            "description": dataset.description,
            "savedObjectsCount": len(dataset.saved_objects),
            "status": await server.sample_data.status(dataset.id, client),
        }
        for dataset in server.sample_data.datasets()
    ]


@router.post(
    "/{dataset_id}",
    responses={404: {"model": ErrorResponse, "description": "Unknown dataset"}},
    summary="Install a sample dataset",
)
async def install_sample_dataset(
    dataset_id: str,
    server: PluginServer = Depends(get_plugin_server),
    client: SavedObjectsClient = Depends(get_saved_objects_client),
) -> dict:
    return await server.sample_data.install(dataset_id, client)


@router.delete(
    "/{dataset_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={404: {"model": ErrorResponse, "description": "Unknown dataset"}},
    summary="Uninstall a sample dataset",
)
async def uninstall_sample_dataset(
    dataset_id: str,
    server: PluginServer = Depends(get_plugin_server),
    client: SavedObjectsClient = Depends(get_saved_objects_client),
) -> Response:
    await server.sample_data.uninstall(dataset_id, client)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
