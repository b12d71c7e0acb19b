"""Canvas endpoints: workpads and server functions."""

from datetime import datetime, timezone
from typing import Any, Optional
import uuid

import structlog
from fastapi import APIRouter, Depends, Query

from kbn_server.api.dependencies import get_plugin_server, get_saved_objects_client
from kbn_server.api.schemas import ErrorResponse, FunctionBatch, WorkpadBody
from kbn_server.plugins.canvas.constants import API_ROUTE, API_ROUTE_WORKPAD, CANVAS_TYPE
from kbn_server.plugins.server import PluginServer
from kbn_server.saved_objects.client import SavedObjectsClient

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Canvas"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _workpad_from_saved_object(saved_object: dict[str, Any]) -> dict[str, Any]:
    return {**saved_object["attributes"], "id": saved_object["id"]}


@router.post(
    API_ROUTE_WORKPAD,
    summary="Create a workpad",
)
async def create_workpad(
    workpad: WorkpadBody,
    client: SavedObjectsClient = Depends(get_saved_objects_client),
) -> dict:
    attributes = workpad.model_dump(exclude={"id"})
    id = workpad.id or f"workpad-{uuid.uuid4()}"
    now = _now()
    attributes.update({"id": id, "@timestamp": now, "@created": now})

    await client.create(CANVAS_TYPE, attributes, id=id)
    logger.info("Workpad created", workpad_id=id)
    return {"ok": True, "id": id}


@router.get(
    f"{API_ROUTE_WORKPAD}/find",
    summary="Find workpads",
)
async def find_workpads(
    name: Optional[str] = Query(default=None),
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=10000, ge=1, le=10000, alias="perPage"),
    client: SavedObjectsClient = Depends(get_saved_objects_client),
) -> dict:
    result = await client.find(
        type=[CANVAS_TYPE],
        search=name,
        search_fields=["name"],
        fields=["id", "name", "@created", "@timestamp"],
        sort_field="@timestamp",
        sort_order="desc",
        page=page,
        per_page=per_page,
    )
    return {
        "total": result["total"],
        "workpads": [_workpad_from_saved_object(o) for o in result["saved_objects"]],
    }


@router.get(
    f"{API_ROUTE_WORKPAD}/{{id}}",
    responses={404: {"model": ErrorResponse, "description": "Workpad not found"}},
    summary="Get a workpad",
)
async def get_workpad(
    id: str,
    client: SavedObjectsClient = Depends(get_saved_objects_client),
) -> dict:
    return _workpad_from_saved_object(await client.get(CANVAS_TYPE, id))


@router.put(
    f"{API_ROUTE_WORKPAD}/{{id}}",
    responses={404: {"model": ErrorResponse, "description": "Workpad not found"}},
    summary="Replace a workpad",
)
async def update_workpad(
    id: str,
    workpad: WorkpadBody,
    client: SavedObjectsClient = Depends(get_saved_objects_client),
) -> dict:
    existing = await client.get(CANVAS_TYPE, id)
    attributes = workpad.model_dump(exclude={"id"})
    attributes.update({
        "id": id,
        "@timestamp": _now(),
        "@created": existing["attributes"].get("@created"),
    })

    await client.create(CANVAS_TYPE, attributes, id=id, overwrite=True)
    return {"ok": True}


@router.delete(
    f"{API_ROUTE_WORKPAD}/{{id}}",
    responses={404: {"model": ErrorResponse, "description": "Workpad not found"}},
    summary="Delete a workpad",
)
async def delete_workpad(
    id: str,
    client: SavedObjectsClient = Depends(get_saved_objects_client),
) -> dict:
    await client.delete(CANVAS_TYPE, id)
    return {"ok": True}


@router.get(
    f"{API_ROUTE}/functions",
    summary="List server functions",
)
async def list_functions(
    server: PluginServer = Depends(get_plugin_server),
) -> list[dict[str, Any]]:
    return server.registries.functions.to_array()


@router.post(
    f"{API_ROUTE}/fns",
    summary="Run server functions",
    description="Run a batch of server functions. Each call gets its own result or error.",
)
async def run_functions(
    batch: FunctionBatch,
    server: PluginServer = Depends(get_plugin_server),
) -> dict:
    results = []
    for call in batch.functions:
        function = server.registries.functions.get(call.functionName)
        if function is None:
            results.append({"err": f"Function not found: {call.functionName}"})
            continue

        try:
            results.append({"result": await function(call.context, call.args)})
        except Exception as e:
            logger.warning("Server function failed", function=call.functionName, error=str(e))
            results.append({"err": str(e)})

    return {"results": results}
