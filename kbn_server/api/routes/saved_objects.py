"""Saved objects endpoints."""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from kbn_server.api.dependencies import get_saved_objects_client
from kbn_server.api.schemas import (
    ErrorResponse,
    FindResponse,
    SavedObjectAttributes,
    SavedObjectCreate,
    SavedObjectRef,
    SavedObjectUpdate,
)
from kbn_server.saved_objects.client import SavedObjectsClient


router = APIRouter(prefix="/api/saved_objects", tags=["Saved Objects"])


@router.post(
    "/_bulk_create",
    summary="Bulk create saved objects",
    description="Create many saved objects. Objects that already exist are reported as conflicts unless `overwrite` is set.",
)
async def bulk_create(
    objects: list[SavedObjectCreate] = Body(...),
    overwrite: bool = Query(default=False),
    client: SavedObjectsClient = Depends(get_saved_objects_client),
) -> dict:
    """Forward the objects and the overwrite flag to the client."""
    return await client.bulk_create(
        [o.model_dump(exclude_unset=True) for o in objects],
        overwrite=overwrite,
    )


@router.post(
    "/_bulk_get",
    summary="Bulk get saved objects",
)
async def bulk_get(
    objects: list[SavedObjectRef] = Body(...),
    client: SavedObjectsClient = Depends(get_saved_objects_client),
) -> dict:
    return await client.bulk_get([o.model_dump(exclude_none=True) for o in objects])


@router.get(
    "/_find",
    response_model=FindResponse,
    summary="Find saved objects",
)
async def find(
    type: Optional[list[str]] = Query(default=None),
    search: Optional[str] = Query(default=None),
    fields: Optional[list[str]] = Query(default=None),
    sort_field: Optional[str] = Query(default=None),
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=20, ge=0, le=10000),
    client: SavedObjectsClient = Depends(get_saved_objects_client),
) -> dict:
    return await client.find(
        type=type,
        search=search,
        fields=fields,
        page=page,
        per_page=per_page,
        sort_field=sort_field,
    )


@router.get(
    "/{type}/{id}",
    responses={404: {"model": ErrorResponse, "description": "Saved object not found"}},
    summary="Get a saved object",
)
async def get(
    type: str,
    id: str,
    client: SavedObjectsClient = Depends(get_saved_objects_client),
) -> dict:
    return await client.get(type, id)


@router.post(
    "/{type}",
    responses={409: {"model": ErrorResponse, "description": "Saved object already exists"}},
    summary="Create a saved object with a generated id",
)
async def create_without_id(
    type: str,
    body: SavedObjectAttributes,
    overwrite: bool = Query(default=False),
    client: SavedObjectsClient = Depends(get_saved_objects_client),
) -> dict:
    return await client.create(
        type,
        body.attributes,
        overwrite=overwrite,
        migration_version=body.migrationVersion,
    )


@router.post(
    "/{type}/{id}",
    responses={409: {"model": ErrorResponse, "description": "Saved object already exists"}},
    summary="Create a saved object",
)
async def create(
    type: str,
    id: str,
    body: SavedObjectAttributes,
    overwrite: bool = Query(default=False),
    client: SavedObjectsClient = Depends(get_saved_objects_client),
) -> dict:
    return await client.create(
        type,
        body.attributes,
        id=id,
        overwrite=overwrite,
        migration_version=body.migrationVersion,
    )


@router.put(
    "/{type}/{id}",
    responses={
        404: {"model": ErrorResponse, "description": "Saved object not found"},
        409: {"model": ErrorResponse, "description": "Version conflict"},
    },
    summary="Update a saved object",
)
async def update(
    type: str,
    id: str,
    body: SavedObjectUpdate,
    client: SavedObjectsClient = Depends(get_saved_objects_client),
) -> dict:
    return await client.update(type, id, body.attributes, version=body.version)


@router.delete(
    "/{type}/{id}",
    responses={404: {"model": ErrorResponse, "description": "Saved object not found"}},
    summary="Delete a saved object",
)
async def delete(
    type: str,
    id: str,
    client: SavedObjectsClient = Depends(get_saved_objects_client),
) -> dict:
    return await client.delete(type, id)
