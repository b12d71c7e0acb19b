"""Security role endpoints.

Roles live in the cluster; these routes translate between the API's role
shape and the cluster's role documents. Every route runs the license
pre-check after request validation, so malformed requests never reach the
cluster.
"""

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Path, Request, Response, status

from kbn_server.api.dependencies import get_cluster
from kbn_server.api.schemas import ErrorResponse, build_role_payload_model
from kbn_server.core.errors import NotFoundError, wrap_error
from kbn_server.elasticsearch.cluster import ClusterClient
from kbn_server.security.license import route_pre_check_license
from kbn_server.security.roles import transform_role_from_es, transform_role_to_es

logger = structlog.get_logger(__name__)

RoleName = Annotated[str, Path(min_length=1, max_length=1024)]


def create_roles_router(privilege_map: dict[str, list[str]], application: str) -> APIRouter:
    """
    Build the role routes for one application.

    Args:
        privilege_map: Privilege name to actions; its keys are the only
            Kibana privileges a role payload may grant
        application: Application whose privilege entries the routes manage

    Returns:
        Router to mount on the application
    """
    RolePayloadModel = build_role_payload_model(list(privilege_map))

    router = APIRouter(prefix="/api/security", tags=["Security"])

    @router.get(
        "/role",
        summary="List roles",
    )
    async def get_roles(
        request: Request,
        cluster: ClusterClient = Depends(get_cluster),
    ) -> list[dict[str, Any]]:
        await route_pre_check_license(request)
        try:
            response = await cluster.call_with_request(request, "shield.getRole")
        except Exception as e:
            raise wrap_error(e) from e

        return [
            transform_role_from_es(application, name, role)
            for name, role in sorted(response.items())
        ]

    @router.get(
        "/role/{name}",
        responses={404: {"model": ErrorResponse, "description": "Role not found"}},
        summary="Get a role",
    )
    async def get_role(
        request: Request,
        name: RoleName,
        cluster: ClusterClient = Depends(get_cluster),
    ) -> dict[str, Any]:
        await route_pre_check_license(request)
        try:
            response = await cluster.call_with_request(
                request, "shield.getRole", name=name, ignore=[404]
            )
        except Exception as e:
            raise wrap_error(e) from e

        if name not in response:
            raise NotFoundError(f"Role [{name}] not found")
        return transform_role_from_es(application, name, response[name])

    @router.put(
        "/role/{name}",
        status_code=status.HTTP_204_NO_CONTENT,
        response_class=Response,
        responses={403: {"model": ErrorResponse, "description": "License does not allow security"}},
        summary="Create or update a role",
    )
    async def put_role(
        request: Request,
        payload: RolePayloadModel,
        name: RoleName,
        cluster: ClusterClient = Depends(get_cluster),
    ) -> Response:
        await route_pre_check_license(request)
        try:
            existing = await cluster.call_with_request(
                request, "shield.getRole", name=name, ignore=[404]
            )
            existing_role = existing.get(name) or {}
            body = transform_role_to_es(
                application,
                payload.to_transform_input(),
                existing_role.get("applications") or [],
            )
            await cluster.call_with_request(request, "shield.putRole", name=name, body=body)
        except Exception as e:
            logger.warning("Failed to put role", role=name, error=str(e))
            raise wrap_error(e) from e

        logger.info("Role saved", role=name, applications=len(body.get("applications", [])))
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @router.delete(
        "/role/{name}",
        status_code=status.HTTP_204_NO_CONTENT,
        response_class=Response,
        responses={404: {"model": ErrorResponse, "description": "Role not found"}},
        summary="Delete a role",
    )
    async def delete_role(
        request: Request,
        name: RoleName,
        cluster: ClusterClient = Depends(get_cluster),
    ) -> Response:
        await route_pre_check_license(request)
        try:
            await cluster.call_with_request(request, "shield.deleteRole", name=name)
        except Exception as e:
            raise wrap_error(e) from e

        logger.info("Role deleted", role=name)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router
