"""Pydantic schemas for API request/response models."""

from datetime import datetime
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, create_model


class ErrorResponse(BaseModel):
    """Error envelope returned by every route."""

    statusCode: int
    error: str
    message: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    saved_objects: dict[str, Any]
    elasticsearch: dict[str, Any]
    timestamp: datetime


# ---------------------------------------------------------------------------
# Saved objects
# ---------------------------------------------------------------------------


class SavedObjectCreate(BaseModel):
    """One object of a bulk create request."""

    model_config = ConfigDict(extra="forbid")

    type: str = Field(..., min_length=1)
    id: Optional[str] = Field(default=None, min_length=1)
    attributes: dict[str, Any]
    version: Optional[Union[int, float]] = None
    migrationVersion: Optional[dict[str, Any]] = None


class SavedObjectAttributes(BaseModel):
    """Body of a single create request."""

    model_config = ConfigDict(extra="forbid")

    attributes: dict[str, Any]
    migrationVersion: Optional[dict[str, Any]] = None


class SavedObjectUpdate(BaseModel):
    """Body of an update request."""

    model_config = ConfigDict(extra="forbid")

    attributes: dict[str, Any]
    version: Optional[Union[int, float]] = None


class SavedObjectRef(BaseModel):
    """One object of a bulk get request."""

    model_config = ConfigDict(extra="forbid")

    type: str = Field(..., min_length=1)
    id: str = Field(..., min_length=1)
    fields: Optional[list[str]] = None


class FindResponse(BaseModel):
    """Paged saved objects."""

    page: int
    per_page: int
    total: int
    saved_objects: list[dict[str, Any]]


# ---------------------------------------------------------------------------
# Security roles
# ---------------------------------------------------------------------------


class FieldSecurity(BaseModel):
    """Field level security of an index privilege."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    grant: Optional[list[str]] = None
    except_: Optional[list[str]] = Field(default=None, alias="except")


class IndexPrivilege(BaseModel):
    """Privileges on a set of indices."""

    model_config = ConfigDict(extra="forbid")

    names: Optional[list[str]] = None
    field_security: Optional[FieldSecurity] = None
    privileges: Optional[list[str]] = None
    query: Optional[str] = None


class ElasticsearchPrivileges(BaseModel):
    """Cluster level section of a role."""

    model_config = ConfigDict(extra="forbid")

    cluster: Optional[list[str]] = None
    indices: Optional[list[IndexPrivilege]] = None
    run_as: Optional[list[str]] = None


class RolePayload(BaseModel):
    """Body of a role PUT request."""

    model_config = ConfigDict(extra="forbid")

    metadata: Optional[dict[str, Any]] = None
    elasticsearch: Optional[ElasticsearchPrivileges] = None
    kibana: Optional[dict[str, Any]] = None

    def to_transform_input(self) -> dict[str, Any]:
        """Plain dict view with wire names and unset fields dropped."""
        return self.model_dump(by_alias=True, exclude_none=True)


def build_role_payload_model(privilege_names: list[str]) -> type[RolePayload]:
    """
    Build the role payload model for a privilege map.

    Kibana privileges are constrained to ``privilege_names``.
    """
    privilege = Literal[tuple(privilege_names)]  # type: ignore[valid-type]

    kibana_model = create_model(
        "KibanaPrivileges",
        __config__=ConfigDict(extra="forbid", populate_by_name=True),
        global_=(Optional[list[privilege]], Field(default=None, alias="global")),
        space=(Optional[dict[str, list[privilege]]], None),
    )

    return create_model(
        "RolePayload",
        __base__=RolePayload,
        kibana=(Optional[kibana_model], None),
    )


# ---------------------------------------------------------------------------
# Canvas
# ---------------------------------------------------------------------------


class WorkpadBody(BaseModel):
    """Canvas workpad document."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    name: str = Field(default="Untitled Workpad")
    width: int = Field(default=1080, gt=0)
    height: int = Field(default=720, gt=0)
    page: int = Field(default=0, ge=0)
    pages: list[dict[str, Any]] = Field(default_factory=list)
    colors: list[str] = Field(default_factory=list)
    css: Optional[str] = None


class FunctionCall(BaseModel):
    """One server function invocation of a batch."""

    functionName: str = Field(..., min_length=1)
    args: dict[str, Any] = Field(default_factory=dict)
    context: Any = None


class FunctionBatch(BaseModel):
    """Batch of server function invocations."""

    functions: list[FunctionCall]
