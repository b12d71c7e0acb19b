"""Security: roles, privileges and license checks."""

from kbn_server.security.constants import ALL_RESOURCE
from kbn_server.security.license import SecurityLicense, check_license, route_pre_check_license
from kbn_server.security.privileges import build_privilege_map
from kbn_server.security.roles import (
    transform_kibana_privileges_to_es,
    transform_role_from_es,
    transform_role_to_es,
)

__all__ = [
    "ALL_RESOURCE",
    "SecurityLicense",
    "check_license",
    "route_pre_check_license",
    "build_privilege_map",
    "transform_kibana_privileges_to_es",
    "transform_role_from_es",
    "transform_role_to_es",
]
