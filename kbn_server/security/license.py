"""Security license checks against the cluster's X-Pack info."""

import time
from dataclasses import dataclass
from typing import Any, Optional

import structlog
from fastapi import Request

from kbn_server.core.errors import ForbiddenError
from kbn_server.elasticsearch.cluster import ClusterClient, ElasticsearchError

logger = structlog.get_logger(__name__)


@dataclass
class LicenseCheckResult:
    """What the UI and routes may do under the current license."""

    show_links: bool
    allow_role_document_level_security: bool = False
    allow_role_field_level_security: bool = False
    message: Optional[str] = None


def check_license(xpack_info: Optional[dict[str, Any]]) -> LicenseCheckResult:
    """Derive security capabilities from a ``GET /_xpack`` response."""
    if not xpack_info:
        return LicenseCheckResult(
            show_links=False,
            message="You cannot log in because the license information could not be obtained from the cluster.",
        )

    security = (xpack_info.get("features") or {}).get("security") or {}
    if not security.get("available"):
        return LicenseCheckResult(
            show_links=False,
            message="Your license does not support security. Please upgrade your license.",
        )
    if not security.get("enabled"):
        return LicenseCheckResult(
            show_links=False,
            message="Security is disabled in the cluster.",
        )

    license_type = (xpack_info.get("license") or {}).get("type", "")
    is_platinum = license_type in {"platinum", "enterprise", "trial"}
    return LicenseCheckResult(
        show_links=True,
        allow_role_document_level_security=is_platinum,
        allow_role_field_level_security=is_platinum,
    )


class SecurityLicense:
    """
    Cached license check result.

    The X-Pack info is fetched with the server's own identity and refreshed
    once it is older than ``refresh_seconds``.
    """

    def __init__(self, cluster: ClusterClient, refresh_seconds: float):
        self.cluster = cluster
        self.refresh_seconds = refresh_seconds
        self._result: Optional[LicenseCheckResult] = None
        self._fetched_at: float = 0.0

    async def refresh(self) -> LicenseCheckResult:
        try:
            info = await self.cluster.call_with_request(None, "xpack.info")
        except ElasticsearchError as e:
            logger.warning("Failed to fetch license info", status_code=e.status_code, error=e.reason)
            info = None

        self._result = check_license(info)
        self._fetched_at = time.monotonic()
        logger.debug("License info refreshed", show_links=self._result.show_links)
        return self._result

    async def get_result(self) -> LicenseCheckResult:
        if self._result is None or time.monotonic() - self._fetched_at >= self.refresh_seconds:
            return await self.refresh()
        return self._result


async def route_pre_check_license(request: Request) -> None:
    """Route pre-check: refuse security routes when the license forbids them."""
    security_license: SecurityLicense = request.app.state.security_license
    result = await security_license.get_result()
    if not result.show_links:
        raise ForbiddenError(result.message)
