"""HTTP client for the Elasticsearch cluster.

Calls are addressed by endpoint name (``shield.getRole``) and executed on
behalf of the incoming request: its ``Authorization`` header is forwarded so
the cluster authorizes the end user, not the server.
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional
from urllib.parse import quote

import httpx
import structlog
from fastapi import Request
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from kbn_server.core.config import Settings

logger = structlog.get_logger(__name__)

STARTUP_MAX_WAIT = 10.0


class ElasticsearchError(Exception):
    """Non-successful answer (or no answer) from the cluster."""

    def __init__(self, status_code: int, reason: str, body: Any = None):
        self.status_code = status_code
        self.reason = reason
        self.body = body
        super().__init__(reason)


@dataclass(frozen=True)
class Endpoint:
    """A named cluster API call."""

    method: str
    path: Callable[[dict[str, Any]], str]
    has_body: bool = False


def _role_path(params: dict[str, Any]) -> str:
    name = params.get("name")
    if not name:
        return "/_security/role"
    return f"/_security/role/{quote(name, safe='')}"


ENDPOINTS: dict[str, Endpoint] = {
    "ping": Endpoint("GET", lambda _: "/"),
    "xpack.info": Endpoint("GET", lambda _: "/_xpack"),
    "shield.getRole": Endpoint("GET", _role_path),
    "shield.putRole": Endpoint("PUT", _role_path, has_body=True),
    "shield.deleteRole": Endpoint("DELETE", _role_path),
}


class ClusterClient:
    """
    Async client for the cluster REST API.

    One ``httpx.AsyncClient`` is shared by all requests; per-call headers
    carry the caller's credentials.
    """

    def __init__(
        self,
        config: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self._client = httpx.AsyncClient(
            base_url=config.elasticsearch_url.rstrip("/"),
            timeout=config.elasticsearch_request_timeout,
            verify=config.elasticsearch_verify_ssl,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def close(self) -> None:
        """Release pooled connections."""
        await self._client.aclose()

    async def call_with_request(
        self,
        request: Optional[Request],
        endpoint: str,
        *,
        ignore: Iterable[int] = (),
        body: Any = None,
        **params: Any,
    ) -> Any:
        """
        Call a named endpoint as the user behind ``request``.

        Args:
            request: Incoming request whose credentials are forwarded
            endpoint: Endpoint name, e.g. ``shield.putRole``
            ignore: Status codes answered with an empty dict instead of raising
            body: JSON body for endpoints that take one
            **params: Path parameters (``name`` for roles)

        Returns:
            Decoded JSON response, or ``{}`` for ignored/empty responses

        Raises:
            ElasticsearchError: On any non-2xx answer not listed in ``ignore``
        """
        target = ENDPOINTS.get(endpoint)
        if target is None:
            raise ValueError(f"Unknown cluster endpoint: {endpoint}")

        headers = {}
        authorization = _authorization(request)
        if authorization:
            headers["Authorization"] = authorization

        path = target.path(params)
        try:
            response = await self._client.request(
                target.method,
                path,
                headers=headers,
                json=body if target.has_body else None,
            )
        except httpx.TransportError as e:
            logger.error("Cluster request failed", endpoint=endpoint, path=path, error=str(e))
            raise ElasticsearchError(503, f"No living connections: {e}") from e

        if response.status_code in set(ignore):
            return {}

        if response.is_error:
            payload = _decode(response)
            reason = _extract_reason(payload) or response.reason_phrase
            logger.warning(
                "Cluster returned an error",
                endpoint=endpoint,
                status_code=response.status_code,
                reason=reason,
            )
            raise ElasticsearchError(response.status_code, reason, payload)

        return _decode(response)

    async def ping(self) -> bool:
        """Check that the cluster answers at all."""
        await self.call_with_request(None, "ping")
        return True

    async def wait_until_ready(self) -> None:
        """
        Ping the cluster until it answers.

        Waits grow exponentially from half a second up to ``STARTUP_MAX_WAIT``;
        the last error is raised once ``elasticsearch_startup_retries`` pings
        have failed.
        """
        attempts = self.config.elasticsearch_startup_retries
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=0.5, max=STARTUP_MAX_WAIT),
            retry=retry_if_exception_type(ElasticsearchError),
            before_sleep=_log_startup_failure,
            reraise=True,
        ):
            with attempt:
                await self.ping()

        logger.info("Cluster is reachable", url=self.config.elasticsearch_url)


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError:
        return {"raw": response.text}


def _extract_reason(payload: Any) -> Optional[str]:
    """Pull ``error.reason`` out of a cluster error body."""
    if not isinstance(payload, dict):
        return None
    error = payload.get("error")
    if isinstance(error, dict):
        return error.get("reason") or error.get("type")
    if isinstance(error, str):
        return error
    return None


def _authorization(request: Optional[Request]) -> Optional[str]:
    if request is None:
        return None
    credentials = getattr(request.state, "credentials", None)
    if credentials is not None:
        return credentials.header
    return request.headers.get("Authorization")


def _log_startup_failure(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Cluster not reachable yet",
        attempt=retry_state.attempt_number,
        error=str(error),
    )
