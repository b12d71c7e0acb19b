"""Usage collection."""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable

import structlog

from kbn_server.saved_objects.client import SavedObjectsClient

logger = structlog.get_logger(__name__)


@dataclass
class UsageCollector:
    """Reports usage statistics for one feature."""

    type: str
    fetch: Callable[[SavedObjectsClient], Awaitable[Any]]


class CollectorSet:
    """All registered usage collectors."""

    def __init__(self):
        self._collectors: dict[str, UsageCollector] = {}

    def register(self, collector: UsageCollector) -> None:
        if collector.type in self._collectors:
            raise ValueError(f"Usage collector '{collector.type}' is already registered")
        self._collectors[collector.type] = collector
        logger.debug("Usage collector registered", type=collector.type)

    @property
    def types(self) -> list[str]:
        return list(self._collectors)

    async def bulk_fetch(self, client: SavedObjectsClient) -> dict[str, Any]:
        """
        Run every collector.

        A failing collector is logged and left out of the result.
        """
        usage: dict[str, Any] = {}
        for collector in self._collectors.values():
            try:
                usage[collector.type] = await collector.fetch(client)
            except Exception as e:
                logger.warning("Usage collector failed", type=collector.type, error=str(e))
        return usage
