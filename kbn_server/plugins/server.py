"""Plugin host.

Plugins receive a ``PluginServer`` in their ``init`` hook and use it to
register routes, UI variables, usage collectors, sample data and server
functions. Hooks run in order during application startup.
"""

import inspect
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Union

import structlog
from fastapi import APIRouter, FastAPI

from kbn_server.core.config import Settings
from kbn_server.core.errors import NotFoundError
from kbn_server.elasticsearch.cluster import ClusterClient
from kbn_server.plugins.registries import ServerRegistries
from kbn_server.plugins.sample_data import SampleDataRegistry, default_sample_data_registry
from kbn_server.plugins.usage import CollectorSet

logger = structlog.get_logger(__name__)

UiVarsProvider = Callable[[], Union[dict[str, Any], Awaitable[dict[str, Any]]]]


@dataclass
class Plugin:
    """A plugin: an id, the saved object types it owns and its init hook."""

    id: str
    init: Callable[["PluginServer"], Awaitable[None]]
    saved_object_types: tuple[str, ...] = field(default_factory=tuple)


class PluginServer:
    """Services exposed to plugins."""

    def __init__(self, app: FastAPI, config: Settings, cluster: ClusterClient):
        self.app = app
        self.cluster = cluster
        self._config = config
        self._ui_app_vars: dict[str, list[UiVarsProvider]] = {}
        self.usage = CollectorSet()
        self.sample_data: SampleDataRegistry = default_sample_data_registry()
        self.registries = ServerRegistries()
        self.saved_object_types: set[str] = set()
        self.initialized_plugins: list[str] = []

    def config(self) -> Settings:
        return self._config

    def route(self, router: APIRouter) -> None:
        """Mount a plugin's routes on the application."""
        self.app.include_router(router)

    def inject_ui_app_vars(self, app_id: str, provider: UiVarsProvider) -> None:
        """
        Register a provider of variables for a UI app.

        Providers are evaluated on every read, so they see current state.
        """
        self._ui_app_vars.setdefault(app_id, []).append(provider)

    async def get_injected_ui_app_vars(self, app_id: str) -> dict[str, Any]:
        """
        Merge the variables of every provider registered for ``app_id``.

        Raises:
            NotFoundError: No provider was registered for the app
        """
        providers = self._ui_app_vars.get(app_id)
        if not providers:
            raise NotFoundError(f"Unknown app [{app_id}]")

        merged: dict[str, Any] = {}
        for provider in providers:
            values = provider()
            if inspect.isawaitable(values):
                values = await values
            merged.update(values)
        return merged

    async def init_plugins(self, plugins: list[Plugin]) -> None:
        """Run each plugin's init hook, in order."""
        for plugin in plugins:
            self.saved_object_types.update(plugin.saved_object_types)

        for plugin in plugins:
            logger.info("Initializing plugin", plugin=plugin.id)
            await plugin.init(self)
            self.initialized_plugins.append(plugin.id)

        # Nothing else contributes once every plugin is initialized.
        await self.registries.load()
