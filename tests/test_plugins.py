"""Tests for the plugin host and shared registries."""

import asyncio

import httpx
import pytest
from fastapi import FastAPI

from kbn_server.core.errors import NotFoundError
from kbn_server.elasticsearch.cluster import ClusterClient
from kbn_server.plugins.registries import FunctionsRegistry, ServerFunction, ServerRegistries
from kbn_server.plugins.sample_data import SampleDataRegistry, SampleDataset
from kbn_server.plugins.server import Plugin, PluginServer
from kbn_server.plugins.usage import CollectorSet, UsageCollector


def _function(name: str) -> ServerFunction:
    return ServerFunction(name=name, help=f"{name} help", fn=lambda context, args: context)


@pytest.fixture
def plugin_server(test_settings, fake_es) -> PluginServer:
    cluster = ClusterClient(test_settings, transport=httpx.MockTransport(fake_es))
    return PluginServer(FastAPI(), test_settings, cluster)


class TestPluginServer:
    """Tests for PluginServer."""

    async def test_merges_ui_vars(self, plugin_server: PluginServer):
        async def async_vars():
            return {"b": 2, "shared": "async"}

        plugin_server.inject_ui_app_vars("canvas", lambda: {"a": 1, "shared": "sync"})
        plugin_server.inject_ui_app_vars("canvas", async_vars)

        assert await plugin_server.get_injected_ui_app_vars("canvas") == {
            "a": 1,
            "b": 2,
            "shared": "async",
        }

    async def test_ui_vars_are_evaluated_on_read(self, plugin_server: PluginServer):
        state = {"count": 0}
        plugin_server.inject_ui_app_vars("canvas", lambda: {"count": state["count"]})

        state["count"] = 3

        assert await plugin_server.get_injected_ui_app_vars("canvas") == {"count": 3}

    async def test_unknown_app(self, plugin_server: PluginServer):
        with pytest.raises(NotFoundError):
            await plugin_server.get_injected_ui_app_vars("missing")

    async def test_init_order_and_types(self, plugin_server: PluginServer):
        seen = []

        async def first(server: PluginServer):
            seen.append(("first", set(server.saved_object_types)))

        async def second(server: PluginServer):
            seen.append(("second", set(server.saved_object_types)))

        await plugin_server.init_plugins([
            Plugin(id="first", init=first, saved_object_types=("a",)),
            Plugin(id="second", init=second, saved_object_types=("b",)),
        ])

        assert seen == [("first", {"a", "b"}), ("second", {"a", "b"})]
        assert plugin_server.initialized_plugins == ["first", "second"]
        assert plugin_server.registries.loaded

    async def test_failing_plugin_stops_init(self, plugin_server: PluginServer):
        async def broken(server: PluginServer):
            raise RuntimeError("broken plugin")

        async def never(server: PluginServer):
            raise AssertionError("should not run")

        with pytest.raises(RuntimeError, match="broken plugin"):
            await plugin_server.init_plugins([
                Plugin(id="broken", init=broken),
                Plugin(id="never", init=never),
            ])

        assert plugin_server.initialized_plugins == []


class TestServerRegistries:
    """Tests for the function registries."""

    def test_duplicate_function(self):
        registry = FunctionsRegistry()
        registry.register(_function("clog"))

        with pytest.raises(ValueError):
            registry.register(_function("clog"))

    async def test_load_runs_providers_once(self):
        registries = ServerRegistries()
        calls = []

        async def provider():
            calls.append(1)
            return [_function("first"), _function("second")]

        registries.add_functions(provider)
        await asyncio.gather(registries.load(), registries.load())
        await registries.load()

        assert calls == [1]
        assert len(registries.functions) == 2
        assert "second" in registries.functions

    async def test_add_after_load(self):
        registries = ServerRegistries()
        await registries.load()

        with pytest.raises(RuntimeError):
            registries.add_functions(lambda: [])

    async def test_function_call_awaits(self):
        async def double(context, args):
            return context * 2

        function = ServerFunction(name="double", help="", fn=double)

        assert await function(4, {}) == 8


class TestCollectorSet:
    """Tests for usage collection."""

    async def test_failing_collector_is_omitted(self):
        async def ok(client):
            return {"count": 1}

        async def broken(client):
            raise RuntimeError("boom")

        collectors = CollectorSet()
        collectors.register(UsageCollector(type="ok", fetch=ok))
        collectors.register(UsageCollector(type="broken", fetch=broken))

        assert await collectors.bulk_fetch(client=None) == {"ok": {"count": 1}}
        assert collectors.types == ["ok", "broken"]

    def test_duplicate_collector(self):
        async def fetch(client):
            return None

        collectors = CollectorSet()
        collectors.register(UsageCollector(type="canvas", fetch=fetch))

        with pytest.raises(ValueError):
            collectors.register(UsageCollector(type="canvas", fetch=fetch))


class TestSampleDataRegistry:
    """Tests for SampleDataRegistry."""

    def test_unknown_dataset(self):
        with pytest.raises(NotFoundError):
            SampleDataRegistry().get("weather")

    def test_add_saved_objects(self):
        registry = SampleDataRegistry()
        registry.register(SampleDataset(id="logs", name="Logs"))

        registry.add_saved_objects("logs", [{"type": "dashboard", "id": "d1", "attributes": {}}])

        assert len(registry.get("logs").saved_objects) == 1

    async def test_empty_dataset_is_not_installed(self):
        registry = SampleDataRegistry()
        registry.register(SampleDataset(id="logs", name="Logs"))

        assert await registry.status("logs", client=None) == "not_installed"
