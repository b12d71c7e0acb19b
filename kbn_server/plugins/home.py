"""Home plugin: core saved object types and the sample data routes."""

from kbn_server.plugins.server import Plugin, PluginServer

CORE_SAVED_OBJECT_TYPES = ("config", "index-pattern", "search", "visualization", "dashboard")


async def init_home(server: PluginServer) -> None:
    from kbn_server.api.routes.sample_data import router

    server.route(router)


home_plugin = Plugin(id="home", init=init_home, saved_object_types=CORE_SAVED_OBJECT_TYPES)
