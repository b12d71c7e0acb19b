"""Canvas plugin initialization."""

import structlog

from kbn_server.plugins.canvas.constants import CANVAS_APP
from kbn_server.plugins.canvas.functions import common_functions
from kbn_server.plugins.canvas.sample_data import load_sample_data
from kbn_server.plugins.canvas.usage import canvas_usage_collector
from kbn_server.plugins.server import PluginServer

logger = structlog.get_logger(__name__)


async def init_canvas(server: PluginServer) -> None:
    """
    Wire Canvas into the server.

    Routes are registered last: they serve the function registry, which is
    only complete once every plugin has contributed to it.
    """
    functions_registry = server.registries.functions

    def canvas_ui_vars() -> dict:
        config = server.config()
        return {
            "kbnIndex": config.get("kibana.index"),
            "esShardTimeout": config.get("elasticsearch.shardTimeout"),
            "esApiVersion": config.get("elasticsearch.apiVersion"),
            "serverFunctions": functions_registry.to_array(),
            "basePath": config.get("server.basePath"),
            "reportingBrowserType": config.get("xpack.reporting.capture.browser.type"),
        }

    server.inject_ui_app_vars(CANVAS_APP, canvas_ui_vars)

    # Common functions that need server-side execution are registered here
    server.registries.add_functions(lambda: common_functions)

    server.usage.register(canvas_usage_collector)
    load_sample_data(server.sample_data)

    await server.registries.load()

    # Deferred: the route module imports this package
    from kbn_server.api.routes.canvas import router

    server.route(router)
    logger.info("Canvas initialized", server_functions=len(functions_registry))
