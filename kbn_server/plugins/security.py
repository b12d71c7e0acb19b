"""Security plugin."""

import structlog

from kbn_server.plugins.server import Plugin, PluginServer
from kbn_server.security.license import SecurityLicense
from kbn_server.security.privileges import build_privilege_map

logger = structlog.get_logger(__name__)


async def init_security(server: PluginServer) -> None:
    """Fetch the license, build the privilege map and mount the role routes."""
    from kbn_server.api.routes.roles import create_roles_router

    config = server.config()
    application = config.security_application

    security_license = SecurityLicense(server.cluster, config.xpack_info_refresh_seconds)
    server.app.state.security_license = security_license
    await security_license.refresh()

    privilege_map = build_privilege_map(config.server_version, server.saved_object_types)
    server.app.state.privilege_map = privilege_map

    server.route(create_roles_router(privilege_map, application))
    logger.info("Security initialized", application=application, privileges=list(privilege_map))


security_plugin = Plugin(id="security", init=init_security)
