"""Plugin host and bundled plugins."""

from kbn_server.plugins.server import Plugin, PluginServer


def default_plugins() -> list[Plugin]:
    """Bundled plugins in initialization order."""
    from kbn_server.plugins.canvas import canvas_plugin
    from kbn_server.plugins.home import home_plugin
    from kbn_server.plugins.security import security_plugin

    return [home_plugin, security_plugin, canvas_plugin]


__all__ = ["Plugin", "PluginServer", "default_plugins"]
