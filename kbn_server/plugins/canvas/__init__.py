"""Canvas plugin."""

from kbn_server.plugins.canvas.constants import CANVAS_TYPE
from kbn_server.plugins.canvas.init import init_canvas
from kbn_server.plugins.server import Plugin

canvas_plugin = Plugin(id="canvas", init=init_canvas, saved_object_types=(CANVAS_TYPE,))

__all__ = ["canvas_plugin", "init_canvas"]
