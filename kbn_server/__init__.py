"""kbn-server: plugin-based application server."""

__version__ = "6.4.0"
