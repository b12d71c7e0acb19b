"""Core utilities and configuration for kbn-server."""

from kbn_server.core.config import settings, Settings
from kbn_server.core.errors import KbnError, wrap_error

__all__ = ["settings", "Settings", "KbnError", "wrap_error"]
