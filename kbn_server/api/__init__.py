"""HTTP API for kbn-server."""
