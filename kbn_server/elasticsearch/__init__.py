"""Cluster access for kbn-server."""

from kbn_server.elasticsearch.cluster import ClusterClient, ElasticsearchError

__all__ = ["ClusterClient", "ElasticsearchError"]
