"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Server Configuration
    # ==========================================================================
    server_host: str = Field(default="0.0.0.0")
    server_port: int = Field(default=5601, ge=1024, le=65535)
    server_base_path: str = Field(
        default="",
        description="Path prefix the server is mounted under behind a proxy",
    )
    server_version: str = Field(default="6.4.0")
    server_debug: bool = Field(default=False)
    cors_origins: str = Field(
        default="http://localhost:5601",
        description="Comma-separated CORS origins",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @field_validator("server_base_path")
    @classmethod
    def validate_base_path(cls, v: str) -> str:
        """Base path must start with a slash and must not end with one."""
        if v and (not v.startswith("/") or v.endswith("/")):
            raise ValueError("server_base_path must start with '/' and not end with '/'")
        return v

    # ==========================================================================
    # Kibana Index / Saved Objects
    # ==========================================================================
    kibana_index: str = Field(default=".kibana")
    saved_objects_db_path: str = Field(
        default="./.data/saved_objects.db",
        description="SQLite file backing the saved objects store",
    )

    # ==========================================================================
    # Elasticsearch Configuration
    # ==========================================================================
    elasticsearch_url: str = Field(default="http://localhost:9200")
    elasticsearch_api_version: str = Field(default="6.x")
    elasticsearch_shard_timeout: int = Field(
        default=30000,
        ge=0,
        description="Shard timeout in milliseconds, 0 disables it",
    )
    elasticsearch_request_timeout: float = Field(default=30.0, ge=1.0, le=300.0)
    elasticsearch_verify_ssl: bool = Field(default=True)
    elasticsearch_startup_check: bool = Field(
        default=True,
        description="Ping the cluster during startup",
    )
    elasticsearch_startup_retries: int = Field(default=5, ge=1, le=30)

    # ==========================================================================
    # X-Pack
    # ==========================================================================
    xpack_info_refresh_seconds: float = Field(default=30.0, ge=1.0, le=3600.0)
    xpack_reporting_capture_browser_type: str = Field(default="chromium")

    # ==========================================================================
    # Observability
    # ==========================================================================
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v_upper

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        v_lower = v.lower()
        if v_lower not in {"json", "console"}:
            raise ValueError("log_format must be 'json' or 'console'")
        return v_lower

    @property
    def security_application(self) -> str:
        """Application name used for privileges stored in the cluster."""
        return f"kibana-{self.kibana_index}"

    def get(self, key: str, default: Optional[object] = None) -> object:
        """
        Read a setting by its dotted plugin-config name.

        ``settings.get("elasticsearch.shardTimeout")`` resolves to
        ``elasticsearch_shard_timeout``.
        """
        attr = _DOTTED_KEYS.get(key)
        if attr is None:
            return default
        return getattr(self, attr, default)


_DOTTED_KEYS = {
    "server.basePath": "server_base_path",
    "server.version": "server_version",
    "kibana.index": "kibana_index",
    "elasticsearch.url": "elasticsearch_url",
    "elasticsearch.apiVersion": "elasticsearch_api_version",
    "elasticsearch.shardTimeout": "elasticsearch_shard_timeout",
    "elasticsearch.requestTimeout": "elasticsearch_request_timeout",
    "xpack.reporting.capture.browser.type": "xpack_reporting_capture_browser_type",
}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
