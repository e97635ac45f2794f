"""Configuration management for the author store service."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreConfig(BaseModel):
    """Indexed store configuration."""

    write_lock_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Deadline for acquiring the write lock (None blocks forever)",
    )


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, ge=1, le=65535, description="HTTP API port")
    metrics_port: int = Field(default=8001, ge=1, le=65535, description="Prometheus metrics port")
    metrics_enabled: bool = Field(default=False, description="Expose Prometheus metrics endpoint")


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(default="json", description="Log format")
    otel_endpoint: str | None = Field(
        default=None, description="OpenTelemetry collector endpoint"
    )
    otel_service_name: str = Field(default="author_store", description="Service name for tracing")


class Config(BaseSettings):
    """Main configuration for the author store service."""

    model_config = SettingsConfigDict(
        env_prefix="AUTHOR_STORE_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    store: StoreConfig = Field(default_factory=StoreConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


@lru_cache
def get_config() -> Config:
    """Get the global configuration instance."""
    return Config()
