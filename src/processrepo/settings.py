"""Shared settings loaded from environment / .env file."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration for the process repository and its REST API server.

    Values are read from environment variables and from a ``.env`` file
    in the working directory.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"

    # REST API
    api_server_host: str = "localhost"
    api_server_port: int = 8000
    max_deployment_upload_mb: int = 5  # POST /deployments carries whole bundles
    max_request_body_mb: int = 1

    # Repository
    event_dispatcher_enabled: bool = True
    process_definition_cache_limit: int = 1000
