"""Listener configuration."""

from __future__ import annotations

from pydantic import field_validator
from pydantic_settings import BaseSettings


class ListenerSettings(BaseSettings):
    """Environment-driven settings for a Routemaster event listener."""

    # Subscription UUID; the bus sends it as the Basic-auth username
    uuid: str
    path: str = "/events"
    host: str = "127.0.0.1"
    port: int = 8080
    log_level: str = "INFO"
    # Diagnostics are appended here as JSON lines when set
    log_file: str | None = None

    model_config = {"env_prefix": "ROUTEMASTER_", "env_file": ".env", "extra": "ignore"}

    @field_validator("uuid")
    @classmethod
    def _uuid_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("uuid must be non-empty")
        return value

    @field_validator("path")
    @classmethod
    def _path_absolute(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("path must start with '/'")
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return level
