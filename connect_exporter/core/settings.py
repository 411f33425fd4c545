"""Exporter settings loaded from environment variables and ``.env`` files.

Uses :mod:`pydantic_settings`; every field maps to the upper-case
environment variable of the same name (``connect_host`` ← ``CONNECT_HOST``).

Typical usage::

    from connect_exporter.core.settings import Settings

    settings = Settings()                          # env + ./.env
    settings = Settings(_env_file="/etc/exporter.env")
    print(settings.connect_base_url)               # "http://connect:8083"
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["Settings"]


class Settings(BaseSettings):
    """Central process configuration.

    Values are loaded in priority order:

    1. Actual environment variables (highest priority).
    2. The ``.env`` file (``./.env`` unless ``_env_file`` is passed).
    3. Field defaults (lowest priority).

    ``connect_host`` has an empty default so the settings object can be
    built for ``--help`` and tests; :attr:`connect_configured` tells the
    entry-point whether it may start polling.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Kafka Connect
    # ------------------------------------------------------------------
    connect_host: str = Field(
        default="",
        description="Kafka Connect REST endpoint, e.g. 'connect:8083' or 'https://connect'.",
    )
    connect_poll_interval: float = Field(
        default=10.0,
        gt=0,
        description="Seconds between two polls of the Connect API.",
    )
    connect_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Per-request timeout for Connect API calls, in seconds.",
    )

    # ------------------------------------------------------------------
    # Prometheus endpoint
    # ------------------------------------------------------------------
    prometheus_host: str = Field(default="0.0.0.0", description="Bind address.")
    prometheus_port: int = Field(default=9400, ge=0, le=65535, description="Bind port.")
    prometheus_path: str = Field(default="/metrics", description="Scrape path.")
    process_metrics: bool = Field(
        default=True,
        description="Also expose process_* metrics (CPU, memory, fds).",
    )
    shutdown_timeout: float = Field(
        default=10.0,
        ge=0,
        description="Seconds granted to in-flight scrapes on shutdown.",
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = Field(default="INFO", description="Logging level.")
    log_format: str = Field(default="text", description="Log format: 'text' or 'json'.")

    # ------------------------------------------------------------------
    # Field validators
    # ------------------------------------------------------------------

    @field_validator("connect_host")
    @classmethod
    def _strip_connect_host(cls, v: str) -> str:
        return v.strip().rstrip("/")

    @field_validator("prometheus_path")
    @classmethod
    def _validate_prometheus_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError(f"prometheus_path must start with '/', got {v!r}")
        return v

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of {allowed}, got {v!r}")
        return v_upper

    @field_validator("log_format")
    @classmethod
    def _validate_log_format(cls, v: str) -> str:
        allowed = {"text", "json"}
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"log_format must be one of {allowed}, got {v!r}")
        return v_lower

    # ------------------------------------------------------------------
    # Derived helpers
    # ------------------------------------------------------------------

    @property
    def connect_configured(self) -> bool:
        """``True`` if a Connect host has been set."""
        return bool(self.connect_host)

    @property
    def connect_base_url(self) -> str:
        """``connect_host`` with ``http://`` prepended when no scheme is given."""
        if "://" in self.connect_host:
            return self.connect_host
        return f"http://{self.connect_host}"
