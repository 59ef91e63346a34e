"""12-factor configuration from environment variables, .env and an optional TOML file."""

import logging
import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from transit_enabler.domain.response_triage import DEFAULT_MARKERS, TriageMarkers

PROVIDERS = ("db", "vbb", "hafas")
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")

# TOML [provider] keys that may override environment settings.
PROVIDER_KEYS = (
    "provider",
    "api_base_url",
    "hafas_profile",
    "user_agent",
    "request_timeout_seconds",
    "min_request_delay_seconds",
    "default_max_trips",
)


class AppConfig(BaseSettings):
    """Application configuration following 12-factor principles."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server configuration
    host: str = Field(default="0.0.0.0", description="Host to bind the server to")
    port: int = Field(default=8000, description="Port to bind the server to")
    log_level: str = Field(default="INFO", description="Root log level")

    # Backend configuration
    provider: str = Field(default="db", description="Backend adapter: 'db', 'vbb' or 'hafas'")
    api_base_url: str | None = Field(
        default=None, description="Override of the transport.rest base URL"
    )
    hafas_profile: str = Field(default="db", description="pyhafas profile for provider 'hafas'")
    api_key: str | None = Field(
        default=None, description="Secret passed to the adapter, never logged"
    )
    user_agent: str = Field(
        default="transit-enabler/0.1", description="User-Agent sent to backends"
    )
    request_timeout_seconds: float = Field(
        default=15.0, description="Total timeout of one backend request in seconds"
    )
    min_request_delay_seconds: float = Field(
        default=0.6, description="Minimum delay between two requests to the same backend"
    )
    default_max_trips: int = Field(default=6, description="Trips requested per page")

    # Rate limiting of the HTTP service
    rate_limit_per_minute: int = Field(
        default=100,
        description="Maximum number of requests allowed per IP address per minute",
    )

    config_file: str | None = Field(
        default=None,
        description="Optional TOML file with [provider] overrides and [triage] markers",
    )

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        """Validate the provider is one of the supported adapters."""
        if v.lower() not in PROVIDERS:
            raise ValueError(f"provider must be one of {', '.join(PROVIDERS)}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate the log level is a standard logging level name."""
        if v.upper() not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return v.upper()

    @field_validator("request_timeout_seconds", "min_request_delay_seconds")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("durations must not be negative")
        return v

    @property
    def log_level_value(self) -> int:
        return logging.getLevelName(self.log_level)

    def _load_toml_data(self) -> dict[str, Any]:
        if not self.config_file:
            return {}
        config_path = Path(self.config_file)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        with open(config_path, "rb") as f:
            return tomllib.load(f)

    def load_config_file(self) -> "AppConfig":
        """Return a copy with [provider] overrides from the TOML file applied."""
        provider_section = self._load_toml_data().get("provider", {})
        if not isinstance(provider_section, dict):
            raise ValueError("TOML config 'provider' must be a table")
        overrides = {key: provider_section[key] for key in PROVIDER_KEYS if key in provider_section}
        if not overrides:
            return self
        # Re-validate so overrides go through the same validators as env vars.
        return AppConfig.model_validate({**self.model_dump(), **overrides})

    def get_triage_markers(self) -> TriageMarkers:
        """Default triage markers extended with the TOML [triage] section.

        Recognized keys are ``session_expired`` and ``internal_error``, each a
        list of literal texts.
        """
        triage = self._load_toml_data().get("triage", {})
        if not isinstance(triage, dict):
            raise ValueError("TOML config 'triage' must be a table")
        session_expired = triage.get("session_expired", [])
        internal_error = triage.get("internal_error", [])
        if not isinstance(session_expired, list) or not isinstance(internal_error, list):
            raise ValueError("TOML triage markers must be lists of strings")
        if not session_expired and not internal_error:
            return DEFAULT_MARKERS
        return DEFAULT_MARKERS.extended(
            session_expired=[str(m) for m in session_expired],
            internal_error=[str(m) for m in internal_error],
        )
