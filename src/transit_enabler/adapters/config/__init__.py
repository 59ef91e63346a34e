"""Configuration adapters."""

from transit_enabler.adapters.config.app_config import AppConfig

__all__ = ["AppConfig"]
