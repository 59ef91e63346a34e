"""Adapters layer - external system integrations."""

from transit_enabler.adapters.config import AppConfig
from transit_enabler.adapters.hafas_api import HafasProvider
from transit_enabler.adapters.provider_factory import create_provider
from transit_enabler.adapters.transport_rest import TransportRestProvider

__all__ = [
    "AppConfig",
    "HafasProvider",
    "TransportRestProvider",
    "create_provider",
]
