"""Ports (interfaces) for the ports-and-adapters architecture."""

from transit_enabler.domain.ports.network_provider import Capability, NetworkProvider

__all__ = [
    "Capability",
    "NetworkProvider",
]
