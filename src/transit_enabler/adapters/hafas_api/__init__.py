"""HAFAS adapter (pyhafas)."""

from transit_enabler.adapters.hafas_api.hafas_parser import HafasParser
from transit_enabler.adapters.hafas_api.hafas_provider import HafasProvider, HafasTripsCursor

__all__ = [
    "HafasParser",
    "HafasProvider",
    "HafasTripsCursor",
]
