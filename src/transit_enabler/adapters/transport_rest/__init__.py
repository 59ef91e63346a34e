"""transport.rest (hafas-rest-api) adapter."""

from transit_enabler.adapters.transport_rest.parser import TransportRestParser
from transit_enabler.adapters.transport_rest.provider import JourneysCursor, TransportRestProvider

__all__ = ["JourneysCursor", "TransportRestParser", "TransportRestProvider"]
