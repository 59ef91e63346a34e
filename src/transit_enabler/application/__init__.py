"""Application layer - use cases over a network provider."""

from transit_enabler.application.services import TransitService, TripsPager

__all__ = ["TransitService", "TripsPager"]
