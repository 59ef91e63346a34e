"""Domain layer - transit entities, results and the provider port."""

from transit_enabler.domain.models import (
    Location,
    LocationType,
    Point,
    QueryTripsContext,
    QueryTripsResult,
    Trip,
)
from transit_enabler.domain.ports import Capability, NetworkProvider

__all__ = [
    "Capability",
    "Location",
    "LocationType",
    "NetworkProvider",
    "Point",
    "QueryTripsContext",
    "QueryTripsResult",
    "Trip",
]
