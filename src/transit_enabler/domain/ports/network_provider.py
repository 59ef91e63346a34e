"""Network provider port."""

from collections.abc import Collection
from datetime import datetime
from enum import Enum
from typing import Protocol

from transit_enabler.domain.models.location import Location, LocationType
from transit_enabler.domain.models.product import Product
from transit_enabler.domain.models.query_trips_context import QueryTripsContext
from transit_enabler.domain.models.results import (
    NearbyLocationsResult,
    QueryDeparturesResult,
    QueryTripsResult,
    SuggestLocationsResult,
)
from transit_enabler.domain.models.style import Style
from transit_enabler.domain.models.trip_options import TripOptions


class Capability(Enum):
    SUGGEST_LOCATIONS = "suggest_locations"
    NEARBY_LOCATIONS = "nearby_locations"
    DEPARTURES = "departures"
    TRIPS = "trips"
    TRIPS_VIA = "trips_via"


class NetworkProvider(Protocol):
    """Port implemented once per transit backend."""

    @property
    def network(self) -> str:
        """Identifier of the backend, stamped on every pagination context."""
        ...

    def has_capabilities(self, *capabilities: Capability) -> bool:
        """Whether the backend supports all the given operations."""
        ...

    async def suggest_locations(
        self,
        constraint: str,
        types: Collection[LocationType] | None = None,
        max_locations: int = 0,
    ) -> SuggestLocationsResult:
        """Free-text location search. Ordering is stable for identical input."""
        ...

    async def query_nearby_locations(
        self,
        types: Collection[LocationType],
        location: Location,
        max_distance: int = 0,
        max_locations: int = 0,
    ) -> NearbyLocationsResult:
        """Find locations around a station or coordinate.

        ``max_distance`` of 0 uses the backend default radius.
        """
        ...

    async def query_departures(
        self,
        station_id: str,
        time: datetime | None = None,
        max_departures: int = 0,
        equivs: bool = True,
    ) -> QueryDeparturesResult:
        """Departure board for a station, one block per physical stop with ``equivs``."""
        ...

    async def query_trips(
        self,
        from_: Location,
        via: Location | None,
        to: Location,
        date: datetime,
        dep: bool = True,
        options: TripOptions | None = None,
    ) -> QueryTripsResult:
        """Query itineraries departing (``dep``) or arriving at ``date``."""
        ...

    async def query_more_trips(self, context: QueryTripsContext, later: bool) -> QueryTripsResult:
        """Continue a trip query earlier or later."""
        ...

    def line_style(self, network: str | None, product: Product | None, label: str | None) -> Style:
        """Display style for a line."""
        ...
