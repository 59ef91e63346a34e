"""Application services wrapping a network provider."""

import logging
from collections.abc import Collection
from dataclasses import replace
from datetime import datetime

from transit_enabler.domain.exceptions import (
    PaginationError,
    PreconditionError,
    TransportError,
    UnexpectedResponseError,
)
from transit_enabler.domain.models import (
    Location,
    LocationType,
    NearbyLocationsResult,
    QueryDeparturesResult,
    QueryTripsContext,
    QueryTripsResult,
    QueryTripsStatus,
    SuggestLocationsResult,
    TripOptions,
)
from transit_enabler.domain.pagination import PageWindow, check_continuation
from transit_enabler.domain.ports import Capability, NetworkProvider

logger = logging.getLogger(__name__)

_BACKEND_FAILURES = (TransportError, UnexpectedResponseError)


def _check_query_target(role: str, location: Location) -> None:
    if not location.is_identified() and not location.has_name:
        raise PreconditionError(f"Trip {role} location is neither identified nor named: {location}")


class TransitService:
    """Runs provider operations and enforces the caller-facing contract.

    Local preconditions are checked before the provider is called and
    propagate as PreconditionError. Transport failures and unparseable
    responses become SERVICE_DOWN results.
    """

    def __init__(self, provider: NetworkProvider) -> None:
        self._provider = provider

    @property
    def provider(self) -> NetworkProvider:
        return self._provider

    @property
    def network(self) -> str:
        return self._provider.network

    def _require(self, capability: Capability) -> None:
        if not self._provider.has_capabilities(capability):
            raise PreconditionError(
                f"Provider {self._provider.network} does not support {capability.value}"
            )

    async def suggest_locations(
        self,
        constraint: str,
        types: Collection[LocationType] | None = None,
        max_locations: int = 0,
    ) -> SuggestLocationsResult:
        """Suggest locations matching free text.

        Args:
            constraint: Text typed by the user, such as part of a station name.
            types: Location types to keep, or None for all.
            max_locations: Upper bound on results; 0 lets the backend decide.

        Returns:
            OK with suggestions ordered by priority, or SERVICE_DOWN.

        Raises:
            PreconditionError: If suggestions are unsupported or max_locations is negative.
        """
        self._require(Capability.SUGGEST_LOCATIONS)
        if max_locations < 0:
            raise PreconditionError(f"max_locations must not be negative: {max_locations}")
        try:
            return await self._provider.suggest_locations(constraint, types, max_locations)
        except _BACKEND_FAILURES as e:
            logger.warning(f"Suggest locations for {constraint!r} failed on {self.network}: {e}")
            return SuggestLocationsResult.service_down()

    async def query_nearby_locations(
        self,
        types: Collection[LocationType],
        location: Location,
        max_distance: int = 0,
        max_locations: int = 0,
    ) -> NearbyLocationsResult:
        """Find locations around a station or coordinate.

        Args:
            types: Location types to return.
            location: Anchor, a station with id or any location with a coordinate.
            max_distance: Radius in meters; 0 means the backend default.
            max_locations: Upper bound on results; 0 lets the backend decide.

        Returns:
            OK with locations, INVALID_ID for an unknown station, or SERVICE_DOWN.

        Raises:
            PreconditionError: If the anchor is unusable or a limit is negative.
        """
        self._require(Capability.NEARBY_LOCATIONS)
        if max_distance < 0 or max_locations < 0:
            raise PreconditionError("max_distance and max_locations must not be negative")
        if not location.has_coord and not (location.type is LocationType.STATION and location.has_id):
            raise PreconditionError(f"Nearby anchor needs a station id or a coordinate: {location}")
        try:
            return await self._provider.query_nearby_locations(
                types, location, max_distance, max_locations
            )
        except _BACKEND_FAILURES as e:
            logger.warning(f"Nearby locations around {location} failed on {self.network}: {e}")
            return NearbyLocationsResult.service_down()

    async def query_departures(
        self,
        station_id: str,
        time: datetime | None = None,
        max_departures: int = 0,
        equivs: bool = True,
    ) -> QueryDeparturesResult:
        """Query the departure board of a station.

        Args:
            station_id: Backend id of the station.
            time: Start of the board, or None for now.
            max_departures: Upper bound per stop; 0 lets the backend decide.
            equivs: Whether to include departures from equivalent stops.

        Returns:
            OK with one block per stop, INVALID_STATION, or SERVICE_DOWN.

        Raises:
            PreconditionError: If station_id is empty or max_departures is negative.
        """
        self._require(Capability.DEPARTURES)
        if not station_id:
            raise PreconditionError("station_id must not be empty")
        if max_departures < 0:
            raise PreconditionError(f"max_departures must not be negative: {max_departures}")
        try:
            return await self._provider.query_departures(station_id, time, max_departures, equivs)
        except _BACKEND_FAILURES as e:
            logger.warning(f"Departures for {station_id} failed on {self.network}: {e}")
            return QueryDeparturesResult.service_down()

    async def query_trips(
        self,
        from_: Location,
        via: Location | None,
        to: Location,
        date: datetime,
        dep: bool = True,
        options: TripOptions | None = None,
    ) -> QueryTripsResult:
        """Plan trips between two locations.

        Args:
            from_: Origin, identified or named.
            via: Optional stop to pass through.
            to: Destination, identified or named.
            date: Departure or arrival time, see ``dep``.
            dep: True to depart at ``date``, False to arrive by it.
            options: Product, walking and accessibility preferences.

        Returns:
            OK with trips and a continuation context, AMBIGUOUS with
            candidates per role, or another non-OK status.

        Raises:
            PreconditionError: If a target is neither identified nor named or
                the provider lacks the needed capability.
        """
        self._require(Capability.TRIPS)
        if via is not None:
            self._require(Capability.TRIPS_VIA)
            _check_query_target("via", via)
        _check_query_target("from", from_)
        _check_query_target("to", to)
        try:
            return await self._provider.query_trips(from_, via, to, date, dep, options)
        except _BACKEND_FAILURES as e:
            logger.warning(f"Trip query {from_} -> {to} failed on {self.network}: {e}")
            return QueryTripsResult.service_down()

    async def query_more_trips(self, context: QueryTripsContext, later: bool) -> QueryTripsResult:
        """Continue a trip query earlier or later.

        Raises:
            PaginationError: If the context forbids the direction or belongs to
                another network. Raised before any I/O.
        """
        check_continuation(context, later, self.network)
        try:
            return await self._provider.query_more_trips(context, later)
        except _BACKEND_FAILURES as e:
            direction = "later" if later else "earlier"
            logger.warning(f"Query {direction} trips failed on {self.network}: {e}")
            return QueryTripsResult.service_down()


class TripsPager:
    """Walks one trip query session earlier and later with monotonic pages.

    Not safe for concurrent use; callers serialize calls on one instance.
    """

    def __init__(
        self,
        service: TransitService,
        context: QueryTripsContext | None = None,
        window: PageWindow | None = None,
    ) -> None:
        """Start empty, or resume a session from its context and page window."""
        self._service = service
        self._window = window or PageWindow()
        self._context = context

    @property
    def context(self) -> QueryTripsContext | None:
        return self._context

    @property
    def window(self) -> PageWindow:
        return self._window

    @property
    def can_query_later(self) -> bool:
        return self._context is not None and self._context.can_query_later

    @property
    def can_query_earlier(self) -> bool:
        return self._context is not None and self._context.can_query_earlier

    async def start(
        self,
        from_: Location,
        via: Location | None,
        to: Location,
        date: datetime,
        dep: bool = True,
        options: TripOptions | None = None,
    ) -> QueryTripsResult:
        """Run a fresh trip query and start a new session from its result.

        Returns:
            The service result unchanged. Only an OK result opens a session.
        """
        self._window = PageWindow()
        self._context = None
        result = await self._service.query_trips(from_, via, to, date, dep, options)
        if result.status is QueryTripsStatus.OK:
            self._window.observe(result.trips)
            self._context = result.context
        return result

    async def more(self, later: bool) -> QueryTripsResult:
        """Fetch the next page in one direction, dropping out-of-order trips.

        Raises:
            PaginationError: If no session is open or the context forbids the direction.
        """
        if self._context is None:
            raise PaginationError("No trip query session to continue")
        result = await self._service.query_more_trips(self._context, later)
        if result.status is not QueryTripsStatus.OK:
            return result
        trips = self._window.admit(result.trips, later)
        self._context = result.context
        if len(trips) == len(result.trips):
            return result
        return replace(result, trips=trips)

    async def later(self) -> QueryTripsResult:
        return await self.more(later=True)

    async def earlier(self) -> QueryTripsResult:
        return await self.more(later=False)
