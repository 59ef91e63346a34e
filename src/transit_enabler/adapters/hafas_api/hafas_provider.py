"""Network provider backed by a HAFAS mgate endpoint through pyhafas."""

import asyncio
import logging
from collections.abc import Callable, Collection
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError
from pyhafas import HafasClient
from pyhafas.types.exceptions import (
    AccessDeniedError,
    AuthenticationError,
    GeneralHafasError,
    JourneysArrivalDepartureTooNearError,
    JourneysTooManyTrainsError,
    LocationNotFoundError,
)
from pyhafas.types.nearby import LatLng

from transit_enabler.adapters.abstract_network_provider import AbstractNetworkProvider
from transit_enabler.adapters.hafas_api.hafas_parser import HafasParser
from transit_enabler.adapters.hafas_api.profiles import create_profile, localize, product_filter
from transit_enabler.domain.exceptions import (
    BlockedError,
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
    ResultHeader,
    SuggestedLocation,
    SuggestLocationsResult,
    Trip,
    TripOptions,
)
from transit_enabler.domain.ports import Capability

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from aiohttp import ClientSession

T = TypeVar("T")

SERVER_PRODUCT = "hafas"
DEFAULT_MAX_TRIPS = 6
DEFAULT_MAX_LOCATIONS = 10
DEPARTURE_DURATION_MINUTES = 60
# HAFAS has no backward cursor, so earlier pages search from a shifted start time.
EARLIER_WINDOW = timedelta(hours=1)
LATER_STEP = timedelta(minutes=1)

# Answers about the query itself; callers map these onto result statuses.
BUSINESS_ERRORS = (
    LocationNotFoundError,
    JourneysArrivalDepartureTooNearError,
    JourneysTooManyTrainsError,
)

_UNKNOWN_STATUS_BY_ROLE = {
    "from": QueryTripsStatus.UNKNOWN_FROM,
    "via": QueryTripsStatus.UNKNOWN_VIA,
    "to": QueryTripsStatus.UNKNOWN_TO,
}


class HafasTripsCursor(BaseModel):
    """Time window of a trip session, serialized into the context token."""

    model_config = ConfigDict(frozen=True)

    origin: str
    destination: str
    via: list[str] = []
    products: dict[str, bool] = {}
    earliest_departure: datetime
    latest_departure: datetime
    earlier_anchor: datetime

    def to_token(self) -> bytes:
        return self.model_dump_json().encode("utf-8")

    @classmethod
    def from_token(cls, token: bytes) -> "HafasTripsCursor":
        try:
            return cls.model_validate_json(token)
        except ValidationError as e:
            raise PaginationError("Malformed trip context token") from e


class HafasProvider(AbstractNetworkProvider):
    """Adapter for HAFAS backends supported by pyhafas profiles.

    pyhafas is synchronous, so every call runs in a worker thread.
    """

    def __init__(
        self,
        profile: str = "db",
        session: "ClientSession | None" = None,
        user_agent: str | None = None,
        max_trips: int = DEFAULT_MAX_TRIPS,
        client: HafasClient | None = None,
    ) -> None:
        """Initialize with a pyhafas profile name.

        Args:
            profile: Profile name such as 'db', 'bvg' or 'kvb'.
            session: Unused by pyhafas; accepted so all adapters share one factory signature.
            user_agent: User-Agent sent to the mgate endpoint.
            max_trips: Number of journeys requested per page.
            client: Prebuilt pyhafas client, mostly for tests.
        """
        self._profile_name = profile.lower()
        super().__init__(f"hafas_{self._profile_name}", frozenset(Capability))
        self._session = session
        self._max_trips = max_trips
        if client is None:
            hafas_profile = create_profile(self._profile_name)
            client = HafasClient(hafas_profile, ua=user_agent) if user_agent else HafasClient(hafas_profile)
        self._client = client
        self._parser = HafasParser(self.network, self.line_style)

    @property
    def profile(self) -> Any:
        return self._client.profile

    def _header(self) -> ResultHeader:
        return ResultHeader(self.network, SERVER_PRODUCT, server_name=self._profile_name)

    async def _call(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run a pyhafas call in a thread and map its transport failures."""
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except BUSINESS_ERRORS:
            raise
        except (AuthenticationError, AccessDeniedError) as e:
            raise BlockedError(f"HAFAS {self._profile_name} refused the request: {e}") from e
        except GeneralHafasError as e:
            raise TransportError(f"HAFAS {self._profile_name} error: {e}") from e
        except OSError as e:
            raise TransportError(f"HAFAS {self._profile_name} unreachable: {e}") from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise UnexpectedResponseError(f"Unexpected HAFAS {self._profile_name} response: {e}") from e

    async def suggest_locations(
        self,
        constraint: str,
        types: Collection[LocationType] | None = None,
        max_locations: int = 0,
    ) -> SuggestLocationsResult:
        try:
            stations = await self._call(self._client.locations, constraint)
        except LocationNotFoundError:
            stations = []
        locations = self._parser.parse_stations(stations)
        if types and LocationType.ANY not in types:
            locations = [loc for loc in locations if loc.type in types]
        if max_locations:
            locations = locations[:max_locations]
        # The backend returns best matches first.
        count = len(locations)
        return SuggestLocationsResult.ok(
            (SuggestedLocation(loc, count - index) for index, loc in enumerate(locations)),
            self._header(),
        )

    async def _find_station(self, station_id: str) -> Location | None:
        try:
            stations = await self._call(self._client.locations, station_id)
        except LocationNotFoundError:
            return None
        for location in self._parser.parse_stations(stations):
            if location.id == station_id:
                return location
        return None

    async def query_nearby_locations(
        self,
        types: Collection[LocationType],
        location: Location,
        max_distance: int = 0,
        max_locations: int = 0,
    ) -> NearbyLocationsResult:
        self.require_nearby_anchor(location)
        anchor = location
        if not anchor.has_coord:
            anchor = await self._find_station(location.id)  # type: ignore[arg-type]
            if anchor is None or not anchor.has_coord:
                return NearbyLocationsResult.invalid_id(self._header())
        coord = anchor.coord
        stations = await self._call(
            self._client.nearby,
            LatLng(coord.lat_as_double, coord.lon_as_double),  # type: ignore[union-attr]
            max_walking_distance=max_distance or -1,
            max_locations=max_locations or -1,
            get_pois=LocationType.POI in types or LocationType.ANY in types,
        )
        locations = [
            loc
            for loc in self._parser.parse_stations(stations)
            if LocationType.ANY in types or loc.type in types
        ]
        return NearbyLocationsResult.ok(locations, self._header())

    async def query_departures(
        self,
        station_id: str,
        time: datetime | None = None,
        max_departures: int = 0,
        equivs: bool = True,
    ) -> QueryDeparturesResult:
        when = localize(self.profile, time) if time else datetime.now(self.profile.timezone)
        try:
            legs = await self._call(
                self._client.departures,
                station=station_id,
                date=when,
                max_trips=max_departures or -1,
                duration=DEPARTURE_DURATION_MINUTES,
            )
        except LocationNotFoundError:
            logger.info(f"HAFAS {self._profile_name} does not know station {station_id}")
            return QueryDeparturesResult.invalid_station(self._header())
        blocks = self._parser.parse_station_board(
            legs or [], station_id=None if equivs else station_id
        )
        return QueryDeparturesResult.ok(blocks, self._header())

    async def _resolve(self, role: str, location: Location) -> tuple[Location | None, tuple[Location, ...]]:
        """Map a trip endpoint onto a station, or return ambiguity candidates."""
        if location.type is LocationType.STATION and location.id:
            return location, ()
        if location.has_coord:
            coord = location.coord
            stations = await self._call(
                self._client.nearby,
                LatLng(coord.lat_as_double, coord.lon_as_double),  # type: ignore[union-attr]
                max_locations=1,
            )
            nearest = self._parser.parse_stations(stations)
            return (nearest[0], ()) if nearest else (None, ())
        if not location.name:
            return None, ()
        try:
            stations = await self._call(self._client.locations, location.name)
        except LocationNotFoundError:
            return None, ()
        candidates = tuple(
            loc for loc in self._parser.parse_stations(stations) if loc.type is LocationType.STATION
        )
        if len(candidates) == 1:
            return candidates[0], ()
        exact = [c for c in candidates if c.name and c.name.lower() == location.name.lower()]
        if len(exact) == 1:
            return exact[0], ()
        logger.info(f"Trip {role} {location.name!r} resolved to {len(candidates)} candidates")
        return None, candidates

    async def query_trips(
        self,
        from_: Location,
        via: Location | None,
        to: Location,
        date: datetime,
        dep: bool = True,
        options: TripOptions | None = None,
    ) -> QueryTripsResult:
        if not dep:
            raise PreconditionError("HAFAS profiles search by departure time only")
        roles = {"from": from_, "via": via, "to": to}
        resolved: dict[str, Location] = {}
        ambiguous: dict[str, tuple[Location, ...]] = {}
        for role, location in roles.items():
            if location is None:
                continue
            match, candidates = await self._resolve(role, location)
            if match is not None:
                resolved[role] = match
            elif candidates:
                ambiguous[role] = candidates
            elif location.type in (LocationType.ADDRESS, LocationType.COORD):
                return QueryTripsResult.of_status(QueryTripsStatus.UNRESOLVABLE_ADDRESS, self._header())
            else:
                return QueryTripsResult.of_status(_UNKNOWN_STATUS_BY_ROLE[role], self._header())
        if ambiguous:
            return QueryTripsResult.ambiguous(
                ambiguous.get("from", ()),
                ambiguous.get("via", ()),
                ambiguous.get("to", ()),
                self._header(),
            )

        when = localize(self.profile, date)
        products = product_filter(self.profile, options.products if options else None)
        via_ids = [resolved["via"].id] if "via" in resolved else []
        trips = await self._journeys(resolved["from"].id, resolved["to"].id, via_ids, products, when)  # type: ignore[arg-type]
        if isinstance(trips, QueryTripsResult):
            return trips
        if not trips:
            return QueryTripsResult.of_status(QueryTripsStatus.NO_TRIPS, self._header())

        departures = [trip.first_departure_time for trip in trips]
        cursor = HafasTripsCursor(
            origin=resolved["from"].id,  # type: ignore[arg-type]
            destination=resolved["to"].id,  # type: ignore[arg-type]
            via=via_ids,  # type: ignore[arg-type]
            products=products,
            earliest_departure=min(departures),
            latest_departure=max(departures),
            earlier_anchor=min(departures),
        )
        return QueryTripsResult.ok(
            trips,
            self._context(cursor),
            resolved["from"],
            resolved.get("via"),
            resolved["to"],
            self._header(),
        )

    def _context(self, cursor: HafasTripsCursor) -> QueryTripsContext:
        return QueryTripsContext(
            token=cursor.to_token(),
            network=self.network,
            can_query_earlier=True,
            can_query_later=True,
        )

    async def _journeys(
        self,
        origin: str,
        destination: str,
        via: list[str],
        products: dict[str, bool],
        when: datetime,
    ) -> "tuple[Trip, ...] | QueryTripsResult":
        """Fetch journeys, or a payload-free result for business errors."""
        try:
            journeys = await self._call(
                self._client.journeys,
                origin=origin,
                destination=destination,
                via=via,
                date=when,
                products=products,
                max_journeys=self._max_trips,
            )
        except JourneysArrivalDepartureTooNearError:
            return QueryTripsResult.of_status(QueryTripsStatus.TOO_CLOSE, self._header())
        except JourneysTooManyTrainsError:
            return QueryTripsResult.of_status(QueryTripsStatus.NO_TRIPS, self._header())
        except LocationNotFoundError:
            return QueryTripsResult.of_status(QueryTripsStatus.UNKNOWN_LOCATION, self._header())
        return self.deduplicate_trips(self._parser.parse_journeys(journeys or []))

    async def _query_more_trips(self, context: QueryTripsContext, later: bool) -> QueryTripsResult:
        cursor = HafasTripsCursor.from_token(context.token)
        if later:
            when = cursor.latest_departure + LATER_STEP
        else:
            when = cursor.earlier_anchor - EARLIER_WINDOW
        trips = await self._journeys(cursor.origin, cursor.destination, cursor.via, cursor.products, when)
        if isinstance(trips, QueryTripsResult):
            return trips

        if later:
            trips = tuple(t for t in trips if t.first_departure_time > cursor.latest_departure)
        else:
            trips = tuple(t for t in trips if t.first_departure_time < cursor.earliest_departure)
        departures = [trip.first_departure_time for trip in trips]
        next_cursor = cursor.model_copy(
            update={
                "earliest_departure": min([cursor.earliest_departure, *departures]),
                "latest_departure": max([cursor.latest_departure, *departures]),
                "earlier_anchor": when if not later else cursor.earlier_anchor,
            }
        )
        return QueryTripsResult.ok(trips, self._context(next_cursor), header=self._header())
