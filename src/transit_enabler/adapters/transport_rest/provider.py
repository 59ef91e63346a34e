"""Network provider backed by a transport.rest (hafas-rest-api) instance."""

import logging
from collections.abc import Collection
from datetime import datetime
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, ValidationError

from transit_enabler.adapters.abstract_network_provider import AbstractNetworkProvider
from transit_enabler.adapters.http_client import (
    HttpClient,
    HttpResponse,
    raise_for_status,
    raise_for_triage,
)
from transit_enabler.adapters.transport_rest.constants import (
    ACCESSIBILITY_VALUES,
    BASE_URLS,
    DEFAULT_DEPARTURE_DURATION_MINUTES,
    DEFAULT_HEADERS,
    DEFAULT_MAX_DEPARTURES,
    DEFAULT_MAX_LOCATIONS,
    DEFAULT_MAX_TRIPS,
    DEPARTURES_STATUS_BY_HAFAS_CODE,
    JOURNEYS_PATH,
    LOCATIONS_PATH,
    MIN_DELAY_SECONDS,
    NEARBY_PATH,
    PRODUCTS_BY_NETWORK,
    STOP_DEPARTURES_PATH,
    STOP_PATH,
    TRIP_STATUS_BY_HAFAS_CODE,
)
from transit_enabler.adapters.transport_rest.parser import TransportRestParser, parse_hafas_code
from transit_enabler.domain.exceptions import PaginationError, PreconditionError
from transit_enabler.domain.models import (
    Location,
    LocationType,
    NearbyLocationsResult,
    QueryDeparturesResult,
    QueryDeparturesStatus,
    QueryTripsContext,
    QueryTripsResult,
    QueryTripsStatus,
    ResultHeader,
    SuggestedLocation,
    SuggestLocationsResult,
    TripFlag,
    TripOptions,
)
from transit_enabler.domain.ports import Capability
from transit_enabler.domain.response_triage import ResponseTriage

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from aiohttp import ClientSession

SERVER_PRODUCT = "hafas-rest-api"

_UNKNOWN_STATUS_BY_ROLE = {
    "from": QueryTripsStatus.UNKNOWN_FROM,
    "via": QueryTripsStatus.UNKNOWN_VIA,
    "to": QueryTripsStatus.UNKNOWN_TO,
}


class JourneysCursor(BaseModel):
    """Continuation state for /journeys, serialized into the context token."""

    model_config = ConfigDict(frozen=True)

    params: dict[str, str]
    earlier_ref: str | None = None
    later_ref: str | None = None

    def to_token(self) -> bytes:
        return self.model_dump_json().encode("utf-8")

    @classmethod
    def from_token(cls, token: bytes) -> "JourneysCursor":
        try:
            return cls.model_validate_json(token)
        except ValidationError as e:
            raise PaginationError("Malformed trip context token") from e


class TransportRestProvider(AbstractNetworkProvider):
    """Adapter for the DB and VBB transport.rest endpoints."""

    def __init__(
        self,
        network: str = "db",
        session: "ClientSession | None" = None,
        base_url: str | None = None,
        api_key: str | None = None,
        user_agent: str | None = None,
        timeout_seconds: float = 15.0,
        min_delay_seconds: float = MIN_DELAY_SECONDS,
        max_trips: int = DEFAULT_MAX_TRIPS,
        triage: ResponseTriage | None = None,
        http_client: HttpClient | None = None,
    ) -> None:
        """Initialize for one network.

        Args:
            network: 'db' or 'vbb'; selects product flags and the default base URL.
            session: Shared aiohttp session.
            base_url: Override for self-hosted instances.
            api_key: Sent as X-Api-Key when the instance sits behind a gateway.
            user_agent: User-Agent header value.
            timeout_seconds: Total timeout per request.
            min_delay_seconds: Minimum gap between requests to this backend.
            max_trips: Number of journeys requested per page.
            triage: Marker set used to detect non-JSON error pages.
            http_client: Prebuilt client, mostly for tests.
        """
        if network not in PRODUCTS_BY_NETWORK:
            raise PreconditionError(f"Unsupported transport.rest network: {network!r}")
        super().__init__(network, frozenset(Capability))
        self._base_url = (base_url or BASE_URLS[network]).rstrip("/")
        self._max_trips = max_trips
        headers = dict(DEFAULT_HEADERS)
        if api_key:
            headers["X-Api-Key"] = api_key
        self._http = http_client or HttpClient(
            session,
            backend=f"transport_rest_{network}",
            min_delay_seconds=min_delay_seconds,
            timeout_seconds=timeout_seconds,
            user_agent=user_agent,
            headers=headers,
            triage=triage,
        )
        self._parser = TransportRestParser(network, PRODUCTS_BY_NETWORK[network], self.line_style)

    @property
    def base_url(self) -> str:
        return self._base_url

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    def _header(self) -> ResultHeader:
        return ResultHeader(self.network, SERVER_PRODUCT)

    @staticmethod
    def _type_params(types: Collection[LocationType] | None) -> dict[str, Any]:
        if not types or LocationType.ANY in types:
            return {}
        return {
            "stops": LocationType.STATION in types,
            "addresses": LocationType.ADDRESS in types,
            "poi": LocationType.POI in types,
        }

    async def suggest_locations(
        self,
        constraint: str,
        types: Collection[LocationType] | None = None,
        max_locations: int = 0,
    ) -> SuggestLocationsResult:
        params = {
            "query": constraint,
            "results": max_locations or DEFAULT_MAX_LOCATIONS,
            **self._type_params(types),
        }
        data = await self._http.get_json(self._url(LOCATIONS_PATH), params)
        locations = self._parser.parse_locations(data)
        return SuggestLocationsResult.ok(
            (SuggestedLocation(location) for location in locations), self._header()
        )

    async def _station_coord(self, station_id: str) -> Location | None:
        path = STOP_PATH.format(station_id=quote(station_id, safe=""))
        response = await self._http.fetch(self._url(path))
        if response.status in (400, 404) or parse_hafas_code(response.text) == "LOCATION":
            return None
        raise_for_status(response)
        raise_for_triage(response, self._http.triage)
        return self._parser.parse_location(response.json())

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
            anchor = await self._station_coord(location.id)  # type: ignore[arg-type]
            if anchor is None or not anchor.has_coord:
                return NearbyLocationsResult.invalid_id(self._header())

        params: dict[str, Any] = {
            "latitude": f"{anchor.coord.lat_as_double:.6f}",  # type: ignore[union-attr]
            "longitude": f"{anchor.coord.lon_as_double:.6f}",  # type: ignore[union-attr]
            "results": max_locations or DEFAULT_MAX_LOCATIONS,
            "poi": LocationType.POI in types,
        }
        if max_distance:
            params["distance"] = max_distance
        data = await self._http.get_json(self._url(NEARBY_PATH), params)
        locations = [
            loc
            for loc in self._parser.parse_locations(data)
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
        params: dict[str, Any] = {
            "duration": DEFAULT_DEPARTURE_DURATION_MINUTES,
            "results": max_departures or DEFAULT_MAX_DEPARTURES,
            "includeRelatedStations": equivs,
            "remarks": True,
        }
        if time is not None:
            params["when"] = time.isoformat()
        response = await self._http.fetch(
            self._url(STOP_DEPARTURES_PATH.format(station_id=quote(station_id, safe=""))), params
        )
        if not response.ok:
            status = self._departures_error_status(response)
            if status is QueryDeparturesStatus.INVALID_STATION:
                return QueryDeparturesResult.invalid_station(self._header())
            if status is QueryDeparturesStatus.SERVICE_DOWN:
                return QueryDeparturesResult.service_down(self._header())
            raise_for_status(response)
        raise_for_triage(response, self._http.triage)
        blocks = self._parser.parse_departures(response.json(), max_departures)
        return QueryDeparturesResult.ok(blocks, self._header())

    @staticmethod
    def _departures_error_status(response: HttpResponse) -> QueryDeparturesStatus | None:
        code = parse_hafas_code(response.text)
        if code in DEPARTURES_STATUS_BY_HAFAS_CODE:
            return DEPARTURES_STATUS_BY_HAFAS_CODE[code]
        if response.status in (400, 404):
            return QueryDeparturesStatus.INVALID_STATION
        return None

    def _location_params(self, role: str, location: Location) -> dict[str, str]:
        if location.type is LocationType.STATION and location.id:
            return {role: location.id}
        if location.coord is None:
            raise PreconditionError(f"Cannot use {location} as trip {role}")
        params = {
            f"{role}.latitude": f"{location.coord.lat_as_double:.6f}",
            f"{role}.longitude": f"{location.coord.lon_as_double:.6f}",
        }
        if location.type is LocationType.POI and location.id:
            params[f"{role}.id"] = location.id
            params[f"{role}.poi"] = "true"
            params[f"{role}.name"] = location.name or location.id
        else:
            params[f"{role}.address"] = location.name or str(location.coord)
        return params

    async def _resolve(self, role: str, location: Location) -> tuple[Location | None, tuple[Location, ...]]:
        """Resolve a free-text location. Returns the match or the ambiguity candidates."""
        if location.type is not LocationType.ANY and location.is_identified():
            return location, ()
        result = await self.suggest_locations(location.name or "", None, DEFAULT_MAX_LOCATIONS)
        candidates = tuple(loc for loc in result.locations if loc.is_identified())
        if len(candidates) == 1:
            return candidates[0], ()
        exact = [c for c in candidates if c.name and c.name.lower() == (location.name or "").lower()]
        if len(exact) == 1:
            return exact[0], ()
        logger.info(f"Trip {role} {location.name!r} resolved to {len(candidates)} candidates")
        return None, candidates

    def _option_params(self, options: TripOptions | None) -> dict[str, Any]:
        if options is None:
            return {}
        params: dict[str, Any] = {}
        if options.products is not None:
            for flag, product in self._parser.product_flags.items():
                params[flag] = product in options.products
        if options.walk_speed is not None:
            params["walkingSpeed"] = options.walk_speed.value
        if options.accessibility is not None:
            params["accessibility"] = ACCESSIBILITY_VALUES[options.accessibility]
        if TripFlag.BIKE in options.flags:
            params["bike"] = True
        return params

    async def query_trips(
        self,
        from_: Location,
        via: Location | None,
        to: Location,
        date: datetime,
        dep: bool = True,
        options: TripOptions | None = None,
    ) -> QueryTripsResult:
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
            else:
                return QueryTripsResult.of_status(_UNKNOWN_STATUS_BY_ROLE[role], self._header())
        if ambiguous:
            return QueryTripsResult.ambiguous(
                ambiguous.get("from", ()),
                ambiguous.get("via", ()),
                ambiguous.get("to", ()),
                self._header(),
            )

        params: dict[str, str] = {}
        for role, location in resolved.items():
            if role == "via":
                if not location.id:
                    raise PreconditionError("Via location must be a station")
                params["via"] = location.id
            else:
                params.update(self._location_params(role, location))
        for key, value in self._option_params(options).items():
            params[key] = "true" if value is True else "false" if value is False else str(value)
        params.update(
            {
                "results": str(self._max_trips),
                "stopovers": "true",
                "polylines": "true",
                "remarks": "true",
            }
        )

        time_key = "departure" if dep else "arrival"
        return await self._journeys(
            JourneysCursor(params=params),
            {time_key: date.isoformat()},
            later=None,
            from_=resolved["from"],
            via=resolved.get("via"),
            to=resolved["to"],
        )

    async def _query_more_trips(self, context: QueryTripsContext, later: bool) -> QueryTripsResult:
        cursor = JourneysCursor.from_token(context.token)
        ref = cursor.later_ref if later else cursor.earlier_ref
        if ref is None:
            raise PaginationError("Trip context carries no reference for this direction")
        key = "laterThan" if later else "earlierThan"
        return await self._journeys(cursor, {key: ref}, later=later)

    async def _journeys(
        self,
        cursor: JourneysCursor,
        extra_params: dict[str, str],
        later: bool | None,
        from_: Location | None = None,
        via: Location | None = None,
        to: Location | None = None,
    ) -> QueryTripsResult:
        response = await self._http.fetch(self._url(JOURNEYS_PATH), {**cursor.params, **extra_params})
        if not response.ok:
            code = parse_hafas_code(response.text)
            if code in TRIP_STATUS_BY_HAFAS_CODE:
                logger.info(f"Journeys answered {code} on {self.network}")
                return QueryTripsResult.of_status(TRIP_STATUS_BY_HAFAS_CODE[code], self._header())
            raise_for_status(response)
        raise_for_triage(response, self._http.triage)

        data = response.json()
        trips = self.deduplicate_trips(self._parser.parse_journeys(data))
        if not trips and later is None:
            return QueryTripsResult.of_status(QueryTripsStatus.NO_TRIPS, self._header())

        earlier_ref = data.get("earlierRef")
        later_ref = data.get("laterRef")
        if later is True:
            earlier_ref = cursor.earlier_ref
        elif later is False:
            later_ref = cursor.later_ref
        next_cursor = JourneysCursor(params=cursor.params, earlier_ref=earlier_ref, later_ref=later_ref)
        context = QueryTripsContext(
            token=next_cursor.to_token(),
            network=self.network,
            can_query_earlier=earlier_ref is not None,
            can_query_later=later_ref is not None,
        )
        return QueryTripsResult.ok(trips, context, from_, via, to, self._header())
