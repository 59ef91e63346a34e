"""Per-operation status taxonomies and result values.

Every result carries exactly one status. When the status is not OK the payload
collections are empty and there is no pagination context, so callers can
branch on the status alone.
"""

from dataclasses import dataclass
from enum import Enum

from transit_enabler.domain.exceptions import PreconditionError
from transit_enabler.domain.models.departure import StationDepartures
from transit_enabler.domain.models.location import Location
from transit_enabler.domain.models.query_trips_context import QueryTripsContext
from transit_enabler.domain.models.result_header import ResultHeader
from transit_enabler.domain.models.trip import Trip


class SuggestLocationsStatus(Enum):
    OK = "ok"
    SERVICE_DOWN = "service_down"


class NearbyLocationsStatus(Enum):
    OK = "ok"
    INVALID_ID = "invalid_id"
    SERVICE_DOWN = "service_down"


class QueryDeparturesStatus(Enum):
    OK = "ok"
    INVALID_STATION = "invalid_station"
    SERVICE_DOWN = "service_down"


class QueryTripsStatus(Enum):
    OK = "ok"
    AMBIGUOUS = "ambiguous"
    TOO_CLOSE = "too_close"
    UNKNOWN_FROM = "unknown_from"
    UNKNOWN_VIA = "unknown_via"
    UNKNOWN_TO = "unknown_to"
    UNKNOWN_LOCATION = "unknown_location"
    UNRESOLVABLE_ADDRESS = "unresolvable_address"
    NO_TRIPS = "no_trips"
    INVALID_DATE = "invalid_date"
    SERVICE_DOWN = "service_down"


def _as_tuple(instance: object, name: str) -> tuple:
    value = getattr(instance, name)
    if not isinstance(value, tuple):
        value = tuple(value)
        object.__setattr__(instance, name, value)
    return value


def _require_empty(status: Enum, **payloads: tuple) -> None:
    for name, payload in payloads.items():
        if payload:
            raise PreconditionError(f"Result with status {status.name} must not carry {name}")


@dataclass(frozen=True)
class SuggestedLocation:
    """A suggestion with a backend-assigned priority (higher is better)."""

    location: Location
    priority: int = 0


def _suggestion_sort_key(suggestion: SuggestedLocation) -> tuple[int, int]:
    return (-suggestion.priority, suggestion.location.type.rank)


@dataclass(frozen=True)
class SuggestLocationsResult:
    status: SuggestLocationsStatus
    suggested_locations: tuple[SuggestedLocation, ...] = ()
    header: ResultHeader | None = None

    def __post_init__(self) -> None:
        suggestions = _as_tuple(self, "suggested_locations")
        if self.status is not SuggestLocationsStatus.OK:
            _require_empty(self.status, suggested_locations=suggestions)
        # sorted() is stable, so equal keys keep backend order.
        object.__setattr__(
            self, "suggested_locations", tuple(sorted(suggestions, key=_suggestion_sort_key))
        )

    @classmethod
    def ok(cls, suggestions, header: ResultHeader | None = None) -> "SuggestLocationsResult":
        return cls(SuggestLocationsStatus.OK, tuple(suggestions), header)

    @classmethod
    def service_down(cls, header: ResultHeader | None = None) -> "SuggestLocationsResult":
        return cls(SuggestLocationsStatus.SERVICE_DOWN, header=header)

    @property
    def locations(self) -> tuple[Location, ...]:
        return tuple(s.location for s in self.suggested_locations)

    def to_short_string(self) -> str:
        if self.status is SuggestLocationsStatus.OK:
            return f"{len(self.suggested_locations)} locations"
        return self.status.name


@dataclass(frozen=True)
class NearbyLocationsResult:
    status: NearbyLocationsStatus
    locations: tuple[Location, ...] = ()
    header: ResultHeader | None = None

    def __post_init__(self) -> None:
        locations = _as_tuple(self, "locations")
        if self.status is not NearbyLocationsStatus.OK:
            _require_empty(self.status, locations=locations)

    @classmethod
    def ok(cls, locations, header: ResultHeader | None = None) -> "NearbyLocationsResult":
        return cls(NearbyLocationsStatus.OK, tuple(locations), header)

    @classmethod
    def invalid_id(cls, header: ResultHeader | None = None) -> "NearbyLocationsResult":
        return cls(NearbyLocationsStatus.INVALID_ID, header=header)

    @classmethod
    def service_down(cls, header: ResultHeader | None = None) -> "NearbyLocationsResult":
        return cls(NearbyLocationsStatus.SERVICE_DOWN, header=header)

    def to_short_string(self) -> str:
        if self.status is NearbyLocationsStatus.OK:
            return f"{len(self.locations)} locations"
        return self.status.name


@dataclass(frozen=True)
class QueryDeparturesResult:
    status: QueryDeparturesStatus
    station_departures: tuple[StationDepartures, ...] = ()
    header: ResultHeader | None = None

    def __post_init__(self) -> None:
        blocks = _as_tuple(self, "station_departures")
        if self.status is not QueryDeparturesStatus.OK:
            _require_empty(self.status, station_departures=blocks)

    @classmethod
    def ok(cls, station_departures, header: ResultHeader | None = None) -> "QueryDeparturesResult":
        return cls(QueryDeparturesStatus.OK, tuple(station_departures), header)

    @classmethod
    def invalid_station(cls, header: ResultHeader | None = None) -> "QueryDeparturesResult":
        return cls(QueryDeparturesStatus.INVALID_STATION, header=header)

    @classmethod
    def service_down(cls, header: ResultHeader | None = None) -> "QueryDeparturesResult":
        return cls(QueryDeparturesStatus.SERVICE_DOWN, header=header)

    def find_station_departures(self, station_id: str) -> StationDepartures | None:
        for block in self.station_departures:
            if block.location.id == station_id:
                return block
        return None

    def to_short_string(self) -> str:
        if self.status is QueryDeparturesStatus.OK:
            count = sum(len(block.departures) for block in self.station_departures)
            return f"{len(self.station_departures)} stations, {count} departures"
        return self.status.name


@dataclass(frozen=True)
class QueryTripsResult:
    """Outcome of a trip query or a continuation of one."""

    status: QueryTripsStatus
    trips: tuple[Trip, ...] = ()
    context: QueryTripsContext | None = None
    from_: Location | None = None
    via: Location | None = None
    to: Location | None = None
    ambiguous_from: tuple[Location, ...] = ()
    ambiguous_via: tuple[Location, ...] = ()
    ambiguous_to: tuple[Location, ...] = ()
    header: ResultHeader | None = None

    def __post_init__(self) -> None:
        trips = _as_tuple(self, "trips")
        ambiguous = {
            "ambiguous_from": _as_tuple(self, "ambiguous_from"),
            "ambiguous_via": _as_tuple(self, "ambiguous_via"),
            "ambiguous_to": _as_tuple(self, "ambiguous_to"),
        }
        if self.status is QueryTripsStatus.OK:
            _require_empty(self.status, **ambiguous)
            return
        _require_empty(self.status, trips=trips)
        if self.context is not None:
            raise PreconditionError(f"Result with status {self.status.name} must not carry a context")
        if self.status is QueryTripsStatus.AMBIGUOUS:
            if not any(ambiguous.values()):
                raise PreconditionError("AMBIGUOUS result needs at least one candidate list")
        else:
            _require_empty(self.status, **ambiguous)

    @classmethod
    def ok(
        cls,
        trips,
        context: QueryTripsContext | None,
        from_: Location | None = None,
        via: Location | None = None,
        to: Location | None = None,
        header: ResultHeader | None = None,
    ) -> "QueryTripsResult":
        return cls(QueryTripsStatus.OK, tuple(trips), context, from_, via, to, header=header)

    @classmethod
    def ambiguous(
        cls,
        ambiguous_from=(),
        ambiguous_via=(),
        ambiguous_to=(),
        header: ResultHeader | None = None,
    ) -> "QueryTripsResult":
        return cls(
            QueryTripsStatus.AMBIGUOUS,
            ambiguous_from=tuple(ambiguous_from),
            ambiguous_via=tuple(ambiguous_via),
            ambiguous_to=tuple(ambiguous_to),
            header=header,
        )

    @classmethod
    def of_status(cls, status: QueryTripsStatus, header: ResultHeader | None = None) -> "QueryTripsResult":
        """Build a payload-free result for any status other than OK and AMBIGUOUS."""
        if status in (QueryTripsStatus.OK, QueryTripsStatus.AMBIGUOUS):
            raise PreconditionError(f"Use the dedicated constructor for {status.name}")
        return cls(status, header=header)

    @classmethod
    def service_down(cls, header: ResultHeader | None = None) -> "QueryTripsResult":
        return cls.of_status(QueryTripsStatus.SERVICE_DOWN, header)

    def to_short_string(self) -> str:
        if self.status is QueryTripsStatus.OK:
            return f"{len(self.trips)} trips"
        if self.status is QueryTripsStatus.AMBIGUOUS:
            return (
                f"AMBIGUOUS from={len(self.ambiguous_from)} via={len(self.ambiguous_via)} "
                f"to={len(self.ambiguous_to)}"
            )
        return self.status.name
