"""Shared base for network provider adapters."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Collection, Iterable, Mapping
from datetime import datetime

from transit_enabler.domain.exceptions import PreconditionError
from transit_enabler.domain.models import (
    Location,
    LocationType,
    NearbyLocationsResult,
    Product,
    QueryDeparturesResult,
    QueryTripsContext,
    QueryTripsResult,
    Style,
    SuggestLocationsResult,
    Trip,
    TripOptions,
)
from transit_enabler.domain.models.style import BLUE, DKGRAY, GRAY, RED, WHITE, parse_color
from transit_enabler.domain.pagination import check_continuation
from transit_enabler.domain.ports import Capability

logger = logging.getLogger(__name__)

LONG_DISTANCE_PREFIXES = ("ICE", "IC", "EC", "EN", "NJ", "RJ", "TGV", "FLX")

DEFAULT_STYLES: dict[str, Style] = {
    "I": Style(WHITE, RED, RED),
    "R": Style(GRAY, WHITE),
    "S": Style(parse_color("#006e34"), WHITE),
    "U": Style(parse_color("#003090"), WHITE),
    "T": Style(parse_color("#cc0000"), WHITE),
    "B": Style(parse_color("#993399"), WHITE),
    "F": Style(BLUE, WHITE),
    "?": Style(DKGRAY, WHITE),
}


def _default_style_key(product: Product | None, label: str | None) -> str:
    if product is Product.RAIL and label:
        if label.upper().startswith(LONG_DISTANCE_PREFIXES):
            return "I"
        if label.startswith("S") and label[1:2].isdigit():
            return "S"
    if product in (Product.RAIL, Product.SUBWAY, Product.TRAM, Product.BUS, Product.FERRY):
        return product.code
    return "?"


class AbstractNetworkProvider(ABC):
    """Base class for adapters: capabilities, line styles and pagination guard.

    Subclasses implement the backend calls. ``query_more_trips`` checks the
    context locally and only then delegates to ``_query_more_trips``.
    """

    def __init__(
        self,
        network: str,
        capabilities: Collection[Capability],
        styles: Mapping[str, Style] | None = None,
    ) -> None:
        self._network = network
        self._capabilities = frozenset(capabilities)
        self._styles = dict(styles or {})

    @property
    def network(self) -> str:
        return self._network

    def has_capabilities(self, *capabilities: Capability) -> bool:
        return all(capability in self._capabilities for capability in capabilities)

    def line_style(self, network: str | None, product: Product | None, label: str | None) -> Style:
        """Style for a line.

        Looks up ``network|<code><label>``, then ``<code><label>``, then
        ``<code>`` in the provider's own styles before falling back to the
        per-product defaults.
        """
        code = product.code if product is not None else "?"
        keys = []
        if label:
            if network:
                keys.append(f"{network}|{code}{label}")
            keys.append(f"{code}{label}")
        keys.append(code)
        for key in keys:
            style = self._styles.get(key)
            if style is not None:
                return style
        return DEFAULT_STYLES[_default_style_key(product, label)]

    @abstractmethod
    async def suggest_locations(
        self,
        constraint: str,
        types: Collection[LocationType] | None = None,
        max_locations: int = 0,
    ) -> SuggestLocationsResult: ...

    @abstractmethod
    async def query_nearby_locations(
        self,
        types: Collection[LocationType],
        location: Location,
        max_distance: int = 0,
        max_locations: int = 0,
    ) -> NearbyLocationsResult: ...

    @abstractmethod
    async def query_departures(
        self,
        station_id: str,
        time: datetime | None = None,
        max_departures: int = 0,
        equivs: bool = True,
    ) -> QueryDeparturesResult: ...

    @abstractmethod
    async def query_trips(
        self,
        from_: Location,
        via: Location | None,
        to: Location,
        date: datetime,
        dep: bool = True,
        options: TripOptions | None = None,
    ) -> QueryTripsResult: ...

    async def query_more_trips(self, context: QueryTripsContext, later: bool) -> QueryTripsResult:
        check_continuation(context, later, self._network)
        return await self._query_more_trips(context, later)

    @abstractmethod
    async def _query_more_trips(self, context: QueryTripsContext, later: bool) -> QueryTripsResult: ...

    @staticmethod
    def require_nearby_anchor(location: Location) -> None:
        """Nearby queries need a station with id or any location with a coordinate."""
        if location.has_coord:
            return
        if location.type is LocationType.STATION and location.has_id:
            return
        raise PreconditionError(f"Cannot query nearby locations around {location}")

    @staticmethod
    def deduplicate_trips(trips: Iterable[Trip]) -> tuple[Trip, ...]:
        """Drop trips whose legs equal an earlier trip, keeping order."""
        seen: set[Trip] = set()
        unique = []
        for trip in trips:
            if trip in seen:
                logger.debug(f"Dropping duplicate trip {trip.trip_id}")
                continue
            seen.add(trip)
            unique.append(trip)
        return tuple(unique)
