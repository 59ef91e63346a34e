"""Parser for transport.rest (hafas-rest-api v6) JSON into domain entities."""

import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import datetime
from typing import Any

from transit_enabler.adapters.transport_rest.constants import MODE_PRODUCTS
from transit_enabler.domain import polyline
from transit_enabler.domain.exceptions import PreconditionError, UnexpectedResponseError
from transit_enabler.domain.models import (
    Departure,
    Fare,
    FareType,
    IndividualLeg,
    IndividualType,
    Leg,
    Line,
    LineDestination,
    Location,
    LocationType,
    Point,
    Position,
    Product,
    PublicLeg,
    StationDepartures,
    Stop,
    Style,
    Trip,
)
from transit_enabler.domain.models.line import LineAttr

logger = logging.getLogger(__name__)

StyleLookup = Callable[[str | None, Product | None, str | None], Style]


class _MissingField(Exception):
    """A load-bearing field of a record is absent."""


def parse_time(value: Any) -> datetime | None:
    """Parse an ISO 8601 timestamp."""
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Ignoring unparseable timestamp: {value!r}")
        return None


def parse_hafas_code(body: str) -> str | None:
    """Extract ``hafasCode`` from a hafas-rest-api error body."""
    try:
        data = json.loads(body)
    except ValueError:
        return None
    if isinstance(data, dict):
        code = data.get("hafasCode")
        return str(code) if code else None
    return None


def _parse_distance(value: Any) -> int:
    if value is None:
        return 0
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring unparseable distance: {value!r}")
        return 0


def parse_path(value: Any) -> tuple[Point, ...] | None:
    """Leg geometry, either an encoded polyline or a GeoJSON feature collection."""
    if value is None:
        return None
    if isinstance(value, str):
        return polyline.decode(value)
    if not isinstance(value, dict):
        return None
    points = []
    for feature in value.get("features") or []:
        geometry = (feature or {}).get("geometry") or {}
        coordinates = geometry.get("coordinates")
        if geometry.get("type") != "Point" or not coordinates or len(coordinates) < 2:
            continue
        try:
            points.append(Point.from_double(coordinates[1], coordinates[0]))
        except (PreconditionError, TypeError):
            logger.warning(f"Ignoring invalid polyline point: {coordinates!r}")
    return tuple(points)


class TransportRestParser:
    """Maps hafas-rest-api records of one network onto domain entities.

    Records that cannot be parsed are dropped with a warning. A journey is
    dropped as a whole if one of its legs lacks stops or times.
    """

    def __init__(
        self,
        network: str,
        products: Mapping[str, Product],
        line_style: StyleLookup | None = None,
    ) -> None:
        self._network = network
        self._products = dict(products)
        self._line_style = line_style

    @property
    def product_flags(self) -> Mapping[str, Product]:
        return self._products

    def parse_products(self, value: Any) -> frozenset[Product] | None:
        if not isinstance(value, dict):
            return None
        return frozenset(
            self._products[name] for name, enabled in value.items() if enabled and name in self._products
        )

    @staticmethod
    def _parse_coord(value: Any) -> Point | None:
        if not isinstance(value, dict):
            return None
        latitude = value.get("latitude")
        longitude = value.get("longitude")
        if latitude is None or longitude is None:
            return None
        try:
            return Point.from_double(float(latitude), float(longitude))
        except (PreconditionError, TypeError, ValueError):
            logger.warning(f"Ignoring invalid coordinate {latitude!r}/{longitude!r}")
            return None

    def parse_location(self, value: Any) -> Location | None:
        """Parse a stop, station or free location record."""
        if not isinstance(value, dict):
            return None
        kind = value.get("type")
        if kind in ("stop", "station"):
            station_id = value.get("id")
            if not station_id:
                return None
            coord = self._parse_coord(value.get("location")) or self._parse_coord(value)
            return Location(
                LocationType.STATION,
                id=str(station_id),
                coord=coord,
                name=value.get("name"),
                products=self.parse_products(value.get("products")),
            )
        if kind == "location":
            coord = self._parse_coord(value)
            if value.get("poi"):
                poi_id = value.get("id")
                return Location(
                    LocationType.POI,
                    id=str(poi_id) if poi_id else None,
                    coord=coord,
                    name=value.get("name"),
                )
            if value.get("address"):
                return Location(LocationType.ADDRESS, coord=coord, name=value.get("address"))
            if coord is not None:
                return Location(LocationType.COORD, coord=coord, name=value.get("name"))
        return None

    def parse_locations(self, values: Any) -> list[Location]:
        if not isinstance(values, list):
            raise UnexpectedResponseError(f"Expected a list of locations, got {type(values).__name__}")
        locations = []
        for value in values:
            location = self.parse_location(value)
            if location is None:
                logger.warning(f"Skipping unparseable location record: {str(value)[:200]}")
                continue
            locations.append(location)
        return locations

    def parse_line(self, value: Any) -> Line:
        if not isinstance(value, dict):
            return Line(label=None, network=self._network)
        product = self._products.get(value.get("product") or "")
        if product is None:
            product = MODE_PRODUCTS.get(value.get("mode") or "")
        label = value.get("name")
        attrs = set()
        if value.get("additionalName") == "SEV" or (label or "").startswith("SEV"):
            attrs.add(LineAttr.SERVICE_REPLACEMENT)
        style = self._line_style(self._network, product, label) if self._line_style else None
        return Line(
            label=label,
            product=product,
            network=self._network,
            id=value.get("id"),
            name=value.get("fahrtNr"),
            style=style,
            attrs=frozenset(attrs),
        )

    @staticmethod
    def parse_position(value: Any) -> Position | None:
        if value is None or value == "":
            return None
        try:
            return Position(str(value))
        except PreconditionError:
            return None

    @staticmethod
    def _predicted(value: dict[str, Any], time_key: str, delay_key: str) -> datetime | None:
        # hafas-rest-api repeats the planned time in ``when`` when there is no real-time data.
        if value.get(delay_key) is None:
            return None
        return parse_time(value.get(time_key))

    def parse_stopover(self, value: Any) -> Stop | None:
        if not isinstance(value, dict):
            return None
        location = self.parse_location(value.get("stop"))
        if location is None:
            return None
        return Stop(
            location,
            planned_arrival_time=parse_time(value.get("plannedArrival")),
            predicted_arrival_time=self._predicted(value, "arrival", "arrivalDelay"),
            planned_arrival_position=self.parse_position(value.get("plannedArrivalPlatform")),
            predicted_arrival_position=self.parse_position(value.get("arrivalPlatform")),
            arrival_cancelled=bool(value.get("cancelled")),
            planned_departure_time=parse_time(value.get("plannedDeparture")),
            predicted_departure_time=self._predicted(value, "departure", "departureDelay"),
            planned_departure_position=self.parse_position(value.get("plannedDeparturePlatform")),
            predicted_departure_position=self.parse_position(value.get("departurePlatform")),
            departure_cancelled=bool(value.get("cancelled")),
        )

    @staticmethod
    def _warning_text(remarks: Any) -> str | None:
        if not isinstance(remarks, list):
            return None
        for remark in remarks:
            if isinstance(remark, dict) and remark.get("type") == "warning":
                text = remark.get("summary") or remark.get("text")
                if text:
                    return str(text)
        return None

    def parse_departure(self, value: Any) -> tuple[Location, Departure] | None:
        """Parse one departure board entry together with the stop it departs from."""
        if not isinstance(value, dict):
            return None
        stop = self.parse_location(value.get("stop"))
        planned = parse_time(value.get("plannedWhen"))
        predicted = self._predicted(value, "when", "delay")
        if stop is None or (planned is None and predicted is None):
            return None
        direction = value.get("direction")
        destination = self.parse_location(value.get("destination"))
        if destination is None and direction:
            destination = Location(LocationType.ANY, name=direction)
        return stop, Departure(
            line=self.parse_line(value.get("line")),
            planned_time=planned,
            predicted_time=predicted,
            position=self.parse_position(value.get("platform") or value.get("plannedPlatform")),
            destination=destination,
            message=self._warning_text(value.get("remarks")),
            cancelled=bool(value.get("cancelled")),
        )

    def parse_departures(self, values: Any, max_departures: int = 0) -> tuple[StationDepartures, ...]:
        """Group departures by the physical stop they leave from."""
        if isinstance(values, dict):
            values = values.get("departures")
        if not isinstance(values, list):
            raise UnexpectedResponseError("Departures response is not a list")

        blocks: dict[Location, list[Departure]] = {}
        lines: dict[Location, list[LineDestination]] = {}
        for value in values:
            parsed = self.parse_departure(value)
            if parsed is None:
                logger.warning(f"Skipping unparseable departure: {str(value)[:200]}")
                continue
            stop, departure = parsed
            stop_departures = blocks.setdefault(stop, [])
            if max_departures and len(stop_departures) >= max_departures:
                continue
            stop_departures.append(departure)
            line_destination = LineDestination(departure.line, departure.destination)
            stop_lines = lines.setdefault(stop, [])
            if line_destination not in stop_lines:
                stop_lines.append(line_destination)

        return tuple(
            StationDepartures(stop, tuple(departures), tuple(lines.get(stop, ()))).sorted()
            for stop, departures in blocks.items()
        )

    def _require_location(self, value: Any, role: str) -> Location:
        location = self.parse_location(value)
        if location is None:
            raise _MissingField(f"leg {role} location")
        return location

    def parse_leg(self, value: dict[str, Any]) -> Leg:
        departure = self._require_location(value.get("origin"), "origin")
        arrival = self._require_location(value.get("destination"), "destination")
        departure_time = parse_time(value.get("departure")) or parse_time(value.get("plannedDeparture"))
        arrival_time = parse_time(value.get("arrival")) or parse_time(value.get("plannedArrival"))
        if departure_time is None or arrival_time is None:
            raise _MissingField("leg departure or arrival time")
        path = parse_path(value.get("polyline"))

        if value.get("walking") or value.get("transfer"):
            return IndividualLeg(
                type=IndividualType.TRANSFER if value.get("transfer") else IndividualType.WALK,
                departure=departure,
                departure_time=departure_time,
                arrival=arrival,
                arrival_time=arrival_time,
                distance=_parse_distance(value.get("distance")),
                path=path,
            )

        cancelled = bool(value.get("cancelled"))
        departure_stop = Stop(
            departure,
            planned_departure_time=parse_time(value.get("plannedDeparture")) or departure_time,
            predicted_departure_time=self._predicted(value, "departure", "departureDelay"),
            planned_departure_position=self.parse_position(value.get("plannedDeparturePlatform")),
            predicted_departure_position=self.parse_position(value.get("departurePlatform")),
            departure_cancelled=cancelled,
        )
        arrival_stop = Stop(
            arrival,
            planned_arrival_time=parse_time(value.get("plannedArrival")) or arrival_time,
            predicted_arrival_time=self._predicted(value, "arrival", "arrivalDelay"),
            planned_arrival_position=self.parse_position(value.get("plannedArrivalPlatform")),
            predicted_arrival_position=self.parse_position(value.get("arrivalPlatform")),
            arrival_cancelled=cancelled,
        )
        intermediate = []
        stopovers = value.get("stopovers") or []
        for index, stopover in enumerate(stopovers[1:-1], start=1):
            stop = self.parse_stopover(stopover)
            if stop is None:
                logger.warning(f"Skipping unparseable stopover: {str(stopover)[:200]}")
                continue
            intermediate.append(replace(stop, stop_sequence=index, stop_index=len(intermediate)))

        direction = value.get("direction")
        return PublicLeg(
            line=self.parse_line(value.get("line")),
            destination=Location(LocationType.ANY, name=direction) if direction else None,
            departure_stop=departure_stop,
            arrival_stop=arrival_stop,
            intermediate_stops=tuple(intermediate),
            path=path,
            message=self._warning_text(value.get("remarks")),
        )

    def parse_fares(self, value: Any) -> tuple[Fare, ...]:
        if not isinstance(value, dict) or value.get("amount") is None:
            return ()
        try:
            return (
                Fare(
                    name=value.get("hint"),
                    type=FareType.ADULT,
                    currency=value.get("currency") or "EUR",
                    fare=float(value["amount"]),
                    network=self._network,
                ),
            )
        except (TypeError, ValueError):
            logger.warning(f"Ignoring unparseable price: {value!r}")
            return ()

    def parse_journey(self, value: Any) -> Trip | None:
        """Parse a journey, or return None if it cannot form a valid trip."""
        if not isinstance(value, dict):
            return None
        try:
            legs = [self.parse_leg(leg) for leg in value.get("legs") or [] if isinstance(leg, dict)]
            return Trip(
                tuple(legs),
                id=value.get("refreshToken"),
                fares=self.parse_fares(value.get("price")),
            )
        except (_MissingField, PreconditionError, TypeError, ValueError) as e:
            logger.warning(f"Dropping journey: {e}")
            return None

    def parse_journeys(self, data: Any) -> tuple[Trip, ...]:
        if not isinstance(data, dict) or not isinstance(data.get("journeys"), list):
            raise UnexpectedResponseError("Journeys response has no journeys list")
        trips = []
        for journey in data["journeys"]:
            trip = self.parse_journey(journey)
            if trip is not None:
                trips.append(trip)
        return tuple(trips)
