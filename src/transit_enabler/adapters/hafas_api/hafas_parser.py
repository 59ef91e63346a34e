"""Mapping of pyhafas result objects onto domain entities."""

import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta
from typing import Any

from transit_enabler.domain.exceptions import PreconditionError
from transit_enabler.domain.models import (
    Departure,
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

logger = logging.getLogger(__name__)

StyleLookup = Callable[[str | None, Product | None, str | None], Style]

INDIVIDUAL_MODES = {
    "walking": IndividualType.WALK,
    "bicycle": IndividualType.BIKE,
    "car": IndividualType.CAR,
    "transfer": IndividualType.TRANSFER,
}

MODE_PRODUCTS = {
    "bus": Product.BUS,
    "watercraft": Product.FERRY,
    "taxi": Product.ON_DEMAND,
    "gondola": Product.CABLECAR,
}


def _mode_value(mode: Any) -> str:
    return str(getattr(mode, "value", mode) or "").lower()


def product_for(mode: Any, name: str | None) -> Product | None:
    """Guess the product from the pyhafas mode and the line name."""
    mode_value = _mode_value(mode)
    if mode_value in MODE_PRODUCTS:
        return MODE_PRODUCTS[mode_value]
    label = (name or "").strip()
    upper = label.upper()
    if upper.startswith(("STR", "TRAM", "STB")):
        return Product.TRAM
    if upper.startswith("BUS"):
        return Product.BUS
    if upper.startswith("U") and upper[1:2].strip().isdigit():
        return Product.SUBWAY
    if upper.startswith(("FÄHRE", "F ")):
        return Product.FERRY
    if mode_value == "train" or label:
        return Product.RAIL
    return None


def _predicted(planned: datetime | None, delay: timedelta | None) -> datetime | None:
    if planned is None or delay is None:
        return None
    return planned + delay


def _position(value: Any) -> Position | None:
    if value is None or str(value).strip() == "":
        return None
    try:
        return Position(str(value).strip())
    except PreconditionError:
        return None


class HafasParser:
    """Builds entities for one HAFAS network from pyhafas objects."""

    def __init__(self, network: str, line_style: StyleLookup | None = None) -> None:
        self._network = network
        self._line_style = line_style

    def parse_station(self, station: Any) -> Location | None:
        station_id = getattr(station, "id", None)
        if not station_id:
            return None
        coord = None
        latitude = getattr(station, "latitude", None)
        longitude = getattr(station, "longitude", None)
        if latitude is not None and longitude is not None:
            try:
                coord = Point.from_double(float(latitude), float(longitude))
            except (PreconditionError, TypeError, ValueError):
                logger.warning(f"Ignoring invalid coordinate for station {station_id}")
        return Location(
            LocationType.STATION,
            id=str(station_id),
            coord=coord,
            name=getattr(station, "name", None),
        )

    def parse_stations(self, stations: Iterable[Any] | None) -> list[Location]:
        locations = []
        for station in stations or []:
            location = self.parse_station(station)
            if location is None:
                logger.warning(f"Skipping HAFAS location without id: {station!r}")
                continue
            locations.append(location)
        return locations

    def parse_line(self, name: str | None, mode: Any = None) -> Line:
        product = product_for(mode, name)
        style = self._line_style(self._network, product, name) if self._line_style else None
        return Line(label=name, product=product, network=self._network, style=style)

    @staticmethod
    def _remark_text(remarks: Any) -> str | None:
        for remark in remarks or []:
            text = getattr(remark, "text", None) or getattr(remark, "header", None)
            if text:
                return str(text)
        return None

    def parse_station_board(
        self, legs: Iterable[Any], station_id: str | None = None
    ) -> tuple[StationDepartures, ...]:
        """Group station board entries by physical stop.

        With ``station_id`` set, entries of other (equivalent) stops are dropped.
        """
        blocks: dict[Location, list[Departure]] = {}
        lines: dict[Location, list[LineDestination]] = {}
        for leg in legs:
            stop = self.parse_station(getattr(leg, "station", None))
            planned = getattr(leg, "date_time", None)
            if stop is None or planned is None:
                logger.warning(f"Skipping HAFAS departure without stop or time: {leg!r}")
                continue
            if station_id is not None and stop.id != station_id:
                continue
            direction = getattr(leg, "direction", None)
            destination = Location(LocationType.ANY, name=direction) if direction else None
            line = self.parse_line(getattr(leg, "name", None))
            departure = Departure(
                line=line,
                planned_time=planned,
                predicted_time=_predicted(planned, getattr(leg, "delay", None)),
                position=_position(getattr(leg, "platform", None)),
                destination=destination,
                message=self._remark_text(getattr(leg, "remarks", None)),
                cancelled=bool(getattr(leg, "cancelled", False)),
            )
            blocks.setdefault(stop, []).append(departure)
            stop_lines = lines.setdefault(stop, [])
            line_destination = LineDestination(line, destination)
            if line_destination not in stop_lines:
                stop_lines.append(line_destination)
        return tuple(
            StationDepartures(stop, tuple(departures), tuple(lines[stop])).sorted()
            for stop, departures in blocks.items()
        )

    def _stopover(self, stopover: Any, sequence: int, index: int) -> Stop | None:
        location = self.parse_station(getattr(stopover, "stop", None))
        if location is None:
            return None
        planned_arrival = getattr(stopover, "arrival", None)
        planned_departure = getattr(stopover, "departure", None)
        cancelled = bool(getattr(stopover, "cancelled", False))
        return Stop(
            location,
            planned_arrival_time=planned_arrival,
            predicted_arrival_time=_predicted(planned_arrival, getattr(stopover, "arrival_delay", None)),
            planned_arrival_position=_position(getattr(stopover, "arrival_platform", None)),
            arrival_cancelled=cancelled,
            planned_departure_time=planned_departure,
            predicted_departure_time=_predicted(
                planned_departure, getattr(stopover, "departure_delay", None)
            ),
            planned_departure_position=_position(getattr(stopover, "departure_platform", None)),
            departure_cancelled=cancelled,
            stop_sequence=sequence,
            stop_index=index,
        )

    def parse_leg(self, leg: Any) -> Leg:
        """Build a leg. Raises PreconditionError if stops or times are missing."""
        departure = self.parse_station(getattr(leg, "origin", None))
        arrival = self.parse_station(getattr(leg, "destination", None))
        departure_time = getattr(leg, "departure", None)
        arrival_time = getattr(leg, "arrival", None)
        if departure is None or arrival is None:
            raise PreconditionError("HAFAS leg without origin or destination")
        if departure_time is None or arrival_time is None:
            raise PreconditionError("HAFAS leg without departure or arrival time")

        mode = getattr(leg, "mode", None)
        individual_type = INDIVIDUAL_MODES.get(_mode_value(mode))
        if individual_type is not None:
            return IndividualLeg(
                type=individual_type,
                departure=departure,
                departure_time=departure_time,
                arrival=arrival,
                arrival_time=arrival_time,
                distance=int(getattr(leg, "distance", None) or 0),
            )

        cancelled = bool(getattr(leg, "cancelled", False))
        intermediate = []
        for sequence, stopover in enumerate(getattr(leg, "stopovers", None) or []):
            stop = self._stopover(stopover, sequence, len(intermediate))
            if stop is None:
                logger.warning(f"Skipping HAFAS stopover without stop: {stopover!r}")
                continue
            if stop.location == departure or stop.location == arrival:
                continue
            intermediate.append(stop)

        name = getattr(leg, "name", None)
        return PublicLeg(
            line=self.parse_line(name, mode),
            destination=None,
            departure_stop=Stop(
                departure,
                planned_departure_time=departure_time,
                predicted_departure_time=_predicted(departure_time, getattr(leg, "departure_delay", None)),
                planned_departure_position=_position(getattr(leg, "departure_platform", None)),
                departure_cancelled=cancelled,
            ),
            arrival_stop=Stop(
                arrival,
                planned_arrival_time=arrival_time,
                predicted_arrival_time=_predicted(arrival_time, getattr(leg, "arrival_delay", None)),
                planned_arrival_position=_position(getattr(leg, "arrival_platform", None)),
                arrival_cancelled=cancelled,
            ),
            intermediate_stops=tuple(intermediate),
            message=self._remark_text(getattr(leg, "remarks", None)),
        )

    def parse_journey(self, journey: Any) -> Trip | None:
        try:
            legs = tuple(self.parse_leg(leg) for leg in getattr(journey, "legs", None) or [])
            return Trip(legs, id=getattr(journey, "id", None))
        except PreconditionError as e:
            logger.warning(f"Dropping HAFAS journey: {e}")
            return None

    def parse_journeys(self, journeys: Iterable[Any]) -> tuple[Trip, ...]:
        trips = []
        for journey in journeys:
            trip = self.parse_journey(journey)
            if trip is not None:
                trips.append(trip)
        return tuple(trips)
