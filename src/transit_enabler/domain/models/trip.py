"""Trip domain model: legs, fares and the itinerary itself."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum

from transit_enabler.domain.exceptions import PreconditionError
from transit_enabler.domain.models.line import Line
from transit_enabler.domain.models.location import Location
from transit_enabler.domain.models.point import Point
from transit_enabler.domain.models.product import Product
from transit_enabler.domain.models.stop import Stop


@dataclass(frozen=True)
class PublicLeg:
    """A ride on a transit line between two stops."""

    line: Line
    destination: Location | None
    departure_stop: Stop
    arrival_stop: Stop
    intermediate_stops: tuple[Stop, ...] = ()
    path: tuple[Point, ...] | None = None
    message: str | None = None

    def __post_init__(self) -> None:
        if self.departure_stop.departure_time is None:
            raise PreconditionError("Public leg departure stop has no departure time")
        if self.arrival_stop.arrival_time is None:
            raise PreconditionError("Public leg arrival stop has no arrival time")
        if not isinstance(self.intermediate_stops, tuple):
            object.__setattr__(self, "intermediate_stops", tuple(self.intermediate_stops))
        if self.path is not None and not isinstance(self.path, tuple):
            object.__setattr__(self, "path", tuple(self.path))

    @property
    def departure(self) -> Location:
        return self.departure_stop.location

    @property
    def arrival(self) -> Location:
        return self.arrival_stop.location

    @property
    def departure_time(self) -> datetime:
        return self.departure_stop.departure_time  # type: ignore[return-value]

    @property
    def arrival_time(self) -> datetime:
        return self.arrival_stop.arrival_time  # type: ignore[return-value]

    @property
    def min_time(self) -> datetime:
        return self.departure_stop.min_time or self.departure_time

    @property
    def max_time(self) -> datetime:
        return self.arrival_stop.max_time or self.arrival_time

    @property
    def destination_label(self) -> str | None:
        return self.destination.name if self.destination is not None else None

    @property
    def is_cancelled(self) -> bool:
        return self.departure_stop.departure_cancelled or self.arrival_stop.arrival_cancelled


class IndividualType(Enum):
    WALK = "walk"
    BIKE = "bike"
    CAR = "car"
    TRANSFER = "transfer"


@dataclass(frozen=True)
class IndividualLeg:
    """A non-transit segment such as a walk or a transfer."""

    type: IndividualType
    departure: Location
    departure_time: datetime
    arrival: Location
    arrival_time: datetime
    distance: int = 0
    path: tuple[Point, ...] | None = None

    def __post_init__(self) -> None:
        if self.path is not None and not isinstance(self.path, tuple):
            object.__setattr__(self, "path", tuple(self.path))

    @property
    def departure_stop(self) -> Stop:
        return Stop(self.departure, planned_departure_time=self.departure_time)

    @property
    def arrival_stop(self) -> Stop:
        return Stop(self.arrival, planned_arrival_time=self.arrival_time)

    @property
    def min_time(self) -> datetime:
        return self.departure_time

    @property
    def max_time(self) -> datetime:
        return self.arrival_time

    @property
    def minutes(self) -> int:
        return int((self.arrival_time - self.departure_time).total_seconds() // 60)

    def moved_to(self, departure_time: datetime) -> "IndividualLeg":
        """Return a copy shifted to start at ``departure_time``, keeping its duration."""
        offset = departure_time - self.departure_time
        return replace(self, departure_time=departure_time, arrival_time=self.arrival_time + offset)


Leg = PublicLeg | IndividualLeg


class FareType(Enum):
    ADULT = "adult"
    CHILD = "child"
    YOUTH = "youth"
    STUDENT = "student"
    MILITARY = "military"
    SENIOR = "senior"
    DISABLED = "disabled"
    BIKE = "bike"


@dataclass(frozen=True)
class Fare:
    """A ticket price attached to a trip."""

    name: str | None
    type: FareType
    currency: str
    fare: float
    network: str | None = None
    units_name: str | None = None
    units: str | None = None


@dataclass(frozen=True, eq=False)
class Trip:
    """One complete itinerary. Two trips are equal if their legs are equal."""

    legs: tuple[Leg, ...]
    from_: Location | None = None
    to: Location | None = None
    id: str | None = None
    fares: tuple[Fare, ...] = ()
    capacity: tuple[int, ...] | None = None
    num_changes: int | None = None
    _substitute_id: str = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.legs, tuple):
            object.__setattr__(self, "legs", tuple(self.legs))
        if not isinstance(self.fares, tuple):
            object.__setattr__(self, "fares", tuple(self.fares))
        if not self.legs:
            raise PreconditionError("Trip must have at least one leg")
        for index, (leg, following) in enumerate(zip(self.legs, self.legs[1:])):
            if leg.arrival != following.departure:
                raise PreconditionError(
                    f"Leg {index} arrives at {leg.arrival} but leg {index + 1} "
                    f"departs from {following.departure}"
                )
        if self.from_ is None:
            object.__setattr__(self, "from_", self.legs[0].departure)
        if self.to is None:
            object.__setattr__(self, "to", self.legs[-1].arrival)
        object.__setattr__(self, "_substitute_id", _build_substitute_id(self.legs))

    @property
    def trip_id(self) -> str:
        """Backend id, or an id derived from endpoints, planned times and lines."""
        return self.id or self._substitute_id

    @property
    def first_departure_time(self) -> datetime:
        return self.legs[0].departure_time

    @property
    def last_arrival_time(self) -> datetime:
        return self.legs[-1].arrival_time

    @property
    def duration(self) -> timedelta:
        return self.last_arrival_time - self.first_departure_time

    @property
    def first_public_leg(self) -> PublicLeg | None:
        return next((leg for leg in self.legs if isinstance(leg, PublicLeg)), None)

    @property
    def last_public_leg(self) -> PublicLeg | None:
        return next((leg for leg in reversed(self.legs) if isinstance(leg, PublicLeg)), None)

    @property
    def public_duration(self) -> timedelta | None:
        """From the first public departure to the last public arrival, None for walk-only trips."""
        first, last = self.first_public_leg, self.last_public_leg
        if first is None or last is None:
            return None
        return last.arrival_time - first.departure_time

    @property
    def min_time(self) -> datetime:
        return min(leg.min_time for leg in self.legs)

    @property
    def max_time(self) -> datetime:
        return max(leg.max_time for leg in self.legs)

    @property
    def changes(self) -> int | None:
        """Explicit change count, else public legs minus one, else None."""
        if self.num_changes is not None:
            return self.num_changes
        public_legs = sum(1 for leg in self.legs if isinstance(leg, PublicLeg))
        return public_legs - 1 if public_legs else None

    def is_travelable(self) -> bool:
        """False if legs overlap in time or a public leg is cancelled."""
        time: datetime | None = None
        for leg in self.legs:
            if isinstance(leg, PublicLeg) and leg.is_cancelled:
                return False
            for boundary in (leg.departure_time, leg.arrival_time):
                if time is not None and boundary < time:
                    return False
                time = boundary
        return True

    def with_adjusted_individual_legs(self) -> "Trip":
        """Return a trip where overlapping individual legs start after the previous leg."""
        legs = list(self.legs)
        for i in range(1, len(legs)):
            leg = legs[i]
            previous = legs[i - 1]
            if isinstance(leg, IndividualLeg) and leg.departure_time < previous.arrival_time:
                legs[i] = leg.moved_to(previous.arrival_time)
        return replace(self, legs=tuple(legs))

    def products(self) -> frozenset[Product]:
        """Products of all public legs."""
        return frozenset(
            leg.line.product
            for leg in self.legs
            if isinstance(leg, PublicLeg) and leg.line.product is not None
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Trip):
            return NotImplemented
        return self.legs == other.legs

    def __hash__(self) -> int:
        # Only values that equal leg sequences share; locations may be equal without ids.
        leg_types = tuple(type(leg) for leg in self.legs)
        return hash((len(self.legs), leg_types, self.first_departure_time))

    def __str__(self) -> str:
        return (
            f"Trip({self.trip_id}, {self.first_departure_time:%Y-%m-%d %H:%M}"
            f"-{self.last_arrival_time:%H:%M}, changes={self.changes})"
        )


def _endpoint_key(location: Location) -> str:
    return location.id if location.id is not None else str(location.coord)


def _build_substitute_id(legs: tuple[Leg, ...]) -> str:
    parts = []
    for leg in legs:
        segment = f"{_endpoint_key(leg.departure)}-{_endpoint_key(leg.arrival)}-"
        if isinstance(leg, IndividualLeg):
            segment += "individual"
        else:
            planned_departure = leg.departure_stop.planned_departure_time
            if planned_departure is not None:
                segment += f"{int(planned_departure.timestamp() * 1000)}-"
            planned_arrival = leg.arrival_stop.planned_arrival_time
            if planned_arrival is not None:
                segment += f"{int(planned_arrival.timestamp() * 1000)}-"
            code = leg.line.product.code if leg.line.product is not None else "?"
            segment += f"{code}{leg.line.label or ''}"
        parts.append(segment)
    return "|".join(parts)
