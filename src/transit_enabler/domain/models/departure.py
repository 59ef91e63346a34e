"""Departure board models."""

from dataclasses import dataclass
from datetime import datetime

from transit_enabler.domain.models.line import Line
from transit_enabler.domain.models.location import Location
from transit_enabler.domain.models.position import Position


@dataclass(frozen=True)
class Departure:
    """A single departure from a station."""

    line: Line
    planned_time: datetime | None = None
    predicted_time: datetime | None = None
    position: Position | None = None
    destination: Location | None = None
    capacity: tuple[int, ...] | None = None
    message: str | None = None
    cancelled: bool = False

    def __post_init__(self) -> None:
        if self.planned_time is None and self.predicted_time is None:
            raise ValueError("Departure needs a planned or a predicted time")

    @property
    def time(self) -> datetime:
        """Predicted time if known, else planned time."""
        return self.predicted_time or self.planned_time  # type: ignore[return-value]

    @property
    def delay_seconds(self) -> int | None:
        if self.planned_time is None or self.predicted_time is None:
            return None
        return int((self.predicted_time - self.planned_time).total_seconds())

    @property
    def is_realtime(self) -> bool:
        return self.predicted_time is not None


@dataclass(frozen=True)
class LineDestination:
    """A line together with one of its destinations at a station."""

    line: Line
    destination: Location | None = None


@dataclass(frozen=True)
class StationDepartures:
    """Departures of one physical stop."""

    location: Location
    departures: tuple[Departure, ...] = ()
    lines: tuple[LineDestination, ...] | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.departures, tuple):
            object.__setattr__(self, "departures", tuple(self.departures))
        if self.lines is not None and not isinstance(self.lines, tuple):
            object.__setattr__(self, "lines", tuple(self.lines))

    def sorted(self) -> "StationDepartures":
        """Return a copy with departures ordered by effective time."""
        return StationDepartures(
            self.location, tuple(sorted(self.departures, key=lambda d: d.time)), self.lines
        )
