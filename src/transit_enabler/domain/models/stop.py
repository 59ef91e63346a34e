"""Stop along a leg, with planned and predicted times."""

from dataclasses import dataclass
from datetime import datetime, timedelta

from transit_enabler.domain.models.location import Location
from transit_enabler.domain.models.position import Position


@dataclass(frozen=True)
class Stop:
    """One stop along a leg.

    Predicted values come from real-time data and take precedence over the
    planned ones unless ``prefer_plan`` is set.
    """

    location: Location
    planned_arrival_time: datetime | None = None
    predicted_arrival_time: datetime | None = None
    planned_arrival_position: Position | None = None
    predicted_arrival_position: Position | None = None
    arrival_cancelled: bool = False
    planned_departure_time: datetime | None = None
    predicted_departure_time: datetime | None = None
    planned_departure_position: Position | None = None
    predicted_departure_position: Position | None = None
    departure_cancelled: bool = False
    stop_sequence: int | None = None
    stop_index: int | None = None

    def get_arrival_time(self, prefer_plan: bool = False) -> datetime | None:
        """Predicted arrival if known, else planned. ``prefer_plan`` reverses the order."""
        if self.predicted_arrival_time is not None and not prefer_plan:
            return self.predicted_arrival_time
        return self.planned_arrival_time or self.predicted_arrival_time

    def get_departure_time(self, prefer_plan: bool = False) -> datetime | None:
        if self.predicted_departure_time is not None and not prefer_plan:
            return self.predicted_departure_time
        return self.planned_departure_time or self.predicted_departure_time

    @property
    def arrival_time(self) -> datetime | None:
        return self.get_arrival_time()

    @property
    def departure_time(self) -> datetime | None:
        return self.get_departure_time()

    @property
    def is_arrival_time_predicted(self) -> bool:
        return self.predicted_arrival_time is not None

    @property
    def is_departure_time_predicted(self) -> bool:
        return self.predicted_departure_time is not None

    @property
    def arrival_delay(self) -> timedelta | None:
        """Predicted minus planned arrival, or None unless both are known."""
        if self.planned_arrival_time is None or self.predicted_arrival_time is None:
            return None
        return self.predicted_arrival_time - self.planned_arrival_time

    @property
    def departure_delay(self) -> timedelta | None:
        """Predicted minus planned departure, or None unless both are known."""
        if self.planned_departure_time is None or self.predicted_departure_time is None:
            return None
        return self.predicted_departure_time - self.planned_departure_time

    @property
    def arrival_position(self) -> Position | None:
        return self.predicted_arrival_position or self.planned_arrival_position

    @property
    def departure_position(self) -> Position | None:
        return self.predicted_departure_position or self.planned_departure_position

    @property
    def min_time(self) -> datetime | None:
        """Earliest of all known times at this stop."""
        times = self._known_times()
        return min(times) if times else None

    @property
    def max_time(self) -> datetime | None:
        """Latest of all known times at this stop."""
        times = self._known_times()
        return max(times) if times else None

    def _known_times(self) -> list[datetime]:
        return [
            t
            for t in (
                self.planned_arrival_time,
                self.predicted_arrival_time,
                self.planned_departure_time,
                self.predicted_departure_time,
            )
            if t is not None
        ]
