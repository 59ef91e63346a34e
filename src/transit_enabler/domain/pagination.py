"""Earlier/later trip pagination contract."""

import logging
from collections.abc import Iterable
from datetime import datetime

from transit_enabler.domain.exceptions import PaginationError
from transit_enabler.domain.models.query_trips_context import QueryTripsContext
from transit_enabler.domain.models.trip import Trip

logger = logging.getLogger(__name__)


def check_continuation(context: QueryTripsContext, later: bool, network: str | None = None) -> None:
    """Reject a continuation the context does not allow, before any I/O.

    Raises:
        PaginationError: If the matching can_query flag is unset or the
            context was produced by a different network.
    """
    if network is not None and context.network != network:
        raise PaginationError(
            f"Context from network {context.network!r} cannot be used with {network!r}"
        )
    if later and not context.can_query_later:
        raise PaginationError("Context does not allow querying later trips")
    if not later and not context.can_query_earlier:
        raise PaginationError("Context does not allow querying earlier trips")


def filter_later(trips: Iterable[Trip], latest_seen: datetime) -> tuple[tuple[Trip, ...], int]:
    """Keep trips departing strictly after ``latest_seen``. Returns kept trips and drop count."""
    kept = []
    dropped = 0
    for trip in trips:
        if trip.first_departure_time > latest_seen:
            kept.append(trip)
        else:
            dropped += 1
    return tuple(kept), dropped


def filter_earlier(trips: Iterable[Trip], earliest_seen: datetime) -> tuple[tuple[Trip, ...], int]:
    """Keep trips departing strictly before ``earliest_seen``. Returns kept trips and drop count."""
    kept = []
    dropped = 0
    for trip in trips:
        if trip.first_departure_time < earliest_seen:
            kept.append(trip)
        else:
            dropped += 1
    return tuple(kept), dropped


class PageWindow:
    """Earliest and latest first-departure times seen in one trip session."""

    def __init__(self, earliest: datetime | None = None, latest: datetime | None = None) -> None:
        self.earliest = earliest
        self.latest = latest

    def observe(self, trips: Iterable[Trip]) -> None:
        for trip in trips:
            departure = trip.first_departure_time
            if self.earliest is None or departure < self.earliest:
                self.earliest = departure
            if self.latest is None or departure > self.latest:
                self.latest = departure

    def admit(self, trips: Iterable[Trip], later: bool) -> tuple[Trip, ...]:
        """Drop trips that would break monotonic paging, then record the rest."""
        trips = tuple(trips)
        if later and self.latest is not None:
            trips, dropped = filter_later(trips, self.latest)
        elif not later and self.earliest is not None:
            trips, dropped = filter_earlier(trips, self.earliest)
        else:
            dropped = 0
        if dropped:
            direction = "later" if later else "earlier"
            logger.warning(f"Dropped {dropped} trip(s) out of order for a {direction} page")
        self.observe(trips)
        return trips
