"""Optional knobs for trip queries."""

from dataclasses import dataclass, field
from enum import Enum

from transit_enabler.domain.models.product import Product


class Optimize(Enum):
    LEAST_DURATION = "least_duration"
    LEAST_CHANGES = "least_changes"
    LEAST_WALKING = "least_walking"


class WalkSpeed(Enum):
    SLOW = "slow"
    NORMAL = "normal"
    FAST = "fast"


class Accessibility(Enum):
    NEUTRAL = "neutral"
    LIMITED = "limited"
    BARRIER_FREE = "barrier_free"


class TripFlag(Enum):
    BIKE = "bike"


@dataclass(frozen=True)
class TripOptions:
    """Filters and preferences for a trip query. ``None`` means backend default."""

    products: frozenset[Product] | None = None
    optimize: Optimize | None = None
    walk_speed: WalkSpeed | None = None
    accessibility: Accessibility | None = None
    flags: frozenset[TripFlag] = field(default_factory=frozenset)
