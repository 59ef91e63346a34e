"""Fixed-point coordinates and the bare Point value."""

import math
from dataclasses import dataclass

from transit_enabler.domain.exceptions import PreconditionError

FIXED_POINT_SCALE = 1_000_000


def to_fixed_point(degrees: float) -> int:
    """Convert degrees to the 1e6 fixed-point integer representation."""
    if not math.isfinite(degrees):
        raise PreconditionError(f"Coordinate is not a finite number: {degrees!r}")
    return round(degrees * FIXED_POINT_SCALE)


def from_fixed_point(value: int) -> float:
    """Convert a 1e6 fixed-point integer back to degrees."""
    return value / float(FIXED_POINT_SCALE)


@dataclass(frozen=True)
class Point:
    """A coordinate pair without identity, stored as 1e6 fixed-point integers."""

    lat: int
    lon: int

    def __post_init__(self) -> None:
        if isinstance(self.lat, bool) or not isinstance(self.lat, int):
            raise PreconditionError(f"Latitude must be a fixed-point integer: {self.lat!r}")
        if isinstance(self.lon, bool) or not isinstance(self.lon, int):
            raise PreconditionError(f"Longitude must be a fixed-point integer: {self.lon!r}")
        if abs(self.lat) > 90 * FIXED_POINT_SCALE:
            raise PreconditionError(f"Latitude out of range: {self.lat}")
        if abs(self.lon) > 180 * FIXED_POINT_SCALE:
            raise PreconditionError(f"Longitude out of range: {self.lon}")

    @classmethod
    def from_double(cls, lat: float, lon: float) -> "Point":
        return cls(to_fixed_point(lat), to_fixed_point(lon))

    @classmethod
    def from_1e6(cls, lat: int, lon: int) -> "Point":
        return cls(lat, lon)

    @classmethod
    def from_1e5(cls, lat: int, lon: int) -> "Point":
        """Build from the 1e5 precision used by the encoded polyline format."""
        return cls(lat * 10, lon * 10)

    @property
    def lat_as_double(self) -> float:
        return from_fixed_point(self.lat)

    @property
    def lon_as_double(self) -> float:
        return from_fixed_point(self.lon)

    def __str__(self) -> str:
        return f"{self.lat_as_double:.6f}/{self.lon_as_double:.6f}"
