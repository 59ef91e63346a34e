"""Location domain model."""

from dataclasses import dataclass
from enum import Enum

from transit_enabler.domain.exceptions import PreconditionError
from transit_enabler.domain.models.point import Point
from transit_enabler.domain.models.product import Product

# Names that are ambiguous without their place, e.g. "Hauptbahnhof".
NON_UNIQUE_NAMES = frozenset(
    {
        "Hauptbahnhof",
        "Hbf",
        "Bahnhof",
        "Bf",
        "Busbahnhof",
        "ZOB",
        "Schiffstation",
        "Schiffst.",
        "Zentrum",
        "Markt",
        "Dorf",
        "Kirche",
        "Nord",
        "Ost",
        "Süd",
        "West",
    }
)


class LocationType(Enum):
    """Kind of place a location refers to."""

    STATION = "station"
    POI = "poi"
    ADDRESS = "address"
    COORD = "coord"
    ANY = "any"

    @property
    def rank(self) -> int:
        """Sort rank for suggestion lists, stations first."""
        return _TYPE_RANK[self]


_TYPE_RANK = {
    LocationType.STATION: 0,
    LocationType.POI: 1,
    LocationType.ADDRESS: 2,
    LocationType.COORD: 3,
    LocationType.ANY: 4,
}


@dataclass(frozen=True, eq=False)
class Location:
    """A place to depart from, arrive at or be near.

    Equality follows the deduplication rules used by suggestion lists: same
    type, then same id when both sides carry one, otherwise same coordinate
    and same name.
    """

    type: LocationType
    id: str | None = None
    coord: Point | None = None
    place: str | None = None
    name: str | None = None
    products: frozenset[Product] | None = None

    def __post_init__(self) -> None:
        if self.id is not None and (not isinstance(self.id, str) or not self.id):
            raise PreconditionError(f"Location id must be a non-empty string: {self.id!r}")
        if self.type is LocationType.COORD and self.coord is None:
            raise PreconditionError("Location of type COORD requires a coordinate")
        if self.type is LocationType.ANY and (self.id is not None or self.coord is not None):
            raise PreconditionError("Location of type ANY carries only a name and place")
        if self.products is not None and not isinstance(self.products, frozenset):
            object.__setattr__(self, "products", frozenset(self.products))

    @classmethod
    def coord_location(cls, point: Point) -> "Location":
        return cls(LocationType.COORD, coord=point)

    @classmethod
    def station(
        cls,
        station_id: str,
        name: str | None = None,
        place: str | None = None,
        coord: Point | None = None,
    ) -> "Location":
        return cls(LocationType.STATION, id=station_id, coord=coord, place=place, name=name)

    @property
    def has_id(self) -> bool:
        return self.id is not None

    @property
    def has_coord(self) -> bool:
        return self.coord is not None

    @property
    def has_name(self) -> bool:
        return bool(self.name)

    def is_identified(self) -> bool:
        """Whether the location is precise enough to be used as a query target."""
        if self.type in (LocationType.STATION, LocationType.POI):
            return self.has_id
        if self.type is LocationType.ADDRESS:
            return self.has_id or self.has_coord
        if self.type is LocationType.COORD:
            return True
        return False

    def unique_short_name(self) -> str | None:
        if self.place and self.name in NON_UNIQUE_NAMES:
            return f"{self.place}, {self.name}"
        if self.name:
            return self.name
        if self.id:
            return self.id
        return None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Location):
            return NotImplemented
        if self.type is not other.type:
            return False
        if self.id is not None and other.id is not None:
            return self.id == other.id
        return self.coord == other.coord and self.name == other.name

    def __hash__(self) -> int:
        # Locations with an id may equal id-less locations with matching
        # coord and name, so the hash can only rely on the type.
        return hash(self.type)

    def __str__(self) -> str:
        parts = [self.type.name]
        if self.id:
            parts.append(f"id={self.id}")
        if self.coord:
            parts.append(f"coord={self.coord}")
        if self.place:
            parts.append(f"place={self.place}")
        if self.name:
            parts.append(f"name={self.name}")
        return "Location(" + ", ".join(parts) + ")"
