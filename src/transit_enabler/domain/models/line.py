"""Line domain model."""

from dataclasses import dataclass, field
from enum import Enum
from functools import total_ordering

from transit_enabler.domain.models.product import Product
from transit_enabler.domain.models.style import Style


class LineAttr(Enum):
    """Optional facts about a line."""

    CIRCLE_CLOCKWISE = "circle_clockwise"
    CIRCLE_ANTICLOCKWISE = "circle_anticlockwise"
    SERVICE_REPLACEMENT = "service_replacement"
    LINE_AIRPORT = "line_airport"
    WHEEL_CHAIR_ACCESS = "wheel_chair_access"
    BICYCLE_CARRIAGE = "bicycle_carriage"


@total_ordering
@dataclass(frozen=True, eq=False)
class Line:
    """A transit line. Two lines are equal if network, product and label match."""

    label: str | None
    product: Product | None = None
    network: str | None = None
    id: str | None = None
    name: str | None = None
    style: Style | None = None
    attrs: frozenset[LineAttr] = field(default_factory=frozenset)
    message: str | None = None

    def has_attr(self, attr: LineAttr) -> bool:
        return attr in self.attrs

    def _key(self) -> tuple[str | None, Product | None, str | None]:
        return (self.network, self.product, self.label)

    def _sort_key(self) -> tuple[int, str]:
        product_order = self.product.order if self.product is not None else len(Product)
        return (product_order, self.label or "")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Line):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __lt__(self, other: "Line") -> bool:
        if not isinstance(other, Line):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def __str__(self) -> str:
        code = self.product.code if self.product is not None else "?"
        return f"{code}{self.label or ''}"
