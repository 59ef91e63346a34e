"""Transport products and their bitmask encoding."""

from collections.abc import Iterable
from enum import Enum


class Product(Enum):
    """Closed set of transport products, one bit each."""

    RAIL = ("R", 1 << 0)
    SUBWAY = ("U", 1 << 1)
    TRAM = ("T", 1 << 2)
    BUS = ("B", 1 << 3)
    FERRY = ("F", 1 << 4)
    CABLECAR = ("C", 1 << 5)
    ON_DEMAND = ("P", 1 << 6)

    def __init__(self, code: str, bit: int) -> None:
        self.code = code
        self.bit = bit

    @classmethod
    def from_code(cls, code: str) -> "Product":
        for product in cls:
            if product.code == code:
                return product
        raise ValueError(f"Unknown product code: {code!r}")

    @property
    def order(self) -> int:
        return list(Product).index(self)


ALL_PRODUCTS: frozenset[Product] = frozenset(Product)
UNKNOWN_PRODUCT_CODE = "?"


def products_to_mask(products: Iterable[Product]) -> int:
    """Fold a product set into its bitmask."""
    mask = 0
    for product in products:
        mask |= product.bit
    return mask


def products_from_mask(mask: int) -> frozenset[Product]:
    """Expand a bitmask into a product set. Unknown bits are ignored."""
    return frozenset(product for product in Product if mask & product.bit)
