"""pyhafas profiles known to the HAFAS adapter and their product names."""

import logging
from datetime import datetime

import pytz
from pyhafas.profile import (
    DBProfile,
    KVBProfile,
    NASAProfile,
    NVVProfile,
    RKRPProfile,
    VSNProfile,
    VVVProfile,
)
from pyhafas.profile.base import BaseProfile

from transit_enabler.domain.exceptions import PreconditionError
from transit_enabler.domain.models import Product

logger = logging.getLogger(__name__)


# BVG product classes: pyhafas name, HAFAS class bit, product, searched by default.
BVG_PRODUCT_CLASSES: tuple[tuple[str, int, Product, bool], ...] = (
    ("suburban", 1, Product.RAIL, True),
    ("subway", 2, Product.SUBWAY, True),
    ("tram", 4, Product.TRAM, True),
    ("bus", 8, Product.BUS, True),
    ("ferry", 16, Product.FERRY, True),
    ("regional", 32, Product.RAIL, True),
    ("regional_express", 64, Product.RAIL, True),
    ("long_distance", 128, Product.RAIL, False),
    ("long_distance_express", 256, Product.RAIL, False),
)


class BVGProfile(BaseProfile):
    """Berlin/Brandenburg mgate endpoint, with values from the hafas-client ``bvg`` profile.

    ``transit_products`` maps each product class onto a Product. Long-distance
    classes are only searched when a filter includes rail.
    """

    baseUrl = "https://fahrinfo.vbb.de/bin/mgate.exe"  # noqa: N815
    defaultUserAgent = "VBB/3.0.0 (iPhone; iOS 13.1.2; Scale/2.00)"  # noqa: N815
    salt = "7x8i3q2m5N9wV4vR"
    addChecksum = True  # noqa: N815
    locale = "de-DE"
    timezone = pytz.timezone("Europe/Berlin")

    requestBody = {  # noqa: N815, RUF012
        "client": {"id": "VBB", "v": "3000000", "type": "IPH", "name": "VBB"},
        "ext": "VBB.R21.12.a",
        "ver": "1.15",
        "auth": {"type": "AID", "aid": "n91dB8Z77MLdoR0K"},
    }

    availableProducts = {name: [bit] for name, bit, _, _ in BVG_PRODUCT_CLASSES}  # noqa: N815, RUF012
    defaultProducts = [name for name, _, _, default in BVG_PRODUCT_CLASSES if default]  # noqa: N815, RUF012
    transit_products = {name: product for name, _, product, _ in BVG_PRODUCT_CLASSES}  # noqa: RUF012


PROFILES: dict[str, type[BaseProfile]] = {
    "db": DBProfile,
    "bvg": BVGProfile,
    "kvb": KVBProfile,
    "nasa": NASAProfile,
    "nvv": NVVProfile,
    "rkrp": RKRPProfile,
    "vsn": VSNProfile,
    "vvv": VVVProfile,
}

# pyhafas product names across profiles, for profiles without ``transit_products``.
PRODUCT_NAMES: dict[str, Product] = {
    "long_distance_express": Product.RAIL,
    "long_distance": Product.RAIL,
    "regional_express": Product.RAIL,
    "regional": Product.RAIL,
    "regional_train": Product.RAIL,
    "suburban": Product.RAIL,
    "s_bahn": Product.RAIL,
    "subway": Product.SUBWAY,
    "u_bahn": Product.SUBWAY,
    "stadtbahn": Product.TRAM,
    "tram": Product.TRAM,
    "bus": Product.BUS,
    "ferry": Product.FERRY,
    "taxi": Product.ON_DEMAND,
    "anruf_sammel_taxi": Product.ON_DEMAND,
    "on_demand": Product.ON_DEMAND,
}


def create_profile(name: str) -> BaseProfile:
    """Instantiate the pyhafas profile registered under ``name``."""
    profile_class = PROFILES.get(name.lower())
    if profile_class is None:
        raise PreconditionError(
            f"Unknown HAFAS profile {name!r}, expected one of {', '.join(sorted(PROFILES))}"
        )
    return profile_class()


def product_filter(profile: BaseProfile, products: frozenset[Product] | None) -> dict[str, bool]:
    """Translate a product set into the profile's product switches."""
    if products is None:
        return {}
    declared = getattr(profile, "transit_products", None) or {}
    switches = {}
    for name in profile.availableProducts:
        product = declared.get(name) or PRODUCT_NAMES.get(name)
        if product is None:
            logger.debug(f"Profile product {name!r} has no mapping, leaving it enabled")
            switches[name] = True
        else:
            switches[name] = product in products
    return switches


def localize(profile: BaseProfile, value: datetime) -> datetime:
    """Attach the profile's timezone to naive datetimes."""
    if value.tzinfo is not None:
        return value
    timezone = getattr(profile, "timezone", None) or pytz.timezone("Europe/Berlin")
    return timezone.localize(value)
