"""Constants for the transport.rest adapter.

transport.rest exposes HAFAS backends as JSON (hafas-rest-api):
https://v6.db.transport.rest/api.html and https://v6.bvg.transport.rest/api.html

Rate limit of the public instances: 100 requests/minute, no authentication.
"""

from transit_enabler.domain.models import (
    Accessibility,
    Product,
    QueryDeparturesStatus,
    QueryTripsStatus,
)

DB_BASE_URL = "https://v6.db.transport.rest"
VBB_BASE_URL = "https://v6.bvg.transport.rest"

BASE_URLS = {
    "db": DB_BASE_URL,
    "vbb": VBB_BASE_URL,
}

LOCATIONS_PATH = "/locations"
NEARBY_PATH = "/locations/nearby"
STOP_PATH = "/stops/{station_id}"
STOP_DEPARTURES_PATH = "/stops/{station_id}/departures"
JOURNEYS_PATH = "/journeys"

DEFAULT_HEADERS = {
    "Accept": "application/json",
}

# 100 requests/minute on the public instances, with headroom for several clients.
MIN_DELAY_SECONDS = 0.6

DEFAULT_DEPARTURE_DURATION_MINUTES = 60
DEFAULT_MAX_DEPARTURES = 100
DEFAULT_MAX_LOCATIONS = 10
DEFAULT_MAX_TRIPS = 6

# transport.rest product flags per network.
PRODUCTS_BY_NETWORK: dict[str, dict[str, Product]] = {
    "db": {
        "nationalExpress": Product.RAIL,
        "national": Product.RAIL,
        "regionalExpress": Product.RAIL,
        "regional": Product.RAIL,
        "suburban": Product.RAIL,
        "subway": Product.SUBWAY,
        "tram": Product.TRAM,
        "bus": Product.BUS,
        "ferry": Product.FERRY,
        "taxi": Product.ON_DEMAND,
    },
    "vbb": {
        "express": Product.RAIL,
        "regional": Product.RAIL,
        "suburban": Product.RAIL,
        "subway": Product.SUBWAY,
        "tram": Product.TRAM,
        "bus": Product.BUS,
        "ferry": Product.FERRY,
    },
}

# hafas-client modes, used when a line carries no known product.
MODE_PRODUCTS = {
    "train": Product.RAIL,
    "bus": Product.BUS,
    "watercraft": Product.FERRY,
    "taxi": Product.ON_DEMAND,
    "gondola": Product.CABLECAR,
    "aircraft": None,
}

# HAFAS kernel codes forwarded as ``hafasCode`` in error bodies.
TRIP_STATUS_BY_HAFAS_CODE = {
    "H890": QueryTripsStatus.NO_TRIPS,
    "H891": QueryTripsStatus.NO_TRIPS,
    "H892": QueryTripsStatus.NO_TRIPS,
    "H886": QueryTripsStatus.NO_TRIPS,
    "H895": QueryTripsStatus.TOO_CLOSE,
    "H9380": QueryTripsStatus.TOO_CLOSE,
    "H9220": QueryTripsStatus.UNRESOLVABLE_ADDRESS,
    "H9360": QueryTripsStatus.INVALID_DATE,
    "LOCATION": QueryTripsStatus.UNKNOWN_LOCATION,
    "H887": QueryTripsStatus.SERVICE_DOWN,
    "H9240": QueryTripsStatus.SERVICE_DOWN,
    "FAIL": QueryTripsStatus.SERVICE_DOWN,
    "PROBLEMS": QueryTripsStatus.SERVICE_DOWN,
    "CGI_READ_FAILED": QueryTripsStatus.SERVICE_DOWN,
    "CGI_NO_SERVER": QueryTripsStatus.SERVICE_DOWN,
    "H_UNKNOWN": QueryTripsStatus.SERVICE_DOWN,
}

DEPARTURES_STATUS_BY_HAFAS_CODE = {
    "LOCATION": QueryDeparturesStatus.INVALID_STATION,
    "FAIL": QueryDeparturesStatus.SERVICE_DOWN,
    "PROBLEMS": QueryDeparturesStatus.SERVICE_DOWN,
    "CGI_READ_FAILED": QueryDeparturesStatus.SERVICE_DOWN,
    "CGI_NO_SERVER": QueryDeparturesStatus.SERVICE_DOWN,
    "H_UNKNOWN": QueryDeparturesStatus.SERVICE_DOWN,
}

ACCESSIBILITY_VALUES = {
    Accessibility.NEUTRAL: "none",
    Accessibility.LIMITED: "partial",
    Accessibility.BARRIER_FREE: "complete",
}
