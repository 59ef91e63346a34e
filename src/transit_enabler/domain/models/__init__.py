"""Domain models for public transit queries."""

from transit_enabler.domain.models.departure import Departure, LineDestination, StationDepartures
from transit_enabler.domain.models.error_details import ErrorDetails
from transit_enabler.domain.models.line import Line, LineAttr
from transit_enabler.domain.models.location import Location, LocationType
from transit_enabler.domain.models.point import Point, from_fixed_point, to_fixed_point
from transit_enabler.domain.models.position import Position
from transit_enabler.domain.models.product import (
    ALL_PRODUCTS,
    Product,
    products_from_mask,
    products_to_mask,
)
from transit_enabler.domain.models.query_trips_context import QueryTripsContext
from transit_enabler.domain.models.result_header import ResultHeader
from transit_enabler.domain.models.results import (
    NearbyLocationsResult,
    NearbyLocationsStatus,
    QueryDeparturesResult,
    QueryDeparturesStatus,
    QueryTripsResult,
    QueryTripsStatus,
    SuggestedLocation,
    SuggestLocationsResult,
    SuggestLocationsStatus,
)
from transit_enabler.domain.models.stop import Stop
from transit_enabler.domain.models.style import Style
from transit_enabler.domain.models.trip import (
    Fare,
    FareType,
    IndividualLeg,
    IndividualType,
    Leg,
    PublicLeg,
    Trip,
)
from transit_enabler.domain.models.trip_options import (
    Accessibility,
    Optimize,
    TripFlag,
    TripOptions,
    WalkSpeed,
)

__all__ = [
    "ALL_PRODUCTS",
    "Accessibility",
    "Departure",
    "ErrorDetails",
    "Fare",
    "FareType",
    "IndividualLeg",
    "IndividualType",
    "Leg",
    "Line",
    "LineAttr",
    "LineDestination",
    "Location",
    "LocationType",
    "NearbyLocationsResult",
    "NearbyLocationsStatus",
    "Optimize",
    "Point",
    "Position",
    "Product",
    "PublicLeg",
    "QueryDeparturesResult",
    "QueryDeparturesStatus",
    "QueryTripsContext",
    "QueryTripsResult",
    "QueryTripsStatus",
    "ResultHeader",
    "StationDepartures",
    "Stop",
    "Style",
    "SuggestLocationsResult",
    "SuggestLocationsStatus",
    "SuggestedLocation",
    "Trip",
    "TripFlag",
    "TripOptions",
    "WalkSpeed",
    "from_fixed_point",
    "products_from_mask",
    "products_to_mask",
    "to_fixed_point",
]
