"""Starlette JSON service exposing the provider operations."""

import logging
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from transit_enabler.adapters.web.context_codec import decode_page
from transit_enabler.adapters.web.rate_limit_middleware import RateLimitMiddleware
from transit_enabler.adapters.web.serializers import (
    departures_result_to_dict,
    nearby_result_to_dict,
    style_to_dict,
    suggest_result_to_dict,
    trips_result_to_dict,
)
from transit_enabler.domain.exceptions import (
    PreconditionError,
    TransportError,
    UnexpectedResponseError,
)
from transit_enabler.application.services import TransitService, TripsPager
from transit_enabler.domain.models import (
    Accessibility,
    ErrorDetails,
    Location,
    LocationType,
    Optimize,
    Point,
    Product,
    TripFlag,
    TripOptions,
    WalkSpeed,
)

if TYPE_CHECKING:
    from transit_enabler.adapters.config import AppConfig

logger = logging.getLogger(__name__)

NEARBY_TYPES = (LocationType.STATION, LocationType.POI)
NEARBY_MAX_DISTANCE = 5000
NEARBY_MAX_LOCATIONS = 100
TRUE_VALUES = ("true", "1", "yes")
FALSE_VALUES = ("false", "0", "no")

E = TypeVar("E", bound=Enum)


def _required(request: Request, name: str) -> str:
    value = request.query_params.get(name)
    if not value:
        raise PreconditionError(f"Missing query parameter: {name}")
    return value


def _int_param(request: Request, name: str, default: int | None = None) -> int:
    value = request.query_params.get(name)
    if value is None or value == "":
        if default is None:
            raise PreconditionError(f"Missing query parameter: {name}")
        return default
    try:
        return int(value)
    except ValueError as e:
        raise PreconditionError(f"Query parameter {name} must be an integer: {value!r}") from e


def _bool_param(request: Request, name: str, default: bool) -> bool:
    value = request.query_params.get(name)
    if value is None or value == "":
        return default
    if value.lower() in TRUE_VALUES:
        return True
    if value.lower() in FALSE_VALUES:
        return False
    raise PreconditionError(f"Query parameter {name} must be a boolean: {value!r}")


def _date_param(request: Request, name: str) -> datetime | None:
    value = request.query_params.get(name)
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as e:
        raise PreconditionError(f"Query parameter {name} must be an ISO 8601 date: {value!r}") from e
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _parse_product(value: str) -> Product:
    try:
        return Product.from_code(value) if len(value) == 1 else Product[value.upper()]
    except (KeyError, ValueError) as e:
        raise PreconditionError(f"Unknown product: {value!r}") from e


def _product_param(request: Request, name: str) -> Product | None:
    value = request.query_params.get(name)
    return _parse_product(value) if value else None


def _products_param(request: Request, name: str) -> frozenset[Product] | None:
    """Comma-separated product names or one-letter codes."""
    value = request.query_params.get(name)
    if not value:
        return None
    return frozenset(_parse_product(part.strip()) for part in value.split(",") if part.strip())


def _enum_param(request: Request, name: str, enum_type: type[E]) -> E | None:
    value = request.query_params.get(name)
    if not value:
        return None
    try:
        return enum_type(value.lower())
    except ValueError as e:
        choices = ", ".join(member.value for member in enum_type)
        raise PreconditionError(f"Query parameter {name} must be one of {choices}: {value!r}") from e


def trip_options_param(request: Request) -> TripOptions | None:
    """Build trip options from ``products``, ``optimize``, ``walkSpeed``, ``accessibility`` and ``bike``."""
    options = TripOptions(
        products=_products_param(request, "products"),
        optimize=_enum_param(request, "optimize", Optimize),
        walk_speed=_enum_param(request, "walkSpeed", WalkSpeed),
        accessibility=_enum_param(request, "accessibility", Accessibility),
        flags=frozenset({TripFlag.BIKE}) if _bool_param(request, "bike", False) else frozenset(),
    )
    return None if options == TripOptions() else options


def location_param(request: Request, role: str) -> Location | None:
    """Build a trip endpoint from ``<role>``, ``<role>Id``, ``<role>Type``, ``<role>Lat`` and ``<role>Lon``."""
    name = request.query_params.get(role) or None
    location_id = request.query_params.get(f"{role}Id") or None
    type_name = request.query_params.get(f"{role}Type") or None
    has_coord = f"{role}Lat" in request.query_params and f"{role}Lon" in request.query_params
    if name is None and location_id is None and not has_coord:
        return None
    try:
        location_type = LocationType[type_name.upper()] if type_name else None
    except KeyError as e:
        raise PreconditionError(f"Unknown location type for {role}: {type_name!r}") from e
    coord = None
    if has_coord:
        coord = Point(_int_param(request, f"{role}Lat"), _int_param(request, f"{role}Lon"))
    if location_type is None:
        if location_id is not None:
            location_type = LocationType.STATION
        elif coord is not None:
            location_type = LocationType.COORD
        else:
            location_type = LocationType.ANY
    if location_type is LocationType.ANY:
        return Location(LocationType.ANY, name=name)
    return Location(location_type, id=location_id, coord=coord, name=name)


def _error_response(
    error: PreconditionError | TransportError | UnexpectedResponseError, status_code: int
) -> JSONResponse:
    details = ErrorDetails.from_exception(error)
    return JSONResponse(details.model_dump(mode="json"), status_code=status_code)


async def _precondition_failed(_request: Request, exc: Exception) -> Response:
    logger.info(f"Rejected request: {exc}")
    return _error_response(exc, 400)  # type: ignore[arg-type]


async def _backend_failed(_request: Request, exc: Exception) -> Response:
    logger.warning(f"Backend failure: {exc}")
    return _error_response(exc, 502)  # type: ignore[arg-type]


def create_app(service: TransitService) -> Starlette:
    """Build the Starlette application for one transit service."""

    async def suggest(request: Request) -> Response:
        result = await service.suggest_locations(_required(request, "q"))
        return JSONResponse(suggest_result_to_dict(result))

    async def nearby(request: Request) -> Response:
        coord = Point(_int_param(request, "lat"), _int_param(request, "lon"))
        result = await service.query_nearby_locations(
            NEARBY_TYPES,
            Location(LocationType.COORD, coord=coord),
            NEARBY_MAX_DISTANCE,
            NEARBY_MAX_LOCATIONS,
        )
        return JSONResponse(nearby_result_to_dict(result))

    async def departures(request: Request) -> Response:
        result = await service.query_departures(
            _required(request, "station"),
            _date_param(request, "time"),
            _int_param(request, "max", 0),
            _bool_param(request, "equivs", True),
        )
        return JSONResponse(departures_result_to_dict(result))

    async def trips_query(request: Request) -> Response:
        from_ = location_param(request, "from")
        to = location_param(request, "to")
        if from_ is None or to is None:
            raise PreconditionError("Trip query needs both from and to")
        pager = TripsPager(service)
        result = await pager.start(
            from_,
            location_param(request, "via"),
            to,
            _date_param(request, "date") or datetime.now(UTC),
            _bool_param(request, "dep", True),
            trip_options_param(request),
        )
        return JSONResponse(trips_result_to_dict(result, pager.window))

    async def trips_more(request: Request) -> Response:
        context, window = decode_page(_required(request, "context"))
        pager = TripsPager(service, context, window)
        result = await pager.more(_bool_param(request, "later", True))
        return JSONResponse(trips_result_to_dict(result, pager.window))

    async def trips_style(request: Request) -> Response:
        style = service.provider.line_style(
            request.query_params.get("network") or None,
            _product_param(request, "product"),
            request.query_params.get("label") or None,
        )
        return JSONResponse(style_to_dict(style))

    async def healthz(_request: Request) -> Response:
        """Health check endpoint for load balancers and monitoring."""
        return Response(content="Ok", media_type="text/plain")

    return Starlette(
        routes=[
            Route("/location/suggest", suggest, methods=["GET"]),
            Route("/location/nearby", nearby, methods=["GET"]),
            Route("/departures", departures, methods=["GET"]),
            Route("/trips/query", trips_query, methods=["GET"]),
            Route("/trips/more", trips_more, methods=["GET"]),
            Route("/trips/style", trips_style, methods=["GET"]),
            Route("/healthz", healthz, methods=["GET"]),
        ],
        exception_handlers={
            PreconditionError: _precondition_failed,
            TransportError: _backend_failed,
            UnexpectedResponseError: _backend_failed,
        },
    )


class TransitWebAdapter:
    """Serves the JSON API with uvicorn behind per-IP rate limiting."""

    def __init__(self, service: TransitService, config: "AppConfig") -> None:
        self.service = service
        self.config = config
        self._server: Any = None

    def build(self) -> Any:
        return RateLimitMiddleware(
            create_app(self.service),
            requests_per_minute=self.config.rate_limit_per_minute,
        )

    async def start(self) -> None:
        """Start the web server."""
        import uvicorn

        config = uvicorn.Config(
            self.build(),
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower(),
        )
        self._server = uvicorn.Server(config)
        logger.info(f"Serving {self.service.network} on {self.config.host}:{self.config.port}")
        await self._server.serve()

    async def stop(self) -> None:
        if self._server is not None:
            self._server.should_exit = True
