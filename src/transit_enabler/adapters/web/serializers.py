"""JSON-ready dictionaries for entities and results."""

from datetime import datetime
from typing import Any

from transit_enabler.adapters.web.context_codec import encode_context
from transit_enabler.domain.models import (
    Departure,
    Fare,
    IndividualLeg,
    Leg,
    Line,
    Location,
    NearbyLocationsResult,
    Point,
    Position,
    QueryDeparturesResult,
    QueryTripsResult,
    ResultHeader,
    StationDepartures,
    Stop,
    Style,
    SuggestLocationsResult,
    Trip,
)
from transit_enabler.domain.models.style import to_hex
from transit_enabler.domain.pagination import PageWindow


def _time(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def point_to_dict(point: Point | None) -> dict[str, int] | None:
    if point is None:
        return None
    return {"lat": point.lat, "lon": point.lon}


def location_to_dict(location: Location | None) -> dict[str, Any] | None:
    if location is None:
        return None
    return {
        "type": location.type.value,
        "id": location.id,
        "coord": point_to_dict(location.coord),
        "place": location.place,
        "name": location.name,
        "products": sorted(p.code for p in location.products) if location.products is not None else None,
    }


def style_to_dict(style: Style | None) -> dict[str, Any] | None:
    if style is None:
        return None
    return {
        "shape": style.shape.value,
        "background_color": to_hex(style.background_color),
        "foreground_color": to_hex(style.foreground_color),
        "border_color": to_hex(style.border_color) if style.border_color is not None else None,
    }


def line_to_dict(line: Line) -> dict[str, Any]:
    return {
        "id": line.id,
        "network": line.network,
        "product": line.product.code if line.product else None,
        "label": line.label,
        "name": line.name,
        "style": style_to_dict(line.style),
        "attrs": sorted(attr.value for attr in line.attrs),
        "message": line.message,
    }


def _position(position: Position | None) -> str | None:
    return str(position) if position is not None else None


def stop_to_dict(stop: Stop) -> dict[str, Any]:
    return {
        "location": location_to_dict(stop.location),
        "planned_arrival_time": _time(stop.planned_arrival_time),
        "predicted_arrival_time": _time(stop.predicted_arrival_time),
        "arrival_position": _position(stop.arrival_position),
        "arrival_cancelled": stop.arrival_cancelled,
        "planned_departure_time": _time(stop.planned_departure_time),
        "predicted_departure_time": _time(stop.predicted_departure_time),
        "departure_position": _position(stop.departure_position),
        "departure_cancelled": stop.departure_cancelled,
    }


def leg_to_dict(leg: Leg) -> dict[str, Any]:
    path = [point_to_dict(p) for p in leg.path] if leg.path is not None else None
    if isinstance(leg, IndividualLeg):
        return {
            "kind": "individual",
            "type": leg.type.value,
            "departure": location_to_dict(leg.departure),
            "departure_time": _time(leg.departure_time),
            "arrival": location_to_dict(leg.arrival),
            "arrival_time": _time(leg.arrival_time),
            "distance": leg.distance,
            "path": path,
        }
    return {
        "kind": "public",
        "line": line_to_dict(leg.line),
        "destination": location_to_dict(leg.destination),
        "departure_stop": stop_to_dict(leg.departure_stop),
        "arrival_stop": stop_to_dict(leg.arrival_stop),
        "intermediate_stops": [stop_to_dict(s) for s in leg.intermediate_stops],
        "path": path,
        "message": leg.message,
    }


def fare_to_dict(fare: Fare) -> dict[str, Any]:
    return {
        "name": fare.name,
        "type": fare.type.value,
        "currency": fare.currency,
        "fare": fare.fare,
        "network": fare.network,
        "units_name": fare.units_name,
        "units": fare.units,
    }


def trip_to_dict(trip: Trip) -> dict[str, Any]:
    return {
        "id": trip.trip_id,
        "from": location_to_dict(trip.from_),
        "to": location_to_dict(trip.to),
        "first_departure_time": _time(trip.first_departure_time),
        "last_arrival_time": _time(trip.last_arrival_time),
        "changes": trip.changes,
        "legs": [leg_to_dict(leg) for leg in trip.legs],
        "fares": [fare_to_dict(f) for f in trip.fares],
        "capacity": list(trip.capacity) if trip.capacity else None,
    }


def departure_to_dict(departure: Departure) -> dict[str, Any]:
    return {
        "line": line_to_dict(departure.line),
        "planned_time": _time(departure.planned_time),
        "predicted_time": _time(departure.predicted_time),
        "position": _position(departure.position),
        "destination": location_to_dict(departure.destination),
        "message": departure.message,
        "cancelled": departure.cancelled,
    }


def station_departures_to_dict(block: StationDepartures) -> dict[str, Any]:
    return {
        "location": location_to_dict(block.location),
        "departures": [departure_to_dict(d) for d in block.departures],
        "lines": [
            {"line": line_to_dict(ld.line), "destination": location_to_dict(ld.destination)}
            for ld in block.lines or ()
        ],
    }


def header_to_dict(header: ResultHeader | None) -> dict[str, Any] | None:
    if header is None:
        return None
    return {
        "network": header.network,
        "server_product": header.server_product,
        "server_version": header.server_version,
        "server_name": header.server_name,
        "server_time": _time(header.server_time),
    }


def suggest_result_to_dict(result: SuggestLocationsResult) -> dict[str, Any]:
    return {
        "status": result.status.value,
        "locations": [
            {"location": location_to_dict(s.location), "priority": s.priority}
            for s in result.suggested_locations
        ],
        "header": header_to_dict(result.header),
    }


def nearby_result_to_dict(result: NearbyLocationsResult) -> dict[str, Any]:
    return {
        "status": result.status.value,
        "locations": [location_to_dict(loc) for loc in result.locations],
        "header": header_to_dict(result.header),
    }


def departures_result_to_dict(result: QueryDeparturesResult) -> dict[str, Any]:
    return {
        "status": result.status.value,
        "station_departures": [station_departures_to_dict(b) for b in result.station_departures],
        "header": header_to_dict(result.header),
    }


def trips_result_to_dict(result: QueryTripsResult, window: PageWindow | None = None) -> dict[str, Any]:
    context = result.context
    return {
        "status": result.status.value,
        "trips": [trip_to_dict(t) for t in result.trips],
        "context": encode_context(context, window) if context is not None else None,
        "can_query_earlier": bool(context and context.can_query_earlier),
        "can_query_later": bool(context and context.can_query_later),
        "from": location_to_dict(result.from_),
        "via": location_to_dict(result.via),
        "to": location_to_dict(result.to),
        "ambiguous_from": [location_to_dict(loc) for loc in result.ambiguous_from],
        "ambiguous_via": [location_to_dict(loc) for loc in result.ambiguous_via],
        "ambiguous_to": [location_to_dict(loc) for loc in result.ambiguous_to],
        "header": header_to_dict(result.header),
    }
