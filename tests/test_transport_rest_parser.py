"""Tests for parsing hafas-rest-api JSON into domain entities."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from transit_enabler.adapters.transport_rest.constants import PRODUCTS_BY_NETWORK
from transit_enabler.adapters.transport_rest.parser import (
    TransportRestParser,
    parse_hafas_code,
    parse_path,
    parse_time,
)
from transit_enabler.domain.exceptions import UnexpectedResponseError
from transit_enabler.domain.models import (
    IndividualLeg,
    IndividualType,
    LocationType,
    Point,
    Position,
    Product,
    PublicLeg,
)
from transit_enabler.domain.models.line import LineAttr

CEST = timezone(timedelta(hours=2))


def stop(stop_id: str, name: str, lat: float = 48.14, lon: float = 11.55) -> dict:
    return {
        "type": "stop",
        "id": stop_id,
        "name": name,
        "location": {"type": "location", "latitude": lat, "longitude": lon},
        "products": {"suburban": True, "bus": True, "tram": False},
    }


HBF = stop("8000261", "München Hbf", 48.140229, 11.558339)
PASING = stop("8004158", "München-Pasing", 48.149852, 11.461872)
LAIM = stop("8004128", "München-Laim", 48.144, 11.503)

S3_LINE = {"type": "line", "id": "4-800725-3", "fahrtNr": "6324", "name": "S 3", "product": "suburban", "mode": "train"}

S3_LEG = {
    "origin": HBF,
    "destination": PASING,
    "departure": "2024-05-06T08:02:00+02:00",
    "plannedDeparture": "2024-05-06T08:00:00+02:00",
    "departureDelay": 120,
    "departurePlatform": "2",
    "plannedDeparturePlatform": "1",
    "arrival": "2024-05-06T08:10:00+02:00",
    "plannedArrival": "2024-05-06T08:10:00+02:00",
    "arrivalDelay": None,
    "line": S3_LINE,
    "direction": "Holzkirchen",
    "stopovers": [
        {"stop": HBF, "plannedDeparture": "2024-05-06T08:00:00+02:00"},
        {
            "stop": LAIM,
            "plannedArrival": "2024-05-06T08:05:00+02:00",
            "arrival": "2024-05-06T08:06:00+02:00",
            "arrivalDelay": 60,
            "plannedDeparture": "2024-05-06T08:05:00+02:00",
        },
        {"stop": {"type": "stop"}},
        {"stop": PASING, "plannedArrival": "2024-05-06T08:10:00+02:00"},
    ],
    "remarks": [{"type": "hint", "text": "Bicycles allowed"}, {"type": "warning", "summary": "Construction works"}],
}

WALK_LEG = {
    "origin": PASING,
    "destination": {"type": "location", "address": "Landsberger Str. 500", "latitude": 48.15, "longitude": 11.46},
    "departure": "2024-05-06T08:10:00+02:00",
    "arrival": "2024-05-06T08:16:00+02:00",
    "walking": True,
    "distance": 420,
}


@pytest.fixture
def parser() -> TransportRestParser:
    return TransportRestParser("db", PRODUCTS_BY_NETWORK["db"])


class TestParseHelpers:
    """Tests for module-level helpers."""

    def test_when_time_has_offset_then_aware_datetime(self) -> None:
        """Given an ISO timestamp with offset, when parsing, then an aware datetime is returned."""
        assert parse_time("2024-05-06T08:00:00+02:00") == datetime(2024, 5, 6, 8, 0, tzinfo=CEST)
        assert parse_time("2024-05-06T06:00:00Z") == datetime(2024, 5, 6, 6, 0, tzinfo=UTC)
        assert parse_time("garbage") is None
        assert parse_time(None) is None

    def test_when_error_body_has_hafas_code_then_extracted(self) -> None:
        """Given a hafas-rest-api error body, when parsing, then the code is returned."""
        assert parse_hafas_code('{"message": "no trips", "hafasCode": "H890"}') == "H890"
        assert parse_hafas_code("<html></html>") is None

    def test_when_path_is_geojson_then_points_are_lat_lon(self) -> None:
        """Given a GeoJSON feature collection, when parsing, then coordinates swap to lat/lon."""
        value = {
            "type": "FeatureCollection",
            "features": [
                {"type": "Feature", "geometry": {"type": "Point", "coordinates": [11.558339, 48.140229]}},
                {"type": "Feature", "geometry": {"type": "LineString", "coordinates": []}},
            ],
        }

        assert parse_path(value) == (Point(48140229, 11558339),)

    def test_when_path_is_encoded_polyline_then_decoded(self) -> None:
        """Given an encoded polyline string, when parsing, then it is decoded."""
        assert parse_path("_p~iF~ps|U") == (Point(38500000, -120200000),)


class TestParseLocations:
    """Tests for location records."""

    def test_when_stop_record_then_station_with_products(self, parser: TransportRestParser) -> None:
        """Given a stop record, when parsing, then a station with coord and products results."""
        location = parser.parse_location(HBF)

        assert location is not None
        assert location.type is LocationType.STATION
        assert location.id == "8000261"
        assert location.coord == Point(48140229, 11558339)
        assert location.products == frozenset({Product.RAIL, Product.BUS})

    def test_when_address_and_poi_records_then_typed_accordingly(self, parser: TransportRestParser) -> None:
        """Given address and POI records, when parsing, then types follow the flags."""
        address = parser.parse_location(
            {"type": "location", "address": "Marienplatz 1", "latitude": 48.137, "longitude": 11.575}
        )
        poi = parser.parse_location(
            {"type": "location", "poi": True, "id": "991", "name": "Olympiapark", "latitude": 48.17, "longitude": 11.55}
        )

        assert address is not None and address.type is LocationType.ADDRESS
        assert address.name == "Marienplatz 1"
        assert poi is not None and poi.type is LocationType.POI and poi.id == "991"

    def test_when_list_has_unparseable_records_then_they_are_skipped(self, parser: TransportRestParser) -> None:
        """Given a list with a broken record, when parsing, then the rest is returned."""
        locations = parser.parse_locations([HBF, {"type": "stop"}, "junk", PASING])

        assert [loc.id for loc in locations] == ["8000261", "8004158"]

    def test_when_response_is_not_a_list_then_unexpected_response(self, parser: TransportRestParser) -> None:
        """Given an object instead of a list, when parsing locations, then UnexpectedResponseError."""
        with pytest.raises(UnexpectedResponseError):
            parser.parse_locations({"error": True})


class TestParseDepartures:
    """Tests for departure boards."""

    def test_when_departures_from_two_platforms_stops_then_grouped_per_stop(self, parser: TransportRestParser) -> None:
        """Given departures from two stops, when parsing, then one sorted block per stop results."""
        values = {
            "departures": [
                {
                    "stop": HBF,
                    "when": "2024-05-06T08:07:00+02:00",
                    "plannedWhen": "2024-05-06T08:05:00+02:00",
                    "delay": 120,
                    "platform": "2",
                    "direction": "Holzkirchen",
                    "line": S3_LINE,
                },
                {
                    "stop": HBF,
                    "when": "2024-05-06T08:01:00+02:00",
                    "plannedWhen": "2024-05-06T08:01:00+02:00",
                    "delay": None,
                    "direction": "Mammendorf",
                    "line": S3_LINE,
                    "cancelled": True,
                },
                {
                    "stop": LAIM,
                    "plannedWhen": "2024-05-06T08:03:00+02:00",
                    "direction": "Pasing",
                    "line": {"name": "Bus 62", "product": "bus"},
                },
                {"stop": HBF},
            ]
        }

        blocks = parser.parse_departures(values)

        assert [b.location.id for b in blocks] == ["8000261", "8004128"]
        hbf = blocks[0]
        assert [d.destination.name for d in hbf.departures] == ["Mammendorf", "Holzkirchen"]
        first, second = hbf.departures
        assert first.cancelled and first.predicted_time is None
        assert second.delay_seconds == 120
        assert second.position == Position("2")
        assert second.line.product is Product.RAIL
        assert len(hbf.lines or ()) == 2

    def test_when_max_departures_set_then_each_block_is_capped(self, parser: TransportRestParser) -> None:
        """Given more departures than the limit, when parsing, then each stop keeps the first ones."""
        values = [
            {"stop": HBF, "plannedWhen": f"2024-05-06T08:0{i}:00+02:00", "line": S3_LINE} for i in range(5)
        ]

        blocks = parser.parse_departures(values, max_departures=2)

        assert len(blocks[0].departures) == 2


class TestParseJourneys:
    """Tests for journeys and legs."""

    def test_when_public_leg_then_times_positions_and_stopovers_parsed(self, parser: TransportRestParser) -> None:
        """Given a public leg, when parsing, then plan and prediction are both kept."""
        leg = parser.parse_leg(S3_LEG)

        assert isinstance(leg, PublicLeg)
        assert leg.departure_stop.planned_departure_time == datetime(2024, 5, 6, 8, 0, tzinfo=CEST)
        assert leg.departure_stop.predicted_departure_time == datetime(2024, 5, 6, 8, 2, tzinfo=CEST)
        assert leg.departure_stop.departure_position == Position("2")
        assert leg.arrival_stop.predicted_arrival_time is None
        assert leg.line.label == "S 3"
        assert leg.destination_label == "Holzkirchen"
        assert leg.message == "Construction works"
        assert [s.location.id for s in leg.intermediate_stops] == ["8004128"]
        assert leg.intermediate_stops[0].arrival_delay == timedelta(minutes=1)

    def test_when_walking_leg_then_individual_leg(self, parser: TransportRestParser) -> None:
        """Given a walking leg, when parsing, then an individual walk with distance results."""
        leg = parser.parse_leg(WALK_LEG)

        assert isinstance(leg, IndividualLeg)
        assert leg.type is IndividualType.WALK
        assert leg.distance == 420
        assert leg.arrival.type is LocationType.ADDRESS

    def test_when_journeys_contain_broken_leg_then_only_that_trip_is_dropped(self, parser: TransportRestParser) -> None:
        """Given one journey without leg times, when parsing, then the other journey survives."""
        broken_leg = {**S3_LEG, "departure": None, "plannedDeparture": None}
        data = {
            "journeys": [
                {"legs": [S3_LEG, WALK_LEG], "refreshToken": "T1", "price": {"amount": 3.9, "currency": "EUR"}},
                {"legs": [broken_leg]},
            ]
        }

        trips = parser.parse_journeys(data)

        assert len(trips) == 1
        assert trips[0].trip_id == "T1"
        assert trips[0].fares[0].fare == pytest.approx(3.9)
        assert trips[0].to is not None and trips[0].to.type is LocationType.ADDRESS

    def test_when_walk_distance_not_numeric_then_distance_dropped_and_trip_kept(
        self, parser: TransportRestParser, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Given a walk leg with a garbage distance, when parsing journeys, then the trip survives without it."""
        data = {"journeys": [{"legs": [S3_LEG, {**WALK_LEG, "distance": "n/a"}]}]}

        trips = parser.parse_journeys(data)

        assert len(trips) == 1
        walk = trips[0].legs[1]
        assert isinstance(walk, IndividualLeg)
        assert walk.distance == 0
        assert "unparseable distance" in caplog.text

    def test_when_leg_field_has_wrong_type_then_only_that_trip_is_dropped(
        self, parser: TransportRestParser
    ) -> None:
        """Given a leg whose stopovers are not a list, when parsing journeys, then the other trip survives."""
        data = {"journeys": [{"legs": [{**S3_LEG, "stopovers": 42}]}, {"legs": [S3_LEG]}]}

        trips = parser.parse_journeys(data)

        assert len(trips) == 1

    def test_when_journeys_missing_then_unexpected_response(self, parser: TransportRestParser) -> None:
        """Given a body without journeys, when parsing, then UnexpectedResponseError."""
        with pytest.raises(UnexpectedResponseError):
            parser.parse_journeys({"message": "nope"})

    def test_when_line_is_replacement_service_then_attr_set(self, parser: TransportRestParser) -> None:
        """Given a SEV line, when parsing, then the replacement attribute is set."""
        line = parser.parse_line({"name": "SEV S3", "product": "bus"})

        assert line.has_attr(LineAttr.SERVICE_REPLACEMENT)
        assert line.product is Product.BUS
        assert line.network == "db"
