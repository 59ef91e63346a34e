"""Tests for domain models."""

from datetime import UTC, datetime, timedelta

import pytest

from transit_enabler.adapters.abstract_network_provider import AbstractNetworkProvider
from transit_enabler.domain.exceptions import PreconditionError
from transit_enabler.domain.models import (
    Departure,
    IndividualLeg,
    IndividualType,
    Line,
    Location,
    LocationType,
    Point,
    Position,
    Product,
    PublicLeg,
    QueryTripsContext,
    StationDepartures,
    Stop,
    Style,
    Trip,
    products_from_mask,
    products_to_mask,
)
from transit_enabler.domain.models.style import BLACK, WHITE, parse_color, to_hex

T0 = datetime(2024, 5, 6, 8, 0, tzinfo=UTC)

HBF = Location.station("8000261", name="München Hbf", coord=Point(48140229, 11558339))
PASING = Location.station("8004158", name="München-Pasing")
AUGSBURG = Location.station("8000013", name="Augsburg Hbf")


def public_leg(
    departure: Location,
    arrival: Location,
    start: datetime,
    minutes: int,
    label: str = "RE9",
    cancelled: bool = False,
) -> PublicLeg:
    return PublicLeg(
        line=Line(label, Product.RAIL, network="db"),
        destination=arrival,
        departure_stop=Stop(departure, planned_departure_time=start, departure_cancelled=cancelled),
        arrival_stop=Stop(arrival, planned_arrival_time=start + timedelta(minutes=minutes)),
    )


class TestLocation:
    """Tests for location identity and validation."""

    def test_when_both_have_ids_then_equality_uses_id_only(self) -> None:
        """Given two stations with the same id but different names, when compared, then they are equal."""
        assert Location.station("1", name="A") == Location.station("1", name="B")
        assert Location.station("1") != Location.station("2")

    def test_when_types_differ_then_not_equal(self) -> None:
        """Given a station and a POI with the same id, when compared, then they differ."""
        assert Location(LocationType.STATION, id="1") != Location(LocationType.POI, id="1")

    def test_when_one_side_lacks_id_then_coord_and_name_decide(self) -> None:
        """Given an id-less address, when compared with a matching one, then coord and name decide."""
        coord = Point(48000000, 11000000)
        with_id = Location(LocationType.ADDRESS, id="a1", coord=coord, name="Main St 1")
        without_id = Location(LocationType.ADDRESS, coord=coord, name="Main St 1")

        assert with_id == without_id
        assert hash(with_id) == hash(without_id)
        assert without_id != Location(LocationType.ADDRESS, coord=coord, name="Main St 2")

    def test_when_coord_type_without_coord_then_raises(self) -> None:
        """Given a COORD location without coordinate, when building, then it is rejected."""
        with pytest.raises(PreconditionError):
            Location(LocationType.COORD)

    def test_when_any_type_with_id_then_raises(self) -> None:
        """Given an ANY location carrying an id, when building, then it is rejected."""
        with pytest.raises(PreconditionError):
            Location(LocationType.ANY, id="1")

    def test_when_id_empty_then_raises(self) -> None:
        """Given an empty id, when building, then it is rejected."""
        with pytest.raises(PreconditionError):
            Location(LocationType.STATION, id="")

    def test_when_checking_identified_then_follows_type_rules(self) -> None:
        """Given various locations, when checked, then only precise ones are identified."""
        assert HBF.is_identified()
        assert Location(LocationType.COORD, coord=Point(1, 1)).is_identified()
        assert Location(LocationType.ADDRESS, coord=Point(1, 1)).is_identified()
        assert not Location(LocationType.STATION, name="Hbf").is_identified()
        assert not Location(LocationType.ANY, name="Hbf").is_identified()

    def test_when_products_given_as_list_then_stored_as_frozenset(self) -> None:
        """Given products as a list, when building, then they are stored immutably."""
        location = Location(LocationType.STATION, id="1", products=[Product.BUS, Product.BUS])  # type: ignore[arg-type]

        assert location.products == frozenset({Product.BUS})


class TestProduct:
    """Tests for product codes and masks."""

    def test_when_masking_products_then_round_trips(self) -> None:
        """Given a product set, when folded into a mask and expanded, then it is unchanged."""
        products = {Product.SUBWAY, Product.BUS, Product.ON_DEMAND}

        assert products_from_mask(products_to_mask(products)) == products

    def test_when_looking_up_code_then_returns_product(self) -> None:
        """Given a product code, when looked up, then the product is returned."""
        assert Product.from_code("T") is Product.TRAM
        with pytest.raises(ValueError):
            Product.from_code("X")


class TestLine:
    """Tests for line identity and ordering."""

    def test_when_network_product_label_match_then_equal(self) -> None:
        """Given lines differing only in style, when compared, then they are equal."""
        a = Line("U2", Product.SUBWAY, network="mvv", style=Style(WHITE, BLACK))
        b = Line("U2", Product.SUBWAY, network="mvv")

        assert a == b
        assert hash(a) == hash(b)

    def test_when_sorting_then_orders_by_product_then_label(self) -> None:
        """Given mixed lines, when sorted, then rail comes before subway and labels sort within."""
        lines = [Line("U3", Product.SUBWAY), Line("S8", Product.RAIL), Line("U1", Product.SUBWAY)]

        assert [str(line) for line in sorted(lines)] == ["RS8", "UU1", "UU3"]


class TestStyle:
    """Tests for colors and styles."""

    def test_when_parsing_six_digit_color_then_alpha_is_opaque(self) -> None:
        """Given #rrggbb, when parsed, then alpha is ff."""
        assert parse_color("#006e34") == 0xFF006E34
        assert to_hex(parse_color("#80112233")) == "#80112233"

    def test_when_parsing_invalid_color_then_raises(self) -> None:
        """Given a malformed color, when parsed, then ValueError is raised."""
        with pytest.raises(ValueError):
            parse_color("006e34")
        with pytest.raises(ValueError):
            parse_color("#12345")

    def test_when_background_is_bright_then_foreground_is_black(self) -> None:
        """Given a bright or dark background, when deriving, then a contrasting foreground is chosen."""
        assert Style.with_background(parse_color("#ffff00")).foreground_color == BLACK
        assert Style.with_background(parse_color("#003090")).foreground_color == WHITE


class TestPositionAndStop:
    """Tests for positions and stops."""

    def test_when_position_name_empty_then_raises(self) -> None:
        """Given an empty platform name, when building, then it is rejected."""
        with pytest.raises(PreconditionError):
            Position("")

    def test_when_section_too_long_then_raises(self) -> None:
        """Given a section longer than three characters, when building, then it is rejected."""
        with pytest.raises(PreconditionError):
            Position("12", "ABCD")
        assert str(Position("12", "A-C")) == "12 A-C"

    def test_when_prediction_known_then_stop_prefers_it(self) -> None:
        """Given planned and predicted times, when reading, then the prediction wins unless plan is preferred."""
        stop = Stop(
            HBF,
            planned_departure_time=T0,
            predicted_departure_time=T0 + timedelta(minutes=4),
            planned_departure_position=Position("11"),
            predicted_departure_position=Position("12"),
        )

        assert stop.departure_time == T0 + timedelta(minutes=4)
        assert stop.get_departure_time(prefer_plan=True) == T0
        assert stop.departure_delay == timedelta(minutes=4)
        assert stop.departure_position == Position("12")
        assert stop.arrival_time is None


class TestTrip:
    """Tests for trip invariants and derived values."""

    def test_when_legs_are_continuous_then_trip_is_built(self) -> None:
        """Given chained legs, when building a trip, then endpoints and changes are derived."""
        trip = Trip(
            (
                public_leg(HBF, PASING, T0, 6, "S3"),
                public_leg(PASING, AUGSBURG, T0 + timedelta(minutes=10), 30),
            )
        )

        assert trip.from_ == HBF
        assert trip.to == AUGSBURG
        assert trip.duration == timedelta(minutes=40)
        assert trip.changes == 1
        assert trip.products() == frozenset({Product.RAIL})
        assert trip.is_travelable()

    def test_when_legs_do_not_chain_then_raises(self) -> None:
        """Given a gap between legs, when building a trip, then it is rejected."""
        with pytest.raises(PreconditionError):
            Trip((public_leg(HBF, PASING, T0, 6), public_leg(HBF, AUGSBURG, T0 + timedelta(minutes=10), 30)))

    def test_when_no_legs_then_raises(self) -> None:
        """Given no legs, when building a trip, then it is rejected."""
        with pytest.raises(PreconditionError):
            Trip(())

    def test_when_trip_has_no_id_then_substitute_id_is_derived_from_legs(self) -> None:
        """Given trips without backend id, when comparing ids, then equal legs give equal ids."""
        a = Trip((public_leg(HBF, PASING, T0, 6, "S3"),))
        b = Trip((public_leg(HBF, PASING, T0, 6, "S3"),))
        c = Trip((public_leg(HBF, PASING, T0, 6, "S4"),))

        millis = int(T0.timestamp() * 1000)
        assert a.trip_id == f"8000261-8004158-{millis}-{millis + 360000}-RS3"
        assert a == b and hash(a) == hash(b)
        assert a.trip_id != c.trip_id

    def test_when_backend_id_present_then_it_is_used(self) -> None:
        """Given a backend id, when reading trip_id, then it is returned."""
        assert Trip((public_leg(HBF, PASING, T0, 6),), id="abc").trip_id == "abc"

    def test_when_walk_overlaps_previous_leg_then_adjustment_moves_it(self) -> None:
        """Given a walk starting before the train arrives, when adjusting, then the walk is shifted."""
        walk = IndividualLeg(
            IndividualType.WALK, PASING, T0 + timedelta(minutes=4), AUGSBURG, T0 + timedelta(minutes=9)
        )
        trip = Trip((public_leg(HBF, PASING, T0, 6), walk))

        assert not trip.is_travelable()
        adjusted = trip.with_adjusted_individual_legs()
        assert adjusted.legs[1].departure_time == T0 + timedelta(minutes=6)
        assert adjusted.legs[1].arrival_time == T0 + timedelta(minutes=11)
        assert adjusted.is_travelable()

    def test_when_public_leg_cancelled_then_not_travelable(self) -> None:
        """Given a cancelled public leg, when checking, then the trip is not travelable."""
        trip = Trip((public_leg(HBF, PASING, T0, 6, cancelled=True),))

        assert not trip.is_travelable()

    def test_when_public_leg_lacks_departure_time_then_raises(self) -> None:
        """Given a departure stop without time, when building a leg, then it is rejected."""
        with pytest.raises(PreconditionError):
            PublicLeg(
                line=Line("S1", Product.RAIL),
                destination=None,
                departure_stop=Stop(HBF),
                arrival_stop=Stop(PASING, planned_arrival_time=T0),
            )


class TestDepartures:
    """Tests for departures and station blocks."""

    def test_when_departure_has_no_time_then_raises(self) -> None:
        """Given neither planned nor predicted time, when building, then it is rejected."""
        with pytest.raises(ValueError):
            Departure(Line("100", Product.BUS))

    def test_when_sorting_block_then_orders_by_effective_time(self) -> None:
        """Given departures out of order, when sorted, then predicted times are honored."""
        late = Departure(Line("S1", Product.RAIL), T0, T0 + timedelta(minutes=10))
        early = Departure(Line("S2", Product.RAIL), T0 + timedelta(minutes=5))

        block = StationDepartures(HBF, (late, early)).sorted()

        assert block.departures == (early, late)
        assert late.delay_seconds == 600
        assert late.is_realtime and not early.is_realtime


class TestQueryTripsContext:
    """Tests for the opaque pagination context."""

    def test_when_token_not_bytes_then_raises(self) -> None:
        """Given a string token, when building a context, then TypeError is raised."""
        with pytest.raises(TypeError):
            QueryTripsContext("token", "db", True, True)  # type: ignore[arg-type]

    def test_when_printing_then_token_is_hidden(self) -> None:
        """Given a context, when rendered, then the token contents do not appear."""
        context = QueryTripsContext(b"secret-ref", "db", False, True)

        assert "secret-ref" not in repr(context)
        assert "db" in repr(context)


class TestTripEquality:
    """Tests for structural trip equality and deduplication."""

    def test_when_leg_sequences_equal_then_trips_equal_with_equal_hashes(self) -> None:
        """Given the same legs and different backend ids, when comparing, then the trips are equal."""
        a = Trip((public_leg(HBF, PASING, T0, 6, "S3"),), id="one")
        b = Trip((public_leg(HBF, PASING, T0, 6, "S3"),), id="two")

        assert a == b
        assert hash(a) == hash(b)

    def test_when_endpoint_differs_only_in_id_presence_then_hashes_agree(self) -> None:
        """Given walks whose origins are equal by coord and name only, when hashing, then equal trips collide."""
        coord = Point(48149852, 11461872)
        with_id = Location(LocationType.ADDRESS, id="a1", coord=coord, name="Landsberger Str. 500")
        without_id = Location(LocationType.ADDRESS, coord=coord, name="Landsberger Str. 500")
        end = T0 + timedelta(minutes=5)
        a = Trip((IndividualLeg(IndividualType.WALK, with_id, T0, PASING, end),))
        b = Trip((IndividualLeg(IndividualType.WALK, without_id, T0, PASING, end),))

        assert a == b
        assert hash(a) == hash(b)
        assert len({a, b}) == 1

    def test_when_legs_differ_then_trips_unequal(self) -> None:
        """Given different lines or times, when comparing, then the trips differ."""
        base = Trip((public_leg(HBF, PASING, T0, 6, "S3"),))

        assert base != Trip((public_leg(HBF, PASING, T0, 6, "S4"),))
        assert base != Trip((public_leg(HBF, PASING, T0 + timedelta(minutes=1), 6, "S3"),))
        onward = public_leg(PASING, AUGSBURG, T0 + timedelta(minutes=10), 30)
        assert base != Trip((public_leg(HBF, PASING, T0, 6, "S3"), onward))

    def test_when_deduplicating_then_first_occurrences_kept_in_order(self) -> None:
        """Given repeated trips, when deduplicating, then each survives once at its first position."""
        s3 = Trip((public_leg(HBF, PASING, T0, 6, "S3"),), id="first")
        s4 = Trip((public_leg(HBF, PASING, T0, 6, "S4"),))
        s3_again = Trip((public_leg(HBF, PASING, T0, 6, "S3"),), id="second")
        later = Trip((public_leg(HBF, PASING, T0 + timedelta(minutes=20), 6, "S3"),))

        unique = AbstractNetworkProvider.deduplicate_trips([s3, s4, s3_again, later, s4])

        assert unique == (s3, s4, later)
        assert unique[0].trip_id == "first"
