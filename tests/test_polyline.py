"""Tests for fixed-point coordinates and the polyline codec."""

import math

import pytest

from transit_enabler.domain import polyline
from transit_enabler.domain.exceptions import PreconditionError
from transit_enabler.domain.models import Point, from_fixed_point, to_fixed_point

VIENNA_POLYLINE = (
    "}qfeHyn|bBnBdA\\R]xBzA|@r@f@u@hCWS{@bCe@t@e@v@h@vCIFu@`@MPDJ@L?NAPIZXf@|@`Br@pAHLZp@"
    "~@jBbArBbBjDLTTd@fAzBcFnH[d@Vf@iA`BWb@t@zAb@~@LTNNdCzE~A{BAA??"
)


class TestFixedPoint:
    """Tests for 1e6 fixed-point conversion."""

    def test_when_converting_degrees_then_rounds_to_nearest_integer(self) -> None:
        """Given degrees with more than six decimals, when converting, then rounds to the nearest integer."""
        assert to_fixed_point(48.1234567) == 48123457
        assert to_fixed_point(-11.0000004) == -11000000

    def test_when_round_tripping_fixed_point_then_value_is_stable(self) -> None:
        """Given fixed-point values, when converted to degrees and back, then they are unchanged."""
        for value in (0, 1, -1, 48207830, -122419416, 179999999, -90000000):
            assert to_fixed_point(from_fixed_point(value)) == value

    def test_when_degrees_not_finite_then_raises(self) -> None:
        """Given NaN or infinity, when converting, then a precondition error is raised."""
        with pytest.raises(PreconditionError):
            to_fixed_point(math.nan)
        with pytest.raises(PreconditionError):
            to_fixed_point(math.inf)

    def test_when_point_from_double_then_stores_fixed_point(self) -> None:
        """Given double coordinates, when building a point, then fields are 1e6 integers."""
        point = Point.from_double(52.5251, 13.3694)

        assert point == Point(52525100, 13369400)
        assert point.lat_as_double == pytest.approx(52.5251)
        assert str(point) == "52.525100/13.369400"

    def test_when_point_out_of_range_then_raises(self) -> None:
        """Given a latitude beyond the poles, when building a point, then it is rejected."""
        with pytest.raises(PreconditionError):
            Point(90_000_001, 0)
        with pytest.raises(PreconditionError):
            Point(0, -180_000_001)

    def test_when_point_fields_not_integers_then_raises(self) -> None:
        """Given float or bool fields, when building a point, then it is rejected."""
        with pytest.raises(PreconditionError):
            Point(48.1, 11.5)  # type: ignore[arg-type]
        with pytest.raises(PreconditionError):
            Point(True, 0)  # type: ignore[arg-type]

    def test_when_point_from_1e5_then_scales_by_ten(self) -> None:
        """Given 1e5 values, when building a point, then they are scaled to 1e6."""
        assert Point.from_1e5(3850000, -12020000) == Point(38500000, -120200000)


class TestPolylineDecode:
    """Tests for decoding encoded polylines."""

    def test_when_decoding_reference_vector_then_yields_all_points(self) -> None:
        """Given the reference polyline, when decoding, then 44 points with known ends are returned."""
        points = polyline.decode(VIENNA_POLYLINE)

        assert len(points) == 44
        assert points[0] == Point(48207830, 16371170)
        assert points[-1] == Point(48205140, 16357960)

    def test_when_decoding_classic_example_then_matches_known_coordinates(self) -> None:
        """Given the well-known three point example, when decoding, then coordinates match."""
        points = polyline.decode("_p~iF~ps|U_ulLnnqC_mqNvxq`@")

        assert points == (
            Point(38500000, -120200000),
            Point(40700000, -120950000),
            Point(43252000, -126453000),
        )

    def test_when_input_truncated_then_stops_at_last_complete_pair(self) -> None:
        """Given a polyline cut inside the final pair, when decoding, then the partial pair is dropped."""
        points = polyline.decode(VIENNA_POLYLINE[:-1])

        assert len(points) == 43
        assert points == polyline.decode(VIENNA_POLYLINE)[:43]

    def test_when_input_has_byte_outside_alphabet_then_stops_there(self) -> None:
        """Given a control character after the first pair, when decoding, then only that pair is returned."""
        points = polyline.decode("_p~iF~ps|U\n_ulLnnqC")

        assert points == (Point(38500000, -120200000),)

    def test_when_input_empty_then_returns_no_points(self) -> None:
        """Given an empty string, when decoding, then an empty tuple is returned."""
        assert polyline.decode("") == ()


class TestPolylineEncode:
    """Tests for encoding points."""

    def test_when_encoding_classic_example_then_matches_known_string(self) -> None:
        """Given the three example points, when encoding, then the known string is produced."""
        points = [
            Point(38500000, -120200000),
            Point(40700000, -120950000),
            Point(43252000, -126453000),
        ]

        assert polyline.encode(points) == "_p~iF~ps|U_ulLnnqC_mqNvxq`@"

    def test_when_encoding_decoded_reference_then_reproduces_it(self) -> None:
        """Given the decoded reference vector, when re-encoding, then the original string results."""
        assert polyline.encode(polyline.decode(VIENNA_POLYLINE)) == VIENNA_POLYLINE
