"""Tests for the opaque context strings used by the HTTP service."""

import base64
from datetime import UTC, datetime

import pytest

from transit_enabler.adapters.web import decode_context, decode_page, encode_context
from transit_enabler.domain.exceptions import PaginationError
from transit_enabler.domain.models import QueryTripsContext
from transit_enabler.domain.pagination import PageWindow


class TestContextCodec:
    """Tests for encoding and decoding trip contexts."""

    def test_when_encoded_then_url_safe_and_restorable(self) -> None:
        """Given a context with binary token, when encoded, then the string is URL-safe and decodes back."""
        context = QueryTripsContext(b"\xff\xfe{ref}", "db", can_query_earlier=False, can_query_later=True)

        value = encode_context(context)

        assert "+" not in value and "/" not in value
        assert decode_context(value) == context

    def test_when_window_encoded_then_bounds_restored(self) -> None:
        """Given a served window, when encoding and decoding, then both bounds come back."""
        context = QueryTripsContext(b"ref", "vbb", can_query_earlier=True, can_query_later=True)
        earliest = datetime(2024, 5, 6, 8, 0, tzinfo=UTC)
        latest = datetime(2024, 5, 6, 9, 30, tzinfo=UTC)

        restored, window = decode_page(encode_context(context, PageWindow(earliest, latest)))

        assert restored == context
        assert (window.earliest, window.latest) == (earliest, latest)

    def test_when_no_window_encoded_then_window_empty(self) -> None:
        """Given a bare context, when decoding the page, then the window has no bounds."""
        context = QueryTripsContext(b"ref", "db", can_query_earlier=False, can_query_later=True)

        _restored, window = decode_page(encode_context(context))

        assert window.earliest is None and window.latest is None

    @pytest.mark.parametrize(
        "value",
        [
            "not base64!",
            base64.urlsafe_b64encode(b"[]").decode("ascii"),
            base64.urlsafe_b64encode(b'{"network": "db"}').decode("ascii"),
            "kontext-ä",
        ],
    )
    def test_when_value_malformed_then_pagination_error(self, value: str) -> None:
        """Given garbage, when decoding, then PaginationError."""
        with pytest.raises(PaginationError):
            decode_context(value)
