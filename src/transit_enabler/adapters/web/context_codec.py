"""Pagination contexts as opaque strings for the HTTP boundary.

The HTTP service keeps no sessions, so the string also carries the
earliest and latest first departures already served. Continuations
restore them to keep pages monotonic.
"""

import base64
import binascii
from datetime import datetime

from pydantic import BaseModel, ConfigDict, ValidationError

from transit_enabler.domain.exceptions import PaginationError
from transit_enabler.domain.models import QueryTripsContext
from transit_enabler.domain.pagination import PageWindow


class _WireContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    network: str
    token: str
    earlier: bool
    later: bool
    earliest: datetime | None = None
    latest: datetime | None = None


def encode_context(context: QueryTripsContext, window: PageWindow | None = None) -> str:
    """URL-safe base64 of a JSON document carrying network, token, flags and page window."""
    wire = _WireContext(
        network=context.network,
        token=base64.urlsafe_b64encode(context.token).decode("ascii"),
        earlier=context.can_query_earlier,
        later=context.can_query_later,
        earliest=window.earliest if window else None,
        latest=window.latest if window else None,
    )
    return base64.urlsafe_b64encode(wire.model_dump_json().encode("utf-8")).decode("ascii")


def decode_page(value: str) -> tuple[QueryTripsContext, PageWindow]:
    """Reverse of ``encode_context``. Raises PaginationError on malformed input."""
    try:
        raw = base64.urlsafe_b64decode(value.encode("ascii"))
        wire = _WireContext.model_validate_json(raw)
        token = base64.urlsafe_b64decode(wire.token.encode("ascii"))
    except (UnicodeEncodeError, binascii.Error, ValidationError) as e:
        raise PaginationError("Malformed trip context") from e
    context = QueryTripsContext(
        token=token,
        network=wire.network,
        can_query_earlier=wire.earlier,
        can_query_later=wire.later,
    )
    return context, PageWindow(wire.earliest, wire.latest)


def decode_context(value: str) -> QueryTripsContext:
    return decode_page(value)[0]
