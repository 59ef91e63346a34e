"""Encoded Polyline Algorithm Format codec producing 1e6 fixed-point points.

The wire format carries coordinates at 1e5 precision as zig-zag encoded
deltas split into 5-bit chunks, each chunk offset by 63 so it is printable.
"""

import logging
from collections.abc import Iterable

from transit_enabler.domain.exceptions import PreconditionError
from transit_enabler.domain.models.point import Point

logger = logging.getLogger(__name__)

_OFFSET = 63
_MAX_CHAR = ord("~")
_CONTINUATION = 0x20
_CHUNK_MASK = 0x1F


def _read_value(encoded: str, index: int) -> tuple[int, int] | None:
    """Read one signed value starting at ``index``.

    Returns the value and the index after it, or None if the input ends
    mid-value or contains a byte outside the alphabet.
    """
    result = 0
    shift = 0
    length = len(encoded)
    while True:
        if index >= length:
            return None
        code = ord(encoded[index])
        if code < _OFFSET or code > _MAX_CHAR:
            return None
        chunk = code - _OFFSET
        index += 1
        result |= (chunk & _CHUNK_MASK) << shift
        shift += 5
        if chunk < _CONTINUATION:
            break
    value = ~(result >> 1) if result & 1 else result >> 1
    return value, index


def decode(encoded: str) -> tuple[Point, ...]:
    """Decode an encoded polyline into points.

    Malformed or truncated input stops at the last complete coordinate pair.
    """
    points: list[Point] = []
    lat = 0
    lon = 0
    index = 0
    length = len(encoded)
    while index < length:
        lat_read = _read_value(encoded, index)
        if lat_read is None:
            break
        lon_read = _read_value(encoded, lat_read[1])
        if lon_read is None:
            break
        lat += lat_read[0]
        lon += lon_read[0]
        index = lon_read[1]
        try:
            points.append(Point.from_1e5(lat, lon))
        except PreconditionError:
            break
    if index < length:
        logger.debug(f"Polyline decoding stopped at offset {index} of {length}")
    return tuple(points)


def _write_value(value: int, out: list[str]) -> None:
    value = ~(value << 1) if value < 0 else value << 1
    while value >= _CONTINUATION:
        out.append(chr((_CONTINUATION | (value & _CHUNK_MASK)) + _OFFSET))
        value >>= 5
    out.append(chr(value + _OFFSET))


def encode(points: Iterable[Point]) -> str:
    """Encode points as a polyline, rounding to the format's 1e5 precision."""
    out: list[str] = []
    previous_lat = 0
    previous_lon = 0
    for point in points:
        lat = round(point.lat / 10)
        lon = round(point.lon / 10)
        _write_value(lat - previous_lat, out)
        _write_value(lon - previous_lon, out)
        previous_lat, previous_lon = lat, lon
    return "".join(out)
