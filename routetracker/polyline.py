"""Encoding and decoding of polyline strings with 5-decimal precision."""
from __future__ import annotations

from typing import Iterable, List, Tuple

from .geometry import Coordinate, Route

PRECISION = 1e5
_CHUNK_BITS = 5
_CONTINUATION = 0x20
_VALUE_MASK = 0x1F
_OFFSET = 63


class DecodeError(ValueError):
    """Raised when an encoded polyline cannot be turned into a route."""


def _read_value(encoded: str, index: int) -> Tuple[int, int]:
    result = 0
    shift = 0
    while True:
        if index >= len(encoded):
            raise DecodeError(f"Unterminated value at end of polyline (offset {index}).")
        chunk = ord(encoded[index]) - _OFFSET
        if not 0 <= chunk <= 0x3F:
            raise DecodeError(f"Invalid polyline character {encoded[index]!r} at offset {index}.")
        index += 1
        result |= (chunk & _VALUE_MASK) << shift
        shift += _CHUNK_BITS
        if chunk < _CONTINUATION:
            break
    delta = ~(result >> 1) if result & 1 else result >> 1
    return delta, index


def decode_coordinates(encoded: str) -> List[Coordinate]:
    """Decode ``encoded`` into a list of coordinates without building a route."""

    coordinates: List[Coordinate] = []
    index = 0
    lat = 0
    lon = 0
    while index < len(encoded):
        dlat, index = _read_value(encoded, index)
        if index >= len(encoded):
            raise DecodeError("Polyline ends with a latitude that has no longitude.")
        dlon, index = _read_value(encoded, index)
        lat += dlat
        lon += dlon
        coordinates.append(Coordinate(lat / PRECISION, lon / PRECISION))
    return coordinates


def decode(encoded: str, key: str = "") -> Route:
    """Decode a polyline string into a :class:`Route`.

    Latitude/longitude deltas are accumulated and scaled by 1e-5. A
    :class:`DecodeError` is raised for malformed input and for strings that
    contain no points at all.
    """

    coordinates = decode_coordinates(encoded)
    if not coordinates:
        raise DecodeError("Polyline does not contain any points.")
    return Route(key=key, points=tuple(coordinates))


def _encode_value(value: int) -> str:
    value = ~(value << 1) if value < 0 else value << 1
    chunks = []
    while value >= _CONTINUATION:
        chunks.append(chr((_CONTINUATION | (value & _VALUE_MASK)) + _OFFSET))
        value >>= _CHUNK_BITS
    chunks.append(chr(value + _OFFSET))
    return "".join(chunks)


def encode(coordinates: Iterable[Tuple[float, float]]) -> str:
    """Encode ``(lat, lon)`` pairs using the same scheme :func:`decode` reads."""

    out: List[str] = []
    last_lat = 0
    last_lon = 0
    for lat, lon in coordinates:
        ilat = int(round(lat * PRECISION))
        ilon = int(round(lon * PRECISION))
        out.append(_encode_value(ilat - last_lat))
        out.append(_encode_value(ilon - last_lon))
        last_lat = ilat
        last_lon = ilon
    return "".join(out)
