"""Order-preserving tuple element codec.

Every element starts with a type code byte. Codes are ordered so that the
byte-wise order of encoded elements matches the natural order of the values:
nulls first, then byte strings and text, nested tuples, integers, floats,
booleans, UUIDs and versionstamps last.
"""

from __future__ import annotations

import struct
from collections.abc import Iterable
from enum import IntEnum
from typing import Any
from uuid import UUID

from ..core.errors import InvalidEncodingError, UnsupportedTypeError, ValueOutOfRangeError
from ..core.types import SingleFloat
from .versionstamp import VERSIONSTAMP_SIZE, Versionstamp

# Integers carry at most 8 magnitude bytes; codes 0x0B and 0x1D are reserved
# for larger magnitudes and are not produced or accepted here.
MAX_INT_BYTES = 8

# Escape for 0x00 inside byte strings and for nulls inside nested tuples
ESCAPED_NULL = b"\x00\xff"


class TypeCode(IntEnum):
    """Leading byte of every encoded element."""

    NULL = 0x00
    BYTES = 0x01
    STRING = 0x02
    NESTED = 0x05
    NEG_INT_8 = 0x0C
    INT_ZERO = 0x14
    POS_INT_8 = 0x1C
    FLOAT = 0x20
    DOUBLE = 0x21
    FALSE = 0x26
    TRUE = 0x27
    UUID = 0x30
    VERSIONSTAMP = 0x33


def encode_element(value: Any, nested: bool = False) -> bytes:
    """Encode a single element.

    Args:
        value: None, bool, int, float, SingleFloat, bytes, str, UUID,
            Versionstamp, or a tuple/list of those
        nested: Whether the element sits inside a nested tuple, where nulls
            are escaped so they cannot end the enclosing tuple

    Raises:
        UnsupportedTypeError: If the value has no tuple encoding
        ValueOutOfRangeError: If an integer magnitude needs more than 8 bytes
    """
    match value:
        case None:
            return ESCAPED_NULL if nested else bytes([TypeCode.NULL])
        case bool():
            return bytes([TypeCode.TRUE if value else TypeCode.FALSE])
        case int():
            return _encode_int(value)
        case SingleFloat():
            return bytes([TypeCode.FLOAT]) + _order_float(struct.pack(">f", value.value))
        case float():
            return bytes([TypeCode.DOUBLE]) + _order_float(struct.pack(">d", value))
        case bytes() | bytearray() | memoryview():
            return bytes([TypeCode.BYTES]) + bytes(value).replace(b"\x00", ESCAPED_NULL) + b"\x00"
        case str():
            return bytes([TypeCode.STRING]) + value.encode("utf-8").replace(b"\x00", ESCAPED_NULL) + b"\x00"
        case UUID():
            return bytes([TypeCode.UUID]) + value.bytes
        case Versionstamp():
            return bytes([TypeCode.VERSIONSTAMP]) + value.to_bytes()
        case tuple() | list():
            body = b"".join(encode_element(item, nested=True) for item in value)
            return bytes([TypeCode.NESTED]) + body + b"\x00"
        case _:
            raise UnsupportedTypeError(f"Unsupported tuple element type: {type(value).__name__}")


def encode(values: Iterable[Any], nested: bool = False) -> bytes:
    """Encode a sequence of elements back to back."""
    return b"".join(encode_element(v, nested=nested) for v in values)


def decode_element(data: bytes, pos: int = 0) -> tuple[Any, int]:
    """Decode the element starting at ``pos``.

    Nested tuples decode to plain Python tuples.

    Returns:
        (value, position just past the element)

    Raises:
        InvalidEncodingError: On truncated input, a missing terminator, or an
            unknown type code
    """
    if pos >= len(data):
        raise InvalidEncodingError(f"Expected an element at position {pos}, found end of input")

    code = data[pos]
    pos += 1

    if code == TypeCode.NULL:
        return None, pos

    if code == TypeCode.BYTES:
        end = _find_terminator(data, pos)
        return data[pos:end].replace(ESCAPED_NULL, b"\x00"), end + 1

    if code == TypeCode.STRING:
        end = _find_terminator(data, pos)
        raw = data[pos:end].replace(ESCAPED_NULL, b"\x00")
        try:
            return raw.decode("utf-8"), end + 1
        except UnicodeDecodeError as e:
            raise InvalidEncodingError(f"Invalid UTF-8 in string at position {pos - 1}: {e}") from e

    if code == TypeCode.NESTED:
        return _decode_nested(data, pos)

    if TypeCode.NEG_INT_8 <= code <= TypeCode.POS_INT_8:
        return _decode_int(data, pos, code)

    if code == TypeCode.FLOAT:
        raw = _take(data, pos, 4, "float")
        return SingleFloat(struct.unpack(">f", _unorder_float(raw))[0]), pos + 4

    if code == TypeCode.DOUBLE:
        raw = _take(data, pos, 8, "double")
        return struct.unpack(">d", _unorder_float(raw))[0], pos + 8

    if code == TypeCode.FALSE:
        return False, pos

    if code == TypeCode.TRUE:
        return True, pos

    if code == TypeCode.UUID:
        return UUID(bytes=_take(data, pos, 16, "UUID")), pos + 16

    if code == TypeCode.VERSIONSTAMP:
        raw = _take(data, pos, VERSIONSTAMP_SIZE, "versionstamp")
        return Versionstamp.from_bytes(raw), pos + VERSIONSTAMP_SIZE

    raise InvalidEncodingError(f"Unknown type code 0x{code:02x} at position {pos - 1}")


def decode(data: bytes) -> list[Any]:
    """Decode a buffer holding zero or more top-level elements."""
    data = bytes(data)
    values = []
    pos = 0
    while pos < len(data):
        value, pos = decode_element(data, pos)
        values.append(value)
    return values


def _encode_int(value: int) -> bytes:
    if value == 0:
        return bytes([TypeCode.INT_ZERO])

    magnitude = abs(value)
    if magnitude.bit_length() > MAX_INT_BYTES * 8:
        raise ValueOutOfRangeError(f"Integer {value} needs more than {MAX_INT_BYTES} bytes")

    length = (magnitude.bit_length() + 7) // 8
    if value > 0:
        return bytes([TypeCode.INT_ZERO + length]) + magnitude.to_bytes(length, "big")

    # Ones' complement keeps more negative values byte-wise smaller
    complement = ((1 << (8 * length)) - 1) - magnitude
    return bytes([TypeCode.INT_ZERO - length]) + complement.to_bytes(length, "big")


def _decode_int(data: bytes, pos: int, code: int) -> tuple[int, int]:
    length = abs(code - TypeCode.INT_ZERO)
    if length == 0:
        return 0, pos
    raw = _take(data, pos, length, "integer")
    magnitude = int.from_bytes(raw, "big")
    if code < TypeCode.INT_ZERO:
        return magnitude - ((1 << (8 * length)) - 1), pos + length
    return magnitude, pos + length


def _order_float(raw: bytes) -> bytes:
    # Negative: flip every bit. Positive: flip only the sign bit.
    if raw[0] & 0x80:
        return bytes(b ^ 0xFF for b in raw)
    return bytes([raw[0] ^ 0x80]) + raw[1:]


def _unorder_float(raw: bytes) -> bytes:
    if raw[0] & 0x80:
        return bytes([raw[0] ^ 0x80]) + raw[1:]
    return bytes(b ^ 0xFF for b in raw)


def _decode_nested(data: bytes, pos: int) -> tuple[tuple, int]:
    values = []
    while True:
        if pos >= len(data):
            raise InvalidEncodingError("Nested tuple is missing its terminator")
        if data[pos] == 0x00:
            if data[pos + 1:pos + 2] == b"\xff":
                values.append(None)
                pos += 2
                continue
            return tuple(values), pos + 1
        value, pos = decode_element(data, pos)
        values.append(value)


def _find_terminator(data: bytes, pos: int) -> int:
    """Return the index of the first 0x00 at or after pos that is not an escape."""
    while True:
        end = data.find(b"\x00", pos)
        if end < 0:
            raise InvalidEncodingError(f"Missing 0x00 terminator after position {pos}")
        if data[end + 1:end + 2] == b"\xff":
            pos = end + 2
            continue
        return end


def _take(data: bytes, pos: int, size: int, what: str) -> bytes:
    if pos + size > len(data):
        raise InvalidEncodingError(
            f"Truncated {what}: need {size} bytes at position {pos}, have {len(data) - pos}"
        )
    return data[pos:pos + size]
