"""Unit tests for the tuple element codec."""

import math
import random
import struct
from uuid import UUID

import pytest

from tuple_layer.components import codec
from tuple_layer.components.codec import TypeCode, decode, decode_element, encode_element
from tuple_layer.components.versionstamp import Versionstamp
from tuple_layer.core.errors import InvalidEncodingError, UnsupportedTypeError, ValueOutOfRangeError
from tuple_layer.core.types import SingleFloat

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1


def roundtrip(value):
    encoded = encode_element(value)
    decoded, end = decode_element(encoded)
    assert end == len(encoded)
    return decoded


# ---------------------------------------------------
# Scalars
# ---------------------------------------------------


def test_null():
    """Test that None is a single type code and consumes nothing else."""
    assert encode_element(None) == b"\x00"
    assert decode_element(b"\x00\x15\x01") == (None, 1)


def test_bytes_and_strings():
    """Test byte string and text encodings."""
    assert encode_element(b"foo") == b"\x01foo\x00"
    assert encode_element("hello") == b"\x02hello\x00"
    assert encode_element("") == b"\x02\x00"
    assert roundtrip(b"") == b""
    assert roundtrip("héllo wörld ✓") == "héllo wörld ✓"


def test_embedded_nulls_are_escaped():
    """Test that 0x00 inside data is written as 0x00 0xFF."""
    assert encode_element(b"foo\x00bar") == b"\x01foo\x00\xffbar\x00"
    assert encode_element("a\x00") == b"\x02a\x00\xff\x00"
    assert roundtrip(b"\x00\x00\xff\x00") == b"\x00\x00\xff\x00"
    assert roundtrip("nul\x00inside") == "nul\x00inside"


def test_booleans():
    """Test that booleans are payload-free type codes."""
    assert encode_element(True) == b"\x27"
    assert encode_element(False) == b"\x26"
    assert roundtrip(True) is True
    assert roundtrip(False) is False


@pytest.mark.parametrize(
    "value, expected",
    [
        (0, b"\x14"),
        (1, b"\x15\x01"),
        (255, b"\x15\xff"),
        (256, b"\x16\x01\x00"),
        (-1, b"\x13\xfe"),
        (-42, b"\x13\xd5"),
        (-255, b"\x13\x00"),
        (-256, b"\x12\xfe\xff"),
        (INT64_MAX, b"\x1c\x7f" + b"\xff" * 7),
        (INT64_MIN, b"\x0c\x7f" + b"\xff" * 7),
        ((1 << 64) - 1, b"\x1c" + b"\xff" * 8),
    ],
)
def test_integer_encoding(value, expected):
    """Test integer type codes and magnitude bytes."""
    assert encode_element(value) == expected
    assert roundtrip(value) == value


@pytest.mark.parametrize(
    "value",
    [-89_034_333_444, -(1 << 55) - 34_897_432, -(1 << 60) - 34_897_432, -2_034_333_444, 123_456, 999_999],
)
def test_integer_roundtrip(value):
    """Test round trips across byte lengths."""
    assert roundtrip(value) == value


@pytest.mark.parametrize("value", [1 << 64, -(1 << 64), 1 << 100])
def test_integer_too_large(value):
    """Test that magnitudes beyond 8 bytes are rejected."""
    with pytest.raises(ValueOutOfRangeError):
        encode_element(value)


def test_doubles():
    """Test the order-preserving double transform."""
    assert encode_element(1.0) == b"\x21\xbf\xf0" + b"\x00" * 6
    assert encode_element(-1.0) == b"\x21\x40\x0f" + b"\xff" * 6
    for value in [0.0, -0.0, 3.14159, -2.5e-300, 1e308, math.inf, -math.inf]:
        assert roundtrip(value) == value
    assert math.copysign(1.0, roundtrip(-0.0)) == -1.0
    assert math.isnan(roundtrip(math.nan))


def test_single_floats():
    """Test 32-bit floats use their own type code and 4 bytes."""
    encoded = encode_element(SingleFloat(1.5))
    assert encoded == b"\x20\xbf\xc0\x00\x00"
    assert len(encode_element(SingleFloat(3.14))) == 5

    decoded = roundtrip(SingleFloat(-3.14))
    assert isinstance(decoded, SingleFloat)
    assert decoded == SingleFloat(-3.14)


def test_uuid():
    """Test UUIDs are the type code followed by 16 raw bytes."""
    value = UUID("12345678-1234-5678-1234-567812345678")
    encoded = encode_element(value)
    assert encoded == b"\x30" + value.bytes
    assert len(encoded) == 17
    assert roundtrip(value) == value


def test_versionstamp_element():
    """Test versionstamps are 0x33 followed by their 12-byte form."""
    vs = Versionstamp.complete(bytes(range(1, 11)), 7)
    assert encode_element(vs) == b"\x33" + bytes(range(1, 11)) + b"\x00\x07"
    assert roundtrip(vs) == vs
    assert roundtrip(Versionstamp.incomplete(3)) == Versionstamp.incomplete(3)


# ---------------------------------------------------
# Nested tuples
# ---------------------------------------------------


def test_nested_tuple_escapes_null():
    """Test that a null inside a nested tuple is written 0x00 0xFF."""
    encoded = encode_element(("a", None, 1))
    assert encoded == b"\x05\x02a\x00\x00\xff\x15\x01\x00"
    assert roundtrip(("a", None, 1)) == ("a", None, 1)


def test_deeply_nested_roundtrip():
    """Test arbitrary nesting depth."""
    value = ("top", ("middle", (None, b"\x00", ("bottom", ()))), -7)
    assert roundtrip(value) == value


def test_empty_nested_tuple():
    """Test the empty nested tuple."""
    assert encode_element(()) == b"\x05\x00"
    assert roundtrip(()) == ()


def test_lists_encode_as_nested_tuples():
    """Test lists share the nested tuple encoding."""
    assert encode_element([1, 2]) == encode_element((1, 2))


def test_decode_multiple_elements():
    """Test decoding a buffer of several top-level elements."""
    data = codec.encode(["hello", 0, "foo", None, True])
    assert decode(data) == ["hello", 0, "foo", None, True]
    assert decode(b"") == []


# ---------------------------------------------------
# Errors
# ---------------------------------------------------


def test_unsupported_type():
    """Test values outside the closed set of element kinds."""
    with pytest.raises(UnsupportedTypeError):
        encode_element({"a": 1})
    with pytest.raises(TypeError):
        encode_element(object())


@pytest.mark.parametrize(
    "data",
    [
        b"\x01abc",  # missing terminator
        b"\x02abc\x00\xff",  # only an escaped null
        b"\x21\x00\x00",  # truncated double
        b"\x20\x00",  # truncated float
        b"\x16\x01",  # truncated integer
        b"\x30" + b"\x00" * 15,  # truncated UUID
        b"\x33\x01\x02\x03",  # truncated versionstamp
        b"\x05\x02a\x00",  # unterminated nested tuple
        b"\x40",  # unknown type code
        b"\x1d\x09" + b"\x00" * 9,  # reserved big integer code
        b"\xff",
        b"\x02\xc3\x28\x00",  # invalid UTF-8
    ],
)
def test_invalid_encodings(data):
    """Test malformed buffers raise InvalidEncodingError."""
    with pytest.raises(InvalidEncodingError):
        decode(data)


def test_decode_element_past_end():
    """Test decoding at the end of the buffer."""
    with pytest.raises(InvalidEncodingError):
        decode_element(b"\x14", 1)


# ---------------------------------------------------
# Ordering
# ---------------------------------------------------


def test_integer_order_preserved_random():
    """Test byte order matches numeric order across the signed 64-bit range."""
    rng = random.Random(1234)
    values = {0, 1, -1, INT64_MIN, INT64_MAX}
    for _ in range(2000):
        bits = rng.randint(1, 63)
        values.add(rng.randint(-(1 << bits), (1 << bits) - 1))

    ordered = sorted(values)
    encoded = [encode_element(v) for v in ordered]
    assert encoded == sorted(encoded)
    assert len(set(encoded)) == len(encoded)


def test_integer_order_around_length_boundaries():
    """Test neighbours around each byte-length boundary."""
    values = []
    for n in range(1, 9):
        edge = (1 << (8 * n)) - 1
        if edge > INT64_MAX:
            edge = INT64_MAX
        values.extend([edge - 1, edge, -edge, -edge + 1])
        if edge < INT64_MAX:
            values.extend([edge + 1, -edge - 1])
    ordered = sorted(set(values))
    encoded = [encode_element(v) for v in ordered]
    assert encoded == sorted(encoded)


def test_float_order_preserved():
    """Test byte order matches float order through the sign and zero boundaries."""
    ordered = [
        -math.inf, -1e300, -1.5, -1.0, -1e-300, -0.0, 0.0,
        1e-300, 1.0, 1.5, 1e300, math.inf,
    ]
    encoded = [encode_element(v) for v in ordered]
    assert all(a < b for a, b in zip(encoded, encoded[1:]))

    rng = random.Random(99)
    samples = sorted(rng.uniform(-1e6, 1e6) for _ in range(500))
    encoded = [encode_element(v) for v in samples]
    assert encoded == sorted(encoded)


def test_single_float_order_preserved():
    """Test 32-bit float ordering."""
    ordered = [SingleFloat(v) for v in (-100.0, -1.0, -0.5, 0.0, 0.25, 1.0, 1e30)]
    encoded = [encode_element(v) for v in ordered]
    assert all(a < b for a, b in zip(encoded, encoded[1:]))


def test_bytes_and_string_order_preserved():
    """Test lexicographic order of byte strings, including embedded nulls."""
    ordered = [b"", b"\x00", b"\x00\x00", b"\x00\x01", b"\x01", b"a", b"a\x00", b"ab", b"\xff"]
    encoded = [encode_element(v) for v in ordered]
    assert all(a < b for a, b in zip(encoded, encoded[1:]))

    words = ["", "a", "a\x00", "aa", "b", "é"]
    encoded = [encode_element(v) for v in words]
    assert all(a < b for a, b in zip(encoded, encoded[1:]))


def test_cross_type_order():
    """Test the ordering between element kinds follows the type codes."""
    ordered = [
        None,
        b"bytes",
        "string",
        ("nested",),
        -5,
        0,
        5,
        SingleFloat(1.0),
        1.0,
        False,
        True,
        UUID(int=0),
        Versionstamp.complete(b"\x00" * 10),
    ]
    encoded = [encode_element(v) for v in ordered]
    assert all(a < b for a, b in zip(encoded, encoded[1:]))
    assert max(TypeCode) == TypeCode.VERSIONSTAMP == 0x33


def test_double_bit_pattern_matches_ieee():
    """Test positive doubles only have their sign bit flipped."""
    raw = struct.pack(">d", 2.0)
    encoded = encode_element(2.0)
    assert encoded[1] == raw[0] ^ 0x80
    assert encoded[2:] == raw[1:]
