"""Tuple container with versionstamp-aware packing.

A Tuple is an immutable, ordered sequence of encodable elements. Element
order defines both the display order and the byte layout of the packed key.
"""

from __future__ import annotations

import logging
import struct
from collections.abc import Iterable
from typing import Any

from ..core.errors import VersionstampPackingError
from ..core.types import Key
from . import codec
from .versionstamp import Versionstamp

logger = logging.getLogger(__name__)

DEFAULT_OFFSET_SIZE = 4
_OFFSET_FORMATS = {2: "<H", 4: "<I"}


class Tuple(tuple):
    """Ordered sequence of tuple layer elements.

    Nested tuples and lists are converted to Tuple and bytearrays to bytes,
    so decoded and constructed tuples compare equal. A Tuple also compares
    equal to a plain tuple holding the same elements.

    Invariants:
        - Immutable once constructed
        - At most one incomplete versionstamp is accepted by
          pack_with_versionstamp()
    """

    __slots__ = ()

    def __new__(cls, *elements: Any) -> Tuple:
        return super().__new__(cls, (_normalize(e) for e in elements))

    @classmethod
    def from_iterable(cls, elements: Iterable[Any]) -> Tuple:
        return cls(*elements)

    def encode(self) -> Key:
        """Pack the elements into an order-preserving key."""
        return codec.encode(self)

    @classmethod
    def decode(cls, data: bytes) -> Tuple:
        """Unpack a key produced by encode().

        Raises:
            InvalidEncodingError: If the bytes are not a valid tuple encoding
        """
        return cls(*codec.decode(data))

    def range(self) -> tuple[Key, Key]:
        """Return [begin, end) covering every tuple that strictly extends this one."""
        packed = self.encode()
        return packed + b"\x00", packed + b"\xff"

    def pack_with_versionstamp(self, prefix: bytes = b"", offset_size: int = DEFAULT_OFFSET_SIZE) -> Key:
        """Pack for a versionstamped-key mutation.

        The tuple is encoded after ``prefix`` and the absolute offset of the
        incomplete versionstamp's 10-byte placeholder is appended as a
        little-endian unsigned trailer, so the store can write the committed
        transaction version in place.

        Args:
            prefix: Bytes placed before the encoded tuple (e.g. a subspace prefix)
            offset_size: Trailer width, 4 bytes (API >= 520) or 2 bytes

        Raises:
            VersionstampPackingError: If the tuple holds zero or several
                incomplete versionstamps, or the offset does not fit the trailer
        """
        if offset_size not in _OFFSET_FORMATS:
            raise ValueError(f"Offset size must be 2 or 4 bytes, got {offset_size}")

        count = self.count_incomplete_versionstamps()
        if count != 1:
            raise VersionstampPackingError(
                f"Expected exactly one incomplete versionstamp, found {count}"
            )

        prefix = bytes(prefix)
        packed = bytearray(prefix)
        position = None
        for element in self:
            if position is None:
                found = _placeholder_offset(element)
                if found is not None:
                    position = len(packed) + found
            packed += codec.encode_element(element)

        max_offset = (1 << (8 * offset_size)) - 1
        if position > max_offset:
            raise VersionstampPackingError(
                f"Versionstamp offset {position} exceeds trailer maximum {max_offset}"
            )

        logger.debug(f"Packed versionstamped key, placeholder at offset {position} of {len(packed)}")
        packed += struct.pack(_OFFSET_FORMATS[offset_size], position)
        return bytes(packed)

    def has_incomplete_versionstamp(self) -> bool:
        return self.count_incomplete_versionstamps() > 0

    def count_incomplete_versionstamps(self) -> int:
        """Count incomplete versionstamps, including those inside nested tuples."""
        return sum(_count_incomplete(e) for e in self)

    def validate_for_versionstamp(self) -> None:
        """Check that pack_with_versionstamp() would accept this tuple.

        Raises:
            VersionstampPackingError: Unless exactly one incomplete versionstamp is present
        """
        count = self.count_incomplete_versionstamps()
        if count != 1:
            raise VersionstampPackingError(
                f"Expected exactly one incomplete versionstamp, found {count}"
            )

    def __getitem__(self, index):
        result = super().__getitem__(index)
        if isinstance(index, slice):
            return Tuple(*result)
        return result

    def __add__(self, other):
        if not isinstance(other, tuple):
            return NotImplemented
        return Tuple(*self, *other)

    def __radd__(self, other):
        if not isinstance(other, tuple):
            return NotImplemented
        return Tuple(*other, *self)

    def __getnewargs__(self):
        return tuple(self)

    def __repr__(self) -> str:
        return f"Tuple({', '.join(repr(e) for e in self)})"


def pack(values: Iterable[Any], prefix: bytes = b"") -> Key:
    """Encode a plain Python tuple, optionally after a raw prefix."""
    return bytes(prefix) + Tuple.from_iterable(values).encode()


def unpack(data: bytes, prefix_len: int = 0) -> Tuple:
    """Decode a key, skipping ``prefix_len`` leading bytes."""
    return Tuple.decode(data[prefix_len:])


def pack_with_versionstamp(
    values: Iterable[Any], prefix: bytes = b"", offset_size: int = DEFAULT_OFFSET_SIZE
) -> Key:
    return Tuple.from_iterable(values).pack_with_versionstamp(prefix, offset_size)


def _normalize(element: Any) -> Any:
    if isinstance(element, (tuple, list)) and not isinstance(element, Tuple):
        return Tuple(*element)
    if isinstance(element, (bytearray, memoryview)):
        return bytes(element)
    return element


def _count_incomplete(element: Any) -> int:
    if isinstance(element, Versionstamp):
        return 0 if element.is_complete else 1
    if isinstance(element, tuple):
        return sum(_count_incomplete(e) for e in element)
    return 0


def _placeholder_offset(element: Any) -> int | None:
    """Offset of the first incomplete placeholder within the element's encoding."""
    if isinstance(element, Versionstamp):
        return None if element.is_complete else 1
    if isinstance(element, tuple):
        offset = 1
        for child in element:
            found = _placeholder_offset(child)
            if found is not None:
                return offset + found
            offset += len(codec.encode_element(child, nested=True))
    return None
