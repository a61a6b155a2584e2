"""Subspace: a keyspace partition identified by a common byte prefix.

Provides packing of tuples under the prefix, unpacking back to tuples, and
range bounds for scanning everything in the subspace.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from ..core.errors import InvalidDecodingError
from ..core.types import Key, KeyRange
from .strinc import strinc
from .tuple import DEFAULT_OFFSET_SIZE, Tuple

logger = logging.getLogger(__name__)


class Subspace:
    """Key prefix plus tuple-based key construction.

    Args:
        prefix_tuple: Elements tuple-encoded after raw_prefix
        raw_prefix: Bytes placed verbatim at the start of the prefix

    Raw prefixes carry no guarantee about the byte that follows them. A raw
    prefix ending in 0xFF makes range() miss keys; use prefix_range() for
    those. Prefixes built from tuples never have 0xFF right after them
    because no type code is 0xFF.

    Invariants:
        - Every key packed by this subspace starts with prefix
        - Immutable; nested subspaces are new objects
    """

    __slots__ = ("_prefix",)

    def __init__(self, prefix_tuple: Iterable[Any] = (), raw_prefix: bytes = b""):
        if isinstance(prefix_tuple, (bytes, bytearray, memoryview, str)):
            raise TypeError(
                f"prefix_tuple must be a sequence of elements, got {type(prefix_tuple).__name__}; "
                "use Subspace.from_raw() for raw bytes or Subspace.from_root() for a name"
            )
        self._prefix = bytes(raw_prefix) + Tuple.from_iterable(prefix_tuple).encode()

    @classmethod
    def from_raw(cls, prefix: bytes) -> Subspace:
        """Create a subspace over a raw binary prefix."""
        return cls(raw_prefix=prefix)

    @classmethod
    def from_root(cls, name: str) -> Subspace:
        """Create a subspace whose prefix is the tuple encoding of ``name``."""
        return cls((name,))

    @property
    def prefix(self) -> Key:
        return self._prefix

    def key(self) -> Key:
        return self._prefix

    def subspace(self, *elements: Any) -> Subspace:
        """Return a nested subspace whose prefix appends the encoded elements."""
        child = Subspace(elements, self._prefix)
        logger.debug(f"Created subspace {child.prefix.hex()} under {self._prefix.hex()}")
        return child

    def __getitem__(self, element: Any) -> Subspace:
        return self.subspace(element)

    def pack(self, values: Iterable[Any] = ()) -> Key:
        """Return prefix followed by the encoded tuple."""
        return self._prefix + Tuple.from_iterable(values).encode()

    def pack_with_versionstamp(self, values: Iterable[Any], offset_size: int = DEFAULT_OFFSET_SIZE) -> Key:
        """Pack a tuple holding one incomplete versionstamp under this prefix.

        The trailer offset accounts for the prefix length.
        """
        return Tuple.from_iterable(values).pack_with_versionstamp(self._prefix, offset_size)

    def unpack(self, key: bytes) -> Tuple:
        """Strip the prefix from ``key`` and decode the remainder.

        Raises:
            InvalidDecodingError: If key does not start with the prefix
            InvalidEncodingError: If the remainder is not a valid tuple
        """
        key = bytes(key)
        if not key.startswith(self._prefix):
            raise InvalidDecodingError(
                f"Key {key.hex()} does not match subspace prefix {self._prefix.hex()}"
            )
        return Tuple.decode(key[len(self._prefix):])

    def contains(self, key: bytes) -> bool:
        return bytes(key).startswith(self._prefix)

    def __contains__(self, key: bytes) -> bool:
        return self.contains(key)

    def range(self, values: Iterable[Any] = ()) -> KeyRange:
        """Return [begin, end) for tuple-encoded keys under prefix + values.

        begin is prefix + 0x00 and end is prefix + 0xFF, so the bare prefix is
        not included. This matches the other client bindings and is exact for
        tuple-encoded keys. For a raw prefix ending in 0xFF, keys such as
        prefix + b"\\xff\\x00" sort after end and are missed.
        """
        packed = self.pack(values)
        if packed and packed[-1] == 0xFF:
            logger.warning(
                f"range() on prefix {packed.hex()} ending in 0xFF misses keys; use prefix_range()"
            )
        return packed + b"\x00", packed + b"\xff"

    def range_between(self, start: Iterable[Any], end: Iterable[Any]) -> KeyRange:
        """Return [pack(start), pack(end)) for scanning between two tuples."""
        return self.pack(start), self.pack(end)

    def prefix_range(self) -> KeyRange:
        """Return [prefix, strinc(prefix)) covering every key with this prefix.

        Includes the bare prefix and is exact for any trailing bytes.

        Raises:
            CannotIncrementKeyError: If prefix is empty or all 0xFF
        """
        return self._prefix, strinc(self._prefix)

    def __eq__(self, other):
        if not isinstance(other, Subspace):
            return NotImplemented
        return self._prefix == other._prefix

    def __hash__(self):
        return hash(self._prefix)

    def __repr__(self) -> str:
        return f"Subspace(prefix={self._prefix.hex()})"
