"""In-memory key-value surface.

Uses sortedcontainers.SortedDict to keep keys in byte order, so the range
bounds produced by subspaces can be checked against a real ordered scan.
Versionstamped mutations are patched at commit the way the store does it.
"""

from __future__ import annotations

import logging
import struct
import threading
from typing import TYPE_CHECKING

from sortedcontainers import SortedDict

from ..core.config import TupleLayerConfig
from ..core.errors import VersionstampPackingError
from .versionstamp import TRANSACTION_VERSION_SIZE, Versionstamp

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ..core.types import Key, TransactionVersion, Value

logger = logging.getLogger(__name__)

_OFFSET_FORMATS = {2: "<H", 4: "<I"}


def apply_versionstamp(param: bytes, transaction_version: TransactionVersion, offset_size: int = 4) -> bytes:
    """Write a transaction version into a packed key or value.

    Reads the little-endian offset trailer, overwrites the 10 bytes at that
    offset with ``transaction_version`` and returns the body without the
    trailer.

    Raises:
        VersionstampPackingError: If the trailer is missing or points outside the body
        InvalidVersionstampError: If transaction_version is not 10 bytes
    """
    if offset_size not in _OFFSET_FORMATS:
        raise ValueError(f"Offset size must be 2 or 4 bytes, got {offset_size}")
    tv = Versionstamp.complete(transaction_version).transaction_version

    param = bytes(param)
    if len(param) < offset_size:
        raise VersionstampPackingError(f"Packed bytes too short for a {offset_size}-byte offset trailer")

    body = bytearray(param[:-offset_size])
    (offset,) = struct.unpack(_OFFSET_FORMATS[offset_size], param[-offset_size:])
    if offset + TRANSACTION_VERSION_SIZE > len(body):
        raise VersionstampPackingError(
            f"Versionstamp offset {offset} out of bounds for {len(body)}-byte body"
        )

    body[offset:offset + TRANSACTION_VERSION_SIZE] = tv
    return bytes(body)


class SimpleKeyspace:
    """Sorted in-memory key-value store honoring the tuple layer byte contracts.

    Args:
        config: Selects the versionstamp offset trailer width

    Invariants:
        - Keys are always iterated in byte order
        - Versionstamped writes are invisible until commit()
        - Every committed versionstamped write in one commit gets the same
          transaction version
    """

    def __init__(self, config: TupleLayerConfig | None = None):
        self.config = config or TupleLayerConfig()
        self._data: SortedDict = SortedDict()
        self._pending: list[tuple[bool, Key, Value]] = []
        self._lock = threading.Lock()

    def get(self, key: Key) -> Value | None:
        with self._lock:
            return self._data.get(bytes(key))

    def set(self, key: Key, value: Value) -> None:
        with self._lock:
            self._data[bytes(key)] = bytes(value)

    def clear(self, key: Key) -> None:
        with self._lock:
            self._data.pop(bytes(key), None)

    def clear_range(self, begin: Key, end: Key) -> None:
        """Remove every key in [begin, end)."""
        with self._lock:
            doomed = list(self._data.irange(bytes(begin), bytes(end), inclusive=(True, False)))
            for key in doomed:
                del self._data[key]
        logger.debug(f"Cleared {len(doomed)} keys in [{bytes(begin).hex()}, {bytes(end).hex()})")

    def get_range(self, begin: Key, end: Key, limit: int = 0) -> Iterator[tuple[Key, Value]]:
        """Iterate key-value pairs in [begin, end) in key order.

        The pairs are a snapshot taken when the method is called.

        Args:
            begin: Start key (inclusive)
            end: End key (exclusive)
            limit: Maximum pairs to return, 0 for no limit
        """
        with self._lock:
            keys = list(self._data.irange(bytes(begin), bytes(end), inclusive=(True, False)))
            if limit > 0:
                keys = keys[:limit]
            items = [(k, self._data[k]) for k in keys]
        return iter(items)

    def set_versionstamped_key(self, key: Key, value: Value) -> None:
        with self._lock:
            self._pending.append((True, bytes(key), bytes(value)))

    def set_versionstamped_value(self, key: Key, value: Value) -> None:
        with self._lock:
            self._pending.append((False, bytes(key), bytes(value)))

    def commit(self, transaction_version: TransactionVersion) -> None:
        """Patch and store every queued versionstamped write.

        Nothing is stored if any queued write has a bad trailer.

        Raises:
            VersionstampPackingError: If a queued key or value has a bad trailer
        """
        offset_size = self.config.versionstamp_offset_size
        with self._lock:
            patched = []
            for stamp_key, key, value in self._pending:
                if stamp_key:
                    patched.append((apply_versionstamp(key, transaction_version, offset_size), value))
                else:
                    patched.append((key, apply_versionstamp(value, transaction_version, offset_size)))
            for key, value in patched:
                self._data[key] = value
            self._pending.clear()
        logger.debug(f"Committed {len(patched)} versionstamped writes at {bytes(transaction_version).hex()}")

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
