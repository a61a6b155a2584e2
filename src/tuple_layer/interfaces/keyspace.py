"""Protocol definition for the raw key-value surface.

The tuple layer never performs I/O. Whatever stores the packed keys (a
transaction against the remote store, or an in-memory stand-in) only has to
offer this byte-level surface.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ..core.types import Key, TransactionVersion, Value


@runtime_checkable
class KeyValueSurface(Protocol):
    """Byte-array submission and retrieval of keys and values."""

    def get(self, key: Key) -> Value | None:
        """Return the value stored at key, or None."""
        ...

    def set(self, key: Key, value: Value) -> None:
        """Store value at key."""
        ...

    def clear(self, key: Key) -> None:
        """Remove key if present."""
        ...

    def clear_range(self, begin: Key, end: Key) -> None:
        """Remove every key in [begin, end)."""
        ...

    def get_range(self, begin: Key, end: Key, limit: int = 0) -> Iterator[tuple[Key, Value]]:
        """Iterate key-value pairs in [begin, end) in key order.

        A limit of 0 means no limit.
        """
        ...

    def set_versionstamped_key(self, key: Key, value: Value) -> None:
        """Queue a write whose key carries a placeholder offset trailer.

        Invariants:
            - The placeholder is replaced by the committing transaction version
            - The trailer is removed before the key is stored
        """
        ...

    def set_versionstamped_value(self, key: Key, value: Value) -> None:
        """Queue a write whose value carries a placeholder offset trailer."""
        ...

    def commit(self, transaction_version: TransactionVersion) -> None:
        """Apply queued versionstamped writes with the given transaction version."""
        ...
