"""Versionstamp value type.

A versionstamp is 12 bytes: a 10-byte transaction version assigned by the
store at commit time, followed by a 2-byte big-endian user version that orders
entries written within one transaction.
"""

from __future__ import annotations

import functools
import struct
from dataclasses import dataclass

from ..core.errors import InvalidEncodingError, InvalidVersionstampError, ValueOutOfRangeError
from ..core.types import TransactionVersion

TRANSACTION_VERSION_SIZE = 10
USER_VERSION_SIZE = 2
VERSIONSTAMP_SIZE = TRANSACTION_VERSION_SIZE + USER_VERSION_SIZE

# Written in place of the transaction version until the store patches it
INCOMPLETE_PLACEHOLDER = b"\xff" * TRANSACTION_VERSION_SIZE

MAX_USER_VERSION = 0xFFFF


@functools.total_ordering
@dataclass(frozen=True)
class Versionstamp:
    """Transaction versionstamp, complete or awaiting its transaction version.

    Args:
        transaction_version: 10 bytes from the store, or None while incomplete
        user_version: Ordering value within a transaction (0-65535)

    Invariants:
        - transaction_version is exactly 10 bytes when present
        - to_bytes() is always exactly 12 bytes
        - Instances are immutable; completion returns a new instance
    """

    transaction_version: TransactionVersion | None = None
    user_version: int = 0

    def __post_init__(self):
        tv = self.transaction_version
        if tv is not None:
            if not isinstance(tv, (bytes, bytearray, memoryview)):
                raise InvalidVersionstampError(
                    f"Transaction version must be bytes, got {type(tv).__name__}"
                )
            tv = bytes(tv)
            if len(tv) != TRANSACTION_VERSION_SIZE:
                raise InvalidVersionstampError(
                    f"Transaction version must be exactly {TRANSACTION_VERSION_SIZE} bytes, got {len(tv)}"
                )
            if tv == INCOMPLETE_PLACEHOLDER:
                raise InvalidVersionstampError(
                    "Transaction version of ten 0xFF bytes is reserved for incomplete versionstamps"
                )
            object.__setattr__(self, "transaction_version", tv)

        if isinstance(self.user_version, bool) or not isinstance(self.user_version, int):
            raise InvalidVersionstampError(
                f"User version must be an integer, got {type(self.user_version).__name__}"
            )
        if not 0 <= self.user_version <= MAX_USER_VERSION:
            raise ValueOutOfRangeError(
                f"User version must be between 0 and {MAX_USER_VERSION}, got {self.user_version}"
            )

    @classmethod
    def incomplete(cls, user_version: int = 0) -> Versionstamp:
        """Create a versionstamp whose transaction version the store fills in at commit."""
        return cls(None, user_version)

    @classmethod
    def complete(cls, transaction_version: TransactionVersion, user_version: int = 0) -> Versionstamp:
        """Create a finished versionstamp from a 10-byte transaction version."""
        if transaction_version is None:
            raise InvalidVersionstampError("A complete versionstamp needs a transaction version")
        return cls(transaction_version, user_version)

    @property
    def is_complete(self) -> bool:
        return self.transaction_version is not None

    def completed(self, transaction_version: TransactionVersion) -> Versionstamp:
        """Return a complete copy of this versionstamp with the committed version."""
        return Versionstamp.complete(transaction_version, self.user_version)

    def to_bytes(self) -> bytes:
        """Return the 12-byte form: transaction version (or placeholder) + big-endian user version."""
        tv = self.transaction_version if self.transaction_version is not None else INCOMPLETE_PLACEHOLDER
        return tv + struct.pack(">H", self.user_version)

    @classmethod
    def from_bytes(cls, data: bytes) -> Versionstamp:
        """Parse the 12-byte form produced by to_bytes().

        A transaction version equal to the placeholder yields an incomplete
        versionstamp.

        Raises:
            InvalidEncodingError: If data is not exactly 12 bytes
        """
        data = bytes(data)
        if len(data) != VERSIONSTAMP_SIZE:
            raise InvalidEncodingError(
                f"Versionstamp must be exactly {VERSIONSTAMP_SIZE} bytes, got {len(data)}"
            )
        tv = data[:TRANSACTION_VERSION_SIZE]
        (user_version,) = struct.unpack(">H", data[TRANSACTION_VERSION_SIZE:])
        if tv == INCOMPLETE_PLACEHOLDER:
            return cls.incomplete(user_version)
        return cls.complete(tv, user_version)

    def __lt__(self, other):
        if not isinstance(other, Versionstamp):
            return NotImplemented
        return self.to_bytes() < other.to_bytes()

    def __repr__(self) -> str:
        if self.transaction_version is None:
            return f"Versionstamp(incomplete, user={self.user_version})"
        return f"Versionstamp(tr={self.transaction_version.hex()}, user={self.user_version})"

    __str__ = __repr__
