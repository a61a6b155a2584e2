"""Common type definitions for the tuple layer.

Defines fundamental types used across all components.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from .errors import ValueOutOfRangeError

# Core primitive types
Key = bytes
Value = bytes
KeyRange = tuple[Key, Key]
TransactionVersion = bytes


@dataclass(frozen=True, order=True)
class SingleFloat:
    """32-bit IEEE-754 float element.

    Python floats are encoded as 64-bit doubles; wrap a value in SingleFloat
    to encode it with the 4-byte float type code. The value is rounded to
    single precision on construction so it survives a round trip unchanged.
    """

    value: float

    def __post_init__(self):
        if not isinstance(self.value, (int, float)) or isinstance(self.value, bool):
            raise TypeError(f"SingleFloat requires a number, got {type(self.value).__name__}")
        try:
            rounded = struct.unpack(">f", struct.pack(">f", self.value))[0]
        except OverflowError as e:
            raise ValueOutOfRangeError(f"{self.value!r} does not fit a 32-bit float") from e
        object.__setattr__(self, "value", rounded)

    def __float__(self) -> float:
        return self.value

    def __repr__(self) -> str:
        return f"SingleFloat({self.value!r})"
