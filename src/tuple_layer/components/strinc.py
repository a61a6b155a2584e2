"""String increment (strinc) for prefix range bounds."""

from __future__ import annotations

from ..core.errors import CannotIncrementKeyError
from ..core.types import Key


def strinc(key: Key) -> Key:
    """Return the first key that sorts after every key prefixed by ``key``.

    Trailing 0xFF bytes are stripped and the last remaining byte is
    incremented, so the result is never longer than the input.

    Raises:
        CannotIncrementKeyError: If ``key`` is empty or consists only of 0xFF
    """
    stripped = bytes(key).rstrip(b"\xff")
    if not stripped:
        raise CannotIncrementKeyError(
            f"Key must contain at least one byte not equal to 0xFF: {bytes(key)!r}"
        )
    return stripped[:-1] + bytes([stripped[-1] + 1])
