"""Exception hierarchy for the tuple layer.

Defines all custom exceptions raised by the codec, versionstamps and subspaces.
"""

from __future__ import annotations


class TupleLayerError(Exception):
    """Base exception for all tuple layer errors."""
    pass


class InvalidEncodingError(TupleLayerError):
    """Raised when encoded bytes are malformed, truncated or use an unknown type code."""
    pass


class VersionstampPackingError(InvalidEncodingError):
    """Raised when a tuple cannot be packed for a versionstamped mutation.

    Either the tuple does not hold exactly one incomplete versionstamp, or the
    placeholder offset does not fit the trailer.
    """
    pass


class InvalidDecodingError(TupleLayerError):
    """Raised when a key does not belong to the subspace unpacking it."""
    pass


class CannotIncrementKeyError(TupleLayerError):
    """Raised when strinc is given an empty key or a key of only 0xFF bytes."""
    pass


class UnsupportedTypeError(TupleLayerError, TypeError):
    """Raised when a value has no tuple encoding."""
    pass


class ValueOutOfRangeError(TupleLayerError, ValueError):
    """Raised when a value is outside the range its encoding can represent."""
    pass


class InvalidVersionstampError(TupleLayerError, ValueError):
    """Raised when a versionstamp is built from a malformed transaction version."""
    pass
