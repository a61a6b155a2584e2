"""Tuple Layer - order-preserving key encoding, versionstamps and subspaces."""

from .components.codec import TypeCode
from .components.keyspace import SimpleKeyspace, apply_versionstamp
from .components.strinc import strinc
from .components.subspace import Subspace
from .components.tuple import Tuple, pack, pack_with_versionstamp, unpack
from .components.versionstamp import Versionstamp
from .core.config import TupleLayerConfig
from .core.errors import (
    TupleLayerError,
    InvalidEncodingError,
    VersionstampPackingError,
    InvalidDecodingError,
    CannotIncrementKeyError,
    UnsupportedTypeError,
    ValueOutOfRangeError,
    InvalidVersionstampError,
)
from .core.types import Key, Value, KeyRange, SingleFloat
from .interfaces.keyspace import KeyValueSurface

__all__ = [
    "TypeCode",
    "KeyValueSurface",
    "SimpleKeyspace",
    "apply_versionstamp",
    "strinc",
    "Subspace",
    "Tuple",
    "pack",
    "pack_with_versionstamp",
    "unpack",
    "Versionstamp",
    "TupleLayerConfig",
    "TupleLayerError",
    "InvalidEncodingError",
    "VersionstampPackingError",
    "InvalidDecodingError",
    "CannotIncrementKeyError",
    "UnsupportedTypeError",
    "ValueOutOfRangeError",
    "InvalidVersionstampError",
    "Key",
    "Value",
    "KeyRange",
    "SingleFloat",
]
