"""Tuple layer core package."""

from .config import TupleLayerConfig
from .types import SingleFloat

__all__ = ["TupleLayerConfig", "SingleFloat"]
