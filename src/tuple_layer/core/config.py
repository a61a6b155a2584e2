"""Configuration for the tuple layer.

Holds the client API version that selects the versionstamp offset format.
"""

from __future__ import annotations

from dataclasses import dataclass

# First API version that uses a 4-byte versionstamp offset trailer
OFFSET_SIZE_CHANGE_VERSION = 520


@dataclass
class TupleLayerConfig:
    """Configuration parameters for tuple packing.

    Attributes:
        api_version: Client API version the packed keys are destined for
    """

    api_version: int = 730

    @property
    def versionstamp_offset_size(self) -> int:
        """Width in bytes of the little-endian offset trailer."""
        return 4 if self.api_version >= OFFSET_SIZE_CHANGE_VERSION else 2

    @property
    def max_versionstamp_offset(self) -> int:
        """Largest placeholder offset the trailer can carry."""
        return (1 << (8 * self.versionstamp_offset_size)) - 1
