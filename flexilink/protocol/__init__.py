"""
Protocol layer for cart-robot and VTR 9-pin communication.

This package contains the low-level protocol handling:
- Command codes and protocol constants (``constants``)
- Checksum algorithms (``checksums``)
- Cart and 9-pin packet encoding (``packets``)
- Response classification (``classifier``)
- Multi-format timecode decoding (``timecode``)

Only the constants and checksums are re-exported here. The codec,
classifier and timecode modules build on ``flexilink.models``, which itself
depends on this package, so import them from their submodules (or from the
top-level ``flexilink`` package).
"""

from flexilink.protocol.checksums import (
    ChecksumAlgorithm,
    additive_checksum,
    append_checksum,
    calculate_checksum,
    twos_complement_checksum,
    validate_checksum,
    xor_checksum,
)
from flexilink.protocol.constants import (
    NO_TIMECODE_PREFIX,
    CartCommand,
    JogDirection,
    NinePinCommand,
    ProtocolConstants,
    SenseRequest,
)

__all__ = [
    # Constants
    "CartCommand",
    "NinePinCommand",
    "JogDirection",
    "SenseRequest",
    "ProtocolConstants",
    "NO_TIMECODE_PREFIX",
    # Checksums
    "ChecksumAlgorithm",
    "additive_checksum",
    "twos_complement_checksum",
    "xor_checksum",
    "calculate_checksum",
    "validate_checksum",
    "append_checksum",
]
