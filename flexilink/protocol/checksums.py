"""
Single-byte checksum algorithms.

Three algorithms are in use across firmware revisions and deployments:
- Two's complement: negate the 8-bit sum so that payload + checksum == 0
- XOR: exclusive-or of all covered bytes
- Additive: plain 8-bit sum (seen in some VTR transport tables)

Which one a device accepts is not documented reliably, so the algorithm is
chosen per device profile rather than fixed here.
"""

from __future__ import annotations

from enum import Enum
from functools import reduce
from operator import xor


class ChecksumAlgorithm(str, Enum):
    """Checksum algorithm selected by a device profile."""

    TWOS_COMPLEMENT = "twos_complement"
    XOR = "xor"
    ADDITIVE = "additive"

    def compute(self, data: bytes | bytearray | memoryview) -> int:
        """Compute the checksum of ``data`` with this algorithm."""
        return calculate_checksum(data, self)


def additive_checksum(data: bytes | bytearray | memoryview) -> int:
    """
    Calculate 8-bit additive checksum.

    Example:
        >>> additive_checksum(b"\\x20\\x20")
        0x40
    """
    return sum(data) & 0xFF


def twos_complement_checksum(data: bytes | bytearray | memoryview) -> int:
    """
    Calculate the two's-complement checksum.

    Algorithm: sum all bytes, keep the lower 8 bits, negate modulo 256.

    Example:
        >>> twos_complement_checksum(bytes([0x06, 0x01, 0x01, 0x00, 0x61, 0x10, 0x80]))
        0x07
    """
    return (0x100 - (sum(data) & 0xFF)) & 0xFF


def xor_checksum(data: bytes | bytearray | memoryview) -> int:
    """
    Calculate the XOR checksum.

    Example:
        >>> xor_checksum(b"\\x78\\x20")
        0x58
    """
    return reduce(xor, data, 0)


_ALGORITHMS = {
    ChecksumAlgorithm.TWOS_COMPLEMENT: twos_complement_checksum,
    ChecksumAlgorithm.XOR: xor_checksum,
    ChecksumAlgorithm.ADDITIVE: additive_checksum,
}


def calculate_checksum(
    data: bytes | bytearray | memoryview,
    algorithm: ChecksumAlgorithm = ChecksumAlgorithm.TWOS_COMPLEMENT,
) -> int:
    """
    Calculate a checksum over ``data``.

    Args:
        data: Covered bytes (excludes STX and the checksum byte itself).
        algorithm: Algorithm to apply.

    Returns:
        Checksum value (0-255).
    """
    return _ALGORITHMS[ChecksumAlgorithm(algorithm)](data)


def append_checksum(
    data: bytes | bytearray,
    algorithm: ChecksumAlgorithm = ChecksumAlgorithm.XOR,
) -> bytes:
    """
    Calculate the checksum of ``data`` and append it as one byte.

    Example:
        >>> append_checksum(b"\\x20\\x01")
        b' \\x01!'
    """
    return bytes(data) + bytes([calculate_checksum(data, algorithm)])


def validate_checksum(
    packet: bytes | bytearray | memoryview,
    checksum_offset: int,
    algorithm: ChecksumAlgorithm,
    *,
    start: int = 0,
) -> bool:
    """
    Validate that the checksum byte matches the covered bytes.

    Args:
        packet: Complete packet including the checksum byte.
        checksum_offset: Offset of the checksum byte.
        algorithm: Algorithm the packet was built with.
        start: First covered byte.

    Returns:
        True if the checksum is valid, False otherwise (including when the
        packet is too short to hold a checksum at ``checksum_offset``).
    """
    if len(packet) <= checksum_offset or start > checksum_offset:
        return False
    expected = calculate_checksum(packet[start:checksum_offset], algorithm)
    return expected == packet[checksum_offset]
