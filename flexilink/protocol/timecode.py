"""
Timecode decoding for VTR time-sense answers.

The packing of timecode in a VTR answer differs across models and firmware
revisions, so the decoder tries an ordered list of candidate formats and
returns the first decode whose components are all in range:

1. PACKED_24: 3 bytes big-endian, frames in bits 0-5, seconds 6-11,
   minutes 12-17, hours 18-22
2. BCD: 4 bytes, one two-digit BCD value each (HH MM SS FF)
3. BINARY: 4 bytes used as plain integers (HH MM SS FF)
4. PACKED_24_REVERSED: as PACKED_24 with the 3 bytes reversed

Answers that are all zero, all 0xFF, or start with 0x91 carry no timecode
and decode to None without trying any candidate. Out-of-range components
reject a candidate; values are never clamped.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import Final

from flexilink.models.records import DecodedTimecode
from flexilink.protocol.constants import NO_TIMECODE_PREFIX

logger = logging.getLogger(__name__)

DecodeFunction = Callable[[bytes], "DecodedTimecode | None"]


class TimecodeFormat(str, Enum):
    """Known timecode byte layouts, in detection order."""

    PACKED_24 = "packed_24"
    BCD = "bcd"
    BINARY = "binary"
    PACKED_24_REVERSED = "packed_24_reversed"


def _unpack_24(b0: int, b1: int, b2: int) -> DecodedTimecode | None:
    packed = (b0 << 16) | (b1 << 8) | b2
    return DecodedTimecode.from_components(
        hours=(packed >> 18) & 0x1F,
        minutes=(packed >> 12) & 0x3F,
        seconds=(packed >> 6) & 0x3F,
        frames=packed & 0x3F,
    )


def _bcd_value(byte: int) -> int | None:
    high, low = byte >> 4, byte & 0x0F
    if high > 9 or low > 9:
        return None
    return high * 10 + low


def decode_packed(raw: bytes) -> DecodedTimecode | None:
    """
    Decode a 24-bit packed timecode from the first 3 bytes.

    Example:
        >>> str(decode_packed(bytes([0x32, 0x2E, 0x07])))
        '12:34:56:07'
    """
    if len(raw) < 3:
        return None
    return _unpack_24(raw[0], raw[1], raw[2])


def decode_bcd(raw: bytes) -> DecodedTimecode | None:
    """
    Decode 4 BCD bytes (HH MM SS FF).

    A nibble above 9 is not BCD and rejects the candidate.
    """
    if len(raw) < 4:
        return None
    values = [_bcd_value(byte) for byte in raw[:4]]
    if None in values:
        return None
    return DecodedTimecode.from_components(*values)


def decode_binary(raw: bytes) -> DecodedTimecode | None:
    """Decode 4 plain binary bytes (HH MM SS FF)."""
    if len(raw) < 4:
        return None
    return DecodedTimecode.from_components(raw[0], raw[1], raw[2], raw[3])


def decode_packed_reversed(raw: bytes) -> DecodedTimecode | None:
    """Decode a 24-bit packed timecode stored least significant byte first."""
    if len(raw) < 3:
        return None
    return _unpack_24(raw[2], raw[1], raw[0])


DEFAULT_CANDIDATES: Final[tuple[tuple[TimecodeFormat, DecodeFunction], ...]] = (
    (TimecodeFormat.PACKED_24, decode_packed),
    (TimecodeFormat.BCD, decode_bcd),
    (TimecodeFormat.BINARY, decode_binary),
    (TimecodeFormat.PACKED_24_REVERSED, decode_packed_reversed),
)
"""Candidate formats in priority order."""


def carries_no_timecode(raw: bytes) -> bool:
    """Check for answers that never hold a timecode (empty, 0x00.., 0xFF.., 0x91..)."""
    if not raw:
        return True
    if raw[0] == NO_TIMECODE_PREFIX:
        return True
    return all(byte == 0x00 for byte in raw) or all(byte == 0xFF for byte in raw)


class TimecodeDecoder:
    """
    Ordered multi-format timecode decoder.

    Example:
        >>> decoder = TimecodeDecoder()
        >>> decoder.decode_with_format(bytes([0x32, 0x2E, 0x07]))
        (<TimecodeFormat.PACKED_24: 'packed_24'>, DecodedTimecode(12:34:56:07))
    """

    __slots__ = ("_candidates",)

    def __init__(
        self,
        candidates: tuple[tuple[TimecodeFormat, DecodeFunction], ...] = DEFAULT_CANDIDATES,
    ) -> None:
        if not candidates:
            raise ValueError("At least one timecode candidate is required")
        self._candidates = tuple(candidates)

    @property
    def formats(self) -> tuple[TimecodeFormat, ...]:
        return tuple(fmt for fmt, _ in self._candidates)

    def decode_with_format(
        self, raw: bytes | bytearray
    ) -> tuple[TimecodeFormat, DecodedTimecode] | None:
        """
        Decode ``raw`` and report which format matched.

        Returns:
            (format, timecode) for the first in-range candidate, or None.
        """
        data = bytes(raw)
        if carries_no_timecode(data):
            return None
        for fmt, decode in self._candidates:
            timecode = decode(data)
            if timecode is not None:
                logger.debug("Decoded %s as %s: %s", data.hex(" "), fmt.value, timecode)
                return fmt, timecode
        logger.debug("No timecode format matched %s", data.hex(" "))
        return None

    def decode(self, raw: bytes | bytearray) -> DecodedTimecode | None:
        """Decode ``raw`` with the first in-range candidate, or return None."""
        result = self.decode_with_format(raw)
        return result[1] if result is not None else None


DEFAULT_TIMECODE_DECODER: Final[TimecodeDecoder] = TimecodeDecoder()


def decode_timecode(raw: bytes | bytearray) -> DecodedTimecode | None:
    """Decode ``raw`` with the default candidate order."""
    return DEFAULT_TIMECODE_DECODER.decode(raw)
