"""
Status response parsers.

These interpret the data answers of the Immediate status commands. Neither
device family documents its status layout reliably across firmware, so the
parsers decode only the fields whose positions have been observed
consistently and keep the raw bytes alongside.

Cart status (answer to STATUS, 61/10):
- byte 5: bit 0 initialized, bit 1 emergency stop
- byte 6: bit 0 elevator moving, bit 1 carousel moving
- byte 7: elevator position
- byte 8: carousel position

Bin status (answer to BIN_STATUS, 62/bin, command byte 0x72):
- byte 5: 0x72, byte 6: echoed control
- byte 7 bit 0: cassette in bin (barcode read)
- bytes 8..: barcode, printable ASCII
- a bare ACK instead of the 0x72 answer means the bin is empty

Inventory (answer to INVENTORY, 61/30):
- bytes 5..: occupancy bitmap, bin N at byte 5 + (N-1) // 8, bit (N-1) % 8

VTR status (answer to VTR_STATUS, 61 20):
- byte 1 bit 0: cassette present
- first two bytes: transport mode signature

VTR device type (answer to VTR_DEVICE_TYPE, 00 11):
- byte 0 device id, byte 1 sub-type, byte 2 version
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Final

from pydantic import BaseModel, ConfigDict

from flexilink.exceptions import ParseError
from flexilink.models.records import Byte, ResponseFrame, ResponseKind
from flexilink.protocol.constants import CartCommand, ProtocolConstants


def _raw_bytes(data: ResponseFrame | bytes | bytearray) -> bytes:
    if isinstance(data, ResponseFrame):
        return data.raw
    return bytes(data)


def _bit(value: int, mask: int) -> bool:
    return (value & mask) != 0


class CartStatus(BaseModel):
    """
    Decoded cart-robot status.

    Positions are 0 when the answer is too short to carry them.
    """

    model_config = ConfigDict(frozen=True)

    initialized: bool
    emergency_stop: bool
    elevator_moving: bool
    carousel_moving: bool
    elevator_position: Byte = 0
    carousel_position: Byte = 0
    raw: bytes

    @property
    def is_moving(self) -> bool:
        return self.elevator_moving or self.carousel_moving

    @property
    def is_ready(self) -> bool:
        """Initialized, not stopped and not moving."""
        return self.initialized and not self.emergency_stop and not self.is_moving


class CartStatusParser:
    """Parser for cart-robot status answers."""

    OFFSET_HARDWARE = 5          # initialized / emergency stop flags
    OFFSET_MOVEMENT = 6          # elevator / carousel moving flags
    OFFSET_ELEVATOR_POSITION = 7
    OFFSET_CAROUSEL_POSITION = 8

    MIN_LENGTH = OFFSET_MOVEMENT + 1

    def parse(self, data: ResponseFrame | bytes | bytearray) -> CartStatus:
        """
        Parse a cart status answer.

        Raises:
            ParseError: If the answer is shorter than 7 bytes.
        """
        raw = _raw_bytes(data)
        if len(raw) < self.MIN_LENGTH:
            raise ParseError(
                f"Cart status too short: {len(raw)} bytes, need {self.MIN_LENGTH}",
                record_type="cart_status",
                raw_data=raw,
            )

        hardware = raw[self.OFFSET_HARDWARE]
        movement = raw[self.OFFSET_MOVEMENT]
        return CartStatus(
            initialized=_bit(hardware, 0x01),
            emergency_stop=_bit(hardware, 0x02),
            elevator_moving=_bit(movement, 0x01),
            carousel_moving=_bit(movement, 0x02),
            elevator_position=self._optional(raw, self.OFFSET_ELEVATOR_POSITION),
            carousel_position=self._optional(raw, self.OFFSET_CAROUSEL_POSITION),
            raw=raw,
        )

    @staticmethod
    def _optional(raw: bytes, offset: int) -> int:
        return raw[offset] if len(raw) > offset else 0


class VtrMode(str, Enum):
    """Transport mode recognised from the status signature."""

    STOP = "stop"
    PLAY = "play"
    FAST_FORWARD = "fast_forward"
    REWIND = "rewind"
    JOG_FORWARD = "jog_forward"
    JOG_REVERSE = "jog_reverse"
    UNKNOWN = "unknown"


VTR_MODE_SIGNATURES: Final = MappingProxyType(
    {
        bytes([0xF7, 0x7E]): VtrMode.STOP,
        bytes([0xD7, 0xBD]): VtrMode.PLAY,
        bytes([0xF7, 0x9F]): VtrMode.FAST_FORWARD,
        bytes([0xF7, 0xF7]): VtrMode.REWIND,
        bytes([0x6F, 0x77]): VtrMode.JOG_FORWARD,
        bytes([0x6F, 0x6F]): VtrMode.JOG_REVERSE,
    }
)
"""Leading status bytes observed for each transport mode."""


class VtrStatus(BaseModel):
    """Decoded VTR status."""

    model_config = ConfigDict(frozen=True)

    tape_present: bool
    mode: VtrMode = VtrMode.UNKNOWN
    raw: bytes


def parse_vtr_status(data: ResponseFrame | bytes | bytearray) -> VtrStatus:
    """
    Parse a VTR status answer.

    Raises:
        ParseError: If the answer is shorter than 2 bytes.
    """
    raw = _raw_bytes(data)
    if len(raw) < 2:
        raise ParseError(
            f"VTR status too short: {len(raw)} bytes, need 2",
            record_type="vtr_status",
            raw_data=raw,
        )
    return VtrStatus(
        tape_present=_bit(raw[1], 0x01),
        mode=VTR_MODE_SIGNATURES.get(raw[:2], VtrMode.UNKNOWN),
        raw=raw,
    )


VTR_SERIES: Final = MappingProxyType(
    {
        0xBA: "HDW",
        0x10: "BVW",
        0x20: "DVW",
        0x30: "HDW",
        0x40: "J",
        0x50: "MSW",
        0x60: "DSR",
        0x70: "PDW",
    }
)
"""Device id byte to Sony series name."""


class VtrIdentity(BaseModel):
    """Identity reported in answer to VTR_DEVICE_TYPE."""

    model_config = ConfigDict(frozen=True)

    device_id: Byte
    sub_type: Byte
    version: Byte
    series: str | None = None

    def __str__(self) -> str:
        series = self.series or f"Unknown (0x{self.device_id:02X})"
        return f"{series} series, sub-type 0x{self.sub_type:02X}, version 0x{self.version:02X}"


def identify_vtr(data: ResponseFrame | bytes | bytearray) -> VtrIdentity:
    """
    Parse a VTR device type answer.

    Raises:
        ParseError: If the answer is shorter than 3 bytes.
    """
    raw = _raw_bytes(data)
    if len(raw) < 3:
        raise ParseError(
            f"Device type answer too short: {len(raw)} bytes, need 3",
            record_type="vtr_device_type",
            raw_data=raw,
        )
    device_id, sub_type, version = raw[0], raw[1], raw[2]
    return VtrIdentity(
        device_id=device_id,
        sub_type=sub_type,
        version=version,
        series=VTR_SERIES.get(device_id),
    )


# Default parser instance
_cart_status_parser = CartStatusParser()


def parse_cart_status(data: ResponseFrame | bytes | bytearray) -> CartStatus:
    """
    Parse a cart status answer.

    Convenience function using the default parser.

    Example:
        >>> status = parse_cart_status(bytes.fromhex("61 10 01 01 00 01 00 05 0C"))
        >>> status.initialized, status.elevator_position
        (True, 5)
    """
    return _cart_status_parser.parse(data)


class BinStatus(BaseModel):
    """Occupancy and barcode of one bin."""

    model_config = ConfigDict(frozen=True)

    bin_number: int
    occupied: bool
    barcode: str | None = None
    raw: bytes


def _printable(data: bytes) -> str | None:
    text = "".join(chr(byte) for byte in data if 0x20 <= byte <= 0x7E).strip()
    return text or None


def parse_bin_status(data: ResponseFrame | bytes | bytearray, bin_number: int) -> BinStatus:
    """
    Parse the answer to a BIN_STATUS query.

    The control byte only carries the bin number modulo 256, so the caller
    passes the bin it asked about.

    Args:
        data: Answer frame or raw bytes.
        bin_number: The bin that was queried.

    Raises:
        ParseError: If the answer is neither an ACK frame nor a bin status
            return.
    """
    if isinstance(data, ResponseFrame) and data.kind is ResponseKind.ACK and len(data.raw) == 1:
        return BinStatus(bin_number=bin_number, occupied=False, raw=data.raw)

    raw = _raw_bytes(data)
    if (
        len(raw) <= ProtocolConstants.BIN_STATUS_OFFSET_BITMAP
        or raw[ProtocolConstants.BIN_STATUS_OFFSET_COMMAND] != CartCommand.BIN_STATUS_RETURN
    ):
        raise ParseError(
            f"Not a bin status return: {raw.hex(' ')}",
            record_type="bin_status",
            raw_data=raw,
        )

    occupied = _bit(raw[ProtocolConstants.BIN_STATUS_OFFSET_BITMAP], 0x01)
    barcode = _printable(raw[ProtocolConstants.BIN_STATUS_OFFSET_BARCODE:])
    return BinStatus(
        bin_number=bin_number,
        occupied=occupied,
        barcode=barcode if occupied else None,
        raw=raw,
    )


class InventorySnapshot(BaseModel):
    """Bin occupancy as reported by one INVENTORY answer."""

    model_config = ConfigDict(frozen=True)

    occupied: frozenset[int]
    bins_reported: int
    raw: bytes

    @property
    def empty(self) -> list[int]:
        """Reported bins that are empty, ascending."""
        return [n for n in range(1, self.bins_reported + 1) if n not in self.occupied]


def parse_inventory(data: ResponseFrame | bytes | bytearray) -> InventorySnapshot:
    """
    Parse an INVENTORY answer into the set of occupied bins.

    Only bins covered by the bitmap are reported; bins beyond it are
    neither occupied nor empty in the snapshot.

    Raises:
        ParseError: If the answer carries no bitmap byte.
    """
    raw = _raw_bytes(data)
    bitmap = raw[ProtocolConstants.INVENTORY_OFFSET_BITMAP:]
    if not bitmap:
        raise ParseError(
            f"Inventory too short: {len(raw)} bytes",
            record_type="inventory",
            raw_data=raw,
        )

    bins_reported = min(len(bitmap) * 8, ProtocolConstants.MAX_BIN)
    occupied = frozenset(
        n for n in range(1, bins_reported + 1) if _bit(bitmap[(n - 1) // 8], 1 << ((n - 1) % 8))
    )
    return InventorySnapshot(occupied=occupied, bins_reported=bins_reported, raw=raw)
