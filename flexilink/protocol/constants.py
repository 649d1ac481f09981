"""
Wire-level constants for the cart-robot and VTR 9-pin protocols.

Based on the Sony Flexicart serial command set and the Sony 9-pin
(RS-422) VTR remote protocol.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Final


class CartCommand(IntEnum):
    """
    Cart-robot command codes (CMD byte of the 9-byte packet).

    The control byte selects the variant of each command:
    - 0x61: query (0x10 status, 0x20 position, 0x30 inventory, 0x40 errors)
    - 0x41-0x47: motion and mechanism macros, acknowledged then polled
    - 0x62: bin status sense, answered with 0x72 (bin status return)
    - 0x71: on-air tally
    """

    DUMMY = 0x00
    """No-op, answered with a status frame. Used as scan probe."""

    ELEVATOR = 0x41
    """Elevator move (control 0x01 up, 0x02 down)."""

    CAROUSEL = 0x42
    """Carousel rotate (control 0x01 clockwise, 0x02 counter-clockwise)."""

    MOVE_TO_POSITION = 0x43
    """Move to bin (control carries the bin number)."""

    LOAD_UNLOAD = 0x44
    """Load (control 0x01) or unload (control 0x02) the player."""

    EJECT = 0x45
    """Eject the cassette."""

    INITIALIZE = 0x46
    """Initialize the mechanism."""

    CALIBRATE = 0x47
    """Calibrate elevator and carousel."""

    SENSE = 0x61
    """Status sense family."""

    SENSE_BIN_STATUS = 0x62
    """Bin status and barcode sense (control carries the bin number)."""

    BIN_STATUS_RETURN = 0x72
    """Command byte of the answer to SENSE_BIN_STATUS."""

    TALLY = 0x71
    """On-air tally (control 0x01 on, 0x00 off)."""


class SenseRequest(IntEnum):
    """Control byte values for CartCommand.SENSE."""

    STATUS = 0x10
    POSITION = 0x20
    INVENTORY = 0x30
    ERRORS = 0x40


class NinePinCommand(IntEnum):
    """
    First byte (CMD1) groups of the VTR 9-pin protocol.

    The high nibble encodes the command group and the low nibble the
    number of data bytes that follow CMD2.
    """

    SYSTEM_CONTROL = 0x00
    TRANSPORT_CONTROL = 0x20
    VARIABLE_SPEED = 0x21
    SENSE_REQUEST = 0x61
    TIME_SENSE = 0x74
    TIMER_1_SENSE = 0x75
    LTC_SENSE = 0x78


class JogDirection(IntEnum):
    """CMD2 of the variable-speed group; the data byte carries the speed."""

    FORWARD = 0x11
    REVERSE = 0x21


class ProtocolConstants:
    """
    Protocol constants.

    Contains frame bytes, timing defaults, and limits used throughout the
    protocol implementation.
    """

    # ===== Cart Packet Layout =====

    STX: Final[int] = 0x02
    """Start of packet."""

    BYTE_COUNT: Final[int] = 0x06
    """Byte count field: UA1 through DATA."""

    UNIT_ADDRESS_1: Final[int] = 0x01
    """First unit address byte (device class: cart robot)."""

    DEFAULT_BLOCK_TYPE: Final[int] = 0x00
    """Block type used by every command in the catalog."""

    DEFAULT_DATA: Final[int] = 0x80
    """Data byte sent when a command carries no argument."""

    CART_PACKET_LENGTH: Final[int] = 9
    """Fixed cart packet length in bytes."""

    CHECKSUM_START: Final[int] = 1
    """First byte covered by the cart checksum (BYTE_COUNT)."""

    CHECKSUM_END: Final[int] = 8
    """Offset of the checksum byte; coverage ends just before it."""

    # ===== 9-Pin Packet Layout =====

    NINE_PIN_MIN_PAYLOAD: Final[int] = 2
    NINE_PIN_MAX_PAYLOAD: Final[int] = 3

    # ===== Response Bytes (defaults for built-in profiles) =====

    CART_ACK: Final[int] = 0x04
    """Cart acknowledgement after the wiring correction."""

    CART_ACK_EARLY: Final[int] = 0x10
    """Cart acknowledgement observed before the wiring correction."""

    CART_NACK: Final[int] = 0x05
    CART_BUSY: Final[int] = 0x06

    VTR_ACK: Final[int] = 0x10
    VTR_NACK: Final[int] = 0x11
    VTR_BUSY: Final[int] = 0x06

    # ===== Timing Constants (seconds) =====

    DEFAULT_RESPONSE_TIMEOUT: Final[float] = 2.0
    """Overall wait for the first byte of a response."""

    DEFAULT_INACTIVITY_GAP: Final[float] = 0.05
    """Silence after the last received byte that ends a response."""

    DEFAULT_MAX_RESPONSE_DURATION: Final[float] = 5.0
    """Hard ceiling on collecting one response."""

    DEFAULT_POLL_INTERVAL: Final[float] = 0.1
    """Delay before each Macro status poll."""

    DEFAULT_POLL_TIMEOUT: Final[float] = 1.0
    """Response timeout for a single status poll."""

    DEFAULT_MAX_POLL_ATTEMPTS: Final[int] = 50
    """Status polls before a Macro command is declared timed out."""

    DEFAULT_PROBE_TIMEOUT: Final[float] = 0.5
    """Response timeout for one scan probe."""

    DEFAULT_INTER_PROBE_DELAY: Final[float] = 0.05
    """Pause between scan probes on shared multidrop lines."""

    # ===== Limits =====

    MAX_BIN: Final[int] = 360
    """Highest cart bin number."""

    READ_CHUNK_SIZE: Final[int] = 256
    """Maximum bytes requested from the transport per read."""

    # ===== 9-Pin Jog Speeds (data byte) =====

    JOG_SPEED_STILL: Final[int] = 0x00
    JOG_SPEED_SLOW: Final[int] = 0x20
    JOG_SPEED_NORMAL: Final[int] = 0x40

    # ===== Bin Status Answer Layout =====

    BIN_STATUS_OFFSET_COMMAND: Final[int] = 5
    BIN_STATUS_OFFSET_BITMAP: Final[int] = 7
    BIN_STATUS_OFFSET_BARCODE: Final[int] = 8

    INVENTORY_OFFSET_BITMAP: Final[int] = 5
    """First byte of the occupancy bitmap in an INVENTORY answer."""

    # ===== Serial Port Configuration =====

    CART_BAUD_RATE: Final[int] = 19200
    CART_EARLY_BAUD_RATE: Final[int] = 38400
    VTR_BAUD_RATE: Final[int] = 38400


NO_TIMECODE_PREFIX: Final[int] = 0x91
"""Leading byte of a VTR answer that carries no timecode."""
