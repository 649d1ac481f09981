"""
Pydantic models for commands, addresses and decoded values.

This module defines the core data structures used throughout the library,
implemented as immutable Pydantic models with validation.

Design principles:
- All models are frozen (immutable) and hashable
- Single-byte wire fields use the ``Byte`` type, so an out-of-range value
  fails at construction and never reaches the encoder
- Per-call results (ResponseFrame, PollSession) are plain dataclasses
  owned by the execution that created them
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from flexilink.protocol.constants import ProtocolConstants

Byte = Annotated[int, Field(ge=0x00, le=0xFF)]
"""A single wire byte (0-255)."""


class WireProtocol(str, Enum):
    """Which of the two command protocols a command or device speaks."""

    CART = "cart"
    """Fixed 9-byte cart-robot packets."""

    NINE_PIN = "nine_pin"
    """VTR 9-pin packets: 2-3 command bytes plus checksum."""


class CommandCategory(str, Enum):
    """Execution category of a catalog command."""

    IMMEDIATE = "immediate"
    """The response carries the requested data directly."""

    MACRO = "macro"
    """The response is only ACK/NACK; completion must be polled."""

    CONTROL = "control"
    """The effect is immediate and confirmed synchronously."""


class ResponseKind(str, Enum):
    """Classification of a raw response."""

    ACK = "ack"
    NACK = "nack"
    BUSY = "busy"
    DATA = "data"
    EMPTY = "empty"


class CommandSpec(BaseModel):
    """
    One logical command and its wire codes.

    For cart commands all of ``command``, ``control`` and ``data`` are sent.
    For 9-pin commands ``command`` and ``control`` are CMD1 and CMD2, and
    ``data`` is an optional third byte.

    Example:
        >>> status = CommandSpec(
        ...     name="STATUS",
        ...     protocol=WireProtocol.CART,
        ...     command=0x61,
        ...     control=0x10,
        ...     category=CommandCategory.IMMEDIATE,
        ... )
        >>> status.data
        128
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    protocol: WireProtocol
    command: Byte
    control: Byte = 0x00
    data: Byte | None = ProtocolConstants.DEFAULT_DATA
    block_type: Byte = ProtocolConstants.DEFAULT_BLOCK_TYPE
    category: CommandCategory

    @property
    def is_macro(self) -> bool:
        """Check if completion of this command must be polled."""
        return self.category is CommandCategory.MACRO

    def with_control(self, control: int) -> CommandSpec:
        """
        Return a copy with a different control byte.

        Raises:
            ValidationError: If ``control`` is not a byte value.
        """
        return self.model_validate({**self.model_dump(), "control": control})

    def with_data(self, data: int | None) -> CommandSpec:
        """
        Return a copy with a different data byte.

        Raises:
            ValidationError: If ``data`` is not a byte value or None.
        """
        return self.model_validate({**self.model_dump(), "data": data})

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        codes = f"0x{self.command:02X}/0x{self.control:02X}"
        return f"CommandSpec({self.name}, {codes}, {self.category.value})"


class DeviceAddress(BaseModel):
    """
    One addressable device on one transport endpoint.

    ``endpoint`` is an opaque transport identifier (e.g. "/dev/ttyRP0").
    ``unit`` is the second unit-address byte on multidrop cart lines; VTRs
    are point-to-point and ignore it.

    Example:
        >>> addr = DeviceAddress(endpoint="/dev/ttyRP0", unit=0x01)
        >>> str(addr)
        '/dev/ttyRP0#01'
    """

    model_config = ConfigDict(frozen=True)

    endpoint: str = Field(min_length=1)
    unit: Byte = 0x01

    @property
    def unit_address_1(self) -> int:
        """First unit address byte (fixed device class)."""
        return ProtocolConstants.UNIT_ADDRESS_1

    def __str__(self) -> str:
        return f"{self.endpoint}#{self.unit:02X}"


class DecodedTimecode(BaseModel):
    """
    An hours:minutes:seconds:frames value.

    The frame ceiling is the 30 fps NTSC bound, used for validation only.
    Out-of-range values fail validation; decoders never clamp.

    Example:
        >>> tc = DecodedTimecode(hours=12, minutes=34, seconds=56, frames=7)
        >>> str(tc)
        '12:34:56:07'
    """

    model_config = ConfigDict(frozen=True)

    MAX_HOURS: ClassVar[int] = 23
    MAX_MINUTES: ClassVar[int] = 59
    MAX_SECONDS: ClassVar[int] = 59
    MAX_FRAMES: ClassVar[int] = 29

    hours: int = Field(ge=0, le=23)
    minutes: int = Field(ge=0, le=59)
    seconds: int = Field(ge=0, le=59)
    frames: int = Field(ge=0, le=29)

    @classmethod
    def in_range(cls, hours: int, minutes: int, seconds: int, frames: int) -> bool:
        """Check the component bounds without constructing a model."""
        return (
            0 <= hours <= cls.MAX_HOURS
            and 0 <= minutes <= cls.MAX_MINUTES
            and 0 <= seconds <= cls.MAX_SECONDS
            and 0 <= frames <= cls.MAX_FRAMES
        )

    @classmethod
    def from_components(
        cls,
        hours: int,
        minutes: int,
        seconds: int,
        frames: int,
    ) -> DecodedTimecode | None:
        """Build a timecode, or return None if any component is out of range."""
        if not cls.in_range(hours, minutes, seconds, frames):
            return None
        return cls(hours=hours, minutes=minutes, seconds=seconds, frames=frames)

    def as_tuple(self) -> tuple[int, int, int, int]:
        return (self.hours, self.minutes, self.seconds, self.frames)

    def __str__(self) -> str:
        return f"{self.hours:02d}:{self.minutes:02d}:{self.seconds:02d}:{self.frames:02d}"

    def __repr__(self) -> str:
        return f"DecodedTimecode({self})"


@dataclass(frozen=True)
class ResponseFrame:
    """
    A classified response.

    Neither protocol delimits responses, so ``raw`` is whatever arrived
    before the read policy declared the response complete.

    Attributes:
        raw: Bytes received.
        kind: Classification of ``raw``.
        elapsed: Seconds from write to end of collection.
    """

    raw: bytes
    kind: ResponseKind
    elapsed: float = 0.0

    @property
    def is_ack(self) -> bool:
        return self.kind is ResponseKind.ACK

    @property
    def is_nack(self) -> bool:
        return self.kind is ResponseKind.NACK

    @property
    def is_data(self) -> bool:
        return self.kind is ResponseKind.DATA

    @property
    def hex(self) -> str:
        """Space-separated uppercase hex dump of the raw bytes."""
        return self.raw.hex(" ").upper()

    def __len__(self) -> int:
        return len(self.raw)

    def __repr__(self) -> str:
        if self.raw:
            return f"ResponseFrame({self.kind.name}, {self.hex}, {self.elapsed * 1000:.0f}ms)"
        return f"ResponseFrame({self.kind.name})"


@dataclass
class PollSession:
    """
    State of one Macro completion poll.

    Created when a Macro command is acknowledged and dropped when the
    execution returns.
    """

    address: DeviceAddress
    max_attempts: int
    poll_interval: float
    started_at: float
    attempts: int = 0

    @property
    def exhausted(self) -> bool:
        return self.attempts >= self.max_attempts
