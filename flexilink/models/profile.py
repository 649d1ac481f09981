"""
Device profiles.

A profile bundles every per-deployment choice the protocols leave open:
which checksum algorithm the firmware accepts, which byte it answers ACK
with, how long to wait for a response and how to poll Macro completion.

Profiles are frozen Pydantic models, so a profile loaded from caller-owned
configuration is validated once and then shared freely:

    >>> profile = DeviceProfile.model_validate({
    ...     "name": "studio-b-cart",
    ...     "protocol": "cart",
    ...     "checksum": "xor",
    ...     "response_bytes": {"ack": 0x04, "nack": 0x05, "busy": 0x06},
    ... })
    >>> profile.read_policy.inactivity_gap
    0.05
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from flexilink.models.records import Byte, WireProtocol
from flexilink.protocol.checksums import ChecksumAlgorithm
from flexilink.protocol.constants import ProtocolConstants


class ResponseBytes(BaseModel):
    """Single-byte answers a device uses for ACK, NACK and BUSY."""

    model_config = ConfigDict(frozen=True)

    ack: Byte
    nack: Byte
    busy: Byte

    @model_validator(mode="after")
    def _check_distinct(self) -> ResponseBytes:
        if len({self.ack, self.nack, self.busy}) != 3:
            raise ValueError(
                f"ack/nack/busy bytes must be distinct, got "
                f"0x{self.ack:02X}/0x{self.nack:02X}/0x{self.busy:02X}"
            )
        return self


class ReadPolicy(BaseModel):
    """
    End-of-response contract.

    Neither protocol delimits its responses, so a response ends when:
    - at least one byte arrived and the line then stayed silent for
      ``inactivity_gap`` seconds, or
    - nothing arrived within ``response_timeout`` seconds, or
    - ``max_duration`` seconds passed since the write, whatever arrived.
      A per-call timeout longer than ``max_duration`` replaces it.
    """

    model_config = ConfigDict(frozen=True)

    inactivity_gap: float = Field(default=ProtocolConstants.DEFAULT_INACTIVITY_GAP, gt=0)
    response_timeout: float = Field(default=ProtocolConstants.DEFAULT_RESPONSE_TIMEOUT, gt=0)
    max_duration: float = Field(default=ProtocolConstants.DEFAULT_MAX_RESPONSE_DURATION, gt=0)

    @model_validator(mode="after")
    def _check_ceiling(self) -> ReadPolicy:
        if self.max_duration < self.inactivity_gap:
            raise ValueError("max_duration must not be shorter than inactivity_gap")
        return self


class PollPolicy(BaseModel):
    """Macro completion polling parameters."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=ProtocolConstants.DEFAULT_MAX_POLL_ATTEMPTS, ge=1)
    poll_interval: float = Field(default=ProtocolConstants.DEFAULT_POLL_INTERVAL, ge=0)
    poll_timeout: float = Field(default=ProtocolConstants.DEFAULT_POLL_TIMEOUT, gt=0)


class SerialSettings(BaseModel):
    """Serial line settings, in pyserial terms."""

    model_config = ConfigDict(frozen=True)

    baudrate: int = Field(default=ProtocolConstants.CART_BAUD_RATE, gt=0)
    bytesize: Literal[5, 6, 7, 8] = 8
    parity: Literal["N", "E", "O", "M", "S"] = "E"
    stopbits: Literal[1, 1.5, 2] = 1

    def __str__(self) -> str:
        return f"{self.baudrate} {self.bytesize}{self.parity}{self.stopbits:g}"


class DeviceProfile(BaseModel):
    """
    Everything needed to talk to one family of devices.

    Attributes:
        name: Profile identifier.
        protocol: Wire protocol the devices speak.
        checksum: Checksum algorithm used when encoding packets.
        response_bytes: ACK/NACK/BUSY values.
        read_policy: End-of-response contract.
        poll_policy: Macro completion polling.
        serial: Serial line settings for AsyncSerialTransport.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    protocol: WireProtocol
    checksum: ChecksumAlgorithm
    response_bytes: ResponseBytes
    read_policy: ReadPolicy = Field(default_factory=ReadPolicy)
    poll_policy: PollPolicy = Field(default_factory=PollPolicy)
    serial: SerialSettings = Field(default_factory=SerialSettings)

    def __str__(self) -> str:
        return f"{self.name} ({self.protocol.value}, {self.checksum.value}, {self.serial})"


FLEXICART_PROFILE = DeviceProfile(
    name="flexicart",
    protocol=WireProtocol.CART,
    checksum=ChecksumAlgorithm.TWOS_COMPLEMENT,
    response_bytes=ResponseBytes(
        ack=ProtocolConstants.CART_ACK,
        nack=ProtocolConstants.CART_NACK,
        busy=ProtocolConstants.CART_BUSY,
    ),
    serial=SerialSettings(baudrate=ProtocolConstants.CART_BAUD_RATE, parity="E"),
)
"""Cart robot after the wiring correction: ACK 0x04, 19200 8E1."""

FLEXICART_EARLY_PROFILE = FLEXICART_PROFILE.model_copy(
    update={
        "name": "flexicart-early",
        "response_bytes": ResponseBytes(
            ack=ProtocolConstants.CART_ACK_EARLY,
            nack=ProtocolConstants.CART_NACK,
            busy=ProtocolConstants.CART_BUSY,
        ),
        "serial": SerialSettings(baudrate=ProtocolConstants.CART_EARLY_BAUD_RATE, parity="E"),
    }
)
"""Cart robot before the wiring correction: ACK 0x10, 38400 8E1."""

VTR_PROFILE = DeviceProfile(
    name="vtr",
    protocol=WireProtocol.NINE_PIN,
    checksum=ChecksumAlgorithm.XOR,
    response_bytes=ResponseBytes(
        ack=ProtocolConstants.VTR_ACK,
        nack=ProtocolConstants.VTR_NACK,
        busy=ProtocolConstants.VTR_BUSY,
    ),
    serial=SerialSettings(baudrate=ProtocolConstants.VTR_BAUD_RATE, parity="N"),
)
"""Sony 9-pin VTR: XOR checksum, ACK 0x10 / NACK 0x11, 38400 8N1."""

BUILTIN_PROFILES = MappingProxyType(
    {
        profile.name: profile
        for profile in (FLEXICART_PROFILE, FLEXICART_EARLY_PROFILE, VTR_PROFILE)
    }
)


def get_profile(name: str) -> DeviceProfile:
    """
    Get a built-in profile by name.

    Raises:
        KeyError: If no built-in profile has that name.
    """
    try:
        return BUILTIN_PROFILES[name]
    except KeyError:
        available = ", ".join(sorted(BUILTIN_PROFILES))
        raise KeyError(f"Unknown profile {name!r} (available: {available})") from None
