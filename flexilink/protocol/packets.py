"""
Command packet encoding for both wire protocols.

Cart-robot packets are a fixed 9 bytes:

    [STX][BC][UA1][UA2][BT][CMD][CTRL][DATA][CS]
     0x02 0x06 0x01

- STX is 0x02 and is not covered by the checksum
- BC is the byte count of UA1 through DATA (always 6)
- UA1 is the device class (0x01, cart robot); UA2 the unit on the line
- CS covers bytes 1..7 (BC through DATA)

VTR 9-pin packets are 2 or 3 command bytes followed by one checksum byte
covering all of them.

Encoders are pure: the same command always produces the same bytes. Byte
ranges are enforced by the models, so nothing here re-checks them.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from flexilink.exceptions import ChecksumMismatchError
from flexilink.protocol.checksums import (
    ChecksumAlgorithm,
    append_checksum,
    calculate_checksum,
    validate_checksum,
)
from flexilink.protocol.constants import ProtocolConstants

if TYPE_CHECKING:
    from flexilink.models.records import CommandSpec, DeviceAddress


class PacketCodec:
    """
    Encoder for 9-byte cart-robot packets.

    Example:
        >>> codec = PacketCodec()
        >>> packet = codec.encode(status_spec, DeviceAddress(endpoint="cart", unit=1))
        >>> packet.hex(" ")
        '02 06 01 01 00 61 10 80 07'
    """

    __slots__ = ("_algorithm",)

    def __init__(self, algorithm: ChecksumAlgorithm = ChecksumAlgorithm.TWOS_COMPLEMENT) -> None:
        self._algorithm = ChecksumAlgorithm(algorithm)

    @property
    def algorithm(self) -> ChecksumAlgorithm:
        return self._algorithm

    def encode(self, spec: CommandSpec, address: DeviceAddress) -> bytes:
        """
        Build the 9-byte packet for ``spec`` addressed to ``address``.

        Commands without a data byte are sent with the default data value
        (0x80).
        """
        data = spec.data if spec.data is not None else ProtocolConstants.DEFAULT_DATA
        packet = bytearray(
            (
                ProtocolConstants.STX,
                ProtocolConstants.BYTE_COUNT,
                address.unit_address_1,
                address.unit,
                spec.block_type,
                spec.command,
                spec.control,
                data,
            )
        )
        packet.append(
            calculate_checksum(
                packet[ProtocolConstants.CHECKSUM_START : ProtocolConstants.CHECKSUM_END],
                self._algorithm,
            )
        )
        return bytes(packet)

    def verify_checksum(self, packet: bytes | bytearray) -> bool:
        """
        Check that a packet is 9 bytes long and its checksum matches.

        Returns:
            True if valid, False for a wrong length or checksum.
        """
        if len(packet) != ProtocolConstants.CART_PACKET_LENGTH:
            return False
        return validate_checksum(
            packet,
            ProtocolConstants.CHECKSUM_END,
            self._algorithm,
            start=ProtocolConstants.CHECKSUM_START,
        )

    def ensure_valid(self, packet: bytes | bytearray) -> None:
        """
        Raise if ``packet`` fails verification.

        Raises:
            ChecksumMismatchError: With the expected and received checksum
                when the length is right but the checksum is not.
            ValueError: If the packet is not 9 bytes long.
        """
        if len(packet) != ProtocolConstants.CART_PACKET_LENGTH:
            raise ValueError(
                f"Cart packet must be {ProtocolConstants.CART_PACKET_LENGTH} bytes, "
                f"got {len(packet)}"
            )
        if self.verify_checksum(packet):
            return
        expected = calculate_checksum(
            packet[ProtocolConstants.CHECKSUM_START : ProtocolConstants.CHECKSUM_END],
            self._algorithm,
        )
        raise ChecksumMismatchError(
            f"Cart packet checksum mismatch ({self._algorithm.value})",
            expected=expected,
            received=packet[ProtocolConstants.CHECKSUM_END],
        )

    def __repr__(self) -> str:
        return f"PacketCodec({self._algorithm.value})"


class NinePinCodec:
    """
    Encoder for VTR 9-pin packets.

    XOR is the standard checksum; the additive variant exists for firmware
    whose transport tables were built with a plain sum.

    Example:
        >>> NinePinCodec().encode([0x20, 0x01]).hex(" ")
        '20 01 21'
    """

    __slots__ = ("_algorithm",)

    def __init__(self, algorithm: ChecksumAlgorithm = ChecksumAlgorithm.XOR) -> None:
        self._algorithm = ChecksumAlgorithm(algorithm)

    @property
    def algorithm(self) -> ChecksumAlgorithm:
        return self._algorithm

    def encode(self, command_bytes: Sequence[int] | bytes) -> bytes:
        """
        Append the checksum to 2 or 3 command bytes.

        Raises:
            ValueError: If ``command_bytes`` is not 2 or 3 bytes long, or
                contains a value outside 0-255.
        """
        payload = bytes(command_bytes)
        if not (
            ProtocolConstants.NINE_PIN_MIN_PAYLOAD
            <= len(payload)
            <= ProtocolConstants.NINE_PIN_MAX_PAYLOAD
        ):
            raise ValueError(f"9-pin command must be 2 or 3 bytes, got {len(payload)}")
        return append_checksum(payload, self._algorithm)

    def encode_spec(self, spec: CommandSpec) -> bytes:
        """Encode a 9-pin CommandSpec (CMD1, CMD2 and optional third byte)."""
        payload = [spec.command, spec.control]
        if spec.data is not None:
            payload.append(spec.data)
        return self.encode(payload)

    def verify(self, packet: bytes | bytearray) -> bool:
        """Check a complete 9-pin packet (payload plus checksum)."""
        if not (
            ProtocolConstants.NINE_PIN_MIN_PAYLOAD
            <= len(packet) - 1
            <= ProtocolConstants.NINE_PIN_MAX_PAYLOAD
        ):
            return False
        return validate_checksum(packet, len(packet) - 1, self._algorithm)

    def __repr__(self) -> str:
        return f"NinePinCodec({self._algorithm.value})"
