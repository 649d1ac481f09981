"""
Abstract transport interface for cart-robot and VTR communication.

This module defines the abstract base class for all transport implementations.
Transports handle the low-level communication with devices over serial
ports or other physical interfaces.

The transport layer is responsible for:
- Opening/closing the physical connection
- Writing raw bytes and reading whatever has arrived
- Timeout handling
- Buffer management

Neither protocol frames its responses, so transports never look for
terminators or lengths; deciding when a response is complete belongs to
the executor's read policy.

Implementations:
- AsyncSerialTransport: pyserial-asyncio based serial port
- MockTransport: For testing without hardware
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from flexilink.protocol.constants import ProtocolConstants

if TYPE_CHECKING:
    from types import TracebackType


class AbstractTransport(ABC):
    """
    Abstract base class for device transports.

    Transports provide async read/write operations for one endpoint (one
    serial line, possibly shared by several cart units). All transport
    implementations must inherit from this class and implement all
    abstract methods.

    Transports support async context manager protocol for safe resource
    management:

        async with AsyncSerialTransport("/dev/ttyRP0") as transport:
            await transport.write(packet)
            chunk = await transport.read_chunk(timeout=0.5)

    Attributes:
        is_open: Whether the transport connection is currently open.
        port_name: Identifier for the transport (e.g., serial port name).
    """

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """
        Check if the transport connection is currently open.

        Returns:
            True if connected and ready for I/O, False otherwise.
        """
        ...

    @property
    @abstractmethod
    def port_name(self) -> str:
        """
        Get the transport identifier.

        Returns:
            Port name or identifier string (e.g., "/dev/ttyRP0", "COM3").
        """
        ...

    @abstractmethod
    async def open(self) -> None:
        """
        Open the transport connection.

        Raises:
            TransportError: If the connection cannot be established.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """
        Close the transport connection.

        Releases the physical connection and any associated resources.
        Safe to call multiple times (idempotent).

        After closing, the transport can be reopened with open().
        """
        ...

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """
        Write a complete command packet.

        Args:
            data: Bytes to send.

        Raises:
            TransportError: If the transport is not open.
            TransportWriteError: If the write itself fails.
        """
        ...

    @abstractmethod
    async def read_chunk(
        self,
        timeout: float,
        max_bytes: int = ProtocolConstants.READ_CHUNK_SIZE,
    ) -> bytes:
        """
        Read whatever bytes arrive within ``timeout`` seconds.

        Returns as soon as at least one byte is available.

        Args:
            timeout: Maximum wait in seconds.
            max_bytes: Upper bound on the bytes returned.

        Returns:
            Between 1 and ``max_bytes`` bytes, or b"" if nothing arrived
            before the timeout.

        Raises:
            TransportError: If the transport is not open or the read fails.
        """
        ...

    @abstractmethod
    def discard_buffers(self) -> None:
        """
        Discard any pending data in input and output buffers.

        Called before every write so that a late answer to an earlier
        command cannot be taken for the answer to the next one.
        """
        ...

    async def __aenter__(self) -> AbstractTransport:
        """Async context manager entry - opens the transport."""
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Async context manager exit - closes the transport."""
        await self.close()
