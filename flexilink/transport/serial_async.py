"""
Async serial transport using pyserial-asyncio.

This module provides the primary transport implementation for communicating
with cart robots and VTRs over RS-422 serial connections.

Serial configuration comes from the device profile:
- Cart robots: 19200 baud, 8 data bits, even parity, 1 stop bit
  (38400 on units that predate the wiring correction)
- VTRs (9-pin): 38400 baud, 8 data bits, no parity, 1 stop bit
- Flow control: None

Example:
    >>> transport = AsyncSerialTransport("/dev/ttyRP0", FLEXICART_PROFILE.serial)
    >>> async with transport:
    ...     await transport.write(packet)
    ...     chunk = await transport.read_chunk(timeout=0.5)
"""

from __future__ import annotations

import asyncio
import logging

import serial
import serial_asyncio

from flexilink.exceptions import TransportError, TransportWriteError
from flexilink.models.profile import SerialSettings
from flexilink.protocol.constants import ProtocolConstants
from flexilink.transport.abc import AbstractTransport

logger = logging.getLogger(__name__)


class AsyncSerialTransport(AbstractTransport):
    """
    Async serial transport using pyserial-asyncio.

    Provides non-blocking serial communication using Python's asyncio
    framework. This is the primary transport for real hardware communication.

    Attributes:
        port_name: Serial port path (e.g., "/dev/ttyRP0", "COM3").
        is_open: Whether the port is currently open.

    Example:
        >>> transport = AsyncSerialTransport("/dev/ttyRP0", SerialSettings(baudrate=38400, parity="N"))
        >>> await transport.open()
        >>> try:
        ...     await transport.write(b"\\x20\\x01\\x21")
        ...     answer = await transport.read_chunk(timeout=0.5)
        ... finally:
        ...     await transport.close()
    """

    def __init__(
        self,
        port: str,
        settings: SerialSettings | None = None,
    ) -> None:
        """
        Initialize the async serial transport.

        Args:
            port: Serial port path (e.g., "/dev/ttyRP0", "COM3").
            settings: Line settings (default: 19200 8E1).
        """
        self._port = port
        self._settings = settings if settings is not None else SerialSettings()
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._serial_instance: serial.Serial | None = None

    @property
    def is_open(self) -> bool:
        """Check if the serial port is currently open."""
        return (
            self._writer is not None
            and not self._writer.is_closing()
            and self._reader is not None
        )

    @property
    def port_name(self) -> str:
        """Get the serial port path."""
        return self._port

    @property
    def settings(self) -> SerialSettings:
        """Get the configured line settings."""
        return self._settings

    async def open(self) -> None:
        """
        Open the serial port connection.

        Raises:
            TransportError: If the port cannot be opened.
        """
        if self.is_open:
            return

        try:
            # SerialSettings values are pyserial's own constants
            self._reader, self._writer = await serial_asyncio.open_serial_connection(
                url=self._port,
                baudrate=self._settings.baudrate,
                parity=self._settings.parity,
                stopbits=self._settings.stopbits,
                bytesize=self._settings.bytesize,
                # No flow control
                xonxoff=False,
                rtscts=False,
                dsrdtr=False,
            )
            # Get reference to underlying serial port for buffer operations
            transport = self._writer.transport
            if hasattr(transport, "serial"):
                self._serial_instance = transport.serial

        except serial.SerialException as e:
            raise TransportError(f"Failed to open serial port {self._port}: {e}") from e
        except OSError as e:
            raise TransportError(f"OS error opening {self._port}: {e}") from e

        logger.info("Opened %s (%s)", self._port, self._settings)

    async def close(self) -> None:
        """
        Close the serial port connection.

        Safely closes the connection and releases resources. Safe to call
        multiple times.
        """
        if self._writer is not None:
            try:
                self._writer.close()
                await self._writer.wait_closed()
            except (OSError, serial.SerialException) as e:
                logger.debug("Error while closing %s: %s", self._port, e)
            else:
                logger.info("Closed %s", self._port)

        self._reader = None
        self._writer = None
        self._serial_instance = None

    async def write(self, data: bytes) -> None:
        """
        Write data to the serial port.

        Args:
            data: Bytes to transmit.

        Raises:
            TransportError: If the port is not open.
            TransportWriteError: If the write fails.
        """
        if not self.is_open:
            raise TransportError("Serial port is not open")

        try:
            self._writer.write(data)
            await self._writer.drain()
        except (OSError, serial.SerialException) as e:
            raise TransportWriteError(f"Write to {self._port} failed: {e}") from e

    async def read_chunk(
        self,
        timeout: float,
        max_bytes: int = ProtocolConstants.READ_CHUNK_SIZE,
    ) -> bytes:
        """
        Read whatever arrives within ``timeout`` seconds.

        Args:
            timeout: Maximum wait in seconds.
            max_bytes: Upper bound on the bytes returned.

        Returns:
            The bytes read, or b"" on timeout.

        Raises:
            TransportError: If the port is not open, was closed by the
                other side, or the read fails.
        """
        if not self.is_open:
            raise TransportError("Serial port is not open")

        try:
            data = await asyncio.wait_for(self._reader.read(max_bytes), timeout=max(timeout, 0.0))
        except asyncio.TimeoutError:
            return b""
        except (OSError, serial.SerialException) as e:
            raise TransportError(f"Read from {self._port} failed: {e}") from e

        if not data:
            # StreamReader.read() only returns b"" at EOF
            raise TransportError(f"Connection to {self._port} closed unexpectedly")
        return data

    def discard_buffers(self) -> None:
        """
        Discard any pending data in input and output buffers.

        Clears both the receive and transmit buffers on the serial port.

        Note: This operates on the underlying serial port and may not
        affect data already buffered by the asyncio layer.
        """
        if self._serial_instance is not None:
            try:
                self._serial_instance.reset_input_buffer()
                self._serial_instance.reset_output_buffer()
            except (OSError, serial.SerialException) as e:
                logger.debug("Could not reset buffers on %s: %s", self._port, e)

    def __repr__(self) -> str:
        status = "open" if self.is_open else "closed"
        return f"AsyncSerialTransport({self._port!r}, {self._settings}, {status})"
