"""
Transport layer for cart-robot and VTR communication.

This package provides transport implementations for communicating with
devices over various physical interfaces.

Available transports:
- AsyncSerialTransport: Async serial port using pyserial-asyncio
- MockTransport: Mock transport for testing without hardware

Example:
    >>> from flexilink.transport import AsyncSerialTransport
    >>> async with AsyncSerialTransport("/dev/ttyRP0") as transport:
    ...     await transport.write(packet)
    ...     answer = await transport.read_chunk(timeout=0.5)

Testing Example:
    >>> from flexilink.transport import MockTransport
    >>> mock = MockTransport()
    >>> mock.add_response(bytes([0x04]))  # ACK
"""

from flexilink.transport.abc import AbstractTransport
from flexilink.transport.mock import MockTransport, ScriptedMockTransport
from flexilink.transport.serial_async import AsyncSerialTransport

__all__ = [
    "AbstractTransport",
    "AsyncSerialTransport",
    "MockTransport",
    "ScriptedMockTransport",
]
