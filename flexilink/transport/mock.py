"""
Mock transport for testing.

This module provides a mock transport implementation that allows testing
the executor and scanner without actual hardware. Responses can be
pre-configured or dynamically generated using callback functions.

Each queued response is released into the read buffer by one write, which
mirrors a device answering the packet it was sent. A response of b"" means
the device stays silent for that write. Timed responses release their
chunks at fixed delays after the write, for exercising end-of-response
detection.

Example:
    >>> from flexilink.transport import MockTransport
    >>> from flexilink import CommandExecutor
    >>>
    >>> mock = MockTransport()
    >>> mock.add_response(bytes([0x04]))  # ACK
    >>>
    >>> async with CommandExecutor(mock) as executor:
    ...     frame = await executor.execute(spec, address)
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Callable, Union

from flexilink.exceptions import TransportError, TransportWriteError
from flexilink.protocol.constants import ProtocolConstants
from flexilink.transport.abc import AbstractTransport

# (seconds after the write, bytes)
TimedChunk = tuple[float, bytes]

_Response = Union[bytes, tuple[TimedChunk, ...]]


class MockTransport(AbstractTransport):
    """
    Mock transport for testing without hardware.

    This transport simulates serial communication by providing pre-configured
    responses. It records all written data for verification in tests.

    Attributes:
        written_data: List of all bytes written to the transport.

    Example:
        >>> mock = MockTransport()
        >>> mock.add_response(b"\\x04")  # ACK
        >>> mock.add_timed_response((0.0, b"\\x61"), (0.02, b"\\x10\\x01"))
        >>>
        >>> async with mock:
        ...     await mock.write(b"test")
        ...     assert await mock.read_chunk(0.1) == b"\\x04"
        ...     assert mock.written_data == [b"test"]
    """

    def __init__(self, port_name: str = "mock://test") -> None:
        """
        Initialize the mock transport.

        Args:
            port_name: Identifier for the mock transport.
        """
        self._port_name = port_name
        self._is_open = False
        self._responses: deque[_Response] = deque()
        self._written_data: list[bytes] = []
        self._read_buffer = bytearray()
        self._data_ready = asyncio.Event()
        self._scheduled: list[asyncio.TimerHandle] = []
        self._response_callback: Callable[[bytes], bytes | None] | None = None
        self._write_error: Exception | None = None
        self._open_count = 0
        self._discard_count = 0

    @property
    def is_open(self) -> bool:
        """Check if the mock transport is open."""
        return self._is_open

    @property
    def port_name(self) -> str:
        """Get the mock port name."""
        return self._port_name

    @property
    def written_data(self) -> list[bytes]:
        """Get all data written to the transport."""
        return self._written_data.copy()

    @property
    def last_written(self) -> bytes | None:
        """Get the most recently written data."""
        return self._written_data[-1] if self._written_data else None

    @property
    def open_count(self) -> int:
        """Number of times the transport has been opened."""
        return self._open_count

    @property
    def discard_count(self) -> int:
        """Number of discard_buffers() calls."""
        return self._discard_count

    @property
    def pending_responses(self) -> int:
        """Number of queued responses not yet released by a write."""
        return len(self._responses)

    def add_response(self, response: bytes) -> None:
        """
        Add a response to the queue.

        Responses are released in FIFO order, one per write.

        Args:
            response: Bytes the device answers the next write with.
        """
        self._responses.append(bytes(response))

    def add_responses(self, *responses: bytes) -> None:
        """
        Add multiple responses to the queue.

        Args:
            *responses: Multiple byte responses to add.
        """
        for response in responses:
            self.add_response(response)

    def add_timed_response(self, *chunks: TimedChunk) -> None:
        """
        Add a response delivered in chunks at fixed delays after the write.

        Args:
            *chunks: ``(delay_seconds, data)`` pairs, delays measured from
                the write that releases this response.
        """
        self._responses.append(tuple((float(delay), bytes(data)) for delay, data in chunks))

    def set_response_callback(
        self,
        callback: Callable[[bytes], bytes | None] | None,
    ) -> None:
        """
        Set a callback to dynamically generate responses.

        The callback receives the written data and should return the response
        bytes. If it returns None, the next queued response is used instead.

        Args:
            callback: Function that takes written bytes and returns response.
        """
        self._response_callback = callback

    def fail_writes(self, error: Exception | None = None) -> None:
        """
        Make every following write raise.

        Args:
            error: Exception to raise. None restores normal writes.
        """
        self._write_error = error

    def feed(self, data: bytes) -> None:
        """Put unsolicited bytes in the read buffer (e.g. a late answer)."""
        self._read_buffer.extend(data)
        if self._read_buffer:
            self._data_ready.set()

    async def open(self) -> None:
        """Open the mock transport."""
        if self._is_open:
            raise TransportError("Mock transport already open")
        self._is_open = True
        self._open_count += 1

    async def close(self) -> None:
        """Close the mock transport and drop undelivered timed chunks."""
        self._is_open = False
        for handle in self._scheduled:
            handle.cancel()
        self._scheduled.clear()

    async def write(self, data: bytes) -> None:
        """
        Write data to the mock transport.

        Records the written data and releases the next response.

        Args:
            data: Bytes to write.

        Raises:
            TransportError: If transport is not open.
            TransportWriteError: If fail_writes() was armed.
        """
        if not self._is_open:
            raise TransportError("Mock transport not open")

        if self._write_error is not None:
            raise TransportWriteError(f"Mock write failed: {self._write_error}") from self._write_error

        self._written_data.append(bytes(data))
        self._respond(bytes(data))

    def _respond(self, data: bytes) -> None:
        """Release the answer to one written packet."""
        if self._response_callback:
            response = self._response_callback(data)
            if response is not None:
                self.feed(response)
                return

        if not self._responses:
            return
        response = self._responses.popleft()
        if isinstance(response, bytes):
            self.feed(response)
            return

        loop = asyncio.get_running_loop()
        for delay, chunk in response:
            self._scheduled.append(loop.call_later(delay, self.feed, chunk))

    async def read_chunk(
        self,
        timeout: float,
        max_bytes: int = ProtocolConstants.READ_CHUNK_SIZE,
    ) -> bytes:
        """
        Return buffered bytes, waiting up to ``timeout`` for some to arrive.

        Returns:
            Up to ``max_bytes`` bytes, or b"" if nothing arrived in time.

        Raises:
            TransportError: If transport is not open.
        """
        if not self._is_open:
            raise TransportError("Mock transport not open")

        if not self._read_buffer:
            self._data_ready.clear()
            try:
                await asyncio.wait_for(self._data_ready.wait(), timeout=max(timeout, 0.0))
            except asyncio.TimeoutError:
                return b""

        result = bytes(self._read_buffer[:max_bytes])
        del self._read_buffer[:max_bytes]
        return result

    def discard_buffers(self) -> None:
        """Discard pending data in buffers."""
        self._discard_count += 1
        self._read_buffer.clear()

    def assert_written(self, expected: bytes, index: int = -1) -> None:
        """
        Assert that specific data was written.

        Args:
            expected: Expected bytes.
            index: Index in written_data list (-1 for last).

        Raises:
            AssertionError: If data doesn't match.
        """
        if not self._written_data:
            raise AssertionError("No data written to mock transport")

        actual = self._written_data[index]
        if actual != expected:
            raise AssertionError(
                f"Written data mismatch: expected {expected.hex(' ')}, got {actual.hex(' ')}"
            )

    def assert_write_count(self, expected: int) -> None:
        """
        Assert number of write operations.

        Args:
            expected: Expected number of writes.

        Raises:
            AssertionError: If count doesn't match.
        """
        actual = len(self._written_data)
        if actual != expected:
            raise AssertionError(f"Write count mismatch: expected {expected}, got {actual}")


class ScriptedMockTransport(MockTransport):
    """
    Mock transport with scripted request/response pairs.

    This variant allows defining expected request/response sequences
    for more structured testing scenarios. Writes go through the same
    checks as MockTransport, including fail_writes().

    Example:
        >>> mock = ScriptedMockTransport()
        >>> mock.expect(request=bytes.fromhex("020601010061108007"), response=b"\\x61\\x10\\x01")
        >>> mock.expect(response=b"\\x04")  # any request
    """

    def __init__(self, port_name: str = "mock://scripted") -> None:
        super().__init__(port_name)
        self._script: list[tuple[bytes | None, bytes]] = []
        self._script_index = 0

    @property
    def script_complete(self) -> bool:
        """Check if every scripted step has been consumed."""
        return self._script_index >= len(self._script)

    def expect(
        self,
        response: bytes,
        request: bytes | None = None,
    ) -> None:
        """
        Add an expected request/response pair.

        Args:
            response: Response to return.
            request: Expected request (None to match any).
        """
        self._script.append((request, bytes(response)))

    def _respond(self, data: bytes) -> None:
        """Answer from the script instead of the response queue."""
        if self._script_index >= len(self._script):
            return

        expected_request, response = self._script[self._script_index]
        if expected_request is not None and data != expected_request:
            raise AssertionError(
                f"Script mismatch at step {self._script_index}: "
                f"expected {expected_request.hex(' ')}, got {data.hex(' ')}"
            )

        self.feed(response)
        self._script_index += 1
