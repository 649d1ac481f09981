"""
Exception hierarchy for flexilink.

All exceptions inherit from FlexilinkError, providing a clean hierarchy
for error handling. The design follows these principles:

1. Transport errors (port, I/O) are distinct from protocol errors
2. Execution errors carry the command, address and frame that caused them
3. Checksum errors carry the expected and received values for debugging
4. All exceptions provide meaningful error messages
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from flexilink.models.records import CommandSpec, DeviceAddress, ResponseFrame


class FlexilinkError(Exception):
    """
    Base exception for all flexilink errors.

    All library-specific exceptions inherit from this class, allowing
    callers to catch all flexilink errors with a single except clause.
    """

    pass


class ProtocolError(FlexilinkError):
    """
    Protocol-level error.

    Raised when a frame or packet violates the wire format.
    """

    pass


class ChecksumMismatchError(ProtocolError):
    """
    Checksum validation failure.

    Raised when a command packet's checksum byte doesn't match the value
    recomputed with the configured algorithm. Device data responses carry
    no checksum, so this only applies to frames built by this library.
    """

    def __init__(
        self,
        message: str = "Checksum validation failed",
        *,
        expected: int | None = None,
        received: int | None = None,
    ) -> None:
        super().__init__(message)
        self.expected = expected
        self.received = received

    def __str__(self) -> str:
        base = super().__str__()
        if self.expected is not None and self.received is not None:
            return f"{base} (expected 0x{self.expected:02X}, got 0x{self.received:02X})"
        return base


class ParseError(FlexilinkError):
    """
    Response parsing error.

    Raised when a status response cannot be interpreted, typically because
    it is shorter than the layout requires.
    """

    def __init__(
        self,
        message: str,
        *,
        record_type: str | None = None,
        raw_data: bytes | None = None,
    ) -> None:
        super().__init__(message)
        self.record_type = record_type
        self.raw_data = raw_data

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.record_type:
            parts.append(f"record_type={self.record_type}")
        if self.raw_data:
            # Truncate raw data for display
            display_data = self.raw_data[:20].hex(" ")
            if len(self.raw_data) > 20:
                display_data += " ..."
            parts.append(f"data={display_data}")
        return " ".join(parts) if len(parts) > 1 else parts[0]


class UnknownCommandError(FlexilinkError, KeyError):
    """Raised when a logical command name is not in the catalog."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown command: {self.name!r}"


class TransportError(FlexilinkError):
    """
    Transport-level error.

    Raised for low-level transport issues:
    - Serial port cannot be opened (missing device, port locked)
    - I/O errors
    - Transport used while closed
    """

    pass


class TransportWriteError(TransportError):
    """Raised when a command packet could not be written to the transport."""

    pass


class ExecutionError(FlexilinkError):
    """
    Base class for failures of a single command execution.

    Attributes:
        spec: The command that was being executed.
        address: The device it was addressed to.
        frame: The response frame that caused the failure, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        spec: CommandSpec | None = None,
        address: DeviceAddress | None = None,
        frame: ResponseFrame | None = None,
    ) -> None:
        super().__init__(message)
        self.spec = spec
        self.address = address
        self.frame = frame

    def __str__(self) -> str:
        base = super().__str__()
        context = []
        if self.spec is not None:
            context.append(self.spec.name)
        if self.address is not None:
            context.append(str(self.address))
        if context:
            return f"{base} [{' @ '.join(context)}]"
        return base


class NoResponseError(ExecutionError):
    """
    No bytes arrived within the response timeout.

    Raised when the overall timeout elapses before the device sends
    anything at all.
    """

    def __init__(
        self,
        message: str = "No response",
        *,
        timeout_seconds: float | None = None,
        **kwargs,
    ) -> None:
        super().__init__(message, **kwargs)
        self.timeout_seconds = timeout_seconds

    def __str__(self) -> str:
        base = super().__str__()
        if self.timeout_seconds is not None:
            return f"{base} (after {self.timeout_seconds:.2f}s)"
        return base


class CommandRejectedError(ExecutionError):
    """The device answered NACK. Rejection is terminal and never retried."""

    pass


class UnexpectedResponseError(ExecutionError):
    """
    The device answered with something the command's contract does not allow.

    For Macro commands this is any initial answer other than ACK or NACK.
    """

    pass


class OperationTimeoutError(ExecutionError):
    """
    A Macro command was acknowledged but never reported completion.

    Raised after the configured number of status polls produced no data.
    """

    def __init__(
        self,
        message: str = "Operation did not complete",
        *,
        attempts: int | None = None,
        **kwargs,
    ) -> None:
        super().__init__(message, **kwargs)
        self.attempts = attempts

    def __str__(self) -> str:
        base = super().__str__()
        if self.attempts is not None:
            return f"{base} (after {self.attempts} status polls)"
        return base
