"""
flexilink - Python library for controlling broadcast cart robots and VTRs.

This library provides async communication over RS-422 serial with Sony
Flexicart-style cart robots (9-byte command packets, polled Macro
completion) and 9-pin VTRs (2-3 command bytes plus checksum), including
multi-format timecode decoding and device discovery.

Example:
    >>> from flexilink import ProtocolEngine, FLEXICART_PROFILE, DeviceAddress
    >>>
    >>> async def main():
    ...     async with ProtocolEngine(FLEXICART_PROFILE) as engine:
    ...         cart = DeviceAddress(endpoint="/dev/ttyRP0", unit=0x01)
    ...         frame = await engine.execute_command("STATUS", cart)
    ...         print(parse_cart_status(frame))
"""

from flexilink.catalog import CommandCatalog, create_default_catalog
from flexilink.engine import ProtocolEngine
from flexilink.exceptions import (
    ChecksumMismatchError,
    CommandRejectedError,
    ExecutionError,
    FlexilinkError,
    NoResponseError,
    OperationTimeoutError,
    ParseError,
    ProtocolError,
    TransportError,
    TransportWriteError,
    UnexpectedResponseError,
    UnknownCommandError,
)
from flexilink.executor import CommandExecutor, ExecutionOutcome, ExecutorState
from flexilink.models import (
    BUILTIN_PROFILES,
    FLEXICART_EARLY_PROFILE,
    FLEXICART_PROFILE,
    VTR_PROFILE,
    CommandCategory,
    CommandSpec,
    DecodedTimecode,
    DeviceAddress,
    DeviceProfile,
    PollPolicy,
    ReadPolicy,
    ResponseBytes,
    ResponseFrame,
    ResponseKind,
    SerialSettings,
    WireProtocol,
    get_profile,
)
from flexilink.parsers import identify_vtr, parse_cart_status, parse_vtr_status
from flexilink.protocol.checksums import ChecksumAlgorithm
from flexilink.protocol.classifier import ResponseClassifier, classify
from flexilink.protocol.packets import NinePinCodec, PacketCodec
from flexilink.protocol.timecode import TimecodeDecoder, TimecodeFormat, decode_timecode
from flexilink.scanner import DeviceScanner, ProbeResult, ScanReport
from flexilink.transport import AbstractTransport, AsyncSerialTransport, MockTransport

__version__ = "0.1.0"
__all__ = [
    # Engine
    "ProtocolEngine",
    "CommandExecutor",
    "ExecutorState",
    "ExecutionOutcome",
    "DeviceScanner",
    "ScanReport",
    "ProbeResult",
    # Catalog
    "CommandCatalog",
    "create_default_catalog",
    # Protocol
    "ChecksumAlgorithm",
    "PacketCodec",
    "NinePinCodec",
    "ResponseClassifier",
    "classify",
    "TimecodeDecoder",
    "TimecodeFormat",
    "decode_timecode",
    # Models
    "CommandSpec",
    "CommandCategory",
    "WireProtocol",
    "DeviceAddress",
    "ResponseFrame",
    "ResponseKind",
    "DecodedTimecode",
    # Profiles
    "DeviceProfile",
    "ResponseBytes",
    "ReadPolicy",
    "PollPolicy",
    "SerialSettings",
    "FLEXICART_PROFILE",
    "FLEXICART_EARLY_PROFILE",
    "VTR_PROFILE",
    "BUILTIN_PROFILES",
    "get_profile",
    # Parsers
    "parse_cart_status",
    "parse_vtr_status",
    "identify_vtr",
    # Exceptions
    "FlexilinkError",
    "ProtocolError",
    "ChecksumMismatchError",
    "ParseError",
    "UnknownCommandError",
    "TransportError",
    "TransportWriteError",
    "ExecutionError",
    "NoResponseError",
    "CommandRejectedError",
    "UnexpectedResponseError",
    "OperationTimeoutError",
    # Transport
    "AbstractTransport",
    "AsyncSerialTransport",
    "MockTransport",
    # Version
    "__version__",
]
