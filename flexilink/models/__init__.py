"""
Data models for commands, devices and profiles.

This module contains Pydantic models representing the data structures
used by both wire protocols, including:

- Command specifications and device addresses
- Classified response frames and poll sessions
- Decoded timecode values
- Device profiles (checksum, response bytes, read/poll policies, serial)
"""

from flexilink.models.profile import (
    BUILTIN_PROFILES,
    FLEXICART_EARLY_PROFILE,
    FLEXICART_PROFILE,
    VTR_PROFILE,
    DeviceProfile,
    PollPolicy,
    ReadPolicy,
    ResponseBytes,
    SerialSettings,
    get_profile,
)
from flexilink.models.records import (
    Byte,
    CommandCategory,
    CommandSpec,
    DecodedTimecode,
    DeviceAddress,
    PollSession,
    ResponseFrame,
    ResponseKind,
    WireProtocol,
)

__all__ = [
    # Value Objects
    "Byte",
    "CommandSpec",
    "DeviceAddress",
    "DecodedTimecode",
    # Enums
    "CommandCategory",
    "ResponseKind",
    "WireProtocol",
    # Per-call records
    "ResponseFrame",
    "PollSession",
    # Profiles
    "DeviceProfile",
    "PollPolicy",
    "ReadPolicy",
    "ResponseBytes",
    "SerialSettings",
    "BUILTIN_PROFILES",
    "FLEXICART_PROFILE",
    "FLEXICART_EARLY_PROFILE",
    "VTR_PROFILE",
    "get_profile",
]
