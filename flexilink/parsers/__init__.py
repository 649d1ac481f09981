"""
Parsers for device status answers.

This package converts the raw data answers of Immediate status commands
into structured Python objects:

1. **Cart status**: mechanism flags and elevator/carousel positions
2. **Bin status and inventory**: per-bin barcode, occupancy bitmap
3. **VTR status**: cassette presence and transport mode
4. **VTR identity**: device type, sub-type and version

Example:
    >>> from flexilink.parsers import parse_cart_status
    >>>
    >>> frame = await executor.execute(catalog.get("STATUS"), address)
    >>> status = parse_cart_status(frame)
    >>> print(status.is_ready)
"""

from flexilink.parsers.status import (
    VTR_MODE_SIGNATURES,
    VTR_SERIES,
    BinStatus,
    CartStatus,
    CartStatusParser,
    InventorySnapshot,
    VtrIdentity,
    VtrMode,
    VtrStatus,
    identify_vtr,
    parse_bin_status,
    parse_cart_status,
    parse_inventory,
    parse_vtr_status,
)

__all__ = [
    "CartStatus",
    "CartStatusParser",
    "parse_cart_status",
    "BinStatus",
    "parse_bin_status",
    "InventorySnapshot",
    "parse_inventory",
    "VtrMode",
    "VtrStatus",
    "VTR_MODE_SIGNATURES",
    "parse_vtr_status",
    "VtrIdentity",
    "VTR_SERIES",
    "identify_vtr",
]
