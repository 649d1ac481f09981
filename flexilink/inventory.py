"""
Cart bin occupancy tracking.

Keeps the last known occupancy and barcode of every bin of one cart robot,
updated from INVENTORY answers (whole-cart bitmap) and BIN_STATUS answers
(one bin, with barcode).

Example:
    >>> occupancy = BinOccupancy()
    >>> occupancy.apply_inventory(parse_inventory(frame))
    >>> occupancy.occupied_bins()
    [3, 17]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from flexilink.parsers.status import BinStatus, InventorySnapshot
from flexilink.protocol.constants import ProtocolConstants

logger = logging.getLogger(__name__)


@dataclass
class BinRecord:
    """Last known state of one bin."""

    bin_number: int
    occupied: bool = False
    barcode: str | None = None


@dataclass
class BinOccupancy:
    """
    Occupancy map over bins 1..max_bins.

    Attributes:
        max_bins: Number of bins on the cart.
        version: Incremented on every change of a bin.
    """

    max_bins: int = ProtocolConstants.MAX_BIN
    version: int = 0
    _bins: dict[int, BinRecord] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.max_bins < 1:
            raise ValueError(f"max_bins must be positive, got {self.max_bins}")
        self._bins = {n: BinRecord(n) for n in range(1, self.max_bins + 1)}

    def _record(self, bin_number: int) -> BinRecord:
        try:
            return self._bins[bin_number]
        except KeyError:
            raise ValueError(
                f"Invalid bin {bin_number}, must be 1-{self.max_bins}"
            ) from None

    def set_occupied(self, bin_number: int, barcode: str | None = None) -> None:
        """Mark a bin occupied, optionally with the cassette's barcode."""
        record = self._record(bin_number)
        if not record.occupied or (barcode is not None and barcode != record.barcode):
            record.occupied = True
            if barcode is not None:
                record.barcode = barcode
            self.version += 1

    def set_empty(self, bin_number: int) -> None:
        """Mark a bin empty and forget its barcode."""
        record = self._record(bin_number)
        if record.occupied:
            record.occupied = False
            record.barcode = None
            self.version += 1

    def is_occupied(self, bin_number: int) -> bool:
        return self._record(bin_number).occupied

    def barcode(self, bin_number: int) -> str | None:
        return self._record(bin_number).barcode

    def find_barcode(self, barcode: str) -> int | None:
        """Get the bin holding a cassette with this barcode, if known."""
        for record in self._bins.values():
            if record.occupied and record.barcode == barcode:
                return record.bin_number
        return None

    def occupied_bins(self) -> list[int]:
        return [n for n, record in self._bins.items() if record.occupied]

    def empty_bins(self) -> list[int]:
        return [n for n, record in self._bins.items() if not record.occupied]

    @property
    def occupancy_rate(self) -> float:
        """Fraction of bins occupied, 0.0 to 1.0."""
        return len(self.occupied_bins()) / self.max_bins

    def apply_inventory(self, snapshot: InventorySnapshot) -> None:
        """
        Update from an INVENTORY answer.

        Bins the snapshot covers are set occupied or empty; bins beyond it
        keep their previous state. Barcodes of bins that stay occupied are
        kept.
        """
        for bin_number in range(1, min(snapshot.bins_reported, self.max_bins) + 1):
            if bin_number in snapshot.occupied:
                self.set_occupied(bin_number)
            else:
                self.set_empty(bin_number)
        logger.debug(
            "Inventory applied: %d of %d bins occupied",
            len(self.occupied_bins()),
            self.max_bins,
        )

    def apply_bin_status(self, status: BinStatus) -> None:
        """Update one bin from a BIN_STATUS answer."""
        if status.occupied:
            self.set_occupied(status.bin_number, status.barcode)
        else:
            self.set_empty(status.bin_number)

    def __len__(self) -> int:
        return self.max_bins
