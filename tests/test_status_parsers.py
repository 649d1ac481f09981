"""Tests for status response parsers."""

import pytest

from flexilink.exceptions import ParseError
from flexilink.models.records import ResponseFrame, ResponseKind
from flexilink.parsers import (
    CartStatusParser,
    VtrMode,
    identify_vtr,
    parse_bin_status,
    parse_cart_status,
    parse_inventory,
    parse_vtr_status,
)


class TestCartStatusParser:
    """Tests for cart status answers."""

    def test_full_answer(self):
        """Test flags and positions from a 9-byte answer."""
        status = parse_cart_status(bytes.fromhex("61 10 01 01 00 01 02 05 0C"))

        assert status.initialized
        assert not status.emergency_stop
        assert not status.elevator_moving
        assert status.carousel_moving
        assert status.elevator_position == 5
        assert status.carousel_position == 12
        assert status.is_moving
        assert not status.is_ready

    def test_ready(self):
        status = parse_cart_status(bytes.fromhex("61 10 01 01 00 01 00"))
        assert status.is_ready
        assert status.elevator_position == 0
        assert status.carousel_position == 0

    def test_emergency_stop(self):
        status = parse_cart_status(bytes.fromhex("61 10 01 01 00 03 00 01"))
        assert status.emergency_stop
        assert status.elevator_position == 1
        assert not status.is_ready

    def test_accepts_frame(self):
        frame = ResponseFrame(raw=bytes.fromhex("61 10 01 01 00 00 01"), kind=ResponseKind.DATA)
        status = CartStatusParser().parse(frame)
        assert status.elevator_moving
        assert status.raw == frame.raw

    def test_too_short(self):
        with pytest.raises(ParseError) as exc_info:
            parse_cart_status(b"\x61\x10")
        assert exc_info.value.record_type == "cart_status"
        assert exc_info.value.raw_data == b"\x61\x10"


class TestVtrStatus:
    """Tests for VTR status answers."""

    @pytest.mark.parametrize(
        "raw,mode",
        [
            ("F7 7E", VtrMode.STOP),
            ("D7 BD", VtrMode.PLAY),
            ("F7 9F", VtrMode.FAST_FORWARD),
            ("F7 F7", VtrMode.REWIND),
            ("6F 77", VtrMode.JOG_FORWARD),
            ("6F 6F", VtrMode.JOG_REVERSE),
            ("00 00", VtrMode.UNKNOWN),
        ],
    )
    def test_mode_signatures(self, raw, mode):
        assert parse_vtr_status(bytes.fromhex(raw)).mode is mode

    def test_tape_present(self):
        assert parse_vtr_status(bytes.fromhex("00 01 00")).tape_present
        assert not parse_vtr_status(bytes.fromhex("00 00 00")).tape_present

    def test_too_short(self):
        with pytest.raises(ParseError):
            parse_vtr_status(b"\xF7")


class TestIdentifyVtr:
    """Tests for VTR device type answers."""

    def test_known_series(self):
        identity = identify_vtr(bytes.fromhex("20 25 03"))
        assert identity.series == "DVW"
        assert identity.sub_type == 0x25
        assert str(identity) == "DVW series, sub-type 0x25, version 0x03"

    def test_unknown_series(self):
        identity = identify_vtr(bytes.fromhex("99 00 01"))
        assert identity.series is None
        assert str(identity).startswith("Unknown (0x99)")

    def test_too_short(self):
        with pytest.raises(ParseError):
            identify_vtr(b"\x20\x25")


BIN_STATUS_HEADER = bytes.fromhex("02 06 01 01 00 72 2A")


class TestParseBinStatus:
    """Tests for bin status returns."""

    def test_occupied_with_barcode(self):
        raw = BIN_STATUS_HEADER + b"\x01" + b"ABC123\x00"
        status = parse_bin_status(raw, 42)

        assert status.bin_number == 42
        assert status.occupied
        assert status.barcode == "ABC123"

    def test_empty_bin_has_no_barcode(self):
        status = parse_bin_status(BIN_STATUS_HEADER + b"\x00" + b"OLD", 42)
        assert not status.occupied
        assert status.barcode is None

    def test_occupied_without_barcode(self):
        frame = ResponseFrame(raw=BIN_STATUS_HEADER + b"\x01", kind=ResponseKind.DATA)
        status = parse_bin_status(frame, 7)
        assert status.occupied
        assert status.barcode is None

    def test_bare_ack_means_empty(self):
        """Test that a device answering ACK alone reports the bin empty."""
        status = parse_bin_status(ResponseFrame(raw=b"\x04", kind=ResponseKind.ACK), 300)
        assert status.bin_number == 300
        assert not status.occupied

    @pytest.mark.parametrize(
        "raw",
        [
            BIN_STATUS_HEADER,
            bytes.fromhex("02 06 01 01 00 61 2A 01"),
            b"\x04",
        ],
    )
    def test_not_a_bin_status_return(self, raw):
        with pytest.raises(ParseError) as exc_info:
            parse_bin_status(raw, 42)
        assert exc_info.value.record_type == "bin_status"


class TestParseInventory:
    """Tests for inventory bitmaps."""

    def test_bitmap(self):
        """Test that bin N maps to byte (N-1)//8, bit (N-1)%8."""
        snapshot = parse_inventory(bytes.fromhex("02 06 01 01 00") + b"\x05\x80")

        assert snapshot.occupied == frozenset({1, 3, 16})
        assert snapshot.bins_reported == 16
        assert snapshot.empty == [2, 4, 5, 6, 7, 8, 9, 10, 11, 12, 13, 14, 15]

    def test_reported_bins_capped(self):
        snapshot = parse_inventory(bytes(5) + b"\xff" * 50)
        assert snapshot.bins_reported == 360
        assert len(snapshot.occupied) == 360

    def test_no_bitmap(self):
        with pytest.raises(ParseError) as exc_info:
            parse_inventory(bytes.fromhex("02 06 01 01 00"))
        assert exc_info.value.record_type == "inventory"
