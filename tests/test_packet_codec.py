"""Tests for cart and 9-pin packet encoding."""

import pytest
from pydantic import ValidationError

from flexilink.catalog import create_default_catalog
from flexilink.exceptions import ChecksumMismatchError
from flexilink.models.records import CommandCategory, CommandSpec, DeviceAddress, WireProtocol
from flexilink.protocol.checksums import ChecksumAlgorithm
from flexilink.protocol.packets import NinePinCodec, PacketCodec


@pytest.fixture
def catalog():
    return create_default_catalog()


@pytest.fixture
def cart_address():
    return DeviceAddress(endpoint="mock://cart", unit=0x01)


class TestPacketCodec:
    """Tests for the 9-byte cart packet."""

    def test_status_packet(self, catalog, cart_address):
        """Test the STATUS packet for unit 1 byte for byte."""
        packet = PacketCodec().encode(catalog.get("STATUS"), cart_address)
        assert packet == bytes.fromhex("02 06 01 01 00 61 10 80 07")

    def test_layout(self, catalog):
        """Test that every field lands at its offset."""
        spec = catalog.get("ELEVATOR_UP")
        packet = PacketCodec().encode(spec, DeviceAddress(endpoint="x", unit=0x05))

        assert len(packet) == 9
        assert packet[0] == 0x02
        assert packet[1] == 0x06
        assert packet[2] == 0x01
        assert packet[3] == 0x05
        assert packet[4] == 0x00
        assert packet[5] == 0x41
        assert packet[6] == 0x01
        assert packet[7] == 0x80

    def test_checksum_sums_to_zero(self, catalog, cart_address):
        """Test that bytes 1..8 sum to zero modulo 256 for every cart command."""
        codec = PacketCodec()
        for spec in catalog.by_protocol(WireProtocol.CART):
            packet = codec.encode(spec, cart_address)
            assert sum(packet[1:9]) & 0xFF == 0, spec.name

    def test_xor_variant(self, catalog, cart_address):
        """Test the XOR checksum variant of the same packet."""
        packet = PacketCodec(ChecksumAlgorithm.XOR).encode(catalog.get("STATUS"), cart_address)
        assert packet == bytes.fromhex("02 06 01 01 00 61 10 80 F7")

    def test_deterministic(self, catalog, cart_address):
        """Test that encoding twice yields identical bytes."""
        codec = PacketCodec()
        spec = catalog.get("CALIBRATE")
        assert codec.encode(spec, cart_address) == codec.encode(spec, cart_address)

    def test_missing_data_uses_default(self, cart_address):
        """Test that a spec without a data byte is sent with 0x80."""
        spec = CommandSpec(
            name="RAW",
            protocol=WireProtocol.CART,
            command=0x61,
            control=0x10,
            data=None,
            category=CommandCategory.IMMEDIATE,
        )
        assert PacketCodec().encode(spec, cart_address)[7] == 0x80

    def test_verify_checksum(self):
        """Test verification of valid, corrupted and short packets."""
        codec = PacketCodec()
        assert codec.verify_checksum(bytes.fromhex("02 06 01 01 00 61 10 80 07")) is True
        assert codec.verify_checksum(bytes.fromhex("02 06 01 01 00 61 10 80 08")) is False
        assert codec.verify_checksum(bytes.fromhex("02 06 01 01 00 61 10 80")) is False

    def test_ensure_valid_raises_with_values(self):
        """Test that a bad checksum reports expected and received values."""
        with pytest.raises(ChecksumMismatchError) as exc_info:
            PacketCodec().ensure_valid(bytes.fromhex("02 06 01 01 00 61 10 80 08"))

        assert exc_info.value.expected == 0x07
        assert exc_info.value.received == 0x08
        assert "0x07" in str(exc_info.value)

    def test_ensure_valid_wrong_length(self):
        """Test that a short packet is rejected before checksum comparison."""
        with pytest.raises(ValueError):
            PacketCodec().ensure_valid(b"\x02\x06")

    def test_out_of_range_fields_rejected_by_model(self):
        """Test that byte ranges are enforced before encoding."""
        with pytest.raises(ValidationError):
            DeviceAddress(endpoint="x", unit=0x100)
        with pytest.raises(ValidationError):
            CommandSpec(
                name="BAD",
                protocol=WireProtocol.CART,
                command=0x61,
                control=-1,
                category=CommandCategory.IMMEDIATE,
            )


class TestNinePinCodec:
    """Tests for VTR 9-pin packets."""

    @pytest.mark.parametrize(
        "command,expected",
        [
            ([0x20, 0x00], "20 00 20"),
            ([0x20, 0x01], "20 01 21"),
            ([0x78, 0x20], "78 20 58"),
            ([0x21, 0x11, 0x00], "21 11 00 30"),
        ],
    )
    def test_encode(self, command, expected):
        """Test XOR-checksummed packets."""
        assert NinePinCodec().encode(command) == bytes.fromhex(expected)

    def test_encode_additive(self):
        """Test the additive variant seen in older transport tables."""
        assert NinePinCodec(ChecksumAlgorithm.ADDITIVE).encode([0x20, 0x20]) == bytes.fromhex("20 20 40")

    @pytest.mark.parametrize("length", [0, 1, 4])
    def test_encode_rejects_bad_length(self, length):
        """Test that only 2 or 3 command bytes are accepted."""
        with pytest.raises(ValueError):
            NinePinCodec().encode(bytes(length))

    def test_encode_spec(self, catalog):
        """Test encoding catalog entries with and without a third byte."""
        codec = NinePinCodec()
        assert codec.encode_spec(catalog.get("VTR_PLAY")) == bytes.fromhex("20 01 21")
        assert codec.encode_spec(catalog.get("VTR_PAUSE")) == bytes.fromhex("21 11 00 30")

    def test_verify(self):
        """Test verification of complete 9-pin packets."""
        codec = NinePinCodec()
        assert codec.verify(bytes.fromhex("20 01 21")) is True
        assert codec.verify(bytes.fromhex("20 01 22")) is False
        assert codec.verify(bytes.fromhex("20 01")) is False
