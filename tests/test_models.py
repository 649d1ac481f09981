"""Tests for data models and profiles."""

import pytest
from pydantic import ValidationError

from flexilink.models.profile import (
    BUILTIN_PROFILES,
    FLEXICART_EARLY_PROFILE,
    FLEXICART_PROFILE,
    VTR_PROFILE,
    DeviceProfile,
    ReadPolicy,
    ResponseBytes,
    SerialSettings,
    get_profile,
)
from flexilink.models.records import (
    CommandCategory,
    CommandSpec,
    DecodedTimecode,
    DeviceAddress,
    PollSession,
    ResponseFrame,
    ResponseKind,
    WireProtocol,
)
from flexilink.protocol.checksums import ChecksumAlgorithm


class TestCommandSpec:
    """Tests for CommandSpec model."""

    @pytest.fixture
    def spec(self):
        return CommandSpec(
            name="MOVE_TO_POSITION",
            protocol=WireProtocol.CART,
            command=0x43,
            control=0x01,
            category=CommandCategory.MACRO,
        )

    def test_defaults(self, spec):
        assert spec.data == 0x80
        assert spec.block_type == 0x00
        assert spec.is_macro

    def test_immutable(self, spec):
        """Test that specs are frozen."""
        with pytest.raises(ValidationError):
            spec.control = 0x02

    def test_with_control(self, spec):
        """Test deriving a parameterised copy."""
        derived = spec.with_control(0x20)
        assert derived.control == 0x20
        assert spec.control == 0x01
        assert derived.name == spec.name

    def test_with_control_validates(self, spec):
        with pytest.raises(ValidationError):
            spec.with_control(0x1FF)

    def test_with_data(self, spec):
        assert spec.with_data(None).data is None
        assert spec.with_data(0x05).data == 0x05

    def test_hashable(self, spec):
        assert len({spec, spec.with_control(0x01)}) == 1

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            CommandSpec(
                name="",
                protocol=WireProtocol.CART,
                command=0x61,
                category=CommandCategory.IMMEDIATE,
            )


class TestDeviceAddress:
    """Tests for DeviceAddress model."""

    def test_str(self):
        assert str(DeviceAddress(endpoint="/dev/ttyRP0", unit=0x0A)) == "/dev/ttyRP0#0A"

    def test_unit_address_1_fixed(self):
        assert DeviceAddress(endpoint="x", unit=0x03).unit_address_1 == 0x01

    @pytest.mark.parametrize("unit", [-1, 256])
    def test_unit_range(self, unit):
        with pytest.raises(ValidationError):
            DeviceAddress(endpoint="x", unit=unit)


class TestDecodedTimecode:
    """Tests for DecodedTimecode model."""

    def test_str(self):
        assert str(DecodedTimecode(hours=1, minutes=2, seconds=3, frames=4)) == "01:02:03:04"

    @pytest.mark.parametrize(
        "field,value",
        [("hours", 24), ("minutes", 60), ("seconds", 60), ("frames", 30)],
    )
    def test_out_of_range_rejected(self, field, value):
        """Test that out-of-range components fail validation."""
        values = {"hours": 0, "minutes": 0, "seconds": 0, "frames": 0, field: value}
        with pytest.raises(ValidationError):
            DecodedTimecode(**values)

    def test_from_components(self):
        assert DecodedTimecode.from_components(23, 59, 59, 29).as_tuple() == (23, 59, 59, 29)
        assert DecodedTimecode.from_components(24, 0, 0, 0) is None


class TestResponseFrame:
    """Tests for ResponseFrame."""

    def test_properties(self):
        frame = ResponseFrame(raw=b"\x61\x10", kind=ResponseKind.DATA, elapsed=0.05)
        assert frame.is_data
        assert not frame.is_ack
        assert frame.hex == "61 10"
        assert len(frame) == 2
        assert "DATA" in repr(frame)

    def test_frozen(self):
        frame = ResponseFrame(raw=b"\x04", kind=ResponseKind.ACK)
        with pytest.raises(AttributeError):
            frame.raw = b"\x05"


class TestPollSession:
    """Tests for PollSession."""

    def test_exhausted(self):
        session = PollSession(
            address=DeviceAddress(endpoint="x", unit=1),
            max_attempts=2,
            poll_interval=0.0,
            started_at=0.0,
        )
        assert not session.exhausted
        session.attempts = 2
        assert session.exhausted


class TestProfiles:
    """Tests for device profiles."""

    def test_builtin_profiles(self):
        """Test the built-in profile values."""
        assert FLEXICART_PROFILE.response_bytes.ack == 0x04
        assert FLEXICART_PROFILE.checksum is ChecksumAlgorithm.TWOS_COMPLEMENT
        assert FLEXICART_PROFILE.serial.baudrate == 19200
        assert FLEXICART_PROFILE.serial.parity == "E"

        assert FLEXICART_EARLY_PROFILE.response_bytes.ack == 0x10
        assert FLEXICART_EARLY_PROFILE.serial.baudrate == 38400

        assert VTR_PROFILE.protocol is WireProtocol.NINE_PIN
        assert VTR_PROFILE.checksum is ChecksumAlgorithm.XOR
        assert VTR_PROFILE.response_bytes.nack == 0x11
        assert str(VTR_PROFILE.serial) == "38400 8N1"

    def test_get_profile(self):
        assert get_profile("vtr") is VTR_PROFILE
        assert set(BUILTIN_PROFILES) == {"flexicart", "flexicart-early", "vtr"}

    def test_get_profile_unknown(self):
        with pytest.raises(KeyError, match="available"):
            get_profile("betamax")

    def test_response_bytes_must_be_distinct(self):
        with pytest.raises(ValidationError, match="distinct"):
            ResponseBytes(ack=0x04, nack=0x04, busy=0x06)

    def test_read_policy_bounds(self):
        with pytest.raises(ValidationError):
            ReadPolicy(inactivity_gap=0)
        with pytest.raises(ValidationError):
            ReadPolicy(inactivity_gap=1.0, max_duration=0.5)

    def test_serial_settings_validation(self):
        with pytest.raises(ValidationError):
            SerialSettings(parity="X")

    def test_profile_from_mapping(self):
        """Test loading a profile from plain configuration data."""
        profile = DeviceProfile.model_validate(
            {
                "name": "studio-b",
                "protocol": "cart",
                "checksum": "xor",
                "response_bytes": {"ack": 4, "nack": 5, "busy": 6},
                "poll_policy": {"max_attempts": 10, "poll_interval": 0.2},
            }
        )
        assert profile.protocol is WireProtocol.CART
        assert profile.checksum is ChecksumAlgorithm.XOR
        assert profile.poll_policy.max_attempts == 10
        assert profile.read_policy.inactivity_gap == pytest.approx(0.05)
