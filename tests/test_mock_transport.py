"""Tests for MockTransport."""

import asyncio

import pytest

from flexilink.exceptions import TransportError, TransportWriteError
from flexilink.transport.mock import MockTransport, ScriptedMockTransport


class TestMockTransport:
    """Tests for MockTransport class."""

    @pytest.fixture
    def transport(self):
        """Create a MockTransport instance."""
        return MockTransport()

    @pytest.mark.asyncio
    async def test_open_close(self, transport):
        """Test opening and closing transport."""
        assert not transport.is_open
        await transport.open()
        assert transport.is_open
        assert transport.open_count == 1
        await transport.close()
        assert not transport.is_open

    @pytest.mark.asyncio
    async def test_double_open_raises(self, transport):
        """Test that opening twice raises error."""
        await transport.open()
        with pytest.raises(TransportError):
            await transport.open()

    @pytest.mark.asyncio
    async def test_write_records_data(self, transport):
        """Test that write records data."""
        await transport.open()
        await transport.write(b"hello")
        await transport.write(b"world")
        assert transport.written_data == [b"hello", b"world"]
        assert transport.last_written == b"world"

    @pytest.mark.asyncio
    async def test_write_when_closed_raises(self, transport):
        """Test that writing to closed transport raises."""
        with pytest.raises(TransportError):
            await transport.write(b"test")

    @pytest.mark.asyncio
    async def test_response_released_by_write(self, transport):
        """Test that a queued response only becomes readable after a write."""
        await transport.open()
        transport.add_response(b"\x04")

        assert await transport.read_chunk(0.01) == b""
        await transport.write(b"cmd")
        assert await transport.read_chunk(0.01) == b"\x04"

    @pytest.mark.asyncio
    async def test_one_response_per_write(self, transport):
        """Test FIFO release of multiple responses."""
        await transport.open()
        transport.add_responses(b"\x04", b"\x61\x10")

        await transport.write(b"a")
        assert await transport.read_chunk(0.01) == b"\x04"
        assert transport.pending_responses == 1
        await transport.write(b"b")
        assert await transport.read_chunk(0.01) == b"\x61\x10"

    @pytest.mark.asyncio
    async def test_empty_response_means_silence(self, transport):
        """Test that b"" leaves the line silent for that write."""
        await transport.open()
        transport.add_response(b"")
        await transport.write(b"a")
        assert await transport.read_chunk(0.01) == b""

    @pytest.mark.asyncio
    async def test_read_chunk_max_bytes(self, transport):
        """Test that read_chunk honours max_bytes."""
        await transport.open()
        transport.feed(b"\x01\x02\x03")
        assert await transport.read_chunk(0.01, max_bytes=2) == b"\x01\x02"
        assert await transport.read_chunk(0.01) == b"\x03"

    @pytest.mark.asyncio
    async def test_read_when_closed_raises(self, transport):
        with pytest.raises(TransportError):
            await transport.read_chunk(0.01)

    @pytest.mark.asyncio
    async def test_response_callback(self, transport):
        """Test dynamic response generation."""
        await transport.open()
        transport.set_response_callback(lambda data: data[::-1])
        await transport.write(b"\x01\x02")
        assert await transport.read_chunk(0.01) == b"\x02\x01"

    @pytest.mark.asyncio
    async def test_callback_none_falls_back_to_queue(self, transport):
        await transport.open()
        transport.add_response(b"\x05")
        transport.set_response_callback(lambda data: None)
        await transport.write(b"x")
        assert await transport.read_chunk(0.01) == b"\x05"

    @pytest.mark.asyncio
    async def test_discard_buffers(self, transport):
        """Test that discard drops unread input."""
        await transport.open()
        transport.feed(b"\x99")
        transport.discard_buffers()
        assert transport.discard_count == 1
        assert await transport.read_chunk(0.01) == b""

    @pytest.mark.asyncio
    async def test_fail_writes(self, transport):
        """Test injected write failures."""
        await transport.open()
        transport.fail_writes(OSError("line dropped"))
        with pytest.raises(TransportWriteError):
            await transport.write(b"x")
        assert transport.written_data == []

        transport.fail_writes(None)
        await transport.write(b"x")
        transport.assert_write_count(1)

    @pytest.mark.asyncio
    async def test_assert_written(self, transport):
        """Test write assertion helpers."""
        await transport.open()
        await transport.write(b"\x20\x01\x21")
        transport.assert_written(b"\x20\x01\x21")
        with pytest.raises(AssertionError):
            transport.assert_written(b"\x20\x00\x20")

    @pytest.mark.asyncio
    async def test_context_manager(self, transport):
        async with transport:
            assert transport.is_open
        assert not transport.is_open


class TestScriptedMockTransport:
    """Tests for ScriptedMockTransport."""

    @pytest.mark.asyncio
    async def test_script_follows_requests(self):
        """Test scripted request/response pairs."""
        transport = ScriptedMockTransport()
        transport.expect(request=b"\x20\x01\x21", response=b"\x10")
        transport.expect(response=b"\x61")

        await transport.open()
        await transport.write(b"\x20\x01\x21")
        assert await transport.read_chunk(0.01) == b"\x10"
        await transport.write(b"anything")
        assert await transport.read_chunk(0.01) == b"\x61"
        assert transport.script_complete

    @pytest.mark.asyncio
    async def test_script_mismatch_raises(self):
        transport = ScriptedMockTransport()
        transport.expect(request=b"\x20\x01\x21", response=b"\x10")

        await transport.open()
        with pytest.raises(AssertionError, match="Script mismatch"):
            await transport.write(b"\x20\x00\x20")

    @pytest.mark.asyncio
    async def test_fail_writes_applies_to_script(self):
        """Test that injected write failures also stop scripted writes."""
        transport = ScriptedMockTransport()
        transport.expect(response=b"\x10")

        await transport.open()
        transport.fail_writes(OSError("line dropped"))
        with pytest.raises(TransportWriteError):
            await transport.write(b"\x20\x01\x21")
        assert transport.written_data == []
        assert not transport.script_complete


class TestTimedResponses:
    """Tests for responses delivered in chunks after the write."""

    @pytest.fixture
    def transport(self):
        return MockTransport()

    @pytest.mark.asyncio
    async def test_chunks_arrive_after_their_delay(self, transport):
        """Test that each chunk becomes readable only once its delay passes."""
        await transport.open()
        transport.add_timed_response((0.0, b"\x61"), (0.1, b"\x10\x01"))

        await transport.write(b"cmd")
        assert await transport.read_chunk(0.03) == b"\x61"
        assert await transport.read_chunk(0.01) == b""
        assert await transport.read_chunk(0.5) == b"\x10\x01"

    @pytest.mark.asyncio
    async def test_read_wakes_on_delivery(self, transport):
        """Test that a waiting read returns when the chunk lands, not at its timeout."""
        await transport.open()
        transport.add_timed_response((0.05, b"\x04"))

        loop = asyncio.get_running_loop()
        await transport.write(b"cmd")
        started = loop.time()
        assert await transport.read_chunk(2.0) == b"\x04"
        assert loop.time() - started < 1.0

    @pytest.mark.asyncio
    async def test_timed_response_released_by_write(self, transport):
        await transport.open()
        transport.add_timed_response((0.0, b"\x04"))

        assert await transport.read_chunk(0.02) == b""
        assert transport.pending_responses == 1
        await transport.write(b"cmd")
        assert await transport.read_chunk(0.05) == b"\x04"

    @pytest.mark.asyncio
    async def test_close_drops_undelivered_chunks(self, transport):
        await transport.open()
        transport.add_timed_response((0.0, b"\x61"), (0.05, b"\x10"))

        await transport.write(b"cmd")
        assert await transport.read_chunk(0.03) == b"\x61"
        await transport.close()
        await asyncio.sleep(0.1)

        await transport.open()
        assert await transport.read_chunk(0.01) == b""
