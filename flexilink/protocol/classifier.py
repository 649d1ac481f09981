"""
Response classification.

Both protocols answer with either a single status byte (ACK, NACK, BUSY)
or a data block. Only the first byte is inspected; the byte values come
from the device profile because they differ across firmware revisions.
"""

from __future__ import annotations

from flexilink.models.profile import ResponseBytes
from flexilink.models.records import ResponseFrame, ResponseKind


def classify(raw: bytes | bytearray, response_bytes: ResponseBytes) -> ResponseKind:
    """
    Classify a raw response by its first byte.

    Total: every input maps to exactly one kind.

    Example:
        >>> rb = ResponseBytes(ack=0x04, nack=0x05, busy=0x06)
        >>> classify(b"\\x04", rb)
        <ResponseKind.ACK: 'ack'>
        >>> classify(b"\\x61\\x10", rb)
        <ResponseKind.DATA: 'data'>
    """
    if not raw:
        return ResponseKind.EMPTY
    first = raw[0]
    if first == response_bytes.ack:
        return ResponseKind.ACK
    if first == response_bytes.nack:
        return ResponseKind.NACK
    if first == response_bytes.busy:
        return ResponseKind.BUSY
    return ResponseKind.DATA


class ResponseClassifier:
    """Classifier bound to one profile's response bytes."""

    __slots__ = ("_response_bytes",)

    def __init__(self, response_bytes: ResponseBytes) -> None:
        self._response_bytes = response_bytes

    @property
    def response_bytes(self) -> ResponseBytes:
        return self._response_bytes

    def classify(self, raw: bytes | bytearray) -> ResponseKind:
        return classify(raw, self._response_bytes)

    def frame(self, raw: bytes | bytearray, elapsed: float = 0.0) -> ResponseFrame:
        """Classify ``raw`` and wrap it in a ResponseFrame."""
        data = bytes(raw)
        return ResponseFrame(raw=data, kind=self.classify(data), elapsed=elapsed)

    def __repr__(self) -> str:
        rb = self._response_bytes
        return f"ResponseClassifier(ack=0x{rb.ack:02X}, nack=0x{rb.nack:02X}, busy=0x{rb.busy:02X})"
