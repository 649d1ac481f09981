"""
Command execution.

The executor sends one command to one device and turns whatever comes back
into a result. It implements the per-command state machine:

    IDLE -> SENT -> AWAITING_RESPONSE -> IDLE            (Immediate, Control)
    IDLE -> SENT -> AWAITING_RESPONSE -> POLLING -> IDLE (Macro)

Responses are attributed to commands purely by adjacency on the line, so
an executor owns its transport exclusively: stale input is discarded before
every write and a lock keeps a second command from being written while
the first is still awaiting its answer.

Example:
    >>> from flexilink import CommandExecutor, FLEXICART_PROFILE, DeviceAddress
    >>> from flexilink.transport import AsyncSerialTransport
    >>>
    >>> async def main():
    ...     transport = AsyncSerialTransport("/dev/ttyRP0", FLEXICART_PROFILE.serial)
    ...     async with CommandExecutor(transport, FLEXICART_PROFILE) as executor:
    ...         address = DeviceAddress(endpoint="/dev/ttyRP0", unit=0x01)
    ...         frame = await executor.execute(executor.catalog.get("ELEVATOR_UP"), address)
    ...         print(frame)
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from enum import Enum, auto
from typing import TYPE_CHECKING

from flexilink.catalog import CommandCatalog, create_default_catalog
from flexilink.exceptions import (
    CommandRejectedError,
    NoResponseError,
    OperationTimeoutError,
    TransportError,
    TransportWriteError,
    UnexpectedResponseError,
)
from flexilink.models.profile import FLEXICART_PROFILE, DeviceProfile
from flexilink.models.records import (
    CommandCategory,
    PollSession,
    ResponseFrame,
    ResponseKind,
    WireProtocol,
)
from flexilink.protocol.classifier import ResponseClassifier
from flexilink.protocol.packets import NinePinCodec, PacketCodec

if TYPE_CHECKING:
    from flexilink.models.records import CommandSpec, DeviceAddress
    from flexilink.transport.abc import AbstractTransport

# Module logger
logger = logging.getLogger(__name__)


class ExecutorState(Enum):
    """Per-command execution states."""

    IDLE = auto()
    """No command in flight."""

    SENT = auto()
    """Packet written, collection not yet started."""

    AWAITING_RESPONSE = auto()
    """Collecting the response under the read policy."""

    POLLING = auto()
    """Macro acknowledged, polling status for completion."""


class ExecutionOutcome(Enum):
    """How the most recent execution ended."""

    COMPLETED = auto()
    REJECTED = auto()
    TIMED_OUT = auto()
    FAILED = auto()


class CommandExecutor:
    """
    Executes catalog commands on the devices of one endpoint.

    Attributes:
        state: Current execution state.
        last_outcome: Outcome of the most recent execution, if any.
        profile: Device profile in use.
        catalog: Command catalog providing the Macro status query.
    """

    def __init__(
        self,
        transport: AbstractTransport,
        profile: DeviceProfile = FLEXICART_PROFILE,
        catalog: CommandCatalog | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the executor.

        Args:
            transport: Transport for this endpoint. Opened lazily.
            profile: Checksum, response bytes and timing to use.
            catalog: Catalog providing the status query for Macro polling.
            clock: Monotonic time source in seconds.
        """
        self._transport = transport
        self._profile = profile
        self._catalog = catalog if catalog is not None else create_default_catalog()
        self._clock = clock
        self._classifier = ResponseClassifier(profile.response_bytes)
        self._cart_codec = PacketCodec(profile.checksum)
        self._nine_pin_codec = NinePinCodec(profile.checksum)
        self._lock = asyncio.Lock()
        self._state = ExecutorState.IDLE
        self._last_outcome: ExecutionOutcome | None = None

    @property
    def state(self) -> ExecutorState:
        """Get the current execution state."""
        return self._state

    @property
    def last_outcome(self) -> ExecutionOutcome | None:
        """Get the outcome of the most recent execution."""
        return self._last_outcome

    @property
    def profile(self) -> DeviceProfile:
        return self._profile

    @property
    def catalog(self) -> CommandCatalog:
        return self._catalog

    @property
    def transport(self) -> AbstractTransport:
        """Get the underlying transport."""
        return self._transport

    @property
    def endpoint(self) -> str:
        return self._transport.port_name

    async def ensure_open(self) -> None:
        """Open the transport if it is not open yet."""
        if not self._transport.is_open:
            logger.debug("Opening transport %s", self.endpoint)
            await self._transport.open()

    async def close(self) -> None:
        """Close the transport. Safe to call when already closed."""
        async with self._lock:
            if self._transport.is_open:
                await self._transport.close()
                logger.debug("Closed transport %s", self.endpoint)

    def encode(self, spec: CommandSpec, address: DeviceAddress) -> bytes:
        """
        Encode ``spec`` for this executor's profile.

        Raises:
            ValueError: If the command belongs to the other wire protocol.
        """
        if spec.protocol is not self._profile.protocol:
            raise ValueError(
                f"{spec.name} is a {spec.protocol.value} command, "
                f"profile {self._profile.name!r} speaks {self._profile.protocol.value}"
            )
        if spec.protocol is WireProtocol.CART:
            return self._cart_codec.encode(spec, address)
        return self._nine_pin_codec.encode_spec(spec)

    async def execute(
        self,
        spec: CommandSpec,
        address: DeviceAddress,
        timeout: float | None = None,
    ) -> ResponseFrame:
        """
        Execute a command and return its result frame.

        Immediate and Control commands return the classified response as is.
        Macro commands must be acknowledged and are then polled with the
        catalog's status query until the device reports data.

        Args:
            spec: Command to execute.
            address: Target device.
            timeout: Response timeout in seconds (default: read policy).

        Returns:
            The response frame, or for Macro commands the completing
            status frame.

        Raises:
            TransportWriteError: If the packet could not be written.
            NoResponseError: If nothing arrived within the timeout.
            CommandRejectedError: If a Macro command was NACKed.
            UnexpectedResponseError: If a Macro command got neither ACK nor NACK.
            OperationTimeoutError: If Macro polling was exhausted.
        """
        async with self._lock:
            self._last_outcome = None
            try:
                await self.ensure_open()
                frame = await self._transact(spec, address, timeout)

                if spec.category is not CommandCategory.MACRO:
                    self._last_outcome = (
                        ExecutionOutcome.REJECTED if frame.is_nack else ExecutionOutcome.COMPLETED
                    )
                    return frame

                if frame.is_nack:
                    logger.warning("%s rejected by %s", spec.name, address)
                    self._last_outcome = ExecutionOutcome.REJECTED
                    raise CommandRejectedError(
                        "Command rejected", spec=spec, address=address, frame=frame
                    )
                if not frame.is_ack:
                    self._last_outcome = ExecutionOutcome.FAILED
                    raise UnexpectedResponseError(
                        f"Expected ACK or NACK, got {frame.kind.name} ({frame.hex})",
                        spec=spec,
                        address=address,
                        frame=frame,
                    )

                result = await self._poll_until_complete(spec, address)
                self._last_outcome = ExecutionOutcome.COMPLETED
                return result

            except (NoResponseError, OperationTimeoutError):
                self._last_outcome = ExecutionOutcome.TIMED_OUT
                raise
            except TransportError:
                self._last_outcome = ExecutionOutcome.FAILED
                raise
            finally:
                self._state = ExecutorState.IDLE

    async def transact(
        self,
        spec: CommandSpec,
        address: DeviceAddress,
        timeout: float | None = None,
    ) -> ResponseFrame:
        """
        Send one command and classify its response, without Macro polling.

        Raises:
            TransportWriteError: If the packet could not be written.
            NoResponseError: If nothing arrived within the timeout.
        """
        async with self._lock:
            try:
                await self.ensure_open()
                return await self._transact(spec, address, timeout)
            finally:
                self._state = ExecutorState.IDLE

    async def _transact(
        self,
        spec: CommandSpec,
        address: DeviceAddress,
        timeout: float | None,
    ) -> ResponseFrame:
        """Write one packet and collect its response. Caller holds the lock."""
        packet = self.encode(spec, address)
        effective_timeout = (
            timeout if timeout is not None else self._profile.read_policy.response_timeout
        )

        self._transport.discard_buffers()
        started_at = self._clock()
        try:
            await self._transport.write(packet)
        except TransportWriteError:
            raise
        except (TransportError, OSError) as e:
            raise TransportWriteError(f"Failed to send {spec.name} to {address}: {e}") from e

        self._state = ExecutorState.SENT
        logger.debug("TX %s -> %s: %s", spec.name, address, packet.hex(" ").upper())

        frame = await self._collect_response(effective_timeout, started_at)
        logger.debug("RX %s <- %s: %r", spec.name, address, frame)

        if frame.kind is ResponseKind.EMPTY:
            logger.warning("No response to %s from %s within %.2fs", spec.name, address, effective_timeout)
            raise NoResponseError(
                timeout_seconds=effective_timeout, spec=spec, address=address, frame=frame
            )
        return frame

    async def _collect_response(self, timeout: float, started_at: float) -> ResponseFrame:
        """
        Collect bytes until the read policy declares the response complete.

        The response ends after ``inactivity_gap`` of silence once at least
        one byte has arrived, after ``timeout`` if nothing arrived, or at
        ``max_duration`` regardless. A ``timeout`` longer than
        ``max_duration`` raises the ceiling to ``timeout``.
        """
        self._state = ExecutorState.AWAITING_RESPONSE
        policy = self._profile.read_policy
        first_byte_deadline = started_at + timeout
        hard_deadline = started_at + max(policy.max_duration, timeout)
        buffer = bytearray()

        while True:
            now = self._clock()
            if buffer:
                wait = min(policy.inactivity_gap, hard_deadline - now)
            else:
                wait = min(first_byte_deadline, hard_deadline) - now
            if wait <= 0:
                break

            chunk = await self._transport.read_chunk(wait)
            if not chunk:
                break
            buffer.extend(chunk)

        return self._classifier.frame(buffer, elapsed=self._clock() - started_at)

    async def _poll_until_complete(
        self,
        spec: CommandSpec,
        address: DeviceAddress,
    ) -> ResponseFrame:
        """
        Poll the status query until it returns non-empty data.

        A poll that gets no answer, or gets ACK, NACK or BUSY, still counts
        as an attempt.
        """
        policy = self._profile.poll_policy
        status_spec = self._catalog.status_query(spec.protocol)
        session = PollSession(
            address=address,
            max_attempts=policy.max_attempts,
            poll_interval=policy.poll_interval,
            started_at=self._clock(),
        )
        last_frame: ResponseFrame | None = None

        logger.debug("%s acknowledged by %s, polling for completion", spec.name, address)

        while not session.exhausted:
            self._state = ExecutorState.POLLING
            await asyncio.sleep(session.poll_interval)
            session.attempts += 1

            try:
                frame = await self._transact(status_spec, address, policy.poll_timeout)
            except NoResponseError as e:
                last_frame = e.frame
                logger.debug("Poll %d/%d: no response", session.attempts, session.max_attempts)
                continue

            last_frame = frame
            if frame.is_data and frame.raw:
                logger.info(
                    "%s completed on %s after %d polls (%.2fs)",
                    spec.name,
                    address,
                    session.attempts,
                    self._clock() - session.started_at,
                )
                return frame
            logger.debug(
                "Poll %d/%d: %s", session.attempts, session.max_attempts, frame.kind.name
            )

        logger.warning(
            "%s on %s did not complete after %d polls", spec.name, address, session.attempts
        )
        raise OperationTimeoutError(
            attempts=session.attempts, spec=spec, address=address, frame=last_frame
        )

    async def __aenter__(self) -> CommandExecutor:
        """Async context manager entry."""
        await self.ensure_open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit - close the transport."""
        await self.close()

    def __repr__(self) -> str:
        return (
            f"CommandExecutor({self.endpoint!r}, profile={self._profile.name}, "
            f"state={self._state.name})"
        )
