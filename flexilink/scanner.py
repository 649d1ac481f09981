"""
Device discovery.

Probes every (endpoint, unit address) pair with one cheap command and
reports which answered. Pairs are probed one after another: units on a
multidrop line share the wire, and a unit that answers late must not be
credited with the next unit's probe.

A failing pair never stops the scan; its error is recorded on the
ProbeResult and the scanner moves on.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from flexilink.exceptions import FlexilinkError
from flexilink.models.records import DeviceAddress, ResponseFrame, ResponseKind
from flexilink.protocol.constants import ProtocolConstants

if TYPE_CHECKING:
    from flexilink.executor import CommandExecutor
    from flexilink.models.records import CommandSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProbeResult:
    """
    Outcome of probing one address.

    Attributes:
        address: The probed device.
        reachable: Whether the device answered the probe.
        frame: The classified answer, if one arrived.
        error: The failure, if the probe raised.
        duration: Seconds spent on this probe.
    """

    address: DeviceAddress
    reachable: bool
    frame: ResponseFrame | None = None
    error: FlexilinkError | None = None
    duration: float = 0.0

    def __repr__(self) -> str:
        if self.error is not None:
            return f"ProbeResult({self.address}, error={type(self.error).__name__})"
        status = "reachable" if self.reachable else "silent"
        return f"ProbeResult({self.address}, {status})"


@dataclass
class ScanReport:
    """All probe results of one scan, in probe order."""

    results: list[ProbeResult] = field(default_factory=list)

    @property
    def reachable(self) -> list[DeviceAddress]:
        """Addresses that answered, in probe order."""
        return [result.address for result in self.results if result.reachable]

    @property
    def failures(self) -> list[ProbeResult]:
        """Probes that raised."""
        return [result for result in self.results if result.error is not None]

    def __len__(self) -> int:
        return len(self.results)


def is_probe_answer(frame: ResponseFrame) -> bool:
    """A probe counts as answered on DATA, or on an ACK that carries bytes."""
    if frame.kind is ResponseKind.DATA:
        return True
    return frame.kind is ResponseKind.ACK and len(frame.raw) > 0


class DeviceScanner:
    """
    Sequential prober over endpoints x unit addresses.

    Example:
        >>> scanner = DeviceScanner(engine.executor_for)
        >>> report = await scanner.scan(["/dev/ttyRP0"], [0x01, 0x02], catalog.get("DUMMY"))
        >>> report.reachable
        [DeviceAddress(endpoint='/dev/ttyRP0', unit=1)]
    """

    def __init__(
        self,
        executor_for: Callable[[str], CommandExecutor],
        *,
        probe_timeout: float = ProtocolConstants.DEFAULT_PROBE_TIMEOUT,
        inter_probe_delay: float = ProtocolConstants.DEFAULT_INTER_PROBE_DELAY,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the scanner.

        Args:
            executor_for: Returns the (shared) executor for an endpoint.
            probe_timeout: Response timeout for each probe.
            inter_probe_delay: Pause between consecutive probes.
            clock: Monotonic time source in seconds.
        """
        self._executor_for = executor_for
        self._probe_timeout = probe_timeout
        self._inter_probe_delay = inter_probe_delay
        self._clock = clock

    async def scan(
        self,
        endpoints: Iterable[str],
        addresses: Iterable[int],
        probe: CommandSpec,
    ) -> ScanReport:
        """
        Probe every unit address on every endpoint.

        Args:
            endpoints: Transport endpoints to scan.
            addresses: Unit address bytes (UA2) to try on each endpoint.
            probe: Command sent to each pair.

        Returns:
            ScanReport with exactly len(endpoints) * len(addresses) results.

        Raises:
            ValueError: If an endpoint's profile speaks another wire protocol
                than ``probe``. Nothing is sent in that case.
        """
        units = list(addresses)
        executors = [(endpoint, self._executor_for(endpoint)) for endpoint in endpoints]
        for endpoint, executor in executors:
            if executor.profile.protocol is not probe.protocol:
                raise ValueError(
                    f"Cannot scan {endpoint} with {probe.name}: profile "
                    f"{executor.profile.name!r} speaks {executor.profile.protocol.value}"
                )

        report = ScanReport()
        first = True

        for endpoint, executor in executors:
            for unit in units:
                if not first and self._inter_probe_delay > 0:
                    await asyncio.sleep(self._inter_probe_delay)
                first = False
                address = DeviceAddress(endpoint=endpoint, unit=unit)
                report.results.append(await self._probe(executor, address, probe))

        logger.info(
            "Scan finished: %d probed, %d reachable, %d failed",
            len(report),
            len(report.reachable),
            len(report.failures),
        )
        return report

    async def _probe(
        self,
        executor: CommandExecutor,
        address: DeviceAddress,
        probe: CommandSpec,
    ) -> ProbeResult:
        started_at = self._clock()
        try:
            frame = await executor.transact(probe, address, self._probe_timeout)
        except FlexilinkError as e:
            logger.debug("Probe %s failed: %s", address, e)
            return ProbeResult(
                address=address,
                reachable=False,
                frame=getattr(e, "frame", None),
                error=e,
                duration=self._clock() - started_at,
            )

        reachable = is_probe_answer(frame)
        logger.debug("Probe %s: %r", address, frame)
        return ProbeResult(
            address=address,
            reachable=reachable,
            frame=frame,
            duration=self._clock() - started_at,
        )
