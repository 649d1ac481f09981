"""
Protocol engine facade.

Ties a device profile, a command catalog and one executor per endpoint
together behind a name-based API, which is what front-ends (CLI, HTTP)
talk to.

Example:
    >>> from flexilink import ProtocolEngine, FLEXICART_PROFILE, DeviceAddress
    >>>
    >>> async def main():
    ...     async with ProtocolEngine(FLEXICART_PROFILE) as engine:
    ...         carts = await engine.scan_devices(["/dev/ttyRP0"], range(1, 9))
    ...         for address in carts:
    ...             await engine.execute_command("INITIALIZE", address)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from flexilink.catalog import CommandCatalog, create_default_catalog
from flexilink.executor import CommandExecutor
from flexilink.inventory import BinOccupancy
from flexilink.models.profile import FLEXICART_PROFILE, DeviceProfile
from flexilink.models.records import DecodedTimecode, DeviceAddress, ResponseFrame
from flexilink.parsers.status import (
    BinStatus,
    InventorySnapshot,
    parse_bin_status,
    parse_inventory,
)
from flexilink.protocol.constants import ProtocolConstants
from flexilink.protocol.timecode import DEFAULT_TIMECODE_DECODER, TimecodeDecoder
from flexilink.scanner import DeviceScanner, ScanReport
from flexilink.transport.abc import AbstractTransport
from flexilink.transport.serial_async import AsyncSerialTransport

logger = logging.getLogger(__name__)

TransportFactory = Callable[[str], AbstractTransport]


class ProtocolEngine:
    """
    Name-based entry point over executors, scanner and timecode decoder.

    Executors are created on first use of an endpoint and reused for every
    later command, poll and scan on it.
    """

    def __init__(
        self,
        profile: DeviceProfile = FLEXICART_PROFILE,
        transport_factory: TransportFactory | None = None,
        catalog: CommandCatalog | None = None,
        *,
        timecode_decoder: TimecodeDecoder = DEFAULT_TIMECODE_DECODER,
        probe_timeout: float = ProtocolConstants.DEFAULT_PROBE_TIMEOUT,
        inter_probe_delay: float = ProtocolConstants.DEFAULT_INTER_PROBE_DELAY,
    ) -> None:
        """
        Initialize the engine.

        Args:
            profile: Device profile for every endpoint of this engine.
            transport_factory: Builds the transport for an endpoint
                (default: AsyncSerialTransport with the profile's settings).
            catalog: Command catalog (default: built-in commands).
            timecode_decoder: Decoder used by decode_timecode().
            probe_timeout: Response timeout for scan probes.
            inter_probe_delay: Pause between scan probes.
        """
        self._profile = profile
        self._transport_factory = transport_factory or self._serial_transport
        self._catalog = catalog if catalog is not None else create_default_catalog()
        self._timecode_decoder = timecode_decoder
        self._executors: dict[str, CommandExecutor] = {}
        self._occupancy: dict[DeviceAddress, BinOccupancy] = {}
        self._scanner = DeviceScanner(
            self.executor_for,
            probe_timeout=probe_timeout,
            inter_probe_delay=inter_probe_delay,
        )

    @property
    def profile(self) -> DeviceProfile:
        return self._profile

    @property
    def catalog(self) -> CommandCatalog:
        return self._catalog

    @property
    def endpoints(self) -> list[str]:
        """Endpoints with an executor, in order of first use."""
        return list(self._executors)

    def _serial_transport(self, endpoint: str) -> AbstractTransport:
        return AsyncSerialTransport(endpoint, self._profile.serial)

    def executor_for(self, endpoint: str) -> CommandExecutor:
        """Get the executor for an endpoint, creating it on first use."""
        executor = self._executors.get(endpoint)
        if executor is None:
            executor = CommandExecutor(
                self._transport_factory(endpoint),
                self._profile,
                self._catalog,
            )
            self._executors[endpoint] = executor
            logger.debug("Created executor for %s (%s)", endpoint, self._profile.name)
        return executor

    async def execute_command(
        self,
        name: str,
        address: DeviceAddress,
        timeout: float | None = None,
        *,
        control: int | None = None,
        data: int | None = None,
    ) -> ResponseFrame:
        """
        Execute a catalog command by name.

        Args:
            name: Logical command name.
            address: Target device; its endpoint selects the executor.
            timeout: Response timeout (default: profile read policy).
            control: Override of the control byte (parameterised commands).
            data: Override of the data byte.

        Raises:
            UnknownCommandError: If the name is not in the catalog.
            ExecutionError: Subclasses as raised by CommandExecutor.execute().
            TransportWriteError: If the packet could not be written.
        """
        spec = self._catalog.get(name)
        if control is not None:
            spec = spec.with_control(control)
        if data is not None:
            spec = spec.with_data(data)
        return await self.executor_for(address.endpoint).execute(spec, address, timeout)

    async def move_to_position(
        self,
        address: DeviceAddress,
        bin_number: int,
        timeout: float | None = None,
    ) -> ResponseFrame:
        """
        Move a cart robot to a bin and wait for completion.

        Raises:
            ValueError: If ``bin_number`` is outside 1-360.
        """
        spec = self._catalog.move_to_position(bin_number)
        return await self.executor_for(address.endpoint).execute(spec, address, timeout)

    async def scan(
        self,
        endpoints: Iterable[str],
        addresses: Iterable[int],
        probe_name: str | None = None,
    ) -> ScanReport:
        """
        Probe every unit address on every endpoint and report each result.

        Args:
            endpoints: Endpoints to scan.
            addresses: Unit address bytes to try on each endpoint.
            probe_name: Catalog command to probe with (default: the
                protocol's probe command).
        """
        if probe_name is None:
            probe = self._catalog.probe(self._profile.protocol)
        else:
            probe = self._catalog.get(probe_name)
        return await self._scanner.scan(endpoints, addresses, probe)

    async def scan_devices(
        self,
        endpoints: Iterable[str],
        addresses: Iterable[int],
        probe_name: str | None = None,
    ) -> list[DeviceAddress]:
        """Probe every unit address on every endpoint and return those that answered."""
        report = await self.scan(endpoints, addresses, probe_name)
        return report.reachable

    def occupancy(self, address: DeviceAddress) -> BinOccupancy:
        """Get the tracked bin occupancy of a cart, creating it on first use."""
        occupancy = self._occupancy.get(address)
        if occupancy is None:
            occupancy = self._occupancy[address] = BinOccupancy()
        return occupancy

    async def read_inventory(self, address: DeviceAddress) -> InventorySnapshot:
        """
        Query the occupancy bitmap of a cart and update its tracked occupancy.

        Raises:
            ParseError: If the answer carries no bitmap.
        """
        frame = await self.execute_command("INVENTORY", address)
        snapshot = parse_inventory(frame)
        self.occupancy(address).apply_inventory(snapshot)
        return snapshot

    async def read_bin_status(
        self,
        address: DeviceAddress,
        bin_number: int,
        timeout: float | None = None,
    ) -> BinStatus:
        """
        Query occupancy and barcode of one bin and update the tracked occupancy.

        Raises:
            ValueError: If ``bin_number`` is outside 1-360.
            ParseError: If the answer is not a bin status.
        """
        spec = self._catalog.bin_status(bin_number)
        frame = await self.executor_for(address.endpoint).execute(spec, address, timeout)
        status = parse_bin_status(frame, bin_number)
        self.occupancy(address).apply_bin_status(status)
        logger.debug("Bin %d on %s: %r", bin_number, address, status)
        return status

    def decode_timecode(self, raw: bytes | bytearray) -> DecodedTimecode | None:
        """Decode a timecode answer, or return None if no format matches."""
        return self._timecode_decoder.decode(raw)

    async def read_timecode(
        self,
        address: DeviceAddress,
        name: str = "VTR_LTC_TIME",
    ) -> DecodedTimecode | None:
        """Query a VTR time sense command and decode its answer."""
        frame = await self.execute_command(name, address)
        return self.decode_timecode(frame.raw)

    async def close(self) -> None:
        """Close every executor's transport."""
        for executor in self._executors.values():
            await executor.close()

    async def __aenter__(self) -> ProtocolEngine:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"ProtocolEngine(profile={self._profile.name}, endpoints={len(self._executors)})"
