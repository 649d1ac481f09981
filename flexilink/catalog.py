"""
Command catalog.

Maps logical command names to their wire codes and execution category.
The catalog is built once and is read-only afterwards, so it can be shared
between executors on different endpoints without locking.

Cart commands (CMD/CTRL, data 0x80):
    Immediate: STATUS 61/10, POSITION 61/20, INVENTORY 61/30,
               ERROR_STATUS 61/40, DUMMY 00/00, BIN_STATUS 62/bin
    Macro:     ELEVATOR_UP/DOWN 41/01-02, CAROUSEL_CW/CCW 42/01-02,
               MOVE_TO_POSITION 43/bin, LOAD_CART/UNLOAD_CART 44/01-02,
               EJECT_CART 45/00, INITIALIZE 46/00, CALIBRATE 47/00
    Control:   TALLY_ON 71/01, TALLY_OFF 71/00

VTR 9-pin commands (CMD1 CMD2 [DATA]):
    Immediate: VTR_DEVICE_TYPE 00 11, VTR_STATUS 61 20, VTR_LTC_TIME 78 20,
               VTR_CURRENT_TIME 74 20, VTR_TIMER_1 75 20
    Control:   transport (20 xx), local enable/disable (00 1D / 00 0C),
               VTR_PAUSE 21 11 00 (jog forward at still),
               VTR_JOG_FORWARD[_SLOW] 21 11 40/20,
               VTR_JOG_REVERSE[_SLOW] 21 21 40/20
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from types import MappingProxyType

from flexilink.exceptions import UnknownCommandError
from flexilink.models.records import CommandCategory, CommandSpec, WireProtocol
from flexilink.protocol.constants import (
    CartCommand,
    JogDirection,
    NinePinCommand,
    ProtocolConstants,
    SenseRequest,
)

_PROBES = {
    WireProtocol.CART: "DUMMY",
    WireProtocol.NINE_PIN: "VTR_DEVICE_TYPE",
}

_STATUS_QUERIES = {
    WireProtocol.CART: "STATUS",
    WireProtocol.NINE_PIN: "VTR_STATUS",
}


class CommandCatalog:
    """
    Immutable registry of command specifications keyed by name.

    Example:
        >>> catalog = create_default_catalog()
        >>> catalog.get("STATUS").category
        <CommandCategory.IMMEDIATE: 'immediate'>
        >>> "NOT_A_COMMAND" in catalog
        False
    """

    __slots__ = ("_specs", "_by_code")

    def __init__(self, specs: Iterable[CommandSpec]) -> None:
        """
        Build the catalog.

        Raises:
            ValueError: If two specs share a name.
        """
        by_name: dict[str, CommandSpec] = {}
        by_code: dict[tuple[WireProtocol, int, int], CommandSpec] = {}
        for spec in specs:
            if spec.name in by_name:
                raise ValueError(f"Duplicate command name: {spec.name!r}")
            by_name[spec.name] = spec
            # First entry wins for reverse lookup (e.g. MOVE_TO_POSITION bins)
            by_code.setdefault((spec.protocol, spec.command, spec.control), spec)
        self._specs = MappingProxyType(by_name)
        self._by_code = MappingProxyType(by_code)

    def get(self, name: str) -> CommandSpec:
        """
        Look up a command by logical name.

        Raises:
            UnknownCommandError: If the name is not in the catalog.
        """
        try:
            return self._specs[name]
        except KeyError:
            raise UnknownCommandError(name) from None

    def names(self) -> list[str]:
        return list(self._specs)

    def by_category(self, category: CommandCategory) -> list[CommandSpec]:
        """Get all commands in an execution category, in catalog order."""
        return [spec for spec in self._specs.values() if spec.category is category]

    def by_protocol(self, protocol: WireProtocol) -> list[CommandSpec]:
        """Get all commands of one wire protocol, in catalog order."""
        return [spec for spec in self._specs.values() if spec.protocol is protocol]

    def status_query(self, protocol: WireProtocol) -> CommandSpec:
        """
        Get the Immediate command used to poll Macro completion.

        Raises:
            UnknownCommandError: If this catalog has no status query for
                the protocol.
        """
        return self.get(_STATUS_QUERIES[WireProtocol(protocol)])

    def probe(self, protocol: WireProtocol) -> CommandSpec:
        """Get the cheap command used to probe for devices during a scan."""
        return self.get(_PROBES[WireProtocol(protocol)])

    def lookup(self, protocol: WireProtocol, command: int, control: int) -> CommandSpec | None:
        """Reverse lookup of a command by its wire codes."""
        return self._by_code.get((WireProtocol(protocol), command, control))

    def move_to_position(self, bin_number: int) -> CommandSpec:
        """
        Build the MOVE_TO_POSITION command for one bin.

        The bin is carried in the control byte, so bins above 255 are sent
        modulo 256.

        Raises:
            ValueError: If ``bin_number`` is outside 1-360.
        """
        return self._for_bin("MOVE_TO_POSITION", bin_number)

    def bin_status(self, bin_number: int) -> CommandSpec:
        """
        Build the BIN_STATUS query for one bin.

        Raises:
            ValueError: If ``bin_number`` is outside 1-360.
        """
        return self._for_bin("BIN_STATUS", bin_number)

    def jog(self, speed: int, *, reverse: bool = False) -> CommandSpec:
        """
        Build a VTR jog command at an arbitrary speed.

        Args:
            speed: Data byte, 0x00 (still) to 0xFF.
            reverse: Jog backwards instead of forwards.
        """
        name = "VTR_JOG_REVERSE" if reverse else "VTR_JOG_FORWARD"
        return self.get(name).with_data(speed)

    def _for_bin(self, name: str, bin_number: int) -> CommandSpec:
        if not 1 <= bin_number <= ProtocolConstants.MAX_BIN:
            raise ValueError(f"Invalid bin {bin_number}, must be 1-{ProtocolConstants.MAX_BIN}")
        return self.get(name).with_control(bin_number & 0xFF)

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    def __iter__(self) -> Iterator[CommandSpec]:
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)

    def __repr__(self) -> str:
        return f"CommandCatalog({len(self._specs)} commands)"


def _cart(name: str, command: int, control: int, category: CommandCategory) -> CommandSpec:
    return CommandSpec(
        name=name,
        protocol=WireProtocol.CART,
        command=command,
        control=control,
        category=category,
    )


def _nine_pin(
    name: str,
    command: int,
    control: int,
    category: CommandCategory,
    data: int | None = None,
) -> CommandSpec:
    return CommandSpec(
        name=name,
        protocol=WireProtocol.NINE_PIN,
        command=command,
        control=control,
        data=data,
        category=category,
    )


def default_command_specs() -> list[CommandSpec]:
    """Get the built-in command specifications, cart first then VTR."""
    immediate = CommandCategory.IMMEDIATE
    macro = CommandCategory.MACRO
    control = CommandCategory.CONTROL
    transport = NinePinCommand.TRANSPORT_CONTROL
    system = NinePinCommand.SYSTEM_CONTROL
    jog = NinePinCommand.VARIABLE_SPEED
    still = ProtocolConstants.JOG_SPEED_STILL
    slow = ProtocolConstants.JOG_SPEED_SLOW
    normal = ProtocolConstants.JOG_SPEED_NORMAL

    return [
        # Cart: queries
        _cart("STATUS", CartCommand.SENSE, SenseRequest.STATUS, immediate),
        _cart("POSITION", CartCommand.SENSE, SenseRequest.POSITION, immediate),
        _cart("INVENTORY", CartCommand.SENSE, SenseRequest.INVENTORY, immediate),
        _cart("ERROR_STATUS", CartCommand.SENSE, SenseRequest.ERRORS, immediate),
        _cart("DUMMY", CartCommand.DUMMY, 0x00, immediate),
        _cart("BIN_STATUS", CartCommand.SENSE_BIN_STATUS, 0x01, immediate),
        # Cart: mechanism macros
        _cart("ELEVATOR_UP", CartCommand.ELEVATOR, 0x01, macro),
        _cart("ELEVATOR_DOWN", CartCommand.ELEVATOR, 0x02, macro),
        _cart("CAROUSEL_CW", CartCommand.CAROUSEL, 0x01, macro),
        _cart("CAROUSEL_CCW", CartCommand.CAROUSEL, 0x02, macro),
        _cart("MOVE_TO_POSITION", CartCommand.MOVE_TO_POSITION, 0x01, macro),
        _cart("LOAD_CART", CartCommand.LOAD_UNLOAD, 0x01, macro),
        _cart("UNLOAD_CART", CartCommand.LOAD_UNLOAD, 0x02, macro),
        _cart("EJECT_CART", CartCommand.EJECT, 0x00, macro),
        _cart("INITIALIZE", CartCommand.INITIALIZE, 0x00, macro),
        _cart("CALIBRATE", CartCommand.CALIBRATE, 0x00, macro),
        # Cart: tally
        _cart("TALLY_ON", CartCommand.TALLY, 0x01, control),
        _cart("TALLY_OFF", CartCommand.TALLY, 0x00, control),
        # VTR: sense
        _nine_pin("VTR_DEVICE_TYPE", system, 0x11, immediate),
        _nine_pin("VTR_STATUS", NinePinCommand.SENSE_REQUEST, 0x20, immediate),
        _nine_pin("VTR_LTC_TIME", NinePinCommand.LTC_SENSE, 0x20, immediate),
        _nine_pin("VTR_CURRENT_TIME", NinePinCommand.TIME_SENSE, 0x20, immediate),
        _nine_pin("VTR_TIMER_1", NinePinCommand.TIMER_1_SENSE, 0x20, immediate),
        # VTR: transport
        _nine_pin("VTR_STOP", transport, 0x00, control),
        _nine_pin("VTR_PLAY", transport, 0x01, control),
        _nine_pin("VTR_STANDBY_OFF", transport, 0x04, control),
        _nine_pin("VTR_STANDBY_ON", transport, 0x05, control),
        _nine_pin("VTR_EJECT", transport, 0x0F, control),
        _nine_pin("VTR_FAST_FORWARD", transport, 0x10, control),
        _nine_pin("VTR_REWIND", transport, 0x20, control),
        # VTR: variable speed (data byte is the jog speed)
        _nine_pin("VTR_PAUSE", jog, JogDirection.FORWARD, control, data=still),
        _nine_pin("VTR_JOG_FORWARD", jog, JogDirection.FORWARD, control, data=normal),
        _nine_pin("VTR_JOG_FORWARD_SLOW", jog, JogDirection.FORWARD, control, data=slow),
        _nine_pin("VTR_JOG_REVERSE", jog, JogDirection.REVERSE, control, data=normal),
        _nine_pin("VTR_JOG_REVERSE_SLOW", jog, JogDirection.REVERSE, control, data=slow),
        # VTR: remote/local
        _nine_pin("VTR_LOCAL_DISABLE", system, 0x0C, control),
        _nine_pin("VTR_LOCAL_ENABLE", system, 0x1D, control),
    ]


def create_default_catalog() -> CommandCatalog:
    """
    Create a catalog with all built-in cart and VTR commands.

    Returns:
        CommandCatalog over ``default_command_specs()``.
    """
    return CommandCatalog(default_command_specs())
