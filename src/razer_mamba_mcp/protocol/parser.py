"""Decoders for query replies.

Each parser validates the raw 90-byte reply against the request that
elicited it and raises a :class:`~razer_mamba_mcp.exceptions.ValidationError`
subclass if it does not match.
"""

from __future__ import annotations

from dataclasses import dataclass

from .commands import Command, Group
from .framing import OFF_SUB_COMMAND, validate_reply

SERIAL_LENGTH = 20


@dataclass
class BatteryResponse:
    """Raw battery level, 0-255."""

    level: int

    @property
    def percent(self) -> int:
        return round(self.level * 100 / 255)


@dataclass
class ChargingResponse:
    charging: bool


def parse_battery_level(data: bytes) -> BatteryResponse:
    params = validate_reply(data, Group.POWER, Command.BATTERY_LEVEL, 0x00)
    return BatteryResponse(level=params[0])


def parse_charging_status(data: bytes) -> ChargingResponse:
    params = validate_reply(data, Group.POWER, Command.CHARGING_STATUS, 0x00)
    return ChargingResponse(charging=bool(params[0]))


def parse_serial(data: bytes) -> str:
    """Decode the serial number reply.

    The serial starts in the sub-command byte and runs 20 bytes, NUL-padded
    ASCII. The sub-command is data here, so it is not echo-checked.
    """
    validate_reply(data, Group.INFO, Command.GET_SERIAL)
    raw = bytes(data[OFF_SUB_COMMAND : OFF_SUB_COMMAND + SERIAL_LENGTH])
    return raw.split(b"\x00")[0].decode("ascii", errors="replace")
