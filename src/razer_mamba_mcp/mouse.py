"""High-level command catalog for one Razer Mamba.

Every method builds a frame with :mod:`.protocol.commands`, exchanges it
over the connection and, for queries, decodes the reply with
:mod:`.protocol.parser`. Transfer and validation failures are logged and
turned into sentinels: ``-1`` for numeric reads, ``""`` for the serial and
``False`` for setters.
"""

from __future__ import annotations

import logging
from typing import Callable, TypeVar

from .exceptions import TransferError, ValidationError
from .models.color import BLACK, RGBColor
from .protocol import commands
from .protocol.framing import Frame
from .protocol.parser import parse_battery_level, parse_charging_status, parse_serial
from .transport.usb_connection import USBConnection

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RazerMouse:
    """Command catalog bound to one connection.

    The connection serializes transfers, so a ``RazerMouse`` may be shared
    between threads.
    """

    def __init__(self, connection: USBConnection) -> None:
        self._connection = connection

    @property
    def connection(self) -> USBConnection:
        return self._connection

    def _send(self, frame: Frame, what: str) -> bool:
        try:
            self._connection.send(frame)
        except (TransferError, ConnectionError) as e:
            logger.warning("Unable to %s: %s", what, e)
            return False
        return True

    def _query(self, frame: Frame, parse: Callable[[bytes], T], what: str) -> T | None:
        try:
            data = self._connection.query(frame)
            return parse(data)
        except (TransferError, ConnectionError) as e:
            logger.warning("Unable to get %s: %s", what, e)
        except ValidationError as e:
            logger.warning("%s reply incorrect: %s", what.capitalize(), e)
        return None

    # ─── QUERIES ─────────────────────────────────────────────────────

    def get_serial(self) -> str:
        """Serial number (up to 20 characters), or ``""`` on failure."""
        serial = self._query(commands.build_get_serial(), parse_serial, "serial")
        return serial if serial is not None else ""

    def get_battery_level(self) -> int:
        """Raw battery level 0-255, or -1 on failure."""
        reply = self._query(commands.build_get_battery_level(), parse_battery_level, "battery level")
        return reply.level if reply is not None else -1

    def is_charging(self) -> int:
        """1 when charging, 0 when not, -1 on failure."""
        reply = self._query(
            commands.build_get_charging_status(), parse_charging_status, "charging status"
        )
        return int(reply.charging) if reply is not None else -1

    # ─── LIGHTING EFFECTS ────────────────────────────────────────────

    def set_wave_mode(self, direction: int) -> bool:
        return self._send(commands.build_wave_mode(direction), "set wave mode")

    def set_static_mode(self, colour: RGBColor) -> bool:
        return self._send(commands.build_static_mode(colour), "set static mode")

    def set_spectrum_mode(self) -> bool:
        return self._send(commands.build_spectrum_mode(), "set spectrum mode")

    def set_reactive_mode(self, colour: RGBColor, speed: int) -> bool:
        return self._send(commands.build_reactive_mode(colour, speed), "set reactive mode")

    def set_breath_mode(
        self,
        breath_type: int,
        colour1: RGBColor = BLACK,
        colour2: RGBColor = BLACK,
    ) -> bool:
        return self._send(
            commands.build_breath_mode(breath_type, colour1, colour2), "set breath mode"
        )

    # ─── POWER MANAGEMENT ────────────────────────────────────────────

    def set_wireless_brightness(self, brightness: int) -> bool:
        return self._send(
            commands.build_wireless_brightness(brightness), "set wireless brightness"
        )

    def set_low_battery_threshold(self, threshold: int) -> bool:
        return self._send(
            commands.build_low_battery_threshold(threshold), "set low battery threshold"
        )

    def set_idle_time(self, seconds: int) -> bool:
        return self._send(commands.build_idle_time(seconds), "set idle time")

    def set_mouse_dpi(self, dpi_x: int, dpi_y: int) -> bool:
        return self._send(commands.build_mouse_dpi(dpi_x, dpi_y), "set mouse DPI")

    # ─── CHARGING ────────────────────────────────────────────────────

    def set_charging_effect(self, charge_type: int) -> bool:
        return self._send(commands.build_charging_effect(charge_type), "set charging effect")

    def set_charging_colour(self, colour: RGBColor) -> bool:
        """Switch to the charge-colour effect, then set the colour.

        These are two separate exchanges and the colour is sent even if the
        effect switch failed. Returns True only when both succeeded.
        """
        effect_ok = self.set_charging_effect(commands.ChargeType.CHARGE_COLOUR)
        colour_ok = self._send(commands.build_charging_colour(colour), "set charging colour")
        return effect_ok and colour_ok
