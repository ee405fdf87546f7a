"""Named read/write attributes for one attached mouse.

An :class:`AttributeSession` is created when a mouse is discovered and closed
when it goes away. It exposes the same attribute names a kernel driver would
publish (``mode_static``, ``set_mouse_dpi`` ...) and applies their byte-count
rules before handing decoded values to :class:`~.mouse.RazerMouse`.

Writes always report the full byte count as consumed; malformed writes are
either replaced by a documented default or dropped with a warning.
"""

from __future__ import annotations

import logging
import re
from typing import Callable

from .models.color import RED, RGBColor
from .models.settings import MouseSettings
from .mouse import RazerMouse
from .protocol import commands
from .protocol.commands import BreathType
from .transport.usb_connection import USBConnection

logger = logging.getLogger(__name__)

DEFAULT_DPI = 1500

_DECIMAL = re.compile(rb"\s*\+?(\d+)")


def parse_decimal(data: bytes) -> int:
    """Leading ASCII decimal digits of ``data``, or 0 if there are none."""
    match = _DECIMAL.match(data)
    return int(match.group(1)) if match else 0


def _line(value) -> bytes:
    return f"{value}\n".encode("ascii", errors="replace")


class AttributeSession:
    """Attribute view of one mouse.

    Usage::

        with AttributeSession.open() as session:
            session.write("mode_static", b"\\xff\\x00\\x00")
            level = session.read("get_battery")
    """

    def __init__(self, mouse: RazerMouse) -> None:
        self._mouse = mouse
        self._settings = MouseSettings()
        self._readers: dict[str, Callable[[], bytes]] = {
            "mode_wave": self._read_zero,
            "mode_static": self._read_zero,
            "mode_spectrum": self._read_zero,
            "mode_reactive": self._read_zero,
            "mode_breath": self._read_zero,
            "get_battery": self._read_battery,
            "is_charging": self._read_charging,
            "get_serial": self._read_serial,
            "set_wireless_brightness": lambda: _line(self._settings.wireless_brightness),
            "set_low_battery_threshold": lambda: _line(self._settings.low_battery_threshold),
            "set_idle_time": lambda: _line(self._settings.idle_time),
            "set_mouse_dpi": lambda: _line(self._settings.dpi_x),
            "set_charging_effect": lambda: _line(self._settings.charging_effect),
            "set_charging_colour": self._read_zero,
        }
        self._writers: dict[str, Callable[[bytes], None]] = {
            "mode_wave": self._write_wave,
            "mode_static": self._write_static,
            "mode_spectrum": self._write_spectrum,
            "mode_reactive": self._write_reactive,
            "mode_breath": self._write_breath,
            "get_battery": self._ignore,
            "is_charging": self._ignore,
            "get_serial": self._ignore,
            "set_wireless_brightness": self._write_brightness,
            "set_low_battery_threshold": self._write_threshold,
            "set_idle_time": self._write_idle_time,
            "set_mouse_dpi": self._write_dpi,
            "set_charging_effect": self._write_charging_effect,
            "set_charging_colour": self._write_charging_colour,
        }

    @classmethod
    def open(cls, connection: USBConnection | None = None) -> AttributeSession:
        """Open a session, connecting a new :class:`USBConnection` if none is given."""
        if connection is None:
            connection = USBConnection()
        if not connection.connected:
            connection.open()
        return cls(RazerMouse(connection))

    def close(self) -> None:
        self._mouse.connection.close()

    def __enter__(self) -> AttributeSession:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def mouse(self) -> RazerMouse:
        return self._mouse

    @property
    def settings(self) -> MouseSettings:
        return self._settings

    @property
    def names(self) -> list[str]:
        return list(self._readers)

    def read(self, name: str) -> bytes:
        """Read an attribute as a newline-terminated ASCII line.

        Raises:
            KeyError: If ``name`` is not an attribute.
        """
        return self._readers[name]()

    def write(self, name: str, data: bytes) -> int:
        """Write raw bytes to an attribute and return the number consumed.

        Raises:
            KeyError: If ``name`` is not an attribute.
        """
        writer = self._writers[name]
        writer(bytes(data))
        return len(data)

    # ─── READERS ─────────────────────────────────────────────────────

    def _read_zero(self) -> bytes:
        return _line(0)

    def _read_battery(self) -> bytes:
        return _line(self._mouse.get_battery_level())

    def _read_charging(self) -> bytes:
        return _line(self._mouse.is_charging())

    def _read_serial(self) -> bytes:
        return _line(self._mouse.get_serial())

    # ─── WRITERS ─────────────────────────────────────────────────────

    def _ignore(self, data: bytes) -> None:
        pass

    def _write_wave(self, data: bytes) -> None:
        direction = parse_decimal(data)
        if direction not in (commands.WaveDirection.UP, commands.WaveDirection.DOWN):
            logger.warning("Wave direction must be 1 or 2, got %d", direction)
            return
        if self._mouse.set_wave_mode(direction):
            self._settings.effect = "wave"

    def _write_static(self, data: bytes) -> None:
        if len(data) != 3:
            logger.warning("Static mode needs 3 bytes, got %d", len(data))
            return
        if self._mouse.set_static_mode(RGBColor.from_bytes(data)):
            self._settings.effect = "static"

    def _write_spectrum(self, data: bytes) -> None:
        if self._mouse.set_spectrum_mode():
            self._settings.effect = "spectrum"

    def _write_reactive(self, data: bytes) -> None:
        if len(data) != 4:
            logger.warning("Reactive mode needs 4 bytes, got %d", len(data))
            return
        if self._mouse.set_reactive_mode(RGBColor.from_bytes(data, 1), data[0]):
            self._settings.effect = "reactive"

    def _write_breath(self, data: bytes) -> None:
        if len(data) == 3:
            ok = self._mouse.set_breath_mode(BreathType.SINGLE, RGBColor.from_bytes(data))
        elif len(data) == 6:
            ok = self._mouse.set_breath_mode(
                BreathType.DUAL, RGBColor.from_bytes(data), RGBColor.from_bytes(data, 3)
            )
        else:
            ok = self._mouse.set_breath_mode(BreathType.RANDOM)
        if ok:
            self._settings.effect = "breath"

    def _write_brightness(self, data: bytes) -> None:
        brightness = parse_decimal(data) & 0xFF
        if self._mouse.set_wireless_brightness(brightness):
            self._settings.wireless_brightness = brightness

    def _write_threshold(self, data: bytes) -> None:
        threshold = commands.clamp_low_battery_threshold(parse_decimal(data) & 0xFF)
        if self._mouse.set_low_battery_threshold(threshold):
            self._settings.low_battery_threshold = threshold

    def _write_idle_time(self, data: bytes) -> None:
        seconds = commands.clamp_idle_time(parse_decimal(data) & 0xFFFF)
        if self._mouse.set_idle_time(seconds):
            self._settings.idle_time = seconds

    def _write_dpi(self, data: bytes) -> None:
        if len(data) == 2:
            dpi_x = dpi_y = int.from_bytes(data, "big")
        elif len(data) == 4:
            dpi_x = int.from_bytes(data[0:2], "big")
            dpi_y = int.from_bytes(data[2:4], "big")
        else:
            logger.warning("Unknown DPI setting, using %dx%d", DEFAULT_DPI, DEFAULT_DPI)
            dpi_x = dpi_y = DEFAULT_DPI
        dpi_x = commands.clamp_dpi(dpi_x, "X")
        dpi_y = commands.clamp_dpi(dpi_y, "Y")
        if self._mouse.set_mouse_dpi(dpi_x, dpi_y):
            self._settings.dpi_x = dpi_x
            self._settings.dpi_y = dpi_y

    def _write_charging_effect(self, data: bytes) -> None:
        if len(data) == 1:
            charge_type = commands.clamp_charge_type(data[0])
        else:
            logger.warning("Charging effect needs 1 byte, got %d; using 1", len(data))
            charge_type = commands.ChargeType.CHARGE_COLOUR
        if self._mouse.set_charging_effect(charge_type):
            self._settings.charging_effect = int(charge_type)

    def _write_charging_colour(self, data: bytes) -> None:
        if len(data) == 3:
            colour = RGBColor.from_bytes(data)
        else:
            logger.warning("Charging colour needs 3 bytes, got %d; using red", len(data))
            colour = RED
        if self._mouse.set_charging_colour(colour):
            self._settings.charging_effect = int(commands.ChargeType.CHARGE_COLOUR)
