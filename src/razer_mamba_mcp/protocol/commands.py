"""Group and command constants and the frame builders for each capability.

Builders clamp out-of-range input to the documented limits (logging a
warning) and return an unfinalized :class:`~.framing.Frame`; the transport
fills in the checksum right before sending.
"""

from __future__ import annotations

import logging
from enum import IntEnum

from ..models.color import BLACK, RGBColor
from .framing import Frame, prepare

logger = logging.getLogger(__name__)


class Group(IntEnum):
    """Subsystem selectors (frame byte 3)."""

    INFO = 0x00
    EFFECTS = 0x03
    DPI = 0x04
    POWER = 0x07


class Command(IntEnum):
    """Command codes (frame byte 4), qualified by their group."""

    # Group.INFO
    GET_SERIAL = 0x82
    # Group.EFFECTS
    CHARGING_COLOUR = 0x01
    SET_EFFECT = 0x0A
    CHARGING_EFFECT = 0x10
    # Group.DPI
    SET_DPI = 0x05
    # Group.POWER
    LOW_BATTERY_THRESHOLD = 0x01
    WIRELESS_BRIGHTNESS = 0x02
    IDLE_TIME = 0x03
    BATTERY_LEVEL = 0x80
    CHARGING_STATUS = 0x84


class Effect(IntEnum):
    """Sub-commands of ``Command.SET_EFFECT``."""

    WAVE = 0x01
    REACTIVE = 0x02
    BREATH = 0x03
    SPECTRUM = 0x04
    STATIC = 0x06


class WaveDirection(IntEnum):
    UP = 0x01
    DOWN = 0x02


class BreathType(IntEnum):
    SINGLE = 0x01
    DUAL = 0x02
    RANDOM = 0x03


class ChargeType(IntEnum):
    CURRENT_EFFECT = 0x00
    CHARGE_COLOUR = 0x01


REACTIVE_SPEED_MIN = 1
REACTIVE_SPEED_MAX = 3
REACTIVE_SPEED_DEFAULT = 3
LOW_BATTERY_THRESHOLD_MAX = 0x3F  # 25%
IDLE_TIME_MAX = 900  # seconds
DPI_MAX = 16000
CHARGING_COLOUR_MARKER = 0x03


def _clamp(name: str, value: int, maximum: int) -> int:
    if value > maximum:
        logger.warning("%s %d above %d, capping", name, value, maximum)
        return maximum
    if value < 0:
        logger.warning("%s %d is negative, using 0", name, value)
        return 0
    return value


def clamp_low_battery_threshold(threshold: int) -> int:
    return _clamp("Low battery threshold", threshold, LOW_BATTERY_THRESHOLD_MAX)


def clamp_idle_time(seconds: int) -> int:
    return _clamp("Idle time", seconds, IDLE_TIME_MAX)


def clamp_dpi(dpi: int, axis: str = "X") -> int:
    return _clamp(f"DPI {axis}", dpi, DPI_MAX)


def clamp_reactive_speed(speed: int) -> int:
    if not REACTIVE_SPEED_MIN <= speed <= REACTIVE_SPEED_MAX:
        logger.warning(
            "Reactive speed must be %d-%d, got %d; using %d",
            REACTIVE_SPEED_MIN,
            REACTIVE_SPEED_MAX,
            speed,
            REACTIVE_SPEED_DEFAULT,
        )
        return REACTIVE_SPEED_DEFAULT
    return speed


def clamp_charge_type(charge_type: int) -> int:
    if charge_type not in (ChargeType.CURRENT_EFFECT, ChargeType.CHARGE_COLOUR):
        logger.warning("Charge type must be 0 or 1, got %d; using 1", charge_type)
        return int(ChargeType.CHARGE_COLOUR)
    return int(charge_type)


# ─── QUERIES ─────────────────────────────────────────────────────────

def build_get_serial() -> Frame:
    return prepare(Group.INFO, Command.GET_SERIAL, 0x00, 0x16)


def build_get_battery_level() -> Frame:
    return prepare(Group.POWER, Command.BATTERY_LEVEL, 0x00, 0x02)


def build_get_charging_status() -> Frame:
    return prepare(Group.POWER, Command.CHARGING_STATUS, 0x00, 0x02)


# ─── LIGHTING EFFECTS ────────────────────────────────────────────────

def build_wave_mode(direction: int) -> Frame:
    """Build a wave effect frame.

    Args:
        direction: 1 moves the wave up the mouse, 2 down. Not validated here.
    """
    return prepare(
        Group.EFFECTS, Command.SET_EFFECT, Effect.WAVE, 0x02, bytes([direction & 0xFF])
    )


def build_static_mode(colour: RGBColor) -> Frame:
    return prepare(Group.EFFECTS, Command.SET_EFFECT, Effect.STATIC, 0x04, colour.to_bytes())


def build_spectrum_mode() -> Frame:
    return prepare(Group.EFFECTS, Command.SET_EFFECT, Effect.SPECTRUM, 0x02)


def build_reactive_mode(colour: RGBColor, speed: int) -> Frame:
    """Build a reactive effect frame.

    Args:
        colour: Colour shown on click.
        speed: 1 short, 2 medium, 3 long. Anything else becomes 3.
    """
    speed = clamp_reactive_speed(speed)
    return prepare(
        Group.EFFECTS,
        Command.SET_EFFECT,
        Effect.REACTIVE,
        0x05,
        bytes([speed]) + colour.to_bytes(),
    )


def build_breath_mode(
    breath_type: int,
    colour1: RGBColor = BLACK,
    colour2: RGBColor = BLACK,
) -> Frame:
    """Build a breathing effect frame.

    Type 1 uses ``colour1``, type 2 uses both colours, any other type leaves
    the colour bytes zero and the device picks random colours.
    """
    params = bytearray(7)
    params[0] = breath_type & 0xFF
    if breath_type in (BreathType.SINGLE, BreathType.DUAL):
        params[1:4] = colour1.to_bytes()
    if breath_type == BreathType.DUAL:
        params[4:7] = colour2.to_bytes()
    return prepare(Group.EFFECTS, Command.SET_EFFECT, Effect.BREATH, 0x08, bytes(params))


# ─── POWER MANAGEMENT ────────────────────────────────────────────────

def build_wireless_brightness(brightness: int) -> Frame:
    """Brightness travels in the sub-command byte."""
    return prepare(Group.POWER, Command.WIRELESS_BRIGHTNESS, brightness & 0xFF, 0x01)


def build_low_battery_threshold(threshold: int) -> Frame:
    """Build a low-battery blink threshold frame.

    0x3F is 25%, 0x26 15%, 0x0C 5%. Values above 0x3F are capped.
    """
    threshold = clamp_low_battery_threshold(threshold)
    return prepare(Group.POWER, Command.LOW_BATTERY_THRESHOLD, threshold, 0x01)


def build_idle_time(seconds: int) -> Frame:
    """Build an idle timer frame.

    The time is big-endian across the sub-command (high byte) and the first
    parameter (low byte), capped at 15 minutes.
    """
    seconds = clamp_idle_time(seconds)
    return prepare(
        Group.POWER,
        Command.IDLE_TIME,
        (seconds >> 8) & 0xFF,
        0x02,
        bytes([seconds & 0xFF]),
    )


# ─── DPI ─────────────────────────────────────────────────────────────

def build_mouse_dpi(dpi_x: int, dpi_y: int) -> Frame:
    dpi_x = clamp_dpi(dpi_x, "X")
    dpi_y = clamp_dpi(dpi_y, "Y")
    params = dpi_x.to_bytes(2, "big") + dpi_y.to_bytes(2, "big") + b"\x00\x00"
    return prepare(Group.DPI, Command.SET_DPI, 0x00, 0x07, params)


# ─── CHARGING ────────────────────────────────────────────────────────

def build_charging_effect(charge_type: int) -> Frame:
    """Build a charging effect frame.

    0 keeps the current effect while charging, 1 shows the charge colour.
    Anything else becomes 1.
    """
    charge_type = clamp_charge_type(charge_type)
    return prepare(Group.EFFECTS, Command.CHARGING_EFFECT, charge_type, 0x01)


def build_charging_colour(colour: RGBColor) -> Frame:
    """Build the charge colour frame.

    Only takes effect once the charging effect is set to the charge colour.
    """
    return prepare(
        Group.EFFECTS,
        Command.CHARGING_COLOUR,
        0x00,
        0x05,
        bytes([CHARGING_COLOUR_MARKER]) + colour.to_bytes(),
    )
