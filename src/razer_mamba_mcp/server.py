"""MCP server entry point for the Razer Mamba.

Exposes tools, resources, and prompts via the Model Context Protocol
using the official Python MCP SDK with stdio transport.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .attributes import AttributeSession
from .models.color import RGBColor
from .mouse import RazerMouse
from .protocol import commands
from .protocol.commands import BreathType, WaveDirection
from .protocol.parser import BatteryResponse
from .transport.usb_connection import USBConnection, find_devices

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "razer-mamba",
    instructions="MCP server for the Razer Mamba mouse",
)

# Global session state
_session: AttributeSession | None = None

EFFECTS = ["wave", "static", "spectrum", "reactive", "breath"]


def _get_session() -> AttributeSession:
    """Get the active session, raising if not connected."""
    if _session is None or not _session.mouse.connection.connected:
        raise RuntimeError(
            "Not connected to device. Use the 'connect' tool first."
        )
    return _session


def _parse_colour(value: str) -> RGBColor:
    return RGBColor.from_hex(value)


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect() -> dict[str, Any]:
    """Establish a USB connection to the Razer Mamba.

    Auto-discovers the mouse by USB vendor/product ID (0x1532:0x0044 wired,
    0x1532:0x0045 wireless) and reads its serial number to confirm it answers.
    """
    global _session
    if _session is not None and _session.mouse.connection.connected:
        return {
            "connected": True,
            "message": "Already connected",
            "model": _session.mouse.connection.device_info.product,
        }

    connection = USBConnection()
    info = connection.open()
    _session = AttributeSession(RazerMouse(connection))

    return {
        "connected": True,
        "model": info.product,
        "manufacturer": info.manufacturer,
        "backend": connection.backend,
        "serial": _session.mouse.get_serial(),
    }


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the USB connection to the mouse."""
    global _session
    if _session is None:
        return {"disconnected": True}
    _session.close()
    _session = None
    return {"disconnected": True}


@mcp.tool()
def list_devices() -> dict[str, Any]:
    """List attached Razer Mamba mice without connecting."""
    devices = find_devices()
    return {
        "devices": [
            {
                "product_id": f"0x{d.product_id:04X}",
                "product": d.product,
                "path": d.path,
            }
            for d in devices
        ]
    }


@mcp.tool()
def get_device_info() -> dict[str, Any]:
    """Retrieve device identification (model, serial number)."""
    session = _get_session()
    serial = session.mouse.get_serial()
    if not serial:
        return {"error": "No serial number reply from device"}

    info = session.mouse.connection.device_info
    return {
        "model": info.product,
        "manufacturer": info.manufacturer,
        "serial": serial,
    }


# ─── STATUS TOOLS ────────────────────────────────────────────────────

@mcp.tool()
def get_battery() -> dict[str, Any]:
    """Read the battery level (raw 0-255 and percent)."""
    level = _get_session().mouse.get_battery_level()
    if level < 0:
        return {"error": "No battery reply from device"}
    return {"level": level, "percent": BatteryResponse(level).percent}


@mcp.tool()
def get_charging_status() -> dict[str, Any]:
    """Report whether the mouse is charging."""
    charging = _get_session().mouse.is_charging()
    if charging < 0:
        return {"error": "No charging status reply from device"}
    return {"charging": bool(charging)}


@mcp.tool()
def get_serial() -> dict[str, Any]:
    """Read the mouse serial number."""
    serial = _get_session().mouse.get_serial()
    if not serial:
        return {"error": "No serial number reply from device"}
    return {"serial": serial}


# ─── LIGHTING TOOLS ──────────────────────────────────────────────────

@mcp.tool()
def set_effect(
    effect: str,
    colour: str | None = None,
    colour2: str | None = None,
    speed: int = 3,
    direction: int = 1,
) -> dict[str, Any]:
    """Switch the lighting effect.

    Args:
        effect: One of wave, static, spectrum, reactive, breath.
        colour: Hex colour (e.g. "FF0000") for static, reactive, and breath.
        colour2: Second hex colour for two-colour breathing.
        speed: Reactive fade speed, 1 (short) to 3 (long).
        direction: Wave direction, 1 up or 2 down.
    """
    if effect not in EFFECTS:
        return {"error": f"Unknown effect '{effect}'. Valid: {EFFECTS}"}

    try:
        c1 = _parse_colour(colour) if colour else None
        c2 = _parse_colour(colour2) if colour2 else None
    except ValueError as e:
        return {"error": str(e)}

    session = _get_session()
    mouse = session.mouse

    if effect == "wave":
        if direction not in (WaveDirection.UP, WaveDirection.DOWN):
            return {"error": "Wave direction must be 1 (up) or 2 (down)"}
        ok = mouse.set_wave_mode(direction)
    elif effect == "static":
        if c1 is None:
            return {"error": "Static effect needs a colour"}
        ok = mouse.set_static_mode(c1)
    elif effect == "spectrum":
        ok = mouse.set_spectrum_mode()
    elif effect == "reactive":
        if c1 is None:
            return {"error": "Reactive effect needs a colour"}
        ok = mouse.set_reactive_mode(c1, speed)
    else:
        if c1 is not None and c2 is not None:
            ok = mouse.set_breath_mode(BreathType.DUAL, c1, c2)
        elif c1 is not None:
            ok = mouse.set_breath_mode(BreathType.SINGLE, c1)
        else:
            ok = mouse.set_breath_mode(BreathType.RANDOM)

    if not ok:
        return {"error": f"Failed to set {effect} effect"}
    session.settings.effect = effect
    return {"effect": effect}


@mcp.tool()
def set_charging_effect(use_charge_colour: bool) -> dict[str, Any]:
    """Choose what the mouse shows while charging.

    Args:
        use_charge_colour: True shows the charge colour, False keeps the
            current effect.
    """
    session = _get_session()
    charge_type = 1 if use_charge_colour else 0
    if not session.mouse.set_charging_effect(charge_type):
        return {"error": "Failed to set charging effect"}
    session.settings.charging_effect = charge_type
    return {"charging_effect": charge_type}


@mcp.tool()
def set_charging_colour(colour: str) -> dict[str, Any]:
    """Set the colour shown while charging (also enables the charge colour).

    Args:
        colour: Hex colour, e.g. "00FF00".
    """
    try:
        rgb = _parse_colour(colour)
    except ValueError as e:
        return {"error": str(e)}

    session = _get_session()
    if not session.mouse.set_charging_colour(rgb):
        return {"error": "Failed to set charging colour"}
    session.settings.charging_effect = 1
    return {"charging_colour": rgb.hex()}


# ─── POWER AND DPI TOOLS ─────────────────────────────────────────────

@mcp.tool()
def set_dpi(dpi_x: int, dpi_y: int | None = None) -> dict[str, Any]:
    """Set the sensor DPI.

    Args:
        dpi_x: Horizontal DPI (capped at 16000).
        dpi_y: Vertical DPI, defaults to dpi_x.
    """
    if dpi_y is None:
        dpi_y = dpi_x
    dpi_x = commands.clamp_dpi(dpi_x, "X")
    dpi_y = commands.clamp_dpi(dpi_y, "Y")

    session = _get_session()
    if not session.mouse.set_mouse_dpi(dpi_x, dpi_y):
        return {"error": "Failed to set DPI"}
    session.settings.dpi_x = dpi_x
    session.settings.dpi_y = dpi_y
    return {"dpi_x": dpi_x, "dpi_y": dpi_y}


@mcp.tool()
def set_idle_time(seconds: int) -> dict[str, Any]:
    """Set the idle timeout before the mouse sleeps.

    Args:
        seconds: Idle time in seconds (capped at 900).
    """
    seconds = commands.clamp_idle_time(seconds)
    session = _get_session()
    if not session.mouse.set_idle_time(seconds):
        return {"error": "Failed to set idle time"}
    session.settings.idle_time = seconds
    return {"idle_time": seconds}


@mcp.tool()
def set_low_battery_threshold(threshold: int) -> dict[str, Any]:
    """Set the battery level at which the mouse starts blinking.

    Args:
        threshold: Raw level; 0x0C is 5%, 0x26 15%, 0x3F 25% (the maximum).
    """
    threshold = commands.clamp_low_battery_threshold(threshold)
    session = _get_session()
    if not session.mouse.set_low_battery_threshold(threshold):
        return {"error": "Failed to set low battery threshold"}
    session.settings.low_battery_threshold = threshold
    return {"low_battery_threshold": threshold}


@mcp.tool()
def set_wireless_brightness(brightness: int) -> dict[str, Any]:
    """Set the LED brightness used on wireless.

    Args:
        brightness: 0-255.
    """
    if not 0 <= brightness <= 255:
        return {"error": "Brightness must be 0-255"}
    session = _get_session()
    if not session.mouse.set_wireless_brightness(brightness):
        return {"error": "Failed to set wireless brightness"}
    session.settings.wireless_brightness = brightness
    return {"wireless_brightness": brightness}


# ─── ATTRIBUTE TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def read_attribute(name: str) -> dict[str, Any]:
    """Read a named device attribute (e.g. get_battery, set_mouse_dpi).

    Args:
        name: Attribute name; see the razer://catalog/attributes resource.
    """
    session = _get_session()
    if name not in session.names:
        return {"error": f"Unknown attribute '{name}'. Valid: {session.names}"}
    return {"name": name, "value": session.read(name).decode("ascii", errors="replace").strip()}


@mcp.tool()
def write_attribute(name: str, data_hex: str) -> dict[str, Any]:
    """Write raw bytes to a named device attribute.

    Args:
        name: Attribute name; see the razer://catalog/attributes resource.
        data_hex: Bytes to write, as hex (e.g. "ff0000" for mode_static).
    """
    session = _get_session()
    if name not in session.names:
        return {"error": f"Unknown attribute '{name}'. Valid: {session.names}"}
    try:
        data = bytes.fromhex(data_hex)
    except ValueError as e:
        return {"error": f"Invalid hex data: {e}"}
    return {"name": name, "written": session.write(name, data)}


ATTRIBUTE_FORMATS = {
    "mode_wave": "ASCII 1 (up) or 2 (down)",
    "mode_static": "3 bytes RGB",
    "mode_spectrum": "any write",
    "mode_reactive": "4 bytes: speed (1-3), R, G, B",
    "mode_breath": "3 bytes (one colour), 6 bytes (two colours), anything else random",
    "get_battery": "read: 0-255",
    "is_charging": "read: 0 or 1",
    "get_serial": "read: serial string",
    "set_wireless_brightness": "ASCII 0-255",
    "set_low_battery_threshold": "ASCII, capped at 63",
    "set_idle_time": "ASCII seconds, capped at 900",
    "set_mouse_dpi": "2 bytes (both axes) or 4 bytes (X, Y) big-endian, else 1500x1500",
    "set_charging_effect": "1 byte: 0 current effect, 1 charge colour",
    "set_charging_colour": "3 bytes RGB, else red",
}


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("razer://device/info")
def resource_device_info() -> str:
    """Device model and connection state."""
    if _session is None or not _session.mouse.connection.connected:
        return json.dumps({"connected": False})

    info = _session.mouse.connection.device_info
    return json.dumps({
        "connected": True,
        "manufacturer": info.manufacturer,
        "product": info.product,
        "vendor_id": f"0x{info.vendor_id:04X}",
        "product_id": f"0x{info.product_id:04X}",
    })


@mcp.resource("razer://device/status")
def resource_device_status() -> str:
    """Connection state."""
    connected = _session is not None and _session.mouse.connection.connected
    return json.dumps({"connected": connected})


@mcp.resource("razer://device/settings")
def resource_device_settings() -> str:
    """Settings written during this session."""
    if _session is None:
        return json.dumps({"settings": {}})
    return json.dumps({"settings": _session.settings.to_dict()})


@mcp.resource("razer://catalog/attributes")
def resource_attributes() -> str:
    """Attribute names and the byte formats they accept."""
    return json.dumps({"attributes": ATTRIBUTE_FORMATS})


# ─── MCP PROMPTS ─────────────────────────────────────────────────────

@mcp.prompt()
def configure_lighting(mood: str) -> str:
    """Guide the AI to pick a lighting effect for a mood or theme.

    Args:
        mood: Theme, game, or colour scheme.
    """
    return f"""Configure the mouse lighting for: {mood}.
Consider:
- Static for a single steady colour
- Breath with one or two colours for a slow pulse
- Reactive for a flash on click (speed 1-3)
- Spectrum or wave for colour cycling
- A matching charging colour

Available effects: {', '.join(EFFECTS)}.
Use the set_effect and set_charging_colour tools to apply it."""


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
