"""Tests for the MCP tool layer."""

from __future__ import annotations

import json
import sys
from unittest.mock import MagicMock, patch

import pytest

from razer_mamba_mcp.attributes import AttributeSession
from razer_mamba_mcp.models.color import RGBColor
from razer_mamba_mcp.mouse import RazerMouse
from razer_mamba_mcp.protocol.commands import BreathType


def _get_server_module():
    """Import server module with FastMCP mocked to avoid init issues."""
    mock_fastmcp_cls = MagicMock()
    mock_fastmcp_instance = MagicMock()
    # Make the @mcp.tool() decorator a no-op that returns the function unchanged
    mock_fastmcp_instance.tool.return_value = lambda fn: fn
    mock_fastmcp_instance.resource.return_value = lambda fn: fn
    mock_fastmcp_instance.prompt.return_value = lambda fn: fn
    mock_fastmcp_cls.return_value = mock_fastmcp_instance

    with patch("mcp.server.fastmcp.FastMCP", mock_fastmcp_cls):
        sys.modules.pop("razer_mamba_mcp.server", None)
        import razer_mamba_mcp.server as server_mod

    return server_mod


@pytest.fixture
def server():
    return _get_server_module()


@pytest.fixture
def mouse():
    m = MagicMock(spec=RazerMouse)
    for name in dir(RazerMouse):
        if name.startswith("set_"):
            getattr(m, name).return_value = True
    return m


@pytest.fixture
def session(server, mouse):
    s = AttributeSession(mouse)
    with patch.object(server, "_get_session", return_value=s):
        yield s


def test_not_connected_raises(server):
    with pytest.raises(RuntimeError, match="connect"):
        server.get_battery()


def test_get_battery(server, session, mouse):
    mouse.get_battery_level.return_value = 255
    assert server.get_battery() == {"level": 255, "percent": 100}


def test_get_battery_no_reply(server, session, mouse):
    mouse.get_battery_level.return_value = -1
    assert "error" in server.get_battery()


def test_get_charging_status(server, session, mouse):
    mouse.is_charging.return_value = 1
    assert server.get_charging_status() == {"charging": True}
    mouse.is_charging.return_value = -1
    assert "error" in server.get_charging_status()


def test_get_serial(server, session, mouse):
    mouse.get_serial.return_value = ""
    assert "error" in server.get_serial()
    mouse.get_serial.return_value = "PM1712H01234"
    assert server.get_serial() == {"serial": "PM1712H01234"}


def test_set_effect_static(server, session, mouse):
    assert server.set_effect("static", colour="#FF8000") == {"effect": "static"}
    mouse.set_static_mode.assert_called_once_with(RGBColor(0xFF, 0x80, 0x00))
    assert session.settings.effect == "static"


def test_set_effect_static_needs_colour(server, session, mouse):
    assert "error" in server.set_effect("static")
    mouse.set_static_mode.assert_not_called()


def test_set_effect_unknown(server, session):
    assert "error" in server.set_effect("starlight")


def test_set_effect_bad_colour(server, session, mouse):
    assert "error" in server.set_effect("static", colour="red")
    mouse.set_static_mode.assert_not_called()


def test_set_effect_breath_variants(server, session, mouse):
    server.set_effect("breath")
    mouse.set_breath_mode.assert_called_with(BreathType.RANDOM)
    server.set_effect("breath", colour="00FF00")
    mouse.set_breath_mode.assert_called_with(BreathType.SINGLE, RGBColor(0, 0xFF, 0))
    server.set_effect("breath", colour="00FF00", colour2="0000FF")
    mouse.set_breath_mode.assert_called_with(
        BreathType.DUAL, RGBColor(0, 0xFF, 0), RGBColor(0, 0, 0xFF)
    )


def test_set_effect_wave_direction(server, session, mouse):
    assert "error" in server.set_effect("wave", direction=3)
    assert server.set_effect("wave", direction=2) == {"effect": "wave"}
    mouse.set_wave_mode.assert_called_once_with(2)


def test_set_effect_device_failure(server, session, mouse):
    mouse.set_spectrum_mode.return_value = False
    assert "error" in server.set_effect("spectrum")
    assert session.settings.effect == ""


def test_set_dpi_clamps(server, session, mouse):
    assert server.set_dpi(20000) == {"dpi_x": 16000, "dpi_y": 16000}
    mouse.set_mouse_dpi.assert_called_once_with(16000, 16000)


def test_set_idle_time_clamps(server, session, mouse):
    assert server.set_idle_time(65536) == {"idle_time": 900}
    mouse.set_idle_time.assert_called_once_with(900)


def test_set_low_battery_threshold_clamps(server, session, mouse):
    assert server.set_low_battery_threshold(0x50) == {"low_battery_threshold": 0x3F}


def test_set_wireless_brightness_range(server, session, mouse):
    assert "error" in server.set_wireless_brightness(300)
    mouse.set_wireless_brightness.assert_not_called()
    assert server.set_wireless_brightness(200) == {"wireless_brightness": 200}


def test_set_charging_colour(server, session, mouse):
    assert server.set_charging_colour("0000ff") == {"charging_colour": "0000FF"}
    mouse.set_charging_colour.assert_called_once_with(RGBColor(0, 0, 0xFF))
    assert session.settings.charging_effect == 1


def test_write_and_read_attribute(server, session, mouse):
    assert server.write_attribute("set_idle_time", "333030") == {
        "name": "set_idle_time",
        "written": 3,
    }
    mouse.set_idle_time.assert_called_once_with(300)
    assert server.read_attribute("set_idle_time") == {"name": "set_idle_time", "value": "300"}


def test_attribute_errors(server, session):
    assert "error" in server.read_attribute("mode_starlight")
    assert "error" in server.write_attribute("mode_static", "zz")


def test_settings_resource(server, session):
    server.set_dpi(800)
    server._session = session
    try:
        settings = json.loads(server.resource_device_settings())["settings"]
    finally:
        server._session = None
    assert settings["dpi_x"] == 800


def test_attribute_catalog_lists_every_attribute(server, mouse):
    catalog = json.loads(server.resource_attributes())["attributes"]
    assert set(catalog) == set(AttributeSession(mouse).names)


def test_status_resource_disconnected(server):
    assert json.loads(server.resource_device_status()) == {"connected": False}


def test_configure_lighting_prompt(server):
    text = server.configure_lighting("sunset")
    assert "sunset" in text
    assert "set_effect" in text


def test_set_charging_colour_failure_not_recorded(server, session, mouse):
    mouse.set_charging_colour.return_value = False
    assert "error" in server.set_charging_colour("0000ff")
    assert session.settings.charging_effect == 0


def test_get_battery_percent_matches_parser(server, session, mouse):
    mouse.get_battery_level.return_value = 128
    assert server.get_battery() == {"level": 128, "percent": 50}
