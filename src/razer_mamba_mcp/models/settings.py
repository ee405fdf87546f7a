"""Record of the values last written to a mouse.

The device has no read-back for its settings, so a session remembers what
it wrote.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass
class MouseSettings:
    """Last written (post-clamp) settings; zero until written."""

    wireless_brightness: int = 0
    low_battery_threshold: int = 0
    idle_time: int = 0
    dpi_x: int = 0
    dpi_y: int = 0
    charging_effect: int = 0
    effect: str = ""

    def to_dict(self) -> dict:
        return asdict(self)
