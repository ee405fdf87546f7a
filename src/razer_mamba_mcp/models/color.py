"""RGB colour value object."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RGBColor:
    """Three independent byte channels."""

    r: int = 0
    g: int = 0
    b: int = 0

    def __post_init__(self) -> None:
        for name in ("r", "g", "b"):
            value = getattr(self, name)
            if not 0 <= value <= 0xFF:
                raise ValueError(f"Channel {name} must be 0-255, got {value}")

    def to_bytes(self) -> bytes:
        return bytes([self.r, self.g, self.b])

    @classmethod
    def from_bytes(cls, data: bytes, offset: int = 0) -> RGBColor:
        """Decode three bytes starting at ``offset``.

        Raises:
            ValueError: If fewer than three bytes are available.
        """
        if offset < 0 or len(data) < offset + 3:
            raise ValueError(
                f"Need 3 colour bytes at offset {offset}, buffer has {len(data)}"
            )
        return cls(data[offset], data[offset + 1], data[offset + 2])

    @classmethod
    def from_hex(cls, value: str) -> RGBColor:
        """Parse ``"FF8800"`` or ``"#ff8800"``."""
        text = value.strip().lstrip("#")
        if len(text) != 6:
            raise ValueError(f"Colour must be 6 hex digits, got {value!r}")
        return cls.from_bytes(bytes.fromhex(text))

    def hex(self) -> str:
        return self.to_bytes().hex().upper()


RED = RGBColor(0xFF, 0x00, 0x00)
BLACK = RGBColor()
