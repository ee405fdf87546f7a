"""Data models for colours and remembered mouse settings."""

from .color import RGBColor
from .settings import MouseSettings
