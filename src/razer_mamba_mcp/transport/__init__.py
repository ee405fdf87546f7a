"""Transport layer: USB control-transfer connection."""

from .usb_connection import USBConnection, find_devices
