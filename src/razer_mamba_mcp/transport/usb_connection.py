"""USB control-transfer connection to the Razer Mamba.

Supports both ``pyusb`` (preferred) and ``hidapi`` backends.
Requests go out as class SET_REPORT control transfers on the control
interface; replies are fetched with GET_REPORT after a priming write.
Every transfer is followed by a short settle window, and all transfers on
one connection are serialized by a lock.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass

from ..exceptions import ShortRead, ShortWrite
from ..protocol.framing import REPORT_SIZE, Frame, finalize

logger = logging.getLogger(__name__)

VENDOR_ID = 0x1532
PRODUCT_ID_MAMBA_WIRED = 0x0044
PRODUCT_ID_MAMBA_WIRELESS = 0x0045
PRODUCT_IDS = (PRODUCT_ID_MAMBA_WIRED, PRODUCT_ID_MAMBA_WIRELESS)

REQUEST_TYPE_OUT = 0x21  # host-to-device | class | interface
REQUEST_TYPE_IN = 0xA1  # device-to-host | class | interface
HID_GET_REPORT = 0x01
HID_SET_REPORT = 0x09
REPORT_VALUE = 0x0300  # feature report, id 0
WRITE_INDEX = 0x02
READ_INDEX = 0x01
CONTROL_INTERFACES = (WRITE_INDEX, READ_INDEX)  # the interfaces the transfers address
CTRL_TIMEOUT_MS = 5000
SETTLE_DELAY_S = 0.0008  # device needs 600-800 us between transfers


@dataclass
class DeviceInfo:
    """Basic device identification from USB descriptors."""

    vendor_id: int = VENDOR_ID
    product_id: int = PRODUCT_ID_MAMBA_WIRED
    manufacturer: str = ""
    product: str = ""
    serial: str = ""
    path: str = ""


def find_devices(vendor_id: int = VENDOR_ID, product_ids=PRODUCT_IDS) -> list[DeviceInfo]:
    """List attached devices, trying pyusb first, then hidapi."""
    try:
        import usb.core

        found = usb.core.find(
            find_all=True,
            idVendor=vendor_id,
            custom_match=lambda d: d.idProduct in product_ids,
        )
        return [
            DeviceInfo(
                vendor_id=dev.idVendor,
                product_id=dev.idProduct,
                path=f"{dev.bus}:{dev.address}",
            )
            for dev in found
        ]
    except Exception as e:
        logger.debug("pyusb enumeration failed: %s, trying hidapi", e)

    import hid

    devices: dict[str, DeviceInfo] = {}
    for entry in hid.enumerate(vendor_id, 0):
        if entry["product_id"] not in product_ids:
            continue
        path = entry["path"].decode() if isinstance(entry["path"], bytes) else entry["path"]
        devices.setdefault(
            path,
            DeviceInfo(
                vendor_id=entry["vendor_id"],
                product_id=entry["product_id"],
                manufacturer=entry.get("manufacturer_string") or "",
                product=entry.get("product_string") or "",
                serial=entry.get("serial_number") or "",
                path=path,
            ),
        )
    return list(devices.values())


class USBConnection:
    """Manages the control channel to one mouse.

    Usage::

        with USBConnection() as conn:
            conn.send(frame)
            reply = conn.query(other_frame)
    """

    def __init__(
        self,
        vendor_id: int = VENDOR_ID,
        product_id: int | None = None,
        settle_delay: float = SETTLE_DELAY_S,
        timeout_ms: int = CTRL_TIMEOUT_MS,
    ) -> None:
        self._vendor_id = vendor_id
        self._product_id = product_id
        self._settle_delay = settle_delay
        self._timeout_ms = timeout_ms
        self._device = None
        self._backend: str = ""
        self._connected = False
        self._claimed: list[int] = []
        self._detached: list[int] = []
        self._lock = threading.Lock()
        self._device_info = DeviceInfo(
            vendor_id=vendor_id, product_id=product_id or PRODUCT_ID_MAMBA_WIRED
        )

    @classmethod
    def from_device(cls, device, backend: str = "pyusb", **kwargs) -> USBConnection:
        """Wrap an already-open device handle.

        ``device`` needs ``ctrl_transfer`` for the pyusb backend, or
        ``send_feature_report``/``get_feature_report`` for hidapi.
        """
        conn = cls(**kwargs)
        conn._device = device
        conn._backend = backend
        conn._connected = True
        return conn

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def backend(self) -> str:
        return self._backend

    @property
    def device_info(self) -> DeviceInfo:
        return self._device_info

    def __enter__(self) -> USBConnection:
        if not self._connected:
            self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def open(self) -> DeviceInfo:
        """Open the mouse, trying pyusb first, then hidapi.

        Raises:
            ConnectionError: If the device cannot be found or opened.
        """
        try:
            return self._open_pyusb()
        except Exception as e:
            logger.debug("pyusb backend failed: %s, trying hidapi", e)

        try:
            return self._open_hidapi()
        except Exception as e:
            raise ConnectionError(
                f"Could not connect to Razer device "
                f"({self._vendor_id:#06x}:{self._product_id or 0:#06x}). "
                f"Ensure the device is connected and you have permissions. "
                f"Last error: {e}"
            ) from e

    def _product_ids(self) -> tuple[int, ...]:
        return (self._product_id,) if self._product_id else PRODUCT_IDS

    def _open_pyusb(self) -> DeviceInfo:
        """Open using pyusb + libusb."""
        import usb.core
        import usb.util

        product_ids = self._product_ids()
        dev = usb.core.find(
            idVendor=self._vendor_id,
            custom_match=lambda d: d.idProduct in product_ids,
        )
        if dev is None:
            raise ConnectionError("Device not found via pyusb")

        for interface in CONTROL_INTERFACES:
            if dev.is_kernel_driver_active(interface):
                dev.detach_kernel_driver(interface)
                self._detached.append(interface)
            usb.util.claim_interface(dev, interface)
            self._claimed.append(interface)

        self._device = dev
        self._backend = "pyusb"
        self._connected = True
        self._device_info = DeviceInfo(
            vendor_id=dev.idVendor,
            product_id=dev.idProduct,
            manufacturer=usb.util.get_string(dev, dev.iManufacturer) or "",
            product=usb.util.get_string(dev, dev.iProduct) or "",
            path=f"{dev.bus}:{dev.address}",
        )

        logger.info(
            "Connected via pyusb: %s %s",
            self._device_info.manufacturer,
            self._device_info.product,
        )
        return self._device_info

    def _open_hidapi(self) -> DeviceInfo:
        """Open using the hidapi library."""
        import hid

        last_error: Exception | None = None
        for product_id in self._product_ids():
            device = hid.device()
            try:
                device.open(self._vendor_id, product_id)
            except OSError as e:
                last_error = e
                continue

            self._device = device
            self._backend = "hidapi"
            self._connected = True
            self._device_info = DeviceInfo(
                vendor_id=self._vendor_id,
                product_id=product_id,
                manufacturer=device.get_manufacturer_string() or "",
                product=device.get_product_string() or "",
                serial=device.get_serial_number_string() or "",
            )
            logger.info(
                "Connected via hidapi: %s %s",
                self._device_info.manufacturer,
                self._device_info.product,
            )
            return self._device_info

        raise ConnectionError(f"Device not found via hidapi: {last_error}")

    def close(self) -> None:
        """Close the connection."""
        if not self._connected:
            return

        try:
            if self._backend == "hidapi":
                self._device.close()
            elif self._backend == "pyusb":
                import usb.util

                for interface in self._claimed:
                    usb.util.release_interface(self._device, interface)
                for interface in self._detached:
                    self._device.attach_kernel_driver(interface)
        except Exception as e:
            logger.warning("Error closing device: %s", e)
        finally:
            self._device = None
            self._connected = False
            self._claimed = []
            self._detached = []
            logger.info("Disconnected")

    # ─── EXCHANGE ────────────────────────────────────────────────────

    def send(self, frame: Frame) -> None:
        """Finalize ``frame`` and write it to the device.

        Raises:
            ConnectionError: If not connected.
            ShortWrite: If the transfer failed or moved fewer than 90 bytes.
        """
        with self._lock:
            self._send(frame)

    def query(self, frame: Frame) -> bytes:
        """Send ``frame`` as a priming write, then read the 90-byte reply.

        Raises:
            ConnectionError: If not connected.
            ShortWrite: If the priming write failed.
            ShortRead: If the read failed or returned other than 90 bytes.
        """
        with self._lock:
            self._send(frame)
            try:
                data = self._read_report()
            except OSError as e:
                raise ShortRead("Reading reply failed", expected=REPORT_SIZE, actual=0) from e
            finally:
                time.sleep(self._settle_delay)

        logger.debug("<< %s", data.hex(" "))
        if len(data) != REPORT_SIZE:
            raise ShortRead("Reply has wrong length", expected=REPORT_SIZE, actual=len(data))
        return data

    def _send(self, frame: Frame) -> None:
        if not self._connected:
            raise ConnectionError("Not connected to device")

        data = finalize(frame)
        logger.debug(">> %s", data.hex(" "))
        try:
            written = self._write_report(data)
        except OSError as e:
            raise ShortWrite("Writing report failed", expected=REPORT_SIZE, actual=0) from e
        finally:
            time.sleep(self._settle_delay)

        if written != REPORT_SIZE:
            raise ShortWrite("Report was not fully written", expected=REPORT_SIZE, actual=written)

    def _write_report(self, data: bytes) -> int:
        if self._backend == "pyusb":
            return self._device.ctrl_transfer(
                REQUEST_TYPE_OUT,
                HID_SET_REPORT,
                REPORT_VALUE,
                WRITE_INDEX,
                data,
                timeout=self._timeout_ms,
            )
        elif self._backend == "hidapi":
            # hidapi wants the report id prepended and counts it
            written = self._device.send_feature_report(b"\x00" + data)
            return written - 1 if written > 0 else written
        else:
            raise RuntimeError(f"Unknown backend: {self._backend}")

    def _read_report(self) -> bytes:
        if self._backend == "pyusb":
            data = self._device.ctrl_transfer(
                REQUEST_TYPE_IN,
                HID_GET_REPORT,
                REPORT_VALUE,
                READ_INDEX,
                REPORT_SIZE,
                timeout=self._timeout_ms,
            )
            return bytes(data)
        elif self._backend == "hidapi":
            data = self._device.get_feature_report(0x00, REPORT_SIZE + 1)
            return bytes(data[1:])
        else:
            raise RuntimeError(f"Unknown backend: {self._backend}")
