"""Builder, checksum and validator for the 90-byte feature report.

Frame layout::

    +--------+-----------+-------+-------+---------+---------+--------------+----------+-----+------+
    | Status | Transport | Count | Group | Command | Sub-cmd |  Parameters  | Reserved | CRC | Term |
    | 0      | 1         | 2     | 3     | 4       | 5       |  6 .. 85     | 86, 87   | 88  | 89   |
    +--------+-----------+-------+-------+---------+---------+--------------+----------+-----+------+

- Status: 0x00 on requests, 0x02 on a valid reply
- Transport: 0xFF on requests; a device status byte on replies
- Count: number of meaningful parameter bytes
- Group / Command / Sub-cmd: subsystem, command and sub-command codes
- CRC: XOR of bytes 2..87
- Term: always zero
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import reduce
from operator import xor

from ..exceptions import ConstraintError, FieldMismatch, LengthMismatch, MarkerMismatch

logger = logging.getLogger(__name__)

REPORT_SIZE = 90
PARAMETER_OFFSET = 6
PARAMETER_SIZE = 80
CHECKSUM_START = 2
CHECKSUM_END = 88  # exclusive
CHECKSUM_OFFSET = 88

STATUS_REQUEST = 0x00
STATUS_REPLY_OK = 0x02
TRANSPORT_REQUEST = 0xFF

OFF_STATUS = 0
OFF_TRANSPORT = 1
OFF_COUNT = 2
OFF_GROUP = 3
OFF_COMMAND = 4
OFF_SUB_COMMAND = 5


@dataclass
class Frame:
    """A single protocol frame, request or reply."""

    group: int
    command: int
    sub_command: int = 0x00
    parameter_count: int = 0
    parameters: bytes = field(default=bytes(PARAMETER_SIZE))
    status_marker: int = STATUS_REQUEST
    transport_class: int = TRANSPORT_REQUEST
    crc: int = 0  # only meaningful on parsed replies

    def to_bytes(self) -> bytes:
        """Lay the frame out as 90 bytes with the checksum slot left zero."""
        buf = bytearray(REPORT_SIZE)
        buf[OFF_STATUS] = self.status_marker
        buf[OFF_TRANSPORT] = self.transport_class
        buf[OFF_COUNT] = self.parameter_count
        buf[OFF_GROUP] = self.group
        buf[OFF_COMMAND] = self.command
        buf[OFF_SUB_COMMAND] = self.sub_command
        buf[PARAMETER_OFFSET : PARAMETER_OFFSET + len(self.parameters)] = self.parameters
        return bytes(buf)

    @classmethod
    def from_bytes(cls, data: bytes) -> Frame:
        if len(data) != REPORT_SIZE:
            raise LengthMismatch(
                f"Report must be {REPORT_SIZE} bytes", expected=REPORT_SIZE, actual=len(data)
            )
        return cls(
            group=data[OFF_GROUP],
            command=data[OFF_COMMAND],
            sub_command=data[OFF_SUB_COMMAND],
            parameter_count=data[OFF_COUNT],
            parameters=bytes(data[PARAMETER_OFFSET : PARAMETER_OFFSET + PARAMETER_SIZE]),
            status_marker=data[OFF_STATUS],
            transport_class=data[OFF_TRANSPORT],
            crc=data[CHECKSUM_OFFSET],
        )

    def __repr__(self) -> str:
        used = self.parameters[: self.parameter_count]
        return (
            f"Frame(status=0x{self.status_marker:02X}, "
            f"group=0x{self.group:02X}, "
            f"command=0x{self.command:02X}, "
            f"sub_command=0x{self.sub_command:02X}, "
            f"params={used.hex(' ') if used else '(empty)'})"
        )


def _check_byte(name: str, value: int) -> None:
    if not 0 <= value <= 0xFF:
        raise ConstraintError(f"{name} must fit in one byte", field=name, value=value)


def prepare(
    group: int,
    command: int,
    sub_command: int = 0x00,
    parameter_count: int = 0,
    parameters: bytes = b"",
) -> Frame:
    """Build a request frame.

    Args:
        group: Subsystem selector (effects, DPI, power).
        command: Command code within the group.
        sub_command: Sub-command code, or a data byte for some commands.
        parameter_count: Declared number of meaningful parameter bytes.
        parameters: Payload, at most 80 bytes; the rest is zero-filled.

    Raises:
        ConstraintError: If a field does not fit in a byte or the payload
            overflows the parameter window.
    """
    for name, value in (
        ("group", group),
        ("command", command),
        ("sub_command", sub_command),
        ("parameter_count", parameter_count),
    ):
        _check_byte(name, value)
    if parameter_count > PARAMETER_SIZE:
        raise ConstraintError(
            f"Parameter count must be at most {PARAMETER_SIZE}",
            field="parameter_count",
            value=parameter_count,
        )
    parameters = bytes(parameters)
    if len(parameters) > PARAMETER_SIZE:
        raise ConstraintError(
            f"Parameters overflow the {PARAMETER_SIZE}-byte window",
            field="parameters",
            value=len(parameters),
        )

    return Frame(
        group=group,
        command=command,
        sub_command=sub_command,
        parameter_count=parameter_count,
        parameters=parameters.ljust(PARAMETER_SIZE, b"\x00"),
    )


def checksum(frame: Frame | bytes) -> int:
    """XOR of bytes 2..87 of the report."""
    data = frame.to_bytes() if isinstance(frame, Frame) else frame
    return reduce(xor, data[CHECKSUM_START:CHECKSUM_END], 0)


def finalize(frame: Frame) -> bytes:
    """Return the wire bytes of ``frame`` with the checksum filled in."""
    buf = bytearray(frame.to_bytes())
    buf[CHECKSUM_OFFSET] = checksum(buf)
    return bytes(buf)


def validate_reply(
    data: bytes,
    expected_group: int,
    expected_command: int,
    expected_sub_command: int | None = None,
) -> bytes:
    """Check that ``data`` is a valid reply to a request and return its parameters.

    ``expected_sub_command`` of ``None`` skips the sub-command echo check, for
    replies that reuse that byte as data.

    Raises:
        LengthMismatch: The reply is not 90 bytes.
        MarkerMismatch: The status marker is not 0x02.
        FieldMismatch: Group, command or sub-command differ from the request.
    """
    if len(data) != REPORT_SIZE:
        raise LengthMismatch(
            "Reply has wrong length", expected=REPORT_SIZE, actual=len(data)
        )
    if data[OFF_STATUS] != STATUS_REPLY_OK:
        raise MarkerMismatch(
            "Reply status marker is not valid",
            expected=STATUS_REPLY_OK,
            actual=data[OFF_STATUS],
        )

    expectations = [
        ("group", OFF_GROUP, expected_group),
        ("command", OFF_COMMAND, expected_command),
    ]
    if expected_sub_command is not None:
        expectations.append(("sub_command", OFF_SUB_COMMAND, expected_sub_command))
    for name, offset, expected in expectations:
        if data[offset] != expected:
            raise FieldMismatch(
                f"Reply {name} does not echo the request",
                field=name,
                expected=expected,
                actual=data[offset],
            )

    if checksum(data) != data[CHECKSUM_OFFSET]:
        # Firmware does not always fill this in; not a trust criterion.
        logger.debug(
            "Reply checksum 0x%02X differs from computed 0x%02X",
            data[CHECKSUM_OFFSET],
            checksum(data),
        )

    return bytes(data[PARAMETER_OFFSET : PARAMETER_OFFSET + PARAMETER_SIZE])
