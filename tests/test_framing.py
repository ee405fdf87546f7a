"""Tests for frame building and reply validation."""

import pytest

from razer_mamba_mcp.exceptions import (
    ConstraintError,
    FieldMismatch,
    LengthMismatch,
    MarkerMismatch,
    ValidationError,
)
from razer_mamba_mcp.protocol.framing import (
    PARAMETER_SIZE,
    REPORT_SIZE,
    Frame,
    finalize,
    prepare,
    validate_reply,
)


def _reply(group=0x07, command=0x80, sub_command=0x00, params=b"\xc8", marker=0x02):
    buf = bytearray(REPORT_SIZE)
    buf[0] = marker
    buf[2] = 0x02
    buf[3] = group
    buf[4] = command
    buf[5] = sub_command
    buf[6 : 6 + len(params)] = params
    return bytes(buf)


def test_prepare_frame_size():
    """Every built frame must be exactly 90 bytes."""
    frame = prepare(0x03, 0x0A, 0x04, 0x02)
    assert len(frame.to_bytes()) == REPORT_SIZE
    assert len(finalize(frame)) == REPORT_SIZE


def test_prepare_layout():
    """Header fields land at their offsets and the rest is zero."""
    data = prepare(0x03, 0x0A, 0x02, 0x05, bytes([3, 0xFF, 0x10, 0x20])).to_bytes()
    assert data[0] == 0x00  # status marker
    assert data[1] == 0xFF  # transport class
    assert data[2] == 0x05  # parameter count
    assert data[3] == 0x03  # group
    assert data[4] == 0x0A  # command
    assert data[5] == 0x02  # sub-command
    assert data[6:10] == bytes([3, 0xFF, 0x10, 0x20])
    assert data[10:] == bytes(REPORT_SIZE - 10)


def test_prepare_pads_parameters():
    frame = prepare(0x07, 0x03, 0x01, 0x02, b"\x84")
    assert len(frame.parameters) == PARAMETER_SIZE
    assert frame.parameters[0] == 0x84
    assert frame.parameters[1:] == bytes(PARAMETER_SIZE - 1)


def test_prepare_full_parameter_window():
    """Exactly 80 parameter bytes fit."""
    frame = prepare(0x03, 0x0A, 0x00, 80, bytes(range(80)))
    data = frame.to_bytes()
    assert data[6:86] == bytes(range(80))
    assert data[86:] == bytes(4)


def test_prepare_parameter_overflow():
    with pytest.raises(ConstraintError):
        prepare(0x03, 0x0A, 0x00, 0x02, bytes(81))


def test_prepare_parameter_count_too_large():
    with pytest.raises(ConstraintError) as excinfo:
        prepare(0x03, 0x0A, 0x00, 81)
    assert excinfo.value.field == "parameter_count"


def test_prepare_field_out_of_byte_range():
    with pytest.raises(ConstraintError):
        prepare(0x100, 0x0A)
    with pytest.raises(ConstraintError):
        prepare(0x03, 0x0A, -1)


def test_constraint_error_is_value_error():
    with pytest.raises(ValueError):
        prepare(0x03, 0x0A, 0x00, 0x02, bytes(100))


def test_validate_reply_returns_parameters():
    params = validate_reply(_reply(), 0x07, 0x80, 0x00)
    assert len(params) == PARAMETER_SIZE
    assert params[0] == 200


def test_validate_reply_length_mismatch():
    with pytest.raises(LengthMismatch) as excinfo:
        validate_reply(_reply()[:50], 0x07, 0x80, 0x00)
    assert excinfo.value.actual == 50


def test_validate_reply_marker_mismatch():
    """A reply with status marker 0x01 is not trusted."""
    with pytest.raises(MarkerMismatch):
        validate_reply(_reply(marker=0x01), 0x07, 0x80, 0x00)


def test_validate_reply_request_echo_rejected():
    """An unanswered request (marker 0x00) is not a reply."""
    request = finalize(prepare(0x07, 0x80, 0x00, 0x02))
    with pytest.raises(MarkerMismatch):
        validate_reply(request, 0x07, 0x80, 0x00)


@pytest.mark.parametrize(
    "kwargs, field",
    [
        ({"group": 0x03}, "group"),
        ({"command": 0x84}, "command"),
        ({"sub_command": 0x01}, "sub_command"),
    ],
)
def test_validate_reply_field_mismatch(kwargs, field):
    with pytest.raises(FieldMismatch) as excinfo:
        validate_reply(_reply(**kwargs), 0x07, 0x80, 0x00)
    assert excinfo.value.field == field
    assert isinstance(excinfo.value, ValidationError)


def test_validate_reply_skips_sub_command_when_none():
    """Sub-command is not checked when the reply reuses it as data."""
    validate_reply(_reply(group=0x00, command=0x82, sub_command=0x50), 0x00, 0x82, None)


def test_validate_reply_ignores_transport_byte():
    buf = bytearray(_reply())
    buf[1] = 0x05
    assert validate_reply(bytes(buf), 0x07, 0x80, 0x00)[0] == 200


def test_frame_from_bytes():
    data = finalize(prepare(0x04, 0x05, 0x00, 0x07, bytes([0x3E, 0x80, 0x3E, 0x80, 0, 0])))
    frame = Frame.from_bytes(data)
    assert frame.group == 0x04
    assert frame.command == 0x05
    assert frame.parameter_count == 0x07
    assert frame.parameters[:4] == bytes([0x3E, 0x80, 0x3E, 0x80])
    assert frame.transport_class == 0xFF
    assert frame.crc == data[88]


def test_frame_from_bytes_wrong_length():
    with pytest.raises(LengthMismatch):
        Frame.from_bytes(bytes(89))


def test_frame_repr():
    """Frame repr should be readable."""
    r = repr(prepare(0x03, 0x0A, 0x06, 0x04, bytes([1, 2, 3])))
    assert "0x0A" in r
    assert "0x06" in r
    assert "01 02 03" in r
