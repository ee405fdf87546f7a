"""Exceptions raised by the protocol and transport layers.

Catalog methods in :mod:`razer_mamba_mcp.mouse` catch transfer and
validation errors and return sentinels, so callers of the high-level API only
see :class:`ConstraintError` (a programming error) escape.
"""

from __future__ import annotations


class RazerError(Exception):
    """Base class; keyword arguments are kept and exposed as attributes."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args)
        self.details = kwargs
        for key, value in kwargs.items():
            setattr(self, key, value)

    def __str__(self) -> str:
        message = super().__str__()
        if not self.details:
            return message
        extra = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
        return f"{message} ({extra})" if message else extra


class ConstraintError(RazerError, ValueError):
    """A frame could not be built: a field or the parameters do not fit."""


class TransferError(RazerError, IOError):
    """A control transfer did not move exactly one full frame."""


class ShortWrite(TransferError):
    """The outbound SET_REPORT transfer failed or was short."""


class ShortRead(TransferError):
    """The inbound GET_REPORT transfer failed or was short."""


class ValidationError(RazerError):
    """A reply frame does not answer the request that was sent."""


class LengthMismatch(ValidationError):
    """Reply is not exactly one frame long."""


class MarkerMismatch(ValidationError):
    """Reply status marker is not the 'valid reply' value."""


class FieldMismatch(ValidationError):
    """Reply group, command or sub-command does not echo the request."""
