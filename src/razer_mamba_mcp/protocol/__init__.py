"""Protocol layer: report framing, checksum, command builders, and reply parsing."""

from .framing import Frame, checksum, finalize, prepare, validate_reply
from .commands import Command, Group
