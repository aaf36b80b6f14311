"""Protocol layer: message framing, opcode builders, and payload parsing."""

from .framing import Message, build_message, parse_message
from .commands import Opcode, build_command
from .parser import parse_command
