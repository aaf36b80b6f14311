"""Opcode alphabet and high-level message builders.

Each command is identified by a fixed 10-character opcode. The underscore
padding is part of the opcode: ``RUN_NO___`` plus any other character is
a different (unknown) opcode.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from enum import Enum

from ..models.parameters import MAX_NAME_LENGTH
from .framing import OPCODE_LENGTH, build_message

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1


class Opcode(str, Enum):
    """Recognized opcodes, plus a catch-all for everything else."""

    RUN_NUMBER = "RUN_NO____"
    POLAR_NUMBER = "POLAR_NO__"
    USER_MESSAGE = "USR_MSG___"
    USER_FIELDS = "D_USR_FLD_"
    HISTORY = "HISTORY___"
    UNKNOWN = "?" * OPCODE_LENGTH

    @classmethod
    def from_text(cls, text: str) -> Opcode:
        """Look up an opcode, mapping anything unrecognized to ``UNKNOWN``."""
        try:
            return cls(text)
        except ValueError:
            return cls.UNKNOWN


KNOWN_OPCODES = frozenset(
    {
        Opcode.RUN_NUMBER,
        Opcode.POLAR_NUMBER,
        Opcode.USER_MESSAGE,
        Opcode.USER_FIELDS,
        Opcode.HISTORY,
    }
)

# Opcodes that land in the history ring when dispatched.
DATA_OPCODES = KNOWN_OPCODES - {Opcode.HISTORY}


def build_command(opcode: Opcode, payload: str = "") -> str:
    """Build a wire message for a known opcode."""
    if opcode not in KNOWN_OPCODES:
        raise ValueError(f"Cannot build a message for {opcode.name}")
    return build_message(opcode.value, payload)


def _check_int32(label: str, number: int) -> None:
    if not INT32_MIN <= number <= INT32_MAX:
        raise ValueError(
            f"{label} must be {INT32_MIN}-{INT32_MAX}, got {number}"
        )


def build_run_number(number: int) -> str:
    """Build a ``RUN_NO____`` message.

    Args:
        number: Run number, within the signed 32-bit range.
    """
    _check_int32("Run number", number)
    return build_command(Opcode.RUN_NUMBER, str(number))


def build_polar_number(number: int) -> str:
    """Build a ``POLAR_NO__`` message.

    Args:
        number: Polar number, within the signed 32-bit range.
    """
    _check_int32("Polar number", number)
    return build_command(Opcode.POLAR_NUMBER, str(number))


def build_user_message(text: str) -> str:
    """Build a ``USR_MSG___`` free-text message."""
    return build_command(Opcode.USER_MESSAGE, text)


def build_user_fields(pairs: Iterable[tuple[str, float]]) -> str:
    """Build a ``D_USR_FLD_`` parameter list.

    Every pair is followed by a comma, giving the canonical trailing
    comma before the sentinel, e.g. ``D_USR_FLD_Alpha,0.5,#``.

    Args:
        pairs: ``(name, value)`` tuples. Names must be 1-15 characters
               without commas; values must be finite.
    """
    tokens: list[str] = []
    for name, value in pairs:
        if not name or len(name) > MAX_NAME_LENGTH:
            raise ValueError(
                f"Parameter name must be 1-{MAX_NAME_LENGTH} characters, got {name!r}"
            )
        if "," in name:
            raise ValueError(f"Parameter name must not contain ',': {name!r}")
        if not math.isfinite(value):
            raise ValueError(f"Parameter value must be finite, got {value}")
        tokens.append(f"{name},{float(value)!r},")
    return build_command(Opcode.USER_FIELDS, "".join(tokens))


def build_history_query() -> str:
    """Build a ``HISTORY___`` query."""
    return build_command(Opcode.HISTORY)
