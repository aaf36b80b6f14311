"""Payload decoding and dispatch for inbound Command Manager messages."""

from __future__ import annotations

import logging
import math
import re
import sys
from dataclasses import dataclass, field
from typing import Callable, TextIO, Union

from ..models.history import HistoryRing
from ..models.parameters import (
    MAX_NAME_LENGTH,
    REASON_INVALID_VALUE,
    REASON_NAME_TOO_LONG,
    ParameterError,
    ParameterPair,
)
from .commands import DATA_OPCODES, INT32_MAX, INT32_MIN, Opcode
from .framing import parse_message

logger = logging.getLogger(__name__)

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_DECIMAL_RE = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


@dataclass
class RunNumberResponse:
    """Decoded ``RUN_NO____`` payload. ``number`` is None when invalid."""

    number: int | None
    raw: str

    def lines(self) -> list[str]:
        if self.number is None:
            return [f"Invalid Run number: {self.raw}"]
        return [f"Run number: {self.number}"]


@dataclass
class PolarNumberResponse:
    """Decoded ``POLAR_NO__`` payload. ``number`` is None when invalid."""

    number: int | None
    raw: str

    def lines(self) -> list[str]:
        if self.number is None:
            return [f"Invalid Polar number: {self.raw}"]
        return [f"Polar number: {self.number}"]


@dataclass
class UserMessageResponse:
    """Decoded ``USR_MSG___`` payload."""

    text: str

    def lines(self) -> list[str]:
        return [self.text]


@dataclass
class UserFieldsResponse:
    """Decoded ``D_USR_FLD_`` parameter list, in wire order."""

    entries: list[ParameterPair | ParameterError] = field(default_factory=list)

    @property
    def parameters(self) -> list[ParameterPair]:
        return [e for e in self.entries if isinstance(e, ParameterPair)]

    @property
    def errors(self) -> list[ParameterError]:
        return [e for e in self.entries if isinstance(e, ParameterError)]

    def lines(self) -> list[str]:
        return ["Parameters:"] + [entry.line() for entry in self.entries]


@dataclass
class HistoryResponse:
    """Snapshot of the history ring, newest first."""

    entries: list[str]

    def lines(self) -> list[str]:
        return list(self.entries)


Response = Union[
    RunNumberResponse,
    PolarNumberResponse,
    UserMessageResponse,
    UserFieldsResponse,
    HistoryResponse,
]


def decode_integer(payload: str) -> int | None:
    """Parse a whole payload as a signed 32-bit decimal integer.

    Returns ``None`` for empty input, any character outside an optional
    leading sign and the digits, or a value outside the 32-bit range.
    """
    if not _INTEGER_RE.fullmatch(payload):
        return None
    # No 32-bit value has more than 10 significant digits.
    if len(payload.lstrip("+-").lstrip("0")) > 10:
        return None
    number = int(payload)
    if not INT32_MIN <= number <= INT32_MAX:
        return None
    return number


def decode_float(token: str) -> float | None:
    """Parse a whole token as a finite decimal number, or return ``None``.

    Literals that overflow to infinity or underflow to zero are rejected.
    """
    if not _DECIMAL_RE.fullmatch(token):
        return None
    value = float(token)
    if not math.isfinite(value):
        return None
    mantissa = re.split(r"[eE]", token, maxsplit=1)[0]
    if value == 0.0 and any(ch in "123456789" for ch in mantissa):
        return None
    return value


def split_parameter_tokens(payload: str) -> list[str] | None:
    """Split a parameter list on commas, dropping empty tokens.

    Returns ``None`` if the remaining tokens cannot be paired up.
    """
    tokens = [token for token in payload.split(",") if token]
    if len(tokens) % 2 != 0:
        return None
    return tokens


def decode_run_number(payload: str) -> RunNumberResponse:
    return RunNumberResponse(number=decode_integer(payload), raw=payload)


def decode_polar_number(payload: str) -> PolarNumberResponse:
    return PolarNumberResponse(number=decode_integer(payload), raw=payload)


def decode_user_message(payload: str) -> UserMessageResponse:
    return UserMessageResponse(text=payload)


def decode_user_fields(payload: str) -> UserFieldsResponse | None:
    """Decode ``name,value,name,value,...`` into pairs.

    A pair with an overlong name or a non-numeric value becomes a
    ``ParameterError`` and decoding continues with the next pair.
    Returns ``None`` when the token count is odd.
    """
    tokens = split_parameter_tokens(payload)
    if tokens is None:
        return None

    response = UserFieldsResponse()
    for name, raw_value in zip(tokens[::2], tokens[1::2]):
        if len(name) > MAX_NAME_LENGTH:
            response.entries.append(ParameterError(name, REASON_NAME_TOO_LONG))
            continue
        value = decode_float(raw_value)
        if value is None:
            response.entries.append(ParameterError(name, REASON_INVALID_VALUE))
        else:
            response.entries.append(ParameterPair(name, value))
    return response


def decode_history(history: HistoryRing) -> HistoryResponse:
    return HistoryResponse(entries=list(history))


_PAYLOAD_DECODERS: dict[Opcode, Callable[[str], Response | None]] = {
    Opcode.RUN_NUMBER: decode_run_number,
    Opcode.POLAR_NUMBER: decode_polar_number,
    Opcode.USER_MESSAGE: decode_user_message,
    Opcode.USER_FIELDS: decode_user_fields,
}


def dispatch(opcode: Opcode, payload: str, history: HistoryRing) -> Response | None:
    """Decode a payload for ``opcode`` without touching the history ring."""
    if opcode is Opcode.HISTORY:
        return decode_history(history)
    decoder = _PAYLOAD_DECODERS.get(opcode)
    if decoder is None:
        return None
    return decoder(payload)


def parse_command(
    text: str,
    history: HistoryRing,
    sink: TextIO | None = None,
) -> Response | None:
    """Parse one inbound message, write its output and update history.

    Args:
        text: Raw message, e.g. ``"RUN_NO____123#"``.
        history: Ring that records dispatched data opcodes.
        sink: Text stream receiving one line per output line
              (defaults to ``sys.stdout``).

    Returns:
        The decoded response, or ``None`` when the message was dropped
        (not framed, unknown opcode, or an unpaired parameter list).
    """
    message = parse_message(text)
    if message is None:
        logger.debug("Dropped unframed input %r", text)
        return None

    opcode = Opcode.from_text(message.opcode)
    if opcode is Opcode.UNKNOWN:
        logger.debug("Ignored unknown opcode %r", message.opcode)
        return None

    response = dispatch(opcode, message.payload, history)
    if response is None:
        logger.debug("Dropped %s with unpaired parameter list", opcode.value)
        return None

    out = sink if sink is not None else sys.stdout
    for line in response.lines():
        out.write(line + "\n")

    if opcode in DATA_OPCODES:
        history.record(opcode.value)
    return response
