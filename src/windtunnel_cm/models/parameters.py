"""Parameter pairs carried by ``D_USR_FLD_`` messages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

MAX_NAME_LENGTH = 15

REASON_NAME_TOO_LONG = "name_too_long"
REASON_INVALID_VALUE = "invalid_value"


def format_value(value: float) -> str:
    """Render a parameter value in ``%g`` style.

    Six significant digits, trailing zeros trimmed, switching to
    exponent notation for very large or small magnitudes.
    """
    return format(value, "g")


@dataclass
class ParameterPair:
    """A decoded (name, value) pair."""

    name: str
    value: float

    def format_value(self) -> str:
        return format_value(self.value)

    def line(self) -> str:
        return f"{self.name} = {self.format_value()}"

    def to_dict(self) -> dict:
        return {"name": self.name, "value": self.value}


@dataclass
class ParameterError:
    """A pair that was skipped, with the reason it was rejected."""

    MESSAGES: ClassVar[dict[str, str]] = {
        REASON_NAME_TOO_LONG: "Parameter name too long: ",
        REASON_INVALID_VALUE: "Invalid parameter value for parameter: ",
    }

    name: str
    reason: str

    def line(self) -> str:
        return self.MESSAGES[self.reason] + self.name

    def to_dict(self) -> dict:
        return {"name": self.name, "error": self.reason}
