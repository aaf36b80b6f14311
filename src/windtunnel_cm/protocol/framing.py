"""Message framing for the Command Manager text protocol.

Message layout::

    +------------+------------------+----------+
    |   Opcode   |     Payload      | Sentinel |
    |  10 chars  |  0..N chars      |   '#'    |
    +------------+------------------+----------+

- Opcode: fixed-width identifier, padded with underscores
- Payload: opcode-specific text, may be empty
- Sentinel: a single ``#`` terminating every message; there is no escaping
"""

from __future__ import annotations

from dataclasses import dataclass

SENTINEL = "#"
OPCODE_LENGTH = 10
MIN_MESSAGE_LENGTH = OPCODE_LENGTH + len(SENTINEL)  # 11


@dataclass
class Message:
    """A framed protocol message."""

    opcode: str
    payload: str

    def __repr__(self) -> str:
        payload = repr(self.payload) if self.payload else "(empty)"
        return f"Message(opcode={self.opcode!r}, payload={payload})"


def build_message(opcode: str, payload: str = "") -> str:
    """Build a wire message from an opcode and payload.

    Args:
        opcode: Exactly ``OPCODE_LENGTH`` characters, including padding.
        payload: Opcode-specific text. Must not contain the sentinel.

    Returns:
        The framed message, terminated by ``#``.
    """
    if len(opcode) != OPCODE_LENGTH:
        raise ValueError(
            f"Opcode must be {OPCODE_LENGTH} characters, got {len(opcode)}: {opcode!r}"
        )
    if SENTINEL in payload:
        raise ValueError(f"Payload must not contain '{SENTINEL}': {payload!r}")
    return opcode + payload + SENTINEL


def parse_message(text: str) -> Message | None:
    """Split a raw line into opcode and payload.

    Returns:
        A ``Message`` if the line is framed, or ``None`` if it is empty,
        lacks the trailing sentinel, or is too short to hold an opcode.
    """
    if not text or text[-1] != SENTINEL:
        return None
    if len(text) < MIN_MESSAGE_LENGTH:
        return None

    opcode = text[:OPCODE_LENGTH]
    payload = text[OPCODE_LENGTH:]
    # Only the final sentinel is stripped; earlier '#' stay in the payload.
    if payload.endswith(SENTINEL):
        payload = payload[: -len(SENTINEL)]

    return Message(opcode=opcode, payload=payload)
