"""History ring of recently dispatched data opcodes."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator

HISTORY_CAPACITY = 5


class HistoryRing:
    """Bounded, newest-first record of accepted opcodes.

    Entries are only ever pushed at the front; once the ring holds
    ``HISTORY_CAPACITY`` entries the oldest one falls off the back.

    Usage::

        history = HistoryRing()
        history.record("RUN_NO____")
        list(history)  # ["RUN_NO____"]
    """

    def __init__(self) -> None:
        self._entries: deque[str] = deque(maxlen=HISTORY_CAPACITY)

    def record(self, opcode: str) -> None:
        """Prepend ``opcode``, evicting the oldest entry when full."""
        self._entries.appendleft(opcode)

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"HistoryRing({list(self._entries)!r})"

    def to_list(self) -> list[str]:
        return list(self._entries)

    def to_dict(self) -> dict:
        return {
            "entries": self.to_list(),
            "count": len(self._entries),
            "capacity": HISTORY_CAPACITY,
        }
