"""Loop iteration metadata for tmark ``t-for`` directives."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


class LoopContext:
    """Loop iteration metadata accessible as `loop` inside ``t-for``.

    Loop items render concurrently, so each item gets its own LoopContext
    fixed at its position rather than one object advanced by iteration.

    Properties:
        index: 1-based iteration count (1, 2, 3, ...)
        index0: 0-based iteration count (0, 1, 2, ...)
        first: True on the first iteration
        last: True on the final iteration
        length: Total number of items in the sequence
        revindex: Reverse 1-based index (counts down to 1)
        revindex0: Reverse 0-based index (counts down to 0)
        previtem: Previous item in sequence (None on first)
        nextitem: Next item in sequence (None on last)

    Methods:
        cycle(*values): Return values[index0 % len(values)]

    Example:
            ```html
            <ul>
            <t-for on="fruit of fruits">
                <li class="{{ loop.cycle('odd', 'even') }}">
                    {{ loop.index }}/{{ loop.length }}: {{ fruit }}
                </li>
            </t-for>
            </ul>
            ```

    """

    __slots__ = ("_index", "_items", "_length")

    def __init__(self, items: Sequence[Any], index: int) -> None:
        self._items = items
        self._length = len(items)
        self._index = index

    @property
    def index(self) -> int:
        """1-based iteration count."""
        return self._index + 1

    @property
    def index0(self) -> int:
        """0-based iteration count."""
        return self._index

    @property
    def first(self) -> bool:
        return self._index == 0

    @property
    def last(self) -> bool:
        return self._index == self._length - 1

    @property
    def length(self) -> int:
        return self._length

    @property
    def revindex(self) -> int:
        """Reverse 1-based index (counts down to 1)."""
        return self._length - self._index

    @property
    def revindex0(self) -> int:
        """Reverse 0-based index (counts down to 0)."""
        return self._length - self._index - 1

    @property
    def previtem(self) -> Any:
        if self._index == 0:
            return None
        return self._items[self._index - 1]

    @property
    def nextitem(self) -> Any:
        if self._index >= self._length - 1:
            return None
        return self._items[self._index + 1]

    def cycle(self, *values: Any) -> Any:
        """Cycle through the given values.

        Example:
            {{ loop.cycle('odd', 'even') }}
        """
        if not values:
            return None
        return values[self._index % len(values)]

    def __repr__(self) -> str:
        return f"<LoopContext {self.index}/{self.length}>"
