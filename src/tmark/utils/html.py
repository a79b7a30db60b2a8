"""HTML escaping utilities for tmark.

Escaping is single-pass via ``str.translate()``. Values that implement
``__html__`` (``Markup`` and compatible objects from other libraries) are
trusted and emitted unchanged.
"""

from __future__ import annotations

from typing import Any

_ESCAPE_TABLE = str.maketrans(
    {
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
        '"': "&quot;",
        "'": "&#39;",
    }
)


class Markup(str):
    """A string that is already safe HTML and must not be escaped again.

    Example:
        >>> html_escape(Markup("<b>bold</b>"))
        '<b>bold</b>'
        >>> html_escape("<b>bold</b>")
        '&lt;b&gt;bold&lt;/b&gt;'
    """

    __slots__ = ()

    def __html__(self) -> str:
        return str(self)

    def __repr__(self) -> str:
        return f"Markup({super().__repr__()})"


def html_escape(value: Any) -> str:
    """Escape ``&``, ``<``, ``>``, ``"`` and ``'`` in the string form of value.

    Complexity: O(n) single pass.
    """
    if hasattr(value, "__html__"):
        return str(value.__html__())
    return str(value).translate(_ESCAPE_TABLE)
