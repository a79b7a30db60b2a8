"""Placeholder protection for the markup tokenizer.

The tokenizer is a plain ``<``/``>`` matcher. Anything that may contain a
literal ``<``, ``>`` or quote without being markup is swapped for an opaque
token before tokenization and restored afterwards:

0. literal token delimiters already present in the source
1. backslash-escaped characters (``\\<``)
2. ``<script>…</script>`` and ``<style>…</style>`` blocks
3. ``<link …>`` and ``<meta …>`` tags
4. ``{{ expr }}`` interpolations
5. quoted attribute values (``="…"`` / ``='…'``)

Masks run in that order, so a later span may contain tokens produced by an
earlier one (an expression inside an attribute value, for example).
`PlaceholderTable.restore` expands every token into its fully restored
original in one pass. Expanded text is never scanned again, so a delimiter
that was literal in the source always comes back literally.

Token format:
    ``\\ue000<n>\\ue001``: private-use code points with ``n`` increasing
    monotonically per table. Stage 0 masks any delimiter already in the
    source, so every token-shaped run in masked text is a real token.

Lifetime:
    One table per parse. It is created by `TreeBuilder`, consulted while
    nodes are built and dropped with the builder, so concurrent parses never
    share state.
"""

from __future__ import annotations

import itertools
import re

TOKEN_OPEN = "\ue000"
TOKEN_CLOSE = "\ue001"
TOKEN_RE = re.compile(f"{TOKEN_OPEN}(\\d+){TOKEN_CLOSE}")

_DELIMITER_RE = re.compile(f"[{TOKEN_OPEN}{TOKEN_CLOSE}]")
_ESCAPED_CHAR_RE = re.compile(f"\\\\[^{TOKEN_OPEN}{TOKEN_CLOSE}]")
_RAW_BLOCK_RE = re.compile(r"<(style|script)\b[\s\S]*?</\1\s*>", re.IGNORECASE)
_HEAD_TAG_RE = re.compile(r"<(?:link|meta)\b[^>]*>", re.IGNORECASE)
_EXPRESSION_RE = re.compile(r"\{\{[\s\S]+?\}\}")
_ATTR_VALUE_RE = re.compile(r"=(\s*(['\"])[\s\S]*?\2)")


class PlaceholderTable:
    """Token → original text mapping for one parse.

    Example:
        >>> table = PlaceholderTable()
        >>> masked = protect('<a href="x>y">{{ a > b }}</a>', table)
        >>> "x>y" in masked, "{{" in masked
        (False, False)
        >>> table.restore(masked)
        '<a href="x>y">{{ a > b }}</a>'
    """

    __slots__ = ("_counter", "_entries")

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}
        self._counter = itertools.count(1)

    def add(self, original: str) -> str:
        """Record original text and return the token that stands for it."""
        token = f"{TOKEN_OPEN}{next(self._counter)}{TOKEN_CLOSE}"
        self._entries[token] = original
        return token

    def get(self, token: str) -> str | None:
        return self._entries.get(token)

    def restore(self, text: str) -> str:
        """Replace every known token in text with its fully restored original.

        Tokens inside an original are expanded recursively, and nesting depth
        is bounded by the number of masking stages. Each token is expanded
        exactly once: restored text is not scanned again. Unknown tokens are
        left untouched.
        """
        if TOKEN_OPEN not in text:
            return text

        def _sub(match: re.Match[str]) -> str:
            original = self._entries.get(match.group(0))
            return match.group(0) if original is None else self.restore(original)

        return TOKEN_RE.sub(_sub, text)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, token: object) -> bool:
        return token in self._entries


def protect(text: str, table: PlaceholderTable) -> str:
    """Mask every span that must survive tokenization verbatim.

    Args:
        text: Raw template source
        table: Table receiving the token → original entries

    Returns:
        Masked text with the same markup structure and no literal ``<``/``>``
        inside protected spans.
    """

    def _mask(match: re.Match[str]) -> str:
        return table.add(match.group(0))

    def _mask_value(match: re.Match[str]) -> str:
        # Keep the "=" so the attribute parser still sees name=value pairs;
        # the token restores the whitespace and the quotes exactly.
        return "=" + table.add(match.group(1))

    text = _DELIMITER_RE.sub(_mask, text)
    text = _ESCAPED_CHAR_RE.sub(_mask, text)
    text = _RAW_BLOCK_RE.sub(_mask, text)
    text = _HEAD_TAG_RE.sub(_mask, text)
    text = _EXPRESSION_RE.sub(_mask, text)
    return _ATTR_VALUE_RE.sub(_mask_value, text)


def unquote(value: str) -> str:
    """Strip surrounding whitespace and one pair of matching quotes."""
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
        return value[1:-1]
    return value
