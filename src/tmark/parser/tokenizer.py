"""Entity scanner for masked template text.

Splits text into a flat sequence of raw markup slices ("entities"): an
opening tag, a closing tag, or a run of anything else. The scan is greedy,
single-pass and O(n). It relies on `protect()` having masked every span that
could contain a stray ``<`` or ``>``; masked tokens are opaque and need no
lookahead.

Classification is by leading characters only:

    ``<!--``         comment (scanned up to ``-->``)
    ``<![CDATA[``    CDATA section (scanned up to ``]]>``)
    ``<?``           processing instruction
    ``<!doctype ``   doctype (case-insensitive)
    ``</``           closing tag
    ``<x``           opening tag (x is a letter, ``_`` or ``-``)
    anything else    text
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass

from tmark._types import EntityKind

_DOCTYPE_RE = re.compile(r"<!doctype\s", re.IGNORECASE)
_ELEMENT_RE = re.compile(r"<[a-z_\-/]", re.IGNORECASE)

# Prefix → terminator for entities that may legitimately contain ">"
_BLOCK_TERMINATORS: tuple[tuple[str, str], ...] = (
    ("<!--", "-->"),
    ("<![CDATA[", "]]>"),
    ("<!CDATA[[", "]]>"),
)


@dataclass(frozen=True, slots=True)
class Entity:
    """One raw markup slice plus its classification."""

    kind: EntityKind
    data: str
    offset: int

    @property
    def is_element(self) -> bool:
        return self.kind.is_element


def classify(data: str) -> EntityKind:
    """Classify a raw slice by its leading characters."""
    if data.startswith("<!--"):
        return EntityKind.COMMENT
    if data.startswith(("<![CDATA[", "<!CDATA[[")):
        return EntityKind.CDATA
    if data.startswith("<?"):
        return EntityKind.PROCESSING_INSTRUCTION
    if _DOCTYPE_RE.match(data):
        return EntityKind.DOCTYPE
    if _ELEMENT_RE.match(data):
        return EntityKind.ELEMENT_CLOSE if data[1] == "/" else EntityKind.ELEMENT_OPEN
    return EntityKind.TEXT


def next_entity(text: str, offset: int) -> Entity:
    """Scan one entity starting at offset.

    A ``<`` met while text has been accumulated ends the current text run
    (the tag boundary is flushed first). A ``<`` at the start opens a tag
    that ends at the next ``>``; an unterminated tag ends before the next
    ``<`` or at end of input.
    """
    length = len(text)
    if offset >= length:
        raise IndexError(f"offset {offset} is past end of text ({length})")

    if text[offset] == "<":
        for prefix, terminator in _BLOCK_TERMINATORS:
            if text.startswith(prefix, offset):
                end = text.find(terminator, offset + len(prefix))
                stop = length if end == -1 else end + len(terminator)
                data = text[offset:stop]
                return Entity(classify(data), data, offset)
        end = text.find(">", offset + 1)
        stop = length if end == -1 else end + 1
        # A second "<" before the ">" flushes the unterminated tag
        restart = text.find("<", offset + 1, stop)
        if restart != -1:
            stop = restart
        data = text[offset:stop]
        return Entity(classify(data), data, offset)

    end = text.find("<", offset)
    stop = length if end == -1 else end
    data = text[offset:stop]
    return Entity(EntityKind.TEXT, data, offset)


def iter_entities(text: str) -> Iterator[Entity]:
    """Yield every entity of text in order."""
    offset = 0
    length = len(text)
    while offset < length:
        entity = next_entity(text, offset)
        offset += len(entity.data)
        yield entity
