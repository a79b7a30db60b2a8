"""Tree builder: entities → node forest.

Nesting is reconstructed from the order of opening and closing tags with an
explicit stack seeded by a synthetic `Fragment` root:

- leaf entities (text, comment, CDATA, doctype, processing instruction) are
  appended to the node on top of the stack;
- an opening tag is appended to the top node and pushed, unless it closes
  itself (``<x />`` or a void element such as ``<br>``);
- a closing tag pops up to and including the nearest open element with the
  same name. Elements popped on the way stay unclosed. A closing tag that
  matches nothing is dropped.

Malformed input never raises: whatever is still open at end of input simply
stays open, and the root sequence is returned as a forest.
"""

from __future__ import annotations

import logging
import re
from time import perf_counter

from tmark._types import EntityKind, NodeType
from tmark.nodes import Fragment, Node
from tmark.parser.placeholders import TOKEN_CLOSE, PlaceholderTable, protect, unquote
from tmark.parser.tokenizer import Entity, iter_entities
from tmark.utils.constants import VOID_ELEMENTS

logger = logging.getLogger(__name__)

_TAG_NAME_RE = re.compile(r"^</?([^\s/>]+)")
_ATTR_RE = re.compile(r"(?P<name>[^\s=]+)(?:\s*=\s*(?P<value>\S*))?")
_TAG_END_RE = re.compile(r"\s*>?\s*$")
# An unquoted value runs to the end of the tag, so a "/" there belongs to it
_UNQUOTED_TAIL_RE = re.compile(f"=\\s*[^\\s{TOKEN_CLOSE}]*$")


class TreeBuilder:
    """Build a `Fragment` from template source.

    One builder owns one `PlaceholderTable`; create a builder per parse.

    Args:
        self_closing: Close ``<x />`` and HTML void elements immediately.
            When False, only an explicit closing tag closes an element.

    Example:
        >>> fragment = TreeBuilder().build('<ul><li>{{ x }}</li></ul>')
        >>> fragment[0].tag, fragment[0].children[0].tag
        ('ul', 'li')
    """

    __slots__ = ("_line", "_self_closing", "table")

    def __init__(self, *, self_closing: bool = True):
        self.table = PlaceholderTable()
        self._self_closing = self_closing
        self._line = 1

    def build(self, source: str) -> Fragment:
        root = Fragment()
        stack: list[Node] = [root]

        for entity in iter_entities(protect(source, self.table)):
            raw = self.table.restore(entity.data)
            lineno = self._line
            self._line += raw.count("\n")

            if entity.kind is EntityKind.ELEMENT_CLOSE:
                self._close(stack, entity)
                continue

            if entity.kind is EntityKind.ELEMENT_OPEN:
                node = self._element(entity, raw, lineno)
                stack[-1].append(node)
                if not node.self_closing:
                    stack.append(node)
                continue

            stack[-1].append(Node(NodeType.from_entity(entity.kind), raw, lineno=lineno))

        return root

    def _element(self, entity: Entity, raw: str, lineno: int) -> Node:
        data = entity.data
        match = _TAG_NAME_RE.match(data)
        name = match.group(1) if match else ""
        tag = self.table.restore(name)

        attr_text = _TAG_END_RE.sub("", data[1 + len(name) :])
        explicit_close = attr_text.endswith("/") and not _UNQUOTED_TAIL_RE.search(attr_text[:-1])
        if explicit_close:
            attr_text = attr_text[:-1]

        attrs: dict[str, str | None] = {}
        for attr in _ATTR_RE.finditer(attr_text):
            value = attr.group("value")
            attrs[self.table.restore(attr.group("name"))] = (
                None if value is None else unquote(self.table.restore(value))
            )

        self_closing = self._self_closing and (explicit_close or tag.lower() in VOID_ELEMENTS)
        return Node(
            NodeType.ELEMENT,
            raw,
            tag=tag,
            attrs=attrs,
            lineno=lineno,
            self_closing=self_closing,
        )

    def _close(self, stack: list[Node], entity: Entity) -> None:
        match = _TAG_NAME_RE.match(entity.data)
        name = self.table.restore(match.group(1)).lower() if match else ""
        for position in range(len(stack) - 1, 0, -1):
            if stack[position].tag.lower() == name:
                stack[position].close()
                del stack[position:]
                return
        logger.debug("Ignoring unmatched closing tag %r", entity.data)


def parse(source: str, *, self_closing: bool = True) -> Fragment:
    """Parse template source into a node forest.

    Runs placeholder protection, tokenization and tree building. The
    placeholder table lives only for the duration of this call.
    """
    start = perf_counter()
    fragment = TreeBuilder(self_closing=self_closing).build(source)
    logger.debug(
        "Parsed %d chars into %d top-level nodes in %.3fms",
        len(source),
        len(fragment),
        (perf_counter() - start) * 1000,
    )
    return fragment
