"""Tree nodes for parsed tmark templates.

Unlike a compiled AST, a tmark tree is rendered by walking it directly, so
nodes need sibling and parent navigation: the if/elif/else chain is threaded
through element siblings. Parents are referenced weakly; a node owns its
children and nothing else.

Nodes are built once by the `TreeBuilder` and never mutated afterwards, which
keeps cached trees safe to share between concurrent renders. Per-render
state lives outside the tree (see `tmark.template.conditions`).
"""

from __future__ import annotations

import weakref
from collections.abc import Iterator, Mapping

from tmark._types import NodeType


class Node:
    """A parsed element or leaf.

    Attributes:
        kind: Node type (ELEMENT or a leaf kind)
        tag: Tag name, elements only
        attrs: Attribute name → value; ``None`` marks a valueless attribute
        children: Owned child nodes in document order
        raw: Restored source text. For elements, the opening tag
        closed: True once a matching closing tag (or ``/>``) was seen
        self_closing: True for ``<x />`` and void elements
        lineno: 1-based source line where the node starts
    """

    __slots__ = (
        "__weakref__",
        "_index",
        "_parent",
        "attrs",
        "children",
        "closed",
        "kind",
        "lineno",
        "raw",
        "self_closing",
        "tag",
    )

    def __init__(
        self,
        kind: NodeType,
        raw: str = "",
        *,
        tag: str = "",
        attrs: dict[str, str | None] | None = None,
        lineno: int = 0,
        self_closing: bool = False,
    ):
        self.kind = kind
        self.raw = raw
        self.tag = tag
        self.attrs: dict[str, str | None] = attrs if attrs is not None else {}
        self.children: list[Node] = []
        self.closed = self_closing
        self.self_closing = self_closing
        self.lineno = lineno
        self._parent: weakref.ref[Node] | None = None
        self._index = 0

    @property
    def is_element(self) -> bool:
        return self.kind is NodeType.ELEMENT

    @property
    def parent(self) -> Node | None:
        if self._parent is None:
            return None
        return self._parent()

    @property
    def index(self) -> int:
        """Position among the parent's children."""
        return self._index

    def append(self, node: Node) -> None:
        node._parent = weakref.ref(self)
        node._index = len(self.children)
        self.children.append(node)

    def close(self) -> None:
        self.closed = True

    # ------------------------------------------------------------------
    # Sibling navigation
    # ------------------------------------------------------------------

    def _sibling(self, offset: int) -> Node | None:
        parent = self.parent
        if parent is None:
            return None
        position = self._index + offset
        if 0 <= position < len(parent.children):
            return parent.children[position]
        return None

    @property
    def next(self) -> Node | None:
        return self._sibling(1)

    @property
    def prev(self) -> Node | None:
        return self._sibling(-1)

    @property
    def next_element(self) -> Node | None:
        """Next sibling that is an element, skipping text and comments."""
        node = self.next
        while node is not None and not node.is_element:
            node = node.next
        return node

    @property
    def prev_element(self) -> Node | None:
        """Previous sibling that is an element, skipping text and comments."""
        node = self.prev
        while node is not None and not node.is_element:
            node = node.prev
        return node

    # ------------------------------------------------------------------
    # Text reconstruction
    # ------------------------------------------------------------------

    @property
    def attrs_string(self) -> str:
        """Attributes as markup, with a leading space when non-empty."""
        return format_attrs(self.attrs)

    def to_html(self, include_children: bool = True) -> str:
        """Reconstruct markup for this node.

        Leaves return their raw text. Elements are rebuilt from tag name and
        attributes, so the output is normalized (quotes, whitespace). An
        element left open in the source gets no closing tag.
        """
        if not self.is_element:
            return self.raw
        if self.self_closing:
            return format_self_closing(self.tag, self.attrs_string, self.raw)
        open_tag = f"<{self.tag}{self.attrs_string}>"
        if not include_children:
            return open_tag
        inner = "".join(child.to_html() for child in self.children)
        close_tag = f"</{self.tag}>" if self.closed else ""
        return f"{open_tag}{inner}{close_tag}"

    def walk(self) -> Iterator[Node]:
        """Yield this node and all descendants depth-first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def __repr__(self) -> str:
        if self.is_element:
            return f"<Node {self.tag} line={self.lineno} children={len(self.children)}>"
        preview = self.raw if len(self.raw) <= 20 else self.raw[:17] + "..."
        return f"<Node {self.kind.name} {preview!r}>"


def format_attrs(attrs: Mapping[str, str | None]) -> str:
    """Attributes as markup, with a leading space when non-empty.

    Valueless attributes are emitted bare. Values containing a double quote
    (and no single quote) are wrapped in single quotes.
    """
    parts = []
    for name, value in attrs.items():
        if value is None:
            parts.append(name)
        elif '"' in value and "'" not in value:
            parts.append(f"{name}='{value}'")
        else:
            parts.append(f'{name}="{value}"')
    return f" {' '.join(parts)}" if parts else ""


def format_self_closing(tag: str, attrs_string: str, raw: str) -> str:
    """Render a childless element, keeping ``/>`` only if the source used it."""
    if raw.rstrip().endswith("/>"):
        return f"<{tag}{attrs_string} />"
    return f"<{tag}{attrs_string}>"


class Fragment(Node):
    """Synthetic root owning the top-level nodes (a forest) of a template.

    Holding the fragment keeps the weak parent references of top-level nodes
    alive, so sibling navigation works at the root level too.
    """

    __slots__ = ()

    def __init__(self) -> None:
        super().__init__(NodeType.FRAGMENT)

    @property
    def nodes(self) -> list[Node]:
        return self.children

    def __iter__(self) -> Iterator[Node]:
        return iter(self.children)

    def __len__(self) -> int:
        return len(self.children)

    def __getitem__(self, index: int) -> Node:
        return self.children[index]

    def to_html(self, include_children: bool = True) -> str:
        return "".join(child.to_html() for child in self.children)

    def __repr__(self) -> str:
        return f"<Fragment nodes={len(self.children)}>"
