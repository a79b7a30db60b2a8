"""Core enums shared by the parser and the interpreter."""

from __future__ import annotations

from enum import Enum


class EntityKind(Enum):
    """Classification of one raw markup slice produced by the tokenizer."""

    ELEMENT_OPEN = "element_open"
    ELEMENT_CLOSE = "element_close"
    TEXT = "text"
    COMMENT = "comment"
    CDATA = "cdata"
    PROCESSING_INSTRUCTION = "processing_instruction"
    DOCTYPE = "doctype"

    @property
    def is_element(self) -> bool:
        return self is EntityKind.ELEMENT_OPEN or self is EntityKind.ELEMENT_CLOSE


class NodeType(Enum):
    """Kind of a persistent tree node.

    Mirrors `EntityKind` with open/close collapsed into ELEMENT, plus
    FRAGMENT for the synthetic root that owns a parsed forest.
    """

    ELEMENT = 1
    TEXT = 3
    CDATA = 4
    PROCESSING_INSTRUCTION = 7
    COMMENT = 8
    DOCTYPE = 10
    FRAGMENT = 11

    @classmethod
    def from_entity(cls, kind: EntityKind) -> NodeType:
        if kind.is_element:
            return cls.ELEMENT
        return _LEAF_KINDS[kind]


_LEAF_KINDS: dict[EntityKind, NodeType] = {
    EntityKind.TEXT: NodeType.TEXT,
    EntityKind.COMMENT: NodeType.COMMENT,
    EntityKind.CDATA: NodeType.CDATA,
    EntityKind.PROCESSING_INSTRUCTION: NodeType.PROCESSING_INSTRUCTION,
    EntityKind.DOCTYPE: NodeType.DOCTYPE,
}


class Directive(str, Enum):
    """Reserved tag names handled by the interpreter."""

    FOR = "t-for"
    IF = "t-if"
    ELIF = "t-elif"
    ELSE = "t-else"
    WITH = "t-with"
    TREE = "t-tree"
    CHILDREN = "t-children"
    INCLUDE = "t-include"
    HTML = "t-html"

    @property
    def marker(self) -> str:
        """Upper-case name used in BEGIN/END comment markers."""
        return self.value.upper()
