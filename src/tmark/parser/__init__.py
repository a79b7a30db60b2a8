"""Markup parser: placeholder protection, entity scanning and tree building.

Pipeline:
    source → protect() → iter_entities() → TreeBuilder → Fragment
"""

from tmark.parser.builder import TreeBuilder, parse
from tmark.parser.placeholders import PlaceholderTable, protect, unquote
from tmark.parser.tokenizer import Entity, classify, iter_entities, next_entity

__all__ = [
    "Entity",
    "PlaceholderTable",
    "TreeBuilder",
    "classify",
    "iter_entities",
    "next_entity",
    "parse",
    "protect",
    "unquote",
]
