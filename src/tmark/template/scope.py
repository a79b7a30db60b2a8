"""Immutable render scope."""

from __future__ import annotations

from collections import ChainMap
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any


@dataclass(frozen=True, slots=True)
class Scope:
    """Bindings and flags visible at one point of the tree.

    Directives never mutate a scope; they derive a child with `bind` and
    render their children under it, so bindings are visible only inside
    the directive's subtree and sibling branches cannot see each other's.

    Attributes:
        data: Name → value bindings, innermost first
        raw_html: Interpolated values are emitted unescaped (``t-html``)
        tree_session: Id of the enclosing ``t-tree`` session, if any
    """

    data: ChainMap[str, Any] = field(default_factory=ChainMap)
    raw_html: bool = False
    tree_session: int | None = None

    @classmethod
    def from_context(cls, *layers: Mapping[str, Any]) -> Scope:
        """Build a root scope; earlier layers shadow later ones."""
        return cls(ChainMap({}, *layers))

    def bind(self, bindings: Mapping[str, Any]) -> Scope:
        """Child scope with bindings shadowing same-named outer names."""
        return replace(self, data=self.data.new_child(dict(bindings)))

    def with_raw_html(self) -> Scope:
        return replace(self, raw_html=True)

    def with_session(self, session_id: int) -> Scope:
        return replace(self, tree_session=session_id)
