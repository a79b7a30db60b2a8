"""Tests for the immutable render Scope."""

import dataclasses

import pytest

from tmark import Scope


class TestScope:
    """Child scopes derive, never mutate."""

    def test_layers_shadow_in_order(self):
        scope = Scope.from_context({"a": "kwarg"}, {"a": "context", "b": 2}, {"b": "global"})
        assert scope.data["a"] == "kwarg"
        assert scope.data["b"] == 2

    def test_bind_leaves_parent_untouched(self):
        parent = Scope.from_context({"x": 1})
        child = parent.bind({"x": 2, "y": 3})
        assert child.data["x"] == 2
        assert child.data["y"] == 3
        assert parent.data["x"] == 1
        assert "y" not in parent.data

    def test_flags_carried_to_children(self):
        scope = Scope.from_context({}).with_raw_html().with_session(7)
        child = scope.bind({"x": 1})
        assert child.raw_html
        assert child.tree_session == 7

    def test_frozen(self):
        scope = Scope.from_context({})
        with pytest.raises(dataclasses.FrozenInstanceError):
            scope.raw_html = True

    def test_user_mapping_never_written(self):
        context = {"x": 1}
        Scope.from_context(context).bind({"x": 2})
        assert context == {"x": 1}
