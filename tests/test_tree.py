"""Tests for t-tree / t-children recursive rendering."""

from dataclasses import dataclass, field

import pytest

from tmark import (
    DictLoader,
    Environment,
    SequencingError,
    TemplateSyntaxError,
    TypeMismatchError,
)

NESTED_LIST = (
    '<ul><t-tree on="items as item"><li>{{ item.id }}<ul><t-children /></ul></li></t-tree></ul>'
)


@dataclass
class Category:
    name: str
    children: list["Category"] = field(default_factory=list)


class TestTreeRendering:
    """One body expands an arbitrarily deep hierarchy."""

    def test_nested_list(self, env):
        items = [
            {"id": 1, "children": [{"id": 2, "children": [{"id": 3}]}]},
            {"id": 4},
        ]
        assert env.from_string(NESTED_LIST).render(items=items) == (
            "<ul><li>1<ul><li>2<ul><li>3<ul></ul></li></ul></li></ul></li><li>4<ul></ul></li></ul>"
        )

    def test_empty_data(self, env):
        assert env.from_string(NESTED_LIST).render(items=[]) == "<ul></ul>"

    def test_tuple_data(self, env):
        template = env.from_string('<t-tree on="xs as x">{{ x.n }}<t-children /></t-tree>')
        assert template.render(xs=({"n": 1, "children": ({"n": 2},)},)) == "12"

    def test_custom_field(self, env):
        template = env.from_string(
            '<t-tree on="xs as x">({{ x.n }}<t-children field="items" />)</t-tree>'
        )
        xs = [{"n": 1, "items": [{"n": 2}], "children": [{"n": 99}]}]
        assert template.render(xs=xs) == "(1(2))"

    def test_object_items(self, env):
        tree = [Category("a", [Category("b"), Category("c", [Category("d")])])]
        template = env.from_string('<t-tree on="cats as c">{{ c.name }}<t-children /></t-tree>')
        assert template.render(cats=tree) == "abcd"

    def test_outer_names_visible_in_body(self, env):
        template = env.from_string(
            '<t-tree on="xs as x">{{ prefix }}{{ x.n }}<t-children /></t-tree>'
        )
        assert template.render(xs=[{"n": 1, "children": [{"n": 2}]}], prefix="#") == "#1#2"

    def test_sibling_trees_use_separate_sessions(self, env):
        template = env.from_string(
            '<t-tree on="a as x">{{ x.n }}<t-children /></t-tree>|'
            '<t-tree on="b as y">{{ y.m }}<t-children /></t-tree>'
        )
        a = [{"n": 1, "children": [{"n": 2}]}]
        b = [{"m": "x", "children": [{"m": "y"}]}]
        assert template.render(a=a, b=b) == "12|xy"

    def test_nested_trees(self, env):
        template = env.from_string(
            '<t-tree on="cats as c">{{ c.name }}('
            '<t-tree on="c.tags as t">{{ t.label }}<t-children /></t-tree>'
            ")<t-children /></t-tree>"
        )
        cats = [
            {
                "name": "A",
                "tags": [{"label": "x", "children": [{"label": "y"}]}],
                "children": [{"name": "B", "tags": []}],
            }
        ]
        assert template.render(cats=cats) == "A(xy)B()"

    def test_tree_inside_loop(self, env):
        template = env.from_string(
            '<t-for on="group of groups"><t-tree on="group as x">{{ x.n }}<t-children />'
            "</t-tree>;</t-for>"
        )
        groups = [[{"n": 1, "children": [{"n": 2}]}], [{"n": 3}]]
        assert template.render(groups=groups) == "12;3;"

    def test_tree_across_include(self):
        env = Environment(
            loader=DictLoader(
                {
                    "tree.html": (
                        '<t-tree on="nodes as node"><t-include file="node.html"></t-include>'
                        "</t-tree>"
                    ),
                    "node.html": "[{{ node.name }}<t-children />]",
                }
            ),
            markers=False,
        )
        nodes = [{"name": "a", "children": [{"name": "b"}, {"name": "c"}]}]
        assert env.get_template("tree.html").render(nodes=nodes) == "[a[b][c]]"

    def test_children_not_wrapped_in_markers(self, env_markers):
        template = env_markers.from_string('<t-tree on="xs as x">{{ x.n }}<t-children /></t-tree>')
        assert template.render(xs=[{"n": 1, "children": [{"n": 2}]}]) == (
            "<!-- T-TREE BEGIN -->\n12\n<!-- T-TREE END -->"
        )


class TestTreeErrors:
    """Misplaced or mistyped tree directives."""

    def test_children_outside_tree(self, env):
        with pytest.raises(SequencingError, match="t-children must be inside a t-tree"):
            env.from_string("<ul><t-children /></ul>").render()

    def test_data_must_be_a_list(self, env):
        with pytest.raises(TypeMismatchError, match="must be a list or tuple, got dict"):
            env.from_string(NESTED_LIST).render(items={"id": 1})

    def test_children_field_must_be_a_list(self, env):
        with pytest.raises(TypeMismatchError, match="field 'children' must be a list or tuple"):
            env.from_string(NESTED_LIST).render(items=[{"id": 1, "children": "abc"}])

    def test_invalid_grammar(self, env):
        with pytest.raises(TemplateSyntaxError, match="Invalid t-tree expression"):
            env.from_string('<t-tree on="items">x</t-tree>').render(items=[])
