"""Tests for placeholder protection and restoration."""

import pytest

from tmark.parser.placeholders import (
    TOKEN_CLOSE,
    TOKEN_OPEN,
    PlaceholderTable,
    protect,
    unquote,
)


class TestPlaceholderTable:
    """Token allocation and restoration."""

    def test_tokens_increase_monotonically(self):
        table = PlaceholderTable()
        assert table.add("a") == f"{TOKEN_OPEN}1{TOKEN_CLOSE}"
        assert table.add("b") == f"{TOKEN_OPEN}2{TOKEN_CLOSE}"
        assert len(table) == 2

    def test_get_and_contains(self):
        table = PlaceholderTable()
        token = table.add("original")
        assert token in table
        assert table.get(token) == "original"
        assert table.get("missing") is None

    def test_restore_is_non_destructive(self):
        """Restoring leaves the table intact, so a token can be restored twice."""
        table = PlaceholderTable()
        token = table.add("x")
        assert table.restore(token) == "x"
        assert table.restore(token) == "x"
        assert len(table) == 1

    def test_restore_nested_tokens(self):
        table = PlaceholderTable()
        inner = table.add("{{ title }}")
        outer = table.add(f'"{inner}"')
        assert table.restore(f"<a title={outer}>") == '<a title="{{ title }}">'

    def test_unknown_token_left_untouched(self):
        table = PlaceholderTable()
        text = f"{TOKEN_OPEN}999{TOKEN_CLOSE}"
        assert table.restore(text) == text

    def test_text_without_tokens_returned_as_is(self):
        table = PlaceholderTable()
        assert table.restore("plain <b>text</b>") == "plain <b>text</b>"


class TestProtect:
    """Masking stages."""

    def test_expression_hidden_from_scanner(self):
        table = PlaceholderTable()
        masked = protect("<p>{{ a > b }}</p>", table)
        assert "{{" not in masked
        assert masked.count(">") == 2
        assert table.restore(masked) == "<p>{{ a > b }}</p>"

    def test_script_and_style_blocks_masked_whole(self):
        table = PlaceholderTable()
        source = "<script>if (a < b) { x(); }</script><style>p > a { }</style><p>x</p>"
        masked = protect(source, table)
        assert "<script" not in masked
        assert "<style" not in masked
        assert masked.endswith("<p>x</p>")
        assert table.restore(masked) == source

    def test_link_and_meta_masked(self):
        table = PlaceholderTable()
        masked = protect('<link rel="stylesheet" href="a.css"><meta charset="utf-8">', table)
        assert "<link" not in masked
        assert "<meta" not in masked

    def test_escaped_characters_masked(self):
        table = PlaceholderTable()
        masked = protect("a \\< b", table)
        assert "<" not in masked
        assert table.restore(masked) == "a \\< b"

    def test_attribute_value_keeps_equals_sign(self):
        table = PlaceholderTable()
        masked = protect('<a href="x>y">k</a>', table)
        assert masked.startswith("<a href=" + TOKEN_OPEN)
        assert "x>y" not in masked

    @pytest.mark.parametrize(
        "source",
        [
            '<a href="x">',
            "<a href='x'>",
            '<a href = "spaced">',
            '<a title="it\'s">',
            "<a title='say \"hi\"'>",
            '<a href="/u/{{ user.id }}">',
        ],
    )
    def test_attribute_values_restore_exactly(self, source):
        table = PlaceholderTable()
        assert table.restore(protect(source, table)) == source


class TestLiteralDelimiters:
    """Private-use delimiter characters already in the source stay literal."""

    LOOKALIKE = f"{TOKEN_OPEN}1{TOKEN_CLOSE}"

    def test_token_lookalike_not_substituted(self):
        table = PlaceholderTable()
        source = f'<p title="hello">{self.LOOKALIKE}</p>'
        masked = protect(source, table)
        assert table.restore(masked) == source

    def test_lone_delimiters_masked(self):
        table = PlaceholderTable()
        masked = protect(f"a{TOKEN_OPEN}b{TOKEN_CLOSE}c", table)
        assert table.get(masked[1:4]) == TOKEN_OPEN
        assert table.restore(masked) == f"a{TOKEN_OPEN}b{TOKEN_CLOSE}c"

    @pytest.mark.parametrize(
        "source",
        [
            f"\\{TOKEN_OPEN}",
            f'<i class="icon">{TOKEN_OPEN}</i>',
            f'<a title="{TOKEN_OPEN}2{TOKEN_CLOSE}">{{{{ x }}}}</a>',
            f"<script>var s = '{TOKEN_CLOSE}';</script>",
        ],
    )
    def test_round_trip(self, source):
        table = PlaceholderTable()
        assert table.restore(protect(source, table)) == source


class TestUnquote:
    """Attribute value unquoting."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ('"x"', "x"),
            ("'x'", "x"),
            ('  "spaced"', "spaced"),
            ("bare", "bare"),
            ('"', '"'),
            ("'mismatched\"", "'mismatched\""),
            ('""', ""),
        ],
    )
    def test_unquote(self, value, expected):
        assert unquote(value) == expected
