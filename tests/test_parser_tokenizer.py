"""Tests for the entity scanner."""

import pytest

from tmark._types import EntityKind
from tmark.parser.tokenizer import classify, iter_entities, next_entity


def kinds(text: str) -> list[EntityKind]:
    return [entity.kind for entity in iter_entities(text)]


def slices(text: str) -> list[str]:
    return [entity.data for entity in iter_entities(text)]


class TestClassify:
    """Classification by leading characters."""

    @pytest.mark.parametrize(
        ("data", "kind"),
        [
            ("<!-- note -->", EntityKind.COMMENT),
            ("<![CDATA[ x ]]>", EntityKind.CDATA),
            ("<!CDATA[[ x ]]>", EntityKind.CDATA),
            ('<?xml version="1.0"?>', EntityKind.PROCESSING_INSTRUCTION),
            ("<!DOCTYPE html>", EntityKind.DOCTYPE),
            ("<!doctype html>", EntityKind.DOCTYPE),
            ("</div>", EntityKind.ELEMENT_CLOSE),
            ("<div>", EntityKind.ELEMENT_OPEN),
            ("<t-for on=x>", EntityKind.ELEMENT_OPEN),
            ("<_x>", EntityKind.ELEMENT_OPEN),
            ("< b", EntityKind.TEXT),
            ("<3", EntityKind.TEXT),
            ("hello", EntityKind.TEXT),
        ],
    )
    def test_classify(self, data, kind):
        assert classify(data) is kind

    def test_element_kinds_report_is_element(self):
        assert EntityKind.ELEMENT_OPEN.is_element
        assert EntityKind.ELEMENT_CLOSE.is_element
        assert not EntityKind.TEXT.is_element


class TestScanning:
    """Entity boundaries."""

    def test_simple_element(self):
        assert slices("<p>hi</p>") == ["<p>", "hi", "</p>"]
        assert kinds("<p>hi</p>") == [
            EntityKind.ELEMENT_OPEN,
            EntityKind.TEXT,
            EntityKind.ELEMENT_CLOSE,
        ]

    def test_comment_may_contain_gt(self):
        assert slices("<!-- a > b -->x") == ["<!-- a > b -->", "x"]

    def test_cdata_may_contain_gt(self):
        assert slices("<![CDATA[ a > b ]]><p>") == ["<![CDATA[ a > b ]]>", "<p>"]

    def test_unterminated_comment_runs_to_end(self):
        assert slices("<!-- open") == ["<!-- open"]

    def test_unterminated_tag_flushed_by_next_lt(self):
        assert slices("<p<b>x") == ["<p", "<b>", "x"]

    def test_stray_lt_is_text(self):
        assert kinds("a < b") == [EntityKind.TEXT, EntityKind.TEXT]

    def test_offsets_cover_input(self):
        text = "<ul>\n  <li>one</li>\n</ul>"
        entities = list(iter_entities(text))
        assert "".join(entity.data for entity in entities) == text
        for entity in entities:
            assert text[entity.offset : entity.offset + len(entity.data)] == entity.data

    def test_next_entity_past_end_raises(self):
        with pytest.raises(IndexError):
            next_entity("<p>", 3)

    def test_empty_input(self):
        assert list(iter_entities("")) == []
