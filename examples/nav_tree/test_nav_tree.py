"""Tests for the nav_tree example."""

import re


def links(html: str) -> list[str]:
    return re.findall(r">([^<>]+)</a>", html)


class TestNavTreeApp:
    """Verify the recursive site map."""

    def test_every_page_rendered_in_document_order(self, example_app) -> None:
        assert links(example_app.output) == [
            "Home",
            "Docs",
            "Install",
            "Directives",
            "t-tree",
            "Blog",
        ]

    def test_nesting_depth(self, example_app) -> None:
        assert example_app.output.count("<ul>") == 3

    def test_current_page_marked(self, example_app) -> None:
        assert '<a href="/docs/directives/tree/" class="current">t-tree</a>' in example_app.output
        assert example_app.output.count('class="current"') == 1

    def test_leaf_pages_have_no_sublist(self, example_app) -> None:
        home = example_app.output.split("Home</a>", 1)[1].split("</li>", 1)[0]
        assert "<ul>" not in home
