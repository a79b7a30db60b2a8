"""Pytest configuration and fixtures for tmark tests."""

import pytest

from tmark import DictLoader, DomCache, Environment


@pytest.fixture
def env():
    """Environment without BEGIN/END markers, so outputs compare exactly."""
    return Environment(markers=False)


@pytest.fixture
def env_markers():
    """Environment with the default directive markers."""
    return Environment()


@pytest.fixture
def dom_cache():
    """A private DOM cache, so tests never observe each other's entries."""
    return DomCache()


@pytest.fixture
def env_cached(dom_cache):
    """Environment parsing through a private DOM cache."""
    return Environment(markers=False, cache=True, dom_cache=dom_cache)


@pytest.fixture
def env_with_loader():
    """Environment with a DictLoader holding templates that include each other."""
    loader = DictLoader(
        {
            "pages/index.html": (
                "<main>"
                '<t-include file="../partials/nav.html"></t-include>'
                "<h1>{{ title }}</h1>"
                "</main>"
            ),
            "partials/nav.html": (
                '<nav><t-for on="link of links">'
                '<a href="{{ link.url }}">{{ link.label }}</a>'
                "</t-for></nav>"
            ),
            "partials/broken.html": "<p>{{ missing_name }}</p>",
            "pages/broken.html": (
                '<section>\n<t-include file="../partials/broken.html"></t-include>\n</section>'
            ),
            "loop.html": '<t-include file="loop.html"></t-include>',
        }
    )
    return Environment(loader=loader, markers=False)


def assert_in_order(output: str, *parts: str) -> None:
    """Assert every part occurs in output, in the given document order."""
    position = 0
    for part in parts:
        found = output.find(part, position)
        assert found != -1, f"{part!r} not found after offset {position} in {output!r}"
        position = found + len(part)
