"""Shared constants for tmark."""

from __future__ import annotations

# Elements that never have content or a closing tag.
# Source: WHATWG HTML Living Standard, "void elements"
VOID_ELEMENTS: frozenset[str] = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)

# Literal brace escapes, restored after the whole document is rendered
LITERAL_OPEN = "{!{"
LITERAL_CLOSE = "}!}"

# Replaced with the render duration (seconds) in the final output
TIMESTAMP_MARKER = "@{timestamp}@"

# Emitted by a directive whose branch is not taken
FALSE_MARKER = "<!-- FALSE -->"

# Default field read by t-children
DEFAULT_CHILDREN_FIELD = "children"
