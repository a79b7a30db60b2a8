"""Shared utilities for tmark."""

from tmark.utils.html import Markup, html_escape

__all__ = ["Markup", "html_escape"]
