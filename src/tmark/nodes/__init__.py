"""Node tree produced by the tmark parser."""

from tmark.nodes.base import Fragment, Node, format_attrs, format_self_closing

__all__ = ["Fragment", "Node", "format_attrs", "format_self_closing"]
