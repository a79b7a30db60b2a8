"""tmark Environment — configuration and template factory.

The Environment ties the collaborators together: a loader for files, an
evaluator for expressions, the DOM cache for parsed trees and the
interpreter that renders them. All configuration is passed as keyword
arguments and fixed for the environment's lifetime.

Example:
    >>> from tmark import Environment, FileSystemLoader
    >>> env = Environment(loader=FileSystemLoader("templates/"), cache=True)
    >>> html = await env.render_async("pages/index.html", {"user": user})

"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from tmark.environment.cache import DEFAULT_DOM_CACHE, DomCache
from tmark.environment.loaders import FileSystemLoader, Loader
from tmark.evaluator import Evaluator, ExpressionEvaluator
from tmark.nodes import Fragment
from tmark.parser import parse
from tmark.template import Interpreter, Template

logger = logging.getLogger(__name__)


class Environment:
    """Central configuration object for tmark.

    Args:
        loader: Source provider for files and includes. Defaults to a
            `FileSystemLoader` without a root (names are paths).
        evaluator: Expression evaluator. Defaults to `ExpressionEvaluator`.
        cache: Consult and fill the DOM cache when parsing. When False every
            parse re-tokenizes its source.
        dom_cache: Cache instance to use; the process-wide
            `DEFAULT_DOM_CACHE` unless one is injected.
        markers: Wrap directive output in ``<!-- T-NAME BEGIN/END -->``
            comments and emit ``<!-- FALSE -->`` for branches not taken.
        self_closing: Treat ``<x />`` and HTML void elements as closed.
        exclusive_conditions: Render at most one branch of an if/elif/else
            chain. When False, each ``t-elif`` and ``t-else`` only looks at its
            direct predecessor, so ``t-if`` and ``t-elif`` can both render.
        max_include_depth: Maximum ``t-include`` nesting.
        globals: Names available to every render, shadowed by the context.
            Inside ``t-for`` the loop metadata is bound as ``loop``, which hides
            a global or context key of that name for the loop body.

    Thread-Safety:
        Immutable after construction. Templates produced by one environment
        can be rendered concurrently from any number of tasks or threads.
    """

    __slots__ = (
        "_interpreter",
        "cache",
        "dom_cache",
        "evaluator",
        "exclusive_conditions",
        "globals",
        "loader",
        "markers",
        "max_include_depth",
        "self_closing",
    )

    def __init__(
        self,
        loader: Loader | None = None,
        evaluator: Evaluator | None = None,
        *,
        cache: bool = False,
        dom_cache: DomCache | None = None,
        markers: bool = True,
        self_closing: bool = True,
        exclusive_conditions: bool = True,
        max_include_depth: int = 50,
        globals: Mapping[str, Any] | None = None,
    ):
        if max_include_depth < 1:
            raise ValueError(f"max_include_depth must be positive, got {max_include_depth}")
        self.loader: Loader = loader if loader is not None else FileSystemLoader()
        self.evaluator: Evaluator = evaluator if evaluator is not None else ExpressionEvaluator()
        self.cache = cache
        self.dom_cache = dom_cache if dom_cache is not None else DEFAULT_DOM_CACHE
        self.markers = markers
        self.self_closing = self_closing
        self.exclusive_conditions = exclusive_conditions
        self.max_include_depth = max_include_depth
        self.globals: Mapping[str, Any] = dict(globals or {})
        self._interpreter = Interpreter(self)

    @property
    def interpreter(self) -> Interpreter:
        return self._interpreter

    def parse(self, source: str) -> Fragment:
        """Parse source into a node forest, through the DOM cache if enabled."""
        if self.cache:
            return self.dom_cache.get_or_parse(source, parse, self_closing=self.self_closing)
        return parse(source, self_closing=self.self_closing)

    def from_string(self, source: str, filename: str | None = None) -> Template:
        """Create a template from source text.

        Args:
            source: Template source
            filename: Optional path the source came from; includes resolve
                relative to it and error frames show it
        """
        return Template(self, self.parse(source), None, filename, source)

    def get_template(self, name: str, parent: str | None = None) -> Template:
        """Load and parse a template through the loader.

        Args:
            name: Template name or path
            parent: Filename of the including template; relative names
                resolve against its directory

        Raises:
            TemplateNotFoundError: If the loader has no such template
            TemplateLoadError: If the template cannot be read
        """
        resolved = self.loader.resolve(name, parent)
        source, filename = self.loader.get_source(resolved)
        return Template(self, self.parse(source), resolved, filename or resolved, source)

    async def get_template_async(self, name: str, parent: str | None = None) -> Template:
        """`get_template` with the file read in a worker thread."""
        resolved = self.loader.resolve(name, parent)
        logger.debug("Loading %s (resolved from %r)", resolved, name)
        source, filename = await asyncio.to_thread(self.loader.get_source, resolved)
        return Template(self, self.parse(source), resolved, filename or resolved, source)

    async def render_async(
        self,
        name: str,
        context: Mapping[str, Any] | None = None,
        /,
        **kwargs: Any,
    ) -> str:
        """Load, parse and render a template in one call."""
        template = await self.get_template_async(name)
        return await template.render_async(context, **kwargs)

    def __repr__(self) -> str:
        return (
            f"<Environment loader={type(self.loader).__name__} "
            f"cache={self.cache} markers={self.markers}>"
        )


__all__ = ["Environment"]
