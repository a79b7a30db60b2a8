"""tmark Template — parsed template object ready for rendering.

The Template class wraps a parsed `Fragment` and provides the
``render_async()`` / ``render()`` API. Templates are immutable and safe to
render concurrently: the fragment may be shared through the DOM cache, and
all per-render state lives in the RenderContext and the scopes.

Architecture:
    ```
    Template
    ├── _env: Environment          # Interpreter, evaluator, loader
    ├── _fragment: Fragment        # Parsed forest (possibly cached)
    └── _name, _filename, _source  # For includes and error messages
    ```

Render Pipeline:
    1. Build the root scope: keyword args over the context mapping over
       environment globals
    2. Walk the fragment with the interpreter inside a fresh RenderContext
    3. Unmask literal braces: ``{!{`` → ``{{`` and ``}!}`` → ``}}``
    4. Replace every ``@{timestamp}@`` with the render duration

"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from time import perf_counter
from typing import TYPE_CHECKING, Any

from tmark.render_context import async_render_context
from tmark.template.scope import Scope
from tmark.utils.constants import LITERAL_CLOSE, LITERAL_OPEN, TIMESTAMP_MARKER

if TYPE_CHECKING:
    from tmark.environment.core import Environment
    from tmark.nodes import Fragment

logger = logging.getLogger(__name__)


def finalize(output: str, elapsed: float) -> str:
    """Apply the whole-document passes that follow rendering."""
    output = output.replace(LITERAL_OPEN, "{{").replace(LITERAL_CLOSE, "}}")
    if TIMESTAMP_MARKER in output:
        output = output.replace(TIMESTAMP_MARKER, f"{elapsed:.6f}")
    return output


class Template:
    """Parsed template ready for rendering.

    Attributes:
        name: Loader name (``None`` for string templates)
        filename: Source file path, used to resolve includes and in errors
        source: Template source text
        fragment: Parsed node forest

    Example:
            >>> from tmark import Environment
            >>> env = Environment(markers=False)
            >>> t = env.from_string('<t-for on="n of nums">{{ n }} </t-for>')
            >>> t.render(nums=[1, 2, 3])
            '1 2 3 '

            >>> await t.render_async({"nums": [4]})
            '4 '

    """

    __slots__ = ("_env", "_filename", "_fragment", "_name", "_source")

    def __init__(
        self,
        env: Environment,
        fragment: Fragment,
        name: str | None,
        filename: str | None,
        source: str | None = None,
    ):
        self._env = env
        self._fragment = fragment
        self._name = name
        self._filename = filename
        self._source = source

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def filename(self) -> str | None:
        return self._filename

    @property
    def source(self) -> str | None:
        return self._source

    @property
    def fragment(self) -> Fragment:
        return self._fragment

    def _root_scope(self, context: Mapping[str, Any] | None, kwargs: dict[str, Any]) -> Scope:
        if context is None:
            context = {}
        elif not isinstance(context, Mapping):
            raise TypeError(
                f"render context must be a mapping, got {type(context).__name__}"
            )
        return Scope.from_context(kwargs, context, self._env.globals)

    async def render_async(self, context: Mapping[str, Any] | None = None, /, **kwargs: Any) -> str:
        """Render the template with the given context.

        Args:
            context: Mapping of context variables
            **kwargs: Context variables as keyword arguments (take precedence)

        Returns:
            Rendered HTML

        Raises:
            TypeError: If context is not a mapping
            TemplateError: If any node fails to render; no partial output
                is returned
        """
        scope = self._root_scope(context, kwargs)
        start = perf_counter()
        async with async_render_context(
            filename=self._filename,
            source=self._source,
            max_include_depth=self._env.max_include_depth,
        ):
            output = await self._env.interpreter.render(self._fragment.children, scope)
        elapsed = perf_counter() - start
        logger.debug(
            "Rendered %s in %.3fms", self._filename or "<string>", elapsed * 1000
        )
        return finalize(output, elapsed)

    def render(self, context: Mapping[str, Any] | None = None, /, **kwargs: Any) -> str:
        """Synchronous wrapper around `render_async`.

        Runs its own event loop, so it must not be called from a coroutine;
        use ``await template.render_async(...)`` there.
        """
        return asyncio.run(self.render_async(context, **kwargs))

    def __repr__(self) -> str:
        return f"<Template {self._name or self._filename or '(inline)'}>"
