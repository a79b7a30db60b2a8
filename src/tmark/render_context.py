"""tmark RenderContext — per-render state isolated from user context.

The interpreter needs a few pieces of state that belong to one render
invocation rather than to the user's data: the file being rendered (for
relative includes and error frames), the include depth, and the store of
active ``t-tree`` sessions. Keeping them in a ContextVar means the user's
context mapping never sees internal keys.

asyncio copies the current context into every task it creates, so the
sibling and loop-item tasks spawned by a render all see the same
RenderContext. An include swaps in a child context inside its own task,
which leaves the including template's tasks untouched.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tmark.template.sessions import TreeSessionStore


def _new_session_store() -> TreeSessionStore:
    from tmark.template.sessions import TreeSessionStore

    return TreeSessionStore()


@dataclass
class RenderContext:
    """Per-render state isolated from user context.

    Attributes:
        filename: Current template file, ``None`` for string templates
        source: Current template source, for error snippets
        include_depth: Current ``t-include`` depth (recursion protection)
        max_include_depth: Maximum allowed include depth
        template_stack: Chain of including files, outermost first
        sessions: Active ``t-tree`` sessions, shared with includes
    """

    filename: str | None = None
    source: str | None = None

    # 50 is deep enough for any real include hierarchy while catching
    # circular includes early.
    include_depth: int = 0
    max_include_depth: int = 50

    template_stack: list[str] = field(default_factory=list)

    sessions: TreeSessionStore = field(default_factory=_new_session_store)

    def check_include_depth(self, template_name: str) -> None:
        """Raise IncludeDepthError if another include would exceed the limit."""
        if self.include_depth >= self.max_include_depth:
            from tmark.environment.exceptions import IncludeDepthError

            raise IncludeDepthError(
                f"Maximum include depth exceeded ({self.max_include_depth}) "
                f"when including '{template_name}'",
                values={"chain": " → ".join([*self.template_stack, template_name])},
                suggestion="Check for circular includes: A → B → A",
            )

    def child_context(self, filename: str | None, source: str | None = None) -> RenderContext:
        """Create the context for an included file.

        Shares the session store with the parent (sessions are render-wide)
        and records the current file on the template stack.
        """
        new_stack = self.template_stack.copy()
        if self.filename:
            new_stack.append(self.filename)
        return RenderContext(
            filename=filename,
            source=source,
            include_depth=self.include_depth + 1,
            max_include_depth=self.max_include_depth,
            template_stack=new_stack,
            sessions=self.sessions,
        )


_render_context: ContextVar[RenderContext | None] = ContextVar(
    "tmark_render_context",
    default=None,
)


def get_render_context() -> RenderContext | None:
    """Get current render context (None if not in render)."""
    return _render_context.get()


def get_render_context_required() -> RenderContext:
    """Get current render context, raise if not in render.

    Raises:
        RuntimeError: If not in a render context
    """
    ctx = _render_context.get()
    if ctx is None:
        raise RuntimeError("Not in a render context")
    return ctx


@asynccontextmanager
async def async_render_context(
    filename: str | None = None,
    source: str | None = None,
    max_include_depth: int = 50,
) -> AsyncIterator[RenderContext]:
    """Async context manager for render-scoped state.

    Creates a new RenderContext, sets it as current for the duration of the
    block and restores the previous context on exit. Any tree session still
    registered when the block exits is discarded.

    Example:
        async with async_render_context(filename="page.html") as ctx:
            html = await interpreter.render(fragment, scope)
    """
    ctx = RenderContext(
        filename=filename,
        source=source,
        max_include_depth=max_include_depth,
    )
    token: Token[RenderContext | None] = _render_context.set(ctx)
    try:
        yield ctx
    finally:
        ctx.sessions.clear()
        _render_context.reset(token)


def set_render_context(ctx: RenderContext) -> Token[RenderContext | None]:
    """Set a RenderContext and return the reset token.

    Low-level function used by ``t-include``, which swaps contexts inside a
    running render.
    """
    return _render_context.set(ctx)


def reset_render_context(token: Token[RenderContext | None]) -> None:
    """Reset render context using a token from set_render_context."""
    _render_context.reset(token)
