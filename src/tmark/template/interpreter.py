"""Directive interpreter: node tree → HTML.

The interpreter walks a parsed tree under an immutable `Scope`. Plain
markup is re-emitted with its expressions resolved; reserved tags are
dispatched to directive handlers:

- ``t-for``      iterate a sequence (``x of items``) or mapping (``x in map``);
                 the body also sees ``loop``, which hides a context key of that name
- ``t-if``       conditional, with ``t-elif`` / ``t-else`` followers
- ``t-with``     bind aliases for the subtree
- ``t-tree``     render a hierarchy with one body (``data as item``)
- ``t-children`` recurse into the current tree item's nested collection
- ``t-include``  render another template file in place
- ``t-html``     disable output escaping for the subtree

Concurrency:
    Every sibling run renders as concurrent tasks joined in document order,
    and so do the items of a loop or tree level. When one task fails, the
    rest of its run is cancelled and the error propagates.

Errors:
    An exception leaving a node is annotated with that node's location;
    anything that is not a `TemplateError` is first wrapped in an
    `EvaluationError`. Each enclosing node adds a frame, so the final
    message is a breadcrumb from the failing node outwards.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import re
from collections.abc import AsyncIterable, Awaitable, Iterable, Sequence
from typing import TYPE_CHECKING, Any

from tmark._types import Directive, NodeType
from tmark.environment.exceptions import (
    EvaluationError,
    MissingAttributeError,
    NodeFrame,
    TemplateError,
    TemplateSyntaxError,
    TypeMismatchError,
    make_snippet,
)
from tmark.evaluator import get_member
from tmark.nodes import Node, format_attrs, format_self_closing
from tmark.render_context import (
    get_render_context_required,
    reset_render_context,
    set_render_context,
)
from tmark.template.conditions import ConditionChain
from tmark.template.loop_context import LoopContext
from tmark.template.resolver import evaluate, resolve
from tmark.template.scope import Scope
from tmark.utils.constants import DEFAULT_CHILDREN_FIELD, FALSE_MARKER

if TYPE_CHECKING:
    from tmark.environment.core import Environment
    from tmark.evaluator import Evaluator

logger = logging.getLogger(__name__)

_FOR_RE = re.compile(r"^\s*(\w+)\s+(of|in)\s+(.+?)\s*$", re.DOTALL)
_TREE_RE = re.compile(r"^\s*(.+?)\s+as\s+(\w+)\s*$", re.DOTALL)

# O(1) directive tag → handler method name
_DIRECTIVE_HANDLERS: dict[str, str] = {
    Directive.FOR.value: "_render_for",
    Directive.IF.value: "_render_if",
    Directive.ELIF.value: "_render_elif",
    Directive.ELSE.value: "_render_else",
    Directive.WITH.value: "_render_with",
    Directive.TREE.value: "_render_tree",
    Directive.CHILDREN.value: "_render_children",
    Directive.INCLUDE.value: "_render_include",
    Directive.HTML.value: "_render_html",
}


async def gather_ordered(awaitables: Iterable[Awaitable[str]]) -> list[str]:
    """Run awaitables concurrently and return their results in input order.

    On the first failure the remaining tasks are cancelled and awaited
    before the error is re-raised, so no task outlives the render.
    """
    tasks = [asyncio.ensure_future(awaitable) for awaitable in awaitables]
    if not tasks:
        return []
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def _resolved(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


async def _materialize(items: Any) -> list[Any]:
    if isinstance(items, AsyncIterable):
        return [item async for item in items]
    return list(items)


def _require(node: Node, attribute: str) -> str:
    value = node.attrs.get(attribute)
    if value is None or not value.strip():
        raise MissingAttributeError(node.tag, attribute)
    return value


class Interpreter:
    """Render parsed trees for one `Environment`.

    Holds no per-render state: the if/elif/else chain lives in a
    `ConditionChain` per sibling run, and tree sessions and the current file
    live in the `RenderContext`. One interpreter serves any number of
    concurrent renders.
    """

    __slots__ = ("_environment", "_evaluator", "_exclusive", "_markers")

    def __init__(self, environment: Environment):
        self._environment = environment
        self._evaluator: Evaluator = environment.evaluator
        self._markers = environment.markers
        self._exclusive = environment.exclusive_conditions

    async def render(self, nodes: Sequence[Node], scope: Scope) -> str:
        """Render a sibling run concurrently, joined in document order."""
        chain = ConditionChain()
        parts = await gather_ordered(self.render_node(node, scope, chain) for node in nodes)
        return "".join(parts)

    async def render_node(self, node: Node, scope: Scope, chain: ConditionChain) -> str:
        """Render one node, annotating any error with its location."""
        try:
            if node.is_element:
                return await self._render_element(node, scope, chain)
            if node.kind is NodeType.DOCTYPE:
                return node.raw
            return await resolve(node.raw, scope, self._evaluator)
        except TemplateError as e:
            self._annotate(e, node)
            raise
        except Exception as e:
            error = EvaluationError.wrap(e)
            self._annotate(error, node)
            raise error from e

    def _annotate(self, error: TemplateError, node: Node) -> None:
        ctx = get_render_context_required()
        lineno = node.lineno
        if not error.frames and not node.is_element:
            lineno += error.line_offset
        error.add_frame(NodeFrame(ctx.filename, lineno, make_snippet(node.raw)))

    async def _render_element(self, node: Node, scope: Scope, chain: ConditionChain) -> str:
        tag = node.tag.lower()
        handler_name = _DIRECTIVE_HANDLERS.get(tag)
        if handler_name is None:
            return await self._render_markup(node, scope)

        output = await getattr(self, handler_name)(node, scope, chain)
        if not self._markers or tag == Directive.CHILDREN.value:
            return output
        marker = Directive(tag).marker
        return f"<!-- {marker} BEGIN -->\n{output}\n<!-- {marker} END -->"

    def _false_branch(self) -> str:
        return FALSE_MARKER if self._markers else ""

    # ------------------------------------------------------------------
    # Plain markup
    # ------------------------------------------------------------------

    async def _render_markup(self, node: Node, scope: Scope) -> str:
        attrs: dict[str, str | None] = {}
        for raw_name, raw_value in node.attrs.items():
            name = await resolve(raw_name, scope, self._evaluator)
            attrs[name] = (
                None if raw_value is None else await resolve(raw_value, scope, self._evaluator)
            )
        attrs_string = format_attrs(attrs)

        if node.self_closing:
            return format_self_closing(node.tag, attrs_string, node.raw)
        inner = await self.render(node.children, scope)
        close_tag = f"</{node.tag}>" if node.closed else ""
        return f"<{node.tag}{attrs_string}>{inner}{close_tag}"

    # ------------------------------------------------------------------
    # Directives
    # ------------------------------------------------------------------

    async def _render_for(self, node: Node, scope: Scope, chain: ConditionChain) -> str:
        spec = _require(node, "on")
        match = _FOR_RE.match(spec)
        if match is None:
            raise TemplateSyntaxError(
                f'Invalid t-for expression "{spec}"',
                suggestion='Use "<name> of <list>" or "<name> in <mapping>"',
            )
        name, mode, source = match.groups()
        if mode == "of":
            items = self._evaluator.iterate_of(scope.data, name, source)
        else:
            items = self._evaluator.iterate_in(scope.data, name, source)
        items = await _materialize(await _resolved(items))

        return "".join(
            await gather_ordered(
                self.render(
                    node.children,
                    scope.bind({name: item, "loop": LoopContext(items, index)}),
                )
                for index, item in enumerate(items)
            )
        )

    async def _render_if(self, node: Node, scope: Scope, chain: ConditionChain) -> str:
        condition = await evaluate(self._evaluator, scope, _require(node, "on"))
        chain.propagate(node, not condition)
        if condition:
            return await self.render(node.children, scope)
        return self._false_branch()

    async def _render_elif(self, node: Node, scope: Scope, chain: ConditionChain) -> str:
        expression = _require(node, "on")
        eligible = await chain.wait(node)
        if self._exclusive and not eligible:
            chain.propagate(node, False)
            return self._false_branch()
        condition = await evaluate(self._evaluator, scope, expression)
        chain.propagate(node, not condition)
        if condition:
            return await self.render(node.children, scope)
        return self._false_branch()

    async def _render_else(self, node: Node, scope: Scope, chain: ConditionChain) -> str:
        if await chain.wait(node):
            return await self.render(node.children, scope)
        return self._false_branch()

    async def _render_with(self, node: Node, scope: Scope, chain: ConditionChain) -> str:
        if not node.attrs:
            raise MissingAttributeError(node.tag)
        bindings: dict[str, Any] = {}
        for alias, expression in node.attrs.items():
            if expression is None or not expression.strip():
                raise TemplateSyntaxError(
                    f'Alias "{alias}" of t-with has no expression',
                    suggestion=f'Write {alias}="<expression>"',
                )
            value = self._evaluator.evaluate_assignment(scope.data, expression.strip())
            bindings[alias] = await _resolved(value)
        return await self.render(node.children, scope.bind(bindings))

    async def _render_tree(self, node: Node, scope: Scope, chain: ConditionChain) -> str:
        spec = _require(node, "on")
        match = _TREE_RE.match(spec)
        if match is None:
            raise TemplateSyntaxError(
                f'Invalid t-tree expression "{spec}"',
                suggestion='Use "<data> as <item>"',
            )
        source, var_name = match.groups()
        items = await evaluate(self._evaluator, scope, source)
        if not isinstance(items, (list, tuple)):
            raise TypeMismatchError(
                f"t-tree data must be a list or tuple, got {type(items).__name__}",
                expression=source,
            )

        ctx = get_render_context_required()
        with ctx.sessions.open(tuple(node.children), var_name) as session:
            return await self._render_tree_level(
                session.body, session.var_name, items, scope.with_session(session.id)
            )

    async def _render_children(self, node: Node, scope: Scope, chain: ConditionChain) -> str:
        session = get_render_context_required().sessions.get(scope.tree_session)
        field = node.attrs.get("field") or DEFAULT_CHILDREN_FIELD
        nested = get_member(scope.data.get(session.var_name), field)
        if not nested:
            return ""
        if not isinstance(nested, (list, tuple)):
            raise TypeMismatchError(
                f"t-children field '{field}' must be a list or tuple, got {type(nested).__name__}",
            )
        return await self._render_tree_level(session.body, session.var_name, nested, scope)

    async def _render_tree_level(
        self, body: Sequence[Node], var_name: str, items: Sequence[Any], scope: Scope
    ) -> str:
        return "".join(
            await gather_ordered(self.render(body, scope.bind({var_name: item})) for item in items)
        )

    async def _render_include(self, node: Node, scope: Scope, chain: ConditionChain) -> str:
        reference = _require(node, "file")
        ctx = get_render_context_required()
        ctx.check_include_depth(reference)

        template = await self._environment.get_template_async(reference, parent=ctx.filename)
        logger.debug(
            "Including %s from %s (depth %d)",
            template.filename or template.name,
            ctx.filename or "<string>",
            ctx.include_depth + 1,
        )
        token = set_render_context(ctx.child_context(template.filename, template.source))
        try:
            return await self.render(template.fragment.children, scope)
        finally:
            reset_render_context(token)

    async def _render_html(self, node: Node, scope: Scope, chain: ConditionChain) -> str:
        return await self.render(node.children, scope.with_raw_html())
