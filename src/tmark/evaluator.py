"""Expression evaluation for tmark templates.

The interpreter talks to expressions only through the `Evaluator` protocol,
so applications can plug in their own expression language. The default,
`ExpressionEvaluator`, interprets Python expression syntax by walking the
``ast`` of the expression against the render context. Nothing is compiled
to bytecode and nothing is executed with ``eval()``.

Supported syntax:
    - names, literals (``true``/``false``/``null`` are accepted aliases)
    - property paths ``a.b.c`` (mapping keys first, then attributes)
    - subscripts and slices ``a[0]``, ``a['key']``, ``a[1:3]``
    - arithmetic, comparison, ``and``/``or``/``not``, ``x if c else y``
    - list, tuple, set and dict displays, f-strings
    - calls of callables found in the context or in the builtins whitelist

Missing attributes and keys evaluate to ``None`` so optional data can be
looked up without guards; an undefined top-level name raises `UndefinedError`.
Access to dunder attributes is refused.

Thread-Safety:
    Evaluators hold no per-render state. Parsed expressions are memoized in
    an LRU cache keyed by expression text.
"""

from __future__ import annotations

import ast
import operator
from collections.abc import AsyncIterable, Callable, Iterable, Mapping, Sequence
from functools import lru_cache
from typing import Any, Protocol, runtime_checkable

from tmark.environment.exceptions import (
    EvaluationError,
    ExpressionSyntaxError,
    TemplateError,
    TypeMismatchError,
    UndefinedError,
)


@runtime_checkable
class Evaluator(Protocol):
    """Expression collaborator used by the interpreter.

    Any method may return an awaitable; the interpreter awaits it.
    """

    def evaluate(self, context: Mapping[str, Any], expression: str) -> Any:
        """Return the value of expression in context."""
        ...

    def iterate_of(
        self, context: Mapping[str, Any], var_name: str, source: str
    ) -> Iterable[Any] | AsyncIterable[Any]:
        """Return the items of the sequence named by source (``x of list``)."""
        ...

    def iterate_in(
        self, context: Mapping[str, Any], var_name: str, source: str
    ) -> Iterable[dict[str, Any]]:
        """Return ``{"key", "value"}`` pairs of the mapping named by source."""
        ...

    def evaluate_assignment(self, context: Mapping[str, Any], expression: str) -> Any:
        """Return the value bound by a ``t-with`` alias."""
        ...


SAFE_BUILTINS: dict[str, Any] = {
    "abs": abs,
    "all": all,
    "any": any,
    "bool": bool,
    "dict": dict,
    "enumerate": enumerate,
    "float": float,
    "int": int,
    "len": len,
    "list": list,
    "max": max,
    "min": min,
    "range": range,
    "reversed": reversed,
    "round": round,
    "sorted": sorted,
    "str": str,
    "sum": sum,
    "tuple": tuple,
    "zip": zip,
}

NAME_ALIASES: dict[str, Any] = {
    "true": True,
    "false": False,
    "null": None,
    "True": True,
    "False": False,
    "None": None,
}

_BINARY_OPS: dict[type[ast.operator], Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
    ast.BitAnd: operator.and_,
    ast.BitOr: operator.or_,
    ast.BitXor: operator.xor,
}

_UNARY_OPS: dict[type[ast.unaryop], Callable[[Any], Any]] = {
    ast.Not: operator.not_,
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
    ast.Invert: operator.invert,
}

_COMPARE_OPS: dict[type[ast.cmpop], Callable[[Any, Any], Any]] = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.Is: operator.is_,
    ast.IsNot: operator.is_not,
    ast.In: lambda left, right: left in right,
    ast.NotIn: lambda left, right: left not in right,
}

# O(1) node type → handler method name
_NODE_HANDLERS: dict[type[ast.AST], str] = {
    ast.Constant: "_eval_constant",
    ast.Name: "_eval_name",
    ast.Attribute: "_eval_attribute",
    ast.Subscript: "_eval_subscript",
    ast.Slice: "_eval_slice",
    ast.BinOp: "_eval_binop",
    ast.UnaryOp: "_eval_unaryop",
    ast.BoolOp: "_eval_boolop",
    ast.Compare: "_eval_compare",
    ast.IfExp: "_eval_ifexp",
    ast.List: "_eval_list",
    ast.Tuple: "_eval_tuple",
    ast.Set: "_eval_set",
    ast.Dict: "_eval_dict",
    ast.Call: "_eval_call",
    ast.JoinedStr: "_eval_joinedstr",
    ast.FormattedValue: "_eval_formatted",
}


def _parse(expression: str) -> ast.expr:
    try:
        return ast.parse(expression.strip(), mode="eval").body
    except SyntaxError as e:
        raise ExpressionSyntaxError(
            f"Invalid expression syntax: {e.msg}", expression=expression
        ) from None


def get_member(obj: Any, name: str) -> Any:
    """Resolve one property-path step.

    Mappings: key first so user data like ``items`` is not shadowed by the
    ``dict.items`` method, then attribute. Other objects: attribute first,
    then subscript. Returns ``None`` when nothing matches.
    """
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        try:
            return obj[name]
        except KeyError:
            return getattr(obj, name, None)
    try:
        return getattr(obj, name)
    except AttributeError:
        try:
            return obj[name]
        except (KeyError, IndexError, TypeError):
            return None


class ExpressionEvaluator:
    """Default `Evaluator`: Python expression syntax over ``ast``.

    Args:
        builtins: Extra names available to every expression, merged over
            `SAFE_BUILTINS`. Context names shadow builtins.
        cache_size: Number of parsed expressions to memoize.

    Example:
        >>> ev = ExpressionEvaluator()
        >>> ev.evaluate({"a": {"b": {"c": 3}}}, "a.b.c * 2")
        6
        >>> list(ev.iterate_in({"m": {"x": 1}}, "pair", "m"))
        [{'key': 'x', 'value': 1}]
    """

    __slots__ = ("_builtins", "_parse")

    def __init__(self, builtins: Mapping[str, Any] | None = None, cache_size: int = 1024):
        self._builtins = {**SAFE_BUILTINS, **(builtins or {})}
        self._parse = lru_cache(maxsize=cache_size)(_parse)

    def compile(self, expression: str) -> ast.expr:
        """Parse expression text into an ``ast`` node (memoized)."""
        return self._parse(expression)

    def evaluate(self, context: Mapping[str, Any], expression: str) -> Any:
        node = self.compile(expression)
        try:
            return self._eval(node, context)
        except TemplateError as e:
            if isinstance(e, (EvaluationError, UndefinedError)) and e.expression is None:
                e.expression = expression
                e.args = (e._format_message(),)
            raise
        except Exception as e:
            raise EvaluationError(
                f"{type(e).__name__}: {e}", expression=expression
            ) from e

    def evaluate_assignment(self, context: Mapping[str, Any], expression: str) -> Any:
        return self.evaluate(context, expression)

    def iterate_of(
        self, context: Mapping[str, Any], var_name: str, source: str
    ) -> Iterable[Any] | AsyncIterable[Any]:
        value = self.evaluate(context, source)
        if isinstance(value, AsyncIterable):
            return value
        if value is None or isinstance(value, Mapping) or not isinstance(value, Iterable):
            raise TypeMismatchError(
                f"'{source}' is not a sequence (got {type(value).__name__})",
                expression=source,
                suggestion=f"Use '{var_name} in {source}' to iterate a mapping"
                if isinstance(value, Mapping)
                else None,
            )
        return value

    def iterate_in(
        self, context: Mapping[str, Any], var_name: str, source: str
    ) -> Iterable[dict[str, Any]]:
        value = self.evaluate(context, source)
        if isinstance(value, Mapping):
            return [{"key": key, "value": item} for key, item in value.items()]
        if isinstance(value, Sequence) and not isinstance(value, str):
            return [{"key": index, "value": item} for index, item in enumerate(value)]
        raise TypeMismatchError(
            f"'{source}' is not a mapping (got {type(value).__name__})",
            expression=source,
        )

    # ------------------------------------------------------------------
    # AST walking
    # ------------------------------------------------------------------

    def _eval(self, node: ast.AST, ctx: Mapping[str, Any]) -> Any:
        handler = _NODE_HANDLERS.get(type(node))
        if handler is None:
            raise EvaluationError(f"Unsupported expression syntax: {type(node).__name__}")
        return getattr(self, handler)(node, ctx)

    def _eval_constant(self, node: ast.Constant, ctx: Mapping[str, Any]) -> Any:
        return node.value

    def _eval_name(self, node: ast.Name, ctx: Mapping[str, Any]) -> Any:
        name = node.id
        if name in ctx:
            return ctx[name]
        if name in NAME_ALIASES:
            return NAME_ALIASES[name]
        if name in self._builtins:
            return self._builtins[name]
        raise UndefinedError(name, available_names=frozenset(ctx.keys()))

    def _eval_attribute(self, node: ast.Attribute, ctx: Mapping[str, Any]) -> Any:
        if node.attr.startswith("__"):
            raise EvaluationError(f"Access to '{node.attr}' is not allowed")
        return get_member(self._eval(node.value, ctx), node.attr)

    def _eval_subscript(self, node: ast.Subscript, ctx: Mapping[str, Any]) -> Any:
        obj = self._eval(node.value, ctx)
        key = self._eval(node.slice, ctx)
        if obj is None:
            return None
        try:
            return obj[key]
        except (KeyError, IndexError):
            return None

    def _eval_slice(self, node: ast.Slice, ctx: Mapping[str, Any]) -> slice:
        lower = self._eval(node.lower, ctx) if node.lower else None
        upper = self._eval(node.upper, ctx) if node.upper else None
        step = self._eval(node.step, ctx) if node.step else None
        return slice(lower, upper, step)

    def _eval_binop(self, node: ast.BinOp, ctx: Mapping[str, Any]) -> Any:
        op = _BINARY_OPS.get(type(node.op))
        if op is None:
            raise EvaluationError(f"Unsupported operator: {type(node.op).__name__}")
        return op(self._eval(node.left, ctx), self._eval(node.right, ctx))

    def _eval_unaryop(self, node: ast.UnaryOp, ctx: Mapping[str, Any]) -> Any:
        return _UNARY_OPS[type(node.op)](self._eval(node.operand, ctx))

    def _eval_boolop(self, node: ast.BoolOp, ctx: Mapping[str, Any]) -> Any:
        value: Any = None
        if isinstance(node.op, ast.And):
            for operand in node.values:
                value = self._eval(operand, ctx)
                if not value:
                    return value
            return value
        for operand in node.values:
            value = self._eval(operand, ctx)
            if value:
                return value
        return value

    def _eval_compare(self, node: ast.Compare, ctx: Mapping[str, Any]) -> bool:
        left = self._eval(node.left, ctx)
        for op, comparator in zip(node.ops, node.comparators, strict=True):
            right = self._eval(comparator, ctx)
            if not _COMPARE_OPS[type(op)](left, right):
                return False
            left = right
        return True

    def _eval_ifexp(self, node: ast.IfExp, ctx: Mapping[str, Any]) -> Any:
        if self._eval(node.test, ctx):
            return self._eval(node.body, ctx)
        return self._eval(node.orelse, ctx)

    def _eval_list(self, node: ast.List, ctx: Mapping[str, Any]) -> list[Any]:
        return [self._eval(element, ctx) for element in node.elts]

    def _eval_tuple(self, node: ast.Tuple, ctx: Mapping[str, Any]) -> tuple[Any, ...]:
        return tuple(self._eval(element, ctx) for element in node.elts)

    def _eval_set(self, node: ast.Set, ctx: Mapping[str, Any]) -> set[Any]:
        return {self._eval(element, ctx) for element in node.elts}

    def _eval_dict(self, node: ast.Dict, ctx: Mapping[str, Any]) -> dict[Any, Any]:
        result: dict[Any, Any] = {}
        for key, value in zip(node.keys, node.values, strict=True):
            if key is None:
                result.update(self._eval(value, ctx))
            else:
                result[self._eval(key, ctx)] = self._eval(value, ctx)
        return result

    def _eval_call(self, node: ast.Call, ctx: Mapping[str, Any]) -> Any:
        func = self._eval(node.func, ctx)
        if not callable(func):
            raise EvaluationError(f"'{ast.unparse(node.func)}' is not callable")
        args = []
        for arg in node.args:
            if isinstance(arg, ast.Starred):
                args.extend(self._eval(arg.value, ctx))
            else:
                args.append(self._eval(arg, ctx))
        kwargs: dict[str, Any] = {}
        for keyword in node.keywords:
            if keyword.arg is None:
                kwargs.update(self._eval(keyword.value, ctx))
            else:
                kwargs[keyword.arg] = self._eval(keyword.value, ctx)
        return func(*args, **kwargs)

    def _eval_joinedstr(self, node: ast.JoinedStr, ctx: Mapping[str, Any]) -> str:
        return "".join(str(self._eval(value, ctx)) for value in node.values)

    def _eval_formatted(self, node: ast.FormattedValue, ctx: Mapping[str, Any]) -> str:
        value = self._eval(node.value, ctx)
        if node.conversion == ord("r"):
            value = repr(value)
        elif node.conversion == ord("s"):
            value = str(value)
        spec = self._eval(node.format_spec, ctx) if node.format_spec else ""
        return format(value, spec)
