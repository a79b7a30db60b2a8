"""Expression interpolation: ``{{ expr }}`` spans → output text."""

from __future__ import annotations

import inspect
import json
import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from tmark.environment.exceptions import EvaluationError, TemplateError
from tmark.utils.html import html_escape

if TYPE_CHECKING:
    from tmark.evaluator import Evaluator
    from tmark.template.scope import Scope

EXPRESSION_RE = re.compile(r"\{\{([\s\S]+?)\}\}")


def to_text(value: Any) -> str:
    """String form of an interpolated value, before escaping.

    Mappings, lists and tuples are serialized as JSON so structured data
    can be handed to client-side code; ``None`` renders as nothing.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, default=str, ensure_ascii=False)
    return str(value)


def format_value(value: Any, *, raw_html: bool = False) -> str:
    """Render one value for output, escaping unless raw or already markup."""
    if hasattr(value, "__html__"):
        return str(value.__html__())
    text = to_text(value)
    return text if raw_html else html_escape(text)


async def evaluate(evaluator: Evaluator, scope: Scope, expression: str) -> Any:
    """Evaluate expression in scope, awaiting the result if needed."""
    value = evaluator.evaluate(scope.data, expression.strip())
    if inspect.isawaitable(value):
        value = await value
    return value


async def resolve(text: str, scope: Scope, evaluator: Evaluator) -> str:
    """Replace every ``{{ expr }}`` span of text with its rendered value.

    Each span is evaluated exactly once, in order. Text without an opening
    ``{{`` is returned unchanged. A failing span records how many lines into
    text it starts as the error's ``line_offset``.
    """
    if "{{" not in text:
        return text

    parts: list[str] = []
    position = 0
    for match in EXPRESSION_RE.finditer(text):
        parts.append(text[position : match.start()])
        try:
            value = await evaluate(evaluator, scope, match.group(1))
        except TemplateError as e:
            e.line_offset = text.count("\n", 0, match.start())
            raise
        except Exception as e:
            error = EvaluationError.wrap(e)
            error.line_offset = text.count("\n", 0, match.start())
            raise error from e
        parts.append(format_value(value, raw_html=scope.raw_html))
        position = match.end()
    parts.append(text[position:])
    return "".join(parts)
