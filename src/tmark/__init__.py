"""tmark — server-side HTML templates driven by directive tags.

Templates are plain HTML. Control flow is written as reserved elements
(``t-for``, ``t-if``, ``t-tree``, ...) and values as ``{{ expr }}``; the
directive markup never reaches the client.

Quickstart:
    >>> from tmark import Environment
    >>> env = Environment(markers=False)
    >>> template = env.from_string('<p>Hello, {{ name }}!</p>')
    >>> template.render(name="World")
    '<p>Hello, World!</p>'

File-based templates:
    >>> from tmark import Environment, FileSystemLoader
    >>> env = Environment(loader=FileSystemLoader("templates/"), cache=True)
    >>> html = await env.render_async("index.html", {"page": page})

    >>> import tmark
    >>> html = await tmark.render("templates/index.html", {"page": page})

Architecture:
Template Source → Placeholders → Tokenizer → Tree Builder → Node tree
→ Interpreter → HTML

Pipeline stages:
1. **Placeholders**: mask escapes, script/style blocks, expressions and
   quoted attribute values so the tokenizer only sees real markup
2. **Tokenizer**: split masked text into tag, text and comment entities
3. **Tree Builder**: rebuild nesting with an explicit stack
4. **Interpreter**: walk the tree under an immutable scope, dispatching
   directives and rendering siblings concurrently

Parsed trees are cached by a hash of their source when ``cache=True``, so
rendering an unchanged template again skips straight to step 4.

Directives:
- ``<t-for on="item of items">`` / ``<t-for on="pair in mapping">``
- ``<t-if on="expr">``, ``<t-elif on="expr">``, ``<t-else>``
- ``<t-with alias="expr">``
- ``<t-tree on="data as item">`` with ``<t-children field="children" />``
- ``<t-include file="relative/path.html">``
- ``<t-html>`` (unescaped output for the subtree)

Strict Mode:
Undefined top-level names raise `UndefinedError`. Missing attributes and
keys of existing values evaluate to ``None`` and render as nothing:

    >>> env.from_string("{{ missing }}").render()  # Raises UndefinedError
    >>> env.from_string("{{ user.nickname }}").render(user={})
    ''

"""

from collections.abc import Mapping
from typing import Any

from tmark.environment import (
    DEFAULT_DOM_CACHE,
    DictLoader,
    DomCache,
    Environment,
    ErrorCode,
    EvaluationError,
    ExpressionSyntaxError,
    FileSystemLoader,
    IncludeDepthError,
    Loader,
    MissingAttributeError,
    SequencingError,
    TemplateError,
    TemplateLoadError,
    TemplateNotFoundError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    TypeMismatchError,
    UndefinedError,
)
from tmark.evaluator import Evaluator, ExpressionEvaluator
from tmark.nodes import Fragment, Node
from tmark.parser import parse
from tmark.render_context import RenderContext, get_render_context
from tmark.template import LoopContext, Markup, Scope, Template
from tmark.utils.html import html_escape

__version__ = "0.1.0"


async def render(
    filename: str,
    context: Mapping[str, Any] | None = None,
    *,
    cache: bool = False,
) -> str:
    """Render a template file with a default environment.

    Args:
        filename: Path of the template, absolute or relative to the working
            directory; its includes resolve relative to it
        context: Data visible to expressions
        cache: Reuse parsed trees from the process-wide DOM cache

    Example:
        >>> html = await tmark.render("views/index.html", {"title": "Home"}, cache=True)
    """
    env = Environment(loader=FileSystemLoader(), cache=cache)
    return await env.render_async(filename, context)


__all__ = [
    "DEFAULT_DOM_CACHE",
    "DictLoader",
    "DomCache",
    "Environment",
    "ErrorCode",
    "EvaluationError",
    "Evaluator",
    "ExpressionEvaluator",
    "ExpressionSyntaxError",
    "FileSystemLoader",
    "Fragment",
    "IncludeDepthError",
    "Loader",
    "LoopContext",
    "Markup",
    "MissingAttributeError",
    "Node",
    "RenderContext",
    "Scope",
    "SequencingError",
    "Template",
    "TemplateError",
    "TemplateLoadError",
    "TemplateNotFoundError",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "TypeMismatchError",
    "UndefinedError",
    "__version__",
    "get_render_context",
    "html_escape",
    "parse",
    "render",
]
