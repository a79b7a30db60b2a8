"""Exceptions for the tmark template system.

Exception Hierarchy:
TemplateError (base)
├── TemplateSyntaxError       # Malformed directive attribute (t-for grammar, ...)
├── TemplateNotFoundError     # Template file missing
├── TemplateLoadError         # Template file unreadable
└── TemplateRuntimeError      # Render-time failure
    ├── MissingAttributeError # Directive lacks a required attribute
    ├── SequencingError       # t-elif / t-else / t-children out of place
    ├── TypeMismatchError     # Value of the wrong shape (t-tree source, ...)
    ├── EvaluationError       # Expression evaluation failed
    │   └── ExpressionSyntaxError
    │                         # Expression is not valid syntax
    ├── UndefinedError        # Undefined name in an expression
    └── IncludeDepthError     # t-include recursion limit reached

Node Annotation:
Any error raised while rendering a node is annotated with that node's
location on its way out. Each enclosing node adds one more frame, innermost
first, so the message reads as a breadcrumb from the failing leaf up to the
outermost directive:

    ```
    t-elif must follow t-if or t-elif
    pages/index.html:4
        4: <t-elif on="ready">
           ^^^^^^^^^^^^^^^^^^
        3:  <section>
        1:   <main>
    ```

"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from tmark.environment import terminal

_SNIPPET_LIMIT = 80


class ErrorCode(Enum):
    """Searchable error codes for tmark template errors.

    Format: T-{CATEGORY}-{NUMBER}
    Categories: PAR (directive syntax), RUN (runtime), TPL (template loading)
    """

    # Directive syntax errors (T-PAR-xxx)
    INVALID_DIRECTIVE = "T-PAR-001"
    INVALID_EXPRESSION = "T-PAR-002"

    # Runtime errors (T-RUN-xxx)
    MISSING_ATTRIBUTE = "T-RUN-001"
    SEQUENCING = "T-RUN-002"
    TYPE_MISMATCH = "T-RUN-003"
    EVALUATION_FAILURE = "T-RUN-004"
    UNDEFINED_VARIABLE = "T-RUN-005"
    INCLUDE_DEPTH = "T-RUN-006"
    RUNTIME_ERROR = "T-RUN-007"

    # Template loading errors (T-TPL-xxx)
    TEMPLATE_NOT_FOUND = "T-TPL-001"
    TEMPLATE_LOAD = "T-TPL-002"

    @property
    def category(self) -> str:
        """Error category (e.g., 'runtime', 'syntax', 'template')."""
        prefix = self.value.split("-")[1]
        return {
            "PAR": "syntax",
            "RUN": "runtime",
            "TPL": "template",
        }.get(prefix, "unknown")


def make_snippet(raw: str) -> str:
    """One-line, length-limited form of a node's source text."""
    text = " ".join(raw.split())
    if len(text) > _SNIPPET_LIMIT:
        text = text[: _SNIPPET_LIMIT - 3] + "..."
    return text


@dataclass(frozen=True, slots=True)
class NodeFrame:
    """Location of one node an error propagated through."""

    filename: str | None
    lineno: int
    snippet: str

    @property
    def location(self) -> str:
        return f"{self.filename or '<template>'}:{self.lineno}"


class TemplateError(Exception):
    """Base exception for all tmark template errors.

    All template-related exceptions inherit from this class, enabling
    broad exception handling:

        >>> try:
        ...     await template.render_async(context)
        ... except TemplateError as e:
        ...     log.error("Template error: %s", e)

    Attributes:
        message: Error description without location frames
        code: Optional ErrorCode for searchable error identification
        suggestion: Optional actionable hint
        frames: Node frames added while the error propagated, innermost first
        line_offset: Lines between the start of the innermost node and the
            failing ``{{ }}`` span, for text nodes that span several lines
    """

    code: ErrorCode | None = None

    def __init__(self, message: str, *, suggestion: str | None = None):
        self.message = message
        self.suggestion = suggestion
        self.frames: list[NodeFrame] = []
        self.line_offset = 0
        super().__init__(self._format_message())

    def add_frame(self, frame: NodeFrame) -> None:
        """Annotate the error with one more enclosing node."""
        self.frames.append(frame)
        self.args = (self._format_message(),)

    @property
    def lineno(self) -> int | None:
        """Line of the innermost annotated node."""
        return self.frames[0].lineno if self.frames else None

    @property
    def filename(self) -> str | None:
        return self.frames[0].filename if self.frames else None

    def _format_message(self) -> str:
        parts = [self.message]
        for level, frame in enumerate(self.frames):
            if level == 0:
                padded = f"{frame.lineno:>5}"
                parts.append(terminal.location(frame.location))
                parts.append(f"{terminal.line_number(padded)}: {frame.snippet}")
                caret = "^" * max(len(frame.snippet), 1)
                parts.append(" " * (len(padded) + 2) + terminal.error_line(caret))
            else:
                number = terminal.line_number(f"{frame.lineno:>5}")
                parts.append(f"{number}:{' ' * level} {frame.snippet}")
        if self.suggestion:
            parts.append(f"  {terminal.hint('Hint:')} {self.suggestion}")
        return "\n".join(parts)

    def format_compact(self) -> str:
        """Format error as a structured, human-readable summary.

        Format::

            T-RUN-002: t-else must follow t-if or t-elif
              --> pages/index.html:12
              Hint: Place t-else directly after a t-if or t-elif element
        """
        parts = [terminal.format_error_header(self.code.value if self.code else None, self.message)]
        if self.frames:
            parts.append(f"  --> {terminal.location(self.frames[0].location)}")
        if self.suggestion:
            parts.append(f"  {terminal.hint('Hint:')} {self.suggestion}")
        return "\n".join(parts)


class TemplateSyntaxError(TemplateError):
    """A directive attribute does not follow its grammar.

    Example:
        ``<t-for on="item items">`` (missing ``of`` / ``in``)
    """

    code: ErrorCode | None = ErrorCode.INVALID_DIRECTIVE


class TemplateNotFoundError(TemplateError):
    """Template not found by the loader.

    Raised for the top-level template and for every ``t-include``.
    """

    code: ErrorCode | None = ErrorCode.TEMPLATE_NOT_FOUND


class TemplateLoadError(TemplateError):
    """Template exists but could not be read (permissions, encoding)."""

    code: ErrorCode | None = ErrorCode.TEMPLATE_LOAD


class TemplateRuntimeError(TemplateError):
    """Render-time error with optional expression context.

    Attributes:
        expression: Template expression involved, when there is one
        values: Names → values shown in the message for context
    """

    code: ErrorCode | None = ErrorCode.RUNTIME_ERROR

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        values: dict[str, Any] | None = None,
        suggestion: str | None = None,
    ):
        self.expression = expression
        self.values = values or {}
        super().__init__(message, suggestion=suggestion)

    def _format_message(self) -> str:
        parts = [super()._format_message()]
        if self.expression:
            parts.append(f"  Expression: {self.expression}")
        if self.values:
            parts.append("  Values:")
            for name, value in self.values.items():
                value_repr = repr(value)
                if len(value_repr) > 80:
                    value_repr = value_repr[:77] + "..."
                parts.append(f"    {name} = {value_repr} ({type(value).__name__})")
        return "\n".join(parts)


class MissingAttributeError(TemplateRuntimeError):
    """A directive was used without one of its required attributes."""

    code: ErrorCode | None = ErrorCode.MISSING_ATTRIBUTE

    def __init__(self, directive: str, attribute: str | None = None):
        self.directive = directive
        self.attribute = attribute
        if attribute is None:
            message = f"Must specify at least one attribute for {directive}"
        else:
            message = f'Missing attribute "{attribute}" for {directive}'
        super().__init__(message)


class SequencingError(TemplateRuntimeError):
    """A directive appeared where its required predecessor is missing."""

    code: ErrorCode | None = ErrorCode.SEQUENCING


class TypeMismatchError(TemplateRuntimeError):
    """A directive received a value of the wrong shape."""

    code: ErrorCode | None = ErrorCode.TYPE_MISMATCH


class EvaluationError(TemplateRuntimeError):
    """Evaluating an expression failed.

    Wraps exceptions raised by the evaluator or by user code it called.
    The original exception is kept as ``__cause__``.
    """

    code: ErrorCode | None = ErrorCode.EVALUATION_FAILURE

    @classmethod
    def wrap(cls, error: Exception) -> EvaluationError:
        """Wrap a non-template exception; the caller raises it ``from error``."""
        return cls(f"{type(error).__name__}: {error}")


class ExpressionSyntaxError(EvaluationError):
    """An expression string is not valid expression syntax."""

    code: ErrorCode | None = ErrorCode.INVALID_EXPRESSION


class IncludeDepthError(TemplateRuntimeError):
    """``t-include`` nesting exceeded the configured maximum."""

    code: ErrorCode | None = ErrorCode.INCLUDE_DEPTH


class UndefinedError(TemplateRuntimeError):
    """An expression referenced a name that is not in scope.

    If ``available_names`` is provided, a "Did you mean?" suggestion is
    included when a close match is found.

    Example:
            >>> await env.from_string("{{ titel }}").render_async(title="x")
        UndefinedError: Undefined variable 'titel'. Did you mean 'title'?
    """

    code: ErrorCode | None = ErrorCode.UNDEFINED_VARIABLE

    def __init__(
        self,
        name: str,
        *,
        expression: str | None = None,
        available_names: frozenset[str] | None = None,
    ):
        self.name = name
        message = f"Undefined variable '{name}'"
        if available_names:
            from difflib import get_close_matches

            matches = get_close_matches(name, sorted(available_names), n=1, cutoff=0.6)
            if matches:
                message += f". Did you mean '{terminal.suggestion(matches[0])}'?"
        super().__init__(message, expression=expression)
