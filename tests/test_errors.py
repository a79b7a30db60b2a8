"""Tests for error annotation, breadcrumbs and error codes."""

import pytest

from tmark import (
    DictLoader,
    Environment,
    ErrorCode,
    EvaluationError,
    IncludeDepthError,
    MissingAttributeError,
    SequencingError,
    TemplateError,
    TemplateLoadError,
    TemplateNotFoundError,
    TemplateSyntaxError,
    TypeMismatchError,
    UndefinedError,
)
from tmark.environment import terminal
from tmark.environment.exceptions import NodeFrame, make_snippet

MISPLACED_ELIF = """<main>
 <section>
  <t-elif on="ready">x</t-elif>
 </section>
</main>"""


@pytest.fixture
def no_colors(monkeypatch):
    monkeypatch.setattr(terminal, "_USE_COLORS", False)


class TestBreadcrumb:
    """Frames are added from the failing node outwards."""

    def test_message_layout(self, env, no_colors):
        with pytest.raises(SequencingError) as exc_info:
            env.from_string(MISPLACED_ELIF).render(ready=True)
        assert str(exc_info.value).splitlines() == [
            "t-elif must follow t-if or t-elif",
            "<template>:3",
            '    3: <t-elif on="ready">',
            "       ^^^^^^^^^^^^^^^^^^^",
            "    2:  <section>",
            "    1:   <main>",
            "  Hint: Place t-elif directly after a t-if or t-elif element",
        ]

    def test_location_properties(self, env):
        with pytest.raises(SequencingError) as exc_info:
            env.from_string(MISPLACED_ELIF).render(ready=True)
        error = exc_info.value
        assert error.lineno == 3
        assert error.filename is None
        assert [frame.lineno for frame in error.frames] == [3, 2, 1]
        assert error.message == "t-elif must follow t-if or t-elif"

    def test_filename_in_location(self, env, no_colors):
        with pytest.raises(UndefinedError) as exc_info:
            env.from_string("<p>\n{{ titel }}</p>", filename="views/page.html").render(title="x")
        message = str(exc_info.value)
        assert "views/page.html:2" in message
        assert "Did you mean 'title'?" in message
        assert "  Expression: titel" in message

    def test_format_compact(self, env, no_colors):
        with pytest.raises(SequencingError) as exc_info:
            env.from_string(MISPLACED_ELIF).render(ready=True)
        assert exc_info.value.format_compact() == (
            "T-RUN-002: t-elif must follow t-if or t-elif\n"
            "  --> <template>:3\n"
            "  Hint: Place t-elif directly after a t-if or t-elif element"
        )

    def test_colored_message_strips_to_plain(self, env, monkeypatch):
        monkeypatch.setattr(terminal, "_USE_COLORS", True)
        with pytest.raises(SequencingError) as exc_info:
            env.from_string(MISPLACED_ELIF).render(ready=True)
        message = str(exc_info.value)
        assert "\033[" in message
        assert "<template>:3" in terminal.strip_colors(message)


class TestWrapping:
    """Non-template exceptions become EvaluationError."""

    def test_user_exception_keeps_cause(self, env):
        def boom():
            raise ValueError("bad value")

        with pytest.raises(EvaluationError) as exc_info:
            env.from_string("<p>{{ boom() }}</p>").render(boom=boom)
        assert isinstance(exc_info.value.__cause__, ValueError)
        assert exc_info.value.lineno == 1

    @pytest.mark.asyncio
    async def test_failing_async_iterable_wrapped(self, env):
        async def broken():
            raise RuntimeError("stream closed")
            yield

        template = env.from_string('<ul>\n<t-for on="x of xs">{{ x }}</t-for>\n</ul>')
        with pytest.raises(EvaluationError) as exc_info:
            await template.render_async(xs=broken())
        error = exc_info.value
        assert error.message == "RuntimeError: stream closed"
        assert isinstance(error.__cause__, RuntimeError)
        assert [frame.lineno for frame in error.frames] == [2, 1]


class TestSpanLines:
    """A failure inside a multi-line text node points at the failing span."""

    def test_span_line_within_text(self, env):
        template = env.from_string("<div>intro\n{{ ok }}\n\n{{ nope }} tail</div>")
        with pytest.raises(UndefinedError) as exc_info:
            template.render(ok=1)
        assert [frame.lineno for frame in exc_info.value.frames] == [4, 1]

    def test_wrapped_error_line_within_text(self, env):
        def boom():
            raise ValueError("bad value")

        with pytest.raises(EvaluationError) as exc_info:
            env.from_string("<p>a\nb\n{{ boom() }}</p>").render(boom=boom)
        assert exc_info.value.lineno == 3
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_included_file_location(self, no_colors):
        loader = DictLoader(
            {"a.html": '<t-include file="b.html"></t-include>', "b.html": "x\n\n{{ nope }}"}
        )
        env = Environment(loader=loader, markers=False)
        with pytest.raises(UndefinedError) as exc_info:
            env.get_template("a.html").render()
        assert "b.html:3" in str(exc_info.value)

    def test_attribute_error_reports_element_line(self, env):
        template = env.from_string('<p>\n<a\n  title="x\n{{ nope }}">k</a></p>')
        with pytest.raises(UndefinedError) as exc_info:
            template.render()
        assert exc_info.value.lineno == 2


class TestErrorCodes:
    """Every error class carries a searchable code."""

    @pytest.mark.parametrize(
        ("error_class", "code"),
        [
            (TemplateSyntaxError, ErrorCode.INVALID_DIRECTIVE),
            (TemplateNotFoundError, ErrorCode.TEMPLATE_NOT_FOUND),
            (TemplateLoadError, ErrorCode.TEMPLATE_LOAD),
            (SequencingError, ErrorCode.SEQUENCING),
            (TypeMismatchError, ErrorCode.TYPE_MISMATCH),
            (EvaluationError, ErrorCode.EVALUATION_FAILURE),
            (IncludeDepthError, ErrorCode.INCLUDE_DEPTH),
            (UndefinedError, ErrorCode.UNDEFINED_VARIABLE),
            (MissingAttributeError, ErrorCode.MISSING_ATTRIBUTE),
        ],
    )
    def test_codes(self, error_class, code):
        assert error_class.code is code
        assert issubclass(error_class, TemplateError)

    @pytest.mark.parametrize(
        ("code", "category"),
        [
            (ErrorCode.INVALID_EXPRESSION, "syntax"),
            (ErrorCode.SEQUENCING, "runtime"),
            (ErrorCode.TEMPLATE_LOAD, "template"),
        ],
    )
    def test_categories(self, code, category):
        assert code.category == category

    def test_missing_attribute_fields(self):
        error = MissingAttributeError("t-for", "on")
        assert error.directive == "t-for"
        assert error.attribute == "on"
        assert str(error) == 'Missing attribute "on" for t-for'


class TestFrames:
    """Snippets and frame formatting."""

    def test_snippet_collapses_whitespace(self):
        assert make_snippet('<a\n   href="x"\n>') == '<a href="x" >'

    def test_snippet_truncated(self):
        snippet = make_snippet("<p>" + "x" * 200)
        assert len(snippet) == 80
        assert snippet.endswith("...")

    def test_frame_location(self):
        assert NodeFrame("a.html", 4, "<p>").location == "a.html:4"
        assert NodeFrame(None, 1, "<p>").location == "<template>:1"

    def test_add_frame_updates_message(self, no_colors):
        error = TemplateError("boom")
        assert str(error) == "boom"
        error.add_frame(NodeFrame("a.html", 2, "<p>"))
        assert str(error).splitlines()[:2] == ["boom", "a.html:2"]
