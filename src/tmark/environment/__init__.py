"""tmark environment: configuration, loading, caching and errors."""

from tmark.environment.cache import DEFAULT_DOM_CACHE, DomCache, content_key
from tmark.environment.core import Environment
from tmark.environment.exceptions import (
    ErrorCode,
    EvaluationError,
    ExpressionSyntaxError,
    IncludeDepthError,
    MissingAttributeError,
    NodeFrame,
    SequencingError,
    TemplateError,
    TemplateLoadError,
    TemplateNotFoundError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    TypeMismatchError,
    UndefinedError,
)
from tmark.environment.loaders import DictLoader, FileSystemLoader, Loader

__all__ = [
    "DEFAULT_DOM_CACHE",
    "DictLoader",
    "DomCache",
    "Environment",
    "ErrorCode",
    "EvaluationError",
    "ExpressionSyntaxError",
    "FileSystemLoader",
    "IncludeDepthError",
    "Loader",
    "MissingAttributeError",
    "NodeFrame",
    "SequencingError",
    "TemplateError",
    "TemplateLoadError",
    "TemplateNotFoundError",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "TypeMismatchError",
    "UndefinedError",
    "content_key",
]
