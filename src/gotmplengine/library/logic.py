"""Defaults, flow-control and type-inspection functions.

``default`` relies on the chained pipeline rule: in
``{{ .Values.name | default "app" }}`` the piped value arrives as the last
argument, so the signature is (fallback, given...).

Python 3.13+. Zero external dependencies.
"""

from typing import Any

from gotmplengine.diagnostics import ErrorTemplate, TemplateFunctionError
from gotmplengine.runtime.function_bridge import FunctionRegistry
from gotmplengine.runtime.value_types import is_true

from .coerce import go_kind, go_type, to_str

__all__ = ["empty", "register"]


def empty(value: Any) -> bool:
    """True for nil, false, zero, and empty strings/collections."""
    return not is_true(value)


def default(fallback: Any, *given: Any) -> Any:
    """The given value, or the fallback when it is empty or absent.

    Example:
        >>> default("fallback", ""), default("fallback", "x"), default("fallback")
        ('fallback', 'x', 'fallback')
    """
    if not given or empty(given[0]):
        return fallback
    return given[0]


def coalesce(*values: Any) -> Any:
    """First non-empty argument, or nil."""
    return next((v for v in values if not empty(v)), None)


def ternary(if_true: Any, if_false: Any, condition: Any) -> Any:
    return if_true if is_true(condition) else if_false


def fail(message: Any) -> None:
    """Abort rendering with a message.

    Raises:
        TemplateFunctionError: Always
    """
    raise TemplateFunctionError(ErrorTemplate.function_failed("fail", to_str(message)))


def required(message: Any, value: Any) -> Any:
    """Return value, aborting rendering when it is nil or an empty string.

    Raises:
        TemplateFunctionError: If value is missing
    """
    if value is None or (isinstance(value, str) and not value):
        raise TemplateFunctionError(ErrorTemplate.function_failed("required", to_str(message)))
    return value


def type_of(value: Any) -> str:
    return go_type(value)


def kind_of(value: Any) -> str:
    return go_kind(value)


def kind_is(kind: Any, value: Any) -> bool:
    return go_kind(value) == to_str(kind)


def type_is(type_name: Any, value: Any) -> bool:
    return go_type(value) == to_str(type_name)


def type_is_like(type_name: Any, value: Any) -> bool:
    name = to_str(type_name)
    actual = go_type(value)
    return actual in (name, "*" + name)


def deep_equal(a: Any, b: Any) -> bool:
    return bool(a == b) and type(a) is type(b)


def register(registry: FunctionRegistry) -> None:
    """Register the default, flow-control and type functions."""
    for func in (
        default,
        empty,
        coalesce,
        ternary,
        fail,
        required,
        type_of,
        kind_of,
        kind_is,
        type_is,
        type_is_like,
        deep_equal,
    ):
        registry.register(func)
