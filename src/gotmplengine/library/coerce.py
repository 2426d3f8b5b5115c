"""Argument coercion shared by library functions.

Template data arrives untyped: numbers may be strings, lists may be tuples,
missing values are None. These helpers convert with the same leniency the
Sprig library applies (unparsable numbers become 0, None becomes empty).

Python 3.13+. Zero external dependencies.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from gotmplengine.runtime.value_types import format_value

__all__ = [
    "go_kind",
    "go_type",
    "to_float",
    "to_int",
    "to_list",
    "to_str",
]


def to_str(value: Any) -> str:
    """String form of a value (Sprig strval).

    Example:
        >>> to_str(None), to_str(3), to_str(b"ab"), to_str([1, 2])
        ('', '3', 'ab', '[1 2]')
    """
    match value:
        case None:
            return ""
        case str():
            return value
        case bytes():
            return value.decode("utf-8", errors="replace")
        case _:
            return format_value(value)


def to_int(value: Any) -> int:
    """Integer form of a value; unparsable input yields 0.

    Example:
        >>> to_int("42"), to_int(3.9), to_int("x"), to_int(True), to_int("0x1f")
        (42, 3, 0, 1, 31)
    """
    match value:
        case None:
            return 0
        case bool():
            return int(value)
        case int():
            return value
        case float():
            return int(value) if value == value and abs(value) != float("inf") else 0
        case str():
            text = value.strip()
            try:
                return int(text, 0)
            except ValueError:
                pass
            try:
                return int(float(text))
            except (ValueError, OverflowError):
                return 0
        case _:
            return 0


def to_float(value: Any) -> float:
    """Float form of a value; unparsable input yields 0.0.

    Example:
        >>> to_float("1.5"), to_float(2), to_float(None), to_float("abc")
        (1.5, 2.0, 0.0, 0.0)
    """
    match value:
        case None:
            return 0.0
        case bool() | int() | float():
            return float(value)
        case str():
            try:
                return float(value.strip())
            except ValueError:
                return 0.0
        case _:
            return 0.0


def to_list(value: Any) -> list[Any]:
    """List form of a sequence argument.

    Raises:
        TypeError: If the value is a string, mapping or scalar

    Example:
        >>> to_list((1, 2)), to_list(None)
        ([1, 2], [])
    """
    match value:
        case None:
            return []
        case list():
            return value
        case str() | bytes() | Mapping():
            msg = f"cannot use type {go_type(value)} as a list"
            raise TypeError(msg)
        case Iterable():
            return list(value)
        case _:
            msg = f"cannot use type {go_type(value)} as a list"
            raise TypeError(msg)


def go_type(value: Any) -> str:
    """Go %T spelling of a value's type.

    Example:
        >>> go_type("a"), go_type(1), go_type(1.0), go_type({}), go_type([]), go_type(None)
        ('string', 'int', 'float64', 'map[string]interface {}', '[]interface {}', '<nil>')
    """
    match value:
        case None:
            return "<nil>"
        case bool():
            return "bool"
        case int():
            return "int"
        case float():
            return "float64"
        case complex():
            return "complex128"
        case str():
            return "string"
        case bytes():
            return "[]uint8"
        case Mapping():
            return "map[string]interface {}"
        case list() | tuple() | set() | frozenset():
            return "[]interface {}"
        case _:
            return type(value).__qualname__


def go_kind(value: Any) -> str:
    """Go reflect.Kind name of a value.

    Example:
        >>> go_kind("a"), go_kind({}), go_kind([1]), go_kind(None), go_kind(object())
        ('string', 'map', 'slice', 'invalid', 'struct')
    """
    match value:
        case None:
            return "invalid"
        case bool():
            return "bool"
        case int():
            return "int"
        case float():
            return "float64"
        case complex():
            return "complex128"
        case str():
            return "string"
        case Mapping():
            return "map"
        case bytes() | list() | tuple() | set() | frozenset():
            return "slice"
        case _ if callable(value):
            return "func"
        case _:
            return "struct"
