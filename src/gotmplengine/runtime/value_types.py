"""Value semantics shared by the executor and the function library.

- Truthiness: the rule used by if/with, and/or/not and default/empty.
- Printing: how an action renders a pipeline result.
- Go %v formatting: used by print/printf/println, where composite values
  render the way Go's fmt package renders them rather than as opaque
  placeholders.

Python 3.13+. Zero external dependencies.
"""

import math
from collections.abc import Mapping, Sized
from decimal import Decimal

from gotmplengine.syntax.unquote import unescape

__all__ = [
    "format_value",
    "go_format_float",
    "is_true",
    "print_value",
    "type_name",
]

# Shortest-representation %v switches to exponent form at this decimal exponent.
_EXPONENT_THRESHOLD = 6
_SMALL_EXPONENT = -4


def is_true(value: object) -> bool:
    """Template truthiness.

    nil, false, zero, and empty strings/collections are false; everything
    else, including arbitrary objects, is true.

    Example:
        >>> [is_true(v) for v in (None, "", 0, 0.0, [], {}, "x", 1, [0])]
        [False, False, False, False, False, False, True, True, True]
    """
    match value:
        case None:
            return False
        case bool():
            return value
        case int() | float() | complex():
            return value != 0
        case str() | bytes():
            return len(value) > 0
        case Sized():
            return len(value) > 0
        case _:
            return True


def type_name(value: object) -> str:
    """Short type name used in placeholders and diagnostics."""
    return type(value).__name__


def go_format_float(value: float) -> str:
    """Format a float the way Go's %v does (shortest round-trip digits).

    Example:
        >>> go_format_float(3.14), go_format_float(2.0), go_format_float(1e6)
        ('3.14', '2', '1e+06')
        >>> go_format_float(0.00001), go_format_float(float("inf"))
        ('1e-05', '+Inf')
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"

    sign, digit_tuple, exponent = Decimal(repr(value)).as_tuple()
    digits = "".join(map(str, digit_tuple)).rstrip("0") or "0"
    # Position of the decimal point relative to the start of the digit string.
    point = len(digit_tuple) + int(exponent)
    decimal_exponent = point - 1
    prefix = "-" if sign else ""

    if decimal_exponent < _SMALL_EXPONENT or decimal_exponent >= _EXPONENT_THRESHOLD:
        mantissa = digits[0] + ("." + digits[1:] if len(digits) > 1 else "")
        exp_sign = "-" if decimal_exponent < 0 else "+"
        return f"{prefix}{mantissa}e{exp_sign}{abs(decimal_exponent):02d}"
    if point <= 0:
        return f"{prefix}0.{'0' * -point}{digits}"
    if point >= len(digits):
        return f"{prefix}{digits}{'0' * (point - len(digits))}"
    return f"{prefix}{digits[:point]}.{digits[point:]}"


def _format_complex(value: complex) -> str:
    imag = go_format_float(value.imag)
    if not imag.startswith(("-", "+")):
        imag = "+" + imag
    return f"({go_format_float(value.real)}{imag}i)"


def format_value(value: object) -> str:
    """Go %v rendering of a value.

    Example:
        >>> format_value([1, "a", None])
        '[1 a <nil>]'
        >>> format_value({"b": 2, "a": True})
        'map[a:true b:2]'
    """
    match value:
        case None:
            return "<nil>"
        case bool():
            return "true" if value else "false"
        case int():
            return str(value)
        case float():
            return go_format_float(value)
        case complex():
            return _format_complex(value)
        case str():
            return value
        case bytes():
            return "[" + " ".join(str(b) for b in value) + "]"
        case Mapping():
            try:
                keys = sorted(value)
            except TypeError:
                keys = list(value)
            return "map[" + " ".join(
                f"{format_value(k)}:{format_value(value[k])}" for k in keys
            ) + "]"
        case list() | tuple() | set() | frozenset():
            items = sorted(value, key=repr) if isinstance(value, set | frozenset) else value
            return "[" + " ".join(format_value(item) for item in items) + "]"
        case _:
            return str(value)


def print_value(value: object) -> str:
    """Text an action writes for a pipeline result.

    Strings are escape-unescaped, scalars print canonically, and any other
    object prints as an opaque placeholder instead of running an arbitrary
    ``__str__``.

    Example:
        >>> print_value(None), print_value("a\\\\tb"), print_value(True)
        ('', 'a\\tb', 'true')
        >>> print_value(object())
        '[object object]'
    """
    match value:
        case None:
            return ""
        case str():
            return unescape(value)
        case bool():
            return "true" if value else "false"
        case int():
            return str(value)
        case float():
            return go_format_float(value)
        case complex():
            return _format_complex(value)
        case _:
            return f"[object {type_name(value)}]"
