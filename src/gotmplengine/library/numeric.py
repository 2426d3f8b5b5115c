"""Math functions (Sprig math family).

Integer functions coerce their arguments with Sprig's toInt64 leniency and
use Go's truncating division; the ...f variants work on floats.

Python 3.13+. Zero external dependencies.
"""

import math
from decimal import Decimal
from typing import Any

from gotmplengine.runtime.function_bridge import FunctionRegistry

from .coerce import to_float, to_int

__all__ = ["register"]


def _truncating_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b > 0) else -quotient


def add(*values: Any) -> int:
    return sum(to_int(v) for v in values)


def add1(value: Any) -> int:
    return to_int(value) + 1


def sub(a: Any, b: Any) -> int:
    return to_int(a) - to_int(b)


def mul(a: Any, *values: Any) -> int:
    result = to_int(a)
    for v in values:
        result *= to_int(v)
    return result


def div(a: Any, b: Any) -> int:
    """Integer division truncating toward zero.

    Raises:
        ZeroDivisionError: If b is zero

    Example:
        >>> div(7, 2), div(-7, 2)
        (3, -3)
    """
    divisor = to_int(b)
    if divisor == 0:
        msg = "integer divide by zero"
        raise ZeroDivisionError(msg)
    return _truncating_div(to_int(a), divisor)


def mod(a: Any, b: Any) -> int:
    """Remainder with the sign of the dividend (Go %).

    Example:
        >>> mod(7, 3), mod(-7, 3)
        (1, -1)
    """
    dividend, divisor = to_int(a), to_int(b)
    if divisor == 0:
        msg = "integer divide by zero"
        raise ZeroDivisionError(msg)
    return dividend - divisor * _truncating_div(dividend, divisor)


def max_(a: Any, *values: Any) -> int:
    return max(to_int(v) for v in (a, *values))


def min_(a: Any, *values: Any) -> int:
    return min(to_int(v) for v in (a, *values))


def maxf(a: Any, *values: Any) -> float:
    return max(to_float(v) for v in (a, *values))


def minf(a: Any, *values: Any) -> float:
    return min(to_float(v) for v in (a, *values))


def floor(value: Any) -> float:
    return float(math.floor(to_float(value)))


def ceil(value: Any) -> float:
    return float(math.ceil(to_float(value)))


def round_(value: Any, places: Any, round_on: Any = 0.5) -> float:
    """Round to a number of decimal places; round_on sets the threshold.

    Example:
        >>> round_(123.555555, 3), round_(123.5, 0, 0.6)
        (123.556, 123.0)
    """
    power = Decimal(10) ** to_int(places)
    digit = Decimal(repr(to_float(value))) * power
    fraction = digit - int(digit)
    threshold = Decimal(repr(to_float(round_on)))
    rounded = math.ceil(digit) if fraction >= threshold else math.floor(digit)
    return float(Decimal(rounded) / power)


def to_int64(value: Any) -> int:
    return to_int(value)


def to_float64(value: Any) -> float:
    return to_float(value)


def addf(*values: Any) -> float:
    return float(sum(Decimal(repr(to_float(v))) for v in values))


def subf(a: Any, *values: Any) -> float:
    result = Decimal(repr(to_float(a)))
    for v in values:
        result -= Decimal(repr(to_float(v)))
    return float(result)


def mulf(a: Any, *values: Any) -> float:
    result = Decimal(repr(to_float(a)))
    for v in values:
        result *= Decimal(repr(to_float(v)))
    return float(result)


def divf(a: Any, *values: Any) -> float:
    """Float division.

    Raises:
        ZeroDivisionError: If a divisor is zero
    """
    result = to_float(a)
    for v in values:
        divisor = to_float(v)
        if divisor == 0:
            msg = "float divide by zero"
            raise ZeroDivisionError(msg)
        result /= divisor
    return result


def register(registry: FunctionRegistry) -> None:
    """Register the math functions."""
    for name, func in (
        ("add", add),
        ("add1", add1),
        ("sub", sub),
        ("mul", mul),
        ("div", div),
        ("mod", mod),
        ("max", max_),
        ("min", min_),
        ("maxf", maxf),
        ("minf", minf),
        ("floor", floor),
        ("ceil", ceil),
        ("round", round_),
        ("int", to_int64),
        ("int64", to_int64),
        ("float64", to_float64),
        ("addf", addf),
        ("subf", subf),
        ("mulf", mulf),
        ("divf", divf),
    ):
        registry.register(func, name=name)
