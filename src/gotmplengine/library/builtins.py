"""Go text/template predefined functions.

Implements and, or, not, len, index, slice, print, printf, println, the
comparison functions, the html/js/urlquery escapers and call, following the
Go semantics: and/or return the deciding operand and short-circuit when
called from a template, eq accepts several candidates, index and slice take
multiple indexes.

printf supports the common fmt verbs (%v %s %d %q %f %e %g %t %x %X %o %b
%c %T %%) with flags, width and precision. Unsupported or mismatched verbs
render the way Go reports them, e.g. "%!d(string=x)".

Python 3.13+. Zero external dependencies.
"""

import re
from collections.abc import Mapping, Sequence
from typing import Any
from urllib.parse import quote_plus

from gotmplengine.runtime.function_bridge import FunctionRegistry, mark_short_circuit
from gotmplengine.runtime.value_types import format_value, go_format_float, is_true

from .coerce import go_type

__all__ = [
    "go_quote",
    "go_sprint",
    "go_sprintf",
    "go_sprintln",
    "register",
]

# %[flags][width][.precision]verb
_VERB_PATTERN = re.compile(r"%([-+# 0]*)(\*|\d+)?(?:\.(\*|\d*))?([a-zA-Z%])")

_HTML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&#34;",
    "'": "&#39;",
    "\x00": "\ufffd",
}

_JS_ESCAPES = {
    "\\": "\\\\",
    "'": "\\'",
    '"': '\\"',
    "<": "\\u003C",
    ">": "\\u003E",
    "&": "\\u0026",
    "=": "\\u003D",
}


# ============================================================================
# LOGIC
# ============================================================================


def and_(first: Any, *rest: Any) -> Any:
    """First falsy argument, or the last argument."""
    for arg in (first, *rest):
        if not is_true(arg):
            return arg
    return rest[-1] if rest else first


def or_(first: Any, *rest: Any) -> Any:
    """First truthy argument, or the last argument."""
    for arg in (first, *rest):
        if is_true(arg):
            return arg
    return rest[-1] if rest else first


# Inside templates, arguments after the deciding one are never evaluated.
mark_short_circuit(and_, stop_when=False)
mark_short_circuit(or_, stop_when=True)


def not_(value: Any) -> bool:
    return not is_true(value)


# ============================================================================
# COMPARISON
# ============================================================================


def _basic_equal(a: Any, b: Any) -> bool:
    # bool is an int subclass; Go never considers true == 1.
    if isinstance(a, bool) != isinstance(b, bool):
        return False
    return bool(a == b)


def eq(arg1: Any, *candidates: Any) -> bool:
    """True when arg1 equals any candidate.

    Raises:
        TypeError: If no candidate is given
    """
    if not candidates:
        msg = "missing argument for comparison"
        raise TypeError(msg)
    return any(_basic_equal(arg1, candidate) for candidate in candidates)


def ne(arg1: Any, arg2: Any) -> bool:
    return not _basic_equal(arg1, arg2)


def _ordered(a: Any, b: Any) -> tuple[Any, Any]:
    for value in (a, b):
        if value is None or isinstance(value, bool) or not isinstance(value, int | float | str):
            msg = f"invalid type for comparison: {go_type(value)}"
            raise TypeError(msg)
    if isinstance(a, str) != isinstance(b, str):
        msg = "incompatible types for comparison"
        raise TypeError(msg)
    return a, b


def lt(arg1: Any, arg2: Any) -> bool:
    a, b = _ordered(arg1, arg2)
    return bool(a < b)


def le(arg1: Any, arg2: Any) -> bool:
    a, b = _ordered(arg1, arg2)
    return bool(a <= b)


def gt(arg1: Any, arg2: Any) -> bool:
    a, b = _ordered(arg1, arg2)
    return bool(a > b)


def ge(arg1: Any, arg2: Any) -> bool:
    a, b = _ordered(arg1, arg2)
    return bool(a >= b)


# ============================================================================
# CONTAINERS
# ============================================================================


def length(item: Any) -> int:
    """len: size of a string, sequence or mapping (nil has length 0).

    Raises:
        TypeError: If the value has no length
    """
    if item is None:
        return 0
    if isinstance(item, str | bytes | Sequence | Mapping | set | frozenset):
        return len(item)
    msg = f"len of type {go_type(item)}"
    raise TypeError(msg)


def _as_index(index: Any, size: int, *, allow_end: bool = False) -> int:
    if isinstance(index, bool) or not isinstance(index, int):
        msg = f"cannot index slice/array with type {go_type(index)}"
        raise TypeError(msg)
    limit = size if allow_end else size - 1
    if index < 0 or index > limit:
        msg = f"index out of range: {index}"
        raise ValueError(msg)
    return index


def index(item: Any, *indexes: Any) -> Any:
    """index x 1 2: item[1][2]; missing map keys yield nil.

    Raises:
        TypeError: If a value cannot be indexed
        ValueError: If a sequence index is out of range
    """
    current = item
    for key in indexes:
        match current:
            case None:
                msg = "index of untyped nil"
                raise TypeError(msg)
            case Mapping():
                current = current.get(key)
            case str() | bytes() | Sequence():
                current = current[_as_index(key, len(current))]
            case _:
                msg = f"can't index item of type {go_type(current)}"
                raise TypeError(msg)
    return current


def slice_(item: Any, *indexes: Any) -> Any:
    """slice x 1 2: item[1:2]; slice x 1: item[1:]; slice x: item.

    Raises:
        TypeError: If the value cannot be sliced or too many indexes are given
        ValueError: If an index is out of range or indexes are inverted
    """
    if item is None:
        msg = "slice of untyped nil"
        raise TypeError(msg)
    if not isinstance(item, str | bytes | Sequence):
        msg = f"can't slice item of type {go_type(item)}"
        raise TypeError(msg)
    if len(indexes) > 3:
        msg = f"too many slice indexes: {len(indexes)}"
        raise TypeError(msg)
    if len(indexes) == 3 and isinstance(item, str):
        msg = "cannot 3-index slice a string"
        raise TypeError(msg)
    bounds = [_as_index(i, len(item), allow_end=True) for i in indexes]
    for lower, upper in zip(bounds, bounds[1:], strict=False):
        if lower > upper:
            msg = f"invalid slice index: {lower} > {upper}"
            raise ValueError(msg)
    start = bounds[0] if bounds else 0
    end = bounds[1] if len(bounds) > 1 else len(item)
    return item[start:end]


def call(fn: Any, *args: Any) -> Any:
    """call fn a b: invoke a function value held in the data.

    Raises:
        TypeError: If fn is not callable
    """
    if fn is None:
        msg = "call of nil"
        raise TypeError(msg)
    if not callable(fn):
        msg = f"non-function of type {go_type(fn)}"
        raise TypeError(msg)
    return fn(*args)


# ============================================================================
# PRINTING
# ============================================================================


def go_sprint(*args: Any) -> str:
    """fmt.Sprint: a space separates operands when neither is a string.

    Example:
        >>> go_sprint("a", 1, 2, "b")
        'a1 2b'
    """
    parts: list[str] = []
    previous_is_string = True
    for position, arg in enumerate(args):
        is_string = isinstance(arg, str)
        if position > 0 and not is_string and not previous_is_string:
            parts.append(" ")
        parts.append(format_value(arg))
        previous_is_string = is_string
    return "".join(parts)


def go_sprintln(*args: Any) -> str:
    """fmt.Sprintln: operands always separated by spaces, newline appended."""
    return " ".join(format_value(arg) for arg in args) + "\n"


def _pad(text: str, flags: str, width: int | None, *, numeric: bool) -> str:
    if width is None or len(text) >= width:
        return text
    if "-" in flags:
        return text.ljust(width)
    if "0" in flags and numeric:
        sign = text[0] if text and text[0] in "+- " else ""
        return sign + text[len(sign):].rjust(width - len(sign), "0")
    return text.rjust(width)


def _sign(negative: bool, flags: str) -> str:
    if negative:
        return "-"
    if "+" in flags:
        return "+"
    if " " in flags:
        return " "
    return ""


def go_quote(text: str) -> str:
    """strconv.Quote: double-quoted with Go escapes."""
    out = ['"']
    for char in text:
        match char:
            case '"':
                out.append('\\"')
            case "\\":
                out.append("\\\\")
            case "\n":
                out.append("\\n")
            case "\t":
                out.append("\\t")
            case "\r":
                out.append("\\r")
            case _ if char.isprintable():
                out.append(char)
            case _ if ord(char) < 0x80:
                out.append(f"\\x{ord(char):02x}")
            case _ if ord(char) <= 0xFFFF:
                out.append(f"\\u{ord(char):04x}")
            case _:
                out.append(f"\\U{ord(char):08x}")
    out.append('"')
    return "".join(out)


def _bad_verb(verb: str, arg: Any) -> str:
    return f"%!{verb}({go_type(arg)}={format_value(arg)})"


def _format_integer(verb: str, flags: str, precision: int | None, arg: int) -> str:
    magnitude = abs(arg)
    match verb:
        case "d":
            digits = str(magnitude)
        case "x":
            digits = format(magnitude, "x")
        case "X":
            digits = format(magnitude, "X")
        case "o":
            digits = format(magnitude, "o")
        case _:
            digits = format(magnitude, "b")
    if precision is not None:
        digits = digits.zfill(precision)
    if "#" in flags:
        digits = {"x": "0x", "X": "0X", "o": "0"}.get(verb, "") + digits
    return _sign(arg < 0, flags) + digits


def _format_float(verb: str, flags: str, precision: int | None, arg: float) -> str:
    if verb in "gG" and precision is None:
        text = go_format_float(abs(arg))
        text = text.upper() if verb == "G" else text
    else:
        spec = f".{6 if precision is None else precision}{verb}"
        text = format(abs(arg), spec)
    return _sign(arg < 0 or (arg == 0 and str(arg).startswith("-")), flags) + text


def _format_one(verb: str, flags: str, width: int | None, precision: int | None, arg: Any) -> str:
    numeric = False
    match verb:
        case "v":
            text = go_quote(arg) if "#" in flags and isinstance(arg, str) else format_value(arg)
        case "s":
            text = arg if isinstance(arg, str) else format_value(arg)
            if precision is not None:
                text = text[:precision]
        case "q":
            if isinstance(arg, int) and not isinstance(arg, bool):
                text = "'" + chr(arg) + "'"
            elif isinstance(arg, str | bytes):
                text = go_quote(arg if isinstance(arg, str) else arg.decode("utf-8", "replace"))
            else:
                text = _bad_verb(verb, arg)
        case "t":
            text = ("true" if arg else "false") if isinstance(arg, bool) else _bad_verb(verb, arg)
        case "T":
            text = go_type(arg)
        case "c":
            is_int = isinstance(arg, int) and not isinstance(arg, bool)
            text = chr(arg) if is_int else _bad_verb(verb, arg)
        case "U":
            is_int = isinstance(arg, int) and not isinstance(arg, bool)
            text = f"U+{arg:04X}" if is_int else _bad_verb(verb, arg)
        case "d" | "o" | "b" | "x" | "X":
            if isinstance(arg, int) and not isinstance(arg, bool):
                text = _format_integer(verb, flags, precision, arg)
                numeric = True
            elif verb in "xX" and isinstance(arg, str | bytes):
                raw = arg.encode() if isinstance(arg, str) else arg
                text = raw.hex() if verb == "x" else raw.hex().upper()
            else:
                text = _bad_verb(verb, arg)
        case "f" | "F" | "e" | "E" | "g" | "G":
            if isinstance(arg, int | float) and not isinstance(arg, bool):
                text = _format_float(verb, flags, precision, float(arg))
                numeric = True
            else:
                text = _bad_verb(verb, arg)
        case _:
            text = _bad_verb(verb, arg)
    return _pad(text, flags, width, numeric=numeric)


def go_sprintf(format_string: str, *args: Any) -> str:
    """fmt.Sprintf subset.

    Example:
        >>> go_sprintf("%s=%05.1f %q %v", "pi", 3.14159, "x", [1, 2])
        'pi=003.1 "x" [1 2]'
        >>> go_sprintf("%d %d", 1)
        '1 %!d(MISSING)'
    """
    out: list[str] = []
    arg_index = 0
    position = 0

    def next_arg() -> tuple[bool, Any]:
        nonlocal arg_index
        if arg_index >= len(args):
            return False, None
        value = args[arg_index]
        arg_index += 1
        return True, value

    for match in _VERB_PATTERN.finditer(format_string):
        out.append(format_string[position:match.start()])
        position = match.end()
        flags, width_text, precision_text, verb = match.groups()
        if verb == "%":
            out.append("%")
            continue

        width: int | None = None
        if width_text == "*":
            found, value = next_arg()
            width = value if found and isinstance(value, int) else None
        elif width_text:
            width = int(width_text)
        if width is not None and width < 0:
            flags, width = flags + "-", -width

        precision: int | None = None
        if precision_text == "*":
            found, value = next_arg()
            precision = value if found and isinstance(value, int) else None
        elif precision_text is not None:
            precision = int(precision_text) if precision_text else 0

        found, arg = next_arg()
        if not found:
            out.append(f"%!{verb}(MISSING)")
            continue
        out.append(_format_one(verb, flags, width, precision, arg))
    out.append(format_string[position:])

    if arg_index < len(args):
        extra = ", ".join(f"{go_type(a)}={format_value(a)}" for a in args[arg_index:])
        out.append(f"%!(EXTRA {extra})")
    return "".join(out)


def printf(format_string: Any, *args: Any) -> str:
    return go_sprintf(str(format_string), *args)


# ============================================================================
# ESCAPING
# ============================================================================


def _escape_operand(args: tuple[Any, ...]) -> str:
    if len(args) == 1 and isinstance(args[0], str):
        return args[0]
    return go_sprint(*args)


def html(*args: Any) -> str:
    """HTML-escape the textual form of the arguments.

    Example:
        >>> html("<a href='x'>")
        '&lt;a href=&#39;x&#39;&gt;'
    """
    return "".join(_HTML_ESCAPES.get(char, char) for char in _escape_operand(args))


def js(*args: Any) -> str:
    """JavaScript-escape the textual form of the arguments."""
    out: list[str] = []
    for char in _escape_operand(args):
        if char in _JS_ESCAPES:
            out.append(_JS_ESCAPES[char])
        elif ord(char) < 0x20:
            out.append(f"\\u{ord(char):04X}")
        else:
            out.append(char)
    return "".join(out)


def urlquery(*args: Any) -> str:
    """Query-escape the textual form of the arguments (space becomes "+")."""
    return quote_plus(_escape_operand(args), safe="")


def register(registry: FunctionRegistry) -> None:
    """Register the predefined Go template functions."""
    for name, func in (
        ("and", and_),
        ("or", or_),
        ("not", not_),
        ("len", length),
        ("index", index),
        ("slice", slice_),
        ("call", call),
        ("print", go_sprint),
        ("printf", printf),
        ("println", go_sprintln),
        ("eq", eq),
        ("ne", ne),
        ("lt", lt),
        ("le", le),
        ("gt", gt),
        ("ge", ge),
        ("html", html),
        ("js", js),
        ("urlquery", urlquery),
    ):
        registry.register(func, name=name)
