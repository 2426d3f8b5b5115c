"""Hypothesis strategies for generating template text and data.

Provides composite strategies for property-based testing of the lexer,
parser, serializer and executor.
"""

from __future__ import annotations

import string

from hypothesis import strategies as st
from hypothesis.strategies import composite

# Field names used by generated actions and data
FIELD_NAMES = ["Name", "Count", "Items", "Flag", "Title"]


@composite
def plain_text(draw: st.DrawFn) -> str:
    """Text that contains no delimiter characters."""
    return draw(
        st.text(
            alphabet=string.ascii_letters + string.digits + " .,!?-\n",
            max_size=40,
        )
    )


@composite
def identifiers(draw: st.DrawFn) -> str:
    """Go identifiers: a letter or underscore followed by letters, digits, underscores."""
    first = draw(st.sampled_from(string.ascii_letters + "_"))
    rest = draw(st.text(alphabet=string.ascii_letters + string.digits + "_", max_size=12))
    return first + rest


@composite
def string_literals(draw: st.DrawFn) -> str:
    """Double-quoted template string literals (no escapes needed)."""
    body = draw(st.text(alphabet=string.ascii_letters + string.digits + " _-", max_size=20))
    return f'"{body}"'


@composite
def operands(draw: st.DrawFn) -> str:
    """Single operands: fields, dot, literals and $."""
    return draw(
        st.one_of(
            st.sampled_from(FIELD_NAMES).map(lambda name: "." + name),
            st.just("."),
            st.just("$"),
            string_literals(),
            st.integers(min_value=0, max_value=10_000).map(str),
            st.sampled_from(["true", "false", "nil"]),
        )
    )


@composite
def actions(draw: st.DrawFn, allow_trim: bool = True) -> str:
    """Actions printing an operand, optionally piped through a function."""
    operand = draw(operands())
    if operand == "nil":
        operand = '"nil"'
    func = draw(st.sampled_from(["", "print", "len", "quote", "upper"]))
    if func in ("len", "upper") and not operand.startswith('"'):
        func = ""
    trim_left = allow_trim and draw(st.booleans())
    trim_right = allow_trim and draw(st.booleans())
    inner = f"{operand} | {func}" if func else operand
    return "{{" + ("- " if trim_left else " ") + inner + (" -" if trim_right else " ") + "}}"


@composite
def templates(draw: st.DrawFn, max_depth: int = 2, allow_trim: bool = True) -> str:
    """Well-formed template text mixing text, actions and blocks."""
    parts: list[str] = []
    for _ in range(draw(st.integers(min_value=1, max_value=5))):
        kind = draw(st.sampled_from(["text", "action", "if", "with", "range"]))
        if kind == "text":
            parts.append(draw(plain_text()))
        elif kind == "action" or max_depth == 0:
            parts.append(draw(actions(allow_trim=allow_trim)))
        else:
            field = draw(st.sampled_from(FIELD_NAMES))
            body = draw(templates(max_depth=max_depth - 1, allow_trim=allow_trim))
            if draw(st.booleans()):
                else_body = draw(templates(max_depth=max_depth - 1, allow_trim=allow_trim))
                parts.append(f"{{{{{kind} .{field}}}}}{body}{{{{else}}}}{else_body}{{{{end}}}}")
            else:
                parts.append(f"{{{{{kind} .{field}}}}}{body}{{{{end}}}}")
    return "".join(parts)


@composite
def template_data(draw: st.DrawFn) -> dict[str, object]:
    """Data mappings keyed by FIELD_NAMES."""
    return {
        "Name": draw(st.text(alphabet=string.ascii_letters, max_size=10)),
        "Count": draw(st.integers(min_value=-5, max_value=5)),
        "Items": draw(st.lists(st.integers(min_value=0, max_value=9), max_size=4)),
        "Flag": draw(st.booleans()),
        "Title": draw(st.one_of(st.none(), st.text(alphabet=string.ascii_letters, max_size=5))),
    }


def whitespace() -> st.SearchStrategy[str]:
    """Runs of the whitespace characters trim markers remove."""
    return st.text(alphabet=" \t\r\n", max_size=6)
