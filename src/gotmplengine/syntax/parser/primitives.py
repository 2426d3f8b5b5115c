"""Literal conversion for the parser.

Turns NUMBER, COMPLEX, CHAR_CONSTANT, STRING and RAW_STRING tokens into
operand nodes. Conversion failures raise ValueError; the parser turns them
into positioned syntax errors.

Python 3.13+. Zero external dependencies.
"""

from gotmplengine.enums import TokenKind
from gotmplengine.syntax.ast import NumberNode, StringNode
from gotmplengine.syntax.tokens import Token
from gotmplengine.syntax.unquote import unquote, unquote_char

__all__ = ["number_node", "parse_int_literal", "string_node"]

_PREFIXED = ("0x", "0o", "0b")


def _split_sign(text: str) -> tuple[int, str]:
    if text[:1] == "-":
        return -1, text[1:]
    if text[:1] == "+":
        return 1, text[1:]
    return 1, text


def parse_int_literal(text: str) -> int | None:
    """Parse an integer literal in any supported base.

    A leading zero without a base letter means octal, as in "017" == 15.

    Returns:
        The integer, or None when the text is not an integer literal
    """
    sign, body = _split_sign(text)
    if not body:
        return None
    try:
        if len(body) > 1 and body[0] == "0" and body[1:2].lower() not in ("x", "o", "b"):
            return sign * int(body[1:].lstrip("_") or "0", 8)
        return sign * int(body, 0)
    except ValueError:
        return None


def _parse_float_literal(text: str) -> float | None:
    sign, body = _split_sign(text)
    body = body.replace("_", "")
    try:
        if body[:2].lower() == "0x":
            return sign * float.fromhex(body)
        if body[:2].lower() in _PREFIXED:
            return None
        return sign * float(body)
    except ValueError:
        return None


def number_node(token: Token) -> NumberNode:
    """Build a NumberNode from a numeric or character-constant token.

    Raises:
        ValueError: If the literal cannot be represented
    """
    text = token.text
    if token.kind is TokenKind.CHAR_CONSTANT:
        code = unquote_char(text)
        return NumberNode(
            text, int_value=code, float_value=float(code), is_char=True, pos=token.offset
        )
    if token.kind is TokenKind.COMPLEX:
        return NumberNode(text, complex_value=complex(text[:-1].replace("_", "") + "j"), pos=token.offset)
    if text.endswith("i"):
        imaginary = _parse_float_literal(text[:-1])
        if imaginary is None:
            msg = f"illegal number syntax: {text!r}"
            raise ValueError(msg)
        return NumberNode(text, complex_value=complex(0, imaginary), pos=token.offset)

    int_value = parse_int_literal(text)
    float_value = float(int_value) if int_value is not None else _parse_float_literal(text)
    if int_value is None and float_value is None:
        msg = f"illegal number syntax: {text!r}"
        raise ValueError(msg)
    return NumberNode(text, int_value=int_value, float_value=float_value, pos=token.offset)


def string_node(token: Token) -> StringNode:
    """Build a StringNode from a quoted or raw string token."""
    return StringNode(token.text, unquote(token.text), pos=token.offset)
