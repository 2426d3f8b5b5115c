"""String literal decoding.

Three quoting styles exist inside actions:
    "..."  interpreted string, backslash escapes processed
    '...'  character constant, same escapes, exactly one character
    `...`  raw string, no escapes, carriage returns removed

Unknown escape sequences are kept verbatim (backslash included) rather than
rejected, so Windows paths and regex snippets survive unchanged.

Python 3.13+. Zero external dependencies.
"""

__all__ = ["unescape", "unquote", "unquote_char"]

_SIMPLE_ESCAPES: dict[str, str] = {
    '"': '"',
    "'": "'",
    "\\": "\\",
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "a": "\a",
    "v": "\v",
}

# Escape letter -> number of hex digits that follow it.
_HEX_ESCAPES: dict[str, int] = {"x": 2, "u": 4, "U": 8}

_HEX = frozenset("0123456789abcdefABCDEF")
_OCT = frozenset("01234567")


def unescape(text: str) -> str:
    """Process backslash escape sequences in text.

    Example:
        >>> unescape(r"a\\tb\\q")
        'a\\tb\\\\q'
    """
    if "\\" not in text:
        return text
    out: list[str] = []
    i = 0
    length = len(text)
    while i < length:
        char = text[i]
        if char != "\\" or i + 1 >= length:
            out.append(char)
            i += 1
            continue
        code = text[i + 1]
        if code in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[code])
            i += 2
            continue
        if code in _HEX_ESCAPES:
            width = _HEX_ESCAPES[code]
            digits = text[i + 2 : i + 2 + width]
            if len(digits) == width and all(d in _HEX for d in digits):
                out.append(chr(int(digits, 16)))
                i += 2 + width
                continue
        elif code in _OCT:
            digits = text[i + 1 : i + 4]
            if len(digits) == 3 and all(d in _OCT for d in digits):
                out.append(chr(int(digits, 8)))
                i += 4
                continue
        out.append("\\")
        out.append(code)
        i += 2
    return "".join(out)


def unquote(literal: str) -> str:
    """Decode a quoted string token (including its quotes).

    Raises:
        ValueError: If the literal is not quoted
    """
    if len(literal) < 2 or literal[0] != literal[-1] or literal[0] not in "\"'`":
        msg = f"invalid quoted string: {literal!r}"
        raise ValueError(msg)
    body = literal[1:-1]
    if literal[0] == "`":
        return body.replace("\r", "")
    return unescape(body)


def unquote_char(literal: str) -> int:
    """Decode a character constant to its code point.

    Raises:
        ValueError: If the constant does not hold exactly one character
    """
    value = unquote(literal)
    if len(value) != 1:
        msg = f"malformed character constant: {literal}"
        raise ValueError(msg)
    return ord(value)
