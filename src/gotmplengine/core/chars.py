"""Character classification helpers for the lexer.

Pure predicates over single characters. The template language treats only
ASCII space, tab, carriage return and newline as whitespace, and accepts
Unicode letters and decimal digits in identifiers.

Python 3.13+.
"""

__all__ = [
    "BINARY_DIGITS",
    "DECIMAL_DIGITS",
    "HEX_DIGITS",
    "OCTAL_DIGITS",
    "is_alphanumeric",
    "is_digit",
    "is_printable_ascii",
    "is_space",
]

# Digit sets include "_" because numeric literals allow digit separators.
DECIMAL_DIGITS = frozenset("0123456789_")
HEX_DIGITS = frozenset("0123456789abcdefABCDEF_")
OCTAL_DIGITS = frozenset("01234567_")
BINARY_DIGITS = frozenset("01_")


def is_space(char: str) -> bool:
    """Whitespace that may separate tokens inside an action."""
    return char in (" ", "\t", "\r", "\n")


def is_digit(char: str) -> bool:
    """ASCII decimal digit."""
    return "0" <= char <= "9"


def is_alphanumeric(char: str) -> bool:
    """Character allowed inside identifiers, fields and variable names."""
    return char == "_" or char.isalpha() or char.isdecimal()


def is_printable_ascii(char: str) -> bool:
    """Visible ASCII character (space through tilde)."""
    return " " <= char <= "~"
