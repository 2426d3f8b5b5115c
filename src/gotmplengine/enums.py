"""Enumerations for GoTmplEngine type-safe constants.

Uses StrEnum for automatic string conversion.
StrEnum members are strings themselves, so they print and compare naturally.

Python 3.13+.
"""

from enum import StrEnum


class TokenKind(StrEnum):
    """Kind of lexical token produced by the lexer.

    StrEnum provides automatic string conversion: str(TokenKind.PIPE) == "pipe"
    """

    TEXT = "text"
    """Plain text outside actions"""

    LEFT_DELIM = "left_delim"
    RIGHT_DELIM = "right_delim"
    LEFT_PAREN = "left_paren"
    RIGHT_PAREN = "right_paren"
    PIPE = "pipe"
    ASSIGN = "assign"
    """Rebinding a variable: ="""

    DECLARE = "declare"
    """Declaring a variable: :="""

    SPACE = "space"
    """Run of whitespace inside an action"""

    FIELD = "field"
    """Field access: .Name"""

    VARIABLE = "variable"
    """Variable reference: $x or bare $"""

    IDENTIFIER = "identifier"
    STRING = "string"
    RAW_STRING = "raw_string"
    CHAR_CONSTANT = "char_constant"
    NUMBER = "number"
    COMPLEX = "complex"
    BOOL = "bool"
    CHAR = "char"
    """Any other printable ASCII character (e.g. a comma)"""

    COMMENT = "comment"
    ERROR = "error"
    EOF = "eof"

    # Keywords
    DOT = "dot"
    NIL = "nil"
    IF = "if"
    ELSE = "else"
    END = "end"
    RANGE = "range"
    WITH = "with"
    TEMPLATE = "template"
    DEFINE = "define"
    BLOCK = "block"

    @property
    def is_keyword(self) -> bool:
        """True for reserved words (including the lone dot)."""
        return self in _KEYWORD_KINDS


_KEYWORD_KINDS = frozenset({
    TokenKind.DOT,
    TokenKind.NIL,
    TokenKind.IF,
    TokenKind.ELSE,
    TokenKind.END,
    TokenKind.RANGE,
    TokenKind.WITH,
    TokenKind.TEMPLATE,
    TokenKind.DEFINE,
    TokenKind.BLOCK,
})


class PipeContext(StrEnum):
    """Syntactic position a pipeline was parsed in.

    Used for error messages and for serialization of the enclosing node.
    """

    ACTION = "action"
    IF = "if"
    RANGE = "range"
    WITH = "with"
    TEMPLATE = "template"
    BLOCK = "block"
    PAREN = "parenthesized pipeline"


__all__ = [
    "PipeContext",
    "TokenKind",
]
