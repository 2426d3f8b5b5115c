"""Template lexer: source text to token stream.

Hand-written state machine. Each state is a bound method that consumes
input, emits zero or more tokens and returns the next state, or None to
stop. Lexing never raises: malformed input ends the stream with a single
ERROR token whose text is "<message> at line L, column C".

Whitespace control follows the template language exactly:
    "{{- " trims all whitespace immediately before the action,
    " -}}" trims all whitespace immediately after it.
The trim marker must be separated from the action body by whitespace,
so "{{-3}}" is the number -3 rather than a trimmed 3.

Python 3.13+. Zero external dependencies.
"""

from collections.abc import Callable, Collection

from gotmplengine.constants import (
    DEFAULT_LEFT_COMMENT,
    DEFAULT_LEFT_DELIM,
    DEFAULT_RIGHT_COMMENT,
    DEFAULT_RIGHT_DELIM,
    TRIM_MARKER,
)
from gotmplengine.core.chars import (
    BINARY_DIGITS,
    DECIMAL_DIGITS,
    HEX_DIGITS,
    OCTAL_DIGITS,
    is_alphanumeric,
    is_digit,
    is_printable_ascii,
    is_space,
)
from gotmplengine.enums import TokenKind

from .tokens import LineOffsetCache, Token

__all__ = ["KEYWORDS", "Lexer", "lex"]

type _StateFn = Callable[[], _StateFn | None]

KEYWORDS: dict[str, TokenKind] = {
    ".": TokenKind.DOT,
    "block": TokenKind.BLOCK,
    "define": TokenKind.DEFINE,
    "else": TokenKind.ELSE,
    "end": TokenKind.END,
    "if": TokenKind.IF,
    "nil": TokenKind.NIL,
    "range": TokenKind.RANGE,
    "template": TokenKind.TEMPLATE,
    "with": TokenKind.WITH,
}

# Length of " -" / "- " around a trimmed delimiter.
_TRIM_LEN = 2

_WHITESPACE = " \t\r\n"


class Lexer:
    """Single-use tokenizer for one template source.

    Example:
        >>> [t.kind.value for t in Lexer("a{{.B}}").tokenize()]
        ['text', 'left_delim', 'field', 'right_delim', 'eof']
    """

    __slots__ = (
        "_keep_comments",
        "_left_comment",
        "_left_delim",
        "_lines",
        "_paren_depth",
        "_pos",
        "_right_comment",
        "_right_delim",
        "_source",
        "_start",
        "_tokens",
        "_width",
    )

    def __init__(
        self,
        source: str,
        *,
        keep_comments: bool = False,
        left_delim: str = DEFAULT_LEFT_DELIM,
        right_delim: str = DEFAULT_RIGHT_DELIM,
        left_comment: str = DEFAULT_LEFT_COMMENT,
        right_comment: str = DEFAULT_RIGHT_COMMENT,
    ) -> None:
        self._source = source
        self._keep_comments = keep_comments
        self._left_delim = left_delim or DEFAULT_LEFT_DELIM
        self._right_delim = right_delim or DEFAULT_RIGHT_DELIM
        self._left_comment = left_comment or DEFAULT_LEFT_COMMENT
        self._right_comment = right_comment or DEFAULT_RIGHT_COMMENT
        self._lines = LineOffsetCache(source)
        self._tokens: list[Token] = []
        self._start = 0
        self._pos = 0
        self._width = 0
        self._paren_depth = 0

    def tokenize(self) -> list[Token]:
        """Run the state machine to completion.

        Returns:
            Tokens in source order, ending with EOF or ERROR
        """
        state: _StateFn | None = self._lex_text
        while state is not None:
            state = state()
        return self._tokens

    # ------------------------------------------------------------------
    # Scanner primitives
    # ------------------------------------------------------------------

    def _next(self) -> str:
        if self._pos >= len(self._source):
            self._width = 0
            return ""
        char = self._source[self._pos]
        self._width = 1
        self._pos += 1
        return char

    def _peek(self) -> str:
        if self._pos >= len(self._source):
            return ""
        return self._source[self._pos]

    def _backup(self) -> None:
        self._pos -= self._width
        self._width = 0

    def _accept(self, valid: Collection[str]) -> bool:
        char = self._peek()
        if char and char in valid:
            self._pos += 1
            return True
        return False

    def _accept_run(self, valid: Collection[str]) -> None:
        while self._accept(valid):
            pass

    def _emit(self, kind: TokenKind) -> None:
        line, column = self._lines.get_line_col(self._start)
        text = self._source[self._start : self._pos]
        self._tokens.append(Token(kind, text, self._start, line, column))
        self._start = self._pos

    def _ignore(self) -> None:
        self._start = self._pos

    def _errorf(self, message: str) -> None:
        line, column = self._lines.get_line_col(self._pos)
        text = f"{message} at line {line}, column {column}"
        self._tokens.append(Token(TokenKind.ERROR, text, self._pos, line, column))
        return None

    # ------------------------------------------------------------------
    # Delimiter and trim-marker checks
    # ------------------------------------------------------------------

    def _has_left_trim_marker(self, pos: int) -> bool:
        src = self._source
        return (
            pos + 1 < len(src)
            and src[pos] == TRIM_MARKER
            and is_space(src[pos + 1])
        )

    def _has_right_trim_marker(self, pos: int) -> bool:
        src = self._source
        return (
            pos >= 0
            and pos + 1 < len(src)
            and is_space(src[pos])
            and src[pos + 1] == TRIM_MARKER
        )

    def _at_right_delim(self) -> tuple[bool, bool]:
        """Return (at delimiter, delimiter is trim-marked)."""
        if self._has_right_trim_marker(self._pos) and self._source.startswith(
            self._right_delim, self._pos + _TRIM_LEN
        ):
            return True, True
        if self._source.startswith(self._right_delim, self._pos):
            return True, False
        return False, False

    def _at_terminator(self) -> bool:
        """Whether the next character can end a word."""
        char = self._peek()
        if not char or is_space(char) or char in ".,|:()":
            return True
        return self._source.startswith(self._right_delim, self._pos)

    def _leading_space_length(self, pos: int) -> int:
        src = self._source
        end = pos
        while end < len(src) and src[end] in _WHITESPACE:
            end += 1
        return end - pos

    # ------------------------------------------------------------------
    # States outside actions
    # ------------------------------------------------------------------

    def _lex_text(self) -> _StateFn | None:
        src = self._source
        found = src.find(self._left_delim, self._pos)
        if found < 0:
            self._pos = len(src)
            if self._pos > self._start:
                self._emit(TokenKind.TEXT)
            self._emit(TokenKind.EOF)
            return None
        if found > self._pos:
            self._pos = found
            trim = 0
            if self._has_left_trim_marker(found + len(self._left_delim)):
                text = src[self._start : found]
                trim = len(text) - len(text.rstrip(_WHITESPACE))
            self._pos -= trim
            if self._pos > self._start:
                self._emit(TokenKind.TEXT)
            self._pos += trim
            self._ignore()
        return self._lex_left_delim

    def _lex_left_delim(self) -> _StateFn | None:
        self._pos += len(self._left_delim)
        after_marker = _TRIM_LEN if self._has_left_trim_marker(self._pos) else 0
        if self._source.startswith(self._left_comment, self._pos + after_marker):
            self._pos += after_marker
            self._ignore()
            return self._lex_comment
        self._emit(TokenKind.LEFT_DELIM)
        self._pos += after_marker
        self._ignore()
        self._paren_depth = 0
        return self._lex_inside_action

    def _lex_comment(self) -> _StateFn | None:
        self._pos += len(self._left_comment)
        found = self._source.find(self._right_comment, self._pos)
        if found < 0:
            self._pos = len(self._source)
            return self._errorf("unclosed comment")
        self._pos = found + len(self._right_comment)
        delim, trim = self._at_right_delim()
        if not delim:
            return self._errorf("comment closed leaving delim still open")
        if self._keep_comments:
            self._emit(TokenKind.COMMENT)
        if trim:
            self._pos += _TRIM_LEN
        self._pos += len(self._right_delim)
        if trim:
            self._pos += self._leading_space_length(self._pos)
        self._ignore()
        return self._lex_text

    def _lex_right_delim(self) -> _StateFn | None:
        _, trim = self._at_right_delim()
        if trim:
            self._pos += _TRIM_LEN
            self._ignore()
        self._pos += len(self._right_delim)
        self._emit(TokenKind.RIGHT_DELIM)
        if trim:
            self._pos += self._leading_space_length(self._pos)
            self._ignore()
        return self._lex_text

    # ------------------------------------------------------------------
    # States inside actions
    # ------------------------------------------------------------------

    def _lex_inside_action(self) -> _StateFn | None:  # noqa: PLR0911, PLR0912
        delim, _ = self._at_right_delim()
        if delim:
            if self._paren_depth == 0:
                return self._lex_right_delim
            return self._errorf("unclosed left paren")

        char = self._next()
        match char:
            case "":
                return self._errorf("unclosed action")
            case _ if is_space(char):
                self._backup()
                return self._lex_space
            case "=":
                self._emit(TokenKind.ASSIGN)
            case ":":
                if self._next() != "=":
                    return self._errorf("expected :=")
                self._emit(TokenKind.DECLARE)
            case "|":
                self._emit(TokenKind.PIPE)
            case '"':
                return self._lex_quote
            case "`":
                return self._lex_raw_quote
            case "$":
                return self._lex_variable
            case "'":
                return self._lex_char
            case ".":
                if not is_digit(self._peek()):
                    return self._lex_field
                self._backup()
                return self._lex_number
            case "+" | "-":
                following = self._peek()
                if not (is_digit(following) or following == "."):
                    return self._errorf(f"bad number syntax: {char!r}")
                self._backup()
                return self._lex_number
            case _ if is_digit(char):
                self._backup()
                return self._lex_number
            case _ if is_alphanumeric(char):
                self._backup()
                return self._lex_identifier
            case "(":
                self._paren_depth += 1
                self._emit(TokenKind.LEFT_PAREN)
            case ")":
                self._paren_depth -= 1
                if self._paren_depth < 0:
                    return self._errorf("unexpected right paren")
                self._emit(TokenKind.RIGHT_PAREN)
            case _ if is_printable_ascii(char):
                self._emit(TokenKind.CHAR)
            case _:
                return self._errorf(f"bad character in action: {char!r}")
        return self._lex_inside_action

    def _lex_space(self) -> _StateFn | None:
        spaces = 0
        while is_space(self._peek()):
            self._next()
            spaces += 1
        # A trim-marked closing delimiter starts with a space: leave it for
        # the right-delimiter state.
        if self._has_right_trim_marker(self._pos - 1) and self._source.startswith(
            self._right_delim, self._pos - 1 + _TRIM_LEN
        ):
            self._pos -= 1
            if spaces == 1:
                return self._lex_right_delim
        self._emit(TokenKind.SPACE)
        return self._lex_inside_action

    def _lex_quote(self) -> _StateFn | None:
        while True:
            char = self._next()
            if char == "\\":
                char = self._next()
                if char not in ("", "\n"):
                    continue
                return self._errorf("unterminated quoted string")
            if char in ("", "\n"):
                return self._errorf("unterminated quoted string")
            if char == '"':
                break
        self._emit(TokenKind.STRING)
        return self._lex_inside_action

    def _lex_raw_quote(self) -> _StateFn | None:
        found = self._source.find("`", self._pos)
        if found < 0:
            self._pos = len(self._source)
            return self._errorf("unclosed raw quote")
        self._pos = found + 1
        self._emit(TokenKind.RAW_STRING)
        return self._lex_inside_action

    def _lex_char(self) -> _StateFn | None:
        while True:
            char = self._next()
            if char == "\\":
                char = self._next()
                if char not in ("", "\n"):
                    continue
                return self._errorf("unclosed character constant")
            if char in ("", "\n"):
                return self._errorf("unclosed character constant")
            if char == "'":
                break
        self._emit(TokenKind.CHAR_CONSTANT)
        return self._lex_inside_action

    def _lex_variable(self) -> _StateFn | None:
        return self._lex_field_or_variable(TokenKind.VARIABLE)

    def _lex_field(self) -> _StateFn | None:
        return self._lex_field_or_variable(TokenKind.FIELD)

    def _lex_field_or_variable(self, kind: TokenKind) -> _StateFn | None:
        if self._at_terminator():
            # Bare "$" or "."
            self._emit(TokenKind.VARIABLE if kind is TokenKind.VARIABLE else TokenKind.DOT)
            return self._lex_inside_action
        while True:
            char = self._next()
            if not is_alphanumeric(char):
                self._backup()
                break
        if not self._at_terminator():
            return self._errorf(f"bad character {self._peek()!r}")
        self._emit(kind)
        return self._lex_inside_action

    def _lex_identifier(self) -> _StateFn | None:
        while is_alphanumeric(self._peek()):
            self._next()
        if not self._at_terminator():
            return self._errorf(f"bad character {self._peek()!r}")
        word = self._source[self._start : self._pos]
        if word in KEYWORDS:
            self._emit(KEYWORDS[word])
        elif word in ("true", "false"):
            self._emit(TokenKind.BOOL)
        else:
            self._emit(TokenKind.IDENTIFIER)
        return self._lex_inside_action

    def _lex_number(self) -> _StateFn | None:
        if not self._scan_number():
            return self._errorf(f"bad number syntax: {self._source[self._start : self._pos]!r}")
        if self._peek() in ("+", "-"):
            # Complex literal such as 1+2i: no spaces, must end in "i".
            if not self._scan_number() or self._source[self._pos - 1] != "i":
                return self._errorf(f"bad number syntax: {self._source[self._start : self._pos]!r}")
            self._emit(TokenKind.COMPLEX)
        else:
            self._emit(TokenKind.NUMBER)
        return self._lex_inside_action

    def _scan_number(self) -> bool:
        self._accept("+-")
        digits = DECIMAL_DIGITS
        if self._accept("0"):
            if self._accept("xX"):
                digits = HEX_DIGITS
            elif self._accept("oO"):
                digits = OCTAL_DIGITS
            elif self._accept("bB"):
                digits = BINARY_DIGITS
        self._accept_run(digits)
        if self._accept("."):
            self._accept_run(digits)
        if digits is DECIMAL_DIGITS and self._accept("eE"):
            self._accept("+-")
            self._accept_run(DECIMAL_DIGITS)
        if digits is HEX_DIGITS and self._accept("pP"):
            self._accept("+-")
            self._accept_run(DECIMAL_DIGITS)
        self._accept("i")
        if is_alphanumeric(self._peek()):
            self._next()
            return False
        return True


def lex(
    source: str,
    keep_comments: bool = False,
    left_delim: str = DEFAULT_LEFT_DELIM,
    right_delim: str = DEFAULT_RIGHT_DELIM,
    left_comment: str = DEFAULT_LEFT_COMMENT,
    right_comment: str = DEFAULT_RIGHT_COMMENT,
) -> list[Token]:
    """Tokenize template source.

    Args:
        source: Template text
        keep_comments: Emit COMMENT tokens instead of dropping comments
        left_delim: Action opening delimiter
        right_delim: Action closing delimiter
        left_comment: Comment opening marker
        right_comment: Comment closing marker

    Returns:
        Tokens in source order. The last token is EOF, or ERROR when the
        input is malformed.

    Example:
        >>> [t.text for t in lex("{{ 0x1A }}")]
        ['{{', ' ', '0x1A', ' ', '}}', '']
    """
    return Lexer(
        source,
        keep_comments=keep_comments,
        left_delim=left_delim,
        right_delim=right_delim,
        left_comment=left_comment,
        right_comment=right_comment,
    ).tokenize()
