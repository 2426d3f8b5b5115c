"""Diagnostic codes and data structures.

Defines error codes, source spans, and diagnostic messages.
Python 3.13+. Zero external dependencies.
"""

from dataclasses import dataclass
from enum import Enum

__all__ = [
    "Diagnostic",
    "DiagnosticCode",
    "SourceSpan",
]


class DiagnosticCode(Enum):
    """Error codes with unique identifiers.

    Organized by category:
        1000-1999: Syntax errors (lexer and parser failures)
        2000-2999: Lookup errors (missing templates)
        3000-3999: Execution errors (runtime evaluation failures)
    """

    # Syntax errors (1000-1999)
    LEX_ERROR = 1001
    UNEXPECTED_TOKEN = 1002
    UNEXPECTED_EOF = 1003
    UNCLOSED_BLOCK = 1004
    UNEXPECTED_END = 1005
    UNEXPECTED_ELSE = 1006
    FUNCTION_NOT_DEFINED = 1007
    PARSE_NESTING_DEPTH_EXCEEDED = 1008
    SOURCE_TOO_LARGE = 1009
    MISSING_VALUE = 1010
    INVALID_NUMBER = 1011
    INVALID_DECLARATION = 1012

    # Lookup errors (2000-2999)
    TEMPLATE_NOT_FOUND = 2001
    TEMPLATE_NOT_DEFINED = 2002
    TEMPLATE_PARSE_FAILED = 2003

    # Execution errors (3000-3999)
    UNDEFINED_VARIABLE = 3001
    UNKNOWN_FUNCTION = 3002
    NULL_FUNCTION = 3003
    FUNCTION_FAILED = 3004
    NOT_ITERABLE = 3005
    FIELD_ACCESS_FAILED = 3006
    EMPTY_COMMAND = 3007
    MAX_DEPTH_EXCEEDED = 3008
    INTERNAL_INDEX_ERROR = 3009
    INTERNAL_ERROR = 3010
    INVALID_ARGUMENT = 3011


@dataclass(frozen=True, slots=True)
class SourceSpan:
    """Source code location for error reporting.

    Attributes:
        start: Starting character offset (0-indexed)
        end: Ending character offset (exclusive)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """

    start: int
    end: int
    line: int
    column: int

    def __post_init__(self) -> None:
        """Validate SourceSpan invariants.

        Raises:
            ValueError: If start is negative, end precedes start, or
                line/column is less than 1.
        """
        if self.start < 0:
            msg = f"SourceSpan.start must be >= 0, got {self.start}"
            raise ValueError(msg)
        if self.end < self.start:
            msg = f"SourceSpan.end ({self.end}) must be >= start ({self.start})"
            raise ValueError(msg)
        if self.line < 1:
            msg = f"SourceSpan.line must be >= 1 (1-indexed), got {self.line}"
            raise ValueError(msg)
        if self.column < 1:
            msg = f"SourceSpan.column must be >= 1 (1-indexed), got {self.column}"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """Structured diagnostic message.

    Attributes:
        code: Unique error code
        message: Human-readable error description
        span: Source location (None for runtime errors)
        hint: Suggestion for fixing the error
        template_name: Template in which the error occurred
        function_name: Template function involved, if any
    """

    code: DiagnosticCode
    message: str
    span: SourceSpan | None = None
    hint: str | None = None
    template_name: str | None = None
    function_name: str | None = None

    def __str__(self) -> str:
        """Return human-readable error description."""
        return self.message

    def format_error(self) -> str:
        """Format diagnostic in the multi-line compiler style.

        Example output:
            error[UNDEFINED_VARIABLE]: undefined variable: $x
              --> template 'page'
              = help: Declare the variable with := before using it

        Returns:
            Formatted error message
        """
        from .formatter import DiagnosticFormatter  # noqa: PLC0415 - circular

        return DiagnosticFormatter().format(self)
