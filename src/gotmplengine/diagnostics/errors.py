"""Template exception hierarchy with structured diagnostics.

Every failure the engine raises derives from TemplateError, so callers can
catch one type, yet the three user-facing categories stay distinguishable:
invalid template text, missing template, and failed execution.

Python 3.13+. Zero external dependencies.
"""

from .codes import Diagnostic


class TemplateError(Exception):
    """Base exception for all template errors.

    Attributes:
        diagnostic: Structured diagnostic information (optional)
    """

    def __init__(self, message: str | Diagnostic) -> None:
        """Initialize TemplateError.

        Args:
            message: Error message string OR Diagnostic object
        """
        if isinstance(message, Diagnostic):
            self.diagnostic: Diagnostic | None = message
            super().__init__(message.message)
        else:
            self.diagnostic = None
            super().__init__(message)

    @property
    def message(self) -> str:
        """Human-readable message without diagnostic decoration."""
        return str(self.args[0]) if self.args else ""


class TemplateSyntaxError(TemplateError):
    """Malformed template text, raised by the lexer/parser pipeline.

    Covers both lexical faults (bad character, unterminated string) and
    structural faults (unbalanced blocks, unexpected tokens).

    Attributes:
        line: 1-indexed line of the fault, when known
        column: 1-indexed column of the fault, when known
    """

    def __init__(
        self,
        message: str | Diagnostic,
        *,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        super().__init__(message)
        span = self.diagnostic.span if self.diagnostic is not None else None
        self.line = line if line is not None else (span.line if span else None)
        self.column = column if column is not None else (span.column if span else None)


class TemplateParseError(TemplateError):
    """Loading a template failed because its text is invalid.

    Raised by the Template/TemplateFactory facade. The underlying
    TemplateSyntaxError is available as ``__cause__``.
    """


class TemplateNotFoundError(TemplateError):
    """Requested template name is not registered."""

    def __init__(self, message: str | Diagnostic, *, name: str | None = None) -> None:
        super().__init__(message)
        self.name = name


class TemplateExecutionError(TemplateError):
    """Runtime failure while rendering a template.

    Examples:
    - Reading an undeclared variable
    - Calling an unknown or failing function
    - Ranging over a value that is not iterable
    - Invoking an undefined template with {{template}}
    """


class TemplateFunctionError(TemplateExecutionError):
    """Failure raised deliberately by a template function (fail, required)."""
