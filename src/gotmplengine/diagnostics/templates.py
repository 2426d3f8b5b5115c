"""Error message templates.

Centralized error message templates for testable, consistent error messages.
Python 3.13+. Zero external dependencies.
"""

from .codes import Diagnostic, DiagnosticCode, SourceSpan


def _span(offset: int, line: int, column: int) -> SourceSpan:
    return SourceSpan(start=offset, end=offset, line=line, column=column)


class ErrorTemplate:
    """Centralized error message templates.

    All error messages are created here. NO f-strings in exception
    constructors! Every factory returns a Diagnostic, which the exception
    classes accept directly.
    """

    # ------------------------------------------------------------------
    # Syntax
    # ------------------------------------------------------------------

    @staticmethod
    def lex_error(message: str, offset: int, line: int, column: int) -> Diagnostic:
        """Lexer produced an ERROR token.

        Args:
            message: Full text of the ERROR token (already positioned)
            offset: Character offset of the token
            line: 1-indexed line
            column: 1-indexed column

        Returns:
            Diagnostic for LEX_ERROR
        """
        return Diagnostic(
            code=DiagnosticCode.LEX_ERROR,
            message=message,
            span=_span(offset, line, column),
        )

    @staticmethod
    def unexpected_token(
        found: str, context: str, offset: int, line: int, column: int
    ) -> Diagnostic:
        """Token that cannot appear at this position.

        Args:
            found: Description of the offending token
            context: Construct being parsed (e.g. "if", "command")
            offset: Character offset of the token
            line: 1-indexed line
            column: 1-indexed column

        Returns:
            Diagnostic for UNEXPECTED_TOKEN
        """
        msg = f"unexpected {found} in {context} at line {line}, column {column}"
        return Diagnostic(
            code=DiagnosticCode.UNEXPECTED_TOKEN,
            message=msg,
            span=_span(offset, line, column),
        )

    @staticmethod
    def syntax_error(message: str, offset: int, line: int, column: int) -> Diagnostic:
        """Structural fault without a more specific code."""
        return Diagnostic(
            code=DiagnosticCode.UNEXPECTED_TOKEN,
            message=f"{message} at line {line}, column {column}",
            span=_span(offset, line, column),
        )

    @staticmethod
    def unexpected_eof(context: str, offset: int, line: int, column: int) -> Diagnostic:
        """Token stream ended in the middle of a construct."""
        msg = f"unexpected end of input in {context} at line {line}, column {column}"
        return Diagnostic(
            code=DiagnosticCode.UNEXPECTED_EOF,
            message=msg,
            span=_span(offset, line, column),
        )

    @staticmethod
    def unclosed_block(keyword: str, offset: int, line: int, column: int) -> Diagnostic:
        """Block construct reached end of input without {{end}}.

        Args:
            keyword: Opening keyword (if, range, with, define, block)
            offset: Character offset of the opening action
            line: Line of the opening action
            column: Column of the opening action

        Returns:
            Diagnostic for UNCLOSED_BLOCK
        """
        msg = (
            f"unexpected end of input: {{{{{keyword}}}}} opened at line {line}, "
            f"column {column} is never closed"
        )
        return Diagnostic(
            code=DiagnosticCode.UNCLOSED_BLOCK,
            message=msg,
            span=_span(offset, line, column),
            hint=f"Add {{{{end}}}} to close the {keyword} block",
        )

    @staticmethod
    def unexpected_end(offset: int, line: int, column: int) -> Diagnostic:
        """{{end}} with no open block."""
        msg = f"unmatched {{{{end}}}} at line {line}, column {column}"
        return Diagnostic(
            code=DiagnosticCode.UNEXPECTED_END,
            message=msg,
            span=_span(offset, line, column),
        )

    @staticmethod
    def unexpected_else(reason: str, offset: int, line: int, column: int) -> Diagnostic:
        """{{else}} outside if/range/with, or a second {{else}}."""
        msg = f"{reason} at line {line}, column {column}"
        return Diagnostic(
            code=DiagnosticCode.UNEXPECTED_ELSE,
            message=msg,
            span=_span(offset, line, column),
        )

    @staticmethod
    def function_not_defined(name: str, offset: int, line: int, column: int) -> Diagnostic:
        """Identifier in command position names no registered function."""
        msg = f'function "{name}" not defined at line {line}, column {column}'
        return Diagnostic(
            code=DiagnosticCode.FUNCTION_NOT_DEFINED,
            message=msg,
            span=_span(offset, line, column),
            hint="Register the function before parsing the template",
            function_name=name,
        )

    @staticmethod
    def missing_value(context: str, offset: int, line: int, column: int) -> Diagnostic:
        """Pipeline is required but absent (e.g. {{if}})."""
        msg = f"missing value for {context} at line {line}, column {column}"
        return Diagnostic(
            code=DiagnosticCode.MISSING_VALUE,
            message=msg,
            span=_span(offset, line, column),
        )

    @staticmethod
    def invalid_number(text: str, offset: int, line: int, column: int) -> Diagnostic:
        """Number literal that the lexer accepted but cannot be converted."""
        msg = f"illegal number syntax: {text!r} at line {line}, column {column}"
        return Diagnostic(
            code=DiagnosticCode.INVALID_NUMBER,
            message=msg,
            span=_span(offset, line, column),
        )

    @staticmethod
    def invalid_declaration(reason: str, offset: int, line: int, column: int) -> Diagnostic:
        """Malformed variable declaration list."""
        msg = f"{reason} at line {line}, column {column}"
        return Diagnostic(
            code=DiagnosticCode.INVALID_DECLARATION,
            message=msg,
            span=_span(offset, line, column),
        )

    @staticmethod
    def parse_depth_exceeded(max_depth: int) -> Diagnostic:
        """Block or parenthesis nesting exceeded the parser limit."""
        msg = f"maximum nesting depth ({max_depth}) exceeded"
        return Diagnostic(
            code=DiagnosticCode.PARSE_NESTING_DEPTH_EXCEEDED,
            message=msg,
            hint="Reduce nesting or raise max_nesting_depth",
        )

    @staticmethod
    def source_too_large(size: int, max_size: int) -> Diagnostic:
        """Template source exceeds the configured size limit."""
        msg = f"template source too large: {size} characters (limit {max_size})"
        return Diagnostic(
            code=DiagnosticCode.SOURCE_TOO_LARGE,
            message=msg,
            hint="Split the template or raise max_source_size",
        )

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    @staticmethod
    def template_not_found(name: str | None) -> Diagnostic:
        """Requested root is absent from the registry (facade wording)."""
        msg = f"Template '{name}' not found."
        return Diagnostic(
            code=DiagnosticCode.TEMPLATE_NOT_FOUND,
            message=msg,
            hint="Check that the template was parsed or defined before executing it",
            template_name=name,
        )

    @staticmethod
    def root_not_found(name: str) -> Diagnostic:
        """Executor was asked to run a root it does not know."""
        msg = f"template '{name}' not found"
        return Diagnostic(
            code=DiagnosticCode.TEMPLATE_NOT_FOUND,
            message=msg,
            template_name=name,
        )

    @staticmethod
    def template_not_defined(name: str, caller: str) -> Diagnostic:
        """{{template "name"}} refers to an unknown name at execution time."""
        msg = f"template {name} not defined"
        return Diagnostic(
            code=DiagnosticCode.TEMPLATE_NOT_DEFINED,
            message=msg,
            hint=f'Define it with {{{{define "{name}"}}}}',
            template_name=caller,
        )

    @staticmethod
    def template_parse_failed(name: str) -> Diagnostic:
        """Facade-level wrapper around a syntax error."""
        msg = f"Internal error during parsing of {name}"
        return Diagnostic(
            code=DiagnosticCode.TEMPLATE_PARSE_FAILED,
            message=msg,
            template_name=name,
        )

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    @staticmethod
    def undefined_variable(name: str) -> Diagnostic:
        """Variable read before any binding.

        Args:
            name: Variable name including the leading $

        Returns:
            Diagnostic for UNDEFINED_VARIABLE
        """
        msg = f"undefined variable: {name}"
        return Diagnostic(
            code=DiagnosticCode.UNDEFINED_VARIABLE,
            message=msg,
            hint=f"Declare it first: {{{{ {name} := ... }}}}",
        )

    @staticmethod
    def unknown_function(name: str) -> Diagnostic:
        """Function name not present in the registry at call time."""
        msg = f"{name} is not a defined function"
        return Diagnostic(
            code=DiagnosticCode.UNKNOWN_FUNCTION,
            message=msg,
            function_name=name,
        )

    @staticmethod
    def null_function(name: str) -> Diagnostic:
        """Name is registered but bound to None."""
        msg = f"call of null for {name}"
        return Diagnostic(
            code=DiagnosticCode.NULL_FUNCTION,
            message=msg,
            function_name=name,
        )

    @staticmethod
    def function_failed(name: str, reason: str) -> Diagnostic:
        """Template function raised an unexpected exception."""
        msg = f"error calling {name}: {reason}"
        return Diagnostic(
            code=DiagnosticCode.FUNCTION_FAILED,
            message=msg,
            function_name=name,
        )

    @staticmethod
    def invalid_argument(name: str, reason: str) -> Diagnostic:
        """Template function rejected one of its arguments."""
        msg = f"{name}: {reason}"
        return Diagnostic(
            code=DiagnosticCode.INVALID_ARGUMENT,
            message=msg,
            function_name=name,
        )

    @staticmethod
    def not_iterable(description: str) -> Diagnostic:
        """Range target is neither a sequence nor a mapping."""
        msg = f"can't iterate over {description}"
        return Diagnostic(
            code=DiagnosticCode.NOT_ITERABLE,
            message=msg,
        )

    @staticmethod
    def field_access_failed(field_name: str, reason: str) -> Diagnostic:
        """Property accessor raised while reading a field."""
        msg = f"can't get value '{field_name}' from data: {reason}"
        return Diagnostic(
            code=DiagnosticCode.FIELD_ACCESS_FAILED,
            message=msg,
        )

    @staticmethod
    def empty_command() -> Diagnostic:
        """Command node without arguments."""
        return Diagnostic(code=DiagnosticCode.EMPTY_COMMAND, message="empty command")

    @staticmethod
    def execution_depth_exceeded(max_depth: int) -> Diagnostic:
        """Nested template invocations exceeded the executor limit."""
        msg = f"exceeded maximum template depth ({max_depth})"
        return Diagnostic(
            code=DiagnosticCode.MAX_DEPTH_EXCEEDED,
            message=msg,
            hint="Check for a template that invokes itself without a base case",
        )

    @staticmethod
    def internal_index_error(template_name: str, reason: str) -> Diagnostic:
        """IndexError escaped evaluation of a template."""
        msg = f"Internal IndexOutOfBounds in '{template_name}': {reason}"
        return Diagnostic(
            code=DiagnosticCode.INTERNAL_INDEX_ERROR,
            message=msg,
            template_name=template_name,
        )

    @staticmethod
    def internal_error(template_name: str, reason: str) -> Diagnostic:
        """Unexpected exception escaped evaluation of a template."""
        msg = f"Execution error in '{template_name}': {reason}"
        return Diagnostic(
            code=DiagnosticCode.INTERNAL_ERROR,
            message=msg,
            template_name=template_name,
        )

    @staticmethod
    def field_has_arguments(field_name: str) -> Diagnostic:
        """Field reference in command position was given arguments."""
        msg = f"{field_name} is not a method but has arguments"
        return Diagnostic(
            code=DiagnosticCode.INVALID_ARGUMENT,
            message=msg,
            hint="Only functions accept arguments; fields are read as-is",
        )

    @staticmethod
    def non_function_arguments(operand: str) -> Diagnostic:
        """Literal or variable in command position was given arguments."""
        msg = f"can't give argument to non-function {operand}"
        return Diagnostic(
            code=DiagnosticCode.INVALID_ARGUMENT,
            message=msg,
        )

    @staticmethod
    def invalid_operand(operand: str) -> Diagnostic:
        """Node that cannot be evaluated as a value."""
        msg = f"can't evaluate {operand} as a value"
        return Diagnostic(
            code=DiagnosticCode.INTERNAL_ERROR,
            message=msg,
        )
