"""Diagnostic formatting service.

Centralizes diagnostic output formatting with configurable options.
Python 3.13+. Zero external dependencies.
"""

import json
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum

from .codes import Diagnostic

__all__ = [
    "DiagnosticFormatter",
    "OutputFormat",
]


class OutputFormat(StrEnum):
    """Output format options for diagnostic formatting."""

    RUST = "rust"  # Compiler-style multi-line output (default)
    SIMPLE = "simple"  # Single-line format
    JSON = "json"  # JSON format for tooling integration


def _escape_control(text: str) -> str:
    """Escape control characters so template text cannot forge log lines."""
    return text.replace("\r", "\\r").replace("\n", "\\n").replace("\x1b", "\\x1b")


@dataclass(frozen=True, slots=True)
class DiagnosticFormatter:
    """Diagnostic formatting service.

    Attributes:
        output_format: Output style (rust, simple, json)
        sanitize: Truncate messages to max_content_length
        max_content_length: Maximum message length when sanitizing

    Example:
        >>> from gotmplengine.diagnostics import ErrorTemplate
        >>> formatter = DiagnosticFormatter(output_format=OutputFormat.SIMPLE)
        >>> print(formatter.format(ErrorTemplate.undefined_variable("$x")))
        UNDEFINED_VARIABLE: undefined variable: $x
    """

    output_format: OutputFormat = OutputFormat.RUST
    sanitize: bool = False
    max_content_length: int = 100

    def format(self, diagnostic: Diagnostic) -> str:
        """Format a single diagnostic."""
        match self.output_format:
            case OutputFormat.RUST:
                return self._format_rust(diagnostic)
            case OutputFormat.SIMPLE:
                return self._format_simple(diagnostic)
            case OutputFormat.JSON:
                return self._format_json(diagnostic)

    def format_all(self, diagnostics: Iterable[Diagnostic]) -> str:
        """Format multiple diagnostics separated by blank lines."""
        return "\n\n".join(self.format(d) for d in diagnostics)

    def _message(self, diagnostic: Diagnostic) -> str:
        message = _escape_control(diagnostic.message)
        if self.sanitize and len(message) > self.max_content_length:
            message = message[: self.max_content_length] + "..."
        return message

    def _format_rust(self, diagnostic: Diagnostic) -> str:
        lines = [f"error[{diagnostic.code.name}]: {self._message(diagnostic)}"]
        location: list[str] = []
        if diagnostic.template_name is not None:
            location.append(f"template '{_escape_control(diagnostic.template_name)}'")
        if diagnostic.span is not None:
            location.append(f"line {diagnostic.span.line}, column {diagnostic.span.column}")
        if location:
            lines.append(f"  --> {', '.join(location)}")
        if diagnostic.function_name:
            lines.append(f"  = function: {diagnostic.function_name}")
        if diagnostic.hint:
            lines.append(f"  = help: {diagnostic.hint}")
        return "\n".join(lines)

    def _format_simple(self, diagnostic: Diagnostic) -> str:
        return f"{diagnostic.code.name}: {self._message(diagnostic)}"

    def _format_json(self, diagnostic: Diagnostic) -> str:
        data: dict[str, object] = {
            "code": diagnostic.code.name,
            "message": self._message(diagnostic),
        }
        if diagnostic.span is not None:
            data["line"] = diagnostic.span.line
            data["column"] = diagnostic.span.column
        if diagnostic.template_name is not None:
            data["template"] = diagnostic.template_name
        if diagnostic.function_name is not None:
            data["function"] = diagnostic.function_name
        if diagnostic.hint is not None:
            data["hint"] = diagnostic.hint
        return json.dumps(data, ensure_ascii=False)
