"""Diagnostic system for template errors.

Provides structured error diagnostics with codes, spans and hints, plus the
exception hierarchy raised by the lexer, parser, executor and facade.

Python 3.13+. Zero external dependencies.
"""

from .codes import Diagnostic, DiagnosticCode, SourceSpan
from .errors import (
    TemplateError,
    TemplateExecutionError,
    TemplateFunctionError,
    TemplateNotFoundError,
    TemplateParseError,
    TemplateSyntaxError,
)
from .formatter import DiagnosticFormatter, OutputFormat
from .templates import ErrorTemplate

__all__ = [
    "Diagnostic",
    "DiagnosticCode",
    "DiagnosticFormatter",
    "ErrorTemplate",
    "OutputFormat",
    "SourceSpan",
    "TemplateError",
    "TemplateExecutionError",
    "TemplateFunctionError",
    "TemplateNotFoundError",
    "TemplateParseError",
    "TemplateSyntaxError",
]
