"""GoTmplEngine - Go text/template engine with the Sprig/Helm function library.

Lexes, parses and executes templates written in Go's text/template
language: trim markers, pipelines, variables, if/range/with, define/block
and template invocation, with the function set Helm charts rely on.

Public API:
    Template - Named handle on a template set (parse, execute, render)
    TemplateFactory - Template set with shared functions and options
    lex - Tokenize template text
    parse - Parse template text into a name -> body mapping
    serialize - Render an AST node back to template text
    create_default_registry - Fresh registry with the standard library
    get_shared_registry - Shared frozen registry with the standard library

Exceptions:
    TemplateError - Base exception class
    TemplateSyntaxError - Lexing/parsing errors
    TemplateParseError - Facade-level parse failure (wraps TemplateSyntaxError)
    TemplateNotFoundError - Unknown template name
    TemplateExecutionError - Runtime errors
    TemplateFunctionError - Errors raised deliberately by template functions

Submodules:
    gotmplengine.syntax.ast - AST node types
    gotmplengine.library - Function library and resource providers
    gotmplengine.diagnostics - Diagnostic codes and formatting
"""

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _get_version

from .core.depth_guard import DepthLimitExceededError
from .diagnostics import (
    TemplateError,
    TemplateExecutionError,
    TemplateFunctionError,
    TemplateNotFoundError,
    TemplateParseError,
    TemplateSyntaxError,
)
from .library import (
    ResourceProvider,
    StaticResourceProvider,
    create_default_registry,
    get_shared_registry,
)
from .runtime import FunctionRegistry
from .runtime.template import Template, TemplateFactory
from .syntax import lex, parse, serialize

# Version information - auto-populated from package metadata
try:
    __version__ = _get_version("gotmplengine")
except PackageNotFoundError:
    # Development mode: package not installed yet
    __version__ = "0.0.0+dev"

__all__ = [
    "DepthLimitExceededError",
    "FunctionRegistry",
    "ResourceProvider",
    "StaticResourceProvider",
    "Template",
    "TemplateError",
    "TemplateExecutionError",
    "TemplateFactory",
    "TemplateFunctionError",
    "TemplateNotFoundError",
    "TemplateParseError",
    "TemplateSyntaxError",
    "__version__",
    "create_default_registry",
    "get_shared_registry",
    "lex",
    "parse",
    "serialize",
]
