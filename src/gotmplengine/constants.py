"""Shared constants for GoTmplEngine.

Centralized limits and defaults used across the syntax and runtime
packages. Placing them here avoids circular imports between the lexer,
parser, executor and facade.

Constants are grouped by domain:
- Delimiters: default action and comment markers
- Depth limits: recursion protection for parsing and execution
- Input limits: size constraints on template source

Python 3.13+. Zero external dependencies.
"""

# ruff: noqa: RUF022 - __all__ organized by category for readability
__all__ = [
    # Delimiters
    "DEFAULT_LEFT_DELIM",
    "DEFAULT_RIGHT_DELIM",
    "DEFAULT_LEFT_COMMENT",
    "DEFAULT_RIGHT_COMMENT",
    "TRIM_MARKER",
    # Depth limits
    "MAX_DEPTH",
    # Input limits
    "MAX_SOURCE_SIZE",
    "LOG_EXCERPT_LENGTH",
    # Naming
    "INLINE_TEMPLATE_NAME",
    "ROOT_VARIABLE",
]

# ============================================================================
# DELIMITERS
# ============================================================================

DEFAULT_LEFT_DELIM: str = "{{"
DEFAULT_RIGHT_DELIM: str = "}}"
DEFAULT_LEFT_COMMENT: str = "/*"
DEFAULT_RIGHT_COMMENT: str = "*/"

# A trim marker is only recognized when separated from the action body by
# whitespace: "{{- x" trims, "{{-3}}" is the number -3.
TRIM_MARKER: str = "-"

# ============================================================================
# DEPTH LIMITS
# ============================================================================

# Shared by the parser (block nesting, parenthesized pipelines) and the
# executor (nested {{template}} / include calls). Recursive templates such as
# tree walkers legitimately nest, but 100 levels is already far beyond any
# real chart or page template.
MAX_DEPTH: int = 100

# ============================================================================
# INPUT LIMITS
# ============================================================================

# Maximum template source size in characters (10 MiB).
MAX_SOURCE_SIZE: int = 10 * 1024 * 1024

# Parse failures log at most this many characters of the offending source.
LOG_EXCERPT_LENGTH: int = 100

# ============================================================================
# NAMING
# ============================================================================

# Name bound to text parsed by the tpl function.
INLINE_TEMPLATE_NAME: str = "inline"

# Distinguished variable bound to the root data object.
ROOT_VARIABLE: str = "$"
