"""Template parser package.

Module Organization:
- core.py: Parser class, grammar rules and the parse() entry point
- primitives.py: Literal conversion (numbers, strings, character constants)

Public API:
    Parser: Token stream to root registry
    parse: Lex and parse template text in one call
    is_empty_tree: Whitespace-only body test used when merging registries
"""

from gotmplengine.syntax.parser.core import Parser, is_empty_tree, parse

__all__ = ["Parser", "is_empty_tree", "parse"]
