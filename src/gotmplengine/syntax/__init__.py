"""Template syntax package.

Provides the lexer, parser, AST definitions and serialization.
Separate from runtime so tooling can inspect templates without executing them.

Python 3.13+.
"""

from .ast import (
    ActionNode,
    BoolNode,
    BranchNode,
    ChainNode,
    CommandNode,
    CommentNode,
    DotNode,
    FieldNode,
    IdentifierNode,
    IfNode,
    ListNode,
    NilNode,
    Node,
    NumberNode,
    PipeNode,
    RangeNode,
    RootRegistry,
    Statement,
    StringNode,
    TemplateNode,
    TextNode,
    VariableNode,
    WithNode,
)
from .lexer import Lexer, lex
from .parser import Parser, is_empty_tree, parse
from .serializer import serialize
from .tokens import LineOffsetCache, Token
from .unquote import unescape, unquote

__all__ = [
    "ActionNode",
    "BoolNode",
    "BranchNode",
    "ChainNode",
    "CommandNode",
    "CommentNode",
    "DotNode",
    "FieldNode",
    "IdentifierNode",
    "IfNode",
    "Lexer",
    "LineOffsetCache",
    "ListNode",
    "NilNode",
    "Node",
    "NumberNode",
    "Parser",
    "PipeNode",
    "RangeNode",
    "RootRegistry",
    "Statement",
    "StringNode",
    "TemplateNode",
    "TextNode",
    "Token",
    "VariableNode",
    "WithNode",
    "is_empty_tree",
    "lex",
    "parse",
    "serialize",
    "unescape",
    "unquote",
]
