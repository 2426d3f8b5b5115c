"""Serialize template AST back to template source.

Converts AST nodes to template text. Useful for:
- Debugging and error messages (``str(node)``)
- Tooling that rewrites templates
- Property-based testing (parse -> serialize -> parse)

The output uses the default delimiters and omits trim markers: trimming
already happened when the text nodes were produced.

Python 3.13+.
"""

from gotmplengine.constants import DEFAULT_LEFT_DELIM, DEFAULT_RIGHT_DELIM

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
    ListNode,
    NilNode,
    Node,
    NumberNode,
    PipeNode,
    StringNode,
    TemplateNode,
    TextNode,
    VariableNode,
)

__all__ = ["serialize"]

_L = DEFAULT_LEFT_DELIM
_R = DEFAULT_RIGHT_DELIM


def serialize(node: Node) -> str:
    """Render a node (and its subtree) as template text.

    Example:
        >>> from gotmplengine.syntax import parse
        >>> roots = parse("main", "{{if .A}}x{{else}}y{{end}}")
        >>> serialize(roots["main"])
        '{{if .A}}x{{else}}y{{end}}'
    """
    match node:
        case TextNode():
            return node.text
        case CommentNode():
            return f"{_L}{node.text}{_R}"
        case ListNode():
            return "".join(serialize(child) for child in node.children)
        case ActionNode():
            return f"{_L}{serialize(node.pipe)}{_R}"
        case BranchNode():
            return _serialize_branch(node)
        case TemplateNode():
            if node.pipe is None:
                return f"{_L}template {_quote(node.name)}{_R}"
            return f"{_L}template {_quote(node.name)} {serialize(node.pipe)}{_R}"
        case PipeNode():
            return _serialize_pipe(node)
        case CommandNode():
            return " ".join(_serialize_argument(arg) for arg in node.args)
        case ChainNode():
            base = node.node
            text = f"({serialize(base)})" if isinstance(base, PipeNode) else serialize(base)
            return text + "".join("." + name for name in node.fields)
        case FieldNode():
            return "".join("." + name for name in node.identifiers)
        case VariableNode():
            return ".".join(node.identifiers)
        case IdentifierNode():
            return node.name
        case StringNode():
            return node.quoted
        case BoolNode():
            return "true" if node.value else "false"
        case NumberNode():
            return node.text
        case NilNode():
            return "nil"
        case DotNode():
            return "."


def _serialize_branch(node: BranchNode) -> str:
    parts = [f"{_L}{node.keyword} {serialize(node.pipe)}{_R}", serialize(node.body)]
    if node.else_body is not None:
        parts.append(f"{_L}else{_R}")
        parts.append(serialize(node.else_body))
    parts.append(f"{_L}end{_R}")
    return "".join(parts)


def _serialize_pipe(node: PipeNode) -> str:
    text = " | ".join(serialize(command) for command in node.commands)
    if not node.declarations:
        return text
    names = ", ".join(serialize(var) for var in node.declarations)
    operator = "=" if node.is_assign else ":="
    return f"{names} {operator} {text}"


def _serialize_argument(arg: Node) -> str:
    if isinstance(arg, PipeNode):
        return f"({serialize(arg)})"
    return serialize(arg)


def _quote(name: str) -> str:
    escaped = name.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'
