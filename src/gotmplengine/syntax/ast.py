"""Template AST (Abstract Syntax Tree) node definitions.

A closed set of node classes produced by the parser and walked by the
executor with a single ``match`` statement. Leaves and most structure are
frozen; ListNode and ChainNode stay mutable because the parser builds them
incrementally.

Every node renders back to template text through ``str(node)``.
Includes type guards as static methods (eliminates isinstance sprawl).

Python 3.13+. Zero external dependencies.
"""

from dataclasses import dataclass, field
from typing import ClassVar, TypeIs

from gotmplengine.enums import PipeContext

# ruff: noqa: RUF022 - __all__ organized by category for readability
__all__ = [
    # Structure
    "TextNode",
    "CommentNode",
    "ListNode",
    "ActionNode",
    "BranchNode",
    "IfNode",
    "RangeNode",
    "WithNode",
    "TemplateNode",
    # Pipelines
    "PipeNode",
    "CommandNode",
    # Operands
    "ChainNode",
    "FieldNode",
    "VariableNode",
    "IdentifierNode",
    "StringNode",
    "BoolNode",
    "NumberNode",
    "NilNode",
    "DotNode",
    # Type aliases
    "Node",
    "Statement",
    "RootRegistry",
]


class _Describable:
    """Mixin: render the node back to template text."""

    __slots__ = ()

    def __str__(self) -> str:
        from .serializer import serialize  # noqa: PLC0415 - circular

        return serialize(self)  # type: ignore[arg-type]


# ============================================================================
# STRUCTURE
# ============================================================================


@dataclass(frozen=True, slots=True)
class TextNode(_Describable):
    """Literal text copied to the output verbatim."""

    text: str
    pos: int = field(default=0, compare=False)

    @staticmethod
    def guard(node: object) -> TypeIs["TextNode"]:
        """Type guard for TextNode."""
        return isinstance(node, TextNode)


@dataclass(frozen=True, slots=True)
class CommentNode(_Describable):
    """Comment kept by the parser when keep_comments is enabled."""

    text: str
    pos: int = field(default=0, compare=False)


@dataclass(slots=True)
class ListNode(_Describable):
    """Ordered sequence of nodes: a template body or block branch."""

    children: list["Statement"] = field(default_factory=list)
    pos: int = field(default=0, compare=False)

    def append(self, node: "Statement") -> None:
        self.children.append(node)

    def remove_last(self) -> "Statement":
        """Remove and return the last child.

        Raises:
            IndexError: If the list is empty
        """
        return self.children.pop()

    def __len__(self) -> int:
        return len(self.children)

    @staticmethod
    def guard(node: object) -> TypeIs["ListNode"]:
        """Type guard for ListNode."""
        return isinstance(node, ListNode)


@dataclass(frozen=True, slots=True)
class ActionNode(_Describable):
    """{{pipeline}}: prints the result unless the pipeline declares variables."""

    pipe: "PipeNode"
    pos: int = field(default=0, compare=False)


@dataclass(frozen=True, slots=True)
class BranchNode(_Describable):
    """Shared shape of if/range/with.

    Attributes:
        pipe: Condition (or range source) pipeline
        body: Executed when the condition is true / per iteration
        else_body: Executed when the condition is false / nothing to iterate
    """

    keyword: ClassVar[str] = ""

    pipe: "PipeNode"
    body: ListNode
    else_body: ListNode | None = None
    pos: int = field(default=0, compare=False)

    @staticmethod
    def guard(node: object) -> TypeIs["BranchNode"]:
        """Type guard for any branch node."""
        return isinstance(node, BranchNode)


@dataclass(frozen=True, slots=True)
class IfNode(BranchNode):
    """{{if pipeline}} body {{else}} else_body {{end}}"""

    keyword: ClassVar[str] = "if"


@dataclass(frozen=True, slots=True)
class RangeNode(BranchNode):
    """{{range pipeline}} body {{else}} else_body {{end}}"""

    keyword: ClassVar[str] = "range"


@dataclass(frozen=True, slots=True)
class WithNode(BranchNode):
    """{{with pipeline}} body {{else}} else_body {{end}}"""

    keyword: ClassVar[str] = "with"


@dataclass(frozen=True, slots=True)
class TemplateNode(_Describable):
    """{{template "name" pipeline}}: invoke a named root with a new context."""

    name: str
    pipe: "PipeNode | None" = None
    pos: int = field(default=0, compare=False)


# ============================================================================
# PIPELINES
# ============================================================================


@dataclass(frozen=True, slots=True)
class PipeNode(_Describable):
    """Pipeline: optional declarations followed by |-separated commands.

    Attributes:
        context: Syntactic position (action, if, range, ...)
        declarations: Variables bound by := or =
        commands: Pipeline stages, evaluated left to right
        is_assign: True for "=" (rebind), False for ":=" (declare)
    """

    context: PipeContext
    declarations: tuple["VariableNode", ...] = ()
    commands: tuple["CommandNode", ...] = ()
    is_assign: bool = False
    pos: int = field(default=0, compare=False)

    @staticmethod
    def guard(node: object) -> TypeIs["PipeNode"]:
        """Type guard for PipeNode."""
        return isinstance(node, PipeNode)


@dataclass(frozen=True, slots=True)
class CommandNode(_Describable):
    """One pipeline stage; the first argument selects how it evaluates."""

    args: tuple["Node", ...]
    pos: int = field(default=0, compare=False)


# ============================================================================
# OPERANDS
# ============================================================================


@dataclass(slots=True)
class ChainNode(_Describable):
    """Field access on a non-field operand: (pipeline).A.B or $x.A after a call."""

    node: "Node"
    fields: list[str] = field(default_factory=list)
    pos: int = field(default=0, compare=False)

    def append(self, field_token: str) -> None:
        """Append a ".Name" field token to the chain.

        Raises:
            ValueError: If the token lacks the leading dot or a name
        """
        if len(field_token) < 2 or field_token[0] != ".":
            msg = f"invalid chain field: {field_token!r}"
            raise ValueError(msg)
        self.fields.append(field_token[1:])


@dataclass(frozen=True, slots=True)
class FieldNode(_Describable):
    """.A.B.C resolved against the current context."""

    identifiers: tuple[str, ...]
    pos: int = field(default=0, compare=False)

    @staticmethod
    def guard(node: object) -> TypeIs["FieldNode"]:
        """Type guard for FieldNode."""
        return isinstance(node, FieldNode)


@dataclass(frozen=True, slots=True)
class VariableNode(_Describable):
    """$x or $x.A.B: first identifier is the variable name, including "$"."""

    identifiers: tuple[str, ...]
    pos: int = field(default=0, compare=False)

    @property
    def name(self) -> str:
        return self.identifiers[0]

    @staticmethod
    def guard(node: object) -> TypeIs["VariableNode"]:
        """Type guard for VariableNode."""
        return isinstance(node, VariableNode)


@dataclass(frozen=True, slots=True)
class IdentifierNode(_Describable):
    """Function name."""

    name: str
    pos: int = field(default=0, compare=False)

    @staticmethod
    def guard(node: object) -> TypeIs["IdentifierNode"]:
        """Type guard for IdentifierNode."""
        return isinstance(node, IdentifierNode)


@dataclass(frozen=True, slots=True)
class StringNode(_Describable):
    """String literal.

    Attributes:
        quoted: Source text including quotes
        text: Decoded value
    """

    quoted: str
    text: str
    pos: int = field(default=0, compare=False)


@dataclass(frozen=True, slots=True)
class BoolNode(_Describable):
    """true / false"""

    value: bool
    pos: int = field(default=0, compare=False)


@dataclass(frozen=True, slots=True)
class NumberNode(_Describable):
    """Numeric literal (including character constants).

    At least one of the value fields is set. ``value`` picks the one the
    literal's spelling calls for: "1.0" is a float even though it is
    integral, "0x1E" is an int even though it contains an "E".
    """

    text: str
    int_value: int | None = None
    float_value: float | None = None
    complex_value: complex | None = None
    is_char: bool = False
    pos: int = field(default=0, compare=False)

    @property
    def value(self) -> int | float | complex:
        if self.complex_value is not None and self.int_value is None and self.float_value is None:
            return self.complex_value
        if self.int_value is not None and (self.is_char or not self._spelled_as_float()):
            return self.int_value
        if self.float_value is not None:
            return self.float_value
        if self.int_value is not None:
            return self.int_value
        return 0

    def _spelled_as_float(self) -> bool:
        body = self.text.lstrip("+-").lower()
        if body.startswith("0x"):
            return "p" in body
        return "." in body or "e" in body


@dataclass(frozen=True, slots=True)
class NilNode(_Describable):
    """Untyped nil constant."""

    pos: int = field(default=0, compare=False)


@dataclass(frozen=True, slots=True)
class DotNode(_Describable):
    """The cursor "." (current context)."""

    pos: int = field(default=0, compare=False)


# ============================================================================
# TYPE ALIASES
# ============================================================================

type Node = (
    TextNode
    | CommentNode
    | ListNode
    | ActionNode
    | IfNode
    | RangeNode
    | WithNode
    | TemplateNode
    | PipeNode
    | CommandNode
    | ChainNode
    | FieldNode
    | VariableNode
    | IdentifierNode
    | StringNode
    | BoolNode
    | NumberNode
    | NilNode
    | DotNode
)

type Statement = (
    TextNode | CommentNode | ListNode | ActionNode | IfNode | RangeNode | WithNode | TemplateNode
)
"""Nodes that may appear in a ListNode body."""

type RootRegistry = dict[str, ListNode]
