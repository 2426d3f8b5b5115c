"""Template executor - walks the AST and writes output.

Evaluates a root's ListNode against a data value, printing action results,
taking branches, iterating ranges and dispatching {{template}} calls.

Thread Safety:
    Per-call state (variable scope, template-call depth) lives in an
    ExecutionContext created by each execute() call, so one Executor can be
    shared by concurrent callers as long as the root registry and function
    registry are no longer being mutated.

Python 3.13+.
"""

import dataclasses
import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, assert_never

from gotmplengine.constants import MAX_DEPTH
from gotmplengine.core.depth_guard import DepthGuard, DepthLimitExceededError
from gotmplengine.diagnostics import (
    ErrorTemplate,
    TemplateError,
    TemplateExecutionError,
    TemplateNotFoundError,
)
from gotmplengine.runtime.function_bridge import FunctionRegistry
from gotmplengine.runtime.introspection import PropertyCache, get_shared_property_cache
from gotmplengine.runtime.scope import VariableScope
from gotmplengine.runtime.value_types import is_true, print_value, type_name
from gotmplengine.syntax import (
    ActionNode,
    BoolNode,
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
    Statement,
    StringNode,
    TemplateNode,
    TextNode,
    VariableNode,
    WithNode,
)

__all__ = ["ExecutionContext", "Executor", "Writer"]

logger = logging.getLogger(__name__)

# Marks "no previous pipeline stage"; None is a legitimate piped value.
_NO_FINAL: Any = object()


class Writer(Protocol):
    """Output sink: anything with a text ``write`` method (io.StringIO, files)."""

    def write(self, text: str, /) -> object:
        ...  # pragma: no cover  # Protocol stub - not executable


@dataclass(slots=True)
class ExecutionContext:
    """Mutable state of one top-level execute() call.

    Attributes:
        name: Root being executed (used in wrapped error messages)
        scope: Variable bindings of the template currently running
        depth: Nested {{template}} invocation guard
    """

    name: str
    scope: VariableScope
    depth: DepthGuard = field(default_factory=DepthGuard)


class Executor:
    """Renders roots of a template set.

    Args:
        roots: Template name -> body
        functions: Registry consulted for identifier commands
        max_depth: Limit on nested {{template}} invocations
        properties: Field descriptor cache (default: process-wide cache)
    """

    __slots__ = ("_functions", "_max_depth", "_properties", "_roots")

    def __init__(
        self,
        roots: Mapping[str, ListNode],
        functions: FunctionRegistry,
        *,
        max_depth: int = MAX_DEPTH,
        properties: PropertyCache | None = None,
    ) -> None:
        self._roots = roots
        self._functions = functions
        self._max_depth = max_depth
        self._properties = properties if properties is not None else get_shared_property_cache()

    def execute(self, name: str, data: Any, writer: Writer) -> None:
        """Render root ``name`` with ``data`` as both "." and "$".

        Output already written before a failure stays written.

        Raises:
            TemplateNotFoundError: If no root is registered under ``name``
            TemplateExecutionError: On any evaluation failure
            OSError: Propagated unchanged from the writer
        """
        root = self._roots.get(name)
        if root is None:
            raise TemplateNotFoundError(ErrorTemplate.root_not_found(name), name=name)

        context = ExecutionContext(
            name=name,
            scope=VariableScope(data),
            depth=DepthGuard(max_depth=self._max_depth),
        )
        try:
            self._walk(context, writer, root, data)
        except TemplateExecutionError as e:
            named = _name_error(e, name)
            if named is e:
                raise
            raise named from e
        except (TemplateError, OSError):
            raise
        except IndexError as e:
            logger.debug("IndexError while executing %r: %s", name, e)
            raise TemplateExecutionError(ErrorTemplate.internal_index_error(name, str(e))) from e
        except RecursionError as e:
            logger.debug("RecursionError while executing %r", name)
            error = DepthLimitExceededError(
                ErrorTemplate.execution_depth_exceeded(context.depth.max_depth)
            )
            raise _name_error(error, name) from e
        except Exception as e:  # noqa: BLE001 - wrapped with template name, cause chained
            logger.debug("Unexpected %s while executing %r: %s", type(e).__name__, name, e)
            raise TemplateExecutionError(ErrorTemplate.internal_error(name, str(e))) from e

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _walk(
        self, context: ExecutionContext, writer: Writer, node: Statement, dot: Any
    ) -> None:
        match node:
            case TextNode():
                writer.write(node.text)
            case CommentNode():
                pass
            case ListNode():
                for child in node.children:
                    self._walk(context, writer, child, dot)
            case ActionNode():
                value = self._eval_pipe(context, node.pipe, dot)
                if not node.pipe.declarations:
                    writer.write(print_value(value))
            case IfNode():
                self._walk_if(context, writer, node, dot)
            case RangeNode():
                self._walk_range(context, writer, node, dot)
            case WithNode():
                self._walk_with(context, writer, node, dot)
            case TemplateNode():
                self._walk_template(context, writer, node, dot)
            case _ as unreachable:
                assert_never(unreachable)

    def _walk_if(
        self, context: ExecutionContext, writer: Writer, node: IfNode, dot: Any
    ) -> None:
        if is_true(self._eval_pipe(context, node.pipe, dot)):
            self._walk(context, writer, node.body, dot)
        elif node.else_body is not None:
            self._walk(context, writer, node.else_body, dot)

    def _walk_with(
        self, context: ExecutionContext, writer: Writer, node: WithNode, dot: Any
    ) -> None:
        value = self._eval_pipe(context, node.pipe, dot)
        if is_true(value):
            self._walk(context, writer, node.body, value)
        elif node.else_body is not None:
            self._walk(context, writer, node.else_body, dot)

    def _walk_range(
        self, context: ExecutionContext, writer: Writer, node: RangeNode, dot: Any
    ) -> None:
        declarations = node.pipe.declarations
        with context.scope.bindings(var.name for var in declarations):
            source = self._eval_pipe(context, node.pipe, dot, assign=False)
            iterated = False
            for key, item in _iterate(source):
                iterated = True
                match declarations:
                    case (value_var,):
                        context.scope.declare(value_var.name, item)
                    case (key_var, value_var):
                        context.scope.declare(key_var.name, key)
                        context.scope.declare(value_var.name, item)
                self._walk(context, writer, node.body, item)
            if not iterated and node.else_body is not None:
                self._walk(context, writer, node.else_body, dot)

    def _walk_template(
        self, context: ExecutionContext, writer: Writer, node: TemplateNode, dot: Any
    ) -> None:
        root = self._roots.get(node.name)
        if root is None:
            raise TemplateExecutionError(
                ErrorTemplate.template_not_defined(node.name, context.name)
            )
        new_dot = dot if node.pipe is None else self._eval_pipe(context, node.pipe, dot)

        # An invoked template sees only its own "$", like a fresh execution.
        outer_scope = context.scope
        context.scope = VariableScope(new_dot)
        try:
            with context.depth:
                self._walk(context, writer, root, new_dot)
        finally:
            context.scope = outer_scope

    # ------------------------------------------------------------------
    # Pipelines and commands
    # ------------------------------------------------------------------

    def _eval_pipe(
        self, context: ExecutionContext, pipe: PipeNode, dot: Any, *, assign: bool = True
    ) -> Any:
        value: Any = _NO_FINAL
        for command in pipe.commands:
            value = self._eval_command(context, command, dot, value)
        if assign:
            for variable in pipe.declarations:
                if pipe.is_assign:
                    context.scope.assign(variable.name, value)
                else:
                    context.scope.declare(variable.name, value)
        return value

    def _eval_command(
        self, context: ExecutionContext, command: CommandNode, dot: Any, final: Any
    ) -> Any:
        """Evaluate one pipeline stage; ``final`` is the previous stage's result."""
        if not command.args:
            raise TemplateExecutionError(ErrorTemplate.empty_command())
        first, rest = command.args[0], command.args[1:]

        if IdentifierNode.guard(first):
            return self._call_function(context, first.name, rest, dot, final)

        if rest or final is not _NO_FINAL:
            if FieldNode.guard(first):
                raise TemplateExecutionError(
                    ErrorTemplate.field_has_arguments(first.identifiers[-1])
                )
            raise TemplateExecutionError(ErrorTemplate.non_function_arguments(str(first)))
        return self._eval_arg(context, first, dot)

    def _call_function(
        self,
        context: ExecutionContext,
        name: str,
        arg_nodes: Sequence[Node],
        dot: Any,
        final: Any,
    ) -> Any:
        stop_when = self._functions.short_circuit_on(name)
        if stop_when is not None and (arg_nodes or final is not _NO_FINAL):
            return self._short_circuit(context, arg_nodes, dot, final, stop_when=stop_when)
        args = [self._eval_arg(context, arg, dot) for arg in arg_nodes]
        if final is not _NO_FINAL:
            args.append(final)
        return self._functions.call(name, args)

    def _short_circuit(
        self,
        context: ExecutionContext,
        arg_nodes: Sequence[Node],
        dot: Any,
        final: Any,
        *,
        stop_when: bool,
    ) -> Any:
        """Evaluate and/or operands left to right, stopping at the deciding one."""
        value: Any = None
        for arg in arg_nodes:
            value = self._eval_arg(context, arg, dot)
            if is_true(value) is stop_when:
                return value
        return value if final is _NO_FINAL else final

    def _eval_arg(self, context: ExecutionContext, node: Node, dot: Any) -> Any:
        match node:
            case DotNode():
                return dot
            case NilNode():
                return None
            case BoolNode():
                return node.value
            case StringNode():
                return node.text
            case NumberNode():
                return node.value
            case FieldNode():
                return self._resolve_fields(dot, node.identifiers)
            case VariableNode():
                value = context.scope.lookup(node.name)
                return self._resolve_fields(value, node.identifiers[1:])
            case ChainNode():
                base = self._eval_arg(context, node.node, dot)
                return self._resolve_fields(base, node.fields)
            case PipeNode():
                return self._eval_pipe(context, node, dot)
            case CommandNode():
                return self._eval_command(context, node, dot, _NO_FINAL)
            case IdentifierNode():
                # A bare function name as an argument is a zero-argument call;
                # any other identifier stands for itself.
                if self._functions.has_function(node.name):
                    return self._functions.call(node.name, ())
                return node.name
            case _:
                raise TemplateExecutionError(ErrorTemplate.invalid_operand(str(node)))

    def _resolve_fields(self, receiver: Any, identifiers: Iterable[str]) -> Any:
        for identifier in identifiers:
            receiver = self._properties.resolve(receiver, identifier)
        return receiver


def _iterate(source: Any) -> Iterator[tuple[Any, Any]]:
    """Yield (key or index, element) pairs of a range source.

    Mappings iterate in sorted key order (insertion order when keys are not
    mutually comparable). An int n iterates 0..n-1.

    Raises:
        TemplateExecutionError: If the value cannot be ranged over
    """
    match source:
        case None:
            return
        case Mapping():
            try:
                keys: list[Any] = sorted(source)
            except TypeError:
                keys = list(source)
            for key in keys:
                yield key, source[key]
        case bool() | str() | bytes():
            raise TemplateExecutionError(ErrorTemplate.not_iterable(type_name(source)))
        case int():
            for index in range(source):
                yield index, index
        case Iterable():
            yield from enumerate(source)
        case _:
            raise TemplateExecutionError(ErrorTemplate.not_iterable(type_name(source)))


def _name_error(error: TemplateExecutionError, name: str) -> TemplateExecutionError:
    """Copy of ``error`` naming the template it was raised in.

    Errors that already name a template (raised by a nested execution, or
    built with one) are returned unchanged so the innermost name wins.
    """
    diagnostic = error.diagnostic
    if diagnostic is None:
        return type(error)(f"template: {name}: {error.message}")
    if diagnostic.template_name is not None:
        return error
    return type(error)(
        dataclasses.replace(
            diagnostic,
            message=f"template: {name}: {diagnostic.message}",
            template_name=name,
        )
    )
