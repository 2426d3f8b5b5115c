"""Execution variable scope.

A single flat mapping from variable name (including the leading "$") to its
last bound value. Loop variables are protected by snapshot/restore rather
than nested frames: ``bindings()`` records the prior state of the names a
range header declares and puts it back on every exit path.

Owned by exactly one executor for the duration of one execute call; never
shared across threads.

Python 3.13+.
"""

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any

from gotmplengine.constants import ROOT_VARIABLE
from gotmplengine.diagnostics import ErrorTemplate, TemplateExecutionError

__all__ = ["VariableScope"]

_UNBOUND = object()


class VariableScope:
    """Mutable variable bindings for one execution.

    Example:
        >>> scope = VariableScope({"a": 1})
        >>> scope.lookup("$")
        {'a': 1}
        >>> scope.declare("$x", 2)
        >>> scope.lookup("$x")
        2
    """

    __slots__ = ("_values",)

    def __init__(self, root: Any = None) -> None:
        self._values: dict[str, Any] = {ROOT_VARIABLE: root}

    def lookup(self, name: str) -> Any:
        """Read a variable.

        Raises:
            TemplateExecutionError: If the variable was never bound
        """
        try:
            return self._values[name]
        except KeyError:
            raise TemplateExecutionError(ErrorTemplate.undefined_variable(name)) from None

    def declare(self, name: str, value: Any) -> None:
        """Bind a variable (":="), replacing any previous binding."""
        self._values[name] = value

    def assign(self, name: str, value: Any) -> None:
        """Rebind an existing variable ("=").

        Raises:
            TemplateExecutionError: If the variable was never declared
        """
        if name not in self._values:
            raise TemplateExecutionError(ErrorTemplate.undefined_variable(name))
        self._values[name] = value

    def is_bound(self, name: str) -> bool:
        return name in self._values

    def snapshot(self, names: Iterable[str]) -> dict[str, Any]:
        """Record current values of names (unbound names are marked as such)."""
        return {name: self._values.get(name, _UNBOUND) for name in names}

    def restore(self, snapshot: dict[str, Any]) -> None:
        """Put back values recorded by snapshot(); unbind names that had none."""
        for name, value in snapshot.items():
            if value is _UNBOUND:
                self._values.pop(name, None)
            else:
                self._values[name] = value

    @contextmanager
    def bindings(self, names: Iterable[str]) -> Iterator[None]:
        """Scope the given names to a with-block.

        Example:
            >>> scope = VariableScope()
            >>> with scope.bindings(["$i"]):
            ...     scope.declare("$i", 0)
            >>> scope.is_bound("$i")
            False
        """
        saved = self.snapshot(names)
        try:
            yield
        finally:
            self.restore(saved)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __repr__(self) -> str:
        return f"VariableScope(variables={sorted(self._values)})"
