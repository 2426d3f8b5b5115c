"""Function registry bridging Python callables and template function names.

Template functions are plain Python callables receiving evaluated
positional arguments (with the chained pipeline value, when present, as the
last argument) and returning a single value.

Naming:
    - Python: snake_case function names (PEP 8), with a trailing underscore
      where the template name is a Python keyword (``and_``, ``or_``)
    - Templates: camelCase names (Sprig heritage): ``to_yaml`` -> ``toYaml``

Example:
    >>> def trim_suffix(suffix, value):
    ...     return value.removesuffix(suffix)
    >>> registry = FunctionRegistry()
    >>> registry.register(trim_suffix)
    >>> registry.call("trimSuffix", ["-x", "name-x"])
    'name'

Python 3.13+. Zero external dependencies.
"""

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any

from gotmplengine.diagnostics import (
    ErrorTemplate,
    TemplateError,
    TemplateExecutionError,
)

__all__ = [
    "FunctionRegistry",
    "FunctionSignature",
    "TemplateFunction",
    "mark_short_circuit",
]

type TemplateFunction = Callable[..., Any]

# Attribute set on functions whose arguments the executor evaluates lazily.
_SHORT_CIRCUIT_ATTR: str = "_template_short_circuit"


def mark_short_circuit(func: TemplateFunction, *, stop_when: bool) -> None:
    """Mark a function as short-circuiting, like Go's and/or.

    The executor evaluates the arguments of a marked function one at a time
    and stops at the first one whose truthiness equals ``stop_when``,
    returning it without calling the function.
    """
    setattr(func, _SHORT_CIRCUIT_ATTR, stop_when)


@dataclass(frozen=True, slots=True)
class FunctionSignature:
    """Registered function metadata.

    Attributes:
        name: Name used in templates (camelCase)
        python_name: Name of the Python callable
        callable: The callable, or None for a registered-but-null binding
    """

    name: str
    python_name: str
    callable: TemplateFunction | None


class FunctionRegistry:
    """Name -> callable table consulted by the parser and the executor.

    Registering an existing name overwrites it. A registry can be frozen,
    after which registration raises TypeError; copies are never frozen.

    Supports dict-like introspection:
        - list_functions(): List all registered function names
        - get_function_info(name): Get function metadata
        - __iter__: Iterate over function names
        - __len__: Count registered functions
        - __contains__: Check if function exists (supports 'in' operator)

    Example:
        >>> registry = FunctionRegistry()
        >>> registry.register(len, name="len")
        >>> "len" in registry
        True
        >>> len(registry)
        1
    """

    __slots__ = ("_frozen", "_functions")

    def __init__(self) -> None:
        """Initialize empty function registry."""
        self._functions: dict[str, FunctionSignature] = {}
        self._frozen = False

    def register(
        self,
        func: TemplateFunction | None,
        *,
        name: str | None = None,
    ) -> None:
        """Register a Python callable for template use.

        Args:
            func: Callable to register. None registers a null binding, which
                the parser accepts but the executor refuses to call.
            name: Template name (default: camelCase of func.__name__)

        Raises:
            TypeError: If the registry is frozen
            ValueError: If no name is given for a null binding
        """
        if self._frozen:
            msg = "Cannot register functions on a frozen registry; use copy() first"
            raise TypeError(msg)
        python_name = getattr(func, "__name__", "unknown") if func is not None else "None"
        if name is None:
            if func is None:
                msg = "A name is required to register a null binding"
                raise ValueError(msg)
            name = self._to_camel_case(python_name.rstrip("_"))
        self._functions[name] = FunctionSignature(
            name=name,
            python_name=python_name,
            callable=func,
        )

    def update(self, functions: dict[str, TemplateFunction | None]) -> None:
        """Register every name -> callable pair of a mapping."""
        for name, func in functions.items():
            self.register(func, name=name)

    def call(self, name: str, args: Sequence[Any]) -> Any:
        """Invoke a registered function.

        Args:
            name: Template function name
            args: Evaluated positional arguments

        Returns:
            The function result

        Raises:
            TemplateExecutionError: If the name is unknown or bound to None,
                or if the function rejects its arguments (TypeError,
                ValueError, ArithmeticError)
        """
        sig = self._functions.get(name)
        if sig is None:
            raise TemplateExecutionError(ErrorTemplate.unknown_function(name))
        if sig.callable is None:
            raise TemplateExecutionError(ErrorTemplate.null_function(name))

        # TypeError, ValueError and ArithmeticError are argument problems
        # (wrong arity, unparsable input, division by zero). Anything else is
        # a defect in the function and propagates for the executor to wrap.
        try:
            return sig.callable(*args)
        except TemplateError:
            raise
        except (TypeError, ValueError, ArithmeticError) as e:
            raise TemplateExecutionError(ErrorTemplate.function_failed(name, str(e))) from e

    def has_function(self, name: str) -> bool:
        """Check if function is registered (null bindings included)."""
        return name in self._functions

    def list_functions(self) -> list[str]:
        """List all registered function names in registration order."""
        return list(self._functions.keys())

    def get_function_info(self, name: str) -> FunctionSignature | None:
        """Get function metadata by template name.

        Example:
            >>> registry = FunctionRegistry()
            >>> def to_upper(s): return s.upper()
            >>> registry.register(to_upper)
            >>> registry.get_function_info("toUpper").python_name
            'to_upper'
        """
        return self._functions.get(name)

    def get_callable(self, name: str) -> TemplateFunction | None:
        """Get the underlying callable, or None if absent or null."""
        sig = self._functions.get(name)
        return sig.callable if sig else None

    def short_circuit_on(self, name: str) -> bool | None:
        """Truthiness at which the function bound to ``name`` stops evaluating.

        None when the binding evaluates all of its arguments up front.
        """
        stop_when = getattr(self.get_callable(name), _SHORT_CIRCUIT_ATTR, None)
        return stop_when if isinstance(stop_when, bool) else None

    def freeze(self) -> None:
        """Reject further registration."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __iter__(self) -> Iterator[str]:
        return iter(self._functions)

    def __len__(self) -> int:
        return len(self._functions)

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def __repr__(self) -> str:
        """Return string representation for debugging.

        Example:
            >>> repr(FunctionRegistry())
            'FunctionRegistry(functions=0)'
        """
        return f"FunctionRegistry(functions={len(self._functions)})"

    def copy(self) -> "FunctionRegistry":
        """Create an unfrozen shallow copy of this registry.

        FunctionSignature objects are shared, but adding functions to the
        copy does not affect the original.
        """
        new_registry = FunctionRegistry()
        new_registry._functions = self._functions.copy()
        return new_registry

    @staticmethod
    def _to_camel_case(snake_case: str) -> str:
        """Convert Python snake_case to a template camelCase name.

        Examples:
            >>> FunctionRegistry._to_camel_case("to_pretty_json")
            'toPrettyJson'
            >>> FunctionRegistry._to_camel_case("b64enc")
            'b64enc'
        """
        components = snake_case.split("_")
        return components[0] + "".join(comp.capitalize() for comp in components[1:])
