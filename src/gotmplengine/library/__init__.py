"""Standard template function library.

Go's builtin functions plus the Sprig/Helm function families, grouped by
module. ``create_default_registry()`` assembles all of them; the Helm
functions that need a template set (include, tpl, lookup, kubeVersion) are
added by TemplateFactory on top of that.

Python 3.13+. External dependency: ruamel.yaml (toYaml/fromYaml).
"""

from gotmplengine.runtime.function_bridge import FunctionRegistry

from . import builtins, containers, dates, encoding, logic, numeric, regex, semver, strings
from .providers import DEFAULT_KUBE_VERSION, ResourceProvider, StaticResourceProvider

__all__ = [
    "DEFAULT_KUBE_VERSION",
    "ResourceProvider",
    "StaticResourceProvider",
    "create_default_registry",
    "get_shared_registry",
]

_MODULES = (builtins, strings, containers, logic, numeric, encoding, regex, dates, semver)


def create_default_registry() -> FunctionRegistry:
    """Create a new FunctionRegistry with the standard library registered.

    Each call returns a fresh, unfrozen instance; callers may add or
    override functions without affecting anyone else.

    Example:
        >>> registry = create_default_registry()
        >>> "toYaml" in registry and "printf" in registry
        True
        >>> registry.call("upper", ["abc"])
        'ABC'

    See Also:
        get_shared_registry: Returns a shared, frozen registry.
    """
    registry = FunctionRegistry()
    for module in _MODULES:
        module.register(registry)
    return registry


# Initialized lazily on first access to avoid import-time work.
_SHARED_REGISTRY: FunctionRegistry | None = None


def get_shared_registry() -> FunctionRegistry:
    """Get the shared, frozen default registry.

    Calling register() on it raises TypeError. Use copy() or
    create_default_registry() to customize.
    """
    global _SHARED_REGISTRY  # noqa: PLW0603
    if _SHARED_REGISTRY is None:
        _SHARED_REGISTRY = create_default_registry()
        _SHARED_REGISTRY.freeze()
    return _SHARED_REGISTRY
