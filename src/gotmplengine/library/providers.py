"""Resource provider interface used by the lookup and kubeVersion functions.

The engine never talks to a cluster itself. Callers that want live lookups
inject an object satisfying ResourceProvider; StaticResourceProvider serves
canned objects for tests and offline rendering.

Python 3.13+. Zero external dependencies.
"""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Protocol, runtime_checkable

__all__ = ["DEFAULT_KUBE_VERSION", "ResourceProvider", "StaticResourceProvider"]

# Version reported by kubeVersion when no provider is available.
DEFAULT_KUBE_VERSION: Mapping[str, str] = MappingProxyType(
    {"Major": "1", "Minor": "28", "GitVersion": "v1.28.0"}
)

type ResourceKey = tuple[str, str, str, str]


@runtime_checkable
class ResourceProvider(Protocol):
    """Read-only access to cluster resources."""

    def lookup(
        self, api_version: str, kind: str, namespace: str, name: str
    ) -> Mapping[str, Any]:
        """Return one object, or a list-shaped mapping when ``name`` is empty.

        An absent object is an empty mapping, not an error.
        """
        ...  # pragma: no cover  # Protocol stub - not executable

    def get_version(self) -> Mapping[str, Any]:
        ...  # pragma: no cover  # Protocol stub - not executable

    def is_available(self) -> bool:
        ...  # pragma: no cover  # Protocol stub - not executable


class StaticResourceProvider:
    """In-memory provider keyed by (apiVersion, kind, namespace, name).

    Cluster-scoped resources use an empty namespace. Looking up with an empty
    name returns {"items": [...]} for every stored object of that kind in the
    namespace (all namespaces when the namespace is empty too), mirroring a
    list call.

    Example:
        >>> provider = StaticResourceProvider()
        >>> provider.add("v1", "Secret", "default", "db", {"data": {"pw": "eA=="}})
        >>> provider.lookup("v1", "Secret", "default", "db")["data"]
        {'pw': 'eA=='}
    """

    __slots__ = ("_available", "_objects", "_version")

    def __init__(
        self,
        objects: Mapping[ResourceKey, Mapping[str, Any]] | None = None,
        *,
        version: Mapping[str, Any] | None = None,
        available: bool = True,
    ) -> None:
        self._objects: dict[ResourceKey, Mapping[str, Any]] = dict(objects or {})
        self._version = dict(version) if version is not None else dict(DEFAULT_KUBE_VERSION)
        self._available = available

    def add(
        self, api_version: str, kind: str, namespace: str, name: str, obj: Mapping[str, Any]
    ) -> None:
        self._objects[(api_version, kind, namespace, name)] = obj

    def lookup(
        self, api_version: str, kind: str, namespace: str, name: str
    ) -> Mapping[str, Any]:
        if name:
            return self._objects.get((api_version, kind, namespace, name), {})
        items = [
            obj
            for (av, k, ns, _), obj in self._objects.items()
            if av == api_version and k == kind and (not namespace or ns == namespace)
        ]
        return {"items": items} if items else {}

    def get_version(self) -> Mapping[str, Any]:
        return self._version

    def is_available(self) -> bool:
        return self._available

    def __len__(self) -> int:
        return len(self._objects)

    def __repr__(self) -> str:
        return f"StaticResourceProvider(objects={len(self._objects)}, available={self._available})"
