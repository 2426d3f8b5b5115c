"""Helm extension functions: include, tpl, lookup and kubeVersion.

mustInclude and mustTpl are registered as aliases of include and tpl.

include and tpl need the template set that is executing them, so they are
not part of the default registry. A TemplateFactory registers them bound to
itself through the TemplateHost protocol below.

Nested include/tpl calls are counted per execution context (ContextVar), so
a template that includes itself fails with DepthLimitExceededError instead
of exhausting the interpreter stack.

Python 3.13+. Zero external dependencies.
"""

import logging
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Protocol

from gotmplengine.core.depth_guard import DepthLimitExceededError
from gotmplengine.diagnostics import ErrorTemplate
from gotmplengine.runtime.function_bridge import FunctionRegistry

from .coerce import to_str
from .providers import DEFAULT_KUBE_VERSION, ResourceProvider

__all__ = ["TemplateHost", "register"]

logger = logging.getLogger(__name__)

_include_depth: ContextVar[int] = ContextVar("gotmplengine_include_depth", default=0)


class TemplateHost(Protocol):
    """What the Helm functions need from the template set they run in."""

    @property
    def provider(self) -> ResourceProvider | None:
        ...  # pragma: no cover  # Protocol stub - not executable

    @property
    def max_depth(self) -> int:
        ...  # pragma: no cover  # Protocol stub - not executable

    def render(self, name: str, data: Any) -> str:
        """Render a registered root to a string."""
        ...  # pragma: no cover  # Protocol stub - not executable

    def render_inline(self, text: str, data: Any) -> str:
        """Parse text as a throwaway root sharing this set, then render it."""
        ...  # pragma: no cover  # Protocol stub - not executable


@contextmanager
def _nested(host: TemplateHost) -> Iterator[None]:
    depth = _include_depth.get()
    if depth >= host.max_depth:
        raise DepthLimitExceededError(ErrorTemplate.execution_depth_exceeded(host.max_depth))
    token = _include_depth.set(depth + 1)
    try:
        yield
    finally:
        _include_depth.reset(token)


def make_include(host: TemplateHost) -> Callable[..., str]:
    """Build ``include NAME DATA`` for a host.

    Errors from the included template propagate to the caller.
    """

    def include(name: Any, data: Any = None) -> str:
        with _nested(host):
            return host.render(to_str(name), data)

    return include


def make_tpl(host: TemplateHost) -> Callable[..., str]:
    def tpl(text: Any, data: Any = None) -> str:
        with _nested(host):
            return host.render_inline(to_str(text), data)

    return tpl


def make_lookup(host: TemplateHost) -> Callable[..., Mapping[str, Any]]:
    """Build ``lookup API_VERSION KIND NAMESPACE NAME`` for a host.

    Without an available provider every lookup is an empty mapping, which
    is what ``helm template`` renders offline.
    """

    def lookup(*args: Any) -> Mapping[str, Any]:
        if len(args) < 4:
            msg = f"lookup requires 4 arguments (apiVersion, kind, namespace, name), got {len(args)}"
            raise ValueError(msg)
        api_version, kind, namespace, name = (to_str(a) for a in args[:4])
        provider = host.provider
        if provider is None or not provider.is_available():
            logger.debug("lookup %s/%s %s/%s: no provider available", api_version, kind, namespace, name)
            return {}
        return dict(provider.lookup(api_version, kind, namespace, name))

    return lookup


def make_kube_version(host: TemplateHost) -> Callable[[], Mapping[str, Any]]:
    def kube_version() -> Mapping[str, Any]:
        provider = host.provider
        if provider is None or not provider.is_available():
            return dict(DEFAULT_KUBE_VERSION)
        return dict(provider.get_version())

    return kube_version


def register(registry: FunctionRegistry, host: TemplateHost) -> None:
    """Register include, tpl, lookup and kubeVersion bound to ``host``.

    include and tpl already raise on failure, so mustInclude and mustTpl are
    the same callables under their Sprig-style names.
    """
    include = make_include(host)
    tpl = make_tpl(host)
    registry.register(include, name="include")
    registry.register(include, name="mustInclude")
    registry.register(tpl, name="tpl")
    registry.register(tpl, name="mustTpl")
    registry.register(make_lookup(host), name="lookup")
    registry.register(make_kube_version(host), name="kubeVersion")
