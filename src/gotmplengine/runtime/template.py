"""Template and TemplateFactory - main API for parsing and rendering.

A TemplateFactory owns one template set: named roots (the main body of each
parsed text plus every {{define}}/{{block}}), a function registry and the
syntax options. Template is a named handle on a set, mirroring Go's
*template.Template: parsing through a handle adds to the shared set, and
executing without a name runs the handle's own root.

Python 3.13+.
"""

import io
import logging
import threading
from collections.abc import Callable, Mapping
from os import PathLike
from pathlib import Path
from types import MappingProxyType
from typing import Any, Protocol

from gotmplengine.constants import (
    DEFAULT_LEFT_COMMENT,
    DEFAULT_LEFT_DELIM,
    DEFAULT_RIGHT_COMMENT,
    DEFAULT_RIGHT_DELIM,
    INLINE_TEMPLATE_NAME,
    LOG_EXCERPT_LENGTH,
    MAX_DEPTH,
    MAX_SOURCE_SIZE,
)
from gotmplengine.diagnostics import (
    ErrorTemplate,
    TemplateNotFoundError,
    TemplateParseError,
    TemplateSyntaxError,
)
from gotmplengine.library import get_shared_registry, helm
from gotmplengine.library.providers import ResourceProvider
from gotmplengine.runtime.executor import Executor, Writer
from gotmplengine.runtime.function_bridge import FunctionRegistry, TemplateFunction
from gotmplengine.runtime.options import TemplateOptions
from gotmplengine.syntax import ListNode, is_empty_tree, parse

__all__ = ["Template", "TemplateFactory"]

logger = logging.getLogger(__name__)


class _Readable(Protocol):
    def read(self) -> str:
        ...  # pragma: no cover  # Protocol stub - not executable


def _excerpt(text: str) -> str:
    if len(text) <= LOG_EXCERPT_LENGTH:
        return text
    return text[:LOG_EXCERPT_LENGTH] + "..."


class TemplateFactory:
    """A template set: named roots sharing one function registry.

    Thread Safety:
        By default a factory is NOT thread-safe; finish parsing before
        sharing it across threads. With thread_safe=True an internal RLock
        serializes parse, add_function and execute. The lock is reentrant,
        so include/tpl calls made during execution do not deadlock.

    Parser Security:
        max_source_size rejects oversized template text and
        max_nesting_depth bounds both block nesting at parse time and nested
        {{template}}/include calls at execution time.

    Examples:
        >>> factory = TemplateFactory()
        >>> page = factory.parse("page", '{{define "t"}}[{{.}}]{{end}}{{template "t" .}}')
        >>> factory.render("page", "x")
        '[x]'
        >>> factory.render("t", 42)
        '[42]'
    """

    __slots__ = ("_functions", "_lock", "_options", "_provider", "_roots", "_thread_safe")

    def __init__(
        self,
        *,
        functions: FunctionRegistry | None = None,
        delimiters: tuple[str, str] = (DEFAULT_LEFT_DELIM, DEFAULT_RIGHT_DELIM),
        comments: tuple[str, str] = (DEFAULT_LEFT_COMMENT, DEFAULT_RIGHT_COMMENT),
        keep_comments: bool = False,
        max_nesting_depth: int = MAX_DEPTH,
        max_source_size: int = MAX_SOURCE_SIZE,
        thread_safe: bool = False,
        provider: ResourceProvider | None = None,
    ) -> None:
        """Initialize an empty template set.

        Args:
            functions: Registry to start from (copied; default: the shared
                standard library). include, tpl, lookup and kubeVersion are
                always added, bound to this factory.
            delimiters: Action delimiters (default: ("{{", "}}"))
            comments: Comment markers inside actions (default: ("/*", "*/"))
            keep_comments: Keep comments in the parsed tree (default: False)
            max_nesting_depth: Block nesting and template-call limit
            max_source_size: Largest accepted template text in characters
            thread_safe: Serialize operations with an internal RLock
            provider: Resource provider for lookup/kubeVersion

        Raises:
            ValueError: If a delimiter is empty or a limit is not positive
        """
        self._options = TemplateOptions.create(
            delimiters=delimiters,
            comments=comments,
            keep_comments=keep_comments,
            max_nesting_depth=max_nesting_depth,
            max_source_size=max_source_size,
        )
        self._roots: dict[str, ListNode] = {}
        self._provider = provider
        self._thread_safe = thread_safe
        self._lock: threading.RLock | None = threading.RLock() if thread_safe else None

        source = functions if functions is not None else get_shared_registry()
        self._functions = source.copy()
        helm.register(self._functions, self)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def functions(self) -> FunctionRegistry:
        """The registry consulted by this set (parse-time and run-time)."""
        return self._functions

    @property
    def root_nodes(self) -> Mapping[str, ListNode]:
        """Read-only live view of name -> parsed body."""
        return MappingProxyType(self._roots)

    @property
    def options(self) -> TemplateOptions:
        return self._options

    @property
    def provider(self) -> ResourceProvider | None:
        return self._provider

    @property
    def max_depth(self) -> int:
        return self._options.max_nesting_depth

    @property
    def is_thread_safe(self) -> bool:
        return self._thread_safe

    def __repr__(self) -> str:
        return (
            f"TemplateFactory(templates={len(self._roots)}, "
            f"functions={len(self._functions)}, thread_safe={self._thread_safe})"
        )

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def parse(self, name: str, text: str) -> "Template":
        """Parse text and merge its roots into the set.

        The main body is registered under ``name``; every {{define}} and
        {{block}} under its own name. A definition whose body is empty
        (only whitespace and comments) does not replace an existing one.
        Nothing is registered when parsing fails.

        Returns:
            Handle on ``name``

        Raises:
            TemplateParseError: If the text is invalid; the underlying
                TemplateSyntaxError is chained as ``__cause__``
        """
        if self._lock is not None:
            with self._lock:
                self._parse_impl(name, text)
        else:
            self._parse_impl(name, text)
        return Template._bind(self, name)

    def _parse_impl(self, name: str, text: str) -> None:
        options = self._options
        try:
            roots = parse(
                name,
                text,
                functions=self._functions,
                keep_comments=options.keep_comments,
                left_delim=options.left_delim,
                right_delim=options.right_delim,
                left_comment=options.left_comment,
                right_comment=options.right_comment,
                max_nesting_depth=options.max_nesting_depth,
                max_source_size=options.max_source_size,
            )
        except TemplateSyntaxError as e:
            logger.warning("Failed to parse template %r: %s; source: %r", name, e, _excerpt(text))
            raise TemplateParseError(ErrorTemplate.template_parse_failed(name)) from e

        for root_name, body in roots.items():
            existing = self._roots.get(root_name)
            if existing is not None and is_empty_tree(body):
                logger.debug("Kept template %r: new definition is empty", root_name)
                continue
            self._roots[root_name] = body
            if existing is not None:
                logger.debug("Replaced template: %s", root_name)
            else:
                logger.debug("Registered template: %s", root_name)

    # ------------------------------------------------------------------
    # Lookup and registry
    # ------------------------------------------------------------------

    def has_template(self, name: str) -> bool:
        return name in self._roots

    def get_template(self, name: str) -> "Template":
        """Handle on an existing root.

        Raises:
            TemplateNotFoundError: If no root has that name
        """
        if name not in self._roots:
            raise TemplateNotFoundError(ErrorTemplate.template_not_found(name), name=name)
        return Template._bind(self, name)

    def add_function(self, name: str, func: TemplateFunction | None) -> None:
        """Register (or replace) a function for this set only.

        Example:
            >>> factory = TemplateFactory()
            >>> factory.add_function("shout", lambda s: s.upper() + "!")
            >>> factory.parse("t", "{{ shout .}}").render("hi")
            'HI!'
        """
        if self._lock is not None:
            with self._lock:
                self._functions.register(func, name=name)
        else:
            self._functions.register(func, name=name)
        logger.debug("Added custom function: %s", name)

    def derive(self) -> "TemplateFactory":
        """Independent copy of this set.

        Options, provider, functions and current roots are copied; parsing
        into the copy does not affect this factory. Parsed bodies are shared,
        which is safe because execution never mutates them.
        """
        options = self._options
        clone = TemplateFactory(
            functions=self._functions,
            delimiters=options.delimiters,
            comments=(options.left_comment, options.right_comment),
            keep_comments=options.keep_comments,
            max_nesting_depth=options.max_nesting_depth,
            max_source_size=options.max_source_size,
            thread_safe=self._thread_safe,
            provider=self._provider,
        )
        clone._roots.update(self._roots)
        return clone

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def execute(self, name: str, data: Any, writer: Writer) -> None:
        """Render root ``name`` into ``writer``.

        Raises:
            TemplateNotFoundError: If no root has that name
            TemplateExecutionError: On any evaluation failure
        """
        if self._lock is not None:
            with self._lock:
                self._execute_impl(name, data, writer)
        else:
            self._execute_impl(name, data, writer)

    def _execute_impl(self, name: str, data: Any, writer: Writer) -> None:
        if name not in self._roots:
            raise TemplateNotFoundError(ErrorTemplate.template_not_found(name), name=name)
        executor = Executor(self._roots, self._functions, max_depth=self._options.max_nesting_depth)
        executor.execute(name, data, writer)

    def render(self, name: str, data: Any = None) -> str:
        """Render root ``name`` to a string."""
        buffer = io.StringIO()
        self.execute(name, data, buffer)
        return buffer.getvalue()

    def render_inline(self, text: str, data: Any = None) -> str:
        """Render text against a throwaway copy of this set (the tpl function).

        The text may use every function and invoke every root of this set;
        definitions it contains do not leak back. A root of this set named
        like the scratch root is shadowed, even when ``text`` is empty.
        """
        scratch = self.derive()
        scratch._roots.pop(INLINE_TEMPLATE_NAME, None)
        scratch._parse_impl(INLINE_TEMPLATE_NAME, text)
        return scratch.render(INLINE_TEMPLATE_NAME, data)


class Template:
    """Named handle on a template set.

    ``Template(name, ...)`` creates a new set with the same keyword options
    as TemplateFactory. Handles returned by ``parse``/``get_template``/
    ``lookup`` share their set.

    Examples:
        >>> t = Template("letter").parse("Dear {{.Name}},")
        >>> t.render({"Name": "Aunt Mildred"})
        'Dear Aunt Mildred,'
        >>> _ = t.parse("sig", "-- {{.}}")
        >>> t.render("Jo", name="sig"), t.name
        ('-- Jo', 'letter')
    """

    __slots__ = ("_factory", "_name")

    def __init__(
        self,
        name: str = "",
        /,
        *,
        functions: FunctionRegistry | None = None,
        delimiters: tuple[str, str] = (DEFAULT_LEFT_DELIM, DEFAULT_RIGHT_DELIM),
        comments: tuple[str, str] = (DEFAULT_LEFT_COMMENT, DEFAULT_RIGHT_COMMENT),
        keep_comments: bool = False,
        max_nesting_depth: int = MAX_DEPTH,
        max_source_size: int = MAX_SOURCE_SIZE,
        thread_safe: bool = False,
        provider: ResourceProvider | None = None,
    ) -> None:
        self._factory = TemplateFactory(
            functions=functions,
            delimiters=delimiters,
            comments=comments,
            keep_comments=keep_comments,
            max_nesting_depth=max_nesting_depth,
            max_source_size=max_source_size,
            thread_safe=thread_safe,
            provider=provider,
        )
        self._name = name

    @classmethod
    def _bind(cls, factory: TemplateFactory, name: str) -> "Template":
        handle = cls.__new__(cls)
        handle._factory = factory
        handle._name = name
        return handle

    @property
    def name(self) -> str:
        return self._name

    @property
    def factory(self) -> TemplateFactory:
        return self._factory

    @property
    def functions(self) -> FunctionRegistry:
        return self._factory.functions

    def __repr__(self) -> str:
        return f"Template(name={self._name!r}, templates={len(self._factory.root_nodes)})"

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def parse(self, name_or_text: str, text: str | None = None) -> "Template":
        """Parse ``text`` (or ``name, text``) into this handle's set.

        With one argument the text becomes this handle's root. With two,
        it is registered under ``name``; that name becomes this handle's
        name only if the handle had none.

        Returns:
            This handle, for chaining

        Raises:
            TemplateParseError: If the text is invalid
        """
        if text is None:
            name, text = self._name, name_or_text
        else:
            name = name_or_text
        self._factory.parse(name, text)
        if not self._name:
            self._name = name
        return self

    def parse_stream(self, stream: _Readable, name: str | None = None) -> "Template":
        """Parse everything readable from a text stream."""
        text = stream.read()
        return self.parse(name if name is not None else self._name, text)

    def parse_file(self, path: str | PathLike[str], name: str | None = None) -> "Template":
        """Parse a UTF-8 file; the root name defaults to the file's base name."""
        file_path = Path(path)
        text = file_path.read_text(encoding="utf-8")
        return self.parse(name if name is not None else file_path.name, text)

    def add_function(self, name: str, func: Callable[..., Any] | None) -> "Template":
        self._factory.add_function(name, func)
        return self

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def has_template(self, name: str) -> bool:
        return self._factory.has_template(name)

    def lookup(self, name: str) -> "Template | None":
        """Handle on another root of the set, or None."""
        if not self._factory.has_template(name):
            return None
        return Template._bind(self._factory, name)

    def root(self, name: str | None = None) -> ListNode | None:
        """Parsed body of ``name`` (default: this handle's root)."""
        return self._factory.root_nodes.get(self._name if name is None else name)

    def root_names(self) -> list[str]:
        return sorted(self._factory.root_nodes)

    def clone(self) -> "Template":
        """Handle with the same name on an independent copy of the set."""
        return Template._bind(self._factory.derive(), self._name)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def execute(self, *args: Any) -> None:
        """Render into a writer: ``execute(data, writer)`` or ``execute(name, data, writer)``.

        Raises:
            TypeError: On any other argument count
            TemplateNotFoundError: If the root does not exist
            TemplateExecutionError: On any evaluation failure
        """
        match args:
            case (data, writer):
                self._factory.execute(self._name, data, writer)
            case (str() as name, data, writer):
                self._factory.execute(name, data, writer)
            case _:
                msg = f"execute() takes (data, writer) or (name, data, writer), got {len(args)} arguments"
                raise TypeError(msg)

    def render(self, data: Any = None, name: str | None = None) -> str:
        """Render to a string (default root: this handle's)."""
        return self._factory.render(self._name if name is None else name, data)
