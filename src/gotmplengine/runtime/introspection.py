"""Field resolution on data values.

Two kinds of context value are supported:

- Mappings: ``.Name`` is a direct key lookup; a missing key yields None.
- Objects: accessible attributes are enumerated once per type (dataclass
  fields, NamedTuple fields, __slots__, properties) and memoized. Instance
  ``__dict__`` attributes are checked on every lookup since they are not
  known per type.

Template authors write ``.Name`` or ``.FirstName`` while Python objects use
``name`` or ``first_name``; each attribute is therefore reachable under its
own name, its capitalized form and its CamelCase form. Missing attributes
and unset slots yield None. An accessor that raises, AttributeError
included, is a hard error.

The descriptor cache is shared process-wide and populated without locks:
``dict.setdefault`` gives atomic insert-if-absent, and the table for a type
is deterministic, so concurrent builders always agree.

Python 3.13+.
"""

import dataclasses
import functools
import inspect
import logging
import types
from collections.abc import Mapping
from typing import Any

from gotmplengine.diagnostics import ErrorTemplate, TemplateExecutionError

__all__ = ["PropertyCache", "get_shared_property_cache", "template_names"]

logger = logging.getLogger(__name__)


def template_names(attribute: str) -> tuple[str, ...]:
    """Names under which a Python attribute is visible to templates.

    Example:
        >>> template_names("first_name")
        ('first_name', 'First_name', 'FirstName')
    """
    names = [attribute]
    if attribute[:1].islower():
        names.append(attribute[0].upper() + attribute[1:])
    if "_" in attribute.strip("_"):
        camel = "".join(part[:1].upper() + part[1:] for part in attribute.split("_") if part)
        names.append(camel)
    return tuple(dict.fromkeys(names))


def _python_candidates(identifier: str) -> tuple[str, ...]:
    """Reverse of template_names: attribute spellings to try for an identifier."""
    candidates = [identifier]
    if identifier[:1].isupper():
        candidates.append(identifier[0].lower() + identifier[1:])
        snake = "".join(
            ("_" + char.lower()) if char.isupper() and index else char.lower()
            for index, char in enumerate(identifier)
        )
        candidates.append(snake)
    return tuple(dict.fromkeys(candidates))


def _enumerate_attributes(cls: type) -> list[str]:
    names: list[str] = []
    if dataclasses.is_dataclass(cls):
        names.extend(f.name for f in dataclasses.fields(cls))
    fields = getattr(cls, "_fields", None)
    if isinstance(fields, tuple):
        names.extend(name for name in fields if isinstance(name, str))
    for klass in reversed(cls.__mro__):
        slots = klass.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        names.extend(slot for slot in slots if not slot.startswith("__"))
        for attr, member in klass.__dict__.items():
            if isinstance(member, property | functools.cached_property):
                names.append(attr)
    return [name for name in dict.fromkeys(names) if not name.startswith("_")]


def _is_slot(cls: type, attribute: str) -> bool:
    return isinstance(inspect.getattr_static(cls, attribute, None), types.MemberDescriptorType)


class PropertyCache:
    """Memoized per-type table of template name -> attribute name."""

    __slots__ = ("_tables",)

    def __init__(self) -> None:
        self._tables: dict[type, dict[str, str]] = {}

    def descriptors(self, cls: type) -> dict[str, str]:
        """Get (building on first use) the attribute table for a type."""
        table = self._tables.get(cls)
        if table is None:
            built: dict[str, str] = {}
            for attribute in _enumerate_attributes(cls):
                for name in template_names(attribute):
                    built.setdefault(name, attribute)
            table = self._tables.setdefault(cls, built)
            logger.debug("Cached %d field descriptor(s) for %s", len(built), cls.__qualname__)
        return table

    def resolve(self, receiver: Any, name: str) -> Any:
        """Read field ``name`` of ``receiver``.

        Returns:
            The field value, or None when the receiver is None or has no
            such field

        Raises:
            TemplateExecutionError: If the attribute accessor raises
        """
        if receiver is None:
            return None
        if isinstance(receiver, Mapping):
            return receiver.get(name)
        attribute = self.descriptors(type(receiver)).get(name)
        if attribute is None:
            instance_dict = getattr(receiver, "__dict__", None)
            if not instance_dict:
                return None
            attribute = next(
                (
                    c
                    for c in _python_candidates(name)
                    if c in instance_dict and not c.startswith("_")
                ),
                None,
            )
            if attribute is None:
                return None
        try:
            return getattr(receiver, attribute)
        except AttributeError as e:
            if _is_slot(type(receiver), attribute):
                return None
            raise TemplateExecutionError(
                ErrorTemplate.field_access_failed(name, str(e) or type(e).__name__)
            ) from e
        except Exception as e:  # noqa: BLE001 - any accessor fault is reported
            raise TemplateExecutionError(
                ErrorTemplate.field_access_failed(name, str(e) or type(e).__name__)
            ) from e

    def clear(self) -> None:
        self._tables.clear()

    def __len__(self) -> int:
        return len(self._tables)


_SHARED_CACHE = PropertyCache()


def get_shared_property_cache() -> PropertyCache:
    """Process-wide descriptor cache used by executors by default."""
    return _SHARED_CACHE
