"""List and dict functions (Sprig lists and dicts families).

List functions never mutate their input; they return new lists. The dict
functions set, unset, merge and mergeOverwrite mutate and return their
first argument, as Sprig does.

The must* variants are registered under both names: argument faults
already surface as execution errors here.

Python 3.13+. Zero external dependencies.
"""

import copy
from collections.abc import Mapping, MutableMapping
from typing import Any

from gotmplengine.runtime.function_bridge import FunctionRegistry

from .coerce import to_int, to_list, to_str
from .logic import empty

__all__ = ["register"]


# ============================================================================
# LISTS
# ============================================================================


def list_(*items: Any) -> list[Any]:
    return list(items)


def first(values: Any) -> Any:
    items = to_list(values)
    return items[0] if items else None


def last(values: Any) -> Any:
    items = to_list(values)
    return items[-1] if items else None


def rest(values: Any) -> list[Any]:
    return to_list(values)[1:]


def initial(values: Any) -> list[Any]:
    return to_list(values)[:-1]


def append(values: Any, item: Any) -> list[Any]:
    return [*to_list(values), item]


def prepend(values: Any, item: Any) -> list[Any]:
    return [item, *to_list(values)]


def concat(*lists: Any) -> list[Any]:
    result: list[Any] = []
    for values in lists:
        result.extend(to_list(values))
    return result


def reverse(values: Any) -> list[Any]:
    return to_list(values)[::-1]


def uniq(values: Any) -> list[Any]:
    """Remove duplicates, keeping first occurrences (values may be unhashable).

    Example:
        >>> uniq([1, 2, 1, {"a": 1}, {"a": 1}])
        [1, 2, {'a': 1}]
    """
    result: list[Any] = []
    for item in to_list(values):
        if item not in result:
            result.append(item)
    return result


def without(values: Any, *omit: Any) -> list[Any]:
    return [item for item in to_list(values) if item not in omit]


def has(needle: Any, haystack: Any) -> bool:
    if haystack is None:
        return False
    return needle in to_list(haystack)


def compact(values: Any) -> list[Any]:
    """Drop empty elements.

    Example:
        >>> compact(["a", "", None, 0, "b"])
        ['a', 'b']
    """
    return [item for item in to_list(values) if not empty(item)]


def until(count: Any) -> list[int]:
    """0..n-1, or 0..n+1 counting down for negative n.

    Example:
        >>> until(3), until(-3)
        ([0, 1, 2], [0, -1, -2])
    """
    n = to_int(count)
    return list(range(n)) if n >= 0 else list(range(0, n, -1))


def until_step(start: Any, stop: Any, step: Any) -> list[int]:
    increment = to_int(step)
    if increment == 0:
        return []
    return list(range(to_int(start), to_int(stop), increment))


def seq(*params: Any) -> str:
    """Bash-style seq, returned as a space separated string.

    Example:
        >>> seq(3), seq(2, 4), seq(0, 2, 6), seq(3, 1)
        ('1 2 3', '2 3 4', '0 2 4 6', '3 2 1')
    """
    numbers = [to_int(p) for p in params]
    match numbers:
        case [end]:
            begin, step = 1, 1 if end >= 1 else -1
        case [begin, end]:
            step = 1 if end >= begin else -1
        case [begin, step, end]:
            if step == 0 or (end > begin and step < 0) or (end < begin and step > 0):
                return ""
        case _:
            return ""
    stop = end + (1 if step > 0 else -1)
    return " ".join(str(n) for n in range(begin, stop, step))


def chunk(size: Any, values: Any) -> list[list[Any]]:
    n = to_int(size)
    if n <= 0:
        msg = "chunk size must be positive"
        raise ValueError(msg)
    items = to_list(values)
    return [items[i : i + n] for i in range(0, len(items), n)]


# ============================================================================
# DICTS
# ============================================================================


def _require_mapping(value: Any, name: str) -> Mapping[Any, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        msg = f"{name} expects a dict"
        raise TypeError(msg)
    return value


def dict_(*pairs: Any) -> dict[str, Any]:
    """Build a dict from key/value pairs (a dangling key maps to "").

    Example:
        >>> dict_("a", 1, "b")
        {'a': 1, 'b': ''}
    """
    result: dict[str, Any] = {}
    for i in range(0, len(pairs), 2):
        key = to_str(pairs[i])
        result[key] = pairs[i + 1] if i + 1 < len(pairs) else ""
    return result


def get(mapping: Any, key: Any) -> Any:
    """Value for key, or "" when absent."""
    source = _require_mapping(mapping, "get")
    return source.get(to_str(key), "")


def set_(mapping: Any, key: Any, value: Any) -> Any:
    if not isinstance(mapping, MutableMapping):
        msg = "set expects a dict"
        raise TypeError(msg)
    mapping[to_str(key)] = value
    return mapping


def unset(mapping: Any, key: Any) -> Any:
    if not isinstance(mapping, MutableMapping):
        msg = "unset expects a dict"
        raise TypeError(msg)
    mapping.pop(to_str(key), None)
    return mapping


def has_key(mapping: Any, key: Any) -> bool:
    return to_str(key) in _require_mapping(mapping, "hasKey")


def keys(*mappings: Any) -> list[Any]:
    result: list[Any] = []
    for mapping in mappings:
        result.extend(_require_mapping(mapping, "keys"))
    return result


def values(mapping: Any) -> list[Any]:
    return list(_require_mapping(mapping, "values").values())


def pick(mapping: Any, *names: Any) -> dict[Any, Any]:
    source = _require_mapping(mapping, "pick")
    wanted = [to_str(n) for n in names]
    return {k: source[k] for k in wanted if k in source}


def omit(mapping: Any, *names: Any) -> dict[Any, Any]:
    source = _require_mapping(mapping, "omit")
    unwanted = {to_str(n) for n in names}
    return {k: v for k, v in source.items() if k not in unwanted}


def _deep_merge(dst: MutableMapping[Any, Any], src: Mapping[Any, Any], *, overwrite: bool) -> None:
    for key, value in src.items():
        current = dst.get(key)
        if isinstance(current, MutableMapping) and isinstance(value, Mapping):
            _deep_merge(current, value, overwrite=overwrite)
        elif key not in dst or (overwrite and value is not None) or (
            not overwrite and empty(current)
        ):
            dst[key] = copy.deepcopy(value)


def merge(dst: Any, *sources: Any) -> Any:
    """Deep-merge sources into dst; values already in dst win.

    Example:
        >>> merge({"a": 1, "n": {"x": 1}}, {"a": 2, "b": 3, "n": {"y": 2}})
        {'a': 1, 'n': {'x': 1, 'y': 2}, 'b': 3}
    """
    if not isinstance(dst, MutableMapping):
        msg = "merge expects a dict destination"
        raise TypeError(msg)
    for src in sources:
        _deep_merge(dst, _require_mapping(src, "merge"), overwrite=False)
    return dst


def merge_overwrite(dst: Any, *sources: Any) -> Any:
    """Deep-merge sources into dst; later values win.

    Example:
        >>> merge_overwrite({"a": 1, "n": {"x": 1}}, {"a": 2, "n": {"x": 3}})
        {'a': 2, 'n': {'x': 3}}
    """
    if not isinstance(dst, MutableMapping):
        msg = "mergeOverwrite expects a dict destination"
        raise TypeError(msg)
    for src in sources:
        _deep_merge(dst, _require_mapping(src, "mergeOverwrite"), overwrite=True)
    return dst


def pluck(key: Any, *mappings: Any) -> list[Any]:
    name = to_str(key)
    return [m[name] for m in mappings if isinstance(m, Mapping) and name in m]


def dig(*args: Any) -> Any:
    """dig "a" "b" "default" $dict: nested lookup with a fallback.

    Raises:
        TypeError: If fewer than three arguments are given

    Example:
        >>> dig("a", "b", "none", {"a": {"b": 1}}), dig("a", "x", "none", {"a": {}})
        (1, 'none')
    """
    if len(args) < 3:
        msg = "dig needs at least three arguments"
        raise TypeError(msg)
    *path, default, current = args
    for key in path:
        if not isinstance(current, Mapping) or to_str(key) not in current:
            return default
        current = current[to_str(key)]
    return current


def deep_copy(value: Any) -> Any:
    return copy.deepcopy(value)


def register(registry: FunctionRegistry) -> None:
    """Register the list and dict functions."""
    for name, func in (
        ("list", list_),
        ("tuple", list_),
        ("first", first),
        ("last", last),
        ("rest", rest),
        ("initial", initial),
        ("append", append),
        ("push", append),
        ("prepend", prepend),
        ("concat", concat),
        ("reverse", reverse),
        ("uniq", uniq),
        ("without", without),
        ("has", has),
        ("compact", compact),
        ("until", until),
        ("untilStep", until_step),
        ("seq", seq),
        ("chunk", chunk),
        ("dict", dict_),
        ("get", get),
        ("set", set_),
        ("unset", unset),
        ("hasKey", has_key),
        ("keys", keys),
        ("values", values),
        ("pick", pick),
        ("omit", omit),
        ("merge", merge),
        ("mergeOverwrite", merge_overwrite),
        ("pluck", pluck),
        ("dig", dig),
        ("deepCopy", deep_copy),
    ):
        registry.register(func, name=name)

    for name in (
        "first",
        "last",
        "rest",
        "initial",
        "append",
        "push",
        "prepend",
        "reverse",
        "uniq",
        "without",
        "has",
        "compact",
        "chunk",
        "hasKey",
        "keys",
        "values",
        "pick",
        "omit",
        "merge",
        "mergeOverwrite",
        "deepCopy",
    ):
        registry.register(registry.get_callable(name), name="must" + name[0].upper() + name[1:])
