"""Regular expression functions (Sprig regex family).

Patterns are compiled with Python's re module, whose syntax covers the RE2
subset templates use in practice. Replacement strings use Go's expansion
syntax ($1, ${1}, ${name}, $$) rather than Python's backslash groups.

Python 3.13+. Zero external dependencies.
"""

import functools
import re
from typing import Any

from gotmplengine.runtime.function_bridge import FunctionRegistry

from .coerce import to_int, to_str

__all__ = ["expand_go_template", "register"]

_GO_REFERENCE = re.compile(r"\$(?:\$|\{(\w+)\}|(\w+))")
_GO_META = frozenset("\\.+*?()|[]{}^$")


@functools.lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as e:
        msg = f"error parsing regexp: {e}: `{pattern}`"
        raise ValueError(msg) from e


def expand_go_template(template: str, match: re.Match[str]) -> str:
    """Expand a Go replacement template against a match.

    Unknown group names and out-of-range numbers expand to "".

    Example:
        >>> m = re.search(r"(?P<k>\\w+)=(\\w+)", "a=b")
        >>> expand_go_template("${2}:$k$$", m)
        'b:a$'
    """

    def substitute(ref: re.Match[str]) -> str:
        name = ref.group(1) or ref.group(2)
        if name is None:
            return "$"
        try:
            group = match.group(int(name) if name.isdigit() else name)
        except IndexError:
            return ""
        return group or ""

    return _GO_REFERENCE.sub(substitute, template)


def regex_match(pattern: Any, s: Any) -> bool:
    return _compile(to_str(pattern)).search(to_str(s)) is not None


def regex_find(pattern: Any, s: Any) -> str:
    found = _compile(to_str(pattern)).search(to_str(s))
    return found.group(0) if found else ""


def regex_find_all(pattern: Any, s: Any, count: Any) -> list[str]:
    """Return up to n matches (all when n < 0).

    Example:
        >>> regex_find_all("[2,4,6,8]", "123456789", -1)
        ['2', '4', '6', '8']
    """
    n = to_int(count)
    matches = [m.group(0) for m in _compile(to_str(pattern)).finditer(to_str(s))]
    return matches if n < 0 else matches[:n]


def regex_replace_all(pattern: Any, s: Any, replacement: Any) -> str:
    """Replace every match, expanding $-references in the replacement.

    Example:
        >>> regex_replace_all("a(x*)b", "-ab-axxb-", "${1}W")
        '-W-xxW-'
    """
    template = to_str(replacement)
    return _compile(to_str(pattern)).sub(lambda m: expand_go_template(template, m), to_str(s))


def regex_replace_all_literal(pattern: Any, s: Any, replacement: Any) -> str:
    literal = to_str(replacement)
    return _compile(to_str(pattern)).sub(lambda _: literal, to_str(s))


def regex_split(pattern: Any, s: Any, count: Any) -> list[str]:
    """Split around matches into at most n pieces (all when n < 0).

    Capture groups are not included in the result.

    Example:
        >>> regex_split("z+", "pizza", -1)
        ['pi', 'a']
    """
    n, text = to_int(count), to_str(s)
    if n == 0:
        return []
    compiled = _compile(to_str(pattern))
    if compiled.pattern and text == "":
        return [""]

    pieces: list[str] = []
    begin = 0
    for found in compiled.finditer(text):
        if n > 0 and len(pieces) == n - 1:
            break
        start, end = found.span()
        if end == 0:
            continue
        pieces.append(text[begin:start])
        begin = end
    pieces.append(text[begin:])
    return pieces


def regex_quote_meta(s: Any) -> str:
    return "".join("\\" + ch if ch in _GO_META else ch for ch in to_str(s))


def register(registry: FunctionRegistry) -> None:
    """Register the regex functions and their must* aliases."""
    for func in (
        regex_match,
        regex_find,
        regex_find_all,
        regex_replace_all,
        regex_replace_all_literal,
        regex_split,
        regex_quote_meta,
    ):
        registry.register(func)
    for name in (
        "regexMatch",
        "regexFind",
        "regexFindAll",
        "regexReplaceAll",
        "regexReplaceAllLiteral",
        "regexSplit",
    ):
        registry.register(registry.get_callable(name), name="must" + name[0].upper() + name[1:])
