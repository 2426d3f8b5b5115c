"""String functions (Sprig strings family).

Argument order follows Sprig: the string operated on comes last so it can
be supplied by a pipeline, e.g. {{ .Name | trimSuffix "-" | upper }}.

Python 3.13+. Zero external dependencies.
"""

import re
import secrets
import string
import textwrap
from typing import Any

from gotmplengine.runtime.function_bridge import FunctionRegistry

from .builtins import go_quote
from .coerce import to_int, to_list, to_str

__all__ = ["register"]

_WORD_BOUNDARY = re.compile(r"[^A-Za-z0-9]+")
_CAMEL_SPLIT = re.compile(r"[A-Z]+(?=[A-Z][a-z0-9])|[A-Z]?[a-z0-9]+|[A-Z]+|[0-9]+")


def trim(s: Any) -> str:
    return to_str(s).strip()


def trim_all(cutset: Any, s: Any) -> str:
    return to_str(s).strip(to_str(cutset))


def trim_prefix(prefix: Any, s: Any) -> str:
    return to_str(s).removeprefix(to_str(prefix))


def trim_suffix(suffix: Any, s: Any) -> str:
    return to_str(s).removesuffix(to_str(suffix))


def upper(s: Any) -> str:
    return to_str(s).upper()


def lower(s: Any) -> str:
    return to_str(s).lower()


def title(s: Any) -> str:
    """Uppercase the first letter of every word, leaving the rest alone.

    Example:
        >>> title("hello wORLD")
        'Hello WORLD'
    """
    return re.sub(r"(^|\s)(\S)", lambda m: m.group(1) + m.group(2).upper(), to_str(s))


def untitle(s: Any) -> str:
    return re.sub(r"(^|\s)(\S)", lambda m: m.group(1) + m.group(2).lower(), to_str(s))


def repeat(count: Any, s: Any) -> str:
    n = to_int(count)
    if n < 0:
        msg = "negative repeat count"
        raise ValueError(msg)
    return to_str(s) * n


def substr(start: Any, end: Any, s: Any) -> str:
    """Substring with Sprig's bounds rules.

    Example:
        >>> substr(0, 5, "hello world"), substr(6, -1, "hello world")
        ('hello', 'world')
    """
    text, begin, stop = to_str(s), to_int(start), to_int(end)
    if begin < 0:
        return text[:stop]
    if stop < 0 or stop > len(text):
        return text[begin:]
    return text[begin:stop]


def trunc(length: Any, s: Any) -> str:
    """Keep the first n characters (last -n when negative).

    Example:
        >>> trunc(5, "hello world"), trunc(-5, "hello world")
        ('hello', 'world')
    """
    text, n = to_str(s), to_int(length)
    if n < 0 and len(text) + n > 0:
        return text[len(text) + n:]
    if n >= 0 and len(text) > n:
        return text[:n]
    return text


def abbrev(width: Any, s: Any) -> str:
    """Truncate with an ellipsis.

    Example:
        >>> abbrev(5, "hello world")
        'he...'
    """
    text, n = to_str(s), to_int(width)
    if n < 4 or len(text) <= n:
        return text
    return text[: n - 3] + "..."


def abbrevboth(left: Any, right: Any, s: Any) -> str:
    """Abbreviate both ends.

    Example:
        >>> abbrevboth(5, 10, "1234 5678 9123")
        '...5678...'
    """
    text, offset, width = to_str(s), to_int(left), to_int(right)
    if width < 4 or len(text) <= width:
        return text
    if offset > len(text):
        offset = len(text)
    if len(text) - offset < width - 3:
        offset = len(text) - (width - 3)
    if offset <= 4:
        return text[: width - 3] + "..."
    if width < 7:
        return text
    if offset + width - 3 < len(text):
        return "..." + abbrev(width - 3, text[offset:])
    return "..." + text[len(text) - (width - 3):]


def contains(substring: Any, s: Any) -> bool:
    return to_str(substring) in to_str(s)


def has_prefix(prefix: Any, s: Any) -> bool:
    return to_str(s).startswith(to_str(prefix))


def has_suffix(suffix: Any, s: Any) -> bool:
    return to_str(s).endswith(to_str(suffix))


def replace(old: Any, new: Any, s: Any) -> str:
    return to_str(s).replace(to_str(old), to_str(new))


def quote(*values: Any) -> str:
    """Double-quote each non-nil argument, space separated.

    Example:
        >>> quote("a", None, 1)
        '"a" "1"'
    """
    return " ".join(go_quote(to_str(v)) for v in values if v is not None)


def squote(*values: Any) -> str:
    return " ".join(f"'{to_str(v)}'" for v in values if v is not None)


def cat(*values: Any) -> str:
    """Join non-nil arguments with spaces."""
    return " ".join(to_str(v) for v in values if v is not None)


def indent(spaces: Any, s: Any) -> str:
    """Indent every line by n spaces.

    Example:
        >>> indent(2, "a\\nb")
        '  a\\n  b'
    """
    pad = " " * to_int(spaces)
    return pad + to_str(s).replace("\n", "\n" + pad)


def nindent(spaces: Any, s: Any) -> str:
    return "\n" + indent(spaces, s)


def nospace(s: Any) -> str:
    return "".join(to_str(s).split())


def initials(s: Any) -> str:
    """First letter of each word.

    Example:
        >>> initials("First Try")
        'FT'
    """
    return "".join(word[0] for word in to_str(s).split())


def wrap_with(length: Any, newline: Any, s: Any) -> str:
    width = max(to_int(length), 1)
    lines = []
    for line in to_str(s).split("\n"):
        wrapped = textwrap.wrap(
            line, width=width, break_long_words=False, break_on_hyphens=False
        )
        lines.append(to_str(newline).join(wrapped) if wrapped else "")
    return to_str(newline).join(lines)


def wrap(length: Any, s: Any) -> str:
    """Wrap text at word boundaries.

    Example:
        >>> wrap(5, "hello world")
        'hello\\nworld'
    """
    return wrap_with(length, "\n", s)


def split(separator: Any, s: Any) -> dict[str, str]:
    """Split into a dict keyed _0, _1, ...

    Example:
        >>> split("$", "foo$bar$baz")
        {'_0': 'foo', '_1': 'bar', '_2': 'baz'}
    """
    return {f"_{i}": part for i, part in enumerate(to_str(s).split(to_str(separator)))}


def splitn(separator: Any, count: Any, s: Any) -> dict[str, str]:
    n = to_int(count)
    if n == 0:
        return {}
    parts = to_str(s).split(to_str(separator), n - 1 if n > 0 else -1)
    return {f"_{i}": part for i, part in enumerate(parts)}


def split_list(separator: Any, s: Any) -> list[str]:
    return to_str(s).split(to_str(separator))


def join(separator: Any, values: Any) -> str:
    """Join list elements with a separator (nil elements are skipped).

    Example:
        >>> join("-", ["a", 1, None, "b"])
        'a-1-b'
    """
    if isinstance(values, str):
        return values
    return to_str(separator).join(to_str(v) for v in to_list(values) if v is not None)


def sort_alpha(values: Any) -> list[str]:
    if isinstance(values, str):
        return [values]
    return sorted(to_str(v) for v in to_list(values))


def _words(s: str) -> list[str]:
    words: list[str] = []
    for chunk in _WORD_BOUNDARY.split(s):
        words.extend(_CAMEL_SPLIT.findall(chunk))
    return words


def camelcase(s: Any) -> str:
    """Convert to UpperCamelCase.

    Example:
        >>> camelcase("http_server")
        'HttpServer'
    """
    return "".join(word[:1].upper() + word[1:].lower() for word in _words(to_str(s)))


def snakecase(s: Any) -> str:
    """Convert to snake_case.

    Example:
        >>> snakecase("FirstName")
        'first_name'
    """
    return "_".join(word.lower() for word in _words(to_str(s)))


def kebabcase(s: Any) -> str:
    return "-".join(word.lower() for word in _words(to_str(s)))


def swapcase(s: Any) -> str:
    return to_str(s).swapcase()


def plural(one: Any, many: Any, count: Any) -> Any:
    return one if to_int(count) == 1 else many


def to_string(value: Any) -> str:
    return to_str(value)


def to_strings(values: Any) -> list[str]:
    return [to_str(v) for v in to_list(values)]


def _random(alphabet: str, count: Any) -> str:
    return "".join(secrets.choice(alphabet) for _ in range(max(to_int(count), 0)))


def rand_alpha(count: Any) -> str:
    return _random(string.ascii_letters, count)


def rand_alpha_num(count: Any) -> str:
    return _random(string.ascii_letters + string.digits, count)


def rand_numeric(count: Any) -> str:
    return _random(string.digits, count)


def rand_ascii(count: Any) -> str:
    return _random("".join(chr(c) for c in range(32, 127)), count)


def shuffle(s: Any) -> str:
    chars = list(to_str(s))
    for i in range(len(chars) - 1, 0, -1):
        j = secrets.randbelow(i + 1)
        chars[i], chars[j] = chars[j], chars[i]
    return "".join(chars)


def register(registry: FunctionRegistry) -> None:
    """Register the string functions."""
    for func in (
        trim,
        trim_all,
        trim_prefix,
        trim_suffix,
        upper,
        lower,
        title,
        untitle,
        repeat,
        substr,
        trunc,
        abbrev,
        abbrevboth,
        contains,
        has_prefix,
        has_suffix,
        replace,
        quote,
        squote,
        cat,
        indent,
        nindent,
        nospace,
        initials,
        wrap,
        wrap_with,
        split,
        splitn,
        split_list,
        join,
        sort_alpha,
        camelcase,
        snakecase,
        kebabcase,
        swapcase,
        plural,
        to_string,
        to_strings,
        rand_alpha,
        rand_alpha_num,
        rand_numeric,
        rand_ascii,
        shuffle,
    ):
        registry.register(func)
