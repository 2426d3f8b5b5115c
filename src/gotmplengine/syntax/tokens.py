"""Lexical tokens and source position lookup.

Python 3.13+. Zero external dependencies.
"""

from bisect import bisect_right
from dataclasses import dataclass

from gotmplengine.enums import TokenKind

__all__ = ["LineOffsetCache", "Token"]


@dataclass(frozen=True, slots=True)
class Token:
    """Immutable lexical token.

    Attributes:
        kind: Token classification
        text: Exact source text of the token (for ERROR tokens, the message)
        offset: Character offset of the first character (0-indexed)
        line: Line of the first character (1-indexed)
        column: Column of the first character (1-indexed)
    """

    kind: TokenKind
    text: str
    offset: int
    line: int
    column: int

    def __str__(self) -> str:
        match self.kind:
            case TokenKind.EOF:
                return "EOF"
            case TokenKind.ERROR:
                return self.text
            case _ if self.kind.is_keyword:
                return f"<{self.text}>"
            case _ if len(self.text) > 10:
                return f"{self.text[:10]!r}..."
            case _:
                return repr(self.text)


class LineOffsetCache:
    """Cached line offset computation for efficient position lookups.

    Precomputes line start offsets in a single pass, then answers
    line:column queries with a binary search.

    Example:
        >>> cache = LineOffsetCache("ab\\ncd")
        >>> cache.get_line_col(3)
        (2, 1)
    """

    __slots__ = ("_offsets", "_source_len")

    def __init__(self, source: str) -> None:
        offsets = [0]
        pos = source.find("\n")
        while pos >= 0:
            offsets.append(pos + 1)
            pos = source.find("\n", pos + 1)
        self._offsets: tuple[int, ...] = tuple(offsets)
        self._source_len = len(source)

    def get_line_col(self, pos: int) -> tuple[int, int]:
        """Get 1-indexed (line, column) for a character offset."""
        pos = min(max(pos, 0), self._source_len)
        index = bisect_right(self._offsets, pos) - 1
        return index + 1, pos - self._offsets[index] + 1
