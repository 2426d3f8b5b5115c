"""Parse and execution options for a template set.

A single frozen dataclass that carries every syntax and limit setting from
the Template/TemplateFactory constructors down to the lexer, parser and
executor.

Python 3.13+. Zero external dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass

from gotmplengine.constants import (
    DEFAULT_LEFT_COMMENT,
    DEFAULT_LEFT_DELIM,
    DEFAULT_RIGHT_COMMENT,
    DEFAULT_RIGHT_DELIM,
    MAX_DEPTH,
    MAX_SOURCE_SIZE,
)

__all__ = ["TemplateOptions"]


@dataclass(frozen=True, slots=True)
class TemplateOptions:
    """Immutable syntax and limit configuration.

    All fields have defaults; ``TemplateOptions()`` is the standard Go
    template syntax with the default limits.

    Attributes:
        left_delim: Action opening delimiter (default: "{{")
        right_delim: Action closing delimiter (default: "}}")
        left_comment: Comment opening marker (default: "/*")
        right_comment: Comment closing marker (default: "*/")
        keep_comments: Keep comments in the AST (default: False)
        max_nesting_depth: Parser block nesting limit and executor
            template-call limit (default: 100)
        max_source_size: Largest accepted template text in characters
            (default: 10 MiB)

    Example:
        >>> options = TemplateOptions(left_delim="[[", right_delim="]]")
        >>> options.delimiters
        ('[[', ']]')
    """

    left_delim: str = DEFAULT_LEFT_DELIM
    right_delim: str = DEFAULT_RIGHT_DELIM
    left_comment: str = DEFAULT_LEFT_COMMENT
    right_comment: str = DEFAULT_RIGHT_COMMENT
    keep_comments: bool = False
    max_nesting_depth: int = MAX_DEPTH
    max_source_size: int = MAX_SOURCE_SIZE

    def __post_init__(self) -> None:
        """Validate configuration values at construction time.

        Raises:
            ValueError: If a delimiter or comment marker is empty, or a
                limit is not positive
        """
        for label, marker in (
            ("left_delim", self.left_delim),
            ("right_delim", self.right_delim),
            ("left_comment", self.left_comment),
            ("right_comment", self.right_comment),
        ):
            if not marker:
                msg = f"{label} must not be empty"
                raise ValueError(msg)
        if self.max_nesting_depth <= 0:
            msg = "max_nesting_depth must be positive"
            raise ValueError(msg)
        if self.max_source_size <= 0:
            msg = "max_source_size must be positive"
            raise ValueError(msg)

    @classmethod
    def create(
        cls,
        *,
        delimiters: tuple[str, str] = (DEFAULT_LEFT_DELIM, DEFAULT_RIGHT_DELIM),
        comments: tuple[str, str] = (DEFAULT_LEFT_COMMENT, DEFAULT_RIGHT_COMMENT),
        keep_comments: bool = False,
        max_nesting_depth: int = MAX_DEPTH,
        max_source_size: int = MAX_SOURCE_SIZE,
    ) -> TemplateOptions:
        """Build options from the pair-style arguments the facade accepts."""
        left_delim, right_delim = delimiters
        left_comment, right_comment = comments
        return cls(
            left_delim=left_delim,
            right_delim=right_delim,
            left_comment=left_comment,
            right_comment=right_comment,
            keep_comments=keep_comments,
            max_nesting_depth=max_nesting_depth,
            max_source_size=max_source_size,
        )

    @property
    def delimiters(self) -> tuple[str, str]:
        return (self.left_delim, self.right_delim)
