"""Unified depth limiting for recursion protection.

Provides reusable depth tracking to prevent stack overflow from:
- Deeply nested {{if}}/{{range}}/{{with}} blocks and parenthesized pipelines
- Templates that invoke themselves through {{template}} or include

Thread-safe: uses explicit state, no thread-local storage.
Python 3.13+.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass, field

from gotmplengine.constants import MAX_DEPTH
from gotmplengine.diagnostics import TemplateExecutionError
from gotmplengine.diagnostics.codes import Diagnostic
from gotmplengine.diagnostics.templates import ErrorTemplate

__all__ = ["DepthGuard", "DepthLimitExceededError", "depth_clamp"]

logger = logging.getLogger(__name__)


class DepthLimitExceededError(TemplateExecutionError):
    """Raised when nested template invocation exceeds the configured depth.

    This error indicates either:
    - A template that recursively invokes itself without a base case
    - Adversarially deep data driving a recursive template
    """


@dataclass(slots=True)
class DepthGuard:
    """Context manager for tracking and limiting recursion depth.

    Usage in execution:
        guard = DepthGuard(max_depth=50)
        with guard:
            self._walk(root, data)

    The parser uses the same guard with ``error_factory`` producing a
    syntax error instead of an execution error.

    Attributes:
        max_depth: Maximum allowed depth (default: MAX_DEPTH)
        current_depth: Current recursion depth
        error_factory: Builds the exception raised when the limit is hit
    """

    max_depth: int = MAX_DEPTH
    current_depth: int = field(default=0, init=False)
    error_factory: Callable[[int], Exception] | None = None

    def __post_init__(self) -> None:
        """Clamp max_depth against Python recursion limit."""
        self.max_depth = depth_clamp(self.max_depth)

    def __enter__(self) -> DepthGuard:
        """Enter guarded section, increment depth.

        The limit is checked before incrementing: __exit__ does not run when
        __enter__ raises, so incrementing first would leave the counter
        permanently elevated.
        """
        self.check()
        self.current_depth += 1
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Exit guarded section, decrement depth."""
        self.current_depth -= 1

    @property
    def depth(self) -> int:
        """Current depth (alias for current_depth)."""
        return self.current_depth

    def is_exceeded(self) -> bool:
        """Check if depth limit has been reached."""
        return self.current_depth >= self.max_depth

    def check(self) -> None:
        """Explicitly check depth and raise if exceeded.

        Raises:
            DepthLimitExceededError: If depth limit exceeded and no
                error_factory was supplied
        """
        if self.current_depth >= self.max_depth:
            if self.error_factory is not None:
                raise self.error_factory(self.max_depth)
            diagnostic: Diagnostic = ErrorTemplate.execution_depth_exceeded(self.max_depth)
            raise DepthLimitExceededError(diagnostic)

    def reset(self) -> None:
        """Reset depth to zero (useful for reuse across multiple operations)."""
        self.current_depth = 0


def depth_clamp(requested_depth: int, reserve_frames: int = 50) -> int:
    """Clamp requested depth against Python recursion limit.

    Each template nesting level costs several interpreter frames, so the
    usable depth is the recursion limit divided by that cost, minus a
    reserve for the caller's own stack.

    Args:
        requested_depth: Desired maximum depth
        reserve_frames: Stack frames to reserve for call overhead (default: 50)

    Returns:
        Safe depth value, clamped if necessary

    Example:
        >>> import sys
        >>> sys.setrecursionlimit(1000)
        >>> depth_clamp(100)
        100
        >>> depth_clamp(5000)
        118
    """
    max_safe_depth = (sys.getrecursionlimit() - reserve_frames) // _FRAMES_PER_LEVEL
    if requested_depth > max_safe_depth:
        logger.warning(
            "Requested depth %d exceeds Python recursion limit (%d). "
            "Clamping to %d to prevent RecursionError. "
            "Consider increasing sys.setrecursionlimit() if needed.",
            requested_depth,
            sys.getrecursionlimit(),
            max_safe_depth,
        )
        return max_safe_depth
    return requested_depth


# Interpreter frames consumed per nesting level (list, node, pipe, command, argument and their callers).
_FRAMES_PER_LEVEL = 8
