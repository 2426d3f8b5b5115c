"""Core utilities shared by the syntax and runtime layers.

Python 3.13+.
"""

from .chars import is_alphanumeric, is_space
from .depth_guard import DepthGuard, DepthLimitExceededError, depth_clamp

__all__ = [
    "DepthGuard",
    "DepthLimitExceededError",
    "depth_clamp",
    "is_alphanumeric",
    "is_space",
]
