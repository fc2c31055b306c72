"""Runtime support for the weather engine."""

from .cache import MemoCache

__all__ = [
    "MemoCache",
]
