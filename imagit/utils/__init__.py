"""Utility module for imagit."""

from imagit.utils.concurrency import ConcurrencyManager, TaskResult
from imagit.utils.fs import (
    atomic_write,
    ensure_directory,
    format_size,
    is_hidden,
    is_relative_to,
    iter_files,
    remove_directory,
)
from imagit.utils.stats import FormatStats, RunStats

__all__ = [
    # Concurrency
    "ConcurrencyManager",
    "TaskResult",
    # File system
    "ensure_directory",
    "iter_files",
    "is_hidden",
    "is_relative_to",
    "remove_directory",
    "atomic_write",
    "format_size",
    # Stats
    "RunStats",
    "FormatStats",
]
