"""File system utilities for imagit.

Provides directory creation, image discovery, atomic writes and size formatting.
"""

import os
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Any

from imagit.exceptions import DirectoryCreateError
from imagit.utils.logging import get_logger

log = get_logger(__name__)


def ensure_directory(path: Path) -> bool:
    """Ensure a directory exists, creating it and its parents if necessary.

    Safe to call concurrently for the same or overlapping paths.

    Args:
        path: Directory path

    Returns:
        True if this call created the directory, False if it already existed

    Raises:
        DirectoryCreateError: If the path exists as a file or cannot be created
    """
    try:
        path.mkdir(parents=True, exist_ok=False)
    except FileExistsError as e:
        if path.is_dir():
            return False
        raise DirectoryCreateError(path, e) from e
    except OSError as e:
        # Parent may exist as a file, or permissions may be missing
        raise DirectoryCreateError(path, e) from e

    log.info("Created output directory", path=str(path))
    return True


def is_hidden(path: Path) -> bool:
    """Check if a path is hidden (dot-prefixed)."""
    return path.name.startswith(".")


def iter_files(
    directory: Path,
    recursive: bool = True,
    extensions: set[str] | None = None,
) -> Iterator[Path]:
    """Iterate over files in a directory.

    Args:
        directory: Directory to search
        recursive: Search subdirectories
        extensions: Lowercase extensions without dot; None accepts everything

    Yields:
        File paths
    """
    if recursive:
        for root, dirs, files in os.walk(directory):
            # Prune hidden directories in place
            dirs[:] = [d for d in dirs if not d.startswith(".")]
            root_path = Path(root)
            for filename in files:
                file_path = root_path / filename
                if is_hidden(file_path):
                    continue
                if extensions is None or file_path.suffix.lower().lstrip(".") in extensions:
                    yield file_path
    else:
        for file_path in directory.iterdir():
            if not file_path.is_file() or is_hidden(file_path):
                continue
            if extensions is None or file_path.suffix.lower().lstrip(".") in extensions:
                yield file_path


def is_relative_to(path: Path, base: Path) -> bool:
    """Check whether path equals or lies under base (both made absolute)."""
    try:
        Path(os.path.abspath(path)).relative_to(os.path.abspath(base))
    except ValueError:
        return False
    return True


def remove_directory(path: Path) -> bool:
    """Remove a directory tree if it exists.

    Returns:
        True if something was removed
    """
    if not path.exists():
        return False
    shutil.rmtree(path)
    log.info("Removed output directory", path=str(path))
    return True


@contextmanager
def atomic_write(
    file_path: Path,
    mode: str = "w",
    encoding: str | None = "utf-8",
) -> Iterator[IO[Any]]:
    """Context manager for atomic file writes.

    Writes to a temp file first, then atomically moves to target.

    Args:
        file_path: Target file path
        mode: File mode ('w' or 'wb')
        encoding: File encoding (ignored for binary mode)

    Yields:
        File handle
    """
    file_path.parent.mkdir(parents=True, exist_ok=True)

    # Temp file in the same directory so the rename stays on one filesystem
    temp_fd, temp_name = tempfile.mkstemp(
        dir=file_path.parent,
        prefix=f".{file_path.name}.",
    )
    temp_path = Path(temp_name)

    try:
        os.close(temp_fd)

        if "b" in mode:
            with open(temp_path, mode) as f:
                yield f
        else:
            with open(temp_path, mode, encoding=encoding) as f:
                yield f

        temp_path.replace(file_path)

    except Exception:
        if temp_path.exists():
            temp_path.unlink()
        raise


def format_size(size: int | float) -> str:
    """Format byte size as human-readable string.

    Args:
        size: Size in bytes

    Returns:
        Human-readable size string
    """
    size_f = float(size)
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if size_f < 1024:
            return f"{size_f:.1f} {unit}"
        size_f /= 1024
    return f"{size_f:.1f} PB"
