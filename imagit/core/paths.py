"""Mapping between source image paths and output paths."""

import os
from dataclasses import dataclass
from pathlib import Path

from imagit.config.settings import RunConfig
from imagit.exceptions import InvalidImagePathError, InvalidSourceTreeError


@dataclass(frozen=True)
class ImagePathInfo:
    """Name and lowercase extension of an image path."""

    name: str
    extension: str


def parse_image_path(path: Path, extensions: set[str]) -> ImagePathInfo | None:
    """Extract name and extension from an image path.

    Args:
        path: Image path
        extensions: Recognized extensions (lowercase, no dot)

    Returns:
        Path info, or None when the extension is not recognized
    """
    extension = path.suffix.lower().lstrip(".")
    if not extension or extension not in extensions:
        return None
    return ImagePathInfo(name=path.stem, extension=extension)


def require_image_path(path: Path, extensions: set[str]) -> ImagePathInfo:
    """Like ``parse_image_path`` but raise for unrecognized extensions.

    Raises:
        InvalidImagePathError: If the extension is not recognized
    """
    info = parse_image_path(path, extensions)
    if info is None:
        raise InvalidImagePathError(path, path.suffix.lower().lstrip("."))
    return info


def relative_source_path(source_path: Path, source_directory: Path) -> Path:
    """Path of a source image relative to the source root.

    Raises:
        InvalidSourceTreeError: If the path is not under the source root
    """
    absolute_source = Path(os.path.abspath(source_path))
    absolute_root = Path(os.path.abspath(source_directory))
    try:
        relative = absolute_source.relative_to(absolute_root)
    except ValueError as e:
        raise InvalidSourceTreeError(source_path, source_directory) from e
    if relative == Path("."):
        raise InvalidSourceTreeError(source_path, source_directory)
    return relative


def create_output_path(source_path: Path, target_format: str, config: RunConfig) -> Path:
    """Map a source image to its output path for a target format.

    The source root is swapped for the output root, the subdirectory
    structure is kept, and the extension is replaced by
    ``{filename_suffix}.{target_format}``.

    Example:
        ``src/sub/b.jpg`` with format ``webp`` -> ``dist/sub/b.webp``

    Raises:
        InvalidSourceTreeError: If the source is not under ``source_directory``
    """
    relative = relative_source_path(source_path, config.source_directory)
    filename = f"{relative.stem}{config.filename_suffix}.{target_format.lower()}"
    return config.output_directory / relative.parent / filename
