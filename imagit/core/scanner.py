"""Source tree scanning."""

from pathlib import Path

from imagit.utils.fs import iter_files
from imagit.utils.logging import get_logger

log = get_logger(__name__)


def scan_images(source_directory: Path, extensions: set[str]) -> list[Path]:
    """Find candidate images under a source tree.

    Args:
        source_directory: Root of the source tree (searched recursively)
        extensions: Extensions to match, lowercase without dot

    Returns:
        Sorted list of matching paths; empty when nothing matches or the
        directory does not exist
    """
    if not source_directory.is_dir():
        log.warning("Source directory not found", path=str(source_directory))
        return []

    wanted = {ext.lower().lstrip(".") for ext in extensions}
    files = sorted(iter_files(source_directory, recursive=True, extensions=wanted))

    log.debug("Scanned source directory", path=str(source_directory), matches=len(files))
    return files
