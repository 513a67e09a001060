"""Custom exceptions for imagit."""

from pathlib import Path


class ImagitError(Exception):
    """Base exception class for imagit."""

    pass


class ConfigurationError(ImagitError):
    """Configuration error."""

    pass


class InvalidImagePathError(ImagitError):
    """Path extension is not a configured conversion source."""

    def __init__(self, file_path: Path, extension: str) -> None:
        self.file_path = file_path
        self.extension = extension
        super().__init__(f"Unrecognized image extension '{extension}': {file_path}")


class InvalidSourceTreeError(ImagitError):
    """Source path does not lie under the configured source directory."""

    def __init__(self, file_path: Path, source_directory: Path) -> None:
        self.file_path = file_path
        self.source_directory = source_directory
        super().__init__(f"{file_path} is not inside source directory {source_directory}")


class DirectoryCreateError(ImagitError):
    """Output directory could not be created."""

    def __init__(self, path: Path, cause: Exception | None = None) -> None:
        self.path = path
        self.cause = cause
        message = f"Failed to create directory {path}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class CodecError(ImagitError):
    """Image decode, resize, encode or metadata failure."""

    def __init__(self, file_path: Path, operation: str, cause: Exception | None = None) -> None:
        self.file_path = file_path
        self.operation = operation
        self.cause = cause
        message = f"Codec {operation} failed for {file_path}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class ConversionError(ImagitError):
    """A single (source image, target format) conversion failed."""

    def __init__(self, source_path: Path, target_format: str, cause: Exception) -> None:
        self.source_path = source_path
        self.target_format = target_format
        self.cause = cause
        super().__init__(f"{target_format.upper()} conversion failed for {source_path}: {cause}")


class OutputCollisionError(ImagitError):
    """Two conversion jobs would write the same output file."""

    def __init__(self, output_path: Path, sources: list[Path]) -> None:
        self.output_path = output_path
        self.sources = sources
        names = ", ".join(str(s) for s in sources)
        super().__init__(f"Output path {output_path} is produced by several sources: {names}")


class BatchConversionError(ImagitError):
    """The run stopped because at least one conversion failed.

    Completed results are kept on the exception so callers can still
    inspect what was written before the run failed.
    """

    def __init__(self, failures: list, results: list | None = None, skipped: int = 0) -> None:
        self.failures = failures
        self.results = results or []
        self.skipped = skipped
        first = failures[0].error if failures else None
        message = f"{len(failures)} conversion(s) failed"
        if first is not None:
            message += f"; first: {first}"
        super().__init__(message)

    @property
    def first_error(self) -> ConversionError | None:
        """The first conversion error observed."""
        return self.failures[0].error if self.failures else None


class ReportWriteError(ImagitError):
    """Conversion report could not be written."""

    def __init__(self, path: Path, cause: Exception | None = None) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to write report {path}: {cause}")
