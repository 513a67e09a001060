"""Data models shared by the conversion pipeline."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from imagit.config.settings import FormatSettings
from imagit.exceptions import ConversionError


@dataclass(frozen=True)
class ConversionJob:
    """One planned (source image, target format) conversion."""

    source_path: Path
    target_format: str
    settings: FormatSettings
    output_path: Path

    def __str__(self) -> str:
        return f"{self.source_path} -> {self.target_format}"


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of a successful conversion."""

    source_path: Path
    output_path: Path
    original_size: int
    converted_size: int
    compression_ratio: float
    format: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ConversionFailure:
    """Outcome of a failed conversion."""

    source_path: Path
    target_format: str
    error: ConversionError

    @property
    def cause(self) -> Exception:
        """The underlying error that stopped the conversion."""
        return self.error.cause


def compression_ratio(original_size: int, converted_size: int) -> float:
    """Percentage of bytes saved; negative when the output grew.

    A zero-byte source yields 0.0.
    """
    if original_size == 0:
        return 0.0
    return (1 - converted_size / original_size) * 100
