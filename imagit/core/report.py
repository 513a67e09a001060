"""Conversion report generation."""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from imagit.config.constants import REPORT_FILENAME
from imagit.core.models import ConversionResult
from imagit.exceptions import ReportWriteError
from imagit.utils.fs import atomic_write, format_size
from imagit.utils.logging import get_logger

log = get_logger(__name__)


def _percent(value: float) -> str:
    return f"{value:.1f}%"


@dataclass
class ConversionReport:
    """Summary of a run's conversions."""

    timestamp: datetime
    total_images: int
    total_original_size: int
    total_converted_size: int
    average_compression_ratio: float
    results: list[ConversionResult] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Render the report document."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "summary": {
                "totalImages": self.total_images,
                "totalOriginalSize": format_size(self.total_original_size),
                "totalConvertedSize": format_size(self.total_converted_size),
                "averageCompressionRatio": _percent(self.average_compression_ratio),
            },
            "details": [
                {
                    "sourcePath": str(result.source_path),
                    "outputPath": str(result.output_path),
                    "format": result.format,
                    "originalSize": format_size(result.original_size),
                    "convertedSize": format_size(result.converted_size),
                    "compressionRatio": _percent(result.compression_ratio),
                    "metadata": result.metadata,
                }
                for result in self.results
            ],
        }


class ReportGenerator:
    """Builds and persists the conversion report."""

    def __init__(self, output_directory: Path) -> None:
        self.output_directory = output_directory

    @property
    def report_path(self) -> Path:
        """Fixed location of the report document."""
        return self.output_directory / REPORT_FILENAME

    def build(self, results: list[ConversionResult]) -> ConversionReport | None:
        """Aggregate results into a report.

        Returns:
            The report, or None when there are no results
        """
        if not results:
            return None

        total_original = sum(r.original_size for r in results)
        total_converted = sum(r.converted_size for r in results)
        average_ratio = sum(r.compression_ratio for r in results) / len(results)

        return ConversionReport(
            timestamp=datetime.now(timezone.utc),
            total_images=len(results),
            total_original_size=total_original,
            total_converted_size=total_converted,
            average_compression_ratio=round(average_ratio, 1),
            results=list(results),
        )

    def write(self, report: ConversionReport) -> Path:
        """Persist the report as JSON.

        Raises:
            ReportWriteError: If the file cannot be written
        """
        path = self.report_path
        try:
            with atomic_write(path) as f:
                json.dump(report.to_dict(), f, ensure_ascii=False, indent=2, default=str)
        except (OSError, TypeError, ValueError) as e:
            raise ReportWriteError(path, e) from e

        log.info(
            "Report written",
            path=str(path),
            images=report.total_images,
            average_ratio=_percent(report.average_compression_ratio),
        )
        return path
