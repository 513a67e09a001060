"""Run statistics collection and reporting."""

from dataclasses import dataclass, field
from time import time

from imagit.utils.fs import format_size


@dataclass
class FormatStats:
    """Statistics for a single target format."""

    format: str
    conversions: int = 0
    original_size: int = 0
    converted_size: int = 0


@dataclass
class RunStats:
    """Statistics for one pipeline run.

    Counts are per conversion job, one job being a (source image, target
    format) pair. ``images_found`` counts source files from the scan.
    """

    images_found: int = 0
    skipped_images: int = 0
    total_jobs: int = 0
    succeeded_jobs: int = 0
    failed_jobs: int = 0
    cancelled_jobs: int = 0

    total_original_size: int = 0
    total_converted_size: int = 0

    format_usage: dict[str, FormatStats] = field(default_factory=dict)

    total_duration: float = 0.0
    start_time: float = field(default_factory=time)
    end_time: float | None = None

    def add_conversion(self, format: str, original_size: int, converted_size: int) -> None:
        """Record a successful conversion."""
        if format not in self.format_usage:
            self.format_usage[format] = FormatStats(format=format)

        stats = self.format_usage[format]
        stats.conversions += 1
        stats.original_size += original_size
        stats.converted_size += converted_size

        self.succeeded_jobs += 1
        self.total_original_size += original_size
        self.total_converted_size += converted_size

    def add_failure(self) -> None:
        """Record a failed conversion."""
        self.failed_jobs += 1

    def finish(self) -> None:
        """Mark run as complete and calculate final duration."""
        self.end_time = time()
        self.total_duration = self.end_time - self.start_time

    @property
    def saved_bytes(self) -> int:
        """Bytes saved across all successful conversions (negative if grown)."""
        return self.total_original_size - self.total_converted_size

    @property
    def success_rate(self) -> float:
        """Calculate success rate as a percentage."""
        processed = self.succeeded_jobs + self.failed_jobs
        if processed == 0:
            return 0.0
        return (self.succeeded_jobs / processed) * 100

    def format_summary(self) -> str:
        """Format statistics as a human-readable summary.

        Returns:
            Multi-line summary string
        """
        lines = [f"Complete: {self.succeeded_jobs} converted, {self.failed_jobs} failed"]
        if self.cancelled_jobs > 0:
            lines[-1] += f", {self.cancelled_jobs} not started"
        if self.skipped_images > 0:
            lines[-1] += f", {self.skipped_images} skipped"

        lines.append(f"Images: {self.images_found} | Total: {self.total_duration:.1f}s")

        if self.succeeded_jobs:
            lines.append(
                f"Size: {format_size(self.total_original_size)} -> "
                f"{format_size(self.total_converted_size)}"
            )

        if self.format_usage:
            parts = [f"{name}({s.conversions})" for name, s in self.format_usage.items()]
            lines.append(f"Formats: {', '.join(parts)}")

        return "\n".join(lines)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "images_found": self.images_found,
            "skipped_images": self.skipped_images,
            "total_jobs": self.total_jobs,
            "succeeded_jobs": self.succeeded_jobs,
            "failed_jobs": self.failed_jobs,
            "cancelled_jobs": self.cancelled_jobs,
            "total_original_size": self.total_original_size,
            "total_converted_size": self.total_converted_size,
            "total_duration": self.total_duration,
            "success_rate": self.success_rate,
            "format_usage": {
                name: {
                    "conversions": stats.conversions,
                    "original_size": stats.original_size,
                    "converted_size": stats.converted_size,
                }
                for name, stats in self.format_usage.items()
            },
        }
