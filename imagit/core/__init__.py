"""Core processing module for imagit."""

from imagit.core.models import ConversionFailure, ConversionJob, ConversionResult
from imagit.core.paths import (
    ImagePathInfo,
    create_output_path,
    parse_image_path,
    require_image_path,
)
from imagit.core.pipeline import ConversionPipeline, RunResult, run
from imagit.core.report import ConversionReport, ReportGenerator
from imagit.core.scanner import scan_images
from imagit.core.scheduler import ConversionScheduler, ResultBuffer, SchedulePlan
from imagit.core.task import ConversionTask, TaskState

__all__ = [
    "ConversionPipeline",
    "RunResult",
    "run",
    "ConversionScheduler",
    "SchedulePlan",
    "ResultBuffer",
    "ConversionTask",
    "TaskState",
    "ConversionJob",
    "ConversionResult",
    "ConversionFailure",
    "ConversionReport",
    "ReportGenerator",
    "ImagePathInfo",
    "create_output_path",
    "parse_image_path",
    "require_image_path",
    "scan_images",
]
