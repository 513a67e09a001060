"""Per (source image, target format) conversion task."""

from collections.abc import Callable
from enum import Enum

import anyio

from imagit.config.settings import RunConfig
from imagit.core.models import ConversionJob, ConversionResult, compression_ratio
from imagit.exceptions import CodecError, ConversionError
from imagit.image.codec import CodecGateway
from imagit.image.metadata import Metadata, filter_metadata
from imagit.utils.fs import ensure_directory
from imagit.utils.logging import get_logger

log = get_logger(__name__)


class TaskState(str, Enum):
    """Lifecycle of a conversion task."""

    PENDING = "pending"
    PREPARING = "preparing"
    SIZING = "sizing"
    METADATA_EXTRACTED = "metadata_extracted"
    ENCODING = "encoding"
    DONE = "done"
    FAILED = "failed"


class ConversionTask:
    """Converts one source image into one target format.

    States advance PENDING -> PREPARING -> SIZING -> METADATA_EXTRACTED ->
    ENCODING -> DONE, or to FAILED from any step after PENDING. A task runs
    once and never retries.
    """

    def __init__(
        self,
        job: ConversionJob,
        config: RunConfig,
        gateway: CodecGateway,
        on_transition: Callable[["ConversionTask", TaskState], None] | None = None,
    ) -> None:
        self.job = job
        self.config = config
        self.gateway = gateway
        self.on_transition = on_transition
        self.state = TaskState.PENDING

    def _transition(self, state: TaskState) -> None:
        self.state = state
        if self.on_transition:
            self.on_transition(self, state)

    async def run(self) -> ConversionResult:
        """Execute the conversion.

        Returns:
            Conversion result

        Raises:
            ConversionError: If any step fails
        """
        if self.state is not TaskState.PENDING:
            raise RuntimeError(f"Task already ran: {self.job}")

        job = self.job
        try:
            self._transition(TaskState.PREPARING)
            await anyio.to_thread.run_sync(ensure_directory, job.output_path.parent)

            self._transition(TaskState.SIZING)
            original_size = await self.gateway.read_size(job.source_path)

            metadata = await self._extract_metadata()
            self._transition(TaskState.METADATA_EXTRACTED)

            self._transition(TaskState.ENCODING)
            await self.gateway.decode_resize_encode(
                source_path=job.source_path,
                output_path=job.output_path,
                target_format=job.target_format,
                settings=job.settings,
                resize_config=self.config.resize_config,
                keep_icc_profile=self.config.output_settings.keep_icc_profile,
                metadata=metadata,
            )

            converted_size = await self.gateway.read_size(job.output_path)

            ratio = compression_ratio(original_size, converted_size)
            result = ConversionResult(
                source_path=job.source_path,
                output_path=job.output_path,
                original_size=original_size,
                converted_size=converted_size,
                compression_ratio=ratio,
                format=job.target_format,
                metadata=metadata,
            )
            self._transition(TaskState.DONE)
        except Exception as e:
            self._transition(TaskState.FAILED)
            error = ConversionError(job.source_path, job.target_format, e)
            log.error(
                "Conversion failed",
                source=str(job.source_path),
                format=job.target_format.upper(),
                error=str(e),
            )
            raise error from e

        log.info(
            "Converted image",
            source=str(job.source_path),
            format=job.target_format.upper(),
            output=str(job.output_path),
            ratio=f"{ratio:.1f}%",
        )
        return result

    async def _extract_metadata(self) -> Metadata:
        """Extract and filter metadata; empty when disabled or unreadable."""
        output_settings = self.config.output_settings
        if not output_settings.keep_metadata:
            return {}

        try:
            metadata = await self.gateway.extract_metadata(self.job.source_path)
        except CodecError as e:
            log.warning(
                "Metadata extraction failed, continuing without metadata",
                source=str(self.job.source_path),
                error=str(e),
            )
            return {}

        return filter_metadata(metadata, output_settings.keep_metadata_keys)
