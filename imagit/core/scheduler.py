"""Fan-out of conversion tasks under a global concurrency limit."""

import asyncio
import os
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from imagit.config.settings import RunConfig
from imagit.core.models import ConversionFailure, ConversionJob, ConversionResult
from imagit.core.paths import create_output_path, require_image_path
from imagit.core.task import ConversionTask, TaskState
from imagit.exceptions import (
    BatchConversionError,
    ConversionError,
    InvalidImagePathError,
    InvalidSourceTreeError,
    OutputCollisionError,
)
from imagit.image.codec import CodecGateway
from imagit.utils.concurrency import ConcurrencyManager
from imagit.utils.logging import get_logger
from imagit.utils.stats import RunStats

log = get_logger(__name__)

ProgressCallback = Callable[[ConversionJob, ConversionResult | None, Exception | None], None]
TransitionCallback = Callable[[ConversionTask, TaskState], None]


@dataclass
class SchedulePlan:
    """Jobs derived from a list of source images."""

    jobs: list[ConversionJob] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    failures: list[ConversionFailure] = field(default_factory=list)


class ResultBuffer:
    """Run-scoped collection of results and failures.

    Appends are serialized with a lock because tasks complete concurrently.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self.results: list[ConversionResult] = []
        self.failures: list[ConversionFailure] = []

    async def add_result(self, result: ConversionResult) -> None:
        async with self._lock:
            self.results.append(result)

    async def add_failure(self, failure: ConversionFailure) -> None:
        async with self._lock:
            self.failures.append(failure)


class ConversionScheduler:
    """Runs one conversion task per (image, target format) pair.

    At most ``config.max_concurrency`` tasks run at once across the whole
    run. The first failure stops new tasks from starting; tasks already
    running are allowed to finish before ``BatchConversionError`` is raised.
    """

    def __init__(
        self,
        config: RunConfig,
        gateway: CodecGateway,
        on_progress: ProgressCallback | None = None,
        on_transition: TransitionCallback | None = None,
        stats: RunStats | None = None,
    ) -> None:
        self.config = config
        self.gateway = gateway
        self.on_progress = on_progress
        self.on_transition = on_transition
        self.stats = stats or RunStats()
        self.concurrency = ConcurrencyManager(max_workers=config.max_concurrency)
        self.skipped: list[Path] = []

    def plan(self, image_paths: list[Path]) -> SchedulePlan:
        """Expand source images into conversion jobs.

        Unrecognized extensions are skipped with a warning. Images outside
        the source tree become failures for each of their target formats.
        """
        plan = SchedulePlan()
        extensions = self.config.extensions

        for source_path in image_paths:
            try:
                info = require_image_path(source_path, extensions)
            except InvalidImagePathError as e:
                log.warning(
                    "Skipping unrecognized image",
                    path=str(source_path),
                    extension=e.extension,
                )
                plan.skipped.append(source_path)
                continue

            for target_format, settings in self.config.targets_for(info.extension).items():
                try:
                    output_path = create_output_path(source_path, target_format, self.config)
                except InvalidSourceTreeError as e:
                    error = ConversionError(source_path, target_format, e)
                    log.error(
                        "Conversion failed",
                        source=str(source_path),
                        format=target_format.upper(),
                        error=str(e),
                    )
                    plan.failures.append(ConversionFailure(source_path, target_format, error))
                    continue

                plan.jobs.append(
                    ConversionJob(
                        source_path=source_path,
                        target_format=target_format,
                        settings=settings,
                        output_path=output_path,
                    )
                )

        return plan

    @staticmethod
    def check_collisions(jobs: list[ConversionJob]) -> None:
        """Ensure no two jobs write the same output file.

        Raises:
            OutputCollisionError: On the first shared output path
        """
        seen: dict[str, ConversionJob] = {}
        for job in jobs:
            key = os.path.normcase(os.path.abspath(job.output_path))
            previous = seen.get(key)
            if previous is not None:
                raise OutputCollisionError(job.output_path, [previous.source_path, job.source_path])
            seen[key] = job

    async def _record_failure(
        self, buffer: ResultBuffer, job: ConversionJob, error: ConversionError
    ) -> None:
        await buffer.add_failure(ConversionFailure(job.source_path, job.target_format, error))
        self.stats.add_failure()

    async def process(self, image_paths: list[Path]) -> list[ConversionResult]:
        """Convert every image into each of its configured target formats.

        Args:
            image_paths: Source images (typically from the scanner)

        Returns:
            Results in job order

        Raises:
            OutputCollisionError: If two jobs share an output path
            BatchConversionError: If any conversion failed
        """
        plan = self.plan(image_paths)
        self.skipped = list(plan.skipped)
        self.stats.skipped_images += len(plan.skipped)
        self.stats.total_jobs += len(plan.jobs) + len(plan.failures)

        if plan.failures:
            for _ in plan.failures:
                self.stats.add_failure()
            self.stats.cancelled_jobs += len(plan.jobs)
            raise BatchConversionError(
                plan.failures, skipped=len(plan.jobs)
            ) from plan.failures[0].error

        self.check_collisions(plan.jobs)

        if not plan.jobs:
            return []

        log.info(
            "Scheduling conversions",
            jobs=len(plan.jobs),
            max_concurrency=self.config.max_concurrency,
        )

        buffer = ResultBuffer()

        async def run_job(job: ConversionJob) -> ConversionResult:
            task = ConversionTask(job, self.config, self.gateway, on_transition=self.on_transition)
            try:
                result = await task.run()
            except ConversionError as e:
                await self._record_failure(buffer, job, e)
                raise
            except Exception as e:
                # Hooks raising outside the task's own error handling
                error = ConversionError(job.source_path, job.target_format, e)
                log.error(
                    "Conversion failed",
                    source=str(job.source_path),
                    format=job.target_format.upper(),
                    error=str(e),
                )
                await self._record_failure(buffer, job, error)
                raise error from e
            await buffer.add_result(result)
            self.stats.add_conversion(result.format, result.original_size, result.converted_size)
            return result

        outcomes = await self.concurrency.map_tasks(
            plan.jobs,
            run_job,
            on_progress=self.on_progress,
            fail_fast=True,
        )

        cancelled = sum(1 for outcome in outcomes if outcome.skipped)
        self.stats.cancelled_jobs += cancelled

        order = {(job.source_path, job.target_format): i for i, job in enumerate(plan.jobs)}
        results = sorted(buffer.results, key=lambda r: order[(r.source_path, r.format)])

        if buffer.failures:
            if cancelled:
                log.warning("Stopped scheduling after failure", not_started=cancelled)
            raise BatchConversionError(
                buffer.failures, results=results, skipped=cancelled
            ) from buffer.failures[0].error

        return results
