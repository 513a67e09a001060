"""Run coordination: reset, scan, convert, report."""

import asyncio
from dataclasses import dataclass, field
from pathlib import Path

from imagit.config.settings import RunConfig
from imagit.core.models import ConversionResult
from imagit.core.report import ConversionReport, ReportGenerator
from imagit.core.scanner import scan_images
from imagit.core.scheduler import ConversionScheduler, ProgressCallback, TransitionCallback
from imagit.exceptions import ConfigurationError, ImagitError, ReportWriteError
from imagit.image.codec import CodecGateway, PillowCodecGateway
from imagit.utils.fs import is_relative_to, remove_directory
from imagit.utils.logging import get_logger
from imagit.utils.stats import RunStats

log = get_logger(__name__)


@dataclass
class RunResult:
    """Outcome of a successful run."""

    results: list[ConversionResult] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    report: ConversionReport | None = None
    report_path: Path | None = None
    stats: RunStats = field(default_factory=RunStats)

    @property
    def images_found(self) -> int:
        return self.stats.images_found

    @property
    def nothing_processed(self) -> bool:
        """True when the scan matched no images."""
        return self.stats.images_found == 0


class ConversionPipeline:
    """Wires scanner, scheduler and report generator into one run.

    Construction does no work; call ``run`` or ``run_async``. A pipeline can
    be run several times.
    """

    def __init__(
        self,
        config: RunConfig,
        gateway: CodecGateway | None = None,
        on_progress: ProgressCallback | None = None,
        on_transition: TransitionCallback | None = None,
    ) -> None:
        self.config = config
        self.gateway = gateway or PillowCodecGateway()
        self.on_progress = on_progress
        self.on_transition = on_transition

    def reset_output(self) -> None:
        """Delete the output directory before a run.

        Raises:
            ConfigurationError: If deleting it would also delete sources
        """
        source = self.config.source_directory
        output = self.config.output_directory
        if is_relative_to(source, output):
            raise ConfigurationError(
                f"Refusing to clean {output}: it contains the source directory {source}"
            )
        try:
            remove_directory(output)
        except OSError as e:
            raise ConfigurationError(f"Cannot clean output directory {output}: {e}") from e

    def scan(self) -> list[Path]:
        """Find the images this run will convert."""
        return scan_images(self.config.source_directory, self.config.extensions)

    def create_scheduler(self, stats: RunStats | None = None) -> ConversionScheduler:
        return ConversionScheduler(
            self.config,
            self.gateway,
            on_progress=self.on_progress,
            on_transition=self.on_transition,
            stats=stats,
        )

    async def run_async(self, image_paths: list[Path] | None = None) -> RunResult:
        """Execute the pipeline.

        Args:
            image_paths: Images to convert instead of scanning the source tree

        Returns:
            Run result

        Raises:
            ImagitError: The first fatal error (e.g. ``BatchConversionError``)
        """
        config = self.config
        stats = RunStats()

        log.info(
            "Starting conversion run",
            source=str(config.source_directory),
            output=str(config.output_directory),
            extensions=sorted(config.extensions),
            max_concurrency=config.max_concurrency,
        )

        try:
            if config.clean_output:
                self.reset_output()

            images = self.scan() if image_paths is None else list(image_paths)
            stats.images_found = len(images)

            if not images:
                stats.finish()
                log.warning(
                    "No target images found, nothing was processed",
                    source=str(config.source_directory),
                )
                return RunResult(stats=stats)

            scheduler = self.create_scheduler(stats)
            results = await scheduler.process(images)
        except ImagitError as e:
            stats.finish()
            log.error("Run failed", error=str(e), duration=f"{stats.total_duration:.1f}s")
            raise

        report, report_path = self._report(results)
        stats.finish()

        log.info(
            "Run completed",
            converted=stats.succeeded_jobs,
            images=stats.images_found,
            duration=f"{stats.total_duration:.1f}s",
        )
        log.debug("Run statistics", **stats.to_dict())
        return RunResult(
            results=results,
            skipped=scheduler.skipped,
            report=report,
            report_path=report_path,
            stats=stats,
        )

    def run(self, image_paths: list[Path] | None = None) -> RunResult:
        """Execute the pipeline synchronously."""
        return asyncio.run(self.run_async(image_paths))

    def _report(
        self, results: list[ConversionResult]
    ) -> tuple[ConversionReport | None, Path | None]:
        if not self.config.generate_report or not results:
            return None, None

        generator = ReportGenerator(self.config.output_directory)
        report = generator.build(results)
        if report is None:
            return None, None

        try:
            return report, generator.write(report)
        except ReportWriteError as e:
            log.error("Report write failed, conversions are kept", error=str(e))
            return report, None


def run(config: RunConfig, gateway: CodecGateway | None = None) -> RunResult:
    """Run one conversion pass with the given configuration."""
    return ConversionPipeline(config, gateway=gateway).run()
