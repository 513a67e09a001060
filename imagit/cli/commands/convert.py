"""Convert command for batch image conversion."""

from pathlib import Path
from typing import Annotated, Any

import typer
from pydantic import ValidationError
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from imagit.cli.callbacks import validate_fit, validate_output_dir, validate_position
from imagit.config import ImagitSettings, OutputSettings, ResizeConfig, RunConfig, load_settings
from imagit.core.models import ConversionJob, ConversionResult
from imagit.core.pipeline import ConversionPipeline, RunResult
from imagit.exceptions import BatchConversionError, ConfigurationError, ImagitError
from imagit.utils.fs import format_size
from imagit.utils.logging import get_console, get_logger, setup_task_logging

console = get_console()
log = get_logger(__name__)


def convert(
    source: Annotated[
        Path | None,
        typer.Argument(
            help="Source directory to scan for images.",
            file_okay=False,
            dir_okay=True,
        ),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output directory for converted images.",
            callback=validate_output_dir,
        ),
    ] = None,
    suffix: Annotated[
        str | None,
        typer.Option(
            "--suffix",
            help="Suffix appended to output file names (before the extension).",
        ),
    ] = None,
    concurrency: Annotated[
        int | None,
        typer.Option(
            "--concurrency",
            "-c",
            min=1,
            help="Maximum number of conversions running at once.",
        ),
    ] = None,
    no_report: Annotated[
        bool,
        typer.Option(
            "--no-report",
            help="Do not write the conversion report.",
        ),
    ] = False,
    clean: Annotated[
        bool,
        typer.Option(
            "--clean",
            help="Delete the output directory before converting.",
        ),
    ] = False,
    no_resize: Annotated[
        bool,
        typer.Option(
            "--no-resize",
            help="Keep original dimensions.",
        ),
    ] = False,
    width: Annotated[
        int | None,
        typer.Option(
            "--width",
            min=1,
            help="Target width in pixels.",
        ),
    ] = None,
    height: Annotated[
        int | None,
        typer.Option(
            "--height",
            min=1,
            help="Target height in pixels.",
        ),
    ] = None,
    fit: Annotated[
        str | None,
        typer.Option(
            "--fit",
            help="Resize strategy: inside, outside, cover, contain.",
            callback=validate_fit,
        ),
    ] = None,
    position: Annotated[
        str | None,
        typer.Option(
            "--position",
            help="Anchor for cover/contain (e.g. center, top, left-bottom).",
            callback=validate_position,
        ),
    ] = None,
    allow_enlargement: Annotated[
        bool,
        typer.Option(
            "--allow-enlargement",
            help="Allow upscaling images smaller than the target box.",
        ),
    ] = False,
    keep_metadata: Annotated[
        bool,
        typer.Option(
            "--keep-metadata",
            help="Carry source metadata (orientation, density, ...) into outputs.",
        ),
    ] = False,
    strip_icc: Annotated[
        bool,
        typer.Option(
            "--strip-icc",
            help="Drop embedded ICC color profiles.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            help="Show planned conversions without writing anything.",
        ),
    ] = False,
) -> None:
    """Convert and resize every image under a source directory.

    Examples:
        imagit convert
        imagit convert ./assets -o ./public/img
        imagit convert --width 800 --height 600 --fit cover --position top
        imagit convert --clean --keep-metadata -c 8
    """
    try:
        settings = load_settings()
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    task_id, log_path = setup_task_logging(
        log_dir=settings.log_dir,
        prefix="convert",
        verbose=verbose,
        level=settings.log_level,
    )

    if verbose:
        log.info("Logs will be saved to", log_file=str(log_path))

    try:
        config = build_run_config(
            settings,
            source=source,
            output=output,
            suffix=suffix,
            concurrency=concurrency,
            no_report=no_report,
            clean=clean,
            no_resize=no_resize,
            width=width,
            height=height,
            fit=fit,
            position=position,
            allow_enlargement=allow_enlargement,
            keep_metadata=keep_metadata,
            strip_icc=strip_icc,
        )
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    log.info("Task Configuration", task_id=task_id, config=config.model_dump(mode="json"))

    if dry_run:
        try:
            _show_dry_run(config)
        except ImagitError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1) from e
        return

    try:
        result = _execute(config, verbose=verbose)
    except KeyboardInterrupt:
        console.print("\n[yellow]Conversion interrupted.[/yellow]")
        raise typer.Exit(130) from None
    except BatchConversionError as e:
        _display_failures(e, config)
        raise typer.Exit(1) from e
    except ImagitError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    log.info("Run summary", summary=result.stats.format_summary())
    _display_summary(result, config)


def build_run_config(
    settings: ImagitSettings,
    source: Path | None = None,
    output: Path | None = None,
    suffix: str | None = None,
    concurrency: int | None = None,
    no_report: bool = False,
    clean: bool = False,
    no_resize: bool = False,
    width: int | None = None,
    height: int | None = None,
    fit: str | None = None,
    position: str | None = None,
    allow_enlargement: bool = False,
    keep_metadata: bool = False,
    strip_icc: bool = False,
) -> RunConfig:
    """Merge command line flags over loaded settings.

    Raises:
        ConfigurationError: If the merged configuration is invalid
    """
    overrides: dict[str, Any] = {}
    if source is not None:
        overrides["source_directory"] = source
    if output is not None:
        overrides["output_directory"] = output
    if suffix is not None:
        overrides["filename_suffix"] = suffix
    if concurrency is not None:
        overrides["max_concurrency"] = concurrency
    if no_report:
        overrides["generate_report"] = False
    if clean:
        overrides["clean_output"] = True

    output_updates: dict[str, Any] = {}
    if keep_metadata:
        output_updates["keep_metadata"] = True
    if strip_icc:
        output_updates["keep_icc_profile"] = False

    resize_updates = {
        key: value
        for key, value in {
            "width": width,
            "height": height,
            "fit": fit,
            "position": position,
        }.items()
        if value is not None
    }
    if allow_enlargement:
        resize_updates["without_enlargement"] = False

    try:
        if output_updates:
            overrides["output_settings"] = OutputSettings.model_validate(
                {**settings.output.model_dump(), **output_updates}
            )
        if no_resize:
            overrides["resize_config"] = None
        elif resize_updates:
            base = settings.resize or ResizeConfig()
            overrides["resize_config"] = ResizeConfig.model_validate(
                {**base.model_dump(), **resize_updates}
            )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid option: {e}") from e

    return settings.to_run_config(**overrides)


def _relative(path: Path, base: Path) -> str:
    try:
        return str(path.relative_to(base))
    except ValueError:
        return str(path)


def _execute(config: RunConfig, verbose: bool = False) -> RunResult:
    """Run the pipeline, with a progress bar unless verbose."""
    if verbose:
        return ConversionPipeline(config).run()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TextColumn("({task.completed}/{task.total})"),
        TimeElapsedColumn(),
        console=console,
        transient=False,
    ) as progress:
        progress_task_id = progress.add_task("[cyan]Converting images...", total=None)

        def on_progress(
            job: ConversionJob,
            result: ConversionResult | None,
            error: Exception | None,
        ) -> None:
            """Progress callback."""
            progress.advance(progress_task_id)
            rel_path = _relative(job.source_path, config.source_directory)
            if error:
                progress.console.print(f"  [red]x[/red] {rel_path} -> {job.target_format}")
            elif result:
                progress.console.print(
                    f"  [green]✓[/green] {rel_path} -> {job.target_format} "
                    f"[dim]({result.compression_ratio:.1f}%)[/dim]"
                )

        pipeline = ConversionPipeline(config, on_progress=on_progress)
        images = pipeline.scan()
        total = sum(len(config.targets_for(path.suffix.lstrip("."))) for path in images)
        progress.update(progress_task_id, total=total)

        # Cleaning may delete scanned files when the output lies inside the source tree
        return pipeline.run(None if config.clean_output else images)


def _display_summary(result: RunResult, config: RunConfig) -> None:
    """Display run summary."""
    console.print()

    if result.nothing_processed:
        console.print(
            f"[yellow]No target images found in {config.source_directory}, "
            "nothing was processed.[/yellow]"
        )
        return

    stats = result.stats
    table = Table(title="Conversion Summary", show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value")

    table.add_row("Images Found", str(stats.images_found))
    table.add_row("Converted", f"[green]{stats.succeeded_jobs}[/green]")
    if result.skipped:
        table.add_row("Skipped", f"[yellow]{len(result.skipped)}[/yellow]")
    table.add_row("Original Size", format_size(stats.total_original_size))
    table.add_row("Converted Size", format_size(stats.total_converted_size))
    table.add_row("Saved", format_size(stats.saved_bytes))
    if result.report is not None:
        table.add_row(
            "Average Compression",
            f"{result.report.average_compression_ratio:.1f}%",
        )
    for name, usage in stats.format_usage.items():
        table.add_row(f"Format {name}", str(usage.conversions))
    table.add_row("Duration", f"{stats.total_duration:.1f}s")

    if result.report_path is not None:
        table.add_row("Report", str(result.report_path))
    elif config.generate_report:
        table.add_row("Report", "[red]not written[/red]")

    console.print(table)
    console.print()


def _display_failures(error: BatchConversionError, config: RunConfig) -> None:
    """Display the failures that stopped the run."""
    console.print()
    console.print(f"[bold red]Conversion failed:[/bold red] {error}")

    for failure in error.failures[:10]:
        rel_path = _relative(failure.source_path, config.source_directory)
        console.print(f"  [dim]-[/dim] {rel_path} -> {failure.target_format}")
        console.print(f"    [dim]{failure.cause}[/dim]")
    if len(error.failures) > 10:
        console.print(f"  [dim]... and {len(error.failures) - 10} more[/dim]")

    if error.results:
        console.print(
            f"[dim]{len(error.results)} conversion(s) completed before the failure.[/dim]"
        )
    if error.skipped:
        console.print(f"[dim]{error.skipped} conversion(s) were not started.[/dim]")
    console.print()


def _show_dry_run(config: RunConfig) -> None:
    """Display the planned conversions without executing."""
    console.print("\n[bold blue]Conversion Plan (Dry Run)[/bold blue]\n")
    console.print(f"  [bold]Source Directory:[/bold] {config.source_directory}")
    console.print(f"  [bold]Output Directory:[/bold] {config.output_directory}")
    console.print(f"  [bold]Extensions:[/bold] {', '.join(sorted(config.extensions))}")
    if config.resize_config is None:
        console.print("  [bold]Resize:[/bold] disabled")
    else:
        resize = config.resize_config
        console.print(
            f"  [bold]Resize:[/bold] {resize.width}x{resize.height} {resize.fit} "
            f"({resize.position}, enlargement {'off' if resize.without_enlargement else 'on'})"
        )
    console.print(f"  [bold]Max Concurrency:[/bold] {config.max_concurrency}")
    if config.clean_output:
        console.print("  [bold]Clean Output:[/bold] yes")

    pipeline = ConversionPipeline(config)
    scheduler = pipeline.create_scheduler()
    plan = scheduler.plan(pipeline.scan())
    scheduler.check_collisions(plan.jobs)

    console.print()
    console.print(f"[bold]Planned Conversions:[/bold] {len(plan.jobs)}")

    for job in plan.jobs[:20]:
        console.print(
            f"  - {_relative(job.source_path, config.source_directory)} -> "
            f"{job.output_path}"
        )
    if len(plan.jobs) > 20:
        console.print(f"  ... and {len(plan.jobs) - 20} more")

    if plan.skipped:
        console.print(f"[yellow]Skipped:[/yellow] {len(plan.skipped)}")
    for failure in plan.failures:
        console.print(f"  [red]x[/red] {failure.error}")

    console.print()
