"""Config command for configuration management."""

from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from imagit.config import load_settings, reload_settings
from imagit.config.constants import DEFAULT_CONFIG_FILE, config_locations
from imagit.exceptions import ConfigurationError

# Create config sub-app
config_app = typer.Typer(help="Configuration management.")
console = Console()


@config_app.command("show")
def show() -> None:
    """Show current configuration."""
    try:
        settings = load_settings()
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1) from e

    console.print("\n[bold blue]Current Configuration[/bold blue]\n")

    table = Table(show_header=True, header_style="bold")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    # Global settings
    table.add_row("Log Level", settings.log_level)
    table.add_row("Log Directory", settings.log_dir)

    # Directories
    table.add_row("Source Directory", settings.source_directory)
    table.add_row("Output Directory", settings.output_directory)
    table.add_row("Filename Suffix", settings.filename_suffix or "(none)")
    table.add_row("Clean Output", str(settings.clean_output))

    # Output settings
    table.add_row("Keep ICC Profile", str(settings.output.keep_icc_profile))
    table.add_row("Keep Metadata", str(settings.output.keep_metadata))
    table.add_row("Metadata Keys", ", ".join(sorted(settings.output.keep_metadata_keys)))

    # Resize settings
    if settings.resize is None:
        table.add_row("Resize", "disabled")
    else:
        resize = settings.resize
        table.add_row("Resize", f"{resize.width}x{resize.height}")
        table.add_row("Resize Fit", resize.fit)
        table.add_row("Resize Position", resize.position)
        table.add_row("Without Enlargement", str(resize.without_enlargement))

    # Conversion formats
    for extension, targets in settings.conversion_formats.items():
        formats = ", ".join(
            f"{fmt} {options}" if options else fmt for fmt, options in targets.items()
        )
        table.add_row(f"Convert .{extension}", formats)

    table.add_row("Max Concurrency", str(settings.concurrency.max_concurrency))
    table.add_row("Report", str(settings.report.enabled))

    console.print(table)
    console.print()


# Default configuration template
DEFAULT_CONFIG_TEMPLATE = """# imagit configuration
# Every key can also be set through IMAGIT_* environment variables,
# e.g. IMAGIT_OUTPUT_DIRECTORY=public or IMAGIT_RESIZE__WIDTH=1280.

log_level: "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
log_dir: ".logs"

source_directory: "src"
output_directory: "dist"
filename_suffix: ""  # e.g. "-min" -> photo-min.webp
clean_output: false  # delete output_directory before each run

output:
  keep_icc_profile: true
  keep_metadata: false
  keep_metadata_keys: ["orientation", "density"]

resize:  # set to null to keep original dimensions
  width: 1920
  height: 1920
  fit: "inside"  # inside, outside, cover, contain
  position: "center"  # center, top, right top, right, ... , left top
  without_enlargement: true

# source extension -> target format -> encoder options
conversion_formats:
  png:
    webp:
      quality: 80
  jpg:
    webp:
      quality: 80
  jpeg:
    webp:
      quality: 80

concurrency:
  max_concurrency: 4

report:
  enabled: true  # writes conversion-report.json into output_directory
"""


@config_app.command("init")
def init(
    path: Annotated[
        Path | None,
        typer.Option(
            "--path",
            "-p",
            help="Path to create config file.",
        ),
    ] = None,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite existing config file.",
        ),
    ] = False,
) -> None:
    """Initialize a configuration file."""
    config_path = path or Path.cwd() / DEFAULT_CONFIG_FILE

    if config_path.exists() and not force:
        console.print(f"[red]Error:[/red] Config file already exists at {config_path}")
        console.print("Use --force to overwrite.")
        raise typer.Exit(1)

    config_path.write_text(DEFAULT_CONFIG_TEMPLATE, encoding="utf-8")
    console.print(f"[green]Created config file at:[/green] {config_path}")

    searched = {loc.resolve() for loc in config_locations()}
    if config_path.resolve() not in searched:
        console.print(
            "[yellow]Note:[/yellow] this file is not in a search location and will not be "
            "loaded. See 'imagit config locations'."
        )


@config_app.command("validate")
def validate() -> None:
    """Validate current configuration."""
    try:
        settings = reload_settings()
        config = settings.to_run_config()
    except (ValidationError, ConfigurationError) as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1) from e

    console.print("\n[bold blue]Configuration Validation[/bold blue]\n")

    console.print("[green]Conversions:[/green]")
    for extension in sorted(config.extensions):
        targets = ", ".join(config.targets_for(extension))
        console.print(f"  - .{extension} -> {targets}")

    if not config.source_directory.is_dir():
        console.print(
            f"[yellow]Source directory {config.source_directory} does not exist yet.[/yellow]"
        )

    console.print()
    console.print("[green]Configuration is valid![/green]")


@config_app.command("locations")
def locations() -> None:
    """Show configuration file search locations."""
    console.print("\n[bold blue]Configuration File Locations[/bold blue]\n")
    console.print("imagit searches for configuration files in the following order:\n")

    for i, loc in enumerate(config_locations(), 1):
        exists = "[green]exists[/green]" if loc.exists() else "[dim]not found[/dim]"
        console.print(f"  {i}. {loc} ({exists})")

    console.print()
    console.print("[dim]Environment variables with IMAGIT_ prefix are also supported.[/dim]")
    console.print()
