"""Main CLI application using Typer."""

from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console

from imagit import __version__
from imagit.cli.commands.config import config_app
from imagit.cli.commands.convert import convert

# Load environment variables from .env file
load_dotenv()

# Create main Typer app
app = typer.Typer(
    name="imagit",
    help="Batch image converter and resizer.",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)

# Console for output
console = Console()

# Register commands
app.command(name="convert", help="Convert and resize images in a directory tree.")(convert)
app.add_typer(config_app, name="config")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]imagit[/bold blue] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """imagit - Batch image converter and resizer.

    Walks a source tree, converts every configured image into one or more
    target formats, and mirrors the tree into an output directory.
    """
    pass


if __name__ == "__main__":
    app()
