"""CLI callback functions."""

from pathlib import Path

import typer

from imagit.config.constants import FIT_STRATEGIES, POSITIONS


def validate_output_dir(value: Path | None) -> Path | None:
    """Reject an output path that exists as a regular file."""
    if value is None:
        return None

    if value.exists() and not value.is_dir():
        raise typer.BadParameter(f"Output path exists but is not a directory: {value}")

    return value


def validate_fit(value: str | None) -> str | None:
    """Validate resize fit option."""
    if value is None:
        return None

    fit = value.lower()
    if fit not in FIT_STRATEGIES:
        raise typer.BadParameter(f"Invalid fit '{value}'. Options: {', '.join(FIT_STRATEGIES)}")

    return fit


def validate_position(value: str | None) -> str | None:
    """Validate and normalize resize position option."""
    if value is None:
        return None

    position = " ".join(value.lower().replace("-", " ").split())
    if position not in POSITIONS:
        raise typer.BadParameter(
            f"Invalid position '{value}'. Options: {', '.join(POSITIONS)}"
        )

    return position
