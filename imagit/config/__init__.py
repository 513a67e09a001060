"""Configuration module for imagit."""

from imagit.config.settings import (
    FormatSettings,
    ImagitSettings,
    OutputSettings,
    ResizeConfig,
    RunConfig,
    get_settings,
    load_settings,
    reload_settings,
)

__all__ = [
    "FormatSettings",
    "ImagitSettings",
    "OutputSettings",
    "ResizeConfig",
    "RunConfig",
    "get_settings",
    "load_settings",
    "reload_settings",
]
