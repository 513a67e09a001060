"""Configuration settings using pydantic-settings."""

from copy import deepcopy
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, YamlConfigSettingsSource

from imagit.config.constants import (
    DEFAULT_CONVERSION_FORMATS,
    DEFAULT_KEEP_METADATA_KEYS,
    DEFAULT_LOG_DIR,
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_RESIZE_FIT,
    DEFAULT_RESIZE_HEIGHT,
    DEFAULT_RESIZE_POSITION,
    DEFAULT_RESIZE_WIDTH,
    DEFAULT_SOURCE_DIR,
    POSITIONS,
    config_locations,
)
from imagit.exceptions import ConfigurationError


class FormatSettings(BaseModel):
    """Encoder settings for one target format.

    Unknown keys are kept and handed to the encoder untouched.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    quality: int | None = Field(default=None, ge=1, le=100)
    lossless: bool | None = None

    def encoder_options(self) -> dict[str, Any]:
        """Keyword arguments for the image encoder."""
        options = dict(self.model_extra or {})
        if self.quality is not None:
            options["quality"] = self.quality
        if self.lossless is not None:
            options["lossless"] = self.lossless
        return options


class OutputSettings(BaseModel):
    """What to carry over from the source image into converted files."""

    model_config = ConfigDict(frozen=True)

    keep_icc_profile: bool = True
    keep_metadata: bool = False
    keep_metadata_keys: frozenset[str] = DEFAULT_KEEP_METADATA_KEYS


class ResizeConfig(BaseModel):
    """Resize policy applied before encoding."""

    model_config = ConfigDict(frozen=True)

    width: int = Field(default=DEFAULT_RESIZE_WIDTH, gt=0)
    height: int = Field(default=DEFAULT_RESIZE_HEIGHT, gt=0)
    fit: Literal["inside", "outside", "cover", "contain"] = DEFAULT_RESIZE_FIT
    position: str = DEFAULT_RESIZE_POSITION
    without_enlargement: bool = True

    @field_validator("position", mode="before")
    @classmethod
    def _normalize_position(cls, value: Any) -> str:
        position = " ".join(str(value).lower().replace("-", " ").split())
        if position not in POSITIONS:
            raise ValueError(f"Unknown position '{value}'. Options: {', '.join(POSITIONS)}")
        return position


def _default_conversion_formats() -> dict[str, dict[str, Any]]:
    return deepcopy(DEFAULT_CONVERSION_FORMATS)


class RunConfig(BaseModel):
    """Immutable configuration for one pipeline run."""

    model_config = ConfigDict(frozen=True)

    source_directory: Path = Path(DEFAULT_SOURCE_DIR)
    output_directory: Path = Path(DEFAULT_OUTPUT_DIR)
    filename_suffix: str = ""
    output_settings: OutputSettings = Field(default_factory=OutputSettings)
    resize_config: ResizeConfig | None = Field(default_factory=ResizeConfig)
    conversion_formats: dict[str, dict[str, FormatSettings]] = Field(
        default_factory=_default_conversion_formats
    )
    max_concurrency: int = Field(default=DEFAULT_MAX_CONCURRENCY, ge=1)
    generate_report: bool = True
    clean_output: bool = False

    @field_validator("filename_suffix")
    @classmethod
    def _check_suffix(cls, value: str) -> str:
        if "/" in value or "\\" in value:
            raise ValueError("filename_suffix must not contain path separators")
        return value

    @field_validator("conversion_formats", mode="before")
    @classmethod
    def _normalize_formats(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value

        normalized: dict[str, dict[str, Any]] = {}
        for extension, targets in value.items():
            key = str(extension).strip().lstrip(".").lower()
            if not key:
                raise ValueError("conversion_formats keys must be non-empty extensions")
            if not targets:
                raise ValueError(f"No target formats configured for extension '{extension}'")
            normalized[key] = {
                str(fmt).strip().lstrip(".").lower(): (settings or {})
                for fmt, settings in targets.items()
            }
        return normalized

    @property
    def extensions(self) -> set[str]:
        """Source extensions (lowercase, no dot) that have conversions configured."""
        return set(self.conversion_formats)

    def targets_for(self, extension: str) -> dict[str, FormatSettings]:
        """Target formats configured for a source extension."""
        return self.conversion_formats.get(extension.lower(), {})


class ConcurrencyConfig(BaseModel):
    """Concurrency configuration."""

    max_concurrency: int = Field(default=DEFAULT_MAX_CONCURRENCY, ge=1)


class ReportConfig(BaseModel):
    """Report configuration."""

    enabled: bool = True


class ImagitSettings(BaseSettings):
    """Main configuration class for imagit."""

    model_config = SettingsConfigDict(
        env_prefix="IMAGIT_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls, settings_cls, init_settings, env_settings, dotenv_settings, file_secret_settings
    ):
        """Customize settings sources to include the YAML config files.

        Later files override earlier ones, so the search list is reversed.
        """
        yaml_files = list(reversed(config_locations()))
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=yaml_files),
            file_secret_settings,
        )

    # Directories
    source_directory: str = DEFAULT_SOURCE_DIR
    output_directory: str = DEFAULT_OUTPUT_DIR
    filename_suffix: str = ""
    clean_output: bool = False

    # Sub-configurations
    output: OutputSettings = Field(default_factory=OutputSettings)
    resize: ResizeConfig | None = Field(default_factory=ResizeConfig)
    conversion_formats: dict[str, dict[str, dict[str, Any] | None]] = Field(
        default_factory=_default_conversion_formats
    )
    concurrency: ConcurrencyConfig = Field(default_factory=ConcurrencyConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)

    # Global settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_dir: str = DEFAULT_LOG_DIR

    def to_run_config(self, **overrides: Any) -> RunConfig:
        """Build the immutable run configuration.

        Args:
            **overrides: RunConfig fields that take precedence (e.g. CLI flags)

        Raises:
            ConfigurationError: If the resulting configuration is invalid
        """
        values: dict[str, Any] = {
            "source_directory": Path(self.source_directory),
            "output_directory": Path(self.output_directory),
            "filename_suffix": self.filename_suffix,
            "output_settings": self.output,
            "resize_config": self.resize,
            "conversion_formats": self.conversion_formats,
            "max_concurrency": self.concurrency.max_concurrency,
            "generate_report": self.report.enabled,
            "clean_output": self.clean_output,
        }
        values.update(overrides)
        try:
            return RunConfig.model_validate(values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid run configuration: {e}") from e


@lru_cache
def get_settings() -> ImagitSettings:
    """Get cached settings instance."""
    return ImagitSettings()


def reload_settings() -> ImagitSettings:
    """Force reload settings (clear cache)."""
    get_settings.cache_clear()
    return get_settings()


def load_settings() -> ImagitSettings:
    """Get cached settings, reporting invalid values as ConfigurationError."""
    try:
        return get_settings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
