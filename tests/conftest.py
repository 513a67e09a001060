"""Pytest configuration and fixtures."""

import asyncio
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from PIL import Image

from imagit.config import RunConfig, get_settings
from imagit.exceptions import CodecError

ImageFactory = Callable[..., Path]


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Working directory for a test."""
    return tmp_path


@pytest.fixture
def source_dir(temp_dir: Path) -> Path:
    """Create an empty source tree."""
    source = temp_dir / "src"
    source.mkdir()
    return source


@pytest.fixture
def output_dir(temp_dir: Path) -> Path:
    """Output directory path (not created)."""
    return temp_dir / "dist"


@pytest.fixture
def make_image() -> ImageFactory:
    """Factory that writes a generated image to disk.

    The format is inferred from the file extension.
    """

    def _make(
        path: Path,
        size: tuple[int, int] = (64, 48),
        mode: str = "RGB",
        color: Any = (200, 80, 40),
        **save_options: Any,
    ) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        if mode == "RGBA" and isinstance(color, tuple) and len(color) == 3:
            color = (*color, 128)
        img = Image.new(mode, size, color)
        img.save(path, **save_options)
        return path

    return _make


@pytest.fixture
def make_config(source_dir: Path, output_dir: Path) -> Callable[..., RunConfig]:
    """Factory for run configurations rooted in the test directories."""

    def _make(**overrides: Any) -> RunConfig:
        values: dict[str, Any] = {
            "source_directory": source_dir,
            "output_directory": output_dir,
            "max_concurrency": 2,
        }
        values.update(overrides)
        return RunConfig.model_validate(values)

    return _make


class FakeCodecGateway:
    """Codec gateway that writes a fixed payload instead of encoding.

    Records every encode call and the peak number of concurrent encodes.
    """

    def __init__(self, payload: bytes = b"\x00" * 10, delay: float = 0.0) -> None:
        self.payload = payload
        self.delay = delay
        self.fail_on: set[str] = set()
        self.metadata: dict[str, Any] = {"format": "png", "orientation": 6, "density": 72}
        self.metadata_error: Exception | None = None
        self.metadata_calls = 0
        self.calls: list[dict[str, Any]] = []
        self.active = 0
        self.peak = 0

    async def read_size(self, path: Path) -> int:
        try:
            return path.stat().st_size
        except OSError as e:
            raise CodecError(path, "size read", e) from e

    async def extract_metadata(self, path: Path) -> dict[str, Any]:
        self.metadata_calls += 1
        if self.metadata_error is not None:
            raise self.metadata_error
        return dict(self.metadata)

    async def decode_resize_encode(self, source_path: Path, output_path: Path, **kwargs) -> None:
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(self.delay)
            if source_path.name in self.fail_on:
                raise CodecError(
                    source_path, f"{kwargs['target_format']} encode", ValueError("corrupt image")
                )
            output_path.write_bytes(self.payload)
            self.calls.append({"source_path": source_path, "output_path": output_path, **kwargs})
        finally:
            self.active -= 1


@pytest.fixture
def fake_gateway() -> FakeCodecGateway:
    """Codec gateway that does not touch Pillow."""
    return FakeCodecGateway()


@pytest.fixture(autouse=True)
def clear_settings_cache(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Keep cached settings, IMAGIT_ variables and user config out of tests."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for name in list(os.environ):
        if name.startswith("IMAGIT_"):
            monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
