"""Tests for source/output path mapping."""

from itertools import product
from pathlib import Path

import pytest

from imagit.config import RunConfig
from imagit.core.paths import (
    ImagePathInfo,
    create_output_path,
    parse_image_path,
    relative_source_path,
    require_image_path,
)
from imagit.exceptions import InvalidImagePathError, InvalidSourceTreeError

EXTENSIONS = {"png", "jpg", "jpeg"}


class TestParseImagePath:
    """Tests for parse_image_path."""

    def test_recognized(self):
        """Test name and lowercase extension extraction."""
        info = parse_image_path(Path("src/photos/Beach.JPG"), EXTENSIONS)

        assert info == ImagePathInfo(name="Beach", extension="jpg")

    def test_dotted_name(self):
        """Test that only the last suffix is the extension."""
        info = parse_image_path(Path("src/logo.v2.png"), EXTENSIONS)

        assert info == ImagePathInfo(name="logo.v2", extension="png")

    @pytest.mark.parametrize("name", ["notes.txt", "README", "archive.png.bak"])
    def test_unrecognized(self, name):
        """Test that unrecognized paths yield None."""
        assert parse_image_path(Path("src") / name, EXTENSIONS) is None

    def test_require_raises(self):
        """Test the raising variant used at the scheduling boundary."""
        with pytest.raises(InvalidImagePathError) as exc_info:
            require_image_path(Path("src/a.GIF"), EXTENSIONS)

        assert exc_info.value.extension == "gif"
        assert require_image_path(Path("src/a.png"), EXTENSIONS).name == "a"


class TestCreateOutputPath:
    """Tests for create_output_path."""

    @pytest.fixture
    def config(self) -> RunConfig:
        return RunConfig(source_directory=Path("src"), output_directory=Path("dist"))

    def test_top_level(self, config):
        """Test mapping a file at the source root."""
        assert create_output_path(Path("src/a.png"), "webp", config) == Path("dist/a.webp")

    def test_preserves_subdirectories(self, config):
        """Test that nested structure is mirrored."""
        assert create_output_path(Path("src/sub/b.jpg"), "webp", config) == Path(
            "dist/sub/b.webp"
        )

    def test_suffix(self):
        """Test that the filename suffix goes before the new extension."""
        config = RunConfig(
            source_directory=Path("src"), output_directory=Path("dist"), filename_suffix="-min"
        )

        assert create_output_path(Path("src/x/c.png"), "avif", config) == Path(
            "dist/x/c-min.avif"
        )

    def test_target_format_lowercased(self, config):
        """Test that the output extension is lowercase."""
        assert create_output_path(Path("src/a.png"), "WEBP", config).suffix == ".webp"

    def test_absolute_and_relative_roots(self, tmp_path):
        """Test matching an absolute source against a relative root."""
        config = RunConfig(source_directory=tmp_path / "src", output_directory=tmp_path / "out")

        assert create_output_path(tmp_path / "src" / "d" / "e.jpeg", "png", config) == (
            tmp_path / "out" / "d" / "e.png"
        )

    def test_outside_source_tree(self, config):
        """Test that a path outside the source root is reported."""
        with pytest.raises(InvalidSourceTreeError):
            create_output_path(Path("elsewhere/a.png"), "webp", config)

    def test_source_root_itself(self, config):
        """Test that the source root is not a valid image path."""
        with pytest.raises(InvalidSourceTreeError):
            relative_source_path(Path("src"), Path("src"))

    def test_deterministic_and_injective(self, config):
        """Test that distinct (source, format) pairs never share an output."""
        sources = [
            Path("src/a.png"),
            Path("src/b.png"),
            Path("src/sub/a.png"),
            Path("src/sub/deeper/a.png"),
            Path("src/a.b.png"),
        ]
        formats = ["webp", "avif", "png"]

        pairs = list(product(sources, formats))
        outputs = [create_output_path(s, f, config) for s, f in pairs]

        assert outputs == [create_output_path(s, f, config) for s, f in pairs]
        assert len(set(outputs)) == len(pairs)
