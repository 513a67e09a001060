"""Tests for filesystem utilities module."""

import asyncio
from pathlib import Path

import anyio
import pytest

from imagit.exceptions import DirectoryCreateError
from imagit.utils.fs import (
    atomic_write,
    ensure_directory,
    format_size,
    is_hidden,
    is_relative_to,
    iter_files,
    remove_directory,
)


class TestEnsureDirectory:
    """Tests for ensure_directory function."""

    def test_creates_nested_directories(self, tmp_path):
        """Test creating a directory with missing parents."""
        nested = tmp_path / "a" / "b" / "c"

        assert ensure_directory(nested) is True
        assert nested.is_dir()

    def test_existing_directory(self, tmp_path):
        """Test that an existing directory is reported as not created."""
        existing = tmp_path / "existing"
        existing.mkdir()

        assert ensure_directory(existing) is False

    def test_path_is_file(self, tmp_path):
        """Test that a regular file at the path is an error."""
        blocker = tmp_path / "blocker"
        blocker.write_text("x")

        with pytest.raises(DirectoryCreateError) as exc_info:
            ensure_directory(blocker)
        assert exc_info.value.path == blocker

    def test_parent_is_file(self, tmp_path):
        """Test that a regular file in the parent chain is an error."""
        blocker = tmp_path / "blocker"
        blocker.write_text("x")

        with pytest.raises(DirectoryCreateError):
            ensure_directory(blocker / "child")

    @pytest.mark.asyncio
    async def test_concurrent_creation(self, tmp_path):
        """Test that concurrent calls for one path all succeed, one creating it."""
        target = tmp_path / "shared" / "deep"

        results = await asyncio.gather(
            *(anyio.to_thread.run_sync(ensure_directory, target) for _ in range(8))
        )

        assert target.is_dir()
        assert results.count(True) == 1


class TestIterFiles:
    """Tests for iter_files function."""

    @pytest.fixture
    def tree(self, tmp_path: Path) -> Path:
        (tmp_path / "sub").mkdir()
        (tmp_path / ".hidden").mkdir()
        for rel in ["a.png", "b.JPG", "c.txt", "sub/d.jpeg", ".e.png", ".hidden/f.png"]:
            (tmp_path / rel).write_bytes(b"x")
        return tmp_path

    def test_recursive_with_extensions(self, tree):
        """Test recursive discovery filtered by extension."""
        files = iter_files(tree, recursive=True, extensions={"png", "jpg", "jpeg"})
        found = sorted(p.relative_to(tree).as_posix() for p in files)

        assert found == ["a.png", "b.JPG", "sub/d.jpeg"]

    def test_non_recursive(self, tree):
        """Test discovery of the top level only."""
        found = sorted(p.name for p in iter_files(tree, recursive=False))

        assert found == ["a.png", "b.JPG", "c.txt"]


class TestPathHelpers:
    """Tests for small path helpers."""

    def test_is_hidden(self):
        """Test dot-prefixed names are hidden."""
        assert is_hidden(Path(".git"))
        assert not is_hidden(Path("src/a.png"))

    def test_is_relative_to(self, tmp_path):
        """Test containment checks on absolute paths."""
        assert is_relative_to(tmp_path / "src", tmp_path)
        assert is_relative_to(tmp_path, tmp_path)
        assert not is_relative_to(tmp_path, tmp_path / "src")

    def test_remove_directory(self, tmp_path):
        """Test removing a tree and the missing-path case."""
        target = tmp_path / "dist"
        (target / "sub").mkdir(parents=True)
        (target / "sub" / "a.webp").write_bytes(b"x")

        assert remove_directory(target) is True
        assert not target.exists()
        assert remove_directory(target) is False


class TestAtomicWrite:
    """Tests for atomic_write context manager."""

    def test_writes_file(self, tmp_path):
        """Test successful write."""
        target = tmp_path / "out" / "report.json"

        with atomic_write(target) as f:
            f.write("{}")

        assert target.read_text() == "{}"

    def test_failure_keeps_original(self, tmp_path):
        """Test that a failed write leaves no partial file behind."""
        target = tmp_path / "report.json"
        target.write_text("old")

        with pytest.raises(RuntimeError):
            with atomic_write(target) as f:
                f.write("partial")
                raise RuntimeError("interrupted")

        assert target.read_text() == "old"
        assert [p.name for p in tmp_path.iterdir()] == ["report.json"]


class TestFormatSize:
    """Tests for format_size function."""

    @pytest.mark.parametrize(
        ("size", "expected"),
        [
            (0, "0.0 B"),
            (512, "512.0 B"),
            (1024, "1.0 KB"),
            (1536, "1.5 KB"),
            (1024 * 1024, "1.0 MB"),
        ],
    )
    def test_format_size(self, size, expected):
        """Test human-readable sizes."""
        assert format_size(size) == expected
