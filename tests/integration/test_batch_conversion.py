"""Integration tests converting a realistic source tree with Pillow.

These tests run the whole pipeline (scan, plan, convert, report) against
generated images on disk, with several target formats per source.
"""

import json

import pytest
from PIL import Image

from imagit.core.pipeline import ConversionPipeline


@pytest.fixture
def mixed_tree(source_dir, make_image):
    """A nested tree with photos, transparent graphics and unrelated files."""
    make_image(source_dir / "hero.jpg", size=(1600, 900), quality=95)
    make_image(source_dir / "logo.png", size=(300, 300), mode="RGBA")
    make_image(source_dir / "blog" / "2024" / "cover.JPG", size=(800, 1200))
    make_image(source_dir / "blog" / "diagram.png", size=(120, 80))
    (source_dir / "blog" / "notes.txt").write_text("not an image")
    (source_dir / "favicon.ico").write_bytes(b"\x00\x00\x01\x00")
    return source_dir


@pytest.fixture
def multi_format_config(make_config):
    return make_config(
        filename_suffix="-400",
        max_concurrency=3,
        resize_config={"width": 400, "height": 400, "fit": "cover", "position": "top"},
        conversion_formats={
            "jpg": {"webp": {"quality": 75}, "png": {}},
            "png": {"webp": {"lossless": True}, "png": {"optimize": True}},
        },
    )


class TestBatchConversion:
    """End-to-end batch conversion."""

    @pytest.mark.asyncio
    async def test_mirrors_tree_in_every_format(self, mixed_tree, output_dir, multi_format_config):
        """Every source is written once per target format at the mirrored path."""
        result = await ConversionPipeline(multi_format_config).run_async()

        written = sorted(
            p.relative_to(output_dir).as_posix()
            for p in output_dir.rglob("*")
            if p.is_file() and p.suffix != ".json"
        )
        assert written == [
            "blog/2024/cover-400.png",
            "blog/2024/cover-400.webp",
            "blog/diagram-400.png",
            "blog/diagram-400.webp",
            "hero-400.png",
            "hero-400.webp",
            "logo-400.png",
            "logo-400.webp",
        ]
        assert len(result.results) == 8
        assert result.stats.images_found == 4

    @pytest.mark.asyncio
    async def test_cover_resize(self, mixed_tree, output_dir, multi_format_config):
        """Large sources are cropped to the box; small ones keep their size."""
        await ConversionPipeline(multi_format_config).run_async()

        expected = {
            "hero-400.webp": (400, 400),
            "blog/2024/cover-400.png": (400, 400),
            "logo-400.png": (300, 300),
            "blog/diagram-400.webp": (120, 80),
        }
        for name, size in expected.items():
            with Image.open(output_dir / name) as img:
                assert img.size == size, name

    @pytest.mark.asyncio
    async def test_transparency_kept_where_supported(
        self, mixed_tree, output_dir, multi_format_config
    ):
        """Alpha survives conversion to formats that support it."""
        await ConversionPipeline(multi_format_config).run_async()

        for name in ("logo-400.webp", "logo-400.png"):
            with Image.open(output_dir / name) as img:
                assert img.mode == "RGBA"

    @pytest.mark.asyncio
    async def test_report_contents(self, mixed_tree, output_dir, multi_format_config):
        """The report lists one entry per written file."""
        result = await ConversionPipeline(multi_format_config).run_async()

        data = json.loads((output_dir / "conversion-report.json").read_text(encoding="utf-8"))

        assert data["summary"]["totalImages"] == 8
        assert {d["format"] for d in data["details"]} == {"webp", "png"}
        assert sorted(d["outputPath"] for d in data["details"]) == sorted(
            str(r.output_path) for r in result.results
        )
        for detail in data["details"]:
            assert detail["compressionRatio"].endswith("%")
            assert detail["metadata"] == {}

    @pytest.mark.asyncio
    async def test_rerun_overwrites(self, mixed_tree, output_dir, multi_format_config):
        """A second run over the same tree rewrites the same outputs."""
        pipeline = ConversionPipeline(multi_format_config)

        first = await pipeline.run_async()
        second = await pipeline.run_async()

        assert [r.output_path for r in first.results] == [r.output_path for r in second.results]
