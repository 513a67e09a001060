"""Image codec gateway.

All decode, resize, encode and metadata work goes through a ``CodecGateway``.
``PillowCodecGateway`` is the production implementation; blocking Pillow
calls run in worker threads so conversions can overlap.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol

import anyio
from PIL import Image

from imagit.config.constants import PILLOW_FORMATS
from imagit.config.settings import FormatSettings, ResizeConfig
from imagit.exceptions import CodecError
from imagit.image.metadata import Metadata, build_encode_metadata, has_alpha, read_metadata
from imagit.image.resize import apply_resize, plan_resize
from imagit.utils.logging import get_logger

log = get_logger(__name__)

# Info keys that would otherwise leak source metadata into the output
_STRIPPED_INFO_KEYS = ("icc_profile", "exif", "xmp", "XML:com.adobe.xmp")


class CodecGateway(Protocol):
    """Capabilities the conversion task needs from an image library."""

    async def read_size(self, path: Path) -> int:
        """Return the file size in bytes."""
        ...

    async def extract_metadata(self, path: Path) -> Metadata:
        """Return the metadata record of an image file."""
        ...

    async def decode_resize_encode(
        self,
        source_path: Path,
        output_path: Path,
        target_format: str,
        settings: FormatSettings,
        resize_config: ResizeConfig | None,
        keep_icc_profile: bool,
        metadata: Metadata,
    ) -> None:
        """Decode, optionally resize, and write the image in the target format."""
        ...


def pillow_format(target_format: str) -> str:
    """Map a target format name (file extension) to a Pillow encoder name."""
    return PILLOW_FORMATS.get(target_format.lower(), target_format.upper())


def prepare_for_format(img: Image.Image, pil_format: str) -> Image.Image:
    """Convert image mode where the target encoder requires it."""
    if pil_format == "JPEG":
        if has_alpha(img):
            rgba = img.convert("RGBA")
            background = Image.new("RGB", rgba.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.split()[3])
            return background
        if img.mode not in ("RGB", "L", "CMYK"):
            return img.convert("RGB")
    return img


class PillowCodecGateway:
    """Codec gateway backed by Pillow."""

    async def read_size(self, path: Path) -> int:
        """Return the file size in bytes."""
        try:
            return await anyio.to_thread.run_sync(_file_size, path)
        except OSError as e:
            raise CodecError(path, "size read", e) from e

    async def extract_metadata(self, path: Path) -> Metadata:
        """Return the metadata record of an image file."""
        return await anyio.to_thread.run_sync(self._extract_metadata_sync, path)

    def _extract_metadata_sync(self, path: Path) -> Metadata:
        try:
            with Image.open(path) as img:
                return read_metadata(img)
        except Exception as e:
            raise CodecError(path, "metadata read", e) from e

    async def decode_resize_encode(
        self,
        source_path: Path,
        output_path: Path,
        target_format: str,
        settings: FormatSettings,
        resize_config: ResizeConfig | None,
        keep_icc_profile: bool,
        metadata: Metadata,
    ) -> None:
        """Decode, optionally resize, and write the image in the target format."""
        await anyio.to_thread.run_sync(
            self._convert_sync,
            source_path,
            output_path,
            target_format,
            settings,
            resize_config,
            keep_icc_profile,
            metadata,
        )

    def _convert_sync(
        self,
        source_path: Path,
        output_path: Path,
        target_format: str,
        settings: FormatSettings,
        resize_config: ResizeConfig | None,
        keep_icc_profile: bool,
        metadata: Metadata,
    ) -> None:
        pil_format = pillow_format(target_format)
        try:
            with Image.open(source_path) as img:
                img.load()
                icc_profile = img.info.get("icc_profile")

                result = img
                if resize_config is not None:
                    result = apply_resize(result, plan_resize(result.size, resize_config))
                result = prepare_for_format(result, pil_format)

                for key in _STRIPPED_INFO_KEYS:
                    result.info.pop(key, None)

                options: dict[str, Any] = settings.encoder_options()
                if keep_icc_profile and icc_profile:
                    options["icc_profile"] = icc_profile
                options.update(build_encode_metadata(metadata).encoder_options(pil_format))

                result.save(output_path, format=pil_format, **options)
        except Exception as e:
            # Never leave a truncated output behind
            output_path.unlink(missing_ok=True)
            raise CodecError(source_path, f"{target_format} encode", e) from e


def _file_size(path: Path) -> int:
    return path.stat().st_size
