"""Image metadata extraction, filtering and re-application.

Metadata is a flat, JSON-serializable record keyed by snake_case names.
Only the keys listed in ``METADATA_APPLIERS`` can be written back into a
converted image; everything else is informational (it still appears in the
conversion report when allow-listed).
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from PIL import ExifTags, Image

from imagit.config.constants import EXIF_CAPABLE_FORMATS

Metadata = dict[str, Any]

# EXIF IFD0 text tags exposed as metadata keys
EXIF_TEXT_TAGS: dict[str, int] = {
    "artist": ExifTags.Base.Artist,
    "copyright": ExifTags.Base.Copyright,
    "make": ExifTags.Base.Make,
    "model": ExifTags.Base.Model,
    "software": ExifTags.Base.Software,
    "date_time": ExifTags.Base.DateTime,
    "image_description": ExifTags.Base.ImageDescription,
}


def has_alpha(img: Image.Image) -> bool:
    """Check whether an image carries transparency."""
    return img.mode in ("RGBA", "LA", "PA", "RGBa", "La") or "transparency" in img.info


def _text(value: Any) -> str:
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    return str(value).strip("\x00 ")


def read_metadata(img: Image.Image) -> Metadata:
    """Read the metadata record of an opened image.

    Args:
        img: Opened Pillow image

    Returns:
        Metadata record
    """
    metadata: Metadata = {
        "format": (img.format or "").lower(),
        "width": img.width,
        "height": img.height,
        "mode": img.mode,
        "channels": len(img.getbands()),
        "has_alpha": has_alpha(img),
        "has_profile": bool(img.info.get("icc_profile")),
    }

    dpi = img.info.get("dpi")
    if dpi:
        metadata["density"] = round(float(dpi[0]))

    exif = img.getexif()
    orientation = exif.get(ExifTags.Base.Orientation)
    if orientation:
        metadata["orientation"] = int(orientation)

    for key, tag in EXIF_TEXT_TAGS.items():
        value = exif.get(tag)
        if value:
            text = _text(value)
            if text:
                metadata[key] = text

    return metadata


def filter_metadata(metadata: Mapping[str, Any], allowed_keys: Iterable[str]) -> Metadata:
    """Narrow a metadata record down to an allow-list of keys.

    Values are returned unmodified.

    Args:
        metadata: Full metadata record
        allowed_keys: Keys to keep

    Returns:
        New record holding only the allowed entries
    """
    allowed = set(allowed_keys)
    return {key: value for key, value in metadata.items() if key in allowed}


@dataclass
class EncodeMetadata:
    """Metadata translated into encoder inputs."""

    exif: Image.Exif = field(default_factory=Image.Exif)
    save_options: dict[str, Any] = field(default_factory=dict)

    def encoder_options(self, pil_format: str) -> dict[str, Any]:
        """Keyword arguments for ``Image.save`` in the given format."""
        options = dict(self.save_options)
        if len(self.exif) and pil_format in EXIF_CAPABLE_FORMATS:
            options["exif"] = self.exif.tobytes()
        return options


def _set_orientation(target: EncodeMetadata, value: Any) -> None:
    orientation = int(value)
    if 1 <= orientation <= 8:
        target.exif[ExifTags.Base.Orientation] = orientation


def _set_density(target: EncodeMetadata, value: Any) -> None:
    density = float(value)
    if density > 0:
        target.save_options["dpi"] = (density, density)


def _exif_text_setter(tag: int) -> Callable[[EncodeMetadata, Any], None]:
    def setter(target: EncodeMetadata, value: Any) -> None:
        target.exif[tag] = str(value)

    return setter


METADATA_APPLIERS: dict[str, Callable[[EncodeMetadata, Any], None]] = {
    "orientation": _set_orientation,
    "density": _set_density,
    **{key: _exif_text_setter(tag) for key, tag in EXIF_TEXT_TAGS.items()},
}


def build_encode_metadata(metadata: Mapping[str, Any]) -> EncodeMetadata:
    """Translate a metadata record into encoder inputs.

    Keys without an entry in ``METADATA_APPLIERS`` are ignored.
    """
    target = EncodeMetadata()
    for key, value in metadata.items():
        applier = METADATA_APPLIERS.get(key)
        if applier is None:
            continue
        applier(target, value)
    return target
