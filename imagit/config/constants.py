"""Constants for imagit."""

from pathlib import Path

from imagit import __version__

# Application constants
APP_NAME = "imagit"
APP_VERSION = __version__

# Default paths
DEFAULT_SOURCE_DIR = "src"
DEFAULT_OUTPUT_DIR = "dist"
DEFAULT_LOG_DIR = ".logs"
DEFAULT_CONFIG_FILE = "imagit.yaml"
REPORT_FILENAME = "conversion-report.json"


def config_locations() -> list[Path]:
    """Config files searched at load time, highest priority first."""
    return [
        Path.cwd() / DEFAULT_CONFIG_FILE,
        Path.home() / ".config" / APP_NAME / "config.yaml",
    ]


# Resize defaults
DEFAULT_RESIZE_WIDTH = 1920
DEFAULT_RESIZE_HEIGHT = 1920
DEFAULT_RESIZE_FIT = "inside"
DEFAULT_RESIZE_POSITION = "center"

FIT_STRATEGIES = ["inside", "outside", "cover", "contain"]

# Anchor -> (x, y) centering used when cropping (cover) or padding (contain)
POSITIONS: dict[str, tuple[float, float]] = {
    "center": (0.5, 0.5),
    "centre": (0.5, 0.5),
    "top": (0.5, 0.0),
    "right top": (1.0, 0.0),
    "right": (1.0, 0.5),
    "right bottom": (1.0, 1.0),
    "bottom": (0.5, 1.0),
    "left bottom": (0.0, 1.0),
    "left": (0.0, 0.5),
    "left top": (0.0, 0.0),
    "north": (0.5, 0.0),
    "northeast": (1.0, 0.0),
    "east": (1.0, 0.5),
    "southeast": (1.0, 1.0),
    "south": (0.5, 1.0),
    "southwest": (0.0, 1.0),
    "west": (0.0, 0.5),
    "northwest": (0.0, 0.0),
}

# Default conversion table: source extension -> target format -> encoder settings
DEFAULT_WEBP_QUALITY = 80
DEFAULT_CONVERSION_FORMATS: dict[str, dict[str, dict[str, int]]] = {
    "png": {"webp": {"quality": DEFAULT_WEBP_QUALITY}},
    "jpg": {"webp": {"quality": DEFAULT_WEBP_QUALITY}},
    "jpeg": {"webp": {"quality": DEFAULT_WEBP_QUALITY}},
}

# Pillow encoder names for target formats
PILLOW_FORMATS = {
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "png": "PNG",
    "webp": "WEBP",
    "avif": "AVIF",
    "gif": "GIF",
    "bmp": "BMP",
    "tif": "TIFF",
    "tiff": "TIFF",
}

# Encoders that accept an embedded EXIF block
EXIF_CAPABLE_FORMATS = {"JPEG", "PNG", "WEBP", "AVIF", "TIFF"}

# Metadata
DEFAULT_KEEP_METADATA_KEYS = frozenset({"orientation", "density"})

# Concurrency defaults
DEFAULT_MAX_CONCURRENCY = 4
