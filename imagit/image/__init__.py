"""Image processing module for imagit."""

from imagit.image.codec import CodecGateway, PillowCodecGateway, pillow_format
from imagit.image.metadata import (
    METADATA_APPLIERS,
    Metadata,
    build_encode_metadata,
    filter_metadata,
    read_metadata,
)
from imagit.image.resize import ResizePlan, apply_resize, plan_resize

__all__ = [
    "CodecGateway",
    "PillowCodecGateway",
    "pillow_format",
    "Metadata",
    "METADATA_APPLIERS",
    "build_encode_metadata",
    "filter_metadata",
    "read_metadata",
    "ResizePlan",
    "apply_resize",
    "plan_resize",
]
