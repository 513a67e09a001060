"""Resize geometry and application."""

from dataclasses import dataclass

from PIL import Image

from imagit.config.constants import POSITIONS
from imagit.config.settings import ResizeConfig
from imagit.image.metadata import has_alpha
from imagit.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class ResizePlan:
    """Target geometry for one image.

    ``scaled`` is the size after scaling; ``box`` is the final canvas, which
    is smaller than ``scaled`` for ``cover`` (crop) and larger for
    ``contain`` (pad).
    """

    scaled: tuple[int, int]
    box: tuple[int, int]
    fit: str
    centering: tuple[float, float]

    @property
    def size(self) -> tuple[int, int]:
        """Final output size."""
        return self.box


def plan_resize(size: tuple[int, int], config: ResizeConfig) -> ResizePlan:
    """Compute the resize geometry for an image.

    Args:
        size: Original (width, height)
        config: Resize policy

    Returns:
        Resize plan. With ``without_enlargement`` the output never exceeds
        the original size on either axis.
    """
    width, height = size
    if width <= 0 or height <= 0:
        raise ValueError(f"Cannot resize image with size {width}x{height}")

    scale_x = config.width / width
    scale_y = config.height / height

    if config.fit in ("inside", "contain"):
        scale = min(scale_x, scale_y)
    else:
        scale = max(scale_x, scale_y)

    if config.without_enlargement:
        scale = min(scale, 1.0)

    scaled = (max(1, round(width * scale)), max(1, round(height * scale)))

    if config.fit == "cover":
        box = (min(config.width, scaled[0]), min(config.height, scaled[1]))
    elif config.fit == "contain":
        box_w, box_h = config.width, config.height
        if config.without_enlargement:
            box_w, box_h = min(box_w, width), min(box_h, height)
        box = (max(box_w, scaled[0]), max(box_h, scaled[1]))
    else:
        box = scaled

    return ResizePlan(
        scaled=scaled,
        box=box,
        fit=config.fit,
        centering=POSITIONS[config.position],
    )


def _offset(outer: int, inner: int, anchor: float) -> int:
    return round((outer - inner) * anchor)


def apply_resize(img: Image.Image, plan: ResizePlan) -> Image.Image:
    """Apply a resize plan to an image.

    Args:
        img: Source image
        plan: Plan from ``plan_resize``

    Returns:
        Resized image (may be ``img`` itself when nothing changes)
    """
    result = img
    if result.size != plan.scaled:
        log.debug(
            "Resizing image",
            original=f"{img.width}x{img.height}",
            new=f"{plan.scaled[0]}x{plan.scaled[1]}",
            fit=plan.fit,
        )
        if result.mode == "P":
            result = result.convert("RGBA" if has_alpha(result) else "RGB")
        result = result.resize(plan.scaled, Image.Resampling.LANCZOS)

    if plan.box == plan.scaled:
        return result

    anchor_x, anchor_y = plan.centering
    box_w, box_h = plan.box
    scaled_w, scaled_h = plan.scaled

    if plan.fit == "cover":
        left = _offset(scaled_w, box_w, anchor_x)
        top = _offset(scaled_h, box_h, anchor_y)
        return result.crop((left, top, left + box_w, top + box_h))

    # contain: letterbox onto a canvas of the box size
    if has_alpha(result):
        result = result.convert("RGBA")
        canvas = Image.new("RGBA", plan.box, (0, 0, 0, 0))
    else:
        mode = result.mode if result.mode in ("RGB", "L") else "RGB"
        result = result.convert(mode)
        canvas = Image.new(mode, plan.box, 0)

    canvas.paste(result, (_offset(box_w, scaled_w, anchor_x), _offset(box_h, scaled_h, anchor_y)))
    return canvas
