"""
Image compositor that blurs marked regions at full resolution.

Boxes are drawn against a display-scaled copy of the image, so before
compositing every box is mapped to natural (source) pixels using the current
display -> natural scale factors. Each axis is scaled independently.

The output is built in two layers:
- the untouched source image as the base
- for every box, the Gaussian-blurred source clipped to that box

Every box receives pixels from the same blurred layer, so overlapping boxes
give the same result in any order.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from PIL import Image, ImageFilter

from ..engine.marks import Box

logger = logging.getLogger(__name__)

# Standard deviation of the blur kernel, in natural pixels.
BLUR_RADIUS = 15

_FILTERABLE_MODES = {"L", "LA", "RGB", "RGBA", "RGBX", "CMYK"}


class SourceUnavailableError(RuntimeError):
    """Raised when an export is requested before the source image is decoded."""


@dataclass(frozen=True)
class ScaleFactors:
    x: float
    y: float


@dataclass(frozen=True)
class NaturalRect:
    """Box mapped to source resolution. Coordinates may be fractional."""
    x: float
    y: float
    w: float
    h: float


def scale_factors(natural_size: Tuple[int, int], display_size: Tuple[float, float]) -> ScaleFactors:
    """
    Display -> natural multipliers per axis.

    Example:
      natural 1000x500, display 500x250 -> ScaleFactors(2.0, 2.0)
    """
    nw, nh = natural_size
    dw, dh = display_size
    if dw <= 0 or dh <= 0:
        raise ValueError(f"Display size must be positive, got {dw}x{dh}")
    return ScaleFactors(nw / dw, nh / dh)


def to_natural(box: Box, scale: ScaleFactors) -> NaturalRect:
    return NaturalRect(box.x * scale.x, box.y * scale.y, box.w * scale.x, box.h * scale.y)


def pixel_bounds(rect: NaturalRect, image_size: Tuple[int, int]) -> Optional[Tuple[int, int, int, int]]:
    """
    Integer (left, top, right, bottom) covering `rect`, clipped to the image.

    Partially covered edge pixels are included. Returns None when nothing of the
    rectangle lies inside the image or it has no area.
    """
    if rect.w <= 0 or rect.h <= 0:
        return None
    width, height = image_size
    left = max(0, math.floor(rect.x))
    top = max(0, math.floor(rect.y))
    right = min(width, math.ceil(rect.x + rect.w))
    bottom = min(height, math.ceil(rect.y + rect.h))
    if right <= left or bottom <= top:
        return None
    return left, top, right, bottom


class ImageCompositor:
    """
    Render the blurred export raster for a source image and its boxes.

    The compositor only produces an in-memory `PIL.Image`; encoding and
    writing are left to the caller.
    """

    def __init__(self, blur_radius: float = BLUR_RADIUS):
        self.blur_radius = blur_radius

    def composite(
        self,
        source: Optional[Image.Image],
        boxes: Iterable[Box],
        scale: ScaleFactors,
    ) -> Image.Image:
        """
        Args:
            source: Source image at natural resolution
            boxes: Committed boxes in display coordinates
            scale: Current display -> natural scale factors

        Returns:
            A new image the size of `source`; `source` itself is not modified.
        """
        if source is None:
            raise SourceUnavailableError("Source image is not loaded yet")

        base = source if source.mode in _FILTERABLE_MODES else source.convert("RGBA")
        out = base.copy()

        blurred: Optional[Image.Image] = None
        painted = 0
        for box in boxes:
            bounds = pixel_bounds(to_natural(box, scale), out.size)
            if bounds is None:
                continue
            if blurred is None:
                blurred = base.filter(ImageFilter.GaussianBlur(self.blur_radius))
            out.paste(blurred.crop(bounds), bounds[:2])
            painted += 1

        logger.debug("Blurred %d region(s) on a %dx%d image", painted, *out.size)
        return out
