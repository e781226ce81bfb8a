"""Mark models for image regions and text ranges. Sessions live in `engine.session`."""

from .marks import Box, MarkCollection, TextRange
from .ranges import RangeModel, Selection, derive_mask
from .regions import MIN_BOX_SIZE, RegionModel, normalize_box

__all__ = [
    "Box",
    "TextRange",
    "MarkCollection",
    "RegionModel",
    "RangeModel",
    "Selection",
    "derive_mask",
    "normalize_box",
    "MIN_BOX_SIZE",
]
