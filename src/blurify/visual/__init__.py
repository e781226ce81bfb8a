"""Rendering for redaction: blurred image composites and masked text."""

from .compositor import (
    BLUR_RADIUS,
    ImageCompositor,
    ScaleFactors,
    SourceUnavailableError,
    scale_factors,
    to_natural,
)
from .text_renderer import (
    SENTINEL,
    Segment,
    redact_text,
    redact_with_mask,
    render_preview_html,
    render_preview_text,
    segment_runs,
)

__all__ = [
    "BLUR_RADIUS",
    "ImageCompositor",
    "ScaleFactors",
    "SourceUnavailableError",
    "scale_factors",
    "to_natural",
    "SENTINEL",
    "Segment",
    "redact_text",
    "redact_with_mask",
    "render_preview_html",
    "render_preview_text",
    "segment_runs",
]
