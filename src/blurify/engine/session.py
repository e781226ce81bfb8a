"""
Editing sessions: one source artifact plus the marks made against it.

A session is created when an artifact is loaded and thrown away (or `reset`)
when the user starts over. Exports never modify the session, so a failed
export can simply be retried.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from ..artifacts import ExportResult, ImageArtifact, TextArtifact, export_filename
from ..visual.compositor import ImageCompositor, SourceUnavailableError, scale_factors
from ..visual.text_renderer import redact_text, render_preview_html, render_preview_text
from .ranges import RangeModel
from .regions import RegionModel

logger = logging.getLogger(__name__)


class ImageSession:
    """
    Region marks for one image.

    `display_size` is the size the image is currently rendered at; boxes are
    drawn in that space. It defaults to the natural size (no scaling).
    """

    def __init__(
        self,
        artifact: ImageArtifact,
        display_size: Optional[Tuple[float, float]] = None,
        compositor: Optional[ImageCompositor] = None,
    ) -> None:
        self.artifact = artifact
        width, height = display_size or artifact.natural_size
        self.regions = RegionModel(width, height)
        self.compositor = compositor or ImageCompositor()

    def relayout(self, width: float, height: float) -> None:
        self.regions.relayout(width, height)

    def reset(self) -> None:
        self.regions.clear()

    def export(self, display_size: Optional[Tuple[float, float]] = None) -> ExportResult:
        """
        Composite the blurred raster at natural resolution.

        The scale is derived from `display_size` (or the current surface
        extent) at call time and never cached.
        """
        if self.artifact.image is None:
            logger.warning("Export requested for %s before the image was decoded", self.artifact.name)
            raise SourceUnavailableError(f"Image '{self.artifact.name}' is not loaded yet")

        display = display_size or (self.regions.surface_width, self.regions.surface_height)
        scale = scale_factors(self.artifact.natural_size, display)
        boxes = self.regions.as_list()
        image = self.compositor.composite(self.artifact.image, boxes, scale)
        return ExportResult(
            filename=export_filename(self.artifact.name),
            redacted_count=len(boxes),
            image=image,
        )


class TextSession:
    """Range marks for one text document."""

    def __init__(self, artifact: TextArtifact) -> None:
        self.artifact = artifact
        self.ranges = RangeModel(artifact.length)

    @property
    def document(self) -> str:
        return self.artifact.content

    def reset(self) -> None:
        self.ranges.clear()
        self.ranges.selection = None

    def mask(self):
        return self.ranges.derive_mask(len(self.document))

    def preview_text(self, max_width: Optional[int] = None) -> str:
        return render_preview_text(self.document, self.mask(), max_width)

    def preview_html(self) -> str:
        return render_preview_html(self.document, self.mask(), title=self.artifact.name)

    def export(self) -> ExportResult:
        ranges = self.ranges.as_list()
        return ExportResult(
            filename=export_filename(self.artifact.name),
            redacted_count=len(ranges),
            text=redact_text(self.document, ranges),
        )
