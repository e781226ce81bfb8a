"""
Region model for image redaction.

Rectangles are drawn interactively on a display-scaled surface. A drag may go
in any direction, so the pending rectangle carries a signed size until it is
committed; at commit time it is normalized to a non-negative size and dropped
if either side is too small to be intentional.

Drawing is a tiny state machine (idle -> drawing -> idle) driven by the
pointer methods, which hosts call from their native event handlers.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from .marks import Box, MarkCollection

logger = logging.getLogger(__name__)

# Boxes with a side at or below this many display pixels are treated as stray clicks.
MIN_BOX_SIZE = 5


def normalize_box(x: float, y: float, w: float, h: float) -> Tuple[float, float, float, float]:
    """
    Shift (x, y) to the top-left corner and make (w, h) non-negative.

    The covered area is unchanged:
      (100, 50, -20, 30) -> (80, 50, 20, 30)
    """
    if w < 0:
        x += w
        w = -w
    if h < 0:
        y += h
        h = -h
    return x, y, w, h


def is_significant(w: float, h: float) -> bool:
    return abs(w) > MIN_BOX_SIZE and abs(h) > MIN_BOX_SIZE


class RegionModel:
    """
    Committed boxes plus the one in progress.

    Args:
        surface_width: Width of the rendered surface in display pixels
        surface_height: Height of the rendered surface in display pixels
    """

    def __init__(self, surface_width: float = 0, surface_height: float = 0) -> None:
        self.surface_width = surface_width
        self.surface_height = surface_height
        self.boxes: MarkCollection[Box] = MarkCollection()
        self._pending: Optional[Box] = None

    # ---------------- Drawing ----------------

    @property
    def drawing(self) -> bool:
        return self._pending is not None

    @property
    def pending(self) -> Optional[Box]:
        """The in-progress rectangle, normalized for display, or None when idle."""
        if self._pending is None:
            return None
        return Box(*normalize_box(self._pending.x, self._pending.y, self._pending.w, self._pending.h))

    def relayout(self, width: float, height: float) -> None:
        self.surface_width = width
        self.surface_height = height

    def begin_draw(self, x: float, y: float) -> None:
        """Start a zero-size box at (x, y). A box already in progress is discarded."""
        if self._pending is not None:
            logger.debug("Discarding unfinished box at (%s, %s)", self._pending.x, self._pending.y)
        self._pending = Box(x, y, 0, 0)

    def update_draw(self, x: float, y: float) -> None:
        if self._pending is None:
            return
        # The dragged corner cannot leave the visible surface.
        cx = max(0, min(x, self.surface_width))
        cy = max(0, min(y, self.surface_height))
        self._pending = Box(self._pending.x, self._pending.y, cx - self._pending.x, cy - self._pending.y)

    def end_draw(self) -> Optional[Box]:
        """
        Commit the pending box if it is large enough.

        The pending box is cleared whatever the outcome. Returns the stored box,
        or None if nothing was committed.
        """
        if self._pending is None:
            return None
        pending, self._pending = self._pending, None
        return self.commit(pending.x, pending.y, pending.w, pending.h)

    # ---------------- Host event adapter ----------------

    def pointer_down(self, x: float, y: float) -> None:
        self.begin_draw(x, y)

    def pointer_move(self, x: float, y: float) -> None:
        self.update_draw(x, y)

    def pointer_up(self) -> Optional[Box]:
        return self.end_draw()

    def pointer_leave(self) -> Optional[Box]:
        # Leaving the surface finishes the gesture like a release does.
        return self.end_draw()

    # ---------------- Collection ----------------

    def commit(self, x: float, y: float, w: float, h: float) -> Optional[Box]:
        """Normalize and store a finished rectangle; sub-threshold ones are dropped."""
        x, y, w, h = normalize_box(x, y, w, h)
        if not is_significant(w, h):
            logger.debug("Ignoring %sx%s box below the minimum size", w, h)
            return None
        box = self.boxes.add(Box(x, y, w, h))
        logger.debug("Committed box %s (%d total)", box.id, len(self.boxes))
        return box

    def remove(self, box_id: str) -> bool:
        return self.boxes.remove(box_id)

    def clear(self) -> None:
        self.boxes.clear()

    def __iter__(self):
        return iter(self.boxes)

    def __len__(self) -> int:
        return len(self.boxes)

    def as_list(self) -> List[Box]:
        return list(self.boxes)
