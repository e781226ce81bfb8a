"""
Range model for text redaction.

Ranges are stored exactly as the user made them, overlaps and duplicates
included. Overlap is resolved only when the per-character mask is derived,
which is always recomputed from scratch so insertion and removal order never
matter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .marks import MarkCollection, TextRange

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Selection:
    """Active selection offsets. The selected text itself is never read."""
    start: int
    end: int


def derive_mask(ranges: Iterable[TextRange], length: int) -> List[bool]:
    """
    Per-character redaction flags for a document of `length` characters.

    mask[i] is True iff some range contains i (union semantics):
      ranges [0,5) and [3,8) over 10 chars -> 8x True, 2x False
    """
    mask = [False] * length
    for r in ranges:
        for i in range(max(0, r.start), min(r.end, length)):
            mask[i] = True
    return mask


class RangeModel:
    """Committed text ranges plus the active selection, for one document."""

    def __init__(self, document_length: int) -> None:
        self.document_length = document_length
        self.ranges: MarkCollection[TextRange] = MarkCollection()
        self.selection: Optional[Selection] = None

    def add_range(self, start: int, end: int) -> Optional[TextRange]:
        """
        Append [start, end) if 0 <= start < end <= document length.

        Anything else (including empty ranges) is ignored and returns None.
        """
        if not (0 <= start < end <= self.document_length):
            logger.debug("Ignoring range [%s, %s) for a %d-char document", start, end, self.document_length)
            return None
        rng = self.ranges.add(TextRange(start, end))
        logger.debug("Committed range %s (%d total)", rng.id, len(self.ranges))
        return rng

    def remove(self, range_id: str) -> bool:
        return self.ranges.remove(range_id)

    def clear(self) -> None:
        self.ranges.clear()

    def derive_mask(self, document_length: Optional[int] = None) -> List[bool]:
        length = self.document_length if document_length is None else document_length
        return derive_mask(self.ranges, length)

    # ---------------- Selection ----------------

    def selection_changed(self, anchor: int, focus: int) -> Optional[Selection]:
        """Track the host's selection; a collapsed selection clears it."""
        if anchor == focus:
            self.selection = None
        else:
            self.selection = Selection(min(anchor, focus), max(anchor, focus))
        return self.selection

    def commit_selection(self) -> Optional[TextRange]:
        """Turn the active selection into a range and clear the selection."""
        if self.selection is None:
            return None
        sel, self.selection = self.selection, None
        return self.add_range(sel.start, sel.end)

    def __iter__(self):
        return iter(self.ranges)

    def __len__(self) -> int:
        return len(self.ranges)

    def as_list(self) -> List[TextRange]:
        return list(self.ranges)
