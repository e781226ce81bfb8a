"""
Text redaction renderer.

Turns a per-character mask into:
- a preview, where masked runs are drawn as solid blocks of the same length
- the exported document, where every masked character becomes the sentinel

The preview is split into maximal runs of equal mask value. Run boundaries are
therefore visible in the preview; only the characters inside masked runs are
hidden. Replacement is always character-for-character, so exported text has
exactly the length of the source.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from jinja2 import Environment, PackageLoader, select_autoescape

from ..engine.marks import TextRange

SENTINEL = "\u2588"  # full block


@dataclass(frozen=True)
class Segment:
    """Maximal run [start, end) of characters sharing one mask value."""
    start: int
    end: int
    redacted: bool

    def __len__(self) -> int:
        return self.end - self.start


def segment_runs(document: str, mask: Sequence[bool]) -> List[Segment]:
    """
    Split `document` into runs of equal mask value.

    Example:
      "abcdef", [F, F, T, T, F, F] -> [0,2) plain, [2,4) redacted, [4,6) plain
    """
    if not document:
        return []
    segments: List[Segment] = []
    run_start = 0
    current = bool(mask[0])
    for i in range(1, len(document) + 1):
        if i == len(document) or bool(mask[i]) != current:
            segments.append(Segment(run_start, i, current))
            if i < len(document):
                run_start = i
                current = bool(mask[i])
    return segments


def redact_with_mask(document: str, mask: Sequence[bool]) -> str:
    return "".join(SENTINEL if mask[i] else ch for i, ch in enumerate(document))


def redact_text(document: str, ranges: Iterable[TextRange]) -> str:
    """
    Replace every character covered by any range with the sentinel.

    Works index by index on the ranges as given, so overlapping, nested and
    disjoint ranges all behave the same. Offsets past the end are ignored.
    """
    chars = list(document)
    for r in ranges:
        for i in range(max(0, r.start), min(r.end, len(chars))):
            chars[i] = SENTINEL
    return "".join(chars)


def render_preview_text(document: str, mask: Sequence[bool], max_width: Optional[int] = None) -> str:
    """
    Plain-text preview with masked runs drawn as sentinel blocks.

    When `max_width` is given, each line longer than it is hard-wrapped.
    """
    parts = []
    for seg in segment_runs(document, mask):
        parts.append(SENTINEL * len(seg) if seg.redacted else document[seg.start:seg.end])
    preview = "".join(parts)

    if not max_width:
        return preview
    lines = []
    for line in preview.split("\n"):
        if not line:
            lines.append(line)
            continue
        for i in range(0, len(line), max_width):
            lines.append(line[i:i + max_width])
    return "\n".join(lines)


_env: Optional[Environment] = None


def _environment() -> Environment:
    global _env
    if _env is None:
        _env = Environment(
            loader=PackageLoader("blurify.visual", "templates"),
            autoescape=select_autoescape(["html", "html.j2"]),
        )
    return _env


def render_preview_html(document: str, mask: Sequence[bool], title: str = "Document") -> str:
    """
    Two-layer HTML preview.

    The backdrop shows the runs, with masked runs written as sentinels so the
    hidden characters never appear in it. On top sits a transparent read-only
    textarea holding the original document, so native selection reports true
    character offsets.
    """
    runs = [
        {
            "redacted": seg.redacted,
            "text": SENTINEL * len(seg) if seg.redacted else document[seg.start:seg.end],
            "start": seg.start,
        }
        for seg in segment_runs(document, mask)
    ]
    tmpl = _environment().get_template("preview.html.j2")
    return tmpl.render(title=title, runs=runs, document=document, redacted=sum(1 for m in mask if m))
