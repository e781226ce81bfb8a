"""
Mark records and the collection that owns them.

Both media share one pattern: an ordered list of marks with add/remove/clear.
Image marks (`Box`) live in display coordinates, text marks (`TextRange`) in
character offsets. Insertion order is the only ordering; there is no dedup and
no merging at insertion time.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from typing import Generic, Iterator, List, Optional, TypeVar


def new_mark_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Box:
    """Axis-aligned rectangle in display pixels (top-left + size)."""
    x: float
    y: float
    w: float
    h: float
    id: str = ""


@dataclass(frozen=True)
class TextRange:
    """Half-open interval [start, end) over the document's characters."""
    start: int
    end: int
    id: str = ""


M = TypeVar("M", Box, TextRange)


class MarkCollection(Generic[M]):
    """
    Ordered, session-scoped set of marks.

    `add` always assigns a fresh identifier, whatever id the caller passed in.
    """

    def __init__(self) -> None:
        self._marks: List[M] = []

    def add(self, mark: M) -> M:
        stored = replace(mark, id=new_mark_id())
        self._marks.append(stored)
        return stored

    def remove(self, mark_id: str) -> bool:
        """Drop the mark with `mark_id`. Unknown ids are ignored."""
        before = len(self._marks)
        self._marks = [m for m in self._marks if m.id != mark_id]
        return len(self._marks) != before

    def clear(self) -> None:
        self._marks = []

    def get(self, mark_id: str) -> Optional[M]:
        for m in self._marks:
            if m.id == mark_id:
                return m
        return None

    def __iter__(self) -> Iterator[M]:
        return iter(list(self._marks))

    def __len__(self) -> int:
        return len(self._marks)

    def __bool__(self) -> bool:
        return bool(self._marks)
