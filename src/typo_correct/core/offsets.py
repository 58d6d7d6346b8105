"""OffsetMap: carry character positions from one text snapshot to the next.

Passes rewrite text with regex substitutions, so the pipeline does not know
exactly which characters moved. It diffs the before/after snapshots instead
(``difflib.SequenceMatcher``) and maps positions through the edit opcodes.

Span edges never absorb text inserted right at their boundary: a start moves
past an insertion in front of it, an end stays before an insertion after it.
A span covering replaced text grows or shrinks with the replacement.

Only the window between the common prefix and the common suffix goes
through the matcher, whose cost grows with the square of that window.
"""

from __future__ import annotations

from bisect import bisect_right
from difflib import SequenceMatcher

from typo_correct.core.models import Span, StyleApplication


def _common_affixes(before: str, after: str) -> tuple[int, int]:
    limit = min(len(before), len(after))
    prefix = 0
    while prefix < limit and before[prefix] == after[prefix]:
        prefix += 1
    suffix = 0
    while suffix < limit - prefix and before[-1 - suffix] == after[-1 - suffix]:
        suffix += 1
    return prefix, suffix


def _opcodes(before: str, after: str) -> list[tuple[str, int, int, int, int]]:
    """Edit opcodes covering every character of ``before``, in order."""
    prefix, suffix = _common_affixes(before, after)
    old_end = len(before) - suffix
    new_end = len(after) - suffix
    ops: list[tuple[str, int, int, int, int]] = []
    if prefix:
        ops.append(("equal", 0, prefix, 0, prefix))
    matcher = SequenceMatcher(None, before[prefix:old_end], after[prefix:new_end], autojunk=False)
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        # Insertions cover no old character.
        if i1 < i2:
            ops.append((tag, i1 + prefix, i2 + prefix, j1 + prefix, j2 + prefix))
    if suffix:
        ops.append(("equal", old_end, len(before), new_end, len(after)))
    return ops


class OffsetMap:
    def __init__(self, before: str, after: str) -> None:
        self._before_len = len(before)
        self._after_len = len(after)
        self._identity = before == after
        if self._identity:
            self._ops: list[tuple[str, int, int, int, int]] = []
        else:
            self._ops = _opcodes(before, after)
        self._starts = [op[1] for op in self._ops]

    @property
    def identity(self) -> bool:
        return self._identity

    def _covering(self, old_index: int) -> tuple[str, int, int, int, int]:
        i = bisect_right(self._starts, old_index) - 1
        return self._ops[i]

    def map_start(self, pos: int) -> int:
        if self._identity:
            return pos
        if pos >= self._before_len:
            return self._after_len
        tag, i1, _i2, j1, _j2 = self._covering(pos)
        if tag == "equal":
            return j1 + (pos - i1)
        return j1

    def map_end(self, pos: int) -> int:
        if self._identity:
            return pos
        if pos <= 0:
            return 0
        tag, i1, _i2, j1, j2 = self._covering(pos - 1)
        if tag == "equal":
            return j1 + (pos - i1)
        if tag == "replace":
            return j2
        return j1

    def map_span(self, span: Span) -> Span | None:
        """Return the mapped span, or ``None`` if it collapsed to nothing."""
        start = self.map_start(span.start)
        end = self.map_end(span.end)
        if end <= start:
            return None
        return Span(start, end)

    def remap(
        self, spans: list[StyleApplication]
    ) -> tuple[list[StyleApplication], list[StyleApplication]]:
        """Map every application; return ``(kept, dropped)``."""
        if self._identity:
            return list(spans), []
        kept: list[StyleApplication] = []
        dropped: list[StyleApplication] = []
        for app in spans:
            mapped = self.map_span(app.span)
            if mapped is None:
                dropped.append(app)
            else:
                kept.append(StyleApplication(mapped, app.role_id))
        return kept, dropped
