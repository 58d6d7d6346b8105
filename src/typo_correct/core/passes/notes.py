"""Note reference passes.

Document hosts put an object replacement character where a footnote anchor
sits. The anchor belongs right after the word it annotates, before any
punctuation or closing quote.
"""

from __future__ import annotations

import re

from typo_correct.core.models import (
    ROLE_NOTE_MARKER,
    PassCategory,
    PassOutput,
    StyleApplication,
)
from typo_correct.core.pass_base import CorrectionPass, registry
from typo_correct.core.profile import LanguageProfile
from typo_correct.core.text_utils import NOTE_REF, WS

_MOVABLE = rf"(?:[,;:.?!\u2026\u00bb\u201d]|{WS})"
_MISPLACED_RE = re.compile(rf"(?<=[^\s])(?P<punct>{_MOVABLE}+)(?P<notes>{NOTE_REF}+)")
_NOTE_RE = re.compile(NOTE_REF)


@registry.register
class MoveNotesPass(CorrectionPass):
    pass_id = "notes.move"
    name = "Move note references before punctuation"
    rank = 15
    category = PassCategory.NOTES

    def apply(self, text: str, profile: LanguageProfile) -> PassOutput:
        if NOTE_REF not in text:
            return PassOutput(text)
        return PassOutput(_MISPLACED_RE.sub(r"\g<notes>\g<punct>", text))


@registry.register
class NoteStylePass(CorrectionPass):
    pass_id = "notes.style"
    name = "Mark note references for the note style"
    rank = 95
    category = PassCategory.NOTES

    def apply(self, text: str, profile: LanguageProfile) -> PassOutput:
        spans = [
            StyleApplication.at(m.start(), m.end(), ROLE_NOTE_MARKER)
            for m in _NOTE_RE.finditer(text)
        ]
        return PassOutput(text, spans)
