"""Spacing passes.

Covers:
- Whitespace before full stops, commas and note references
- Tabs
- Runs of spaces
- Profile spacing before and after punctuation marks
- Blank lines
- Leading / trailing whitespace of paragraphs
"""

from __future__ import annotations

import re
from typing import Mapping

from typo_correct.core.models import ConvergenceMode, PassCategory, PassOutput
from typo_correct.core.pass_base import CorrectionPass, registry
from typo_correct.core.profile import LanguageProfile
from typo_correct.core.text_utils import (
    NO_BREAK_SPACES,
    NOTE_REF,
    SPACE_RUN_RE,
    WS,
)

_BEFORE_STOP_RE = re.compile(rf"(?<=[^\s]){WS}+(?=[.,](?!\d)|{NOTE_REF})")
_TAB_RE = re.compile(rf"(?<!{NOTE_REF})[ ]*\t[ \t]*")
_DOUBLE_RETURN_RE = re.compile(rf"(\r?\n){WS}*\r?\n")
_LINE_START_RE = re.compile(rf"^{WS}+", re.MULTILINE)
_LINE_END_RE = re.compile(rf"{WS}+(?=\r?$)", re.MULTILINE)

# Marks that stack without a space between them ("?!").
_STACKING = frozenset("?!")


@registry.register
class SpaceBeforeStopPass(CorrectionPass):
    pass_id = "spacing.before_punctuation"
    name = "Remove spaces before full stops, commas and note references"
    rank = 20
    category = PassCategory.SPACING

    def apply(self, text: str, profile: LanguageProfile) -> PassOutput:
        return PassOutput(_BEFORE_STOP_RE.sub("", text))


@registry.register
class TabsPass(CorrectionPass):
    pass_id = "spacing.tabs"
    name = "Replace tabs with spaces (except after note references)"
    rank = 25
    category = PassCategory.SPACING

    def apply(self, text: str, profile: LanguageProfile) -> PassOutput:
        return PassOutput(_TAB_RE.sub(" ", text))


@registry.register
class MultipleSpacesPass(CorrectionPass):
    pass_id = "spacing.multiple"
    name = "Collapse runs of spaces"
    rank = 30
    category = PassCategory.SPACING

    def apply(self, text: str, profile: LanguageProfile) -> PassOutput:
        return PassOutput(SPACE_RUN_RE.sub(_collapse_run, text))


def _collapse_run(m: re.Match[str]) -> str:
    # Keep the run's first no-break space so a deliberate glue survives.
    for ch in m.group(0):
        if ch in NO_BREAK_SPACES:
            return ch
    return " "


@registry.register
class TypographicSpacingPass(CorrectionPass):
    """Put the profile's space before / after each configured mark.

    A mark mapped to ``""`` loses any adjacent space; a mark absent from the
    profile is not touched. Nothing is inserted at the start of a line,
    between two digits (``10:30``) or between stacking marks (``?!``).
    """

    pass_id = "spacing.typographic"
    name = "Typographic spacing around punctuation"
    rank = 40
    category = PassCategory.SPACING

    def applies_to(self, profile: LanguageProfile) -> bool:
        rules = profile.punctuation
        return bool(rules.space_before or rules.space_after)

    def apply(self, text: str, profile: LanguageProfile) -> PassOutput:
        rules = profile.punctuation
        if rules.space_before:
            text = self._fix_before(text, rules.space_before)
        if rules.space_after:
            text = self._fix_after(text, rules.space_after)
        return PassOutput(text)

    @staticmethod
    def _fix_before(text: str, spaces: Mapping[str, str]) -> str:
        marks = "|".join(re.escape(m) for m in sorted(spaces, key=len, reverse=True))
        pattern = re.compile(rf"(?P<ws>{WS}*)(?P<mark>{marks})")

        def _sub(m: re.Match[str]) -> str:
            start = m.start()
            mark = m.group("mark")
            if start == 0 or text[start - 1] in "\r\n":
                return m.group(0)
            prev = text[start - 1]
            nxt = text[m.end()] if m.end() < len(text) else ""
            if prev.isdigit() and nxt.isdigit():
                return m.group(0)
            if not m.group("ws") and mark in _STACKING and prev in _STACKING:
                return m.group(0)
            return spaces[mark] + mark

        return pattern.sub(_sub, text)

    @staticmethod
    def _fix_after(text: str, spaces: Mapping[str, str]) -> str:
        marks = "|".join(re.escape(m) for m in sorted(spaces, key=len, reverse=True))
        pattern = re.compile(rf"(?P<mark>{marks})(?P<ws>{WS}*)")

        def _sub(m: re.Match[str]) -> str:
            mark = m.group("mark")
            end = m.end()
            nxt = text[end] if end < len(text) else ""
            prev = text[m.start() - 1] if m.start() else ""
            if not nxt or nxt in "\r\n":
                return m.group(0)
            if prev.isdigit() and nxt.isdigit() and not m.group("ws"):
                return m.group(0)
            if not m.group("ws") and not (nxt.isalnum() or nxt in "([\"'"):
                return m.group(0)
            return mark + spaces[mark]

        return pattern.sub(_sub, text)


@registry.register
class DoubleReturnsPass(CorrectionPass):
    pass_id = "spacing.double_returns"
    name = "Remove empty paragraphs"
    rank = 50
    category = PassCategory.SPACING
    mode = ConvergenceMode.ITERATE
    idempotent = False

    def apply(self, text: str, profile: LanguageProfile) -> PassOutput:
        # Non-overlapping matches: each application halves a run of blank lines.
        return PassOutput(_DOUBLE_RETURN_RE.sub(r"\1", text))


@registry.register
class ParagraphStartPass(CorrectionPass):
    pass_id = "spacing.paragraph_start"
    name = "Remove spaces at the start of paragraphs"
    rank = 60
    category = PassCategory.SPACING

    def apply(self, text: str, profile: LanguageProfile) -> PassOutput:
        return PassOutput(_LINE_START_RE.sub("", text))


@registry.register
class ParagraphEndPass(CorrectionPass):
    pass_id = "spacing.paragraph_end"
    name = "Remove spaces at the end of paragraphs"
    rank = 70
    category = PassCategory.SPACING

    def apply(self, text: str, profile: LanguageProfile) -> PassOutput:
        return PassOutput(_LINE_END_RE.sub("", text))
