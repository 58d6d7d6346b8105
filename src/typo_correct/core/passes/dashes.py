"""Dash passes: em dash normalisation, lone hyphens, incise spacing."""

from __future__ import annotations

import re

from typo_correct.core.models import PassCategory, PassOutput
from typo_correct.core.pass_base import CorrectionPass, registry
from typo_correct.core.profile import LanguageProfile
from typo_correct.core.text_utils import EM_DASH, WS

_ISOLATED_HYPHEN_RE = re.compile(rf"(?:(?<={WS})|^)-{{1,2}}(?={WS})", re.MULTILINE)
_LETTER_RE = re.compile(r"[^\W\d_]")
_NO_SPACE_AFTER = ",.;:!?)]}\u00bb\u201d\u2026"


@registry.register
class NormalizeDashesPass(CorrectionPass):
    pass_id = "dashes.normalize"
    name = "Replace em dashes with the incise dash"
    rank = 100
    category = PassCategory.DASHES

    def applies_to(self, profile: LanguageProfile) -> bool:
        return profile.dashes.replace_em_with_en and profile.dashes.incise != EM_DASH

    def apply(self, text: str, profile: LanguageProfile) -> PassOutput:
        return PassOutput(text.replace(EM_DASH, profile.dashes.incise))


@registry.register
class IsolatedHyphensPass(CorrectionPass):
    pass_id = "dashes.isolated_hyphens"
    name = "Turn hyphens standing alone into dashes"
    rank = 110
    category = PassCategory.DASHES

    def apply(self, text: str, profile: LanguageProfile) -> PassOutput:
        return PassOutput(_ISOLATED_HYPHEN_RE.sub(profile.dashes.incise, text))


@registry.register
class InciseDashesPass(CorrectionPass):
    """Space incise dashes the way the profile wants.

    Per line, every dash touching whitespace is an incise dash, except one
    standing between two digits. A dash opening the line is a dialogue dash.
    The others pair up in reading order: the first of a pair opens (normal
    space outside, incise space inside), the second closes. An unpaired last
    dash opens if words follow it and closes otherwise. An empty incise
    space closes the dash up on both sides.
    """

    pass_id = "dashes.incises"
    name = "Incise dash spacing"
    rank = 120
    category = PassCategory.DASHES

    def apply(self, text: str, profile: LanguageProfile) -> PassOutput:
        dash = profile.dashes.incise
        if dash not in text:
            return PassOutput(text)
        space = profile.dashes.incise_space
        dash_re = re.compile(rf"(?P<pre>{WS}*){re.escape(dash)}(?P<post>{WS}*)")
        lines = text.split("\n")
        return PassOutput("\n".join(self._format_line(ln, dash, space, dash_re) for ln in lines))

    @staticmethod
    def _format_line(line: str, dash: str, space: str, dash_re: re.Pattern[str]) -> str:
        candidates: list[re.Match[str]] = []
        dialogue: re.Match[str] | None = None
        for m in dash_re.finditer(line):
            left = line[m.start() - 1] if m.start() else ""
            right = line[m.end()] if m.end() < len(line) else ""
            if m.start() == 0 and not m.group("pre"):
                dialogue = m
                continue
            if not (m.group("pre") or m.group("post")):
                continue
            if left.isdigit() and right.isdigit():
                continue
            candidates.append(m)

        if dialogue is None and not candidates:
            return line

        replacements: dict[int, tuple[int, str]] = {}
        if dialogue is not None:
            replacements[dialogue.start()] = (dialogue.end(), dash + (space or " "))

        for idx, m in enumerate(candidates):
            paired = idx + 1 < len(candidates) or idx % 2 == 1
            if paired:
                opening = idx % 2 == 0
            else:
                opening = bool(_LETTER_RE.search(line[m.end():]))
            right = line[m.end()] if m.end() < len(line) else ""
            if opening:
                outer = "" if not space or m.start() == 0 else " "
                formatted = outer + dash + space
            else:
                outer = "" if not space or not right or right in _NO_SPACE_AFTER else " "
                formatted = space + dash + outer
            replacements[m.start()] = (m.end(), formatted)

        out: list[str] = []
        pos = 0
        for start in sorted(replacements):
            end, formatted = replacements[start]
            out.append(line[pos:start])
            out.append(formatted)
            pos = end
        out.append(line[pos:])
        return "".join(out)
