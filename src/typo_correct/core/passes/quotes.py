"""Typographic quotes.

Straight double quotes become the profile's quote pair for the current
nesting level. A quote opens at line start or after whitespace or an opening
bracket, and closes when something is open and it is followed by whitespace,
punctuation or the end of the line. A stray closing quote is left alone.
"""

from __future__ import annotations

import re

from typo_correct.core.models import ConvergenceMode, PassCategory, PassOutput
from typo_correct.core.pass_base import CorrectionPass, registry
from typo_correct.core.profile import LanguageProfile
from typo_correct.core.text_utils import WS

_STRAIGHT = '"'
_WS_CHAR = re.compile(WS)
_OPEN_AFTER = "([{\u2014\u2013-/"
_CLOSE_BEFORE = ".,;:!?)]}\u2026"


@registry.register
class TypographicQuotesPass(CorrectionPass):
    pass_id = "quotes.typographic"
    name = "Straight quotes to typographic quotes"
    rank = 10
    category = PassCategory.QUOTES
    mode = ConvergenceMode.SINGLE

    def applies_to(self, profile: LanguageProfile) -> bool:
        return bool(profile.quotes.levels)

    def apply(self, text: str, profile: LanguageProfile) -> PassOutput:
        if _STRAIGHT not in text:
            return PassOutput(text)
        return PassOutput("\n".join(self._convert_line(line, profile) for line in text.split("\n")))

    @staticmethod
    def _convert_line(line: str, profile: LanguageProfile) -> str:
        levels = profile.quotes.levels
        inner = profile.quotes.space_inside
        out: list[str] = []
        depth = 0
        skip_ws = False
        for i, ch in enumerate(line):
            if ch != _STRAIGHT:
                if skip_ws and _WS_CHAR.match(ch):
                    continue
                skip_ws = False
                out.append(ch)
                continue

            prev = line[i - 1] if i else ""
            nxt = line[i + 1] if i + 1 < len(line) else ""
            opens = not prev or bool(_WS_CHAR.match(prev)) or prev in _OPEN_AFTER
            closes = not nxt or bool(_WS_CHAR.match(nxt)) or nxt in _CLOSE_BEFORE

            if depth > 0 and (closes or not opens):
                depth -= 1
                if inner:
                    while out and _WS_CHAR.match(out[-1]):
                        out.pop()
                    out.append(inner)
                out.append(levels[depth % len(levels)][1])
                skip_ws = False
            elif opens:
                out.append(levels[depth % len(levels)][0])
                depth += 1
                if inner:
                    out.append(inner)
                    skip_ws = True
            else:
                out.append(ch)
        return "".join(out)
