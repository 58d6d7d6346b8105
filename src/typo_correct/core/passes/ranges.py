"""Value ranges: a hyphen between two values becomes the range dash.

Handled:
- Numbers: ``12-15``, ``1914-1918``, ``p. 10-20``. A hyphen inside a longer
  chain (``2024-01-15``, ``06-12-34``) is a date or code and stays.
- Hours: ``10h-12h``, ``10h30-12h45``.
- Letter + numeral labels: ``A1-A9``.
- Single capital letters: ``A-F`` only after a word that introduces a range
  (``lignes A-F``) and only in alphabetical order. A bare ``A-B`` is more
  likely an acronym or a code and stays.
"""

from __future__ import annotations

import re

from typo_correct.core.models import PassCategory, PassOutput
from typo_correct.core.pass_base import CorrectionPass, registry
from typo_correct.core.profile import LanguageProfile
from typo_correct.core.text_utils import WS, words_pattern

_NUMBER_RANGE_RE = re.compile(r"(?<![\d\-/.,:])(\d{1,4})-(\d{1,4})(?![\d\-/]|[.,]\d)")
_HOUR = r"\d{1,2}h(?:\d{2})?"
_HOUR_RANGE_RE = re.compile(rf"(?<![\d:])({_HOUR})-({_HOUR})(?!\w)")
_LABEL_RANGE_RE = re.compile(r"(?<![\w\-])([A-Z]\d{1,4})-([A-Z]\d{1,4})(?![\w\-])")


@registry.register
class ValueRangesPass(CorrectionPass):
    pass_id = "dashes.value_ranges"
    name = "Range dash between values"
    rank = 130
    category = PassCategory.DASHES

    def apply(self, text: str, profile: LanguageProfile) -> PassOutput:
        if "-" not in text:
            return PassOutput(text)
        dash = profile.dashes.range_dash
        joined = rf"\1{dash}\2"
        text = _HOUR_RANGE_RE.sub(joined, text)
        text = _NUMBER_RANGE_RE.sub(joined, text)
        text = _LABEL_RANGE_RE.sub(joined, text)
        text = self._letter_ranges(text, profile, dash)
        return PassOutput(text)

    @staticmethod
    def _letter_ranges(text: str, profile: LanguageProfile, dash: str) -> str:
        introducers = words_pattern(profile.words.range_introducers)
        if not introducers:
            return text
        pattern = re.compile(
            rf"(?<!\w)(?P<intro>(?i:{introducers}){WS}+)"
            r"(?P<a>[A-Z])-(?P<b>[A-Z])(?![\w\-])"
        )

        def _sub(m: re.Match[str]) -> str:
            if m.group("a") >= m.group("b"):
                return m.group(0)
            return f"{m.group('intro')}{m.group('a')}{dash}{m.group('b')}"

        return pattern.sub(_sub, text)
