"""Punctuation glyphs."""

from __future__ import annotations

import re

from typo_correct.core.models import PassCategory, PassOutput
from typo_correct.core.pass_base import CorrectionPass, registry
from typo_correct.core.profile import LanguageProfile
from typo_correct.core.text_utils import ELLIPSIS

_THREE_DOTS_RE = re.compile(r"(?<!\.)\.\.\.(?!\.)")


@registry.register
class EllipsisPass(CorrectionPass):
    pass_id = "punctuation.ellipsis"
    name = "Three dots to ellipsis"
    rank = 140
    category = PassCategory.PUNCTUATION

    def apply(self, text: str, profile: LanguageProfile) -> PassOutput:
        return PassOutput(_THREE_DOTS_RE.sub(ELLIPSIS, text))
