"""Typographic apostrophe."""

from __future__ import annotations

import re

from typo_correct.core.models import PassCategory, PassOutput
from typo_correct.core.pass_base import CorrectionPass, registry
from typo_correct.core.profile import LanguageProfile

# A straight quote between two digits is a separator or a minutes mark.
_STRAIGHT_RE = re.compile(r"(?<!\d)'|'(?!\d)")
_ENTITY_RE = re.compile(r"&#39;|&apos;|&#8217;")


@registry.register
class ApostrophesPass(CorrectionPass):
    pass_id = "apostrophes.typographic"
    name = "Straight apostrophes to typographic apostrophes"
    rank = 150
    category = PassCategory.APOSTROPHES

    def applies_to(self, profile: LanguageProfile) -> bool:
        return profile.quotes.apostrophe != "'"

    def apply(self, text: str, profile: LanguageProfile) -> PassOutput:
        apostrophe = profile.quotes.apostrophe
        text = _ENTITY_RE.sub(apostrophe, text)
        return PassOutput(_STRAIGHT_RE.sub(apostrophe, text))
