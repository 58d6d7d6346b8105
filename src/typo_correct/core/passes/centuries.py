"""Centuries written as Roman numeral + ordinal suffix (``XIXe siecle``)."""

from __future__ import annotations

import re

from typo_correct.core.models import (
    ROLE_CENTURY_NUMERAL,
    ROLE_SUPERSCRIPT_ORDINAL,
    PassCategory,
    PassOutput,
    StyleApplication,
)
from typo_correct.core.pass_base import CorrectionPass, registry
from typo_correct.core.passes.ordinals import (
    followed_by_century_word,
    is_ambiguous,
    is_roman,
    is_roman_ordinal,
)
from typo_correct.core.profile import CenturyRules, LanguageProfile
from typo_correct.core.text_utils import WS_CLASS

_END_CONTEXT = re.compile(rf"[{WS_CLASS}\n,;:.!?)\]\u00bb\u201d\u2026]|\Z")


@registry.register
class CenturiesPass(CorrectionPass):
    """Normalise the century suffix and mark numeral and suffix for styling.

    An uppercase numeral counts as a century when a century word follows it,
    or when it ends a phrase and nothing marks it as an ordinal. A lowercase
    numeral (``xixe siecle``) needs the century word.
    """

    pass_id = "centuries.format"
    name = "Centuries"
    rank = 310
    category = PassCategory.CENTURIES

    def applies_to(self, profile: LanguageProfile) -> bool:
        return profile.centuries.enabled and bool(profile.centuries.suffix)

    def apply(self, text: str, profile: LanguageProfile) -> PassOutput:
        rules = profile.centuries
        variants = {rules.suffix, rules.first_suffix, *rules.suffix_variants} - {""}
        suffixes = "|".join(re.escape(s) for s in sorted(variants, key=len, reverse=True))
        pattern = re.compile(rf"(?<![\w])(?P<num>[IVXLCDM]+|[ivxlc]+)(?P<suf>{suffixes})(?![\w])")

        out: list[str] = []
        spans: list[StyleApplication] = []
        pos = 0
        shift = 0
        for m in pattern.finditer(text):
            if not self._is_century(text, m, profile):
                continue
            numeral = _case(m.group("num"), rules)
            suffix = _suffix(numeral, rules)
            out.append(text[pos : m.start()])
            start = m.start() + shift
            spans.append(StyleApplication.at(start, start + len(numeral), ROLE_CENTURY_NUMERAL))
            sup = start + len(numeral)
            spans.append(StyleApplication.at(sup, sup + len(suffix), ROLE_SUPERSCRIPT_ORDINAL))
            out.append(numeral + suffix)
            shift += len(numeral) + len(suffix) - (m.end() - m.start())
            pos = m.end()
        out.append(text[pos:])
        return PassOutput("".join(out), spans)

    @staticmethod
    def _is_century(text: str, m: re.Match[str], profile: LanguageProfile) -> bool:
        numeral = m.group("num")
        if not is_roman(numeral) or is_ambiguous(m.group(0), profile):
            return False
        if followed_by_century_word(text, m.end(), profile):
            return True
        if numeral.islower() or numeral == "I":
            # "Ier" alone is a regnal ordinal (Francois Ier).
            return False
        if is_roman_ordinal(text, m.start(), m.end(), profile):
            return False
        return _END_CONTEXT.match(text, m.end()) is not None


def _case(numeral: str, rules: CenturyRules) -> str:
    if rules.case_style == "lowercase":
        return numeral.lower()
    if rules.case_style == "uppercase":
        return numeral.upper()
    return numeral


def _suffix(numeral: str, rules: CenturyRules) -> str:
    if numeral.upper() == "I" and rules.first_suffix:
        return rules.first_suffix
    return rules.suffix
