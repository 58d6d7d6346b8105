"""Ordinal suffixes.

Detects:
- Misspelt suffixes after a number or Roman numeral (``1ere`` -> ``1re``,
  ``IIeme`` -> ``IIe``), from the profile's correction map
- Arabic ordinals (``1er``, ``2e``, ``3\u00ba``)
- Roman ordinals: ``Ier`` / ``Ire``, and a numeral followed by an ordinal
  suffix when a precursor word comes before it or a trigger word after it
  (``le IIe Empire``, ``sous la Ve``)
- Title abbreviations written with a raised ending (``Mme``, ``Mgr``)

Suffixes get a ``superscript-ordinal`` span, Roman numerals a ``capitals``
span. A normal space between an ordinal and a capitalised word becomes a
no-break space. Numerals followed by a century word are left to the
century pass.
"""

from __future__ import annotations

import re

from typo_correct.core.models import (
    ROLE_CAPITALS,
    ROLE_SUPERSCRIPT_ORDINAL,
    PassCategory,
    PassOutput,
    StyleApplication,
)
from typo_correct.core.pass_base import CorrectionPass, registry
from typo_correct.core.profile import LanguageProfile
from typo_correct.core.text_utils import NBSP, ROMAN_RE, WS, words_pattern

_ROMAN_FULL_RE = re.compile(rf"{ROMAN_RE}\Z")
# Ordinal numerals use I, V and X only: "M\u00e8re" is not M + "\u00e8re".
_ROMAN_CHARS = "IVX"
_CAPITALISED = r"[A-Z\u00c0-\u00de]"

# How far back / ahead the context words are looked for.
_WINDOW = 48


# ---------------------------------------------------------------------------
# Roman numeral helpers (shared with the century pass)
# ---------------------------------------------------------------------------


def is_roman(numeral: str) -> bool:
    return bool(numeral) and bool(_ROMAN_FULL_RE.match(numeral.upper()))


def is_ambiguous(word: str, profile: LanguageProfile) -> bool:
    """True for words that only look like numeral + suffix (``Ce``, ``Le``)."""
    ambiguous = profile.words.ambiguous
    if word in ambiguous:
        return True
    if word.islower():
        return word in {w.casefold() for w in ambiguous}
    return False


def followed_by(text: str, end: int, words: tuple[str, ...]) -> bool:
    pattern = words_pattern(words)
    if not pattern:
        return False
    window = text[end : end + _WINDOW]
    return re.match(rf"{WS}+(?:{pattern})(?![\w])", window, re.IGNORECASE) is not None


def preceded_by(text: str, start: int, words: tuple[str, ...]) -> bool:
    pattern = words_pattern(words)
    if not pattern:
        return False
    window = text[max(0, start - _WINDOW) : start]
    return re.search(rf"(?<![\w])(?:{pattern}){WS}+\Z", window, re.IGNORECASE) is not None


def followed_by_century_word(text: str, end: int, profile: LanguageProfile) -> bool:
    return profile.centuries.enabled and followed_by(text, end, profile.centuries.words)


def is_roman_ordinal(text: str, start: int, end: int, profile: LanguageProfile) -> bool:
    words = profile.words
    return followed_by(text, end, words.ordinal_triggers) or preceded_by(
        text, start, words.ordinal_precursors
    )


def _alternation(items) -> str:
    return "|".join(re.escape(s) for s in sorted(set(items), key=len, reverse=True) if s)


# ---------------------------------------------------------------------------
# Pass
# ---------------------------------------------------------------------------


@registry.register
class OrdinalsPass(CorrectionPass):
    pass_id = "ordinals.format"
    name = "Ordinal suffixes"
    rank = 300
    category = PassCategory.ORDINALS

    def applies_to(self, profile: LanguageProfile) -> bool:
        return profile.ordinals.enabled

    def apply(self, text: str, profile: LanguageProfile) -> PassOutput:
        text = self._correct(text, profile)
        text = self._glue(text, profile)
        spans = self._arabic_spans(text, profile)
        spans.extend(self._roman_spans(text, profile))
        spans.extend(self._title_spans(text, profile))
        return PassOutput(text, spans)

    # ------------------------------------------------------------------
    # Text changes
    # ------------------------------------------------------------------

    @staticmethod
    def _correct(text: str, profile: LanguageProfile) -> str:
        corrections = profile.ordinals.corrections
        alternatives = _alternation(corrections)
        if not alternatives:
            return text
        pattern = re.compile(
            rf"(?<![\w])(?P<num>\d+|[{_ROMAN_CHARS}]+)(?P<suf>{alternatives})(?![\w])"
        )

        def _sub(m: re.Match[str]) -> str:
            num = m.group("num")
            if not num.isdigit() and (not is_roman(num) or is_ambiguous(m.group(0), profile)):
                return m.group(0)
            return num + corrections[m.group("suf")]

        return pattern.sub(_sub, text)

    @staticmethod
    def _glue(text: str, profile: LanguageProfile) -> str:
        suffixes = _alternation(profile.ordinals.suffixes)
        if not suffixes:
            return text
        pattern = re.compile(
            rf"(?<![\w])(?P<ord>(?P<num>\d+|[{_ROMAN_CHARS}]+)(?:{suffixes})) (?={_CAPITALISED})"
        )

        def _sub(m: re.Match[str]) -> str:
            num = m.group("num")
            if not num.isdigit():
                if not is_roman(num) or is_ambiguous(m.group("ord"), profile):
                    return m.group(0)
                if not (num == "I" or is_roman_ordinal(text, m.start(), m.end("ord"), profile)):
                    return m.group(0)
            return m.group("ord") + NBSP

        return pattern.sub(_sub, text)

    # ------------------------------------------------------------------
    # Spans
    # ------------------------------------------------------------------

    @staticmethod
    def _arabic_spans(text: str, profile: LanguageProfile) -> list[StyleApplication]:
        suffixes = _alternation(profile.ordinals.suffixes)
        if not suffixes:
            return []
        pattern = re.compile(rf"(?<![\w.,])\d+(?P<suf>{suffixes})(?![\w])")
        return [
            StyleApplication.at(m.start("suf"), m.end("suf"), ROLE_SUPERSCRIPT_ORDINAL)
            for m in pattern.finditer(text)
        ]

    @staticmethod
    def _roman_spans(text: str, profile: LanguageProfile) -> list[StyleApplication]:
        suffixes = _alternation(profile.ordinals.suffixes)
        if not suffixes:
            return []
        pattern = re.compile(rf"(?<![\w])(?P<num>[{_ROMAN_CHARS}]+)(?P<suf>{suffixes})(?![\w])")
        spans: list[StyleApplication] = []
        for m in pattern.finditer(text):
            num = m.group("num")
            if not is_roman(num) or is_ambiguous(m.group(0), profile):
                continue
            if followed_by_century_word(text, m.end(), profile):
                continue
            first = num == "I" and m.group("suf") in ("er", "re")
            if not (first or is_roman_ordinal(text, m.start(), m.end(), profile)):
                continue
            spans.append(StyleApplication.at(m.start("num"), m.end("num"), ROLE_CAPITALS))
            spans.append(
                StyleApplication.at(m.start("suf"), m.end("suf"), ROLE_SUPERSCRIPT_ORDINAL)
            )
        return spans

    @staticmethod
    def _title_spans(text: str, profile: LanguageProfile) -> list[StyleApplication]:
        titles = profile.ordinals.title_abbreviations
        alternatives = _alternation(titles)
        if not alternatives:
            return []
        pattern = re.compile(rf"(?<![\w])(?:{alternatives})(?![\w.])")
        spans: list[StyleApplication] = []
        for m in pattern.finditer(text):
            raised = titles[m.group(0)]
            start = m.end() - len(raised)
            spans.append(StyleApplication.at(start, m.end(), ROLE_SUPERSCRIPT_ORDINAL))
        return spans
