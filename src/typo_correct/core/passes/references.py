"""Reference passes.

``references.format`` glues numerals to the word they belong to and marks
them for styling:
- ``chapitre iv`` -> ``chapitre IV`` (work parts, any case)
- ``Louis XIV`` -> ``Louis XIV`` (titles and regnal numbers)
- ``Francois 1er`` -> ``Francois Ier``
- fixed Latin phrases (``a priori``, ``op. cit.``) get an italic span

``references.spacing`` puts a no-break space after reference abbreviations
(``p. 12``, ``n\u00b0 5``) and between a number and its unit (``12 km``).
"""

from __future__ import annotations

import re

from typo_correct.core.models import (
    ROLE_ITALIC,
    ROLE_SUPERSCRIPT_ORDINAL,
    PassCategory,
    PassOutput,
    StyleApplication,
)
from typo_correct.core.pass_base import CorrectionPass, registry
from typo_correct.core.passes.ordinals import is_roman
from typo_correct.core.profile import LanguageProfile
from typo_correct.core.text_utils import NBSP, ROMAN_RE, WS, words_pattern

_WORK_PART_NUMERAL = r"(?P<num>[IVXLCDM]+|[ivx]+)"
_WORD_END = r"(?![\w'\u2019])"


@registry.register
class ReferencesPass(CorrectionPass):
    pass_id = "references.format"
    name = "Work parts, titles and regnal numbers"
    rank = 320
    category = PassCategory.REFERENCES

    def applies_to(self, profile: LanguageProfile) -> bool:
        return profile.references.enabled

    def apply(self, text: str, profile: LanguageProfile) -> PassOutput:
        role = profile.references.numeral_role
        words = profile.words

        text = self._work_parts(text, words.work_parts)
        text = self._titles(text, words.titles)
        text = self._first_names(text, words.first_names)

        spans: list[StyleApplication] = []
        spans.extend(self._numeral_spans(text, words.work_parts, role, re.IGNORECASE))
        spans.extend(self._numeral_spans(text, words.titles, role, 0))
        spans.extend(self._first_name_spans(text, words.first_names, role))
        spans.extend(self._italic_spans(text, profile.literals.italic_phrases))
        return PassOutput(text, spans)

    # ------------------------------------------------------------------
    # Text changes
    # ------------------------------------------------------------------

    @staticmethod
    def _work_parts(text: str, parts: tuple[str, ...]) -> str:
        alternatives = words_pattern(parts)
        if not alternatives:
            return text
        pattern = re.compile(
            rf"(?<![\w])(?P<word>(?i:{alternatives})){WS}+{_WORK_PART_NUMERAL}{_WORD_END}"
        )

        def _sub(m: re.Match[str]) -> str:
            if not is_roman(m.group("num")):
                return m.group(0)
            return m.group("word") + NBSP + m.group("num").upper()

        return pattern.sub(_sub, text)

    @staticmethod
    def _titles(text: str, titles: tuple[str, ...]) -> str:
        alternatives = words_pattern(titles)
        if not alternatives:
            return text
        pattern = re.compile(
            rf"(?<![\w])(?P<word>{alternatives}){WS}+(?P<num>{ROMAN_RE}){_WORD_END}"
        )
        return pattern.sub(lambda m: m.group("word") + NBSP + m.group("num"), text)

    @staticmethod
    def _first_names(text: str, names: tuple[str, ...]) -> str:
        alternatives = words_pattern(names)
        if not alternatives:
            return text
        pattern = re.compile(rf"(?<![\w])(?P<word>{alternatives}){WS}+[Ii1](?P<suf>er|re)(?![\w])")
        return pattern.sub(lambda m: m.group("word") + NBSP + "I" + m.group("suf"), text)

    # ------------------------------------------------------------------
    # Spans
    # ------------------------------------------------------------------

    @staticmethod
    def _numeral_spans(
        text: str, words: tuple[str, ...], role: str, flags: int
    ) -> list[StyleApplication]:
        alternatives = words_pattern(words)
        if not alternatives:
            return []
        pattern = re.compile(
            rf"(?<![\w])(?:{alternatives}){NBSP}(?P<num>{ROMAN_RE}){_WORD_END}", flags
        )
        spans = []
        for m in pattern.finditer(text):
            # IGNORECASE also lets lowercase numerals through the pattern.
            if m.group("num").isupper():
                spans.append(StyleApplication.at(m.start("num"), m.end("num"), role))
        return spans

    @staticmethod
    def _first_name_spans(text: str, names: tuple[str, ...], role: str) -> list[StyleApplication]:
        alternatives = words_pattern(names)
        if not alternatives:
            return []
        pattern = re.compile(rf"(?<![\w])(?:{alternatives}){NBSP}(?P<num>I)(?P<suf>er|re)(?![\w])")
        spans = []
        for m in pattern.finditer(text):
            spans.append(StyleApplication.at(m.start("num"), m.end("num"), role))
            spans.append(
                StyleApplication.at(m.start("suf"), m.end("suf"), ROLE_SUPERSCRIPT_ORDINAL)
            )
        return spans

    @staticmethod
    def _italic_spans(text: str, phrases: tuple[str, ...]) -> list[StyleApplication]:
        alternatives = words_pattern(phrases)
        if not alternatives:
            return []
        pattern = re.compile(rf"(?<![\w])(?:{alternatives})(?![\w])")
        return [
            StyleApplication.at(m.start(), m.end(), ROLE_ITALIC) for m in pattern.finditer(text)
        ]


@registry.register
class ReferenceSpacingPass(CorrectionPass):
    pass_id = "references.spacing"
    name = "No-break spaces after abbreviations and before units"
    rank = 330
    category = PassCategory.REFERENCES

    def applies_to(self, profile: LanguageProfile) -> bool:
        return profile.references.enabled

    def apply(self, text: str, profile: LanguageProfile) -> PassOutput:
        words = profile.words
        abbreviations = words_pattern(words.reference_abbreviations)
        if abbreviations:
            pattern = re.compile(
                rf"(?<![\w])(?P<abbr>{abbreviations})(?P<ws>{WS}*)(?=\d|{ROMAN_RE}(?![\w]))"
            )
            text = pattern.sub(_glue_abbreviation, text)
        units = words_pattern(words.units)
        if units:
            pattern = re.compile(rf"(?<=\d) (?={units}{_WORD_END})")
            text = pattern.sub(NBSP, text)
        return PassOutput(text)


def _glue_abbreviation(m: re.Match[str]) -> str:
    abbr = m.group("abbr")
    if not m.group("ws") and abbr[-1].isalpha():
        # "p12" is not "p. 12"; only glue what was already separated.
        return m.group(0)
    return abbr + NBSP
