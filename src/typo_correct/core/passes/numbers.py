"""Number formatting passes.

``numbers.separators`` rewrites an existing thousands grouping that uses
another separator (``1 234``, ``1'234``) to the profile's separator.
``numbers.format`` switches the decimal point to the profile's decimal
separator and groups long integers by three, skipping values inside the
profile's year range. Digits that must not be touched (fractional parts,
ISO dates, clock times) are hidden behind marker tokens while grouping.
"""

from __future__ import annotations

import re

from typo_correct.core.markers import MarkerCodec
from typo_correct.core.models import ConvergenceMode, PassCategory, PassOutput
from typo_correct.core.pass_base import CorrectionPass, registry
from typo_correct.core.profile import LanguageProfile, NumberRules
from typo_correct.core.text_utils import NBSP, NNBSP

_DECIMAL_POINT_RE = re.compile(r"(?<![\w.,])(\d+)\.(\d+)(?!\d|\.\d)")
_FRACTION_RE = re.compile(r"(?<=\d[.,])\d+")
_ISO_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
_CLOCK_RE = re.compile(r"\d{1,2}[:h]\d{2}")

_PROTECTED = (_ISO_DATE_RE, _CLOCK_RE, _FRACTION_RE)


@registry.register
class NormalizeSeparatorsPass(CorrectionPass):
    pass_id = "numbers.separators"
    name = "Normalise thousands separators"
    rank = 200
    category = PassCategory.NUMBERS
    mode = ConvergenceMode.ITERATE
    idempotent = False

    def applies_to(self, profile: LanguageProfile) -> bool:
        return bool(_foreign_separators(profile.numbers))

    def apply(self, text: str, profile: LanguageProfile) -> PassOutput:
        numbers = profile.numbers
        seps = "|".join(re.escape(s) for s in _foreign_separators(numbers))
        # Each application fixes every other group; the loop guard finishes the chain.
        pattern = re.compile(rf"(?<!\d)(\d{{1,3}})(?:{seps})(\d{{3}})(?!\d)")
        return PassOutput(pattern.sub(rf"\1{numbers.thousands_separator}\2", text))


def _foreign_separators(numbers: NumberRules) -> list[str]:
    return [s for s in numbers.recognized_separators if s and s != numbers.thousands_separator]


@registry.register
class FormatNumbersPass(CorrectionPass):
    pass_id = "numbers.format"
    name = "Decimal separator and thousands grouping"
    rank = 210
    category = PassCategory.NUMBERS

    def applies_to(self, profile: LanguageProfile) -> bool:
        numbers = profile.numbers
        return numbers.group_thousands or self._replaces_point(numbers)

    @staticmethod
    def _replaces_point(numbers: NumberRules) -> bool:
        return numbers.replace_decimal_point and numbers.decimal_separator != "."

    def apply(self, text: str, profile: LanguageProfile) -> PassOutput:
        numbers = profile.numbers
        if self._replaces_point(numbers):
            text = _DECIMAL_POINT_RE.sub(rf"\1{numbers.decimal_separator}\2", text)
        if not numbers.group_thousands:
            return PassOutput(text)

        codec = MarkerCodec(_PROTECTED)
        protected, table = codec.encode(text)
        grouped = self._run_re(numbers).sub(lambda m: self._group(m, numbers), protected)
        return PassOutput(codec.decode(grouped, table))

    @staticmethod
    def _run_re(numbers: NumberRules) -> re.Pattern[str]:
        glue = {".", ",", "'", "\u2019", NBSP, NNBSP, *numbers.recognized_separators}
        if numbers.thousands_separator.strip():
            glue.add(numbers.thousands_separator)
        glue.discard(" ")
        glue.discard("")
        cls = "".join(re.escape(g) for g in sorted(glue))
        return re.compile(rf"(?<![\w{cls}])(\d{{4,}})(?!\d)")

    @staticmethod
    def _group(m: re.Match[str], numbers: NumberRules) -> str:
        digits = m.group(1)
        if digits.startswith("0") or numbers.is_year(int(digits)):
            return digits
        head = len(digits) % 3 or 3
        groups = [digits[:head]] + [digits[i : i + 3] for i in range(head, len(digits), 3)]
        return numbers.thousands_separator.join(groups)
