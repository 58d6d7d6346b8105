"""LanguageProfile: immutable, typed view over a locale rule document.

A profile document is a plain mapping (usually parsed from YAML) with the
groups ``meta``, ``punctuation``, ``dashes``, ``quotes``, ``numbers``,
``centuries``, ``ordinals``, ``references``, ``words`` and ``literals``.
The typed groups below expose what the passes read; the original mapping is
kept verbatim so unknown fields survive a merge and a ``to_dict`` round trip.
"""

from __future__ import annotations

import logging
from copy import deepcopy
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from typo_correct.core.errors import ProfileValidationError
from typo_correct.core.text_utils import EN_DASH, NBSP, resolve_space

_log = logging.getLogger(__name__)

REQUIRED_GROUPS: tuple[str, ...] = ("punctuation", "dashes", "quotes", "numbers")

KNOWN_GROUPS: frozenset[str] = frozenset(
    {
        "meta",
        "punctuation",
        "dashes",
        "quotes",
        "numbers",
        "centuries",
        "ordinals",
        "references",
        "words",
        "literals",
    }
)

CASE_STYLES: frozenset[str] = frozenset({"preserve", "lowercase", "uppercase"})


# ---------------------------------------------------------------------------
# Merge helpers
# ---------------------------------------------------------------------------


def deep_merge(base: dict, overlay: dict) -> dict:
    """Merge overlay into base. Overlay wins on scalar conflicts.

    Dicts are merged recursively. Lists are replaced (not concatenated).
    Neither argument is modified.
    """
    result = deepcopy(base)
    for key, val in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = deep_merge(result[key], val)
        else:
            result[key] = deepcopy(val)
    return result


def expand_dotted(overrides: Mapping[str, Any]) -> dict:
    """Turn ``{"numbers.thousandsSeparator": "."}`` into nested dicts.

    Only top-level keys are split. Keys that contain a punctuation mark as a
    path segment (``"."``) must be given in nested form instead.
    """
    nested: dict = {}
    for key, val in overrides.items():
        parts = key.split(".") if isinstance(key, str) and "." in key.strip(".") else [key]
        if len(parts) == 1:
            overlay = {key: deepcopy(val)}
        else:
            overlay = deepcopy(val)
            for part in reversed(parts):
                overlay = {part: overlay}
        nested = deep_merge(nested, overlay)
    return nested


def _frozen_map(data: Mapping | None) -> Mapping:
    return MappingProxyType(dict(data or {}))


def _str_tuple(values: Any) -> tuple[str, ...]:
    if not values:
        return ()
    return tuple(str(v) for v in values)


# ---------------------------------------------------------------------------
# Rule groups
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PunctuationRules:
    """Spacing around punctuation marks.

    A mark absent from a mapping is left untouched by the spacing pass; a
    mark mapped to ``""`` has any adjacent space removed.
    """

    space_before: Mapping[str, str] = field(default_factory=lambda: _frozen_map(None))
    space_after: Mapping[str, str] = field(default_factory=lambda: _frozen_map(None))

    @classmethod
    def from_dict(cls, data: Mapping) -> "PunctuationRules":
        def spaces(key: str) -> dict[str, str]:
            items = (data.get(key) or {}).items()
            return {str(k): resolve_space(str(v)) for k, v in items if v is not None}

        return cls(
            space_before=_frozen_map(spaces("spaceBefore")),
            space_after=_frozen_map(spaces("spaceAfter")),
        )


@dataclass(frozen=True)
class DashRules:
    incise: str = EN_DASH
    incise_space: str = NBSP
    replace_em_with_en: bool = True
    range_dash: str = EN_DASH

    @classmethod
    def from_dict(cls, data: Mapping) -> "DashRules":
        space = data.get("inciseSpace", "~S")
        return cls(
            incise=str(data.get("incise", EN_DASH)),
            incise_space=resolve_space("" if space is None else str(space)),
            replace_em_with_en=bool(data.get("replaceEmWithEn", True)),
            range_dash=str(data.get("rangeDash", EN_DASH)),
        )


@dataclass(frozen=True)
class QuoteRules:
    levels: tuple[tuple[str, str], ...] = ()
    apostrophe: str = "\u2019"
    space_inside: str = ""

    @classmethod
    def from_dict(cls, data: Mapping) -> "QuoteRules":
        levels = tuple((str(pair[0]), str(pair[1])) for pair in data.get("levels") or [])
        return cls(
            levels=levels,
            apostrophe=str(data.get("apostrophe", "\u2019")),
            space_inside=resolve_space(str(data.get("spaceInside", ""))),
        )


@dataclass(frozen=True)
class NumberRules:
    thousands_separator: str = ","
    decimal_separator: str = "."
    replace_decimal_point: bool = False
    group_thousands: bool = True
    year_range: tuple[int, int] = (0, 2050)
    recognized_separators: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping) -> "NumberRules":
        lo, hi = data.get("yearRange") or (0, 2050)
        seps = data.get("recognizedSeparators") or []
        return cls(
            thousands_separator=resolve_space(str(data.get("thousandsSeparator", ","))),
            decimal_separator=str(data.get("decimalSeparator", ".")),
            replace_decimal_point=bool(data.get("replaceDecimalPoint", False)),
            group_thousands=bool(data.get("groupThousands", True)),
            year_range=(int(lo), int(hi)),
            recognized_separators=tuple(resolve_space(str(s)) for s in seps),
        )

    def is_year(self, value: int) -> bool:
        lo, hi = self.year_range
        return lo <= value <= hi


@dataclass(frozen=True)
class CenturyRules:
    enabled: bool = False
    numeral_style: str = "roman"
    case_style: str = "preserve"
    suffix: str = "e"
    first_suffix: str = ""
    suffix_variants: tuple[str, ...] = ()
    words: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping | None) -> "CenturyRules":
        if not data:
            return cls()
        return cls(
            enabled=bool(data.get("enabled", False)),
            numeral_style=str(data.get("numeralStyle", "roman")),
            case_style=str(data.get("caseStyle", "preserve")),
            suffix=str(data.get("suffix", "e")),
            first_suffix=str(data.get("firstSuffix", "")),
            suffix_variants=_str_tuple(data.get("suffixVariants")),
            words=_str_tuple(data.get("words")),
        )


@dataclass(frozen=True)
class OrdinalRules:
    enabled: bool = False
    suffixes: tuple[str, ...] = ()
    corrections: Mapping[str, str] = field(default_factory=lambda: _frozen_map(None))
    title_abbreviations: Mapping[str, str] = field(default_factory=lambda: _frozen_map(None))

    @classmethod
    def from_dict(cls, data: Mapping | None) -> "OrdinalRules":
        if not data:
            return cls()
        return cls(
            enabled=bool(data.get("enabled", False)),
            suffixes=_str_tuple(data.get("suffixes")),
            corrections=_frozen_map(
                {str(k): str(v) for k, v in (data.get("corrections") or {}).items()}
            ),
            title_abbreviations=_frozen_map(
                {str(k): str(v) for k, v in (data.get("titleAbbreviations") or {}).items()}
            ),
        )


@dataclass(frozen=True)
class ReferenceRules:
    enabled: bool = False
    numeral_role: str = "capitals"

    @classmethod
    def from_dict(cls, data: Mapping | None) -> "ReferenceRules":
        if not data:
            return cls()
        return cls(
            enabled=bool(data.get("enabled", True)),
            numeral_role=str(data.get("numeralRole", "capitals")),
        )


@dataclass(frozen=True)
class WordLists:
    ambiguous: tuple[str, ...] = ()
    ordinal_triggers: tuple[str, ...] = ()
    ordinal_precursors: tuple[str, ...] = ()
    reference_abbreviations: tuple[str, ...] = ()
    units: tuple[str, ...] = ()
    titles: tuple[str, ...] = ()
    work_parts: tuple[str, ...] = ()
    first_names: tuple[str, ...] = ()
    range_introducers: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping | None) -> "WordLists":
        data = data or {}
        return cls(
            ambiguous=_str_tuple(data.get("ambiguous")),
            ordinal_triggers=_str_tuple(data.get("ordinalTriggers")),
            ordinal_precursors=_str_tuple(data.get("ordinalPrecursors")),
            reference_abbreviations=_str_tuple(data.get("referenceAbbreviations")),
            units=_str_tuple(data.get("units")),
            titles=_str_tuple(data.get("titles")),
            work_parts=_str_tuple(data.get("workParts")),
            first_names=_str_tuple(data.get("firstNames")),
            range_introducers=_str_tuple(data.get("rangeIntroducers")),
        )


@dataclass(frozen=True)
class Literals:
    italic_phrases: tuple[str, ...] = ()
    hyphenation_exceptions: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping | None) -> "Literals":
        data = data or {}
        return cls(
            italic_phrases=_str_tuple(data.get("italicPhrases")),
            hyphenation_exceptions=_str_tuple(data.get("hyphenationExceptions")),
        )


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _check_string_map(
    problems: list[str], value: Any, path: str, nullable: bool = False
) -> None:
    if value is None:
        return
    if not isinstance(value, Mapping):
        problems.append(f"{path} must be a mapping of strings")
        return
    for key, item in value.items():
        if item is None and nullable:
            continue
        if not isinstance(key, str) or not isinstance(item, str):
            problems.append(f"{path}: {key!r} must map to a string")


def validate_profile_data(data: Any) -> list[str]:
    """Return a list of human-readable problems (empty = valid)."""
    if not isinstance(data, Mapping):
        return [f"profile document must be a mapping, got {type(data).__name__}"]

    problems: list[str] = []
    meta = data.get("meta")
    if not isinstance(meta, Mapping) or not meta.get("id"):
        problems.append("missing meta.id")

    for group in REQUIRED_GROUPS:
        if group not in data:
            problems.append(f"missing required group {group!r}")
        elif not isinstance(data[group], Mapping):
            problems.append(f"group {group!r} must be a mapping")

    for group in KNOWN_GROUPS - set(REQUIRED_GROUPS) - {"meta"}:
        if data.get(group) is not None and not isinstance(data[group], Mapping):
            problems.append(f"group {group!r} must be a mapping")

    if problems:
        return problems

    punctuation = data["punctuation"]
    for key in ("spaceBefore", "spaceAfter"):
        _check_string_map(problems, punctuation.get(key), f"punctuation.{key}", nullable=True)

    dashes = data["dashes"]
    for key in ("incise", "rangeDash"):
        val = dashes.get(key)
        if val is not None and (not isinstance(val, str) or not val):
            problems.append(f"dashes.{key} must be a non-empty string")

    levels = data["quotes"].get("levels")
    if not isinstance(levels, list) or not levels:
        problems.append("quotes.levels must be a non-empty list")
    elif any(not isinstance(p, (list, tuple)) or len(p) != 2 for p in levels):
        problems.append("quotes.levels entries must be [open, close] pairs")

    year_range = data["numbers"].get("yearRange")
    if year_range is not None:
        try:
            lo, hi = (int(v) for v in year_range)
        except (TypeError, ValueError):
            problems.append("numbers.yearRange must be a [min, max] pair of integers")
        else:
            if lo > hi:
                problems.append("numbers.yearRange min is greater than max")

    centuries = data.get("centuries") or {}
    case_style = centuries.get("caseStyle", "preserve")
    if case_style not in CASE_STYLES:
        problems.append(f"centuries.caseStyle must be one of {sorted(CASE_STYLES)}")

    ordinals = data.get("ordinals") or {}
    for key in ("corrections", "titleAbbreviations"):
        _check_string_map(problems, ordinals.get(key), f"ordinals.{key}")
    if problems:
        return problems

    for abbr, suffix in (ordinals.get("titleAbbreviations") or {}).items():
        if not str(abbr).endswith(str(suffix)) or str(abbr) == str(suffix):
            problems.append(f"ordinals.titleAbbreviations: {abbr!r} does not end with {suffix!r}")

    return problems


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LanguageProfile:
    """One locale's typographic rules, immutable once built.

    Build with :meth:`from_dict`; derive variants with :meth:`merged`, which
    returns a new instance and leaves this one untouched.
    """

    profile_id: str
    label: str
    label_en: str
    punctuation: PunctuationRules
    dashes: DashRules
    quotes: QuoteRules
    numbers: NumberRules
    centuries: CenturyRules = field(default_factory=CenturyRules)
    ordinals: OrdinalRules = field(default_factory=OrdinalRules)
    references: ReferenceRules = field(default_factory=ReferenceRules)
    words: WordLists = field(default_factory=WordLists)
    literals: Literals = field(default_factory=Literals)
    _raw: Mapping = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Mapping) -> "LanguageProfile":
        """Validate ``data`` and build a profile.

        Raises:
            ProfileValidationError: if required groups are missing or malformed.
        """
        problems = validate_profile_data(data)
        if problems:
            pid = ""
            if isinstance(data, Mapping) and isinstance(data.get("meta"), Mapping):
                pid = str(data["meta"].get("id") or "")
            raise ProfileValidationError(pid or "<unknown>", problems)

        unknown = sorted(k for k in data if k not in KNOWN_GROUPS)
        if unknown:
            _log.warning("Profile %s carries unread groups: %s", data["meta"]["id"], unknown)

        meta = data["meta"]
        raw = deepcopy(dict(data))
        return cls(
            profile_id=str(meta["id"]),
            label=str(meta.get("label", meta["id"])),
            label_en=str(meta.get("labelEN", meta.get("label", meta["id"]))),
            punctuation=PunctuationRules.from_dict(data["punctuation"]),
            dashes=DashRules.from_dict(data["dashes"]),
            quotes=QuoteRules.from_dict(data["quotes"]),
            numbers=NumberRules.from_dict(data["numbers"]),
            centuries=CenturyRules.from_dict(data.get("centuries")),
            ordinals=OrdinalRules.from_dict(data.get("ordinals")),
            references=ReferenceRules.from_dict(data.get("references")),
            words=WordLists.from_dict(data.get("words")),
            literals=Literals.from_dict(data.get("literals")),
            _raw=MappingProxyType(raw),
        )

    def to_dict(self) -> dict:
        """Return the profile document, unknown fields included."""
        return deepcopy(dict(self._raw))

    def merged(self, overrides: Mapping[str, Any]) -> "LanguageProfile":
        """Return a new profile with ``overrides`` applied on top of this one.

        Every path present in ``overrides`` replaces the base value; paths not
        mentioned keep their base value. Dotted keys are accepted.
        """
        if not overrides:
            return self
        return LanguageProfile.from_dict(deep_merge(self.to_dict(), expand_dotted(overrides)))
