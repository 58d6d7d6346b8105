"""Shared text-processing constants and helpers.

Used by the passes and the pipeline so that every pass agrees on what a
"space" is and how profile spacing codes translate into characters.
"""

from __future__ import annotations

import re

# ---------------------------------------------------------------------------
# Whitespace
# ---------------------------------------------------------------------------

NBSP = "\u00a0"
NNBSP = "\u202f"
EN_SPACE = "\u2002"
HAIR_SPACE = "\u200a"
FIGURE_SPACE = "\u2007"

# Horizontal whitespace, including every typographic space a pass may insert.
# These are regex class bodies, not plain character sets.
SPACE_CLASS = " \u00a0\u2000-\u200a\u202f\u205f\u3000"
WS_CLASS = "\t" + SPACE_CLASS
WS = f"[{WS_CLASS}]"
WS_RE = re.compile(WS)
SPACE_RUN_RE = re.compile(f"[{SPACE_CLASS}]{{2,}}")

# Non-breaking spaces that glue a word to its neighbour.
NO_BREAK_SPACES = frozenset({NBSP, NNBSP, FIGURE_SPACE})

# ---------------------------------------------------------------------------
# Profile space codes
# ---------------------------------------------------------------------------

SPACE_CODES: dict[str, str] = {
    "~<": NNBSP,         # narrow no-break space
    "~S": NBSP,          # no-break space
    "~>": EN_SPACE,      # en space
    "~|": HAIR_SPACE,    # hair space
    "~=": FIGURE_SPACE,  # figure space
}


def resolve_space(value: str | None) -> str | None:
    """Translate a profile spacing value into the character(s) it stands for.

    ``None`` stays ``None`` (rule absent), ``""`` means "no space", a known
    code maps to its character and anything else is taken literally.
    """
    if value is None:
        return None
    return SPACE_CODES.get(value, value)


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------

#: Object replacement character used by document hosts for footnote anchors.
NOTE_REF = "\ufffc"

# ---------------------------------------------------------------------------
# Glyphs
# ---------------------------------------------------------------------------

HYPHEN = "-"
EN_DASH = "\u2013"
EM_DASH = "\u2014"
ELLIPSIS = "\u2026"

# Uppercase Roman numerals up to 3999, non-empty.
ROMAN_RE = r"(?=[MDCLXVI])M{0,3}(?:CM|CD|D?C{0,3})(?:XC|XL|L?X{0,3})(?:IX|IV|V?I{0,3})"


def words_pattern(words: list[str] | tuple[str, ...]) -> str:
    """Build an alternation that matches any of ``words`` literally.

    Longest words come first so that "chap." wins over "chap".
    """
    escaped = sorted({re.escape(w) for w in words if w}, key=len, reverse=True)
    return "|".join(escaped)


