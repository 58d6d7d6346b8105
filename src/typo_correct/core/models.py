"""Core data model dataclasses.

All other modules import from here. Keep this module free of side-effects so
it can be used by passes, the batch layer and the CLI alike.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ConvergenceMode(str, Enum):
    SINGLE = "single"
    ITERATE = "iterate-to-fixpoint"


class PassCategory(str, Enum):
    QUOTES = "quotes"
    SPACING = "spacing"
    NOTES = "notes"
    DASHES = "dashes"
    PUNCTUATION = "punctuation"
    APOSTROPHES = "apostrophes"
    NUMBERS = "numbers"
    ORDINALS = "ordinals"
    CENTURIES = "centuries"
    REFERENCES = "references"


class DiagnosticKind(str, Enum):
    NON_CONVERGENCE = "NonConvergence"
    CANCELLED = "Cancelled"
    PASS_FAILED = "PassFailed"
    SPAN_DROPPED = "SpanDropped"


class GuardState(str, Enum):
    RUNNING = "Running"
    CONVERGED = "Converged"
    MAX_ITERATIONS_EXCEEDED = "MaxIterationsExceeded"


# ---------------------------------------------------------------------------
# Style roles
# ---------------------------------------------------------------------------

ROLE_NOTE_MARKER = "note-marker"
ROLE_SUPERSCRIPT_ORDINAL = "superscript-ordinal"
ROLE_CENTURY_NUMERAL = "century-numeral"
ROLE_CAPITALS = "capitals"
ROLE_SMALL_CAPS = "small-caps"
ROLE_ITALIC = "italic"

KNOWN_ROLES: tuple[str, ...] = (
    ROLE_NOTE_MARKER,
    ROLE_SUPERSCRIPT_ORDINAL,
    ROLE_CENTURY_NUMERAL,
    ROLE_CAPITALS,
    ROLE_SMALL_CAPS,
    ROLE_ITALIC,
)


# ---------------------------------------------------------------------------
# Spans and results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, order=True)
class Span:
    """Half-open character range ``[start, end)`` in a text snapshot."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"invalid span [{self.start}, {self.end})")

    @property
    def length(self) -> int:
        return self.end - self.start

    def slice(self, text: str) -> str:
        return text[self.start : self.end]


@dataclass(frozen=True)
class StyleApplication:
    span: Span
    role_id: str

    @classmethod
    def at(cls, start: int, end: int, role_id: str) -> "StyleApplication":
        return cls(Span(start, end), role_id)

    def sort_key(self) -> tuple[int, int, str]:
        return (self.span.start, self.span.end, self.role_id)


@dataclass(frozen=True)
class Diagnostic:
    pass_id: str
    kind: DiagnosticKind
    detail: str = ""


@dataclass
class PassOutput:
    """What a single pass application returns.

    ``spans`` are expressed against ``text`` (the pass output).
    """

    text: str
    spans: list[StyleApplication] = field(default_factory=list)


@dataclass
class PipelineResult:
    text: str
    spans: list[StyleApplication] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def cancelled(self) -> bool:
        return any(d.kind == DiagnosticKind.CANCELLED for d in self.diagnostics)

    def diagnostics_of(self, kind: DiagnosticKind) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.kind == kind]

    def spans_with_role(self, role_id: str) -> list[StyleApplication]:
        return [s for s in self.spans if s.role_id == role_id]
