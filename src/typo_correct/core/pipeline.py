"""CorrectionPipeline: run the enabled passes over one text segment.

The pipeline is stateless between runs. Each :meth:`CorrectionPipeline.run`
call gets its own marker table, and the caller owns the returned
:class:`PipelineResult`.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, Mapping, Protocol

_log = logging.getLogger(__name__)

# Import passes module to trigger all @registry.register decorators
import typo_correct.core.passes  # noqa: F401
from typo_correct.core.errors import MarkerCollisionError
from typo_correct.core.loop_guard import DEFAULT_MAX_ITERATIONS, LoopGuard
from typo_correct.core.markers import MarkerCodec
from typo_correct.core.models import (
    ConvergenceMode,
    Diagnostic,
    DiagnosticKind,
    GuardState,
    PassOutput,
    PipelineResult,
    StyleApplication,
)
from typo_correct.core.offsets import OffsetMap
from typo_correct.core.pass_base import CorrectionPass, PassRegistry, registry
from typo_correct.core.profile import LanguageProfile
from typo_correct.core.profile_source import ProfileSource
from typo_correct.core.resolver import ProfileResolver

URL_RE = re.compile(r"(?:https?://|www\.)[^\s<>\"]*[^\s<>\".,;:!?)\]\u00bb]")
EMAIL_RE = re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)+")

DEFAULT_PROTECTED: tuple[re.Pattern[str], ...] = (URL_RE, EMAIL_RE)

_DECODE_STEP = "pipeline.decode"


class AbortSignal(Protocol):
    def is_set(self) -> bool: ...


class CorrectionPipeline:
    """Run correction passes in rank order and collect style spans.

    Usage::

        pipeline = CorrectionPipeline()
        result = pipeline.run(text, profile, enabled_pass_ids=None)

    Args:
        pass_registry: Where passes come from; defaults to the built-in one.
        max_iterations: Loop guard bound for passes that do not set their own.
        protected_patterns: Regexes whose matches no pass may rewrite (URLs
            and e-mail addresses by default).
    """

    def __init__(
        self,
        pass_registry: PassRegistry | None = None,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        protected_patterns: Iterable[re.Pattern[str] | str] = DEFAULT_PROTECTED,
    ) -> None:
        self._registry = pass_registry or registry
        self._max_iterations = max_iterations
        self._protected = tuple(protected_patterns)

    # ------------------------------------------------------------------
    # Pass selection
    # ------------------------------------------------------------------

    def select(
        self,
        profile: LanguageProfile,
        enabled_pass_ids: Iterable[str] | None = None,
    ) -> list[CorrectionPass]:
        """Return pass instances to run for ``profile``, in rank order.

        ``None`` enables every registered pass. Unknown ids are logged and
        ignored. The order never depends on which subset is enabled.
        """
        if enabled_pass_ids is None:
            wanted = set(self._registry.all_ids())
        else:
            wanted = set(enabled_pass_ids)
            unknown = sorted(pid for pid in wanted if pid not in self._registry)
            if unknown:
                _log.warning("Ignoring unknown pass id(s): %s", ", ".join(unknown))

        selected: list[CorrectionPass] = []
        for cls in self._registry.all_passes():
            if cls.pass_id not in wanted:
                continue
            inst = cls()
            if not inst.applies_to(profile):
                _log.debug("Pass %s does not apply to %s", inst.pass_id, profile.profile_id)
                continue
            selected.append(inst)
        return selected

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(
        self,
        text: str,
        profile: LanguageProfile,
        enabled_pass_ids: Iterable[str] | None = None,
        abort: AbortSignal | None = None,
    ) -> PipelineResult:
        """Correct ``text`` with ``profile``.

        Raises:
            MarkerCollisionError: if a pass damaged a protection token. Nothing
                from this segment should be written back in that case.
        """
        passes = self.select(profile, enabled_pass_ids)
        codec = MarkerCodec(self._protected, profile.literals.hyphenation_exceptions)
        working, table = codec.encode(text)

        spans: list[StyleApplication] = []
        diagnostics: list[Diagnostic] = []

        for correction in passes:
            if abort is not None and abort.is_set():
                _log.info("Run cancelled before %s", correction.pass_id)
                diagnostics.append(
                    Diagnostic(correction.pass_id, DiagnosticKind.CANCELLED, "abort signal set")
                )
                break

            try:
                output = self._apply(correction, working, profile, diagnostics)
            except MarkerCollisionError:
                raise
            except Exception as exc:
                # Never crash the whole run because one pass fails
                _log.exception("Pass %s failed: %s", correction.pass_id, exc)
                diagnostics.append(
                    Diagnostic(correction.pass_id, DiagnosticKind.PASS_FAILED, str(exc))
                )
                continue

            if output.text != working:
                spans = self._remap(spans, working, output.text, correction.pass_id, diagnostics)
            spans.extend(self._in_bounds(output, correction.pass_id, diagnostics))
            working = output.text

        final = codec.decode(working, table)
        spans = self._remap(spans, working, final, _DECODE_STEP, diagnostics)
        return PipelineResult(text=final, spans=_normalized(spans), diagnostics=diagnostics)

    def _apply(
        self,
        correction: CorrectionPass,
        text: str,
        profile: LanguageProfile,
        diagnostics: list[Diagnostic],
    ) -> PassOutput:
        if correction.mode != ConvergenceMode.ITERATE:
            return correction.apply(text, profile)

        guard = LoopGuard(correction.max_iterations or self._max_iterations)
        output = guard.run(lambda current: correction.apply(current, profile), text)
        if guard.state == GuardState.MAX_ITERATIONS_EXCEEDED:
            diagnostics.append(
                Diagnostic(
                    correction.pass_id,
                    DiagnosticKind.NON_CONVERGENCE,
                    f"no fixpoint after {guard.iterations} iterations",
                )
            )
        else:
            _log.debug("%s converged in %d iteration(s)", correction.pass_id, guard.iterations)
        return output

    @staticmethod
    def _remap(
        spans: list[StyleApplication],
        before: str,
        after: str,
        step: str,
        diagnostics: list[Diagnostic],
    ) -> list[StyleApplication]:
        if not spans:
            return spans
        kept, dropped = OffsetMap(before, after).remap(spans)
        for app in dropped:
            diagnostics.append(
                Diagnostic(
                    step,
                    DiagnosticKind.SPAN_DROPPED,
                    f"{app.role_id} span [{app.span.start}, {app.span.end}) collapsed",
                )
            )
        return kept

    @staticmethod
    def _in_bounds(
        output: PassOutput, pass_id: str, diagnostics: list[Diagnostic]
    ) -> list[StyleApplication]:
        limit = len(output.text)
        valid: list[StyleApplication] = []
        for app in output.spans:
            if app.span.end > limit or app.span.length == 0:
                _log.warning("Pass %s emitted an invalid span %s", pass_id, app.span)
                diagnostics.append(
                    Diagnostic(pass_id, DiagnosticKind.SPAN_DROPPED, f"invalid span {app.span}")
                )
                continue
            valid.append(app)
        return valid


def _normalized(spans: list[StyleApplication]) -> list[StyleApplication]:
    unique = {(a.span.start, a.span.end, a.role_id): a for a in spans}
    return sorted(unique.values(), key=StyleApplication.sort_key)


def correct_text(
    text: str,
    profile_id: str = "fr-FR",
    enabled_pass_ids: Iterable[str] | None = None,
    overrides: Mapping[str, Any] | None = None,
    source: ProfileSource | None = None,
) -> PipelineResult:
    """Resolve ``profile_id`` and run the default pipeline over ``text``."""
    profile = ProfileResolver(source).resolve(profile_id, overrides)
    return CorrectionPipeline().run(text, profile, enabled_pass_ids)
