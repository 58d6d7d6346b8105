"""Tests for CorrectionPipeline: ordering, diagnostics, spans, protection."""

from __future__ import annotations

import logging
import threading

import pytest

from typo_correct.core.errors import DuplicatePassError, MarkerCollisionError
from typo_correct.core.markers import CLOSE
from typo_correct.core.models import (
    ConvergenceMode,
    DiagnosticKind,
    PassOutput,
    StyleApplication,
)
from typo_correct.core.pass_base import CorrectionPass, PassRegistry, registry
from typo_correct.core.pipeline import CorrectionPipeline, correct_text
from typo_correct.core.profile import LanguageProfile
from typo_correct.core.profile_source import builtin_source


@pytest.fixture
def profile(minimal_data) -> LanguageProfile:
    return LanguageProfile.from_dict(minimal_data)


def _registry(*classes) -> PassRegistry:
    reg = PassRegistry()
    for cls in classes:
        reg.register(cls)
    return reg


# ---------------------------------------------------------------------------
# Synthetic passes
# ---------------------------------------------------------------------------


class AppendA(CorrectionPass):
    pass_id = "test.append_a"
    rank = 10

    def apply(self, text, profile):
        return PassOutput(text + "A")


class AppendB(CorrectionPass):
    pass_id = "test.append_b"
    rank = 20

    def apply(self, text, profile):
        return PassOutput(text + "B")


class Explodes(CorrectionPass):
    pass_id = "test.explodes"
    rank = 15

    def apply(self, text, profile):
        raise ValueError("boom")


class Toggle(CorrectionPass):
    pass_id = "test.toggle"
    rank = 30
    mode = ConvergenceMode.ITERATE
    max_iterations = 4
    idempotent = False

    def apply(self, text, profile):
        return PassOutput(text[:-1] + ("y" if text.endswith("x") else "x"))


class MarkFirstWord(CorrectionPass):
    pass_id = "test.mark_first_word"
    rank = 10

    def apply(self, text, profile):
        end = text.find(" ")
        return PassOutput(text, [StyleApplication.at(0, end, "italic")])


class Prefix(CorrectionPass):
    pass_id = "test.prefix"
    rank = 20

    def apply(self, text, profile):
        return PassOutput(">> " + text)


class MarkSpace(CorrectionPass):
    pass_id = "test.mark_space"
    rank = 10

    def apply(self, text, profile):
        pos = text.find(" ")
        return PassOutput(text, [StyleApplication.at(pos, pos + 1, "italic")])


class DropSpaces(CorrectionPass):
    pass_id = "test.drop_spaces"
    rank = 20

    def apply(self, text, profile):
        return PassOutput(text.replace(" ", ""))


class OutOfBounds(CorrectionPass):
    pass_id = "test.out_of_bounds"
    rank = 10

    def apply(self, text, profile):
        return PassOutput(text, [StyleApplication.at(0, len(text) + 5, "italic")])


class BreakTokens(CorrectionPass):
    pass_id = "test.break_tokens"
    rank = 10

    def apply(self, text, profile):
        return PassOutput(text.replace(CLOSE, ""))


class NotForThisProfile(CorrectionPass):
    pass_id = "test.never"
    rank = 5

    def applies_to(self, profile):
        return False

    def apply(self, text, profile):
        return PassOutput("never")


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestPassRegistry:
    def test_order_by_rank(self):
        reg = _registry(AppendB, AppendA)
        assert reg.all_ids() == ["test.append_a", "test.append_b"]

    def test_duplicate_id_rejected(self):
        class Clash(AppendA):
            pass

        reg = _registry(AppendA)
        with pytest.raises(DuplicatePassError):
            reg.register(Clash)

    def test_reregistering_same_class_is_harmless(self):
        reg = _registry(AppendA)
        reg.register(AppendA)
        assert len(reg) == 1

    def test_builtin_catalogue(self):
        ids = registry.all_ids()
        assert ids[0] == "quotes.typographic"
        assert ids.index("spacing.typographic") < ids.index("numbers.format")
        assert ids.index("ordinals.format") < ids.index("centuries.format")
        assert len(ids) == len(set(ids))


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


class TestPipelineOrdering:
    def test_runs_in_rank_order(self, profile):
        pipeline = CorrectionPipeline(_registry(AppendB, AppendA))
        assert pipeline.run("", profile).text == "AB"

    def test_order_independent_of_enabled_list(self, profile):
        pipeline = CorrectionPipeline(_registry(AppendA, AppendB))
        result = pipeline.run("", profile, ["test.append_b", "test.append_a"])
        assert result.text == "AB"

    def test_disabled_pass_skipped(self, profile):
        pipeline = CorrectionPipeline(_registry(AppendA, AppendB))
        assert pipeline.run("", profile, ["test.append_b"]).text == "B"

    def test_unknown_ids_ignored_with_warning(self, profile, caplog):
        pipeline = CorrectionPipeline(_registry(AppendA))
        with caplog.at_level(logging.WARNING, logger="typo_correct.core.pipeline"):
            result = pipeline.run("", profile, ["test.append_a", "nope"])
        assert result.text == "A"
        assert "nope" in caplog.text

    def test_applies_to_filters(self, profile):
        pipeline = CorrectionPipeline(_registry(NotForThisProfile, AppendA))
        assert pipeline.run("x", profile).text == "xA"


class TestDiagnostics:
    def test_failing_pass_is_reported_and_skipped(self, profile):
        pipeline = CorrectionPipeline(_registry(AppendA, Explodes, AppendB))
        result = pipeline.run("", profile)
        assert result.text == "AB"
        failed = result.diagnostics_of(DiagnosticKind.PASS_FAILED)
        assert [d.pass_id for d in failed] == ["test.explodes"]
        assert "boom" in failed[0].detail

    def test_non_convergence(self, profile):
        pipeline = CorrectionPipeline(_registry(Toggle))
        result = pipeline.run("ax", profile)
        diags = result.diagnostics_of(DiagnosticKind.NON_CONVERGENCE)
        assert [d.pass_id for d in diags] == ["test.toggle"]
        # four toggles from "ax"
        assert result.text == "ax"

    def test_pipeline_bound_applies_when_pass_has_none(self, profile):
        class Unbounded(Toggle):
            pass_id = "test.unbounded"
            max_iterations = None

        pipeline = CorrectionPipeline(_registry(Unbounded), max_iterations=3)
        result = pipeline.run("ax", profile)
        assert result.text == "ay"
        assert "3 iterations" in result.diagnostics[0].detail

    def test_cancel_before_start(self, profile):
        event = threading.Event()
        event.set()
        pipeline = CorrectionPipeline(_registry(AppendA, AppendB))
        result = pipeline.run("x", profile, abort=event)
        assert result.text == "x"
        assert result.cancelled
        assert result.diagnostics[0].pass_id == "test.append_a"

    def test_cancel_between_passes(self, profile):
        class AfterFirst:
            def __init__(self):
                self.calls = 0

            def is_set(self):
                self.calls += 1
                return self.calls > 1

        pipeline = CorrectionPipeline(_registry(AppendA, AppendB))
        result = pipeline.run("x", profile, abort=AfterFirst())
        assert result.text == "xA"
        assert result.diagnostics_of(DiagnosticKind.CANCELLED)[0].pass_id == "test.append_b"

    def test_unset_event_runs_everything(self, profile):
        pipeline = CorrectionPipeline(_registry(AppendA, AppendB))
        result = pipeline.run("x", profile, abort=threading.Event())
        assert result.text == "xAB"
        assert not result.cancelled


class TestSpans:
    def test_spans_follow_later_edits(self, profile):
        pipeline = CorrectionPipeline(_registry(MarkFirstWord, Prefix))
        result = pipeline.run("hello world", profile)
        assert result.text == ">> hello world"
        assert result.spans == [StyleApplication.at(3, 8, "italic")]
        assert result.spans[0].span.slice(result.text) == "hello"

    def test_collapsed_span_is_dropped(self, profile):
        pipeline = CorrectionPipeline(_registry(MarkSpace, DropSpaces))
        result = pipeline.run("a b", profile)
        assert result.text == "ab"
        assert result.spans == []
        assert result.diagnostics_of(DiagnosticKind.SPAN_DROPPED)

    def test_out_of_bounds_span_is_dropped(self, profile):
        pipeline = CorrectionPipeline(_registry(OutOfBounds))
        result = pipeline.run("abc", profile)
        assert result.spans == []
        assert result.diagnostics_of(DiagnosticKind.SPAN_DROPPED)

    def test_spans_are_deduplicated_and_sorted(self, profile):
        class MarkAgain(MarkFirstWord):
            pass_id = "test.mark_again"
            rank = 30

        class MarkLast(CorrectionPass):
            pass_id = "test.mark_last"
            rank = 5

            def apply(self, text, profile):
                return PassOutput(text, [StyleApplication.at(len(text) - 1, len(text), "capitals")])

        pipeline = CorrectionPipeline(_registry(MarkLast, MarkFirstWord, MarkAgain))
        result = pipeline.run("ab cd", profile)
        assert result.spans == [
            StyleApplication.at(0, 2, "italic"),
            StyleApplication.at(4, 5, "capitals"),
        ]

    def test_spans_map_through_decoding(self, fr_profile):
        text = "Voir http://example.org/x au XIXe siecle"
        result = CorrectionPipeline().run(text, fr_profile)
        numeral = result.spans_with_role("century-numeral")
        assert [s.span.slice(result.text) for s in numeral] == ["XIX"]


class TestProtection:
    def test_broken_token_raises(self, profile):
        pipeline = CorrectionPipeline(_registry(BreakTokens))
        with pytest.raises(MarkerCollisionError):
            pipeline.run("voir http://example.org", profile)

    def test_protected_url_untouched(self, fr):
        text = "https://example.com/a:b?c=1234567"
        assert fr(text).text == text

    def test_protected_email_untouched(self, fr):
        assert fr("ecrire a jean.dupont@example.fr").text == "ecrire a jean.dupont@example.fr"

    def test_no_marker_leaks(self, fr):
        result = fr("Voir http://a.fr : c'est 1234567 - non ?")
        assert all(ord(ch) < 0xE000 or ord(ch) > 0xF8FF for ch in result.text)
        assert "http://a.fr" in result.text


# ---------------------------------------------------------------------------
# Whole-pipeline properties
# ---------------------------------------------------------------------------


SAMPLES = [
    'Il a dit : "bonjour"... le XIXe siecle, p. 12 - voir 1234567 l\'homme.',
    "Pourquoi ?Parce que ; voila!",
    "Le 1er mai , 2 500 personnes - dit-on - sont venues.",
    "Louis XIV et Francois 1er; chapitre iv, lignes A-F.",
    "He said \"hello\" -- twice... in 1999 and 12-15 May.",
    "Mme Curie  a eu   le prix.\n\n\n  Suite.",
]

PASS_SAMPLES = [
    "a...\n\n\n\nb",
    "1 234 567 et 12 345,5",
    "la 1ere et la IIeme Republique, XIXeme siecle",
    "Un mot \u2014 et deux.",
]

PROFILE_IDS = ["fr-FR", "fr-CH", "en-US", "en-UK", "de", "es", "it"]


class TestWholePipeline:
    @pytest.mark.parametrize("profile_id", PROFILE_IDS)
    @pytest.mark.parametrize("text", SAMPLES)
    def test_idempotent(self, resolver, profile_id, text):
        profile = resolver.resolve(profile_id)
        pipeline = CorrectionPipeline()
        once = pipeline.run(text, profile)
        twice = pipeline.run(once.text, profile)
        assert twice.text == once.text

    @pytest.mark.parametrize("profile_id", PROFILE_IDS)
    @pytest.mark.parametrize("cls", registry.all_passes(), ids=lambda c: c.pass_id)
    def test_declared_idempotent_passes(self, resolver, profile_id, cls):
        profile = resolver.resolve(profile_id)
        rule = cls()
        if not (rule.idempotent and rule.applies_to(profile)):
            pytest.skip(f"{cls.pass_id} is not idempotent for {profile_id}")
        for text in SAMPLES + PASS_SAMPLES:
            once = rule.apply(text, profile).text
            assert rule.apply(once, profile).text == once

    @pytest.mark.parametrize("pass_id", ["spacing.double_returns", "numbers.separators"])
    def test_iterated_passes_converge_under_guard(self, fr, pass_id):
        assert not registry.get(pass_id).idempotent
        for text in SAMPLES + PASS_SAMPLES:
            once = fr(text, [pass_id])
            assert once.diagnostics == []
            assert fr(once.text, [pass_id]).text == once.text

    @pytest.mark.parametrize("text", SAMPLES)
    def test_spans_within_bounds(self, fr, text):
        result = fr(text)
        for app in result.spans:
            assert 0 <= app.span.start < app.span.end <= len(result.text)

    def test_empty_text(self, fr):
        result = fr("")
        assert result.text == ""
        assert result.spans == []
        assert result.diagnostics == []

    def test_correct_text_shortcut(self):
        result = correct_text("1234567", "en-US", source=builtin_source())
        assert result.text == "1,234,567"

    def test_correct_text_with_overrides(self):
        result = correct_text(
            "1234567",
            "en-US",
            overrides={"numbers.thousandsSeparator": "~S"},
            source=builtin_source(),
        )
        assert result.text == "1\u00a0234\u00a0567"
