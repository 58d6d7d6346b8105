"""Pytest fixtures shared across all tests."""

from __future__ import annotations

from copy import deepcopy

import pytest
import yaml

from typo_correct.core.pipeline import CorrectionPipeline
from typo_correct.core.profile import LanguageProfile
from typo_correct.core.profile_source import builtin_source
from typo_correct.core.resolver import ProfileResolver

#: Smallest document that passes validation.
MINIMAL_PROFILE = {
    "meta": {"id": "xx", "label": "Test", "labelEN": "Test"},
    "punctuation": {"spaceBefore": {":": "~S"}},
    "dashes": {"incise": "\u2013", "inciseSpace": "~S", "replaceEmWithEn": True},
    "quotes": {"levels": [["\u00ab", "\u00bb"], ["\u201c", "\u201d"]], "spaceInside": "~S"},
    "numbers": {"thousandsSeparator": "~<", "decimalSeparator": ","},
}


@pytest.fixture
def minimal_data() -> dict:
    return deepcopy(MINIMAL_PROFILE)


@pytest.fixture(scope="session")
def resolver() -> ProfileResolver:
    """Resolver over the shipped profiles only (ignores the user directory)."""
    return ProfileResolver(builtin_source())


@pytest.fixture(scope="session")
def fr_profile(resolver) -> LanguageProfile:
    return resolver.resolve("fr-FR")


@pytest.fixture(scope="session")
def en_profile(resolver) -> LanguageProfile:
    return resolver.resolve("en-US")


@pytest.fixture(scope="session")
def de_profile(resolver) -> LanguageProfile:
    return resolver.resolve("de")


@pytest.fixture
def pipeline() -> CorrectionPipeline:
    return CorrectionPipeline()


@pytest.fixture
def fr(pipeline, fr_profile):
    """Run the French pipeline: ``fr(text, passes=None)``."""

    def _run(text: str, passes=None):
        return pipeline.run(text, fr_profile, passes)

    return _run


@pytest.fixture
def en(pipeline, en_profile):
    def _run(text: str, passes=None):
        return pipeline.run(text, en_profile, passes)

    return _run


@pytest.fixture
def profile_dir(tmp_path):
    """A directory holding ``lang-xx.yml`` built from MINIMAL_PROFILE."""
    path = tmp_path / "profiles"
    path.mkdir()
    (path / "lang-xx.yml").write_text(
        yaml.safe_dump(MINIMAL_PROFILE, allow_unicode=True), encoding="utf-8"
    )
    return path
