"""ProfileResolver: load a profile by id, validate it, apply user overrides."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from typo_correct.core.errors import ProfileLoadError
from typo_correct.core.profile import LanguageProfile, deep_merge, expand_dotted
from typo_correct.core.profile_source import ProfileSource, default_source

_log = logging.getLogger(__name__)


class ProfileResolver:
    """Turn a profile id (plus optional overrides) into a LanguageProfile.

    Usage::

        resolver = ProfileResolver()
        profile = resolver.resolve("fr-FR", {"numbers.thousandsSeparator": "~S"})

    Both failure modes are fatal: :class:`ProfileLoadError` when the source
    cannot produce a document, :class:`ProfileValidationError` when the
    document (after overrides) is missing required groups. No partially
    built profile is ever returned.
    """

    def __init__(self, source: ProfileSource | None = None) -> None:
        self._source = source or default_source()

    @property
    def source(self) -> ProfileSource:
        return self._source

    def resolve(
        self,
        profile_id: str,
        overrides: Mapping[str, Any] | None = None,
    ) -> LanguageProfile:
        try:
            data = self._source.load_profile(profile_id)
        except ProfileLoadError:
            raise
        except Exception as exc:
            # A source implementation leaking its own error type
            raise ProfileLoadError(profile_id, str(exc)) from exc

        if not isinstance(data, Mapping):
            raise ProfileLoadError(profile_id, "source returned a non-mapping document")

        meta = data.get("meta")
        if isinstance(meta, Mapping) and meta.get("id") not in (None, profile_id):
            _log.warning(
                "Profile file for %s declares meta.id=%r", profile_id, meta.get("id")
            )

        if overrides:
            data = deep_merge(dict(data), expand_dotted(overrides))
            _log.debug("Applied %d override path(s) to %s", len(overrides), profile_id)

        return LanguageProfile.from_dict(data)


def resolve(
    profile_id: str,
    overrides: Mapping[str, Any] | None = None,
    source: ProfileSource | None = None,
) -> LanguageProfile:
    """Module-level shortcut for :meth:`ProfileResolver.resolve`."""
    return ProfileResolver(source).resolve(profile_id, overrides)
