"""Profile sources: where raw profile documents come from.

The correction core never reads files itself. It asks a :class:`ProfileSource`
for the raw mapping of a profile id and validates what it gets back. Three
sources are provided:

- **DirectoryProfileSource**: one directory of ``lang-<id>.yml`` files
  (``.yaml`` and ``.json`` are accepted too; JSON is valid YAML).
- **MappingProfileSource**: profiles held in memory, mostly for tests and
  callers that store profiles elsewhere.
- **ChainedProfileSource**: several sources consulted in order, so a user
  directory can shadow a built-in profile of the same id.
"""

from __future__ import annotations

import logging
import platform
from abc import ABC, abstractmethod
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml

from typo_correct.core.errors import ProfileLoadError
from typo_correct.core.resources import get_builtin_profiles_dir

_log = logging.getLogger(__name__)

_PROFILE_SUFFIXES = (".yml", ".yaml", ".json")
_FILE_PREFIX = "lang-"
_PREFERRED_FIRST = "fr-FR"


# ---------------------------------------------------------------------------
# ProfileInfo
# ---------------------------------------------------------------------------


@dataclass
class ProfileInfo:
    """Describes one available profile."""

    id: str          # e.g. "fr-FR"
    label: str       # label in the profile's own language
    label_en: str    # English label
    path: Path | None = None


def sort_profiles(infos: Iterable[ProfileInfo]) -> list[ProfileInfo]:
    """fr-FR first, then alphabetically by id."""
    return sorted(infos, key=lambda p: (p.id != _PREFERRED_FIRST, p.id))


def _info_from_data(profile_id: str, data: Mapping, path: Path | None = None) -> ProfileInfo:
    meta = data.get("meta") or {}
    label = str(meta.get("label") or profile_id)
    return ProfileInfo(
        id=profile_id,
        label=label,
        label_en=str(meta.get("labelEN") or label),
        path=path,
    )


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------


class ProfileSource(ABC):
    """Abstract provider of raw profile documents."""

    @abstractmethod
    def load_profile(self, profile_id: str) -> dict[str, Any]:
        """Return the raw profile mapping for ``profile_id``.

        Raises:
            ProfileLoadError: if the profile is unknown, unreadable or not a
                mapping.
        """

    @abstractmethod
    def list_profiles(self) -> list[ProfileInfo]:
        """Return every profile this source can load, fr-FR first."""

    def has_profile(self, profile_id: str) -> bool:
        return any(p.id == profile_id for p in self.list_profiles())


class DirectoryProfileSource(ProfileSource):
    """Load ``lang-<id>.yml`` documents from a directory.

    Parsed documents are cached per instance; callers always receive a deep
    copy so they cannot poison the cache.
    """

    def __init__(self, directory: Path | str) -> None:
        self._dir = Path(directory)
        self._cache: dict[str, dict[str, Any]] = {}

    @property
    def directory(self) -> Path:
        return self._dir

    def _path_for(self, profile_id: str) -> Path | None:
        for suffix in _PROFILE_SUFFIXES:
            candidate = self._dir / f"{_FILE_PREFIX}{profile_id}{suffix}"
            if candidate.is_file():
                return candidate
        return None

    def has_profile(self, profile_id: str) -> bool:
        return profile_id in self._cache or self._path_for(profile_id) is not None

    def load_profile(self, profile_id: str) -> dict[str, Any]:
        if profile_id in self._cache:
            return deepcopy(self._cache[profile_id])

        path = self._path_for(profile_id)
        if path is None:
            raise ProfileLoadError(profile_id, f"no profile file in {self._dir}")
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
            raise ProfileLoadError(profile_id, f"{path.name}: {exc}") from exc
        if not isinstance(data, dict):
            raise ProfileLoadError(profile_id, f"{path.name} does not contain a mapping")

        _log.info("Loaded profile %s from %s", profile_id, path)
        self._cache[profile_id] = data
        return deepcopy(data)

    def list_profiles(self) -> list[ProfileInfo]:
        if not self._dir.is_dir():
            return []
        seen: set[str] = set()
        infos: list[ProfileInfo] = []
        for path in sorted(self._dir.iterdir()):
            if path.suffix not in _PROFILE_SUFFIXES or not path.stem.startswith(_FILE_PREFIX):
                continue
            profile_id = path.stem[len(_FILE_PREFIX):]
            if profile_id in seen:
                continue
            try:
                data = self.load_profile(profile_id)
            except ProfileLoadError as exc:
                _log.warning("Skipping unreadable profile %s: %s", path, exc)
                continue
            seen.add(profile_id)
            infos.append(_info_from_data(profile_id, data, path))
        return sort_profiles(infos)

    def clear_cache(self) -> None:
        self._cache.clear()


class MappingProfileSource(ProfileSource):
    """Serve profiles from an in-memory ``{id: document}`` mapping."""

    def __init__(self, profiles: Mapping[str, Mapping[str, Any]]) -> None:
        self._profiles = {k: deepcopy(dict(v)) for k, v in profiles.items()}

    def has_profile(self, profile_id: str) -> bool:
        return profile_id in self._profiles

    def load_profile(self, profile_id: str) -> dict[str, Any]:
        try:
            return deepcopy(self._profiles[profile_id])
        except KeyError:
            raise ProfileLoadError(profile_id, "unknown profile id") from None

    def list_profiles(self) -> list[ProfileInfo]:
        return sort_profiles(_info_from_data(k, v) for k, v in self._profiles.items())


class ChainedProfileSource(ProfileSource):
    """Consult several sources in order; the first one that has the id wins."""

    def __init__(self, sources: Iterable[ProfileSource]) -> None:
        self._sources = list(sources)

    def load_profile(self, profile_id: str) -> dict[str, Any]:
        for source in self._sources:
            if source.has_profile(profile_id):
                return source.load_profile(profile_id)
        raise ProfileLoadError(profile_id, "not found in any profile source")

    def list_profiles(self) -> list[ProfileInfo]:
        merged: dict[str, ProfileInfo] = {}
        for source in self._sources:
            for info in source.list_profiles():
                merged.setdefault(info.id, info)
        return sort_profiles(merged.values())


# ---------------------------------------------------------------------------
# Well-known locations
# ---------------------------------------------------------------------------


def get_user_profiles_dir() -> Path:
    """Return the per-user profiles directory (platform-specific)."""
    system = platform.system()
    if system == "Darwin":
        base = Path.home() / "Library" / "Application Support" / "typo-correct"
    elif system == "Windows":
        base = Path.home() / "AppData" / "Roaming" / "typo-correct"
    else:
        base = Path.home() / ".config" / "typo-correct"
    return base / "profiles"


def builtin_source() -> DirectoryProfileSource:
    """Source over the profiles shipped with the package."""
    return DirectoryProfileSource(get_builtin_profiles_dir())


def default_source(extra_dirs: Iterable[Path | str] = ()) -> ProfileSource:
    """User and extra directories first, then the built-in profiles."""
    sources: list[ProfileSource] = [DirectoryProfileSource(d) for d in extra_dirs]
    user_dir = get_user_profiles_dir()
    if user_dir.is_dir():
        sources.append(DirectoryProfileSource(user_dir))
    sources.append(builtin_source())
    return ChainedProfileSource(sources)
