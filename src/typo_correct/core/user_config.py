"""UserConfig: read the persisted user preferences document.

Only reading is supported; writing preferences back is the host's business.
Shape (version 1)::

    version: 1
    languageProfile: fr-FR
    passes:                    # list of enabled ids, or id -> bool
      spacing.typographic: true
      numbers.format: false
    styles:                    # role id -> style name
      superscript-ordinal: Exposant
      note-marker: Appel de note
    profileOverrides:
      numbers.thousandsSeparator: "~S"

``styles`` also accepts the older flat keys (``noteStyle``, ``italicStyle``,
``smallCapsStyle``, ``capitalsStyle``, ``superscriptStyle``).
"""

from __future__ import annotations

import logging
from copy import deepcopy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml

from typo_correct.core.errors import ConfigError
from typo_correct.core.models import (
    ROLE_CAPITALS,
    ROLE_CENTURY_NUMERAL,
    ROLE_ITALIC,
    ROLE_NOTE_MARKER,
    ROLE_SMALL_CAPS,
    ROLE_SUPERSCRIPT_ORDINAL,
)

_log = logging.getLogger(__name__)

SUPPORTED_VERSIONS = frozenset({1})

# Flat style keys -> the roles they cover.
LEGACY_STYLE_KEYS: dict[str, tuple[str, ...]] = {
    "noteStyle": (ROLE_NOTE_MARKER,),
    "italicStyle": (ROLE_ITALIC,),
    "smallCapsStyle": (ROLE_SMALL_CAPS, ROLE_CENTURY_NUMERAL),
    "capitalsStyle": (ROLE_CAPITALS,),
    "superscriptStyle": (ROLE_SUPERSCRIPT_ORDINAL,),
}


@dataclass
class UserConfig:
    version: int = 1
    language_profile: str = "fr-FR"
    # None = every registered pass; otherwise an explicit list or a toggle map
    passes: list[str] | dict[str, bool] | None = None
    role_map: dict[str, str] = field(default_factory=dict)
    profile_overrides: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UserConfig":
        if not isinstance(data, Mapping):
            raise ConfigError("configuration document must be a mapping")

        version = data.get("version", 1)
        if version not in SUPPORTED_VERSIONS:
            raise ConfigError(f"unsupported configuration version {version!r}")

        profile_id = data.get("languageProfile", "fr-FR")
        if not isinstance(profile_id, str) or not profile_id:
            raise ConfigError("languageProfile must be a non-empty string")

        passes = data.get("passes")
        if passes is not None:
            if isinstance(passes, Mapping):
                passes = {str(k): bool(v) for k, v in passes.items()}
            elif isinstance(passes, list):
                passes = [str(p) for p in passes]
            else:
                raise ConfigError("passes must be a list of ids or a mapping of id to bool")

        styles = data.get("styles") or {}
        if not isinstance(styles, Mapping):
            raise ConfigError("styles must be a mapping")
        role_map: dict[str, str] = {}
        for key, style in styles.items():
            if not style:
                continue
            for role in LEGACY_STYLE_KEYS.get(key, (key,)):
                role_map.setdefault(role, str(style))

        overrides = data.get("profileOverrides") or {}
        if not isinstance(overrides, Mapping):
            raise ConfigError("profileOverrides must be a mapping")

        known = {"version", "languageProfile", "passes", "styles", "profileOverrides"}
        extra = {k: deepcopy(v) for k, v in data.items() if k not in known}
        return cls(
            version=int(version),
            language_profile=profile_id,
            passes=passes,
            role_map=role_map,
            profile_overrides=deepcopy(dict(overrides)),
            extra=extra,
        )

    @classmethod
    def load(cls, path: Path | str) -> "UserConfig":
        path = Path(path)
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"cannot read {path}: {exc}") from exc
        _log.info("Loaded user configuration from %s", path)
        return cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = deepcopy(self.extra)
        out["version"] = self.version
        out["languageProfile"] = self.language_profile
        if self.passes is not None:
            out["passes"] = deepcopy(self.passes)
        out["styles"] = dict(self.role_map)
        if self.profile_overrides:
            out["profileOverrides"] = deepcopy(self.profile_overrides)
        return out

    def enabled_pass_ids(self, available: Iterable[str]) -> list[str] | None:
        """Resolve ``passes`` against the ids a registry offers.

        A list is taken as-is, a mapping switches individual passes off (or
        on) relative to "everything enabled", and ``None`` means every pass.
        """
        if self.passes is None:
            return None
        if isinstance(self.passes, list):
            return list(self.passes)
        available = list(available)
        unknown = sorted(set(self.passes) - set(available))
        if unknown:
            _log.warning("Configuration mentions unknown pass id(s): %s", ", ".join(unknown))
        return [pid for pid in available if self.passes.get(pid, True)]
