"""Helpers for locating the built-in language profiles.

Profiles ship as data files next to the code, so the directory is resolved
relative to the installed package rather than the working directory.
"""

from __future__ import annotations

from pathlib import Path

_PACKAGE_ROOT = Path(__file__).resolve().parent.parent


def get_builtin_profiles_dir() -> Path:
    """Return the absolute Path to the built-in profiles directory."""
    return _PACKAGE_ROOT / "resources" / "profiles"

