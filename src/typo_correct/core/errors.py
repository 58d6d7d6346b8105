"""Exception hierarchy for the correction engine."""

from __future__ import annotations


class TypoCorrectError(Exception):
    """Base class for every error raised by typo_correct."""


class ProfileLoadError(TypoCorrectError):
    """The profile source is unavailable or the document cannot be parsed."""

    def __init__(self, profile_id: str, reason: str) -> None:
        super().__init__(f"Cannot load profile {profile_id!r}: {reason}")
        self.profile_id = profile_id
        self.reason = reason


class ProfileValidationError(TypoCorrectError):
    """A loaded profile lacks required rule groups or has malformed values."""

    def __init__(self, profile_id: str, problems: list[str]) -> None:
        joined = "; ".join(problems)
        super().__init__(f"Invalid profile {profile_id!r}: {joined}")
        self.profile_id = profile_id
        self.problems = list(problems)


class MarkerCollisionError(TypoCorrectError):
    """Decoding met a marker token that the table does not know."""

    def __init__(self, token: str, detail: str = "") -> None:
        msg = f"Unknown marker token {token!r}"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)
        self.token = token


class UnknownRoleError(TypoCorrectError):
    """A style span references a role absent from the role map."""

    def __init__(self, role_ids: list[str]) -> None:
        super().__init__(f"No style mapped for role(s): {', '.join(role_ids)}")
        self.role_ids = list(role_ids)


class DuplicatePassError(TypoCorrectError):
    """Two passes were registered under the same id."""


class ConfigError(TypoCorrectError):
    """A user configuration document is malformed or has an unsupported version."""
