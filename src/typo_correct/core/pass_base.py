"""CorrectionPass base class and PassRegistry."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from typo_correct.core.errors import DuplicatePassError
from typo_correct.core.models import ConvergenceMode, PassCategory, PassOutput

if TYPE_CHECKING:
    from typo_correct.core.profile import LanguageProfile


class CorrectionPass(ABC):
    """Abstract base for all correction passes.

    A pass is a pure function of ``(text, profile)``: it must not keep state
    between calls, read anything but its arguments, or mutate the profile.
    """

    #: Stable unique identifier, e.g. "spacing.typographic"
    pass_id: str

    #: Human-readable name shown by the CLI
    name: str = ""

    #: Position in the fixed pipeline order; lower runs first.
    rank: int = 1000

    category: PassCategory = PassCategory.SPACING

    mode: ConvergenceMode = ConvergenceMode.SINGLE

    #: Only meaningful for ITERATE passes; ``None`` means the pipeline default.
    max_iterations: int | None = None

    #: Whether ``apply(apply(x).text).text == apply(x).text`` holds. ITERATE passes
    #: that only reach a fixed point under the loop guard set this to False.
    idempotent: bool = True

    def applies_to(self, profile: "LanguageProfile") -> bool:
        """Return False to have the pipeline skip this pass for ``profile``."""
        return True

    @abstractmethod
    def apply(self, text: str, profile: "LanguageProfile") -> PassOutput:
        """Transform ``text``.

        Returns:
            The new text plus style applications expressed against it.
        """


class PassRegistry:
    """Catalogue of pass classes keyed by ``pass_id``.

    Not a singleton: the module-level :data:`registry` holds the built-in
    passes, and tests build private registries for synthetic passes.
    """

    def __init__(self) -> None:
        self._passes: dict[str, type[CorrectionPass]] = {}

    def register(self, cls: type[CorrectionPass]) -> type[CorrectionPass]:
        """Register a CorrectionPass class. Can be used as a decorator."""
        existing = self._passes.get(cls.pass_id)
        if existing is not None and existing is not cls:
            raise DuplicatePassError(
                f"pass id {cls.pass_id!r} already registered by {existing.__name__}"
            )
        self._passes[cls.pass_id] = cls
        return cls

    def get(self, pass_id: str) -> type[CorrectionPass] | None:
        return self._passes.get(pass_id)

    def __contains__(self, pass_id: object) -> bool:
        return pass_id in self._passes

    def __len__(self) -> int:
        return len(self._passes)

    def all_ids(self) -> list[str]:
        """Pass ids in pipeline order."""
        return [cls.pass_id for cls in self.all_passes()]

    def all_passes(self) -> list[type[CorrectionPass]]:
        return sorted(self._passes.values(), key=lambda c: (c.rank, c.pass_id))


# Module-level convenience instance
registry = PassRegistry()
