"""LoopGuard: bounded re-application of a pass until its output stops changing."""

from __future__ import annotations

import logging
from typing import Callable

from typo_correct.core.models import GuardState, PassOutput

_log = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 50


class LoopGuard:
    """Drive one iterate-to-fixpoint pass invocation.

    State goes ``RUNNING -> CONVERGED`` when an application returns its input
    unchanged, or ``RUNNING -> MAX_ITERATIONS_EXCEEDED`` when ``max_iterations``
    applications all changed the text. In the second case the last produced
    text is kept; the caller reports the non-convergence.
    """

    def __init__(self, max_iterations: int = DEFAULT_MAX_ITERATIONS) -> None:
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self.max_iterations = max_iterations
        self.state = GuardState.RUNNING
        self.iterations = 0

    @property
    def converged(self) -> bool:
        return self.state == GuardState.CONVERGED

    def run(self, step: Callable[[str], PassOutput], text: str) -> PassOutput:
        """Apply ``step`` repeatedly starting from ``text``."""
        if self.state != GuardState.RUNNING:
            raise RuntimeError("LoopGuard instances are single-use")

        current = PassOutput(text)
        while True:
            output = step(current.text)
            self.iterations += 1
            if output.text == current.text:
                self.state = GuardState.CONVERGED
                _log.debug("Converged after %d iteration(s)", self.iterations)
                return output
            current = output
            if self.iterations >= self.max_iterations:
                self.state = GuardState.MAX_ITERATIONS_EXCEEDED
                _log.warning("No fixpoint after %d iterations", self.iterations)
                return current
