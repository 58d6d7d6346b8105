"""Auto-import all pass modules so their @registry.register decorators fire."""

from typo_correct.core.passes import (  # noqa: F401
    apostrophes,
    centuries,
    dashes,
    notes,
    numbers,
    ordinals,
    punctuation,
    quotes,
    ranges,
    references,
    spacing,
)
