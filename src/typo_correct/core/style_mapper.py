"""Style mapper: turn logical role spans into concrete document styles."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping

from typo_correct.core.errors import UnknownRoleError
from typo_correct.core.models import Span, StyleApplication

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class MaterializedStyle:
    span: Span
    style_name: str
    role_id: str


def materialize(
    spans: Iterable[StyleApplication],
    role_map: Mapping[str, str],
) -> list[MaterializedStyle]:
    """Map every span's role to its style name.

    Raises:
        UnknownRoleError: listing every role missing from ``role_map``. The
            caller decides whether to treat that as fatal; see
            :func:`materialize_lenient` for the skipping variant.
    """
    spans = list(spans)
    missing = sorted({app.role_id for app in spans if not role_map.get(app.role_id)})
    if missing:
        raise UnknownRoleError(missing)
    return [MaterializedStyle(app.span, role_map[app.role_id], app.role_id) for app in spans]


def materialize_lenient(
    spans: Iterable[StyleApplication],
    role_map: Mapping[str, str],
) -> tuple[list[MaterializedStyle], list[str]]:
    """Like :func:`materialize` but skip unmapped roles.

    Returns:
        ``(styles, unknown_role_ids)``.
    """
    styles: list[MaterializedStyle] = []
    unknown: set[str] = set()
    for app in spans:
        style = role_map.get(app.role_id)
        if not style:
            unknown.add(app.role_id)
            continue
        styles.append(MaterializedStyle(app.span, style, app.role_id))
    if unknown:
        _log.warning("No style mapped for role(s): %s", ", ".join(sorted(unknown)))
    return styles, sorted(unknown)
