"""Batch correction of tabular data.

Handles:
- Reading a CSV file with encoding detection via chardet (first 32 KB)
  and delimiter detection via csv.Sniffer
- Correcting selected text columns of a DataFrame cell by cell
- A per-cell report (changes, span count, diagnostics)
- Writing the corrected table back as CSV
"""

from __future__ import annotations

import codecs
import csv
import logging
from pathlib import Path
from typing import Iterable

import chardet
import pandas as pd

from typo_correct.core.errors import MarkerCollisionError
from typo_correct.core.pipeline import CorrectionPipeline
from typo_correct.core.profile import LanguageProfile

_log = logging.getLogger(__name__)

REPORT_COLUMNS = ["row", "column", "changed", "spans", "diagnostics", "error"]

_FALLBACK_DELIMITERS = [";", ",", "\t", "|"]


# ---------------------------------------------------------------------------
# Reading / writing
# ---------------------------------------------------------------------------


def read_table(
    path: str | Path,
    encoding: str | None = None,
    delimiter: str | None = None,
) -> pd.DataFrame:
    """Load a CSV file as a string DataFrame (first row is the header).

    Args:
        path: CSV file.
        encoding: Override encoding detection.
        delimiter: Override delimiter detection.
    """
    path = Path(path)
    raw_bytes = path.read_bytes()
    encoding = encoding or detect_encoding(raw_bytes)
    delimiter = delimiter or detect_delimiter(raw_bytes, encoding)
    _log.debug("Reading %s as %s, delimiter %r", path, encoding, delimiter)

    with path.open(newline="", encoding=encoding, errors="replace") as f:
        rows = [list(row) for row in csv.reader(f, delimiter=delimiter)]
    if not rows:
        return pd.DataFrame(dtype=str)

    width = max(len(r) for r in rows)
    padded = [r + [""] * (width - len(r)) for r in rows]
    header = [h.strip() or f"Unnamed_{i}" for i, h in enumerate(padded[0])]
    return pd.DataFrame(padded[1:], columns=header, dtype=str)


def write_table(
    df: pd.DataFrame, path: str | Path, delimiter: str = ";", bom: bool = False
) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    encoding = "utf-8-sig" if bom else "utf-8"

    with path.open("w", encoding=encoding, newline="") as f:
        writer = csv.writer(f, delimiter=delimiter, quotechar='"', quoting=csv.QUOTE_MINIMAL)
        writer.writerow(list(df.columns))
        for row in df.itertuples(index=False, name=None):
            writer.writerow(["" if pd.isna(v) else str(v) for v in row])


def detect_encoding(raw_bytes: bytes) -> str:
    sample = raw_bytes[:32768]
    result = chardet.detect(sample)
    encoding = result.get("encoding") or "utf-8"
    confidence = result.get("confidence", 0.0)
    # Low confidence: utf-8 is the safer guess for prose
    if confidence < 0.7:
        encoding = "utf-8"
    normalized = encoding.lower().replace("-", "").replace("_", "")
    alias_map = {
        "utf8": "utf-8",
        "utf8bom": "utf-8-sig",
        "utf8sig": "utf-8-sig",
        "utf16": "utf-16",
        "latin1": "latin-1",
        "iso88591": "latin-1",
        "windows1252": "cp1252",
    }
    candidate = alias_map.get(normalized, encoding)
    try:
        candidate = codecs.lookup(candidate).name
    except LookupError:
        candidate = "utf-8"
    return candidate


def detect_delimiter(raw_bytes: bytes, encoding: str) -> str:
    sample = raw_bytes[:32768].decode(encoding, errors="replace")
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters="".join(_FALLBACK_DELIMITERS))
        return dialect.delimiter
    except csv.Error:
        counts = {d: sample.count(d) for d in _FALLBACK_DELIMITERS}
        best = max(counts, key=lambda k: counts[k])
        return best if counts[best] > 0 else ","


# ---------------------------------------------------------------------------
# Correction
# ---------------------------------------------------------------------------


def correct_series(
    series: pd.Series,
    profile: LanguageProfile,
    enabled_pass_ids: Iterable[str] | None = None,
    pipeline: CorrectionPipeline | None = None,
) -> pd.Series:
    """Return a corrected copy of ``series``; missing cells stay missing."""
    pipeline = pipeline or CorrectionPipeline()
    ids = list(enabled_pass_ids) if enabled_pass_ids is not None else None

    def _fix(value):
        if pd.isna(value) or not isinstance(value, str):
            return value
        return pipeline.run(value, profile, ids).text

    return series.map(_fix)


def correct_frame(
    df: pd.DataFrame,
    profile: LanguageProfile,
    columns: Iterable[str] | None = None,
    enabled_pass_ids: Iterable[str] | None = None,
    pipeline: CorrectionPipeline | None = None,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Correct the text cells of ``df``.

    Args:
        df: Input table; it is not modified.
        profile: Resolved language profile.
        columns: Columns to correct; defaults to every column.
        enabled_pass_ids: Passes to run; ``None`` runs all of them.
        pipeline: Pipeline to reuse across cells.

    Returns:
        ``(corrected, report)``. The report has one row per non-empty cell
        with the columns listed in :data:`REPORT_COLUMNS`. A cell whose
        correction raised :class:`MarkerCollisionError` keeps its original
        value and has the error message in the report.

    Raises:
        KeyError: if a requested column does not exist.
    """
    pipeline = pipeline or CorrectionPipeline()
    ids = list(enabled_pass_ids) if enabled_pass_ids is not None else None
    targets = list(columns) if columns is not None else list(df.columns)
    missing = [c for c in targets if c not in df.columns]
    if missing:
        raise KeyError(f"Unknown column(s): {', '.join(map(str, missing))}")

    out = df.copy()
    records: list[dict] = []
    for col in targets:
        for idx, value in df[col].items():
            if pd.isna(value) or not isinstance(value, str) or not value:
                continue
            try:
                result = pipeline.run(value, profile, ids)
            except MarkerCollisionError as exc:
                _log.error("Cell (%s, %s) left unchanged: %s", idx, col, exc)
                records.append(
                    {"row": idx, "column": col, "changed": False, "spans": 0,
                     "diagnostics": "", "error": str(exc)}
                )
                continue
            out.at[idx, col] = result.text
            records.append(
                {
                    "row": idx,
                    "column": col,
                    "changed": result.text != value,
                    "spans": len(result.spans),
                    "diagnostics": "; ".join(
                        f"{d.pass_id}:{d.kind.value}" for d in result.diagnostics
                    ),
                    "error": "",
                }
            )

    report = pd.DataFrame(records, columns=REPORT_COLUMNS)
    changed = int(report["changed"].sum()) if not report.empty else 0
    _log.info("Corrected %d cell(s), %d changed", len(report), changed)
    return out, report
