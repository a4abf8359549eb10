"""Helpers to export a scored answer set in JSON/CSV formats."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional
import csv
import io

from .types import AssessmentResults, ContentModel

_FIELDS: tuple[str, ...] = (
    "competency_id",
    "competency_name",
    "axis",
    "achieved_level",
    "achieved_level_name",
    "next_level",
    "gap_to_next",
    "unanswered_count",
    "total_items",
)


def _row(entry: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key in _FIELDS:
        val = entry.get(key)
        if key in {"achieved_level", "gap_to_next", "unanswered_count", "total_items"}:
            try:
                out[key] = int(val)
            except (TypeError, ValueError):
                out[key] = 0
        else:
            out[key] = "" if val is None else str(val)
    return out


def to_json(
    model: ContentModel,
    answers: Dict[str, int],
    results: AssessmentResults,
    *,
    started_at: Optional[str] = None,
    exported_at: Optional[str] = None,
) -> Dict[str, Any]:
    """Return a JSON-safe export payload: answers plus the derived results."""

    return {
        "exported_at": exported_at or datetime.now(timezone.utc).isoformat(),
        "started_at": started_at,
        "model_version": model.meta.version,
        "answers": dict(sorted(answers.items())),
        "results": results.to_dict(),
    }


def to_csv(results: AssessmentResults) -> str:
    """Render per-competency results as CSV with a fixed header."""

    data = results.to_dict()
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=_FIELDS)
    writer.writeheader()
    for entry in data["competency_results"]:
        writer.writerow(_row(entry))
    return buf.getvalue()


__all__ = ["to_json", "to_csv"]
