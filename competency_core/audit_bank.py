from __future__ import annotations

import json
from collections import Counter
from pathlib import Path

from . import config
from .question_bank import load_model
from .types import ContentModel

LEVELS: tuple[int, ...] = tuple(range(config.LEVEL_MIN, config.LEVEL_MAX + 1))


def _blank_competency(axis: str | None) -> dict[str, object]:
    return {"axis": axis, "levels": {lvl: 0 for lvl in LEVELS}, "total": 0}


def audit_items(model: ContentModel) -> dict[str, object]:
    mapped: Counter[str] = Counter()
    axis_of: dict[str, str] = {}
    for axis, ids in model.axis_mapping.items():
        for cid in ids:
            mapped[cid] += 1
            axis_of.setdefault(cid, axis.value)

    coverage: dict[str, dict[str, object]] = {
        c.id: _blank_competency(axis_of.get(c.id, c.axis.value)) for c in model.competencies
    }
    totals = {"items": 0, "competencies": len(model.competencies)}

    for item in model.items:
        data = coverage.setdefault(item.competency_id, _blank_competency(None))
        levels: dict[int, int] = data["levels"]  # type: ignore[assignment]
        levels[item.level_target] = levels.get(item.level_target, 0) + 1
        data["total"] = int(data["total"]) + 1  # type: ignore[arg-type]
        totals["items"] += 1

    need = config.ADAPTIVE_REQUIRED_COUNT
    warnings: list[str] = []
    for comp_id, data in coverage.items():
        levels = data["levels"]  # type: ignore[assignment]
        for lvl in LEVELS:
            have = levels.get(lvl, 0)
            if 0 < have < need:
                warnings.append(f"{comp_id} level {lvl} has {have} (<{need})")
        if levels.get(config.ADAPTIVE_START_LEVEL, 0) == 0:
            warnings.append(f"{comp_id} has no items at start level {config.ADAPTIVE_START_LEVEL}")
        if model.axis_mapping and mapped[comp_id] == 0:
            warnings.append(f"{comp_id} is not mapped to any axis")
        if mapped[comp_id] > 1:
            warnings.append(f"{comp_id} is mapped to {mapped[comp_id]} axes")

    return {"coverage": coverage, "warnings": warnings, "totals": totals}


def _format_row(levels: dict[int, int]) -> str:
    return "  ".join(f"L{lvl}:{levels.get(lvl, 0):3d}" for lvl in LEVELS)


def print_report(summary: dict[str, object]) -> None:
    coverage: dict[str, dict[str, object]] = summary["coverage"]  # type: ignore[assignment]
    print("=== Content Coverage ===")
    for comp_id in sorted(coverage):
        data = coverage[comp_id]
        print(f"\nCompetency: {comp_id} ({data['axis']})")
        print("  " + _format_row(data["levels"]))  # type: ignore[arg-type]

    warnings: list[str] = summary["warnings"]  # type: ignore[assignment]
    if warnings:
        print("\nWarnings:")
        for msg in warnings:
            print(f" - {msg}")
    else:
        print("\nNo warnings.")

    print("\nTotals:", summary["totals"])


def write_summary(summary: dict[str, object], path: Path = Path("/tmp/content_audit.json")) -> str:
    text = json.dumps(summary, indent=2, sort_keys=True)
    path.write_text(text + "\n", encoding="utf-8")
    print(text)
    return text


def main(_argv: list[str] | None = None) -> int:
    model = load_model()
    summary = audit_items(model)
    print_report(summary)
    write_summary(summary)
    return 2 if summary["warnings"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
