from __future__ import annotations
import argparse
from collections import defaultdict
from competency_core import config
from competency_core.question_bank import competency_axis, load_model


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Print per-competency item coverage")
    ap.add_argument("--content", default=None, help="directory with content files")
    a = ap.parse_args(argv)

    model = load_model(a.content)
    axes = competency_axis(model)
    by_comp = defaultdict(list)
    for it in model.items:
        by_comp[it.competency_id].append(it)

    need = config.ADAPTIVE_REQUIRED_COUNT
    print(f"Model {model.meta.version}: {len(model.competencies)} competencies, {len(model.items)} items.")
    print(f"Target: >={need} items per populated level, items at start level {config.ADAPTIVE_START_LEVEL}.\n")

    short = 0
    for comp in model.competencies:
        items = by_comp[comp.id]
        print(f"{comp.name} [{axes[comp.id].value}]: {len(items)} items")
        gaps = []
        for lvl in range(config.LEVEL_MIN, config.LEVEL_MAX + 1):
            n = sum(1 for it in items if it.level_target == lvl)
            print(f"  level {lvl}: {n:2d}")
            if n < need:
                gaps.append(lvl)
        if gaps:
            short += 1
            print(f"  → Levels below target: {', '.join(str(g) for g in gaps)}\n")
        else:
            print("  ✓ Meets targets\n")
    return 1 if short else 0


if __name__ == "__main__":
    raise SystemExit(main())
