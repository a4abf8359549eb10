from __future__ import annotations
import argparse, datetime, json, logging, os
from competency_core.engine import AdaptiveSession
from competency_core.export import to_json
from competency_core.question_bank import load_model

SCALE = "[1=strongly disagree, 5=strongly agree]"


def ask(prompt: str) -> int:
    print(prompt)
    while True:
        v = input("Your answer (1-5): ").strip()
        if v.isdigit() and 1 <= int(v) <= 5: return int(v)
        print("Enter a number from 1 to 5.")


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Adaptive competency self-assessment")
    ap.add_argument("--content", default=None, help="directory with content files")
    ap.add_argument("--export", action="store_true", help="write a JSON export to reports/")
    ap.add_argument("-v", "--verbose", action="store_true")
    a = ap.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if a.verbose else logging.WARNING)

    model = load_model(a.content)
    started = datetime.datetime.now(datetime.timezone.utc).isoformat()
    session = AdaptiveSession(model=model)
    names = {c.id: c.name for c in model.competencies}
    print(f"Competency self-assessment (model {model.meta.version})")
    while True:
        items = session.next_items()
        if not items: break
        comp = session.current_competency()
        print(f"\n--- {names[comp.id]} ---")
        for it in items:
            session.answer(it.item_id, ask(f"(1-5) {it.statement}  {SCALE}"))

    res = session.finalize()
    print("\nCompetency levels:")
    for cid, lvl in session.achieved_levels().items():
        print(f"  {names.get(cid, cid)}: {lvl}")
    print("\nAxis scores:")
    for axis, score in res.axis_scores.items():
        print(f"  {axis.value}: {score.score_float:.2f} (level {score.level})")
    print(f"\nOverall level: {res.overall_level} ({res.overall_level_name})")

    if a.export:
        os.makedirs("reports", exist_ok=True)
        ts = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
        path = os.path.join("reports", f"assessment_{ts}.json")
        with open(path, "w", encoding="utf-8") as f:
            json.dump(to_json(model, session.answers, res, started_at=started), f, ensure_ascii=False, indent=2)
        print(f"Export saved to: {path}")
    return 0


if __name__ == "__main__": raise SystemExit(main())
