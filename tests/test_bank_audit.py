from __future__ import annotations

import json

import competency_core.audit_bank as audit_bank
from competency_core import config
from competency_core.types import Axis, ContentModel
from tests.conftest import build_synthetic_model


def test_audit_flags_sparse_levels(monkeypatch):
    monkeypatch.setattr(config, "ADAPTIVE_REQUIRED_COUNT", 2, raising=False)
    model = build_synthetic_model(competencies={"c1": Axis.CRAFT}, levels=(2, 3, 4), items_per_level=1)

    summary = audit_bank.audit_items(model)
    joined = "\n".join(summary["warnings"])
    assert "c1 level 3 has 1 (<2)" in joined
    assert "c1 level 1" not in joined, "empty levels are not sparse"
    assert summary["coverage"]["c1"]["levels"][3] == 1
    assert summary["totals"] == {"items": 3, "competencies": 1}


def test_audit_flags_missing_start_level_and_mapping():
    model = build_synthetic_model(competencies={"c1": Axis.CRAFT, "c2": Axis.IMPACT}, levels=(1, 2))
    orphaned = ContentModel(
        meta=model.meta,
        competencies=model.competencies,
        items=model.items,
        axis_mapping={Axis.CRAFT: ["c1"]},
    )
    warnings = audit_bank.audit_items(orphaned)["warnings"]
    assert "c1 has no items at start level 3" in warnings
    assert "c2 is not mapped to any axis" in warnings


def test_full_model_has_no_warnings(synthetic_model):
    assert audit_bank.audit_items(synthetic_model)["warnings"] == []


def test_main_returns_warning_exit(monkeypatch, capsys, tmp_path):
    model = build_synthetic_model(competencies={"c1": Axis.CRAFT}, levels=(3,), items_per_level=1)
    monkeypatch.setattr(audit_bank, "load_model", lambda: model)
    out = tmp_path / "audit.json"
    real_write = audit_bank.write_summary
    monkeypatch.setattr(audit_bank, "write_summary", lambda summary: real_write(summary, path=out))

    exit_code = audit_bank.main([])
    captured = capsys.readouterr()

    assert exit_code == 2
    assert "Competency: c1" in captured.out
    assert json.loads(out.read_text(encoding="utf-8"))["totals"]["items"] == 1
