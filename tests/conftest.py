from __future__ import annotations

import pytest

from competency_core.types import (
    Axis,
    Competency,
    ContentModel,
    Item,
    LevelDefinition,
    ModelMeta,
)


LEVEL_NAMES = ["Trainee", "Junior", "Middle", "Senior", "Lead", "Principal", "Head"]


def build_synthetic_model(
    *,
    competencies: dict[str, Axis] | None = None,
    levels: tuple[int, ...] = tuple(range(1, 8)),
    items_per_level: int = 2,
    with_mapping: bool = True,
) -> ContentModel:
    """Create a deterministic synthetic content model for tests."""

    comps = competencies or {
        "craft_a": Axis.CRAFT,
        "craft_b": Axis.CRAFT,
        "impact_a": Axis.IMPACT,
        "lead_a": Axis.LEADERSHIP,
    }
    items: list[Item] = []
    for comp_id in comps:
        for level in levels:
            for idx in range(items_per_level):
                items.append(
                    Item(
                        item_id=f"{comp_id}_l{level}_{idx}",
                        competency_id=comp_id,
                        level_target=level,
                        statement=f"{comp_id} statement {level} #{idx}",
                    )
                )

    mapping: dict[Axis, list[str]] = {}
    if with_mapping:
        for comp_id, axis in comps.items():
            mapping.setdefault(axis, []).append(comp_id)

    return ContentModel(
        meta=ModelMeta(
            version="test",
            levels=[LevelDefinition(id=i + 1, name=n) for i, n in enumerate(LEVEL_NAMES[:5])],
            axes=list(Axis),
        ),
        competencies=[
            Competency(id=cid, name=cid.replace("_", " ").title(), axis=axis) for cid, axis in comps.items()
        ],
        items=items,
        axis_mapping=mapping,
    )


def answer_levels(model: ContentModel, plan: dict[str, dict[int, int]]) -> dict[str, int]:
    """Answer every item of ``competency -> {level: score}`` with that score."""

    out: dict[str, int] = {}
    for it in model.items:
        score = plan.get(it.competency_id, {}).get(it.level_target)
        if score is not None:
            out[it.item_id] = score
    return out


@pytest.fixture
def synthetic_model() -> ContentModel:
    return build_synthetic_model()
