from __future__ import annotations

import itertools

import pytest

from competency_core import adaptive, config
from competency_core.types import Axis, Direction, Item

from tests.conftest import build_synthetic_model


def _items(levels: tuple[int, ...], comp: str = "c1", per_level: int = 2) -> list[Item]:
    return [
        Item(item_id=f"{comp}_{lvl}_{i}", competency_id=comp, level_target=lvl, statement="s")
        for lvl in levels
        for i in range(per_level)
    ]


def test_initial_progress_starts_mid_scale():
    p = adaptive.create_initial_progress()
    assert p.current_level == 3
    assert p.direction is Direction.INITIAL
    assert p.shown_item_ids == {} and p.passed_levels == []
    assert p.finalized is False and p.achieved_level == 1


def test_select_items_orders_by_id_and_limits_count():
    items = [
        Item(item_id="z", competency_id="c1", level_target=3, statement="s"),
        Item(item_id="b", competency_id="c1", level_target=3, statement="s"),
        Item(item_id="a", competency_id="c2", level_target=3, statement="s"),
        Item(item_id="m", competency_id="c1", level_target=3, statement="s"),
        Item(item_id="c", competency_id="c1", level_target=4, statement="s"),
    ]
    picked = adaptive.select_items_for_level(items, "c1", 3)
    assert [it.item_id for it in picked] == ["b", "m"]
    assert [it.item_id for it in adaptive.select_items_for_level(items, "c1", 3, 5)] == ["b", "m", "z"]
    assert adaptive.select_items_for_level(items, "c1", 6) == []


def test_record_shown_items_is_stable():
    p = adaptive.create_initial_progress()
    p1 = adaptive.record_shown_items(p, 3, ["a", "b"])
    assert p.shown_item_ids == {}, "input progress must not be mutated"
    assert adaptive.record_shown_items(p1, 3, ["a", "b"]) is p1
    p2 = adaptive.record_shown_items(p1, 3, ["a", "c"])
    assert p2 is not p1 and p2.shown_item_ids[3] == ["a", "c"]


@pytest.mark.parametrize(
    "answers, expected",
    [
        ({"a": 5, "b": 4}, True),
        ({"a": 4, "b": 4}, True),
        ({"a": 5, "b": 3}, False),  # avg 4.0 but only half high
        ({"a": 5, "b": 2}, False),  # avg 3.5
        ({"a": 3, "b": 3}, False),
        ({"a": 5}, False),  # not enough answered
        ({}, False),
    ],
)
def test_evaluate_level(answers, expected):
    assert adaptive.evaluate_level(answers, ["a", "b"]) is expected


def test_evaluate_level_single_item_level():
    assert adaptive.evaluate_level({"a": 4}, ["a"]) is True
    assert adaptive.evaluate_level({}, []) is False


def test_scenario_pass_then_fail_climbing():
    p = adaptive.create_initial_progress()
    answers = {"l3a": 5, "l3b": 4}
    assert adaptive.evaluate_level(answers, ["l3a", "l3b"])
    p = adaptive.advance_progress(p, True)
    assert p.direction is Direction.UP and p.current_level == 4 and not p.finalized

    answers.update({"l4a": 3, "l4b": 3})
    assert not adaptive.evaluate_level(answers, ["l4a", "l4b"])
    p = adaptive.advance_progress(p, False)
    assert p.finalized and p.achieved_level == 3
    assert p.passed_levels == [3]


def test_scenario_fail_then_pass_descending():
    p = adaptive.create_initial_progress()
    assert not adaptive.evaluate_level({"a": 3, "b": 2}, ["a", "b"])
    p = adaptive.advance_progress(p, False)
    assert p.direction is Direction.DOWN and p.current_level == 2
    p = adaptive.advance_progress(p, True)
    assert p.finalized and p.achieved_level == 2


def test_fail_while_descending_finalizes_at_floor():
    p = adaptive.advance_progress(adaptive.create_initial_progress(), False)
    p = adaptive.advance_progress(p, False)
    assert p.finalized and p.achieved_level == 1


def test_ceiling_reached_after_climbing():
    p = adaptive.create_initial_progress()
    for _ in range(5):
        p = adaptive.advance_progress(p, True)
    assert p.finalized and p.achieved_level == 7
    assert p.passed_levels == [3, 4, 5, 6, 7]


def test_initial_fail_at_floor_level(monkeypatch):
    monkeypatch.setattr(config, "ADAPTIVE_START_LEVEL", 2)
    p = adaptive.advance_progress(adaptive.create_initial_progress(), False)
    assert p.finalized and p.achieved_level == 1


def test_every_pass_fail_sequence_terminates_within_six_steps():
    for seq in itertools.product([True, False], repeat=6):
        p = adaptive.create_initial_progress()
        steps = 0
        for passed in seq:
            if p.finalized:
                break
            p = adaptive.advance_progress(p, passed)
            steps += 1
        assert p.finalized, f"sequence {seq} did not finalize"
        assert steps <= 6
        assert 1 <= p.achieved_level <= 7


def test_finalized_progress_is_not_changed():
    p = adaptive.advance_progress(adaptive.advance_progress(adaptive.create_initial_progress(), True), False)
    assert p.finalized
    for passed in (True, False):
        again = adaptive.advance_progress(p, passed)
        assert again.achieved_level == p.achieved_level
        assert again == p


def test_exhaustion_guard_while_climbing():
    items = _items((2, 3, 4))
    p = adaptive.advance_progress(adaptive.create_initial_progress(), True)
    p = adaptive.advance_progress(p, True)
    assert p.current_level == 5 and not adaptive.has_available_items(items, "c1", 5)
    guarded = adaptive.apply_exhaustion_guard(p, items, "c1")
    assert guarded.finalized and guarded.achieved_level == 4


def test_exhaustion_guard_descending_or_initial():
    items = _items((3,))
    p = adaptive.advance_progress(adaptive.create_initial_progress(), False)
    guarded = adaptive.apply_exhaustion_guard(p, items, "c1")
    assert guarded.finalized and guarded.achieved_level == 1

    empty = adaptive.apply_exhaustion_guard(adaptive.create_initial_progress(), [], "c1")
    assert empty.finalized and empty.achieved_level == 1


def test_exhaustion_guard_leaves_available_levels_alone():
    items = _items((3,))
    p = adaptive.create_initial_progress()
    assert adaptive.apply_exhaustion_guard(p, items, "c1") is p


def test_step_uses_shown_items_of_current_level():
    model = build_synthetic_model(competencies={"c1": Axis.CRAFT}, levels=(2, 3, 4))
    items = model.items
    p = adaptive.create_initial_progress()
    shown = [it.item_id for it in adaptive.select_items_for_level(items, "c1", 3)]
    p = adaptive.record_shown_items(p, 3, shown)
    p = adaptive.step(p, {shown[0]: 5, shown[1]: 5}, items, "c1")
    assert p.current_level == 4 and p.direction is Direction.UP
