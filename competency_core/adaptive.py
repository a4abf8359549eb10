# competency_core/adaptive.py
"""Per-competency staircase search.

Probing starts at ``ADAPTIVE_START_LEVEL`` and shows ``ADAPTIVE_REQUIRED_COUNT``
items per level. A pass climbs one level, a fail on the first level steps one
level down; the first fail while climbing, or any result while descending,
ends the search. Every function here is pure: progress records are copied,
never mutated in place.
"""
from __future__ import annotations
import logging
from typing import Dict, Iterable, List, Optional

from . import config
from .types import CompetencyProgress, Direction, Item

log = logging.getLogger(__name__)


def _emit_trace(**values: object) -> None:
    if not config.DEBUG_TRACE:
        return
    ordered = []
    for key in config.TRACE_FIELDS:
        if key in values:
            ordered.append(f"{key}={values[key]}")
    if ordered:
        log.info("trace %s", " ".join(ordered))


def create_initial_progress() -> CompetencyProgress:
    return CompetencyProgress(
        current_level=config.ADAPTIVE_START_LEVEL,
        direction=Direction.INITIAL,
        shown_item_ids={},
        passed_levels=[],
        finalized=False,
        achieved_level=1,
    )


def select_items_for_level(
    items: Iterable[Item],
    competency_id: str,
    level: int,
    count: Optional[int] = None,
) -> List[Item]:
    n = config.ADAPTIVE_REQUIRED_COUNT if count is None else int(count)
    pool = [it for it in items if it.competency_id == competency_id and it.level_target == level]
    pool.sort(key=lambda it: it.item_id)
    return pool[:n]


def has_available_items(items: Iterable[Item], competency_id: str, level: int) -> bool:
    return any(it.competency_id == competency_id and it.level_target == level for it in items)


def record_shown_items(progress: CompetencyProgress, level: int, item_ids: List[str]) -> CompetencyProgress:
    """Pin the item set for ``level``; returns ``progress`` itself when unchanged."""
    if progress.shown_item_ids.get(level) == list(item_ids):
        return progress
    nxt = progress.copy()
    nxt.shown_item_ids[level] = list(item_ids)
    return nxt


def evaluate_level(answers: Dict[str, int], item_ids: List[str]) -> bool:
    """Pass iff mean >= 4 and at least 60% of the answered scores are >= 4.

    Too few answers (fewer than ``min(required, len(item_ids))``) is a fail,
    never an error. The share is taken over answered items only.
    """
    scores = [answers[i] for i in item_ids if answers.get(i) is not None]
    if not scores or len(scores) < min(config.ADAPTIVE_REQUIRED_COUNT, len(item_ids)):
        return False
    avg = sum(scores) / len(scores)
    share = sum(1 for v in scores if v >= config.HIGH_SCORE) / len(scores)
    return avg >= config.ADAPTIVE_PASS_AVG and share >= config.ADAPTIVE_PASS_SHARE


def _best_passed(progress: CompetencyProgress) -> int:
    return max(progress.passed_levels) if progress.passed_levels else 1


def advance_progress(progress: CompetencyProgress, passed: bool) -> CompetencyProgress:
    nxt = progress.copy()
    if nxt.finalized:
        return nxt

    level_before = nxt.current_level
    if passed:
        nxt.passed_levels.append(nxt.current_level)
        if nxt.direction is Direction.DOWN:
            nxt.finalized = True
            nxt.achieved_level = nxt.current_level
        elif nxt.current_level >= config.ADAPTIVE_MAX_LEVEL:
            nxt.finalized = True
            nxt.achieved_level = config.ADAPTIVE_MAX_LEVEL
        else:
            nxt.direction = Direction.UP
            nxt.current_level += 1
    else:
        if nxt.direction is Direction.UP:
            nxt.finalized = True
            nxt.achieved_level = _best_passed(nxt)
        elif nxt.direction is Direction.INITIAL:
            if nxt.current_level <= config.ADAPTIVE_FLOOR_LEVEL:
                nxt.finalized = True
                nxt.achieved_level = 1
            else:
                nxt.direction = Direction.DOWN
                nxt.current_level -= 1
        elif nxt.direction is Direction.DOWN:
            nxt.finalized = True
            nxt.achieved_level = 1
        else:
            raise ValueError(f"unknown direction {nxt.direction!r}")

    log.debug(
        "advance level=%d->%d passed=%s direction=%s finalized=%s achieved=%d",
        level_before, nxt.current_level, passed, nxt.direction.value, nxt.finalized, nxt.achieved_level,
    )
    return nxt


def apply_exhaustion_guard(
    progress: CompetencyProgress, items: Iterable[Item], competency_id: str
) -> CompetencyProgress:
    """Force-finalize when the probed level has no content at all."""
    if progress.finalized or has_available_items(items, competency_id, progress.current_level):
        return progress
    nxt = progress.copy()
    nxt.finalized = True
    nxt.achieved_level = _best_passed(nxt) if nxt.direction is Direction.UP else 1
    log.debug(
        "exhausted competency=%s level=%d achieved=%d", competency_id, nxt.current_level, nxt.achieved_level
    )
    return nxt


def step(
    progress: CompetencyProgress,
    answers: Dict[str, int],
    items: List[Item],
    competency_id: str,
) -> CompetencyProgress:
    """Evaluate the current level's shown items, advance, then guard."""
    if progress.finalized:
        return progress
    shown = progress.shown_item_ids.get(progress.current_level, [])
    passed = evaluate_level(answers, shown)
    level_before = progress.current_level
    nxt = apply_exhaustion_guard(advance_progress(progress, passed), items, competency_id)
    _emit_trace(
        competency=competency_id,
        level_before=level_before,
        level_after=nxt.current_level,
        direction=nxt.direction.value,
        passed=int(passed),
        finalized=int(nxt.finalized),
        achieved=nxt.achieved_level,
    )
    return nxt
