# competency_core/scoring.py
from __future__ import annotations
import math
from typing import Callable, Dict, List, Optional

from . import config
from .question_bank import competency_axis, items_for, level_name
from .types import (
    AssessmentResults,
    Axis,
    AxisScore,
    CompetencyGap,
    CompetencyResult,
    ContentModel,
    GapDirection,
    LowItem,
    Role,
)


def _strict_pass(scores: List[int], share: float) -> bool:
    return all(v >= config.HIGH_SCORE for v in scores)


def _lenient_pass(scores: List[int], share: float) -> bool:
    return share >= config.LENIENT_PASS_SHARE


# Leadership is strict: every answered item must be >= 4.
_PASS_RULES: Dict[Axis, Callable[[List[int], float], bool]] = {
    Axis.CRAFT: _lenient_pass,
    Axis.IMPACT: _lenient_pass,
    Axis.LEADERSHIP: _strict_pass,
}


def _competency_result(model: ContentModel, comp, axis: Axis, answers: Dict[str, int]) -> CompetencyResult:
    comp_items = items_for(model, comp.id)
    passes = _PASS_RULES[axis]

    achieved = 1
    avg_per_level: Dict[int, float] = {}
    share_per_level: Dict[int, float] = {}
    for level in sorted({it.level_target for it in comp_items}):
        scores = [
            answers[it.item_id]
            for it in comp_items
            if it.level_target == level and answers.get(it.item_id) is not None
        ]
        if not scores:
            avg_per_level[level] = 0.0
            share_per_level[level] = 0.0
            continue
        avg = sum(scores) / len(scores)
        share = sum(1 for v in scores if v >= config.HIGH_SCORE) / len(scores)
        avg_per_level[level] = round(avg, 2)
        share_per_level[level] = round(share, 2)
        if passes(scores, share):
            achieved = level

    achieved = max(1, min(config.ROLLUP_MAX_LEVEL, achieved))
    next_level = achieved + 1 if achieved < config.ROLLUP_MAX_LEVEL else None
    return CompetencyResult(
        competency_id=comp.id,
        competency_name=comp.name,
        axis=axis,
        achieved_level=achieved,
        achieved_level_name=level_name(model, achieved),
        next_level=next_level,
        avg_per_level=avg_per_level,
        share_per_level=share_per_level,
        unanswered_count=sum(1 for it in comp_items if answers.get(it.item_id) is None),
        total_items=len(comp_items),
        gap_to_next=(next_level - achieved) if next_level is not None else 0,
    )


def _axis_scores(model: ContentModel, results: List[CompetencyResult]) -> Dict[Axis, AxisScore]:
    order: List[Axis] = list(model.axis_mapping)
    order += [a for a in (model.meta.axes or list(Axis)) if a not in order]
    out: Dict[Axis, AxisScore] = {}
    for axis in order:
        members = [cr for cr in results if cr.axis is axis]
        if not members:
            continue
        avg = sum(cr.achieved_level for cr in members) / len(members)
        out[axis] = AxisScore(
            axis=axis,
            score_float=round(avg, 2),
            level=max(1, min(config.ROLLUP_MAX_LEVEL, math.floor(avg))),
            competency_count=len(members),
        )
    return out


def overall_level(axis_levels: List[int]) -> int:
    """Highest n where >= 2 axes reach n and no axis sits below n - 1.

    Fewer than three axes always yields 1.
    """
    if len(axis_levels) < config.OVERALL_MIN_AXES:
        return 1
    for n in range(config.ROLLUP_MAX_LEVEL, 0, -1):
        at_least = sum(1 for lvl in axis_levels if lvl >= n)
        none_below = all(lvl >= n - 1 for lvl in axis_levels)
        if at_least >= config.OVERALL_MIN_AXES_AT_LEVEL and none_below:
            return n
    return 1


def calculate_results(model: ContentModel, answers: Dict[str, int]) -> AssessmentResults:
    total_items = len(model.items)
    total_answered = sum(1 for it in model.items if answers.get(it.item_id) is not None)
    completion = round(total_answered / total_items * 100) if total_items else 0

    axes = competency_axis(model)
    competency_results = [
        _competency_result(model, comp, axes[comp.id], answers) for comp in model.competencies
    ]
    axis_scores = _axis_scores(model, competency_results)
    overall = overall_level([s.level for s in axis_scores.values()])

    return AssessmentResults(
        competency_results=competency_results,
        axis_scores=axis_scores,
        overall_level=overall,
        overall_level_name=level_name(model, overall),
        completion_percent=int(completion),
        total_answered=total_answered,
        total_items=total_items,
    )


def get_weakest_competencies(
    results: AssessmentResults, axis: Axis, count: Optional[int] = None
) -> List[CompetencyResult]:
    n = config.WEAKEST_DEFAULT_COUNT if count is None else int(count)
    pool = [cr for cr in results.competency_results if cr.axis is axis]
    pool.sort(key=lambda cr: (cr.achieved_level, -cr.unanswered_count))
    return pool[:n]


def calculate_gaps(
    self_results: AssessmentResults,
    external_results: AssessmentResults,
    external_role: Role,
) -> List[CompetencyGap]:
    external = {cr.competency_id: cr for cr in external_results.competency_results}
    gaps: List[CompetencyGap] = []
    for cr in self_results.competency_results:
        ext = external.get(cr.competency_id)
        ext_level = ext.achieved_level if ext is not None else cr.achieved_level
        delta = cr.achieved_level - ext_level
        if delta > 0:
            direction = GapDirection.OVER
        elif delta < 0:
            direction = GapDirection.UNDER
        else:
            direction = GapDirection.MATCH
        gaps.append(
            CompetencyGap(
                competency_id=cr.competency_id,
                competency_name=cr.competency_name,
                axis=cr.axis,
                self_level=cr.achieved_level,
                external_level=ext_level,
                external_role=external_role,
                delta=delta,
                direction=direction,
                blind_spot=abs(delta) >= config.BLIND_SPOT_DELTA,
            )
        )
    return gaps


def blind_spots(gaps: List[CompetencyGap]) -> List[CompetencyGap]:
    return [g for g in gaps if g.blind_spot]


def get_low_items(
    model: ContentModel, answers: Dict[str, int], threshold: Optional[int] = None
) -> List[LowItem]:
    limit = config.LOW_ITEM_THRESHOLD if threshold is None else int(threshold)
    axes = competency_axis(model)
    out: List[LowItem] = []
    for it in model.items:
        score = answers.get(it.item_id)
        if score is None or score >= limit:
            continue
        out.append(
            LowItem(
                item_id=it.item_id,
                competency_id=it.competency_id,
                level_target=it.level_target,
                statement=it.statement,
                axis=axes.get(it.competency_id),
                score=int(score),
            )
        )
    out.sort(key=lambda li: li.score)
    return out
