from __future__ import annotations
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Dict, List, Optional


class Axis(str, Enum):
    CRAFT = "Craft"
    IMPACT = "Impact"
    LEADERSHIP = "Leadership"


class Direction(str, Enum):
    INITIAL = "initial"
    UP = "up"
    DOWN = "down"


class Role(str, Enum):
    SELF = "self"
    MANAGER = "manager"
    PEER = "peer"


class GapDirection(str, Enum):
    OVER = "over"
    UNDER = "under"
    MATCH = "match"


@dataclass(frozen=True)
class Item:
    item_id: str; competency_id: str; level_target: int; statement: str


@dataclass(frozen=True)
class Competency:
    id: str; name: str; axis: Axis


@dataclass(frozen=True)
class LevelDefinition:
    id: int; name: str


@dataclass(frozen=True)
class ModelMeta:
    version: str
    levels: List[LevelDefinition] = field(default_factory=list)
    axes: List[Axis] = field(default_factory=list)


@dataclass(frozen=True)
class ContentModel:
    meta: ModelMeta
    competencies: List[Competency]
    items: List[Item]
    axis_mapping: Dict[Axis, List[str]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        return {
            "meta": {
                "version": self.meta.version,
                "levels": [asdict(lvl) for lvl in self.meta.levels],
                "axes": [a.value for a in self.meta.axes],
            },
            "competencies": [
                {"id": c.id, "name": c.name, "axis": c.axis.value} for c in self.competencies
            ],
            "items": [asdict(it) for it in self.items],
            "axis_mapping": {a.value: list(ids) for a, ids in self.axis_mapping.items()},
        }


@dataclass
class CompetencyProgress:
    current_level: int
    direction: Direction = Direction.INITIAL
    shown_item_ids: Dict[int, List[str]] = field(default_factory=dict)
    passed_levels: List[int] = field(default_factory=list)
    finalized: bool = False
    achieved_level: int = 1

    def copy(self) -> "CompetencyProgress":
        return CompetencyProgress(
            current_level=self.current_level,
            direction=self.direction,
            shown_item_ids={lvl: list(ids) for lvl, ids in self.shown_item_ids.items()},
            passed_levels=list(self.passed_levels),
            finalized=self.finalized,
            achieved_level=self.achieved_level,
        )

    def to_dict(self) -> Dict[str, object]:
        return {
            "current_level": self.current_level,
            "direction": self.direction.value,
            "shown_item_ids": {str(lvl): list(ids) for lvl, ids in self.shown_item_ids.items()},
            "passed_levels": list(self.passed_levels),
            "finalized": self.finalized,
            "achieved_level": self.achieved_level,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, object]) -> "CompetencyProgress":
        shown = raw.get("shown_item_ids") or {}
        return cls(
            current_level=int(raw["current_level"]),
            direction=Direction(raw.get("direction", Direction.INITIAL.value)),
            shown_item_ids={int(lvl): [str(i) for i in ids] for lvl, ids in shown.items()},
            passed_levels=[int(lvl) for lvl in raw.get("passed_levels") or []],
            finalized=bool(raw.get("finalized", False)),
            achieved_level=int(raw.get("achieved_level", 1)),
        )


@dataclass
class CompetencyResult:
    competency_id: str
    competency_name: str
    axis: Axis
    achieved_level: int
    achieved_level_name: str
    next_level: Optional[int]
    avg_per_level: Dict[int, float]
    share_per_level: Dict[int, float]
    unanswered_count: int
    total_items: int
    gap_to_next: int


@dataclass
class AxisScore:
    axis: Axis; score_float: float; level: int; competency_count: int


@dataclass
class AssessmentResults:
    competency_results: List[CompetencyResult]
    axis_scores: Dict[Axis, AxisScore]
    overall_level: int
    overall_level_name: str
    completion_percent: int
    total_answered: int
    total_items: int

    def to_dict(self) -> Dict[str, object]:
        return {
            "competency_results": [
                {
                    **asdict(cr),
                    "axis": cr.axis.value,
                    "avg_per_level": {str(k): v for k, v in cr.avg_per_level.items()},
                    "share_per_level": {str(k): v for k, v in cr.share_per_level.items()},
                }
                for cr in self.competency_results
            ],
            "axis_scores": {
                axis.value: {**asdict(score), "axis": axis.value}
                for axis, score in self.axis_scores.items()
            },
            "overall_level": self.overall_level,
            "overall_level_name": self.overall_level_name,
            "completion_percent": self.completion_percent,
            "total_answered": self.total_answered,
            "total_items": self.total_items,
        }


@dataclass
class CompetencyGap:
    competency_id: str
    competency_name: str
    axis: Axis
    self_level: int
    external_level: int
    external_role: Role
    delta: int
    direction: GapDirection
    blind_spot: bool = False

    def to_dict(self) -> Dict[str, object]:
        return {
            **asdict(self),
            "axis": self.axis.value,
            "external_role": self.external_role.value,
            "direction": self.direction.value,
        }


@dataclass
class LowItem:
    item_id: str; competency_id: str; level_target: int; statement: str
    axis: Optional[Axis]; score: int
