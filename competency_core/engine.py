# competency_core/engine.py
from __future__ import annotations
import logging
from typing import Dict, List, Optional

from . import adaptive
from .question_bank import items_for, load_model
from .scoring import calculate_results
from .sessions import is_valid_score
from .types import AssessmentResults, Competency, CompetencyProgress, ContentModel, Item


log = logging.getLogger(__name__)


class AdaptiveSession:
    """Drives the staircase over every competency, in model order.

    The caller asks for ``next_items()``, records each answer with
    ``answer()``, and the session advances a competency once every item shown
    at its current level has a score.
    """

    def __init__(
        self,
        model: Optional[ContentModel] = None,
        answers: Optional[Dict[str, int]] = None,
        progress: Optional[Dict[str, CompetencyProgress]] = None,
    ):
        self.model = model or load_model()
        self.answers: Dict[str, int] = dict(answers or {})
        self.progress: Dict[str, CompetencyProgress] = dict(progress or {})
        self._items: Dict[str, List[Item]] = {
            c.id: items_for(self.model, c.id) for c in self.model.competencies
        }
        self._by_id: Dict[str, Item] = {it.item_id: it for it in self.model.items}

    def _progress_for(self, comp_id: str) -> CompetencyProgress:
        st = self.progress.get(comp_id)
        if st is None:
            st = adaptive.apply_exhaustion_guard(
                adaptive.create_initial_progress(), self._items[comp_id], comp_id
            )
            self.progress[comp_id] = st
        return st

    def current_competency(self) -> Optional[Competency]:
        for comp in self.model.competencies:
            if not self._progress_for(comp.id).finalized:
                return comp
        return None

    @property
    def done(self) -> bool:
        return self.current_competency() is None

    def next_items(self) -> List[Item]:
        """Items to show for the current competency's current level.

        Returns an empty list once every competency is finalized.
        """
        while True:
            comp = self.current_competency()
            if comp is None:
                return []
            st = self.progress[comp.id]
            level = st.current_level
            shown = st.shown_item_ids.get(level)
            if shown is not None and any(i not in self._by_id for i in shown):
                log.warning("competency=%s level=%d pinned items left the content; reselecting", comp.id, level)
                shown = None
            if shown is None:
                picked = adaptive.select_items_for_level(self._items[comp.id], comp.id, level)
                st = adaptive.record_shown_items(st, level, [it.item_id for it in picked])
                self.progress[comp.id] = st
                shown = st.shown_item_ids[level]
            if all(self.answers.get(i) is not None for i in shown):
                # already answered (e.g. restored session); move on without asking again
                self._advance(comp.id)
                continue
            return [self._by_id[i] for i in shown]

    def _advance(self, comp_id: str) -> None:
        before = self.progress[comp_id]
        after = adaptive.step(before, self.answers, self._items[comp_id], comp_id)
        self.progress[comp_id] = after
        log.debug(
            "competency=%s level=%d->%d direction=%s finalized=%s achieved=%d",
            comp_id, before.current_level, after.current_level,
            after.direction.value, after.finalized, after.achieved_level,
        )

    def answer(self, item_id: str, value: int) -> None:
        it = self._by_id.get(item_id)
        if it is None:
            raise KeyError(item_id)
        if not is_valid_score(value):
            raise ValueError(f"score for {item_id} must be an integer 1..5, got {value!r}")
        self.answers[item_id] = int(value)

        st = self.progress.get(it.competency_id)
        if st is None or st.finalized:
            return
        shown = st.shown_item_ids.get(st.current_level)
        if shown and item_id in shown and all(self.answers.get(i) is not None for i in shown):
            self._advance(it.competency_id)

    def achieved_levels(self) -> Dict[str, int]:
        return {cid: st.achieved_level for cid, st in self.progress.items() if st.finalized}

    def finalize(self) -> AssessmentResults:
        return calculate_results(self.model, self.answers)

    def snapshot(self) -> Dict[str, object]:
        return {
            "answers": dict(self.answers),
            "progress": {cid: st.to_dict() for cid, st in self.progress.items()},
        }

    @classmethod
    def from_snapshot(cls, raw: Dict[str, object], model: Optional[ContentModel] = None) -> "AdaptiveSession":
        progress = {
            cid: CompetencyProgress.from_dict(st) for cid, st in (raw.get("progress") or {}).items()
        }
        return cls(model=model, answers=raw.get("answers") or {}, progress=progress)
