from __future__ import annotations
import csv, io, json, logging
from pathlib import Path
from typing import Dict, List, Optional

from . import config
from .types import Axis, Competency, ContentModel, Item, LevelDefinition, ModelMeta

log = logging.getLogger(__name__)

MODEL_FILE = "competency_model.json"
ITEMS_FILE = "assessment_items.csv"
AXIS_FILE = "axis_mapping.json"

_CACHED: Optional[ContentModel] = None


def _read_text(name: str, root: Optional[Path]) -> str:
    if root is not None:
        return (root / name).read_text(encoding="utf-8")
    return Path(__file__).with_name("data").joinpath(name).read_text(encoding="utf-8")


def _parse_items(text: str, competency_ids: set[str]) -> List[Item]:
    items: List[Item] = []
    seen: set[str] = set()
    for row in csv.DictReader(io.StringIO(text)):
        item_id = (row.get("item_id") or "").strip()
        if not item_id or item_id.startswith("#"):
            continue
        comp_id = (row.get("competency_id") or "").strip()
        raw_level = (row.get("level_target") or "").strip()
        statement = (row.get("statement") or "").strip()
        if not comp_id or not raw_level or not statement:
            continue
        if comp_id not in competency_ids:
            log.warning('Unknown competency_id "%s" in item "%s"', comp_id, item_id)
            continue
        try:
            level = int(raw_level)
        except ValueError:
            log.warning('Invalid level_target for item "%s"', item_id)
            continue
        if level < config.LEVEL_MIN or level > config.LEVEL_MAX:
            log.warning('Invalid level_target for item "%s"', item_id)
            continue
        if item_id in seen:
            log.warning('Duplicate item_id "%s" dropped', item_id)
            continue
        seen.add(item_id)
        items.append(Item(item_id=item_id, competency_id=comp_id, level_target=level, statement=statement))
    return items


def _parse_axis_mapping(raw: Dict[str, List[str]], competency_ids: set[str]) -> Dict[Axis, List[str]]:
    mapping: Dict[Axis, List[str]] = {}
    claimed: set[str] = set()
    for axis_name, ids in raw.items():
        try:
            axis = Axis(axis_name)
        except ValueError:
            log.warning('axis_mapping has unknown axis "%s"', axis_name)
            continue
        kept: List[str] = []
        for cid in ids:
            if cid not in competency_ids:
                log.warning('axis_mapping "%s" references unknown competency "%s"', axis_name, cid)
                continue
            if cid in claimed:
                log.warning('competency "%s" mapped to more than one axis; keeping the first', cid)
                continue
            claimed.add(cid)
            kept.append(cid)
        mapping[axis] = kept
    return mapping


def _parse_meta_axes(names: List[str]) -> List[Axis]:
    axes: List[Axis] = []
    for name in names:
        try:
            axes.append(Axis(name))
        except ValueError:
            log.warning('meta.axes has unknown axis "%s"', name)
    return axes


def _resolve_competencies(raw: List[dict], mapping: Dict[Axis, List[str]]) -> List[Competency]:
    """Build competencies, taking each axis from the mapping, else the own field."""
    mapped = {cid: axis for axis, ids in mapping.items() for cid in ids}
    out: List[Competency] = []
    for c in raw:
        cid = str(c.get("id") or "").strip()
        if not cid:
            continue
        axis = mapped.get(cid)
        if axis is None:
            own = c.get("axis")
            if not own:
                log.warning('competency "%s" has no axis; dropped', cid)
                continue
            try:
                axis = Axis(own)
            except ValueError:
                log.warning('competency "%s" has unknown axis "%s"; dropped', cid, own)
                continue
        out.append(Competency(id=cid, name=str(c.get("name") or cid), axis=axis))
    return out


def build_model(model_json: dict, items_csv: str, axis_json: Dict[str, List[str]]) -> ContentModel:
    raw_meta = model_json.get("meta") or {}
    meta = ModelMeta(
        version=str(raw_meta.get("version", "0")),
        levels=[LevelDefinition(id=int(l["id"]), name=str(l["name"])) for l in raw_meta.get("levels", [])],
        axes=_parse_meta_axes(raw_meta.get("axes", [a.value for a in Axis])),
    )
    raw_comps = model_json.get("competencies", [])
    mapping = _parse_axis_mapping(axis_json, {str(c.get("id") or "").strip() for c in raw_comps} - {""})
    competencies = _resolve_competencies(raw_comps, mapping)
    return ContentModel(
        meta=meta,
        competencies=competencies,
        items=_parse_items(items_csv, {c.id for c in competencies}),
        axis_mapping=mapping,
    )


def load_model(path: str | Path | None = None) -> ContentModel:
    """Load the content model from ``path`` (a directory) or the packaged data.

    Loads from the default location are cached for the life of the process.
    """
    global _CACHED
    root_raw = path if path is not None else config.CONTENT_DIR
    if root_raw is None and _CACHED is not None:
        return _CACHED
    root = Path(root_raw) if root_raw is not None else None
    model = build_model(
        json.loads(_read_text(MODEL_FILE, root)),
        _read_text(ITEMS_FILE, root),
        json.loads(_read_text(AXIS_FILE, root)),
    )
    log.info(
        "content model %s loaded: %d competencies, %d items",
        model.meta.version, len(model.competencies), len(model.items),
    )
    if root_raw is None:
        _CACHED = model
    return model


def level_name(model: ContentModel, level: int) -> str:
    for lvl in model.meta.levels:
        if lvl.id == level:
            return lvl.name
    return f"Level {level}"


def competency_axis(model: ContentModel) -> Dict[str, Axis]:
    """Resolve each competency's axis: the mapping wins, else its own field."""
    out = {c.id: c.axis for c in model.competencies}
    for axis, ids in model.axis_mapping.items():
        for cid in ids:
            out[cid] = axis
    return out


def items_for(model: ContentModel, competency_id: str) -> List[Item]:
    return [it for it in model.items if it.competency_id == competency_id]
