from __future__ import annotations
from fastapi import FastAPI, HTTPException, Body, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
import logging, typing as t

# ---- Engine imports ----
from competency_core.engine import AdaptiveSession
from competency_core.config import load_config, EXPORT_ENABLED
from competency_core.export import to_json as export_to_json, to_csv as export_to_csv
from competency_core.question_bank import load_model
from competency_core.scoring import (
    blind_spots,
    calculate_gaps,
    calculate_results,
    get_low_items,
    get_weakest_competencies,
)
from competency_core.sessions import is_valid_score, normalize_code, sanitize_answers
from competency_core.types import Axis, Role
from .storage import (
    create_session,
    load_progress,
    load_role,
    load_session,
    reset_role,
    save_answers,
    save_progress,
    utcnow_iso,
)

log = logging.getLogger(__name__)

MODEL = load_model()

app = FastAPI(title="Competency Assessment API")


@app.get("/")
def root():
    return {"status": "ok", "service": "competency-assessment-api"}


ALLOWED_ORIGINS = load_config().get("ALLOWED_ORIGINS") or [
    "http://localhost:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)

# ---- Schemas ----
class AnswersReq(BaseModel):
    answers: dict[str, int]
    competency_index: int = 0

class AdaptiveAnswerReq(BaseModel):
    item_id: str
    score: int

# ---- Helpers ----
def _require_role(code: str, role: Role) -> dict[str, t.Any]:
    payload = load_role(code, role)
    if payload is None:
        raise HTTPException(404, "session not found")
    return payload


def _answers_of(payload: dict[str, t.Any]) -> dict[str, int]:
    return sanitize_answers(payload.get("answers") or {})


def _serialize_item(it) -> dict[str, t.Any]:
    return {
        "item_id": it.item_id,
        "competency_id": it.competency_id,
        "level_target": it.level_target,
        "statement": it.statement,
    }


def _adaptive_state(sess: AdaptiveSession) -> dict[str, t.Any]:
    items = sess.next_items()
    comp = sess.current_competency()
    level = sess.progress[comp.id].current_level if comp is not None else None
    return {
        "done": comp is None,
        "competency_id": comp.id if comp is not None else None,
        "level": level,
        "items": [_serialize_item(it) for it in items],
        "achieved_levels": sess.achieved_levels(),
    }

# ---- Health ----
@app.get("/health")
def health():
    return {
        "model_version": MODEL.meta.version,
        "competencies": len(MODEL.competencies),
        "items": len(MODEL.items),
        "export_enabled": EXPORT_ENABLED,
    }

# ---- Content ----
@app.get("/model")
def get_model():
    return MODEL.to_dict()

# ---- Sessions ----
@app.post("/sessions")
def start_session():
    code = create_session()
    return {"session_code": code, "created_at": utcnow_iso()}


@app.get("/sessions/{code}")
def get_session(code: str):
    session = load_session(code)
    if session is None:
        raise HTTPException(404, "session not found")
    return session


@app.put("/sessions/{code}/{role}/answers")
def put_answers(code: str, role: Role, req: AnswersReq = Body(...)):
    bad = sorted(k for k, v in req.answers.items() if not is_valid_score(v))
    if bad:
        raise HTTPException(422, f"scores must be integers 1..5: {', '.join(bad)}")
    try:
        stored = save_answers(code, role, req.answers, req.competency_index)
    except KeyError:
        raise HTTPException(404, "session not found")
    return {
        "session_code": normalize_code(code),
        "role": role.value,
        "answered": len(stored["answers"]),
        "updated_at": stored["updated_at"],
    }


@app.delete("/sessions/{code}/{role}")
def delete_role(code: str, role: Role):
    if not reset_role(code, role):
        raise HTTPException(404, "role has no answers in this session")
    return {"ok": True}

# ---- Results ----
@app.get("/sessions/{code}/{role}/results")
def get_results(code: str, role: Role):
    answers = _answers_of(_require_role(code, role))
    return calculate_results(MODEL, answers).to_dict()


@app.get("/sessions/{code}/{role}/weakest")
def get_weakest(code: str, role: Role, axis: Axis, count: int = Query(2, ge=1)):
    answers = _answers_of(_require_role(code, role))
    results = calculate_results(MODEL, answers)
    weakest = get_weakest_competencies(results, axis, count)
    return {"axis": axis.value, "competencies": [cr.competency_id for cr in weakest]}


@app.get("/sessions/{code}/{role}/low-items")
def low_items(code: str, role: Role, threshold: int = Query(4, ge=1, le=6)):
    answers = _answers_of(_require_role(code, role))
    return {
        "items": [
            {**li.__dict__, "axis": li.axis.value if li.axis is not None else None}
            for li in get_low_items(MODEL, answers, threshold)
        ]
    }


@app.get("/sessions/{code}/gaps")
def get_gaps(code: str, external_role: Role = Query(...)):
    if external_role is Role.SELF:
        raise HTTPException(422, "external_role must differ from self")
    self_answers = _answers_of(_require_role(code, Role.SELF))
    ext_answers = _answers_of(_require_role(code, external_role))
    if not ext_answers:
        raise HTTPException(404, f"{external_role.value} has no answers in this session")
    gaps = calculate_gaps(
        calculate_results(MODEL, self_answers),
        calculate_results(MODEL, ext_answers),
        external_role,
    )
    return {
        "external_role": external_role.value,
        "gaps": [g.to_dict() for g in gaps],
        "blind_spots": [g.competency_id for g in blind_spots(gaps)],
    }

# ---- Export ----
@app.get("/sessions/{code}/{role}/export.json")
def export_json(code: str, role: Role):
    if not EXPORT_ENABLED:
        raise HTTPException(404, "export disabled")
    payload = _require_role(code, role)
    answers = _answers_of(payload)
    results = calculate_results(MODEL, answers)
    return export_to_json(MODEL, answers, results, started_at=payload.get("started_at"))


@app.get("/sessions/{code}/{role}/export.csv")
def export_csv(code: str, role: Role):
    if not EXPORT_ENABLED:
        raise HTTPException(404, "export disabled")
    answers = _answers_of(_require_role(code, role))
    body = export_to_csv(calculate_results(MODEL, answers))
    filename = f"{normalize_code(code)}_{role.value}_results.csv"
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=\"{filename}\""},
    )

# ---- Adaptive ----
def _load_adaptive(code: str, role: Role) -> AdaptiveSession:
    snapshot = load_progress(code, role)
    if snapshot is None:
        raise HTTPException(404, "session not found")
    snapshot["answers"] = _answers_of(snapshot)
    return AdaptiveSession.from_snapshot(snapshot, model=MODEL)


@app.post("/sessions/{code}/{role}/adaptive/next")
def adaptive_next(code: str, role: Role):
    sess = _load_adaptive(code, role)
    state = _adaptive_state(sess)
    save_progress(code, role, sess.snapshot())
    return state


@app.post("/sessions/{code}/{role}/adaptive/answer")
def adaptive_answer(code: str, role: Role, req: AdaptiveAnswerReq):
    sess = _load_adaptive(code, role)
    try:
        sess.answer(req.item_id, req.score)
    except KeyError:
        raise HTTPException(404, f"unknown item {req.item_id}")
    except ValueError as exc:
        raise HTTPException(422, str(exc))
    state = _adaptive_state(sess)
    save_progress(code, role, sess.snapshot())
    log.debug("adaptive answer session=%s role=%s item=%s", code, role.value, req.item_id)
    return state
