"""Utility helpers for persisting assessment sessions.

Each session code maps to one JSON file holding the answer set of every
assessor role plus the adaptive progress snapshot of that role.  Saves go
through the more-answers-wins merge so a stale writer cannot roll back a
newer answer set.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from competency_core.sessions import merge_answers, normalize_code, unique_code
from competency_core.types import Role


log = logging.getLogger(__name__)

DATA_ROOT = Path(os.getenv("DATA_DIR", "data")).resolve()
SESSIONS_DIR = DATA_ROOT / "sessions"

_LOCK = threading.Lock()


def _ensure_dirs() -> None:
    SESSIONS_DIR.mkdir(parents=True, exist_ok=True)


def _read_json(path: Path, default: Any) -> Any:
    if not path.exists():
        return default
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        log.warning("unreadable session file %s; using defaults", path)
        return default


def _write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
    tmp.replace(path)


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _session_path(code: str) -> Path:
    return SESSIONS_DIR / f"{normalize_code(code)}.json"


def _blank_role() -> Dict[str, Any]:
    return {
        "answers": {},
        "competency_index": 0,
        "progress": {},
        "started_at": None,
        "updated_at": None,
    }


def session_exists(code: str) -> bool:
    return _session_path(code).exists()


def create_session() -> str:
    _ensure_dirs()
    with _LOCK:
        code = unique_code(session_exists)
        _write_json(_session_path(code), {"session_code": code, "created_at": utcnow_iso(), "roles": {}})
    log.info("session %s created", code)
    return code


def load_session(code: str) -> Optional[Dict[str, Any]]:
    return _read_json(_session_path(code), None)


def load_role(code: str, role: Role) -> Optional[Dict[str, Any]]:
    session = load_session(code)
    if session is None:
        return None
    return session.get("roles", {}).get(role.value) or _blank_role()


def save_answers(
    code: str,
    role: Role,
    answers: Dict[str, int],
    competency_index: int = 0,
) -> Dict[str, Any]:
    """Merge ``answers`` into the stored set for ``role`` and persist.

    Returns the stored role payload after the merge.
    """
    path = _session_path(code)
    with _LOCK:
        session = _read_json(path, None)
        if session is None:
            raise KeyError(code)
        roles = session.setdefault("roles", {})
        current = roles.get(role.value) or _blank_role()
        merged = merge_answers(answers, current.get("answers") or {})
        now = utcnow_iso()
        current["answers"] = merged
        current["competency_index"] = int(competency_index)
        current["started_at"] = current.get("started_at") or now
        current["updated_at"] = now
        roles[role.value] = current
        _write_json(path, session)
    return current


def save_progress(code: str, role: Role, snapshot: Dict[str, Any]) -> None:
    """Persist an adaptive snapshot (answers + per-competency progress)."""
    path = _session_path(code)
    with _LOCK:
        session = _read_json(path, None)
        if session is None:
            raise KeyError(code)
        roles = session.setdefault("roles", {})
        current = roles.get(role.value) or _blank_role()
        now = utcnow_iso()
        current["answers"] = merge_answers(snapshot.get("answers") or {}, current.get("answers") or {})
        current["progress"] = dict(snapshot.get("progress") or {})
        current["started_at"] = current.get("started_at") or now
        current["updated_at"] = now
        roles[role.value] = current
        _write_json(path, session)


def load_progress(code: str, role: Role) -> Optional[Dict[str, Any]]:
    """Adaptive snapshot for ``role`` in the shape ``save_progress`` takes.

    Returns ``None`` for an unknown session.
    """
    payload = load_role(code, role)
    if payload is None:
        return None
    return {
        "answers": dict(payload.get("answers") or {}),
        "progress": dict(payload.get("progress") or {}),
    }


def reset_role(code: str, role: Role) -> bool:
    path = _session_path(code)
    with _LOCK:
        session = _read_json(path, None)
        if session is None:
            return False
        removed = session.get("roles", {}).pop(role.value, None) is not None
        if removed:
            _write_json(path, session)
    return removed
