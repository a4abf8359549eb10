from __future__ import annotations
import os, json, pathlib


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


LIKERT_MIN: int = 1
LIKERT_MAX: int = 5
HIGH_SCORE: int = 4

LEVEL_MIN: int = 1
LEVEL_MAX: int = 7

ADAPTIVE_START_LEVEL: int = 3
ADAPTIVE_REQUIRED_COUNT: int = 2
ADAPTIVE_MAX_LEVEL: int = LEVEL_MAX
ADAPTIVE_FLOOR_LEVEL: int = 2
ADAPTIVE_PASS_AVG: float = 4.0
ADAPTIVE_PASS_SHARE: float = 0.6

LENIENT_PASS_SHARE: float = 0.7
ROLLUP_MAX_LEVEL: int = 5
OVERALL_MIN_AXES: int = 3
OVERALL_MIN_AXES_AT_LEVEL: int = 2

LOW_ITEM_THRESHOLD: int = HIGH_SCORE
WEAKEST_DEFAULT_COUNT: int = 2
BLIND_SPOT_DELTA: int = 2

SESSION_CODE_CHARS: str = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
SESSION_CODE_LENGTH: int = 6
SESSION_CODE_ATTEMPTS: int = 10

EXPORT_ENABLED: bool = True
CONTENT_DIR: str | None = None

DEBUG_TRACE: bool = False
TRACE_FIELDS: tuple[str, ...] = (
    "competency",
    "level_before",
    "level_after",
    "direction",
    "passed",
    "finalized",
    "achieved",
)
# // env overrides for staging/ops; defaults match the published content model.
ADAPTIVE_START_LEVEL = _env_int("ADAPTIVE_START_LEVEL", ADAPTIVE_START_LEVEL)
ADAPTIVE_REQUIRED_COUNT = _env_int("ADAPTIVE_REQUIRED_COUNT", ADAPTIVE_REQUIRED_COUNT)
LENIENT_PASS_SHARE = _env_float("LENIENT_PASS_SHARE", LENIENT_PASS_SHARE)
LOW_ITEM_THRESHOLD = _env_int("LOW_ITEM_THRESHOLD", LOW_ITEM_THRESHOLD)
BLIND_SPOT_DELTA = _env_int("BLIND_SPOT_DELTA", BLIND_SPOT_DELTA)
EXPORT_ENABLED = _env_bool("EXPORT_ENABLED", EXPORT_ENABLED)
DEBUG_TRACE = _env_bool("DEBUG_TRACE", False)
CONTENT_DIR = os.getenv("CONTENT_DIR") or None


def load_config() -> dict:
    """Read optional ``config.json`` from the working dir, then env overrides."""
    cfg: dict = {}
    p = pathlib.Path("config.json")
    if p.exists():
        try:
            cfg = json.loads(p.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            cfg = {}
    e = os.environ
    if e.get("CONTENT_DIR"): cfg["CONTENT_DIR"] = e.get("CONTENT_DIR")
    if e.get("DATA_DIR"): cfg["DATA_DIR"] = e.get("DATA_DIR")
    if e.get("ALLOWED_ORIGINS"):
        cfg["ALLOWED_ORIGINS"] = [o.strip() for o in e["ALLOWED_ORIGINS"].split(",") if o.strip()]
    return cfg
