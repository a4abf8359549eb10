"""Answer-set helpers shared by the session store and its callers.

Local and remote copies of a role's answers can diverge; the copy with
strictly more answered items wins, and ties keep the local copy.
"""
from __future__ import annotations
import logging, random
from typing import Any, Callable, Dict, Mapping, Optional

from . import config

log = logging.getLogger(__name__)


def generate_code(rng: Optional[random.Random] = None) -> str:
    r = rng or random
    return "".join(r.choice(config.SESSION_CODE_CHARS) for _ in range(config.SESSION_CODE_LENGTH))


def unique_code(exists: Callable[[str], bool], rng: Optional[random.Random] = None) -> str:
    for _ in range(config.SESSION_CODE_ATTEMPTS):
        code = generate_code(rng)
        if not exists(code):
            return code
    raise RuntimeError("could not generate a unique session code")


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def is_valid_score(value: Any) -> bool:
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and config.LIKERT_MIN <= value <= config.LIKERT_MAX
    )


def sanitize_answers(raw: Mapping[str, Any]) -> Dict[str, int]:
    """Keep only integer Likert scores; absent stays absent."""
    out: Dict[str, int] = {}
    for item_id, value in (raw or {}).items():
        if is_valid_score(value):
            out[str(item_id)] = int(value)
        else:
            log.warning("dropping invalid answer item=%s value=%r", item_id, value)
    return out


def answered_count(answers: Mapping[str, Any]) -> int:
    return sum(1 for v in answers.values() if v is not None)


def merge_answers(local: Mapping[str, int], remote: Mapping[str, int]) -> Dict[str, int]:
    if answered_count(remote) > answered_count(local):
        return dict(remote)
    return dict(local)
