"""
Rollout Evaluator

Decides whether a setting is visible to a given rollout seed (a device id,
user id or client IP). Decisions are pure functions of the seed, the setting
id and its strategy, so a client keeps seeing the same answer across
processes and restarts.

Strategies are stored as JSON objects tagged by ``mode``:

- ``{"mode": "percentage", "percentage": 25}``
- ``{"mode": "cohort", "cohorts": ["beta-testers", "42"]}``
- ``{"mode": "toggle", "enabled": true}``

Unknown modes fail open.
"""

from typing import Any, Iterable, List, Mapping, Optional, Protocol, TypeVar

from runtime_config.core.logger import get_logger

logger = get_logger(__name__)

_INT32_MASK = 0xFFFFFFFF


class RolloutCandidate(Protocol):
    id: str
    rollout_strategy: Optional[Mapping[str, Any]]


CandidateT = TypeVar("CandidateT", bound=RolloutCandidate)


def deterministic_hash(value: object) -> int:
    """
    32-bit polynomial string hash, ``h = h * 31 + unit`` with signed wrap-around,
    returned as an absolute value.

    Iterates UTF-16 code units so non-BMP characters hash the same way they do
    in JavaScript clients that bucket locally.
    """
    data = str(value).encode("utf-16-le", "surrogatepass")
    h = 0
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = ((h << 5) - h + unit) & _INT32_MASK
    if h & 0x80000000:
        h -= 0x100000000
    return abs(h)


def _as_percentage(raw: Any) -> float:
    try:
        return float(raw or 0)
    except (TypeError, ValueError):
        return 0.0


def is_visible(
    strategy: Optional[Mapping[str, Any]], setting_id: str, seed: str
) -> bool:
    """Evaluate one strategy for one seed."""
    if not strategy:
        return True

    mode = strategy.get("mode")

    if mode == "percentage":
        percentage = _as_percentage(strategy.get("percentage"))
        if percentage >= 100:
            return True
        if percentage <= 0:
            return False
        return deterministic_hash(f"{seed}:{setting_id}") % 100 < percentage

    if mode == "cohort":
        cohorts = strategy.get("cohorts")
        if isinstance(cohorts, list):
            return str(seed) in cohorts
        return True

    if mode == "toggle":
        return bool(strategy.get("enabled"))

    logger.debug("Unknown rollout mode %r on setting %s, treating as visible", mode, setting_id)
    return True


def apply_rollout(
    candidates: Iterable[CandidateT], seed: Optional[str]
) -> List[CandidateT]:
    """
    Keep the candidates visible to ``seed``, preserving order.

    Without a seed nothing is filtered: anonymous callers see every matching
    setting, including ones still at 0%.
    """
    rows = list(candidates)
    if not seed:
        return rows
    return [row for row in rows if is_visible(row.rollout_strategy, row.id, seed)]


__all__ = ["deterministic_hash", "is_visible", "apply_rollout", "RolloutCandidate"]
