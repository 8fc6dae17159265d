"""
Incremental Score Update.

Responsibilities:
- Recompute and persist one entity's score after a new signal lands.
- Validate and record an incoming signal, then rescore its entity.
- Serialize concurrent recomputes of the same entity.

Non-Responsibilities:
- No signal discovery.
- No retry policy; storage errors go back to the caller.

Invariant:
"now" is read once per invocation, never per signal.
"""

import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from signalscore.config import ScoringConfig
from signalscore.logger import get_logger
from signalscore.schema import SignalValidationError, parse_timestamp, validate_signal

from .calculator import compute_score


class EntityLocks:
    """
    Keyed lock registry; one lock per entity id, created on demand.

    An entry is dropped once its last holder or waiter releases it, so the
    registry only holds entities that are being rescored right now.
    """

    def __init__(self):
        self._guard = threading.Lock()
        # entity_id -> [lock, holders + waiters]
        self._locks: Dict[int, list] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, entity_id: int):
        with self._guard:
            entry = self._locks.setdefault(entity_id, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[entity_id]


# Shared by the incremental and batch paths unless a caller passes its own
default_locks = EntityLocks()


def _number(value, default: float = 1.0) -> float:
    return default if value is None else float(value)


def rescore_entity(repository, entity_id: int, config: ScoringConfig, now: datetime) -> Tuple[float, int]:
    """Read, score and persist one entity. Returns (score, signal_count)."""
    signals = repository.get_signals_for_entity(entity_id)
    result = compute_score(signals, config, now)
    repository.persist_score(entity_id, result.total, config.needs_review(result.total))
    return result.total, len(signals)


def update_entity_score(
    repository,
    entity_id: int,
    config: ScoringConfig,
    now: Optional[datetime] = None,
    locks: Optional[EntityLocks] = None,
) -> float:
    """
    Recompute and persist a single entity's score.

    Args:
        repository: ScoreRepository
        entity_id: Entity to rescore
        config: Scoring parameters
        now: Reference instant (default: current time)
        locks: Lock registry (default: process-wide registry)

    Returns:
        The new score

    Raises:
        StorageError: read or write against the store failed
    """
    if now is None:
        now = datetime.now()
    if locks is None:
        locks = default_locks

    with locks.hold(entity_id):
        score, signal_count = rescore_entity(repository, entity_id, config, now)

    logger = get_logger()
    logger.record_entity_scored(signal_count)
    logger.debug("Entity rescored", entity_id=entity_id, score=score, signals=signal_count)
    return score


def record_signal(
    repository,
    data: Dict[str, Any],
    config: ScoringConfig,
    now: Optional[datetime] = None,
    locks: Optional[EntityLocks] = None,
) -> Tuple[int, float]:
    """
    Validate and store one signal, then rescore its entity.

    Returns:
        (signal_id, new entity score)

    Raises:
        SignalValidationError: payload failed validation
        StorageError: the store rejected the write or the rescore
    """
    errors = validate_signal(data)
    if errors:
        raise SignalValidationError(errors)

    signal_id = repository.add_signal(
        entity_id=data["entity_id"],
        signal_type=data["signal_type"].strip(),
        detected_at=parse_timestamp(data["detected_at"]),
        signal_weight=_number(data.get("signal_weight")),
        confidence=_number(data.get("confidence")),
        title=data.get("title") or "",
    )
    get_logger().info(
        "Signal recorded",
        signal_id=signal_id,
        entity_id=data["entity_id"],
        signal_type=data["signal_type"],
    )

    score = update_entity_score(repository, data["entity_id"], config, now=now, locks=locks)
    return signal_id, score
