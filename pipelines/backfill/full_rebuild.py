"""
Full Score Rebuild.

Responsibilities:
- Recompute every entity's score from its full signal set.
- Persist each entity independently; collect per-entity failures.

Non-Responsibilities:
- No signal ingestion.
- No scoring arithmetic (delegated to the calculator).

Invariant:
A full rebuild must be idempotent and reproducible for a fixed "now".
One entity's failure never aborts the batch.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from signalscore.config import ScoringConfig
from signalscore.logger import get_logger
from signalscore.retry import exponential_backoff, is_transient_error
from storage.repositories.base import EntityNotFoundError, StorageError

from ..scoring.incremental import EntityLocks, default_locks, rescore_entity


@dataclass
class BatchResult:
    updated_count: int = 0
    errors: List[str] = field(default_factory=list)
    failed_entity_ids: List[int] = field(default_factory=list)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def ok(self) -> bool:
        return not self.errors


def recalculate_all(
    repository,
    config: ScoringConfig,
    now: Optional[datetime] = None,
    max_workers: Optional[int] = None,
    max_retries: int = 0,
    retry_delay: float = 0.5,
    locks: Optional[EntityLocks] = None,
) -> BatchResult:
    """
    Recompute and persist the score of every known entity.

    Args:
        repository: ScoreRepository
        config: Scoring parameters
        now: Reference instant shared by every entity (default: read once)
        max_workers: Thread pool size; None or 1 processes sequentially
        max_retries: Extra attempts per entity on StorageError; a missing
            entity is never retried
        retry_delay: Initial backoff delay in seconds
        locks: Entity lock registry (default: process-wide registry)

    Returns:
        BatchResult with the updated count and one error string per failed entity

    Raises:
        StorageError: the entity list itself could not be read
    """
    if now is None:
        now = datetime.now()
    if locks is None:
        locks = default_locks

    logger = get_logger()
    logger.record_batch()

    entity_ids = repository.get_all_entity_ids()
    result = BatchResult(started_at=now)
    logger.info("Starting full score rebuild", entities=len(entity_ids), now=now)

    def process(entity_id: int) -> int:
        with locks.hold(entity_id):
            _, signal_count = rescore_entity(repository, entity_id, config, now)
        return signal_count

    if max_retries > 0:
        process = exponential_backoff(
            max_retries=max_retries,
            base_delay=retry_delay,
            exceptions=(StorageError,),
            give_up_on=(EntityNotFoundError,),
            on_retry=lambda attempt, e, delay: logger.debug(
                "Retrying entity after store error", attempt=attempt, error=str(e), delay=delay
            ),
        )(process)

    def run_one(entity_id: int):
        try:
            return entity_id, process(entity_id), None
        except Exception as e:
            return entity_id, 0, e

    if max_workers and max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            outcomes = list(pool.map(run_one, entity_ids))
    else:
        outcomes = [run_one(entity_id) for entity_id in entity_ids]

    for entity_id, signal_count, error in outcomes:
        if error is None:
            result.updated_count += 1
            logger.record_entity_scored(signal_count)
            continue

        result.errors.append(f"Failed to update entity {entity_id}: {error}")
        result.failed_entity_ids.append(entity_id)
        logger.record_entity_failure(type(error).__name__)
        logger.warning(
            "Entity rescore failed",
            entity_id=entity_id,
            error=str(error),
            transient=is_transient_error(error),
        )

    result.finished_at = datetime.now()
    logger.info(
        "Full score rebuild complete",
        updated=result.updated_count,
        failed=len(result.errors),
        total=len(entity_ids),
    )
    return result


def recalculate_entities(
    repository,
    entity_ids: List[int],
    config: ScoringConfig,
    now: Optional[datetime] = None,
    locks: Optional[EntityLocks] = None,
) -> BatchResult:
    """Retry helper: rescore a chosen subset, e.g. a previous batch's failures."""
    return recalculate_all(
        _SubsetRepository(repository, entity_ids), config, now=now, locks=locks
    )


class _SubsetRepository:
    """Restricts get_all_entity_ids to a fixed list; delegates everything else."""

    def __init__(self, repository, entity_ids: List[int]):
        self._repository = repository
        self._entity_ids = list(entity_ids)

    def get_all_entity_ids(self) -> List[int]:
        return list(self._entity_ids)

    def __getattr__(self, name):
        return getattr(self._repository, name)
