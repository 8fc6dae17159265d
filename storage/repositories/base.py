"""
Score Repository Contract.

Responsibilities:
- Define the read/write surface the scoring pipelines need from a store.

Non-Responsibilities:
- No scoring.
- No threshold decisions.

Invariant:
get_signals_for_entity returns signals ordered by detected_at descending.
"""

from datetime import datetime
from typing import List, Optional, Protocol, Tuple

from signalscore.models import EntitySummary, SignalRecord


class StorageError(Exception):
    """Read or write failure against the entity/signal store."""
    pass


class EntityNotFoundError(StorageError):
    """Raised when a write targets an entity that does not exist."""

    def __init__(self, entity_id: int):
        self.entity_id = entity_id
        super().__init__(f"Entity {entity_id} not found")


class ScoreRepository(Protocol):
    """Interface every score store must implement."""

    def get_signals_for_entity(self, entity_id: int) -> List[SignalRecord]:
        ...

    def get_all_entity_ids(self) -> List[int]:
        ...

    def persist_score(self, entity_id: int, score: float, needs_review: bool) -> None:
        ...

    def get_signal_counts_by_category(
        self, since: Optional[datetime] = None
    ) -> List[Tuple[str, int]]:
        ...

    def count_entities(self, min_score: Optional[float] = None) -> int:
        ...

    def get_high_scoring_entities(self, limit: int, min_score: float) -> List[EntitySummary]:
        ...

    def add_entity(self, name: str, entity_type: str = "company") -> int:
        ...

    def add_signal(
        self,
        entity_id: int,
        signal_type: str,
        detected_at: datetime,
        signal_weight: float = 1.0,
        confidence: float = 1.0,
        title: str = "",
    ) -> int:
        ...
