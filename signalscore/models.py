"""
Plain records passed between the store and the scoring pipelines.

Repositories build these from ORM rows; numeric columns are converted to
float once, here at the boundary, and never re-parsed downstream.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class SignalRecord:
    """One immutable observation attributed to an entity."""

    id: int
    entity_id: int
    signal_type: str
    detected_at: datetime
    signal_weight: float = 1.0
    confidence: float = 1.0
    title: str = ""


@dataclass(frozen=True)
class EntitySummary:
    """Read-only view of an entity row for listings."""

    id: int
    name: str
    entity_type: str
    current_score: float
    needs_review: bool
    signal_count: int
    last_signal_at: Optional[datetime]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "entity_type": self.entity_type,
            "current_score": self.current_score,
            "needs_review": self.needs_review,
            "signal_count": self.signal_count,
            "last_signal_at": self.last_signal_at.isoformat() if self.last_signal_at else None,
        }
