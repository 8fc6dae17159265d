"""
Scores Repository.

Responsibilities:
- Read entities and their signals from the SQL store.
- Persist recomputed scores and review flags.
- Transaction-safe writes, one short session per call.

Non-Responsibilities:
- No scoring.
- No threshold decisions.

Invariant:
Repositories must not encode domain decisions.
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Generator, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from signalscore.database import Entity, Signal
from signalscore.logger import get_logger
from signalscore.models import EntitySummary, SignalRecord

from .base import EntityNotFoundError, StorageError


def _to_float(value, default: float = 1.0) -> float:
    if value is None:
        return default
    return float(value)


def _to_record(row: Signal) -> SignalRecord:
    return SignalRecord(
        id=row.id,
        entity_id=row.entity_id,
        signal_type=row.signal_type,
        detected_at=row.detected_at,
        signal_weight=_to_float(row.signal_weight),
        confidence=_to_float(row.confidence),
        title=row.title or "",
    )


def _to_summary(row: Entity) -> EntitySummary:
    return EntitySummary(
        id=row.id,
        name=row.name,
        entity_type=row.entity_type,
        current_score=_to_float(row.current_score, default=0.0),
        needs_review=bool(row.needs_review),
        signal_count=row.signal_count or 0,
        last_signal_at=row.last_signal_at,
    )


class SqlScoreRepository:
    """ScoreRepository backed by SQLAlchemy."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope around a series of operations.

        Commits on success, rolls back and re-raises as StorageError on
        database errors.
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            get_logger().error("Database error, rolling back", error=str(e))
            raise StorageError(str(e)) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get_signals_for_entity(self, entity_id: int) -> List[SignalRecord]:
        with self.session_scope() as session:
            rows = (
                session.query(Signal)
                .filter(Signal.entity_id == entity_id)
                .order_by(Signal.detected_at.desc(), Signal.id.desc())
                .all()
            )
            return [_to_record(r) for r in rows]

    def get_all_entity_ids(self) -> List[int]:
        with self.session_scope() as session:
            return [row.id for row in session.query(Entity.id).order_by(Entity.id).all()]

    def persist_score(self, entity_id: int, score: float, needs_review: bool) -> None:
        with self.session_scope() as session:
            updated = (
                session.query(Entity)
                .filter(Entity.id == entity_id)
                .update(
                    {
                        Entity.current_score: float(score),
                        Entity.needs_review: bool(needs_review),
                        Entity.updated_at: datetime.now(),
                    },
                    synchronize_session=False,
                )
            )
            if updated == 0:
                raise EntityNotFoundError(entity_id)

    def get_signal_counts_by_category(
        self, since: Optional[datetime] = None
    ) -> List[Tuple[str, int]]:
        with self.session_scope() as session:
            query = session.query(Signal.signal_type, func.count(Signal.id))
            if since is not None:
                query = query.filter(Signal.detected_at >= since)
            rows = query.group_by(Signal.signal_type).all()
            return [(category, int(count)) for category, count in rows]

    def count_entities(self, min_score: Optional[float] = None) -> int:
        with self.session_scope() as session:
            query = session.query(func.count(Entity.id))
            if min_score is not None:
                query = query.filter(Entity.current_score >= min_score)
            return int(query.scalar() or 0)

    def get_high_scoring_entities(self, limit: int, min_score: float) -> List[EntitySummary]:
        with self.session_scope() as session:
            rows = (
                session.query(Entity)
                .filter(Entity.current_score >= min_score)
                .order_by(Entity.current_score.desc(), Entity.id)
                .limit(limit)
                .all()
            )
            return [_to_summary(r) for r in rows]

    def get_entity(self, entity_id: int) -> Optional[EntitySummary]:
        with self.session_scope() as session:
            row = session.get(Entity, entity_id)
            return _to_summary(row) if row is not None else None

    def add_entity(self, name: str, entity_type: str = "company") -> int:
        with self.session_scope() as session:
            entity = Entity(name=name, entity_type=entity_type)
            session.add(entity)
            session.flush()
            return entity.id

    def add_signal(
        self,
        entity_id: int,
        signal_type: str,
        detected_at: datetime,
        signal_weight: float = 1.0,
        confidence: float = 1.0,
        title: str = "",
    ) -> int:
        """Insert a signal and bump the owning entity's signal_count / last_signal_at."""
        with self.session_scope() as session:
            entity = session.get(Entity, entity_id)
            if entity is None:
                raise EntityNotFoundError(entity_id)

            signal = Signal(
                entity_id=entity_id,
                signal_type=signal_type,
                detected_at=detected_at,
                signal_weight=float(signal_weight),
                confidence=float(confidence),
                title=title or "",
            )
            session.add(signal)

            entity.signal_count = (entity.signal_count or 0) + 1
            if entity.last_signal_at is None or detected_at > entity.last_signal_at:
                entity.last_signal_at = detected_at

            session.flush()
            return signal.id
