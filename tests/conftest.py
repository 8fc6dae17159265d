"""
Pytest configuration and shared fixtures.
"""

import pytest
from datetime import datetime, timedelta
from pathlib import Path
from typing import List

from signalscore.config import ScoringConfig
from signalscore.database import init_database, get_session_factory
from signalscore.logger import get_logger, reset_logger
from signalscore.models import SignalRecord
from storage.repositories.base import StorageError
from storage.repositories.scores import SqlScoreRepository


NOW = datetime(2024, 6, 15, 12, 0, 0)


@pytest.fixture(autouse=True)
def quiet_logger():
    """Fresh global logger per test, no file or console output."""
    reset_logger()
    get_logger(enable_file=False, enable_console=False)
    yield
    reset_logger()


@pytest.fixture
def now() -> datetime:
    """Fixed reference instant."""
    return NOW


@pytest.fixture
def config() -> ScoringConfig:
    """Default scoring configuration."""
    return ScoringConfig()


@pytest.fixture
def make_signal():
    """Factory for SignalRecord instances with sensible defaults."""
    counter = [0]

    def _make(signal_type="keyword_match", days_ago=0.0, entity_id=1, **kwargs) -> SignalRecord:
        counter[0] += 1
        return SignalRecord(
            id=kwargs.pop("id", counter[0]),
            entity_id=entity_id,
            signal_type=signal_type,
            detected_at=kwargs.pop("detected_at", NOW - timedelta(days=days_ago)),
            **kwargs,
        )

    return _make


@pytest.fixture
def db_path(tmp_path) -> Path:
    """Initialized temporary SQLite database."""
    path = tmp_path / "signals.db"
    init_database(path)
    return path


@pytest.fixture
def repository(db_path) -> SqlScoreRepository:
    """SQL repository over the temporary database."""
    return SqlScoreRepository(get_session_factory(db_path))


@pytest.fixture
def populated_repository(repository) -> SqlScoreRepository:
    """
    Three entities:
      1. acme     - grant + keyword today, permit 40 days ago
      2. beta     - one old name match (400 days)
      3. gamma    - no signals
    """
    acme = repository.add_entity("acme biofuels", "company")
    beta = repository.add_entity("beta energy", "company")
    repository.add_entity("gamma project", "project")

    repository.add_signal(acme, "grant_awarded", NOW, title="ARENA grant")
    repository.add_signal(acme, "keyword_match", NOW - timedelta(hours=2), title="SAF keyword")
    repository.add_signal(acme, "permit_fuel_production", NOW - timedelta(days=40), confidence=0.8)
    repository.add_signal(beta, "company_name_match", NOW - timedelta(days=400), title="Name match")
    return repository


class FakeRepository:
    """In-memory ScoreRepository with injectable write failures."""

    def __init__(self, signals_by_entity=None, fail_on=None):
        self.signals_by_entity = signals_by_entity or {}
        self.fail_on = set(fail_on or [])
        self.persisted = {}
        self.persist_calls: List[int] = []

    def get_all_entity_ids(self):
        return sorted(self.signals_by_entity)

    def get_signals_for_entity(self, entity_id):
        return sorted(
            self.signals_by_entity.get(entity_id, []),
            key=lambda s: s.detected_at,
            reverse=True,
        )

    def persist_score(self, entity_id, score, needs_review):
        self.persist_calls.append(entity_id)
        if entity_id in self.fail_on:
            raise StorageError("database is locked")
        self.persisted[entity_id] = (score, needs_review)


@pytest.fixture
def fake_repository_cls():
    return FakeRepository
