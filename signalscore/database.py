"""
Database schema and connection management.

Uses SQLite with SQLAlchemy for entity and signal storage.
Scores, weights and confidences are stored as native floats.
"""

from datetime import datetime
from pathlib import Path
from sqlalchemy import (
    create_engine,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()

# Seconds a connection waits on a locked SQLite file before raising
SQLITE_BUSY_TIMEOUT = 15


class Entity(Base):
    """Candidate entity being scored."""

    __tablename__ = "entities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    entity_type = Column(String, nullable=False, default="company")  # company, project
    current_score = Column(Float, nullable=False, default=0.0)
    needs_review = Column(Boolean, nullable=False, default=False)
    signal_count = Column(Integer, nullable=False, default=0)
    last_signal_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)


class Signal(Base):
    """Observed event attributed to an entity. Never updated once written."""

    __tablename__ = "signals"

    id = Column(Integer, primary_key=True, autoincrement=True)
    entity_id = Column(Integer, ForeignKey("entities.id"), nullable=False, index=True)
    signal_type = Column(String, nullable=False, index=True)  # key into the weight table
    signal_weight = Column(Float, nullable=False, default=1.0)
    confidence = Column(Float, nullable=False, default=1.0)
    detected_at = Column(DateTime, nullable=False, index=True)
    title = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, nullable=False, default=datetime.now)


def _create_engine(db_path: Path):
    return create_engine(
        f"sqlite:///{db_path}",
        connect_args={"timeout": SQLITE_BUSY_TIMEOUT, "check_same_thread": False},
    )


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = _create_engine(db_path)
    Base.metadata.create_all(engine)


def get_session_factory(db_path: Path) -> sessionmaker:
    """
    Get a session factory bound to the database.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy sessionmaker
    """
    engine = _create_engine(db_path)
    return sessionmaker(bind=engine, expire_on_commit=False)


def get_session(db_path: Path):
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    return get_session_factory(db_path)()
