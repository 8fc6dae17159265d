from .base import EntityNotFoundError, ScoreRepository, StorageError
from .scores import SqlScoreRepository

__all__ = [
    "EntityNotFoundError",
    "ScoreRepository",
    "SqlScoreRepository",
    "StorageError",
]
