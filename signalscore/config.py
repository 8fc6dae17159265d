"""
Scoring configuration.

All calibration constants of the scorer are bound into one immutable
ScoringConfig value that is passed explicitly to every scoring call.
Changing any of them (weights in particular) invalidates previously
stored scores; run a full recompute afterwards.
"""

import json
import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

from .logger import get_logger


DEFAULT_WEIGHT_TABLE: Dict[str, float] = {
    "patent_biofuel_tech": 5.0,  # Core biofuel patents
    "patent_related_tech": 3.0,  # Related technology patents
    "permit_fuel_production": 5.0,  # Fuel production permits
    "permit_industrial": 2.5,  # Industrial permits
    "environmental_approval": 3.0,  # Environmental approvals
    "grant_awarded": 6.0,  # Government grants (high confidence)
    "new_company_biofuel": 4.0,  # New company registrations
    "company_industry_code": 2.0,  # Industry code matches
    "company_name_match": 1.5,  # Name pattern matches
    "location_cluster": 2.0,  # Geographic clustering
    "keyword_match": 1.0,  # General keyword matches
}

DEFAULT_HALF_LIFE_DAYS = 365.0
REVIEW_THRESHOLD = 70.0

# Calibration constants, tunable, not derived from anything physical.
DEFAULT_DIVERSITY_STEP = 0.10
DEFAULT_RECENCY_TIERS: Tuple[Tuple[float, float], ...] = ((30.0, 1.2), (90.0, 1.1))
DEFAULT_LOG_SCALE = 30.0
MAX_SCORE = 100.0

DEFAULT_DB_PATH = Path("data/signals.db")


class ConfigError(ValueError):
    """Raised when a scalar scoring setting is unusable."""
    pass


def _is_valid_weight(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value >= 0


@dataclass(frozen=True)
class ScoringConfig:
    """Immutable scoring parameters."""

    weights: Mapping[str, float] = field(default_factory=lambda: dict(DEFAULT_WEIGHT_TABLE))
    half_life_days: float = DEFAULT_HALF_LIFE_DAYS
    review_threshold: float = REVIEW_THRESHOLD
    diversity_step: float = DEFAULT_DIVERSITY_STEP
    recency_tiers: Tuple[Tuple[float, float], ...] = DEFAULT_RECENCY_TIERS
    log_scale: float = DEFAULT_LOG_SCALE
    max_score: float = MAX_SCORE
    default_weight: float = 1.0

    def __post_init__(self):
        if not (isinstance(self.half_life_days, (int, float)) and self.half_life_days > 0):
            raise ConfigError(f"half_life_days must be positive, got {self.half_life_days!r}")
        if self.max_score <= 0:
            raise ConfigError(f"max_score must be positive, got {self.max_score!r}")
        # Tiers are checked in ascending age order
        object.__setattr__(
            self, "recency_tiers", tuple(sorted(tuple(t) for t in self.recency_tiers))
        )

    def weight_for(self, category: str) -> float:
        """Base weight for a category; unknown or malformed entries fall back to the default."""
        value = self.weights.get(category)
        if _is_valid_weight(value):
            return float(value)
        return self.default_weight

    def recency_multiplier(self, age_days: float) -> float:
        for max_age, multiplier in self.recency_tiers:
            if age_days < max_age:
                return multiplier
        return 1.0

    def needs_review(self, score: float) -> bool:
        return score >= self.review_threshold


def load_weight_table(path: Path) -> Dict[str, float]:
    """
    Load a category -> weight mapping from a JSON file.

    A missing or unreadable file yields an empty table (every category then
    weighs the default 1.0). Entries that are not non-negative numbers are
    dropped. Both cases are logged as warnings.
    """
    logger = get_logger()

    try:
        with path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError:
        logger.warning("Weight table not found, all categories default to 1.0", path=str(path))
        return {}
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(
            "Weight table unreadable, all categories default to 1.0",
            path=str(path),
            error=str(e),
        )
        return {}

    if not isinstance(raw, dict):
        logger.warning("Weight table must be a JSON object, ignoring it", path=str(path))
        return {}

    table: Dict[str, float] = {}
    for category, weight in raw.items():
        if _is_valid_weight(weight):
            table[str(category)] = float(weight)
        else:
            logger.warning("Dropping invalid weight entry", category=category, weight=weight)
    return table


def _float_env(env: Mapping[str, str], key: str, default: float) -> float:
    value = env.get(key)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError as e:
        raise ConfigError(f"{key} must be a number, got {value!r}") from e


def load_config(env: Optional[Mapping[str, str]] = None) -> ScoringConfig:
    """
    Build a ScoringConfig from environment variables.

    SIGNALSCORE_WEIGHTS_FILE      JSON weight table (default: built-in table)
    SIGNALSCORE_HALF_LIFE_DAYS    decay half-life in days (default: 365)
    SIGNALSCORE_REVIEW_THRESHOLD  review flag threshold (default: 70)
    """
    if env is None:
        env = os.environ

    weights_file = env.get("SIGNALSCORE_WEIGHTS_FILE")
    if weights_file:
        weights = load_weight_table(Path(weights_file))
    else:
        weights = dict(DEFAULT_WEIGHT_TABLE)

    return ScoringConfig(
        weights=weights,
        half_life_days=_float_env(env, "SIGNALSCORE_HALF_LIFE_DAYS", DEFAULT_HALF_LIFE_DAYS),
        review_threshold=_float_env(env, "SIGNALSCORE_REVIEW_THRESHOLD", REVIEW_THRESHOLD),
    )


def get_database_path(env: Optional[Mapping[str, str]] = None) -> Path:
    if env is None:
        env = os.environ
    return Path(env.get("SIGNALSCORE_DB_PATH") or DEFAULT_DB_PATH)
