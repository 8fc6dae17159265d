from .calculator import ScoreResult, SignalContribution, compute_score, needs_review, score_signals
from .decay import age_in_days, decay_factor
from .explainer import ScoreBreakdown, explain_entity, explain_signals
from .incremental import EntityLocks, record_signal, update_entity_score

__all__ = [
    "EntityLocks",
    "ScoreBreakdown",
    "ScoreResult",
    "SignalContribution",
    "age_in_days",
    "compute_score",
    "decay_factor",
    "explain_entity",
    "explain_signals",
    "needs_review",
    "record_signal",
    "score_signals",
    "update_entity_score",
]
