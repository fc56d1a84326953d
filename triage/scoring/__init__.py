"""Task scoring: weighted factor blend with an additive lookup-table fallback."""

from triage.scoring.algorithm import (
    ScoreResult,
    ScoringFactors,
    compute_task_score,
    custom_factor_value,
    default_fallback_tables,
    derive_factors,
    fallback_score,
    recency_factor,
    weighted_score,
)

__all__ = [
    "ScoreResult",
    "ScoringFactors",
    "compute_task_score",
    "custom_factor_value",
    "default_fallback_tables",
    "derive_factors",
    "fallback_score",
    "recency_factor",
    "weighted_score",
]
