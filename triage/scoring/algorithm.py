"""
Task scoring.

Two paths produce a 0-100 task score:

- weighted: every factor is put on a 0-100 scale and the configured weights
  (which sum to 100) blend them, i.e. sum(factor * weight) / 100
- fallback: an additive score from lookup tables, used when no enabled
  scoring algorithm is configured

Both are clamped to [0, 100] and rounded to two decimals.
"""

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

from triage.constants import (
    CATEGORY_WEIGHTS,
    DEFAULT_FACTOR_WEIGHT,
    FALLBACK_SCORING,
    PRIORITY_WEIGHTS,
    RECENCY_HORIZON_DAYS,
)
from triage.models import (
    Category,
    CustomFactor,
    EnhancedClassificationConfig,
    FallbackScoringConfig,
    Priority,
    ScoreBreakdown,
    ScoreBucket,
    ScoringMode,
    ScoringWeights,
)


@dataclass(frozen=True)
class ScoringFactors:
    """Factor values, each on a 0-100 scale."""
    category: float
    priority: float
    confidence: float
    recency: float
    custom: float = 0.0


@dataclass(frozen=True)
class ScoreResult:
    score: float
    breakdown: ScoreBreakdown


def _clamp_score(value: float) -> float:
    return round(max(0.0, min(100.0, value)), 2)


# =============================================================================
# Factors
# =============================================================================

def recency_factor(age_days: Optional[float]) -> float:
    """
    Recency on a 0-100 scale, falling linearly to zero over RECENCY_HORIZON_DAYS.

    An issue with no known creation time gets no recency credit.
    """
    if age_days is None:
        return 0.0
    return max(0.0, 1.0 - age_days / RECENCY_HORIZON_DAYS) * 100


def custom_factor_value(
    factors: Optional[List[CustomFactor]], values: Optional[Mapping[str, float]]
) -> float:
    """Weighted mean of the enabled custom factors on a 0-100 scale. Missing values count as 0."""
    enabled = [factor for factor in factors or [] if factor.enabled]
    total_weight = sum(factor.weight for factor in enabled)
    if total_weight <= 0:
        return 0.0
    values = values or {}
    weighted = sum(factor.weight * values.get(factor.id, 0.0) for factor in enabled)
    return weighted / total_weight * 100


def category_weight(config: EnhancedClassificationConfig, category: Category) -> float:
    weights: Dict = config.category_weights if config.category_weights is not None else CATEGORY_WEIGHTS
    return weights.get(category, weights.get(category.value, DEFAULT_FACTOR_WEIGHT))


def priority_weight(config: EnhancedClassificationConfig, priority: Priority) -> float:
    weights: Dict = config.priority_weights if config.priority_weights is not None else PRIORITY_WEIGHTS
    return weights.get(priority, weights.get(priority.value, DEFAULT_FACTOR_WEIGHT))


def derive_factors(
    config: EnhancedClassificationConfig,
    category: Category,
    priority: Priority,
    confidence: float,
    age_days: Optional[float],
    custom_values: Optional[Mapping[str, float]] = None,
) -> ScoringFactors:
    algorithm = config.scoring_algorithm
    custom_factors = algorithm.custom_factors if algorithm is not None else None
    return ScoringFactors(
        category=category_weight(config, category) * 100,
        priority=priority_weight(config, priority) * 100,
        confidence=confidence * 100,
        recency=recency_factor(age_days),
        custom=custom_factor_value(custom_factors, custom_values),
    )


# =============================================================================
# Weighted score
# =============================================================================

def weighted_score(factors: ScoringFactors, weights: ScoringWeights) -> ScoreResult:
    """Blend 0-100 factors with weights that sum to 100."""
    points = {
        "category": factors.category * weights.category / 100,
        "priority": factors.priority * weights.priority / 100,
        "confidence": factors.confidence * weights.confidence / 100,
        "recency": factors.recency * weights.recency / 100,
        "custom": factors.custom * weights.custom / 100,
    }
    breakdown = ScoreBreakdown(
        algorithm=ScoringMode.WEIGHTED,
        category=round(points["category"], 2),
        priority=round(points["priority"], 2),
        confidence=round(points["confidence"], 2),
        recency=round(points["recency"], 2),
        custom=round(points["custom"], 2) if weights.custom > 0 else None,
    )
    return ScoreResult(score=_clamp_score(sum(points.values())), breakdown=breakdown)


# =============================================================================
# Fallback score
# =============================================================================

def default_fallback_tables() -> FallbackScoringConfig:
    return FallbackScoringConfig.model_validate(FALLBACK_SCORING)


def _confidence_points(confidence: float, tables: FallbackScoringConfig) -> float:
    # Highest minimum first
    for bucket in sorted(tables.confidence_buckets, key=lambda b: b.limit, reverse=True):
        if confidence >= bucket.limit:
            return bucket.points
    return tables.default_confidence_score


def _recency_points(age_days: Optional[float], tables: FallbackScoringConfig) -> float:
    if age_days is None:
        return tables.default_recency_score
    buckets: List[ScoreBucket] = sorted(tables.recency_buckets, key=lambda b: b.limit)
    for bucket in buckets:
        if age_days <= bucket.limit:
            return bucket.points
    return tables.default_recency_score


def fallback_score(
    category: Category,
    priority: Priority,
    confidence: float,
    age_days: Optional[float],
    tables: Optional[FallbackScoringConfig] = None,
) -> ScoreResult:
    """Additive score from lookup tables."""
    tables = tables or default_fallback_tables()
    category_points = tables.category_scores.get(category, tables.default_category_score)
    priority_points = tables.priority_scores.get(priority, tables.default_priority_score)
    confidence_points = _confidence_points(confidence, tables)
    recency_points = _recency_points(age_days, tables)

    total = tables.base_score + category_points + priority_points + confidence_points + recency_points
    breakdown = ScoreBreakdown(
        algorithm=ScoringMode.FALLBACK,
        category=round(category_points, 2),
        priority=round(priority_points, 2),
        confidence=round(confidence_points, 2),
        recency=round(recency_points, 2),
        base=round(tables.base_score, 2),
    )
    return ScoreResult(score=_clamp_score(total), breakdown=breakdown)


def compute_task_score(
    config: EnhancedClassificationConfig,
    category: Category,
    priority: Priority,
    confidence: float,
    age_days: Optional[float],
    custom_values: Optional[Mapping[str, float]] = None,
) -> ScoreResult:
    """Score with the configured algorithm, or the fallback tables when none is enabled."""
    algorithm = config.scoring_algorithm
    if algorithm is None or not algorithm.enabled:
        return fallback_score(category, priority, confidence, age_days, config.fallback_scoring)

    factors = derive_factors(config, category, priority, confidence, age_days, custom_values)
    return weighted_score(factors, algorithm.weights)


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
