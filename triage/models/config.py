"""
Classification configuration schemas.

These models are the validation contract for configuration documents: a
document that does not satisfy them is rejected before it reaches the engine.
"""

import hashlib
import json
import math
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field, field_validator, model_validator

from .base import CamelModel
from .enums import (
    CacheStrategy,
    Category,
    ConditionOperator,
    MetadataSource,
    Priority,
    PriorityAlgorithm,
    ProfileType,
    UpdateOperation,
)

Confidence = float


# =============================================================================
# Rules
# =============================================================================

class RuleConditions(CamelModel):
    """Signals a rule looks for. All matching is case-insensitive."""
    model_config = ConfigDict(frozen=True)

    title_keywords: List[str] = Field(default_factory=list)
    body_keywords: List[str] = Field(default_factory=list)
    labels: List[str] = Field(default_factory=list)
    title_patterns: List[str] = Field(default_factory=list)
    body_patterns: List[str] = Field(default_factory=list)
    exclude_keywords: List[str] = Field(default_factory=list)


class ClassificationRule(CamelModel):
    """A pattern-matching unit that contributes confidence to one category."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str
    description: str = ""
    category: Category
    priority: Optional[Priority] = None
    conditions: RuleConditions = Field(default_factory=RuleConditions)
    weight: float = Field(default=1.0, ge=0, le=1)
    enabled: bool = True


# =============================================================================
# Scoring
# =============================================================================

class ScoringWeights(CamelModel):
    """Factor weights on a 0-100 scale. They must sum to exactly 100."""
    category: float = Field(default=40, ge=0, le=100)
    priority: float = Field(default=30, ge=0, le=100)
    confidence: float = Field(default=20, ge=0, le=100)
    recency: float = Field(default=10, ge=0, le=100)
    custom: float = Field(default=0, ge=0, le=100)

    @property
    def total(self) -> float:
        return self.category + self.priority + self.confidence + self.recency + self.custom

    @model_validator(mode="after")
    def check_total(self) -> "ScoringWeights":
        # abs_tol only absorbs float representation error (e.g. 33.3 + 33.3 + 33.4)
        if not math.isclose(self.total, 100.0, abs_tol=1e-9):
            raise ValueError(f"Scoring weights must sum to 100 (got {self.total:g})")
        return self


class CustomFactor(CamelModel):
    id: str = Field(min_length=1)
    name: str = ""
    description: str = ""
    weight: float = Field(ge=0, le=1)
    enabled: bool = True


class ScoringAlgorithm(CamelModel):
    """Weighted combination of factors producing a single task score."""
    id: str = Field(min_length=1)
    name: str = ""
    description: str = ""
    version: str = "1.0.0"
    weights: ScoringWeights = Field(default_factory=ScoringWeights)
    custom_factors: Optional[List[CustomFactor]] = None
    enabled: bool = True


class ScoreBucket(CamelModel):
    """
    One row of a threshold lookup table.

    For confidence tables `limit` is the minimum confidence for the bucket;
    for recency tables it is the maximum issue age in days.
    """
    limit: float = Field(ge=0)
    points: float = Field(ge=0, le=100)


class FallbackScoringConfig(CamelModel):
    """Lookup tables for the additive score used when no algorithm is configured."""
    base_score: float = Field(default=0, ge=0, le=100)
    category_scores: Dict[Category, float] = Field(default_factory=dict)
    default_category_score: float = Field(default=20, ge=0, le=100)
    priority_scores: Dict[Priority, float] = Field(default_factory=dict)
    default_priority_score: float = Field(default=15, ge=0, le=100)
    confidence_buckets: List[ScoreBucket] = Field(default_factory=list)
    default_confidence_score: float = Field(default=0, ge=0, le=100)
    recency_buckets: List[ScoreBucket] = Field(default_factory=list)
    default_recency_score: float = Field(default=0, ge=0, le=100)


# =============================================================================
# Thresholds and priority estimation
# =============================================================================

class ConfidenceThreshold(CamelModel):
    category: Category
    min_confidence: Confidence = Field(default=0.7, ge=0, le=1)
    max_confidence: Confidence = Field(default=1.0, ge=0, le=1)
    adjustment_factor: float = Field(default=1.0, ge=0, le=2)

    @model_validator(mode="after")
    def check_bounds(self) -> "ConfidenceThreshold":
        if self.min_confidence > self.max_confidence:
            raise ValueError(
                f"minConfidence ({self.min_confidence}) exceeds maxConfidence "
                f"({self.max_confidence}) for category '{self.category.value}'"
            )
        return self


class PriorityRuleConditions(CamelModel):
    """Every condition that is set must hold for the rule to match."""
    categories: Optional[List[Category]] = None
    keywords: Optional[List[str]] = None
    labels: Optional[List[str]] = None
    age_threshold: Optional[float] = Field(default=None, ge=0, description="Age threshold in days")
    confidence_threshold: Optional[Confidence] = Field(default=None, ge=0, le=1)


class PriorityRule(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str = ""
    conditions: PriorityRuleConditions = Field(default_factory=PriorityRuleConditions)
    result_priority: Priority
    weight: float = Field(default=1.0, ge=0, le=1)
    enabled: bool = True


class PriorityEstimationConfig(CamelModel):
    algorithm: PriorityAlgorithm = PriorityAlgorithm.RULE_BASED
    rules: Optional[List[PriorityRule]] = None
    fallback_priority: Priority = Priority.MEDIUM
    confidence_bonus: float = Field(default=0.1, ge=0, le=1)


# =============================================================================
# Performance
# =============================================================================

class CachingConfig(CamelModel):
    enabled: bool = True
    ttl: float = Field(default=3600, ge=0, description="Cache time-to-live in seconds")
    max_size: int = Field(default=1000, ge=0)
    strategy: CacheStrategy = CacheStrategy.LRU


class BatchProcessingConfig(CamelModel):
    enabled: bool = True
    batch_size: int = Field(default=100, ge=1, le=1000)
    parallelism: int = Field(default=3, ge=1, le=10)


class PrecomputationConfig(CamelModel):
    enabled: bool = False
    schedule: Optional[str] = None
    output_path: Optional[str] = None


class PerformanceConfig(CamelModel):
    caching: CachingConfig = Field(default_factory=CachingConfig)
    batch_processing: BatchProcessingConfig = Field(default_factory=BatchProcessingConfig)
    precomputation: PrecomputationConfig = Field(default_factory=PrecomputationConfig)


# =============================================================================
# Repositories and metadata
# =============================================================================

class RepositoryConfig(CamelModel):
    owner: str = Field(min_length=1)
    repo: str = Field(min_length=1)
    branch: str = "main"
    enabled: bool = True
    last_updated: Optional[datetime] = None


class SignalWeights(CamelModel):
    """Confidence each matching signal adds before the rule weight is applied."""
    title_keyword: float = Field(default=0.30, ge=0, le=1)
    body_keyword: float = Field(default=0.20, ge=0, le=1)
    label: float = Field(default=0.40, ge=0, le=1)
    title_pattern: float = Field(default=0.25, ge=0, le=1)
    body_pattern: float = Field(default=0.20, ge=0, le=1)


class ConfigMetadata(CamelModel):
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    config_source: MetadataSource = MetadataSource.FILE
    tags: List[str] = Field(default_factory=list)


# =============================================================================
# Aggregate root
# =============================================================================

class EnhancedClassificationConfig(CamelModel):
    """Complete classification configuration."""
    version: str = "1.0.0"
    min_confidence: Confidence = Field(default=0.7, ge=0, le=1)
    max_categories: int = Field(default=3, ge=1, le=10)
    enable_auto_classification: bool = True
    enable_priority_estimation: bool = True
    rules: List[ClassificationRule] = Field(default_factory=list)
    custom_rules: List[ClassificationRule] = Field(default_factory=list)
    category_weights: Optional[Dict[Category, float]] = None
    priority_weights: Optional[Dict[Priority, float]] = None
    repositories: List[RepositoryConfig] = Field(default_factory=list)
    scoring_algorithm: Optional[ScoringAlgorithm] = None
    confidence_thresholds: Optional[List[ConfidenceThreshold]] = None
    priority_estimation: Optional[PriorityEstimationConfig] = None
    performance: Optional[PerformanceConfig] = None
    signal_weights: SignalWeights = Field(default_factory=SignalWeights)
    default_category: Category = Category.QUESTION
    fallback_scoring: Optional[FallbackScoringConfig] = None
    environments: Optional[Dict[str, Any]] = None
    metadata: Optional[ConfigMetadata] = None

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("version must not be empty")
        return v.strip()

    @property
    def active_rules(self) -> List[ClassificationRule]:
        """Enabled rules followed by enabled custom rules."""
        return [rule for rule in [*self.rules, *self.custom_rules] if rule.enabled]

    @property
    def algorithm_version(self) -> str:
        """Version stamp of the scoring path in use."""
        algorithm = self.scoring_algorithm
        if algorithm is not None and algorithm.enabled:
            return f"{algorithm.id}@{algorithm.version}"
        return "fallback"

    def threshold_for(self, category: Category) -> Optional[ConfidenceThreshold]:
        for threshold in self.confidence_thresholds or []:
            if threshold.category == category:
                return threshold
        return None

    def find_repository(self, owner: str, repo: str) -> Optional[RepositoryConfig]:
        for repository in self.repositories:
            if repository.owner == owner and repository.repo == repo:
                return repository
        return None

    def digest(self) -> str:
        """Short content hash; changes whenever any configured value changes."""
        canonical = json.dumps(self.to_document(), sort_keys=True, separators=(",", ":"))
        return hashlib.md5(canonical.encode()).hexdigest()[:12]


class ConfigurationProfile(CamelModel):
    id: str = Field(min_length=1)
    name: str
    description: str = ""
    type: ProfileType = ProfileType.CUSTOM
    config: EnhancedClassificationConfig
    is_default: bool = False
    tags: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =============================================================================
# Dynamic updates
# =============================================================================

class UpdateCondition(CamelModel):
    path: str = Field(min_length=1)
    operator: ConditionOperator
    value: Any = None


class UpdateMetadata(CamelModel):
    reason: Optional[str] = None
    timestamp: Optional[datetime] = None
    user: Optional[str] = None


class ConfigurationUpdate(CamelModel):
    """A single dot-path change to a configuration document."""
    path: str
    value: Any = None
    operation: UpdateOperation = UpdateOperation.SET
    conditions: Optional[List[UpdateCondition]] = None
    metadata: Optional[UpdateMetadata] = None

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        segments = v.split(".")
        if not v or any(not segment.strip() for segment in segments):
            raise ValueError(f"Invalid configuration path: '{v}'")
        return v
