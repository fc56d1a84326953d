"""
Classification result schemas.

Results are immutable once returned. A cache hit hands back a copy with
`cache_hit` set rather than mutating the stored record.
"""

from typing import List, Optional

from pydantic import ConfigDict, Field, model_validator

from .base import CamelModel
from .enums import Category, Priority, ScoringMode
from .issue import RepositoryContext


class CategoryClassification(CamelModel):
    """Confidence that one category applies, with the evidence behind it."""
    model_config = ConfigDict(frozen=True)

    category: Category
    confidence: float = Field(ge=0, le=1)
    reasons: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    rule_id: Optional[str] = None
    rule_name: Optional[str] = None
    rule_ids: List[str] = Field(default_factory=list)
    rule_weight: float = Field(default=0.0, ge=0, le=1)


class ScoreBreakdown(CamelModel):
    """Points each factor contributed to the final score."""
    model_config = ConfigDict(frozen=True)

    algorithm: ScoringMode
    category: float
    priority: float
    confidence: float
    recency: float
    custom: Optional[float] = None
    base: Optional[float] = None


class ConfidenceAdjustment(CamelModel):
    model_config = ConfigDict(frozen=True)

    rule: str
    adjustment: float
    reason: str


class ProcessingMetadata(CamelModel):
    model_config = ConfigDict(frozen=True)

    rules_applied: int = 0
    rules_matched: int = 0
    rules_vetoed: int = 0
    confidence_adjustments: List[ConfidenceAdjustment] = Field(default_factory=list)


class ClassificationMetadata(CamelModel):
    model_config = ConfigDict(frozen=True)

    title_length: int = 0
    body_length: int = 0
    has_code_blocks: bool = False
    has_steps_to_reproduce: bool = False
    has_expected_behavior: bool = False
    label_count: int = 0
    existing_labels: List[str] = Field(default_factory=list)
    age_days: Optional[float] = None
    repository_context: Optional[RepositoryContext] = None
    processing_metadata: Optional[ProcessingMetadata] = None
    diagnostics: List[str] = Field(default_factory=list)


class IssueClassification(CamelModel):
    model_config = ConfigDict(frozen=True)

    issue_id: Optional[int] = None
    issue_number: Optional[int] = None
    classifications: List[CategoryClassification] = Field(default_factory=list)
    primary_category: Category
    primary_confidence: float = Field(ge=0, le=1)
    estimated_priority: Priority
    priority_confidence: float = Field(ge=0, le=1)
    processing_time_ms: float = Field(default=0.0, ge=0)
    version: str
    metadata: ClassificationMetadata = Field(default_factory=ClassificationMetadata)


class EnhancedIssueClassification(IssueClassification):
    """Classification plus task score and the versions that produced it."""
    score: float = Field(ge=0, le=100)
    score_breakdown: ScoreBreakdown
    cache_hit: bool = False
    config_version: str
    algorithm_version: str
    profile_id: Optional[str] = None


# =============================================================================
# Batch and ranking results
# =============================================================================

class BatchError(CamelModel):
    model_config = ConfigDict(frozen=True)

    issue_id: Optional[int] = None
    error: str


class BatchClassificationResult(CamelModel):
    model_config = ConfigDict(frozen=True)

    total_issues: int = Field(ge=0)
    processed_issues: int = Field(ge=0)
    successful_issues: int = Field(ge=0)
    failed_issues: int = Field(ge=0)
    results: List[EnhancedIssueClassification] = Field(default_factory=list)
    errors: List[BatchError] = Field(default_factory=list)
    processing_time_ms: float = Field(default=0.0, ge=0)
    average_confidence: float = Field(default=0.0, ge=0, le=1)
    cancelled: bool = False

    @model_validator(mode="after")
    def check_counts(self) -> "BatchClassificationResult":
        if self.successful_issues + self.failed_issues != self.processed_issues:
            raise ValueError("successful + failed must equal processed")
        if self.processed_issues > self.total_issues:
            raise ValueError("processed issues cannot exceed total issues")
        return self


class TaskScore(CamelModel):
    model_config = ConfigDict(frozen=True)

    issue_id: Optional[int] = None
    issue_number: Optional[int] = None
    title: str
    url: Optional[str] = None
    score: float = Field(ge=0, le=100)
    priority: Priority
    category: Category
    confidence: float = Field(ge=0, le=1)
    reasons: List[str] = Field(default_factory=list)
    labels: List[str] = Field(default_factory=list)


class TopTasksResult(CamelModel):
    model_config = ConfigDict(frozen=True)

    tasks: List[TaskScore] = Field(default_factory=list)
    total_analyzed: int = 0
    average_score: float = 0.0
    processing_time_ms: float = 0.0
