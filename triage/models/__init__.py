"""
Engine data model.

Configuration documents, engine inputs and engine results. All models dump to
camelCase JSON via `to_document()`.
"""

from triage.models.classification import (
    BatchClassificationResult,
    BatchError,
    CategoryClassification,
    ClassificationMetadata,
    ConfidenceAdjustment,
    EnhancedIssueClassification,
    IssueClassification,
    ProcessingMetadata,
    ScoreBreakdown,
    TaskScore,
    TopTasksResult,
)
from triage.models.config import (
    BatchProcessingConfig,
    CachingConfig,
    ClassificationRule,
    ConfidenceThreshold,
    ConfigMetadata,
    ConfigurationProfile,
    ConfigurationUpdate,
    CustomFactor,
    EnhancedClassificationConfig,
    FallbackScoringConfig,
    PerformanceConfig,
    PrecomputationConfig,
    PriorityEstimationConfig,
    PriorityRule,
    PriorityRuleConditions,
    RepositoryConfig,
    RuleConditions,
    ScoreBucket,
    ScoringAlgorithm,
    ScoringWeights,
    SignalWeights,
    UpdateCondition,
)
from triage.models.enums import (
    CacheStrategy,
    Category,
    ConditionOperator,
    ConfigSource,
    IssueState,
    Priority,
    PriorityAlgorithm,
    ScoringMode,
    UpdateOperation,
)
from triage.models.issue import IssueInput, RepositoryContext

__all__ = [
    # Enums
    "CacheStrategy",
    "Category",
    "ConditionOperator",
    "ConfigSource",
    "IssueState",
    "Priority",
    "PriorityAlgorithm",
    "ScoringMode",
    "UpdateOperation",
    # Configuration
    "BatchProcessingConfig",
    "CachingConfig",
    "ClassificationRule",
    "ConfidenceThreshold",
    "ConfigMetadata",
    "ConfigurationProfile",
    "ConfigurationUpdate",
    "CustomFactor",
    "EnhancedClassificationConfig",
    "FallbackScoringConfig",
    "PerformanceConfig",
    "PrecomputationConfig",
    "PriorityEstimationConfig",
    "PriorityRule",
    "PriorityRuleConditions",
    "RepositoryConfig",
    "RuleConditions",
    "ScoreBucket",
    "ScoringAlgorithm",
    "ScoringWeights",
    "SignalWeights",
    "UpdateCondition",
    # Inputs
    "IssueInput",
    "RepositoryContext",
    # Results
    "BatchClassificationResult",
    "BatchError",
    "CategoryClassification",
    "ClassificationMetadata",
    "ConfidenceAdjustment",
    "EnhancedIssueClassification",
    "IssueClassification",
    "ProcessingMetadata",
    "ScoreBreakdown",
    "TaskScore",
    "TopTasksResult",
]
