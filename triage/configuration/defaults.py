"""Built-in configuration used when no document is found or a document is a legacy one."""

import copy
from typing import Any, Dict

from triage.constants import (
    CATEGORY_WEIGHTS,
    DEFAULT_PRIORITY_RULES,
    DEFAULT_RULES,
    FALLBACK_SCORING,
    PRIORITY_WEIGHTS,
)
from triage.models import EnhancedClassificationConfig

DEFAULT_CONFIG_VERSION = "2.0.0"

_DEFAULT_DOCUMENT: Dict[str, Any] = {
    "version": DEFAULT_CONFIG_VERSION,
    "minConfidence": 0.7,
    "maxCategories": 3,
    "enableAutoClassification": True,
    "enablePriorityEstimation": True,
    "rules": DEFAULT_RULES,
    "customRules": [],
    "categoryWeights": CATEGORY_WEIGHTS,
    "priorityWeights": PRIORITY_WEIGHTS,
    "repositories": [],
    "scoringAlgorithm": {
        "id": "default",
        "name": "Default weighted scoring",
        "description": "Category, priority, confidence and recency weighted 40/30/20/10",
        "version": "1.0.0",
        "weights": {"category": 40, "priority": 30, "confidence": 20, "recency": 10, "custom": 0},
        "enabled": True,
    },
    "priorityEstimation": {
        "algorithm": "rule-based",
        "rules": DEFAULT_PRIORITY_RULES,
        "fallbackPriority": "medium",
        "confidenceBonus": 0.1,
    },
    "performance": {
        "caching": {"enabled": True, "ttl": 3600, "maxSize": 1000, "strategy": "lru"},
        "batchProcessing": {"enabled": True, "batchSize": 100, "parallelism": 3},
        "precomputation": {"enabled": False},
    },
    "defaultCategory": "question",
    "fallbackScoring": FALLBACK_SCORING,
}


def default_config_document() -> Dict[str, Any]:
    """Return a fresh copy of the built-in configuration document."""
    return copy.deepcopy(_DEFAULT_DOCUMENT)


def default_config() -> EnhancedClassificationConfig:
    """Return the built-in configuration, validated."""
    return EnhancedClassificationConfig.model_validate(default_config_document())
