"""
Shared Enumerations.

Defines enums used across the engine for type safety and consistency.
"""

from enum import Enum


class Category(str, Enum):
    """Issue category."""
    BUG = "bug"
    FEATURE = "feature"
    ENHANCEMENT = "enhancement"
    DOCUMENTATION = "documentation"
    QUESTION = "question"
    DUPLICATE = "duplicate"
    INVALID = "invalid"
    WONTFIX = "wontfix"
    HELP_WANTED = "help-wanted"
    GOOD_FIRST_ISSUE = "good-first-issue"
    SECURITY = "security"
    PERFORMANCE = "performance"
    REFACTOR = "refactor"
    TEST = "test"
    CI_CD = "ci-cd"
    DEPENDENCIES = "dependencies"


class Priority(str, Enum):
    """Issue urgency level."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    BACKLOG = "backlog"


class CacheStrategy(str, Enum):
    """Result cache eviction strategy."""
    LRU = "lru"
    LFU = "lfu"
    TTL = "ttl"


class PriorityAlgorithm(str, Enum):
    """Priority estimation algorithm."""
    RULE_BASED = "rule-based"
    WEIGHTED = "weighted"
    MACHINE_LEARNING = "machine-learning"


class UpdateOperation(str, Enum):
    """Configuration update operation."""
    SET = "set"
    MERGE = "merge"
    APPEND = "append"
    REMOVE = "remove"


class ConditionOperator(str, Enum):
    """Operator for conditional configuration updates."""
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"


class ConfigSource(str, Enum):
    """Where a loaded configuration came from."""
    FILE = "file"
    API = "api"
    MEMORY = "memory"
    FALLBACK = "fallback"


class MetadataSource(str, Enum):
    """Origin recorded in a configuration document's metadata."""
    FILE = "file"
    API = "api"
    UI = "ui"


class ProfileType(str, Enum):
    """Configuration profile type."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"
    CUSTOM = "custom"


class ScoringMode(str, Enum):
    """Which scoring path produced a task score."""
    WEIGHTED = "weighted"
    FALLBACK = "fallback"


class IssueState(str, Enum):
    """GitHub issue state."""
    OPEN = "open"
    CLOSED = "closed"
