"""
Application constants for the Issue Triage Engine.

Contains the built-in rule set, category/priority weights and the lookup
tables used by the fallback score. Values here are plain JSON-shaped data so
they can be written straight into a configuration document.
"""

# =============================================================================
# Category & Priority Weights
# =============================================================================

# Relative importance of each category (0-1); scaled to 0-100 as a scoring factor
CATEGORY_WEIGHTS = {
    "bug": 1.0,
    "security": 1.0,
    "feature": 0.8,
    "enhancement": 0.7,
    "performance": 0.8,
    "documentation": 0.5,
    "question": 0.4,
    "duplicate": 0.3,
    "invalid": 0.3,
    "wontfix": 0.3,
    "help-wanted": 0.6,
    "good-first-issue": 0.5,
    "refactor": 0.6,
    "test": 0.5,
    "ci-cd": 0.6,
    "dependencies": 0.5,
}

PRIORITY_WEIGHTS = {
    "critical": 1.0,
    "high": 0.8,
    "medium": 0.6,
    "low": 0.4,
    "backlog": 0.2,
}

# Used when a category or priority is missing from the configured weights
DEFAULT_FACTOR_WEIGHT = 0.5

# Recency factor reaches zero after this many days
RECENCY_HORIZON_DAYS = 20.0


# =============================================================================
# Fallback Score Tables (max 40 + 30 + 20 + 10 = 100 points)
# =============================================================================

FALLBACK_CATEGORY_SCORES = {category: weight * 40 for category, weight in CATEGORY_WEIGHTS.items()}
FALLBACK_PRIORITY_SCORES = {priority: weight * 30 for priority, weight in PRIORITY_WEIGHTS.items()}

FALLBACK_CONFIDENCE_BUCKETS = [
    {"limit": 0.9, "points": 20},
    {"limit": 0.7, "points": 15},
    {"limit": 0.5, "points": 10},
    {"limit": 0.3, "points": 5},
]

FALLBACK_RECENCY_BUCKETS = [
    {"limit": 1, "points": 10},
    {"limit": 7, "points": 8},
    {"limit": 30, "points": 5},
    {"limit": 90, "points": 2},
]

FALLBACK_SCORING = {
    "baseScore": 0,
    "categoryScores": FALLBACK_CATEGORY_SCORES,
    "defaultCategoryScore": 20,
    "priorityScores": FALLBACK_PRIORITY_SCORES,
    "defaultPriorityScore": 15,
    "confidenceBuckets": FALLBACK_CONFIDENCE_BUCKETS,
    "defaultConfidenceScore": 0,
    "recencyBuckets": FALLBACK_RECENCY_BUCKETS,
    "defaultRecencyScore": 0,
}


# =============================================================================
# Issue Text Signals
# =============================================================================

CODE_BLOCK_MARKERS = ("```", "`", "<code>")

STEPS_TO_REPRODUCE_PATTERNS = [
    r"steps to reproduce",
    r"how to reproduce",
    r"reproduce",
    r"repro",
]

EXPECTED_BEHAVIOR_PATTERNS = [
    r"expected",
    r"should",
    r"supposed to",
    r"intended",
]


# =============================================================================
# Built-in Classification Rules
# =============================================================================

DEFAULT_RULES = [
    {
        "id": "security-issues",
        "name": "Security issues",
        "description": "Vulnerabilities, exploits and authentication weaknesses",
        "category": "security",
        "priority": "critical",
        "weight": 1.0,
        "conditions": {
            "titleKeywords": ["security", "vulnerability", "exploit", "cve", "xss", "injection"],
            "bodyKeywords": ["unauthorized", "attacker", "breach", "leak", "csrf"],
            "labels": ["security"],
            "titlePatterns": ["/\\bcve-\\d{4}-\\d+\\b/i"],
        },
    },
    {
        "id": "bug-reports",
        "name": "Bug reports",
        "description": "Crashes, errors and broken behavior",
        "category": "bug",
        "priority": "high",
        "weight": 0.9,
        "conditions": {
            "titleKeywords": ["bug", "error", "crash", "broken", "fails", "exception"],
            "bodyKeywords": ["stack trace", "traceback", "exception", "error", "crash"],
            "labels": ["bug"],
            "bodyPatterns": ["/steps to reproduce/i"],
            "excludeKeywords": ["feature request"],
        },
    },
    {
        "id": "feature-requests",
        "name": "Feature requests",
        "description": "New capabilities",
        "category": "feature",
        "priority": "medium",
        "weight": 0.8,
        "conditions": {
            "titleKeywords": ["feature", "add support", "implement"],
            "bodyKeywords": ["would like", "it would be nice", "feature request", "proposal"],
            "labels": ["feature"],
            "titlePatterns": ["/^feat(\\(.+\\))?:/i"],
        },
    },
    {
        "id": "enhancements",
        "name": "Enhancements",
        "description": "Improvements to existing behavior",
        "category": "enhancement",
        "priority": "medium",
        "weight": 0.7,
        "conditions": {
            "titleKeywords": ["improve", "enhance", "better", "update"],
            "bodyKeywords": ["improvement", "enhancement"],
            "labels": ["enhancement"],
        },
    },
    {
        "id": "performance",
        "name": "Performance problems",
        "description": "Slowness, memory use and resource consumption",
        "category": "performance",
        "priority": "high",
        "weight": 0.9,
        "conditions": {
            "titleKeywords": ["slow", "performance", "memory leak", "latency", "timeout"],
            "bodyKeywords": ["slow", "cpu", "memory usage", "takes too long"],
            "labels": ["performance"],
        },
    },
    {
        "id": "documentation",
        "name": "Documentation",
        "description": "Docs, README and guides",
        "category": "documentation",
        "priority": "low",
        "weight": 0.8,
        "conditions": {
            "titleKeywords": ["docs", "documentation", "readme", "typo", "guide"],
            "bodyKeywords": ["documentation", "readme"],
            "labels": ["documentation", "docs"],
            "titlePatterns": ["/^docs(\\(.+\\))?:/i"],
        },
    },
    {
        "id": "questions",
        "name": "Questions",
        "description": "Usage questions and support requests",
        "category": "question",
        "priority": "low",
        "weight": 0.7,
        "conditions": {
            "titleKeywords": ["how to", "how do i", "question", "help"],
            "labels": ["question"],
            "titlePatterns": ["/\\?$/"],
        },
    },
    {
        "id": "testing",
        "name": "Tests",
        "description": "Test coverage and flaky tests",
        "category": "test",
        "priority": "medium",
        "weight": 0.8,
        "conditions": {
            "titleKeywords": ["coverage", "flaky"],
            "bodyKeywords": ["unit test", "integration test", "test coverage"],
            "labels": ["test", "testing"],
            "titlePatterns": ["/\\btests?\\b/i"],
        },
    },
    {
        "id": "refactoring",
        "name": "Refactoring",
        "description": "Cleanup and restructuring without behavior change",
        "category": "refactor",
        "priority": "low",
        "weight": 0.8,
        "conditions": {
            "titleKeywords": ["refactor", "cleanup", "clean up", "restructure"],
            "labels": ["refactor", "tech debt"],
            "titlePatterns": ["/^refactor(\\(.+\\))?:/i"],
        },
    },
    {
        "id": "ci-cd",
        "name": "CI/CD",
        "description": "Pipelines, workflows and builds",
        "category": "ci-cd",
        "priority": "medium",
        "weight": 0.8,
        "conditions": {
            "titleKeywords": ["pipeline", "workflow", "github actions"],
            "bodyKeywords": ["github actions", "workflow", "pipeline"],
            "labels": ["ci", "ci-cd", "infrastructure"],
            "titlePatterns": ["/\\bci\\b/i", "/\\bbuild (fails|failure|broken)\\b/i"],
        },
    },
    {
        "id": "dependencies",
        "name": "Dependency updates",
        "description": "Package bumps and dependency problems",
        "category": "dependencies",
        "priority": "low",
        "weight": 0.8,
        "conditions": {
            "titleKeywords": ["bump", "dependency", "dependencies", "upgrade"],
            "labels": ["dependencies"],
            "titlePatterns": ["/^(chore|build)\\(deps\\)/i"],
        },
    },
    {
        "id": "good-first-issue",
        "name": "Good first issues",
        "description": "Starter tasks for new contributors",
        "category": "good-first-issue",
        "weight": 1.0,
        "conditions": {
            "labels": ["good first issue", "good-first-issue", "beginner"],
        },
    },
    {
        "id": "help-wanted",
        "name": "Help wanted",
        "description": "Maintainers are asking for outside help",
        "category": "help-wanted",
        "weight": 1.0,
        "conditions": {
            "labels": ["help wanted", "help-wanted"],
        },
    },
    {
        "id": "duplicates",
        "name": "Duplicates",
        "description": "Already reported elsewhere",
        "category": "duplicate",
        "priority": "backlog",
        "weight": 0.9,
        "conditions": {
            "titleKeywords": ["duplicate"],
            "bodyKeywords": ["duplicate of", "already reported", "same as #"],
            "labels": ["duplicate"],
        },
    },
]


# =============================================================================
# Built-in Priority Rules (first match wins)
# =============================================================================

DEFAULT_PRIORITY_RULES = [
    {
        "id": "label-critical",
        "name": "Critical priority label",
        "conditions": {"labels": ["priority: critical", "priority:critical", "p0"]},
        "resultPriority": "critical",
    },
    {
        "id": "label-high",
        "name": "High priority label",
        "conditions": {"labels": ["priority: high", "priority:high", "p1"]},
        "resultPriority": "high",
    },
    {
        "id": "label-medium",
        "name": "Medium priority label",
        "conditions": {"labels": ["priority: medium", "priority:medium", "p2"]},
        "resultPriority": "medium",
    },
    {
        "id": "label-low",
        "name": "Low priority label",
        "conditions": {"labels": ["priority: low", "priority:low", "p3"]},
        "resultPriority": "low",
    },
    {
        "id": "security-critical",
        "name": "Security issues are critical",
        "conditions": {"categories": ["security"]},
        "resultPriority": "critical",
    },
    {
        "id": "confident-bug-critical",
        "name": "High-confidence bugs are critical",
        "conditions": {"categories": ["bug"], "confidenceThreshold": 0.8},
        "resultPriority": "critical",
    },
    {
        "id": "bug-or-performance-high",
        "name": "Bugs and performance problems",
        "conditions": {"categories": ["bug", "performance"]},
        "resultPriority": "high",
    },
    {
        "id": "features-medium",
        "name": "Features and enhancements",
        "conditions": {"categories": ["feature", "enhancement"]},
        "resultPriority": "medium",
    },
    {
        "id": "docs-low",
        "name": "Documentation and questions",
        "conditions": {"categories": ["documentation", "question"]},
        "resultPriority": "low",
    },
]
