"""
Issue classification.

Rule evaluation, category selection, priority estimation and scoring for a
single configuration.
"""

from triage.classification.conditions import ConditionKind, IssueText, compile_pattern
from triage.classification.engine import ClassificationEngine, Stage
from triage.classification.evaluator import RuleEvaluation, RuleEvaluator, RuleMatch
from triage.classification.priority import PriorityEstimate, PriorityEstimator

__all__ = [
    "ClassificationEngine",
    "ConditionKind",
    "IssueText",
    "PriorityEstimate",
    "PriorityEstimator",
    "RuleEvaluation",
    "RuleEvaluator",
    "RuleMatch",
    "Stage",
    "compile_pattern",
]
