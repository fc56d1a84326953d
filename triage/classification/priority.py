"""Priority estimation from the configured priority rules."""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Sequence

from triage.constants import DEFAULT_PRIORITY_RULES
from triage.models import (
    CategoryClassification,
    EnhancedClassificationConfig,
    Priority,
    PriorityAlgorithm,
    PriorityEstimationConfig,
    PriorityRule,
)

from .conditions import IssueText


@dataclass(frozen=True)
class PriorityEstimate:
    priority: Priority
    confidence: float
    rule_id: Optional[str] = None


def _builtin_rules() -> List[PriorityRule]:
    return [PriorityRule.model_validate(rule) for rule in DEFAULT_PRIORITY_RULES]


@lru_cache(maxsize=256)
def _label_term(term: str) -> "re.Pattern[str]":
    return re.compile(rf"(?<![a-z0-9]){re.escape(term)}(?![a-z0-9])")


def label_has_term(label: str, term: str) -> bool:
    """
    True when `term` appears in `label` as a whole term.

    "p1" matches "p1" and "priority/p1" but not "p10" or "http1".
    """
    term = term.strip().lower()
    return bool(term) and _label_term(term).search(label) is not None


class PriorityEstimator:
    """
    First-match priority rules.

    A rule matches when every condition it sets holds:
    - categories: one of the selected categories is listed
    - keywords: title or body contains one of them
    - labels: an issue label contains one of them as a whole term
    - ageThreshold: the issue is at least that many days old
    - confidenceThreshold: the best listed (or primary) confidence reaches it

    When estimation is disabled, the algorithm is not rule-based, or no rule
    matches, the fallback priority is used. Leaving `rules` unset selects the
    built-in rules; an empty list disables them.
    """

    def __init__(self, config: Optional[PriorityEstimationConfig] = None, enabled: bool = True):
        self.config = config or PriorityEstimationConfig()
        self.enabled = enabled
        rules = self.config.rules if self.config.rules is not None else _builtin_rules()
        self.rules = [rule for rule in rules if rule.enabled]

    @classmethod
    def from_config(cls, config: EnhancedClassificationConfig) -> "PriorityEstimator":
        return cls(config.priority_estimation, enabled=config.enable_priority_estimation)

    def rule_matches(
        self,
        rule: PriorityRule,
        text: IssueText,
        classifications: Sequence[CategoryClassification],
        primary_confidence: float,
        age_days: Optional[float],
    ) -> bool:
        conditions = rule.conditions

        relevant = classifications
        if conditions.categories is not None:
            wanted = set(conditions.categories)
            relevant = [c for c in classifications if c.category in wanted]
            if not relevant:
                return False

        if conditions.keywords is not None:
            combined = f"{text.title_lower}\n{text.body_lower}"
            if not any(keyword.strip() and keyword.lower() in combined for keyword in conditions.keywords):
                return False

        if conditions.labels is not None:
            if not any(
                label_has_term(label, wanted) for wanted in conditions.labels for label in text.labels
            ):
                return False

        if conditions.age_threshold is not None:
            if age_days is None or age_days < conditions.age_threshold:
                return False

        if conditions.confidence_threshold is not None:
            if conditions.categories is not None:
                confidence = max(c.confidence for c in relevant)
            else:
                confidence = primary_confidence
            if confidence < conditions.confidence_threshold:
                return False

        return True

    def estimate(
        self,
        text: IssueText,
        classifications: Sequence[CategoryClassification],
        primary_confidence: float,
        age_days: Optional[float] = None,
    ) -> PriorityEstimate:
        confidence = min(1.0, max(0.0, primary_confidence + self.config.confidence_bonus))
        fallback = PriorityEstimate(self.config.fallback_priority, confidence)

        if not self.enabled or self.config.algorithm != PriorityAlgorithm.RULE_BASED:
            return fallback

        for rule in self.rules:
            if self.rule_matches(rule, text, classifications, primary_confidence, age_days):
                return PriorityEstimate(rule.result_priority, confidence, rule.id)
        return fallback


__all__ = ["PriorityEstimate", "PriorityEstimator", "label_has_term"]
