"""
Rule evaluation.

Every active rule is checked against the issue. A rule's contribution is the
sum of the signal weights of everything it matched, multiplied by the rule's
own weight. Contributions are summed per category and then shaped by the
category's confidence threshold, if one is configured.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from triage.models import (
    Category,
    CategoryClassification,
    ClassificationRule,
    ConfidenceAdjustment,
    ConfidenceThreshold,
    EnhancedClassificationConfig,
    SignalWeights,
)

from .conditions import SIGNAL_KINDS, ConditionKind, IssueText, match_condition

_REASON_TEMPLATES = {
    ConditionKind.TITLE_KEYWORD: "Title contains '{}'",
    ConditionKind.BODY_KEYWORD: "Body contains '{}'",
    ConditionKind.LABEL: "Has label '{}'",
    ConditionKind.TITLE_PATTERN: "Title matches {}",
    ConditionKind.BODY_PATTERN: "Body matches {}",
}

_KEYWORD_KINDS = (ConditionKind.TITLE_KEYWORD, ConditionKind.BODY_KEYWORD, ConditionKind.LABEL)


@dataclass
class RuleMatch:
    """Outcome of checking a single rule."""
    rule: ClassificationRule
    contribution: float = 0.0
    keywords: List[str] = field(default_factory=list)
    reasons: List[str] = field(default_factory=list)
    vetoed_by: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.vetoed_by is None and self.contribution > 0


@dataclass
class _CategoryAccumulator:
    raw: float = 0.0
    keywords: List[str] = field(default_factory=list)
    reasons: List[str] = field(default_factory=list)
    rule_ids: List[str] = field(default_factory=list)
    strongest: Optional[RuleMatch] = None
    max_rule_weight: float = 0.0

    def add(self, match: RuleMatch) -> None:
        self.raw += match.contribution
        for keyword in match.keywords:
            if keyword not in self.keywords:
                self.keywords.append(keyword)
        self.reasons.extend(match.reasons)
        self.rule_ids.append(match.rule.id)
        self.max_rule_weight = max(self.max_rule_weight, match.rule.weight)
        if self.strongest is None or match.contribution > self.strongest.contribution:
            self.strongest = match


@dataclass
class RuleEvaluation:
    categories: List[CategoryClassification]
    rules_applied: int = 0
    rules_matched: int = 0
    rules_vetoed: int = 0
    adjustments: List[ConfidenceAdjustment] = field(default_factory=list)


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


class RuleEvaluator:
    """Turns a rule set and an issue into per-category confidences."""

    def __init__(
        self,
        signal_weights: Optional[SignalWeights] = None,
        confidence_thresholds: Optional[Sequence[ConfidenceThreshold]] = None,
    ):
        self.signal_weights = signal_weights or SignalWeights()
        self.thresholds: Dict[Category, ConfidenceThreshold] = {
            threshold.category: threshold for threshold in confidence_thresholds or []
        }
        self._kind_weights = {
            ConditionKind.TITLE_KEYWORD: self.signal_weights.title_keyword,
            ConditionKind.BODY_KEYWORD: self.signal_weights.body_keyword,
            ConditionKind.LABEL: self.signal_weights.label,
            ConditionKind.TITLE_PATTERN: self.signal_weights.title_pattern,
            ConditionKind.BODY_PATTERN: self.signal_weights.body_pattern,
        }

    @classmethod
    def from_config(cls, config: EnhancedClassificationConfig) -> "RuleEvaluator":
        return cls(config.signal_weights, config.confidence_thresholds)

    def evaluate_rule(self, rule: ClassificationRule, text: IssueText) -> RuleMatch:
        result = RuleMatch(rule=rule)

        exclusions = match_condition(ConditionKind.EXCLUDE_KEYWORD, text, rule.conditions)
        if exclusions:
            result.vetoed_by = exclusions[0]
            return result

        signal = 0.0
        for kind in SIGNAL_KINDS:
            hits = match_condition(kind, text, rule.conditions)
            if not hits:
                continue
            signal += self._kind_weights[kind] * len(hits)
            if kind in _KEYWORD_KINDS:
                result.keywords.extend(hit for hit in hits if hit not in result.keywords)
            result.reasons.extend(_REASON_TEMPLATES[kind].format(hit) for hit in hits)

        result.contribution = signal * rule.weight
        return result

    def _shape_confidence(
        self, category: Category, accumulator: _CategoryAccumulator
    ) -> tuple[float, Optional[ConfidenceAdjustment]]:
        raw = accumulator.raw
        threshold = self.thresholds.get(category)
        if threshold is not None:
            confidence = _clamp(
                raw * threshold.adjustment_factor,
                threshold.min_confidence,
                threshold.max_confidence,
            )
            reason = (
                f"Threshold for {category.value}: x{threshold.adjustment_factor:g}, "
                f"bounded to [{threshold.min_confidence:g}, {threshold.max_confidence:g}]"
            )
        else:
            confidence = _clamp(raw)
            reason = f"Confidence for {category.value} capped at 1"

        if confidence == raw:
            return confidence, None
        rule_id = accumulator.strongest.rule.id if accumulator.strongest else category.value
        return confidence, ConfidenceAdjustment(
            rule=rule_id, adjustment=round(confidence - raw, 6), reason=reason
        )

    def evaluate(self, issue_text: IssueText, rules: Sequence[ClassificationRule]) -> RuleEvaluation:
        evaluation = RuleEvaluation(categories=[])
        accumulators: Dict[Category, _CategoryAccumulator] = {}

        for rule in rules:
            if not rule.enabled:
                continue
            evaluation.rules_applied += 1
            match = self.evaluate_rule(rule, issue_text)
            if match.vetoed_by is not None:
                evaluation.rules_vetoed += 1
                continue
            if not match.matched:
                continue
            evaluation.rules_matched += 1
            accumulators.setdefault(rule.category, _CategoryAccumulator()).add(match)

        for category, accumulator in accumulators.items():
            confidence, adjustment = self._shape_confidence(category, accumulator)
            if adjustment is not None:
                evaluation.adjustments.append(adjustment)
            strongest = accumulator.strongest
            evaluation.categories.append(
                CategoryClassification(
                    category=category,
                    confidence=confidence,
                    reasons=accumulator.reasons,
                    keywords=accumulator.keywords,
                    rule_id=strongest.rule.id if strongest else None,
                    rule_name=strongest.rule.name if strongest else None,
                    rule_ids=accumulator.rule_ids,
                    rule_weight=accumulator.max_rule_weight,
                )
            )

        return evaluation


__all__ = ["RuleEvaluation", "RuleEvaluator", "RuleMatch"]
