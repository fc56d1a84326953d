"""
Tests for rule condition matching and confidence accumulation.
"""
import pytest

from triage.classification import ConditionKind, IssueText, RuleEvaluator, compile_pattern
from triage.classification.conditions import invalid_patterns, match_condition
from triage.models import (
    Category,
    ClassificationRule,
    ConfidenceThreshold,
    IssueInput,
    RuleConditions,
)


def _text(title="", body="", labels=()):
    return IssueText.from_issue(IssueInput(title=title, body=body, labels=list(labels)))


def _rule(rule_id="r", category="bug", weight=1.0, enabled=True, **conditions):
    return ClassificationRule(
        id=rule_id,
        name=rule_id.title(),
        category=category,
        weight=weight,
        enabled=enabled,
        conditions=RuleConditions(**conditions),
    )


class TestPatterns:
    def test_delimited_pattern_with_flags(self):
        compiled = compile_pattern("/^fix:/m")
        assert compiled.search("chore\nFIX: thing")

    def test_bare_pattern_is_case_insensitive(self):
        assert compile_pattern(r"\bcve-\d+").search("Tracks CVE-2024")

    def test_javascript_only_flags_ignored(self):
        assert compile_pattern("/crash/gu").search("Crash report")

    def test_invalid_pattern_returns_none(self):
        assert compile_pattern("([unclosed") is None
        assert invalid_patterns(["ok", "([unclosed"]) == ["([unclosed"]


class TestConditionMatching:
    """Tests for each condition kind."""

    def test_keywords_are_substring_matches(self):
        text = _text(title="Crashes when saving")
        hits = match_condition(
            ConditionKind.TITLE_KEYWORD, text, RuleConditions(title_keywords=["crash", "freeze"])
        )
        assert hits == ["crash"]

    def test_body_keywords_only_look_at_body(self):
        text = _text(title="crash", body="nothing to see")
        conditions = RuleConditions(body_keywords=["crash"])
        assert match_condition(ConditionKind.BODY_KEYWORD, text, conditions) == []

    def test_label_substring(self):
        text = _text(title="x", labels=["Type: Bug"])
        hits = match_condition(ConditionKind.LABEL, text, RuleConditions(labels=["bug"]))
        assert hits == ["bug"]

    def test_blank_keywords_never_match(self):
        text = _text(title="anything")
        assert match_condition(ConditionKind.TITLE_KEYWORD, text, RuleConditions(title_keywords=["  "])) == []

    def test_exclusions_check_title_and_body(self):
        text = _text(title="Bug", body="This is really a feature request")
        conditions = RuleConditions(exclude_keywords=["feature request"])
        assert match_condition(ConditionKind.EXCLUDE_KEYWORD, text, conditions) == ["feature request"]


class TestEvaluateRule:
    def test_contribution_is_signal_times_weight(self):
        evaluator = RuleEvaluator()
        rule = _rule(weight=0.5, title_keywords=["crash"], labels=["bug"])
        match = evaluator.evaluate_rule(rule, _text(title="App crash", labels=["bug"]))
        # (0.3 title keyword + 0.4 label) * 0.5
        assert match.contribution == pytest.approx(0.35)
        assert match.matched
        assert match.keywords == ["crash", "bug"]
        assert match.reasons == ["Title contains 'crash'", "Has label 'bug'"]

    def test_each_hit_counts(self):
        evaluator = RuleEvaluator()
        rule = _rule(body_keywords=["error", "stack trace"])
        match = evaluator.evaluate_rule(rule, _text(title="x", body="error with stack trace"))
        assert match.contribution == pytest.approx(0.4)

    def test_exclusion_vetoes(self):
        evaluator = RuleEvaluator()
        rule = _rule(title_keywords=["bug"], exclude_keywords=["feature request"])
        match = evaluator.evaluate_rule(rule, _text(title="bug or feature request?"))
        assert match.vetoed_by == "feature request"
        assert not match.matched
        assert match.contribution == 0

    def test_no_hits_is_not_a_match(self):
        match = RuleEvaluator().evaluate_rule(_rule(title_keywords=["crash"]), _text(title="Docs"))
        assert not match.matched


class TestEvaluate:
    """Tests for per-category accumulation."""

    def test_contributions_sum_per_category(self):
        rules = [
            _rule("a", title_keywords=["crash"]),
            _rule("b", labels=["bug"]),
            _rule("c", category="feature", title_keywords=["add"]),
        ]
        evaluation = RuleEvaluator().evaluate(_text(title="Add crash handler", labels=["bug"]), rules)
        by_category = {c.category: c for c in evaluation.categories}

        assert by_category[Category.BUG].confidence == pytest.approx(0.7)
        assert by_category[Category.BUG].rule_ids == ["a", "b"]
        assert by_category[Category.BUG].rule_id == "b"
        assert by_category[Category.FEATURE].confidence == pytest.approx(0.3)
        assert evaluation.rules_applied == 3
        assert evaluation.rules_matched == 3

    def test_disabled_rules_not_counted(self):
        rules = [_rule("a", title_keywords=["crash"]), _rule("b", enabled=False, title_keywords=["crash"])]
        evaluation = RuleEvaluator().evaluate(_text(title="crash"), rules)
        assert evaluation.rules_applied == 1

    def test_vetoed_rules_counted(self):
        rules = [_rule("a", title_keywords=["crash"], exclude_keywords=["wontfix"])]
        evaluation = RuleEvaluator().evaluate(_text(title="crash", body="wontfix"), rules)
        assert evaluation.rules_vetoed == 1
        assert evaluation.categories == []

    def test_confidence_capped_at_one(self):
        rule = _rule(title_keywords=["crash", "error", "broken"], labels=["bug"])
        evaluation = RuleEvaluator().evaluate(_text(title="crash error broken", labels=["bug"]), [rule])
        assert evaluation.categories[0].confidence == 1.0
        adjustment = evaluation.adjustments[0]
        assert adjustment.rule == "r"
        assert adjustment.adjustment == pytest.approx(-0.3)

    def test_threshold_shapes_confidence(self):
        thresholds = [
            ConfidenceThreshold(category="bug", min_confidence=0.5, max_confidence=0.9, adjustment_factor=1.5)
        ]
        evaluator = RuleEvaluator(confidence_thresholds=thresholds)

        weak = evaluator.evaluate(_text(title="crash"), [_rule(title_keywords=["crash"])])
        assert weak.categories[0].confidence == pytest.approx(0.5)

        strong = evaluator.evaluate(
            _text(title="crash", labels=["bug"]), [_rule(title_keywords=["crash"], labels=["bug"])]
        )
        assert strong.categories[0].confidence == pytest.approx(0.9)

    def test_no_adjustment_when_unchanged(self):
        evaluation = RuleEvaluator().evaluate(_text(title="crash"), [_rule(title_keywords=["crash"])])
        assert evaluation.adjustments == []
