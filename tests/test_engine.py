"""
Tests for the classification engine.
"""
import pytest

from triage.cache import ClassificationCache, MemoryResultStore
from triage.classification import ClassificationEngine
from triage.exceptions import ClassificationError
from triage.models import (
    Category,
    ClassificationRule,
    EnhancedClassificationConfig,
    Priority,
    RepositoryContext,
    RuleConditions,
    ScoringMode,
)


class TestClassifyIssue:
    """Tests for single-issue classification with the built-in configuration."""

    def test_security_issue(self, engine, make_issue):
        issue = make_issue(
            title="Security vulnerability: XSS in login form", labels=["security"], age_days=10
        )
        result = engine.classify_issue(issue)

        assert result.primary_category == Category.SECURITY
        assert result.primary_confidence == 1.0
        assert result.estimated_priority == Priority.CRITICAL
        assert result.score == pytest.approx(95.0)
        assert result.score_breakdown.algorithm == ScoringMode.WEIGHTED
        assert "Has label 'security'" in result.classifications[0].reasons

    def test_security_fix_title(self, engine, make_issue):
        issue = make_issue(title="fix: critical security vulnerability in auth", labels=["security"])
        result = engine.classify_issue(issue)

        assert result.primary_category == Category.SECURITY
        assert result.primary_confidence >= 0.7
        assert 0 <= result.score <= 100

    def test_bug_report_with_reproduction_steps(self, engine, make_issue):
        issue = make_issue(
            title="App crashes on startup",
            body="Steps to reproduce: open the app.\nTraceback shows an error.\n```\nboom\n```",
            labels=["bug"],
        )
        result = engine.classify_issue(issue)

        assert result.primary_category == Category.BUG
        assert result.estimated_priority == Priority.CRITICAL
        assert result.metadata.has_steps_to_reproduce
        assert result.metadata.has_code_blocks
        assert result.metadata.existing_labels == ["bug"]

    def test_no_match_uses_default_category(self, engine, make_issue):
        result = engine.classify_issue(make_issue(title="Hello there"))

        assert result.classifications == []
        assert result.primary_category == Category.QUESTION
        assert result.primary_confidence == 0.0
        assert result.estimated_priority == Priority.MEDIUM
        # question 0.4 -> 16, medium 0.6 -> 18, no confidence, unknown age
        assert result.score == pytest.approx(34.0)
        assert any("minConfidence" in note for note in result.metadata.diagnostics)

    def test_weak_matches_are_not_selected(self, engine, make_issue):
        result = engine.classify_issue(make_issue(title="Update readme"))
        assert result.classifications == []
        assert result.metadata.processing_metadata.rules_matched == 2

    def test_several_categories_ranked(self, engine, make_issue):
        issue = make_issue(
            title="Security vulnerability bug: crash exposes tokens", labels=["security", "bug"]
        )
        result = engine.classify_issue(issue)

        categories = [c.category for c in result.classifications]
        assert categories == [Category.SECURITY, Category.BUG]
        assert result.primary_confidence == pytest.approx(1.0)
        assert result.classifications[1].confidence == pytest.approx(0.9)
        assert result.estimated_priority == Priority.CRITICAL

    def test_max_categories(self, base_config, make_issue, fixed_now):
        engine = ClassificationEngine(
            base_config.model_copy(update={"max_categories": 1}), clock=lambda: fixed_now
        )
        issue = make_issue(
            title="Security vulnerability bug: crash exposes tokens", labels=["security", "bug"]
        )
        result = engine.classify_issue(issue)
        assert [c.category for c in result.classifications] == [Category.SECURITY]

    def test_result_metadata(self, engine, make_issue):
        context = RepositoryContext(owner="octo", repo="app")
        result = engine.classify_issue(make_issue(issue_id=42, title="Crash"), context)

        assert result.issue_id == 42
        assert result.config_version == engine.config.version
        assert result.algorithm_version == "default@1.0.0"
        assert result.metadata.repository_context == context
        assert result.metadata.processing_metadata.rules_applied == len(engine.rules)
        assert result.cache_hit is False

    def test_context_mapping_accepted(self, engine, make_issue):
        result = engine.classify_issue(make_issue(title="Crash"), {"owner": "octo", "repo": "app"})
        assert result.metadata.repository_context.slug == "octo/app"

    def test_invalid_context_becomes_diagnostic(self, engine, make_issue):
        result = engine.classify_issue(make_issue(title="Crash"), {"owner": ""})
        assert result.metadata.repository_context is None
        assert any("repository context" in note for note in result.metadata.diagnostics)

    def test_auto_classification_disabled(self, base_config, make_issue, fixed_now):
        engine = ClassificationEngine(
            base_config.model_copy(update={"enable_auto_classification": False}),
            clock=lambda: fixed_now,
        )
        result = engine.classify_issue(make_issue(title="Crash", labels=["bug"]))
        assert result.primary_category == Category.QUESTION
        assert result.metadata.processing_metadata.rules_applied == 0


class TestCategorySelection:
    def _engine(self, **config):
        rules = [
            ClassificationRule(
                id="bugs",
                name="Bugs",
                category="bug",
                weight=0.8,
                conditions=RuleConditions(title_keywords=["a", "b", "c"], labels=["x"]),
            ),
            ClassificationRule(
                id="features",
                name="Features",
                category="feature",
                weight=1.0,
                conditions=RuleConditions(title_keywords=["a", "b", "c"], labels=["x"]),
            ),
        ]
        return ClassificationEngine(EnhancedClassificationConfig(rules=rules, **config))

    def test_tie_broken_by_rule_weight(self, make_issue):
        result = self._engine().classify_issue(make_issue(title="a b c", labels=["x"]))
        assert result.primary_confidence == 1.0
        assert [c.category for c in result.classifications] == [Category.FEATURE, Category.BUG]

    def test_min_confidence_filter(self, make_issue):
        engine = self._engine(min_confidence=0.95)
        # bugs: 0.4 * 0.8, features: 0.4
        result = engine.classify_issue(make_issue(title="nothing", labels=["x"]))
        assert result.classifications == []


class TestMalformedInput:
    """Malformed issues produce fallback results instead of raising."""

    def test_missing_title(self, engine):
        result = engine.classify_issue({"id": 5, "body": "no title"})

        assert result.issue_id == 5
        assert result.primary_category == Category.QUESTION
        assert result.estimated_priority == Priority.MEDIUM
        assert result.primary_confidence == 0.0
        assert any(note.startswith("title") for note in result.metadata.diagnostics)

    def test_not_a_mapping(self, engine):
        result = engine.classify_issue("just a string")
        assert result.issue_id is None
        assert any("mapping" in note for note in result.metadata.diagnostics)

    def test_stage_failure_raises_classification_error(self, engine, make_issue, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(engine.evaluator, "evaluate", explode)
        with pytest.raises(ClassificationError) as exc_info:
            engine.classify_issue(make_issue(issue_id=9, title="Crash"))

        assert exc_info.value.stage == "rule_evaluation"
        assert exc_info.value.issue_id == 9


class TestResultCaching:
    def test_second_classification_is_a_hit(self, base_config, make_issue, fixed_now):
        cache = ClassificationCache(MemoryResultStore())
        engine = ClassificationEngine(base_config, result_cache=cache, clock=lambda: fixed_now)
        issue = make_issue(title="Crash", labels=["bug"])

        first = engine.classify_issue(issue)
        second = engine.classify_issue(issue)

        assert first.cache_hit is False
        assert second.cache_hit is True
        assert cache.stats()["hits"] == 1

        ignored = {"cache_hit", "processing_time_ms"}
        assert second.model_dump(exclude=ignored) == first.model_dump(exclude=ignored)

    def test_zero_ttl_store_still_hits(self, base_config, make_issue, fixed_now):
        cache = ClassificationCache(MemoryResultStore(ttl=0))
        engine = ClassificationEngine(base_config, result_cache=cache, clock=lambda: fixed_now)
        issue = make_issue(title="Crash", labels=["bug"])

        engine.classify_issue(issue)
        assert engine.classify_issue(issue).cache_hit is True

    def test_changed_content_misses(self, base_config, make_issue, fixed_now):
        cache = ClassificationCache(MemoryResultStore())
        engine = ClassificationEngine(base_config, result_cache=cache, clock=lambda: fixed_now)

        engine.classify_issue(make_issue(title="Crash"))
        result = engine.classify_issue(make_issue(title="Crash on save"))
        assert result.cache_hit is False

    def test_changed_config_misses(self, base_config, make_issue):
        cache = ClassificationCache(MemoryResultStore())
        issue = make_issue(title="Crash")
        ClassificationEngine(base_config, result_cache=cache).classify_issue(issue)

        stricter = base_config.model_copy(update={"min_confidence": 0.9})
        result = ClassificationEngine(stricter, result_cache=cache).classify_issue(issue)
        assert result.cache_hit is False


class TestTopTasks:
    """Tests for open-issue ranking."""

    def test_ranks_open_issues(self, engine, make_issue):
        issues = [
            make_issue(issue_id=1, title="Hello there"),
            make_issue(issue_id=2, title="Security vulnerability", labels=["security"], age_days=1),
            make_issue(issue_id=3, title="App crash", labels=["bug"], state="closed"),
            make_issue(issue_id=4, title="Crash when saving", labels=["bug"], age_days=2),
            {"body": "malformed"},
        ]
        top = engine.get_top_tasks(issues, limit=2)

        assert top.total_analyzed == 3
        assert [task.issue_id for task in top.tasks] == [2, 4]
        scores = [task.score for task in top.tasks]
        assert scores == sorted(scores, reverse=True)

    def test_average_score(self, engine, make_issue):
        top = engine.get_top_tasks([make_issue(issue_id=1, title="Hello there")])
        assert top.average_score == pytest.approx(34.0)

    def test_no_open_issues(self, engine, make_issue):
        top = engine.get_top_tasks([make_issue(state="closed", title="x")])
        assert top.tasks == []
        assert top.total_analyzed == 0
        assert top.average_score == 0.0
