"""
Tests for configuration and result schemas.
"""
import pytest
from pydantic import ValidationError

from triage.config import Settings
from triage.exceptions import format_validation_error
from triage.models import (
    BatchClassificationResult,
    Category,
    ClassificationRule,
    ConfidenceThreshold,
    ConfigurationUpdate,
    EnhancedClassificationConfig,
    IssueInput,
    ScoringAlgorithm,
    ScoringWeights,
)


class TestScoringWeights:
    """Tests for the weight-sum invariant."""

    def test_defaults_sum_to_100(self):
        weights = ScoringWeights()
        assert weights.total == 100

    def test_rejects_weights_not_summing_to_100(self):
        with pytest.raises(ValidationError) as exc_info:
            ScoringWeights(category=40, priority=30, confidence=20, recency=0, custom=0)
        assert "must sum to 100" in str(exc_info.value)

    def test_accepts_float_representation_error(self):
        weights = ScoringWeights(category=33.3, priority=33.3, confidence=33.4, recency=0, custom=0)
        assert weights.category == 33.3

    def test_invalid_weights_rejected_inside_config(self):
        with pytest.raises(ValidationError) as exc_info:
            EnhancedClassificationConfig.model_validate(
                {
                    "scoringAlgorithm": {
                        "id": "broken",
                        "weights": {"category": 50, "priority": 50, "confidence": 50, "recency": 0},
                    }
                }
            )
        messages = format_validation_error(exc_info.value)
        assert any(message.startswith("scoringAlgorithm.weights") for message in messages)


class TestConfidenceThreshold:
    def test_min_above_max_rejected(self):
        with pytest.raises(ValidationError):
            ConfidenceThreshold(category="bug", min_confidence=0.9, max_confidence=0.5)

    def test_adjustment_factor_bounds(self):
        with pytest.raises(ValidationError):
            ConfidenceThreshold(category="bug", adjustment_factor=2.5)


class TestIssueInput:
    """Tests for raw issue payload handling."""

    def test_label_objects_become_names(self):
        issue = IssueInput.model_validate(
            {"title": "Crash", "labels": [{"name": "bug", "color": "red"}, "ui"]}
        )
        assert issue.labels == ["bug", "ui"]

    def test_null_labels_and_body(self):
        issue = IssueInput.model_validate({"title": "Crash", "labels": None, "body": None})
        assert issue.labels == []
        assert issue.text_body == ""

    def test_html_url_alias(self):
        issue = IssueInput.model_validate(
            {"title": "Crash", "html_url": "https://github.com/octo/app/issues/1"}
        )
        assert issue.url == "https://github.com/octo/app/issues/1"

    def test_missing_title_rejected(self):
        with pytest.raises(ValidationError):
            IssueInput.model_validate({"body": "no title here"})

    def test_custom_factor_out_of_range(self):
        with pytest.raises(ValidationError):
            IssueInput.model_validate({"title": "x", "customFactors": {"impact": 1.5}})

    def test_unknown_keys_ignored(self):
        issue = IssueInput.model_validate({"title": "x", "user": {"login": "octo"}})
        assert issue.title == "x"


class TestEnhancedClassificationConfig:
    """Tests for the aggregate configuration root."""

    def test_dumps_camel_case(self):
        document = EnhancedClassificationConfig().to_document()
        assert document["minConfidence"] == 0.7
        assert document["maxCategories"] == 3
        assert "min_confidence" not in document

    def test_accepts_snake_case_input(self):
        config = EnhancedClassificationConfig.model_validate({"min_confidence": 0.4})
        assert config.min_confidence == 0.4

    def test_max_categories_bounds(self):
        with pytest.raises(ValidationError):
            EnhancedClassificationConfig(max_categories=11)

    def test_active_rules_skip_disabled_and_append_custom(self):
        config = EnhancedClassificationConfig(
            rules=[
                ClassificationRule(id="a", name="A", category="bug"),
                ClassificationRule(id="b", name="B", category="bug", enabled=False),
            ],
            custom_rules=[ClassificationRule(id="c", name="C", category="feature")],
        )
        assert [rule.id for rule in config.active_rules] == ["a", "c"]

    def test_algorithm_version(self):
        assert EnhancedClassificationConfig().algorithm_version == "fallback"
        config = EnhancedClassificationConfig(
            scoring_algorithm=ScoringAlgorithm(id="weighted", version="2.1.0")
        )
        assert config.algorithm_version == "weighted@2.1.0"

    def test_digest_tracks_contents(self):
        first = EnhancedClassificationConfig(min_confidence=0.7)
        same = EnhancedClassificationConfig(min_confidence=0.7)
        changed = EnhancedClassificationConfig(min_confidence=0.6)
        assert first.digest() == same.digest()
        assert first.digest() != changed.digest()

    def test_threshold_lookup(self):
        config = EnhancedClassificationConfig(
            confidence_thresholds=[ConfidenceThreshold(category="bug", min_confidence=0.5)]
        )
        assert config.threshold_for(Category.BUG).min_confidence == 0.5
        assert config.threshold_for(Category.FEATURE) is None

    def test_empty_version_rejected(self):
        with pytest.raises(ValidationError):
            EnhancedClassificationConfig(version="  ")


class TestConfigurationUpdate:
    @pytest.mark.parametrize("path", ["", "a..b", ".minConfidence", "performance."])
    def test_invalid_paths(self, path):
        with pytest.raises(ValidationError):
            ConfigurationUpdate(path=path, value=1)

    def test_defaults_to_set(self):
        update = ConfigurationUpdate.model_validate({"path": "minConfidence", "value": 0.5})
        assert update.operation.value == "set"


class TestBatchClassificationResult:
    def test_counts_must_add_up(self):
        with pytest.raises(ValidationError):
            BatchClassificationResult(
                total_issues=3, processed_issues=3, successful_issues=1, failed_issues=1
            )

    def test_processed_cannot_exceed_total(self):
        with pytest.raises(ValidationError):
            BatchClassificationResult(
                total_issues=1, processed_issues=2, successful_issues=2, failed_issues=0
            )


class TestSettings:
    def test_config_path_list(self):
        settings = Settings(config_paths="a.json, b.json,,")
        assert settings.config_path_list == ["a.json", "b.json"]

    def test_runtime_validation(self):
        errors, warnings = Settings(config_paths=" , ", config_cache_ttl=0).validate_runtime_config()
        assert len(errors) == 1
        assert len(warnings) == 1

    def test_unknown_cache_backend_rejected(self):
        with pytest.raises(ValidationError):
            Settings(result_cache_backend="memcached")

    def test_log_level_normalized(self):
        assert Settings(log_level="debug").log_level == "DEBUG"
