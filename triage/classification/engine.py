"""
Classification orchestrator.

Runs one issue through the stages

    START -> RULE_EVALUATION -> CATEGORY_SELECTION -> PRIORITY_ESTIMATION -> SCORING -> DONE

against a single, already-loaded configuration. Malformed input produces a
fallback classification carrying diagnostics instead of an exception.
"""

import time
from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Union

from pydantic import ValidationError

from triage import __version__
from triage.cache import CacheKeys, ClassificationCache
from triage.exceptions import ClassificationError, format_validation_error
from triage.logging import engine_logger
from triage.models import (
    CategoryClassification,
    ClassificationMetadata,
    EnhancedClassificationConfig,
    EnhancedIssueClassification,
    IssueInput,
    IssueState,
    Priority,
    ProcessingMetadata,
    RepositoryContext,
    TaskScore,
    TopTasksResult,
)
from triage.scoring import compute_task_score

from .conditions import IssueText
from .evaluator import RuleEvaluation, RuleEvaluator
from .priority import PriorityEstimator
from .text_signals import describe_issue

IssueLike = Union[IssueInput, Mapping]
ContextLike = Union[RepositoryContext, Mapping, None]


class Stage(str, Enum):
    START = "start"
    RULE_EVALUATION = "rule_evaluation"
    CATEGORY_SELECTION = "category_selection"
    PRIORITY_ESTIMATION = "priority_estimation"
    SCORING = "scoring"
    DONE = "done"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 3)


class ClassificationEngine:
    """
    Classifies issues with one configuration.

    Usage:
        engine = ClassificationEngine(config)
        result = engine.classify_issue({"id": 7, "title": "Crash on save", "labels": ["bug"]})
        result.primary_category  # Category.BUG
    """

    def __init__(
        self,
        config: EnhancedClassificationConfig,
        *,
        result_cache: Optional[ClassificationCache] = None,
        profile_id: Optional[str] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config
        self.result_cache = result_cache
        self.profile_id = profile_id
        self._clock = clock or _utcnow
        self.evaluator = RuleEvaluator.from_config(config)
        self.priority_estimator = PriorityEstimator.from_config(config)
        self.rules = config.active_rules

    @property
    def fallback_priority(self) -> Priority:
        return self.priority_estimator.config.fallback_priority

    # =========================================================================
    # Input handling
    # =========================================================================

    @staticmethod
    def parse_issue(issue: IssueLike) -> IssueInput:
        """Validate raw input. Raises ValidationError or TypeError."""
        if isinstance(issue, IssueInput):
            return issue
        if isinstance(issue, Mapping):
            return IssueInput.model_validate(dict(issue))
        raise TypeError(f"Issue must be a mapping (got {type(issue).__name__})")

    @staticmethod
    def _parse_context(context: ContextLike, diagnostics: List[str]) -> Optional[RepositoryContext]:
        if context is None or isinstance(context, RepositoryContext):
            return context
        try:
            return RepositoryContext.model_validate(dict(context))
        except (ValidationError, TypeError, ValueError) as e:
            diagnostics.append(f"Ignored invalid repository context: {e}")
            return None

    # =========================================================================
    # Stages
    # =========================================================================

    def select_categories(self, candidates: Iterable[CategoryClassification]) -> List[CategoryClassification]:
        """
        Keep categories at or above minConfidence, best first, at most maxCategories.

        Ties are broken by the stronger contributing rule weight, then by
        category name.
        """
        eligible = [c for c in candidates if c.confidence >= self.config.min_confidence]
        eligible.sort(key=lambda c: (-c.confidence, -c.rule_weight, c.category.value))
        return eligible[: self.config.max_categories]

    def _evaluate(self, text: IssueText) -> RuleEvaluation:
        if not self.config.enable_auto_classification:
            return RuleEvaluation(categories=[])
        return self.evaluator.evaluate(text, self.rules)

    def _classify(
        self,
        issue: IssueInput,
        context: Optional[RepositoryContext],
        diagnostics: List[str],
        started: float,
    ) -> EnhancedIssueClassification:
        stage = Stage.START
        try:
            now = self._clock()
            text = IssueText.from_issue(issue)
            signals = describe_issue(issue, now)

            stage = Stage.RULE_EVALUATION
            evaluation = self._evaluate(text)

            stage = Stage.CATEGORY_SELECTION
            selected = self.select_categories(evaluation.categories)
            if selected:
                primary_category = selected[0].category
                primary_confidence = selected[0].confidence
            else:
                primary_category = self.config.default_category
                primary_confidence = 0.0
                diagnostics.append(
                    f"No category reached minConfidence {self.config.min_confidence:g}; "
                    f"using default category '{primary_category.value}'"
                )

            stage = Stage.PRIORITY_ESTIMATION
            estimate = self.priority_estimator.estimate(
                text, selected, primary_confidence, signals["age_days"]
            )

            stage = Stage.SCORING
            scored = compute_task_score(
                self.config,
                primary_category,
                estimate.priority,
                primary_confidence,
                signals["age_days"],
                issue.custom_factors,
            )

            stage = Stage.DONE
            metadata = ClassificationMetadata(
                **signals,
                repository_context=context,
                processing_metadata=ProcessingMetadata(
                    rules_applied=evaluation.rules_applied,
                    rules_matched=evaluation.rules_matched,
                    rules_vetoed=evaluation.rules_vetoed,
                    confidence_adjustments=evaluation.adjustments,
                ),
                diagnostics=diagnostics,
            )
            return EnhancedIssueClassification(
                issue_id=issue.id,
                issue_number=issue.number,
                classifications=selected,
                primary_category=primary_category,
                primary_confidence=primary_confidence,
                estimated_priority=estimate.priority,
                priority_confidence=estimate.confidence,
                processing_time_ms=_elapsed_ms(started),
                version=__version__,
                metadata=metadata,
                score=scored.score,
                score_breakdown=scored.breakdown,
                config_version=self.config.version,
                algorithm_version=self.config.algorithm_version,
                profile_id=self.profile_id,
            )
        except Exception as e:
            raise ClassificationError(
                f"Classification failed during {stage.value}: {e}", issue_id=issue.id, stage=stage.value
            ) from e

    def _fallback_result(self, raw: Any, diagnostics: List[str], started: float) -> EnhancedIssueClassification:
        issue_id = raw.get("id") if isinstance(raw, Mapping) else None
        number = raw.get("number") if isinstance(raw, Mapping) else None
        scored = compute_task_score(
            self.config, self.config.default_category, self.fallback_priority, 0.0, None
        )
        return EnhancedIssueClassification(
            issue_id=issue_id if isinstance(issue_id, int) else None,
            issue_number=number if isinstance(number, int) else None,
            classifications=[],
            primary_category=self.config.default_category,
            primary_confidence=0.0,
            estimated_priority=self.fallback_priority,
            priority_confidence=0.0,
            processing_time_ms=_elapsed_ms(started),
            version=__version__,
            metadata=ClassificationMetadata(diagnostics=diagnostics),
            score=scored.score,
            score_breakdown=scored.breakdown,
            config_version=self.config.version,
            algorithm_version=self.config.algorithm_version,
            profile_id=self.profile_id,
        )

    # =========================================================================
    # Public API
    # =========================================================================

    def classify_issue(
        self, issue: IssueLike, repository_context: ContextLike = None
    ) -> EnhancedIssueClassification:
        """
        Classify a single issue.

        Raises:
            ClassificationError: if a stage fails on well-formed input
        """
        started = time.perf_counter()
        diagnostics: List[str] = []

        try:
            parsed = self.parse_issue(issue)
        except ValidationError as e:
            diagnostics.extend(format_validation_error(e))
            engine_logger.warning("malformed_issue", errors=diagnostics)
            return self._fallback_result(issue, diagnostics, started)
        except TypeError as e:
            diagnostics.append(str(e))
            engine_logger.warning("malformed_issue", errors=diagnostics)
            return self._fallback_result(issue, diagnostics, started)

        context = self._parse_context(repository_context, diagnostics)

        fingerprint = None
        if self.result_cache is not None:
            fingerprint = CacheKeys.fingerprint(parsed, self.config, context)
            cached = self.result_cache.get(fingerprint)
            if cached is not None:
                return cached.model_copy(update={"processing_time_ms": _elapsed_ms(started)})

        result = self._classify(parsed, context, diagnostics, started)

        if fingerprint is not None:
            self.result_cache.put(fingerprint, result)

        engine_logger.debug(
            "issue_classified",
            issue_id=result.issue_id,
            category=result.primary_category.value,
            priority=result.estimated_priority.value,
            score=result.score,
            duration_ms=result.processing_time_ms,
        )
        return result

    def get_top_tasks(
        self, issues: Iterable[IssueLike], limit: int = 3, repository_context: ContextLike = None
    ) -> TopTasksResult:
        """Score open issues and return the `limit` highest."""
        started = time.perf_counter()
        tasks: List[TaskScore] = []

        for raw in issues:
            try:
                issue = self.parse_issue(raw)
            except (ValidationError, TypeError) as e:
                engine_logger.warning("top_tasks_skipped_issue", error=str(e))
                continue
            if issue.state != IssueState.OPEN:
                continue

            result = self.classify_issue(issue, repository_context)
            primary = result.classifications[0] if result.classifications else None
            tasks.append(
                TaskScore(
                    issue_id=issue.id,
                    issue_number=issue.number,
                    title=issue.title,
                    url=issue.url,
                    score=result.score,
                    priority=result.estimated_priority,
                    category=result.primary_category,
                    confidence=result.primary_confidence,
                    reasons=primary.reasons if primary else [],
                    labels=list(issue.labels),
                )
            )

        tasks.sort(key=lambda task: task.score, reverse=True)
        average = round(sum(task.score for task in tasks) / len(tasks), 2) if tasks else 0.0
        return TopTasksResult(
            tasks=tasks[: max(0, limit)],
            total_analyzed=len(tasks),
            average_score=average,
            processing_time_ms=_elapsed_ms(started),
        )


__all__ = ["ClassificationEngine", "Stage"]
