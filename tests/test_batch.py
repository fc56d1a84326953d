"""
Tests for batch classification.
"""
import threading

import pytest

from triage.services import BatchProcessor


@pytest.fixture
def issues(make_issue):
    titles = ["App crash", "Add support for themes", "Typo in readme", "Hello there", "Slow startup"]
    return [make_issue(issue_id=i, title=title) for i, title in enumerate(titles, start=1)]


def _fail_on(engine, monkeypatch, *failing_ids):
    original = engine.classify_issue

    def classify(issue, context=None):
        if issue.get("id") in failing_ids:
            raise RuntimeError(f"cannot classify {issue['id']}")
        return original(issue, context)

    monkeypatch.setattr(engine, "classify_issue", classify)


class TestBatchProcessor:
    """Tests for chunked, parallel classification."""

    def test_defaults_from_config(self, engine):
        processor = BatchProcessor(engine)
        assert processor.batch_size == 100
        assert processor.parallelism == 3
        assert processor.enabled is True

    @pytest.mark.parametrize("batch_size,parallelism", [(1, 1), (2, 2), (2, 3), (10, 4)])
    def test_results_keep_input_order(self, engine, issues, batch_size, parallelism):
        batch = BatchProcessor(engine, batch_size=batch_size, parallelism=parallelism).classify_batch(issues)

        assert [r.issue_id for r in batch.results] == [1, 2, 3, 4, 5]
        assert batch.total_issues == 5
        assert batch.processed_issues == 5
        assert batch.successful_issues == 5
        assert batch.failed_issues == 0
        assert batch.cancelled is False

    def test_disabled_runs_sequentially(self, engine, issues):
        batch = BatchProcessor(engine, batch_size=2, parallelism=3, enabled=False).classify_batch(issues)
        assert batch.successful_issues == 5

    def test_failures_recorded(self, engine, issues, monkeypatch):
        _fail_on(engine, monkeypatch, 2, 4)
        batch = BatchProcessor(engine, batch_size=2, parallelism=2).classify_batch(issues)

        assert batch.successful_issues == 3
        assert batch.failed_issues == 2
        assert sorted(error.issue_id for error in batch.errors) == [2, 4]
        assert "cannot classify" in batch.errors[0].error
        assert [r.issue_id for r in batch.results] == [1, 3, 5]

    def test_malformed_items_are_fallbacks(self, engine, make_issue):
        batch = BatchProcessor(engine).classify_batch([make_issue(title="Crash"), {"id": 9}])

        assert batch.failed_issues == 0
        assert batch.results[1].issue_id == 9
        assert batch.results[1].metadata.diagnostics

    def test_average_confidence(self, engine, make_issue):
        issues = [
            make_issue(issue_id=1, title="Security vulnerability", labels=["security"]),
            make_issue(issue_id=2, title="Hello there"),
        ]
        batch = BatchProcessor(engine).classify_batch(issues)
        assert batch.average_confidence == pytest.approx(0.5)

    def test_empty_batch(self, engine):
        batch = BatchProcessor(engine).classify_batch([])
        assert batch.total_issues == 0
        assert batch.results == []
        assert batch.average_confidence == 0.0


class TestCancellation:
    def test_cancelled_before_start(self, engine, issues):
        event = threading.Event()
        event.set()

        batch = BatchProcessor(engine, batch_size=2, parallelism=2).classify_batch(issues, cancel_event=event)

        assert batch.cancelled is True
        assert batch.processed_issues == 0

    def test_cancelled_between_chunks(self, engine, issues, monkeypatch):
        event = threading.Event()
        original = engine.classify_issue

        def classify(issue, context=None):
            event.set()
            return original(issue, context)

        monkeypatch.setattr(engine, "classify_issue", classify)
        batch = BatchProcessor(engine, batch_size=2, parallelism=1).classify_batch(issues, cancel_event=event)

        assert batch.cancelled is True
        assert batch.processed_issues == 2
        assert batch.total_issues == 5
        assert [r.issue_id for r in batch.results] == [1, 2]
